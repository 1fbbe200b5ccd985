"""Async storage for generated content - non-blocking JSON output"""

import asyncio
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import aiofiles
import orjson
from loguru import logger

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def make_slug(value: str, max_length: int = 60) -> str:
    """Filesystem-safe name derived from a URL or title"""
    value = re.sub(r"^https?://(www\.)?", "", value.strip().lower())
    slug = _SLUG_RE.sub("-", value).strip("-")
    return slug[:max_length].rstrip("-") or "listing"


class ContentStorage:
    """
    Writes generated content bundles and raw responses as JSON files.
    Uses aiofiles for async I/O and orjson for serialization.
    """

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir
        self.raw_dir = output_dir / "raw_data"
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.raw_dir.mkdir(parents=True, exist_ok=True)

    async def _write_json(self, path: Path, data: Dict[str, Any]) -> int:
        json_bytes = orjson.dumps(data, option=orjson.OPT_INDENT_2)
        async with aiofiles.open(path, "wb") as f:
            await f.write(json_bytes)
        return len(json_bytes)

    async def save_raw_response(
        self,
        response_data: Dict[str, Any],
        slug: str,
        timestamp: str,
    ) -> Tuple[Path, int]:
        """Save the raw API response body"""
        raw_file = self.raw_dir / f"{slug}_{timestamp}_raw.json"
        size = await self._write_json(raw_file, response_data)
        logger.debug(f"💾 Saved raw response: {raw_file.name} ({size/1024:.1f}KB)")
        return raw_file, size

    async def save_content(
        self,
        result: Dict[str, Any],
        slug: str,
        timestamp: str,
    ) -> Tuple[Path, int]:
        """Save a generation result (content bundle plus metadata)"""
        output_file = self.output_dir / f"{slug}_{timestamp}_content.json"
        size = await self._write_json(output_file, result)
        if result.get("success"):
            logger.success(f"💾 Saved content: {output_file.name} ({size/1024:.1f}KB)")
        else:
            logger.warning(f"⚠️ Saved failed result: {output_file.name}")
        return output_file, size


async def save_generated_content(
    result: Dict[str, Any],
    output_dir: Path,
    slug: str,
    raw_response: Optional[Dict[str, Any]] = None,
) -> Tuple[Path, int]:
    """
    Save a generation result, and the raw response when given.

    Returns:
        Tuple of (content_file_path, total_bytes_written)
    """
    storage = ContentStorage(output_dir)
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    slug = make_slug(slug)

    tasks = [storage.save_content(result, slug, timestamp)]
    if raw_response is not None:
        tasks.append(storage.save_raw_response(raw_response, slug, timestamp))
    saved = await asyncio.gather(*tasks)

    content_path = saved[0][0]
    return content_path, sum(size for _, size in saved)
