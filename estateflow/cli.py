"""Command-line interface for EstateFlow"""

import argparse
import asyncio
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional

import httpx
import orjson
from loguru import logger

from .client import EstateFlowClient, GenerationOutcome
from .config import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    HEALTH_CHECK_TIMEOUT,
    HEALTH_POLL_INTERVAL,
    MAX_RETRIES,
    Settings,
)
from .fallback import generate_fallback_content
from .health import HealthMonitor, collect_service_status
from .logging_config import setup_logging
from .models import VALID_MODULES
from .parser import parse_property_content, validate_parsed_data
from .storage import save_generated_content

HEALTH_ENDPOINTS = {
    "Main API": "/api/health",
    "AI Service": "/api/health/ai",
    "Web Scraping": "/api/health/scraping",
    "Fallback": "/api/fallback",
}


def _print_json(data) -> None:
    sys.stdout.write(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode() + "\n")


async def run_generate(
    base_url: str,
    url: Optional[str],
    text: Optional[str],
    modules: List[str],
    max_retries: int,
    use_fallback: bool,
    output_dir: Optional[Path],
) -> GenerationOutcome:
    """Generate content through the API and optionally save it"""
    target = url or "manual"
    async with EstateFlowClient(base_url, max_retries=max_retries) as client:
        if use_fallback:
            outcome = await client.generate_with_fallback(target, text, modules)
        else:
            outcome = await client.generate(target, text, modules)

    if not outcome.success:
        logger.error(f"❌ {outcome.user_message}")
        logger.info("   Paste the property description with --text, or retry later.")
    elif outcome.source == "fallback":
        logger.warning(f"⚠️ Generated fallback content: {outcome.user_message}")
    else:
        logger.success(f"✓ Generated content for '{outcome.content.property_title}'")

    if output_dir is not None:
        path, size = await save_generated_content(
            outcome.to_dict(),
            output_dir,
            slug=url or (text or "manual")[:40],
            raw_response=outcome.response or None,
        )
        logger.info(f"  Output: {path} ({size} bytes)")

    return outcome


async def run_health(base_url: str, timeout: float) -> Dict:
    async with httpx.AsyncClient() as client:
        return await collect_service_status(client, base_url, timeout=timeout)


async def run_watch(base_url: str, interval: float, timeout: float) -> None:
    """Poll health endpoints until interrupted"""
    endpoints = {name: f"{base_url}{path}" for name, path in HEALTH_ENDPOINTS.items()}
    async with httpx.AsyncClient() as client:
        async with HealthMonitor(client, endpoints, interval=interval, timeout=timeout):
            while True:
                await asyncio.sleep(3600)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="EstateFlow - real estate marketing content with resilient AI generation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate content from a listing URL
  %(prog)s generate --url https://www.zillow.com/homedetails/123

  # Generate from pasted text, falling back to templates on failure
  %(prog)s generate --text "3 bed, 2 bath home with pool" --fallback

  # Template content only (no network)
  %(prog)s fallback --text "Charming bungalow, updated kitchen" --type listing

  # Check service health once, or keep polling
  %(prog)s health
  %(prog)s health --watch --interval 30

  # Run the API server
  %(prog)s serve --port 8000
        """,
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--verbose", action="store_true", help="Debug logging")
    common.add_argument("--log-file", type=str, help="Log file path")
    common.add_argument("--json-logs", action="store_true", help="Emit JSON log records")
    common.add_argument("--monitoring-log", type=str, help="JSON-lines file for structured error entries")

    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", parents=[common], help="Generate marketing content")
    source = gen.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", type=str, help="Listing URL to scrape")
    source.add_argument("--text", type=str, help="Property description to use instead of scraping")
    gen.add_argument(
        "--modules",
        nargs="+",
        default=["all"],
        choices=list(VALID_MODULES),
        help="Content modules to generate",
    )
    gen.add_argument("--base-url", type=str, help="EstateFlow API base URL")
    gen.add_argument("--max-retries", type=int, default=MAX_RETRIES, help="Retries after the first attempt")
    gen.add_argument("--fallback", action="store_true", help="Use template content if generation fails")
    gen.add_argument("--output", type=str, help="Directory to save results to")

    fb = sub.add_parser("fallback", parents=[common], help="Render template content locally")
    fb.add_argument("--text", type=str, required=True, help="Property description")
    fb.add_argument("--type", type=str, default="social", choices=["social", "listing"])

    health = sub.add_parser("health", parents=[common], help="Check service health")
    health.add_argument("--base-url", type=str, help="EstateFlow API base URL")
    health.add_argument("--watch", action="store_true", help="Keep polling until interrupted")
    health.add_argument("--interval", type=float, default=HEALTH_POLL_INTERVAL, help="Seconds between polls")
    health.add_argument("--timeout", type=float, default=HEALTH_CHECK_TIMEOUT, help="Probe timeout in seconds")

    serve = sub.add_parser("serve", parents=[common], help="Run the API server")
    serve.add_argument("--host", type=str, default=DEFAULT_HOST)
    serve.add_argument("--port", type=int, default=DEFAULT_PORT)

    parse = sub.add_parser("parse", parents=[common], help="Extract property fields from text")
    parse.add_argument("--text", type=str, required=True, help="Listing text")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        verbose=args.verbose,
        log_file=Path(args.log_file) if args.log_file else None,
        json_logs=args.json_logs,
        monitoring_file=Path(args.monitoring_log) if args.monitoring_log else None,
    )
    settings = Settings.from_env()
    base_url = (getattr(args, "base_url", None) or settings.app_url).rstrip("/")

    if args.command == "fallback":
        _print_json(generate_fallback_content(args.text, args.type).to_dict())
        return

    if args.command == "parse":
        data = parse_property_content(args.text)
        is_valid, errors = validate_parsed_data(data)
        for error in errors:
            logger.warning(error)
        _print_json({"data": asdict(data), "isValid": is_valid, "errors": errors})
        return

    if args.command == "serve":
        import uvicorn

        from .api import create_app

        uvicorn.run(create_app(settings), host=args.host, port=args.port)
        return

    async def run():
        try:
            if args.command == "generate":
                outcome = await run_generate(
                    base_url=base_url,
                    url=args.url,
                    text=args.text,
                    modules=args.modules,
                    max_retries=args.max_retries,
                    use_fallback=args.fallback,
                    output_dir=Path(args.output) if args.output else None,
                )
                _print_json(outcome.to_dict())
                if not outcome.success:
                    sys.exit(1)

            elif args.command == "health":
                if args.watch:
                    await run_watch(base_url, args.interval, args.timeout)
                else:
                    report = await run_health(base_url, args.timeout)
                    _print_json(report)
                    if report["system"]["overall"] == "unhealthy":
                        sys.exit(1)

        except KeyboardInterrupt:
            logger.warning("Interrupted by user")
            sys.exit(1)
        except Exception as e:
            logger.exception(f"Fatal error: {e}")
            sys.exit(1)

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        sys.exit(1)


if __name__ == "__main__":
    main()
