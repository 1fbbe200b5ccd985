"""Data models and enums for EstateFlow"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

VALID_MODULES = ("social", "listing", "all")


class Severity(Enum):
    """Error severity levels"""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class ErrorType(Enum):
    """Error type labels used in structured error logs"""

    SCRAPING_ERROR = "SCRAPING_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    SERVICE_ERROR = "SERVICE_ERROR"
    AI_SERVICE_ERROR = "AI_SERVICE_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class HealthState(Enum):
    """Service health states"""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    CHECKING = "checking"  # Probe in flight
    ERROR = "error"  # Probe raised


@dataclass(frozen=True)
class ErrorCategory:
    """Independent error flags; several may be set at once"""

    is_scraping_error: bool = False
    is_timeout_error: bool = False
    is_service_error: bool = False
    is_ai_error: bool = False
    is_network_error: bool = False

    @property
    def is_unknown(self) -> bool:
        return not any(asdict(self).values())

    def to_dict(self) -> Dict[str, bool]:
        return asdict(self)


@dataclass
class ServiceErrorInfo:
    """One failure occurrence, consumed immediately by the error logger"""

    timestamp: str
    error: str
    input_type: str
    input_length: int
    user_agent: str
    url: str
    response_time: float = 0.0
    retry_count: int = 0

    @classmethod
    def now(cls, error: str, **kwargs) -> "ServiceErrorInfo":
        return cls(
            timestamp=datetime.now(timezone.utc).isoformat(),
            error=error,
            **kwargs,
        )


@dataclass
class ContentBundle:
    """Generated marketing content for one property"""

    property_title: str
    property_summary: str
    instagram: str
    linkedin: str
    tiktok: str
    mls_description: str
    email_blast: str
    marketing_headline: str
    features: List[str] = field(default_factory=list)
    # Only set for listing-kind fallback content
    property_description: Optional[str] = None
    key_features: Optional[List[str]] = None
    neighborhood_highlights: Optional[List[str]] = None

    REQUIRED_TEXT_FIELDS = (
        "property_title",
        "property_summary",
        "instagram",
        "linkedin",
        "tiktok",
        "mls_description",
        "email_blast",
        "marketing_headline",
    )

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentBundle":
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        return cls(**known)


@dataclass
class ScrapedListing:
    """Listing content obtained by scraping or from manual text"""

    title: str
    description: str
    content: str
    url: str
    image: str = ""
    is_fallback: bool = False
    images: List[str] = field(default_factory=list)


@dataclass
class ParsedProperty:
    """Property fields extracted from free text by the regex parser"""

    property_type: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    price: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    square_feet: Optional[int] = None
    year_built: Optional[int] = None
    description: Optional[str] = None
    features: List[str] = field(default_factory=list)


@dataclass
class ServiceRecord:
    """Last-known probe result kept by the status tracker"""

    is_healthy: bool
    last_checked: datetime
    response_time: Optional[float] = None  # ms


@dataclass
class ServiceStatus:
    """Per-endpoint status shown by health dashboards"""

    name: str
    status: HealthState = HealthState.CHECKING
    response_time: Optional[float] = None  # ms
    last_checked: Optional[datetime] = None
    status_code: Optional[int] = None
    description: str = ""
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "status": self.status.value,
            "responseTime": self.response_time,
            "description": self.description,
            "lastChecked": self.last_checked.isoformat() if self.last_checked else None,
        }
        if self.status_code is not None:
            data["statusCode"] = self.status_code
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class SystemHealth:
    """Aggregate health over a set of polled services"""

    overall: str
    healthy_count: int
    total_count: int
    uptime_ratio: float

    @property
    def uptime(self) -> str:
        return f"{self.uptime_ratio * 100:.1f}%"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall,
            "healthyCount": self.healthy_count,
            "totalCount": self.total_count,
            "uptime": self.uptime,
        }
