"""
Value objects that travel through the redirect pipeline.

ClickContext is what the request path hands to the background recorder:
everything needed to write a click once location is known.
"""

from pydantic import BaseModel, Field
from datetime import datetime, timezone


UNKNOWN = "Unknown"
LOCAL = "Local"
DIRECT_REFERRER = "Direct"


class VisitorInfo(BaseModel):
    """Identity of the client behind a redirect request."""
    
    ip_address: str = Field(UNKNOWN, description="First-hop client IP")
    user_agent: str = Field(UNKNOWN, description="Raw User-Agent header")
    referrer: str = Field(DIRECT_REFERRER, description="Referer header, or 'Direct'")


class DeviceInfo(BaseModel):
    """Device/browser/OS tags derived from a user-agent string."""
    
    device: str = "Desktop"
    browser: str = UNKNOWN
    os: str = UNKNOWN


class Location(BaseModel):
    """Resolved (or fallback) geolocation of an IP address."""
    
    country: str = UNKNOWN
    city: str = UNKNOWN
    region: str = UNKNOWN

    @classmethod
    def unknown(cls) -> "Location":
        return cls()

    @classmethod
    def local(cls) -> "Location":
        return cls(country=LOCAL, city=LOCAL, region=LOCAL)


class ClickContext(BaseModel):
    """
    Everything the background continuation needs to record one click.
    
    Built synchronously on the allowed path, before the response is sent.
    """
    
    code: str = Field(..., description="The short code that was followed")
    visitor: VisitorInfo
    device_info: DeviceInfo
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the redirect was allowed"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "code": "aB3xY9",
                "visitor": {
                    "ip_address": "203.0.113.7",
                    "user_agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0",
                    "referrer": "https://partner.example.com/article"
                },
                "device_info": {"device": "Desktop", "browser": "Chrome", "os": "Windows"},
                "timestamp": "2025-10-29T10:30:00Z"
            }
        }
    }
