from pydantic import BaseModel, Field, ConfigDict
from typing import Dict, List, Optional
from datetime import datetime


class PartnerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    domain: str = Field(..., min_length=1, description="Bare hostname, e.g. example.com")


class PartnerResponse(BaseModel):
    id: int
    name: str
    domain: str

    model_config = ConfigDict(from_attributes=True)


class LinkCreate(BaseModel):
    """Admin request to create a short link.
    
    The URL is deliberately a plain string: only the http(s) scheme is
    checked, by the route, so it can answer 400 instead of 422.
    """
    url: str
    custom_code: Optional[str] = Field(None, min_length=1, max_length=50)
    partner_id: Optional[int] = None
    expires_at: Optional[datetime] = None


class ShortenResponse(BaseModel):
    code: str
    short_url: str


class LinkSummary(BaseModel):
    """One entry of the admin link listing (keyed by code)."""
    url: str
    created: Optional[datetime] = None
    clicks: int
    partner_id: Optional[int] = None
    partner_name: Optional[str] = None
    partner_domain: Optional[str] = None
    expires_at: Optional[datetime] = None


class ClickRecord(BaseModel):
    id: int
    code: str
    ip_address: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    user_agent: Optional[str] = None
    device: Optional[str] = None
    browser: Optional[str] = None
    os: Optional[str] = None
    referrer: Optional[str] = None
    clicked_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BypassRecord(BaseModel):
    id: int
    code: str
    referrer: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    detected_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CountryStat(BaseModel):
    country: Optional[str] = None
    count: int


class DeviceStat(BaseModel):
    device: Optional[str] = None
    count: int


class LinkAnalytics(BaseModel):
    recent_clicks: List[ClickRecord] = []
    country_stats: List[CountryStat] = []
    device_stats: List[DeviceStat] = []
    bypass_attempts: List[BypassRecord] = []


LinkListing = Dict[str, LinkSummary]
