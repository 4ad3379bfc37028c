"""
IP geolocation via an HTTP lookup provider (ip-api.com compatible).

resolve() never raises: private/loopback addresses short-circuit to
"Local" with no network call, and every failure of the single outbound
request (timeout, bad status, transport or decode error) degrades to
"Unknown". No retries, no caching between calls.

The timeout is a total deadline for the lookup. requests' own timeout
only bounds each connect/read, so the body is streamed and the clock
checked after every chunk.
"""

import json
import logging
import time
from typing import Callable, List, Optional

import requests

from redirector_app.schemas.tracking import Location, UNKNOWN


logger = logging.getLogger(__name__)

IPV6_MAPPED_PREFIX = "::ffff:"
CHUNK_SIZE = 1024


def _is_private_172(ip: str) -> bool:
    """172.16.0.0/12 -> second octet 16..31"""
    parts = ip.split(".")
    if len(parts) < 2 or parts[0] != "172":
        return False
    return parts[1].isdigit() and 16 <= int(parts[1]) <= 31


# Checked in order; any match means "don't ask the provider"
LOCAL_ADDRESS_RULES: List[Callable[[str], bool]] = [
    lambda ip: not ip or ip == UNKNOWN,
    lambda ip: ip == "127.0.0.1" or ip.startswith("127."),
    lambda ip: ip in ("::1", "0:0:0:0:0:0:0:1"),
    lambda ip: ip.startswith("10."),
    _is_private_172,
    lambda ip: ip.startswith("192.168."),
]


def is_local_address(ip: Optional[str]) -> bool:
    """Loopback, RFC1918 or missing address (IPv4-mapped forms included)"""
    candidate = (ip or "").strip()
    if candidate.startswith(IPV6_MAPPED_PREFIX):
        candidate = candidate[len(IPV6_MAPPED_PREFIX):]
    return any(rule(candidate) for rule in LOCAL_ADDRESS_RULES)


class GeoResolver:
    """
    Resolves an IP to {country, city, region}.
    
    Args:
        api_url: Provider base URL; the IP is appended as a path segment
        fields: Value of the provider's "fields" query parameter
        timeout: Total deadline for the single request, in seconds
        session: requests.Session (injectable for tests)
        clock: Monotonic clock used for the deadline
    """

    def __init__(
        self,
        api_url: str = "http://ip-api.com/json",
        fields: str = "status,message,country,city,regionName",
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api_url = api_url.rstrip("/")
        self.fields = fields
        self.timeout = timeout
        self.session = session or requests.Session()
        self.clock = clock

    def close(self) -> None:
        self.session.close()

    def _read_body(self, response: requests.Response, deadline: float) -> bytes:
        chunks = []
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            chunks.append(chunk)
            if self.clock() > deadline:
                raise requests.Timeout(f"lookup exceeded {self.timeout}s")
        return b"".join(chunks)

    def resolve(self, ip: Optional[str]) -> Location:
        if is_local_address(ip):
            return Location.local()

        clean_ip = ip.strip().replace(IPV6_MAPPED_PREFIX, "")
        logger.info(f"🌍 Fetching location for IP: {clean_ip}")

        deadline = self.clock() + self.timeout
        try:
            response = self.session.get(
                f"{self.api_url}/{clean_ip}",
                params={"fields": self.fields},
                timeout=self.timeout,
                stream=True,
            )
            try:
                if not response.ok:
                    logger.warning(f"⚠️  Geo provider returned HTTP {response.status_code} for {clean_ip}")
                    return Location.unknown()

                data = json.loads(self._read_body(response, deadline))
            finally:
                response.close()

        except requests.Timeout:
            logger.warning(f"⚠️  Location fetch timeout for {clean_ip}")
            return Location.unknown()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"⚠️  Error fetching location for {clean_ip}: {e}")
            return Location.unknown()

        if not isinstance(data, dict) or data.get("status") != "success":
            message = data.get("message") if isinstance(data, dict) else None
            logger.warning(f"⚠️  Geo provider returned: {message or 'Unknown error'}")
            return Location.unknown()

        location = Location(
            country=data.get("country") or UNKNOWN,
            city=data.get("city") or UNKNOWN,
            region=data.get("regionName") or UNKNOWN,
        )
        logger.info(f"✅ Location found: {location.city}, {location.country}")
        return location
