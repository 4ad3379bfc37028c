"""
Redirect-time decision pipeline.

Per request:

    Resolving ──► NotFound (404)
              ──► Expired  (410)
              ──► Resolved ──► BypassDenied (403, bypass logged)
                           ──► Allowed ──► Responded (200 verifying page)
                                           + one detached background task:
                                             geo lookup -> click insert -> counter

Only the Allowed path schedules background work. Any unexpected error
before the response is chosen becomes a generic 500 page.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from fastapi import BackgroundTasks, Request, status
from fastapi.responses import HTMLResponse

from redirector_app.config import Settings
from redirector_app.models.link import ShortLink
from redirector_app.pages import (
    NOT_FOUND_PAGE,
    EXPIRED_PAGE,
    BYPASS_PAGE,
    ERROR_PAGE,
    render_verifying_page,
)
from redirector_app.schemas.tracking import (
    ClickContext,
    VisitorInfo,
    UNKNOWN,
    DIRECT_REFERRER,
)
from redirector_app.services.click_recorder import ClickRecorder
from redirector_app.services.link_service import LinkService, as_utc
from redirector_app.services.referrer_policy import ReferrerPolicy
from redirector_app.services.user_agent import UserAgentClassifier


logger = logging.getLogger(__name__)


class RedirectOutcome(Enum):
    """Terminal states of a redirect request"""
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    BYPASS_DENIED = "bypass_denied"
    ALLOWED = "allowed"
    FAILED = "failed"


def extract_client_ip(request: Request, cdn_header: str = "cf-connecting-ip") -> str:
    """
    Client IP, by strict header priority:
    x-forwarded-for (first hop) > x-real-ip > CDN connecting-ip > socket peer.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    for header in ("x-real-ip", cdn_header):
        value = (request.headers.get(header) or "").strip()
        if value:
            return value

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN


def extract_visitor(request: Request, cdn_header: str = "cf-connecting-ip") -> VisitorInfo:
    referrer = request.headers.get("referer") or request.headers.get("referrer") or DIRECT_REFERRER
    return VisitorInfo(
        ip_address=extract_client_ip(request, cdn_header),
        user_agent=request.headers.get("user-agent") or UNKNOWN,
        referrer=referrer,
    )


def is_expired(link: ShortLink, now: datetime) -> bool:
    """Expired when expires_at is set and strictly before now"""
    expires_at = as_utc(link.expires_at)
    return expires_at is not None and expires_at < now


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RedirectPipeline:
    """
    Orchestrates one GET /{code}.
    
    Collaborators are injected (see dependencies.get_redirect_pipeline);
    the pipeline holds no state between requests.
    """

    def __init__(
        self,
        link_service: LinkService,
        click_recorder: ClickRecorder,
        settings: Settings,
        referrer_policy: Optional[ReferrerPolicy] = None,
        classifier: Optional[UserAgentClassifier] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.link_service = link_service
        self.click_recorder = click_recorder
        self.settings = settings
        self.referrer_policy = referrer_policy or ReferrerPolicy()
        self.classifier = classifier or UserAgentClassifier()
        self.clock = clock

    def handle(self, code: str, request: Request, background_tasks: BackgroundTasks) -> HTMLResponse:
        outcome, response = self.decide(code, request, background_tasks)
        logger.debug(f"Redirect {code}: {outcome.value}")
        return response

    def decide(self, code: str, request: Request, background_tasks: BackgroundTasks):
        """Run the state machine; returns (RedirectOutcome, HTMLResponse)"""
        try:
            # Step 1: Resolve, always from the datastore
            link = self.link_service.find_link_with_partner(code)
            if link is None:
                return RedirectOutcome.NOT_FOUND, HTMLResponse(
                    NOT_FOUND_PAGE, status_code=status.HTTP_404_NOT_FOUND
                )

            # Step 2: Expiry is evaluated now, not at lookup
            if is_expired(link, self.clock()):
                return RedirectOutcome.EXPIRED, HTMLResponse(
                    EXPIRED_PAGE, status_code=status.HTTP_410_GONE
                )

            # Step 3: Who is asking
            visitor = extract_visitor(request, self.settings.cdn_ip_header)
            logger.info(f"📊 Visitor IP: {visitor.ip_address}, Referrer: {visitor.referrer}")

            # Step 4: Partner gate, on every request
            partner_domain = link.partner.domain if link.partner else None
            if partner_domain and not self.referrer_policy.is_allowed(partner_domain, visitor.referrer):
                if self.link_service.insert_bypass_event(code, visitor):
                    logger.warning(f"🚨 Bypass attempt logged for {code} from IP {visitor.ip_address}")
                return RedirectOutcome.BYPASS_DENIED, HTMLResponse(
                    BYPASS_PAGE, status_code=status.HTTP_403_FORBIDDEN
                )

            # Step 5: Classify now, it's cheap and deterministic
            context = ClickContext(
                code=code,
                visitor=visitor,
                device_info=self.classifier.classify(visitor.user_agent),
                timestamp=self.clock(),
            )

            page = render_verifying_page(link.target_url, self.settings.redirect_delay_seconds)

            # Step 6: Enrichment runs after the response is sent
            background_tasks.add_task(self.click_recorder.enrich_and_record, context)

            return RedirectOutcome.ALLOWED, HTMLResponse(page, status_code=status.HTTP_200_OK)

        except Exception:
            logger.exception(f"❌ Error handling redirect for {code}")
            return RedirectOutcome.FAILED, HTMLResponse(
                ERROR_PAGE, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
            )
