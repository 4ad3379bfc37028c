"""
Click recording for allowed redirects.

Runs as a FastAPI background task, after the verifying page has been sent:

    ClickContext ──► GeoResolver.resolve(ip) ──► insert ClickEvent ──► click_count + 1

Every step has its own error boundary. Nothing here is retried, and
nothing can reach the client or another request.
"""

import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from redirector_app.database.connection import SessionLocal
from redirector_app.schemas.tracking import ClickContext, Location
from redirector_app.services.geo_resolver import GeoResolver
from redirector_app.services.link_service import LinkService


logger = logging.getLogger(__name__)


class ClickRecorder:
    """
    Enriches and persists one click per allowed visit.
    
    Uses its own session from session_factory: the request's session is
    closed by the time a background task runs.
    """

    def __init__(
        self,
        geo_resolver: GeoResolver,
        session_factory: Callable[[], Session] = SessionLocal,
    ):
        self.geo_resolver = geo_resolver
        self.session_factory = session_factory

    def enrich_and_record(self, context: ClickContext) -> bool:
        """
        Background entry point: resolve location, then record.
        
        If the resolver itself blows up, the click is still written with an
        "Unknown" location, so every allowed visit yields exactly one click.
        """
        try:
            location = self.geo_resolver.resolve(context.visitor.ip_address)
        except Exception as e:
            logger.error(f"❌ Location lookup failed for {context.code}: {e}")
            location = Location.unknown()

        try:
            return self.record(context, location)
        except Exception:
            logger.exception(f"❌ Unexpected error recording click for {context.code}")
            return False

    def record(self, context: ClickContext, location: Location) -> bool:
        """
        Insert the click, then bump the link's counter.
        
        Two separate statements: a failed insert skips the increment, and a
        failed increment leaves the inserted click in place.
        """
        db = self.session_factory()
        try:
            service = LinkService(db)

            if not service.insert_click_event(context, location):
                return False

            service.increment_click_count(context.code)
            logger.info(
                f"✅ Click recorded for {context.code} from {location.city}, {location.country}"
            )
            return True
        finally:
            db.close()
