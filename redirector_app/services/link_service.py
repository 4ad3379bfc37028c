import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session, joinedload

from redirector_app.models.link import ShortLink, Partner
from redirector_app.models.events import ClickEvent, BypassEvent
from redirector_app.schemas.link import (
    LinkAnalytics,
    LinkSummary,
    ClickRecord,
    BypassRecord,
    CountryStat,
    DeviceStat,
)
from redirector_app.schemas.tracking import ClickContext, Location, VisitorInfo
from redirector_app.services.code_generator import RandomCodeGenerator


logger = logging.getLogger(__name__)


class CodeAlreadyExists(Exception):
    """A custom code collides with an existing link"""


class UnknownPartner(Exception):
    """A link references a partner id that does not exist"""


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalise a datetime to aware UTC.
    
    SQLite hands back naive datetimes; everything is stored as UTC, so a
    naive value is read as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class LinkService:
    """
    Datastore access for links, partners and click/bypass events.
    
    The redirect path uses the four collaborator operations:
    - find_link_with_partner (read, never cached)
    - insert_bypass_event / insert_click_event (append-only, best-effort)
    - increment_click_count (single-row atomic UPDATE)
    
    The admin API uses the remaining CRUD/analytics methods.
    
    Write helpers used by the redirect path swallow and log their own
    failures (returning False) so a broken write never changes a response.
    """
    
    def __init__(self, db: Session, code_generator: Optional[RandomCodeGenerator] = None):
        self.db = db
        self.code_generator = code_generator or RandomCodeGenerator()

    # ------------------------------------------------------------------
    # Redirect path
    # ------------------------------------------------------------------

    def find_link_with_partner(self, code: str) -> Optional[ShortLink]:
        """Fresh lookup of a link with its partner eagerly joined"""
        return (
            self.db.query(ShortLink)
            .options(joinedload(ShortLink.partner))
            .filter(ShortLink.code == code)
            .populate_existing()
            .first()
        )

    def insert_bypass_event(self, code: str, visitor: VisitorInfo) -> bool:
        try:
            self.db.add(BypassEvent(
                code=code,
                referrer=visitor.referrer,
                ip_address=visitor.ip_address,
                user_agent=visitor.user_agent,
                detected_at=datetime.now(timezone.utc),
            ))
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Error logging bypass attempt for {code}: {e}")
            return False

    def insert_click_event(self, context: ClickContext, location: Location) -> bool:
        try:
            self.db.add(ClickEvent(
                code=context.code,
                ip_address=context.visitor.ip_address,
                country=location.country,
                city=location.city,
                region=location.region,
                user_agent=context.visitor.user_agent,
                device=context.device_info.device,
                browser=context.device_info.browser,
                os=context.device_info.os,
                referrer=context.visitor.referrer,
                clicked_at=context.timestamp,
            ))
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Error recording click for {context.code}: {e}")
            return False

    def increment_click_count(self, code: str) -> bool:
        """
        Atomic `click_count = click_count + 1` on one row.
        
        A link deleted mid-flight matches no row: logged, not an error.
        """
        try:
            result = self.db.execute(
                update(ShortLink)
                .where(ShortLink.code == code)
                .values(click_count=ShortLink.click_count + 1)
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Error incrementing clicks for {code}: {e}")
            return False

        if result.rowcount == 0:
            logger.warning(f"⚠️  Link not found while incrementing clicks: {code}")
            return False
        return True

    # ------------------------------------------------------------------
    # Admin: partners
    # ------------------------------------------------------------------

    def list_partners(self) -> List[Partner]:
        return self.db.query(Partner).order_by(Partner.id.asc()).all()

    def create_partner(self, name: str, domain: str) -> Partner:
        partner = Partner(name=name, domain=domain)
        self.db.add(partner)
        self.db.commit()
        self.db.refresh(partner)
        return partner

    # ------------------------------------------------------------------
    # Admin: links
    # ------------------------------------------------------------------

    def list_links(self) -> Dict[str, LinkSummary]:
        """All links, newest first, keyed by code"""
        links = (
            self.db.query(ShortLink)
            .options(joinedload(ShortLink.partner))
            .order_by(ShortLink.created_at.desc())
            .all()
        )
        return {
            link.code: LinkSummary(
                url=link.target_url,
                created=link.created_at,
                clicks=link.click_count,
                partner_id=link.partner_id,
                partner_name=link.partner.name if link.partner else None,
                partner_domain=link.partner.domain if link.partner else None,
                expires_at=link.expires_at,
            )
            for link in links
        }

    def create_link(
        self,
        target_url: str,
        custom_code: Optional[str] = None,
        partner_id: Optional[int] = None,
        expires_at: Optional[datetime] = None,
    ) -> ShortLink:
        """Create a short link
        
        Raises:
            CodeAlreadyExists: custom_code is taken
            UnknownPartner: partner_id does not reference a partner
            CodeGenerationError: no free random code was found
        """
        if partner_id is not None and self.db.get(Partner, partner_id) is None:
            raise UnknownPartner(f"Partner {partner_id} does not exist")

        if custom_code:
            if self.db.get(ShortLink, custom_code) is not None:
                raise CodeAlreadyExists(custom_code)
            code = custom_code
        else:
            code = self.code_generator.generate(self.db)

        link = ShortLink(
            code=code,
            target_url=target_url,
            created_at=datetime.now(timezone.utc),
            click_count=0,
            partner_id=partner_id,
            expires_at=as_utc(expires_at),
        )
        self.db.add(link)
        self.db.commit()
        self.db.refresh(link)
        return link

    def delete_link(self, code: str) -> bool:
        """Hard delete; click and bypass rows go with it"""
        link = self.db.get(ShortLink, code)
        if not link:
            return False

        self.db.delete(link)
        self.db.commit()
        return True

    # ------------------------------------------------------------------
    # Admin: analytics
    # ------------------------------------------------------------------

    def link_exists(self, code: str) -> bool:
        return self.db.get(ShortLink, code) is not None

    def get_analytics(self, code: str, limit: int = 100) -> LinkAnalytics:
        clicks = (
            self.db.query(ClickEvent)
            .filter(ClickEvent.code == code)
            .order_by(ClickEvent.clicked_at.desc(), ClickEvent.id.desc())
            .limit(limit)
            .all()
        )

        country_count = func.count(ClickEvent.id).label("count")
        country_rows = (
            self.db.query(ClickEvent.country, country_count)
            .filter(ClickEvent.code == code)
            .group_by(ClickEvent.country)
            .order_by(country_count.desc())
            .all()
        )

        device_count = func.count(ClickEvent.id).label("count")
        device_rows = (
            self.db.query(ClickEvent.device, device_count)
            .filter(ClickEvent.code == code)
            .group_by(ClickEvent.device)
            .order_by(device_count.desc())
            .all()
        )

        bypasses = (
            self.db.query(BypassEvent)
            .filter(BypassEvent.code == code)
            .order_by(BypassEvent.detected_at.desc(), BypassEvent.id.desc())
            .limit(limit)
            .all()
        )

        return LinkAnalytics(
            recent_clicks=[ClickRecord.model_validate(click) for click in clicks],
            country_stats=[CountryStat(country=row[0], count=row[1]) for row in country_rows],
            device_stats=[DeviceStat(device=row[0], count=row[1]) for row in device_rows],
            bypass_attempts=[BypassRecord.model_validate(bypass) for bypass in bypasses],
        )
