"""
Tests for background click enrichment and recording.
"""
from unittest.mock import MagicMock

import requests

from redirector_app.models import ClickEvent, ShortLink
from redirector_app.schemas.tracking import ClickContext, DeviceInfo, Location, VisitorInfo
from redirector_app.services.click_recorder import ClickRecorder
from redirector_app.services.link_service import LinkService


def make_context(code="abc123", ip="8.8.8.8"):
    return ClickContext(
        code=code,
        visitor=VisitorInfo(
            ip_address=ip,
            user_agent="Mozilla/5.0 (Windows NT 10.0) Chrome/120.0 Safari/537.36",
            referrer="https://partner.example.com/post",
        ),
        device_info=DeviceInfo(device="Desktop", browser="Chrome", os="Windows"),
    )


class TestRecord:
    """Test click insert + counter increment"""

    def test_records_click_and_increments(self, db_session, make_link, click_recorder):
        make_link(code="abc123")

        assert click_recorder.enrich_and_record(make_context()) is True

        db_session.expire_all()
        clicks = db_session.query(ClickEvent).filter(ClickEvent.code == "abc123").all()
        assert len(clicks) == 1
        click = clicks[0]
        assert click.ip_address == "8.8.8.8"
        assert click.country == "Germany"
        assert click.city == "Berlin"
        assert click.region == "Land Berlin"
        assert click.browser == "Chrome"
        assert click.os == "Windows"
        assert click.device == "Desktop"
        assert click.referrer == "https://partner.example.com/post"
        assert db_session.get(ShortLink, "abc123").click_count == 1

    def test_local_ip_recorded_as_local(self, db_session, make_link, click_recorder, geo_session):
        make_link(code="abc123")

        click_recorder.enrich_and_record(make_context(ip="10.0.0.8"))

        db_session.expire_all()
        click = db_session.query(ClickEvent).one()
        assert click.country == "Local"
        assert geo_session.get.call_count == 0

    def test_geo_timeout_still_records(self, db_session, make_link, click_recorder, geo_session):
        geo_session.get.side_effect = requests.Timeout("too slow")
        make_link(code="abc123")

        assert click_recorder.enrich_and_record(make_context()) is True

        db_session.expire_all()
        click = db_session.query(ClickEvent).one()
        assert (click.country, click.city, click.region) == ("Unknown", "Unknown", "Unknown")
        assert db_session.get(ShortLink, "abc123").click_count == 1

    def test_resolver_crash_still_records(self, db_session, make_link, session_factory):
        """A resolver that raises instead of falling back must not lose the click"""
        resolver = MagicMock()
        resolver.resolve.side_effect = RuntimeError("boom")
        recorder = ClickRecorder(geo_resolver=resolver, session_factory=session_factory)
        make_link(code="abc123")

        assert recorder.enrich_and_record(make_context()) is True

        db_session.expire_all()
        assert db_session.query(ClickEvent).one().country == "Unknown"
        assert db_session.get(ShortLink, "abc123").click_count == 1

    def test_insert_failure_skips_increment(self, db_session, make_link, click_recorder):
        """A link deleted mid-flight: the insert fails on the foreign key, nothing else happens"""
        make_link(code="abc123")

        assert click_recorder.record(make_context(code="gone99"), Location.unknown()) is False

        db_session.expire_all()
        assert db_session.query(ClickEvent).count() == 0
        assert db_session.get(ShortLink, "abc123").click_count == 0

    def test_session_factory_failure_is_swallowed(self, geo_resolver):
        def broken_factory():
            raise RuntimeError("database unavailable")

        recorder = ClickRecorder(geo_resolver=geo_resolver, session_factory=broken_factory)

        assert recorder.enrich_and_record(make_context()) is False

    def test_counter_tracks_each_click(self, db_session, make_link, click_recorder):
        make_link(code="abc123")

        for _ in range(3):
            click_recorder.enrich_and_record(make_context())

        db_session.expire_all()
        assert db_session.query(ClickEvent).count() == 3
        assert db_session.get(ShortLink, "abc123").click_count == 3


class TestIncrement:
    def test_missing_row_is_noop(self, db_session):
        service = LinkService(db_session)

        assert service.increment_click_count("nothere") is False

    def test_increment(self, db_session, make_link):
        make_link(code="abc123")
        service = LinkService(db_session)

        assert service.increment_click_count("abc123") is True
        assert service.increment_click_count("abc123") is True

        db_session.expire_all()
        assert db_session.get(ShortLink, "abc123").click_count == 2
