"""
Test configuration and fixtures for the redirector.
This centralizes all test setup, making individual tests clean.
"""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from main import app
from redirector_app.config import Settings, get_settings
from redirector_app.database.connection import Base, get_db
from redirector_app.dependencies import get_click_recorder, get_geo_resolver
from redirector_app.models import ShortLink, Partner
from redirector_app.services.click_recorder import ClickRecorder
from redirector_app.services.geo_resolver import GeoResolver

# Test database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_PASSWORD = "test-secret"


def build_geo_response(payload=None, status_code=200):
    """Fake streamed requests.Response for the geolocation provider"""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    body = json.dumps(payload if payload is not None else {}).encode("utf-8")
    response.iter_content.return_value = [body]
    return response


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    This ensures tests are isolated and don't affect each other.
    """
    # Create tables
    Base.metadata.create_all(bind=engine)
    
    # Create session
    db = TestingSessionLocal()
    
    try:
        yield db
    finally:
        # Cleanup
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def test_settings():
    return Settings(
        admin_password=ADMIN_PASSWORD,
        base_url="http://short.test",
        database_url=SQLALCHEMY_DATABASE_URL,
    )


@pytest.fixture
def geo_session():
    """Stand-in for requests.Session; every test starts with a successful lookup"""
    session = MagicMock(spec=requests.Session)
    session.get.return_value = build_geo_response({
        "status": "success",
        "country": "Germany",
        "city": "Berlin",
        "regionName": "Land Berlin",
    })
    return session


@pytest.fixture
def make_geo_response():
    return build_geo_response


@pytest.fixture
def geo_resolver(geo_session):
    return GeoResolver(api_url="http://geo.test/json", timeout=5.0, session=geo_session)


@pytest.fixture
def session_factory():
    """Factory the background recorder uses to open its own sessions"""
    return TestingSessionLocal


@pytest.fixture
def click_recorder(geo_resolver, session_factory):
    return ClickRecorder(geo_resolver=geo_resolver, session_factory=session_factory)


@pytest.fixture(scope="function")
def client(db_session, test_settings, geo_resolver, click_recorder):
    """
    Create a test client with database, settings and enrichment overridden.
    This is the main fixture that tests will use.
    """
    def override_get_db():
        yield db_session
    
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_geo_resolver] = lambda: geo_resolver
    app.dependency_overrides[get_click_recorder] = lambda: click_recorder
    
    # Create test client
    with TestClient(app) as test_client:
        yield test_client
    
    # Clean up overrides
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"x-admin-password": ADMIN_PASSWORD}


@pytest.fixture
def make_link(db_session):
    """Insert a link (and optionally a partner) straight into the test database"""
    def _make_link(code="abc123", target_url="https://target.example.org/landing",
                   partner_domain=None, expires_at=None):
        partner_id = None
        if partner_domain is not None:
            partner = Partner(name=f"Partner {partner_domain}", domain=partner_domain)
            db_session.add(partner)
            db_session.flush()
            partner_id = partner.id

        link = ShortLink(
            code=code,
            target_url=target_url,
            created_at=datetime.now(timezone.utc),
            click_count=0,
            partner_id=partner_id,
            expires_at=expires_at,
        )
        db_session.add(link)
        db_session.commit()
        return link

    return _make_link
