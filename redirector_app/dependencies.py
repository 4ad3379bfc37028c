"""
FastAPI dependencies for dependency injection.

Everything the redirect pipeline needs (settings, datastore service,
geolocation resolver, click recorder) is built here and injected, so
tests can swap any piece through app.dependency_overrides.
"""

import secrets
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from redirector_app.config import Settings, get_settings
from redirector_app.database.connection import get_db, SessionLocal
from redirector_app.services.click_recorder import ClickRecorder
from redirector_app.services.code_generator import RandomCodeGenerator
from redirector_app.services.geo_resolver import GeoResolver
from redirector_app.services.link_service import LinkService
from redirector_app.services.redirect_pipeline import RedirectPipeline


def get_link_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
) -> LinkService:
    generator = RandomCodeGenerator(
        length=settings.code_length,
        max_retries=settings.code_max_retries
    )
    return LinkService(db=db, code_generator=generator)


@lru_cache()
def get_geo_resolver() -> GeoResolver:
    """
    Get geolocation resolver (singleton).

    One resolver means one requests.Session, so the provider's connection
    pool is shared across requests. Closed on app shutdown.
    """
    settings = get_settings()
    return GeoResolver(
        api_url=settings.geo_api_url,
        fields=settings.geo_api_fields,
        timeout=settings.geo_timeout_seconds
    )


def get_click_recorder(geo_resolver: GeoResolver = Depends(get_geo_resolver)) -> ClickRecorder:
    """Recorder opens its own sessions; the request session is gone by the time it runs"""
    return ClickRecorder(geo_resolver=geo_resolver, session_factory=SessionLocal)


def get_redirect_pipeline(
    link_service: LinkService = Depends(get_link_service),
    click_recorder: ClickRecorder = Depends(get_click_recorder),
    settings: Settings = Depends(get_settings)
) -> RedirectPipeline:
    return RedirectPipeline(
        link_service=link_service,
        click_recorder=click_recorder,
        settings=settings
    )


def require_admin(
    x_admin_password: Optional[str] = Header(None),
    password: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings)
) -> None:
    """Shared-secret gate for /api routes (header wins over query parameter)"""
    supplied = x_admin_password or password or ""
    if not secrets.compare_digest(supplied.encode("utf-8"), settings.admin_password.encode("utf-8")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Invalid password"
        )
