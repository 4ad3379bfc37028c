import re
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from redirector_app.config import Settings, get_settings
from redirector_app.dependencies import get_link_service, require_admin
from redirector_app.schemas.link import (
    LinkAnalytics,
    LinkCreate,
    LinkListing,
    PartnerCreate,
    PartnerResponse,
    ShortenResponse,
)
from redirector_app.services.code_generator import CodeGenerationError
from redirector_app.services.link_service import CodeAlreadyExists, LinkService, UnknownPartner

router = APIRouter(tags=["admin"], dependencies=[Depends(require_admin)])

URL_SCHEME = re.compile(r"^https?://.+")


@router.get("/partners", response_model=List[PartnerResponse])
def list_partners(link_service: LinkService = Depends(get_link_service)):
    """List partners ordered by id"""
    return link_service.list_partners()


@router.post("/partners", response_model=PartnerResponse, status_code=status.HTTP_201_CREATED)
def create_partner(
    partner_data: PartnerCreate,
    link_service: LinkService = Depends(get_link_service)
):
    """Create a partner whose domain can gate links"""
    return link_service.create_partner(partner_data.name, partner_data.domain)


@router.get("/urls", response_model=LinkListing)
def list_links(link_service: LinkService = Depends(get_link_service)):
    """All links keyed by code, newest first"""
    return link_service.list_links()


@router.post("/shorten", response_model=ShortenResponse, status_code=status.HTTP_201_CREATED)
def create_short_link(
    link_data: LinkCreate,
    link_service: LinkService = Depends(get_link_service),
    settings: Settings = Depends(get_settings)
):
    """Create a short link (optionally custom code, partner gate, expiry)"""
    if not URL_SCHEME.match(link_data.url):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid URL")

    try:
        link = link_service.create_link(
            target_url=link_data.url,
            custom_code=link_data.custom_code,
            partner_id=link_data.partner_id,
            expires_at=link_data.expires_at
        )
    except CodeAlreadyExists:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Code already exists")
    except UnknownPartner:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown partner")
    except CodeGenerationError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    return ShortenResponse(
        code=link.code,
        short_url=f"{settings.base_url.rstrip('/')}/{link.code}"
    )


@router.delete("/urls/{code}")
def delete_link(code: str, link_service: LinkService = Depends(get_link_service)):
    """Delete a link and, by cascade, its clicks and bypass logs"""
    if not link_service.delete_link(code):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="URL not found")
    return {"success": True}


@router.get("/analytics/{code}", response_model=LinkAnalytics)
def get_link_analytics(
    code: str,
    link_service: LinkService = Depends(get_link_service),
    settings: Settings = Depends(get_settings)
):
    """Recent clicks, country/device breakdowns and bypass attempts for a link"""
    if not link_service.link_exists(code):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="URL not found")
    return link_service.get_analytics(code, limit=settings.recent_events_limit)
