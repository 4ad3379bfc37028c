from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from redirector_app.database.connection import Base


class Partner(Base):
    """
    Partner whose domain gates which referrers may follow a link.
    
    Read-only from the redirect path; managed through the admin API.
    """
    __tablename__ = "partners"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    # Bare hostname matched against the Referer header (e.g. "example.com")
    domain = Column(Text, nullable=False)

    links = relationship("ShortLink", back_populates="partner")


class ShortLink(Base):
    """
    Short code -> target URL mapping.
    
    The redirect path only ever reads a link and bumps click_count.
    Deleting a link cascades to its click and bypass rows.
    """
    __tablename__ = "urls"

    code = Column(String(50), primary_key=True)
    target_url = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    click_count = Column(Integer, nullable=False, default=0)
    partner_id = Column(Integer, ForeignKey("partners.id"), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    partner = relationship("Partner", back_populates="links")
    clicks = relationship(
        "ClickEvent",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    bypass_attempts = relationship(
        "BypassEvent",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
