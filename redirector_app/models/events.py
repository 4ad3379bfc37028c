from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from redirector_app.database.connection import Base


class ClickEvent(Base):
    """
    One allowed visit, enriched with location and device classification.
    
    Append-only: written once by the background recorder, never updated.
    """
    __tablename__ = "clicks"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    code = Column(String(50), ForeignKey("urls.code", ondelete="CASCADE"), nullable=False, index=True)
    ip_address = Column(String(100))
    country = Column(String(100))
    city = Column(String(100))
    region = Column(String(100))
    user_agent = Column(Text)
    device = Column(String(50))
    browser = Column(String(50))
    os = Column(String(50))
    referrer = Column(Text)
    clicked_at = Column(DateTime(timezone=True), server_default=func.now())


class BypassEvent(Base):
    """A redirect attempt whose referrer failed the partner policy."""
    __tablename__ = "bypass_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    code = Column(String(50), ForeignKey("urls.code", ondelete="CASCADE"), nullable=False, index=True)
    referrer = Column(Text)
    ip_address = Column(String(100))
    user_agent = Column(Text)
    detected_at = Column(DateTime(timezone=True), server_default=func.now())
