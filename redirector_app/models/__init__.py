"""
Database models for the redirector.

Links and partners are administered data; clicks and bypass logs are
append-only event tables written by the redirect path.
"""

from .link import ShortLink, Partner
from .events import ClickEvent, BypassEvent

__all__ = ["ShortLink", "Partner", "ClickEvent", "BypassEvent"]
