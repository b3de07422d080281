"""Browser extension bridge: scraped payloads, page extraction and the hub relay."""
from __future__ import annotations

from .extractor import extract_page
from .hub import ExtensionHub, HubMessage, generate_session_id
from .payload import ExtensionPayload

__all__ = ["ExtensionHub", "ExtensionPayload", "HubMessage", "extract_page", "generate_session_id"]
