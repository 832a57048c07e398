"""
Session Module - Black Box Interface

Purpose: Manage session lifecycle and sectioned session data
Interface: Session.start(), close(), destroy(), regenerate_id(), get_section()
Hidden: Blob layout, expiration sweep, compaction, identifier regeneration

Works with any store engine implementing StoreAdapter and any CookieTransport.
"""

from .blob import SessionBlob
from .errors import ConfigurationError, NotActiveError, OrderingViolation, SessionError, StartupFailure
from .expiration import to_timestamp
from .lifecycle import Session, SessionState
from .section import SessionSection
from .store import SectionNames, SectionStore

__all__ = [
    "ConfigurationError",
    "NotActiveError",
    "OrderingViolation",
    "SectionNames",
    "SectionStore",
    "Session",
    "SessionBlob",
    "SessionError",
    "SessionSection",
    "SessionState",
    "StartupFailure",
    "to_timestamp",
]
