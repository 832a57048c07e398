"""
Shared pytest fixtures for Sessionly tests.

This module provides common fixtures including:
- FakeClock: controllable Unix time
- In-memory store and cookie jar collaborators
- A session factory wiring them together
"""

import os
import sys
from typing import Optional

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sessionly.config.options import SessionOptions
from sessionly.modules.identifier import IdentifierSource
from sessionly.modules.session import Session
from sessionly.modules.storage import MemoryStore
from sessionly.modules.transport import CookieJar

START_TIME = 1_700_000_000

VALID_ID = "abcdefghijklmnopqrstuvwxyz012345"


class FakeClock:
    """Callable clock returning a settable Unix time."""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SequentialIdentifiers(IdentifierSource):
    """Identifier source producing predictable, valid identifiers."""

    def __init__(self, prefix: str = "generated"):
        super().__init__()
        self.prefix = prefix
        self.issued = []

    def generate(self) -> str:
        identifier = f"{self.prefix}-{len(self.issued) + 1:024d}"
        self.issued.append(identifier)
        return identifier


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    return MemoryStore(clock=clock)


@pytest.fixture
def identifiers():
    return SequentialIdentifiers()


@pytest.fixture
def make_jar():
    """Factory for cookie jars carrying an optional session cookie."""

    def _make(session_id: Optional[str] = None, name: str = "SESSID", **headers) -> CookieJar:
        cookies = {name: session_id} if session_id is not None else {}
        return CookieJar(cookies=cookies, headers=headers)

    return _make


@pytest.fixture
def make_session(memory_store, identifiers, clock, make_jar):
    """Factory for sessions sharing one store, identifier source and clock."""

    def _make(jar: Optional[CookieJar] = None, options: Optional[SessionOptions] = None, store=None) -> Session:
        return Session(
            jar if jar is not None else make_jar(),
            store if store is not None else memory_store,
            identifiers=identifiers,
            options=options,
            clock=clock,
            gc_probability=0,
        )

    return _make


async def seed_session(make_session, make_jar, session_id: str, sections: dict, meta: Optional[dict] = None) -> str:
    """Store a session through a full request cycle and return its final identifier."""
    session = make_session(make_jar(session_id))
    async with session.request_scope():
        await session.start()
        for section, variables in sections.items():
            for name, value in variables.items():
                session.store.set(section, name, value)
        for section, entries in (meta or {}).items():
            for name, expires_at in entries.items():
                session.store.set_expiration(section, expires_at, None if name == "" else [name])
    return session.id
