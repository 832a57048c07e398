"""
Session Middleware Module - Black Box Interface

Purpose: Give every FastAPI request its own session and finish it reliably
Interface: SessionMiddleware, get_session(), cache_limiter_headers()
Hidden: Cookie emission, deferred close, cache header policy

Can be used by any FastAPI app or sub-app that needs sessions.
"""

import logging
import time
from email.utils import formatdate
from typing import Callable, Dict, Iterable, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from ...config.options import SessionOptions
from ..identifier import IdentifierSource
from ..session import Session, SessionState, StartupFailure
from ..session.lifecycle import DEFAULT_GC_PROBABILITY
from ..storage.interfaces import StoreAdapter
from ..transport import CookieJar

logger = logging.getLogger(__name__)

PAST_EXPIRES = "Thu, 19 Nov 1981 08:52:00 GMT"


def cache_limiter_headers(limiter: str, expire_minutes: int, now: float) -> Dict[str, str]:
    """
    Cache headers for responses of requests that used a session.

    Args:
        limiter: nocache, private, private_no_expire, public, or "" for none
        expire_minutes: Cache lifetime for the cacheable limiters
        now: Current Unix time

    Returns:
        Header name to value mapping
    """
    max_age = expire_minutes * 60
    if limiter == "nocache":
        return {
            "Expires": PAST_EXPIRES,
            "Cache-Control": "no-store, no-cache, must-revalidate",
            "Pragma": "no-cache",
        }
    if limiter == "private":
        return {"Expires": PAST_EXPIRES, "Cache-Control": f"private, max-age={max_age}"}
    if limiter == "private_no_expire":
        return {"Cache-Control": f"private, max-age={max_age}"}
    if limiter == "public":
        return {
            "Expires": formatdate(now + max_age, usegmt=True),
            "Cache-Control": f"public, max-age={max_age}",
        }
    return {}


class SessionMiddleware:
    """
    Per-request session handling for FastAPI applications.

    Creates a Session bound to the request cookies and stores it on
    request.state.session. After the endpoint finishes, on success or
    error, the session is compacted and closed, queued cookies are written
    to the response and the response is marked as sent.
    """

    def __init__(
        self,
        store: StoreAdapter,
        options: Optional[SessionOptions] = None,
        identifiers: Optional[IdentifierSource] = None,
        auto_start: bool = False,
        skip_paths: Optional[Iterable[str]] = None,
        gc_probability: float = DEFAULT_GC_PROBABILITY,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize session middleware.

        Args:
            store: Persistent store engine shared by all requests
            options: Session options applied to every new session
            identifiers: Identifier source
            auto_start: Start the session before the endpoint when the client sent a cookie
            skip_paths: Paths served without a session
            gc_probability: Chance of store garbage collection per activation
            clock: Source of the current Unix time
        """
        self.store = store
        self.options = options or SessionOptions()
        self.identifiers = identifiers or IdentifierSource()
        self.auto_start = auto_start
        self.skip_paths = set(skip_paths or ())
        self.gc_probability = gc_probability
        self.clock = clock

    def create_session(self, transport: CookieJar) -> Session:
        return Session(
            transport,
            self.store,
            identifiers=self.identifiers,
            options=self.options,
            clock=self.clock,
            gc_probability=self.gc_probability,
        )

    async def __call__(self, request: Request, call_next):
        """Process the request with a session attached."""
        if str(request.url.path) in self.skip_paths:
            return await call_next(request)

        transport = CookieJar.from_request(request)
        session = self.create_session(transport)
        request.state.session = session

        async with session.request_scope():
            if self.auto_start and session.exists():
                try:
                    await session.start()
                except StartupFailure as e:
                    return JSONResponse(status_code=503, content={"error": str(e)})
            response = await call_next(request)
            used = session.state is not SessionState.NOT_STARTED
            options = session.options

        transport.apply_to(response)
        transport.mark_sent()
        if used:
            for name, value in cache_limiter_headers(
                options["cache_limiter"], options["cache_expire"], self.clock()
            ).items():
                if name not in response.headers:
                    response.headers[name] = value
        return response


def get_session(request: Request) -> Session:
    """FastAPI dependency returning the request's session."""
    session = getattr(request.state, "session", None)
    if session is None:
        raise HTTPException(500, "Session middleware is not installed")
    return session


__all__ = ["SessionMiddleware", "cache_limiter_headers", "get_session"]
