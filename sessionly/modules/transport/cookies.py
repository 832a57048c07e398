import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class CookieTransport(Protocol):
    """Protocol binding an identifier to the client through a cookie."""

    def get_cookie(self, name: str) -> Optional[str]:
        ...

    def get_header(self, name: str) -> Optional[str]:
        ...

    def set_cookie(
        self,
        name: str,
        value: str,
        expires_at: Optional[float],
        path: str,
        domain: str,
        secure: bool,
        http_only: bool,
    ) -> None:
        ...

    def delete_cookie(self, name: str, path: str, domain: str, secure: bool) -> None:
        ...

    @property
    def is_sent(self) -> bool:
        ...


@dataclass
class OutgoingCookie:
    """A cookie queued for the response; value None deletes it."""
    name: str
    value: Optional[str]
    expires_at: Optional[float]
    path: str
    domain: str
    secure: bool
    http_only: bool

    @property
    def is_deletion(self) -> bool:
        return self.value is None


class CookieJar:
    """
    Request cookies in, pending Set-Cookie instructions out.

    Cookies queued before the response is sent are applied to it;
    afterwards set and delete are logged and ignored.
    """

    def __init__(self, cookies: Optional[Dict[str, str]] = None, headers: Optional[Dict[str, str]] = None):
        self.cookies = dict(cookies or {})
        self.headers = {key.lower(): value for key, value in (headers or {}).items()}
        self.outgoing: Dict[str, OutgoingCookie] = {}
        self._sent = False

    @classmethod
    def from_request(cls, request) -> "CookieJar":
        """Build a jar from a Starlette/FastAPI request."""
        return cls(cookies=request.cookies, headers=dict(request.headers))

    @property
    def is_sent(self) -> bool:
        return self._sent

    def mark_sent(self) -> None:
        self._sent = True

    def get_cookie(self, name: str) -> Optional[str]:
        return self.cookies.get(name)

    def get_header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())

    def set_cookie(
        self,
        name: str,
        value: str,
        expires_at: Optional[float] = None,
        path: str = "/",
        domain: str = "",
        secure: bool = False,
        http_only: bool = True,
    ) -> None:
        if self._sent:
            logger.debug(f"Response already sent, not setting cookie '{name}'")
            return
        self.outgoing[name] = OutgoingCookie(name, value, expires_at, path, domain, secure, http_only)

    def delete_cookie(self, name: str, path: str = "/", domain: str = "", secure: bool = False) -> None:
        if self._sent:
            logger.debug(f"Response already sent, not deleting cookie '{name}'")
            return
        self.outgoing[name] = OutgoingCookie(name, None, None, path, domain, secure, False)

    def apply_to(self, response) -> None:
        """Write queued cookies as Set-Cookie headers of a Starlette response."""
        for cookie in self.outgoing.values():
            if cookie.is_deletion:
                response.delete_cookie(
                    cookie.name,
                    path=cookie.path,
                    domain=cookie.domain or None,
                    secure=cookie.secure,
                )
                continue
            expires = None
            if cookie.expires_at:
                expires = datetime.fromtimestamp(cookie.expires_at, UTC)
            response.set_cookie(
                cookie.name,
                cookie.value,
                expires=expires,
                path=cookie.path,
                domain=cookie.domain or None,
                secure=cookie.secure,
                httponly=cookie.http_only,
            )
        self.outgoing.clear()
