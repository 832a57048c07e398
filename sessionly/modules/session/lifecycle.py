import logging
import random
import time
from contextlib import ExitStack, asynccontextmanager
from enum import Enum
from typing import AsyncIterator, Callable, Optional

from pydantic import ValidationError

from ...config.options import COOKIE_OPTION_PREFIX, DEFAULT_GC_MAXLIFETIME, SessionOptions
from ..identifier import IdentifierSource, mask_identifier
from ..storage.interfaces import StoreAdapter, StoreHandle
from ..transport.cookies import CookieTransport
from .errors import ConfigurationError, NotActiveError, OrderingViolation, StartupFailure
from .expiration import ExpirationTime, to_timestamp
from .section import SessionSection
from .store import SectionNames, SectionStore

logger = logging.getLogger(__name__)

# chance of running store garbage collection on activation
DEFAULT_GC_PROBABILITY = 0.01


class SessionState(str, Enum):
    """Lifecycle state of a session."""

    NOT_STARTED = "not_started"
    ACTIVE = "active"
    CLOSED = "closed"
    DESTROYED = "destroyed"


class Session:
    """
    Session of one request context.

    Activates the persistent store under the client's identifier, exposes
    the section store while active and writes it back on close. Lifecycle:

        NOT_STARTED -> ACTIVE -> CLOSED
                       ACTIVE -> DESTROYED

    A brand-new session gets a fresh identifier before anything is sent to
    the client, and expired sections are swept once per activation.

    Example:
        session = Session(CookieJar.from_request(request), store)
        async with session.request_scope():
            await session.start()
            session.get_section("user")["id"] = 42
    """

    def __init__(
        self,
        transport: CookieTransport,
        store: StoreAdapter,
        identifiers: Optional[IdentifierSource] = None,
        options: Optional[SessionOptions] = None,
        clock: Callable[[], float] = time.time,
        gc_probability: float = DEFAULT_GC_PROBABILITY,
    ):
        """
        Initialize session.

        Args:
            transport: Cookie transport of the current request
            store: Persistent store engine shared between requests
            identifiers: Identifier source
            options: Initial engine options
            clock: Source of the current Unix time
            gc_probability: Chance of store garbage collection per activation
        """
        self.transport = transport
        self.identifiers = identifiers or IdentifierSource()
        self.clock = clock
        self.gc_probability = gc_probability
        self.state = SessionState.NOT_STARTED
        self.regenerated = False
        self.store = SectionStore(clock=clock)
        self._handler = store
        self._options = options.model_copy() if options else SessionOptions()
        self._id: Optional[str] = None
        self._handle: Optional[StoreHandle] = None
        self._deferred = ExitStack()

    # Lifecycle

    @property
    def is_started(self) -> bool:
        return self.state is SessionState.ACTIVE

    @property
    def id(self) -> Optional[str]:
        """Current identifier; it changes on regeneration."""
        return self._id

    async def start(self) -> None:
        """
        Activate the store and load session data.

        Raises:
            StartupFailure: If the store cannot be activated
            OrderingViolation: If a new session needs a fresh identifier
                after the response was sent
        """
        if self.is_started:
            return

        if self._id is None:
            self._id = self._resolve_identifier()

        try:
            self._handle = await self._handler.open(self._id, self._options)
            raw = await self._handler.read(self._handle)
        except Exception as e:
            await self._release()
            logger.error(f"Unable to start session {mask_identifier(self._id)}: {e}")
            raise StartupFailure(f"Unable to start session: {e}") from e

        self.state = SessionState.ACTIVE
        self.store = SectionStore(clock=self.clock)
        self.store.load(raw)

        try:
            if not self.store.time_marker:
                self.store.time_marker = int(self.clock())
                await self._regenerate(send_cookie=False)

            self._send_cookie()
            self.store.sweep()
        except Exception:
            await self.close()
            raise

        await self._collect_garbage()
        self._deferred.callback(self.clean)
        logger.debug(f"Session {mask_identifier(self._id)} started")

    async def close(self) -> None:
        """Compact and write session data, then release the store."""
        if not self.is_started:
            return
        self.clean()
        try:
            await self._handler.write(self._handle, self.store.dump())
        finally:
            await self._release()
            self.state = SessionState.CLOSED
        logger.debug(f"Session {mask_identifier(self._id)} closed")

    async def destroy(self) -> None:
        """
        Remove all session data and the identifier cookie.

        Raises:
            NotActiveError: If the session is not started
        """
        if not self.is_started:
            raise NotActiveError("Session is not started.")

        identifier = self._id
        self.store.clear()
        try:
            await self._handler.destroy(self._handle)
        finally:
            await self._release()
            self.state = SessionState.DESTROYED
            self._id = None
            self.regenerated = False

        if not self.transport.is_sent:
            self.transport.delete_cookie(
                self.name, self._options.cookie_path, self._options.cookie_domain, self._options.cookie_secure
            )
        logger.info(f"Session {mask_identifier(identifier)} destroyed")

    def exists(self) -> bool:
        """Does a session exist for the current request? Never activates the store."""
        if self.is_started:
            return True
        if self.state is SessionState.DESTROYED:
            return False
        return self.transport.get_cookie(self.name) is not None

    async def regenerate_id(self) -> None:
        """
        Move the session to a fresh identifier, at most once per activation.

        Raises:
            OrderingViolation: If the response has already been sent
            StartupFailure: If the store cannot be reopened
        """
        await self._regenerate(send_cookie=True)

    def clean(self) -> None:
        """Drop empty scaffolding from the section store; never raises."""
        if self.is_started:
            self.store.compact()

    async def finalize(self) -> None:
        """Run end-of-request actions: registered finalizers, then close()."""
        self._deferred.close()
        await self.close()

    @asynccontextmanager
    async def request_scope(self) -> AsyncIterator["Session"]:
        """Guarantee finalize() on every exit path of a request."""
        try:
            yield self
        finally:
            await self.finalize()

    # Sections

    def get_section(self, section: str) -> SessionSection:
        return SessionSection(self, section)

    async def has_section(self, section: str) -> bool:
        """Check whether a section exists and is not empty."""
        await self._autostart()
        return self.store.has_section(section)

    async def section_names(self) -> SectionNames:
        await self._autostart()
        return self.store.section_names()

    async def __aiter__(self):
        for name in await self.section_names():
            yield name

    # Configuration

    @property
    def name(self) -> str:
        return self._options.name

    @property
    def options(self) -> dict:
        return self._options.model_dump()

    def set_options(self, **options) -> "Session":
        """
        Change engine options.

        None values are ignored. While the session is active only cookie
        options may change; they are re-sent right away.

        Raises:
            ConfigurationError: On unknown keys, invalid values, or a
                non-cookie change while active
        """
        unknown = sorted(set(options) - set(SessionOptions.model_fields))
        if unknown:
            raise ConfigurationError(f"Unknown session option(s): {', '.join(unknown)}")

        changes = {key: value for key, value in options.items() if value is not None}
        try:
            candidate = SessionOptions(**{**self._options.model_dump(), **changes})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid session options: {e}") from e

        cookie_changed = False
        for key in changes:
            value = getattr(candidate, key)
            if getattr(self._options, key) == value:
                continue
            if key.startswith(COOKIE_OPTION_PREFIX):
                cookie_changed = True
            elif self.is_started:
                logger.warning(f"Rejected change of session option '{key}' on an active session")
                raise ConfigurationError(
                    f"Unable to set '{key}' to {value!r} when session has been started."
                )

        self._options = candidate
        if cookie_changed and self.is_started:
            self._send_cookie()
        return self

    def set_name(self, name: str) -> "Session":
        return self.set_options(name=name)

    def set_expiration(self, time: ExpirationTime) -> "Session":
        """
        Set how long the session lives between requests.

        Args:
            time: None keeps the session until the browser is closed
        """
        if not time:
            return self.set_options(gc_maxlifetime=DEFAULT_GC_MAXLIFETIME, cookie_lifetime=0)
        now = self.clock()
        try:
            seconds = to_timestamp(time, now) - int(now)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        return self.set_options(gc_maxlifetime=seconds, cookie_lifetime=seconds)

    def set_cookie_parameters(self, path: str, domain: Optional[str] = None, secure: Optional[bool] = None) -> "Session":
        return self.set_options(cookie_path=path, cookie_domain=domain, cookie_secure=secure)

    def get_cookie_parameters(self) -> dict:
        return self._options.cookie_parameters()

    def set_save_path(self, path: str) -> "Session":
        return self.set_options(save_path=path)

    def set_handler(self, store: StoreAdapter) -> "Session":
        """Replace the persistent store engine before the session starts."""
        if self.is_started:
            raise ConfigurationError("Unable to set handler when session has been started.")
        self._handler = store
        return self

    # Internals

    def _resolve_identifier(self) -> str:
        if self.state is SessionState.DESTROYED:
            return self.identifiers.generate()

        candidate = self.transport.get_cookie(self.name)
        referer_check = self._options.referer_check
        if candidate is not None and referer_check:
            if referer_check not in (self.transport.get_header("referer") or ""):
                logger.debug("Referer check failed, ignoring client session identifier")
                candidate = None

        if self.identifiers.validate(candidate):
            return candidate
        if candidate is not None:
            logger.debug("Replacing malformed client session identifier")
        return self.identifiers.generate()

    async def _regenerate(self, send_cookie: bool) -> None:
        if self.regenerated:
            return

        if self.is_started:
            if self.transport.is_sent:
                raise OrderingViolation("Cannot regenerate session ID after HTTP headers have been sent.")
            backup = self.store.snapshot()
            old_id = self._id
            await self._handler.destroy(self._handle)
            await self._release()

            self._id = self.identifiers.generate()
            try:
                self._handle = await self._handler.open(self._id, self._options)
                await self._handler.write(self._handle, backup.to_bytes())
            except Exception as e:
                await self._release()
                self.state = SessionState.CLOSED
                raise StartupFailure(f"Unable to reopen session after regeneration: {e}") from e
            self.store.restore(backup)
            if send_cookie:
                self._send_cookie()
            logger.info(f"Session {mask_identifier(old_id)} regenerated as {mask_identifier(self._id)}")
        else:
            self._id = self.identifiers.generate()

        self.regenerated = True

    async def _release(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            await self._handler.close(handle)

    async def _autostart(self) -> None:
        if self.exists() and not self.is_started:
            await self.start()

    async def _collect_garbage(self) -> None:
        if not self.gc_probability or random.random() >= self.gc_probability:
            return
        try:
            removed = await self._handler.gc(self._options.gc_maxlifetime, self._options.save_path)
        except Exception as e:
            logger.warning(f"Session garbage collection failed: {e}")
            return
        logger.info(f"Session garbage collection removed {removed} stored sessions")

    def _send_cookie(self) -> None:
        if not self._options.use_cookies:
            return
        options = self._options
        expires_at = self.clock() + options.cookie_lifetime if options.cookie_lifetime else None
        self.transport.set_cookie(
            self.name,
            self._id,
            expires_at,
            options.cookie_path,
            options.cookie_domain,
            options.cookie_secure,
            options.cookie_httponly,
        )

    def __repr__(self) -> str:
        return f"Session(state={self.state.value}, id={mask_identifier(self._id)})"
