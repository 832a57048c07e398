"""Session error taxonomy."""


class SessionError(Exception):
    """Base class for session lifecycle and section errors."""


class StartupFailure(SessionError):
    """The persistent store could not be activated for this request."""


class OrderingViolation(SessionError):
    """Identifier regeneration attempted after the response has been sent."""


class NotActiveError(SessionError):
    """Operation requires an active session."""


class ConfigurationError(SessionError):
    """Option is unknown, invalid, or cannot change while the session is active."""
