import logging
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Optional, Tuple, Union

from .errors import NotActiveError
from .expiration import ExpirationTime, to_timestamp

if TYPE_CHECKING:
    from .lifecycle import Session

logger = logging.getLogger(__name__)

# tolerated difference between a section expiry and the store lifetime
GC_TOLERANCE = 3


class SessionSection:
    """
    Named group of session variables.

    Behaves like a mutable mapping over the section's variables. Every
    access requires an active session.

    Example:
        cart = session.get_section("cart")
        cart["items"] = [42]
        cart.set_expiration("PT20M")
    """

    def __init__(self, session: "Session", name: str):
        if not isinstance(name, str) or not name:
            raise ValueError("Section name must be a non-empty string")
        self.session = session
        self.name = name

    @property
    def _store(self):
        if not self.session.is_started:
            raise NotActiveError(f"Session is not started, cannot access section '{self.name}'.")
        return self.session.store

    def get(self, variable: str, default: Any = None) -> Any:
        return self._store.get(self.name, variable, default)

    def set(self, variable: str, value: Any, expiration: ExpirationTime = None) -> None:
        self._store.set(self.name, variable, value)
        if expiration is not None:
            self.set_expiration(expiration, variable)

    def remove(self, variable: Optional[str] = None) -> None:
        """Remove a variable, or the whole section when no name is given."""
        self._store.remove(self.name, variable)

    def items(self) -> Iterator[Tuple[str, Any]]:
        return iter(self._store.variables(self.name).items())

    def set_expiration(self, time: ExpirationTime, variables: Union[None, str, Iterable[str]] = None) -> "SessionSection":
        """
        Set when the section or some of its variables expire.

        Args:
            time: Expiration time, None or 0 removes it
            variables: Variable name(s), None for the whole section

        Returns:
            self, for chaining
        """
        store = self._store
        expires_at = to_timestamp(time, store.clock())
        if expires_at is not None:
            max_lifetime = self.session.options["gc_maxlifetime"]
            if max_lifetime and expires_at - store.clock() > max_lifetime + GC_TOLERANCE:
                logger.warning(
                    f"Expiration of section '{self.name}' is longer than the session lifetime "
                    f"of {max_lifetime} seconds; stored data may be collected earlier"
                )
        store.set_expiration(self.name, expires_at, _as_list(variables))
        return self

    def remove_expiration(self, variables: Union[None, str, Iterable[str]] = None) -> "SessionSection":
        self._store.remove_expiration(self.name, _as_list(variables))
        return self

    def __getitem__(self, variable: str) -> Any:
        store = self._store
        if not store.has(self.name, variable):
            raise KeyError(variable)
        return store.get(self.name, variable)

    def __setitem__(self, variable: str, value: Any) -> None:
        self.set(variable, value)

    def __delitem__(self, variable: str) -> None:
        self.remove(variable)

    def __contains__(self, variable: str) -> bool:
        return self._store.has(self.name, variable)

    def __iter__(self) -> Iterator[str]:
        return iter(self._store.variables(self.name))

    def __len__(self) -> int:
        return len(self._store.variables(self.name))

    def __repr__(self) -> str:
        return f"SessionSection({self.name!r})"


def _as_list(variables: Union[None, str, Iterable[str]]) -> Optional[list]:
    if variables is None:
        return None
    if isinstance(variables, str):
        return [variables]
    return list(variables)
