import json
import logging
import time
from typing import Any, Callable, Dict, Iterable, Iterator, Optional

from .blob import DATA, META, SessionBlob
from .expiration import ExpirationTime, to_timestamp

logger = logging.getLogger(__name__)

# META key that expires a whole section
SECTION_KEY = ""


class SectionNames:
    """
    Live view of the section names in a store.

    Every iteration reads the current names, so the view can be iterated
    again after sections change.
    """

    def __init__(self, sections: Callable[[], Dict[str, Any]]):
        self._sections = sections

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._sections()))

    def __len__(self) -> int:
        return len(self._sections())

    def __contains__(self, section) -> bool:
        return section in self._sections()

    def __repr__(self) -> str:
        return f"SectionNames({list(self)!r})"


class SectionStore:
    """
    Sections of variables with per-variable and per-section expiration.

    The store owns one SessionBlob. DATA holds section values and META the
    expiry timestamps; META[section][""] expires the whole section.
    """

    def __init__(self, blob: Optional[SessionBlob] = None, clock: Callable[[], float] = time.time):
        self._blob = blob or SessionBlob()
        self.clock = clock

    # Persistence

    def load(self, raw: bytes) -> None:
        """Replace content with a stored blob."""
        self._blob = SessionBlob.from_bytes(raw)

    def dump(self) -> bytes:
        return self._blob.to_bytes()

    def snapshot(self) -> SessionBlob:
        """Deep copy of the current content."""
        return self._blob.copy()

    def restore(self, blob: SessionBlob) -> None:
        self._blob = blob.copy()

    def clear(self) -> None:
        self._blob = SessionBlob()

    @property
    def time_marker(self) -> Optional[int]:
        return self._blob.time

    @time_marker.setter
    def time_marker(self, value: int) -> None:
        self._blob.time = value

    # Variables

    def get(self, section: str, variable: str, default: Any = None) -> Any:
        return _entries(self._data(), section).get(variable, default)

    def has(self, section: str, variable: str) -> bool:
        return variable in _entries(self._data(), section)

    def set(self, section: str, variable: str, value: Any, ttl: ExpirationTime = None) -> None:
        """
        Store a variable, optionally expiring it.

        Args:
            section: Section name
            variable: Variable name
            value: JSON-serializable value
            ttl: Optional expiration, see to_timestamp()

        Raises:
            TypeError: If the value cannot be serialized
        """
        json.dumps(value)
        _entries(self._data(create=True), section, create=True)[variable] = value
        if ttl is not None:
            self.set_expiration(section, to_timestamp(ttl, self.clock()), [variable])

    def remove(self, section: str, variable: Optional[str] = None) -> None:
        """Remove one variable, or the whole section when variable is None."""
        data, meta = self._data(), self._meta()
        if variable is None:
            data.pop(section, None)
            meta.pop(section, None)
            return
        _entries(data, section).pop(variable, None)
        _entries(meta, section).pop(variable, None)

    def variables(self, section: str) -> Dict[str, Any]:
        return dict(_entries(self._data(), section))

    # Sections

    def has_section(self, section: str) -> bool:
        return bool(_entries(self._data(), section))

    def section_names(self) -> SectionNames:
        return SectionNames(self._data)

    # Expiration

    def set_expiration(self, section: str, expires_at: Optional[int], variables: Optional[Iterable[str]] = None) -> None:
        """
        Set absolute expiry timestamps.

        Args:
            section: Section name
            expires_at: Unix timestamp, None removes the expiration
            variables: Variable names, None for the whole section
        """
        if expires_at is None:
            self.remove_expiration(section, variables)
            return
        keys = [SECTION_KEY] if variables is None else list(variables)
        section_meta = _entries(self._meta(create=True), section, create=True)
        for key in keys:
            section_meta[key] = int(expires_at)

    def remove_expiration(self, section: str, variables: Optional[Iterable[str]] = None) -> None:
        section_meta = _entries(self._meta(), section)
        if not section_meta:
            return
        keys = [SECTION_KEY] if variables is None else list(variables)
        for key in keys:
            section_meta.pop(key, None)

    def expiration(self, section: str, variable: str = SECTION_KEY) -> Optional[int]:
        return _entries(self._meta(), section).get(variable)

    def sweep(self, now: Optional[float] = None) -> int:
        """
        Remove expired variables and sections.

        An entry expires once now is strictly greater than its timestamp. A
        whole-section entry removes the section from DATA and META together
        and ends processing of that section. Malformed entries are skipped.

        Returns:
            Number of removed entries
        """
        meta = self._blob.root.get(META)
        if not isinstance(meta, dict):
            return 0
        data = self._blob.root.get(DATA)
        if not isinstance(data, dict):
            data = {}
        now = self.clock() if now is None else now

        removed = 0
        for section, metadata in list(meta.items()):
            if not isinstance(metadata, dict):
                continue
            for variable, expires_at in list(metadata.items()):
                if not _is_timestamp(expires_at) or now <= expires_at:
                    continue
                if variable == SECTION_KEY:
                    meta.pop(section, None)
                    data.pop(section, None)
                    removed += 1
                    break
                metadata.pop(variable, None)
                section_data = data.get(section)
                if isinstance(section_data, dict):
                    section_data.pop(variable, None)
                removed += 1

        if removed:
            logger.debug(f"Sweep removed {removed} expired session entries")
        return removed

    def compact(self) -> None:
        """Drop empty sections and empty DATA/META maps."""
        root = self._blob.root
        for key in (META, DATA):
            namespace = root.get(key)
            if isinstance(namespace, dict):
                for section in [name for name, entries in namespace.items() if not entries]:
                    del namespace[section]
            if not namespace:
                root.pop(key, None)

    def _data(self, create: bool = False) -> Dict[str, Dict[str, Any]]:
        return self._namespace(DATA, create)

    def _meta(self, create: bool = False) -> Dict[str, Dict[str, Any]]:
        return self._namespace(META, create)

    def _namespace(self, key: str, create: bool) -> Dict[str, Dict[str, Any]]:
        namespace = self._blob.root.get(key)
        if isinstance(namespace, dict):
            return namespace
        if create:
            namespace = self._blob.root[key] = {}
            return namespace
        return {}


def _is_timestamp(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def _entries(namespace: Dict[str, Any], section: str, create: bool = False) -> Dict[str, Any]:
    entries = namespace.get(section)
    if isinstance(entries, dict):
        return entries
    if create:
        entries = namespace[section] = {}
        return entries
    return {}
