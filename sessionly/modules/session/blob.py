import copy
import json
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DATA = "DATA"
META = "META"
TIME = "Time"


class SessionBlob:
    """
    Root structure of one session's stored data.

    Layout:
        Time: creation timestamp, absent for a brand-new session
        DATA: section -> variable -> value
        META: section -> variable -> expiry timestamp ("" expires the section)

    Only the section store touches the root mapping.
    """

    def __init__(self, root: Optional[Dict[str, Any]] = None):
        self.root: Dict[str, Any] = root if root is not None else {}

    @classmethod
    def from_bytes(cls, raw: bytes) -> "SessionBlob":
        """Decode a stored blob; undecodable content yields an empty blob."""
        if not raw:
            return cls()
        try:
            root = json.loads(raw)
        except (UnicodeDecodeError, ValueError) as e:
            logger.warning(f"Discarding undecodable session blob: {e}")
            return cls()
        if not isinstance(root, dict):
            logger.warning(f"Discarding session blob with {type(root).__name__} root")
            return cls()
        return cls(root)

    def to_bytes(self) -> bytes:
        return json.dumps(self.root, separators=(",", ":")).encode("utf-8")

    def copy(self) -> "SessionBlob":
        return SessionBlob(copy.deepcopy(self.root))

    @property
    def time(self) -> Optional[int]:
        value = self.root.get(TIME)
        return value if isinstance(value, (int, float)) and value else None

    @time.setter
    def time(self, value: int) -> None:
        self.root[TIME] = int(value)

    def __eq__(self, other) -> bool:
        return isinstance(other, SessionBlob) and self.root == other.root

    def __repr__(self) -> str:
        return f"SessionBlob(sections={list(self.root.get(DATA) or {})})"
