import re
import secrets
import string
from typing import Any

IDENTIFIER_ALPHABET = string.digits + string.ascii_letters + ",-"

# 22-256 chars of [0-9a-zA-Z,-]; \Z so a trailing newline is rejected
IDENTIFIER_PATTERN = re.compile(r"^[0-9a-zA-Z,-]{22,256}\Z")


def mask_identifier(identifier: Any) -> str:
    """Shorten an identifier for log output."""
    if not identifier:
        return "<none>"
    return f"{str(identifier)[:6]}..."


class IdentifierSource:
    """
    Cryptographically strong session identifiers.

    Each character carries 6 bits of entropy, so the default length of 32
    gives 192 bits.
    """

    def __init__(self, length: int = 32):
        if not 22 <= length <= 256:
            raise ValueError(f"Identifier length must be between 22 and 256, got {length}")
        self.length = length

    def generate(self) -> str:
        """Return a fresh identifier."""
        return "".join(secrets.choice(IDENTIFIER_ALPHABET) for _ in range(self.length))

    def validate(self, candidate: Any) -> bool:
        """
        Check whether a client-supplied value may be used as an identifier.

        Args:
            candidate: Raw value, usually a cookie

        Returns:
            True if the value is a string matching IDENTIFIER_PATTERN
        """
        return isinstance(candidate, str) and IDENTIFIER_PATTERN.match(candidate) is not None
