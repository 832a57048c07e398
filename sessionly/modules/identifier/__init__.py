"""
Identifier Module - Black Box Interface

Purpose: Mint and validate session identifiers
Interface: IdentifierSource.generate(), IdentifierSource.validate(), mask_identifier()
Hidden: Entropy source, alphabet, accepted identifier pattern

Replaceable with any generator producing identifiers the pattern accepts.
"""

from .identifier import IDENTIFIER_ALPHABET, IDENTIFIER_PATTERN, IdentifierSource, mask_identifier

__all__ = ["IdentifierSource", "IDENTIFIER_ALPHABET", "IDENTIFIER_PATTERN", "mask_identifier"]
