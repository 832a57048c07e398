"""
API Module - Black Box Interface

Purpose: Request and response models of the session HTTP API
Interface: SetVariableRequest, SessionResponse, SectionResponse
"""

from .models import SECTION_NAME_PATTERN, SectionResponse, SessionResponse, SetVariableRequest

__all__ = ["SECTION_NAME_PATTERN", "SectionResponse", "SessionResponse", "SetVariableRequest"]
