"""
Sessionly API data models.

These models define the request and response bodies of the session API.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

SECTION_NAME_PATTERN = r"^[A-Za-z0-9_.:-]{1,100}$"


class SetVariableRequest(BaseModel):
    """Request to store a session variable."""

    value: Any = Field(..., description="JSON value to store")
    expiration: Optional[Union[int, timedelta, datetime]] = Field(
        None,
        description="Seconds (relative up to one year), ISO-8601 duration, or datetime",
    )

    @field_validator("expiration")
    @classmethod
    def validate_expiration(cls, v):
        """Negative relative expirations are rejected."""
        if isinstance(v, int) and v < 0:
            raise ValueError("expiration must not be negative")
        return v


class SessionResponse(BaseModel):
    """State of the current session."""

    id: Optional[str] = Field(None, description="Session identifier, None when no session exists")
    exists: bool
    state: str
    sections: List[str] = Field(default_factory=list)


class SectionResponse(BaseModel):
    """Variables of one section."""

    section: str
    variables: Dict[str, Any] = Field(default_factory=dict)
    expires_at: Optional[int] = Field(None, description="Unix time the whole section expires")
