"""
Session engine options.

The option set is fixed: unknown keys are rejected instead of being
normalized from other spellings.
"""

import re
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# 3 hours
DEFAULT_GC_MAXLIFETIME = 3 * 60 * 60

COOKIE_OPTION_PREFIX = "cookie_"

NAME_PATTERN = re.compile(r"^[^0-9.][^.]*\Z")


class SessionOptions(BaseModel):
    """Effective configuration of the session engine."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    # security
    referer_check: str = Field("", description="Substring the Referer must contain to trust a client identifier")
    use_cookies: bool = Field(True, description="Send the identifier cookie")
    use_only_cookies: bool = Field(True, description="Accept identifiers from cookies only")
    use_trans_sid: bool = Field(False, description="Transparent identifiers in URLs")

    # cookies
    cookie_lifetime: int = Field(0, ge=0, description="Cookie lifetime in seconds, 0 until the browser is closed")
    cookie_path: str = Field("/", description="Cookie path")
    cookie_domain: str = Field("", description="Cookie domain, empty for the current host only")
    cookie_secure: bool = Field(False, description="Send the cookie over HTTPS only")
    cookie_httponly: bool = Field(True, description="Hide the cookie from scripts")

    # other
    gc_maxlifetime: int = Field(DEFAULT_GC_MAXLIFETIME, ge=0, description="Stored session lifetime in seconds")
    name: str = Field("SESSID", min_length=1, description="Cookie name carrying the identifier")
    save_path: Optional[str] = Field(None, description="Directory for file based storage")
    cache_limiter: Literal["nocache", "private", "private_no_expire", "public", ""] = "nocache"
    cache_expire: int = Field(180, ge=0, description="Cache lifetime in minutes for cacheable limiters")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Session name cannot start with a digit or contain a dot."""
        if not NAME_PATTERN.match(v):
            raise ValueError("Session name cannot start with a digit or contain a dot")
        return v

    def cookie_parameters(self) -> dict:
        """Cookie parameters keyed without the cookie_ prefix."""
        return {
            "lifetime": self.cookie_lifetime,
            "path": self.cookie_path,
            "domain": self.cookie_domain,
            "secure": self.cookie_secure,
            "httponly": self.cookie_httponly,
        }
