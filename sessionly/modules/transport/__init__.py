"""
Transport Module - Black Box Interface

Purpose: Carry the session identifier between client and server
Interface: CookieTransport protocol, CookieJar
Hidden: Header formatting, response-sent tracking

Replaceable with any transport implementing CookieTransport.
"""

from .cookies import CookieJar, CookieTransport, OutgoingCookie

__all__ = ["CookieJar", "CookieTransport", "OutgoingCookie"]
