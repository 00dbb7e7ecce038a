"""
Exception hierarchy for the ONLYOFFICE bridge.

Every error raised by the library derives from BridgeError and carries the
HTTP status code the callback receiver (or a host application) should answer
with. Third-party errors are wrapped with ``raise ... from exc`` so the
original cause stays on the traceback.
"""

from __future__ import annotations


class BridgeError(Exception):
    """Base class for all library errors."""

    status_code: int = 500


class ValidationError(BridgeError):
    """Missing or invalid caller input, e.g. an empty filename."""

    status_code = 400


class AuthError(BridgeError):
    """Token is missing, malformed, expired, or signed with the wrong key or algorithm."""

    status_code = 401


class Unauthorized(AuthError):
    """Inbound callback failed authentication."""


class MethodNotAllowed(BridgeError):
    status_code = 405


class BadRequest(BridgeError):
    """Request body could not be read or decoded."""

    status_code = 400


class InternalError(BridgeError):
    """A callback handler failed or the document server answered with garbage."""

    status_code = 500


class TransportError(BridgeError):
    """HTTP failure talking to the document server or fetching a file."""

    status_code = 502


class CallbackStatusError(BridgeError):
    status_code = 400


class UnknownStatus(CallbackStatusError):
    pass


class CorruptedDocument(CallbackStatusError):
    pass
