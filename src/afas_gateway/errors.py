"""Exceptions raised by the AFAS gateway client.

Every error carries a numeric ``code`` so callers can tell apart failures
that share a class (e.g. the different argument validation problems).
Transport and remote faults are not wrapped; they propagate from requests/zeep.
"""

from __future__ import annotations

from typing import Any


class GatewayError(Exception):
    code: int = 0

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class ConfigurationError(GatewayError, ValueError):
    """Client cannot be constructed with the given settings."""

    code = 1


class ArgumentValidationError(GatewayError, ValueError):
    """Call arguments were rejected before anything was sent."""

    code = 40


class ResponseFormatError(GatewayError, RuntimeError):
    """The transport returned a response shape we don't know how to unwrap."""

    code = 24

    def __init__(self, message: str, *, response: Any = None, code: int | None = None) -> None:
        super().__init__(message, code=code)
        self.response = response
