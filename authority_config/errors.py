"""Centralized error codes and exception types for the configuration adapters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

__all__ = [
    "PARSE_ERROR",
    "SHAPE_ERROR",
    "INVALID_TARGET",
    "CONFIG_ERROR",
    "AuthorityConfigError",
    "ParseError",
    "ShapeError",
    "InvalidTargetError",
    "error_payload",
]

PARSE_ERROR = "PARSE_ERROR"
SHAPE_ERROR = "SHAPE_ERROR"
INVALID_TARGET = "INVALID_TARGET"
CONFIG_ERROR = "CONFIG_ERROR"


@dataclass(slots=True)
class AuthorityConfigError(Exception):
    """Domain-specific exception carrying an error code and message."""

    code: str
    message: str
    details: Mapping[str, Any] | None = None

    def __str__(self) -> str:  # pragma: no cover - delegation to message
        return self.message

    def to_dict(self) -> dict[str, Any]:
        return error_payload(self.code, self.message, details=self.details)


class ParseError(AuthorityConfigError):
    """The document node has an acceptable kind but its content is invalid.

    ``raw`` holds the offending input text and ``cause`` the proximate failure,
    either an exception or a short description.
    """

    def __init__(self, raw: str, cause: BaseException | str, *, message: str | None = None, code: str = PARSE_ERROR) -> None:
        self.raw = raw
        self.cause = cause
        if message is None:
            message = f"error parsing {raw!r}: {cause}"
        AuthorityConfigError.__init__(self, code, message, {"raw": raw, "cause": str(cause)})


class ShapeError(ParseError):
    """The document node is not of the expected kind."""

    def __init__(self, raw: str, *, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            raw,
            f"expected {expected}, got {actual}",
            message=f"error decoding {raw!r}: expected {expected}, got {actual}",
            code=SHAPE_ERROR,
        )


class InvalidTargetError(AuthorityConfigError):
    """Decode was asked to populate a target that does not exist."""

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        AuthorityConfigError.__init__(self, INVALID_TARGET, f"{type_name} cannot be None")


def error_payload(code: str, message: str, *, details: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Build a structured error payload for diagnostics output."""

    payload: dict[str, Any] = {
        "code": code,
        "message": message,
    }
    if details:
        payload["details"] = dict(details)
    return payload
