"""Duration values encoded as human-readable time-span strings.

A duration string is a possibly signed sequence of decimal numbers, each with
an optional fraction and a unit suffix, such as ``"300ms"``, ``"-1.5h"`` or
``"2h45m"``. Valid units are ``ns``, ``us`` (or ``µs``), ``ms``, ``s``, ``m``
and ``h``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .document import Node, StringNode, dumps_value, node_kind, node_to_value, parse_node
from .errors import ParseError, ShapeError
from .logging import get_logger

__all__ = [
    "NANOSECOND",
    "MICROSECOND",
    "MILLISECOND",
    "SECOND",
    "MINUTE",
    "HOUR",
    "DurationValue",
    "format_duration",
    "parse_duration",
]

logger = get_logger(__name__)

NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE

# Spans are bounded to a signed 64-bit count of nanoseconds.
MAX_DURATION = (1 << 63) - 1
MIN_DURATION = -(1 << 63)

UNITS: dict[str, int] = {
    "ns": NANOSECOND,
    "us": MICROSECOND,
    "µs": MICROSECOND,  # MICRO SIGN
    "μs": MICROSECOND,  # GREEK SMALL LETTER MU
    "ms": MILLISECOND,
    "s": SECOND,
    "m": MINUTE,
    "h": HOUR,
}

_DIGITS = "0123456789"


# Whole parts beyond this cannot fit whatever the unit.
_MAX_WHOLE = -MIN_DURATION
# Fraction digits past this cannot change a nanosecond total.
_MAX_FRACTION_SCALE = 10**19


def _leading_int(text: str, pos: int, original: str) -> tuple[int, int]:
    value = 0
    while pos < len(text) and text[pos] in _DIGITS:
        value = value * 10 + _DIGITS.index(text[pos])
        if value > _MAX_WHOLE:
            raise ParseError(original, "duration out of range")
        pos += 1
    return value, pos


def _leading_fraction(text: str, pos: int) -> tuple[int, int, int]:
    """Return the fraction digits as ``(value, scale, end)``, ignoring excess precision."""

    value, scale = 0, 1
    while pos < len(text) and text[pos] in _DIGITS:
        if scale < _MAX_FRACTION_SCALE:
            value = value * 10 + _DIGITS.index(text[pos])
            scale *= 10
        pos += 1
    return value, scale, pos


def parse_duration(text: str) -> int:
    """Parse a duration string into a signed number of nanoseconds."""

    original = text
    pos = 0
    negative = False
    if text[:1] in ("-", "+"):
        negative = text[0] == "-"
        pos = 1
    # A bare zero is the only term allowed without a unit.
    if text[pos:] == "0":
        return 0
    if pos == len(text):
        raise ParseError(original, "invalid duration")

    total = 0
    while pos < len(text):
        if text[pos] != "." and text[pos] not in _DIGITS:
            raise ParseError(original, "invalid duration")

        whole, next_pos = _leading_int(text, pos, original)
        has_whole = next_pos != pos
        pos = next_pos

        fraction, scale, has_fraction = 0, 1, False
        if pos < len(text) and text[pos] == ".":
            pos += 1
            fraction_start = pos
            fraction, scale, pos = _leading_fraction(text, pos)
            has_fraction = pos != fraction_start
        if not has_whole and not has_fraction:
            raise ParseError(original, "invalid duration")

        unit_start = pos
        while pos < len(text) and text[pos] != "." and text[pos] not in _DIGITS:
            pos += 1
        if pos == unit_start:
            raise ParseError(original, "missing unit in duration")
        unit_name = text[unit_start:pos]
        unit = UNITS.get(unit_name)
        if unit is None:
            raise ParseError(original, f"unknown unit {unit_name!r} in duration")

        total += whole * unit + fraction * unit // scale
        if total > -MIN_DURATION:
            raise ParseError(original, "duration out of range")

    if negative:
        return -total
    if total > MAX_DURATION:
        raise ParseError(original, "duration out of range")
    return total


def _format_fraction(value: int, precision: int) -> tuple[str, int]:
    """Split off ``precision`` decimal digits, dropping trailing zeros."""

    digits: list[str] = []
    printed = False
    for _ in range(precision):
        digit = value % 10
        printed = printed or digit != 0
        if printed:
            digits.append(str(digit))
        value //= 10
    if not printed:
        return "", value
    return "." + "".join(reversed(digits)), value


def format_duration(nanoseconds: int) -> str:
    """Return the canonical text for a span, e.g. ``"2h45m0s"`` or ``"300ms"``.

    Spans under one second use a single sub-second unit; longer spans are
    broken into hours, minutes and (always present) seconds.
    """

    magnitude = abs(nanoseconds)
    sign = "-" if nanoseconds < 0 else ""
    if magnitude == 0:
        return "0s"

    if magnitude < SECOND:
        if magnitude < MICROSECOND:
            unit, precision = "ns", 0
        elif magnitude < MILLISECOND:
            unit, precision = "µs", 3
        else:
            unit, precision = "ms", 6
        fraction, whole = _format_fraction(magnitude, precision)
        return f"{sign}{whole}{fraction}{unit}"

    fraction, seconds = _format_fraction(magnitude, 9)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    parts = [sign]
    if hours:
        parts.append(f"{hours}h")
    if hours or minutes:
        parts.append(f"{minutes}m")
    parts.append(f"{seconds}{fraction}s")
    return "".join(parts)


def _check_range(nanoseconds: int) -> int:
    if not MIN_DURATION <= nanoseconds <= MAX_DURATION:
        raise ValueError(f"duration {nanoseconds}ns is outside the representable range")
    return nanoseconds


@dataclass(slots=True, order=True)
class DurationValue:
    """A signed span of time stored as whole nanoseconds."""

    nanoseconds: int = 0

    def __post_init__(self) -> None:
        self.nanoseconds = _check_range(int(self.nanoseconds))

    @classmethod
    def parse(cls, text: str) -> "DurationValue":
        return cls(parse_duration(text))

    @classmethod
    def from_timedelta(cls, value: timedelta) -> "DurationValue":
        micros = (value.days * 86_400 + value.seconds) * 1_000_000 + value.microseconds
        return cls(micros * MICROSECOND)

    @classmethod
    def from_json(cls, data: str | bytes) -> "DurationValue":
        duration = cls()
        duration.load_json(data)
        return duration

    def as_timedelta(self) -> timedelta:
        """The span as a :class:`datetime.timedelta`, truncated to microseconds."""

        micros = abs(self.nanoseconds) // MICROSECOND
        return timedelta(microseconds=-micros if self.nanoseconds < 0 else micros)

    def total_seconds(self) -> float:
        return self.nanoseconds / SECOND

    def encode(self) -> str:
        return format_duration(self.nanoseconds)

    def to_node(self) -> StringNode:
        return StringNode(self.encode())

    def to_json(self) -> str:
        return dumps_value(self.encode())

    def decode(self, node: Node | None) -> None:
        """Populate the span from a string node."""

        if not isinstance(node, StringNode):
            raw = "" if node is None else dumps_value(node_to_value(node))
            logger.debug("Rejected duration node of kind %s", node_kind(node))
            raise ShapeError(raw, expected="string", actual=node_kind(node))
        try:
            self.nanoseconds = parse_duration(node.value)
        except ParseError as exc:
            logger.debug("Invalid duration %r: %s", node.value, exc.cause)
            raise ParseError(
                node.value,
                exc.cause,
                message=f"error parsing {node.value} as duration: {exc.cause}",
            ) from exc

    def load_json(self, data: str | bytes) -> None:
        self.decode(parse_node(data))

    def __str__(self) -> str:
        return self.encode()

    def __repr__(self) -> str:
        return f"DurationValue({self.encode()!r})"

    def __bool__(self) -> bool:
        return self.nanoseconds != 0

    def __neg__(self) -> "DurationValue":
        if self.nanoseconds == MIN_DURATION:
            raise OverflowError("cannot negate the most negative duration")
        return DurationValue(-self.nanoseconds)

