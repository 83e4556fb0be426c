"""String-or-list and duration adapters for certificate authority configuration."""

from .config import Config, ConfigError, load_config
from .duration import DurationValue, format_duration, parse_duration
from .errors import InvalidTargetError, ParseError, ShapeError
from .logging import configure_logging
from .multistring import MultiString, unmarshal_multi_string

__all__ = [
    "Config",
    "ConfigError",
    "load_config",
    "DurationValue",
    "format_duration",
    "parse_duration",
    "InvalidTargetError",
    "ParseError",
    "ShapeError",
    "configure_logging",
    "MultiString",
    "unmarshal_multi_string",
]
