"""Configuration loading utilities for the certificate authority."""

from __future__ import annotations

import argparse
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Sequence

from jsonschema import Draft202012Validator

from .document import node_from_value
from .duration import DurationValue
from .errors import ParseError, ShapeError
from .multistring import MultiString

ENV_PREFIX = "AUTHORITY_"

DEFAULT_ADDRESS = "127.0.0.1:9000"
DEFAULT_MIN_TLS_CERT_DURATION = "5m"
DEFAULT_MAX_TLS_CERT_DURATION = "24h"
DEFAULT_DEFAULT_TLS_CERT_DURATION = "24h"
DEFAULT_SHUTDOWN_TIMEOUT = "5s"

DURATION_FIELDS = (
    "min_tls_cert_duration",
    "max_tls_cert_duration",
    "default_tls_cert_duration",
)
LIST_FIELDS = ("root", "federated_roots", "dns_names")

ENV_FIELD_MAP = {
    "config_file": f"{ENV_PREFIX}CONFIG_FILE",
    "root": f"{ENV_PREFIX}ROOT",
    "federated_roots": f"{ENV_PREFIX}FEDERATED_ROOTS",
    "crt": f"{ENV_PREFIX}CRT",
    "key": f"{ENV_PREFIX}KEY",
    "address": f"{ENV_PREFIX}ADDRESS",
    "dns_names": f"{ENV_PREFIX}DNS_NAMES",
    "password": f"{ENV_PREFIX}PASSWORD",
    "min_tls_cert_duration": f"{ENV_PREFIX}MIN_TLS_CERT_DURATION",
    "max_tls_cert_duration": f"{ENV_PREFIX}MAX_TLS_CERT_DURATION",
    "default_tls_cert_duration": f"{ENV_PREFIX}DEFAULT_TLS_CERT_DURATION",
    "shutdown_timeout": f"{ENV_PREFIX}SHUTDOWN_TIMEOUT",
}

DEFAULT_VALUES: dict[str, Any] = {
    "config_file": None,
    "root": None,
    "federated_roots": None,
    "crt": None,
    "key": None,
    "address": DEFAULT_ADDRESS,
    "dns_names": None,
    "password": None,
    "min_tls_cert_duration": DEFAULT_MIN_TLS_CERT_DURATION,
    "max_tls_cert_duration": DEFAULT_MAX_TLS_CERT_DURATION,
    "default_tls_cert_duration": DEFAULT_DEFAULT_TLS_CERT_DURATION,
    "shutdown_timeout": DEFAULT_SHUTDOWN_TIMEOUT,
}

_STRING_OR_LIST = {
    "type": ["string", "array", "null"],
    "items": {"type": "string"},
}
_OPTIONAL_STRING = {"type": ["string", "null"]}

CONFIG_FILE_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "root": _STRING_OR_LIST,
        "federated_roots": _STRING_OR_LIST,
        "crt": _OPTIONAL_STRING,
        "key": _OPTIONAL_STRING,
        "address": _OPTIONAL_STRING,
        "dns_names": _STRING_OR_LIST,
        "password": _OPTIONAL_STRING,
        "claims": {"type": ["object", "null"]},
    },
}

_SCHEMA_VALIDATOR = Draft202012Validator(CONFIG_FILE_SCHEMA)


class ConfigError(ValueError):
    """Raised when configuration values are invalid."""


@dataclass(slots=True)
class Config:
    """Configuration model for the certificate authority."""

    root: MultiString
    crt: str
    key: str
    address: str
    dns_names: MultiString
    min_tls_cert_duration: DurationValue
    max_tls_cert_duration: DurationValue
    default_tls_cert_duration: DurationValue
    shutdown_timeout: DurationValue
    federated_roots: list[str] = field(default_factory=list)
    password: str | None = None
    config_file: Path | None = None


def load_config(
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Load configuration from CLI arguments, environment variables, and optional file."""

    parser = build_arg_parser()
    parsed = parser.parse_args(argv)
    cli_values = {k: v for k, v in vars(parsed).items() if v is not None}

    env_values = _extract_env_values(environ if environ is not None else os.environ)

    config_path_value = cli_values.get("config_file") or env_values.get("config_file")
    file_values = _load_config_file(config_path_value)

    merged: dict[str, Any] = {}
    _merge_layer(merged, DEFAULT_VALUES)
    _merge_layer(merged, file_values)
    _merge_layer(merged, env_values)
    _merge_layer(merged, cli_values)

    config = _normalize_values(merged, config_path_value)

    _maybe_write_config_file(config)
    return config


def hot_reload_config(*_args: Any, **_kwargs: Any) -> None:
    """Explicitly prevent runtime configuration reloading."""

    raise ConfigError("Configuration can only be loaded during startup. Restart the authority to apply changes.")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="authority-config",
        description="Load, validate and print the certificate authority configuration.",
        add_help=False,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("-h", "--help", action="help", help="Show this help message and exit.")
    parser.add_argument(
        "--config-file",
        dest="config_file",
        metavar="PATH",
        help="Path to a JSON configuration file (created from the resolved values when missing).",
    )
    parser.add_argument(
        "--root",
        dest="root",
        action="append",
        metavar="PATH",
        help="Root certificate path (may be repeated; replaces values from file and environment).",
    )
    parser.add_argument(
        "--federated-root",
        dest="federated_roots",
        action="append",
        metavar="PATH",
        help="Federated root certificate path (may be repeated).",
    )
    parser.add_argument("--crt", dest="crt", metavar="PATH", help="Intermediate certificate path.")
    parser.add_argument("--key", dest="key", metavar="PATH", help="Intermediate private key path.")
    parser.add_argument("--address", dest="address", metavar="HOST:PORT", help=f"Listen address (default: {DEFAULT_ADDRESS}).")
    parser.add_argument(
        "--dns-name",
        dest="dns_names",
        action="append",
        metavar="NAME",
        help="DNS name served by the authority (may be repeated).",
    )
    parser.add_argument("--password", dest="password", metavar="SECRET", help="Password for the intermediate key.")

    parser.add_argument(
        "--min-tls-cert-duration",
        dest="min_tls_cert_duration",
        metavar="DURATION",
        help=f"Shortest TLS certificate lifetime, e.g. 300s or 1h30m (default: {DEFAULT_MIN_TLS_CERT_DURATION}).",
    )
    parser.add_argument(
        "--max-tls-cert-duration",
        dest="max_tls_cert_duration",
        metavar="DURATION",
        help=f"Longest TLS certificate lifetime (default: {DEFAULT_MAX_TLS_CERT_DURATION}).",
    )
    parser.add_argument(
        "--default-tls-cert-duration",
        dest="default_tls_cert_duration",
        metavar="DURATION",
        help=f"TLS certificate lifetime when none is requested (default: {DEFAULT_DEFAULT_TLS_CERT_DURATION}).",
    )
    parser.add_argument(
        "--shutdown-timeout",
        dest="shutdown_timeout",
        metavar="DURATION",
        help=f"Graceful shutdown timeout (default: {DEFAULT_SHUTDOWN_TIMEOUT}).",
    )

    return parser


def _extract_env_values(env: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for name, env_name in ENV_FIELD_MAP.items():
        if env_name not in env:
            continue
        raw = env[env_name]
        if name in LIST_FIELDS:
            values[name] = [item.strip() for item in raw.split(",")] if raw.strip() else []
        else:
            values[name] = raw
    return values


def _load_config_file(path_value: str | Path | None) -> dict[str, Any]:
    if not path_value:
        return {}
    path = _parse_path(path_value, field="config_file")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file is not valid JSON: {path}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Config file must contain a JSON object")
    _validate_document(data, path)

    claims = data.get("claims") or {}
    result: dict[str, Any] = {k: v for k, v in data.items() if k in DEFAULT_VALUES}
    for name in DURATION_FIELDS:
        if name in claims:
            result[name] = claims[name]
    result["config_file"] = str(path)
    return result


def _validate_document(data: Mapping[str, Any], path: Path) -> None:
    errors = sorted(_SCHEMA_VALIDATOR.iter_errors(data), key=lambda error: [str(part) for part in error.absolute_path])
    if not errors:
        return
    error = errors[0]
    location = ".".join(str(part) for part in error.absolute_path) or "<document>"
    raise ConfigError(f"Config file {path} is invalid at {location}: {error.message}")


def _merge_layer(base: MutableMapping[str, Any], overrides: Mapping[str, Any]) -> None:
    for key, value in overrides.items():
        if value is None:
            continue
        base[key] = value


def _normalize_values(values: Mapping[str, Any], config_path_value: str | Path | None) -> Config:
    root = _parse_multi_string(values.get("root"), field="root")
    if root.has_empties():
        raise ConfigError("root cannot be empty")
    federated_roots = _parse_multi_string(values.get("federated_roots"), field="federated_roots").to_list()
    if any(not item for item in federated_roots):
        raise ConfigError("federated_roots cannot contain empty entries")

    crt = _parse_required_str(values.get("crt"), field="crt")
    key = _parse_required_str(values.get("key"), field="key")
    address = _parse_required_str(values.get("address", DEFAULT_VALUES["address"]), field="address")

    dns_names = _parse_multi_string(values.get("dns_names"), field="dns_names")
    if dns_names.has_empties():
        raise ConfigError("dns_names cannot be empty")

    password_value = values.get("password")
    password = str(password_value) if password_value is not None else None

    min_tls = _parse_duration(values.get("min_tls_cert_duration", DEFAULT_VALUES["min_tls_cert_duration"]), field="min_tls_cert_duration")
    max_tls = _parse_duration(values.get("max_tls_cert_duration", DEFAULT_VALUES["max_tls_cert_duration"]), field="max_tls_cert_duration")
    default_tls = _parse_duration(
        values.get("default_tls_cert_duration", DEFAULT_VALUES["default_tls_cert_duration"]),
        field="default_tls_cert_duration",
    )
    if min_tls.nanoseconds <= 0:
        raise ConfigError("min_tls_cert_duration must be greater than 0")
    if min_tls > max_tls:
        raise ConfigError("min_tls_cert_duration cannot be greater than max_tls_cert_duration")
    if default_tls < min_tls:
        raise ConfigError("default_tls_cert_duration cannot be less than min_tls_cert_duration")
    if default_tls > max_tls:
        raise ConfigError("default_tls_cert_duration cannot be greater than max_tls_cert_duration")

    shutdown_timeout = _parse_duration(values.get("shutdown_timeout", DEFAULT_VALUES["shutdown_timeout"]), field="shutdown_timeout")
    if shutdown_timeout.nanoseconds < 0:
        raise ConfigError("shutdown_timeout must be non-negative")

    config_file_path = _parse_optional_path(config_path_value, field="config_file")

    return Config(
        root=root,
        federated_roots=federated_roots,
        crt=crt,
        key=key,
        address=address,
        dns_names=dns_names,
        password=password,
        min_tls_cert_duration=min_tls,
        max_tls_cert_duration=max_tls,
        default_tls_cert_duration=default_tls,
        shutdown_timeout=shutdown_timeout,
        config_file=config_file_path,
    )


def serialize_config(config: Config) -> dict[str, Any]:
    """Return the wire form of ``config`` using the adapters' canonical encodings."""

    return {
        "root": config.root.encode(),
        "federated_roots": list(config.federated_roots),
        "crt": config.crt,
        "key": config.key,
        "address": config.address,
        "dns_names": config.dns_names.encode(),
        "password": config.password,
        "claims": {name: getattr(config, name).encode() for name in DURATION_FIELDS},
        "shutdown_timeout": config.shutdown_timeout.encode(),
    }


def _maybe_write_config_file(config: Config) -> None:
    path = config.config_file
    if path is None:
        return

    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists():
        return

    payload = serialize_config(config)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def _parse_multi_string(value: Any, *, field: str) -> MultiString:
    if isinstance(value, MultiString):
        return value
    target = MultiString()
    try:
        target.decode(None if value is None else node_from_value(value))
    except ParseError as exc:
        raise ConfigError(f"Invalid value for {field}: {exc.cause}") from exc
    return target


def _parse_duration(value: Any, *, field: str) -> DurationValue:
    if isinstance(value, DurationValue):
        return value
    duration = DurationValue()
    try:
        duration.decode(node_from_value(value))
    except ShapeError as exc:
        raise ConfigError(f"Invalid duration for {field}: expected a duration string, got {exc.actual}") from exc
    except ParseError as exc:
        raise ConfigError(f"Invalid duration for {field}: {value!r} ({exc.cause})") from exc
    return duration


def _parse_required_str(value: Any, *, field: str) -> str:
    if value is None:
        raise ConfigError(f"{field} cannot be empty")
    if not isinstance(value, str):
        raise ConfigError(f"Invalid string for {field}: {value!r}")
    stripped = value.strip()
    if not stripped:
        raise ConfigError(f"{field} cannot be empty")
    return stripped


def _parse_path(value: Any, *, field: str) -> Path:
    if isinstance(value, Path):
        return value.expanduser().resolve()
    if not isinstance(value, str):
        raise ConfigError(f"Invalid path for {field}: {value!r}")
    stripped = value.strip()
    if not stripped:
        raise ConfigError(f"{field} may not be empty")
    return Path(stripped).expanduser().resolve()


def _parse_optional_path(value: Any, *, field: str) -> Path | None:
    if value in (None, ""):
        return None
    return _parse_path(value, field=field)
