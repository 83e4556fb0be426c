import json
from pathlib import Path

import pytest

from authority_config import Config, load_config
from authority_config.config import ConfigError, hot_reload_config
from authority_config.duration import HOUR, MINUTE, SECOND, DurationValue
from authority_config.errors import ParseError
from authority_config.multistring import MultiString


def _base_args(*extra: str) -> list[str]:
    return [
        "--root",
        "root_ca.crt",
        "--crt",
        "intermediate_ca.crt",
        "--key",
        "intermediate_ca_key",
        "--dns-name",
        "ca.example.com",
        *extra,
    ]


def test_package_imports() -> None:
    """Importing the package should expose main APIs."""

    assert callable(load_config)
    assert Config is not None


def test_default_configuration() -> None:
    """Defaults should populate expected values when no overrides provided."""

    cfg = load_config(argv=_base_args(), environ={})

    assert cfg.root == ["root_ca.crt"]
    assert cfg.root.first() == "root_ca.crt"
    assert cfg.federated_roots == []
    assert cfg.address == "127.0.0.1:9000"
    assert cfg.password is None
    assert cfg.min_tls_cert_duration == DurationValue(5 * MINUTE)
    assert cfg.max_tls_cert_duration == DurationValue(24 * HOUR)
    assert cfg.default_tls_cert_duration == DurationValue(24 * HOUR)
    assert cfg.shutdown_timeout == DurationValue(5 * SECOND)
    assert cfg.config_file is None


def test_repeated_flags_build_multi_strings() -> None:
    cfg = load_config(
        argv=_base_args("--root", "second_root.crt", "--dns-name", "localhost", "--federated-root", "other.crt"),
        environ={},
    )

    assert isinstance(cfg.root, MultiString)
    assert cfg.root == ["root_ca.crt", "second_root.crt"]
    assert cfg.dns_names == ["ca.example.com", "localhost"]
    assert cfg.federated_roots == ["other.crt"]


def test_env_overrides() -> None:
    """Environment variables should override defaults."""

    environ = {
        "AUTHORITY_ROOT": "a.crt, b.crt",
        "AUTHORITY_CRT": "env.crt",
        "AUTHORITY_KEY": "env.key",
        "AUTHORITY_DNS_NAMES": "ca.internal",
        "AUTHORITY_MAX_TLS_CERT_DURATION": "48h",
    }

    cfg = load_config(argv=[], environ=environ)

    assert cfg.root == ["a.crt", "b.crt"]
    assert cfg.crt == "env.crt"
    assert cfg.dns_names == ["ca.internal"]
    assert cfg.max_tls_cert_duration == DurationValue(48 * HOUR)


def test_cli_overrides_take_precedence() -> None:
    """CLI arguments should override environment values."""

    environ = {"AUTHORITY_ROOT": "env_root.crt", "AUTHORITY_ADDRESS": "0.0.0.0:443"}

    cfg = load_config(argv=_base_args("--address", ":8443"), environ=environ)

    assert cfg.root == ["root_ca.crt"]
    assert cfg.address == ":8443"


def test_duration_flags_accept_compound_values() -> None:
    cfg = load_config(
        argv=_base_args(
            "--min-tls-cert-duration",
            "90s",
            "--default-tls-cert-duration",
            "1h30m",
            "--max-tls-cert-duration",
            "2.5h",
            "--shutdown-timeout",
            "750ms",
        ),
        environ={},
    )

    assert cfg.min_tls_cert_duration.nanoseconds == 90 * SECOND
    assert cfg.default_tls_cert_duration.nanoseconds == 90 * MINUTE
    assert cfg.max_tls_cert_duration.nanoseconds == 150 * MINUTE
    assert cfg.shutdown_timeout.encode() == "750ms"


@pytest.mark.parametrize("value", ["", "abc", "3x", "12"])
def test_invalid_duration_strings_raise(value: str) -> None:
    with pytest.raises(ConfigError) as excinfo:
        load_config(argv=_base_args("--shutdown-timeout", value), environ={})

    assert "shutdown_timeout" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, ParseError)


@pytest.mark.parametrize(
    ("extra", "message"),
    [
        (("--min-tls-cert-duration", "0s"), "min_tls_cert_duration must be greater than 0"),
        (("--min-tls-cert-duration", "48h"), "min_tls_cert_duration cannot be greater than max_tls_cert_duration"),
        (("--default-tls-cert-duration", "1m"), "default_tls_cert_duration cannot be less than min_tls_cert_duration"),
        (("--default-tls-cert-duration", "25h"), "default_tls_cert_duration cannot be greater than max_tls_cert_duration"),
        (("--shutdown-timeout=-1s",), "shutdown_timeout must be non-negative"),
    ],
)
def test_tls_duration_bounds_are_enforced(extra: tuple[str, ...], message: str) -> None:
    with pytest.raises(ConfigError) as excinfo:
        load_config(argv=_base_args(*extra), environ={})

    assert message in str(excinfo.value)


def test_missing_root_is_rejected() -> None:
    with pytest.raises(ConfigError) as excinfo:
        load_config(argv=["--crt", "a", "--key", "b", "--dns-name", "c"], environ={})

    assert "root cannot be empty" in str(excinfo.value)


def test_blank_root_entry_is_rejected() -> None:
    with pytest.raises(ConfigError) as excinfo:
        load_config(argv=_base_args("--root", ""), environ={})

    assert "root cannot be empty" in str(excinfo.value)


@pytest.mark.parametrize("missing", ["--crt", "--key"])
def test_missing_certificate_paths_are_rejected(missing: str) -> None:
    argv = _base_args()
    index = argv.index(missing)
    del argv[index : index + 2]

    with pytest.raises(ConfigError) as excinfo:
        load_config(argv=argv, environ={})

    assert f"{missing[2:]} cannot be empty" in str(excinfo.value)


def test_empty_dns_names_env_is_rejected() -> None:
    with pytest.raises(ConfigError) as excinfo:
        load_config(argv=["--root", "r", "--crt", "a", "--key", "b"], environ={"AUTHORITY_DNS_NAMES": ""})

    assert "dns_names cannot be empty" in str(excinfo.value)


def test_json_config_file(tmp_path: Path) -> None:
    """A JSON config file should be decoded through the adapters."""

    config_file = tmp_path / "ca.json"
    config_file.write_text(
        json.dumps(
            {
                "root": "file_root.crt",
                "federated_roots": ["fed_a.crt", "fed_b.crt"],
                "crt": "file.crt",
                "key": "file.key",
                "dns_names": ["ca.example.com", "127.0.0.1"],
                "claims": {"min_tls_cert_duration": "1m", "default_tls_cert_duration": "12h"},
                "shutdown_timeout": "1m30s",
                "unrelated": {"ignored": True},
            }
        ),
        encoding="utf-8",
    )

    cfg = load_config(argv=["--config-file", str(config_file)], environ={})

    assert cfg.root == ["file_root.crt"]
    assert cfg.federated_roots == ["fed_a.crt", "fed_b.crt"]
    assert cfg.dns_names == ["ca.example.com", "127.0.0.1"]
    assert cfg.min_tls_cert_duration == DurationValue.parse("1m")
    assert cfg.default_tls_cert_duration == DurationValue.parse("12h")
    assert cfg.max_tls_cert_duration == DurationValue.parse("24h")
    assert cfg.shutdown_timeout == DurationValue(90 * SECOND)
    assert cfg.config_file == config_file.resolve()


def test_config_file_numeric_duration_is_rejected(tmp_path: Path) -> None:
    config_file = tmp_path / "ca.json"
    config_file.write_text(
        json.dumps({"root": "r", "crt": "c", "key": "k", "dns_names": "d", "shutdown_timeout": 5}),
        encoding="utf-8",
    )

    with pytest.raises(ConfigError) as excinfo:
        load_config(argv=["--config-file", str(config_file)], environ={})

    assert "expected a duration string, got number" in str(excinfo.value)


def test_config_file_non_string_root_entry_is_rejected(tmp_path: Path) -> None:
    config_file = tmp_path / "ca.json"
    config_file.write_text(json.dumps({"root": ["a", 5]}), encoding="utf-8")

    with pytest.raises(ConfigError) as excinfo:
        load_config(argv=["--config-file", str(config_file)], environ={})

    assert "root.1" in str(excinfo.value)


def test_config_file_blank_dns_name_is_rejected(tmp_path: Path) -> None:
    config_file = tmp_path / "ca.json"
    config_file.write_text(
        json.dumps({"root": "r", "crt": "c", "key": "k", "dns_names": ["ca.example.com", ""]}),
        encoding="utf-8",
    )

    with pytest.raises(ConfigError) as excinfo:
        load_config(argv=["--config-file", str(config_file)], environ={})

    assert "dns_names cannot be empty" in str(excinfo.value)


def test_invalid_json_config_file_raises(tmp_path: Path) -> None:
    config_file = tmp_path / "ca.json"
    config_file.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(argv=_base_args("--config-file", str(config_file)), environ={})


def test_non_object_config_file_raises(tmp_path: Path) -> None:
    config_file = tmp_path / "ca.json"
    config_file.write_text(json.dumps(["root"]), encoding="utf-8")

    with pytest.raises(ConfigError) as excinfo:
        load_config(argv=_base_args("--config-file", str(config_file)), environ={})

    assert "must contain a JSON object" in str(excinfo.value)


def test_help_lists_duration_flags(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit):
        load_config(argv=["--help"], environ={})
    captured = capsys.readouterr().out
    assert "--min-tls-cert-duration" in captured
    assert "--dns-name" in captured


def test_hot_reload_is_refused() -> None:
    with pytest.raises(ConfigError):
        hot_reload_config()


def test_oversized_duration_is_config_error() -> None:
    with pytest.raises(ConfigError) as excinfo:
        load_config(argv=_base_args("--shutdown-timeout", "9" * 5000 + "s"), environ={})

    assert "shutdown_timeout" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, ParseError)
