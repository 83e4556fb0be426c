"""Command line entry point that validates and prints the authority configuration."""

from __future__ import annotations

import json
import sys

from .config import ConfigError, load_config, serialize_config
from .errors import CONFIG_ERROR, error_payload
from .logging import configure_logging, get_logger

LOGGER = get_logger(__name__)


def main(argv: list[str] | None = None) -> None:
    """Load the configuration and write its normalized form to stdout."""

    configure_logging()
    try:
        config = load_config(argv)
    except ConfigError as exc:
        LOGGER.error(
            "Invalid configuration: %s",
            exc,
            exc_info=exc,
            extra={"context": error_payload(CONFIG_ERROR, str(exc))},
        )
        raise SystemExit(1) from exc

    LOGGER.info(
        "Configuration loaded",
        extra={
            "context": {
                "config_file": str(config.config_file) if config.config_file else None,
                "address": config.address,
                "roots": len(config.root),
                "dns_names": len(config.dns_names),
                "default_tls_cert_duration": config.default_tls_cert_duration.encode(),
            }
        },
    )

    sys.stdout.write(json.dumps(serialize_config(config), indent=2, ensure_ascii=False) + "\n")


if __name__ == "__main__":  # pragma: no cover - manual invocation only
    main()
