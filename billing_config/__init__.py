"""
billing_config -- single public entrypoint for billing configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    directly.

Architecture position:
    Configuration -- sits above ``billing_kernel``.  The kernel MUST NEVER
    import from ``billing_config``; ``billing_config.bridges`` translates
    the configuration into kernel inputs.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``KeyError`` / ``ValueError`` -- missing keys or invalid values.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``BILLING_CONFIG_TRACE`` log entry with the config id, version and
    checksum, tying billing runs to the exact configuration in force.
"""

from __future__ import annotations

import logging
from pathlib import Path

from billing_config.loader import load_yaml_file, parse_configuration
from billing_config.schema import BillingConfiguration

_logger = logging.getLogger("billing_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "billing.yaml"


def get_active_config(path: Path | None = None) -> BillingConfiguration:
    """The ONLY public configuration entrypoint.

    Args:
        path: Override path to the YAML file.  Defaults to
            billing_config/defaults/billing.yaml.

    Returns:
        BillingConfiguration with its checksum set.
    """
    config_path = path or _DEFAULT_CONFIG_PATH
    config = parse_configuration(load_yaml_file(config_path))

    _logger.info(
        "BILLING_CONFIG_TRACE",
        extra={
            "trace_type": "BILLING_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "config_path": str(config_path),
            "metered_resource_count": len(config.metering),
        },
    )
    return config


__all__ = ["BillingConfiguration", "get_active_config"]
