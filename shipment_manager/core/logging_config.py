"""
Logging setup and helpers.

Modules log through ``logging.getLogger(__name__)``; this module only wires
the root level and masks credentials before gateway config is logged.
"""
import logging
from typing import Any, Mapping

from shipment_manager.core.config import settings

SECRET_KEYS = frozenset({"password", "token", "apikey", "api_key", "secret"})
MASK = "***"


def configure_logging(level: str = None) -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=level or settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def mask_secrets(data: Any) -> Any:
    """
    Return a copy of ``data`` with credential values replaced.

    Nested mappings and lists are walked; key matching is case-insensitive.
    """
    if isinstance(data, Mapping):
        return {
            key: MASK if str(key).lower() in SECRET_KEYS and value else mask_secrets(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [mask_secrets(item) for item in data]
    return data
