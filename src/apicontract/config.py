"""
Runtime configuration for apicontract.

Configuration priority (highest to lowest):
1. Command line flags
2. Environment variables (APICONTRACT_* prefix)
3. Defaults

Usage:
    from apicontract.config import load_config

    config = load_config()
    print(config.document_path)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class ValidatorConfig:
    """Settings for a validation run."""

    document_path: Path = Path("index.yaml")
    suite_path: Path = Path("contracts")
    log_level: str = "WARNING"
    json_logging: bool = False
    check_invariants: bool = True

    @property
    def log_level_number(self) -> int:
        return getattr(logging, self.log_level, logging.WARNING)

    def to_env_dict(self) -> dict[str, str]:
        return {
            "APICONTRACT_DOCUMENT": str(self.document_path),
            "APICONTRACT_SUITE": str(self.suite_path),
            "APICONTRACT_LOG_LEVEL": self.log_level,
            "APICONTRACT_JSON_LOGGING": "true" if self.json_logging else "false",
            "APICONTRACT_INVARIANTS": "true" if self.check_invariants else "false",
        }


def _get_env_str(key: str, default: str) -> str:
    """Get string from environment."""
    return os.environ.get(key, default)


def _get_env_bool(key: str, default: bool) -> bool:
    """Get boolean from environment."""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _get_env_log_level(key: str, default: str) -> str:
    val = os.environ.get(key)
    if val is None or val.upper() not in _LOG_LEVELS:
        return default
    return val.upper()


def load_config() -> ValidatorConfig:
    """Build configuration from environment variables; bad values fall back to defaults."""
    defaults = ValidatorConfig()
    return ValidatorConfig(
        document_path=Path(_get_env_str("APICONTRACT_DOCUMENT", str(defaults.document_path))),
        suite_path=Path(_get_env_str("APICONTRACT_SUITE", str(defaults.suite_path))),
        log_level=_get_env_log_level("APICONTRACT_LOG_LEVEL", defaults.log_level),
        json_logging=_get_env_bool("APICONTRACT_JSON_LOGGING", defaults.json_logging),
        check_invariants=_get_env_bool("APICONTRACT_INVARIANTS", defaults.check_invariants),
    )
