"""
daogov TOML Configuration Loader

Loads client defaults from a TOML file with environment variable overrides,
using the dataclass + from_dict + from_file pattern.

Environment variable mapping:
    [defaults] voting_period    → DAOGOV_VOTING_PERIOD
    [defaults] execution_delay  → DAOGOV_EXECUTION_DELAY
    [logging] level             → DAOGOV_LOG_LEVEL
    [logging] file              → DAOGOV_LOG_FILE
    (config file path)          → DAOGOV_CONFIG

Example config.toml:

    [defaults]
    voting_period = "5 days"
    execution_delay = "1 day"
    quorum = 10
    approval_threshold = 50

    [time_weight]
    curve = "linear"
    max_multiplier = 2.0
    max_duration_seconds = 31536000

    [logging]
    level = "INFO"
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import (
    DEFAULT_EXECUTION_DELAY_SECONDS,
    DEFAULT_VOTING_PERIOD_SECONDS,
    PERCENT_MAX,
    PERCENT_MIN,
    TIME_WEIGHT_DEFAULT_CURVE,
    TIME_WEIGHT_DEFAULT_MAX_DURATION_SECONDS,
    TIME_WEIGHT_DEFAULT_MAX_MULTIPLIER,
)
from ..exceptions import ValidationError
from ..governance.dao import parse_duration
from ..governance.voting import TimeWeightConfig
from ..logger import configure_logging

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class DefaultsConfig:
    """[defaults] section; fills DAO settings the caller leaves out."""
    voting_period: Union[int, str] = DEFAULT_VOTING_PERIOD_SECONDS
    execution_delay: Union[int, str] = DEFAULT_EXECUTION_DELAY_SECONDS
    quorum: int = 10
    approval_threshold: int = 50

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DefaultsConfig":
        return cls(
            voting_period=data.get("voting_period", DEFAULT_VOTING_PERIOD_SECONDS),
            execution_delay=data.get("execution_delay", DEFAULT_EXECUTION_DELAY_SECONDS),
            quorum=data.get("quorum", 10),
            approval_threshold=data.get("approval_threshold", 50),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("DAOGOV_VOTING_PERIOD"):
            self.voting_period = int(v) if v.isdigit() else v
        if v := os.environ.get("DAOGOV_EXECUTION_DELAY"):
            self.execution_delay = int(v) if v.isdigit() else v

    @property
    def voting_period_seconds(self) -> int:
        return parse_duration(self.voting_period)

    @property
    def execution_delay_seconds(self) -> int:
        return parse_duration(self.execution_delay)


@dataclass
class TimeWeightSectionConfig:
    """[time_weight] section."""
    curve: str = TIME_WEIGHT_DEFAULT_CURVE
    max_multiplier: float = TIME_WEIGHT_DEFAULT_MAX_MULTIPLIER
    max_duration_seconds: int = TIME_WEIGHT_DEFAULT_MAX_DURATION_SECONDS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimeWeightSectionConfig":
        return cls(
            curve=data.get("curve", TIME_WEIGHT_DEFAULT_CURVE),
            max_multiplier=float(data.get("max_multiplier", TIME_WEIGHT_DEFAULT_MAX_MULTIPLIER)),
            max_duration_seconds=data.get(
                "max_duration_seconds", TIME_WEIGHT_DEFAULT_MAX_DURATION_SECONDS
            ),
        )

    def to_time_weight_config(self) -> TimeWeightConfig:
        return TimeWeightConfig(
            curve=self.curve,
            max_multiplier=self.max_multiplier,
            max_duration_seconds=self.max_duration_seconds,
        )


@dataclass
class LoggingConfig:
    """[logging] section."""
    level: str = "INFO"
    file: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(
            level=str(data.get("level", "INFO")).upper(),
            file=data.get("file"),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("DAOGOV_LOG_LEVEL"):
            self.level = v.upper()
        if v := os.environ.get("DAOGOV_LOG_FILE"):
            self.file = v

    def apply(self) -> None:
        """Reconfigure the package logger from this section."""
        configure_logging(log_level=self.level, log_file=self.file)


@dataclass
class GovernanceConfig:
    """
    Client configuration.

    Holds every section of config.toml after environment overrides.
    """
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    time_weight: TimeWeightSectionConfig = field(default_factory=TimeWeightSectionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # --- factories --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GovernanceConfig":
        """Create GovernanceConfig from a parsed TOML dict."""
        return cls(
            defaults=DefaultsConfig.from_dict(data.get("defaults", {})),
            time_weight=TimeWeightSectionConfig.from_dict(data.get("time_weight", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "GovernanceConfig":
        """
        Load configuration from a TOML file.

        A missing file yields the defaults (with env overrides).
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        with open(path, "rb") as f:
            raw = tomli.load(f)

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.defaults.apply_env()
        self.logging.apply_env()

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            ValueError: on invalid config
        """
        try:
            self.defaults.voting_period_seconds
            self.defaults.execution_delay_seconds
        except ValidationError as e:
            raise ValueError(str(e)) from e
        if not PERCENT_MIN <= self.defaults.quorum <= PERCENT_MAX:
            raise ValueError(f"quorum must be between {PERCENT_MIN} and {PERCENT_MAX}")
        if not PERCENT_MIN <= self.defaults.approval_threshold <= PERCENT_MAX:
            raise ValueError(
                f"approval_threshold must be between {PERCENT_MIN} and {PERCENT_MAX}"
            )
        try:
            self.time_weight.to_time_weight_config()
        except ValidationError as e:
            raise ValueError(str(e)) from e
        if self.logging.level not in _LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.logging.level}")
        return True

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics, NOT for re-creating TOML)."""
        return {
            "defaults": {
                "voting_period": self.defaults.voting_period,
                "execution_delay": self.defaults.execution_delay,
                "quorum": self.defaults.quorum,
                "approval_threshold": self.defaults.approval_threshold,
            },
            "time_weight": {
                "curve": self.time_weight.curve,
                "max_multiplier": self.time_weight.max_multiplier,
                "max_duration_seconds": self.time_weight.max_duration_seconds,
            },
            "logging": {
                "level": self.logging.level,
                "file": self.logging.file,
            },
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> GovernanceConfig:
    """
    Load client configuration.

    The [logging] section is applied to the package logger.

    Resolution order:
        1. Explicit *path* argument
        2. DAOGOV_CONFIG env var
        3. ./daogov.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("DAOGOV_CONFIG", "daogov.toml")

    cfg = GovernanceConfig.from_file(path)
    cfg.logging.apply()
    return cfg
