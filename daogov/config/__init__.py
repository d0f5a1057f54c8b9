"""
daogov Configuration

Loads daogov.toml; environment variables override TOML values.
"""

from .loader import (
    DefaultsConfig,
    GovernanceConfig,
    LoggingConfig,
    TimeWeightSectionConfig,
    load_config,
)

__all__ = [
    "DefaultsConfig",
    "GovernanceConfig",
    "LoggingConfig",
    "TimeWeightSectionConfig",
    "load_config",
]
