"""Configuration — persisted key/value settings."""

from hostprep.core.config.store import ConfigError, ConfigStore

__all__ = ["ConfigError", "ConfigStore"]
