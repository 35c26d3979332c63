"""
Configuration store — persisted key/value settings in YAML.

The store is explicitly constructed and passed to whoever needs it;
there is no process-wide singleton. Access is guarded by a re-entrant
lock because the CLI layer may read and write it independently of an
in-flight orchestration run.

File location, in precedence order:
    --config CLI option  >  HOSTPREP_CONFIG env var  >  ~/.hostprep/config.yml
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

KEY_PROXY_URL = "proxy_url"
KEY_WSL_LINUX_DISTRO = "wsl_linux_distro"
KEY_WSL_INSTALLER_URL = "wsl_installer_url"
KEY_WSL_KERNEL_URL = "wsl_kernel_url"
KEY_PROJECT_REPO_URL = "project_repo_url"
KEY_PROJECT_BRANCH = "project_branch"
KEY_PROJECT_DIR = "project_dir"
KEY_PROJECT_PACKAGE = "project_package"

VALID_KEYS = frozenset({
    KEY_PROXY_URL,
    KEY_WSL_LINUX_DISTRO,
    KEY_WSL_INSTALLER_URL,
    KEY_WSL_KERNEL_URL,
    KEY_PROJECT_REPO_URL,
    KEY_PROJECT_BRANCH,
    KEY_PROJECT_DIR,
    KEY_PROJECT_PACKAGE,
})

# Built-in keys are restored to these values when left empty.
# proxy_url has no default.
BUILTIN_DEFAULTS: dict[str, str] = {
    KEY_WSL_LINUX_DISTRO: "Ubuntu-24.04",
    KEY_WSL_INSTALLER_URL: (
        "https://github.com/microsoft/WSL/releases/download/2.4.13/"
        "wsl.2.4.13.0.x64.msi"
    ),
    KEY_WSL_KERNEL_URL: (
        "https://wslstorestorage.blob.core.windows.net/wslblob/"
        "wsl_update_x64.msi"
    ),
    KEY_PROJECT_REPO_URL: "https://github.com/hetu-project/prakasa.git",
    KEY_PROJECT_BRANCH: "main",
    KEY_PROJECT_DIR: "~/prakasa",
    KEY_PROJECT_PACKAGE: "prakasa",
}

CONFIG_ENV_VAR = "HOSTPREP_CONFIG"
CONFIG_FILE_HEADER = "# hostprep configuration\n# Managed by 'hostprep config'; manual edits are preserved.\n"


class ConfigError(Exception):
    """Raised when configuration is invalid or cannot be read."""


def default_config_path() -> Path:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".hostprep" / "config.yml"


class ConfigStore:
    """Thread-safe key/value configuration backed by a YAML file.

    Args:
        path: Config file path. Defaults to :func:`default_config_path`.
        autoload: Load (or create) the file on construction.
    """

    def __init__(self, path: Path | None = None, autoload: bool = True):
        self._lock = threading.RLock()
        self._path = path or default_config_path()
        self._values: dict[str, str] = dict(BUILTIN_DEFAULTS)
        if autoload:
            self.load()

    @property
    def path(self) -> Path:
        with self._lock:
            return self._path

    def load(self, path: Path | None = None) -> None:
        """(Re)load from disk on top of the built-in defaults.

        A missing file is created with the defaults.

        Raises:
            ConfigError: If the file is unreadable or not a YAML mapping.
        """
        with self._lock:
            if path is not None:
                self._path = path
            self._values = dict(BUILTIN_DEFAULTS)

            if not self._path.is_file():
                logger.info("Config file not found, creating default: %s", self._path)
                self.save()
                return

            try:
                raw = self._path.read_text(encoding="utf-8")
            except OSError as e:
                raise ConfigError(f"Cannot read {self._path}: {e}") from e

            try:
                data = yaml.safe_load(raw) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {self._path}: {e}") from e

            if not isinstance(data, dict):
                raise ConfigError(
                    f"Expected a YAML mapping in {self._path}, got {type(data).__name__}"
                )

            for key, value in data.items():
                key = str(key).strip()
                if key not in VALID_KEYS:
                    logger.warning("Unknown config key '%s' in %s", key, self._path)
                self._values[key] = "" if value is None else str(value).strip()

            for key, default in BUILTIN_DEFAULTS.items():
                if not self._values.get(key):
                    self._values[key] = default
                    logger.info("Built-in config key '%s' restored to default", key)

            logger.debug("Config loaded from %s", self._path)

    def save(self, path: Path | None = None) -> None:
        """Write all values atomically (temp file + replace)."""
        with self._lock:
            if path is not None:
                self._path = path
            target = self._path
            target.parent.mkdir(parents=True, exist_ok=True)
            content = CONFIG_FILE_HEADER + yaml.safe_dump(
                dict(sorted(self._values.items())),
                default_flow_style=False,
                allow_unicode=True,
            )

            fd, tmp_path = tempfile.mkstemp(
                dir=target.parent, prefix=".config_", suffix=".tmp",
            )
            os.close(fd)
            tmp = Path(tmp_path)
            try:
                tmp.write_text(content, encoding="utf-8")
                os.replace(tmp, target)
            except OSError:
                tmp.unlink(missing_ok=True)
                logger.error("Failed to save config to %s", target)
                raise
            logger.debug("Config saved to %s", target)

    def get_value(self, key: str, default: str = "") -> str:
        with self._lock:
            return self._values.get(key, default)

    def set_value(self, key: str, value: str) -> None:
        """Set a value in memory. Call :meth:`save` to persist.

        Raises:
            ConfigError: If ``key`` is not a known configuration key.
        """
        if not self.is_valid_key(key):
            raise ConfigError(
                f"Unknown config key '{key}'. Valid keys: {', '.join(sorted(VALID_KEYS))}"
            )
        with self._lock:
            self._values[key] = value

    def has_value(self, key: str) -> bool:
        with self._lock:
            return key in self._values

    @staticmethod
    def is_valid_key(key: str) -> bool:
        return key in VALID_KEYS

    def reset_to_defaults(self) -> None:
        with self._lock:
            self._values = dict(BUILTIN_DEFAULTS)
            logger.info("Configuration reset to default values")

    def all_values(self) -> dict[str, str]:
        with self._lock:
            return dict(self._values)
