"""Configuration loading and saving for the proctor client.

This module handles all persistent configuration for proctor:

* **Directory layout** -- ``$PROCTOR_CONFIG_DIR`` when set, ``~/.proctor/``
  otherwise. See :func:`get_config_dir` and :func:`get_data_dir`.
* **Config file** -- a flat YAML mapping in ``proctor.yaml`` with the keys
  listed in :data:`CONFIG_KEYS`. Environment variables of the same name take
  precedence over the file.
* **Loading** -- :class:`ConfigLoader` turns the file into a
  :class:`~proctor.models.ProctorConfig`. It is called afresh by every client
  operation; nothing is cached.
* **Saving** -- :func:`save_raw_config` writes the mapping back with an atomic
  temp-file-then-rename (:func:`_atomic_write`).
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from proctor.exceptions import ConfigInvalid
from proctor.models import ProctorConfig

_APP_DIR = ".proctor"
_CONFIG_FILENAME = "proctor.yaml"

HOST_KEY = "PROCTOR_HOST"
EMAIL_KEY = "EMAIL_ID"
ACCESS_TOKEN_KEY = "ACCESS_TOKEN"
TIMEOUT_KEY = "CONNECTION_TIMEOUT_SECS"

CONFIG_KEYS = (HOST_KEY, EMAIL_KEY, ACCESS_TOKEN_KEY, TIMEOUT_KEY)
"""Keys recognised in ``proctor.yaml`` and as environment overrides."""

_FIELD_FOR_KEY = {
    HOST_KEY: "host",
    EMAIL_KEY: "email",
    ACCESS_TOKEN_KEY: "access_token",
    TIMEOUT_KEY: "connection_timeout_secs",
}

_SETUP_HINT = (
    "Setup config using: proctor config set "
    f"{HOST_KEY}=<host> {EMAIL_KEY}=<email> {ACCESS_TOKEN_KEY}=<access-token>"
)


# --- Paths ---


def get_config_dir() -> Path:
    """Return the configuration directory (not created).

    Returns:
        ``$PROCTOR_CONFIG_DIR`` when set, otherwise ``~/.proctor``.
    """
    env_value = os.environ.get("PROCTOR_CONFIG_DIR", "")
    if env_value:
        return Path(env_value).expanduser()
    return Path.home() / _APP_DIR


def get_config_path() -> Path:
    """Return the path of ``proctor.yaml`` inside :func:`get_config_dir`."""
    return get_config_dir() / _CONFIG_FILENAME


def get_data_dir() -> Path:
    """Return the directory for crash logs, creating it if necessary."""
    path = get_config_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Raw file access ---


def load_raw_config(path: Optional[Path] = None) -> dict[str, Any]:
    """Read ``proctor.yaml`` as a plain mapping.

    Args:
        path: File to read. Defaults to :func:`get_config_path`.

    Returns:
        The parsed mapping, or an empty dict when the file does not exist.

    Raises:
        ConfigInvalid: If the file is not valid YAML or not a mapping.
    """
    path = path or get_config_path()
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError) as exc:
        raise ConfigInvalid(f"Invalid proctor config at {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigInvalid(f"Invalid proctor config at {path}: expected a mapping of keys")
    return data


def save_raw_config(data: dict[str, Any], path: Optional[Path] = None) -> Path:
    """Persist *data* to ``proctor.yaml`` atomically.

    Args:
        data: Mapping of config keys to values.
        path: Destination file. Defaults to :func:`get_config_path`.

    Returns:
        The path written.
    """
    path = path or get_config_path()
    _atomic_write(path, yaml.safe_dump(data, default_flow_style=False, sort_keys=True))
    return path


# --- Loader ---


class ConfigLoader:
    """Loads a :class:`~proctor.models.ProctorConfig` from disk and environment.

    Precedence (high to low):
        1. Environment variables (``PROCTOR_HOST``, ``EMAIL_ID``, ...)
        2. ``proctor.yaml`` in the config directory

    Args:
        path: Explicit config file. Defaults to :func:`get_config_path`,
            resolved on each :meth:`load` so a changed ``PROCTOR_CONFIG_DIR``
            is honoured.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path or get_config_path()

    def load(self) -> ProctorConfig:
        """Read and validate the configuration.

        Returns:
            A fresh :class:`~proctor.models.ProctorConfig`.

        Raises:
            ConfigInvalid: If no host is configured, the file is malformed, or
                a value fails validation.
        """
        path = self.path
        raw = load_raw_config(path)
        for key in CONFIG_KEYS:
            env_value = os.environ.get(key)
            if env_value:
                raw[key] = env_value

        if not raw.get(HOST_KEY):
            if not path.is_file():
                raise ConfigInvalid(f"Config file not found in {path}\n{_SETUP_HINT}")
            raise ConfigInvalid(f"{HOST_KEY} is not set in {path}\n{_SETUP_HINT}")

        fields: dict[str, Any] = {}
        for key, field in _FIELD_FOR_KEY.items():
            value = raw.get(key)
            if value is None:
                continue
            fields[field] = value if key == TIMEOUT_KEY else str(value)

        try:
            return ProctorConfig.model_validate(fields)
        except ValidationError as exc:
            raise ConfigInvalid(f"Invalid proctor config at {path}: {exc}") from exc
