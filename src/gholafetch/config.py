"""Configuration management with XDG paths, atomic writes, and env overrides.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.gholafetch/`` on macOS and Windows.  See :func:`get_config_dir` and
  :func:`get_cache_dir`.
* **Config file** -- a single :class:`~gholafetch.models.ClientConfig` JSON
  file, ``<config_dir>/config.json`` unless ``GHOLAFETCH_CONFIG`` points
  elsewhere.
* **Precedence** -- :func:`load_config` layers environment variables
  (``GHOLAFETCH_BASE_URL``, ``GHOLAFETCH_TIMEOUT``, ``GHOLAFETCH_CACHE``)
  over the file, which is layered over the model defaults.
* **Cache construction** -- :func:`build_cache` turns a
  :class:`~gholafetch.models.CacheConfig` into a cache instance.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from gholafetch.cache import Cache, DiskCache, InMemoryCache
from gholafetch.exceptions import ConfigError
from gholafetch.models import CacheBackend, CacheConfig, ClientConfig

_APP_NAME = "gholafetch"
_CONFIG_FILENAME = "config.json"

ENV_CONFIG = "GHOLAFETCH_CONFIG"
ENV_BASE_URL = "GHOLAFETCH_BASE_URL"
ENV_TIMEOUT = "GHOLAFETCH_TIMEOUT"
ENV_CACHE = "GHOLAFETCH_CACHE"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/gholafetch/`` (default
    ``~/.config/gholafetch/``).  On macOS/Windows: ``~/.gholafetch/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory used by the disk cache, creating it if necessary.

    On Linux/BSD: ``$XDG_CACHE_HOME/gholafetch/`` (default
    ``~/.cache/gholafetch/``).  On macOS/Windows: ``~/.gholafetch/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_path() -> Path:
    """Path of the config file: ``$GHOLAFETCH_CONFIG`` or ``<config_dir>/config.json``."""
    override = os.environ.get(ENV_CONFIG, "")
    if override:
        return Path(override)
    return get_config_dir() / _CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.  On any failure the
    temp file is removed.
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
        fd = None
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


# --- Loading and saving ---


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config at {path}: expected a JSON object")
    return data


def _env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if env.get(ENV_BASE_URL):
        overrides["base_url"] = env[ENV_BASE_URL]
    if env.get(ENV_TIMEOUT):
        try:
            overrides["timeout"] = float(env[ENV_TIMEOUT])
        except ValueError as exc:
            raise ConfigError(f"{ENV_TIMEOUT} must be a number of seconds, got {env[ENV_TIMEOUT]!r}") from exc
    if env.get(ENV_CACHE):
        overrides["cache"] = {"backend": env[ENV_CACHE].lower()}
    return overrides


def load_config(
    path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ClientConfig:
    """Load the effective client configuration.

    Args:
        path: Config file to read.  Defaults to :func:`config_path`.  A
            missing file is not an error.
        env: Environment mapping, defaulting to :data:`os.environ`.

    Returns:
        The validated :class:`~gholafetch.models.ClientConfig`.

    Raises:
        ConfigError: If the file holds invalid JSON, an environment value
            cannot be parsed, or the merged data fails validation.
    """
    env = os.environ if env is None else env
    path = path or config_path()

    data = _read_config_file(path)
    for key, value in _env_overrides(env).items():
        if key == "cache" and isinstance(data.get("cache"), dict):
            data["cache"] = {**data["cache"], **value}
        else:
            data[key] = value

    try:
        return ClientConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def save_config(config: ClientConfig, path: Optional[Path] = None) -> Path:
    """Persist *config* atomically and return the path written."""
    path = path or config_path()
    data = config.model_dump(mode="json")
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


def build_cache(config: CacheConfig) -> Optional[Cache]:
    """Instantiate the cache selected by *config*, or ``None`` when disabled."""
    if config.backend == CacheBackend.MEMORY:
        return InMemoryCache(max_capacity=config.max_capacity)
    if config.backend == CacheBackend.DISK:
        directory = Path(config.directory) if config.directory else get_cache_dir()
        return DiskCache(directory, max_capacity=config.max_capacity)
    return None
