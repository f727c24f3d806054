"""Tests for gholafetch.config -- XDG paths, atomic writes, env precedence, cache construction."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from gholafetch.cache import DiskCache, InMemoryCache
from gholafetch.config import (
    _atomic_write,
    build_cache,
    config_path,
    get_cache_dir,
    get_config_dir,
    load_config,
    save_config,
)
from gholafetch.exceptions import ConfigError
from gholafetch.models import CacheBackend, CacheConfig, ClientConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPathsLinux:
    """XDG paths on Linux (the default XDG platform)."""

    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("gholafetch.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        result = get_config_dir()
        assert result == tmp_path / ".config" / "gholafetch"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("gholafetch.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "custom"))
        assert get_config_dir() == tmp_path / "custom" / "gholafetch"

    def test_cache_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("gholafetch.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xcache"))
        assert get_cache_dir() == tmp_path / "xcache" / "gholafetch"


class TestXDGPathsFallback:
    """Non-XDG platforms (macOS, Windows) use ~/.gholafetch/."""

    def test_config_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("gholafetch.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert get_config_dir() == tmp_path / ".gholafetch"

    def test_cache_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("gholafetch.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert get_cache_dir() == tmp_path / ".gholafetch" / "cache"


class TestConfigPath:
    def test_default_location(self, isolated_config: Path) -> None:
        assert config_path() == isolated_config / "config" / "gholafetch" / "config.json"

    def test_env_override(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GHOLAFETCH_CONFIG", str(isolated_config / "elsewhere.json"))
        assert config_path() == isolated_config / "elsewhere.json"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        _atomic_write(target, "hello world")
        assert target.read_text(encoding="utf-8") == "hello world"

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "test.txt"
        _atomic_write(target, "deep write")
        assert target.read_text(encoding="utf-8") == "deep write"

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        with patch("gholafetch.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                _atomic_write(target, "will fail")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Loading and saving
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_defaults_when_missing(self, isolated_config: Path) -> None:
        config = load_config()
        assert config == ClientConfig()
        assert config.cache.backend == CacheBackend.NONE

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        original = ClientConfig(
            base_url="https://api.example.com",
            headers={"Accept": "application/json"},
            timeout=2.5,
            cache=CacheConfig(backend=CacheBackend.MEMORY, max_capacity=16),
        )
        written = save_config(original)
        assert written == config_path()
        assert load_config() == original

    def test_invalid_json_raises_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid config"):
            load_config(path, env={})

    def test_non_object_raises_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        _write_json(path, ["a"])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_config(path, env={})

    def test_invalid_schema_raises_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        _write_json(path, {"timeout": -1})
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(path, env={})

    def test_env_overrides_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        _write_json(
            path,
            {"base_url": "https://file.example.com", "timeout": 30, "cache": {"backend": "disk", "max_capacity": 5}},
        )
        env = {
            "GHOLAFETCH_BASE_URL": "https://env.example.com",
            "GHOLAFETCH_TIMEOUT": "1.5",
            "GHOLAFETCH_CACHE": "MEMORY",
        }
        config = load_config(path, env=env)
        assert config.base_url == "https://env.example.com"
        assert config.timeout == 1.5
        assert config.cache.backend == CacheBackend.MEMORY
        assert config.cache.max_capacity == 5

    def test_bad_env_timeout(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="GHOLAFETCH_TIMEOUT"):
            load_config(tmp_path / "missing.json", env={"GHOLAFETCH_TIMEOUT": "soon"})

    def test_bad_env_cache_backend(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            load_config(tmp_path / "missing.json", env={"GHOLAFETCH_CACHE": "redis"})


# ---------------------------------------------------------------------------
# Cache construction
# ---------------------------------------------------------------------------


class TestBuildCache:
    def test_none(self) -> None:
        assert build_cache(CacheConfig()) is None

    def test_memory(self) -> None:
        cache = build_cache(CacheConfig(backend=CacheBackend.MEMORY, max_capacity=4))
        assert isinstance(cache, InMemoryCache)

    def test_disk_explicit_directory(self, tmp_path: Path) -> None:
        cache = build_cache(CacheConfig(backend=CacheBackend.DISK, directory=str(tmp_path)))
        try:
            assert isinstance(cache, DiskCache)
            assert cache.stats()["directory"] == str(tmp_path / "responses")
        finally:
            cache.close()

    def test_disk_default_directory(self, isolated_config: Path) -> None:
        cache = build_cache(CacheConfig(backend=CacheBackend.DISK))
        try:
            assert cache.stats()["directory"] == str(isolated_config / "cache" / "gholafetch" / "responses")
        finally:
            cache.close()
