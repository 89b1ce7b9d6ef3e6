"""Frozen dataclasses for configuration, environment lookup and YAML loading."""

from __future__ import annotations

import os
import re
import typing
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError, ConfigurationMissing

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")

SOCKET_PREFIX = "nvim."
# <base>/SOCKET_DIR_PATTERN/SOCKET_NAME_PATTERN
SOCKET_DIR_PATTERN = "*"
SOCKET_NAME_PATTERN = f"{SOCKET_PREFIX}*.0"
ADDRESS_PLACEHOLDER = "{address}"

DEFAULT_PROBE_COMMAND = (
    "nvr", "--nostart", "-s",
    "--servername", ADDRESS_PLACEHOLDER,
    "--remote-expr", "getcwd()",
)


def _interpolate_env(value: str) -> str:
    """Replace ${ENV_VAR} placeholders with environment variable values."""

    def _replace(match: re.Match) -> str:
        env_key = match.group(1)
        env_val = os.environ.get(env_key)
        if env_val is None:
            raise ConfigError(f"Environment variable '{env_key}' is not set")
        return env_val

    return _ENV_PATTERN.sub(_replace, value)


def _walk_and_interpolate(obj: Any) -> Any:
    """Recursively interpolate env vars in strings throughout a nested structure."""
    if isinstance(obj, str):
        return _interpolate_env(obj)
    if isinstance(obj, dict):
        return {k: _walk_and_interpolate(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_walk_and_interpolate(v) for v in obj]
    return obj


@dataclass(frozen=True)
class EnvironmentConfig:
    """The environment variables Neovim itself uses to place its sockets."""

    runtime_dir: str | None = None  # XDG_RUNTIME_DIR
    tmp_dir: str | None = None  # TMPDIR
    user: str | None = None  # USER

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> EnvironmentConfig:
        env = os.environ if environ is None else environ
        return cls(
            runtime_dir=env.get("XDG_RUNTIME_DIR") or None,
            tmp_dir=env.get("TMPDIR") or None,
            user=env.get("USER") or None,
        )

    def base_directory(self) -> Path:
        """Directory holding the per-instance socket directories.

        Raises ConfigurationMissing when neither XDG_RUNTIME_DIR nor the
        TMPDIR + USER pair is available.
        """
        if self.runtime_dir:
            return Path(self.runtime_dir)
        if self.tmp_dir and self.user:
            return Path(self.tmp_dir) / f"{SOCKET_PREFIX}{self.user}"
        raise ConfigurationMissing()

    def socket_pattern(self) -> str:
        """Glob pattern matching candidate sockets, e.g. '/run/user/1000/*/nvim.*.0'."""
        return str(self.base_directory() / SOCKET_DIR_PATTERN / SOCKET_NAME_PATTERN)


@dataclass(frozen=True)
class ProbeConfig:
    command: list[str] = field(default_factory=lambda: list(DEFAULT_PROBE_COMMAND))
    timeout_seconds: float = 5.0


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = "text"  # "json" or "text"


@dataclass(frozen=True)
class AppConfig:
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _build_nested(cls: type, data: dict[str, Any]) -> Any:
    """Construct a frozen dataclass, recursively building nested dataclass fields."""
    if not isinstance(data, dict):
        return data
    field_types = typing.get_type_hints(cls)
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key not in cls.__dataclass_fields__:
            continue
        ft = field_types[key]
        if isinstance(ft, type) and hasattr(ft, "__dataclass_fields__") and isinstance(value, dict):
            kwargs[key] = _build_nested(ft, value)
        else:
            kwargs[key] = value
    return cls(**kwargs)


def load_config(path: str | Path) -> AppConfig:
    """Load and validate configuration from a YAML file."""
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Configuration file not found: {path}")

    with open(path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Configuration file is not valid YAML: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("Configuration file must be a YAML mapping")

    raw = _walk_and_interpolate(raw)
    try:
        config = _build_nested(AppConfig, raw)
    except TypeError as exc:
        raise ConfigError(f"Invalid configuration section: {exc}") from exc
    _validate(config)
    return config


def _validate(config: AppConfig) -> None:
    """Validate configuration values."""
    command = config.probe.command
    if not isinstance(command, list) or not command:
        raise ConfigError("probe.command must be a non-empty list")
    if not all(isinstance(arg, str) for arg in command):
        raise ConfigError("probe.command entries must be strings")
    if not any(ADDRESS_PLACEHOLDER in arg for arg in command):
        raise ConfigError(f"probe.command must contain the {ADDRESS_PLACEHOLDER} placeholder")

    timeout = config.probe.timeout_seconds
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigError("probe.timeout_seconds must be a positive number")

    if config.logging.format not in ("json", "text"):
        raise ConfigError("logging.format must be 'json' or 'text'")
