"""Custom exception hierarchy for Neovim instance discovery."""

from __future__ import annotations

from pathlib import Path


class DiscoveryError(Exception):
    """Base exception for all discovery errors."""


class ConfigError(DiscoveryError):
    """Invalid or missing configuration file."""


class ConfigurationMissing(DiscoveryError):
    """No socket base directory can be derived from the environment."""

    def __init__(self, message: str = "environment variables could not be found"):
        super().__init__(message)


class ProbeError(DiscoveryError):
    """A single candidate socket could not report its working directory."""

    def __init__(self, message: str, address: Path):
        super().__init__(message)
        self.address = address


class ProbeExitFailure(ProbeError):
    """The query command exited with a non-zero status."""

    def __init__(self, address: Path, exit_status: int, stderr: str = ""):
        super().__init__(f"query exited with status {exit_status}", address)
        self.exit_status = exit_status
        self.stderr = stderr


class ProbeLaunchError(ProbeError):
    """The query command could not be started or failed during I/O."""


class ProbeTimeout(ProbeError):
    """The query command did not finish within the probe timeout."""

    def __init__(self, address: Path, timeout: float):
        super().__init__(f"no response within {timeout:g}s", address)
        self.timeout = timeout


class ProbeOutputError(ProbeError):
    """The query command succeeded but printed nothing usable."""
