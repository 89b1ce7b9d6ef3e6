"""Expands the Neovim socket naming convention into candidate socket paths."""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path

from ..config import SOCKET_DIR_PATTERN, SOCKET_NAME_PATTERN, EnvironmentConfig

logger = logging.getLogger(__name__)


class SocketLocator:
    """Finds paths matching ``EnvironmentConfig.socket_pattern()`` without contacting any process.

    The scan applies the same two pattern components as that glob, one
    directory level at a time, so unreadable entries can be skipped
    individually.
    """

    def __init__(self, environment: EnvironmentConfig):
        self._environment = environment

    def locate(self) -> list[Path]:
        """Return candidate socket paths in sorted discovery order.

        Raises ConfigurationMissing if no base directory can be derived.
        """
        base = self._environment.base_directory()
        logger.debug("Searching for sockets matching %s", self._environment.socket_pattern())

        candidates: list[Path] = []
        for directory in self._list_entries(base):
            if not fnmatch.fnmatchcase(directory.name, SOCKET_DIR_PATTERN):
                continue
            if not self._is_directory(directory):
                continue
            for entry in self._list_entries(directory):
                if fnmatch.fnmatchcase(entry.name, SOCKET_NAME_PATTERN):
                    candidates.append(entry)

        logger.debug("Found %d candidate sockets", len(candidates), extra={"candidates": len(candidates)})
        return candidates

    @staticmethod
    def _list_entries(directory: Path) -> list[Path]:
        try:
            with os.scandir(directory) as it:
                names = sorted(entry.name for entry in it)
        except FileNotFoundError:
            logger.debug("Socket directory %s does not exist", directory)
            return []
        except OSError as exc:
            logger.warning("Skipping unreadable socket directory %s: %s", directory, exc)
            return []
        return [directory / name for name in names]

    @staticmethod
    def _is_directory(path: Path) -> bool:
        try:
            return path.is_dir()
        except OSError as exc:
            logger.warning("Skipping unreadable candidate %s: %s", path, exc)
            return False
