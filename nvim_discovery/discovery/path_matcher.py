"""Selects the instance whose working directory contains a target path."""

from __future__ import annotations

import logging
from pathlib import Path

from .models import Instance, InstanceRegistry

logger = logging.getLogger(__name__)


def canonicalize(path: str | Path) -> Path | None:
    """Resolve ``path`` to an absolute, symlink-free form, or None if that fails."""
    try:
        return Path(path).resolve(strict=True)
    except (OSError, RuntimeError, ValueError) as exc:
        # RuntimeError: symlink loop on Python < 3.13; ValueError: embedded NUL
        logger.debug("Could not resolve %s: %s", path, exc)
        return None


def contains(directory: Path, target: Path) -> bool:
    """True if ``target`` is ``directory`` or nested below it, compared by segment."""
    return target == directory or directory in target.parents


class PathMatcher:
    """First-match-wins containment test over an InstanceRegistry."""

    def __init__(self, registry: InstanceRegistry):
        self._registry = registry

    def match(self, target: str | Path) -> Instance | None:
        for instance in self._registry:
            working_directory = canonicalize(instance.working_directory)
            if working_directory is None:
                continue
            resolved_target = canonicalize(target)
            if resolved_target is None:
                continue
            if contains(working_directory, resolved_target):
                logger.debug(
                    "%s matched %s (cwd %s)", target, instance.server_address, working_directory,
                    extra={"address": str(instance.server_address), "target": str(target)},
                )
                return instance
        return None
