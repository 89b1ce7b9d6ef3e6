"""Discovery pipeline: locate sockets -> probe concurrently -> match target path."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from pathlib import Path

from .config import AppConfig, EnvironmentConfig
from .discovery import WorkingDirectoryQuery
from .discovery.models import Instance, InstanceRegistry
from .discovery.path_matcher import PathMatcher
from .discovery.prober import InstanceProber
from .discovery.socket_locator import SocketLocator

logger = logging.getLogger(__name__)


class InstanceSelector:
    """Runs one discovery pass and picks the instance responsible for a path."""

    def __init__(
        self,
        config: AppConfig,
        environment: EnvironmentConfig,
        query: WorkingDirectoryQuery | None = None,
    ):
        self._config = config
        self._locator = SocketLocator(environment)
        if query is None:
            self._prober = InstanceProber.from_config(config.probe)
        else:
            self._prober = InstanceProber(query, config.probe.timeout_seconds)

    async def discover_async(self) -> InstanceRegistry:
        start = time.monotonic()

        # Locate
        candidates = self._locator.locate()

        # Probe
        registry = await self._prober.probe_all(candidates)

        elapsed = time.monotonic() - start
        logger.info(
            "Discovery complete",
            extra={
                "candidates": len(candidates),
                "instances": len(registry),
                "elapsed_seconds": round(elapsed, 2),
            },
        )
        return registry

    def discover(self) -> InstanceRegistry:
        """Locate and probe every candidate. Raises ConfigurationMissing."""
        return asyncio.run(self.discover_async())

    async def select_async(self, target: str | Path) -> Instance | None:
        registry = await self.discover_async()
        return self._match(registry, target)

    def select(self, target: str | Path) -> Instance | None:
        """Return the first instance whose cwd contains ``target``, or None."""
        registry = self.discover()
        return self._match(registry, target)

    @staticmethod
    def _match(registry: InstanceRegistry, target: str | Path) -> Instance | None:
        instance = PathMatcher(registry).match(target)
        if instance is None:
            logger.info("No running instance contains %s", target, extra={"target": str(target)})
        else:
            logger.info(
                "Selected %s for %s", instance.server_address, target,
                extra={"address": str(instance.server_address), "target": str(target)},
            )
        return instance


def _build_selector(config: AppConfig | None, environ: Mapping[str, str] | None) -> InstanceSelector:
    return InstanceSelector(config or AppConfig(), EnvironmentConfig.from_environ(environ))


def discover_instances(
    config: AppConfig | None = None,
    environ: Mapping[str, str] | None = None,
) -> InstanceRegistry:
    """Probe every Neovim server found via the environment's socket convention."""
    return _build_selector(config, environ).discover()


def select_instance(
    target_path: str | Path,
    config: AppConfig | None = None,
    environ: Mapping[str, str] | None = None,
) -> Instance | None:
    """Pick the running Neovim server whose working directory contains ``target_path``."""
    return _build_selector(config, environ).select(target_path)
