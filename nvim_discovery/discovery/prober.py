"""Concurrent working-directory probes against candidate Neovim sockets."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from ..config import ADDRESS_PLACEHOLDER, ProbeConfig
from ..exceptions import (
    ProbeError,
    ProbeExitFailure,
    ProbeLaunchError,
    ProbeOutputError,
    ProbeTimeout,
)
from . import WorkingDirectoryQuery
from .models import Instance, InstanceRegistry

logger = logging.getLogger(__name__)

_STDERR_EXCERPT = 200


class SubprocessQuery:
    """Asks a server for its cwd by running an external command (``nvr`` by default).

    The command template is an argument list; every ``{address}`` placeholder
    is replaced with the socket path. If the awaiting task is cancelled (for
    example by a probe timeout), even while the process is still being
    spawned, the child is killed and reaped before the cancellation propagates.
    """

    def __init__(self, command: Sequence[str]):
        self._command = list(command)

    def build_argv(self, address: Path) -> list[str]:
        return [arg.replace(ADDRESS_PLACEHOLDER, str(address)) for arg in self._command]

    async def __call__(self, address: Path) -> bytes:
        argv = self.build_argv(address)
        spawn = asyncio.ensure_future(asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        ))
        try:
            proc = await asyncio.shield(spawn)
        except asyncio.CancelledError:
            # spawn keeps running under the shield; a child it produces must not outlive us
            await self._reap_spawn(spawn, address)
            raise
        except OSError as exc:
            raise ProbeLaunchError(f"could not run {argv[0]}: {exc}", address) from exc

        try:
            stdout, stderr = await proc.communicate()
        except asyncio.CancelledError:
            await self._terminate(proc, address)
            raise
        except OSError as exc:
            await self._terminate(proc, address)
            raise ProbeLaunchError(f"I/O error talking to {argv[0]}: {exc}", address) from exc

        if proc.returncode != 0:
            excerpt = stderr.decode(errors="replace").strip()[:_STDERR_EXCERPT]
            raise ProbeExitFailure(address, proc.returncode, excerpt)
        return stdout

    async def _reap_spawn(self, spawn: asyncio.Future, address: Path) -> None:
        try:
            proc = await spawn
        except OSError:
            return
        await self._terminate(proc, address)

    @staticmethod
    async def _terminate(proc: asyncio.subprocess.Process, address: Path) -> None:
        if proc.returncode is not None:
            return
        logger.debug("Killing query process %d for %s", proc.pid, address)
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()


def decode_working_directory(raw: bytes, address: Path) -> Path:
    """Strip exactly one trailing newline and decode as a filesystem path."""
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    if not raw:
        raise ProbeOutputError("query printed no working directory", address)
    if b"\x00" in raw:
        raise ProbeOutputError("query printed a working directory containing NUL", address)
    return Path(os.fsdecode(raw))


class InstanceProber:
    """Fans a working-directory query out over every candidate and gathers the successes."""

    def __init__(self, query: WorkingDirectoryQuery, timeout: float = 5.0):
        self._query = query
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: ProbeConfig) -> InstanceProber:
        return cls(SubprocessQuery(config.command), config.timeout_seconds)

    async def probe_all(self, candidates: Sequence[Path]) -> InstanceRegistry:
        """Probe all candidates concurrently; the registry keeps candidate order."""
        results = await asyncio.gather(*(self._probe(address) for address in candidates))
        instances = [inst for inst in results if inst is not None]
        logger.info(
            "Probed %d candidates, %d responded",
            len(candidates), len(instances),
            extra={"candidates": len(candidates), "instances": len(instances)},
        )
        return InstanceRegistry.from_instances(instances)

    async def _probe(self, address: Path) -> Instance | None:
        try:
            return await self.probe_one(address)
        except ProbeExitFailure as exc:
            logger.warning(
                "Probe of %s exited with status %d: %s", address, exc.exit_status, exc.stderr,
                extra={"address": str(address), "exit_status": exc.exit_status},
            )
        except ProbeError as exc:
            logger.warning("Probe of %s failed: %s", address, exc, extra={"address": str(address)})
        except OSError as exc:
            logger.warning("Probe of %s failed: %s", address, exc, extra={"address": str(address)})
        return None

    async def probe_one(self, address: Path) -> Instance:
        """Query a single candidate, raising a ProbeError subclass on any failure."""
        try:
            raw = await asyncio.wait_for(self._query(address), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise ProbeTimeout(address, self._timeout) from exc
        working_directory = decode_working_directory(raw, address)
        logger.debug("%s reports working directory %s", address, working_directory)
        return Instance(server_address=address, working_directory=working_directory)
