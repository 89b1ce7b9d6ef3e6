"""Instance discovery package: the query Protocol and public exports."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class WorkingDirectoryQuery(Protocol):
    """Protocol that every working-directory query must satisfy."""

    async def __call__(self, address: Path) -> bytes:
        """Return the raw working directory reported by the server at ``address``.

        Implementations raise a ``ProbeError`` subclass (or ``OSError``) on failure.
        """
        ...
