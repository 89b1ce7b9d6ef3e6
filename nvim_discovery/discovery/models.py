"""Data models for discovered Neovim instances."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class Instance:
    """A running Neovim server that answered its working-directory probe."""

    server_address: Path
    working_directory: Path


@dataclass(frozen=True)
class InstanceRegistry:
    """Successfully probed instances, in candidate discovery order."""

    instances: tuple[Instance, ...] = field(default_factory=tuple)

    @classmethod
    def from_instances(cls, instances: Iterable[Instance]) -> InstanceRegistry:
        return cls(tuple(instances))

    def __iter__(self) -> Iterator[Instance]:
        return iter(self.instances)

    def __len__(self) -> int:
        return len(self.instances)

    def __bool__(self) -> bool:
        return bool(self.instances)

    @property
    def addresses(self) -> list[Path]:
        return [inst.server_address for inst in self.instances]
