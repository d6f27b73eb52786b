"""Per-size source lookup: designer overrides named <stem>.<size><ext> beside the primary image."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Callable, Iterator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceDescriptor:
    path: str
    directory: str
    stem: str
    extension: str

    @classmethod
    def from_path(cls, path: str) -> "SourceDescriptor":
        directory, name = os.path.split(path)
        stem, extension = os.path.splitext(name)
        return cls(path=path, directory=directory, stem=stem, extension=extension)

    def override_for(self, size: str) -> str:
        return os.path.join(self.directory, f"{self.stem}.{size}{self.extension}")


class MissingResolutions:
    """Sizes that fell back to the primary source. Insertion ordered, no duplicates."""

    def __init__(self) -> None:
        self._sizes: list[str] = []

    def add(self, size: str) -> bool:
        if size in self._sizes:
            return False
        self._sizes.append(size)
        return True

    def as_list(self) -> list[str]:
        return list(self._sizes)

    def __contains__(self, size: object) -> bool:
        return size in self._sizes

    def __iter__(self) -> Iterator[str]:
        return iter(self._sizes)

    def __len__(self) -> int:
        return len(self._sizes)

    def __repr__(self) -> str:
        return f"MissingResolutions({self._sizes!r})"


@dataclass(frozen=True)
class ResolvedSource:
    path: str
    size: str
    override: bool


class SourceResolver:
    """Resolve the input file for one size of one source image."""

    def __init__(
        self,
        descriptor: SourceDescriptor,
        missing: MissingResolutions | None = None,
        exists: Callable[[str], bool] = os.path.exists,
    ) -> None:
        self.descriptor = descriptor
        self.missing = missing if missing is not None else MissingResolutions()
        self._exists = exists

    def resolve(self, size: str) -> ResolvedSource:
        candidate = self.descriptor.override_for(size)
        if self._exists(candidate):
            logger.info("getting %s from %s", size, candidate, extra={"size": size})
            return ResolvedSource(path=candidate, size=size, override=True)
        self.missing.add(size)
        return ResolvedSource(path=self.descriptor.path, size=size, override=False)
