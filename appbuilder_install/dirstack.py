"""Explicit working-directory stack owned by a single install run."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Protocol

from .outcome import DirectoryStackError

logger = logging.getLogger(__name__)


class DirectoryChanger(Protocol):
    def getcwd(self) -> Path:  # pragma: no cover - interface
        ...

    def chdir(self, path: Path) -> None:  # pragma: no cover - interface
        ...


class OsDirectoryChanger:
    """Changes the real process working directory."""

    def getcwd(self) -> Path:
        return Path(os.getcwd())

    def chdir(self, path: Path) -> None:
        os.chdir(path)


class DirectoryStack:
    """Push/pop record of working-directory changes.

    The bottom entry is the directory the run started in and is never popped.
    ``unwind`` returns to it no matter how many pushes are still pending.
    """

    def __init__(self, changer: Optional[DirectoryChanger] = None, origin: Optional[Path] = None) -> None:
        self.changer: DirectoryChanger = changer or OsDirectoryChanger()
        start = Path(origin) if origin is not None else self.changer.getcwd()
        self._entries: List[Path] = [start.resolve()]

    @property
    def depth(self) -> int:
        return len(self._entries)

    @property
    def origin(self) -> Path:
        return self._entries[0]

    @property
    def current(self) -> Path:
        return self._entries[-1]

    def entries(self) -> List[Path]:
        return list(self._entries)

    def resolve(self, path: str | Path) -> Path:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.current / candidate
        return candidate.resolve()

    def push(self, path: str | Path) -> Path:
        target = self.resolve(path)
        self.changer.chdir(target)
        self._entries.append(target)
        logger.debug("pushd %s (depth %d)", target, self.depth)
        return target

    def pop(self) -> Path:
        if self.depth <= 1:
            raise DirectoryStackError("Directory stack is already at its origin; nothing to pop.")
        left = self._entries.pop()
        self.changer.chdir(self.current)
        logger.debug("popd %s -> %s (depth %d)", left, self.current, self.depth)
        return left

    def unwind(self) -> int:
        """Drop every entry above the origin and return to it in a single chdir.

        Intermediate directories are never re-entered, so a directory removed
        mid-run cannot stop the unwind. Returns how many entries were dropped.
        """

        popped = self.depth - 1
        if popped <= 0:
            return 0
        del self._entries[1:]
        self.changer.chdir(self.origin)
        logger.debug("unwound %d entries -> %s", popped, self.origin)
        return popped


__all__ = ["DirectoryChanger", "DirectoryStack", "OsDirectoryChanger"]
