"""Per-run install state shared by every step."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .commands import CommandRunner
from .config import InstallerSettings
from .dirstack import DirectoryStack
from .services import ServiceLifecycleGuard

DB_SKIPPED = "db_skipped"

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


def to_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def unstringify_bools(options: Dict[str, object]) -> Dict[str, object]:
    """Turn ``"true"``/``"false"`` string values (nested included) into booleans, in place."""

    for key, value in list(options.items()):
        if isinstance(value, dict):
            unstringify_bools(value)
        elif isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("true", "false"):
                options[key] = lowered == "true"
    return options


@dataclass
class InstallContext:
    """Shared state of one install run.

    ``options`` is the run options mapping every step reads and writes.
    The collaborators hanging off the context are owned by this run only.
    """

    options: Dict[str, object]
    settings: InstallerSettings = field(default_factory=InstallerSettings)
    directories: DirectoryStack = field(default_factory=DirectoryStack)
    runner: CommandRunner = field(default_factory=CommandRunner)
    services: Optional[ServiceLifecycleGuard] = None
    next_steps: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.services is None:
            self.services = ServiceLifecycleGuard(self.runner)

    @property
    def cwd(self) -> Path:
        return self.directories.current

    @property
    def db_skipped(self) -> bool:
        return to_bool(self.options.get(DB_SKIPPED))

    @db_skipped.setter
    def db_skipped(self, value: bool) -> None:
        self.options[DB_SKIPPED] = bool(value)

    def get(self, name: str, default: Optional[object] = None) -> Optional[object]:
        value = self.options.get(name)
        return default if value is None else value

    def get_bool(self, *names: str) -> bool:
        return any(to_bool(self.options.get(name)) for name in names)

    def merge_if_absent(self, values: Mapping[str, object]) -> List[str]:
        merged: List[str] = []
        for key, value in values.items():
            if self.options.get(key) is None:
                self.options[key] = value
                merged.append(key)
        return merged

    def run(self, command: List[str], **kwargs):
        kwargs.setdefault("cwd", self.cwd)
        return self.runner.run(command, **kwargs)


__all__ = ["DB_SKIPPED", "InstallContext", "to_bool", "unstringify_bools"]
