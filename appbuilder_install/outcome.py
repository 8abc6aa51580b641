"""Step outcomes and the installer error taxonomy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class InstallError(RuntimeError):
    """Base error for installer failures."""


class PreconditionError(InstallError):
    """Raised when a required argument or external tool is missing."""


class CommandError(InstallError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, command: list[str], returncode: int, stdout: str = "", stderr: str = "") -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        detail = (stderr or stdout or "").strip()[-2000:]
        message = f"Command '{' '.join(self.command)}' failed ({returncode})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ServiceError(InstallError):
    """Raised when the ephemeral service set cannot be brought up."""


class DirectoryStackError(InstallError):
    """Raised when the directory stack is popped past its origin."""


class StepFailedError(InstallError):
    """Raised when a step fails with an error outside the installer taxonomy."""

    def __init__(self, step: str, cause: BaseException) -> None:
        self.step = step
        super().__init__(f"Step '{step}' failed: {cause}")


CONTINUE = "continue"
FAIL = "fail"
SOFT_SKIP = "soft_skip"


@dataclass(frozen=True)
class Outcome:
    kind: str
    error: Optional[BaseException] = None
    reason: Optional[str] = None

    @classmethod
    def proceed(cls) -> "Outcome":
        return cls(kind=CONTINUE)

    @classmethod
    def fail(cls, error: BaseException) -> "Outcome":
        return cls(kind=FAIL, error=error)

    @classmethod
    def soft_skip(cls, reason: Optional[str] = None) -> "Outcome":
        return cls(kind=SOFT_SKIP, reason=reason)

    @property
    def is_continue(self) -> bool:
        return self.kind == CONTINUE

    @property
    def is_fail(self) -> bool:
        return self.kind == FAIL

    @property
    def is_soft_skip(self) -> bool:
        return self.kind == SOFT_SKIP


__all__ = [
    "CONTINUE",
    "FAIL",
    "SOFT_SKIP",
    "CommandError",
    "DirectoryStackError",
    "InstallError",
    "Outcome",
    "PreconditionError",
    "ServiceError",
    "StepFailedError",
]
