"""Subprocess execution and external tool checks."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .outcome import CommandError, PreconditionError

logger = logging.getLogger(__name__)


class CommandRunner:
    """Runs external commands, failing with ``CommandError`` on a non-zero exit."""

    def __init__(self, env: Optional[Dict[str, str]] = None) -> None:
        self.env = env or {}

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: str | Path,
        env: Optional[Dict[str, str]] = None,
        check: bool = True,
        capture_output: bool = True,
    ) -> subprocess.CompletedProcess:
        args = [str(part) for part in command]
        merged_env = os.environ.copy()
        merged_env.update(self.env)
        if env:
            merged_env.update(env)

        logger.debug("exec (%s): %s", cwd, " ".join(args))
        proc = subprocess.run(
            args,
            cwd=str(cwd),
            capture_output=capture_output,
            text=True,
            env=merged_env,
            check=False,
        )
        if check and proc.returncode != 0:
            raise CommandError(args, proc.returncode, stdout=proc.stdout or "", stderr=proc.stderr or "")
        return proc


def missing_tools(tools: Iterable[str], which: Optional[Callable[[str], Optional[str]]] = None) -> List[str]:
    which = which or shutil.which
    return [tool for tool in tools if not which(tool)]


def check_dependencies(tools: Iterable[str], which: Optional[Callable[[str], Optional[str]]] = None) -> None:
    tools = list(tools)
    missing = missing_tools(tools, which)
    if missing:
        raise PreconditionError(
            "Missing required tools: " + ", ".join(missing) + ". Install them before running the installer."
        )
    logger.debug("dependencies present: %s", ", ".join(tools))


__all__ = ["CommandRunner", "check_dependencies", "missing_tools"]
