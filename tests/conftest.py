from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import pytest

from appbuilder_install.commands import CommandRunner
from appbuilder_install.config import InstallerSettings
from appbuilder_install.context import InstallContext
from appbuilder_install.dirstack import DirectoryStack
from appbuilder_install.outcome import CommandError


class RecordingChanger:
    def __init__(self, start: Path) -> None:
        self.cwd = Path(start).resolve()
        self.history: List[Path] = []

    def getcwd(self) -> Path:
        return self.cwd

    def chdir(self, path: Path) -> None:
        self.cwd = Path(path)
        self.history.append(Path(path))


class FakeRunner(CommandRunner):
    """Records commands instead of running them.

    ``git clone <url> <dest>`` creates ``dest`` so later steps can write into it.
    """

    def __init__(self, fail_when: Optional[Callable[[List[str]], bool]] = None) -> None:
        super().__init__()
        self.calls: List[Tuple[List[str], Path]] = []
        self.fail_when = fail_when

    def run(self, command: Sequence[str], *, cwd, env=None, check: bool = True, capture_output: bool = True):
        args = [str(part) for part in command]
        self.calls.append((args, Path(cwd)))
        if self.fail_when is not None and self.fail_when(args):
            if check:
                raise CommandError(args, 1, stderr="simulated failure")
            return subprocess.CompletedProcess(args, 1, "", "simulated failure")
        if args[:2] == ["git", "clone"]:
            (Path(cwd) / args[3]).mkdir(parents=True, exist_ok=True)
        return subprocess.CompletedProcess(args, 0, "", "")

    def commands(self) -> List[str]:
        return [" ".join(args) for args, _ in self.calls]

    def ran(self, prefix: str) -> bool:
        return any(command.startswith(prefix) for command in self.commands())


@pytest.fixture()
def all_tools_present(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("shutil.which", lambda tool: f"/usr/bin/{tool}")


@pytest.fixture()
def changer(tmp_path: Path) -> RecordingChanger:
    return RecordingChanger(tmp_path)


@pytest.fixture()
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def settings() -> InstallerSettings:
    return InstallerSettings(
        runtime_repo="https://example.invalid/ab_runtime.git",
        v1_repo="https://example.invalid/ab_runtime_v1.git",
        prod2021_repo="https://example.invalid/ab_runtime_prod2021.git",
    )


@pytest.fixture()
def make_context(tmp_path: Path, changer: RecordingChanger, runner: FakeRunner, settings: InstallerSettings):
    def _make(**options: object) -> InstallContext:
        return InstallContext(
            options=dict(options),
            settings=settings,
            directories=DirectoryStack(changer, origin=tmp_path),
            runner=runner,
        )

    return _make
