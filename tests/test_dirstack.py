from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from appbuilder_install.dirstack import DirectoryStack, OsDirectoryChanger
from appbuilder_install.outcome import DirectoryStackError


def test_push_resolves_relative_to_current(tmp_path: Path, changer) -> None:
    stack = DirectoryStack(changer, origin=tmp_path)
    stack.push("ABv2")
    stack.push("developer")
    assert stack.current == (tmp_path / "ABv2" / "developer").resolve()
    assert changer.cwd == stack.current
    assert stack.depth == 3


def test_pop_returns_to_previous_entry(tmp_path: Path, changer) -> None:
    stack = DirectoryStack(changer, origin=tmp_path)
    stack.push("ABv2")
    left = stack.pop()
    assert left == (tmp_path / "ABv2").resolve()
    assert changer.cwd == tmp_path.resolve()


def test_pop_past_origin_raises(tmp_path: Path, changer) -> None:
    stack = DirectoryStack(changer, origin=tmp_path)
    with pytest.raises(DirectoryStackError):
        stack.pop()


def test_unwind_restores_origin(tmp_path: Path, changer) -> None:
    stack = DirectoryStack(changer, origin=tmp_path)
    for name in ("a", "b", "c"):
        stack.push(name)
    assert stack.unwind() == 3
    assert stack.depth == 1
    assert changer.cwd == tmp_path.resolve()


def test_unwind_at_origin_is_noop(tmp_path: Path, changer) -> None:
    stack = DirectoryStack(changer, origin=tmp_path)
    assert stack.unwind() == 0
    assert changer.history == []


def test_os_changer_moves_process(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "inner").mkdir()
    stack = DirectoryStack(OsDirectoryChanger())
    stack.push("inner")
    assert Path.cwd() == (tmp_path / "inner").resolve()
    stack.unwind()
    assert Path.cwd() == tmp_path.resolve()


def test_unwind_survives_removed_intermediate_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "a" / "b").mkdir(parents=True)
    stack = DirectoryStack(OsDirectoryChanger())
    stack.push("a")
    stack.push("b")
    shutil.rmtree(tmp_path / "a")

    assert stack.unwind() == 2
    assert stack.depth == 1
    assert Path.cwd() == tmp_path.resolve()


def test_unwind_changes_directory_once(tmp_path: Path, changer) -> None:
    stack = DirectoryStack(changer, origin=tmp_path)
    stack.push("a")
    stack.push("b")
    changer.history.clear()
    stack.unwind()
    assert changer.history == [tmp_path.resolve()]
