from __future__ import annotations

import logging
from pathlib import Path

import pytest

from appbuilder_install.outcome import ServiceError
from appbuilder_install.services import (
    INIT_MARKER,
    DockerStackBackend,
    PodmanComposeBackend,
    ServiceConfig,
    ServiceLifecycleGuard,
    build_backend,
)

from conftest import FakeRunner


def _config(tmp_path: Path, platform: str = "docker") -> ServiceConfig:
    compose = tmp_path / "dbinit-compose.yml"
    compose.write_text("services: {}\n", encoding="utf-8")
    return ServiceConfig(
        stack="ab",
        platform=platform,
        compose_file=compose,
        workdir=tmp_path,
        db_image="mariadb:10.3",
        db_password="secret",
    )


def test_first_acquire_initializes_and_writes_marker(tmp_path: Path) -> None:
    runner = FakeRunner()
    guard = ServiceLifecycleGuard(runner)
    handle, skipped = guard.acquire(_config(tmp_path))

    assert skipped is False
    assert handle.stack == "ab"
    assert (tmp_path / "mysql" / INIT_MARKER).exists()
    assert runner.ran("docker stack deploy -c")
    assert guard.active == [handle]


def test_acquire_twice_is_idempotent_and_reports_skip(tmp_path: Path) -> None:
    runner = FakeRunner()
    guard = ServiceLifecycleGuard(runner)
    config = _config(tmp_path)

    first, first_skipped = guard.acquire(config)
    deploys = len(runner.calls)
    second, second_skipped = guard.acquire(config)

    assert first_skipped is False
    assert second_skipped is True
    assert second is first
    assert len(runner.calls) == deploys


def test_acquire_reports_skip_for_existing_data(tmp_path: Path) -> None:
    (tmp_path / "mysql" / "data" / "mysql").mkdir(parents=True)
    guard = ServiceLifecycleGuard(FakeRunner())
    _, skipped = guard.acquire(_config(tmp_path))
    assert skipped is True
    assert not (tmp_path / "mysql" / INIT_MARKER).exists()


def test_acquire_failure_raises_and_keeps_handle_for_teardown(tmp_path: Path) -> None:
    runner = FakeRunner(fail_when=lambda args: "deploy" in args)
    guard = ServiceLifecycleGuard(runner)
    with pytest.raises(ServiceError):
        guard.acquire(_config(tmp_path))
    assert len(guard.active) == 1
    assert guard.release_all() == 1
    assert runner.ran("docker stack rm ab")


def test_acquire_after_failed_start_retries_deploy(tmp_path: Path) -> None:
    runner = FakeRunner(fail_when=lambda args: "deploy" in args)
    guard = ServiceLifecycleGuard(runner)
    config = _config(tmp_path)
    with pytest.raises(ServiceError):
        guard.acquire(config)

    runner.fail_when = None
    handle, skipped = guard.acquire(config)

    assert skipped is False
    assert handle.started
    assert guard.active == [handle]
    assert runner.commands().count("docker stack deploy -c {} ab".format(config.compose_file)) == 2
    assert (tmp_path / "mysql" / INIT_MARKER).exists()


def test_release_happens_exactly_once(tmp_path: Path) -> None:
    runner = FakeRunner()
    guard = ServiceLifecycleGuard(runner)
    handle, _ = guard.acquire(_config(tmp_path))

    assert guard.release(handle) is True
    assert guard.release(handle) is False
    assert runner.commands().count("docker stack rm ab") == 1
    assert guard.active == []


def test_release_failure_is_logged_not_raised(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    runner = FakeRunner(fail_when=lambda args: args[:3] == ["docker", "stack", "rm"])
    guard = ServiceLifecycleGuard(runner)
    handle, _ = guard.acquire(_config(tmp_path))

    with caplog.at_level(logging.WARNING, logger="appbuilder_install.services"):
        guard.release(handle)

    assert handle.released
    assert "Failed to bring down stack 'ab'" in caplog.text


def test_podman_backend_commands(tmp_path: Path) -> None:
    runner = FakeRunner()
    guard = ServiceLifecycleGuard(runner)
    config = _config(tmp_path, platform="podman")
    handle, _ = guard.acquire(config)
    config.compose_file.unlink()
    guard.release(handle)

    commands = runner.commands()
    assert commands[0] == f"podman compose -f {config.compose_file} -p ab up -d"
    assert commands[1].startswith("podman run --rm --network ab_default mariadb:10.3 mysqladmin ping")
    assert commands[-1] == "podman compose -p ab down"


def test_build_backend() -> None:
    assert isinstance(build_backend("docker"), DockerStackBackend)
    assert isinstance(build_backend("PODMAN"), PodmanComposeBackend)
    with pytest.raises(ValueError):
        build_backend("lxc")
