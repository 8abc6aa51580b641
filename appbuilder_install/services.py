"""Lifecycle of the ephemeral database stack used during initialization and migrations."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Tuple

from .commands import CommandRunner
from .outcome import CommandError, ServiceError

logger = logging.getLogger(__name__)

INIT_MARKER = ".dbinit-complete"


@dataclass(frozen=True)
class ServiceConfig:
    stack: str
    platform: str
    compose_file: Path
    workdir: Path
    db_image: str
    db_password: str
    data_dir: Path = Path("mysql/data")

    @property
    def resolved_data_dir(self) -> Path:
        if self.data_dir.is_absolute():
            return self.data_dir
        return self.workdir / self.data_dir

    @property
    def marker_path(self) -> Path:
        return self.resolved_data_dir.parent / INIT_MARKER

    def is_initialized(self) -> bool:
        # mariadb creates its system schema directory on first boot
        return self.marker_path.exists() or (self.resolved_data_dir / "mysql").is_dir()


@dataclass
class ServiceHandle:
    stack: str
    platform: str
    compose_file: Path
    workdir: Path
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    started: bool = False
    released: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "stack": self.stack,
            "platform": self.platform,
            "compose_file": str(self.compose_file),
            "started_at": self.started_at.isoformat(),
            "started": self.started,
            "released": self.released,
        }


class ServiceBackend(ABC):
    name: str

    @abstractmethod
    def up_command(self, config: ServiceConfig) -> List[str]:
        ...

    @abstractmethod
    def down_command(self, handle: ServiceHandle) -> List[str]:
        ...

    def ready_command(self, config: ServiceConfig) -> List[str]:
        return [
            self.name,
            "run",
            "--rm",
            "--network",
            f"{config.stack}_default",
            config.db_image,
            "mysqladmin",
            "ping",
            "-h",
            "db",
            "-uroot",
            f"-p{config.db_password}",
            "--wait=60",
            "--connect-timeout=5",
        ]


class DockerStackBackend(ServiceBackend):
    name = "docker"

    def up_command(self, config: ServiceConfig) -> List[str]:
        return ["docker", "stack", "deploy", "-c", str(config.compose_file), config.stack]

    def down_command(self, handle: ServiceHandle) -> List[str]:
        return ["docker", "stack", "rm", handle.stack]


class PodmanComposeBackend(ServiceBackend):
    name = "podman"

    def up_command(self, config: ServiceConfig) -> List[str]:
        return ["podman", "compose", "-f", str(config.compose_file), "-p", config.stack, "up", "-d"]

    def down_command(self, handle: ServiceHandle) -> List[str]:
        command = ["podman", "compose"]
        # the temp compose file may already be gone by teardown time
        if handle.compose_file.exists():
            command += ["-f", str(handle.compose_file)]
        return command + ["-p", handle.stack, "down"]


def build_backend(platform: str) -> ServiceBackend:
    normalized = (platform or "docker").lower()
    if normalized == "docker":
        return DockerStackBackend()
    if normalized == "podman":
        return PodmanComposeBackend()
    raise ValueError(f"Unsupported container platform '{platform}'. Expected 'docker' or 'podman'.")


class ServiceLifecycleGuard:
    """Owns every service set started during one install run.

    ``acquire`` is idempotent per stack and reports whether the database was
    already initialized. ``release`` tears a handle down exactly once and only
    logs teardown failures.
    """

    def __init__(
        self,
        runner: CommandRunner,
        backend_factory: Callable[[str], ServiceBackend] = build_backend,
    ) -> None:
        self.runner = runner
        self.backend_factory = backend_factory
        self._active: Dict[str, ServiceHandle] = {}

    @property
    def active(self) -> List[ServiceHandle]:
        return list(self._active.values())

    def acquire(self, config: ServiceConfig) -> Tuple[ServiceHandle, bool]:
        existing = self._active.get(config.stack)
        if existing is not None and existing.started and not existing.released:
            logger.debug("service stack '%s' already running", config.stack)
            return existing, True

        backend = self.backend_factory(config.platform)
        already_initialized = config.is_initialized()

        if existing is not None and not existing.released:
            # an earlier start failed; retry it on the same handle
            logger.info("    ... retrying start of service stack '%s'", config.stack)
            handle = existing
        else:
            handle = ServiceHandle(
                stack=config.stack,
                platform=backend.name,
                compose_file=config.compose_file,
                workdir=config.workdir,
            )
            # registered before start so a partial start is still torn down
            self._active[config.stack] = handle
        try:
            self.runner.run(backend.up_command(config), cwd=config.workdir)
            self.runner.run(backend.ready_command(config), cwd=config.workdir)
        except (CommandError, OSError) as exc:
            raise ServiceError(f"Unable to bring up service stack '{config.stack}': {exc}") from exc
        handle.started = True

        if already_initialized:
            logger.info("    ... database already initialized; skipping init")
            return handle, True

        marker = config.marker_path
        marker.parent.mkdir(parents=True, exist_ok=True)
        marker.write_text(datetime.now(timezone.utc).isoformat(), encoding="utf-8")
        return handle, False

    def release(self, handle: ServiceHandle) -> bool:
        if handle.released:
            logger.debug("service stack '%s' already released", handle.stack)
            return False

        backend = self.backend_factory(handle.platform)
        try:
            self.runner.run(backend.down_command(handle), cwd=handle.workdir)
        except (CommandError, OSError) as exc:
            logger.warning("Failed to bring down stack '%s': %s", handle.stack, exc)
        finally:
            handle.released = True
            if self._active.get(handle.stack) is handle:
                del self._active[handle.stack]
        return True

    def release_all(self) -> int:
        released = 0
        for handle in list(self._active.values()):
            if self.release(handle):
                released += 1
        return released


__all__ = [
    "INIT_MARKER",
    "DockerStackBackend",
    "PodmanComposeBackend",
    "ServiceBackend",
    "ServiceConfig",
    "ServiceHandle",
    "ServiceLifecycleGuard",
    "build_backend",
]
