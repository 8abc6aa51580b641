"""Installer settings resolved from the environment."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "APPBUILDER_"


class InstallerSettings(BaseModel):
    """Repository locations, container images and defaults used by the install steps."""

    runtime_repo: str = Field(
        default="https://github.com/roguisharcanetrickster/ab_runtime.git",
        description="Git URL of the AppBuilder runtime.",
    )
    v1_repo: str = Field(
        default="https://github.com/appdevdesigns/ab_runtime_v1.git",
        description="Git URL of the legacy v1 runtime.",
    )
    prod2021_repo: str = Field(
        default="https://github.com/digi-serve/ab_runtime_prod2021.git",
        description="Git URL of the 2021 production runtime.",
    )
    developer_image: str = "digiserve/ab-code-developer:master"
    migration_image: str = "digiserve/ab-migration-manager:master"
    db_image: str = "mariadb:10.3"
    default_stack: str = "ab"
    default_port: int = 80
    default_platform: str = "docker"

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "InstallerSettings":
        environ = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        return cls.model_validate(values)


def load_settings(env_file: Optional[Path] = None) -> InstallerSettings:
    """Load ``.env`` from the working directory (or ``env_file``) then read ``APPBUILDER_*`` variables."""

    path = env_file or Path.cwd() / ".env"
    if path.exists():
        load_dotenv(path, override=False)
    return InstallerSettings.from_env()


__all__ = ["ENV_PREFIX", "InstallerSettings", "load_settings"]
