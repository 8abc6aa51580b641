"""Validated option models for setup, tenant admin and the database init template."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TenantAdminOptions(BaseModel):
    """Default tenant administrator written into a freshly initialized database."""

    username: str = "admin"
    password: str = "admin"
    email: str = "admin@example.com"
    url: str = "http://localhost"
    stack: str
    db_password: str
    platform: str = "docker"

    model_config = ConfigDict(extra="ignore")


class SetupDefaults(BaseModel):
    """Options derived by the setup phase and merged into the run options."""

    stack: str
    port: int
    platform: str
    db_password: str
    node_env: str = "production"
    db_user: str = "root"
    db_name: str = "appbuilder-admin"
    travis_ci: bool = False

    model_config = ConfigDict(extra="forbid")


class DbInitTemplate(BaseModel):
    stack: str
    db_image: str
    db_password: str
    db_name: str = "appbuilder-admin"
    data_dir: str = "./mysql/data"
    init_dir: str = "./mysql/init"
    db_port: Optional[int] = Field(default=None, description="Host port published for the database, if any.")

    model_config = ConfigDict(extra="ignore")

