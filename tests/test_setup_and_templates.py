from __future__ import annotations

from pathlib import Path

import yaml
from dotenv import dotenv_values

from appbuilder_install.config import InstallerSettings
from appbuilder_install.setup_phase import run_setup
from appbuilder_install.templates import DBINIT_COMPOSE_FILE, render_dbinit_compose, write_dbinit_compose


def test_setup_generates_defaults_and_env(tmp_path: Path) -> None:
    derived = run_setup({"node_env": "development"}, tmp_path, InstallerSettings())

    assert derived["stack"] == "ab"
    assert derived["port"] == 80
    assert derived["platform"] == "docker"
    assert derived["node_env"] == "development"
    assert len(derived["db_password"]) >= 16

    env = dotenv_values(tmp_path / ".env")
    assert env["AB_STACK_NAME"] == "ab"
    assert env["MYSQL_PASSWORD"] == derived["db_password"]
    assert env["NODE_ENV"] == "development"


def test_setup_prefers_options_then_existing_env(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("MYSQL_PASSWORD=kept\nAB_PORT=8088\n", encoding="utf-8")

    derived = run_setup({"stack": "custom"}, tmp_path, InstallerSettings())

    assert derived["stack"] == "custom"
    assert derived["db_password"] == "kept"
    assert derived["port"] == 8088


def test_render_dbinit_compose_uses_stack_network() -> None:
    rendered = yaml.safe_load(
        render_dbinit_compose({"stack": "ab", "db_password": "pw", "port": 80}, db_image="mariadb:10.3")
    )
    db = rendered["services"]["db"]
    assert db["image"] == "mariadb:10.3"
    assert db["environment"]["MYSQL_ROOT_PASSWORD"] == "pw"
    assert "ports" not in db
    assert rendered["networks"]["default"]["name"] == "ab_default"


def test_write_dbinit_compose(tmp_path: Path) -> None:
    path = write_dbinit_compose({"stack": "ab", "db_password": "pw", "db_port": 3307}, tmp_path, db_image="mariadb:10.3")
    assert path == tmp_path / DBINIT_COMPOSE_FILE
    assert yaml.safe_load(path.read_text(encoding="utf-8"))["services"]["db"]["ports"] == ["3307:3306"]
