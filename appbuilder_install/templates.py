"""Render the temporary database-init compose file."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Mapping

import yaml

from .models import DbInitTemplate

DBINIT_COMPOSE_FILE = "dbinit-compose.yml"


def build_dbinit_compose(template: DbInitTemplate) -> Dict[str, object]:
    db_service: Dict[str, object] = {
        "image": template.db_image,
        "environment": {
            "MYSQL_ROOT_PASSWORD": template.db_password,
            "MYSQL_DATABASE": template.db_name,
        },
        "volumes": [
            f"{template.data_dir}:/var/lib/mysql",
            f"{template.init_dir}:/docker-entrypoint-initdb.d",
        ],
        "networks": ["default"],
    }
    if template.db_port:
        db_service["ports"] = [f"{template.db_port}:3306"]

    return {
        "version": "3.2",
        "services": {"db": db_service},
        "networks": {"default": {"name": f"{template.stack}_default", "attachable": True}},
    }


def render_dbinit_compose(options: Mapping[str, object], *, db_image: str) -> str:
    template = DbInitTemplate.model_validate({**options, "db_image": db_image})
    return yaml.safe_dump(build_dbinit_compose(template), sort_keys=False)


def write_dbinit_compose(options: Mapping[str, object], directory: Path, *, db_image: str) -> Path:
    path = directory / DBINIT_COMPOSE_FILE
    path.write_text(render_dbinit_compose(options, db_image=db_image), encoding="utf-8")
    return path


__all__ = ["DBINIT_COMPOSE_FILE", "build_dbinit_compose", "render_dbinit_compose", "write_dbinit_compose"]
