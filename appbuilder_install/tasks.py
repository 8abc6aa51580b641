"""External collaborators invoked by the install steps."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Callable, List, Optional

from .context import InstallContext
from .models import TenantAdminOptions

logger = logging.getLogger(__name__)

DEVELOPER_ARCHIVE = "developer.tar.bz2"
UI_PROJECTS = (
    ("web UI", Path("developer") / "ab_platform_web"),
    ("ABDesigner UI", Path("developer") / "plugins" / "ABDesigner"),
)
WEBPACK_COMMAND = ["node", "node_modules/webpack-cli/bin/cli.js", "-c", "webpack.dev.js"]


def clone_repo(context: InstallContext, url: str, destination: str, ref: Optional[str] = None) -> Path:
    """Clone ``url`` into ``destination`` and leave the directory stack inside it."""

    context.run(["git", "clone", url, destination])
    target = context.directories.push(destination)
    if ref:
        context.run(["git", "fetch", "origin", ref], capture_output=False)
        context.run(["git", "checkout", "FETCH_HEAD"], capture_output=False)
    return target


def install_packages(context: InstallContext) -> None:
    context.run(["npm", "install", "--no-fund", "--no-audit"])


def run_db_migrations(context: InstallContext) -> None:
    stack = str(context.get("stack"))
    context.run(
        [
            str(context.get("platform", "docker")),
            "run",
            "--rm",
            "--network",
            f"{stack}_default",
            "-e",
            f"MYSQL_PASSWORD={context.get('db_password', '')}",
            "-e",
            "MYSQL_HOST=db",
            context.settings.migration_image,
        ]
    )


def config_tenant_admin(context: InstallContext, tenant: TenantAdminOptions) -> None:
    statement = (
        "UPDATE `SITE_USER` SET `username`='{username}', `email`='{email}', `password`='{password}' "
        "WHERE `uuid`=(SELECT `uuid` FROM (SELECT `uuid` FROM `SITE_USER` ORDER BY `id` LIMIT 1) AS u); "
        "UPDATE `SITE_TENANT` SET `url`='{url}' ORDER BY `id` LIMIT 1;"
    ).format(
        username=_sql_escape(tenant.username),
        email=_sql_escape(tenant.email),
        password=_sql_escape(tenant.password),
        url=_sql_escape(tenant.url),
    )
    context.run(
        [
            tenant.platform,
            "run",
            "--rm",
            "--network",
            f"{tenant.stack}_default",
            context.settings.db_image,
            "mysql",
            "-h",
            "db",
            "-uroot",
            f"-p{tenant.db_password}",
            str(context.get("db_name", "appbuilder-admin")),
            "-e",
            statement,
        ]
    )


def _sql_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def install_developer_files(context: InstallContext, which: Optional[Callable[[str], Optional[str]]] = None) -> None:
    which = which or shutil.which
    if not which("tar"):
        logger.warning("'tar' is not installed. If install fails, please install it before retrying.")

    platform = str(context.get("platform", "docker"))
    image = context.settings.developer_image
    logger.info("... installing developer files (this will take awhile)")
    logger.info("    ... download %s", image)
    context.run([platform, "image", "pull", image])
    # exit status ignored; tar fails on a missing archive
    context.run([platform, "run", "-v", f"{context.cwd}:/app/dest", image], check=False)

    logger.info("    ... untaring files into developer/")
    context.run(["tar", "-xjf", DEVELOPER_ARCHIVE])

    logger.info("    ... removing tar file")
    archive = context.cwd / DEVELOPER_ARCHIVE
    if archive.exists():
        archive.unlink()


def compile_ui(context: InstallContext) -> List[str]:
    built: List[str] = []
    for label, project in UI_PROJECTS:
        logger.info("... compile the %s", label)
        context.directories.push(project)
        context.run(list(WEBPACK_COMMAND))
        context.directories.pop()
        built.append(str(project))
    return built


__all__ = [
    "DEVELOPER_ARCHIVE",
    "UI_PROJECTS",
    "WEBPACK_COMMAND",
    "clone_repo",
    "compile_ui",
    "config_tenant_admin",
    "install_developer_files",
    "install_packages",
    "run_db_migrations",
]
