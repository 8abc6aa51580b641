"""Install steps shared by the default install and the alternate mode flows."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from . import tasks
from .commands import check_dependencies
from .context import InstallContext
from .models import TenantAdminOptions
from .outcome import Outcome, PreconditionError
from .pipeline import StepSpec
from .services import ServiceConfig
from .setup_phase import run_setup
from .templates import write_dbinit_compose

logger = logging.getLogger(__name__)

DBINIT_COMPOSE_OPTION = "dbinit_compose"


def required_tools(context: InstallContext) -> list[str]:
    engine = "podman" if context.get("platform") == "podman" else "docker"
    return ["git", engine]


def _check_dependencies(context: InstallContext) -> None:
    check_dependencies(required_tools(context))


def _install_name(context: InstallContext) -> str:
    name = context.get("name")
    if not name:
        raise PreconditionError("missing required param: [name]")
    return str(name)


def make_clone_step(repo_setting: str, *, slug: str = "clone_repo") -> StepSpec:
    def _clone(context: InstallContext) -> None:
        logger.info("... cloning repo")
        url = getattr(context.settings, repo_setting)
        runtime = context.get("runtime")
        tasks.clone_repo(context, url, _install_name(context), ref=str(runtime) if runtime else None)

    return StepSpec(slug=slug, runner=_clone, description=f"git clone the {repo_setting} repository and enter it")


def _install_dependencies(context: InstallContext) -> None:
    logger.info("... install dependencies")
    tasks.install_packages(context)


def _run_setup(context: InstallContext) -> None:
    context.options["node_env"] = "development" if context.get_bool("develop") else "production"
    derived = run_setup(context.options, context.cwd, context.settings)
    context.merge_if_absent(derived)


def _copy_db_init(context: InstallContext) -> None:
    path = write_dbinit_compose(context.options, context.cwd, db_image=context.settings.db_image)
    context.options[DBINIT_COMPOSE_OPTION] = str(path)


def _service_config(context: InstallContext) -> ServiceConfig:
    compose = context.get(DBINIT_COMPOSE_OPTION)
    if not compose:
        raise PreconditionError("Database init compose file has not been rendered.")
    compose_path = Path(str(compose))
    return ServiceConfig(
        stack=str(context.get("stack", context.settings.default_stack)),
        platform=str(context.get("platform", context.settings.default_platform)),
        compose_file=compose_path,
        workdir=compose_path.parent,
        db_image=context.settings.db_image,
        db_password=str(context.get("db_password", "")),
    )


def _initialize_db(context: InstallContext) -> None:
    logger.info("... initialize the DB tables")
    _, skipped = context.services.acquire(_service_config(context))
    context.db_skipped = skipped


def _run_db_migrations(context: InstallContext) -> None:
    if context.db_skipped:
        return
    logger.info("... run db migration scripts")
    tasks.run_db_migrations(context)


def _remove_temp_db_init_files(context: InstallContext) -> None:
    compose = context.get(DBINIT_COMPOSE_OPTION)
    if compose:
        Path(str(compose)).unlink(missing_ok=True)


def _config_tenant_admin(context: InstallContext) -> None:
    if context.db_skipped:
        return
    logger.info("... configuring default Tenant details")
    tenant = dict(context.get("tenant") or {})
    tenant.update(
        stack=context.get("stack"),
        db_password=context.get("db_password"),
        platform=context.get("platform", context.settings.default_platform),
    )
    tasks.config_tenant_admin(context, TenantAdminOptions.model_validate(tenant))


def _install_developer_files(context: InstallContext) -> None:
    if not context.get_bool("develop"):
        return
    tasks.install_developer_files(context)


def _compile_ui(context: InstallContext) -> None:
    if not context.get_bool("develop"):
        return
    tasks.compile_ui(context)


def _down_stack(context: InstallContext) -> None:
    if not context.services.active:
        return
    logger.info("... bringing down the Stack")
    context.services.release_all()


def _dev_install_end_message(context: InstallContext) -> Optional[Outcome]:
    if not context.get_bool("develop"):
        return None
    port = context.get("port", context.settings.default_port)
    context.next_steps.extend(
        [
            f"cd {context.get('name')}",
            "./UP.sh -d",
            f"Then visit http://localhost:{port}",
            "To add the e2e test suites run: appbuilder test add",
        ]
    )
    logger.info("AppBuilder Dev Install Complete!")
    return None


CHECK_DEPENDENCIES = StepSpec(
    slug="check_dependencies",
    runner=_check_dependencies,
    description="Verify git and the container engine are on PATH",
)
INSTALL_DEPENDENCIES = StepSpec(
    slug="install_dependencies",
    runner=_install_dependencies,
    description="npm install inside the cloned runtime",
)
RUN_SETUP = StepSpec(slug="run_setup", runner=_run_setup, description="Resolve derived options and write .env")
COPY_DB_INIT = StepSpec(
    slug="copy_db_init",
    runner=_copy_db_init,
    description="Render the temporary dbinit-compose.yml",
)
INITIALIZE_DB = StepSpec(
    slug="initialize_db",
    runner=_initialize_db,
    description="Bring up the database stack and initialize it",
)
RUN_DB_MIGRATIONS = StepSpec(
    slug="run_db_migrations",
    runner=_run_db_migrations,
    description="Run the migration manager against the database",
)
REMOVE_TEMP_DB_INIT_FILES = StepSpec(
    slug="remove_temp_db_init_files",
    runner=_remove_temp_db_init_files,
    description="Delete the temporary dbinit-compose.yml",
    cleanup=True,
)
CONFIG_TENANT_ADMIN = StepSpec(
    slug="config_tenant_admin",
    runner=_config_tenant_admin,
    description="Write the default tenant administrator",
)
INSTALL_DEVELOPER_FILES = StepSpec(
    slug="install_developer_files",
    runner=_install_developer_files,
    description="Download and extract developer sources (--develop)",
)
COMPILE_UI = StepSpec(slug="compile_ui", runner=_compile_ui, description="Build the web and designer UIs (--develop)")
DOWN_STACK = StepSpec(
    slug="down_stack",
    runner=_down_stack,
    description="Bring down the ephemeral database stack",
    cleanup=True,
)
DEV_INSTALL_END_MESSAGE = StepSpec(
    slug="dev_install_end_message",
    runner=_dev_install_end_message,
    description="Report next steps for developer installs",
)


__all__ = [
    "CHECK_DEPENDENCIES",
    "COMPILE_UI",
    "CONFIG_TENANT_ADMIN",
    "COPY_DB_INIT",
    "DBINIT_COMPOSE_OPTION",
    "DEV_INSTALL_END_MESSAGE",
    "DOWN_STACK",
    "INITIALIZE_DB",
    "INSTALL_DEPENDENCIES",
    "INSTALL_DEVELOPER_FILES",
    "REMOVE_TEMP_DB_INIT_FILES",
    "RUN_DB_MIGRATIONS",
    "RUN_SETUP",
    "make_clone_step",
    "required_tools",
]
