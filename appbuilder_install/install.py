"""Default install pipeline and its entry point."""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

from . import steps
from .commands import CommandRunner
from .config import InstallerSettings
from .context import InstallContext, to_bool, unstringify_bools
from .dirstack import DirectoryChanger, DirectoryStack
from .modes import InstallModeSpec, detect_mode
from .outcome import InstallError, Outcome, PreconditionError
from .pipeline import PipelineResult, StepSpec, run_pipeline
from .services import ServiceLifecycleGuard

logger = logging.getLogger(__name__)


def dispatch_install_mode(
    context: InstallContext,
    modes: Optional[Iterable[InstallModeSpec]] = None,
) -> Outcome:
    """Hand the run to an alternate mode flow when one of its flags is set."""

    mode = detect_mode(context.options, modes)
    if mode is None:
        return Outcome.proceed()

    delegate = dict(context.options)
    name = delegate.pop("name", None)
    positionals = list(delegate.get("_") or [])
    if name:
        positionals.insert(0, name)
    delegate["_"] = positionals

    result = mode.runner(delegate, parent=context)
    if not result.ok:
        return Outcome.fail(result.error or InstallError(f"Install mode '{mode.slug}' failed."))

    context.next_steps.extend(result.next_steps)
    return Outcome.soft_skip(f"{mode.slug} install completed")


DISPATCH_INSTALL_MODE = StepSpec(
    slug="dispatch_install_mode",
    runner=dispatch_install_mode,
    description="Run an alternate install mode (--V1, --prod2021) instead of the default flow",
)

DEFAULT_STEPS: List[StepSpec] = [
    steps.CHECK_DEPENDENCIES,
    DISPATCH_INSTALL_MODE,
    steps.make_clone_step("runtime_repo"),
    steps.INSTALL_DEPENDENCIES,
    steps.RUN_SETUP,
    steps.COPY_DB_INIT,
    steps.INITIALIZE_DB,
    steps.RUN_DB_MIGRATIONS,
    steps.REMOVE_TEMP_DB_INIT_FILES,
    steps.CONFIG_TENANT_ADMIN,
    steps.INSTALL_DEVELOPER_FILES,
    steps.COMPILE_UI,
    steps.DOWN_STACK,
    steps.DEV_INSTALL_END_MESSAGE,
]


def prepare_options(options: Mapping[str, object]) -> Dict[str, object]:
    """Copy caller options into fresh run options and validate the install name."""

    prepared: Dict[str, object] = copy.deepcopy(dict(options))
    positionals = list(prepared.get("_") or [])
    if not prepared.get("name") and positionals:
        prepared["name"] = positionals.pop(0)
    prepared["_"] = positionals

    if not prepared.get("name"):
        raise PreconditionError("missing required param: [name]")

    unstringify_bools(prepared)
    # catch a mistyped --Develop
    prepared["develop"] = to_bool(prepared.get("develop")) or to_bool(prepared.pop("Develop", False))
    return prepared


def run_install(
    options: Mapping[str, object],
    *,
    settings: Optional[InstallerSettings] = None,
    runner: Optional[CommandRunner] = None,
    changer: Optional[DirectoryChanger] = None,
    services: Optional[ServiceLifecycleGuard] = None,
    origin: Optional[Path] = None,
    steps_override: Optional[List[StepSpec]] = None,
) -> PipelineResult:
    run_options = prepare_options(options)
    runner = runner or CommandRunner()
    context = InstallContext(
        options=run_options,
        settings=settings or InstallerSettings(),
        directories=DirectoryStack(changer, origin=origin),
        runner=runner,
        services=services or ServiceLifecycleGuard(runner),
    )
    result = run_pipeline(steps_override or DEFAULT_STEPS, context)
    if result.status == "error":
        logger.error("install failed: %s", result.error)
    return result


__all__ = [
    "DEFAULT_STEPS",
    "DISPATCH_INSTALL_MODE",
    "dispatch_install_mode",
    "prepare_options",
    "run_install",
]
