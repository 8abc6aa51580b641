"""Mutually exclusive installation modes and their alternate flows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

from . import steps
from .context import InstallContext, to_bool
from .dirstack import DirectoryStack
from .outcome import PreconditionError
from .pipeline import PipelineResult, StepSpec, run_pipeline

logger = logging.getLogger(__name__)


class ModeRunner(Protocol):
    def __call__(
        self, options: Dict[str, object], parent: Optional[InstallContext] = None
    ) -> PipelineResult:  # pragma: no cover - interface
        ...


@dataclass(frozen=True)
class InstallModeSpec:
    slug: str
    flags: Tuple[str, ...]
    description: str
    runner: ModeRunner
    priority: int = 100

    def matches(self, options: Mapping[str, object]) -> bool:
        return any(to_bool(options.get(flag)) for flag in self.flags)

    def to_dict(self) -> dict[str, object]:
        return {
            "slug": self.slug,
            "flags": list(self.flags),
            "description": self.description,
            "priority": self.priority,
        }


_MODES: Dict[str, InstallModeSpec] = {}


def register_mode(spec: InstallModeSpec) -> None:
    if spec.slug in _MODES:
        raise ValueError(f"Install mode '{spec.slug}' already registered.")
    _MODES[spec.slug] = spec


def get_mode(slug: str) -> InstallModeSpec:
    try:
        return _MODES[slug]
    except KeyError as exc:
        available = ", ".join(sorted(_MODES))
        raise KeyError(f"Unknown install mode '{slug}'. Available modes: {available}.") from exc


def list_modes() -> List[InstallModeSpec]:
    return sorted(_MODES.values(), key=lambda spec: (spec.priority, spec.slug))


def detect_mode(options: Mapping[str, object], modes: Optional[Iterable[InstallModeSpec]] = None) -> Optional[InstallModeSpec]:
    """Return the highest-precedence mode whose flag is set, if any."""

    candidates = sorted(modes, key=lambda spec: (spec.priority, spec.slug)) if modes is not None else list_modes()
    for spec in candidates:
        if spec.matches(options):
            return spec
    return None


def _sub_context(options: Dict[str, object], parent: Optional[InstallContext]) -> InstallContext:
    positionals = list(options.get("_") or [])
    if not positionals or not positionals[0]:
        raise PreconditionError("missing required param: [name]")
    options = dict(options)
    options["name"] = str(positionals.pop(0))
    options["_"] = positionals

    if parent is None:
        return InstallContext(options=options)
    return InstallContext(
        options=options,
        settings=parent.settings,
        directories=DirectoryStack(parent.directories.changer, origin=parent.cwd),
        runner=parent.runner,
        services=parent.services,
    )


def _run_flow(flow: Sequence[StepSpec], options: Dict[str, object], parent: Optional[InstallContext]) -> PipelineResult:
    try:
        context = _sub_context(options, parent)
    except PreconditionError as exc:
        return PipelineResult(status="error", error=exc)
    return run_pipeline(flow, context)


LEGACY_V1_STEPS: List[StepSpec] = [
    steps.CHECK_DEPENDENCIES,
    steps.make_clone_step("v1_repo"),
    steps.INSTALL_DEPENDENCIES,
    steps.RUN_SETUP,
]

PROD2021_STEPS: List[StepSpec] = [
    steps.CHECK_DEPENDENCIES,
    steps.make_clone_step("prod2021_repo"),
    steps.RUN_SETUP,
    steps.COPY_DB_INIT,
    steps.INITIALIZE_DB,
    steps.RUN_DB_MIGRATIONS,
    steps.REMOVE_TEMP_DB_INIT_FILES,
    steps.CONFIG_TENANT_ADMIN,
    steps.DOWN_STACK,
]


def run_legacy_v1(options: Dict[str, object], parent: Optional[InstallContext] = None) -> PipelineResult:
    logger.info("... installing the v1 AppBuilder environment")
    return _run_flow(LEGACY_V1_STEPS, options, parent)


def run_prod2021(options: Dict[str, object], parent: Optional[InstallContext] = None) -> PipelineResult:
    logger.info("... installing the 2021 production environment")
    return _run_flow(PROD2021_STEPS, options, parent)


register_mode(
    InstallModeSpec(
        slug="legacy-v1",
        flags=("V1", "v1"),
        description="Install the v1 AppBuilder (sails) runtime.",
        runner=run_legacy_v1,
        priority=10,
    )
)

register_mode(
    InstallModeSpec(
        slug="prod2021",
        flags=("prod2021",),
        description="Install the 2021 production runtime.",
        runner=run_prod2021,
        priority=20,
    )
)


__all__ = [
    "InstallModeSpec",
    "LEGACY_V1_STEPS",
    "ModeRunner",
    "PROD2021_STEPS",
    "detect_mode",
    "get_mode",
    "list_modes",
    "register_mode",
    "run_legacy_v1",
    "run_prod2021",
]
