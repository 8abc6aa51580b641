"""Orchestrated installation of the AppBuilder runtime."""

from .context import InstallContext
from .dirstack import DirectoryStack, OsDirectoryChanger
from .install import DEFAULT_STEPS, dispatch_install_mode, prepare_options, run_install
from .modes import InstallModeSpec, detect_mode, get_mode, list_modes, register_mode
from .outcome import (
    CommandError,
    DirectoryStackError,
    InstallError,
    Outcome,
    PreconditionError,
    ServiceError,
    StepFailedError,
)
from .pipeline import PipelineResult, StepReport, StepSpec, run_pipeline
from .services import ServiceConfig, ServiceHandle, ServiceLifecycleGuard

__version__ = "0.1.0"

__all__ = [
    "CommandError",
    "DEFAULT_STEPS",
    "DirectoryStack",
    "DirectoryStackError",
    "InstallContext",
    "InstallError",
    "InstallModeSpec",
    "OsDirectoryChanger",
    "Outcome",
    "PipelineResult",
    "PreconditionError",
    "ServiceConfig",
    "ServiceError",
    "ServiceHandle",
    "ServiceLifecycleGuard",
    "StepFailedError",
    "StepReport",
    "StepSpec",
    "detect_mode",
    "dispatch_install_mode",
    "get_mode",
    "list_modes",
    "prepare_options",
    "register_mode",
    "run_install",
    "run_pipeline",
]
