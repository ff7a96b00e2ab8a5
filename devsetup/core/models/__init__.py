"""
Domain models — Pydantic types for the bootstrapper.

All models are re-exported here for convenient access:

    from devsetup.core.models import RunOptions, SetupConfig, StepOutcome
"""

from devsetup.core.models.config import (
    EditorConfig,
    IdentityConfig,
    NodeConfig,
    PackagesConfig,
    RepositoryConfig,
    SdkConfig,
    SetupConfig,
    ToolchainConfig,
)
from devsetup.core.models.options import EnvVarBinding, RunOptions
from devsetup.core.models.step import CommandResult, StepOutcome, StepStatus

__all__ = [
    "CommandResult",
    "EditorConfig",
    "EnvVarBinding",
    "IdentityConfig",
    "NodeConfig",
    "PackagesConfig",
    "RepositoryConfig",
    "RunOptions",
    "SdkConfig",
    "SetupConfig",
    "StepOutcome",
    "StepStatus",
    "ToolchainConfig",
]
