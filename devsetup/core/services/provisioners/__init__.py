"""
Provisioners — concrete idempotent steps, in their fixed run order.
"""

from __future__ import annotations

from devsetup.core.models.config import SetupConfig
from devsetup.core.services.provisioners.base import ProvisioningStep
from devsetup.core.services.provisioners.editor import EditorStep, ExtensionStep, SettingsStep
from devsetup.core.services.provisioners.environment import EnvironmentStep
from devsetup.core.services.provisioners.nodejs import NodeStep
from devsetup.core.services.provisioners.packages import PackagesStep
from devsetup.core.services.provisioners.sdk import SdkStep
from devsetup.core.services.provisioners.toolchain import ToolchainStep


def build_steps(config: SetupConfig) -> list[ProvisioningStep]:
    """The provisioning sequence for one run."""
    steps: list[ProvisioningStep] = [
        PackagesStep("system-packages", config.packages.base, title="system packages"),
        ToolchainStep(),
        SdkStep(),
        PackagesStep("dev-tools", config.packages.dev_tools, title="development tools"),
        NodeStep(),
        EditorStep(),
        SettingsStep(),
    ]
    steps.extend(ExtensionStep(ext) for ext in config.editor.extensions)
    if config.environment:
        steps.append(EnvironmentStep(config.environment))
    return steps


__all__ = [
    "EditorStep",
    "EnvironmentStep",
    "ExtensionStep",
    "NodeStep",
    "PackagesStep",
    "ProvisioningStep",
    "SdkStep",
    "SettingsStep",
    "ToolchainStep",
    "build_steps",
]
