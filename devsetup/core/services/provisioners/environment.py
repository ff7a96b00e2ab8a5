"""
Extra environment bindings from the configuration (e.g. a serial
console string for the target board).
"""

from __future__ import annotations

from devsetup.core.context import StepContext
from devsetup.core.models.options import EnvVarBinding
from devsetup.core.models.step import CommandResult
from devsetup.core.services.provisioners.base import ProvisioningStep, publish_bindings


class EnvironmentStep(ProvisioningStep):
    name = "environment"
    fatal = False

    def __init__(self, variables: dict[str, str]):
        self.bindings = [EnvVarBinding(name=k, value=v) for k, v in variables.items()]

    @property
    def title(self) -> str:
        return "environment variables"

    def is_satisfied(self, ctx: StepContext) -> bool:
        return all(ctx.publisher.is_published(b) for b in self.bindings)

    def install(self, ctx: StepContext) -> CommandResult:
        return publish_bindings(ctx, self.bindings, fatal=False)
