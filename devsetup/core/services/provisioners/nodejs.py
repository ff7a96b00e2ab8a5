"""
Node.js from the vendor package source, gated on a minimum version.
"""

from __future__ import annotations

from devsetup.core.context import StepContext
from devsetup.core.models.step import CommandResult
from devsetup.core.services import detection
from devsetup.core.services.provisioners.base import ProvisioningStep
from devsetup.core.services.provisioners.packages import apt_install
from devsetup.core.services.versioning import satisfies_minimum


class NodeStep(ProvisioningStep):
    name = "nodejs"

    @property
    def title(self) -> str:
        return "Node.js"

    def is_satisfied(self, ctx: StepContext) -> bool:
        installed = detection.tool_version(["node", "--version"])
        return satisfies_minimum(installed, ctx.config.node.minimum_version)

    def install(self, ctx: StepContext) -> CommandResult:
        setup = ctx.executor.run(
            f"curl -fsSL {ctx.config.node.setup_url} | bash -",
            "add Node.js package source",
            privileged=True,
        )
        if setup.failed:
            return setup
        return apt_install(ctx, ["nodejs"], "apt-get install nodejs", reinstall=ctx.force)
