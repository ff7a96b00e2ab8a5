"""
OS package batches (apt).

Only missing packages are installed on a normal run; a forced run
reinstalls the whole batch.
"""

from __future__ import annotations

from devsetup.core.context import StepContext
from devsetup.core.models.step import CommandResult
from devsetup.core.services import detection
from devsetup.core.services.provisioners.base import ProvisioningStep

_APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


def apt_install(ctx: StepContext, packages: list[str], description: str, *, reinstall: bool = False) -> CommandResult:
    """``apt-get update`` followed by ``apt-get install -y``."""
    update = ctx.executor.run(
        ["apt-get", "update"], "apt-get update",
        privileged=True, env=_APT_ENV,
    )
    if update.failed:
        return update
    cmd = ["apt-get", "install", "-y"]
    if reinstall:
        cmd.append("--reinstall")
    return ctx.executor.run(cmd + packages, description, privileged=True, env=_APT_ENV)


class PackagesStep(ProvisioningStep):
    """Install a batch of OS packages; fatal on failure."""

    def __init__(self, name: str, packages: list[str], title: str | None = None):
        self._name = name
        self._title = title or name
        self.packages = list(packages)

    @property
    def name(self) -> str:
        return self._name

    @property
    def title(self) -> str:
        return self._title

    def is_satisfied(self, ctx: StepContext) -> bool:
        return not detection.missing_packages(self.packages)

    def install(self, ctx: StepContext) -> CommandResult:
        if ctx.force:
            targets = self.packages
        else:
            targets = detection.missing_packages(self.packages)
        if not targets:
            return CommandResult.success(f"install {self.name}")
        return apt_install(
            ctx, targets, f"apt-get install {' '.join(targets)}",
            reinstall=ctx.force,
        )
