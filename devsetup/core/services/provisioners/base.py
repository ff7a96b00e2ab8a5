"""
Provisioning step base — the contract between the engine and installers.

A step answers one question cheaply (``is_satisfied``) and knows how to
make the answer true (``install``). ``remove`` clears a prior artifact
before a forced reinstall. The engine only talks to steps through this
interface; steps never exit the process and never raise for a failing
tool — failures come back as a ``CommandResult``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from devsetup.core.context import StepContext
from devsetup.core.models.options import EnvVarBinding
from devsetup.core.models.step import CommandResult


class ProvisioningStep(ABC):
    """Abstract base class for all provisioning steps.

    To create a new step:
        1. Subclass ProvisioningStep
        2. Implement name, is_satisfied, install
        3. Override remove if a forced reinstall must clear state first
        4. Add it to ``build_steps``
    """

    #: A failure of a fatal step halts the whole run.
    fatal: bool = True

    @property
    @abstractmethod
    def name(self) -> str:
        """Step identifier (e.g. 'arm-toolchain')."""

    @property
    def title(self) -> str:
        """Operator-facing label."""
        return self.name

    @abstractmethod
    def is_satisfied(self, ctx: StepContext) -> bool:
        """Whether the artifact is already in place.

        MUST be side-effect-free and cheap: existence checks, PATH
        lookups, version checks.
        """

    @abstractmethod
    def install(self, ctx: StepContext) -> CommandResult:
        """Make the artifact exist. Runs commands through ``ctx.executor``."""

    def remove(self, ctx: StepContext) -> CommandResult | None:
        """Remove a prior artifact before a forced reinstall.

        Default: nothing to remove (the install action overwrites).
        """
        return None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} fatal={self.fatal}>"


def publish_bindings(
    ctx: StepContext,
    bindings: list[EnvVarBinding],
    *,
    fatal: bool = True,
) -> CommandResult:
    """Publish env bindings, turning a host write error into a failed result."""
    description = "publish " + ", ".join(b.name for b in bindings)
    try:
        ctx.publisher.publish_all(bindings)
    except OSError as e:
        label = "Fatal" if fatal else "Non-fatal"
        ctx.output.log_error(f"{label}: {description} failed: {e}")
        return CommandResult.failure(description, str(e), fatal=fatal)
    return CommandResult.success(description, fatal=fatal)
