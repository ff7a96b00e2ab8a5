"""
Pico SDK — a git clone whose nested submodules must all be populated.

"Already satisfied" means: the clone directory is a git work tree, and
``git submodule status --recursive`` lists no uninitialized entries.
A clone with zero registered submodules is satisfied.
"""

from __future__ import annotations

import logging
from pathlib import Path

from devsetup.core.context import StepContext
from devsetup.core.models.options import EnvVarBinding
from devsetup.core.models.step import CommandResult
from devsetup.core.services import detection
from devsetup.core.services.provisioners.base import ProvisioningStep, publish_bindings

logger = logging.getLogger(__name__)


def sdk_initialized(path: Path) -> bool:
    if not detection.is_git_repository(path):
        return False
    missing = detection.uninitialized_submodules(path)
    if missing is None:
        return False
    if missing:
        logger.debug("Uninitialized submodules in %s: %s", path, ", ".join(missing))
    return not missing


class SdkStep(ProvisioningStep):
    """Clone-or-pull the SDK and initialize every submodule."""

    name = "pico-sdk"

    @property
    def title(self) -> str:
        return "Pico SDK"

    def is_satisfied(self, ctx: StepContext) -> bool:
        return sdk_initialized(Path(ctx.config.sdk.path))

    def remove(self, ctx: StepContext) -> CommandResult | None:
        path = Path(ctx.config.sdk.path)
        if not path.exists():
            return None
        return ctx.executor.run(["rm", "-rf", str(path)], f"remove {path}", privileged=True)

    def _trust(self, ctx: StepContext, path: Path) -> CommandResult | None:
        """Register the clone as a git safe.directory once."""
        if str(path) in detection.git_config_values("safe.directory"):
            return None
        return ctx.executor.run(
            ["git", "config", "--global", "--add", "safe.directory", str(path)],
            f"mark {path} as safe.directory",
        )

    def install(self, ctx: StepContext) -> CommandResult:
        cfg = ctx.config.sdk
        path = Path(cfg.path)
        ex = ctx.executor

        if path.exists() and not detection.is_git_repository(path):
            # Present but not a repository: treat as not yet cloned
            logger.warning("%s exists but is not a git repository — replacing it", path)
            result = ex.run(["rm", "-rf", str(path)], f"remove stale {path}", privileged=True)
            if result.failed:
                return result

        if detection.is_git_repository(path):
            trusted = self._trust(ctx, path)
            if trusted is not None and trusted.failed:
                return trusted
            result = ex.run(["git", "-C", str(path), "pull"], "git pull pico-sdk", privileged=True)
        else:
            result = ex.run_all(
                [
                    (["mkdir", "-p", str(path.parent)], f"create {path.parent}"),
                    (["git", "clone", "-b", cfg.branch, cfg.url, str(path)], "git clone pico-sdk"),
                ],
                privileged=True,
            )
            if result.ok:
                trusted = self._trust(ctx, path)
                if trusted is not None and trusted.failed:
                    return trusted
        if result.failed:
            return result

        result = ex.run(
            ["git", "-C", str(path), "submodule", "update", "--init", "--recursive"],
            "git submodule update --init",
            privileged=True,
        )
        if result.failed:
            return result

        return publish_bindings(ctx, [EnvVarBinding(name=cfg.env_var, value=str(path))])
