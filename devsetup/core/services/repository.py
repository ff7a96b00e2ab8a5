"""
Target repository — clone, check out, update submodules, build.

Runs after the toolchain is in place. Every command here is fatal: a
half-cloned firmware tree is not a useful end state.
"""

from __future__ import annotations

import logging
from pathlib import Path

from devsetup.core.context import StepContext
from devsetup.core.models.step import CommandResult
from devsetup.core.services import detection

logger = logging.getLogger(__name__)


class RepositorySetup:
    def __init__(self, ctx: StepContext):
        self.ctx = ctx
        self.cfg = ctx.config.repository

    def destination(self, parent: str | Path) -> Path:
        return Path(parent).expanduser() / self.cfg.name

    def run(self, parent: str | Path) -> CommandResult:
        """Clone (or reuse) the repository under ``parent`` and build it."""
        ex = self.ctx.executor
        out = self.ctx.output
        dest = self.destination(parent)

        if detection.is_git_repository(dest):
            out.trace(f"{dest} is already a clone, updating it")
        else:
            out.notify(f"Cloning '{self.cfg.name}' into {dest.parent}...")
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                out.log_error(f"Fatal: cannot create {dest.parent}: {e}")
                return CommandResult.failure(f"create {dest.parent}", str(e))
            result = ex.run(["git", "clone", self.cfg.url, str(dest)], f"git clone {self.cfg.name}")
            if result.failed:
                return result

        out.notify(f"Checking out the '{self.cfg.branch}' branch...")
        result = ex.run_all(
            [
                (["git", "checkout", self.cfg.branch], f"git checkout {self.cfg.branch}"),
                (["git", "pull"], "git pull"),
                (["git", "submodule", "update", "--init", "--recursive", "--remote"],
                 "git submodule update"),
            ],
            cwd=str(dest),
        )
        if result.failed:
            return result

        if self.cfg.build_commands:
            out.notify(f"Building '{self.cfg.name}'...")
            result = ex.run_all(
                [(cmd, cmd) for cmd in self.cfg.build_commands],
                cwd=str(dest),
            )
            if result.failed:
                return result

        out.notify(f"Repository '{self.cfg.name}' is ready for use.")
        return result
