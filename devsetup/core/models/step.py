"""
Command and step results — the provisioning contract.

The executor runs commands and returns ``CommandResult``s. Steps are
driven by ``ensure()`` and produce ``StepOutcome``s. Neither raises for
a failing tool: failures are captured here and the top-level dispatcher
decides whether the run halts.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


StepStatus = Literal["skipped", "installed", "reinstalled", "failed"]


class CommandResult(BaseModel):
    """Result of one command run through the executor."""

    description: str
    argv: list[str] = Field(default_factory=list)
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    fatal: bool = True
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        """Whether the command exited with status zero."""
        return self.returncode == 0

    @property
    def failed(self) -> bool:
        return not self.ok

    @classmethod
    def success(cls, description: str, **kwargs) -> CommandResult:
        """Result for an in-process action that completed."""
        return cls(description=description, returncode=0, **kwargs)

    @classmethod
    def failure(
        cls,
        description: str,
        error: str,
        returncode: int = 1,
        **kwargs,
    ) -> CommandResult:
        """Result for an in-process action that could not complete."""
        return cls(description=description, returncode=returncode, stderr=error, **kwargs)


class StepOutcome(BaseModel):
    """Terminal state of one provisioning step.

    ``skipped``     — already satisfied, nothing done
    ``installed``   — was unsatisfied, install verified
    ``reinstalled`` — was satisfied, forced through remove + install
    ``failed``      — install failed or did not verify
    """

    step: str
    status: StepStatus
    fatal: bool = True
    message: str = ""
    error: str | None = None
    failed_command: str | None = None   # description of the command that failed

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)

    @property
    def ok(self) -> bool:
        return self.status != "failed"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def halts_run(self) -> bool:
        """Whether this outcome must stop the whole run."""
        return self.failed and self.fatal
