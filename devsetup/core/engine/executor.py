"""
Engine executor — the provisioning loop and its single halt decision.

Steps run in their fixed order through ``ensure``. A failed fatal step
stops the run immediately; a failed non-fatal step is recorded and the
run continues. The report keeps every outcome so the caller can print
the aggregate and choose the exit status.

Flow:
    steps → ensure each → collect outcomes → halt on fatal failure
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from devsetup.core.context import StepContext
from devsetup.core.engine.ensure import ensure
from devsetup.core.models.step import StepOutcome
from devsetup.core.services.provisioners.base import ProvisioningStep

logger = logging.getLogger(__name__)


@dataclass
class ProvisioningReport:
    """Result of running the provisioning sequence."""

    outcomes: list[StepOutcome] = field(default_factory=list)
    halted_by: StepOutcome | None = None

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def installed(self) -> list[str]:
        return [o.step for o in self.outcomes if o.status in ("installed", "reinstalled")]

    @property
    def skipped(self) -> list[str]:
        return [o.step for o in self.outcomes if o.status == "skipped"]

    @property
    def failures(self) -> list[StepOutcome]:
        """Non-fatal failures, in the order they happened."""
        return [o for o in self.outcomes if o.failed and not o.fatal]

    @property
    def halted(self) -> bool:
        return self.halted_by is not None

    @property
    def status(self) -> str:
        if self.halted:
            return "failed"
        if self.failures:
            return "partial"
        return "ok"

    def status_of(self, step_name: str) -> str | None:
        for outcome in self.outcomes:
            if outcome.step == step_name:
                return outcome.status
        return None

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "total": self.total,
            "installed": self.installed,
            "skipped": self.skipped,
            "failures": [o.step for o in self.failures],
            "halted_by": self.halted_by.step if self.halted_by else None,
            "outcomes": [o.model_dump(mode="json") for o in self.outcomes],
        }


def run_steps(steps: Iterable[ProvisioningStep], ctx: StepContext) -> ProvisioningReport:
    """Run steps in order; stop at the first fatal failure.

    Args:
        steps: Steps in execution order.
        ctx: Run context.

    Returns:
        ProvisioningReport with one outcome per step that ran.
    """
    report = ProvisioningReport()

    for step in steps:
        outcome = ensure(step, ctx)
        report.outcomes.append(outcome)

        status_marker = "✓" if outcome.ok else "✗"
        logger.info("%s %s → %s", status_marker, step.name, outcome.status)

        if outcome.halts_run:
            report.halted_by = outcome
            logger.error("Halting: fatal step %s failed (%s)", step.name, outcome.error)
            break
        if outcome.failed:
            ctx.output.trace(f"✗ {step.title} failed; continuing")

    return report
