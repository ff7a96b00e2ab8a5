"""
Idempotent step driver.

    Unknown ─► satisfied? ──yes──► Skipped
                  │ no (or forced)
                  ▼
             [remove prior or partial artifact if forced]
                  ▼
             Installing ─► recheck ──yes──► Installed / Reinstalled
                              │ no
                              ▼
                            Failed
"""

from __future__ import annotations

import logging

from devsetup.core.context import StepContext
from devsetup.core.models.step import StepOutcome, _now_iso
from devsetup.core.services.provisioners.base import ProvisioningStep

logger = logging.getLogger(__name__)


def _failed(
    step: ProvisioningStep,
    started_at: str,
    message: str,
    error: str,
    failed_command: str | None = None,
) -> StepOutcome:
    return StepOutcome(
        step=step.name,
        status="failed",
        fatal=step.fatal,
        message=message,
        error=error,
        failed_command=failed_command,
        started_at=started_at,
    )


def ensure(step: ProvisioningStep, ctx: StepContext) -> StepOutcome:
    """Bring one step to its satisfied state.

    A forced run always calls ``step.remove`` first, so leftovers of an
    interrupted install (which fail the predicate) are cleared too.

    Args:
        step: The step to drive.
        ctx: Run context (options, executor, output, ...).

    Returns:
        StepOutcome with status skipped, installed, reinstalled or failed.
    """
    out = ctx.output
    started_at = _now_iso()
    satisfied = step.is_satisfied(ctx)

    if satisfied and not ctx.force:
        out.trace(f"✓ {step.title}: already satisfied, skipping")
        return StepOutcome(step=step.name, status="skipped", fatal=step.fatal,
                           message="already satisfied", started_at=started_at)

    if satisfied:
        out.notify(f"Reinstalling {step.title}...")
    else:
        out.notify(f"Installing {step.title}...")

    if ctx.force:
        removed = step.remove(ctx)
        if removed is not None and removed.failed:
            return _failed(
                step,
                started_at,
                f"could not remove prior {step.title}",
                removed.stderr.strip() or f"exit status {removed.returncode}",
                removed.description,
            )

    result = step.install(ctx)
    if result.failed:
        return _failed(
            step,
            started_at,
            f"{step.title} install failed",
            result.stderr.strip() or f"exit status {result.returncode}",
            result.description,
        )

    if not step.is_satisfied(ctx):
        # Predicate and action disagree
        out.log_error(
            f"{step.name}: install reported success but the step is still not satisfied"
        )
        return _failed(step, started_at, f"{step.title} did not verify after install",
                       "post-install check failed", f"verify {step.title}")

    status = "reinstalled" if satisfied else "installed"
    logger.info("%s → %s", step.name, status)
    return StepOutcome(step=step.name, status=status, fatal=step.fatal, started_at=started_at)
