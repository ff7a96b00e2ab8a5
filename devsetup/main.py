"""
devsetup — CLI entrypoint.

Usage:
    python -m devsetup.main --help
    python -m devsetup.main -v
    python -m devsetup.main -f --toolchain-version 13.3.rel1
"""

from __future__ import annotations

import logging
import os
import signal
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click

from devsetup import __version__
from devsetup.adapters.shell.command import CommandExecutor
from devsetup.core.context import StepContext
from devsetup.core.models.config import SetupConfig
from devsetup.core.models.options import RunOptions
from devsetup.core.observability.logging_config import setup_logging
from devsetup.core.observability.output import OutputChannel
from devsetup.core.services import detection
from devsetup.core.services.env_publish import EnvironmentPublisher
from devsetup.core.services.provisioners import ProvisioningStep, build_steps

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


@contextmanager
def interrupt_handler(output: OutputChannel, log_path: Path | None) -> Iterator[None]:
    """Turn SIGINT/SIGTERM into a logged, non-zero exit.

    Partial installs are not rolled back; re-running skips what finished.
    """
    def _on_interrupt(signum, _frame):
        logger.warning("Interrupted by signal %s", signum)
        output.notify("")
        output.notify(f"Setup interrupted. Partial installs are not rolled back; see {log_path}.")
        sys.exit(EXIT_INTERRUPTED)

    previous = {sig: signal.signal(sig, _on_interrupt) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def build_context(config: SetupConfig, options: RunOptions) -> StepContext:
    output = OutputChannel(verbose=options.verbose)
    return StepContext(
        options=options,
        config=config,
        output=output,
        executor=CommandExecutor(output, use_sudo=config.use_sudo),
        publisher=EnvironmentPublisher(
            config.shell_init_file,
            ci_env_file=detection.ci_env_file(),
        ),
    )


def _fail(out: OutputChannel, description: str, log_path: Path | None) -> int:
    out.notify(f"Setup failed during: {description} - check {log_path} for details.")
    return EXIT_FAILURE


def run_setup(
    ctx: StepContext,
    steps: list[ProvisioningStep],
    log_path: Path | None = None,
) -> int:
    """Run the whole setup. Returns the process exit status."""
    from devsetup.core.engine.executor import run_steps
    from devsetup.core.services.identity import IdentitySetup
    from devsetup.core.services.repository import RepositorySetup

    out = ctx.output
    out.notify("Starting development environment setup...")
    report = run_steps(steps, ctx)

    if report.halted_by is not None:
        failed = report.halted_by
        return _fail(out, failed.failed_command or failed.step, log_path)

    out.notify("Toolchain installed successfully.")

    if ctx.options.interactive:
        if out.confirm("Do you wish to proceed with Git SSH key setup?"):
            IdentitySetup(ctx).run()
        else:
            out.notify("Skipping Git SSH key setup.")

        repo = ctx.config.repository
        if out.confirm(f"Do you wish to clone the '{repo.name}' repository?"):
            parent = out.prompt(f"Enter the full path where you want to clone '{repo.name}'")
            result = RepositorySetup(ctx).run(parent)
            if result.failed:
                return _fail(out, result.description, log_path)
        else:
            out.notify("Skipping repository cloning.")

    if report.failures:
        out.notify(f"{len(report.failures)} step(s) failed (details in {log_path}):")
        for outcome in report.failures:
            out.notify(f"  ✗ {outcome.step}: {outcome.error}")
        out.notify("Setup completed with non-fatal failures.")
    else:
        out.notify("Setup completed successfully.")
    return 0


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="devsetup")
@click.option("--verbose", "-v", is_flag=True, help="Mirror all diagnostic output to the terminal.")
@click.option(
    "--force", "-f", is_flag=True,
    help="Re-run every install step, removing prior artifacts first.",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to devsetup.yml (default: auto-detect).",
)
@click.option(
    "--toolchain-version", "-t", default=None,
    help="ARM GNU toolchain release to install (e.g. 13.2.rel1).",
)
@click.option("--log-file", default=None, help="Log file (truncated each run).")
@click.option(
    "--non-interactive", is_flag=True,
    help="Skip SSH and repository prompts (implied in CI).",
)
def cli(
    verbose: bool,
    force: bool,
    config_path: str | None,
    toolchain_version: str | None,
    log_file: str | None,
    non_interactive: bool,
) -> None:
    """Provision the embedded development environment on this host."""
    from devsetup.core.config.loader import ConfigError, load_config

    try:
        config = load_config(Path(config_path) if config_path else None)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(EXIT_FAILURE)

    if toolchain_version:
        config = config.model_copy(update={
            "toolchain": config.toolchain.model_copy(update={"version": toolchain_version}),
        })

    log_path = setup_logging(
        log_file or os.environ.get("DEVSETUP_LOG_FILE") or config.log_file,
        console_level="DEBUG" if verbose else None,
    )

    options = RunOptions(
        verbose=verbose,
        force_reinstall=force,
        interactive=not non_interactive and not detection.detect_ci(),
    )
    ctx = build_context(config, options)
    logger.info("devsetup %s (force=%s, verbose=%s)", __version__, force, verbose)

    with interrupt_handler(ctx.output, log_path):
        code = run_setup(ctx, build_steps(config), log_path)
    sys.exit(code)


if __name__ == "__main__":
    cli()
