"""
Shell command adapter — the single place where provisioning commands run.

Commands are either argv lists (executed directly) or shell strings
(executed under ``/bin/bash -o pipefail -c`` for pipelines and redirections,
so a failing stage anywhere in a pipeline fails the command).
stdout is traced through the output channel; stderr always goes to the
log file. A failing command never raises: the failure is captured in
the returned ``CommandResult`` and the caller decides what it means.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import time
from collections.abc import Iterable, Mapping, Sequence

from devsetup.core.models.step import CommandResult
from devsetup.core.observability.output import OutputChannel

logger = logging.getLogger(__name__)

Command = str | Sequence[str]


def format_command(cmd: Command) -> str:
    """Render a command for logs and messages."""
    if isinstance(cmd, str):
        return cmd
    return " ".join(shlex.quote(a) for a in cmd)


class CommandExecutor:
    """Run commands with consistent logging and failure capture.

    Args:
        output: Channel for traced stdout and logged errors.
        use_sudo: Whether ``privileged`` commands get a ``sudo`` prefix
            when not already running as root.
    """

    def __init__(self, output: OutputChannel, *, use_sudo: bool = True):
        self.output = output
        self.use_sudo = use_sudo

    def _argv(self, cmd: Command, privileged: bool) -> list[str]:
        if isinstance(cmd, str):
            argv = ["/bin/bash", "-o", "pipefail", "-c", cmd]
        else:
            argv = list(cmd)
        if privileged and self.use_sudo and os.geteuid() != 0 and shutil.which("sudo"):
            argv = ["sudo", "-E"] + argv
        return argv

    def run(
        self,
        cmd: Command,
        description: str,
        *,
        fatal: bool = True,
        privileged: bool = False,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        input_text: str | None = None,
        sensitive: bool = False,
    ) -> CommandResult:
        """Run one command.

        Args:
            cmd: argv list, or a shell string.
            description: Short operator-facing label for the command.
            fatal: Whether a failure of this command halts the run.
            privileged: Run through sudo when not root.
            cwd: Working directory.
            env: Extra environment variables.
            input_text: Data piped to stdin.
            sensitive: Keep the command line out of the log.

        Returns:
            CommandResult. ``returncode`` 127 when the executable is missing.
        """
        argv = self._argv(cmd, privileged)
        shown = "<redacted>" if sensitive else format_command(argv)
        logger.debug("CMD [%s] %s (cwd=%s)", description, shown, cwd)

        full_env = None
        if env:
            full_env = os.environ.copy()
            full_env.update(env)

        start = time.monotonic()
        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                cwd=cwd,
                env=full_env,
                input=input_text,
            )
            returncode, stdout, stderr = proc.returncode, proc.stdout or "", proc.stderr or ""
        except FileNotFoundError as e:
            returncode, stdout, stderr = 127, "", f"Command not found: {e.filename or argv[0]}"
        except OSError as e:
            returncode, stdout, stderr = 126, "", f"Cannot execute {argv[0]}: {e}"
        elapsed_ms = int((time.monotonic() - start) * 1000)

        for line in stdout.splitlines():
            self.output.trace(f"  {line}")
        if stderr.strip():
            logger.debug("STDERR [%s] %s", description, stderr.strip())

        result = CommandResult(
            description=description,
            argv=[] if sensitive else argv,
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
            fatal=fatal,
            duration_ms=elapsed_ms,
        )

        if result.failed:
            detail = stderr.strip() or f"exit status {returncode}"
            if fatal:
                self.output.log_error(
                    f"Fatal: {description} failed (exit {returncode}): {detail}"
                )
            else:
                self.output.log_error(
                    f"Non-fatal: {description} failed (exit {returncode}): {detail}"
                )
        return result

    def run_all(
        self,
        commands: Iterable[tuple[Command, str]],
        *,
        fatal: bool = True,
        privileged: bool = False,
        cwd: str | None = None,
    ) -> CommandResult:
        """Run ``(command, description)`` pairs in order, stopping at the first failure.

        Returns the failing result, or the last result when all succeed.
        """
        result = CommandResult.success("no commands")
        for cmd, description in commands:
            result = self.run(cmd, description, fatal=fatal, privileged=privileged, cwd=cwd)
            if result.failed:
                break
        return result
