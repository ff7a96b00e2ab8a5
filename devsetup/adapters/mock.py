"""
Mock executor — test double for the command executor.

Records every command instead of running it. Configurable to fail
specific commands (matched by description) and to run side effects
that simulate what the real command would have done on disk.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from devsetup.adapters.shell.command import Command, CommandExecutor, format_command
from devsetup.core.models.step import CommandResult
from devsetup.core.observability.output import OutputChannel


@dataclass
class RecordedCall:
    """One command the mock was asked to run."""

    description: str
    command: str
    fatal: bool
    privileged: bool
    cwd: str | None = None
    env: dict[str, str] = field(default_factory=dict)


class MockCommandExecutor(CommandExecutor):
    """Command executor that never touches the host.

    By default every command succeeds with ``default_stdout``.
    """

    def __init__(
        self,
        output: OutputChannel | None = None,
        default_stdout: str = "",
    ):
        super().__init__(output or OutputChannel(verbose=False), use_sudo=False)
        self._default_stdout = default_stdout
        self._failures: dict[str, tuple[int, str]] = {}
        self._stdout: dict[str, str] = {}
        self._effects: dict[str, Callable[[], None]] = {}
        self._call_log: list[RecordedCall] = []

    @property
    def call_log(self) -> list[RecordedCall]:
        """All commands this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def descriptions(self) -> list[str]:
        return [c.description for c in self._call_log]

    def set_failure(self, description: str, error: str = "Mock failure", returncode: int = 1) -> None:
        """Configure commands whose description contains ``description`` to fail."""
        self._failures[description] = (returncode, error)

    def set_stdout(self, description: str, stdout: str) -> None:
        """Configure stdout for commands whose description contains ``description``."""
        self._stdout[description] = stdout

    def on(self, description: str, effect: Callable[[], None]) -> None:
        """Run ``effect`` when a command whose description contains ``description`` succeeds."""
        self._effects[description] = effect

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
        self._call_log.append(RecordedCall(
            description=description,
            command=format_command(cmd),
            fatal=fatal,
            privileged=privileged,
            cwd=cwd,
            env=dict(env or {}),
        ))

        for key, (returncode, error) in self._failures.items():
            if key in description:
                if fatal:
                    self.output.log_error(f"Fatal: {description} failed: {error}")
                else:
                    self.output.log_error(f"Non-fatal: {description} failed: {error}")
                return CommandResult(
                    description=description,
                    returncode=returncode,
                    stderr=error,
                    fatal=fatal,
                )

        for key, effect in self._effects.items():
            if key in description:
                effect()

        stdout = next(
            (out for key, out in self._stdout.items() if key in description),
            self._default_stdout,
        )
        return CommandResult(description=description, stdout=stdout, fatal=fatal)

    def reset(self) -> None:
        """Clear call log, failures, and effects."""
        self._call_log.clear()
        self._failures.clear()
        self._stdout.clear()
        self._effects.clear()
