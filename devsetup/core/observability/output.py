"""
Output channel — operator messages vs. diagnostic trace.

Two sinks and a toggle:

    notify(msg)     always reaches the terminal
    trace(msg)      reaches the terminal only in verbose mode
    log_error(msg)  always appended to the log file

The terminal handle is captured when the channel is created, so
operator messages and interactive prompts never depend on how other
output is routed. Both sinks also record to the log file.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import IO

import click

logger = logging.getLogger(__name__)

_ECHOED = {"echoed": True}


class OutputChannel:
    """Operator-facing output plus the run's error log."""

    def __init__(self, verbose: bool = False, terminal: IO[str] | None = None):
        self.verbose = verbose
        self._terminal = terminal if terminal is not None else sys.stdout

    @contextmanager
    def terminal(self) -> Iterator[IO[str]]:
        """Scoped access to the original terminal stream."""
        try:
            yield self._terminal
        finally:
            self._terminal.flush()

    def notify(self, message: str) -> None:
        """Always-visible operator message."""
        with self.terminal() as stream:
            click.echo(message, file=stream)
        logger.info(message, extra=_ECHOED)

    def trace(self, message: str) -> None:
        """Diagnostic message, visible only when verbose."""
        if self.verbose:
            with self.terminal() as stream:
                click.echo(message, file=stream)
            logger.debug(message, extra=_ECHOED)
        else:
            logger.debug(message)

    def log_error(self, message: str) -> None:
        """Record an error in the log file without bothering the operator."""
        logger.error(message)

    # ── Interactive input ───────────────────────────────────────

    def prompt(
        self,
        text: str,
        *,
        hide_input: bool = False,
        default: str | None = None,
    ) -> str:
        """Read a line from the operator. Never suppressed."""
        value = click.prompt(
            text,
            default=default,
            hide_input=hide_input,
            show_default=bool(default),
            type=str,
        )
        if not hide_input:
            logger.debug("prompt %r -> %r", text, value)
        return value

    def confirm(self, text: str, default: bool = False) -> bool:
        """Ask a yes/no question. Never suppressed."""
        answer = click.confirm(text, default=default)
        logger.debug("confirm %r -> %s", text, answer)
        return answer
