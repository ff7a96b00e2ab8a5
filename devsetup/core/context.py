"""
Step context — everything a provisioning step needs for one run.

Built once by main.py after flag parsing and handed to every step, so
no component reaches for process-wide state: options, configuration,
the output channel, the command executor and the env publisher all
travel together.
"""

from __future__ import annotations

from dataclasses import dataclass

from devsetup.adapters.shell.command import CommandExecutor
from devsetup.core.models.config import SetupConfig
from devsetup.core.models.options import RunOptions
from devsetup.core.observability.output import OutputChannel
from devsetup.core.services.env_publish import EnvironmentPublisher


@dataclass(frozen=True)
class StepContext:
    options: RunOptions
    config: SetupConfig
    output: OutputChannel
    executor: CommandExecutor
    publisher: EnvironmentPublisher

    @property
    def force(self) -> bool:
        return self.options.force_reinstall
