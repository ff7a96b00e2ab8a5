"""
Run options and environment bindings.

``RunOptions`` is fixed once the command line is parsed and is threaded
through every step via the step context.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict


class RunOptions(BaseModel):
    """Flags that shape one run."""

    model_config = ConfigDict(frozen=True)

    verbose: bool = False
    force_reinstall: bool = False
    interactive: bool = True


class EnvVarBinding(BaseModel):
    """A named environment value persisted for later shells or CI steps."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str
    target: Literal["shell", "ci"] = "shell"

    def shell_line(self) -> str:
        """The ``export`` line written to the shell-init file."""
        return f'export {self.name}="{self.value}"'

    def ci_line(self, expanded_value: str) -> str:
        """The ``NAME=VALUE`` line written to the CI environment file."""
        return f"{self.name}={expanded_value}"
