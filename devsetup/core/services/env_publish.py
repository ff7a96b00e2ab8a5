"""
Environment publisher — persist env bindings without duplicates.

Shell bindings become ``export NAME="VALUE"`` lines in the shell-init
file. When a CI environment file is known (GitHub Actions), every
binding is also written there as ``NAME=VALUE`` so later CI steps see
it without sourcing anything.

Appending is idempotent per exact line only: publishing a new VALUE for
an existing NAME adds a second line and leaves the old one in place.
The binding is also applied to the running process so that later steps
of this run see it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from devsetup.core.models.options import EnvVarBinding

logger = logging.getLogger(__name__)


def _has_line(path: Path, line: str) -> bool:
    if not path.is_file():
        return False
    with open(path, encoding="utf-8") as f:
        return any(existing.rstrip("\n") == line for existing in f)


def _append_line(path: Path, line: str) -> bool:
    """Append ``line`` unless already present. Returns True if written."""
    if _has_line(path, line):
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    prefix = ""
    if path.is_file() and path.stat().st_size > 0:
        with open(path, "rb") as f:
            f.seek(-1, os.SEEK_END)
            if f.read(1) != b"\n":
                prefix = "\n"
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"{prefix}{line}\n")
    return True


class EnvironmentPublisher:
    """Writes bindings to the shell-init file and, in CI, the CI env file."""

    def __init__(self, shell_init_file: str | Path, ci_env_file: str | Path | None = None):
        self.shell_init_file = Path(shell_init_file).expanduser()
        self.ci_env_file = Path(ci_env_file) if ci_env_file else None

    def publish(self, binding: EnvVarBinding) -> bool:
        """Persist one binding.

        Returns:
            True if any file was changed.
        """
        expanded = os.path.expandvars(binding.value)
        changed = False

        if binding.target == "shell":
            line = binding.shell_line()
            if _append_line(self.shell_init_file, line):
                logger.info("Published %s to %s", binding.name, self.shell_init_file)
                changed = True
            else:
                logger.debug("%s already present in %s", line, self.shell_init_file)

        if self.ci_env_file is not None:
            if _append_line(self.ci_env_file, binding.ci_line(expanded)):
                logger.info("Published %s to CI env file %s", binding.name, self.ci_env_file)
                changed = True
        elif binding.target == "ci":
            logger.debug("No CI env file — CI binding %s only applied in-process", binding.name)

        os.environ[binding.name] = expanded
        return changed

    def publish_all(self, bindings: list[EnvVarBinding]) -> bool:
        changed = False
        for binding in bindings:
            changed = self.publish(binding) or changed
        return changed

    def is_published(self, binding: EnvVarBinding) -> bool:
        """Whether the binding's line is already in its target file."""
        if binding.target == "ci":
            if self.ci_env_file is None:
                return False
            return _has_line(self.ci_env_file, binding.ci_line(os.path.expandvars(binding.value)))
        return _has_line(self.shell_init_file, binding.shell_line())
