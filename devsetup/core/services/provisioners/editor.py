"""
Visual Studio Code: the editor package, its settings document, and
one step per extension.

Extension steps are non-fatal: one extension failing to install is
logged and the remaining extensions still get their turn.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from devsetup.core.context import StepContext
from devsetup.core.models.config import SetupConfig
from devsetup.core.models.step import CommandResult
from devsetup.core.services import detection
from devsetup.core.services.provisioners.base import ProvisioningStep
from devsetup.core.services.provisioners.packages import apt_install
from devsetup.core.services.provisioners.toolchain import usable_toolchain

logger = logging.getLogger(__name__)


class EditorStep(ProvisioningStep):
    name = "vscode"

    @property
    def title(self) -> str:
        return "Visual Studio Code"

    def is_satisfied(self, ctx: StepContext) -> bool:
        return detection.binary_on_path(ctx.config.editor.command)

    def install(self, ctx: StepContext) -> CommandResult:
        cfg = ctx.config.editor
        key_tmp = Path(tempfile.gettempdir()) / "packages.microsoft.gpg"
        result = ctx.executor.run(
            f"wget -qO- {cfg.key_url} | gpg --dearmor --yes -o {key_tmp}",
            "download Microsoft signing key",
        )
        if result.ok:
            result = ctx.executor.run_all(
                [
                    (["install", "-o", "root", "-g", "root", "-m", "644", str(key_tmp), cfg.keyring],
                     "install Microsoft signing key"),
                    (f"echo '{cfg.repo_line}' > {cfg.source_list}", "add VS Code package source"),
                ],
                privileged=True,
            )
        key_tmp.unlink(missing_ok=True)
        if result.failed:
            return result
        return apt_install(ctx, [cfg.package], f"apt install {cfg.package}", reinstall=ctx.force)


# ── Settings ────────────────────────────────────────────────────

def settings_path(config: SetupConfig) -> Path:
    """Where the editor reads user settings on this host."""
    if config.editor.settings_path:
        return Path(config.editor.settings_path).expanduser()
    if detection.detect_wsl():
        return Path.home() / ".vscode-server" / "data" / "Machine" / "settings.json"
    return Path.home() / ".config" / "Code" / "User" / "settings.json"


def _render(value, inputs: dict[str, str]):
    """Substitute ``{var}`` placeholders in every string of a JSON-like document.

    Simple string replacement — no Jinja, no escaping.
    """
    if isinstance(value, str):
        for key, replacement in inputs.items():
            value = value.replace(f"{{{key}}}", replacement)
        return value
    if isinstance(value, dict):
        return {k: _render(v, inputs) for k, v in value.items()}
    if isinstance(value, list):
        return [_render(v, inputs) for v in value]
    return value


def render_settings(config: SetupConfig) -> dict:
    """The settings document with paths of this host filled in."""
    toolchain_dir = usable_toolchain(config.toolchain) or (
        Path(config.toolchain.install_root) / config.toolchain.archive_name
    )
    inputs = {
        "toolchain_bin": str(toolchain_dir / "bin"),
        "sdk_path": config.sdk.path,
        "home": str(Path.home()),
        "user": os.getenv("USER", os.getenv("LOGNAME", "unknown")),
    }
    return _render(config.editor.settings, inputs)


class SettingsStep(ProvisioningStep):
    """Whole-file overwrite of the editor's settings document."""

    name = "vscode-settings"
    fatal = False

    @property
    def title(self) -> str:
        return "VS Code settings"

    def is_satisfied(self, ctx: StepContext) -> bool:
        path = settings_path(ctx.config)
        if not path.is_file():
            return False
        try:
            current = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return False
        return current == render_settings(ctx.config)

    def install(self, ctx: StepContext) -> CommandResult:
        path = settings_path(ctx.config)
        content = json.dumps(render_settings(ctx.config), indent=4) + "\n"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            ctx.output.log_error(f"Cannot write {path}: {e}")
            return CommandResult.failure(f"write {path}", str(e), fatal=False)
        logger.info("Wrote editor settings to %s", path)
        return CommandResult.success(f"write {path}", fatal=False)


# ── Extensions ──────────────────────────────────────────────────

class ExtensionStep(ProvisioningStep):
    """One editor extension."""

    fatal = False

    def __init__(self, extension_id: str):
        self.extension_id = extension_id

    @property
    def name(self) -> str:
        return f"vscode-extension:{self.extension_id}"

    @property
    def title(self) -> str:
        return f"extension {self.extension_id}"

    def is_satisfied(self, ctx: StepContext) -> bool:
        installed = detection.editor_extensions(ctx.config.editor.command)
        return installed is not None and self.extension_id.lower() in installed

    def install(self, ctx: StepContext) -> CommandResult:
        cmd = [ctx.config.editor.command, "--install-extension", self.extension_id]
        if ctx.force:
            cmd.append("--force")
        return ctx.executor.run(cmd, f"install extension {self.extension_id}", fatal=False)
