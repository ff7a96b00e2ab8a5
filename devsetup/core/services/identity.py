"""
Interactive Git identity and SSH key setup.

Thin I/O around git, ssh-keygen, ssh-agent and the clipboard. All
prompts go through the output channel so they reach the operator in
every verbosity mode. The confirmation loops here are deliberately
unbounded: they wait on a human, not on the system.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
from dataclasses import dataclass
from pathlib import Path

from devsetup.core.context import StepContext
from devsetup.core.services import detection

logger = logging.getLogger(__name__)

_AGENT_VAR_RE = re.compile(r"(SSH_AUTH_SOCK|SSH_AGENT_PID)=([^;]+);")


@dataclass
class IdentityResult:
    """What the identity setup achieved."""

    configured: bool = False
    key_path: Path | None = None
    verified: bool = False
    response: str = ""
    error: str | None = None


def parse_agent_env(output: str) -> dict[str, str]:
    """Environment exported by ``ssh-agent -s``."""
    return dict(_AGENT_VAR_RE.findall(output))


def clipboard_command() -> list[str] | None:
    """Command that reads stdin into the clipboard on this host."""
    if detection.detect_wsl():
        return ["clip.exe"]
    if shutil.which("xclip"):
        return ["xclip", "-selection", "clipboard"]
    if shutil.which("wl-copy"):
        return ["wl-copy"]
    return None


class IdentitySetup:
    """Prompt-driven Git identity + SSH keypair + remote verification."""

    def __init__(self, ctx: StepContext):
        self.ctx = ctx
        self.out = ctx.output
        self.ex = ctx.executor
        self.cfg = ctx.config.identity

    # ── Prompts ─────────────────────────────────────────────────

    def prompt_passphrase(self) -> str:
        """Ask for an optional passphrase until two consecutive entries match."""
        self.out.notify("You can set an optional passphrase for your SSH key for added security.")
        while True:
            first = self.out.prompt(
                "Enter passphrase (leave empty for no passphrase)",
                hide_input=True, default="",
            )
            second = self.out.prompt("Repeat passphrase", hide_input=True, default="")
            if first == second:
                return first
            self.out.notify("Passphrases do not match. Please try again.")

    def prompt_key_path(self) -> Path:
        ssh_dir = Path(self.cfg.ssh_dir).expanduser()
        name = self.cfg.default_key_name
        if self.out.confirm("Do you want to specify a custom name for the SSH key?"):
            name = self.out.prompt(
                f"Enter the custom name for your SSH key (e.g., github_{self.cfg.key_type})"
            ).strip() or name
        return ssh_dir / name

    def await_registration(self) -> None:
        """Block until the operator confirms the key was added to the remote."""
        token = self.cfg.confirm_token
        self.out.notify(f"Visit {self.cfg.keys_url} to add your SSH key.")
        while True:
            answer = self.out.prompt(f"Type '{token}' once you have added your SSH key")
            if answer.strip() == token:
                return

    # ── Actions ─────────────────────────────────────────────────

    def configure_git(self, name: str, email: str) -> bool:
        result = self.ex.run_all(
            [
                (["git", "config", "--global", "user.name", name], "git config user.name"),
                (["git", "config", "--global", "user.email", email], "git config user.email"),
            ],
            fatal=False,
        )
        return result.ok

    def generate_key(self, key_path: Path, email: str, passphrase: str) -> bool:
        if key_path.exists():
            self.out.notify(f"SSH key {key_path} already exists — reusing it.")
            return True
        try:
            key_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            self.out.log_error(f"Non-fatal: cannot create {key_path.parent}: {e}")
            return False
        result = self.ex.run(
            ["ssh-keygen", "-t", self.cfg.key_type, "-C", email, "-f", str(key_path), "-N", passphrase],
            "ssh-keygen",
            fatal=False,
            sensitive=True,
        )
        return result.ok

    def register_with_agent(self, key_path: Path) -> bool:
        agent = self.ex.run(["ssh-agent", "-s"], "start ssh-agent", fatal=False)
        if agent.failed:
            return False
        agent_env = parse_agent_env(agent.stdout)
        os.environ.update(agent_env)
        added = self.ex.run(["ssh-add", str(key_path)], "ssh-add", fatal=False, env=agent_env)
        return added.ok

    def copy_public_key(self, key_path: Path) -> bool:
        pub = key_path.with_name(key_path.name + ".pub")
        cmd = clipboard_command()
        if cmd is None or not pub.is_file():
            self.out.notify(f"Copy your public key from {pub} manually.")
            return False
        result = self.ex.run(
            cmd, "copy public key to clipboard",
            fatal=False, input_text=pub.read_text(encoding="utf-8"),
        )
        if result.ok:
            self.out.notify("SSH public key copied to clipboard. Please add it to your account.")
        else:
            self.out.notify(f"Could not copy to clipboard — the public key is in {pub}.")
        return result.ok

    def verify(self) -> tuple[bool, str]:
        """Try an SSH connection and classify it by the greeting text."""
        result = self.ex.run(
            ["ssh", "-T", "-o", "StrictHostKeyChecking=accept-new", self.cfg.remote],
            "verify SSH connection",
            fatal=False,
        )
        # The remote answers on stderr and exits non-zero even on success
        response = (result.stdout + result.stderr).strip()
        return self.cfg.success_marker in response, response

    # ── Flow ────────────────────────────────────────────────────

    def run(self) -> IdentityResult:
        res = IdentityResult()
        self.out.notify("Starting Git SSH key setup...")

        name = self.out.prompt("Enter your Git username")
        email = self.out.prompt("Enter your Git email")
        if not self.configure_git(name, email):
            res.error = "git config failed"
            self.out.notify("Could not configure the Git identity — see the log for details.")
            return res
        res.configured = True

        passphrase = self.prompt_passphrase()
        key_path = self.prompt_key_path()
        if not self.generate_key(key_path, email, passphrase):
            res.error = "ssh-keygen failed"
            self.out.notify("SSH key generation failed — see the log for details.")
            return res
        res.key_path = key_path

        if not self.register_with_agent(key_path):
            self.out.notify("Could not add the key to ssh-agent — see the log for details.")
        self.copy_public_key(key_path)
        self.await_registration()

        res.verified, res.response = self.verify()
        if res.verified:
            self.out.notify("SSH connection verified successfully!")
        else:
            self.out.log_error(f"SSH verification failed: {res.response}")
            self.out.notify("SSH connection failed — check the log for details.")
            self.out.notify(f"Received response: {res.response}")
        return res
