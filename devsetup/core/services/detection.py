"""
Detection — read-only checks of host state.

Every "already satisfied?" predicate is built from these. They never
modify the host, never raise for a missing tool, and return a plain
"not there" answer when a check cannot run.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path

from devsetup.core.services.versioning import extract_version

logger = logging.getLogger(__name__)


# ── Host environment ────────────────────────────────────────────

def detect_ci() -> bool:
    """Whether we are running inside a CI job (GitHub Actions)."""
    return bool(os.environ.get("GITHUB_ACTIONS"))


def ci_env_file() -> Path | None:
    """Path of the CI-provided environment file, when running in CI."""
    if not detect_ci():
        return None
    value = os.environ.get("GITHUB_ENV")
    return Path(value) if value else None


def detect_wsl() -> str | None:
    """WSL distribution name, or None on a regular Linux host."""
    return os.environ.get("WSL_DISTRO_NAME") or None


# ── Files and binaries ──────────────────────────────────────────

def binary_on_path(name: str) -> bool:
    """Whether ``name`` resolves on PATH."""
    return shutil.which(name) is not None


def is_executable(path: str | Path) -> bool:
    """Whether ``path`` is an existing, executable regular file."""
    p = Path(path)
    return p.is_file() and os.access(p, os.X_OK)


def tool_version(cmd: list[str], pattern: str = r"v?(\d+\.\d+(?:\.\d+)?)") -> str | None:
    """Run a ``--version`` style command and parse the version out of it.

    Returns:
        Version string, or None if the tool is missing or prints no version.
    """
    if not shutil.which(cmd[0]):
        return None
    try:
        r = subprocess.run(cmd, capture_output=True, text=True, timeout=10)
    except (subprocess.TimeoutExpired, OSError) as exc:
        logger.debug("Version check %s failed: %s", cmd, exc)
        return None
    # Some tools write their version to stderr
    return extract_version((r.stdout or "") + (r.stderr or ""), pattern)


# ── OS packages ─────────────────────────────────────────────────

def package_installed(pkg: str) -> bool:
    """Check if a single Debian package is installed (``dpkg-query``)."""
    try:
        r = subprocess.run(
            ["dpkg-query", "-W", "-f=${Status}", pkg],
            capture_output=True, text=True, timeout=10,
        )
    except FileNotFoundError:
        logger.warning("dpkg-query not found (checking %s)", pkg)
        return False
    except (subprocess.TimeoutExpired, OSError) as exc:
        logger.warning("Cannot check package %s: %s", pkg, exc)
        return False
    return "install ok installed" in r.stdout


def missing_packages(packages: list[str]) -> list[str]:
    """Subset of ``packages`` that is not installed, in input order."""
    return [pkg for pkg in packages if not package_installed(pkg)]


# ── Git ─────────────────────────────────────────────────────────

def _git(path: Path, *args: str) -> subprocess.CompletedProcess | None:
    try:
        return subprocess.run(
            ["git", "-C", str(path), *args],
            capture_output=True, text=True, timeout=30,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired, OSError) as exc:
        logger.debug("git check in %s failed: %s", path, exc)
        return None


def is_git_repository(path: str | Path) -> bool:
    """Whether ``path`` is the top of a git work tree.

    A directory that merely sits inside some other repository does not
    count, and neither does a directory without ``.git``.
    """
    p = Path(path)
    if not p.is_dir() or not (p / ".git").exists():
        return False
    r = _git(p, "rev-parse", "--is-inside-work-tree")
    return r is not None and r.returncode == 0 and r.stdout.strip() == "true"


def uninitialized_submodules(path: str | Path) -> list[str] | None:
    """Submodules registered but not populated, across all nesting levels.

    Parses ``git submodule status --recursive``: a leading ``-`` marks an
    uninitialized submodule.

    Returns:
        List of submodule paths (empty when all are initialized or there
        are none), or None when the status cannot be read.
    """
    r = _git(Path(path), "submodule", "status", "--recursive")
    if r is None or r.returncode != 0:
        return None
    missing = []
    for line in r.stdout.splitlines():
        if line.startswith("-"):
            parts = line[1:].split()
            if len(parts) >= 2:
                missing.append(parts[1])
    return missing


def git_config_values(key: str) -> list[str]:
    """All values of a global git config key (empty if unset)."""
    try:
        r = subprocess.run(
            ["git", "config", "--global", "--get-all", key],
            capture_output=True, text=True, timeout=10,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired, OSError):
        return []
    if r.returncode != 0:
        return []
    return [line.strip() for line in r.stdout.splitlines() if line.strip()]


# ── Editor ──────────────────────────────────────────────────────

def editor_extensions(command: str = "code") -> set[str] | None:
    """Lower-cased IDs of installed editor extensions, or None if the editor is missing."""
    if not shutil.which(command):
        return None
    try:
        r = subprocess.run(
            [command, "--list-extensions"],
            capture_output=True, text=True, timeout=60,
        )
    except (subprocess.TimeoutExpired, OSError) as exc:
        logger.debug("Listing extensions failed: %s", exc)
        return None
    if r.returncode != 0:
        return None
    return {line.strip().lower() for line in r.stdout.splitlines() if line.strip()}
