"""
Semantic version parsing and comparison (pure).

Understands plain semver (``1.2.3``, ``v20.11.0``) and ARM toolchain
release strings (``13.2.rel1``, ``13.2.Rel1``). Anything it cannot
parse is "unknown", which callers treat as "reinstall needed".
No I/O, no subprocess.
"""

from __future__ import annotations

import re

_VERSION_RE = re.compile(
    r"v?(?P<major>\d+)"
    r"(?:\.(?P<minor>\d+))?"
    r"(?:\.(?P<patch>\d+))?"
    r"(?:[.\-]?rel(?P<rel>\d+))?",
    re.IGNORECASE,
)


def parse_version(text: str | None) -> tuple[int, int, int, int] | None:
    """Parse a version string into a comparable tuple.

    ``13.2.rel1`` → ``(13, 2, 0, 1)``; ``v20.11.0`` → ``(20, 11, 0, 0)``.

    Returns:
        ``(major, minor, patch, release)`` or None if ``text`` is not a version.
    """
    if not text:
        return None
    match = _VERSION_RE.fullmatch(text.strip())
    if not match:
        return None
    return (
        int(match.group("major")),
        int(match.group("minor") or 0),
        int(match.group("patch") or 0),
        int(match.group("rel") or 0),
    )


def extract_version(output: str, pattern: str = r"(\d+\.\d+(?:\.\d+)?)") -> str | None:
    """Pull the first version-looking token out of a ``--version`` output."""
    match = re.search(pattern, output or "")
    return match.group(1) if match else None


def compare_versions(left: str, right: str) -> int | None:
    """Three-way compare. Returns -1, 0, 1, or None if either side is unparseable."""
    lhs, rhs = parse_version(left), parse_version(right)
    if lhs is None or rhs is None:
        return None
    return (lhs > rhs) - (lhs < rhs)


def satisfies_minimum(installed: str | None, wanted: str) -> bool:
    """Whether ``installed`` is at least ``wanted``.

    Unknown or malformed versions never satisfy.
    """
    if installed is None:
        return False
    cmp = compare_versions(installed, wanted)
    return cmp is not None and cmp >= 0
