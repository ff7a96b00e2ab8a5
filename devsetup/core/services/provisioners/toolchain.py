"""
ARM GNU cross-compilation toolchain.

Archives extract to ``<install_root>/arm-gnu-toolchain-<version>-<arch>-<target>``.
The vendor's directory name does not always match the archive's case
(``13.2.rel1`` extracts as ``13.2.Rel1``), so toolchains are found by
scanning the install root and comparing versions semantically.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from devsetup.core.context import StepContext
from devsetup.core.models.config import ToolchainConfig
from devsetup.core.models.options import EnvVarBinding
from devsetup.core.models.step import CommandResult
from devsetup.core.services import detection
from devsetup.core.services.provisioners.base import ProvisioningStep, publish_bindings
from devsetup.core.services.versioning import compare_versions, parse_version

logger = logging.getLogger(__name__)

TOOLCHAIN_ENV_VAR = "PICO_TOOLCHAIN_PATH"


def _dir_pattern(cfg: ToolchainConfig) -> re.Pattern[str]:
    return re.compile(
        rf"arm-gnu-toolchain-(?P<version>.+?)-{re.escape(cfg.host_arch)}-{re.escape(cfg.target)}",
        re.IGNORECASE,
    )


def installed_toolchains(cfg: ToolchainConfig) -> list[tuple[str, Path]]:
    """``(version, directory)`` for every toolchain under the install root."""
    root = Path(cfg.install_root)
    if not root.is_dir():
        return []
    pattern = _dir_pattern(cfg)
    found = []
    for entry in sorted(root.iterdir()):
        match = pattern.fullmatch(entry.name)
        if match and entry.is_dir():
            found.append((match.group("version"), entry))
    return found


def compiler_path(cfg: ToolchainConfig, toolchain_dir: Path) -> Path:
    return toolchain_dir / "bin" / f"{cfg.target}-gcc"


def _same_version(found: str, wanted: str) -> bool:
    return found.lower() == wanted.lower() or compare_versions(found, wanted) == 0


def exact_toolchain(cfg: ToolchainConfig) -> Path | None:
    """Directory of the configured version, if extracted."""
    for version, path in installed_toolchains(cfg):
        if _same_version(version, cfg.version):
            return path
    return None


def usable_toolchain(cfg: ToolchainConfig) -> Path | None:
    """The configured toolchain, or a strictly newer one, with an executable compiler.

    Versions that cannot be parsed never count as newer.
    """
    exact = exact_toolchain(cfg)
    if exact is not None and detection.is_executable(compiler_path(cfg, exact)):
        return exact

    newer = []
    for version, path in installed_toolchains(cfg):
        if compare_versions(version, cfg.version) == 1 and detection.is_executable(compiler_path(cfg, path)):
            newer.append((version, path))
    if newer:
        version, path = max(newer, key=lambda item: parse_version(item[0]))
        logger.debug("Newer toolchain %s found at %s", version, path)
        return path
    return None


class ToolchainStep(ProvisioningStep):
    """Download, extract and publish the cross toolchain."""

    name = "arm-toolchain"

    @property
    def title(self) -> str:
        return "ARM GNU toolchain"

    def is_satisfied(self, ctx: StepContext) -> bool:
        return usable_toolchain(ctx.config.toolchain) is not None

    def remove(self, ctx: StepContext) -> CommandResult | None:
        cfg = ctx.config.toolchain
        result = None
        for version, path in installed_toolchains(cfg):
            if not _same_version(version, cfg.version):
                continue
            result = ctx.executor.run(
                ["rm", "-rf", str(path)], f"remove toolchain {path.name}",
                privileged=True,
            )
            if result.failed:
                return result
        return result

    def install(self, ctx: StepContext) -> CommandResult:
        cfg = ctx.config.toolchain
        root = Path(cfg.install_root)
        archive = root / f"{cfg.archive_name}.tar.xz"
        ctx.output.trace(f"Toolchain version: {cfg.version} ({cfg.url})")

        result = ctx.executor.run_all(
            [
                (["mkdir", "-p", str(root)], f"create {root}"),
                (["wget", "-q", "-O", str(archive), cfg.url], "download ARM GNU toolchain"),
                (["tar", "-xf", str(archive), "-C", str(root)], "extract ARM GNU toolchain"),
                (["rm", "-f", str(archive)], "remove toolchain archive"),
            ],
            privileged=True,
        )
        if result.failed:
            if result.description != "remove toolchain archive":
                ctx.executor.run(["rm", "-f", str(archive)], "remove partial toolchain archive",
                                 fatal=False, privileged=True)
            return result

        toolchain_dir = exact_toolchain(cfg)
        if toolchain_dir is None:
            return CommandResult.failure(
                "locate extracted toolchain",
                f"no {cfg.archive_name} directory under {root} after extraction",
            )

        return publish_bindings(ctx, [
            EnvVarBinding(name=TOOLCHAIN_ENV_VAR, value=str(toolchain_dir / "bin")),
            EnvVarBinding(name="PATH", value=f"$PATH:${TOOLCHAIN_ENV_VAR}"),
        ])
