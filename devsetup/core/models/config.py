"""
Setup configuration — what gets provisioned, and where.

Every field has a default matching the stock Pico development setup,
so an empty (or absent) devsetup.yml is a valid configuration.
"""

from __future__ import annotations

import platform

from pydantic import BaseModel, Field


def _host_arch() -> str:
    machine = platform.machine().lower()
    return {"amd64": "x86_64", "arm64": "aarch64"}.get(machine, machine) or "x86_64"


class ToolchainConfig(BaseModel):
    """ARM GNU cross-compilation toolchain archive."""

    version: str = "13.2.rel1"
    install_root: str = "/opt"
    host_arch: str = Field(default_factory=_host_arch)
    target: str = "arm-none-eabi"
    url_template: str = (
        "https://developer.arm.com/-/media/Files/downloads/gnu/"
        "{version}/binrel/{name}.tar.xz"
    )

    @property
    def archive_name(self) -> str:
        """Archive stem, e.g. ``arm-gnu-toolchain-13.2.rel1-x86_64-arm-none-eabi``."""
        return f"arm-gnu-toolchain-{self.version}-{self.host_arch}-{self.target}"

    @property
    def url(self) -> str:
        return self.url_template.format(version=self.version, name=self.archive_name)


class SdkConfig(BaseModel):
    """Source-controlled SDK with nested submodules."""

    url: str = "https://github.com/raspberrypi/pico-sdk.git"
    branch: str = "master"
    path: str = "/opt/pico/pico-sdk"
    env_var: str = "PICO_SDK_PATH"


class PackagesConfig(BaseModel):
    """OS package batches (apt)."""

    base: list[str] = Field(default_factory=lambda: [
        "git", "wget", "tar", "xz-utils", "ca-certificates", "gpg",
    ])
    dev_tools: list[str] = Field(default_factory=lambda: [
        "gcc-arm-none-eabi", "doxygen", "graphviz", "mscgen", "dia",
        "curl", "cmake", "xclip",
    ])


class NodeConfig(BaseModel):
    """Node.js from the vendor package source."""

    minimum_version: str = "18.0.0"
    setup_url: str = "https://deb.nodesource.com/setup_current.x"


_DEFAULT_EXTENSIONS = [
    "cschlosser.doxdocgen",
    "gruntfuggly.todo-tree",
    "jebbs.plantuml",
    "jeff-hykin.better-cpp-syntax",
    "marus25.cortex-debug",
    "matepek.vscode-catch2-test-adapter",
    "mcu-debug.debug-tracker-vscode",
    "mcu-debug.memory-view",
    "mcu-debug.peripheral-viewer",
    "mcu-debug.rtos-views",
    "ms-vscode.cmake-tools",
    "ms-vscode.cpptools",
    "ms-vscode.cpptools-extension-pack",
    "ms-vscode.cpptools-themes",
    "ms-vscode.makefile-tools",
    "ms-vscode.test-adapter-converter",
    "ms-vscode.vscode-serial-monitor",
    "sonarsource.sonarlint-vscode",
    "twxs.cmake",
]

_DEFAULT_SETTINGS = {
    "cmake.configureOnOpen": True,
    "cmake.environment": {"PICO_SDK_PATH": "{sdk_path}"},
    "cortex-debug.armToolchainPath": "{toolchain_bin}",
    "cortex-debug.gdbPath": "{toolchain_bin}/arm-none-eabi-gdb",
    "C_Cpp.default.compilerPath": "{toolchain_bin}/arm-none-eabi-gcc",
    "terminal.integrated.env.linux": {"PICO_SDK_PATH": "{sdk_path}"},
}


class EditorConfig(BaseModel):
    """Visual Studio Code, its extensions, and its settings document."""

    command: str = "code"
    package: str = "code"
    key_url: str = "https://packages.microsoft.com/keys/microsoft.asc"
    keyring: str = "/etc/apt/trusted.gpg.d/packages.microsoft.gpg"
    source_list: str = "/etc/apt/sources.list.d/vscode.list"
    repo_line: str = (
        "deb [arch=amd64,arm64,armhf signed-by=/etc/apt/trusted.gpg.d/packages.microsoft.gpg] "
        "https://packages.microsoft.com/repos/code stable main"
    )
    extensions: list[str] = Field(default_factory=lambda: list(_DEFAULT_EXTENSIONS))
    settings: dict = Field(default_factory=lambda: dict(_DEFAULT_SETTINGS))
    settings_path: str | None = None   # None = derive from host (WSL or desktop)


class IdentityConfig(BaseModel):
    """Git identity and SSH key registration."""

    remote: str = "git@github.com"
    keys_url: str = "https://github.com/settings/keys"
    key_type: str = "ed25519"
    default_key_name: str = "id_ed25519"
    ssh_dir: str = "~/.ssh"
    success_marker: str = "successfully authenticated"
    confirm_token: str = "done"


class RepositoryConfig(BaseModel):
    """Target firmware repository cloned at the end of the run."""

    name: str = "sonic-firmware"
    url: str = "git@github.com:usepat/sonic-firmware.git"
    branch: str = "development"
    build_commands: list[str] = Field(default_factory=lambda: [
        "cmake -S . -B build",
        "cmake --build build",
    ])


class SetupConfig(BaseModel):
    """Root configuration document (devsetup.yml)."""

    shell_init_file: str = "~/.bashrc"
    log_file: str = "setup-errors.log"
    use_sudo: bool = True
    environment: dict[str, str] = Field(default_factory=dict)

    packages: PackagesConfig = Field(default_factory=PackagesConfig)
    toolchain: ToolchainConfig = Field(default_factory=ToolchainConfig)
    sdk: SdkConfig = Field(default_factory=SdkConfig)
    node: NodeConfig = Field(default_factory=NodeConfig)
    editor: EditorConfig = Field(default_factory=EditorConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
