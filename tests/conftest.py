"""
Shared test fixtures and configuration.
"""

import io
import logging
import os
from pathlib import Path

import pytest

from devsetup.adapters.mock import MockCommandExecutor
from devsetup.core.context import StepContext
from devsetup.core.models.config import (
    EditorConfig,
    SdkConfig,
    SetupConfig,
    ToolchainConfig,
)
from devsetup.core.models.options import RunOptions
from devsetup.core.models.step import CommandResult
from devsetup.core.observability.output import OutputChannel
from devsetup.core.services.env_publish import EnvironmentPublisher
from devsetup.core.services.provisioners.base import ProvisioningStep


class FakeStep(ProvisioningStep):
    """Step backed by a marker file; counts its calls."""

    def __init__(
        self,
        name: str,
        marker: Path,
        *,
        fatal: bool = True,
        fail: bool = False,
        lie: bool = False,
    ):
        self._name = name
        self.marker = marker
        self.fatal = fatal
        self.fail = fail
        self.lie = lie          # report success without creating the marker
        self.install_calls = 0
        self.remove_calls = 0

    @property
    def name(self) -> str:
        return self._name

    def is_satisfied(self, ctx) -> bool:
        return self.marker.exists()

    def install(self, ctx) -> CommandResult:
        self.install_calls += 1
        if self.fail:
            return CommandResult.failure(f"install {self.name}", "boom", fatal=self.fatal)
        if not self.lie:
            self.marker.write_text(f"{self.name} installed\n")
        return CommandResult.success(f"install {self.name}")

    def remove(self, ctx) -> CommandResult:
        self.remove_calls += 1
        self.marker.unlink(missing_ok=True)
        return CommandResult.success(f"remove {self.name}")


class ScriptedOutput(OutputChannel):
    """Output channel that answers prompts from a script and records everything."""

    def __init__(self, answers=None, confirms=None, verbose: bool = False):
        super().__init__(verbose=verbose, terminal=io.StringIO())
        self.answers = list(answers or [])
        self.confirms = list(confirms or [])
        self.prompts: list[str] = []
        self.notices: list[str] = []

    def notify(self, message: str) -> None:
        self.notices.append(message)
        super().notify(message)

    def prompt(self, text, *, hide_input=False, default=None):
        self.prompts.append(text)
        return self.answers.pop(0)

    def confirm(self, text, default=False):
        self.prompts.append(text)
        return self.confirms.pop(0)

    @property
    def text(self) -> str:
        return self._terminal.getvalue()


@pytest.fixture(autouse=True)
def _restore_environ():
    """Env publishing writes to os.environ; undo it after each test."""
    saved = dict(os.environ)
    yield
    os.environ.clear()
    os.environ.update(saved)


@pytest.fixture(autouse=True)
def _restore_logging():
    """setup_logging installs root handlers; drop them after each test."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if type(handler) in (logging.FileHandler, logging.StreamHandler, logging.NullHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def fake_step():
    return FakeStep


@pytest.fixture
def scripted_output():
    return ScriptedOutput


@pytest.fixture
def terminal() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def output(terminal) -> OutputChannel:
    return OutputChannel(verbose=False, terminal=terminal)


@pytest.fixture
def executor(output) -> MockCommandExecutor:
    return MockCommandExecutor(output)


@pytest.fixture
def setup_config(tmp_path: Path) -> SetupConfig:
    """Configuration rooted entirely inside tmp_path."""
    opt = tmp_path / "opt"
    return SetupConfig(
        shell_init_file=str(tmp_path / "home" / ".bashrc"),
        log_file=str(tmp_path / "setup.log"),
        use_sudo=False,
        toolchain=ToolchainConfig(install_root=str(opt), host_arch="x86_64"),
        sdk=SdkConfig(path=str(opt / "pico" / "pico-sdk")),
        editor=EditorConfig(settings_path=str(tmp_path / "Code" / "settings.json")),
    )


@pytest.fixture
def make_ctx(setup_config, output, executor):
    """Factory for a StepContext over the mock executor."""

    def _make(
        *,
        force: bool = False,
        verbose: bool = False,
        config: SetupConfig | None = None,
        out: OutputChannel | None = None,
        ci_env_file: Path | None = None,
    ) -> StepContext:
        cfg = config or setup_config
        channel = out or output
        channel.verbose = verbose
        executor.output = channel
        return StepContext(
            options=RunOptions(verbose=verbose, force_reinstall=force),
            config=cfg,
            output=channel,
            executor=executor,
            publisher=EnvironmentPublisher(cfg.shell_init_file, ci_env_file=ci_env_file),
        )

    return _make


@pytest.fixture
def ctx(make_ctx) -> StepContext:
    return make_ctx()
