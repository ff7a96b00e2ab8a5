"""
Tests for read-only host checks.

subprocess is patched; nothing here touches the real package database.
"""

import subprocess
from unittest.mock import MagicMock, patch

from devsetup.core.services import detection

_RUN = "devsetup.core.services.detection.subprocess.run"
_WHICH = "devsetup.core.services.detection.shutil.which"


def _proc(stdout="", returncode=0, stderr=""):
    return MagicMock(stdout=stdout, stderr=stderr, returncode=returncode)


class TestHostEnvironment:
    def test_ci_detected(self, monkeypatch):
        monkeypatch.setenv("GITHUB_ACTIONS", "true")
        assert detection.detect_ci()

    def test_ci_absent(self, monkeypatch):
        monkeypatch.delenv("GITHUB_ACTIONS", raising=False)
        assert not detection.detect_ci()
        assert detection.ci_env_file() is None

    def test_ci_env_file(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GITHUB_ACTIONS", "true")
        monkeypatch.setenv("GITHUB_ENV", str(tmp_path / "env"))
        assert detection.ci_env_file() == tmp_path / "env"

    def test_wsl(self, monkeypatch):
        monkeypatch.setenv("WSL_DISTRO_NAME", "Ubuntu")
        assert detection.detect_wsl() == "Ubuntu"
        monkeypatch.delenv("WSL_DISTRO_NAME")
        assert detection.detect_wsl() is None


class TestPackages:
    @patch(_RUN)
    def test_installed(self, mock_run):
        mock_run.return_value = _proc("install ok installed")
        assert detection.package_installed("git")

    @patch(_RUN)
    def test_not_installed(self, mock_run):
        mock_run.return_value = _proc("", returncode=1)
        assert not detection.package_installed("nope")

    @patch(_RUN, side_effect=FileNotFoundError)
    def test_no_dpkg(self, _mock_run):
        assert not detection.package_installed("git")

    @patch(_RUN)
    def test_missing_keeps_order(self, mock_run):
        status = {"git": "install ok installed", "wget": "", "tar": ""}
        mock_run.side_effect = lambda cmd, **kw: _proc(status[cmd[-1]])
        assert detection.missing_packages(["git", "wget", "tar"]) == ["wget", "tar"]


class TestToolVersion:
    @patch(_WHICH, return_value=None)
    def test_missing_tool(self, _which):
        assert detection.tool_version(["node", "--version"]) is None

    @patch(_RUN)
    @patch(_WHICH, return_value="/usr/bin/node")
    def test_parses_v_prefix(self, _which, mock_run):
        mock_run.return_value = _proc("v20.11.0\n")
        assert detection.tool_version(["node", "--version"]) == "20.11.0"

    @patch(_RUN)
    @patch(_WHICH, return_value="/usr/bin/tool")
    def test_reads_stderr(self, _which, mock_run):
        mock_run.return_value = _proc("", stderr="tool 1.4.2")
        assert detection.tool_version(["tool", "-V"]) == "1.4.2"

    @patch(_RUN, side_effect=subprocess.TimeoutExpired("node", 10))
    @patch(_WHICH, return_value="/usr/bin/node")
    def test_timeout(self, _which, _run):
        assert detection.tool_version(["node", "--version"]) is None


class TestGit:
    def test_plain_directory_is_not_repository(self, tmp_path):
        assert not detection.is_git_repository(tmp_path)

    def test_missing_directory(self, tmp_path):
        assert not detection.is_git_repository(tmp_path / "nope")

    @patch(_RUN)
    def test_repository(self, mock_run, tmp_path):
        (tmp_path / ".git").mkdir()
        mock_run.return_value = _proc("true\n")
        assert detection.is_git_repository(tmp_path)

    @patch(_RUN)
    def test_uninitialized_submodules(self, mock_run, tmp_path):
        mock_run.return_value = _proc(
            " 1a2b3c lib/tinyusb (0.15.0)\n"
            "-4d5e6f lib/btstack\n"
            "-7a8b9c lib/btstack/nested\n"
        )
        assert detection.uninitialized_submodules(tmp_path) == ["lib/btstack", "lib/btstack/nested"]
        assert "--recursive" in mock_run.call_args[0][0]

    @patch(_RUN)
    def test_no_submodules(self, mock_run, tmp_path):
        mock_run.return_value = _proc("")
        assert detection.uninitialized_submodules(tmp_path) == []

    @patch(_RUN)
    def test_status_error(self, mock_run, tmp_path):
        mock_run.return_value = _proc("", returncode=128)
        assert detection.uninitialized_submodules(tmp_path) is None

    @patch(_RUN)
    def test_config_values(self, mock_run):
        mock_run.return_value = _proc("/opt/a\n/opt/b\n")
        assert detection.git_config_values("safe.directory") == ["/opt/a", "/opt/b"]

    @patch(_RUN)
    def test_config_unset(self, mock_run):
        mock_run.return_value = _proc("", returncode=1)
        assert detection.git_config_values("safe.directory") == []


class TestEditorExtensions:
    @patch(_WHICH, return_value=None)
    def test_no_editor(self, _which):
        assert detection.editor_extensions() is None

    @patch(_RUN)
    @patch(_WHICH, return_value="/usr/bin/code")
    def test_lowercased(self, _which, mock_run):
        mock_run.return_value = _proc("ms-vscode.CPPTools\nmarus25.cortex-debug\n")
        assert detection.editor_extensions() == {"ms-vscode.cpptools", "marus25.cortex-debug"}


class TestExecutable:
    def test_executable(self, tmp_path):
        f = tmp_path / "gcc"
        f.write_text("#!/bin/sh\n")
        assert not detection.is_executable(f)
        f.chmod(0o755)
        assert detection.is_executable(f)

    def test_directory(self, tmp_path):
        assert not detection.is_executable(tmp_path)
