"""Fixtures for integration tests."""

import stat
from pathlib import Path

import pytest

from unity_batchmode_mcp.config import UnityConfig
from unity_batchmode_mcp.testing.factories import UnityConfigFactory
from unity_batchmode_mcp.testing.protocols import CreateEditorFn, MakeConfigFn


@pytest.fixture
def project_path(tmp_path: Path) -> Path:
    """Create an empty Unity project directory."""
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def create_editor(tmp_path: Path) -> CreateEditorFn:
    """Return a function that writes a fake Unity editor script.

    The script sees the editor arguments and has $results and $logfile set to
    the values of -testResults and -logFile.
    """

    def _create(body: str) -> Path:
        script = tmp_path / "Unity"
        script.write_text(
            "#!/bin/sh\n"
            'args="$*"\n'
            "while [ $# -gt 0 ]; do\n"
            '  case "$1" in\n'
            '    -testResults) results="$2"; shift ;;\n'
            '    -logFile) logfile="$2"; shift ;;\n'
            "  esac\n"
            "  shift\n"
            "done\n"
            f"{body}\n"
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR)
        return script

    return _create


@pytest.fixture
def make_config(project_path: Path) -> MakeConfigFn:
    """Return a function building a config for a fake editor."""

    def _make(editor_path: Path, timeout: float | None = None) -> UnityConfig:
        return UnityConfigFactory.build(
            editor_path=editor_path,
            project_path=project_path,
            results_path=project_path / "results.xml",
            log_path=project_path / "batch.log",
            timeout=timeout,
        )

    return _make
