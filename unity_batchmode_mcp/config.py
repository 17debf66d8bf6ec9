"""Resolution of startup configuration from command-line flags and environment."""

import logging
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

from pydantic import BaseModel, ConfigDict

log = logging.getLogger(__name__)

PROJECT_VERSION_FILE = Path("ProjectSettings") / "ProjectVersion.txt"
EDITOR_VERSION_PREFIX = "m_EditorVersion: "

DEFAULT_RESULTS_FILE = "results.xml"
DEFAULT_LOG_FILE = "batch.log"


class ConfigurationError(Exception):
    """Raised when required startup configuration is missing or invalid."""


class UnityConfig(BaseModel):
    """Locations needed to run a Unity project's tests in batch mode."""

    model_config = ConfigDict(frozen=True)

    editor_path: Path
    project_path: Path
    results_path: Path
    log_path: Path
    timeout: float | None = None


def read_startup_arg(
    argv: Sequence[str],
    env: Mapping[str, str],
    flag: str,
    env_var: str | None = None,
) -> str | None:
    """Read a value from the environment, then from `flag value` or `flag=value`.

    A non-empty environment variable takes precedence over the flag.
    """
    if env_var and env.get(env_var):
        return env[env_var]

    args = list(argv)
    if flag in args:
        idx = args.index(flag)
        if idx + 1 < len(args):
            return args[idx + 1]

    prefix = f"{flag}="
    for arg in args:
        if arg.startswith(prefix):
            return arg[len(prefix) :]

    return None


def read_editor_version(project_path: Path) -> str | None:
    """Read the editor version a project was last opened with."""
    version_file = project_path / PROJECT_VERSION_FILE
    try:
        content = version_file.read_text(encoding="utf-8")
    except OSError as e:
        log.debug("Cannot read %s: %s", version_file, e)
        return None

    for line in content.splitlines():
        if line.startswith(EDITOR_VERSION_PREFIX):
            return line.removeprefix(EDITOR_VERSION_PREFIX).rstrip()
    return None


def editor_binary_path(
    installs_root: Path, version: str, platform: str = sys.platform
) -> Path:
    """Return the editor executable inside a versioned install directory."""
    install_dir = installs_root / version
    if platform == "darwin":
        return install_dir / "Unity.app" / "Contents" / "MacOS" / "Unity"
    if platform == "win32":
        return install_dir / "Editor" / "Unity.exe"
    return install_dir / "Editor" / "Unity"


def resolve_config(argv: Sequence[str], env: Mapping[str, str]) -> UnityConfig:
    """Resolve the run configuration from flags and environment variables.

    Args:
        argv: Command-line arguments
        env: Environment variables

    Returns:
        The resolved configuration

    Raises:
        ConfigurationError: If the editor or project path cannot be determined,
            or the timeout is not a number

    """
    project = read_startup_arg(
        argv, env, "--project", "UNITY_PROJECT_PATH"
    ) or read_startup_arg(argv, env, "--projectPath", "UNITY_PROJECT_PATH")
    if not project:
        raise ConfigurationError(
            "Missing Unity project path. "
            "Provide via --project or UNITY_PROJECT_PATH."
        )
    project_path = Path(project).resolve()

    editor = read_startup_arg(
        argv, env, "--unity-editor", "UNITY_EDITOR_PATH"
    ) or read_startup_arg(argv, env, "--unityEditor", "UNITY_EDITOR_PATH")
    if editor:
        editor_path = Path(editor)
    else:
        editor_path = _editor_from_installs(argv, env, project_path)

    results = read_startup_arg(argv, env, "--results", "TEST_RESULTS_FILE")
    log_file = read_startup_arg(argv, env, "--log", "LOG_FILE")

    return UnityConfig(
        editor_path=editor_path,
        project_path=project_path,
        results_path=project_path / (results or DEFAULT_RESULTS_FILE),
        log_path=project_path / (log_file or DEFAULT_LOG_FILE),
        timeout=_parse_timeout(
            read_startup_arg(argv, env, "--timeout", "UNITY_TEST_TIMEOUT")
        ),
    )


def _editor_from_installs(
    argv: Sequence[str], env: Mapping[str, str], project_path: Path
) -> Path:
    """Derive the editor path from an installs root and the project's version."""
    installs = read_startup_arg(argv, env, "--unity-installs", "UNITY_INSTALLS")
    if not installs:
        raise ConfigurationError(
            "Missing Unity editor path. "
            "Provide via --unity-editor or UNITY_EDITOR_PATH."
        )

    version = read_editor_version(project_path)
    if not version:
        raise ConfigurationError(
            f"Cannot determine Unity editor version from "
            f"{project_path / PROJECT_VERSION_FILE}. "
            "Provide the editor via --unity-editor or UNITY_EDITOR_PATH."
        )

    editor_path = editor_binary_path(Path(installs), version)
    log.info("Using Unity %s from %s", version, editor_path)
    return editor_path


def _parse_timeout(value: str | None) -> float | None:
    if not value:
        return None
    try:
        timeout = float(value)
    except ValueError as e:
        raise ConfigurationError(f"Invalid timeout '{value}': {e}") from e
    if timeout <= 0:
        raise ConfigurationError(f"Timeout must be positive, got {value}")
    return timeout
