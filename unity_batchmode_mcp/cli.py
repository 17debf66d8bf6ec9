"""CLI entry point for running Unity tests from a terminal."""

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Mapping, Sequence

from pydantic import ValidationError

from unity_batchmode_mcp.config import ConfigurationError, UnityConfig, resolve_config
from unity_batchmode_mcp.models.request import RunRequest
from unity_batchmode_mcp.service import run_unity_tests

FLAG_ENV_VARS = {
    "unity_editor": "UNITY_EDITOR_PATH",
    "unity_installs": "UNITY_INSTALLS",
    "project": "UNITY_PROJECT_PATH",
    "results": "TEST_RESULTS_FILE",
    "log": "LOG_FILE",
    "timeout": "UNITY_TEST_TIMEOUT",
}


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="Run Unity tests in batch mode and print a summary",
        epilog=(
            "Names and categories accept semicolon-separated lists or regex. "
            "TEST_FILTER, TEST_CATEGORY and TEST_PLATFORM are used when the "
            "matching flag is not given."
        ),
    )
    parser.add_argument(
        "-n",
        "--name",
        "--filter",
        dest="filter",
        help="Test filter passed to -testFilter",
    )
    parser.add_argument(
        "-c",
        "--category",
        help="Test category passed to -testCategory",
    )
    parser.add_argument(
        "-p",
        "--platform",
        choices=["EditMode", "PlayMode"],
        help="Test platform (default: EditMode)",
    )
    parser.add_argument(
        "-r",
        "--results",
        help="Results file, relative to the project (default: results.xml)",
    )
    parser.add_argument(
        "-l",
        "--log",
        help="Log file, relative to the project (default: batch.log)",
    )
    parser.add_argument(
        "--unity-editor",
        help="Path to the Unity editor executable",
    )
    parser.add_argument(
        "--unity-installs",
        help="Directory holding versioned Unity installs",
    )
    parser.add_argument(
        "--project",
        help="Unity project directory (default: current directory)",
    )
    parser.add_argument(
        "--timeout",
        help="Seconds to wait before killing the editor",
    )
    return parser


def build_config_env(
    args: argparse.Namespace, env: Mapping[str, str]
) -> Mapping[str, str]:
    """Overlay flag values on the environment; flags win over variables."""
    merged = dict(env)
    for attr, env_var in FLAG_ENV_VARS.items():
        value = getattr(args, attr)
        if value:
            merged[env_var] = value
    if not merged.get("UNITY_PROJECT_PATH"):
        merged["UNITY_PROJECT_PATH"] = os.getcwd()
    return merged


def build_request(args: argparse.Namespace, env: Mapping[str, str]) -> RunRequest:
    """Create the run request from flags, falling back to environment variables."""
    return RunRequest(
        filter=args.filter or env.get("TEST_FILTER") or None,
        category=args.category or env.get("TEST_CATEGORY") or None,
        platform=args.platform or env.get("TEST_PLATFORM") or "EditMode",
    )


async def run(config: UnityConfig, request: RunRequest) -> int:
    """Run tests, print the summary and return the editor's exit code."""
    log = logging.getLogger("unity_batchmode_mcp")
    log.info("Running tests in %s", config.project_path)

    result = await run_unity_tests(config, request)
    print(result.summary)

    return result.exit_code


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        request = build_request(args, os.environ)
        config = resolve_config([], build_config_env(args, os.environ))
    except (ConfigurationError, ValidationError) as e:
        parser.error(str(e))

    exit_code = asyncio.run(run(config, request))
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
