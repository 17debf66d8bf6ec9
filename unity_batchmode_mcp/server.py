"""MCP server exposing the Unity test runner as a tool over stdio."""

import logging
import os
import sys
from collections.abc import Callable
from functools import partial
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

from unity_batchmode_mcp.config import UnityConfig, resolve_config
from unity_batchmode_mcp.models.request import RunRequest, TestPlatform
from unity_batchmode_mcp.service import run_unity_tests

log = logging.getLogger(__name__)

SERVER_NAME = "unity-batchmode-mcp"


def build_server(load_config: Callable[[], UnityConfig]) -> FastMCP:
    """Create the MCP server with the run_unity_tests tool registered.

    Args:
        load_config: Called on every tool invocation to resolve editor and
            project locations, so configuration errors surface per call

    Returns:
        The configured server

    """
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool(name="run_unity_tests", description="Run Unity Tests")
    async def run_tests(
        filter: Annotated[
            str | None,
            Field(description="Filter for -testFilter (e.g. fully qualified C# type)"),
        ] = None,
        platform: Annotated[
            TestPlatform, Field(description="Test platform")
        ] = "EditMode",
    ) -> str:
        config = load_config()
        result = await run_unity_tests(
            config, RunRequest(filter=filter, platform=platform)
        )
        if result.exit_code != 0:
            raise ToolError(result.summary)
        return result.summary

    return mcp


def main() -> None:
    """Server entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        mcp = build_server(partial(resolve_config, sys.argv[1:], os.environ))
        mcp.run()
    except Exception:
        log.exception("Failed to start MCP server")
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
