"""Tests for server module."""

from unittest.mock import AsyncMock, patch

import pytest
from fastmcp import Client
from mcp.types import TextContent

from unity_batchmode_mcp.config import ConfigurationError, UnityConfig
from unity_batchmode_mcp.models.request import RunRequest
from unity_batchmode_mcp.models.result import RunSummary
from unity_batchmode_mcp.server import build_server, main
from unity_batchmode_mcp.testing.factories import UnityConfigFactory


@pytest.fixture
def config() -> UnityConfig:
    """Create a config pointing at a fake project."""
    return UnityConfigFactory.build()


def text_of(content: object) -> str:
    """Return the text of a text content block."""
    assert isinstance(content, TextContent)
    return content.text


class TestRunUnityTestsTool:
    """Tests for the run_unity_tests tool."""

    async def test_lists_tool(self, config: UnityConfig) -> None:
        """Registers the tool with filter and platform parameters."""
        server = build_server(lambda: config)

        async with Client(server) as client:
            tools = await client.list_tools()

        tool = next(t for t in tools if t.name == "run_unity_tests")
        assert tool.description == "Run Unity Tests"
        assert set(tool.inputSchema["properties"]) == {"filter", "platform"}

    async def test_returns_summary_on_success(self, config: UnityConfig) -> None:
        """Returns the summary as text content when the run passes."""
        with patch(
            "unity_batchmode_mcp.server.run_unity_tests",
            new_callable=AsyncMock,
            return_value=RunSummary(summary="Total: 3, Failed: 0", exit_code=0),
        ) as mock_run:
            server = build_server(lambda: config)
            async with Client(server) as client:
                result = await client.call_tool(
                    "run_unity_tests", {"filter": "Game.Tests.Movement"}
                )

        assert not result.is_error
        assert text_of(result.content[0]) == "Total: 3, Failed: 0"
        mock_run.assert_awaited_once_with(
            config, RunRequest(filter="Game.Tests.Movement", platform="EditMode")
        )

    async def test_flags_error_on_non_zero_exit(self, config: UnityConfig) -> None:
        """Marks the response as an error but still carries the summary."""
        summary = "Total: 3, Failed: 1\n\nLog: /projects/game/batch.log\nExit code: 2"
        with patch(
            "unity_batchmode_mcp.server.run_unity_tests",
            new_callable=AsyncMock,
            return_value=RunSummary(summary=summary, exit_code=2),
        ) as mock_run:
            server = build_server(lambda: config)
            async with Client(server) as client:
                result = await client.call_tool(
                    "run_unity_tests",
                    {"platform": "PlayMode"},
                    raise_on_error=False,
                )

        assert result.is_error
        assert summary in text_of(result.content[0])
        mock_run.assert_awaited_once_with(
            config, RunRequest(filter=None, platform="PlayMode")
        )

    async def test_rejects_unknown_platform(self, config: UnityConfig) -> None:
        """Returns an error for a platform other than EditMode or PlayMode."""
        with patch(
            "unity_batchmode_mcp.server.run_unity_tests", new_callable=AsyncMock
        ) as mock_run:
            server = build_server(lambda: config)
            async with Client(server) as client:
                result = await client.call_tool(
                    "run_unity_tests",
                    {"platform": "Standalone"},
                    raise_on_error=False,
                )

        assert result.is_error
        mock_run.assert_not_awaited()

    async def test_reports_configuration_error(self) -> None:
        """Surfaces missing configuration as a tool error."""

        def load_config() -> UnityConfig:
            raise ConfigurationError(
                "Missing Unity editor path. "
                "Provide via --unity-editor or UNITY_EDITOR_PATH."
            )

        server = build_server(load_config)
        async with Client(server) as client:
            result = await client.call_tool(
                "run_unity_tests", {}, raise_on_error=False
            )

        assert result.is_error
        assert "Missing Unity editor path" in text_of(result.content[0])


class TestMain:
    """Tests for main server entry point."""

    def test_runs_server(self) -> None:
        """Builds the server and runs it over stdio."""
        with patch("unity_batchmode_mcp.server.build_server") as mock_build:
            main()

        mock_build.return_value.run.assert_called_once_with()

    def test_exits_on_startup_failure(self) -> None:
        """Exits with code 1 when the server fails to start."""
        with (
            patch(
                "unity_batchmode_mcp.server.build_server",
                side_effect=RuntimeError("boom"),
            ),
            pytest.raises(SystemExit) as exc_info,
        ):
            main()

        assert exc_info.value.code == 1
