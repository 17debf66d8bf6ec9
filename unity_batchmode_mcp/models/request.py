"""Models for test run requests."""

from typing import Literal

from pydantic import Field

from unity_batchmode_mcp.models.base import Model

type TestPlatform = Literal["EditMode", "PlayMode"]


class RunRequest(Model):
    """Parameters of a single Unity test run."""

    filter: str | None = Field(
        default=None,
        description="Value for -testFilter (semicolon-separated names or a regex)",
    )
    category: str | None = Field(
        default=None,
        description="Value for -testCategory (semicolon-separated names or a regex)",
    )
    platform: TestPlatform = Field(default="EditMode", description="Test platform")
