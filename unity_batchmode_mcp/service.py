"""Run Unity tests and summarize the outcome."""

import logging

from unity_batchmode_mcp.config import UnityConfig
from unity_batchmode_mcp.models.request import RunRequest
from unity_batchmode_mcp.models.result import RunSummary
from unity_batchmode_mcp.runner import run_unity
from unity_batchmode_mcp.summarizer import summarize

log = logging.getLogger(__name__)


async def run_unity_tests(config: UnityConfig, request: RunRequest) -> RunSummary:
    """Run the project's tests in batch mode and return the summary.

    Args:
        config: Editor and project locations
        request: Platform and optional filters for the run

    Returns:
        Summary text and the editor's exit code

    """
    log.info("Running Unity tests...")
    log.info("Editor: %s", config.editor_path)
    log.info("Project: %s", config.project_path)
    log.info("Platform: %s", request.platform)
    if request.filter:
        log.info("Filter: %s", request.filter)
    if request.category:
        log.info("Category: %s", request.category)

    outcome = await run_unity(config, request)

    return RunSummary(summary=summarize(outcome), exit_code=outcome.exit_code)
