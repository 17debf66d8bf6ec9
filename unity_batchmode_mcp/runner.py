"""Run the Unity editor in batch mode to execute a project's tests."""

import asyncio
import logging
import os
import signal
from collections.abc import Sequence

from unity_batchmode_mcp.config import UnityConfig
from unity_batchmode_mcp.models.request import RunRequest
from unity_batchmode_mcp.models.result import RunOutcome

log = logging.getLogger(__name__)

KILL_DRAIN_TIMEOUT = 5.0


def build_unity_args(config: UnityConfig, request: RunRequest) -> Sequence[str]:
    """Build the editor command-line arguments for a test run."""
    args = [
        "--burst-force-sync-compilation",
        "-burst-force-sync-compilation",
        "-runTests",
        "-batchmode",
        "-projectPath",
        str(config.project_path),
        "-testPlatform",
        request.platform,
        "-testResults",
        str(config.results_path),
        "-logFile",
        str(config.log_path),
    ]

    if request.filter and request.filter.strip():
        args.extend(["-testFilter", request.filter])
    if request.category and request.category.strip():
        args.extend(["-testCategory", request.category])

    return args


async def run_unity(config: UnityConfig, request: RunRequest) -> RunOutcome:
    """Run the editor and wait for it to exit.

    A non-zero exit code is a normal outcome and is returned, not raised. When
    config.timeout elapses the editor and every process it started are killed
    and the kill's exit code reported.

    Raises:
        OSError: If the editor executable cannot be started

    """
    args = build_unity_args(config, request)
    log.info("Starting %s %s", config.editor_path, " ".join(args))

    process = await asyncio.create_subprocess_exec(
        str(config.editor_path),
        *args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        start_new_session=True,
    )

    try:
        stdout, stderr = await asyncio.wait_for(
            process.communicate(), timeout=config.timeout
        )
    except TimeoutError:
        log.warning(
            "Unity did not finish within %s seconds, killing process group %s",
            config.timeout,
            process.pid,
        )
        stdout, stderr = await _kill_and_drain(process)

    exit_code = process.returncode if process.returncode is not None else 0
    log.info("Unity exited with code %d", exit_code)

    return RunOutcome(
        exit_code=exit_code,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
        results_path=config.results_path,
        log_path=config.log_path,
    )


async def _kill_and_drain(process: asyncio.subprocess.Process) -> tuple[bytes, bytes]:
    """Kill the editor's process group and collect what output is left.

    Processes that escaped the group may keep the pipes open, so reading stops
    after KILL_DRAIN_TIMEOUT seconds and the output is dropped.
    """
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        log.debug("Process group %s already exited", process.pid)

    try:
        return await asyncio.wait_for(
            process.communicate(), timeout=KILL_DRAIN_TIMEOUT
        )
    except TimeoutError:
        log.warning(
            "Output of pid %s still open %s seconds after kill, discarding it",
            process.pid,
            KILL_DRAIN_TIMEOUT,
        )
        await process.wait()
        return b"", b""
