"""Models for test run outcomes and the data extracted from them."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, kw_only=True)
class RunOutcome:
    """What the editor process left behind once it exited."""

    exit_code: int
    stdout: str
    stderr: str
    results_path: Path
    log_path: Path


@dataclass(frozen=True, kw_only=True)
class RunSummary:
    """Summary text and the exit code to propagate to the caller."""

    summary: str
    exit_code: int


@dataclass(frozen=True, kw_only=True)
class TestRunHeader:
    """Raw opening tag of the test-run element."""

    __test__ = False

    raw: str


@dataclass(frozen=True, kw_only=True)
class TestTotals:
    """Aggregate counts, kept as the digit strings found in the document."""

    __test__ = False

    total: str
    failed: str


@dataclass(frozen=True, kw_only=True)
class FailedCase:
    """A test case reported with result="Failed"."""

    name: str | None


@dataclass(frozen=True, kw_only=True)
class FailureDetail:
    """Message and stack trace from a failure block."""

    message: str
    stack_trace: str | None = None
