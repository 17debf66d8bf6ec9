"""Summarize Unity test results and batch logs into a compact report.

The results document is treated as plain text and scanned with regular
expressions rather than parsed as XML. Truncated or malformed documents
therefore still yield whatever can be found, and a missing document is
reported inline instead of raising.
"""

import logging
import re
from collections.abc import Sequence
from pathlib import Path

from unity_batchmode_mcp.models.result import (
    FailedCase,
    FailureDetail,
    RunOutcome,
    TestRunHeader,
    TestTotals,
)

log = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "One or more child tests had errors"
NO_RESULTS_NOTICE = "No results.xml found or failed to parse."
LOG_GREP_LABEL = "[log grep -i 'error']"

OUTPUT_TAIL_CHARS = 1000
MAX_LOG_ERROR_LINES = 200

HEADER_RE = re.compile(r"<test-run\s[^>]+>")
TEST_RUN_TAG_RE = re.compile(r"<test-run\b[^>]*")
TEST_CASE_TAG_RE = re.compile(r"<test-case\b[^>]*>")
FAILURE_RE = re.compile(r"<failure\b[^>]*>(.*?)</failure\s*>", re.DOTALL)
MESSAGE_RE = re.compile(
    r"<message\s*>\s*<!\[CDATA\[(.*?)\]\]>\s*</message\s*>", re.DOTALL
)
STACK_TRACE_RE = re.compile(
    r"<stack-trace\s*>\s*<!\[CDATA\[(.*?)\]\]>\s*</stack-trace\s*>", re.DOTALL
)
LINE_SPLIT_RE = re.compile(r"\r?\n")


def _attribute(tag: str, name: str) -> str | None:
    """Return the value of a double-quoted attribute in an opening tag."""
    match = re.search(rf'(?:^|\s){re.escape(name)}\s*=\s*"([^"]*)"', tag)
    return match.group(1) if match else None


def extract_header(xml: str) -> TestRunHeader | None:
    """Find the first test-run opening tag that carries attributes."""
    if match := HEADER_RE.search(xml):
        return TestRunHeader(raw=match.group(0))
    return None


def extract_totals(xml: str) -> TestTotals | None:
    """Find the first test-run tag bearing both total and failed counts.

    This may be a different tag from the one returned by extract_header when
    the document contains several test-run tags.
    """
    for match in TEST_RUN_TAG_RE.finditer(xml):
        tag = match.group(0)
        total = _attribute(tag, "total")
        failed = _attribute(tag, "failed")
        if total is None or failed is None:
            continue
        if total.isdigit() and failed.isdigit():
            return TestTotals(total=total, failed=failed)
    return None


def extract_failed_cases(xml: str) -> Sequence[FailedCase]:
    """Return every test case with result="Failed", in document order."""
    cases: list[FailedCase] = []
    for match in TEST_CASE_TAG_RE.finditer(xml):
        tag = match.group(0)
        if _attribute(tag, "result") != "Failed":
            continue
        cases.append(FailedCase(name=_attribute(tag, "name")))
    return cases


def extract_failure_detail(xml: str) -> FailureDetail | None:
    """Return the first failure block with a meaningful message.

    Blocks whose message is empty or only the generic suite-level message are
    skipped.
    """
    for match in FAILURE_RE.finditer(xml):
        block = match.group(1)
        message_match = MESSAGE_RE.search(block)
        if message_match is None:
            continue
        message = message_match.group(1).strip()
        if not message or message == GENERIC_FAILURE_MESSAGE:
            continue
        stack_match = STACK_TRACE_RE.search(block)
        return FailureDetail(
            message=message,
            stack_trace=stack_match.group(1).strip() if stack_match else None,
        )
    return None


def grep_log_errors(text: str) -> Sequence[str]:
    """Return log lines containing "error", ignoring case."""
    return [line for line in LINE_SPLIT_RE.split(text) if "error" in line.lower()]


def tail(text: str, max_chars: int = OUTPUT_TAIL_CHARS) -> str:
    """Keep only the last max_chars characters of text."""
    return text[-max_chars:] if len(text) > max_chars else text


def read_text(path: Path) -> str:
    """Read a UTF-8 file with its line endings untouched.

    Undecodable bytes are replaced.
    """
    return path.read_bytes().decode("utf-8", errors="replace")


def summarize_results(xml: str) -> str:
    """Format the header, totals, failed cases and first failure of a document."""
    summary = ""

    if header := extract_header(xml):
        summary += f"{header.raw}\n"

    if totals := extract_totals(xml):
        summary += f"Total: {totals.total}, Failed: {totals.failed}\n"

    failed_cases = extract_failed_cases(xml)
    if failed_cases:
        summary += f"Failed cases ({len(failed_cases)}):\n"
        for case in failed_cases:
            if case.name is not None:
                summary += f"  - {case.name}\n"

    if detail := extract_failure_detail(xml):
        summary += f"\nFailure message: {detail.message}\n"
        if detail.stack_trace is not None:
            summary += f"Stack: {detail.stack_trace}\n"

    return summary


def summarize_log(log_path: Path) -> str:
    """Format the error lines found in the batch log."""
    try:
        text = read_text(log_path)
    except OSError as e:
        log.warning("Could not read log file %s: %s", log_path, e)
        return f"\n\n{LOG_GREP_LABEL}\nFailed to read log file: {e}"

    error_lines = grep_log_errors(text)
    if not error_lines:
        return f"\n\n{LOG_GREP_LABEL}\nNo 'error' lines found."

    shown = error_lines[-MAX_LOG_ERROR_LINES:]
    return (
        f"\n\n[log grep -i 'error' ({len(shown)}/{len(error_lines)} matches)]\n"
        + "\n".join(shown)
    )


def summarize(outcome: RunOutcome) -> str:
    """Build the human-readable summary of a finished run.

    Never raises for missing or unreadable artifacts; those conditions are
    reported inside the returned text.

    Args:
        outcome: Exit code, captured output and artifact paths of the run

    Returns:
        The summary text

    """
    summary = ""

    try:
        xml = read_text(outcome.results_path)
    except OSError as e:
        log.info("No results document at %s: %s", outcome.results_path, e)
        summary += f"{NO_RESULTS_NOTICE}\n"
    else:
        summary += summarize_results(xml)

    summary += f"\nLog: {outcome.log_path}"
    summary += f"\nExit code: {outcome.exit_code}"

    if outcome.stdout.strip():
        summary += f"\n\n[stdout tail]\n{tail(outcome.stdout)}"
    if outcome.stderr.strip():
        summary += f"\n\n[stderr tail]\n{tail(outcome.stderr)}"

    if outcome.exit_code != 0:
        summary += summarize_log(outcome.log_path)

    return summary
