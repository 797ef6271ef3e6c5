"""Obtain raw ktlint JSON reports.

Functions:
    obtain_reports(targets, settings)   -> list of parsed report documents
    ktlint_installed()                  -> bool
    run_ktlint(targets, filtering)      -> list of parsed report documents

A report document is the parsed JSON that ktlint's ``json`` reporter writes:
``[{"file": ..., "errors": [{"line", "column", "message", "rule"}]}]``.
"""

import glob
import json
import logging
import shutil
import subprocess
from pathlib import Path
from typing import Any

from ktlint_review.config import KtlintSettings

logger = logging.getLogger(__name__)

KTLINT_COMMAND = "ktlint"
REPORT_FILE_PATH = "ktlint_report.json"
WHOLE_TREE_TARGET = "**/*.kt"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class LintError(Exception):
    """Base exception for problems that stop linting but not the review."""


class ToolMissingError(LintError):
    """Raised when the ktlint binary is not on PATH."""

    def __init__(self, message: str = "Couldn't find ktlint command. Install first.") -> None:
        super().__init__(message)


class ReportNotFoundError(LintError):
    """Raised when no ktlint JSON report can be located."""

    def __init__(
        self,
        message: str = (
            "Couldn't find ktlint result json file.\n"
            "You must specify it with `ktlint.report_file` or "
            "`ktlint.report_files_pattern` in your config file."
        ),
    ) -> None:
        super().__init__(message)


class ReportParseError(LintError):
    """Raised when a report file is not a ktlint JSON report."""


class ReportReadError(LintError):
    """Raised when a report file exists but cannot be read."""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def obtain_reports(targets: list[str], settings: KtlintSettings) -> list[Any]:
    """Return the report documents for this run.

    Existing report files win over running ktlint: ``report_file`` first,
    then ``report_files_pattern``. ktlint is only run when neither is set.

    Raises:
        ToolMissingError:    ktlint must be run but is not installed
        ReportNotFoundError: a configured report file is missing, or ktlint
                             did not write its report
        ReportParseError:    a report file is not a ktlint JSON report
        ReportReadError:     a report file cannot be read
    """
    report_file = (settings.report_file or "").strip()
    pattern = (settings.report_files_pattern or "").strip()

    if report_file and Path(report_file).is_file():
        logger.debug("Reading ktlint report %s", report_file)
        return [read_report(report_file)]

    if pattern:
        # directories can match a pattern like build/ktlint*
        paths = sorted(p for p in glob.glob(pattern, recursive=True) if Path(p).is_file())
        logger.debug("Pattern %r matched %d report file(s)", pattern, len(paths))
        return [read_report(path) for path in paths]

    if report_file:
        logger.debug("Configured report file %s does not exist", report_file)
        raise ReportNotFoundError()

    filtering = True if settings.filtering is None else settings.filtering
    return run_ktlint(targets, filtering)


def ktlint_installed() -> bool:
    return shutil.which(KTLINT_COMMAND) is not None


def run_ktlint(targets: list[str], filtering: bool) -> list[Any]:
    """Run ktlint and return its report as a single document.

    With *filtering* ktlint only sees *targets*; otherwise it lints every
    Kotlin file below the working directory and the caller filters later.
    """
    if not ktlint_installed():
        raise ToolMissingError()

    if filtering and not targets:
        logger.info("No Kotlin files changed, skipping ktlint")
        return []

    lint_targets = list(targets) if filtering else [WHOLE_TREE_TARGET]
    command = [
        KTLINT_COMMAND,
        *lint_targets,
        f"--reporter=json,output={REPORT_FILE_PATH}",
        "--relative",
    ]
    # a report left over from an earlier run must not be mistaken for this one
    Path(REPORT_FILE_PATH).unlink(missing_ok=True)
    logger.info("Running %s", " ".join(command))
    # ktlint exits non-zero whenever it finds issues; only the report matters
    completed = subprocess.run(command, check=False)
    logger.debug("ktlint exited with status %s", completed.returncode)

    if not Path(REPORT_FILE_PATH).exists():
        raise ReportNotFoundError()
    return [read_report(REPORT_FILE_PATH)]


def read_report(path: str) -> list[dict]:
    """Parse one ktlint JSON report file.

    Raises:
        ReportReadError:  the file cannot be opened or read
        ReportParseError: the file is not UTF-8 JSON shaped like a ktlint report
    """
    try:
        with open(path, encoding="utf-8") as f:
            document = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ReportParseError(f"Couldn't parse ktlint report '{path}': {exc}") from exc
    except OSError as exc:
        raise ReportReadError(f"Couldn't read ktlint report '{path}': {exc}") from exc

    if not _is_report(document):
        raise ReportParseError(
            f"Couldn't parse ktlint report '{path}': expected a list of "
            "{\"file\", \"errors\"} objects"
        )
    return document


def _is_report(document: Any) -> bool:
    if not isinstance(document, list):
        return False
    for file_report in document:
        if not isinstance(file_report, dict) or not isinstance(file_report.get("file"), str):
            return False
        errors = file_report.get("errors", [])
        if not isinstance(errors, list) or not all(isinstance(e, dict) for e in errors):
            return False
    return True
