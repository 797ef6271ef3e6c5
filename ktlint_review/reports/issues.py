"""Issue normalization and filtering.

Functions:
    normalize(documents)                  -> list[Issue]
    target_files(changed_files)           -> list[str]
    relative_file_path(path, cwd)         -> str
    select_issues(issues, predicate)      -> list[Issue]
    build_report(issues, targets, cwd)    -> dict
"""

import os
from collections import Counter
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from ktlint_review.models import Issue

KOTLIN_SUFFIX = ".kt"

IssuePredicate = Callable[[Issue], bool]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def normalize(documents: Iterable[Any]) -> list[Issue]:
    """Flatten report documents into one ordered list of issues.

    Order is document, then file report, then error, exactly as read.
    """
    return [
        Issue.from_raw(file_report, error)
        for document in documents
        for file_report in document
        for error in file_report.get("errors", [])
    ]


def target_files(changed_files: Iterable[str]) -> list[str]:
    """Keep the changed files ktlint should look at."""
    return [path for path in changed_files if path.endswith(KOTLIN_SUFFIX)]


def relative_file_path(path: str, cwd: str) -> str:
    """Strip *cwd* from an absolute path so it compares with changed files."""
    prefix = cwd.rstrip(os.sep) + os.sep
    if path.startswith(prefix):
        return path[len(prefix):]
    return path


def select_issues(issues: list[Issue], predicate: IssuePredicate | None = None) -> list[Issue]:
    """Apply the caller's filter block, keeping order."""
    if predicate is None:
        return list(issues)
    return [issue for issue in issues if predicate(issue)]


def build_report(issues: list[Issue], targets: list[str], cwd: str) -> dict:
    """Build the JSON document emitted by the ``issues`` command.

    Only issues on a target file are included.
    """
    wanted = set(targets)
    kept = [i for i in issues if relative_file_path(i.file, cwd) in wanted]
    return {
        "report_type":  "ktlint_issues",
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "targets":      list(targets),
        "summary":      _build_summary(kept, cwd),
        "issues":       [i.to_dict() for i in kept],
    }


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _build_summary(issues: list[Issue], cwd: str) -> dict:
    by_rule = Counter(issue.rule for issue in issues)
    by_file = Counter(relative_file_path(issue.file, cwd) for issue in issues)

    return {
        "total":   len(issues),
        "by_rule": dict(by_rule.most_common()),
        "by_file": dict(by_file.most_common()),
    }
