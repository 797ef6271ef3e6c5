"""Turn normalized issues into review comments.

The ``StatusReport`` collects what should be shown to the review author;
``dispatch`` walks the issues once, in order, and stops at the limit.
"""

import logging
from dataclasses import dataclass, field

from ktlint_review.links import LinkFormatter
from ktlint_review.models import Issue, Violation
from ktlint_review.reports.issues import relative_file_path

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Reporting sink
# ---------------------------------------------------------------------------

@dataclass
class StatusReport:
    errors: list[Violation] = field(default_factory=list)

    def fail(self, message: str, file: str | None = None, line: int | None = None) -> None:
        self.errors.append(Violation(message=message, file=file, line=line))

    @property
    def general(self) -> list[Violation]:
        return [v for v in self.errors if not v.is_inline]

    @property
    def inline(self) -> list[Violation]:
        return [v for v in self.errors if v.is_inline]

    def to_markdown(self) -> str:
        """Render the general entries as one summary comment."""
        entries = self.general
        if not entries:
            return ""
        noun = "Error" if len(entries) == 1 else "Errors"
        lines = [
            "<table>",
            "  <thead>",
            "    <tr>",
            "      <th width=\"50\"></th>",
            f"      <th width=\"100%\">{len(entries)} {noun}</th>",
            "    </tr>",
            "  </thead>",
            "  <tbody>",
        ]
        for violation in entries:
            lines += [
                "    <tr>",
                "      <td>:no_entry_sign:</td>",
                f"      <td>{violation.message}</td>",
                "    </tr>",
            ]
        lines += ["  </tbody>", "</table>"]
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "total":  len(self.errors),
            "errors": [v.to_dict() for v in self.errors],
        }


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LintContext:
    """Values resolved once at the start of a ``lint`` call."""

    cwd: str
    links: LinkFormatter
    limit: int | None = None


def dispatch(
    issues: list[Issue],
    targets: set[str],
    context: LintContext,
    report: StatusReport,
    *,
    inline_mode: bool = False,
) -> int:
    """Report *issues* on target files and return how many were reported."""
    if inline_mode:
        return send_inline_comments(issues, targets, context, report)
    return send_markdown_comment(issues, targets, context, report)


def send_markdown_comment(
    issues: list[Issue],
    targets: set[str],
    context: LintContext,
    report: StatusReport,
) -> int:
    count = 0
    for issue, file_path in _eligible(issues, targets, context):
        if context.limit is not None and count >= context.limit:
            logger.info("Comment limit of %d reached", context.limit)
            break
        link = context.links.file_html_link(file_path, issue.line)
        report.fail(f"{link}: {issue.message}")
        count += 1
    return count


def send_inline_comments(
    issues: list[Issue],
    targets: set[str],
    context: LintContext,
    report: StatusReport,
) -> int:
    count = 0
    for issue, _ in _eligible(issues, targets, context):
        if context.limit is not None and count >= context.limit:
            logger.info("Comment limit of %d reached", context.limit)
            break
        # scoped to the path ktlint reported, not the relativized one
        report.fail(issue.message, file=issue.file, line=issue.line)
        count += 1
    return count


def _eligible(issues: list[Issue], targets: set[str], context: LintContext):
    """Yield ``(issue, relative_path)`` for issues on target files."""
    for issue in issues:
        file_path = relative_file_path(issue.file, context.cwd)
        if file_path not in targets:
            logger.debug("Skipping %s: not a changed file", file_path)
            continue
        yield issue, file_path
