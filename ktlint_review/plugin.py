"""The ``lint`` entry point used by review automation.

Usage:
    plugin = KtlintPlugin(platform_settings, ktlint_settings, StatusReport(), GitChangeSet())
    plugin.lint(inline_mode=True, filter_block=lambda issue: issue.rule != "indent")
"""

import logging
import os
from typing import Protocol

from ktlint_review.config import KtlintSettings, PlatformSettings, validate_limit
from ktlint_review.dispatch import LintContext, StatusReport, dispatch
from ktlint_review.links import LinkFormatter, Platform
from ktlint_review.reports.issues import IssuePredicate, normalize, select_issues, target_files
from ktlint_review.reports.sources import LintError, obtain_reports

logger = logging.getLogger(__name__)


class ChangeSet(Protocol):
    def added_files(self) -> list[str]: ...

    def modified_files(self) -> list[str]: ...


class KtlintPlugin:
    """Runs ktlint (or reads its reports) and comments on the changed files."""

    def __init__(
        self,
        platform: PlatformSettings,
        settings: KtlintSettings,
        status_report: StatusReport,
        change_set: ChangeSet,
    ) -> None:
        self.platform = platform
        self.settings = settings
        self.status_report = status_report
        self.change_set = change_set

    def lint(
        self,
        files: list[str] | None = None,
        inline_mode: bool = False,
        filter_block: IssuePredicate | None = None,
    ) -> None:
        """Comment on ktlint issues found in the changed Kotlin files.

        ``files=None`` means every added or modified file of the review; an
        explicit empty list lints nothing.

        Missing ktlint or a missing report is recorded as a single failure
        and the call returns normally.

        Raises:
            UnsupportedServiceError: the platform service is not supported
            UnexpectedLimitTypeError: ``limit`` is not a non-negative integer
        """
        context = self._context()

        if files is None:
            files = self.change_set.added_files() + self.change_set.modified_files()
        targets = target_files(files)
        logger.debug("%d Kotlin file(s) to check", len(targets))

        try:
            documents = obtain_reports(targets, self.settings)
        except LintError as exc:
            logger.info("ktlint results unavailable: %s", exc)
            self.status_report.fail(str(exc))
            return

        issues = select_issues(normalize(documents), filter_block)
        if not issues:
            return

        count = dispatch(issues, set(targets), context, self.status_report, inline_mode=inline_mode)
        logger.info("Reported %d of %d ktlint issue(s)", count, len(issues))

    def _context(self) -> LintContext:
        platform = Platform.parse(self.platform.service)
        limit = validate_limit(self.settings.limit)
        links = LinkFormatter(platform, url=self.platform.url, head_sha=self.platform.head_sha)
        return LintContext(cwd=os.getcwd(), links=links, limit=limit)
