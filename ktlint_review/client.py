"""Review platform API client.

Usage:
    client = ReviewClient(Platform.GITHUB, api_url="https://api.github.com",
                          token="ghp_xxx", repository="owner/repo",
                          pull_request="42", head_sha="abc123")
    client.post_comment("Summary")
    client.post_inline_comment("app/Model.kt", 46, "Unexpected blank line(s)")
    client.publish(status_report)
"""

import logging
import os
from typing import Any
from urllib.parse import quote

import requests

from ktlint_review.dispatch import StatusReport
from ktlint_review.links import Platform
from ktlint_review.reports.issues import relative_file_path

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ReviewClientError(Exception):
    """Base exception for all client errors."""


class AuthenticationError(ReviewClientError):
    """Raised on HTTP 401/403: invalid, expired or under-privileged token."""


class NotFoundError(ReviewClientError):
    """Raised on HTTP 404: repository or pull request not found."""


class NetworkError(ReviewClientError):
    """Raised on connection timeout or unreachable server."""


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class ReviewClient:
    """Posts review comments to GitHub, GitLab or Bitbucket server."""

    def __init__(
        self,
        platform: Platform,
        api_url: str,
        token: str,
        repository: str,
        pull_request: str,
        head_sha: str = "",
        base_sha: str = "",
        timeout: int = 30,
    ) -> None:
        self.platform = platform
        self.base_url = api_url.rstrip("/")
        self.repository = repository
        self.pull_request = str(pull_request)
        self.head_sha = head_sha
        self.base_sha = base_sha
        self._timeout = timeout
        self._session = requests.Session()
        if platform is Platform.GITLAB:
            self._session.headers["PRIVATE-TOKEN"] = token
        else:
            self._session.headers["Authorization"] = f"Bearer {token}"

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def post_comment(self, body: str) -> dict:
        """Post a general comment on the pull request."""
        if self.platform is Platform.GITHUB:
            endpoint = f"/repos/{self.repository}/issues/{self.pull_request}/comments"
            payload: dict[str, Any] = {"body": body}
        elif self.platform is Platform.GITLAB:
            endpoint = f"{self._gitlab_mr_path()}/notes"
            payload = {"body": body}
        else:
            endpoint = f"{self._bitbucket_pr_path()}/comments"
            payload = {"text": body}
        return self._request(endpoint, payload)

    def post_inline_comment(self, path: str, line: int, body: str) -> dict:
        """Post a comment attached to *line* of *path* in the new revision."""
        if self.platform is Platform.GITHUB:
            endpoint = f"/repos/{self.repository}/pulls/{self.pull_request}/comments"
            payload: dict[str, Any] = {
                "body": body,
                "commit_id": self.head_sha,
                "path": path,
                "line": line,
                "side": "RIGHT",
            }
        elif self.platform is Platform.GITLAB:
            endpoint = f"{self._gitlab_mr_path()}/discussions"
            payload = {
                "body": body,
                "position": {
                    "position_type": "text",
                    "base_sha": self.base_sha,
                    "start_sha": self.base_sha,
                    "head_sha": self.head_sha,
                    "new_path": path,
                    "new_line": line,
                },
            }
        else:
            endpoint = f"{self._bitbucket_pr_path()}/comments"
            payload = {
                "text": body,
                "anchor": {
                    "path": path,
                    "line": line,
                    "lineType": "ADDED",
                    "fileType": "TO",
                },
            }
        return self._request(endpoint, payload)

    def publish(self, report: StatusReport) -> int:
        """Post everything *report* collected and return the comment count.

        General entries become one summary comment; each inline entry becomes
        its own comment on the reported file and line.
        """
        posted = 0
        summary = report.to_markdown()
        if summary:
            self.post_comment(summary)
            posted += 1

        cwd = os.getcwd()
        for violation in report.inline:
            self.post_inline_comment(
                relative_file_path(violation.file, cwd), violation.line, violation.message
            )
            posted += 1

        logger.info("Posted %d comment(s) to %s", posted, self.platform.value)
        return posted

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _gitlab_mr_path(self) -> str:
        project = quote(self.repository, safe="")
        return f"/projects/{project}/merge_requests/{self.pull_request}"

    def _bitbucket_pr_path(self) -> str:
        project, _, slug = self.repository.partition("/")
        return (
            f"/rest/api/1.0/projects/{project}/repos/{slug}"
            f"/pull-requests/{self.pull_request}"
        )

    def _request(self, endpoint: str, payload: dict[str, Any]) -> dict:
        url = f"{self.base_url}{endpoint}"
        logger.debug("POST %s", url)
        try:
            response = self._session.post(url, json=payload, timeout=self._timeout)
        except requests.exceptions.Timeout as exc:
            raise NetworkError(
                f"Request timed out after {self._timeout}s while contacting '{url}'"
            ) from exc
        except requests.exceptions.ConnectionError as exc:
            raise NetworkError(
                f"Unable to reach review server at '{self.base_url}'"
            ) from exc

        if response.status_code in (401, 403):
            raise AuthenticationError(
                "Authentication failed, check that your token is valid and may comment."
            )
        if response.status_code == 404:
            raise NotFoundError(
                f"Resource not found: {url}"
            )
        if not response.ok:
            raise ReviewClientError(
                f"Unexpected response {response.status_code} from {url}: {response.text[:200]}"
            )

        if not response.content:
            return {}
        return response.json()
