"""Changed files of the current review, read from git."""

import logging
import subprocess

logger = logging.getLogger(__name__)

_GIT_TIMEOUT = 30


class ChangeSetError(Exception):
    """Raised when git cannot list the changed files."""


class GitChangeSet:
    """Added and modified files between *base* and *head*.

    Uses the merge-base form ``base...head`` so commits that landed on the
    base branch after the review was opened are not counted.
    """

    def __init__(self, base: str = "origin/main", head: str = "HEAD", cwd: str | None = None) -> None:
        self.base = base
        self.head = head
        self.cwd = cwd

    def added_files(self) -> list[str]:
        return self._diff("A")

    def modified_files(self) -> list[str]:
        return self._diff("M")

    def _diff(self, diff_filter: str) -> list[str]:
        command = [
            "git", "diff", "--name-only", f"--diff-filter={diff_filter}",
            f"{self.base}...{self.head}",
        ]
        logger.debug("Running %s", " ".join(command))
        try:
            completed = subprocess.run(
                command,
                cwd=self.cwd,
                capture_output=True,
                text=True,
                check=True,
                timeout=_GIT_TIMEOUT,
            )
        except FileNotFoundError as exc:
            raise ChangeSetError("git is not installed") from exc
        except subprocess.TimeoutExpired as exc:
            raise ChangeSetError(f"git diff timed out after {_GIT_TIMEOUT}s") from exc
        except subprocess.CalledProcessError as exc:
            raise ChangeSetError(
                f"git diff {self.base}...{self.head} failed: {exc.stderr.strip()}"
            ) from exc
        return [line for line in completed.stdout.splitlines() if line.strip()]
