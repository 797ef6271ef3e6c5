"""Clickable file references for the supported review platforms.

Usage:
    platform = Platform.parse("github")
    links = LinkFormatter(platform, url="https://github.com/o/r", head_sha="abc")
    links.file_html_link("app/Model.kt", 46)
    # "<a href='https://github.com/o/r/blob/abc/app/Model.kt#L46'>app/Model.kt#L46</a>"
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from ktlint_review.config import UnsupportedServiceError


class Platform(str, Enum):
    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET_SERVER = "bitbucket_server"

    @classmethod
    def parse(cls, value: str | None) -> "Platform":
        """Return the platform named *value*, exact match only."""
        for platform in cls:
            if platform.value == value:
                return platform
        raise UnsupportedServiceError()


# Platforms whose blob view understands ``#L<line>``
LINE_ANCHOR_PLATFORMS = frozenset({Platform.GITHUB, Platform.GITLAB})


def _create_link(href: str, text: str) -> str:
    return f"<a href='{href}'>{text}</a>"


def _github_link(url: str, head_sha: str, path: str) -> str:
    return _create_link(f"{url}/blob/{head_sha}/{path}", path)


def _gitlab_link(url: str, head_sha: str, path: str) -> str:
    return _create_link(f"{url}/-/blob/{head_sha}/{path}", path)


def _bitbucket_server_link(url: str, head_sha: str, path: str) -> str:
    return _create_link(f"{url}/browse/{path}?at={head_sha}", path)


_RENDERERS: dict[Platform, Callable[[str, str, str], str]] = {
    Platform.GITHUB:           _github_link,
    Platform.GITLAB:           _gitlab_link,
    Platform.BITBUCKET_SERVER: _bitbucket_server_link,
}


@dataclass(frozen=True)
class LinkFormatter:
    platform: Platform
    url: str = ""
    head_sha: str = ""

    def file_reference(self, path: str, line: int) -> str:
        if self.platform in LINE_ANCHOR_PLATFORMS:
            return f"{path}#L{line}"
        return path

    def file_html_link(self, path: str, line: int) -> str:
        """Render an HTML anchor pointing at *path* (and *line* where possible)."""
        render = _RENDERERS[self.platform]
        return render(self.url.rstrip("/"), self.head_sha, self.file_reference(path, line))
