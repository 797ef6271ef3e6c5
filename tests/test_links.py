"""Tests for ktlint_review/links.py"""

import pytest

from ktlint_review.config import UnsupportedServiceError
from ktlint_review.links import LinkFormatter, Platform

MODEL = "app/src/main/java/com/mataku/Model.kt"


@pytest.mark.parametrize("value, expected", [
    ("github", Platform.GITHUB),
    ("gitlab", Platform.GITLAB),
    ("bitbucket_server", Platform.BITBUCKET_SERVER),
])
def test_parse_supported(value, expected):
    assert Platform.parse(value) is expected


@pytest.mark.parametrize("value", [None, "", "GitHub", "bitbucket_cloud", "vsts", "__import__('os')"])
def test_parse_unsupported(value):
    with pytest.raises(UnsupportedServiceError, match="Unsupported service"):
        Platform.parse(value)


def test_github_link_has_line_anchor():
    links = LinkFormatter(Platform.GITHUB, url="https://github.com/mataku/android", head_sha="561827e")
    assert links.file_html_link(MODEL, 46) == (
        f"<a href='https://github.com/mataku/android/blob/561827e/{MODEL}#L46'>{MODEL}#L46</a>"
    )


def test_gitlab_link_has_line_anchor():
    links = LinkFormatter(Platform.GITLAB, url="https://gitlab.com/mataku/android/", head_sha="561827e")
    assert links.file_html_link(MODEL, 47) == (
        f"<a href='https://gitlab.com/mataku/android/-/blob/561827e/{MODEL}#L47'>{MODEL}#L47</a>"
    )


def test_bitbucket_server_link_is_bare_path():
    links = LinkFormatter(
        Platform.BITBUCKET_SERVER,
        url="https://bitbucket.example.com/projects/AND/repos/android",
        head_sha="561827e",
    )
    assert links.file_reference(MODEL, 46) == MODEL
    assert links.file_html_link(MODEL, 46) == (
        "<a href='https://bitbucket.example.com/projects/AND/repos/android"
        f"/browse/{MODEL}?at=561827e'>{MODEL}</a>"
    )
