"""Tests for ktlint_review/client.py"""

import os

import pytest
import requests

from ktlint_review.client import (
    AuthenticationError,
    NetworkError,
    NotFoundError,
    ReviewClient,
    ReviewClientError,
)
from ktlint_review.dispatch import StatusReport
from ktlint_review.links import Platform

GITHUB_API = "https://api.github.com"
GITLAB_API = "https://gitlab.example.com/api/v4"
BITBUCKET_API = "https://bitbucket.example.com"


def _client(platform=Platform.GITHUB, api_url=GITHUB_API, repository="mataku/android") -> ReviewClient:
    return ReviewClient(
        platform,
        api_url=api_url + "/",
        token="tok",
        repository=repository,
        pull_request="42",
        head_sha="head",
        base_sha="base",
    )


@pytest.fixture
def client() -> ReviewClient:
    return _client()


# ---------------------------------------------------------------------------
# GitHub
# ---------------------------------------------------------------------------

def test_github_comment(client, requests_mock):
    adapter = requests_mock.post(
        f"{GITHUB_API}/repos/mataku/android/issues/42/comments", json={"id": 1}, status_code=201
    )
    assert client.post_comment("hello") == {"id": 1}
    assert adapter.last_request.json() == {"body": "hello"}
    assert adapter.last_request.headers["Authorization"] == "Bearer tok"


def test_github_inline_comment(client, requests_mock):
    adapter = requests_mock.post(
        f"{GITHUB_API}/repos/mataku/android/pulls/42/comments", json={"id": 2}, status_code=201
    )
    client.post_inline_comment("app/Model.kt", 46, "blank line")
    assert adapter.last_request.json() == {
        "body": "blank line",
        "commit_id": "head",
        "path": "app/Model.kt",
        "line": 46,
        "side": "RIGHT",
    }


# ---------------------------------------------------------------------------
# GitLab
# ---------------------------------------------------------------------------

def test_gitlab_comment_uses_private_token(requests_mock):
    client = _client(Platform.GITLAB, GITLAB_API, "group/android")
    adapter = requests_mock.post(
        f"{GITLAB_API}/projects/group%2Fandroid/merge_requests/42/notes", json={"id": 3}
    )
    client.post_comment("hello")
    assert adapter.last_request.headers["PRIVATE-TOKEN"] == "tok"
    assert "Authorization" not in adapter.last_request.headers
    assert adapter.last_request.json() == {"body": "hello"}


def test_gitlab_inline_comment_position(requests_mock):
    client = _client(Platform.GITLAB, GITLAB_API, "group/android")
    adapter = requests_mock.post(
        f"{GITLAB_API}/projects/group%2Fandroid/merge_requests/42/discussions", json={"id": 4}
    )
    client.post_inline_comment("app/Model.kt", 46, "blank line")
    position = adapter.last_request.json()["position"]
    assert position == {
        "position_type": "text",
        "base_sha": "base",
        "start_sha": "base",
        "head_sha": "head",
        "new_path": "app/Model.kt",
        "new_line": 46,
    }


# ---------------------------------------------------------------------------
# Bitbucket server
# ---------------------------------------------------------------------------

def test_bitbucket_server_inline_comment(requests_mock):
    client = _client(Platform.BITBUCKET_SERVER, BITBUCKET_API, "AND/android")
    adapter = requests_mock.post(
        f"{BITBUCKET_API}/rest/api/1.0/projects/AND/repos/android/pull-requests/42/comments",
        json={"id": 5},
    )
    client.post_inline_comment("app/Model.kt", 46, "blank line")
    assert adapter.last_request.json() == {
        "text": "blank line",
        "anchor": {"path": "app/Model.kt", "line": 46, "lineType": "ADDED", "fileType": "TO"},
    }


# ---------------------------------------------------------------------------
# publish()
# ---------------------------------------------------------------------------

def test_publish_posts_summary_and_inline(client, requests_mock):
    summary = requests_mock.post(f"{GITHUB_API}/repos/mataku/android/issues/42/comments", json={})
    inline = requests_mock.post(f"{GITHUB_API}/repos/mataku/android/pulls/42/comments", json={})

    report = StatusReport()
    report.fail("general one")
    report.fail("general two")
    report.fail("on a line", file=os.path.join(os.getcwd(), "app/Model.kt"), line=46)

    assert client.publish(report) == 2
    assert summary.call_count == 1
    assert "general two" in summary.last_request.json()["body"]
    assert inline.call_count == 1
    assert inline.last_request.json()["path"] == "app/Model.kt"


def test_publish_empty_report_posts_nothing(client, requests_mock):
    assert client.publish(StatusReport()) == 0
    assert requests_mock.call_count == 0


# ---------------------------------------------------------------------------
# HTTP and network errors
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("status", [401, 403])
def test_auth_errors(client, requests_mock, status):
    requests_mock.post(f"{GITHUB_API}/repos/mataku/android/issues/42/comments", status_code=status)
    with pytest.raises(AuthenticationError):
        client.post_comment("hello")


def test_404_raises_not_found_error(client, requests_mock):
    requests_mock.post(f"{GITHUB_API}/repos/mataku/android/issues/42/comments", status_code=404)
    with pytest.raises(NotFoundError):
        client.post_comment("hello")


def test_500_raises_review_client_error(client, requests_mock):
    requests_mock.post(
        f"{GITHUB_API}/repos/mataku/android/issues/42/comments",
        status_code=500, text="Internal Server Error",
    )
    with pytest.raises(ReviewClientError, match="500"):
        client.post_comment("hello")


def test_empty_response_body(client, requests_mock):
    requests_mock.post(f"{GITHUB_API}/repos/mataku/android/issues/42/comments", status_code=204)
    assert client.post_comment("hello") == {}


def test_timeout_raises_network_error(client, requests_mock):
    requests_mock.post(
        f"{GITHUB_API}/repos/mataku/android/issues/42/comments", exc=requests.exceptions.Timeout
    )
    with pytest.raises(NetworkError, match="timed out"):
        client.post_comment("hello")


def test_connection_error_raises_network_error(client, requests_mock):
    requests_mock.post(
        f"{GITHUB_API}/repos/mataku/android/issues/42/comments",
        exc=requests.exceptions.ConnectionError,
    )
    with pytest.raises(NetworkError, match="Unable to reach"):
        client.post_comment("hello")
