"""Unit tests for tf_report.client.session and tf_report.client.http."""

from __future__ import annotations

import dataclasses
import json

import pytest
import requests
import responses as rsps_lib
from responses import matchers

from tf_report.client.errors import (
    GitHubRequestError,
    GitHubResponseError,
    PublishError,
    TFReportError,
    UnsupportedActionError,
)
from tf_report.client.http import GitHubHTTP, _normalise_base_url
from tf_report.client.session import GitHubSession, Repository

API = "https://api.github.com"
REPO = Repository(owner="acme", name="infra")
COMMENTS_URL = f"{API}/repos/acme/infra/issues/42/comments"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_session() -> GitHubSession:
    return GitHubSession(repository=REPO, token="ghs_test", timeout_s=5.0)


def _comment(comment_id: int, body: str = "hi", login: str = "someone") -> dict[str, object]:
    return {
        "id": comment_id,
        "body": body,
        "user": {"login": login},
        "html_url": f"https://github.com/acme/infra/pull/42#issuecomment-{comment_id}",
    }


# ---------------------------------------------------------------------------
# errors.py: exception hierarchy
# ---------------------------------------------------------------------------

def test_publish_errors_share_base() -> None:
    assert issubclass(GitHubRequestError, PublishError)
    assert issubclass(GitHubResponseError, PublishError)
    assert issubclass(PublishError, TFReportError)


def test_request_error_wraps_cause() -> None:
    cause = ConnectionError("refused")
    err = GitHubRequestError(url="https://host/path", cause=cause)
    assert "https://host/path" in str(err)
    assert err.cause is cause


def test_response_error_stores_status_and_message() -> None:
    err = GitHubResponseError(status_code=403, url="https://host/path", message="Forbidden")
    assert err.status_code == 403
    assert "403" in str(err)
    assert "Forbidden" in str(err)


def test_unsupported_action_error_fields() -> None:
    err = UnsupportedActionError(address="r.x", action="archive")
    assert isinstance(err, TFReportError)
    assert "'archive'" in str(err)


# ---------------------------------------------------------------------------
# http.py: URL normalisation
# ---------------------------------------------------------------------------

def test_normalise_base_url_strips_slash() -> None:
    assert _normalise_base_url("https://api.github.com/") == "https://api.github.com"


def test_normalise_base_url_adds_scheme() -> None:
    assert _normalise_base_url("ghe.example.com/api/v3") == "https://ghe.example.com/api/v3"


# ---------------------------------------------------------------------------
# http.py: GitHubHTTP
# ---------------------------------------------------------------------------

@rsps_lib.activate
def test_http_sends_auth_and_api_headers() -> None:
    rsps_lib.add(rsps_lib.GET, f"{API}/rate_limit", json={}, status=200)
    http = GitHubHTTP("ghs_test")
    http.get("/rate_limit")
    headers = rsps_lib.calls[0].request.headers
    assert headers["Authorization"] == "Bearer ghs_test"
    assert headers["Accept"] == "application/vnd.github+json"
    assert headers["X-GitHub-Api-Version"] == "2022-11-28"
    assert headers["User-Agent"].startswith("terraform-pr-report/")
    http.close()


@rsps_lib.activate
def test_http_non2xx_raises_response_error_with_message() -> None:
    rsps_lib.add(
        rsps_lib.GET,
        f"{API}/rate_limit",
        json={"message": "Bad credentials"},
        status=401,
    )
    with GitHubHTTP("bad") as http, pytest.raises(GitHubResponseError) as exc_info:
        http.get("/rate_limit")
    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Bad credentials"


@rsps_lib.activate
def test_http_non_json_error_body() -> None:
    rsps_lib.add(rsps_lib.GET, f"{API}/rate_limit", body="<html>", status=502)
    with GitHubHTTP("t") as http, pytest.raises(GitHubResponseError) as exc_info:
        http.get("/rate_limit")
    assert exc_info.value.status_code == 502
    assert exc_info.value.message == ""


@rsps_lib.activate
def test_http_connection_error_raises_request_error() -> None:
    rsps_lib.add(
        rsps_lib.GET,
        f"{API}/rate_limit",
        body=requests.exceptions.ConnectionError("refused"),
    )
    with GitHubHTTP("t") as http, pytest.raises(GitHubRequestError):
        http.get("/rate_limit")


@rsps_lib.activate
def test_http_timeout_raises_request_error() -> None:
    rsps_lib.add(
        rsps_lib.POST,
        f"{API}/things",
        body=requests.exceptions.Timeout("slow"),
    )
    with GitHubHTTP("t", timeout_s=0.1) as http, pytest.raises(GitHubRequestError):
        http.post_json("/things", {"a": 1})


@rsps_lib.activate
def test_http_absolute_url_passed_through() -> None:
    rsps_lib.add(rsps_lib.GET, "https://other.example.com/page2", json=[], status=200)
    with GitHubHTTP("t") as http:
        resp = http.get("https://other.example.com/page2")
    assert resp.status_code == 200


# ---------------------------------------------------------------------------
# session.py: Repository
# ---------------------------------------------------------------------------

def test_repository_parse() -> None:
    assert Repository.parse("acme/infra") == REPO
    assert str(REPO) == "acme/infra"


@pytest.mark.parametrize("value", ["", "acme", "acme/", "/infra", "a/b/c"])
def test_repository_parse_invalid(value: str) -> None:
    with pytest.raises(ValueError):
        Repository.parse(value)


def test_repository_frozen() -> None:
    with pytest.raises(dataclasses.FrozenInstanceError):
        REPO.owner = "other"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# session.py: comments
# ---------------------------------------------------------------------------

@rsps_lib.activate
def test_list_comments_single_page() -> None:
    rsps_lib.add(rsps_lib.GET, COMMENTS_URL, json=[_comment(1), _comment(2)], status=200)
    with _make_session() as session:
        comments = session.list_comments(42)
    assert [c.id for c in comments] == [1, 2]
    assert comments[0].author == "someone"
    assert "per_page=100" in rsps_lib.calls[0].request.url


@rsps_lib.activate
def test_list_comments_follows_pagination() -> None:
    page2 = f"{COMMENTS_URL}?per_page=100&page=2"
    rsps_lib.add(
        rsps_lib.GET,
        COMMENTS_URL,
        json=[_comment(3)],
        status=200,
        match=[matchers.query_param_matcher({"per_page": "100", "page": "2"})],
    )
    rsps_lib.add(
        rsps_lib.GET,
        COMMENTS_URL,
        json=[_comment(1), _comment(2)],
        status=200,
        headers={"Link": f'<{page2}>; rel="next", <{page2}>; rel="last"'},
        match=[matchers.query_param_matcher({"per_page": "100"})],
    )
    with _make_session() as session:
        comments = session.list_comments(42)
    assert [c.id for c in comments] == [1, 2, 3]
    assert len(rsps_lib.calls) == 2


@rsps_lib.activate
def test_create_comment_posts_body() -> None:
    rsps_lib.add(rsps_lib.POST, COMMENTS_URL, json=_comment(99, "report"), status=201)
    with _make_session() as session:
        comment = session.create_comment(42, "report")
    assert comment.id == 99
    assert json.loads(rsps_lib.calls[0].request.body) == {"body": "report"}


@rsps_lib.activate
def test_create_comment_failure_raises() -> None:
    rsps_lib.add(rsps_lib.POST, COMMENTS_URL, json={"message": "Not Found"}, status=404)
    with _make_session() as session, pytest.raises(PublishError):
        session.create_comment(42, "report")


@rsps_lib.activate
def test_delete_comment_success() -> None:
    rsps_lib.add(rsps_lib.DELETE, f"{API}/repos/acme/infra/issues/comments/7", status=204)
    with _make_session() as session:
        assert session.delete_comment(7) is True


@rsps_lib.activate
def test_delete_comment_failure_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    rsps_lib.add(
        rsps_lib.DELETE,
        f"{API}/repos/acme/infra/issues/comments/7",
        json={"message": "Resource not accessible by integration"},
        status=403,
    )
    with _make_session() as session:
        assert session.delete_comment(7) is False
    assert "Could not delete comment 7" in caplog.text


def test_custom_api_url() -> None:
    session = GitHubSession(repository=REPO, token="t", api_url="https://ghe.example.com/api/v3/")
    assert session._http.base_url == "https://ghe.example.com/api/v3"
    session.close()
