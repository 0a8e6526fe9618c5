import json

import httpx
import pytest

from note_writer.exceptions import MissingInputError, UpstreamError
from note_writer.github import GitHubClient, branch_name, split_repository


def make_client(handler) -> GitHubClient:
    http_client = httpx.Client(
        base_url="https://api.github.com", transport=httpx.MockTransport(handler)
    )
    return GitHubClient("secret", "octo/articles", http_client=http_client)


def test_get_issue_normalizes_payload():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "number": 5,
                "title": "記事作成: 朝活",
                "body": None,
                "labels": [{"name": "article"}],
            },
        )

    issue = make_client(handler).get_issue(5)

    assert issue.number == 5
    assert issue.body == ""
    assert issue.labels == ["article"]
    assert seen[0].url.path == "/repos/octo/articles/issues/5"
    assert seen[0].headers["Authorization"] == "Bearer secret"


def test_get_pull_request_reads_head_ref():
    def handler(request):
        return httpx.Response(
            200,
            json={"number": 8, "head": {"ref": "article/issue-5"}, "html_url": "https://gh/pr/8"},
        )

    pr = make_client(handler).get_pull_request(8)

    assert pr.head_ref == "article/issue-5"
    assert pr.html_url == "https://gh/pr/8"


def test_failed_fetch_raises_with_payload():
    def handler(request):
        return httpx.Response(404, json={"message": "Not Found"})

    with pytest.raises(UpstreamError) as excinfo:
        make_client(handler).get_issue(99)

    assert excinfo.value.status_code == 404
    assert excinfo.value.payload == {"message": "Not Found"}


def test_create_pull_request_posts_draft():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"number": 3, "html_url": "https://gh/pr/3"})

    pr = make_client(handler).create_pull_request("t", "b", head="feature", base="main")

    assert pr.number == 3
    assert bodies[0] == {"title": "t", "body": "b", "head": "feature", "base": "main", "draft": True}


def test_label_and_comment_failures_are_best_effort():
    paths = []

    def handler(request):
        paths.append((request.method, request.url.raw_path.decode()))
        return httpx.Response(404, json={"message": "Label does not exist"})

    client = make_client(handler)

    assert client.remove_label(5, "📝 draft") is False
    assert client.add_comment(5, "hi") is False
    assert paths[0][0] == "DELETE"
    assert paths[0][1].startswith("/repos/octo/articles/issues/5/labels/%F0%9F%93%9D%20draft")


def test_missing_credentials_raise():
    with pytest.raises(MissingInputError):
        GitHubClient("", "octo/articles")
    with pytest.raises(MissingInputError):
        split_repository("no-slash")


def test_branch_name_format():
    assert branch_name(12, "Hello World", timestamp_ms=1700000000000) == (
        "article/issue-12-hello-world-1700000000000"
    )
