"""Thin GitHub REST client for issues, pull requests, labels and comments."""

from __future__ import annotations

import logging
import time
from typing import Any, List, Optional
from urllib.parse import quote

import httpx

from .exceptions import MissingInputError, UpstreamError
from .models import Issue, PullRequest
from .storage import slugify

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
BRANCH_SLUG_LENGTH = 30


def branch_name(issue_number: int, title: str, timestamp_ms: Optional[int] = None) -> str:
    """Return `article/issue-<n>-<slug>-<epoch ms>` for a new article branch."""
    stamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    return f"article/issue-{issue_number}-{slugify(title, BRANCH_SLUG_LENGTH)}-{stamp}"


def split_repository(repository: Optional[str]) -> tuple[str, str]:
    owner, _, repo = (repository or "").partition("/")
    if not owner or not repo:
        raise MissingInputError("GITHUB_REPOSITORY must be set as 'owner/repo'.")
    return owner, repo


def _payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class GitHubClient:
    """Issue/PR operations against one repository.

    Reads and PR creation raise UpstreamError on non-2xx responses; label and
    comment updates are best effort and only log a warning.
    """

    def __init__(
        self,
        token: str,
        repository: str,
        base_url: str = DEFAULT_API_URL,
        http_client: httpx.Client | None = None,
    ):
        if not token:
            raise MissingInputError("GITHUB_TOKEN is required.")
        self.owner, self.repo = split_repository(repository)
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github.v3+json",
        }
        self._client = http_client or httpx.Client(base_url=base_url, timeout=30.0)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self) -> None:
        self._client.close()

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        return self._client.request(
            method, f"{self._repo_path}{path}", headers=self._headers, **kwargs
        )

    def _checked(self, method: str, path: str, *, action: str, **kwargs) -> Any:
        response = self._send(method, path, **kwargs)
        if not response.is_success:
            payload = _payload(response)
            raise UpstreamError(
                f"Failed to {action}: {response.status_code} {payload}",
                status_code=response.status_code,
                payload=payload,
            )
        return _payload(response)

    def _best_effort(self, method: str, path: str, *, action: str, **kwargs) -> bool:
        response = self._send(method, path, **kwargs)
        if not response.is_success:
            logger.warning("Failed to %s: %s", action, response.status_code)
            return False
        return True

    def get_issue(self, number: int) -> Issue:
        data = self._checked("GET", f"/issues/{number}", action="fetch issue")
        return Issue.model_validate(data)

    def get_pull_request(self, number: int) -> PullRequest:
        data = self._checked("GET", f"/pulls/{number}", action="fetch PR")
        return PullRequest(
            number=data["number"],
            head_ref=data["head"]["ref"],
            html_url=data.get("html_url", ""),
        )

    def create_pull_request(
        self, title: str, body: str, head: str, base: str, draft: bool = True
    ) -> PullRequest:
        data = self._checked(
            "POST",
            "/pulls",
            action="create PR",
            json={"title": title, "body": body, "head": head, "base": base, "draft": draft},
        )
        return PullRequest(
            number=data["number"], head_ref=head, html_url=data.get("html_url", "")
        )

    def add_labels(self, number: int, labels: List[str]) -> bool:
        return self._best_effort(
            "POST", f"/issues/{number}/labels", action="add labels", json={"labels": labels}
        )

    def remove_label(self, number: int, label: str) -> bool:
        return self._best_effort(
            "DELETE",
            f"/issues/{number}/labels/{quote(label, safe='')}",
            action="remove label",
        )

    def add_comment(self, number: int, body: str) -> bool:
        """Comment on an issue or PR (PRs share the issue comment endpoint)."""
        return self._best_effort(
            "POST", f"/issues/{number}/comments", action="add comment", json={"body": body}
        )
