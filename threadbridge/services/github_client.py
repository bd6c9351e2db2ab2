"""GitHub REST and GraphQL client wrappers"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from threadbridge.errors import TrackerAPIError

logger = logging.getLogger(__name__)

GITHUB_ACCEPT = "application/vnd.github+json"
GITHUB_API_VERSION = "2022-11-28"

DELETE_ISSUE_MUTATION = """
mutation($issueId: ID!) {
  deleteIssue(input: {issueId: $issueId}) {
    clientMutationId
  }
}
"""


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.text or response.reason_phrase


def response_json(response: httpx.Response, *required: str) -> Any:
    """Decoded body of a successful call; TrackerAPIError if it is not the expected shape."""
    try:
        data = response.json()
    except ValueError as e:
        raise TrackerAPIError(f"Malformed GitHub response: {e}", status_code=response.status_code) from e
    if required and not isinstance(data, dict):
        raise TrackerAPIError("Malformed GitHub response: expected an object", status_code=response.status_code)
    missing = [key for key in required if data.get(key) in (None, "")]
    if missing:
        raise TrackerAPIError(
            f"Malformed GitHub response: missing {', '.join(missing)}",
            status_code=response.status_code,
        )
    return data


def raise_for_github_error(response: httpx.Response) -> None:
    """Raise TrackerAPIError for any non-2xx GitHub response."""
    if response.is_success:
        return
    raise TrackerAPIError(_error_message(response), status_code=response.status_code)


def auth_headers(token: str) -> Dict[str, str]:
    return {
        "Authorization": f"token {token}",
        "Accept": GITHUB_ACCEPT,
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
    }


class GitHubClient:
    """Wrapper for the GitHub REST operations ThreadBridge needs.

    The underlying ``httpx.AsyncClient`` is shared between clients; only the
    token differs, so a refreshed client is cheap to build.
    """

    def __init__(self, http: httpx.AsyncClient, token: str, owner: str, repo: str):
        self.http = http
        self.token = token
        self.owner = owner
        self.repo = repo

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self.http.request(
                method, url, headers=auth_headers(self.token), **kwargs
            )
        except httpx.HTTPError as e:
            raise TrackerAPIError(f"{method} {url} failed: {e}") from e
        raise_for_github_error(response)
        return response

    async def _paginate(self, path: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Follow ``Link: rel="next"`` headers until exhausted."""
        items: List[Dict[str, Any]] = []
        url: Optional[str] = path
        query: Optional[Dict[str, Any]] = {**params, "per_page": 100}
        while url:
            response = await self._request("GET", url, params=query)
            page = response_json(response)
            if not isinstance(page, list):
                raise TrackerAPIError(
                    f"Malformed GitHub response: expected a list from {path}",
                    status_code=response.status_code,
                )
            items.extend(page)
            url = response.links.get("next", {}).get("url")
            # The next link already carries the query string.
            query = None
        return items

    async def probe(self) -> None:
        """Cheap authenticated call; raises TrackerAPIError if the token is rejected."""
        await self._request("GET", "/installation/repositories", params={"per_page": 1})

    async def create_issue(self, title: str, body: str, labels: List[str]) -> Dict[str, Any]:
        """Create a new issue"""
        response = await self._request(
            "POST",
            f"{self.repo_path}/issues",
            json={"title": title, "body": body, "labels": labels},
        )
        issue = response_json(response, "number")
        logger.info(f"Created issue #{issue.get('number')} in {self.owner}/{self.repo}")
        return issue

    async def update_issue(self, issue_number: int, **fields: Any) -> Dict[str, Any]:
        """Update an existing issue (e.g. ``state="closed"``)"""
        response = await self._request(
            "PATCH", f"{self.repo_path}/issues/{int(issue_number)}", json=fields
        )
        logger.info(f"Updated issue #{issue_number} in {self.owner}/{self.repo}")
        return response_json(response)

    async def lock_issue(self, issue_number: int) -> None:
        await self._request("PUT", f"{self.repo_path}/issues/{int(issue_number)}/lock")

    async def unlock_issue(self, issue_number: int) -> None:
        await self._request("DELETE", f"{self.repo_path}/issues/{int(issue_number)}/lock")

    async def create_comment(self, issue_number: int, body: str) -> Dict[str, Any]:
        """Create a comment on an issue"""
        response = await self._request(
            "POST",
            f"{self.repo_path}/issues/{int(issue_number)}/comments",
            json={"body": body},
        )
        logger.info(f"Created comment on issue #{issue_number}")
        return response_json(response, "id")

    async def delete_comment(self, comment_id: int) -> None:
        await self._request("DELETE", f"{self.repo_path}/issues/comments/{int(comment_id)}")

    async def list_issues(self) -> List[Dict[str, Any]]:
        """All issues (open and closed) of the repository, pull requests excluded."""
        # GitHub defaults to state=open; closed issues map to archived threads.
        items = await self._paginate(f"{self.repo_path}/issues", {"state": "all"})
        return [item for item in items if "pull_request" not in item]

    async def list_comments(self) -> List[Dict[str, Any]]:
        """All issue comments of the repository."""
        return await self._paginate(f"{self.repo_path}/issues/comments", {})


class GitHubGraphQLClient:
    """Minimal GraphQL client bound to one token."""

    def __init__(self, http: httpx.AsyncClient, token: str, url: str):
        self.http = http
        self.token = token
        self.url = url

    async def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = await self.http.post(
                self.url,
                headers={"Authorization": f"bearer {self.token}"},
                json={"query": query, "variables": variables or {}},
            )
        except httpx.HTTPError as e:
            raise TrackerAPIError(f"GraphQL request failed: {e}") from e
        raise_for_github_error(response)

        data = response_json(response)
        if not isinstance(data, dict):
            raise TrackerAPIError("Malformed GraphQL response", status_code=response.status_code)
        errors = data.get("errors") or []
        if errors:
            messages = "; ".join(str(e.get("message", e)) for e in errors)
            raise TrackerAPIError(f"GraphQL errors: {messages}", status_code=response.status_code)
        return data.get("data") or {}

    async def delete_issue(self, node_id: str) -> None:
        await self.execute(DELETE_ISSUE_MUTATION, {"issueId": node_id})
        logger.info(f"Deleted issue {node_id}")


@dataclass(frozen=True)
class TrackerClients:
    """REST and GraphQL handles bound to the same credential."""

    rest: GitHubClient
    graphql: GitHubGraphQLClient
