"""GitHub host: token file, OAuth device flow and the GraphQL PR query."""

import asyncio
import logging
import webbrowser
from pathlib import Path
from typing import Any, Dict, List

import requests

from prism.config import GitHubConfig
from prism.errors import DeviceFlowError, HostCommandError, SlowDown
from prism.host.base import Host
from prism.models import DeviceCode, PRFeed, PullRequest, ReviewStatus

LOG = logging.getLogger("prism.host.github")

DEVICE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"

PULL_REQUESTS_QUERY = """
query($first: Int!) {
  viewer {
    login
    pullRequests(first: $first, states: [OPEN], orderBy: {field: UPDATED_AT, direction: DESC}) {
      nodes {
        number
        title
        url
        isDraft
        repository { nameWithOwner }
        author { login avatarUrl }
        reviewRequests(first: 10) { totalCount }
        reviews(first: 10, states: [APPROVED, CHANGES_REQUESTED]) { nodes { state } }
      }
    }
  }
  search(query: "is:pr is:open review-requested:@me", type: ISSUE, first: $first) {
    nodes {
      ... on PullRequest {
        number
        title
        url
        isDraft
        repository { nameWithOwner }
        author { login avatarUrl }
      }
    }
  }
}
"""


def _pr_from_node(node: Dict[str, Any]) -> PullRequest | None:
    """Build PullRequest from a GraphQL node; None when a required field is missing."""
    if not isinstance(node, dict):
        return None
    repository = node.get("repository") or {}
    # deleted users come back as author: null
    author = node.get("author") or {}
    number = node.get("number")
    title = node.get("title")
    url = node.get("url")
    if number is None or title is None or not url:
        return None
    return PullRequest(
        number=int(number),
        title=title,
        repo=repository.get("nameWithOwner", ""),
        author=author.get("login", ""),
        avatar=author.get("avatarUrl"),
        url=url,
    )


def _review_states(node: Dict[str, Any]) -> set[str]:
    reviews = (node.get("reviews") or {}).get("nodes") or []
    return {r.get("state") for r in reviews if isinstance(r, dict)}


def categorize(data: Dict[str, Any]) -> PRFeed:
    """Split a GraphQL response into the four feed categories.

    Review-requested search results need the user's review. The user's own
    PRs are drafts, approved (any approving review), or waiting for
    reviewers; changes-requested PRs stay in waiting with that status.
    """
    root = data.get("data") or {}
    seen: set[str] = set()
    needs_review: List[PullRequest] = []
    approved: List[PullRequest] = []
    waiting: List[PullRequest] = []
    drafts: List[PullRequest] = []

    for node in ((root.get("search") or {}).get("nodes")) or []:
        pr = _pr_from_node(node)
        if pr is None or pr.key in seen:
            continue
        seen.add(pr.key)
        needs_review.append(pr)

    viewer_prs = ((root.get("viewer") or {}).get("pullRequests") or {}).get("nodes") or []
    for node in viewer_prs:
        pr = _pr_from_node(node)
        if pr is None or pr.key in seen:
            continue
        seen.add(pr.key)
        states = _review_states(node)
        if node.get("isDraft"):
            drafts.append(pr)
        elif "APPROVED" in states:
            approved.append(pr.model_copy(update={"status": ReviewStatus.APPROVED}))
        elif "CHANGES_REQUESTED" in states:
            waiting.append(pr.model_copy(update={"status": ReviewStatus.CHANGES_REQUESTED}))
        else:
            waiting.append(pr)

    return PRFeed(
        needs_review=needs_review,
        approved=approved,
        waiting_for_reviewers=waiting,
        drafts=drafts,
    )


class GitHubHost(Host):
    """Host implementation talking to github.com.

    HTTP calls are blocking (requests) and run in a worker thread so the
    event loop keeps running while they are in flight.
    """

    def __init__(self, config: GitHubConfig, quit_event: asyncio.Event | None = None) -> None:
        self._config = config
        self._token_path = Path(config.token_path).expanduser()
        self._session = requests.Session()
        self._session.headers["Accept"] = "application/json"
        self._session.headers["User-Agent"] = "Prism-App"
        self.quit_event = quit_event or asyncio.Event()

    # -- token storage --

    def _read_token(self) -> str:
        try:
            return self._token_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return ""
        except OSError as e:
            raise HostCommandError(f"Failed to read token: {e}") from e

    def _store_token(self, token: str) -> None:
        try:
            self._token_path.parent.mkdir(parents=True, exist_ok=True)
            self._token_path.write_text(token, encoding="utf-8")
            self._token_path.chmod(0o600)
        except OSError as e:
            raise HostCommandError(f"Failed to store token: {e}") from e
        LOG.info("Stored GitHub token in %s", self._token_path)

    async def get_github_token(self) -> str:
        return self._read_token()

    async def clear_github_token(self) -> None:
        try:
            self._token_path.unlink(missing_ok=True)
        except OSError as e:
            raise HostCommandError(f"Failed to remove token: {e}") from e

    # -- HTTP --

    def _post(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            resp = self._session.post(url, timeout=self._config.timeout, **kwargs)
        except requests.RequestException as e:
            raise HostCommandError(f"Request to {url} failed: {e}") from e
        if resp.status_code >= 400:
            msg = resp.text or resp.reason or str(resp.status_code)
            try:
                body = resp.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                msg = body.get("message", msg)
            raise HostCommandError(f"{resp.status_code}: {msg}")
        try:
            body = resp.json()
        except ValueError as e:
            raise HostCommandError(f"Invalid JSON from {url}: {e}") from e
        if not isinstance(body, dict):
            raise HostCommandError(f"Unexpected response from {url}: expected an object, got {type(body).__name__}")
        return body

    # -- device flow --

    def _request_device_code(self) -> DeviceCode:
        data = self._post(
            self._config.device_code_url,
            data={"client_id": self._config.client_id, "scope": self._config.scope},
        )
        if "error" in data:
            raise DeviceFlowError(f"OAuth error: {data.get('error_description') or data['error']}")
        try:
            code = DeviceCode.model_validate(data)
        except ValueError as e:
            raise HostCommandError(f"Failed to parse device code response: {e}") from e
        LOG.info("Device code issued, enter %s at %s", code.user_code, code.verification_uri)
        return code

    async def request_device_code(self) -> DeviceCode:
        code = await asyncio.to_thread(self._request_device_code)
        if self._config.open_verification_uri and code.verification_uri:
            webbrowser.open(code.verification_uri)
        return code

    def _poll_for_token(self, device_code: str) -> str:
        data = self._post(
            self._config.access_token_url,
            data={
                "client_id": self._config.client_id,
                "device_code": device_code,
                "grant_type": DEVICE_GRANT_TYPE,
            },
        )
        token = data.get("access_token")
        if token:
            self._store_token(token)
            return token
        error = data.get("error")
        if error == "authorization_pending" or not error:
            return ""
        if error == "slow_down":
            raise SlowDown("slow_down")
        raise DeviceFlowError(f"OAuth error: {error}")

    async def poll_for_token(self, device_code: str, interval: int, expires_in: int) -> str:
        LOG.debug("Polling for token (interval=%ss, expires_in=%ss)", interval, expires_in)
        return await asyncio.to_thread(self._poll_for_token, device_code)

    # -- pull requests --

    def _fetch_pull_requests(self, token: str) -> PRFeed:
        data = self._post(
            self._config.graphql_url,
            headers={"Authorization": f"Bearer {token}"},
            json={"query": PULL_REQUESTS_QUERY, "variables": {"first": self._config.page_size}},
        )
        errors = data.get("errors")
        if errors and not data.get("data"):
            message = "; ".join(str(e.get("message", e)) for e in errors if isinstance(e, dict)) or str(errors)
            raise HostCommandError(f"GraphQL error: {message}")
        return categorize(data)

    async def fetch_pull_requests(self) -> PRFeed:
        token = self._read_token()
        if not token:
            raise HostCommandError("Not authenticated")
        return await asyncio.to_thread(self._fetch_pull_requests, token)

    # -- native primitives --

    async def open_url(self, url: str) -> None:
        if not webbrowser.open(url):
            raise HostCommandError(f"No browser could open {url}")

    async def open_github(self) -> None:
        await self.open_url(self._config.pulls_url)

    async def quit_app(self) -> None:
        self.quit_event.set()
