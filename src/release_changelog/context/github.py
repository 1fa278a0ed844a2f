"""GitHub GraphQL client for fetching merged pull request metadata.

One POST per pull request number, all issued concurrently and awaited
together. A request that fails for any reason (HTTP status, transport
error, GraphQL ``errors`` payload, missing pull request) becomes a failed
FetchResult; it never aborts the batch.

Design notes:
- Uses httpx for async HTTP requests
- No retries and, by default, no timeout and no concurrency ceiling
- ``transport`` can be swapped for ``httpx.MockTransport`` in tests

GraphQL API docs: https://docs.github.com/en/graphql
"""

from __future__ import annotations

import asyncio
import json
import os
from collections.abc import Sequence
from typing import Any, Protocol

import httpx

from release_changelog.config import ChangelogConfig
from release_changelog.logging_config import get_logger
from release_changelog.schemas import Author, ChangeRecord, FetchResult

logger = get_logger(__name__)

PULL_REQUEST_QUERY = """
query {
  repository(owner: %(owner)s, name: %(name)s) {
    pullRequest(number: %(number)d) {
      title
      number
      mergedAt
      body
      url
      additions
      deletions
      author {
        login
        url
        ... on User {
          name
        }
      }
    }
  }
}
"""


class GraphQLError(Exception):
    """The API answered, but not with a usable pull request."""


def build_query(owner: str, name: str, number: int) -> str:
    """Render the pull request query for one number."""
    return PULL_REQUEST_QUERY % {
        "owner": json.dumps(owner),
        "name": json.dumps(name),
        "number": number,
    }


def parse_pull_request(payload: Any) -> ChangeRecord:
    """Turn a GraphQL response body into a ChangeRecord.

    Raises:
        GraphQLError: If the payload has ``errors`` or no pull request
        pydantic.ValidationError: If the pull request fields are malformed
    """
    if not isinstance(payload, dict):
        raise GraphQLError(f"unexpected response body: {payload!r}")

    if payload.get("errors"):
        messages = "; ".join(
            str(error.get("message", error)) if isinstance(error, dict) else str(error)
            for error in payload["errors"]
        )
        raise GraphQLError(messages)

    pull = ((payload.get("data") or {}).get("repository") or {}).get("pullRequest")
    if not isinstance(pull, dict) or not pull:
        raise GraphQLError("response contains no pullRequest")

    author = pull.get("author") or {}
    return ChangeRecord(
        number=pull["number"],
        title=pull["title"],
        url=pull["url"],
        merged_at=pull.get("mergedAt"),
        body=pull.get("body") or "",
        additions=pull.get("additions") or 0,
        deletions=pull.get("deletions") or 0,
        author=Author(
            name=author.get("name") or author.get("login") or "ghost",
            url=author.get("url") or "",
        ),
    )


# ---------------------------------------------------------------------------
# Protocol (Interface)
# ---------------------------------------------------------------------------


class PullRequestFetcher(Protocol):
    """Interface the generator uses to resolve pull request numbers."""

    async def fetch_all(
        self, owner: str, name: str, references: Sequence[int]
    ) -> list[FetchResult]:
        """Fetch every reference; result ``i`` belongs to ``references[i]``."""
        ...


# ---------------------------------------------------------------------------
# Concrete Implementation
# ---------------------------------------------------------------------------


class GitHubClient:
    """GraphQL client for pull request metadata.

    Usage:
        client = GitHubClient(token="ghp_...")
        results = await client.fetch_all("octo", "widgets", [10, 11])
    """

    def __init__(
        self,
        token: str | None = None,
        config: ChangelogConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: GitHub token. Falls back to the environment variable
                   named by ``config.token_env_var``.
            config: Endpoint, fan-out and timeout settings.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self.config = config or ChangelogConfig()
        self._token = token or os.environ.get(self.config.token_env_var, "")
        self._transport = transport
        self._headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._token:
            self._headers["Authorization"] = f"bearer {self._token}"

    async def fetch_all(
        self, owner: str, name: str, references: Sequence[int]
    ) -> list[FetchResult]:
        """Fetch all pull requests concurrently.

        Every request is awaited before this returns, whatever its outcome.
        """
        semaphore = (
            asyncio.Semaphore(self.config.max_concurrency)
            if self.config.max_concurrency
            else None
        )

        async with httpx.AsyncClient(
            headers=self._headers,
            timeout=httpx.Timeout(self.config.request_timeout),
            transport=self._transport,
        ) as client:
            tasks = [
                self._fetch_guarded(client, semaphore, owner, name, number)
                for number in references
            ]
            results = await asyncio.gather(*tasks)

        failed = sum(1 for result in results if not result.ok)
        logger.info(
            "pull_requests_fetched",
            repo=f"{owner}/{name}",
            requested=len(references),
            failed=failed,
        )
        return list(results)

    async def _fetch_guarded(
        self,
        client: httpx.AsyncClient,
        semaphore: asyncio.Semaphore | None,
        owner: str,
        name: str,
        number: int,
    ) -> FetchResult:
        if semaphore is None:
            return await self.fetch_one(client, owner, name, number)
        async with semaphore:
            return await self.fetch_one(client, owner, name, number)

    async def fetch_one(
        self, client: httpx.AsyncClient, owner: str, name: str, number: int
    ) -> FetchResult:
        """Fetch a single pull request, folding any failure into the result."""
        try:
            resp = await client.post(
                self.config.graphql_endpoint,
                json={"query": build_query(owner, name, number)},
            )
            resp.raise_for_status()
            record = parse_pull_request(resp.json())
        except (
            httpx.HTTPError,
            httpx.InvalidURL,
            GraphQLError,
            ValueError,
            KeyError,
        ) as exc:
            logger.warning(
                "fetch_failed",
                repo=f"{owner}/{name}",
                pr_number=number,
                error=str(exc),
            )
            return FetchResult(reference=number, error=str(exc) or type(exc).__name__)

        return FetchResult(reference=number, record=record)
