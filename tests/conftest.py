"""Shared fixtures: a scripted git runner and a fake GraphQL endpoint."""

from __future__ import annotations

import json
import re
from collections.abc import Callable

import httpx
import pytest

from release_changelog.errors import GitCommandError

ORIGIN_ARGS = ("remote", "get-url", "origin")
UPSTREAM_ARGS = ("remote", "get-url", "upstream")
DESCRIBE_ARGS = ("describe", "--tags", "--abbrev=0", "--match", "[0-9]*.[0-9]*.[0-9]*")
LOG_ARGS = (
    "log",
    "1.4.0..main",
    "--merges",
    "--grep=Merge pull request",
    "--pretty=format:%s",
)


class FakeGitRunner:
    """GitRunner that answers from a dict of argument tuples.

    Unknown commands fail the way git does, with a GitCommandError.
    """

    def __init__(self, responses: dict[tuple[str, ...], str]) -> None:
        self.responses = dict(responses)
        self.calls: list[tuple[str, ...]] = []

    def run(self, *args: str) -> str:
        self.calls.append(args)
        if args not in self.responses:
            raise GitCommandError(args, 128, "fatal: not scripted")
        return self.responses[args]


@pytest.fixture
def git_runner() -> FakeGitRunner:
    """A repository with an origin remote, a 1.4.0 tag and two merges."""
    return FakeGitRunner(
        {
            ORIGIN_ARGS: "git@github.com:octo/widgets.git\n",
            DESCRIBE_ARGS: "1.4.0\n",
            LOG_ARGS: (
                "Merge pull request #10 from octo/fix-crash\n"
                "Merge pull request #11 from octo/dark-mode\n"
            ),
        }
    )


def pull_request_payload(
    number: int,
    title: str,
    body: str = "",
    name: str | None = "Jane Doe",
    login: str = "jdoe",
) -> dict:
    """A GraphQL response body for one merged pull request."""
    return {
        "data": {
            "repository": {
                "pullRequest": {
                    "title": title,
                    "number": number,
                    "mergedAt": "2026-10-01T12:00:00Z",
                    "body": body,
                    "url": f"https://github.com/octo/widgets/pull/{number}",
                    "additions": 12,
                    "deletions": 3,
                    "author": {
                        "login": login,
                        "url": f"https://github.com/{login}",
                        "name": name,
                    },
                }
            }
        }
    }


def error_payload(message: str = "Could not resolve to a PullRequest") -> dict:
    return {"data": {"repository": {"pullRequest": None}}, "errors": [{"message": message}]}


QUERY_NUMBER_RE = re.compile(r"pullRequest\(number: (\d+)\)")


def graphql_transport(
    responses: dict[int, dict | httpx.Response],
    seen: list[httpx.Request] | None = None,
) -> httpx.MockTransport:
    """MockTransport answering each query from ``responses`` by PR number."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        query = json.loads(request.content)["query"]
        number = int(QUERY_NUMBER_RE.search(query).group(1))
        answer = responses.get(number, error_payload())
        if isinstance(answer, httpx.Response):
            return answer
        return httpx.Response(200, json=answer)

    return httpx.MockTransport(handler)


@pytest.fixture
def make_transport() -> Callable[..., httpx.MockTransport]:
    return graphql_transport


@pytest.fixture
def pr_payload() -> Callable[..., dict]:
    return pull_request_payload


@pytest.fixture
def errors_payload() -> Callable[..., dict]:
    return error_payload


@pytest.fixture
def fake_git() -> type[FakeGitRunner]:
    return FakeGitRunner
