import json
import unittest
from unittest.mock import AsyncMock, MagicMock

import aiohttp

from star_trends.domain.exceptions import RateLimitExceededException, SearchFailure
from star_trends.infrastructure.github_client import GitHubRestClient


def _response(status: int, body=None, headers=None):
    resp = AsyncMock()
    resp.status = status
    resp.headers = headers or {}
    resp.json = AsyncMock(return_value=body)
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=False)
    return resp


def _session(*responses):
    session = AsyncMock()
    session.get = MagicMock(side_effect=list(responses))
    return session


class TestGitHubRestClient(unittest.TestCase):
    def test_headers_are_unauthenticated(self) -> None:
        client = GitHubRestClient()

        self.assertIsInstance(client.headers, dict)
        self.assertNotIn("Authorization", client.headers)
        self.assertEqual(client.headers["Accept"], "application/vnd.github.v3+json")
        self.assertIn("User-Agent", client.headers)

    def test_api_base_trailing_slash_is_stripped(self) -> None:
        client = GitHubRestClient(api_base="https://ghe.example.com/api/v3/")
        self.assertEqual(client.api_base, "https://ghe.example.com/api/v3")

    def test_is_rate_limited_signals(self) -> None:
        self.assertTrue(GitHubRestClient.is_rate_limited(_response(429)))
        self.assertTrue(GitHubRestClient.is_rate_limited(_response(403, headers={"X-RateLimit-Remaining": "0"})))
        self.assertTrue(GitHubRestClient.is_rate_limited(_response(403, headers={"Retry-After": "60"})))

    def test_plain_forbidden_is_not_rate_limited(self) -> None:
        self.assertFalse(GitHubRestClient.is_rate_limited(_response(403, headers={"X-RateLimit-Remaining": "12"})))
        self.assertFalse(GitHubRestClient.is_rate_limited(_response(404)))
        self.assertFalse(GitHubRestClient.is_rate_limited(_response(200)))


class TestFetchEventsPage(unittest.IsolatedAsyncioTestCase):
    async def test_returns_events_and_sends_paging_params(self) -> None:
        client = GitHubRestClient()
        events = [{"id": "1", "type": "WatchEvent"}]
        session = _session(_response(200, events))

        result = await client.fetch_events_page(session, "octocat/example", page=2)

        self.assertEqual(result, events)
        args, kwargs = session.get.call_args
        self.assertEqual(args[0], "https://api.github.com/repos/octocat/example/events")
        self.assertEqual(kwargs["params"], {"per_page": "100", "page": "2"})

    async def test_rate_limit_raises(self) -> None:
        client = GitHubRestClient()
        session = _session(_response(
            403,
            {"message": "API rate limit exceeded"},
            headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1700000000"},
        ))

        with self.assertRaises(RateLimitExceededException) as ctx:
            await client.fetch_events_page(session, "octocat/example", page=1)

        self.assertEqual(ctx.exception.reset_at, "1700000000")

    async def test_secondary_rate_limit_carries_retry_after(self) -> None:
        client = GitHubRestClient()
        session = _session(_response(403, {}, headers={"Retry-After": "30"}))

        with self.assertRaises(RateLimitExceededException) as ctx:
            await client.fetch_events_page(session, "octocat/example", page=1)

        self.assertEqual(ctx.exception.retry_after, 30)

    async def test_forbidden_with_rate_limit_message_only_raises(self) -> None:
        client = GitHubRestClient()
        session = _session(_response(
            403,
            {"message": "You have exceeded a secondary rate limit. Please wait a few minutes before you try again."},
        ))

        with self.assertRaises(RateLimitExceededException):
            await client.fetch_events_page(session, "octocat/example", page=1)

    async def test_forbidden_without_rate_limit_message_returns_none(self) -> None:
        client = GitHubRestClient()
        session = _session(_response(403, {"message": "Repository access blocked"}))

        self.assertIsNone(await client.fetch_events_page(session, "octocat/example", page=1))

    async def test_other_errors_return_none(self) -> None:
        client = GitHubRestClient()
        session = _session(_response(404, {"message": "Not Found"}), _response(502, None))

        self.assertIsNone(await client.fetch_events_page(session, "gone/repo", page=1))
        self.assertIsNone(await client.fetch_events_page(session, "gone/repo", page=1))

    async def test_network_error_returns_none(self) -> None:
        client = GitHubRestClient()
        session = AsyncMock()
        session.get = MagicMock(side_effect=aiohttp.ClientConnectionError("boom"))

        self.assertIsNone(await client.fetch_events_page(session, "octocat/example", page=1))


class TestSearchRepositories(unittest.IsolatedAsyncioTestCase):
    async def test_returns_items_sorted_by_stars(self) -> None:
        client = GitHubRestClient()
        items = [{"id": 1, "full_name": "a/b"}]
        session = _session(_response(200, {"total_count": 1, "items": items}))

        result = await client.search_repositories(session, "stars:>=100")

        self.assertEqual(result, items)
        _, kwargs = session.get.call_args
        self.assertEqual(
            kwargs["params"],
            {"q": "stars:>=100", "sort": "stars", "order": "desc", "per_page": "30"},
        )

    async def test_non_success_raises_search_failure_with_upstream_message(self) -> None:
        client = GitHubRestClient()
        session = _session(_response(422, {"message": "Validation Failed"}))

        with self.assertRaises(SearchFailure) as ctx:
            await client.search_repositories(session, "language:")

        self.assertEqual(ctx.exception.message, "Validation Failed")
        self.assertEqual(ctx.exception.status, 422)

    async def test_malformed_json_raises_search_failure(self) -> None:
        client = GitHubRestClient()
        resp = _response(200)
        resp.json = AsyncMock(side_effect=json.JSONDecodeError("Expecting value", "<html>", 0))
        session = _session(resp)

        with self.assertRaises(SearchFailure):
            await client.search_repositories(session, "stars:>=100")

    async def test_null_items_returns_empty_list(self) -> None:
        client = GitHubRestClient()
        session = _session(_response(200, {"total_count": 0, "items": None}))

        self.assertEqual(await client.search_repositories(session, "stars:>=100"), [])

    async def test_network_error_raises_search_failure(self) -> None:
        client = GitHubRestClient()
        session = AsyncMock()
        session.get = MagicMock(side_effect=aiohttp.ClientConnectionError("offline"))

        with self.assertRaises(SearchFailure):
            await client.search_repositories(session, "stars:>=100")
