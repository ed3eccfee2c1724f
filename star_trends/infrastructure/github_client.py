import aiohttp
import asyncio
import logging
from typing import Any, Dict, List, Optional

from star_trends.domain.exceptions import RateLimitExceededException, SearchFailure

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.github.com"
SEARCH_PAGE_SIZE = 30
EVENTS_PAGE_SIZE = 100
# Secondary-limit 403s may carry no headers, only this phrase in the body
RATE_LIMIT_MESSAGE = "rate limit"
REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=30, connect=10)

class GitHubRestClient:
    """
    Client for the two GitHub REST endpoints the trending search needs:
    repository search and per-repository public events.
    Requests are unauthenticated.
    """

    def __init__(self, api_base: str = DEFAULT_API_BASE, timeout: aiohttp.ClientTimeout = REQUEST_TIMEOUT):
        self.headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": "star-trends",
        }
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    @staticmethod
    def is_rate_limited(response: aiohttp.ClientResponse) -> bool:
        """
        True when the response carries GitHub's throttling signals:
        429, or 403 with an exhausted quota (primary limit) or a
        Retry-After header (secondary limit).
        """
        if response.status == 429:
            return True
        if response.status != 403:
            return False
        return (
            response.headers.get("X-RateLimit-Remaining") == "0"
            or response.headers.get("Retry-After") is not None
        )

    @staticmethod
    async def _error_message(response: aiohttp.ClientResponse, default: str) -> str:
        try:
            body = await response.json()
        except (aiohttp.ContentTypeError, ValueError):
            return default
        if isinstance(body, dict) and body.get("message"):
            return body["message"]
        return default

    @staticmethod
    def _rate_limit_error(response: aiohttp.ClientResponse) -> RateLimitExceededException:
        retry_after = response.headers.get("Retry-After")
        return RateLimitExceededException(
            reset_at=response.headers.get("X-RateLimit-Reset"),
            retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
        )

    async def search_repositories(
        self,
        session: aiohttp.ClientSession,
        search_query: str,
        per_page: int = SEARCH_PAGE_SIZE,
    ) -> List[Dict[str, Any]]:
        """
        Runs one repository search sorted by stars, descending.

        Returns:
            The raw `items` of the first result page.

        Raises:
            SearchFailure: on any non-2xx response (carrying GitHub's message), a malformed body or a network error.
        """
        params = {"q": search_query, "sort": "stars", "order": "desc", "per_page": str(per_page)}
        url = f"{self.api_base}/search/repositories"

        try:
            async with session.get(url, params=params, headers=self.headers, timeout=self.timeout) as response:
                if response.status >= 300:
                    message = await self._error_message(response, "Failed to fetch repositories")
                    raise SearchFailure(message, status=response.status)
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SearchFailure(f"Failed to reach GitHub search: {e}") from e
        except ValueError as e:
            raise SearchFailure(f"Malformed response from GitHub search: {e}") from e

        items = (data.get("items") or []) if isinstance(data, dict) else []
        logger.info(f"Search '{search_query}' returned {len(items)} repositories.")
        return items

    async def fetch_events_page(
        self,
        session: aiohttp.ClientSession,
        full_name: str,
        page: int,
        per_page: int = EVENTS_PAGE_SIZE,
    ) -> Optional[List[Dict[str, Any]]]:
        """
        Fetches one page of a repository's public events, newest first.

        Returns:
            The list of raw events, or None if the page could not be fetched.

        Raises:
            RateLimitExceededException: when GitHub throttles the request.
        """
        url = f"{self.api_base}/repos/{full_name}/events"
        params = {"per_page": str(per_page), "page": str(page)}

        try:
            async with session.get(url, params=params, headers=self.headers, timeout=self.timeout) as response:
                if self.is_rate_limited(response):
                    logger.warning(f"Rate limited while fetching events for {full_name} (page {page}).")
                    raise self._rate_limit_error(response)

                if response.status >= 300:
                    message = await self._error_message(response, "no message")
                    if response.status == 403 and RATE_LIMIT_MESSAGE in message.lower():
                        logger.warning(f"Rate limited while fetching events for {full_name} (page {page}): {message}")
                        raise self._rate_limit_error(response)

                    logger.warning(
                        f"Events page {page} for {full_name} failed "
                        f"({response.status}): {message}"
                    )
                    return None

                events = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"Request for events page {page} of {full_name} failed: {e}")
            return None

        if not isinstance(events, list):
            logger.warning(f"Unexpected events payload for {full_name} (page {page}).")
            return None
        return events
