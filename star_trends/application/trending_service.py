import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

import aiohttp

from star_trends.application.aggregator import TrendingAggregator
from star_trends.application.event_counter import EventWindowCounter
from star_trends.application.rate_limit_guard import RateLimitGuard
from star_trends.application.result_cache import ResultCache
from star_trends.config import Settings
from star_trends.domain.models import DateWindow, Repository, SearchQuery, TrendingSearchResult
from star_trends.domain.window import resolve_window
from star_trends.infrastructure.acl import GitHubTranslator
from star_trends.infrastructure.github_client import GitHubRestClient

logger = logging.getLogger(__name__)

DEFAULT_STARS_QUALIFIER = "stars:>=100"
EMPTY_QUERY_FALLBACK = "stars:>=1000"


class TrendingSearchService:
    """
    Entry point for the presentation layer: turns a SearchQuery into ranked,
    star-growth-enriched repositories plus the window actually used.

    The service owns one ResultCache for its lifetime; every call to
    `search` starts a fresh RateLimitGuard.
    """

    def __init__(
            self,
            github_client: GitHubRestClient,
            settings: Optional[Settings] = None,
            cache: Optional[ResultCache] = None,
            clock: Optional[Callable[[], datetime]] = None,
    ):
        self.github_client = github_client
        self.settings = settings or Settings()
        self.cache = cache if cache is not None else ResultCache()
        self.counter = EventWindowCounter(
            github_client,
            page_size=self.settings.events_page_size,
            max_pages=self.settings.events_max_pages,
        )
        self.aggregator = TrendingAggregator(self.counter, self.cache)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @staticmethod
    def build_search_query(query: SearchQuery) -> str:
        tokens = []

        name = (query.name_pattern or "").strip()
        if name:
            tokens.append(f"{name} in:name")

        language = (query.language or "").strip()
        if language:
            tokens.append(f"language:{language}")

        if query.start_date:
            tokens.append(f"created:>={query.start_date.isoformat()}")

        if query.end_date:
            tokens.append(f"pushed:<={query.end_date.isoformat()}")

        if query.min_stars > 0:
            tokens.append(f"stars:>={query.min_stars}")
        else:
            tokens.append(DEFAULT_STARS_QUALIFIER)

        return " ".join(tokens) or EMPTY_QUERY_FALLBACK

    async def search(
        self,
        query: SearchQuery,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> TrendingSearchResult:
        """
        Runs one search batch.

        Raises:
            SearchFailure: if the window is unusable or the Search API call fails.
                Per-repository event failures never raise.
        """
        window = resolve_window(
            query.start_date, query.end_date, self._clock(), self.settings.recency_days
        )
        search_query = self.build_search_query(query)
        logger.info(f"Searching '{search_query}' for star growth between {window.start} and {window.end}.")

        if session is not None:
            return await self._run(session, query, window, search_query)

        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.settings.request_timeout),
        ) as session:
            return await self._run(session, query, window, search_query)

    async def _run(
        self,
        session: aiohttp.ClientSession,
        query: SearchQuery,
        window: DateWindow,
        search_query: str,
    ) -> TrendingSearchResult:
        raw_items = await self.github_client.search_repositories(
            session, search_query, per_page=self.settings.search_page_size
        )
        candidates = self._translate(raw_items)

        results = await self.aggregator.aggregate(
            session,
            candidates,
            window,
            min_increased_stars=query.min_increased_stars,
            guard=RateLimitGuard(),
        )
        return TrendingSearchResult(query=search_query, window=window, results=results)

    @staticmethod
    def _translate(raw_items) -> List[Repository]:
        candidates = []
        for item in raw_items:
            try:
                candidates.append(GitHubTranslator.to_domain(item))
            except ValueError as e:
                logger.warning(f"Skipping malformed search item: {e}")
        return candidates
