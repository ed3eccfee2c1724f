import logging
from collections import Counter
from typing import List, Optional, Sequence

import aiohttp

from star_trends.application.event_counter import EventWindowCounter
from star_trends.application.rate_limit_guard import RateLimitGuard
from star_trends.application.result_cache import ResultCache
from star_trends.domain.models import DateWindow, EnrichedResult, GrowthStatus, Repository, StarGrowth

logger = logging.getLogger(__name__)


class TrendingAggregator:
    """
    Runs one batch of search candidates through cache, counter and guard,
    then ranks them by stars gained in the window.

    Candidates are processed one at a time in the order given (stars
    descending from the Search API), so the guard sees a rate limit before
    the next fetch is issued. Upstream failures never abort the batch; they
    surface as degraded rows.
    """

    def __init__(self, counter: EventWindowCounter, cache: ResultCache):
        self.counter = counter
        self.cache = cache

    async def aggregate(
        self,
        session: aiohttp.ClientSession,
        candidates: Sequence[Repository],
        window: DateWindow,
        min_increased_stars: int = 0,
        guard: Optional[RateLimitGuard] = None,
    ) -> List[EnrichedResult]:
        guard = guard or RateLimitGuard()
        enriched: List[EnrichedResult] = []

        for repository in candidates:
            growth = await self._growth_for(session, repository, window, guard)
            enriched.append(EnrichedResult(repository=repository, growth=growth))

        # sorted() is stable with reverse=True, so ties keep candidate order
        ranked = sorted(enriched, key=lambda result: result.increased_stars, reverse=True)

        if min_increased_stars > 0:
            ranked = [result for result in ranked if result.increased_stars >= min_increased_stars]

        statuses = Counter(result.growth.status.value for result in enriched)
        logger.info(
            f"Aggregated {len(enriched)} repositories for {window.start}..{window.end}: "
            f"{statuses[GrowthStatus.COMPLETE.value]} complete, "
            f"{statuses[GrowthStatus.RATE_LIMITED.value]} rate limited, "
            f"{statuses[GrowthStatus.ERRORED.value]} errored. {len(ranked)} kept."
        )
        return ranked

    async def _growth_for(
        self,
        session: aiohttp.ClientSession,
        repository: Repository,
        window: DateWindow,
        guard: RateLimitGuard,
    ) -> StarGrowth:
        if guard.should_skip():
            return self._skipped(repository, window, GrowthStatus.RATE_LIMITED)

        key = ResultCache.make_key(repository.full_name, window.start, window.end)

        async with self.cache.lock(key):
            cached = self.cache.get(*key)
            if cached is not None:
                logger.debug(f"Cache hit for {repository.full_name}.")
                return cached

            try:
                growth = await self.counter.count(session, repository, window)
            except Exception as e:
                logger.error(f"Unexpected error counting stars for {repository.full_name}: {e}")
                growth = self._skipped(repository, window, GrowthStatus.ERRORED)

            self.cache.put(key, growth)

        if growth.status is GrowthStatus.RATE_LIMITED:
            guard.trip(repository.full_name)
        return growth

    @staticmethod
    def _skipped(repository: Repository, window: DateWindow, status: GrowthStatus) -> StarGrowth:
        return StarGrowth(
            repository_id=repository.id,
            full_name=repository.full_name,
            window_start=window.start,
            window_end=window.end,
            count=0,
            status=status,
        )
