import logging
from typing import Any, Dict, List

import aiohttp

from star_trends.domain.exceptions import RateLimitExceededException
from star_trends.domain.models import DateWindow, GrowthStatus, Repository, StarGrowth
from star_trends.domain.window import window_bounds
from star_trends.infrastructure.acl import GitHubTranslator
from star_trends.infrastructure.github_client import GitHubRestClient

logger = logging.getLogger(__name__)

EVENTS_PAGE_SIZE = 100
# GitHub keeps at most 300 public events per repository
EVENTS_MAX_PAGES = 3


class EventWindowCounter:
    """
    Counts the star events a repository received inside a date window by
    walking its public event history, newest first.
    """

    def __init__(
            self,
            github_client: GitHubRestClient,
            page_size: int = EVENTS_PAGE_SIZE,
            max_pages: int = EVENTS_MAX_PAGES,
    ):
        self.github_client = github_client
        self.page_size = page_size
        self.max_pages = max_pages

    async def count(
        self,
        session: aiohttp.ClientSession,
        repository: Repository,
        window: DateWindow,
    ) -> StarGrowth:
        """
        Pages through events until a short page, a failed page or the page cap.

        A throttled page yields RATE_LIMITED with a count of 0. A failed page
        keeps whatever earlier pages returned; if no page succeeded the result
        is ERRORED.
        """
        raw_events: List[Dict[str, Any]] = []
        pages_fetched = 0

        for page in range(1, self.max_pages + 1):
            try:
                events = await self.github_client.fetch_events_page(
                    session, repository.full_name, page, self.page_size
                )
            except RateLimitExceededException:
                return self._growth(repository, window, 0, GrowthStatus.RATE_LIMITED)

            if events is None:
                break

            pages_fetched += 1
            raw_events.extend(events)

            if len(events) < self.page_size:
                break

        if pages_fetched == 0:
            return self._growth(repository, window, 0, GrowthStatus.ERRORED)

        lower, upper = window_bounds(window)
        star_events = filter(None, (GitHubTranslator.to_star_event(event) for event in raw_events))
        count = sum(1 for event in star_events if lower <= event.created_at <= upper)

        logger.debug(
            f"{repository.full_name}: {count} stars between {window.start} and {window.end} "
            f"({len(raw_events)} events over {pages_fetched} pages)."
        )
        return self._growth(repository, window, count, GrowthStatus.COMPLETE)

    @staticmethod
    def _growth(repository: Repository, window: DateWindow, count: int, status: GrowthStatus) -> StarGrowth:
        return StarGrowth(
            repository_id=repository.id,
            full_name=repository.full_name,
            window_start=window.start,
            window_end=window.end,
            count=count,
            status=status,
        )
