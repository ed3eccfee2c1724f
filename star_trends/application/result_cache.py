import asyncio
import logging
from datetime import date, datetime
from typing import Dict, Optional, Tuple, Union

from star_trends.domain.models import GrowthStatus, StarGrowth

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, date, date]


def _as_day(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


class ResultCache:
    """
    Memoizes star growth per (full_name, start day, end day).

    Keys are day-granular: two windows on the same calendar days share an entry
    regardless of time-of-day. Only complete results are stored, so throttled or
    failed counts are always retried by the next batch. There is no eviction;
    an instance lives for one application session.
    """

    def __init__(self):
        self._entries: Dict[CacheKey, StarGrowth] = {}
        self._locks: Dict[CacheKey, asyncio.Lock] = {}

    @staticmethod
    def make_key(
        full_name: str,
        window_start: Union[date, datetime],
        window_end: Union[date, datetime],
    ) -> CacheKey:
        return full_name, _as_day(window_start), _as_day(window_end)

    def get(
        self,
        full_name: str,
        window_start: Union[date, datetime],
        window_end: Union[date, datetime],
    ) -> Optional[StarGrowth]:
        return self._entries.get(self.make_key(full_name, window_start, window_end))

    def put(self, key: CacheKey, value: StarGrowth) -> None:
        if value.status is not GrowthStatus.COMPLETE:
            logger.debug(f"Not caching {value.status.value} growth for {key[0]}.")
            return
        self._entries[self.make_key(*key)] = value

    def lock(self, key: CacheKey) -> asyncio.Lock:
        """
        Per-key lock so concurrent searches sharing this cache run
        cache-then-fetch for one key at a time.
        """
        key = self.make_key(*key)
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    def clear(self) -> None:
        self._entries.clear()
        self._locks.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return self.make_key(*key) in self._entries
