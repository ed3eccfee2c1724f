import logging
from typing import Optional

logger = logging.getLogger(__name__)


class RateLimitGuard:
    """
    One-way switch scoped to a single aggregation batch.

    Once tripped it stays tripped; a new batch gets a new guard.
    """

    def __init__(self):
        self._tripped = False
        self.tripped_by: Optional[str] = None

    @property
    def tripped(self) -> bool:
        return self._tripped

    def trip(self, source: Optional[str] = None) -> None:
        if self._tripped:
            return
        self._tripped = True
        self.tripped_by = source
        logger.warning(
            f"Rate limit hit{f' on {source}' if source else ''}. "
            "Skipping event fetches for the rest of this batch."
        )

    def should_skip(self) -> bool:
        return self._tripped
