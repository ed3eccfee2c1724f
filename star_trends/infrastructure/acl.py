import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from star_trends.domain.models import Repository, StarEvent

logger = logging.getLogger(__name__)

STAR_EVENT_TYPE = "WatchEvent"

class GitHubTranslator:
    """
    Anti-corruption layer that translates raw GitHub REST JSON payloads into domain models.
    """

    @staticmethod
    def to_domain(raw_item: Dict[str, Any]) -> Repository:
        """
        Transforms a raw Search API item into a Repository.
        
        Args:
            raw_item (Dict[str, Any]): One element of the search response's `items`.
        
        Returns:
            Repository: The domain model instance representing the repository.
        """
        full_name = raw_item.get('full_name')
        if not full_name:
            raise ValueError("full_name is required to build Repository.")
        repo_id = raw_item.get('id')
        if repo_id is None:
            raise ValueError(f"id is required to build Repository {full_name}.")

        return Repository(
            id=repo_id,
            full_name=full_name,
            html_url=raw_item.get('html_url') or f"https://github.com/{full_name}",
            description=raw_item.get('description'),
            language=raw_item.get('language'),
            stars=raw_item.get('stargazers_count', 0),
        )

    @staticmethod
    def to_star_event(raw_event: Dict[str, Any]) -> Optional[StarEvent]:
        """
        Returns a StarEvent for WatchEvents, None for any other event kind.
        Events without a parseable created_at are skipped.
        """
        if raw_event.get('type') != STAR_EVENT_TYPE:
            return None

        raw_date = raw_event.get('created_at')
        try:
            created_at = datetime.fromisoformat(raw_date.replace("Z", "+00:00"))
        except (AttributeError, ValueError):
            logger.warning(f"Skipping star event {raw_event.get('id')} with bad created_at: {raw_date!r}")
            return None

        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        return StarEvent(id=str(raw_event.get('id', '')), created_at=created_at)
