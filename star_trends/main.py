import argparse
import asyncio
import logging
import sys
from datetime import date
from typing import List, Optional

import aiohttp
from pydantic import ValidationError

from star_trends.application.trending_service import TrendingSearchService
from star_trends.config import load_settings
from star_trends.domain.exceptions import ConfigurationError, SearchFailure
from star_trends.domain.models import SearchQuery, TrendingSearchResult
from star_trends.infrastructure.github_client import GitHubRestClient
from star_trends.languages import get_popular_languages

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = "No repositories found. Try adjusting your search criteria."
DEGRADED_FOOTNOTE = "* growth could not be confirmed (rate limited or fetch error); shown as +0"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="star-trends",
        description="Find GitHub repositories with the most star growth in a recent date range.",
    )
    parser.add_argument("--name", help="Token to match in repository names")
    parser.add_argument("--language", help="Primary language, e.g. Python")
    parser.add_argument("--start", type=date.fromisoformat, help="First day of the window (YYYY-MM-DD)")
    parser.add_argument("--end", type=date.fromisoformat, help="Last day of the window (YYYY-MM-DD)")
    parser.add_argument("--min-stars", type=int, default=0, help="Minimum total stars")
    parser.add_argument("--min-increased", type=int, default=0, help="Minimum stars gained in the window")
    parser.add_argument("--list-languages", action="store_true", help="Print popular languages and exit")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    return parser


def render_table(result: TrendingSearchResult) -> str:
    lines = [f"Date range: {result.window.start} to {result.window.end}"]

    if not result.results:
        lines.append(NO_RESULTS_MESSAGE)
        return "\n".join(lines)

    lines.append(f"Search Results ({len(result.results)} repositories)")
    header = f"{'Repository':<45} {'Language':<12} {'Stars':>10} {'Increase':>10}"
    lines.append(header)
    lines.append("-" * len(header))

    for row in result.results:
        repo = row.repository
        marker = "*" if row.degraded else ""
        lines.append(
            f"{repo.full_name:<45} {repo.language or 'N/A':<12} "
            f"{repo.stars:>10,} {f'+{row.increased_stars:,}{marker}':>10}"
        )

    if any(row.degraded for row in result.results):
        lines.append("")
        lines.append(DEGRADED_FOOTNOTE)
    return "\n".join(lines)


async def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.list_languages:
        print("\n".join(get_popular_languages()))
        return 0

    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    logging.getLogger().setLevel(settings.log_level)

    try:
        query = SearchQuery(
            name_pattern=args.name,
            language=args.language,
            start_date=args.start,
            end_date=args.end,
            min_stars=args.min_stars,
            min_increased_stars=args.min_increased,
        )
    except ValidationError as e:
        logger.error(f"Invalid search: {e}")
        return 1

    github_client = GitHubRestClient(
        api_base=settings.api_base,
        timeout=aiohttp.ClientTimeout(total=settings.request_timeout),
    )
    service = TrendingSearchService(github_client=github_client, settings=settings)

    try:
        result = await service.search(query)
    except SearchFailure as e:
        logger.error(f"Search failed: {e.message}")
        return 1

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        print(render_table(result))
    return 0


def run() -> None:
    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Search interrupted by user. Exiting.")
        sys.exit(130)

if __name__ == "__main__":
    run()
