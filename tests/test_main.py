import unittest
from datetime import date
from unittest.mock import AsyncMock, patch

from star_trends.domain.exceptions import SearchFailure
from star_trends.domain.models import (
    DateWindow,
    EnrichedResult,
    GrowthStatus,
    Repository,
    StarGrowth,
    TrendingSearchResult,
)
from star_trends.main import NO_RESULTS_MESSAGE, build_parser, main, render_table

WINDOW = DateWindow(start=date(2024, 6, 1), end=date(2024, 6, 7))


def _row(name: str, count: int, status: GrowthStatus) -> EnrichedResult:
    return EnrichedResult(
        repository=Repository(id=1, full_name=name, html_url=f"https://github.com/{name}", stars=1500),
        growth=StarGrowth(
            repository_id=1,
            full_name=name,
            window_start=WINDOW.start,
            window_end=WINDOW.end,
            count=count,
            status=status,
        ),
    )


class TestRenderTable(unittest.TestCase):
    def test_empty_result_message(self) -> None:
        text = render_table(TrendingSearchResult(query="stars:>=100", window=WINDOW, results=[]))

        self.assertIn("2024-06-01 to 2024-06-07", text)
        self.assertIn(NO_RESULTS_MESSAGE, text)

    def test_degraded_rows_are_marked(self) -> None:
        result = TrendingSearchResult(
            query="stars:>=100",
            window=WINDOW,
            results=[_row("o/a", 12, GrowthStatus.COMPLETE), _row("o/b", 0, GrowthStatus.RATE_LIMITED)],
        )

        lines = render_table(result).splitlines()

        self.assertTrue(any("o/a" in line and "+12" in line and "*" not in line for line in lines))
        self.assertTrue(any("o/b" in line and "+0*" in line for line in lines))
        self.assertIn("1,500", render_table(result))


class TestParser(unittest.TestCase):
    def test_dates_are_parsed(self) -> None:
        args = build_parser().parse_args(["--start", "2024-06-01", "--min-increased", "5"])

        self.assertEqual(args.start, date(2024, 6, 1))
        self.assertEqual(args.min_increased, 5)


class TestMain(unittest.IsolatedAsyncioTestCase):
    async def test_list_languages(self) -> None:
        with patch("builtins.print") as mock_print:
            code = await main(["--list-languages"])

        self.assertEqual(code, 0)
        self.assertIn("Python", mock_print.call_args[0][0])

    async def test_search_failure_exits_non_zero(self) -> None:
        with patch("star_trends.config.load_dotenv"), patch(
            "star_trends.main.TrendingSearchService.search",
            new_callable=AsyncMock,
            side_effect=SearchFailure("Bad credentials", status=401),
        ):
            code = await main([])

        self.assertEqual(code, 1)

    async def test_start_after_end_exits_non_zero(self) -> None:
        with patch("star_trends.config.load_dotenv"):
            code = await main(["--start", "2024-06-10", "--end", "2024-06-01"])

        self.assertEqual(code, 1)
