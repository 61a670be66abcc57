"""Terminal report: per-backend tables, per-operation rankings and overall scores."""

from __future__ import annotations

from typing import List

from dbcompare.core.comparison import build_comparison
from dbcompare.models.result import BenchmarkResult, BenchmarkSuite
from dbcompare.reporters.base import Reporter

WIDTH = 100
RULE = "─" * 97
RANK_MEDALS = ("🥇", "🥈", "🥉")
OVERALL_MEDALS = ("🏆", "🥈", "🥉")


def format_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    if seconds < 60:
        return f"{seconds:.2f}s"
    minutes, rest = divmod(seconds, 60)
    return f"{int(minutes)}m{rest:.1f}s"


class ConsoleReporter(Reporter):
    @property
    def name(self) -> str:
        return "Console"

    def generate(self, suite: BenchmarkSuite) -> None:
        print("\n" + "=" * WIDTH)
        print("BENCHMARK RESULTS SUMMARY")
        print("=" * WIDTH)
        print(f"\nTotal Duration: {format_duration(suite.duration_seconds or 0.0)}")
        print(f"Start Time: {suite.start_time:%Y-%m-%d %H:%M:%S}")
        if suite.end_time is not None:
            print(f"End Time: {suite.end_time:%Y-%m-%d %H:%M:%S}")
        print()

        for database in suite.databases():
            self._print_database_results(database, suite.results_for(database))

        for backend in suite.backends:
            if backend.status != "completed":
                detail = f": {backend.error}" if backend.error else ""
                print(f"⚠ {backend.name} {backend.status}{detail}")

        comparison = build_comparison(suite)
        self._print_comparison(comparison.rankings)
        self._print_overall(comparison.scores)
        print("=" * WIDTH)

    def _print_database_results(
        self, database: str, results: List[BenchmarkResult]
    ) -> None:
        print(f"\n┌─ {database} {'─' * max(0, 90 - len(database))}")
        print("│")
        print(
            f"│ {'Operation':<30} {'Duration':>12} {'Throughput':>15} "
            f"{'Records':>12} {'Errors':>10}"
        )
        print(f"│ {'─' * 95}")
        for result in results:
            indicator = "⚠" if result.error_count else "✓"
            print(
                f"│ {result.operation:<30} {format_duration(result.duration_seconds):>12} "
                f"{result.throughput or 0.0:>12.0f}/s {result.records_count:>12} "
                f"{indicator} {result.error_percent:.2f}%"
            )
        print(f"└{RULE}")

    def _print_comparison(self, rankings) -> None:
        print("\n┌─ OPERATION COMPARISON")
        print("│")
        for ranking in rankings:
            print(f"│ {ranking.operation}")
            print(f"│ {'─' * 95}")
            for entry in ranking.entries:
                medal = RANK_MEDALS[entry.rank - 1] if entry.rank <= 3 else "  "
                print(
                    f"│   {medal} {'#' + str(entry.rank):<3} {entry.database:<15} "
                    f"{entry.throughput:>12.0f}/s ({entry.percent_diff:+6.1f}%) "
                    f"{format_duration(entry.duration_seconds):>12}"
                )
            print("│")
        print(f"└{RULE}")

    def _print_overall(self, scores) -> None:
        print("\n┌─ OVERALL PERFORMANCE RANKING")
        print("│")
        for score in scores:
            medal = OVERALL_MEDALS[score.rank - 1] if score.rank <= 3 else "  "
            print(f"│ {medal} #{score.rank} {score.database:<15} Score: {score.score}")
        print(f"└{RULE}")
