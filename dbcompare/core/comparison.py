"""
Cross-backend comparison.

Ranks backends per operation by throughput and scores them overall.

Contract:
- Only operations measured by at least two backends are ranked or scored
- Ranking is a stable sort on throughput, descending; a missing throughput
  counts as 0, and equal throughputs keep their order in the suite
- percent_diff is relative to the fastest backend of the operation
  ((t - t_max) / t_max * 100); it is 0.0 when the fastest throughput is 0
- Scoring awards 3 / 2 / 1 points to ranks 1 / 2 / 3 and 0 beyond
- Overall ranking sorts by score, descending; ties keep first-appearance order

Nothing here mutates the suite or its results.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from pydantic import BaseModel, Field

from dbcompare.models.result import BenchmarkResult, BenchmarkSuite

RANK_POINTS = (3, 2, 1)


class RankedEntry(BaseModel):
    """One backend's place in one operation's ranking."""

    rank: int
    database: str
    throughput: float
    percent_diff: float = Field(..., description="Relative to the fastest, in %")
    duration_seconds: float


class OperationRanking(BaseModel):
    operation: str
    entries: List[RankedEntry] = Field(default_factory=list)


class BackendScore(BaseModel):
    """Overall standing of one backend."""

    rank: int
    database: str
    score: int


class ComparisonReport(BaseModel):
    """Per-operation rankings plus the overall score table."""

    rankings: List[OperationRanking] = Field(default_factory=list)
    scores: List[BackendScore] = Field(default_factory=list)


def _throughput(result: BenchmarkResult) -> float:
    return result.throughput or 0.0


def group_by_operation(
    results: Sequence[BenchmarkResult],
) -> Dict[str, List[BenchmarkResult]]:
    """Results per operation, both in first-appearance order."""
    groups: Dict[str, List[BenchmarkResult]] = {}
    for result in results:
        groups.setdefault(result.operation, []).append(result)
    return groups


def rank_operation(results: Sequence[BenchmarkResult]) -> List[RankedEntry]:
    """Rank one operation's results, fastest first."""
    ordered = sorted(results, key=_throughput, reverse=True)
    if not ordered:
        return []

    fastest = _throughput(ordered[0])
    entries = []
    for position, result in enumerate(ordered, start=1):
        throughput = _throughput(result)
        if fastest > 0:
            percent_diff = (throughput - fastest) / fastest * 100
        else:
            percent_diff = 0.0
        entries.append(
            RankedEntry(
                rank=position,
                database=result.database,
                throughput=throughput,
                percent_diff=percent_diff,
                duration_seconds=result.duration_seconds,
            )
        )
    return entries


def rank_operations(results: Sequence[BenchmarkResult]) -> List[OperationRanking]:
    """Rankings for every operation measured by more than one backend."""
    return [
        OperationRanking(operation=operation, entries=rank_operation(group))
        for operation, group in group_by_operation(results).items()
        if len(group) > 1
    ]


def compute_scores(results: Sequence[BenchmarkResult]) -> List[BackendScore]:
    """Overall score per backend, highest first."""
    # Seed in discovery order so ties resolve to first appearance.
    totals: Dict[str, int] = {}
    for ranking in rank_operations(results):
        for entry in ranking.entries:
            points = RANK_POINTS[entry.rank - 1] if entry.rank <= len(RANK_POINTS) else 0
            totals.setdefault(entry.database, 0)
            totals[entry.database] += points

    discovery = {db: i for i, db in enumerate(dict.fromkeys(r.database for r in results))}
    ordered = sorted(totals.items(), key=lambda item: (-item[1], discovery[item[0]]))
    return [
        BackendScore(rank=position, database=database, score=score)
        for position, (database, score) in enumerate(ordered, start=1)
    ]


def build_comparison(suite: BenchmarkSuite) -> ComparisonReport:
    """Full comparison of a finished suite."""
    return ComparisonReport(
        rankings=rank_operations(suite.results),
        scores=compute_scores(suite.results),
    )
