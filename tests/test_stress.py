"""
Unit tests for concurrent stress execution.
"""

from __future__ import annotations

import asyncio

import pytest

from dbcompare.core.stress import MAX_ERROR_SAMPLES, run_stress


class UnitError(Exception):
    pass


class TestRunStress:
    """Tests for run_stress()."""

    @pytest.mark.asyncio
    async def test_counts_every_attempt_and_error(self) -> None:
        """8 workers x 50 units: 400 attempts, every failing unit counted."""
        calls: list[tuple[int, int]] = []

        async def unit(worker_id: int, index: int) -> None:
            calls.append((worker_id, index))
            await asyncio.sleep(0)
            if index % 5 == 0:
                raise UnitError("rejected")

        outcome = await run_stress(8, 50, unit, (UnitError,))

        assert outcome.attempts == 400
        assert outcome.planned == 400
        assert len(calls) == 400
        assert outcome.error_count == 8 * 10
        assert outcome.error_samples == ["UnitError: rejected"]

    @pytest.mark.asyncio
    async def test_workers_run_concurrently(self) -> None:
        in_flight = 0
        peak = 0

        async def unit(worker_id: int, index: int) -> None:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1

        await run_stress(4, 3, unit, ())

        assert peak > 1

    @pytest.mark.asyncio
    async def test_error_samples_are_bounded(self) -> None:
        async def unit(worker_id: int, index: int) -> None:
            raise UnitError(f"w{worker_id}-{index}")

        outcome = await run_stress(3, 10, unit, (UnitError,))

        assert outcome.error_count == 30
        assert len(outcome.error_samples) == MAX_ERROR_SAMPLES

    @pytest.mark.asyncio
    async def test_fatal_error_raised_after_join(self) -> None:
        """Other workers finish their units before the fatal error surfaces."""
        done: list[int] = []

        async def unit(worker_id: int, index: int) -> None:
            await asyncio.sleep(0)
            if worker_id == 2 and index == 0:
                raise RuntimeError("driver crashed")
            done.append(worker_id)

        with pytest.raises(RuntimeError, match="driver crashed"):
            await run_stress(4, 5, unit, (UnitError,))

        assert sum(1 for w in done if w != 2) == 15

    @pytest.mark.asyncio
    async def test_no_workers_is_empty(self) -> None:
        async def unit(worker_id: int, index: int) -> None:
            raise AssertionError("should not run")

        outcome = await run_stress(0, 10, unit, ())

        assert outcome.attempts == 0
        assert outcome.error_count == 0
