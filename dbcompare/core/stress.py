"""
Concurrent stress execution.

Fans a fixed number of unit operations out over W asyncio workers that share
one backend pool. Unit failures are funnelled through a queue and counted once
every worker has finished.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

UnitFn = Callable[[int, int], Awaitable[None]]

MAX_ERROR_SAMPLES = 5


@dataclass
class StressOutcome:
    """Totals from one stress phase."""

    workers: int
    units_per_worker: int
    attempts: int = 0
    error_count: int = 0
    error_samples: list[str] = field(default_factory=list)

    @property
    def planned(self) -> int:
        return self.workers * self.units_per_worker


async def run_stress(
    workers: int,
    units_per_worker: int,
    unit: UnitFn,
    unit_errors: tuple[type[BaseException], ...],
) -> StressOutcome:
    """
    Run `unit(worker_id, index)` units_per_worker times on each of `workers` tasks.

    Exceptions matching `unit_errors` count as unit failures and never stop a
    worker. Any other exception is re-raised after every worker has joined.

    Args:
        workers: Number of concurrent worker tasks
        units_per_worker: Unit operations each worker attempts
        unit: Coroutine function performing one unit operation
        unit_errors: Exception types that mark a single unit as failed

    Returns:
        StressOutcome with attempts and the funnelled error count
    """
    outcome = StressOutcome(workers=workers, units_per_worker=units_per_worker)
    if workers <= 0 or units_per_worker <= 0:
        return outcome

    # Unbounded, so put_nowait never blocks a worker however slowly we drain.
    errors: asyncio.Queue[BaseException] = asyncio.Queue()

    async def worker(worker_id: int) -> int:
        attempts = 0
        for index in range(units_per_worker):
            attempts += 1
            try:
                await unit(worker_id, index)
            except unit_errors as e:
                errors.put_nowait(e)
        logger.debug("Stress worker %d finished %d units", worker_id, attempts)
        return attempts

    tasks = [asyncio.create_task(worker(worker_id)) for worker_id in range(workers)]
    finished = await asyncio.gather(*tasks, return_exceptions=True)

    fatal: BaseException | None = None
    for item in finished:
        if isinstance(item, BaseException):
            fatal = fatal or item
        else:
            outcome.attempts += item

    while not errors.empty():
        err = errors.get_nowait()
        outcome.error_count += 1
        message = f"{type(err).__name__}: {err}"
        if len(outcome.error_samples) < MAX_ERROR_SAMPLES and message not in outcome.error_samples:
            outcome.error_samples.append(message)

    if fatal is not None:
        raise fatal

    return outcome
