"""Concurrent fan-out helpers with per-task outcomes.

Best-effort call sites gather :class:`Outcome` objects and reduce them with
:func:`successes`; nothing here raises for a failed task.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Iterable, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class Outcome(Generic[T]):
    """Result of one concurrent task: either a value or the error it raised."""

    value: Optional[T] = None
    error: Optional[BaseException] = None
    label: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


async def _capture(awaitable: Awaitable[T], label: str) -> Outcome[T]:
    try:
        return Outcome(value=await awaitable, label=label)
    except Exception as exc:
        return Outcome(error=exc, label=label)


async def gather_outcomes(
    awaitables: Iterable[Awaitable[T]], labels: Optional[Sequence[str]] = None
) -> List[Outcome[T]]:
    """Run awaitables concurrently; one outcome per awaitable, in input order."""
    awaitables = list(awaitables)
    if labels is None:
        labels = [str(i) for i in range(len(awaitables))]
    return list(
        await asyncio.gather(
            *(_capture(aw, label) for aw, label in zip(awaitables, labels))
        )
    )


async def map_in_batches(
    func: Callable[[T], Awaitable[R]],
    items: Sequence[T],
    batch_size: int,
    label: Callable[[T], str] = str,
) -> List[Outcome[R]]:
    """Apply ``func`` to items, ``batch_size`` at a time, keeping input order."""
    outcomes: List[Outcome[R]] = []
    for start in range(0, len(items), batch_size):
        batch = items[start : start + batch_size]
        outcomes.extend(
            await gather_outcomes(
                (func(item) for item in batch), [label(item) for item in batch]
            )
        )
    return outcomes


def successes(outcomes: Iterable[Outcome[T]], context: str = "task") -> List[T]:
    """Collect successful values, logging each failure."""
    values = []
    for outcome in outcomes:
        if outcome.ok:
            values.append(outcome.value)
        else:
            logger.warning(
                "Skipping failed %s %s: %s", context, outcome.label, outcome.error
            )
    return values
