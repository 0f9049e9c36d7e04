"""
Simulated Annealing Core

Shared search loop for the deployment and attack planners.

The temperature falls linearly with wall-clock time and hits exactly zero
at the deadline, which is the only way the loop ends:

    T(t) = T0 * (deadline - t) / budget,   T0 = temperature_per_second * budget

Worse candidates are accepted with probability exp(delta / T); the best
candidate ever scored is returned whatever state the walk ends in.
"""

import logging
import math
import random
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from engine.state import SearchState

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE_PER_SECOND = 10.0


class AnnealingSchedule:
    """
    Time-driven temperature.

    Args:
        budget_ms: Wall-clock budget for the whole search
        temperature_per_second: Starting temperature per second of budget
        clock: Seconds-valued clock (injectable for tests)
    """

    def __init__(self, budget_ms: float,
                 temperature_per_second: float = DEFAULT_TEMPERATURE_PER_SECOND,
                 clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self.budget = max(0.0, budget_ms) / 1000.0
        self.initial_temperature = temperature_per_second * self.budget
        self.start = clock()
        self.deadline = self.start + self.budget

    def temperature(self) -> float:
        if self.budget <= 0:
            return 0.0
        remaining = self.deadline - self.clock()
        if remaining <= 0:
            return 0.0
        return self.initial_temperature * remaining / self.budget

    def elapsed_ms(self) -> float:
        return (self.clock() - self.start) * 1000.0


def metropolis_accept(delta: float, temperature: float, rng: random.Random) -> bool:
    """Always take improvements; take a worse move with probability exp(delta/T)."""
    if delta >= 0:
        return True
    if temperature <= 0:
        return False
    return rng.random() < math.exp(delta / temperature)


@dataclass
class AnnealingResult:
    """Outcome of one anneal() run."""
    best: List[int]
    best_score: float
    iterations: int
    accepted: int
    improved: int
    state: SearchState


def anneal(initial: List[int],
           objective: Callable[[List[int]], float],
           neighbor: Callable[[List[int], random.Random], Optional[List[int]]],
           schedule: AnnealingSchedule,
           rng: random.Random) -> AnnealingResult:
    """
    Run simulated annealing until the schedule's temperature reaches zero.

    Args:
        initial: Feasible starting candidate
        objective: Candidate -> utility (higher is better)
        neighbor: (candidate, rng) -> new candidate, or None when no move exists
        schedule: Temperature schedule owning the deadline
        rng: Random source for moves and acceptance

    Returns:
        AnnealingResult holding the best-seen candidate
    """
    current = list(initial)
    current_score = objective(current)
    best, best_score = list(current), current_score
    iterations = accepted = improved = 0

    while True:
        temperature = schedule.temperature()
        if temperature <= 0:
            break

        candidate = neighbor(current, rng)
        if candidate is None:
            # Nothing to explore; the starting candidate is the answer
            break
        iterations += 1

        score = objective(candidate)
        if metropolis_accept(score - current_score, temperature, rng):
            current, current_score = candidate, score
            accepted += 1
            if score > best_score:
                best, best_score = list(candidate), score
                improved += 1

    state = SearchState.CONVERGED
    logger.debug(f"Annealing converged: {iterations} iterations, {accepted} accepted, "
                 f"{improved} improvements, best={best_score:.3f}")
    return AnnealingResult(best=best, best_score=best_score, iterations=iterations,
                           accepted=accepted, improved=improved, state=state)


def move_one_unit(allocation: List[int], rng: random.Random) -> Optional[List[int]]:
    """
    Move a single unit from a non-empty bucket to a different bucket.

    Returns None when fewer than two buckets exist or nothing is allocated.
    """
    if len(allocation) < 2:
        return None
    sources = [i for i, amount in enumerate(allocation) if amount > 0]
    if not sources:
        return None
    src = rng.choice(sources)
    dst = rng.randrange(len(allocation) - 1)
    if dst >= src:
        dst += 1
    result = list(allocation)
    result[src] -= 1
    result[dst] += 1
    return result


def random_allocation(total: int, buckets: int, rng: random.Random) -> List[int]:
    """Deal `total` units one at a time to uniformly chosen buckets."""
    allocation = [0] * buckets
    if buckets == 0:
        return allocation
    for _ in range(total):
        allocation[rng.randrange(buckets)] += 1
    return allocation
