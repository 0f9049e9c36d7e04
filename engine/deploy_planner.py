"""
Deploy Phase Planner - Annealed Reinforcement Allocation

Distributes this turn's reinforcement pool over our border territories.

Strategic flow:
1. ELIGIBLE TERRITORIES - owned territories touching a foreign neighbour
   (every owned territory when none does, so the pool is never wasted)
2. RANDOM START - deal the pool one army at a time
3. ANNEAL - move one army between territories, score by applying the
   deployment to a private snapshot and evaluating the position
4. RECLAIM - armies on territories whose allocation changes nothing are
   dealt round-robin to territories that do matter

The planner always places the whole pool; an empty plan means there was
nothing to place or nowhere to place it.
"""

import logging
import random
import time
from typing import Callable, Dict, List, Optional

from engine.annealing import (
    AnnealingResult,
    AnnealingSchedule,
    DEFAULT_TEMPERATURE_PER_SECOND,
    anneal,
    move_one_unit,
    random_allocation,
)
from engine.board_state import BoardState
from engine.evaluators import Evaluator, PositionEvaluator
from engine.models import PlaceArmiesMove
from engine.simulator import applied_deployments
from engine.state import SearchState
from engine.strategy_config import StrategyConfig, get_config

logger = logging.getLogger(__name__)

# Utility differences at or below this are treated as "no effect"
UTILITY_EPSILON = 1e-9


class DeployPlanner:
    """
    Time-boxed simulated annealing over reinforcement allocations.

    Args:
        evaluator: Position evaluator (defaults to the configured one)
        config: Strategy config (defaults to the global singleton)
        rng: Random source shared with the rest of the brain
        clock: Seconds-valued clock, injectable for tests
    """

    def __init__(self, evaluator: Optional[Evaluator] = None,
                 config: Optional[StrategyConfig] = None,
                 rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = time.monotonic):
        config = config or get_config()
        self.evaluator = evaluator or PositionEvaluator.from_config(config)
        self.temperature_per_second = float(config.get(
            'annealing', 'temperature_per_second', default=DEFAULT_TEMPERATURE_PER_SECOND))
        self.enclosed_fallback = bool(config.get('deploy_strategy', 'enclosed_fallback', default=True))
        self.rng = rng or random.Random()
        self.clock = clock
        self.state = SearchState.DONE
        self.last_result: Optional[AnnealingResult] = None

    def eligible_territories(self, board: BoardState, my_name: str) -> List[int]:
        """Owned border territories, or every owned territory if none borders anything."""
        border = [t.territory_id for t in board.border_territories(my_name)]
        if border or not self.enclosed_fallback:
            return border
        return [t.territory_id for t in board.owned_territories(my_name)]

    def plan_deployments(self, board: BoardState, my_name: str, opponent_name: str,
                         army_pool: int, budget_ms: float) -> Dict[int, int]:
        """
        Decide where to place `army_pool` armies.

        Args:
            board: Authoritative board (not modified)
            my_name: Our player name
            opponent_name: The opponent's player name
            army_pool: Armies to place this turn
            budget_ms: Wall-clock budget for the search

        Returns:
            territory_id -> armies, summing to army_pool (or {} when infeasible)
        """
        self.last_result = None
        if army_pool <= 0:
            return {}

        working = board.clone()
        ids = self.eligible_territories(working, my_name)
        if not ids:
            logger.warning(f"No deployable territories for {my_name}; skipping {army_pool} armies")
            return {}

        self.state = SearchState.INIT
        evaluator = self.evaluator

        def objective(allocation: List[int]) -> float:
            with applied_deployments(working, ids, allocation):
                return evaluator.utility(working, my_name, opponent_name)

        initial = random_allocation(army_pool, len(ids), self.rng)
        schedule = AnnealingSchedule(budget_ms, self.temperature_per_second, self.clock)

        self.state = SearchState.SEARCHING
        result = anneal(initial, objective, move_one_unit, schedule, self.rng)
        self.state = result.state
        self.last_result = result

        allocation = self._reclaim_idle(working, ids, result.best, objective, opponent_name)
        self.state = SearchState.DONE

        plan = {tid: amount for tid, amount in zip(ids, allocation) if amount > 0}
        if sum(plan.values()) != army_pool:
            raise RuntimeError(f"Deploy plan places {sum(plan.values())} of {army_pool} armies")

        logger.info(f"Deploy plan for {army_pool} armies over {len(ids)} territories: {plan} "
                    f"(utility={result.best_score:.3f}, iterations={result.iterations})")
        return plan

    def plan_moves(self, board: BoardState, my_name: str, opponent_name: str,
                   army_pool: int, budget_ms: float) -> List[PlaceArmiesMove]:
        plan = self.plan_deployments(board, my_name, opponent_name, army_pool, budget_ms)
        return [PlaceArmiesMove(my_name, tid, armies) for tid, armies in plan.items()]

    def _reclaim_idle(self, board: BoardState, ids: List[int], allocation: List[int],
                      objective: Callable[[List[int]], float], opponent_name: str) -> List[int]:
        """
        Move armies off territories whose allocation has no effect on utility.

        Each allocated territory is toggled off against the full allocation;
        if utility does not move, its armies go back to the pool. The pool is
        then dealt round-robin to the remaining allocated territories, or to
        a single default territory if none remain.
        """
        full_score = objective(allocation)
        idle = []
        for i, amount in enumerate(allocation):
            if amount == 0:
                continue
            toggled = list(allocation)
            toggled[i] = 0
            if abs(full_score - objective(toggled)) <= UTILITY_EPSILON:
                idle.append(i)

        if not idle:
            return list(allocation)

        result = list(allocation)
        pool = 0
        for i in idle:
            pool += result[i]
            result[i] = 0

        active = [i for i, amount in enumerate(result) if amount > 0]
        if not active:
            active = [self._default_index(board, ids, opponent_name)]

        k = 0
        while pool > 0:
            result[active[k % len(active)]] += 1
            pool -= 1
            k += 1

        logger.debug(f"Reclaimed armies from {len(idle)} idle territories; "
                     f"redistributed over {[ids[i] for i in active]}")
        return result

    @staticmethod
    def _default_index(board: BoardState, ids: List[int], opponent_name: str) -> int:
        """The eligible territory facing the most opponent armies (first on ties)."""
        best_index, best_threat = 0, -1
        for i, tid in enumerate(ids):
            threat = board.adjacent_enemy_armies(tid, opponent_name)
            if threat > best_threat:
                best_index, best_threat = i, threat
        return best_index
