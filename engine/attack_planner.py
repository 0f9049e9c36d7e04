"""
Attack Phase Planner - Annealed Attack Allocation

For every owned territory with armies to spare:
- INTERIOR territories transfer everything but one army one hop towards
  the nearest border (frontier router)
- BORDER territories split their spare armies over the foreign neighbours
  plus a reserve bucket (the source itself) by simulated annealing, scored
  through the what-if simulator and the position evaluator

After the search a deterministic cleanup enforces capture odds:
1. CANCEL attacks below the cancel threshold (armies back to reserve)
2. TOP UP attacks between the thresholds from reserve until they clear the
   commit threshold, or cancel them if the reserve cannot cover it
3. DEAL any remaining reserve round-robin over the surviving attacks

At least one army always stays behind on the source territory.
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
from engine.combat import probability_to_take
from engine.evaluators import Evaluator, PositionEvaluator
from engine.frontier import nearest_border_step
from engine.models import AttackTransferMove
from engine.simulator import simulated_attacks
from engine.state import SearchState
from engine.strategy_config import StrategyConfig, get_config

logger = logging.getLogger(__name__)

CANCEL_THRESHOLD = 0.35
COMMIT_THRESHOLD = 0.6125
JUMP_DIVISOR = 10
MAX_TRANSFERS = 10


class AttackPlanner:
    """
    Per-territory attack search plus rear-to-front transfers.

    Args:
        evaluator: Position evaluator (defaults to the configured one)
        config: Strategy config (defaults to the global singleton)
        rng: Random source shared with the rest of the brain
        clock: Seconds-valued clock, injectable for tests
        monte_carlo: Optional MonteCarloSimulator used to log plan odds
    """

    def __init__(self, evaluator: Optional[Evaluator] = None,
                 config: Optional[StrategyConfig] = None,
                 rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = time.monotonic,
                 monte_carlo=None):
        config = config or get_config()
        self.evaluator = evaluator or PositionEvaluator.from_config(config)
        self.temperature_per_second = float(config.get(
            'annealing', 'temperature_per_second', default=DEFAULT_TEMPERATURE_PER_SECOND))
        self.cancel_threshold = float(config.get('attack_strategy', 'cancel_threshold',
                                                 default=CANCEL_THRESHOLD))
        self.commit_threshold = float(config.get('attack_strategy', 'commit_threshold',
                                                 default=COMMIT_THRESHOLD))
        self.jump_divisor = max(1, int(config.get('attack_strategy', 'jump_divisor',
                                                  default=JUMP_DIVISOR)))
        self.max_transfers = int(config.get('attack_strategy', 'max_transfers',
                                            default=MAX_TRANSFERS))
        self.rng = rng or random.Random()
        self.clock = clock
        self.monte_carlo = monte_carlo
        self.state = SearchState.DONE
        self.last_result: Optional[AnnealingResult] = None

    # ------------------------------------------------------------------
    # Whole phase
    # ------------------------------------------------------------------

    def plan_turn(self, board: BoardState, my_name: str, opponent_name: str,
                  budget_ms: float) -> List[AttackTransferMove]:
        """
        Attack and transfer orders for every territory we own.

        The budget is split evenly across the border territories that run
        a search; interior transfers cost no search time.
        """
        owned = board.owned_territories(my_name)
        searching = [t for t in owned if t.armies > 1 and board.is_border(t.territory_id)]
        share_ms = budget_ms / len(searching) if searching else 0.0

        moves: List[AttackTransferMove] = []
        transfers = 0
        for territory in owned:
            if territory.armies <= 1:
                continue
            tid = territory.territory_id

            if board.is_border(tid):
                plan = self.plan_attacks(board, tid, my_name, opponent_name, share_ms)
                for to_id, armies in plan.items():
                    moves.append(AttackTransferMove(my_name, tid, to_id, armies))
            elif transfers < self.max_transfers:
                step = nearest_border_step(board, tid)
                if step is None or step == tid:
                    logger.debug(f"Territory {tid} has no route to the front")
                    continue
                moves.append(AttackTransferMove(my_name, tid, step, territory.armies - 1))
                transfers += 1

        logger.info(f"Attack/transfer plan: {len(moves)} moves "
                    f"({transfers} transfers, {len(searching)} searched sources)")

        if self.monte_carlo is not None and moves:
            for (from_id, to_id), outcome in self.monte_carlo.simulate_plan(board, moves).items():
                logger.info(f"  {from_id}->{to_id}: capture rate {outcome.capture_rate:.2f}, "
                            f"expected survivors {outcome.avg_survivors:.1f}")
        return moves

    # ------------------------------------------------------------------
    # Single source territory
    # ------------------------------------------------------------------

    def candidate_targets(self, board: BoardState, territory_id: int, my_name: str) -> List[int]:
        """Neighbours not owned by us, in adjacency order."""
        return [t.territory_id for t in board.neighbors(territory_id) if t.owner != my_name]

    def plan_attacks(self, board: BoardState, territory_id: int, my_name: str,
                     opponent_name: str, budget_ms: float) -> Dict[int, int]:
        """
        Split one territory's spare armies over its attackable neighbours.

        Args:
            board: Authoritative board (not modified)
            territory_id: Source territory (owned by my_name)
            my_name: Our player name
            opponent_name: The opponent's player name
            budget_ms: Wall-clock budget for this territory

        Returns:
            target_id -> armies sent; zero entries omitted, total <= armies - 1
        """
        self.last_result = None
        working = board.clone()
        source = working.territory(territory_id)
        available = source.armies - 1
        targets = self.candidate_targets(working, territory_id, my_name)
        if available <= 0 or not targets:
            return {}

        self.state = SearchState.INIT
        # Last bucket is the reserve: simulate_attacks skips it
        buckets = targets + [territory_id]
        evaluator = self.evaluator
        jumps = 1 + available // self.jump_divisor

        def objective(allocation: List[int]) -> float:
            with simulated_attacks(working, territory_id, allocation, buckets, my_name):
                return evaluator.utility(working, my_name, opponent_name)

        def neighbor(allocation: List[int], rng: random.Random) -> Optional[List[int]]:
            candidate = allocation
            for _ in range(jumps):
                moved = move_one_unit(candidate, rng)
                if moved is None:
                    return None
                candidate = moved
            return candidate

        initial = random_allocation(available, len(buckets), self.rng)
        schedule = AnnealingSchedule(budget_ms, self.temperature_per_second, self.clock)

        self.state = SearchState.SEARCHING
        result = anneal(initial, objective, neighbor, schedule, self.rng)
        self.state = result.state
        self.last_result = result

        self.state = SearchState.CLEANUP
        amounts = self.apply_thresholds(working, targets, result.best[:-1], result.best[-1])
        self.state = SearchState.DONE

        plan = {to_id: armies for to_id, armies in zip(targets, amounts) if armies > 0}
        if sum(plan.values()) > available:
            raise RuntimeError(f"Attack plan from {territory_id} sends {sum(plan.values())} "
                               f"of {available} spare armies")
        logger.debug(f"Attacks from {territory_id} ({available} spare): {plan} "
                     f"(utility={result.best_score:.3f}, iterations={result.iterations})")
        return plan

    def apply_thresholds(self, board: BoardState, targets: List[int],
                         amounts: List[int], reserve: int) -> List[int]:
        """
        Deterministic cleanup of an allocation.

        Args:
            board: Board holding the current defender counts
            targets: Target ids, parallel to amounts
            amounts: Armies planned per target
            reserve: Uncommitted armies

        Returns:
            Adjusted amounts per target
        """
        amounts = list(amounts)

        def odds(i: int, armies: int) -> float:
            return probability_to_take(armies, board.territory(targets[i]).armies)

        # Pass 1: cancel hopeless attacks
        for i in range(len(amounts)):
            if amounts[i] > 0 and odds(i, amounts[i]) < self.cancel_threshold:
                reserve += amounts[i]
                amounts[i] = 0

        # Pass 2: top up marginal attacks, or cancel if the reserve can't
        for i in range(len(amounts)):
            if amounts[i] == 0 or odds(i, amounts[i]) >= self.commit_threshold:
                continue
            extra = 0
            while extra < reserve and odds(i, amounts[i] + extra) < self.commit_threshold:
                extra += 1
            if odds(i, amounts[i] + extra) >= self.commit_threshold:
                amounts[i] += extra
                reserve -= extra
            else:
                reserve += amounts[i]
                amounts[i] = 0

        # Pass 3: nothing stays idle behind a live attack
        active = [i for i, armies in enumerate(amounts) if armies > 0]
        k = 0
        while reserve > 0 and active:
            amounts[active[k % len(active)]] += 1
            reserve -= 1
            k += 1

        return amounts
