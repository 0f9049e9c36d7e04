"""
Heuristic Brain

Lightweight rule-based brain, kept as the alternative to the annealing
search (BOT_MODE=heuristic). No search, no time budget.

Deploy ("wanted armies"):
- a border territory facing the opponent wants enemy_multiplier x the
  adjacent enemy armies, minus what it already holds
- a border territory facing only neutrals wants neutral_multiplier x its
  largest neutral neighbour (default_neutral_armies minimum)
- threatened territories are served first; if they want more than the
  pool, the pool is split over them proportionally
- leftovers go round-robin to territories that wanted something, or to
  every border territory if nobody wanted anything

Attack:
- interior territories push armies one hop towards the front
- border territories attack a random foreign neighbour with everything
  but one army, on a coin flip
"""

import logging
import random
from typing import Dict, List, Optional

from brain.interface import Brain, TurnContext
from engine.board_state import BoardState, Territory
from engine.frontier import nearest_border_step
from engine.models import AttackTransferMove, PlaceArmiesMove
from engine.strategy_config import StrategyConfig, get_config

logger = logging.getLogger(__name__)


class HeuristicBrain(Brain):
    """
    Wanted-armies deployment plus frontier transfers and coin-flip attacks.

    Args:
        config: Strategy config (defaults to the global singleton)
        seed: Seed for the coin flips and target choice
    """

    def __init__(self, config: Optional[StrategyConfig] = None, seed: Optional[int] = None):
        config = config or get_config()
        self.rng = random.Random(seed)
        self.enemy_multiplier = float(config.get('heuristic', 'enemy_multiplier', default=1.5))
        self.neutral_multiplier = float(config.get('heuristic', 'neutral_multiplier', default=2))
        self.default_neutral_armies = int(config.get('heuristic', 'default_neutral_armies', default=2))
        self.attack_chance = float(config.get('heuristic', 'attack_chance', default=0.5))
        self.max_transfers = int(config.get('attack_strategy', 'max_transfers', default=10))
        self.enclosed_fallback = bool(config.get('deploy_strategy', 'enclosed_fallback', default=True))

    def get_personality_name(self) -> str:
        return "Heuristic"

    # ------------------------------------------------------------------
    # Deploy
    # ------------------------------------------------------------------

    def wanted_armies(self, board: BoardState, territory: Territory,
                      my_name: str, opponent_name: str) -> int:
        """Armies this territory wants on top of what it already holds."""
        tid = territory.territory_id
        if board.has_enemy(tid, opponent_name):
            target = int(board.adjacent_enemy_armies(tid, opponent_name) * self.enemy_multiplier)
        else:
            largest = self.default_neutral_armies
            for neighbour in board.neighbors(tid):
                if neighbour.owner not in (my_name, opponent_name) and neighbour.armies > largest:
                    largest = neighbour.armies
            target = int(largest * self.neutral_multiplier)
        return max(0, target - territory.armies)

    def plan_deployments(self, board: BoardState, my_name: str, opponent_name: str,
                         army_pool: int) -> Dict[int, int]:
        """territory_id -> armies, summing to army_pool (or {} when infeasible)"""
        if army_pool <= 0:
            return {}

        # wanted_armies is scratch state, so work on a private copy
        working = board.clone()
        deploy = working.border_territories(my_name)
        if not deploy and self.enclosed_fallback:
            deploy = working.owned_territories(my_name)
        if not deploy:
            logger.warning(f"No deployable territories for {my_name}")
            return {}

        for territory in deploy:
            territory.wanted_armies = self.wanted_armies(working, territory, my_name, opponent_name)
        endangered = {t.territory_id for t in deploy if working.has_enemy(t.territory_id, opponent_name)}
        total_endangered = sum(t.wanted_armies for t in deploy if t.territory_id in endangered)

        if total_endangered > army_pool:
            # Everything goes to the threatened territories, proportionally
            for territory in deploy:
                if territory.territory_id in endangered:
                    territory.wanted_armies = int(territory.wanted_armies / total_endangered * army_pool)
                else:
                    territory.wanted_armies = 0
        else:
            armies_left = army_pool - total_endangered
            for territory in deploy:
                if territory.territory_id in endangered:
                    continue
                armies_left -= territory.wanted_armies
                if armies_left < 0:
                    territory.wanted_armies = 0

        allocated = sum(t.wanted_armies for t in deploy)
        receivers = [t for t in deploy if t.wanted_armies > 0] or deploy
        k = 0
        while allocated < army_pool:
            receivers[k % len(receivers)].wanted_armies += 1
            allocated += 1
            k += 1

        plan = {t.territory_id: t.wanted_armies for t in deploy if t.wanted_armies > 0}
        logger.info(f"Heuristic deploy of {army_pool} armies over {len(deploy)} territories: {plan}")
        return plan

    def place_armies(self, context: TurnContext) -> List[PlaceArmiesMove]:
        plan = self.plan_deployments(context.board, context.my_name,
                                     context.opponent_name, context.army_pool)
        return [PlaceArmiesMove(context.my_name, tid, armies) for tid, armies in plan.items()]

    # ------------------------------------------------------------------
    # Attack / transfer
    # ------------------------------------------------------------------

    def attack_transfer(self, context: TurnContext) -> List[AttackTransferMove]:
        board, my_name = context.board, context.my_name
        moves: List[AttackTransferMove] = []
        transfers = 0

        for territory in board.owned_territories(my_name):
            if territory.armies <= 1:
                continue
            tid = territory.territory_id

            if not board.is_border(tid):
                if transfers >= self.max_transfers:
                    continue
                step = nearest_border_step(board, tid)
                if step is not None and step != tid:
                    moves.append(AttackTransferMove(my_name, tid, step, territory.armies - 1))
                    transfers += 1
            elif self.rng.random() < self.attack_chance:
                targets = [n.territory_id for n in board.neighbors(tid) if n.owner != my_name]
                target = self.rng.choice(targets)
                moves.append(AttackTransferMove(my_name, tid, target, territory.armies - 1))

        logger.info(f"Heuristic attack/transfer: {len(moves)} moves ({transfers} transfers)")
        return moves
