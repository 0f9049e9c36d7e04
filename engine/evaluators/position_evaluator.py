"""
Position Evaluator

Utility of a board for one player:
- +1 for every owned territory
- +(owned / members)^2 * bonus for every group, so nearly finished groups
  are worth disproportionately more than scattered holdings
- optionally, minus at_risk_weight * P(opponent takes it) for every owned
  border territory, where the opponent attacks with all adjacent armies
"""

import logging
from typing import Optional

from engine.board_state import BoardState
from engine.combat import probability_to_take
from engine.strategy_config import StrategyConfig, get_config
from .base import Evaluator

logger = logging.getLogger(__name__)


class PositionEvaluator(Evaluator):
    """Territory count plus quadratic group-completion bonus."""

    def __init__(self, at_risk_penalty: bool = False, at_risk_weight: float = 1.0):
        super().__init__("position")
        self.at_risk_penalty = at_risk_penalty
        self.at_risk_weight = at_risk_weight

    @classmethod
    def from_config(cls, config: Optional[StrategyConfig] = None) -> 'PositionEvaluator':
        config = config or get_config()
        return cls(
            at_risk_penalty=bool(config.get('evaluator', 'at_risk_penalty', default=False)),
            at_risk_weight=float(config.get('evaluator', 'at_risk_weight', default=1.0)),
        )

    def utility(self, board: BoardState, me: str, opponent: str) -> float:
        util = 0.0
        territories = board.territories

        for group in board.groups.values():
            if not group.members:
                continue
            owned = 0
            for tid in group.members:
                if territories[tid].owner == me:
                    owned += 1
            util += owned
            ratio = owned / len(group.members)
            util += ratio * ratio * group.bonus

        if self.at_risk_penalty:
            util -= self.at_risk_weight * self.risk(board, me, opponent)

        return util

    def risk(self, board: BoardState, me: str, opponent: str) -> float:
        """Sum of capture probabilities over our territories facing the opponent."""
        total = 0.0
        territories = board.territories
        for territory in territories.values():
            if territory.owner != me:
                continue
            enemy_armies = 0
            for n in territory.neighbors:
                neighbor = territories[n]
                if neighbor.owner == opponent:
                    enemy_armies += neighbor.armies
            if enemy_armies > 0:
                total += probability_to_take(enemy_armies, max(0, territory.armies))
        return total
