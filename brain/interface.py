"""
Brain Interface - The contract between the protocol layer and decision-making AI.

This interface allows for swappable "brains" - from the simple
wanted-armies heuristic to the annealing optimizers. The parser hands the
brain a TurnContext and writes whatever move records come back.

Key principle: The brain never mutates the board it is given.
Any what-if exploration happens on a clone.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from engine.board_state import BoardState
from engine.frontier import choose_starting_region
from engine.models import AttackTransferMove, PlaceArmiesMove


@dataclass
class TurnContext:
    """
    Everything the brain needs for one decision phase.

    board is the authoritative visible map; for the attack phase it
    already includes our own placements from this round.
    """
    board: BoardState
    my_name: str
    opponent_name: str
    army_pool: int = 0
    budget_ms: float = 0.0
    round_number: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for logging"""
        return {
            'round': self.round_number,
            'my_territories': len(self.board.owned_territories(self.my_name)),
            'their_territories': len(self.board.owned_territories(self.opponent_name)),
            'army_pool': self.army_pool,
            'budget_ms': round(self.budget_ms, 1),
        }


class Brain(ABC):
    """
    Abstract base class for all decision-making implementations.

    - AnnealingBrain: time-boxed search over deployments and attacks
    - HeuristicBrain: the lightweight wanted-armies rules

    The parser only calls these methods - it doesn't care how the
    brain makes decisions internally.
    """

    @abstractmethod
    def place_armies(self, context: TurnContext) -> List[PlaceArmiesMove]:
        """
        Decide this round's reinforcements.

        Args:
            context: Visible map, names, pool size and time budget

        Returns:
            Placements whose amounts sum to at most context.army_pool
        """
        pass

    @abstractmethod
    def attack_transfer(self, context: TurnContext) -> List[AttackTransferMove]:
        """
        Decide this round's attacks and transfers.

        Args:
            context: Visible map after our placements, names and time budget

        Returns:
            Orders leaving at least one army on every source territory
        """
        pass

    @abstractmethod
    def get_personality_name(self) -> str:
        """Return brain name, e.g. 'Annealing' or 'Heuristic'."""
        pass

    def pick_starting_region(self, full_map: BoardState, pickable: List[int],
                             already_picked: Optional[List[int]] = None) -> Optional[int]:
        """
        Choose one of the offered starting regions (optional to override).

        Default: fewest neighbours first, then stay close to earlier picks.
        """
        return choose_starting_region(full_map, pickable, already_picked)

    def on_round_start(self, round_number: int, board: BoardState):
        """
        Called after each update_map (optional to override).
        """
        pass
