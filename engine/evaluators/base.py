"""
Base Class for Position Evaluators

An evaluator maps a board snapshot to a scalar utility from one player's
point of view. Optimizers only ever compare utilities of boards derived
from the same snapshot, so scales need not be comparable across
evaluators.
"""

from abc import ABC, abstractmethod
import logging

from engine.board_state import BoardState

logger = logging.getLogger(__name__)


class Evaluator(ABC):
    """
    Base class for board evaluators.

    Subclasses must be side-effect free: utility() is called thousands of
    times per turn on a board that is mutated between calls.
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(f"{__name__}.{name}")

    @abstractmethod
    def utility(self, board: BoardState, me: str, opponent: str) -> float:
        """
        Score a position.

        Args:
            board: Snapshot to score
            me: Player whose utility is computed
            opponent: The single opponent

        Returns:
            Utility, higher is better for `me`
        """
        pass
