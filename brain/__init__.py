"""
Brain Package

The brain is responsible for decision-making logic separate from the protocol layer.
This allows for swappable AI implementations and testing.
"""

from .interface import Brain, TurnContext
from .annealing_brain import AnnealingBrain
from .heuristic_brain import HeuristicBrain

__all__ = [
    'Brain',
    'TurnContext',
    'AnnealingBrain',
    'HeuristicBrain',
]
