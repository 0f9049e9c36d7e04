"""
Evaluator System

Board evaluators used by the optimizers to rank hypothetical positions.
"""

from .base import Evaluator
from .position_evaluator import PositionEvaluator

__all__ = [
    'Evaluator',
    'PositionEvaluator',
]
