"""
Shared fixtures: board builders, a deterministic clock and strategy configs.
"""

import json
import sys
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from engine.board_state import BoardState
from engine.strategy_config import StrategyConfig

ME = "player1"
OPP = "player2"


class FakeClock:
    """Clock that moves forward by `step` seconds every time it is read."""

    def __init__(self, step: float = 0.001, start: float = 0.0):
        self.step = step
        self.now = start
        self.reads = 0

    def __call__(self) -> float:
        self.now += self.step
        self.reads += 1
        return self.now


def build_board(territories: Iterable[Tuple], edges: Iterable[Tuple[int, int]],
                groups: Optional[Dict[int, int]] = None) -> BoardState:
    """
    Build a board from plain tuples.

    Args:
        territories: (id, owner, armies) or (id, owner, armies, group_id)
        edges: (a, b) pairs
        groups: group_id -> bonus (default: a single group 1 with bonus 0)
    """
    board = BoardState()
    for group_id, bonus in (groups or {1: 0}).items():
        board.add_group(group_id, bonus)
    for entry in territories:
        tid, owner, armies = entry[:3]
        group_id = entry[3] if len(entry) > 3 else 1
        board.add_territory(tid, group_id, owner=owner, armies=armies)
    for a, b in edges:
        board.add_edge(a, b)
    return board


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_config(tmp_path):
    """Write a strategy JSON and load it."""
    def _make(data: dict, name: str = "strategy.json") -> StrategyConfig:
        path = tmp_path / name
        path.write_text(json.dumps(data))
        return StrategyConfig(str(path))
    return _make


@pytest.fixture
def plain_config(make_config):
    """Baseline tuning without the at-risk penalty."""
    return make_config({
        "name": "test",
        "evaluator": {"at_risk_penalty": False},
        "annealing": {"temperature_per_second": 10.0},
        "attack_strategy": {"cancel_threshold": 0.35, "commit_threshold": 0.6125,
                            "jump_divisor": 10, "max_transfers": 10},
    })
