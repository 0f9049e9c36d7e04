"""
Tests for the what-if simulator.

Tests:
- apply/deapply inverse law
- simulate/undo inverse law (captures, failed attacks, reserve bucket)
- Context managers restore the board even on error
- Length mismatches fail fast
"""

import random

import pytest

from conftest import ME, OPP, build_board
from engine.board_state import NEUTRAL
from engine.simulator import (
    SimulationError,
    apply_deployments,
    applied_deployments,
    capture_attack_state,
    deapply_deployments,
    simulate_attacks,
    simulated_attacks,
    undo_from_snapshot,
    undo_simulation,
)


@pytest.fixture
def board():
    return build_board(
        [(1, ME, 10), (2, OPP, 2), (3, NEUTRAL, 5), (4, ME, 3)],
        [(1, 2), (1, 3), (1, 4)],
    )


class TestDeployments:
    """Tests for apply/deapply."""

    def test_apply_adds_armies(self, board):
        apply_deployments(board, [1, 4], [2, 3])
        assert board.territory(1).armies == 12
        assert board.territory(4).armies == 6

    def test_inverse_law(self, board):
        original = board.clone()
        rng = random.Random(7)
        for _ in range(50):
            amounts = [rng.randint(0, 20), rng.randint(0, 20)]
            deapply_deployments(apply_deployments(board, [1, 4], amounts), [1, 4], amounts)
            assert board == original

    def test_length_mismatch(self, board):
        with pytest.raises(SimulationError):
            apply_deployments(board, [1, 4], [1])

    def test_context_manager_restores(self, board):
        original = board.clone()
        with applied_deployments(board, [1], [5]) as sim:
            assert sim.territory(1).armies == 15
        assert board == original


class TestAttacks:
    """Tests for simulate/undo."""

    def test_capture(self, board):
        simulate_attacks(board, 1, [4], [2], ME)
        assert board.territory(2).owner == ME
        assert board.territory(2).armies == 3
        assert board.territory(1).armies == 6

    def test_failed_attack(self, board):
        simulate_attacks(board, 1, [2], [3], ME)
        assert board.territory(3).owner == NEUTRAL
        assert board.territory(3).armies == 4
        assert board.territory(1).armies == 8

    def test_reserve_bucket_skipped(self, board):
        simulate_attacks(board, 1, [4, 5], [2, 1], ME)
        assert board.territory(1).armies == 6

    def test_undo_restores_exactly(self, board):
        original = board.clone()
        to_ids = [2, 3, 1]
        amounts = [4, 3, 2]
        defenders = [board.territory(t).armies for t in to_ids]
        owners = [board.territory(t).owner for t in to_ids]
        total = board.territory(1).armies

        simulate_attacks(board, 1, amounts, to_ids, ME)
        assert board != original
        undo_simulation(board, 1, amounts, defenders, to_ids, owners, total)
        assert board == original

    def test_inverse_law_random_vectors(self, board):
        original = board.clone()
        rng = random.Random(3)
        to_ids = [2, 3, 1]
        for _ in range(100):
            amounts = [rng.randint(0, 9) for _ in to_ids]
            snapshot = capture_attack_state(board, 1, to_ids)
            simulate_attacks(board, 1, amounts, to_ids, ME)
            undo_from_snapshot(board, snapshot, amounts)
            assert board == original

    def test_length_mismatch(self, board):
        with pytest.raises(SimulationError):
            simulate_attacks(board, 1, [1, 2], [2], ME)
        with pytest.raises(SimulationError):
            undo_simulation(board, 1, [1], [2, 5], [2], [OPP], 10)

    def test_context_manager_restores_on_error(self, board):
        original = board.clone()
        with pytest.raises(RuntimeError):
            with simulated_attacks(board, 1, [4], [2], ME):
                raise RuntimeError("evaluator failed")
        assert board == original
