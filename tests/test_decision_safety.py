"""
Tests for the never-hang safety layer.
"""

from conftest import ME, OPP, build_board
from engine.board_state import NEUTRAL
from engine.decision_safety import NO_MOVES, DecisionSafety
from engine.models import AttackTransferMove, PlaceArmiesMove


def board():
    return build_board([(1, ME, 4), (2, ME, 1), (3, NEUTRAL, 2), (4, OPP, 3)],
                       [(1, 2), (1, 3), (2, 4)])


class TestEmergencyResponses:
    """Tests for fallback answers."""

    def test_pick_falls_back_to_first_offered(self):
        decision = DecisionSafety.get_emergency_response('pick_starting_region', [7, 3])
        assert decision.value == "7"
        assert decision.was_emergency

    def test_pick_with_nothing_offered(self):
        assert DecisionSafety.get_emergency_response('pick_starting_region').value == NO_MOVES

    def test_move_phases(self):
        assert DecisionSafety.get_emergency_response('place_armies').value == NO_MOVES
        assert DecisionSafety.get_emergency_response('attack/transfer').value == NO_MOVES
        assert DecisionSafety.get_emergency_response('dance').value == NO_MOVES

    def test_pick_correction(self):
        assert DecisionSafety.ensure_valid_pick(3, [1, 3]) == (3, "")
        choice, reason = DecisionSafety.ensure_valid_pick(9, [1, 3])
        assert choice == 1
        assert "not offered" in reason


class TestPlacements:
    """Tests for placement validation."""

    def test_valid_placements_kept(self):
        moves = [PlaceArmiesMove(ME, 1, 3), PlaceArmiesMove(ME, 2, 2)]
        assert DecisionSafety.ensure_valid_placements(moves, board(), ME, 5) == (moves, "")

    def test_dropped_placements_reported_as_illegal_moves(self):
        moves = [PlaceArmiesMove(ME, 4, 1), PlaceArmiesMove(ME, 1, 0), PlaceArmiesMove(ME, 1, 9)]
        kept, reason = DecisionSafety.ensure_valid_placements(moves, board(), ME, 5)
        assert kept == []
        assert f"{ME} illegal_move territory 4 not ours" in reason
        assert f"{ME} illegal_move non-positive amount on 1" in reason
        assert f"{ME} illegal_move 9 on 1 exceeds pool of 5" in reason
        # The brain's records are left untouched
        assert all(move.illegal_move == "" for move in moves)


class TestAttacks:
    """Tests for attack/transfer validation."""

    def test_source_keeps_one_army(self):
        moves = [AttackTransferMove(ME, 1, 3, 2), AttackTransferMove(ME, 1, 2, 2)]
        kept, reason = DecisionSafety.ensure_valid_attacks(moves, board(), ME)
        assert kept == moves[:1]
        assert reason == f"SAFETY DROPPED orders: {ME} illegal_move 1 would send 4 of 4 armies"

    def test_rejections(self):
        moves = [AttackTransferMove(ME, 3, 1, 1), AttackTransferMove(ME, 1, 4, 1),
                 AttackTransferMove(ME, 1, 3, 0)]
        kept, reason = DecisionSafety.ensure_valid_attacks(moves, board(), ME)
        assert kept == []
        assert "source 3 not ours" in reason
        assert "1->4 not adjacent" in reason
        assert "non-positive amount 1->3" in reason

    def test_render(self):
        assert DecisionSafety.render([]) == NO_MOVES
        moves = [AttackTransferMove(ME, 1, 3, 2), AttackTransferMove(ME, 2, 4, 1)]
        assert DecisionSafety.render(moves) == (f"{ME} attack/transfer 1 3 2,"
                                                f"{ME} attack/transfer 2 4 1")
