"""
Attack Planner Test Suite

Tests:
- Per-territory search respects the source's army budget
- Threshold cleanup (cancel / top up / keep / deal leftovers)
- Empty plans when there is nothing to attack
- Interior transfers towards the front
"""

import random

import pytest

from conftest import ME, OPP, FakeClock, build_board
from engine.attack_planner import AttackPlanner
from engine.board_state import NEUTRAL
from engine.combat import probability_to_take
from engine.models import AttackTransferMove
from engine.state import SearchState


def planner(config, seed=0):
    return AttackPlanner(config=config, rng=random.Random(seed), clock=FakeClock(step=0.001))


@pytest.fixture
def raid_board():
    # Source 1 with three foreign neighbours and one friendly one
    return build_board(
        [(1, ME, 12), (2, OPP, 3), (3, NEUTRAL, 2), (4, NEUTRAL, 6), (5, ME, 1)],
        [(1, 2), (1, 3), (1, 4), (1, 5)],
    )


class TestPlanAttacks:
    """Tests for the annealed per-territory search."""

    def test_budget_bound(self, plain_config, raid_board):
        for seed in range(10):
            plan = planner(plain_config, seed).plan_attacks(raid_board, 1, ME, OPP, 50)
            assert sum(plan.values()) <= raid_board.territory(1).armies - 1
            assert set(plan) <= {2, 3, 4}
            assert all(armies > 0 for armies in plan.values())

    def test_surviving_attacks_clear_commit_threshold(self, plain_config, raid_board):
        for seed in range(10):
            plan = planner(plain_config, seed).plan_attacks(raid_board, 1, ME, OPP, 50)
            for target, armies in plan.items():
                defenders = raid_board.territory(target).armies
                assert probability_to_take(armies, defenders) >= 0.6125

    def test_small_source(self, plain_config, raid_board):
        raid_board.territory(1).armies = 3
        for seed in range(5):
            plan = planner(plain_config, seed).plan_attacks(raid_board, 1, ME, OPP, 20)
            assert sum(plan.values()) <= 2

    def test_single_army_cannot_attack(self, plain_config, raid_board):
        raid_board.territory(1).armies = 1
        assert planner(plain_config).plan_attacks(raid_board, 1, ME, OPP, 20) == {}

    def test_no_foreign_neighbours(self, plain_config):
        board = build_board([(1, ME, 8), (2, ME, 2)], [(1, 2)])
        assert planner(plain_config).plan_attacks(board, 1, ME, OPP, 20) == {}

    def test_board_not_modified(self, plain_config, raid_board):
        original = raid_board.clone()
        planner(plain_config).plan_attacks(raid_board, 1, ME, OPP, 50)
        assert raid_board == original

    def test_state_after_search(self, plain_config, raid_board):
        attack = planner(plain_config)
        attack.plan_attacks(raid_board, 1, ME, OPP, 10)
        assert attack.state == SearchState.DONE
        assert attack.last_result is not None

    def test_takes_weak_neutral(self, plain_config):
        # 9 spare armies against a lone 2-army neutral: capturing it always helps
        board = build_board([(1, ME, 10), (2, NEUTRAL, 2)], [(1, 2)])
        plan = planner(plain_config).plan_attacks(board, 1, ME, OPP, 100)
        assert plan == {2: 9}


class TestApplyThresholds:
    """Tests for the deterministic cleanup pass."""

    @pytest.fixture
    def board(self):
        return build_board(
            [(1, ME, 20), (2, NEUTRAL, 2), (3, OPP, 10), (4, NEUTRAL, 2)],
            [(1, 2), (1, 3), (1, 4)],
        )

    def test_hopeless_attack_cancelled_and_reserve_dealt(self, plain_config, board):
        # 3 vs 2 is kept (0.648); 1 vs 10 is cancelled and its army goes to 3 vs 2
        amounts = planner(plain_config).apply_thresholds(board, [2, 3], [3, 1], 0)
        assert amounts == [4, 0]

    def test_marginal_attack_topped_up(self, plain_config, board):
        # 2 vs 2 is 0.36: one more army brings it to 0.648
        assert planner(plain_config).apply_thresholds(board, [2], [2], 1) == [3]

    def test_marginal_attack_cancelled_without_reserve(self, plain_config, board):
        assert planner(plain_config).apply_thresholds(board, [2], [2], 0) == [0]

    def test_leftover_reserve_round_robin(self, plain_config, board):
        assert planner(plain_config).apply_thresholds(board, [2, 4], [3, 3], 3) == [5, 4]

    def test_nothing_planned_keeps_reserve(self, plain_config, board):
        assert planner(plain_config).apply_thresholds(board, [2, 3], [0, 0], 7) == [0, 0]

    def test_thresholds_from_config(self, make_config, board):
        config = make_config({"attack_strategy": {"cancel_threshold": 0.5, "commit_threshold": 0.9}})
        # 2 vs 2 (0.36) is now below the cancel threshold
        assert planner(config).apply_thresholds(board, [2], [2], 5) == [0]


class TestPlanTurn:
    """Tests for the whole attack phase."""

    def test_interior_transfer(self, plain_config):
        # 1 - 2 - 3 - 4(enemy): 1 is interior with armies to move
        board = build_board([(1, ME, 5), (2, ME, 1), (3, ME, 1), (4, OPP, 3)],
                            [(1, 2), (2, 3), (3, 4)])
        moves = planner(plain_config).plan_turn(board, ME, OPP, 100)
        assert moves == [AttackTransferMove(ME, 1, 2, 4)]

    def test_transfer_cap(self, make_config):
        config = make_config({"attack_strategy": {"max_transfers": 1}})
        board = build_board([(1, ME, 5), (2, ME, 5), (3, ME, 1), (4, OPP, 3)],
                            [(1, 2), (2, 3), (3, 4)])
        moves = planner(config).plan_turn(board, ME, OPP, 100)
        assert moves == [AttackTransferMove(ME, 1, 2, 4)]

    def test_no_enemy_no_moves(self, plain_config):
        board = build_board([(1, ME, 7), (2, ME, 2)], [(1, 2)])
        assert planner(plain_config).plan_turn(board, ME, OPP, 100) == []

    def test_every_order_respects_source_budget(self, plain_config):
        board = build_board(
            [(1, ME, 9), (2, ME, 6), (3, ME, 4), (4, OPP, 3), (5, NEUTRAL, 2), (6, OPP, 5)],
            [(1, 2), (2, 3), (2, 4), (3, 5), (3, 6)],
        )
        moves = planner(plain_config).plan_turn(board, ME, OPP, 100)
        sent = {}
        for move in moves:
            assert move.player_name == ME
            assert move.to_id in board.territory(move.from_id).neighbors
            sent[move.from_id] = sent.get(move.from_id, 0) + move.armies
        for source, armies in sent.items():
            assert armies <= board.territory(source).armies - 1

    def test_monte_carlo_report(self, plain_config):
        from engine.monte_carlo import MonteCarloSimulator

        board = build_board([(1, ME, 10), (2, NEUTRAL, 2)], [(1, 2)])
        attack = AttackPlanner(config=plain_config, rng=random.Random(0),
                               clock=FakeClock(step=0.001),
                               monte_carlo=MonteCarloSimulator({'n_simulations': 50}, seed=1))
        assert attack.plan_turn(board, ME, OPP, 50) == [AttackTransferMove(ME, 1, 2, 9)]
