"""
Deploy Planner Test Suite

Tests the annealed DeployPlanner on small hand-built maps.
Run with: python -m pytest tests/test_deploy_planner.py -v
"""

import random

import pytest

from conftest import ME, OPP, FakeClock, build_board
from engine.board_state import NEUTRAL
from engine.deploy_planner import DeployPlanner
from engine.evaluators import PositionEvaluator
from engine.models import PlaceArmiesMove
from engine.state import SearchState


def planner(config, seed=0, evaluator=None):
    return DeployPlanner(evaluator=evaluator, config=config, rng=random.Random(seed),
                         clock=FakeClock(step=0.001))


@pytest.fixture
def front_board():
    # Two fronts: 1 faces the opponent, 3 faces neutrals; 2 is interior
    return build_board(
        [(1, ME, 2), (2, ME, 4), (3, ME, 1), (4, OPP, 6), (5, NEUTRAL, 2), (6, NEUTRAL, 2)],
        [(1, 2), (2, 3), (1, 4), (3, 5), (3, 6)],
    )


class TestEligibility:
    """Tests for which territories may receive armies."""

    def test_border_only(self, plain_config, front_board):
        assert planner(plain_config).eligible_territories(front_board, ME) == [1, 3]

    def test_enclosed_fallback(self, plain_config):
        board = build_board([(1, ME, 1), (2, ME, 1)], [(1, 2)])
        assert planner(plain_config).eligible_territories(board, ME) == [1, 2]

    def test_fallback_disabled(self, make_config):
        config = make_config({"deploy_strategy": {"enclosed_fallback": False}})
        board = build_board([(1, ME, 1), (2, ME, 1)], [(1, 2)])
        assert planner(config).eligible_territories(board, ME) == []


class TestConservation:
    """The whole pool is always placed."""

    def test_every_pool_size(self, plain_config, front_board):
        for pool in range(0, 41):
            plan = planner(plain_config, seed=pool).plan_deployments(front_board, ME, OPP, pool, 20)
            assert sum(plan.values()) == pool
            assert all(amount > 0 for amount in plan.values())
            assert set(plan) <= {1, 3}

    def test_with_risk_penalty(self, make_config, front_board):
        config = make_config({"evaluator": {"at_risk_penalty": True}})
        for pool in (1, 5, 12):
            plan = planner(config, seed=pool).plan_deployments(front_board, ME, OPP, pool, 30)
            assert sum(plan.values()) == pool

    def test_zero_budget_still_places_everything(self, plain_config, front_board):
        plan = planner(plain_config).plan_deployments(front_board, ME, OPP, 7, 0)
        assert sum(plan.values()) == 7

    def test_board_not_modified(self, plain_config, front_board):
        original = front_board.clone()
        planner(plain_config).plan_deployments(front_board, ME, OPP, 9, 20)
        assert front_board == original


class TestInfeasible:
    """Empty plans instead of errors."""

    def test_zero_pool(self, plain_config, front_board):
        assert planner(plain_config).plan_deployments(front_board, ME, OPP, 0, 20) == {}

    def test_no_territories(self, plain_config, front_board):
        assert planner(plain_config).plan_deployments(front_board, "nobody", OPP, 5, 20) == {}


class TestEndToEnd:
    """Two owned territories, nothing else visible."""

    def test_all_armies_on_one_territory(self, plain_config):
        board = build_board([(1, ME, 2), (2, ME, 2)], [(1, 2)])
        deploy = planner(plain_config)
        assert deploy.plan_deployments(board, ME, OPP, 5, 50) == {1: 5}
        assert deploy.state == SearchState.DONE
        assert deploy.last_result is not None

    def test_plan_moves(self, plain_config):
        board = build_board([(1, ME, 2), (2, ME, 2)], [(1, 2)])
        moves = planner(plain_config).plan_moves(board, ME, OPP, 5, 50)
        assert moves == [PlaceArmiesMove(ME, 1, 5)]
        assert moves[0].to_command() == f"{ME} place_armies 1 5"


class TestReclaim:
    """Armies that change nothing are moved where they matter."""

    def test_idle_armies_move_to_threatened_front(self, plain_config, front_board):
        # Flat evaluator: every allocation is idle, so the whole pool goes to
        # the territory facing the most opponent armies
        class FlatEvaluator(PositionEvaluator):
            def utility(self, board, me, opponent):
                return 0.0

        deploy = planner(plain_config, evaluator=FlatEvaluator())
        assert deploy.plan_deployments(front_board, ME, OPP, 6, 20) == {1: 6}

    def test_risk_aware_defends_front(self, make_config):
        # 1 and 4 are both borders; only armies on 1 change the utility
        config = make_config({"evaluator": {"at_risk_penalty": True, "at_risk_weight": 10.0}})
        board = build_board(
            [(1, ME, 1), (2, ME, 5), (3, OPP, 4), (4, ME, 5), (5, NEUTRAL, 2)],
            [(1, 2), (1, 3), (2, 4), (4, 5)],
        )
        plan = planner(config).plan_deployments(board, ME, OPP, 4, 200)
        assert plan == {1: 4}
