"""
Annealing Brain

Default brain: both decision phases are time-boxed simulated annealing
searches scored by the position evaluator.

- Deploy: DeployPlanner over our border territories
- Attack: AttackPlanner per border territory, frontier transfers for the
  interior
- Optional Monte Carlo pass that logs how often the chosen attacks would
  succeed under the real dice rule
"""

import logging
import random
import time
from typing import Callable, List, Optional

from brain.interface import Brain, TurnContext
from engine.attack_planner import AttackPlanner
from engine.deploy_planner import DeployPlanner
from engine.evaluators import PositionEvaluator
from engine.models import AttackTransferMove, PlaceArmiesMove
from engine.monte_carlo import MonteCarloSimulator
from engine.strategy_config import StrategyConfig, get_config

logger = logging.getLogger(__name__)


class AnnealingBrain(Brain):
    """
    Search-based brain.

    Args:
        config: Strategy config (defaults to the global singleton)
        seed: Seed for the brain's random source (None = nondeterministic)
        clock: Seconds-valued clock shared by both planners
    """

    def __init__(self, config: Optional[StrategyConfig] = None, seed: Optional[int] = None,
                 clock: Callable[[], float] = time.monotonic):
        config = config or get_config()
        self.rng = random.Random(seed)
        self.evaluator = PositionEvaluator.from_config(config)

        monte_carlo = None
        if config.get('monte_carlo', 'enabled', default=False):
            monte_carlo = MonteCarloSimulator(config.get_section('monte_carlo'), seed=seed)

        self.deploy_planner = DeployPlanner(self.evaluator, config, self.rng, clock)
        self.attack_planner = AttackPlanner(self.evaluator, config, self.rng, clock,
                                            monte_carlo=monte_carlo)
        logger.info(f"AnnealingBrain ready (seed={seed}, monte_carlo={monte_carlo is not None})")

    def get_personality_name(self) -> str:
        return "Annealing"

    def place_armies(self, context: TurnContext) -> List[PlaceArmiesMove]:
        return self.deploy_planner.plan_moves(context.board, context.my_name, context.opponent_name,
                                              context.army_pool, context.budget_ms)

    def attack_transfer(self, context: TurnContext) -> List[AttackTransferMove]:
        return self.attack_planner.plan_turn(context.board, context.my_name,
                                             context.opponent_name, context.budget_ms)
