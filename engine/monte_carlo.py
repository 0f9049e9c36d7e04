"""
Monte Carlo simulation for attack plan stress-testing.

Resolves attacks with the game's real dice rule instead of the expected
values the planners optimise against:
- each attacking army destroys a defender with p=0.6
- each defending army destroys an attacker with p=0.7
- the territory falls when every defender is destroyed and at least one
  attacker survives

Used to log how often the chosen attacks would actually succeed.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from engine.board_state import BoardState
from engine.combat import ATTACKER_KILL_RATE, DEFENDER_KILL_RATE
from engine.models import AttackTransferMove

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """Aggregate results from N simulated attacks."""
    capture_rate: float          # 0.0 - 1.0, fraction of trials that took the territory
    avg_attackers_lost: float
    avg_defenders_lost: float
    avg_survivors: float         # Attackers moving in, averaged over captures only
    worst_case_survivors: int    # Fewest survivors over captures (0 when never captured)
    n_trials: int


class MonteCarloSimulator:
    """
    Vectorised attack simulator.

    Args:
        config: Optional dict with key n_simulations (default 1000)
        seed: Seed for numpy's Generator
    """

    DEFAULT_N_SIMULATIONS = 1000

    def __init__(self, config: Optional[Dict] = None, seed: Optional[int] = None):
        config = config or {}
        self.n_simulations = int(config.get('n_simulations', self.DEFAULT_N_SIMULATIONS))
        self.rng = np.random.default_rng(seed)
        logger.debug(f"MonteCarloSimulator initialized: n={self.n_simulations}, seed={seed}")

    def simulate_attack(self, attackers: int, defenders: int) -> SimulationResult:
        """
        Run N independent resolutions of one attack.

        Raises:
            ValueError: on negative army counts
        """
        if attackers < 0 or defenders < 0:
            raise ValueError(f"Army counts must be non-negative (got {attackers} vs {defenders})")
        n = self.n_simulations
        if n <= 0 or attackers == 0:
            return SimulationResult(capture_rate=0.0, avg_attackers_lost=0.0,
                                    avg_defenders_lost=0.0, avg_survivors=0.0,
                                    worst_case_survivors=0, n_trials=max(n, 0))

        defenders_lost = np.minimum(self.rng.binomial(attackers, ATTACKER_KILL_RATE, size=n), defenders)
        attackers_lost = np.minimum(self.rng.binomial(defenders, DEFENDER_KILL_RATE, size=n), attackers)
        captured = (defenders_lost >= defenders) & (attackers_lost < attackers)
        survivors = attackers - attackers_lost

        if captured.any():
            avg_survivors = float(survivors[captured].mean())
            worst = int(survivors[captured].min())
        else:
            avg_survivors = 0.0
            worst = 0

        return SimulationResult(
            capture_rate=float(captured.mean()),
            avg_attackers_lost=float(attackers_lost.mean()),
            avg_defenders_lost=float(defenders_lost.mean()),
            avg_survivors=avg_survivors,
            worst_case_survivors=worst,
            n_trials=n,
        )

    def simulate_plan(self, board: BoardState,
                      moves: List[AttackTransferMove]) -> Dict[Tuple[int, int], SimulationResult]:
        """
        Simulate every attack in a plan against the current defenders.

        Transfers (target owned by the mover) are skipped. Attacks are
        treated independently.
        """
        results: Dict[Tuple[int, int], SimulationResult] = {}
        for move in moves:
            target = board.get(move.to_id)
            if target is None or target.owner == move.player_name:
                continue
            results[(move.from_id, move.to_id)] = self.simulate_attack(move.armies, target.armies)
        return results
