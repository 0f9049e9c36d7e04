"""
Combat Model

Probability that an attack captures its target under the game's combat
rule: every attacking army destroys one defender with p=0.6, every
defending army destroys one attacker with p=0.7.

The capture chance is P(Binomial(attackers, 0.6) >= defenders), short-cut
by closed-form bounds on either side of the expected kill counts. Mass
terms are evaluated in log space (math.lgamma) so large army counts never
overflow a float.
"""

import logging
import math
from functools import lru_cache

logger = logging.getLogger(__name__)

ATTACKER_KILL_RATE = 0.6
DEFENDER_KILL_RATE = 0.7

# Below this defenders/attackers ratio the attacker always wins
CERTAIN_CAPTURE_RATIO = 0.504
# Band above the certain ratio where the binomial sum is evaluated
UNCERTAINTY_MARGIN = 0.16


def binomial_pmf(n: int, k: int, p: float) -> float:
    """P(X == k) for X ~ Binomial(n, p)."""
    if k < 0 or k > n:
        return 0.0
    if p <= 0.0:
        return 1.0 if k == 0 else 0.0
    if p >= 1.0:
        return 1.0 if k == n else 0.0
    log_coeff = math.lgamma(n + 1) - math.lgamma(k + 1) - math.lgamma(n - k + 1)
    return math.exp(log_coeff + k * math.log(p) + (n - k) * math.log1p(-p))


# The k == n mass term is replaced by this fixed value. Kept for
# compatibility with the tuned bot. Integer defender counts never reach
# it; a fractional count above the attacker count does, and there the
# probability is not monotone in attackers: P(1, 1.5) = 0.384 while
# P(2, 1.5) = 0.36.
BOUNDARY_MASS = binomial_pmf(3, 3, ATTACKER_KILL_RATE)


def binomial_cdf(k: int, n: int, p: float) -> float:
    """
    P(X <= k) for X ~ Binomial(n, p), summed term by term.

    The k == n term is BOUNDARY_MASS, so the full sum can exceed 1
    and is clamped.
    """
    if k < 0:
        return 0.0
    total = math.fsum(BOUNDARY_MASS if i == n else binomial_pmf(n, i, p)
                      for i in range(min(k, n) + 1))
    return min(1.0, total)


@lru_cache(maxsize=65536)
def probability_to_take(attackers: float, defenders: float) -> float:
    """
    Probability that `attackers` armies destroy all `defenders`.

    Args:
        attackers: Attacking army count (>= 0)
        defenders: Defending army count (>= 0)

    Returns:
        Probability in [0, 1]

    Raises:
        ValueError: on negative counts
    """
    if attackers < 0 or defenders < 0:
        raise ValueError(f"Army counts must be non-negative (got {attackers} vs {defenders})")

    if attackers == 0:
        return 1.0 if defenders == 0 else 0.0

    if defenders < CERTAIN_CAPTURE_RATIO * attackers:
        return 1.0
    if defenders > attackers * CERTAIN_CAPTURE_RATIO + attackers * UNCERTAINTY_MARGIN + 1:
        return 0.0

    # Kills the attacker must land; the defender survives on any fewer
    n = int(attackers)
    needed = math.ceil(defenders)
    return min(1.0, max(0.0, 1.0 - binomial_cdf(needed - 1, n, ATTACKER_KILL_RATE)))


def expected_losses(attackers: int, defenders: int):
    """
    Expected-value outcome of one attack, as used by the what-if simulator.

    Returns:
        (defenders_destroyed, attackers_destroyed_if_loss)
    """
    defenders_destroyed = int(ATTACKER_KILL_RATE * attackers)
    attackers_destroyed = min(attackers, int(DEFENDER_KILL_RATE * defenders))
    return defenders_destroyed, attackers_destroyed
