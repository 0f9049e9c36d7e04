"""
What-If Simulator

Applies hypothetical deployments and attacks to a board snapshot and
reverses them exactly, so an optimizer can score thousands of candidates
on one private copy.

Attacks are resolved by expected value (no dice): the attacker kills
floor(0.6 * sent) defenders and, on a predicted failure, loses
min(sent, floor(0.7 * defenders)). Use it to rank allocations only.

Every simulate_attacks() must be paired with undo_simulation() before the
snapshot is reused; simulated_attacks() does the pairing for you.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import List, Sequence
import logging

from engine.board_state import BoardState
from engine.combat import expected_losses

logger = logging.getLogger(__name__)


class SimulationError(ValueError):
    """Raised when simulate/undo inputs are inconsistent."""
    pass


def _check_lengths(**sequences: Sequence) -> None:
    lengths = {name: len(seq) for name, seq in sequences.items()}
    if len(set(lengths.values())) > 1:
        raise SimulationError(f"Mismatched input lengths: {lengths}")


# =============================================================================
# Deployments
# =============================================================================

def apply_deployments(board: BoardState, territory_ids: Sequence[int],
                      amounts: Sequence[int]) -> BoardState:
    """Add amounts[i] armies to territory_ids[i]. Returns the same board."""
    _check_lengths(territory_ids=territory_ids, amounts=amounts)
    territories = board.territories
    for tid, amount in zip(territory_ids, amounts):
        territories[tid].armies += amount
    return board


def deapply_deployments(board: BoardState, territory_ids: Sequence[int],
                        amounts: Sequence[int]) -> BoardState:
    """Exact inverse of apply_deployments()."""
    _check_lengths(territory_ids=territory_ids, amounts=amounts)
    territories = board.territories
    for tid, amount in zip(territory_ids, amounts):
        territories[tid].armies -= amount
    return board


# =============================================================================
# Attacks
# =============================================================================

@dataclass
class AttackSnapshot:
    """Everything undo_simulation() needs to restore the touched territories."""
    from_id: int
    to_ids: List[int]
    defender_counts: List[int]
    owners: List[str]
    attacker_total: int


def capture_attack_state(board: BoardState, from_id: int,
                         to_ids: Sequence[int]) -> AttackSnapshot:
    """Record armies and owners of every territory an attack vector touches."""
    territories = board.territories
    return AttackSnapshot(
        from_id=from_id,
        to_ids=list(to_ids),
        defender_counts=[territories[tid].armies for tid in to_ids],
        owners=[territories[tid].owner for tid in to_ids],
        attacker_total=territories[from_id].armies,
    )


def simulate_attacks(board: BoardState, from_id: int, attack_amounts: Sequence[int],
                     to_ids: Sequence[int], attacker_name: str) -> BoardState:
    """
    Resolve a vector of attacks from one territory by expected value.

    Entries whose target is from_id itself (the reserve bucket) are skipped.

    Raises:
        SimulationError: if attack_amounts and to_ids differ in length
    """
    _check_lengths(attack_amounts=attack_amounts, to_ids=to_ids)
    territories = board.territories
    source = territories[from_id]

    for amount, to_id in zip(attack_amounts, to_ids):
        if to_id == from_id:
            continue
        target = territories[to_id]
        defenders = target.armies
        defenders_destroyed, attackers_destroyed = expected_losses(amount, defenders)

        if defenders_destroyed >= defenders:
            # Predicted capture
            target.owner = attacker_name
            target.armies = amount - attackers_destroyed
            source.armies -= amount
        else:
            source.armies -= attackers_destroyed
            target.armies -= defenders_destroyed

    return board


def undo_simulation(board: BoardState, from_id: int, attack_amounts: Sequence[int],
                    defender_counts: Sequence[int], to_ids: Sequence[int],
                    owners: Sequence[str], attacker_total: int) -> BoardState:
    """
    Restore every territory touched by simulate_attacks().

    Raises:
        SimulationError: if the per-target sequences differ in length
    """
    _check_lengths(attack_amounts=attack_amounts, defender_counts=defender_counts,
                   to_ids=to_ids, owners=owners)
    territories = board.territories
    for to_id, defenders, owner in zip(to_ids, defender_counts, owners):
        territories[to_id].armies = defenders
        territories[to_id].owner = owner
    territories[from_id].armies = attacker_total
    return board


def undo_from_snapshot(board: BoardState, snapshot: AttackSnapshot,
                       attack_amounts: Sequence[int]) -> BoardState:
    return undo_simulation(board, snapshot.from_id, attack_amounts, snapshot.defender_counts,
                           snapshot.to_ids, snapshot.owners, snapshot.attacker_total)


@contextmanager
def simulated_attacks(board: BoardState, from_id: int, attack_amounts: Sequence[int],
                      to_ids: Sequence[int], attacker_name: str):
    """
    Context manager for a simulate/undo pair.

    Usage:
        with simulated_attacks(board, src, amounts, targets, me) as sim_board:
            score = evaluator.utility(sim_board, me, opponent)
    """
    snapshot = capture_attack_state(board, from_id, to_ids)
    simulate_attacks(board, from_id, attack_amounts, to_ids, attacker_name)
    try:
        yield board
    finally:
        undo_from_snapshot(board, snapshot, attack_amounts)


@contextmanager
def applied_deployments(board: BoardState, territory_ids: Sequence[int],
                        amounts: Sequence[int]):
    """Context manager for an apply/deapply pair."""
    apply_deployments(board, territory_ids, amounts)
    try:
        yield board
    finally:
        deapply_deployments(board, territory_ids, amounts)
