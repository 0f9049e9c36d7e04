"""
Decision Safety Module

Guarantees an answer to every request from the match engine so the bot
NEVER times out on a turn. This is the last line of defense: whatever the
brain returns (or raises), the parser passes it through here before
anything is written to stdout.

Design Philosophy:
- EVERY go/pick request gets a response
- A bad move is better than no move (a timeout forfeits the whole turn)
- Illegal orders are dropped here rather than sent and rejected
- Log everything that gets corrected, but never fail silently
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

from engine.board_state import BoardState
from engine.models import AttackTransferMove, PlaceArmiesMove

logger = logging.getLogger(__name__)

NO_MOVES = "No moves"


@dataclass
class SafetyDecision:
    """A guaranteed safe response"""
    request: str
    value: str
    reason: str
    was_emergency: bool = False


class DecisionSafety:
    """
    Validation and emergency fallbacks for brain output.

    All methods are static; the class only groups them, as the
    parser uses it like a namespace.
    """

    KNOWN_REQUESTS = {
        'pick_starting_region',
        'place_armies',
        'attack/transfer',
    }

    @staticmethod
    def get_emergency_response(request: str, pickable: Sequence[int] = ()) -> SafetyDecision:
        """
        Response used when the brain raised or returned nothing usable.

        Picks fall back to the first pickable region; move phases to
        "No moves".
        """
        if request == 'pick_starting_region':
            if pickable:
                value = str(pickable[0])
                reason = f"Emergency: picking first offered region {value}"
            else:
                value = NO_MOVES
                reason = "Emergency: no regions offered"
        elif request in DecisionSafety.KNOWN_REQUESTS:
            value = NO_MOVES
            reason = f"Emergency: no {request} orders"
        else:
            logger.error(f"🚨 UNKNOWN REQUEST TYPE: {request}")
            value = NO_MOVES
            reason = f"Emergency: unknown request '{request}'"

        logger.warning(f"🆘 {reason}")
        return SafetyDecision(request=request, value=value, reason=reason, was_emergency=True)

    @staticmethod
    def ensure_valid_pick(choice: Optional[int], pickable: Sequence[int]) -> Tuple[Optional[int], str]:
        """
        Make sure a starting pick is one of the offered regions.

        Returns (corrected_choice, reason_if_corrected)
        """
        if choice in pickable:
            return choice, ""
        if pickable:
            reason = f"SAFETY FORCED: pick {choice} not offered, using {pickable[0]}"
            return pickable[0], reason
        return None, "SAFETY CRITICAL: no regions offered"

    @staticmethod
    def ensure_valid_placements(moves: Sequence[PlaceArmiesMove], board: BoardState,
                                my_name: str, army_pool: int) -> Tuple[List[PlaceArmiesMove], str]:
        """
        Drop placements the engine would reject.

        A placement is kept if it targets a territory we own with a
        positive amount, and only while the running total fits the pool.

        Returns (kept_moves, reason_if_corrected)
        """
        kept: List[PlaceArmiesMove] = []
        dropped: List[PlaceArmiesMove] = []
        placed = 0
        for move in moves:
            territory = board.get(move.territory_id)
            if territory is None or not territory.owned_by(my_name):
                problem = f"territory {move.territory_id} not ours"
            elif move.armies <= 0:
                problem = f"non-positive amount on {move.territory_id}"
            elif placed + move.armies > army_pool:
                problem = f"{move.armies} on {move.territory_id} exceeds pool of {army_pool}"
            else:
                placed += move.armies
                kept.append(move)
                continue
            dropped.append(replace(move, illegal_move=problem))

        return kept, DecisionSafety._drop_reason("placements", dropped)

    @staticmethod
    def ensure_valid_attacks(moves: Sequence[AttackTransferMove], board: BoardState,
                             my_name: str) -> Tuple[List[AttackTransferMove], str]:
        """
        Drop attack/transfer orders the engine would reject.

        An order is kept if it leaves one of our territories for an adjacent
        one with a positive amount, and the source still keeps one army
        after all its earlier orders.

        Returns (kept_moves, reason_if_corrected)
        """
        kept: List[AttackTransferMove] = []
        dropped: List[AttackTransferMove] = []
        sent: Dict[int, int] = defaultdict(int)
        for move in moves:
            source = board.get(move.from_id)
            if source is None or not source.owned_by(my_name):
                problem = f"source {move.from_id} not ours"
            elif move.to_id not in source.neighbors:
                problem = f"{move.from_id}->{move.to_id} not adjacent"
            elif move.armies <= 0:
                problem = f"non-positive amount {move.from_id}->{move.to_id}"
            elif sent[move.from_id] + move.armies > source.armies - 1:
                problem = (f"{move.from_id} would send {sent[move.from_id] + move.armies} "
                           f"of {source.armies} armies")
            else:
                sent[move.from_id] += move.armies
                kept.append(move)
                continue
            dropped.append(replace(move, illegal_move=problem))

        return kept, DecisionSafety._drop_reason("orders", dropped)

    @staticmethod
    def _drop_reason(kind: str, dropped: Sequence) -> str:
        """Dropped moves in the engine's illegal_move form, or "" if none."""
        if not dropped:
            return ""
        return f"SAFETY DROPPED {kind}: {'; '.join(move.to_command() for move in dropped)}"

    @staticmethod
    def render(moves: Sequence) -> str:
        """Comma-joined move commands, or "No moves"."""
        if not moves:
            return NO_MOVES
        return ",".join(move.to_command() for move in moves)
