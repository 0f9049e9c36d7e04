"""
Bot State - What the match engine has told us so far

Tracks:
- Match settings (player names, reinforcement pool, time limits)
- The full map from setup_map, and the visible map rebuilt on every update_map
- Starting-region picks
- The opponent's last visible moves

The visible map is the authoritative board handed to the brain. It is
only mutated here, between decision phases.
"""

import logging
from typing import List, Optional, Sequence, Union

from engine.board_state import BoardState, UNKNOWN
from engine.models import AttackTransferMove, PlaceArmiesMove
from engine.strategy_config import StrategyConfig, get_config

logger = logging.getLogger(__name__)

# Army counts the match engine assigns before the first update_map
DEFAULT_NEUTRAL_ARMIES = 2
WASTELAND_ARMIES = 6

Move = Union[PlaceArmiesMove, AttackTransferMove]


class BotState:
    """Accumulated match state, fed line by line by the parser."""

    def __init__(self):
        # Settings
        self.my_name: str = ""
        self.opponent_name: str = ""
        self.starting_armies: int = 0
        self.timebank: int = 0
        self.time_per_move: int = 0
        self.max_rounds: int = 0
        self.starting_pick_amount: int = 0
        self.starting_regions: List[int] = []

        # Maps
        self.full_map = BoardState()
        self.visible_map = BoardState()
        self.wastelands: List[int] = []
        self.opponent_starting_regions: List[int] = []

        # Picks
        self.pickable_regions: List[int] = []
        self.picked_regions: List[int] = []

        # Rounds
        self.round_number: int = 0
        self.opponent_moves: List[Move] = []

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def update_settings(self, key: str, values: Sequence[str]) -> None:
        """Apply one `settings <key> <values...>` line."""
        if not values:
            logger.warning(f"Setting '{key}' has no value")
            return

        if key == "your_bot":
            self.my_name = values[0]
        elif key == "opponent_bot":
            self.opponent_name = values[0]
        elif key == "starting_armies":
            self.starting_armies = int(values[0])
        elif key == "timebank":
            self.timebank = int(values[0])
        elif key == "time_per_move":
            self.time_per_move = int(values[0])
        elif key == "max_rounds":
            self.max_rounds = int(values[0])
        elif key == "starting_pick_amount":
            self.starting_pick_amount = int(values[0])
        elif key == "starting_regions":
            self.starting_regions = [int(v) for v in values]
        else:
            logger.debug(f"Ignoring unknown setting '{key}'")

    # ------------------------------------------------------------------
    # Map setup
    # ------------------------------------------------------------------

    def setup_map(self, kind: str, values: Sequence[str]) -> None:
        """
        Apply one `setup_map <kind> <values...>` line to the full map.

        Raises:
            ValueError: on malformed numbers or an odd number of pair values
        """
        if kind == "super_regions":
            for group_id, bonus in self._pairs(kind, values):
                self.full_map.add_group(int(group_id), int(bonus))
        elif kind == "regions":
            for territory_id, group_id in self._pairs(kind, values):
                self.full_map.add_territory(int(territory_id), int(group_id),
                                            owner=UNKNOWN, armies=DEFAULT_NEUTRAL_ARMIES)
        elif kind == "neighbors":
            for territory_id, adjacent in self._pairs(kind, values):
                for other in adjacent.split(","):
                    self.full_map.add_edge(int(territory_id), int(other))
        elif kind == "wastelands":
            for value in values:
                territory = self.full_map.get(int(value))
                if territory is None:
                    logger.warning(f"Wasteland {value} is not on the map")
                    continue
                territory.armies = WASTELAND_ARMIES
                self.wastelands.append(territory.territory_id)
        elif kind == "opponent_starting_regions":
            self.opponent_starting_regions = [int(v) for v in values]
            for territory_id in self.opponent_starting_regions:
                territory = self.full_map.get(territory_id)
                if territory is not None and self.opponent_name:
                    territory.owner = self.opponent_name
        else:
            logger.warning(f"Unknown setup_map section '{kind}'")
            return

        # Until the first update_map, the visible map is the full map
        self.visible_map = self.full_map.clone()

    @staticmethod
    def _pairs(kind: str, values: Sequence[str]):
        if len(values) % 2 != 0:
            raise ValueError(f"setup_map {kind} expects id/value pairs, got {len(values)} values")
        return zip(values[0::2], values[1::2])

    # ------------------------------------------------------------------
    # Per-round updates
    # ------------------------------------------------------------------

    def update_map(self, values: Sequence[str]) -> None:
        """
        Rebuild the visible map from `update_map <id> <owner> <armies> ...`.

        Territories not mentioned stay on the board as UNKNOWN.
        """
        if len(values) % 3 != 0:
            raise ValueError(f"update_map expects id/owner/armies triples, got {len(values)} values")

        visible = self.full_map.clone()
        for territory in visible:
            territory.owner = UNKNOWN
        for i in range(0, len(values), 3):
            territory = visible.get(int(values[i]))
            if territory is None:
                logger.warning(f"update_map mentions unknown territory {values[i]}")
                continue
            territory.owner = values[i + 1]
            territory.armies = int(values[i + 2])

        self.visible_map = visible
        self.round_number += 1
        owned = len(visible.owned_territories(self.my_name))
        held = self.held_groups()
        logger.info(f"Round {self.round_number}: {owned} territories owned, "
                    f"groups held {held} (+{self.group_bonus(held)}), "
                    f"{self.starting_armies} armies to place")
        logger.debug(f"Visible map: {visible.map_string()}")

    def held_groups(self) -> List[int]:
        """Ids of the groups we fully own on the visible map."""
        visible = self.visible_map
        return [g.group_id for g in visible.groups.values() if g.owner(visible) == self.my_name]

    def group_bonus(self, group_ids: Sequence[int]) -> int:
        return sum(self.visible_map.group(gid).bonus for gid in group_ids)

    def read_opponent_moves(self, values: Sequence[str]) -> List[Move]:
        """Parse `opponent_moves` into move records, stopping at the first malformed entry."""
        moves: List[Move] = []
        i = 0
        while i < len(values):
            player = values[i]
            action = values[i + 1] if i + 1 < len(values) else ""
            if action == "place_armies" and i + 3 < len(values):
                moves.append(PlaceArmiesMove(player, int(values[i + 2]), int(values[i + 3])))
                i += 4
            elif action == "attack/transfer" and i + 4 < len(values):
                moves.append(AttackTransferMove(player, int(values[i + 2]),
                                                int(values[i + 3]), int(values[i + 4])))
                i += 5
            else:
                logger.warning(f"Could not parse opponent move starting at '{' '.join(values[i:i + 3])}'")
                break

        self.opponent_moves = moves
        if moves:
            logger.debug(f"Opponent moves: {[m.to_command() for m in moves]}")
        return moves

    # ------------------------------------------------------------------
    # Picks and placements
    # ------------------------------------------------------------------

    def set_pickable_starting_regions(self, values: Sequence[str]) -> None:
        self.pickable_regions = [int(v) for v in values]

    def record_pick(self, territory_id: Optional[int]) -> None:
        if territory_id is not None:
            self.picked_regions.append(territory_id)

    def apply_placements(self, moves: Sequence[PlaceArmiesMove]) -> None:
        """Add our emitted placements to the visible map before the attack phase."""
        for move in moves:
            territory = self.visible_map.get(move.territory_id)
            if territory is None or not territory.owned_by(move.player_name):
                logger.warning(f"Placement on territory {move.territory_id} not applied: not ours")
                continue
            territory.armies += move.armies

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def phase_budget_ms(self, timeout_ms: float, config: Optional[StrategyConfig] = None) -> float:
        """
        Search budget for one decision phase.

        The engine's timeout is the whole timebank; we cap it at the
        per-move allowance and keep a safety fraction for I/O.
        """
        config = config or get_config()
        cap = self.time_per_move or config.get_global('phase_budget_cap_ms', 500)
        fraction = float(config.get_global('time_fraction', 0.8))
        return max(0.0, min(float(timeout_ms), float(cap)) * fraction)
