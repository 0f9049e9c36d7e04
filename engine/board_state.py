"""
Board State - Territory Graph

Holds the map as an id-addressed arena:
- Territories (owner, army count, neighbours, group membership)
- Groups (super-regions) with their capture bonus
- Copy-on-demand snapshots for what-if exploration

Territories reference neighbours and groups by id only, so clone() is a
plain copy of two dicts and never aliases the source board.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional
import logging

logger = logging.getLogger(__name__)

# Owner sentinels used by the match engine
NEUTRAL = "neutral"
UNKNOWN = "unknown"


@dataclass
class Territory:
    """A single territory (region) on the map."""
    territory_id: int
    group_id: int
    owner: str = UNKNOWN
    armies: int = 0
    neighbors: List[int] = field(default_factory=list)  # Ordered, no duplicates
    wanted_armies: int = 0                               # Scratch value for deploy heuristics

    def owned_by(self, player_name: str) -> bool:
        return self.owner == player_name

    def copy(self) -> 'Territory':
        return Territory(
            territory_id=self.territory_id,
            group_id=self.group_id,
            owner=self.owner,
            armies=self.armies,
            neighbors=list(self.neighbors),
            wanted_armies=self.wanted_armies,
        )

    def __repr__(self):
        return f"Territory({self.territory_id}, owner={self.owner}, armies={self.armies})"


@dataclass
class Group:
    """A super-region: bonus armies for owning every member territory."""
    group_id: int
    bonus: int
    members: List[int] = field(default_factory=list)

    def owner(self, board: 'BoardState') -> Optional[str]:
        """Name of the player owning every member, or None."""
        if not self.members:
            return None
        owners = {board.territory(tid).owner for tid in self.members}
        if len(owners) == 1:
            return owners.pop()
        return None

    def copy(self) -> 'Group':
        return Group(group_id=self.group_id, bonus=self.bonus, members=list(self.members))


class BoardState:
    """
    Map snapshot.

    The authoritative instance is owned by the protocol layer; optimizers
    call clone() and mutate their private copy freely.
    """

    def __init__(self):
        self.territories: Dict[int, Territory] = {}
        self.groups: Dict[int, Group] = {}

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_group(self, group_id: int, bonus: int) -> Group:
        if group_id in self.groups:
            logger.warning(f"Group {group_id} cannot be added: id already exists")
            return self.groups[group_id]
        group = Group(group_id=group_id, bonus=bonus)
        self.groups[group_id] = group
        return group

    def add_territory(self, territory_id: int, group_id: int,
                      owner: str = UNKNOWN, armies: int = 0) -> Territory:
        """
        Add a territory and register it with its group.

        Raises:
            KeyError: if the group has not been added yet
        """
        if territory_id in self.territories:
            logger.warning(f"Territory {territory_id} cannot be added: id already exists")
            return self.territories[territory_id]
        group = self.groups[group_id]
        territory = Territory(territory_id=territory_id, group_id=group_id,
                              owner=owner, armies=armies)
        self.territories[territory_id] = territory
        if territory_id not in group.members:
            group.members.append(territory_id)
        return territory

    def add_edge(self, a: int, b: int) -> None:
        """Connect two territories. Both endpoints are updated together."""
        if a == b:
            raise ValueError(f"Territory {a} cannot neighbour itself")
        first = self.territories[a]
        second = self.territories[b]
        if b not in first.neighbors:
            first.neighbors.append(b)
        if a not in second.neighbors:
            second.neighbors.append(a)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def territory(self, territory_id: int) -> Territory:
        return self.territories[territory_id]

    def group(self, group_id: int) -> Group:
        return self.groups[group_id]

    def get(self, territory_id: int) -> Optional[Territory]:
        return self.territories.get(territory_id)

    def __contains__(self, territory_id: int) -> bool:
        return territory_id in self.territories

    def __iter__(self) -> Iterator[Territory]:
        return iter(self.territories.values())

    def __len__(self) -> int:
        return len(self.territories)

    def neighbors(self, territory_id: int) -> List[Territory]:
        return [self.territories[n] for n in self.territories[territory_id].neighbors]

    def is_border(self, territory_id: int) -> bool:
        """True if any neighbour has a different owner."""
        owner = self.territories[territory_id].owner
        for n in self.territories[territory_id].neighbors:
            if self.territories[n].owner != owner:
                return True
        return False

    def has_enemy(self, territory_id: int, opponent_name: str) -> bool:
        """True iff an adjacent territory is owned by opponent_name."""
        return any(t.owner == opponent_name for t in self.neighbors(territory_id))

    def adjacent_enemy_armies(self, territory_id: int, opponent_name: str) -> int:
        return sum(t.armies for t in self.neighbors(territory_id) if t.owner == opponent_name)

    def owned_territories(self, player_name: str) -> List[Territory]:
        return [t for t in self.territories.values() if t.owner == player_name]

    def border_territories(self, player_name: str) -> List[Territory]:
        return [t for t in self.territories.values()
                if t.owner == player_name and self.is_border(t.territory_id)]

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def clone(self) -> 'BoardState':
        """Independent copy: no territory, group or edge list is shared."""
        board = BoardState()
        board.groups = {gid: g.copy() for gid, g in self.groups.items()}
        board.territories = {tid: t.copy() for tid, t in self.territories.items()}
        return board

    def __eq__(self, other):
        if not isinstance(other, BoardState):
            return NotImplemented
        return self.territories == other.territories and self.groups == other.groups

    def map_string(self) -> str:
        """Compact 'id;owner;armies' dump used in debug logs."""
        return " ".join(f"{t.territory_id};{t.owner};{t.armies}" for t in self.territories.values())

    def __repr__(self):
        return f"BoardState(territories={len(self.territories)}, groups={len(self.groups)})"
