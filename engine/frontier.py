"""
Frontier Router

Breadth-first routing over the territory graph:
- nearest_border_step(): first hop from an interior territory towards the
  closest border, used to funnel rear armies to the front
- hop_distances(): multi-source BFS distances
- choose_starting_region(): start-of-match pick heuristic

Neighbour lists are walked in stored order, so ties always resolve the
same way for the same board.
"""

from collections import deque
from typing import Dict, Iterable, List, Optional
import logging

from engine.board_state import BoardState

logger = logging.getLogger(__name__)


def nearest_border_step(board: BoardState, territory_id: int) -> Optional[int]:
    """
    Next territory on a shortest path from territory_id to a border.

    Returns:
        territory_id itself if it is already a border territory,
        the adjacent territory to move to otherwise,
        or None if no border territory is reachable
    """
    if board.is_border(territory_id):
        return territory_id

    territories = board.territories
    parent: Dict[int, int] = {territory_id: territory_id}
    frontier = deque([territory_id])

    while frontier:
        current = frontier.popleft()
        for adj in territories[current].neighbors:
            if adj in parent:
                continue
            parent[adj] = current
            if board.is_border(adj):
                # Walk back until the hop adjacent to the origin
                step = adj
                while parent[step] != territory_id:
                    step = parent[step]
                return step
            frontier.append(adj)

    logger.debug(f"No border reachable from territory {territory_id}")
    return None


def hop_distances(board: BoardState, sources: Iterable[int]) -> Dict[int, int]:
    """Hop count from the nearest source to every reachable territory."""
    distances: Dict[int, int] = {}
    frontier = deque()
    for source in sources:
        if source in board and source not in distances:
            distances[source] = 0
            frontier.append(source)

    while frontier:
        current = frontier.popleft()
        for adj in board.territories[current].neighbors:
            if adj not in distances:
                distances[adj] = distances[current] + 1
                frontier.append(adj)
    return distances


def choose_starting_region(full_map: BoardState, pickable: List[int],
                           already_picked: Optional[List[int]] = None) -> Optional[int]:
    """
    Pick a starting territory.

    The first pick takes the region with the fewest neighbours (easiest to
    hold). Later picks expand our footprint: the pickable region closest
    to an earlier pick wins (multi-source BFS from the earlier picks), then
    fewest neighbours, then the order offered.
    """
    candidates = [tid for tid in pickable if tid in full_map]
    if not candidates:
        return None

    def neighbour_count(tid: int) -> int:
        return len(full_map.territory(tid).neighbors)

    picked = [tid for tid in (already_picked or []) if tid in full_map]
    if not picked:
        return min(candidates, key=neighbour_count)

    distances = hop_distances(full_map, picked)
    unreachable = len(full_map) + 1
    return min(candidates, key=lambda tid: (distances.get(tid, unreachable), neighbour_count(tid)))
