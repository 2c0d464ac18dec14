"""
Pathfinding and route enumeration over the map graph.
"""

from collections import deque
from dataclasses import dataclass
from typing import Dict, List, Optional

from sugoroku.board import GameMap


@dataclass(frozen=True)
class Route:
    """One candidate walk for a dice roll. Recomputed every roll, never persisted."""

    id: str
    path: List[int]
    landing_node_id: int
    distance_to_destination: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "path": list(self.path),
            "landing_node_id": self.landing_node_id,
            "distance_to_destination": self.distance_to_destination,
        }


def shortest_distance(game_map: GameMap, from_id: int, to_id: int) -> Optional[int]:
    """
    Unweighted BFS distance between two nodes.

    Returns:
        Number of edges on a shortest walk, or None when unreachable
    """
    game_map.node(to_id)
    if from_id == to_id:
        game_map.node(from_id)
        return 0

    visited = {from_id}
    queue = deque([(from_id, 0)])
    while queue:
        node_id, dist = queue.popleft()
        for next_id in game_map.neighbors(node_id):
            if next_id == to_id:
                return dist + 1
            if next_id not in visited:
                visited.add(next_id)
                queue.append((next_id, dist + 1))
    return None


def all_distances_from(game_map: GameMap, target_id: int) -> Dict[int, int]:
    """Distances from ``target_id`` to every reachable node in a single BFS."""
    game_map.node(target_id)
    distances = {target_id: 0}
    queue = deque([target_id])
    while queue:
        node_id = queue.popleft()
        for next_id in game_map.neighbors(node_id):
            if next_id not in distances:
                distances[next_id] = distances[node_id] + 1
                queue.append(next_id)
    return distances


def has_branch(game_map: GameMap, node_id: int) -> bool:
    """True when the node offers more than one way to continue."""
    return len(game_map.neighbors(node_id)) > 1


def next_steps(game_map: GameMap, node_id: int, previous_id: Optional[int]) -> List[int]:
    """
    Legal continuations from ``node_id``: every neighbour except the node just
    left, unless that leaves nothing, in which case turning back is allowed.
    """
    neighbors = game_map.neighbors(node_id)
    if previous_id is None:
        return neighbors
    forward = [n for n in neighbors if n != previous_id]
    return forward or neighbors


def enumerate_walks(game_map: GameMap, start_id: int, steps: int) -> List[List[int]]:
    """All no-U-turn walks of exactly ``steps`` edges from ``start_id``, in branch order."""
    if steps <= 0:
        return []
    walks: List[List[int]] = [[]]
    for _ in range(steps):
        extended: List[List[int]] = []
        for walk in walks:
            current = walk[-1] if walk else start_id
            if len(walk) >= 2:
                previous: Optional[int] = walk[-2]
            elif walk:
                previous = start_id
            else:
                previous = None
            for next_id in next_steps(game_map, current, previous):
                extended.append(walk + [next_id])
        walks = extended
    return walks


def enumerate_routes(
    game_map: GameMap,
    start_id: int,
    steps: int,
    destination_id: Optional[int] = None,
) -> List[Route]:
    """
    Every route a roll of ``steps`` can take from ``start_id``.

    The result size is combinatorial in the branching along the way. Routes are
    annotated with landing distance to ``destination_id`` when one is active.
    An isolated start node yields no routes.
    """
    distances = all_distances_from(game_map, destination_id) if destination_id is not None else None
    routes = []
    for idx, path in enumerate(enumerate_walks(game_map, start_id, steps)):
        landing = path[-1]
        routes.append(
            Route(
                id=f"route-{idx}",
                path=path,
                landing_node_id=landing,
                distance_to_destination=distances.get(landing) if distances is not None else None,
            )
        )
    return routes
