"""
Movement calculations and pathfinding over the node graph.
"""

from collections import deque

from balcony_wars.engine.definitions import (
    BALCONY_ENTRY,
    BALCONY_SLOT,
    DUMPSTER,
    ELEVATOR,
    EVENT,
    HUMAN,
    PARK,
    PIGEON,
    ROAD,
    SPIKES,
    VAN,
    WIRE,
)
from balcony_wars.engine.state import Node

# Node kinds each faction may step onto
TRAVERSABLE_KINDS: dict[str, frozenset[str]] = {
    PIGEON: frozenset({BALCONY_ENTRY, BALCONY_SLOT, WIRE, PARK, DUMPSTER, EVENT}),
    HUMAN: frozenset({BALCONY_ENTRY, BALCONY_SLOT, ROAD, VAN, ELEVATOR, EVENT}),
}

# Structures that stop a faction from entering the node they sit on
BLOCKING_STRUCTURES: dict[str, frozenset[str]] = {
    PIGEON: frozenset({SPIKES}),
    HUMAN: frozenset(),
}


def is_traversable(node: Node, faction: str) -> bool:
    """True if `faction` may step onto `node` (kind allowed and no blocking structure)."""
    if node.kind not in TRAVERSABLE_KINDS.get(faction, ()):
        return False
    if node.structure is not None and node.structure.kind in BLOCKING_STRUCTURES.get(faction, ()):
        return False
    return True


def _legal_neighbors(nodes: dict[str, Node], node_id: str, faction: str) -> list[str]:
    node = nodes.get(node_id)
    if not node:
        return []
    return [
        neighbor_id for neighbor_id in node.edges
        if neighbor_id in nodes and is_traversable(nodes[neighbor_id], faction)
    ]


def reachable_set(
    nodes: dict[str, Node],
    start_id: str,
    budget: int,
    faction: str,
) -> set[str]:
    """
    Nodes exactly `budget` steps from start_id along faction-legal edges.

    Expands level by level; each level is the set of legal neighbors of the previous one.
    Revisits are allowed (a player may walk back and forth), so this is the landing set for
    a die roll rather than the union of all distances up to the budget.
    Returns an empty set once a level comes up empty.
    """
    frontier = {start_id}
    for _ in range(budget):
        next_level: set[str] = set()
        for node_id in frontier:
            next_level.update(_legal_neighbors(nodes, node_id, faction))
        frontier = next_level
        if not frontier:
            break
    return frontier


def shortest_path(
    nodes: dict[str, Node],
    start_id: str,
    end_id: str,
    faction: str,
) -> list[str]:
    """
    Shortest faction-legal path from start_id to end_id using BFS.

    Returns:
        Node ids from start to end inclusive, or [] if end is unreachable
    """
    if start_id not in nodes or end_id not in nodes:
        return []
    if start_id == end_id:
        return [start_id]

    queue: deque[str] = deque([start_id])
    came_from: dict[str, str | None] = {start_id: None}

    while queue:
        node_id = queue.popleft()
        for neighbor_id in _legal_neighbors(nodes, node_id, faction):
            if neighbor_id in came_from:
                continue
            came_from[neighbor_id] = node_id
            if neighbor_id == end_id:
                path = [neighbor_id]
                step = node_id
                while step is not None:
                    path.append(step)
                    step = came_from[step]
                return list(reversed(path))
            queue.append(neighbor_id)

    return []  # Unreachable


def calculate_movement_cost(
    nodes: dict[str, Node],
    start_id: str,
    end_id: str,
    faction: str,
) -> int | None:
    """Minimum number of steps between two nodes for a faction, or None if unreachable."""
    path = shortest_path(nodes, start_id, end_id, faction)
    return len(path) - 1 if path else None
