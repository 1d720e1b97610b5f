"""
Board graph generation.
Topology is fixed by BoardConfig; only decorations (event wires, resource tags)
are drawn from the injected random source, so a seeded rng reproduces a board exactly.
"""

import math
import random

from balcony_wars.engine.definitions import (
    BALCONY_ENTRY,
    BALCONY_SLOT,
    COIN,
    DUMPSTER,
    ELEVATOR,
    EVENT,
    PARK,
    ROAD,
    STRAW,
    TWIG,
    VAN,
    WIRE,
    BoardConfig,
)
from balcony_wars.engine.state import Node

DUMPSTER_ID = "dumpster"
PARK_ID = "park"
VAN_ID = "van-bl"

# Column x positions for the two balcony columns, and the direction slots grow in
_COLUMNS = (
    {"x": 25.0, "dir": -1.0, "side": "left"},
    {"x": 75.0, "dir": 1.0, "side": "right"},
)


def entry_id(balcony: int) -> str:
    return f"balcony-{balcony}-entry"


def slot_id(balcony: int, slot: int) -> str:
    return f"balcony-{balcony}-slot-{slot}"


def _row_count(config: BoardConfig) -> int:
    return math.ceil(config.num_balconies / 2)


def _row_y(row: int, rows: int) -> float:
    if rows <= 1:
        return 50.0
    return 20.0 + row * (60.0 / (rows - 1))


def _add(nodes: dict[str, Node], node: Node) -> Node:
    nodes[node.id] = node
    return node


def _build_balconies(nodes: dict[str, Node], config: BoardConfig) -> list[str]:
    """
    Create one entry plus branching slot chains per balcony.
    With slot_chains (2, 2, 1): entry -> 1 -> 2, entry -> 3 -> 4, entry -> 5.
    Returns the entry ids in balcony order.
    """
    rows = _row_count(config)
    entries = []
    for b in range(config.num_balconies):
        column = _COLUMNS[b % 2]
        ex, ey = column["x"], _row_y(b // 2, rows)
        entry = _add(nodes, Node(id=entry_id(b), kind=BALCONY_ENTRY, x=ex, y=ey, balcony_group=b))
        entries.append(entry.id)

        slot_number = 0
        chain_count = len(config.slot_chains)
        for c, length in enumerate(config.slot_chains):
            prev = entry
            dy = (c - (chain_count - 1) / 2) * 5.0
            for step in range(length):
                slot_number += 1
                slot = _add(nodes, Node(
                    id=slot_id(b, slot_number),
                    kind=BALCONY_SLOT,
                    x=ex + column["dir"] * 5.0 * (step + 1),
                    y=ey + dy,
                    balcony_group=b,
                ))
                prev.connect(slot)
                prev = slot
    return entries


def _add_wire(
    nodes: dict[str, Node],
    from_id: str,
    to_id: str,
    steps: int,
    config: BoardConfig,
    rng: random.Random,
) -> None:
    """Lay `steps` intermediate wire nodes between two nodes (direct edge when steps == 0)."""
    start, end = nodes[from_id], nodes[to_id]
    prev = start
    for i in range(1, steps + 1):
        t = i / (steps + 1)
        is_event = rng.random() < config.event_probability
        resource = None
        if not is_event and rng.random() < config.wire_resource_probability:
            resource = rng.choice((STRAW, TWIG))
        wire = _add(nodes, Node(
            id=f"wire-{from_id}-{to_id}-{i}",
            kind=EVENT if is_event else WIRE,
            x=start.x + (end.x - start.x) * t,
            y=start.y + (end.y - start.y) * t,
            resource=resource,
        ))
        prev.connect(wire)
        prev = wire
    prev.connect(end)


def _build_wires(
    nodes: dict[str, Node],
    entries: list[str],
    config: BoardConfig,
    rng: random.Random,
) -> None:
    """Pigeon web: hubs to the top/bottom rows, column verticals, zig-zag crosses and one long diagonal."""
    n = len(entries)
    _add(nodes, Node(id=DUMPSTER_ID, kind=DUMPSTER, x=10.0, y=10.0))
    _add(nodes, Node(id=PARK_ID, kind=PARK, x=90.0, y=90.0))

    _add_wire(nodes, DUMPSTER_ID, entries[0], config.short_wire, config, rng)
    if n > 1:
        _add_wire(nodes, DUMPSTER_ID, entries[1], config.long_wire, config, rng)

    _add_wire(nodes, PARK_ID, entries[n - 1], config.short_wire, config, rng)
    if n > 1:
        _add_wire(nodes, PARK_ID, entries[n - 2], config.long_wire, config, rng)

    # Same column, next row down
    for i in range(n - 2):
        _add_wire(nodes, entries[i], entries[i + 2], config.short_wire, config, rng)

    # Left column to the right column one row down
    for i in range(0, n - 3, 2):
        _add_wire(nodes, entries[i], entries[i + 3], config.cross_wire, config, rng)

    last_left = n - 1 if (n - 1) % 2 == 0 else n - 2
    if n > 1 and last_left >= 2:
        _add_wire(nodes, entries[last_left], entries[1], config.diagonal_wire, config, rng)


def _side_node_id(side: str, row: int, rows: int) -> str:
    vertical = "t" if row == 0 else "b" if row == rows - 1 else None
    if vertical is None:
        return f"road-{side}-{row}"
    return f"elevator-{vertical}{side[0]}"


def _build_patrol_loop(
    nodes: dict[str, Node],
    entries: list[str],
    config: BoardConfig,
    rng: random.Random,
) -> None:
    """Closed loop of elevators and roads around the building, with the van spliced in bottom-left."""
    rows = max(2, _row_count(config))

    def patrol(node_id: str, kind: str, x: float, y: float) -> str:
        resource = COIN if kind == ROAD and rng.random() < config.coin_probability else None
        _add(nodes, Node(id=node_id, kind=kind, x=x, y=y, resource=resource))
        return node_id

    middle_rows = range(1, rows - 1)
    loop = [patrol("elevator-tl", ELEVATOR, 5.0, 5.0), patrol("road-top", ROAD, 50.0, 5.0),
            patrol("elevator-tr", ELEVATOR, 95.0, 5.0)]
    loop += [patrol(f"road-right-{r}", ROAD, 95.0, _row_y(r, rows)) for r in middle_rows]
    loop += [patrol("elevator-br", ELEVATOR, 95.0, 95.0), patrol("road-bottom", ROAD, 50.0, 95.0),
             patrol("elevator-bl", ELEVATOR, 5.0, 95.0), patrol(VAN_ID, VAN, 5.0, 88.0)]
    loop += [patrol(f"road-left-{r}", ROAD, 5.0, _row_y(r, rows)) for r in reversed(middle_rows)]

    for a, b in zip(loop, loop[1:] + loop[:1]):
        nodes[a].connect(nodes[b])

    # Each entry is reachable from the loop node on its own row and side
    for b, eid in enumerate(entries):
        side = _COLUMNS[b % 2]["side"]
        nodes[eid].connect(nodes[_side_node_id(side, b // 2, rows)])


def generate_board(config: BoardConfig | None = None, rng: random.Random | None = None) -> dict[str, Node]:
    """
    Build the full board graph.

    Args:
        config: Board parameters (defaults to BoardConfig())
        rng: Random source for decorations; pass a seeded random.Random for reproducible boards

    Returns:
        Dict of node_id -> Node with symmetric edges
    """
    config = config or BoardConfig()
    rng = rng or random.Random()
    nodes: dict[str, Node] = {}
    entries = _build_balconies(nodes, config)
    _build_wires(nodes, entries, config, rng)
    _build_patrol_loop(nodes, entries, config, rng)
    return nodes


def balcony_clusters(nodes: dict[str, Node]) -> dict[int, list[str]]:
    """Group node ids by balcony_group (entry and slots)."""
    clusters: dict[int, list[str]] = {}
    for node in nodes.values():
        if node.balcony_group is not None:
            clusters.setdefault(node.balcony_group, []).append(node.id)
    return clusters
