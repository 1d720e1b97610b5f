"""
Reachability and pathfinding: exact-distance landing sets, faction kinds, spikes.
"""

import random

from balcony_wars.engine.board import generate_board
from balcony_wars.engine.definitions import (
    BALCONY_SLOT,
    HUMAN,
    PIGEON,
    ROAD,
    SPIKES,
    WIRE,
)
from balcony_wars.engine.movement import (
    TRAVERSABLE_KINDS,
    calculate_movement_cost,
    reachable_set,
    shortest_path,
)
from balcony_wars.engine.state import Structure


def test_budget_zero_is_start(make_chain):
    nodes = make_chain(WIRE, WIRE)
    assert reachable_set(nodes, "n0", 0, PIGEON) == {"n0"}


def test_exact_distance_allows_back_and_forth(make_chain):
    nodes = make_chain(WIRE, WIRE, WIRE, WIRE)
    assert reachable_set(nodes, "n0", 1, PIGEON) == {"n1"}
    assert reachable_set(nodes, "n0", 2, PIGEON) == {"n0", "n2"}
    assert reachable_set(nodes, "n0", 3, PIGEON) == {"n1", "n3"}


def test_faction_kinds(make_chain):
    nodes = make_chain(WIRE, ROAD, WIRE)
    assert reachable_set(nodes, "n0", 1, PIGEON) == set()
    assert reachable_set(nodes, "n1", 1, HUMAN) == set()
    assert shortest_path(nodes, "n0", "n2", PIGEON) == []


def test_reachable_never_includes_illegal_kinds():
    nodes = generate_board(rng=random.Random(11))
    for faction, start in ((PIGEON, "dumpster"), (HUMAN, "van-bl")):
        for budget in range(1, 8):
            for node_id in reachable_set(nodes, start, budget, faction):
                assert nodes[node_id].kind in TRAVERSABLE_KINDS[faction]


def test_spikes_block_pigeons_only(make_chain):
    nodes = make_chain(WIRE, BALCONY_SLOT, WIRE)
    nodes["n1"].structure = Structure(kind=SPIKES, owner=HUMAN)
    assert reachable_set(nodes, "n0", 1, PIGEON) == set()
    assert shortest_path(nodes, "n0", "n2", PIGEON) == []

    human_nodes = make_chain(ROAD, BALCONY_SLOT)
    human_nodes["n1"].structure = Structure(kind=SPIKES, owner=HUMAN)
    assert reachable_set(human_nodes, "n0", 1, HUMAN) == {"n1"}


def test_shortest_path_reversed_is_valid():
    nodes = generate_board(rng=random.Random(4))
    pairs = [("dumpster", "park", PIGEON), ("dumpster", "balcony-5-slot-2", PIGEON),
             ("van-bl", "elevator-tr", HUMAN), ("van-bl", "balcony-3-slot-5", HUMAN)]
    for start, end, faction in pairs:
        path = shortest_path(nodes, start, end, faction)
        assert path[0] == start and path[-1] == end
        back = list(reversed(path))
        for a, b in zip(back, back[1:]):
            assert b in nodes[a].edges
        assert len(shortest_path(nodes, end, start, faction)) == len(path)


def test_shortest_path_edges(make_chain):
    nodes = make_chain(WIRE, WIRE, WIRE)
    assert shortest_path(nodes, "n0", "n0", PIGEON) == ["n0"]
    assert shortest_path(nodes, "n0", "n2", PIGEON) == ["n0", "n1", "n2"]
    assert shortest_path(nodes, "n0", "missing", PIGEON) == []
    assert calculate_movement_cost(nodes, "n0", "n2", PIGEON) == 2
    assert calculate_movement_cost(nodes, "n0", "missing", PIGEON) is None
