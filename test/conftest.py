"""
Shared fixtures: the default ruleset/class catalog and small hand-built boards.
"""

import pytest

from balcony_wars.engine.definitions import HUMAN, PIGEON, load_static_definitions
from balcony_wars.engine.state import GameState, Inventory, Node, PlayerState, Structure


@pytest.fixture(scope="session")
def definitions():
    return load_static_definitions()


@pytest.fixture
def ruleset(definitions):
    return definitions[0]


@pytest.fixture
def class_defs(definitions):
    return definitions[1]


def chain(*kinds: str, prefix: str = "n") -> dict[str, Node]:
    """n0 - n1 - ... with the given node kinds."""
    nodes: dict[str, Node] = {}
    prev = None
    for i, kind in enumerate(kinds):
        node = Node(id=f"{prefix}{i}", kind=kind, x=float(i), y=0.0)
        nodes[node.id] = node
        if prev is not None:
            prev.connect(node)
        prev = node
    return nodes


@pytest.fixture
def make_chain():
    return chain


@pytest.fixture
def make_state():
    def build(
        nodes: dict[str, Node],
        pigeon_at: str,
        human_at: str,
        pigeon_class: str = "guttersnipe",
        human_class: str = "uncle",
        phase: str = "action",
        active: str = PIGEON,
        pigeon_inv: dict | None = None,
        human_inv: dict | None = None,
    ) -> GameState:
        players = [
            PlayerState(PIGEON, pigeon_class, pigeon_at, Inventory(**(pigeon_inv or {}))),
            PlayerState(HUMAN, human_class, human_at, Inventory(**(human_inv or {}))),
        ]
        return GameState(
            phase=phase,
            players=players,
            nodes=nodes,
            active_player_index=0 if active == PIGEON else 1,
            first_player_index=0,
        )
    return build


@pytest.fixture
def place():
    def put(state: GameState, node_id: str, kind: str, owner: str) -> None:
        state.nodes[node_id].structure = Structure(kind=kind, owner=owner)
    return put
