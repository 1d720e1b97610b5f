"""
Economy and structure ledger: costs, pickups, structures, the tool and income.
"""

import pytest

from balcony_wars.engine.actions import perform_action
from balcony_wars.engine.definitions import (
    BALCONY_ENTRY,
    BALCONY_SLOT,
    DUMPSTER,
    EVENT,
    HUMAN,
    NEST,
    PARK,
    PIGEON,
    PROP,
    ROAD,
    SPIKES,
    VAN,
    WIRE,
    ClassDefinition,
)
from balcony_wars.engine.economy import (
    collect_pickup,
    decay_tool,
    nest_victory,
    pay_round_income,
    structure_cost,
)
from balcony_wars.engine.errors import IllegalTarget, InsufficientResources
from balcony_wars.engine.reducer import apply_action
from balcony_wars.engine.state import Tool


def _act(state, faction, kind, ruleset, class_defs, params=None):
    return apply_action(state, perform_action(faction, kind, params), ruleset, class_defs)


# ===== Costs =====

def test_structure_costs_with_modifiers(ruleset, class_defs):
    assert structure_cost(NEST, ruleset, class_defs["guttersnipe"]) == {"straw": 2, "twig": 1}
    assert structure_cost(NEST, ruleset, class_defs["chonk"]) == {"straw": 1, "twig": 1}
    assert structure_cost(PROP, ruleset, class_defs["uncle"]) == {"coin": 2}

    generous = ClassDefinition(id="x", display_name="x", faction=PIGEON, cost_modifiers={NEST: {"straw": -9}})
    assert structure_cost(NEST, ruleset, generous) == {"twig": 1}


# ===== Pickups =====

def test_pickup_is_one_shot(make_chain, make_state, class_defs):
    state = make_state(make_chain(WIRE, WIRE), "n0", "n1")
    node = state.nodes["n1"]
    node.resource = "straw"
    pigeon = state.players[0]

    assert len(collect_pickup(pigeon, node, class_defs["guttersnipe"])) == 1
    assert pigeon.inventory.straw == 1
    assert node.resource is None
    assert collect_pickup(pigeon, node, class_defs["guttersnipe"]) == []
    assert pigeon.inventory.straw == 1


def test_pickup_respects_faction_and_bonus(make_chain, make_state, class_defs):
    state = make_state(make_chain(ROAD, ROAD), "n0", "n1", human_class="student")
    state.nodes["n1"].resource = "coin"
    assert collect_pickup(state.players[0], state.nodes["n1"], class_defs["guttersnipe"]) == []
    assert state.nodes["n1"].resource == "coin"

    collect_pickup(state.players[1], state.nodes["n1"], class_defs["student"])
    assert state.players[1].inventory.coin == 2


# ===== Nests =====

def _balcony(make_chain):
    nodes = make_chain(BALCONY_ENTRY, BALCONY_SLOT, BALCONY_SLOT, WIRE, ROAD)
    for node_id in ("n0", "n1", "n2"):
        nodes[node_id].balcony_group = 0
    return nodes


def test_third_nest_wins(make_chain, make_state, place, ruleset, class_defs):
    state = make_state(_balcony(make_chain), "n2", "n4", pigeon_inv={"straw": 2, "twig": 1})
    state.round = 7
    place(state, "n0", NEST, PIGEON)
    place(state, "n1", NEST, PIGEON)

    new_state, events = _act(state, PIGEON, "build_nest", ruleset, class_defs)
    assert new_state.phase == "game_over"
    assert new_state.winner == PIGEON
    assert events[-1].payload["details"] == {"balcony_group": 0, "nests": 3}
    assert new_state.players[0].inventory.resources() == {"straw": 0, "twig": 0, "coin": 0}


def test_second_nest_does_not_win(make_chain, make_state, place, ruleset, class_defs):
    state = make_state(_balcony(make_chain), "n2", "n4", pigeon_inv={"straw": 5, "twig": 5})
    place(state, "n0", NEST, PIGEON)
    new_state, _ = _act(state, PIGEON, "build_nest", ruleset, class_defs)
    assert new_state.phase == "action"
    assert nest_victory(new_state) is None


def test_nest_placement_rules(make_chain, make_state, place, ruleset, class_defs):
    rich = {"straw": 9, "twig": 9}
    on_wire = make_state(_balcony(make_chain), "n3", "n4", pigeon_inv=rich)
    with pytest.raises(IllegalTarget):
        _act(on_wire, PIGEON, "build_nest", ruleset, class_defs)

    shared = make_state(_balcony(make_chain), "n1", "n1", pigeon_inv=rich)
    with pytest.raises(IllegalTarget):
        _act(shared, PIGEON, "build_nest", ruleset, class_defs)

    taken = make_state(_balcony(make_chain), "n1", "n4", pigeon_inv=rich)
    place(taken, "n1", PROP, HUMAN)
    with pytest.raises(IllegalTarget):
        _act(taken, PIGEON, "build_nest", ruleset, class_defs)

    poor = make_state(_balcony(make_chain), "n1", "n4", pigeon_inv={"straw": 1, "twig": 1})
    with pytest.raises(InsufficientResources):
        _act(poor, PIGEON, "build_nest", ruleset, class_defs)


def test_factions_place_only_their_structures(make_chain, make_state, ruleset, class_defs):
    state = make_state(_balcony(make_chain), "n1", "n2", pigeon_inv={"coin": 9}, human_inv={"straw": 9, "twig": 9})
    with pytest.raises(IllegalTarget):
        _act(state, PIGEON, "place_prop", ruleset, class_defs)


def test_spikes_on_event_node(make_chain, make_state, ruleset, class_defs):
    state = make_state(make_chain(WIRE, EVENT, ROAD), "n0", "n1", active=HUMAN, human_inv={"coin": 3})
    new_state, _ = _act(state, HUMAN, "place_spikes", ruleset, class_defs)
    assert new_state.nodes["n1"].structure.kind == SPIKES
    assert new_state.players[1].inventory.coin == 0


# ===== Tool =====

def test_buy_tool_at_van(make_chain, make_state, ruleset, class_defs):
    state = make_state(make_chain(WIRE, VAN), "n0", "n1", active=HUMAN, human_inv={"coin": 5})
    new_state, _ = _act(state, HUMAN, "buy_tool", ruleset, class_defs)
    human = new_state.players[1]
    assert human.inventory.coin == 0
    assert human.inventory.tool == Tool(kind="vacuum", turns_left=ruleset.tool_durability)


def test_buy_tool_rejections(make_chain, make_state, ruleset, class_defs):
    away = make_state(make_chain(VAN, ROAD), "n0", "n1", active=HUMAN, human_inv={"coin": 9})
    with pytest.raises(IllegalTarget):
        _act(away, HUMAN, "buy_tool", ruleset, class_defs)

    holding = make_state(make_chain(WIRE, VAN), "n0", "n1", active=HUMAN, human_inv={"coin": 9})
    holding.players[1].inventory.tool = Tool(kind="vacuum", turns_left=1)
    with pytest.raises(IllegalTarget):
        _act(holding, HUMAN, "buy_tool", ruleset, class_defs)

    broke = make_state(make_chain(WIRE, VAN), "n0", "n1", active=HUMAN, human_inv={"coin": 4})
    with pytest.raises(InsufficientResources):
        _act(broke, HUMAN, "buy_tool", ruleset, class_defs)


def test_last_tool_use_removes_tool(make_chain, make_state, place, ruleset, class_defs):
    state = make_state(_balcony(make_chain), "n3", "n1", active=HUMAN)
    place(state, "n0", NEST, PIGEON)
    place(state, "n2", NEST, PIGEON)
    state.players[1].inventory.tool = Tool(kind="vacuum", turns_left=1)

    new_state, _ = _act(state, HUMAN, "destroy_structure", ruleset, class_defs, {"node_id": "n0"})
    assert new_state.nodes["n0"].structure is None
    assert new_state.players[1].inventory.tool is None

    new_state.actions_taken = 0
    new_state.has_acted_this_turn = False
    with pytest.raises(InsufficientResources):
        _act(new_state, HUMAN, "destroy_structure", ruleset, class_defs, {"node_id": "n2"})
    assert new_state.nodes["n2"].structure.kind == NEST


def test_destroy_target_rules(make_chain, make_state, place, ruleset, class_defs):
    state = make_state(_balcony(make_chain), "n3", "n1", active=HUMAN)
    state.players[1].inventory.tool = Tool(kind="vacuum", turns_left=3)
    with pytest.raises(IllegalTarget):
        _act(state, HUMAN, "destroy_structure", ruleset, class_defs, {"node_id": "n2"})  # empty
    place(state, "n3", NEST, PIGEON)
    with pytest.raises(IllegalTarget):
        _act(state, HUMAN, "destroy_structure", ruleset, class_defs, {"node_id": "n3"})  # not adjacent
    place(state, "n0", PROP, HUMAN)
    with pytest.raises(IllegalTarget):
        _act(state, HUMAN, "destroy_structure", ruleset, class_defs, {"node_id": "n0"})  # own


def test_pigeon_pays_to_destroy(make_chain, make_state, place, ruleset, class_defs):
    state = make_state(_balcony(make_chain), "n1", "n4", pigeon_inv={"twig": 2})
    place(state, "n2", SPIKES, HUMAN)
    new_state, events = _act(state, PIGEON, "destroy_structure", ruleset, class_defs, {"node_id": "n2"})
    assert new_state.nodes["n2"].structure is None
    assert new_state.players[0].inventory.twig == 0
    assert events[-1].payload["method"] == "paid"

    state.players[0].inventory.twig = 1
    with pytest.raises(InsufficientResources):
        _act(state, PIGEON, "destroy_structure", ruleset, class_defs, {"node_id": "n2"})


def test_tool_decays_every_turn(make_chain, make_state):
    state = make_state(make_chain(WIRE, VAN), "n0", "n1")
    human = state.players[1]
    assert decay_tool(human) == []

    human.inventory.tool = Tool(kind="vacuum", turns_left=2)
    events = decay_tool(human)
    assert human.inventory.tool.turns_left == 1
    assert events[0].payload["turns_left"] == 1

    decay_tool(human)
    assert human.inventory.tool is None


# ===== Income, hubs, abilities =====

def test_round_income(make_chain, make_state, ruleset, class_defs):
    uncle = make_state(make_chain(WIRE, VAN), "n0", "n1")
    pay_round_income(uncle, ruleset, class_defs)
    assert uncle.players[1].inventory.coin == 3
    assert uncle.players[0].inventory.resources() == {"straw": 0, "twig": 0, "coin": 0}

    student = make_state(make_chain(WIRE, VAN), "n0", "n1", human_class="student")
    pay_round_income(student, ruleset, class_defs)
    assert student.players[1].inventory.coin == 2


@pytest.mark.parametrize("kind,resource", [(DUMPSTER, "straw"), (PARK, "twig")])
def test_gather_at_hubs(make_chain, make_state, ruleset, class_defs, kind, resource):
    state = make_state(make_chain(kind, ROAD), "n0", "n1")
    new_state, _ = _act(state, PIGEON, "gather", ruleset, class_defs)
    assert new_state.players[0].inventory.get(resource) == ruleset.hub_yield


def test_gather_elsewhere_rejected(make_chain, make_state, ruleset, class_defs):
    state = make_state(make_chain(WIRE, DUMPSTER), "n0", "n1")
    with pytest.raises(IllegalTarget):
        _act(state, PIGEON, "gather", ruleset, class_defs)


def test_scavenge(make_chain, make_state, ruleset, class_defs):
    state = make_state(make_chain(WIRE, BALCONY_SLOT, ROAD), "n0", "n2")
    new_state, _ = _act(state, PIGEON, "faction_special", ruleset, class_defs)
    assert new_state.players[0].inventory.straw == 1

    state.players[0].current_node_id = "n1"
    with pytest.raises(IllegalTarget):
        _act(state, PIGEON, "faction_special", ruleset, class_defs)


def test_passive_ability_rejected(make_chain, make_state, ruleset, class_defs):
    state = make_state(make_chain(WIRE, ROAD), "n0", "n1", pigeon_class="chonk")
    with pytest.raises(IllegalTarget):
        _act(state, PIGEON, "faction_special", ruleset, class_defs)
