"""
Economy and structure ledger.
Resource accounting, arrival effects, structure placement/destruction,
the decaying tool, round income and the nest win check.

Every public function validates all of its preconditions before touching state,
so a raised GameRuleError never leaves a half-applied change behind.
"""

from balcony_wars.engine import DICE_SIDES
from balcony_wars.engine.definitions import (
    ABILITY_SCAVENGE,
    COIN,
    COLLECTS,
    EVENT,
    HUB_RESOURCES,
    HUMAN,
    NEST,
    PIGEON,
    STICKY_TRAP,
    STRAW,
    STRUCTURE_NODE_KINDS,
    STRUCTURE_OWNERS,
    TWIG,
    VACUUM,
    VAN,
    WIRE,
    ClassDefinition,
    Ruleset,
)
from balcony_wars.engine.errors import IllegalTarget, InsufficientResources
from balcony_wars.engine.events import (
    GameEvent,
    event_triggered,
    income_collected,
    resource_collected,
    resources_changed,
    structure_destroyed,
    structure_placed,
    tool_bought,
    tool_decayed,
    tool_used,
    trap_sprung,
)
from balcony_wars.engine.state import GameState, Node, PlayerState, Structure, Tool

# Human event rolls at or below this lose a coin
HUMAN_EVENT_LOSS_MAX = 2
# Pigeon event rolls at or above this gain resources; a 6 also brings a tailwind
PIGEON_EVENT_GAIN_MIN = 4


# ===== Costs =====

def structure_cost(kind: str, ruleset: Ruleset, class_def: ClassDefinition | None) -> dict[str, int]:
    """Ruleset cost of a structure after class cost modifiers, floored at 0 per resource."""
    cost = dict(ruleset.structure_costs.get(kind, {}))
    if class_def:
        for resource, delta in class_def.cost_modifiers.get(kind, {}).items():
            cost[resource] = cost.get(resource, 0) + delta
    return {resource: amount for resource, amount in cost.items() if amount > 0}


def require_affordable(player: PlayerState, cost: dict[str, int], what: str) -> None:
    """Raise InsufficientResources if the player cannot pay `cost`."""
    if not player.inventory.can_afford(cost):
        have = player.inventory.resources()
        raise InsufficientResources(f"Cannot afford {what}: needs {cost}, has {have}")


def _change(player: PlayerState, resource: str, amount: int, reason: str) -> GameEvent:
    old_value = player.inventory.get(resource)
    new_value = player.inventory.add(resource, amount)
    return resources_changed(player.faction, resource, old_value, new_value, reason)


def pay(player: PlayerState, cost: dict[str, int], reason: str) -> list[GameEvent]:
    return [_change(player, resource, -amount, reason) for resource, amount in cost.items()]


# ===== Arrival effects =====

def effective_path(state: GameState, faction: str, path: list[str]) -> list[str]:
    """
    Cut a walked path at the first enemy sticky trap (pigeons stop on it).
    The starting node is never checked.
    """
    if faction != PIGEON:
        return list(path)
    for i, node_id in enumerate(path[1:], start=1):
        structure = state.nodes[node_id].structure
        if structure is not None and structure.kind == STICKY_TRAP and structure.owner != faction:
            return list(path[: i + 1])
    return list(path)


def count_events(state: GameState, path: list[str]) -> int:
    """Number of event nodes entered along a path (start excluded)."""
    return sum(1 for node_id in path[1:] if state.nodes[node_id].kind == EVENT)


def collect_pickup(player: PlayerState, node: Node, class_def: ClassDefinition | None) -> list[GameEvent]:
    """One-shot pickup of a matching resource tag; clears the tag."""
    if node.resource is None or node.resource not in COLLECTS.get(player.faction, ()):
        return []
    resource = node.resource
    amount = 1 + (class_def.pickup_bonus if class_def else 0)
    node.resource = None
    player.inventory.add(resource, amount)
    return [resource_collected(player.faction, node.id, resource, amount)]


def resolve_event(player: PlayerState, node: Node, roll: int, ruleset: Ruleset) -> list[GameEvent]:
    """Random branch for an event node. Events never consume themselves."""
    changes: dict[str, int] = {}
    outcome = "nothing"
    if player.faction == PIGEON:
        if roll >= PIGEON_EVENT_GAIN_MIN:
            outcome = "windfall"
            player.inventory.add(STRAW, 1)
            player.inventory.add(TWIG, 1)
            changes = {STRAW: 1, TWIG: 1}
            if roll == DICE_SIDES:
                outcome = "tailwind"
                player.bonus_moves += ruleset.tailwind_bonus
                changes["bonus_moves"] = ruleset.tailwind_bonus
    elif player.faction == HUMAN:
        if roll <= HUMAN_EVENT_LOSS_MAX:
            outcome = "mugged"
            if player.inventory.coin > 0:
                player.inventory.add(COIN, -1)
                changes = {COIN: -1}
    return [event_triggered(player.faction, node.id, roll, outcome, changes)]


def walk_path(
    state: GameState,
    player: PlayerState,
    path: list[str],
    event_rolls: list[int],
    ruleset: Ruleset,
    class_def: ClassDefinition | None,
) -> tuple[str, list[GameEvent]]:
    """
    Apply per-node effects in path order and return (final_node_id, events).
    At each node: pickup, then event, then sticky trap (which ends the walk).
    Caller must have checked that event_rolls covers every event on effective_path().
    """
    events: list[GameEvent] = []
    rolls = iter(event_rolls)
    walked = effective_path(state, player.faction, path)
    for node_id in walked[1:]:
        node = state.nodes[node_id]
        events.extend(collect_pickup(player, node, class_def))
        if node.kind == EVENT:
            events.extend(resolve_event(player, node, next(rolls), ruleset))
        structure = node.structure
        if player.faction == PIGEON and structure is not None and structure.kind == STICKY_TRAP:
            node.structure = None
            events.append(trap_sprung(player.faction, node_id, structure.owner))
    player.current_node_id = walked[-1]
    return walked[-1], events


def arrive(
    state: GameState,
    player: PlayerState,
    node_id: str,
    ruleset: Ruleset,
    class_def: ClassDefinition | None,
) -> list[GameEvent]:
    """Arrival without a walk (elevator). Only the pickup applies; elevators hold no events."""
    player.current_node_id = node_id
    return collect_pickup(player, state.nodes[node_id], class_def)


# ===== Action-phase operations =====

def gather(state: GameState, player: PlayerState, ruleset: Ruleset) -> list[GameEvent]:
    """Repeatable hub yield: +hub_yield straw on the dumpster, twig in the park."""
    node = state.nodes[player.current_node_id]
    resource = HUB_RESOURCES.get(node.kind)
    if player.faction != PIGEON or resource is None:
        raise IllegalTarget(f"Nothing to gather at {node.id} ({node.kind})")
    return [_change(player, resource, ruleset.hub_yield, "gather")]


def place_structure(
    state: GameState,
    player: PlayerState,
    kind: str,
    ruleset: Ruleset,
    class_def: ClassDefinition | None,
) -> list[GameEvent]:
    """Place a structure on the player's current node, paying its cost."""
    owner = STRUCTURE_OWNERS.get(kind)
    if owner is None:
        raise IllegalTarget(f"Unknown structure: {kind}")
    if owner != player.faction:
        raise IllegalTarget(f"{player.faction} cannot place {kind}")

    node = state.nodes[player.current_node_id]
    if node.kind not in STRUCTURE_NODE_KINDS[kind]:
        raise IllegalTarget(f"Cannot place {kind} on {node.kind} node {node.id}")
    if node.structure is not None:
        raise IllegalTarget(f"Node {node.id} already has a {node.structure.kind}")
    other = state.player_for(HUMAN if player.faction == PIGEON else PIGEON)
    if other.current_node_id == node.id:
        raise IllegalTarget(f"Node {node.id} is occupied by {other.faction}")

    cost = structure_cost(kind, ruleset, class_def)
    require_affordable(player, cost, kind)

    events = pay(player, cost, f"place_{kind}")
    node.structure = Structure(kind=kind, owner=player.faction)
    events.append(structure_placed(player.faction, node.id, kind, cost))
    return events


def buy_tool(state: GameState, player: PlayerState, ruleset: Ruleset) -> list[GameEvent]:
    """Human buys the vacuum at the van. Only one tool may be held."""
    node = state.nodes[player.current_node_id]
    if player.faction != HUMAN:
        raise IllegalTarget(f"{player.faction} cannot buy tools")
    if node.kind != VAN:
        raise IllegalTarget(f"Tools are sold at the van, not at {node.id}")
    if player.inventory.tool is not None:
        raise IllegalTarget(f"Already holding a {player.inventory.tool.kind}")
    cost = {COIN: ruleset.tool_cost}
    require_affordable(player, cost, VACUUM)

    events = pay(player, cost, "buy_tool")
    player.inventory.tool = Tool(kind=VACUUM, turns_left=ruleset.tool_durability)
    events.append(tool_bought(player.faction, VACUUM, ruleset.tool_cost, ruleset.tool_durability))
    return events


def destroy_structure(
    state: GameState,
    player: PlayerState,
    target_id: str,
    ruleset: Ruleset,
) -> list[GameEvent]:
    """
    Remove an enemy structure on the current node or a neighbor.
    Humans need a tool with uses left to remove a nest; pigeons pay destroy_cost
    to tear down human structures.
    """
    here = state.nodes[player.current_node_id]
    target = state.nodes.get(target_id)
    if target is None:
        raise IllegalTarget(f"Unknown node: {target_id}")
    if target_id != here.id and target_id not in here.edges:
        raise IllegalTarget(f"{target_id} is not adjacent to {here.id}")
    structure = target.structure
    if structure is None:
        raise IllegalTarget(f"No structure on {target_id}")
    if structure.owner == player.faction:
        raise IllegalTarget(f"Cannot destroy your own {structure.kind}")

    events: list[GameEvent] = []
    if player.faction == HUMAN:
        tool = player.inventory.tool
        if tool is None or tool.turns_left <= 0:
            raise InsufficientResources(f"Destroying a {structure.kind} needs a tool")
        tool.turns_left -= 1
        events.append(tool_used(player.faction, tool.kind, tool.turns_left))
        if tool.turns_left <= 0:
            player.inventory.tool = None
        method = "tool"
    else:
        cost = dict(ruleset.destroy_cost)
        require_affordable(player, cost, f"destroying {structure.kind}")
        events.extend(pay(player, cost, "destroy_structure"))
        method = "paid"

    target.structure = None
    events.append(structure_destroyed(player.faction, target_id, structure.kind, structure.owner, method))
    return events


def use_ability(state: GameState, player: PlayerState, class_def: ClassDefinition | None) -> list[GameEvent]:
    """Single dispatch point for active class abilities."""
    ability = class_def.ability if class_def else None
    if ability is None or not ability.kind:
        raise IllegalTarget(f"{player.class_id} has no ability")

    if ability.kind == ABILITY_SCAVENGE:
        node = state.nodes[player.current_node_id]
        if node.kind not in (WIRE, EVENT):
            raise IllegalTarget(f"Nothing to scavenge at {node.id} ({node.kind})")
        resource = str(ability.params.get("resource", STRAW))
        amount = int(ability.params.get("amount", 1))
        return [_change(player, resource, amount, ABILITY_SCAVENGE)]

    raise IllegalTarget(f"Ability {ability.kind} is passive")


# ===== Turn/round bookkeeping =====

def decay_tool(player: PlayerState) -> list[GameEvent]:
    """End of the owner's turn: a held tool loses one use, whether or not it was used."""
    events: list[GameEvent] = []
    tool = player.inventory.tool
    if tool is not None:
        tool.turns_left -= 1
        events.append(tool_decayed(player.faction, tool.kind, tool.turns_left))
        if tool.turns_left <= 0:
            player.inventory.tool = None
    return events


def pay_round_income(
    state: GameState,
    ruleset: Ruleset,
    class_defs: dict[str, ClassDefinition],
) -> list[GameEvent]:
    """Round stipend: humans get coin (plus class bonus); pigeons get nothing."""
    human = state.player_for(HUMAN)
    class_def = class_defs.get(human.class_id)
    amount = ruleset.human_stipend + (class_def.income_bonus if class_def else 0)
    if amount <= 0:
        return []
    human.inventory.add(COIN, amount)
    return [income_collected(HUMAN, {COIN: amount}, human.inventory.resources())]


def nest_counts(state: GameState) -> dict[int, int]:
    """balcony_group -> number of nests standing in that cluster."""
    counts: dict[int, int] = {}
    for node in state.nodes.values():
        if node.balcony_group is None or node.structure is None:
            continue
        if node.structure.kind == NEST:
            counts[node.balcony_group] = counts.get(node.balcony_group, 0) + 1
    return counts


def nest_victory(state: GameState) -> tuple[int, int] | None:
    """(balcony_group, nests) of the first cluster at the threshold, or None."""
    for group, count in sorted(nest_counts(state).items()):
        if count >= state.nests_to_win:
            return group, count
    return None
