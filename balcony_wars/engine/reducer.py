"""
Main match reducer.
Applies actions to state, enforcing the turn state machine and producing new state.
Returns (new_state, events) where events describe what happened.
Raises a GameRuleError subclass (never a partial update) when an action is not legal.
"""

from balcony_wars.engine import DICE_SIDES
from balcony_wars.engine.actions import (
    BUILD_NEST,
    BUY_TOOL,
    DESTROY_STRUCTURE,
    FACTION_SPECIAL,
    GATHER,
    PLACE_PROP,
    PLACE_SPIKES,
    PLACE_STICKY_TRAP,
    Action,
)
from balcony_wars.engine.definitions import (
    COIN,
    ELEVATOR,
    FACTIONS,
    HUMAN,
    NEST,
    PIGEON,
    PROP,
    SPIKES,
    STICKY_TRAP,
    ClassDefinition,
    Ruleset,
)
from balcony_wars.engine.economy import (
    arrive,
    buy_tool,
    count_events,
    decay_tool,
    destroy_structure,
    effective_path,
    gather,
    nest_victory,
    pay,
    pay_round_income,
    place_structure,
    require_affordable,
    use_ability,
    walk_path,
)
from balcony_wars.engine.errors import IllegalTarget, IllegalTransition
from balcony_wars.engine.events import (
    GameEvent,
    dice_rolled,
    elevator_ridden,
    initiative_rolled,
    no_legal_moves,
    phase_changed,
    player_moved,
    round_started,
    turn_ended,
    turn_started,
    victory,
)
from balcony_wars.engine.movement import reachable_set, shortest_path
from balcony_wars.engine.state import GameState

# Phase rules: which action types are allowed in which phases
PHASE_ALLOWED_ACTIONS = {
    "initiative": ["roll_initiative"],
    "roll": ["roll_dice"],
    "move": ["move_to", "ride_elevator"],
    "action": ["perform_action", "end_turn"],
}

# perform_action kinds that place a structure, and the structure they place
PLACEMENT_KINDS = {
    BUILD_NEST: NEST,
    PLACE_PROP: PROP,
    PLACE_SPIKES: SPIKES,
    PLACE_STICKY_TRAP: STICKY_TRAP,
}


def _validate_die(value, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= DICE_SIDES:
        raise IllegalTarget(f"{what} must be a d{DICE_SIDES} value, got {value!r}")
    return value


def _validate_action_for_phase(action: Action, state: GameState) -> None:
    """
    Validate that an action is allowed in the current phase and by this faction.

    game_over accepts nothing. During initiative either faction may submit the
    (shared) roll; afterwards only the active player may act.
    """
    if state.phase == "game_over":
        raise IllegalTransition(f"Match is over. {state.winner} won.")

    allowed_actions = PHASE_ALLOWED_ACTIONS.get(state.phase, [])
    if action.type not in allowed_actions:
        raise IllegalTransition(
            f"Action '{action.type}' is not allowed in phase '{state.phase}'. "
            f"Allowed actions: {', '.join(allowed_actions)}"
        )

    if state.phase == "initiative":
        if action.faction not in FACTIONS:
            raise IllegalTransition(f"Unknown faction: {action.faction}")
    elif action.faction != state.active_player.faction:
        raise IllegalTransition(
            f"Action faction {action.faction} does not match active faction {state.active_player.faction}")


def apply_action(
    state: GameState,
    action: Action,
    ruleset: Ruleset,
    class_defs: dict[str, ClassDefinition],
) -> tuple[GameState, list[GameEvent]]:
    """
    Apply a single action to the current state, returning new state and events.

    The input state is never modified. Events are also appended to new_state.log.

    Args:
        state: Current match state
        action: Action to apply
        ruleset: Match ruleset (costs, limits)
        class_defs: Player class catalog

    Returns:
        Tuple of (new_state, events) where events describe what happened
    """
    _validate_action_for_phase(action, state)

    new_state = state.copy()
    events: list[GameEvent] = []

    if action.type == "roll_initiative":
        new_state, evts = _handle_roll_initiative(new_state, action)
        events.extend(evts)

    elif action.type == "roll_dice":
        new_state, evts = _handle_roll_dice(new_state, action, ruleset, class_defs)
        events.extend(evts)

    elif action.type == "move_to":
        new_state, evts = _handle_move_to(new_state, action, ruleset, class_defs)
        events.extend(evts)

    elif action.type == "ride_elevator":
        new_state, evts = _handle_ride_elevator(new_state, action, ruleset, class_defs)
        events.extend(evts)

    elif action.type == "perform_action":
        new_state, evts = _handle_perform_action(new_state, action, ruleset, class_defs)
        events.extend(evts)

    elif action.type == "end_turn":
        new_state, evts = _handle_end_turn(new_state, ruleset, class_defs)
        events.extend(evts)

    else:
        raise IllegalTransition(f"Unknown action type: {action.type}")

    for event in events:
        new_state.log.append({**event.to_dict(), "round": new_state.round})
    return new_state, events


def _set_phase(state: GameState, new_phase: str) -> GameEvent:
    old_phase = state.phase
    state.phase = new_phase
    return phase_changed(old_phase, new_phase, state.active_player.faction)


def _handle_roll_initiative(state: GameState, action: Action) -> tuple[GameState, list[GameEvent]]:
    """
    Both factions roll a d6; the higher roll moves first.
    A tie leaves the phase at initiative so both re-roll.
    """
    rolls_data = action.payload.get("rolls") or {}
    if not isinstance(rolls_data, dict):
        raise IllegalTarget(f"Initiative rolls must map faction to roll, got {rolls_data!r}")
    rolls = {faction: _validate_die(rolls_data.get(faction), f"{faction} initiative") for faction in FACTIONS}

    for player in state.players:
        player.initiative = rolls[player.faction]

    if rolls[PIGEON] == rolls[HUMAN]:
        return state, [initiative_rolled(rolls, None)]

    first_faction = PIGEON if rolls[PIGEON] > rolls[HUMAN] else HUMAN
    first_index = next(i for i, p in enumerate(state.players) if p.faction == first_faction)
    state.first_player_index = first_index
    state.active_player_index = first_index

    events = [initiative_rolled(rolls, first_faction)]
    events.append(_set_phase(state, "roll"))
    events.append(turn_started(state.round, first_faction))
    return state, events


def _handle_roll_dice(
    state: GameState,
    action: Action,
    ruleset: Ruleset,
    class_defs: dict[str, ClassDefinition],
) -> tuple[GameState, list[GameEvent]]:
    """
    Effective roll = max(1, raw + speed_modifier) + pending bonus moves.
    No landing node at that distance skips straight to the end of the turn.
    """
    raw = _validate_die(action.payload.get("roll"), "Movement roll")
    player = state.active_player
    class_def = class_defs.get(player.class_id)
    speed = class_def.speed_modifier if class_def else 0

    effective = max(1, raw + speed) + player.bonus_moves
    player.bonus_moves = 0

    reachable = reachable_set(state.nodes, player.current_node_id, effective, player.faction)
    events = [dice_rolled(player.faction, raw, effective, len(reachable))]

    if not reachable:
        events.append(no_legal_moves(player.faction, player.current_node_id, effective))
        state, evts = _handle_end_turn(state, ruleset, class_defs)
        events.extend(evts)
        return state, events

    state.dice_roll = effective
    state.moves_remaining = effective
    state.reachable = sorted(reachable)
    events.append(_set_phase(state, "move"))
    return state, events


def _handle_move_to(
    state: GameState,
    action: Action,
    ruleset: Ruleset,
    class_defs: dict[str, ClassDefinition],
) -> tuple[GameState, list[GameEvent]]:
    """
    Walk to a node from the reachable set along the shortest legal path.
    Payload: node_id, event_rolls (one d6 per event node on the walked path).
    """
    node_id = action.payload.get("node_id")
    player = state.active_player

    if node_id not in state.reachable:
        raise IllegalTarget(f"Node {node_id} is not reachable with a roll of {state.dice_roll}")

    path = shortest_path(state.nodes, player.current_node_id, node_id, player.faction)
    if not path:
        raise IllegalTarget(f"No path from {player.current_node_id} to {node_id}")

    event_rolls = action.payload.get("event_rolls") or []
    if not isinstance(event_rolls, list):
        raise IllegalTarget(f"event_rolls must be a list of d{DICE_SIDES} values, got {event_rolls!r}")
    needed = count_events(state, effective_path(state, player.faction, path))
    if len(event_rolls) < needed:
        raise IllegalTarget(f"Path crosses {needed} event node(s) but only {len(event_rolls)} roll(s) given")
    for roll in event_rolls[:needed]:
        _validate_die(roll, "Event roll")

    from_node = player.current_node_id
    class_def = class_defs.get(player.class_id)
    final_node, evts = walk_path(state, player, path, event_rolls[:needed], ruleset, class_def)

    walked = path[: path.index(final_node) + 1]
    events = [player_moved(player.faction, from_node, final_node, walked)]
    events.extend(evts)

    state.moves_remaining = 0
    state.reachable = []
    events.append(_set_phase(state, "action"))
    return state, events


def _handle_ride_elevator(
    state: GameState,
    action: Action,
    ruleset: Ruleset,
    class_defs: dict[str, ClassDefinition],
) -> tuple[GameState, list[GameEvent]]:
    """Human pays the fare and teleports between elevators, ignoring the roll."""
    node_id = action.payload.get("node_id")
    player = state.active_player
    here = state.nodes[player.current_node_id]
    target = state.nodes.get(node_id) if isinstance(node_id, str) else None

    if player.faction != HUMAN:
        raise IllegalTarget("Only humans ride elevators")
    if here.kind != ELEVATOR:
        raise IllegalTarget(f"Not standing on an elevator ({here.id} is {here.kind})")
    if target is None or target.kind != ELEVATOR:
        raise IllegalTarget(f"{node_id} is not an elevator")
    if target.id == here.id:
        raise IllegalTarget("Already at that elevator")
    fare = {COIN: ruleset.elevator_cost}
    require_affordable(player, fare, "elevator fare")

    events = pay(player, fare, "elevator")
    events.append(elevator_ridden(player.faction, here.id, target.id, ruleset.elevator_cost))
    events.extend(arrive(state, player, target.id, ruleset, class_defs.get(player.class_id)))

    state.moves_remaining = 0
    state.reachable = []
    events.append(_set_phase(state, "action"))
    return state, events


def _handle_perform_action(
    state: GameState,
    action: Action,
    ruleset: Ruleset,
    class_defs: dict[str, ClassDefinition],
) -> tuple[GameState, list[GameEvent]]:
    """
    One action-phase operation. Each class gets action_points successful actions per turn.
    A nest placement may end the match immediately.
    """
    kind = action.payload.get("kind")
    params = action.payload.get("params") or {}
    if not isinstance(params, dict):
        raise IllegalTarget(f"Action params must be an object, got {params!r}")
    player = state.active_player
    class_def = class_defs.get(player.class_id)
    action_points = class_def.action_points if class_def else 1

    if state.has_acted_this_turn or state.actions_taken >= action_points:
        raise IllegalTransition(f"{player.faction} has no actions left this turn")

    if kind in PLACEMENT_KINDS:
        events = place_structure(state, player, PLACEMENT_KINDS[kind], ruleset, class_def)
    elif kind == BUY_TOOL:
        events = buy_tool(state, player, ruleset)
    elif kind == DESTROY_STRUCTURE:
        target_id = params.get("node_id") or player.current_node_id
        events = destroy_structure(state, player, str(target_id), ruleset)
    elif kind == GATHER:
        events = gather(state, player, ruleset)
    elif kind == FACTION_SPECIAL:
        events = use_ability(state, player, class_def)
    else:
        raise IllegalTarget(f"Unknown action kind: {kind}")

    state.actions_taken += 1
    state.has_acted_this_turn = state.actions_taken >= action_points

    if kind == BUILD_NEST:
        result = nest_victory(state)
        if result:
            group, nests = result
            state.winner = PIGEON
            events.append(_set_phase(state, "game_over"))
            events.append(victory(PIGEON, "nests", state.round, {"balcony_group": group, "nests": nests}))

    return state, events


def _handle_end_turn(
    state: GameState,
    ruleset: Ruleset,
    class_defs: dict[str, ClassDefinition],
) -> tuple[GameState, list[GameEvent]]:
    """
    End the current turn and pass play to the other faction.

    At end of turn:
    - The finishing player's tool loses one use
    - When play wraps to the first player a new round starts and the stipend is paid
    - Exceeding max_rounds ends the match with a human win
    """
    events: list[GameEvent] = []
    old_player = state.active_player

    events.extend(decay_tool(old_player))
    events.append(turn_ended(state.round, old_player.faction))

    state.active_player_index = 1 - state.active_player_index
    if state.active_player_index == state.first_player_index:
        state.round += 1
        events.append(round_started(state.round))
        events.extend(pay_round_income(state, ruleset, class_defs))

    state.dice_roll = None
    state.moves_remaining = 0
    state.reachable = []
    state.actions_taken = 0
    state.has_acted_this_turn = False

    if state.round > state.max_rounds:
        state.winner = HUMAN
        events.append(_set_phase(state, "game_over"))
        events.append(victory(HUMAN, "round_limit", state.round, {"max_rounds": state.max_rounds}))
        return state, events

    events.append(_set_phase(state, "roll"))
    events.append(turn_started(state.round, state.active_player.faction))
    return state, events


def replay_from_actions(
    initial_state: GameState,
    actions: list[Action],
    ruleset: Ruleset,
    class_defs: dict[str, ClassDefinition],
) -> tuple[GameState, list[GameEvent]]:
    """
    Replay a series of actions from an initial state.
    Every die value lives in the action payloads, so the result is deterministic.

    Returns:
        Tuple of (final_state, all_events) after all actions applied
    """
    current_state = initial_state.copy()
    all_events: list[GameEvent] = []

    for action in actions:
        current_state, events = apply_action(current_state, action, ruleset, class_defs)
        all_events.extend(events)

    return current_state, all_events
