"""
Query functions for UI integration.
These functions help the UI understand what actions are available
without mutating match state.
"""

from dataclasses import dataclass
from typing import Any

from balcony_wars.engine import DICE_SIDES
from balcony_wars.engine.actions import (
    ACTION_KINDS,
    DESTROY_STRUCTURE,
    Action,
    perform_action,
)
from balcony_wars.engine.definitions import COLLECTS, ELEVATOR, HUMAN, ClassDefinition, Ruleset
from balcony_wars.engine.economy import count_events, effective_path, nest_counts
from balcony_wars.engine.errors import GameRuleError
from balcony_wars.engine.movement import shortest_path
from balcony_wars.engine.reducer import PHASE_ALLOWED_ACTIONS, apply_action
from balcony_wars.engine.state import GameState


@dataclass
class ValidationResult:
    """Result of action validation."""
    valid: bool
    error: str | None = None
    code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "error": self.error, "code": self.code}


# ===== Action Validation =====

def validate_action(
    state: GameState,
    action: Action,
    ruleset: Ruleset,
    class_defs: dict[str, ClassDefinition],
) -> ValidationResult:
    """
    Validate an action without applying it.
    Runs the reducer on a throwaway copy, so the rules are never duplicated here.
    """
    try:
        apply_action(state, action, ruleset, class_defs)
    except GameRuleError as e:
        return ValidationResult(False, str(e), e.code)
    return ValidationResult(True)


def get_available_action_types(state: GameState) -> list[str]:
    """Get action types available in the current phase."""
    if state.phase == "game_over":
        return []
    allowed = list(PHASE_ALLOWED_ACTIONS.get(state.phase, []))
    if state.phase == "move" and not _elevator_targets(state):
        allowed = [a for a in allowed if a != "ride_elevator"]
    if state.phase == "action" and state.has_acted_this_turn:
        allowed = [a for a in allowed if a != "perform_action"]
    return allowed


def get_reachable_nodes(state: GameState) -> list[str]:
    """Landing nodes for the current roll. Empty outside the move phase."""
    if state.phase != "move":
        return []
    return list(state.reachable)


def _elevator_targets(state: GameState) -> list[str]:
    player = state.active_player
    if player.faction != HUMAN or state.nodes[player.current_node_id].kind != ELEVATOR:
        return []
    return sorted(n.id for n in state.nodes_of_kind(ELEVATOR) if n.id != player.current_node_id)


def get_elevator_targets(state: GameState) -> list[str]:
    """Elevators the active human could ride to right now (fare not checked)."""
    if state.phase != "move":
        return []
    return _elevator_targets(state)


def get_move_preview(state: GameState, node_id: str) -> dict[str, Any]:
    """
    Preview walking the active player to node_id (for UI hover/selection).

    Returns:
    {
        "node_id": str,
        "path": [node_id, ...],        # where the walk really ends (sticky traps cut it)
        "steps": int,
        "event_count": int,            # d6 rolls move_to will need
        "pickups": [{"node_id", "resource"}],
        "stopped_by_trap": bool,
    }
    """
    player = state.active_player
    path = shortest_path(state.nodes, player.current_node_id, node_id, player.faction)
    walked = effective_path(state, player.faction, path) if path else []
    collects = COLLECTS.get(player.faction, ())
    pickups = [
        {"node_id": nid, "resource": state.nodes[nid].resource}
        for nid in walked[1:]
        if state.nodes[nid].resource in collects
    ]
    return {
        "node_id": node_id,
        "path": walked,
        "steps": max(0, len(walked) - 1),
        "event_count": count_events(state, walked) if walked else 0,
        "pickups": pickups,
        "stopped_by_trap": len(walked) < len(path),
    }


def _candidate_actions(state: GameState) -> list[Action]:
    faction = state.active_player.faction
    here = state.nodes[state.active_player.current_node_id]
    candidates = []
    for kind in ACTION_KINDS:
        if kind == DESTROY_STRUCTURE:
            for target_id in [here.id] + list(here.edges):
                target = state.nodes.get(target_id)
                if target is not None and target.structure is not None:
                    candidates.append(perform_action(faction, kind, {"node_id": target_id}))
        else:
            candidates.append(perform_action(faction, kind))
    return candidates


def get_available_actions(
    state: GameState,
    ruleset: Ruleset,
    class_defs: dict[str, ClassDefinition],
) -> list[dict[str, Any]]:
    """
    Action-phase operations the active player could perform successfully right now.

    Returns: [{"kind": str, "params": dict}, ...]
    """
    if state.phase != "action" or state.has_acted_this_turn:
        return []
    available = []
    for action in _candidate_actions(state):
        if validate_action(state, action, ruleset, class_defs).valid:
            available.append({"kind": action.payload["kind"], "params": action.payload["params"]})
    return available


def get_match_summary(state: GameState) -> dict[str, Any]:
    """
    Get a summary of the current match state for UI display.
    """
    return {
        "round": state.round,
        "max_rounds": state.max_rounds,
        "phase": state.phase,
        "active_faction": state.active_player.faction,
        "winner": state.winner,
        "dice_roll": state.dice_roll,
        "dice_sides": DICE_SIDES,
        "actions_taken": state.actions_taken,
        "has_acted_this_turn": state.has_acted_this_turn,
        "players": {
            p.faction: {
                "class_id": p.class_id,
                "node_id": p.current_node_id,
                "inventory": p.inventory.to_dict(),
                "bonus_moves": p.bonus_moves,
            }
            for p in state.players
        },
        "nests": {str(group): count for group, count in sorted(nest_counts(state).items())},
        "nests_to_win": state.nests_to_win,
        "available_actions": get_available_action_types(state),
    }
