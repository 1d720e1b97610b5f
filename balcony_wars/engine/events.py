"""
Match events for UI hooks and the match log.
Events describe what happened during action processing.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class GameEvent:
    """Base event class. All events have a type and payload."""
    type: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "payload": self.payload}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameEvent":
        return cls(type=data["type"], payload=data["payload"])


# ===== Event Type Constants =====

# Phase/Turn events
PHASE_CHANGED = "phase_changed"
TURN_STARTED = "turn_started"
TURN_ENDED = "turn_ended"
ROUND_STARTED = "round_started"

# Dice events
INITIATIVE_ROLLED = "initiative_rolled"
DICE_ROLLED = "dice_rolled"
NO_LEGAL_MOVES = "no_legal_moves"

# Movement events
PLAYER_MOVED = "player_moved"
ELEVATOR_RIDDEN = "elevator_ridden"

# Arrival events
RESOURCE_COLLECTED = "resource_collected"
EVENT_TRIGGERED = "event_triggered"
TRAP_SPRUNG = "trap_sprung"

# Ledger events
RESOURCES_CHANGED = "resources_changed"
STRUCTURE_PLACED = "structure_placed"
STRUCTURE_DESTROYED = "structure_destroyed"
TOOL_BOUGHT = "tool_bought"
TOOL_USED = "tool_used"
TOOL_DECAYED = "tool_decayed"
INCOME_COLLECTED = "income_collected"

# Rejections (logged by the session, never by the reducer)
ACTION_REJECTED = "action_rejected"

# Victory events
VICTORY = "victory"


# ===== Event Factory Functions =====

def phase_changed(old_phase: str, new_phase: str, faction: str) -> GameEvent:
    return GameEvent(PHASE_CHANGED, {
        "old_phase": old_phase,
        "new_phase": new_phase,
        "faction": faction,
    })


def turn_started(round_number: int, faction: str) -> GameEvent:
    return GameEvent(TURN_STARTED, {"round": round_number, "faction": faction})


def turn_ended(round_number: int, faction: str) -> GameEvent:
    return GameEvent(TURN_ENDED, {"round": round_number, "faction": faction})


def round_started(round_number: int) -> GameEvent:
    return GameEvent(ROUND_STARTED, {"round": round_number})


def initiative_rolled(rolls: dict[str, int], first_faction: str | None) -> GameEvent:
    """first_faction is None when the rolls tied and must be re-rolled."""
    return GameEvent(INITIATIVE_ROLLED, {
        "rolls": rolls,
        "first_faction": first_faction,
        "tie": first_faction is None,
    })


def dice_rolled(faction: str, raw: int, effective: int, reachable_count: int) -> GameEvent:
    return GameEvent(DICE_ROLLED, {
        "faction": faction,
        "raw": raw,
        "effective": effective,
        "reachable_count": reachable_count,
    })


def no_legal_moves(faction: str, node_id: str, budget: int) -> GameEvent:
    return GameEvent(NO_LEGAL_MOVES, {"faction": faction, "node_id": node_id, "budget": budget})


def player_moved(faction: str, from_node: str, to_node: str, path: list[str]) -> GameEvent:
    return GameEvent(PLAYER_MOVED, {
        "faction": faction,
        "from_node": from_node,
        "to_node": to_node,
        "path": path,
    })


def elevator_ridden(faction: str, from_node: str, to_node: str, fare: int) -> GameEvent:
    return GameEvent(ELEVATOR_RIDDEN, {
        "faction": faction,
        "from_node": from_node,
        "to_node": to_node,
        "fare": fare,
    })


def resource_collected(faction: str, node_id: str, resource: str, amount: int) -> GameEvent:
    return GameEvent(RESOURCE_COLLECTED, {
        "faction": faction,
        "node_id": node_id,
        "resource": resource,
        "amount": amount,
    })


def event_triggered(faction: str, node_id: str, roll: int, outcome: str, changes: dict[str, int]) -> GameEvent:
    """
    outcome is one of "nothing", "windfall", "tailwind", "mugged".
    changes maps resource (or "bonus_moves") -> delta applied.
    """
    return GameEvent(EVENT_TRIGGERED, {
        "faction": faction,
        "node_id": node_id,
        "roll": roll,
        "outcome": outcome,
        "changes": changes,
    })


def trap_sprung(faction: str, node_id: str, owner: str) -> GameEvent:
    return GameEvent(TRAP_SPRUNG, {"faction": faction, "node_id": node_id, "owner": owner})


def resources_changed(
    faction: str,
    resource: str,
    old_value: int,
    new_value: int,
    reason: str,
) -> GameEvent:
    return GameEvent(RESOURCES_CHANGED, {
        "faction": faction,
        "resource": resource,
        "old_value": old_value,
        "new_value": new_value,
        "change": new_value - old_value,
        "reason": reason,
    })


def structure_placed(faction: str, node_id: str, kind: str, cost: dict[str, int]) -> GameEvent:
    return GameEvent(STRUCTURE_PLACED, {
        "faction": faction,
        "node_id": node_id,
        "kind": kind,
        "cost": cost,
    })


def structure_destroyed(faction: str, node_id: str, kind: str, owner: str, method: str) -> GameEvent:
    """method is "tool" or "paid"."""
    return GameEvent(STRUCTURE_DESTROYED, {
        "faction": faction,
        "node_id": node_id,
        "kind": kind,
        "owner": owner,
        "method": method,
    })


def tool_bought(faction: str, kind: str, cost: int, turns_left: int) -> GameEvent:
    return GameEvent(TOOL_BOUGHT, {
        "faction": faction,
        "kind": kind,
        "cost": cost,
        "turns_left": turns_left,
    })


def tool_used(faction: str, kind: str, turns_left: int) -> GameEvent:
    return GameEvent(TOOL_USED, {
        "faction": faction,
        "kind": kind,
        "turns_left": turns_left,
        "exhausted": turns_left <= 0,
    })


def tool_decayed(faction: str, kind: str, turns_left: int) -> GameEvent:
    return GameEvent(TOOL_DECAYED, {
        "faction": faction,
        "kind": kind,
        "turns_left": turns_left,
        "exhausted": turns_left <= 0,
    })


def income_collected(faction: str, income: dict[str, int], new_totals: dict[str, int]) -> GameEvent:
    """Emitted when turn order wraps and the round stipend is paid."""
    return GameEvent(INCOME_COLLECTED, {
        "faction": faction,
        "income": income,
        "new_totals": new_totals,
    })


def action_rejected(faction: str, action_type: str, error: str, reason: str) -> GameEvent:
    """reason is the GameRuleError code (illegal_transition, illegal_target, insufficient_resources)."""
    return GameEvent(ACTION_REJECTED, {
        "faction": faction,
        "action_type": action_type,
        "error": error,
        "reason": reason,
    })


def victory(winner: str, reason: str, round_number: int, details: dict[str, Any] | None = None) -> GameEvent:
    """
    Emitted on the transition to game_over.

    Args:
        winner: Winning faction
        reason: "nests" (pigeon nest threshold reached) or "round_limit" (humans held out)
        round_number: Round in which the match ended
        details: e.g. {"balcony_group": 2, "nests": 3}
    """
    return GameEvent(VICTORY, {
        "winner": winner,
        "reason": reason,
        "round": round_number,
        "details": details or {},
    })
