"""
Action definitions for the match.
Actions are immutable, deterministic instructions: every die value the reducer needs
travels inside the payload, so replaying an action list reproduces a match exactly.
"""

from dataclasses import dataclass, field
from typing import Any

# Action kinds accepted by perform_action during the action phase
BUILD_NEST = "build_nest"
PLACE_PROP = "place_prop"
PLACE_SPIKES = "place_spikes"
PLACE_STICKY_TRAP = "place_sticky_trap"
BUY_TOOL = "buy_tool"
DESTROY_STRUCTURE = "destroy_structure"
GATHER = "gather"
FACTION_SPECIAL = "faction_special"

ACTION_KINDS = (
    BUILD_NEST,
    PLACE_PROP,
    PLACE_SPIKES,
    PLACE_STICKY_TRAP,
    BUY_TOOL,
    DESTROY_STRUCTURE,
    GATHER,
    FACTION_SPECIAL,
)


@dataclass
class Action:
    """Base action class. All actions have a type, faction, and payload."""
    type: str  # e.g., "roll_initiative", "roll_dice", "move_to", "perform_action", "end_turn"
    faction: str  # faction performing the action ("pigeon" or "human")
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "faction": self.faction, "payload": self.payload}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Action":
        return cls(
            type=str(data.get("type") or ""),
            faction=str(data.get("faction") or ""),
            payload=dict(data.get("payload") or {}),
        )


def roll_initiative(faction: str, rolls: dict[str, int]) -> Action:
    """
    Resolve initiative. Valid only in the initiative phase.
    rolls holds one d6 per faction, e.g. {"pigeon": 4, "human": 2}.
    On a tie the phase stays at initiative and both re-roll.
    """
    return Action(type="roll_initiative", faction=faction, payload={"rolls": dict(rolls)})


def roll_dice(faction: str, roll: int) -> Action:
    """
    Roll movement for the active player. Valid only in the roll phase.
    roll is the raw d6; class speed modifier and pending bonus moves are applied by the reducer.
    """
    return Action(type="roll_dice", faction=faction, payload={"roll": roll})


def move_to(faction: str, node_id: str, event_rolls: list[int] | None = None) -> Action:
    """
    Move the active player to a node in the precomputed reachable set.
    event_rolls supplies one d6 per event node crossed on the path (in path order).

    Example: move_to("pigeon", "balcony-0-entry", event_rolls=[5])
    """
    return Action(
        type="move_to",
        faction=faction,
        payload={"node_id": node_id, "event_rolls": list(event_rolls or [])},
    )


def ride_elevator(faction: str, node_id: str) -> Action:
    """
    Human only: pay the elevator fare and teleport from one elevator to another.
    Valid only in the move phase; ignores the reachable set.
    """
    return Action(type="ride_elevator", faction=faction, payload={"node_id": node_id})


def perform_action(faction: str, kind: str, params: dict[str, Any] | None = None) -> Action:
    """
    Perform one action-phase operation (see ACTION_KINDS).

    Example: perform_action("human", "destroy_structure", {"node_id": "balcony-2-slot-1"})
    """
    return Action(
        type="perform_action",
        faction=faction,
        payload={"kind": kind, "params": dict(params or {})},
    )


def end_turn(faction: str) -> Action:
    """End the current turn and pass play to the other faction."""
    return Action(type="end_turn", faction=faction, payload={})
