"""
Match state representation.
The reducer never mutates a state it was given; it works on copies.
Includes dict/JSON serialization for the API layer.
"""

import json
from dataclasses import dataclass, field
from copy import deepcopy
from typing import Any

from balcony_wars.engine.definitions import COIN, RESOURCES, STRAW, TWIG


def _int(v: Any, default: int) -> int:
    try:
        return int(v) if v is not None else default
    except (TypeError, ValueError):
        return default


def _ensure_str_list(value: Any) -> list[str]:
    """Ensure value is a list of strings (edges, reachable sets)."""
    if not isinstance(value, list):
        return []
    return [str(x) for x in value]


@dataclass
class Structure:
    """A structure sitting on a node. At most one per node."""
    kind: str  # "nest", "prop", "spikes", "sticky_trap"
    owner: str  # faction

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "owner": self.owner}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Structure":
        return cls(kind=str(data.get("kind") or ""), owner=str(data.get("owner") or ""))


@dataclass
class Node:
    """A location on the board graph."""
    id: str
    kind: str
    x: float  # Percentage 0-100, presentation only
    y: float
    edges: list[str] = field(default_factory=list)
    resource: str | None = None  # One-shot tag, cleared on pickup
    structure: Structure | None = None
    balcony_group: int | None = None

    def connect(self, other: "Node") -> None:
        """Add an undirected edge between self and other."""
        if other.id not in self.edges:
            self.edges.append(other.id)
        if self.id not in other.edges:
            other.edges.append(self.id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "x": self.x,
            "y": self.y,
            "edges": list(self.edges),
            "resource": self.resource,
            "structure": self.structure.to_dict() if self.structure else None,
            "balcony_group": self.balcony_group,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Node":
        structure = data.get("structure")
        group = data.get("balcony_group")
        return cls(
            id=str(data.get("id") or ""),
            kind=str(data.get("kind") or ""),
            x=float(data.get("x") or 0),
            y=float(data.get("y") or 0),
            edges=_ensure_str_list(data.get("edges")),
            resource=data.get("resource"),
            structure=Structure.from_dict(structure) if isinstance(structure, dict) else None,
            balcony_group=int(group) if group is not None else None,
        )


@dataclass
class Tool:
    """A decaying tool (e.g. the vacuum). Removed from inventory when turns_left hits 0."""
    kind: str
    turns_left: int

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "turns_left": self.turns_left}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Tool":
        return cls(kind=str(data.get("kind") or ""), turns_left=_int(data.get("turns_left"), 0))


@dataclass
class Inventory:
    """Fungible resources plus at most one decaying tool."""
    straw: int = 0
    twig: int = 0
    coin: int = 0
    tool: Tool | None = None

    def get(self, resource: str) -> int:
        if resource not in RESOURCES:
            raise KeyError(resource)
        return getattr(self, resource)

    def add(self, resource: str, amount: int) -> int:
        """Add amount (may be negative, floored at 0). Returns the new count."""
        new_value = max(0, self.get(resource) + amount)
        setattr(self, resource, new_value)
        return new_value

    def can_afford(self, cost: dict[str, int]) -> bool:
        return all(self.get(resource) >= amount for resource, amount in cost.items())

    def resources(self) -> dict[str, int]:
        return {STRAW: self.straw, TWIG: self.twig, COIN: self.coin}

    def to_dict(self) -> dict[str, Any]:
        return {
            "straw": self.straw,
            "twig": self.twig,
            "coin": self.coin,
            "tool": self.tool.to_dict() if self.tool else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Inventory":
        if not isinstance(data, dict):
            data = {}
        tool = data.get("tool")
        return cls(
            straw=max(0, _int(data.get("straw"), 0)),
            twig=max(0, _int(data.get("twig"), 0)),
            coin=max(0, _int(data.get("coin"), 0)),
            tool=Tool.from_dict(tool) if isinstance(tool, dict) else None,
        )


@dataclass
class PlayerState:
    """One of the two match participants."""
    faction: str
    class_id: str
    current_node_id: str
    inventory: Inventory = field(default_factory=Inventory)
    initiative: int = 0
    bonus_moves: int = 0  # Granted by events, added to the next roll

    def to_dict(self) -> dict[str, Any]:
        return {
            "faction": self.faction,
            "class_id": self.class_id,
            "current_node_id": self.current_node_id,
            "inventory": self.inventory.to_dict(),
            "initiative": self.initiative,
            "bonus_moves": self.bonus_moves,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlayerState":
        if not isinstance(data, dict):
            data = {}
        return cls(
            faction=str(data.get("faction") or ""),
            class_id=str(data.get("class_id") or ""),
            current_node_id=str(data.get("current_node_id") or ""),
            inventory=Inventory.from_dict(data.get("inventory") or {}),
            initiative=_int(data.get("initiative"), 0),
            bonus_moves=_int(data.get("bonus_moves"), 0),
        )


@dataclass
class GameState:
    """Complete match state: turn state machine, both players and the node graph."""
    phase: str  # "initiative", "roll", "move", "action", "game_over"
    players: list[PlayerState]  # index 0 = pigeon, index 1 = human
    nodes: dict[str, Node]  # node_id -> Node
    ruleset_id: str = "default"
    max_rounds: int = 20
    nests_to_win: int = 3
    round: int = 1
    active_player_index: int = 0
    first_player_index: int = 0
    dice_roll: int | None = None
    moves_remaining: int = 0
    # Reachable set computed at roll time, valid during the move phase
    reachable: list[str] = field(default_factory=list)
    actions_taken: int = 0
    has_acted_this_turn: bool = False
    winner: str | None = None
    # Append-only list of event dicts ({"type", "payload", "round"})
    log: list[dict[str, Any]] = field(default_factory=list)

    def copy(self) -> "GameState":
        """Return a deep copy of this game state."""
        return deepcopy(self)

    @property
    def active_player(self) -> PlayerState:
        return self.players[self.active_player_index]

    @property
    def opponent(self) -> PlayerState:
        return self.players[1 - self.active_player_index]

    def player_for(self, faction: str) -> PlayerState:
        for player in self.players:
            if player.faction == faction:
                return player
        raise KeyError(faction)

    def nodes_of_kind(self, kind: str) -> list[Node]:
        return [n for n in self.nodes.values() if n.kind == kind]

    # ===== Serialization Methods =====

    def to_dict(self) -> dict[str, Any]:
        """Convert GameState to a dictionary for JSON serialization."""
        return {
            "phase": self.phase,
            "players": [p.to_dict() for p in self.players],
            "nodes": {nid: n.to_dict() for nid, n in self.nodes.items()},
            "ruleset_id": self.ruleset_id,
            "max_rounds": self.max_rounds,
            "nests_to_win": self.nests_to_win,
            "round": self.round,
            "active_player_index": self.active_player_index,
            "first_player_index": self.first_player_index,
            "dice_roll": self.dice_roll,
            "moves_remaining": self.moves_remaining,
            "reachable": list(self.reachable),
            "actions_taken": self.actions_taken,
            "has_acted_this_turn": self.has_acted_this_turn,
            "winner": self.winner,
            "log": list(self.log),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GameState":
        """Create GameState from a dictionary."""
        nodes_data = data.get("nodes") or {}
        if not isinstance(nodes_data, dict):
            nodes_data = {}
        players_data = data.get("players") or []
        if not isinstance(players_data, list):
            players_data = []
        log = data.get("log") or []
        dice_roll = data.get("dice_roll")
        return cls(
            phase=str(data.get("phase") or "initiative"),
            players=[PlayerState.from_dict(p) for p in players_data if isinstance(p, dict)],
            nodes={nid: Node.from_dict(n) for nid, n in nodes_data.items() if isinstance(n, dict)},
            ruleset_id=str(data.get("ruleset_id") or "default"),
            max_rounds=_int(data.get("max_rounds"), 20),
            nests_to_win=_int(data.get("nests_to_win"), 3),
            round=_int(data.get("round"), 1),
            active_player_index=_int(data.get("active_player_index"), 0),
            first_player_index=_int(data.get("first_player_index"), 0),
            dice_roll=_int(dice_roll, 0) if dice_roll is not None else None,
            moves_remaining=_int(data.get("moves_remaining"), 0),
            reachable=_ensure_str_list(data.get("reachable")),
            actions_taken=_int(data.get("actions_taken"), 0),
            has_acted_this_turn=bool(data.get("has_acted_this_turn", False)),
            winner=data.get("winner"),
            log=[e for e in log if isinstance(e, dict)] if isinstance(log, list) else [],
        )

    def to_json(self, indent: int = 2) -> str:
        """Serialize GameState to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> "GameState":
        """Deserialize GameState from a JSON string."""
        return cls.from_dict(json.loads(json_str))
