"""
Static definitions for factions, node kinds, player classes and rulesets.
All ruleset data lives under data/rulesets/<ruleset_id>/: ruleset.json (costs, limits, board
parameters, starting positions) and classes.json (player class catalog).
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DATA_DIR = Path(__file__).parent.parent / "data"
RULESETS_DIR = DATA_DIR / "rulesets"

# ===== Factions =====

PIGEON = "pigeon"
HUMAN = "human"
FACTIONS = (PIGEON, HUMAN)

# ===== Node kinds =====

BALCONY_ENTRY = "balcony_entry"
BALCONY_SLOT = "balcony_slot"
WIRE = "wire"
ROAD = "road"
VAN = "van"
PARK = "park"
DUMPSTER = "dumpster"
ELEVATOR = "elevator"
EVENT = "event"

NODE_KINDS = (BALCONY_ENTRY, BALCONY_SLOT, WIRE, ROAD, VAN, PARK, DUMPSTER, ELEVATOR, EVENT)
BALCONY_KINDS = (BALCONY_ENTRY, BALCONY_SLOT)

# ===== Resources =====

STRAW = "straw"
TWIG = "twig"
COIN = "coin"
RESOURCES = (STRAW, TWIG, COIN)

# Which one-shot node tags each faction picks up while walking
COLLECTS = {
    PIGEON: (STRAW, TWIG),
    HUMAN: (COIN,),
}

# Repeatable gather yield of the pigeon hubs
HUB_RESOURCES = {
    DUMPSTER: STRAW,
    PARK: TWIG,
}

# ===== Structures =====

NEST = "nest"
PROP = "prop"
SPIKES = "spikes"
STICKY_TRAP = "sticky_trap"

STRUCTURE_OWNERS = {
    NEST: PIGEON,
    PROP: HUMAN,
    SPIKES: HUMAN,
    STICKY_TRAP: HUMAN,
}

# Node kinds each structure may be placed on
STRUCTURE_NODE_KINDS = {
    NEST: BALCONY_KINDS,
    PROP: BALCONY_KINDS,
    SPIKES: BALCONY_KINDS + (EVENT,),
    STICKY_TRAP: BALCONY_KINDS + (EVENT,),
}

VACUUM = "vacuum"

# ===== Abilities =====
# Active abilities resolve through the faction_special action; passive ones act via class numbers.

ABILITY_SCAVENGE = "scavenge"
ABILITY_HEAVY_SITTER = "heavy_sitter"
ABILITY_PENSION = "pension"
ABILITY_SCHOLARSHIP = "scholarship"

ACTIVE_ABILITIES = (ABILITY_SCAVENGE,)
PASSIVE_ABILITIES = (ABILITY_HEAVY_SITTER, ABILITY_PENSION, ABILITY_SCHOLARSHIP)


def _default_ruleset_id() -> str:
    """Single place for default: balcony_wars.config.DEFAULT_RULESET_ID."""
    from balcony_wars.config import DEFAULT_RULESET_ID
    return DEFAULT_RULESET_ID


def _ruleset_dir(ruleset_id: str) -> Path:
    return RULESETS_DIR / ruleset_id


@dataclass
class AbilityDefinition:
    """Tagged ability variant: kind plus its parameters."""
    kind: str
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.kind in ACTIVE_ABILITIES


@dataclass
class ClassDefinition:
    """Defines the numeric profile and ability of a player class."""
    id: str
    display_name: str
    faction: str
    speed_modifier: int = 0
    pickup_bonus: int = 0  # Extra units per in-transit pickup
    income_bonus: int = 0  # Extra coin per round stipend (humans only get a stipend)
    action_points: int = 1
    starting_bonus: dict[str, int] = field(default_factory=dict)
    # structure kind -> {resource -> delta}, e.g. {"nest": {"straw": -1}}
    cost_modifiers: dict[str, dict[str, int]] = field(default_factory=dict)
    ability: AbilityDefinition = field(default_factory=lambda: AbilityDefinition(kind=""))


@dataclass
class BoardConfig:
    """Parameters of the board graph generator."""
    num_balconies: int = 6
    slot_chains: tuple[int, ...] = (2, 2, 1)
    short_wire: int = 2
    long_wire: int = 4
    cross_wire: int = 3
    diagonal_wire: int = 5
    event_probability: float = 0.2
    wire_resource_probability: float = 0.15
    coin_probability: float = 0.4


@dataclass
class Ruleset:
    """Match-wide numbers: limits, costs, income and board parameters."""
    id: str
    display_name: str
    max_rounds: int = 20
    nests_to_win: int = 3
    human_stipend: int = 2
    hub_yield: int = 2
    elevator_cost: int = 1
    tool_cost: int = 5
    tool_durability: int = 3
    tailwind_bonus: int = 2
    structure_costs: dict[str, dict[str, int]] = field(default_factory=dict)
    destroy_cost: dict[str, int] = field(default_factory=dict)
    starting_nodes: dict[str, str] = field(default_factory=dict)
    starting_inventory: dict[str, dict[str, int]] = field(default_factory=dict)
    board: BoardConfig = field(default_factory=BoardConfig)


def list_rulesets() -> list[dict]:
    """Return [{ id, display_name }, ...] for all rulesets (subdirs of data/rulesets/ with ruleset.json)."""
    out = []
    if not RULESETS_DIR.exists():
        return out
    for d in sorted(RULESETS_DIR.iterdir()):
        if not d.is_dir() or not (d / "ruleset.json").exists():
            continue
        try:
            with open(d / "ruleset.json", "r") as f:
                data = json.load(f)
            out.append({"id": data.get("id", d.name), "display_name": data.get("display_name", d.name)})
        except (json.JSONDecodeError, OSError):
            out.append({"id": d.name, "display_name": d.name})
    return out


def _board_config_from_dict(data: dict[str, Any]) -> BoardConfig:
    defaults = BoardConfig()
    chains = data.get("slot_chains")
    return BoardConfig(
        num_balconies=int(data.get("num_balconies", defaults.num_balconies)),
        slot_chains=tuple(int(c) for c in chains) if isinstance(chains, list) and chains else defaults.slot_chains,
        short_wire=int(data.get("short_wire", defaults.short_wire)),
        long_wire=int(data.get("long_wire", defaults.long_wire)),
        cross_wire=int(data.get("cross_wire", defaults.cross_wire)),
        diagonal_wire=int(data.get("diagonal_wire", defaults.diagonal_wire)),
        event_probability=float(data.get("event_probability", defaults.event_probability)),
        wire_resource_probability=float(
            data.get("wire_resource_probability", defaults.wire_resource_probability)
        ),
        coin_probability=float(data.get("coin_probability", defaults.coin_probability)),
    )


def ruleset_from_dict(data: dict[str, Any]) -> Ruleset:
    """Build a Ruleset from its JSON dict (missing keys fall back to dataclass defaults)."""
    defaults = Ruleset(id="", display_name="")
    return Ruleset(
        id=str(data.get("id") or ""),
        display_name=str(data.get("display_name") or data.get("id") or ""),
        max_rounds=int(data.get("max_rounds", defaults.max_rounds)),
        nests_to_win=int(data.get("nests_to_win", defaults.nests_to_win)),
        human_stipend=int(data.get("human_stipend", defaults.human_stipend)),
        hub_yield=int(data.get("hub_yield", defaults.hub_yield)),
        elevator_cost=int(data.get("elevator_cost", defaults.elevator_cost)),
        tool_cost=int(data.get("tool_cost", defaults.tool_cost)),
        tool_durability=int(data.get("tool_durability", defaults.tool_durability)),
        tailwind_bonus=int(data.get("tailwind_bonus", defaults.tailwind_bonus)),
        structure_costs={
            str(k): {str(r): int(a) for r, a in v.items()}
            for k, v in (data.get("structure_costs") or {}).items()
        },
        destroy_cost={str(r): int(a) for r, a in (data.get("destroy_cost") or {}).items()},
        starting_nodes={str(k): str(v) for k, v in (data.get("starting_nodes") or {}).items()},
        starting_inventory={
            str(k): {str(r): int(a) for r, a in v.items()}
            for k, v in (data.get("starting_inventory") or {}).items()
        },
        board=_board_config_from_dict(data.get("board") or {}),
    )


def class_from_dict(data: dict[str, Any]) -> ClassDefinition:
    ability = data.get("ability") or {}
    return ClassDefinition(
        id=data["id"],
        display_name=data.get("display_name", data["id"]),
        faction=data["faction"],
        speed_modifier=int(data.get("speed_modifier", 0)),
        pickup_bonus=int(data.get("pickup_bonus", 0)),
        income_bonus=int(data.get("income_bonus", 0)),
        action_points=int(data.get("action_points", 1)),
        starting_bonus={str(r): int(a) for r, a in (data.get("starting_bonus") or {}).items()},
        cost_modifiers={
            str(k): {str(r): int(a) for r, a in v.items()}
            for k, v in (data.get("cost_modifiers") or {}).items()
        },
        ability=AbilityDefinition(
            kind=str(ability.get("kind") or ""),
            params=dict(ability.get("params") or {}),
        ),
    )


def load_ruleset(ruleset_id: str | None = None) -> Ruleset:
    """Load data/rulesets/<ruleset_id>/ruleset.json. None = default ruleset."""
    ruleset_id = ruleset_id or _default_ruleset_id()
    path = _ruleset_dir(ruleset_id) / "ruleset.json"
    if not path.exists():
        raise FileNotFoundError(f"Ruleset not found: {ruleset_id}")
    with open(path, "r") as f:
        data = json.load(f)
    data.setdefault("id", ruleset_id)
    return ruleset_from_dict(data)


def load_class_definitions(ruleset_id: str | None = None) -> dict[str, ClassDefinition]:
    """Load data/rulesets/<ruleset_id>/classes.json into class_id -> ClassDefinition."""
    ruleset_id = ruleset_id or _default_ruleset_id()
    path = _ruleset_dir(ruleset_id) / "classes.json"
    if not path.exists():
        raise FileNotFoundError(f"classes.json not found in ruleset: {ruleset_id}")
    with open(path, "r") as f:
        classes_data = json.load(f)
    return {class_id: class_from_dict(data) for class_id, data in classes_data.items()}


def load_static_definitions(ruleset_id: str | None = None) -> tuple[Ruleset, dict[str, ClassDefinition]]:
    """
    Load the ruleset and class catalog together.

    Returns: (ruleset, class_definitions)
    """
    return load_ruleset(ruleset_id), load_class_definitions(ruleset_id)
