"""
Utility functions for the match engine.
"""

import random

from balcony_wars.engine import DICE_SIDES
from balcony_wars.engine.board import generate_board
from balcony_wars.engine.definitions import FACTIONS, HUMAN, PIGEON, ClassDefinition, Ruleset
from balcony_wars.engine.economy import nest_counts
from balcony_wars.engine.state import GameState, Inventory, PlayerState


def _starting_inventory(faction: str, ruleset: Ruleset, class_def: ClassDefinition) -> Inventory:
    inventory = Inventory()
    for resource, amount in ruleset.starting_inventory.get(faction, {}).items():
        inventory.add(resource, amount)
    for resource, amount in class_def.starting_bonus.items():
        inventory.add(resource, amount)
    return inventory


def initialize_game_state(
    pigeon_class_id: str,
    human_class_id: str,
    ruleset: Ruleset,
    class_defs: dict[str, ClassDefinition],
    rng: random.Random | None = None,
) -> GameState:
    """
    Create an initial match state: generated board, both players on their
    starting nodes, phase initiative.

    Args:
        pigeon_class_id: Class for the pigeon player (must belong to the pigeon faction)
        human_class_id: Class for the human player (must belong to the human faction)
        ruleset: Match ruleset (board parameters, starting nodes and inventory)
        class_defs: Player class catalog
        rng: Random source for board decorations

    Raises:
        ValueError: unknown class id, class of the wrong faction, or a starting node missing from the board
    """
    chosen = {PIGEON: pigeon_class_id, HUMAN: human_class_id}
    for faction, class_id in chosen.items():
        class_def = class_defs.get(class_id)
        if class_def is None:
            raise ValueError(f"Unknown class: {class_id}")
        if class_def.faction != faction:
            raise ValueError(f"Class {class_id} belongs to {class_def.faction}, not {faction}")

    nodes = generate_board(ruleset.board, rng)

    players = []
    for faction in FACTIONS:
        start = ruleset.starting_nodes.get(faction)
        if start not in nodes:
            raise ValueError(f"Starting node {start!r} for {faction} is not on the board")
        class_def = class_defs[chosen[faction]]
        players.append(PlayerState(
            faction=faction,
            class_id=class_def.id,
            current_node_id=start,
            inventory=_starting_inventory(faction, ruleset, class_def),
        ))

    return GameState(
        phase="initiative",
        players=players,
        nodes=nodes,
        ruleset_id=ruleset.id,
        max_rounds=ruleset.max_rounds,
        nests_to_win=ruleset.nests_to_win,
    )


def roll_die(rng: random.Random) -> int:
    """One d6 from the injected random source."""
    return rng.randint(1, DICE_SIDES)


def roll_dice(count: int, rng: random.Random) -> list[int]:
    """
    Roll `count` dice.

    Returns:
        List of dice rolls (1 to DICE_SIDES per roll)
    """
    return [roll_die(rng) for _ in range(count)]


def print_game_state(state: GameState, verbose: bool = False):
    """
    Pretty-print the current match state.

    Args:
        state: Current match state
        verbose: If True, also list every structure on the board
    """
    print(f"\n{'='*60}")
    print(
        f"Round {state.round}/{state.max_rounds} | Active: {state.active_player.faction} | Phase: {state.phase}")
    print(f"{'='*60}")

    for player in state.players:
        inv = player.inventory
        tool_str = f", {inv.tool.kind} ({inv.tool.turns_left} left)" if inv.tool else ""
        print(f"{player.faction} [{player.class_id}] at {player.current_node_id}: "
              f"straw {inv.straw}, twig {inv.twig}, coin {inv.coin}{tool_str}")

    counts = nest_counts(state)
    if counts:
        nest_str = ", ".join(f"balcony {g}: {c}" for g, c in sorted(counts.items()))
        print(f"\n{'Nests':.<40}")
        print(f"  {nest_str} (need {state.nests_to_win})")

    if verbose:
        print(f"\n{'Structures':.<40}")
        for node_id in sorted(state.nodes):
            structure = state.nodes[node_id].structure
            if structure:
                print(f"  - {node_id}: {structure.kind} ({structure.owner})")

    if state.winner:
        print(f"\nWinner: {state.winner}")
    print()
