"""
Main entry point for the Balcony Wars match engine.
Plays a seeded match between two simple scripted players and prints what happens.

Usage: python main.py [seed]
"""

import random
import sys

from balcony_wars.engine.definitions import BALCONY_KINDS, PIGEON
from balcony_wars.engine.errors import GameRuleError
from balcony_wars.engine.reducer import replay_from_actions
from balcony_wars.engine.session import MatchSession
from balcony_wars.engine.utils import initialize_game_state, print_game_state

# Preferred action kinds per faction, best first
PRIORITIES = {
    "pigeon": ["build_nest", "gather", "destroy_structure", "faction_special"],
    "human": ["destroy_structure", "buy_tool", "place_spikes", "place_sticky_trap", "place_prop"],
}


def choose_destination(session: MatchSession, rng: random.Random) -> str:
    """Pigeons head for balconies, humans for nodes holding nests; otherwise any landing node."""
    reachable = session.get_reachable_nodes()
    nodes = session.nodes
    if session.active_player.faction == PIGEON:
        preferred = [n for n in reachable if nodes[n].kind in BALCONY_KINDS and nodes[n].structure is None]
    else:
        preferred = [n for n in reachable if any(
            nodes[e].structure is not None and nodes[e].structure.owner == PIGEON
            for e in nodes[n].edges + [n]
        )]
    return rng.choice(preferred or reachable)


def play_turn(session: MatchSession, rng: random.Random) -> None:
    faction = session.active_player.faction
    events = session.roll_dice()
    roll = next(e for e in events if e.type == "dice_rolled")
    print(f"Round {session.state.round} | {faction} rolls {roll.payload['raw']} -> {roll.payload['effective']} moves")
    if session.phase != "move":
        print("  no legal moves, turn skipped")
        return

    target = choose_destination(session, rng)
    for event in session.move_to(target):
        if event.type in ("player_moved", "resource_collected", "event_triggered", "trap_sprung"):
            print(f"  {event.type}: {event.payload}")

    while session.phase == "action" and not session.state.has_acted_this_turn:
        available = {a["kind"]: a["params"] for a in session.available_actions()}
        kind = next((k for k in PRIORITIES[faction] if k in available), None)
        if kind is None:
            break
        try:
            events = session.perform_action(kind, available[kind])
        except GameRuleError as e:
            print(f"  ✗ {kind} failed: {e}")
            break
        print(f"  ✓ {kind}: {[e.type for e in events]}")

    if session.phase == "action":
        session.end_turn()


def main():
    seed = int(sys.argv[1]) if len(sys.argv) > 1 else 7
    print("Balcony Wars - Pigeons vs Humans")
    print("=" * 60)

    session = MatchSession.start_match("guttersnipe", "uncle", seed=seed)
    initial_state = session.state.copy()
    print(f"Board: {len(session.nodes)} nodes")
    print_game_state(session.state)

    while session.phase == "initiative":
        events = session.roll_initiative()
        print(f"Initiative: {events[0].payload['rolls']} -> first: {events[0].payload['first_faction']}")

    rng = random.Random(seed)
    while session.phase != "game_over":
        play_turn(session, rng)

    print_game_state(session.state, verbose=True)

    # Every die value is in the action log, so replaying it reproduces the match
    replayed, _ = replay_from_actions(initial_state, session.actions, session.ruleset, session.class_defs)
    final, expected = replayed.to_dict(), session.state.to_dict()
    final.pop("log"), expected.pop("log")
    if final == expected:
        print(f"✓ Replayed {len(session.actions)} actions to an identical final state")
    else:
        changed = sorted(key for key in expected if final.get(key) != expected[key])
        print(f"✗ Replay diverged in: {', '.join(changed)}")

    # A fresh board from the same seed is identical too
    again = initialize_game_state("guttersnipe", "uncle", session.ruleset, session.class_defs, random.Random(seed))
    if again.to_dict()["nodes"] == initial_state.to_dict()["nodes"]:
        print(f"✓ Seed {seed} regenerates the same board")
    else:
        print(f"✗ Seed {seed} produced a different board")


if __name__ == "__main__":
    main()
