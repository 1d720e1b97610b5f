"""
Match session: the single owner of one match's state.

Holds the ruleset, class catalog and an injected random source, turns
player intent (roll, move, act) into deterministic actions with the dice
already rolled, and swaps the reducer's new state in only on success.

Usage:
    session = MatchSession.start_match("guttersnipe", "uncle", seed=7)
    session.roll_initiative()
    session.roll_dice()
    session.move_to(session.get_reachable_nodes()[0])
    session.end_turn()
"""

import logging
import random
import threading
from typing import Any

from balcony_wars.engine.actions import (
    Action,
    end_turn,
    move_to,
    perform_action,
    ride_elevator,
    roll_dice,
    roll_initiative,
)
from balcony_wars.engine.definitions import (
    FACTIONS,
    ClassDefinition,
    Ruleset,
    load_static_definitions,
)
from balcony_wars.engine.economy import count_events, effective_path
from balcony_wars.engine.errors import GameRuleError
from balcony_wars.engine.events import GameEvent, action_rejected
from balcony_wars.engine.movement import shortest_path
from balcony_wars.engine.queries import (
    get_available_actions,
    get_match_summary,
    get_reachable_nodes,
)
from balcony_wars.engine.reducer import apply_action
from balcony_wars.engine.state import GameState, Node, PlayerState
from balcony_wars.engine.utils import initialize_game_state, roll_die, roll_dice as roll_many

logger = logging.getLogger(__name__)


class MatchSession:
    """
    One match behind a single-writer API.

    Every mutating method returns the events it produced. A rejected
    operation re-raises the GameRuleError after logging an action_rejected
    event; the match state is otherwise unchanged.
    """

    def __init__(
        self,
        state: GameState,
        ruleset: Ruleset,
        class_defs: dict[str, ClassDefinition],
        rng: random.Random | None = None,
    ):
        self.state = state
        self.ruleset = ruleset
        self.class_defs = class_defs
        self.rng = rng or random.Random()
        self.actions: list[Action] = []
        self._lock = threading.Lock()

    @classmethod
    def start_match(
        cls,
        pigeon_class_id: str,
        human_class_id: str,
        seed: int | None = None,
        ruleset_id: str | None = None,
    ) -> "MatchSession":
        """
        Generate a board and start a match in the initiative phase.
        The same seed reproduces the same board and dice.

        Raises:
            ValueError: unknown class or class of the wrong faction
            FileNotFoundError: unknown ruleset
        """
        ruleset, class_defs = load_static_definitions(ruleset_id)
        rng = random.Random(seed)
        state = initialize_game_state(pigeon_class_id, human_class_id, ruleset, class_defs, rng)
        logger.info(
            "Match started: ruleset=%s pigeon=%s human=%s seed=%s nodes=%d",
            ruleset.id, pigeon_class_id, human_class_id, seed, len(state.nodes),
        )
        return cls(state, ruleset, class_defs, rng)

    # ===== Read-only views =====

    @property
    def phase(self) -> str:
        return self.state.phase

    @property
    def active_player(self) -> PlayerState:
        return self.state.active_player

    @property
    def players(self) -> list[PlayerState]:
        return self.state.players

    @property
    def nodes(self) -> dict[str, Node]:
        return self.state.nodes

    @property
    def log(self) -> list[dict[str, Any]]:
        return self.state.log

    @property
    def winner(self) -> str | None:
        return self.state.winner

    def summary(self) -> dict[str, Any]:
        return get_match_summary(self.state)

    def available_actions(self) -> list[dict[str, Any]]:
        return get_available_actions(self.state, self.ruleset, self.class_defs)

    def get_reachable_nodes(self) -> list[str]:
        """Landing nodes for the current roll (empty outside the move phase)."""
        return get_reachable_nodes(self.state)

    # ===== Operations =====

    def _apply(self, action: Action) -> list[GameEvent]:
        with self._lock:
            try:
                new_state, events = apply_action(self.state, action, self.ruleset, self.class_defs)
            except GameRuleError as e:
                rejected = action_rejected(action.faction, action.type, str(e), e.code)
                self.state.log.append({**rejected.to_dict(), "round": self.state.round})
                logger.debug("Rejected %s by %s: %s", action.type, action.faction, e)
                raise
            self.state = new_state
            self.actions.append(action)
        if new_state.phase == "game_over":
            logger.info("Match over: winner=%s round=%d", new_state.winner, new_state.round)
        return events

    def roll_initiative(self) -> list[GameEvent]:
        """Both factions roll a d6; a tie leaves the match in the initiative phase."""
        rolls = dict(zip(FACTIONS, roll_many(len(FACTIONS), self.rng)))
        return self._apply(roll_initiative(self.active_player.faction, rolls))

    def roll_dice(self) -> list[GameEvent]:
        return self._apply(roll_dice(self.active_player.faction, roll_die(self.rng)))

    def move_to(self, node_id: str) -> list[GameEvent]:
        """
        Walk to a reachable node. Event dice for the path are rolled here;
        an unreachable target is rejected by the reducer without rolling.
        """
        player = self.active_player
        event_rolls: list[int] = []
        if self.state.phase == "move" and node_id in self.state.reachable:
            path = shortest_path(self.state.nodes, player.current_node_id, node_id, player.faction)
            needed = count_events(self.state, effective_path(self.state, player.faction, path))
            event_rolls = roll_many(needed, self.rng)
        return self._apply(move_to(player.faction, node_id, event_rolls))

    def ride_elevator(self, node_id: str) -> list[GameEvent]:
        return self._apply(ride_elevator(self.active_player.faction, node_id))

    def perform_action(self, kind: str, params: dict[str, Any] | None = None) -> list[GameEvent]:
        return self._apply(perform_action(self.active_player.faction, kind, params))

    def end_turn(self) -> list[GameEvent]:
        return self._apply(end_turn(self.active_player.faction))
