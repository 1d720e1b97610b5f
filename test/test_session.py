"""
MatchSession: match setup, rejection handling and full seeded matches.
"""

import pytest

from balcony_wars.engine.definitions import HUMAN, PIGEON
from balcony_wars.engine.errors import IllegalTarget, IllegalTransition
from balcony_wars.engine.queries import get_available_action_types, validate_action
from balcony_wars.engine.actions import end_turn
from balcony_wars.engine.reducer import replay_from_actions
from balcony_wars.engine.session import MatchSession


def _through_initiative(session: MatchSession) -> None:
    while session.phase == "initiative":
        session.roll_initiative()


def _play_passive_turn(session: MatchSession) -> None:
    session.roll_dice()
    if session.phase == "move":
        session.move_to(session.get_reachable_nodes()[0])
    if session.phase == "action":
        session.end_turn()


def test_start_match_rejects_bad_classes():
    with pytest.raises(ValueError):
        MatchSession.start_match("eagle", "uncle")
    with pytest.raises(ValueError):
        MatchSession.start_match("uncle", "student")


def test_start_match_positions_and_money():
    session = MatchSession.start_match("chonk", "student", seed=1)
    pigeon, human = session.players
    assert session.phase == "initiative"
    assert pigeon.faction == PIGEON and pigeon.current_node_id == "dumpster"
    assert human.faction == HUMAN and human.current_node_id == "van-bl"
    assert human.inventory.coin == 8  # 5 + scholarship
    assert pigeon.inventory.resources() == {"straw": 0, "twig": 0, "coin": 0}


def test_same_seed_same_match():
    a = MatchSession.start_match("guttersnipe", "uncle", seed=21)
    b = MatchSession.start_match("guttersnipe", "uncle", seed=21)
    assert a.state.to_dict() == b.state.to_dict()
    _through_initiative(a)
    _through_initiative(b)
    assert a.state.to_dict() == b.state.to_dict()


def test_rejection_is_logged_and_state_kept():
    session = MatchSession.start_match("guttersnipe", "uncle", seed=3)
    before = session.state.to_dict()
    with pytest.raises(IllegalTransition):
        session.end_turn()
    after = session.state.to_dict()
    rejected = after["log"].pop()
    assert rejected["type"] == "action_rejected"
    assert rejected["payload"]["reason"] == "illegal_transition"
    assert after == before


def test_move_to_unreachable_rejected():
    session = MatchSession.start_match("guttersnipe", "uncle", seed=5)
    _through_initiative(session)
    session.roll_dice()
    if session.phase != "move":
        pytest.skip("no legal moves for this roll")
    with pytest.raises(IllegalTarget):
        session.move_to("park-that-does-not-exist")
    assert session.phase == "move"


def test_reachable_empty_outside_move():
    session = MatchSession.start_match("guttersnipe", "uncle", seed=5)
    assert session.get_reachable_nodes() == []
    assert get_available_action_types(session.state) == ["roll_initiative"]


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_passive_match_runs_to_round_limit(seed):
    session = MatchSession.start_match("guttersnipe", "uncle", seed=seed)
    _through_initiative(session)
    for _ in range(2 * session.state.max_rounds + 2):
        if session.phase == "game_over":
            break
        _play_passive_turn(session)
    assert session.phase == "game_over"
    assert session.winner == HUMAN
    assert session.state.round == session.state.max_rounds + 1
    assert session.log[-1]["type"] == "victory"


def test_replay_reproduces_match():
    session = MatchSession.start_match("chonk", "student", seed=9)
    initial = session.state.copy()
    _through_initiative(session)
    for _ in range(6):
        _play_passive_turn(session)
    replayed, _ = replay_from_actions(initial, session.actions, session.ruleset, session.class_defs)
    assert replayed.to_dict() == session.state.to_dict()


def test_validate_action_does_not_raise():
    session = MatchSession.start_match("guttersnipe", "uncle", seed=4)
    result = validate_action(session.state, end_turn(PIGEON), session.ruleset, session.class_defs)
    assert not result.valid
    assert result.code == "illegal_transition"
    assert session.log == []


def test_available_actions_in_action_phase():
    session = MatchSession.start_match("guttersnipe", "uncle", seed=2)
    _through_initiative(session)
    while session.active_player.faction != PIGEON or session.phase != "roll":
        _play_passive_turn(session)
    session.state.phase = "action"  # pigeon still on the dumpster
    kinds = [a["kind"] for a in session.available_actions()]
    assert "gather" in kinds
    assert "build_nest" not in kinds
