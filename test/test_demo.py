"""
The demo script: a scripted seeded match whose replay and board regeneration check out.
"""

import sys

import main


def test_demo_match_replays_cleanly(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["main.py", "11"])
    main.main()
    out = capsys.readouterr().out
    assert "✓ Replayed" in out
    assert "✓ Seed 11 regenerates the same board" in out
    assert "✗ Replay" not in out
    assert "different board" not in out
