"""
Pigeons vs Humans Turn-Based Board Game Engine
Core engine without web framework or UI.
"""

DICE_SIDES = 6

# Round limit and nest threshold live in the ruleset (data/rulesets/<id>/ruleset.json)
# and are copied into GameState at match start.
