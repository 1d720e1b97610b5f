"""
Rule violations raised by the reducer.
All are recoverable: the caller keeps the previous state.
"""


class GameRuleError(ValueError):
    """Base class for every rejected operation."""
    code = "rule_error"


class IllegalTransition(GameRuleError):
    """Operation invoked outside its phase, by the wrong faction, or after game over."""
    code = "illegal_transition"


class IllegalTarget(GameRuleError):
    """Target node or parameters violate a precondition."""
    code = "illegal_target"


class InsufficientResources(GameRuleError):
    """Cost exceeds the acting player's inventory."""
    code = "insufficient_resources"
