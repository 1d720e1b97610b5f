"""
Balcony Wars - Pigeons vs Humans.
Turn-based two-faction board game engine over a generated balcony graph.
"""

__version__ = "0.1.0"
