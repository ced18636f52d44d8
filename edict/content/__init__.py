"""
Content - Bundled card and scene templates.
"""

from .starter import COMPANION_IDS, PROTAGONIST_ID, deal_starting_hand, starter_cards, starter_scenes

__all__ = [
    "COMPANION_IDS",
    "PROTAGONIST_ID",
    "deal_starting_hand",
    "starter_cards",
    "starter_scenes",
]
