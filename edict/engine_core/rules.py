"""
Rules - Fixed game constants and lookup tables.

Everything here is content-independent: dice mechanics, hand size,
resource bounds, difficulty profiles and reputation bands.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


# Dice
DICE_SIDES = 10
SUCCESS_THRESHOLD = 7
EXPLOSION_VALUE = 10
MAX_DICE_POOL = 20
MAX_EXPLOSION_DICE = 20

# Hand and resources
MAX_HAND_SIZE = 512
DAILY_THINK_CHARGES = 3
INITIAL_REPUTATION = 50
REPUTATION_MIN = 0
REPUTATION_MAX = 100
INITIAL_REWIND_CHARGES = 3

# Rewind
REWIND_HISTORY_LIMIT = 10

PROTAGONIST_TAG = "protagonist"


@dataclass(frozen=True)
class DifficultyProfile:
    """Starting conditions for one difficulty level."""
    execution_days: int
    initial_gold: int
    initial_cards: int
    enemy_strength: float


DIFFICULTY_CONFIG: dict[str, DifficultyProfile] = {
    "easy": DifficultyProfile(execution_days=21, initial_gold=50, initial_cards=5, enemy_strength=0.8),
    "normal": DifficultyProfile(execution_days=14, initial_gold=30, initial_cards=3, enemy_strength=1.0),
    "hard": DifficultyProfile(execution_days=7, initial_gold=15, initial_cards=2, enemy_strength=1.2),
    "nightmare": DifficultyProfile(execution_days=5, initial_gold=10, initial_cards=1, enemy_strength=1.5),
}


def get_difficulty(name: str) -> DifficultyProfile:
    """Look up a difficulty profile, raising KeyError for unknown names."""
    try:
        return DIFFICULTY_CONFIG[name]
    except KeyError:
        raise KeyError(f"Unknown difficulty: {name}") from None


class ReputationLevel(Enum):
    """Named reputation bands."""
    HUMBLE = "humble"
    COMMON = "common"
    RESPECTED = "respected"
    PROMINENT = "prominent"
    LEGENDARY = "legendary"


REPUTATION_LEVEL_RANGES: dict[ReputationLevel, tuple[int, int]] = {
    ReputationLevel.HUMBLE: (0, 19),
    ReputationLevel.COMMON: (20, 39),
    ReputationLevel.RESPECTED: (40, 59),
    ReputationLevel.PROMINENT: (60, 79),
    ReputationLevel.LEGENDARY: (80, 100),
}
