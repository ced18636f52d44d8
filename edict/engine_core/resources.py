"""
Resource Ledger - The player's gold, reputation and charges.

All numeric changes are clamped: gold, golden dice and rewind charges
never drop below 0 and reputation stays within REPUTATION_MIN..MAX.
Every change that actually moves a value emits a resource event whose
`amount` is the real (post-clamp) delta.
"""

from __future__ import annotations
from dataclasses import dataclass

from .errors import InvalidAmount
from .events import EventBus, EventType
from .rules import (
    DAILY_THINK_CHARGES,
    INITIAL_REPUTATION,
    INITIAL_REWIND_CHARGES,
    REPUTATION_LEVEL_RANGES,
    REPUTATION_MAX,
    REPUTATION_MIN,
    ReputationLevel,
)


@dataclass
class ResourceData:
    """Plain copy of the ledger values."""
    gold: int = 0
    reputation: int = INITIAL_REPUTATION
    golden_dice: int = 0
    rewind_charges: int = INITIAL_REWIND_CHARGES
    think_charges: int = DAILY_THINK_CHARGES


class ResourceLedger:
    """Single mutable ledger of player resources."""

    def __init__(self, data: ResourceData | None = None, events: EventBus | None = None):
        data = data or ResourceData()
        self.events = events or EventBus()
        self._gold = max(0, data.gold)
        self._reputation = self._clamp_reputation(data.reputation)
        self._golden_dice = max(0, data.golden_dice)
        self._rewind_charges = max(0, data.rewind_charges)
        self._think_charges = max(0, data.think_charges)

    @staticmethod
    def _clamp_reputation(value: int) -> int:
        return max(REPUTATION_MIN, min(REPUTATION_MAX, value))

    @property
    def gold(self) -> int:
        return self._gold

    @property
    def reputation(self) -> int:
        return self._reputation

    @property
    def golden_dice(self) -> int:
        return self._golden_dice

    @property
    def rewind_charges(self) -> int:
        return self._rewind_charges

    @property
    def think_charges(self) -> int:
        return self._think_charges

    # Gold

    def add_gold(self, amount: int) -> int:
        """Apply a gold delta (negative allowed). Returns the new total."""
        new_total = max(0, self._gold + amount)
        change = new_total - self._gold
        self._gold = new_total
        if change:
            self.events.emit(EventType.RESOURCE_GOLD_CHANGE, amount=change, new_total=new_total)
        return self._gold

    def remove_gold(self, amount: int) -> bool:
        """Spend gold. Returns False when there is not enough."""
        if amount < 0:
            raise InvalidAmount(amount)
        if self._gold < amount:
            return False
        self.add_gold(-amount)
        return True

    def set_gold(self, value: int) -> None:
        self.add_gold(max(0, value) - self._gold)

    # Reputation

    def add_reputation(self, amount: int) -> int:
        new_total = self._clamp_reputation(self._reputation + amount)
        change = new_total - self._reputation
        self._reputation = new_total
        if change:
            self.events.emit(EventType.RESOURCE_REPUTATION_CHANGE, amount=change, new_total=new_total)
        return self._reputation

    def set_reputation(self, value: int) -> None:
        self.add_reputation(self._clamp_reputation(value) - self._reputation)

    def reputation_level(self) -> ReputationLevel:
        for level, (low, high) in REPUTATION_LEVEL_RANGES.items():
            if low <= self._reputation <= high:
                return level
        return ReputationLevel.COMMON

    # Golden dice

    def add_golden_dice(self, amount: int) -> int:
        new_total = max(0, self._golden_dice + amount)
        change = new_total - self._golden_dice
        self._golden_dice = new_total
        if change:
            self.events.emit(EventType.RESOURCE_GOLDEN_DICE_CHANGE, amount=change, new_total=new_total)
        return self._golden_dice

    def use_golden_dice(self, count: int = 1) -> bool:
        if count < 0:
            raise InvalidAmount(count)
        if self._golden_dice < count:
            return False
        self.add_golden_dice(-count)
        return True

    # Rewind charges

    def add_rewind_charges(self, amount: int) -> int:
        new_total = max(0, self._rewind_charges + amount)
        change = new_total - self._rewind_charges
        self._rewind_charges = new_total
        if change:
            self.events.emit(EventType.RESOURCE_REWIND_CHANGE, amount=change, new_total=new_total)
        return self._rewind_charges

    def use_rewind(self) -> bool:
        if self._rewind_charges <= 0:
            return False
        self.add_rewind_charges(-1)
        return True

    # Think charges

    def use_think_charge(self) -> bool:
        if self._think_charges <= 0:
            return False
        self._think_charges -= 1
        return True

    def reset_think_charges(self) -> None:
        self._think_charges = DAILY_THINK_CHARGES
        self.events.emit(EventType.THINK_RESET, charges=self._think_charges)

    def set_think_charges(self, value: int) -> None:
        self._think_charges = max(0, value)

    # State

    def to_data(self) -> ResourceData:
        return ResourceData(
            gold=self._gold,
            reputation=self._reputation,
            golden_dice=self._golden_dice,
            rewind_charges=self._rewind_charges,
            think_charges=self._think_charges,
        )

    @classmethod
    def from_data(cls, data: ResourceData, events: EventBus | None = None) -> ResourceLedger:
        return cls(data, events)

    def restore(self, data: ResourceData) -> None:
        """Overwrite every value without emitting change events."""
        self._gold = max(0, data.gold)
        self._reputation = self._clamp_reputation(data.reputation)
        self._golden_dice = max(0, data.golden_dice)
        self._rewind_charges = max(0, data.rewind_charges)
        self._think_charges = max(0, data.think_charges)

    def clone(self) -> ResourceLedger:
        """Detached copy with its own event bus."""
        return ResourceLedger(self.to_data())
