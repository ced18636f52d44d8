"""
Think - Daily per-card think action.

Each day grants DAILY_THINK_CHARGES charges; each card can be thought
about at most once per day, and never while it is locked in a scene.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable

from ..engine_core.card_engine import CardEngine
from ..engine_core.events import EventType
from ..engine_core.resources import ResourceLedger


@dataclass
class ThinkResult:
    success: bool
    message: str


class ThinkEngine:
    def __init__(self, resources: ResourceLedger, card_engine: CardEngine):
        self.resources = resources
        self.card_engine = card_engine
        self._used_today: list[str] = []

    def can_use_think(self, instance_id: str) -> bool:
        return (
            self.resources.think_charges > 0
            and instance_id not in self._used_today
            and self.card_engine.get_card(instance_id) is not None
            and not self.card_engine.is_card_locked(instance_id)
        )

    def use_think(self, instance_id: str) -> ThinkResult:
        if not self.can_use_think(instance_id):
            return ThinkResult(success=False, message="Cannot use think on this card")
        if not self.resources.use_think_charge():
            return ThinkResult(success=False, message="No think charges remaining")

        self._used_today.append(instance_id)
        self.card_engine.events.emit(
            EventType.THINK_USE,
            card_id=instance_id,
            remaining=self.resources.think_charges,
        )
        return ThinkResult(success=True, message="Think used successfully")

    def reset_daily(self) -> None:
        self._used_today = []
        self.resources.reset_think_charges()

    @property
    def remaining_charges(self) -> int:
        return self.resources.think_charges

    def is_used_today(self, instance_id: str) -> bool:
        return instance_id in self._used_today

    def used_today_list(self) -> list[str]:
        return list(self._used_today)

    def restore_used_today(self, instance_ids: Iterable[str]) -> None:
        self._used_today = list(dict.fromkeys(instance_ids))
