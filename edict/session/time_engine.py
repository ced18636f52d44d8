"""
Time Engine - Day counter, execution countdown and rewind history.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..engine_core.events import EventBus, EventType
from ..engine_core.rules import REWIND_HISTORY_LIMIT

if TYPE_CHECKING:
    from .snapshot import SaveSnapshot


@dataclass
class TimeState:
    current_day: int
    execution_countdown: int


class TimeEngine:
    """
    Tracks the current day and the days left before execution.

    Also keeps a bounded stack of snapshots for rewind; pushing past
    the limit evicts the oldest.
    """

    def __init__(
        self,
        execution_days: int,
        events: EventBus | None = None,
        history_limit: int = REWIND_HISTORY_LIMIT,
    ):
        self.events = events or EventBus()
        self.current_day = 1
        self.execution_countdown = execution_days
        self._history: deque[SaveSnapshot] = deque(maxlen=history_limit)

    def advance_day(self) -> None:
        self.current_day += 1
        self.execution_countdown = max(0, self.execution_countdown - 1)
        self.events.emit(
            EventType.DAY_START,
            day=self.current_day,
            countdown=self.execution_countdown,
        )

    def is_execution_day(self) -> bool:
        return self.execution_countdown == 0

    # Rewind history

    def push_snapshot(self, snapshot: SaveSnapshot) -> None:
        self._history.append(snapshot)

    def pop_snapshot(self) -> SaveSnapshot | None:
        return self._history.pop() if self._history else None

    def can_rewind(self) -> bool:
        return bool(self._history)

    @property
    def history_length(self) -> int:
        return len(self._history)

    @property
    def history_limit(self) -> int:
        return self._history.maxlen

    def clear_history(self) -> None:
        self._history.clear()

    # State

    def reset(self, execution_days: int) -> None:
        self.current_day = 1
        self.execution_countdown = execution_days
        self.clear_history()

    def get_state(self) -> TimeState:
        return TimeState(current_day=self.current_day, execution_countdown=self.execution_countdown)

    def restore_state(self, state: TimeState) -> None:
        """Restore day and countdown; the rewind history is left untouched."""
        self.current_day = state.current_day
        self.execution_countdown = state.execution_countdown
