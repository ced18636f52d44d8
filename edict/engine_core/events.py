"""
Events - One-way notification channel for observers.

Engines publish named domain events; observers (UI, logging, tests)
subscribe. The engine never inspects a handler's result, and a failing
handler is isolated so it cannot abort an engine operation.

Each GameSession owns one EventBus and injects it into its engines.
"""

from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
import logging

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Named domain events."""
    GAME_START = "game:start"
    GAME_LOAD = "game:load"
    GAME_SAVE = "game:save"
    GAME_END = "game:end"

    DAY_START = "day:start"
    DAY_END = "day:end"
    DAY_DAWN = "day:dawn"
    DAY_ACTION = "day:action"
    DAY_SETTLEMENT = "day:settlement"

    SCENE_UNLOCK = "scene:unlock"
    SCENE_PARTICIPATE = "scene:participate"
    SCENE_SETTLE = "scene:settle"
    SCENE_COMPLETE = "scene:complete"
    SCENE_EXPIRE = "scene:expire"

    CARD_ADD = "card:add"
    CARD_REMOVE = "card:remove"
    CARD_EQUIP = "card:equip"
    CARD_UNEQUIP = "card:unequip"
    CARD_TAG_ADD = "card:tag_add"
    CARD_TAG_REMOVE = "card:tag_remove"
    CARD_LOCK = "card:lock"
    CARD_UNLOCK = "card:unlock"

    DICE_ROLL_START = "dice:roll_start"
    DICE_ROLL_RESULT = "dice:roll_result"
    DICE_EXPLOSION = "dice:explosion"
    DICE_REROLL = "dice:reroll"
    DICE_GOLDEN_DICE = "dice:golden_dice"
    DICE_COMPLETE = "dice:complete"

    RESOURCE_GOLD_CHANGE = "resource:gold_change"
    RESOURCE_REPUTATION_CHANGE = "resource:reputation_change"
    RESOURCE_GOLDEN_DICE_CHANGE = "resource:golden_dice_change"
    RESOURCE_REWIND_CHANGE = "resource:rewind_change"

    THINK_USE = "think:use"
    THINK_RESET = "think:reset"

    EFFECTS_APPLY = "effects:apply"


@dataclass
class GameEvent:
    """A published event: its name and a free-form payload."""
    event_type: EventType
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.event_type.value


Handler = Callable[[GameEvent], None]

# Subscribing with ALL_EVENTS receives every published event
ALL_EVENTS = "*"


class EventBus:
    """
    Synchronous publish/subscribe bus.

    Handlers run in subscription order. Exceptions raised by a handler
    are logged and kept in last_publish_errors(), never re-raised.
    """

    def __init__(self) -> None:
        self._subscribers: defaultdict[EventType | str, list[Handler]] = defaultdict(list)
        self._last_publish_errors: list[Exception] = []

    def subscribe(self, event_type: EventType | str, handler: Handler) -> None:
        self._subscribers[event_type].append(handler)

    def unsubscribe(self, event_type: EventType | str, handler: Handler | None = None) -> None:
        """Remove one handler, or every handler for the event when None."""
        if handler is None:
            self._subscribers.pop(event_type, None)
            return
        handlers = self._subscribers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def emit(self, event_type: EventType, **payload: Any) -> None:
        self.publish(GameEvent(event_type=event_type, payload=payload))

    def publish(self, event: GameEvent) -> None:
        self._last_publish_errors = []
        handlers = list(self._subscribers.get(event.event_type, ()))
        handlers.extend(self._subscribers.get(ALL_EVENTS, ()))
        for handler in handlers:
            try:
                handler(event)
            except Exception as exc:
                self._last_publish_errors.append(exc)
                handler_name = getattr(handler, "__qualname__", repr(handler))
                logger.exception(
                    "Event handler %s failed on %s and was isolated",
                    handler_name,
                    event.name,
                )

    def last_publish_errors(self) -> list[Exception]:
        return list(self._last_publish_errors)

    def clear(self) -> None:
        self._subscribers.clear()
        self._last_publish_errors = []
