"""
Scene Engine - Scene registry and per-scene lifecycle.

    (unlock) -> AVAILABLE
    AVAILABLE    --participate (required slots filled)--> PARTICIPATED
    AVAILABLE    --availability runs out--> COMPLETED   (absence path)
    PARTICIPATED --turns run out--> SETTLING --> COMPLETED

COMPLETED is terminal. A registered scene that was never unlocked has
no runtime state.
"""

from __future__ import annotations
from typing import Iterable
import logging

from .card_engine import CardEngine
from .errors import SlotTypeMismatch
from .events import EventBus, EventType
from .resources import ResourceLedger
from .scenes import SceneState, SceneStatus, SceneTemplate, SlotState, UnlockConditions, slot_accepts

logger = logging.getLogger(__name__)


class SceneEngine:
    """Owns scene templates and the runtime state of unlocked scenes."""

    def __init__(self, events: EventBus | None = None):
        self.events = events or EventBus()
        self._scenes: dict[str, SceneTemplate] = {}
        self._states: dict[str, SceneState] = {}

    # Registry

    def register_scene(self, template: SceneTemplate) -> None:
        self._scenes[template.scene_id] = template

    def register_scenes(self, templates: Iterable[SceneTemplate]) -> None:
        for template in templates:
            self.register_scene(template)

    def get_scene(self, scene_id: str) -> SceneTemplate | None:
        return self._scenes.get(scene_id)

    def get_scene_state(self, scene_id: str) -> SceneState | None:
        return self._states.get(scene_id)

    def get_all_registered_scenes(self) -> list[SceneTemplate]:
        return list(self._scenes.values())

    # Unlocking

    def unlock_scene(self, scene_id: str) -> bool:
        """Create runtime state. False if unknown or already unlocked."""
        template = self._scenes.get(scene_id)
        if template is None or scene_id in self._states:
            return False

        self._states[scene_id] = SceneState.for_template(template)
        logger.debug("Unlocked scene %s (%d turns)", scene_id, template.duration)
        self.events.emit(EventType.SCENE_UNLOCK, scene_id=scene_id)
        return True

    def check_unlock_conditions(
        self,
        template: SceneTemplate,
        resources: ResourceLedger,
        card_engine: CardEngine,
        completed_scene_ids: Iterable[str],
    ) -> bool:
        """Evaluate the template's unlock conditions. Missing conditions pass."""
        return self.conditions_met(template.unlock_conditions, resources, card_engine, completed_scene_ids)

    @staticmethod
    def conditions_met(
        conditions: UnlockConditions | None,
        resources: ResourceLedger,
        card_engine: CardEngine,
        completed_scene_ids: Iterable[str],
    ) -> bool:
        if conditions is None:
            return True

        if conditions.reputation_min is not None and resources.reputation < conditions.reputation_min:
            return False
        if conditions.reputation_max is not None and resources.reputation > conditions.reputation_max:
            return False
        if any(not card_engine.get_cards_by_tag(tag) for tag in conditions.required_tags):
            return False
        if any(card_engine.get_card_by_card_id(card_id) is None for card_id in conditions.required_cards):
            return False

        completed = set(completed_scene_ids)
        return all(scene_id in completed for scene_id in conditions.completed_scenes)

    # Slots

    def _slot(self, scene_id: str, slot_index: int) -> tuple[SceneState, SlotState] | None:
        state = self._states.get(scene_id)
        if state is None or not 0 <= slot_index < len(state.slot_states):
            return None
        return state, state.slot_states[slot_index]

    def can_place_card(self, scene_id: str, slot_index: int, instance_id: str, card_engine: CardEngine) -> bool:
        """Whether place_card would succeed, without raising."""
        found = self._slot(scene_id, slot_index)
        card = card_engine.get_card(instance_id)
        if found is None or card is None:
            return False
        state, slot = found
        return (
            state.status == SceneStatus.AVAILABLE
            and not slot.locked
            and not slot.is_filled
            and not card_engine.is_card_locked(instance_id)
            and instance_id not in self._placed_ids(state)
            and slot_accepts(slot.slot_type, card.card_type)
        )

    def place_card(self, scene_id: str, slot_index: int, instance_id: str, card_engine: CardEngine) -> bool:
        """
        Put a card into a slot of an available scene.

        Returns False for unknown ids, locked or filled slots, locked cards
        and cards already placed in this scene. Raises SlotTypeMismatch
        when the slot does not accept the card's type.
        """
        found = self._slot(scene_id, slot_index)
        card = card_engine.get_card(instance_id)
        if found is None or card is None:
            return False

        state, slot = found
        if state.status != SceneStatus.AVAILABLE or slot.locked or slot.is_filled:
            return False
        if card_engine.is_card_locked(instance_id) or instance_id in self._placed_ids(state):
            return False
        if not slot_accepts(slot.slot_type, card.card_type):
            raise SlotTypeMismatch(slot.slot_type.value, card.card_type.value)

        slot.invested_card_id = instance_id
        return True

    def remove_card_from_slot(self, scene_id: str, slot_index: int) -> str | None:
        """Take a card back out of an unlocked slot. Returns its id."""
        found = self._slot(scene_id, slot_index)
        if found is None:
            return None
        _, slot = found
        if slot.locked or not slot.is_filled:
            return None

        instance_id = slot.invested_card_id
        slot.invested_card_id = None
        return instance_id

    def get_empty_required_slots(self, scene_id: str) -> list[int]:
        state = self._states.get(scene_id)
        if state is None:
            return []
        return [slot.slot_index for slot in state.slot_states if slot.required and not slot.is_filled]

    @staticmethod
    def _placed_ids(state: SceneState) -> list[str]:
        return [slot.invested_card_id for slot in state.slot_states if slot.is_filled]

    # Lifecycle

    def participate_scene(self, scene_id: str, card_engine: CardEngine) -> bool:
        """
        Commit the placed cards to the scene.

        Requires AVAILABLE status and every required slot filled. Locks
        each placed card and its slot and freezes invested_cards in slot
        order.
        """
        state = self._states.get(scene_id)
        if state is None or state.status != SceneStatus.AVAILABLE:
            return False
        if self.get_empty_required_slots(scene_id):
            return False

        card_ids = self._placed_ids(state)
        for instance_id in card_ids:
            if card_engine.get_card(instance_id) is None or card_engine.is_card_locked(instance_id):
                logger.debug("Cannot participate in %s: %s is gone or locked", scene_id, instance_id)
                return False

        for instance_id in card_ids:
            card_engine.lock_card(instance_id, scene_id)
        for slot in state.slot_states:
            if slot.is_filled:
                slot.locked = True

        state.invested_cards = card_ids
        state.status = SceneStatus.PARTICIPATED
        self.events.emit(EventType.SCENE_PARTICIPATE, scene_id=scene_id, cards=list(card_ids))
        return True

    def decrement_remaining_turns(self, scene_id: str) -> int:
        """Tick a participated scene. Returns remaining turns, -1 if unknown."""
        state = self._states.get(scene_id)
        if state is None:
            return -1
        if state.status == SceneStatus.PARTICIPATED:
            state.remaining_turns = max(0, state.remaining_turns - 1)
        return state.remaining_turns

    def decrement_availability(self, scene_id: str) -> int:
        """Tick an available scene's window. Returns remaining turns, -1 if unknown."""
        state = self._states.get(scene_id)
        if state is None:
            return -1
        if state.status == SceneStatus.AVAILABLE:
            state.remaining_turns = max(0, state.remaining_turns - 1)
        return state.remaining_turns

    def get_expired_scenes(self) -> list[str]:
        """Participated scenes whose turns ran out (ready to settle)."""
        return [
            scene_id for scene_id, state in self._states.items()
            if state.status == SceneStatus.PARTICIPATED and state.remaining_turns == 0
        ]

    def get_absent_scenes(self) -> list[str]:
        """Available scenes whose window ran out (never played)."""
        return [
            scene_id for scene_id, state in self._states.items()
            if state.status == SceneStatus.AVAILABLE and state.remaining_turns == 0
        ]

    def mark_settling(self, scene_id: str) -> bool:
        state = self._states.get(scene_id)
        if state is None or state.status == SceneStatus.COMPLETED:
            return False
        state.status = SceneStatus.SETTLING
        return True

    def complete_scene(self, scene_id: str, card_engine: CardEngine) -> list[str]:
        """Release invested cards and slots and close the scene."""
        state = self._states.get(scene_id)
        if state is None or state.status == SceneStatus.COMPLETED:
            return []

        for instance_id in state.invested_cards:
            card_engine.unlock_card(instance_id)
        for slot in state.slot_states:
            slot.locked = False

        state.status = SceneStatus.COMPLETED
        self.events.emit(EventType.SCENE_COMPLETE, scene_id=scene_id)
        return list(state.invested_cards)

    def expire_scene(self, scene_id: str) -> bool:
        """Close an available scene without settlement."""
        state = self._states.get(scene_id)
        if state is None or state.status != SceneStatus.AVAILABLE:
            return False
        state.status = SceneStatus.COMPLETED
        self.events.emit(EventType.SCENE_EXPIRE, scene_id=scene_id)
        return True

    # Queries

    def get_active_scenes(self) -> list[SceneState]:
        return [
            state for state in self._states.values()
            if state.status in (SceneStatus.AVAILABLE, SceneStatus.PARTICIPATED)
        ]

    def get_available_scenes(self) -> list[SceneState]:
        return [s for s in self._states.values() if s.status == SceneStatus.AVAILABLE]

    def get_participated_scenes(self) -> list[SceneState]:
        return [s for s in self._states.values() if s.status == SceneStatus.PARTICIPATED]

    def get_completed_scene_ids(self) -> list[str]:
        return [s.scene_id for s in self._states.values() if s.status == SceneStatus.COMPLETED]

    def get_all_scene_states(self) -> dict[str, SceneState]:
        return dict(self._states)

    # State

    def clear(self) -> None:
        """Drop all runtime state, keeping registered templates."""
        self._states.clear()

    def reset(self) -> None:
        self.clear()
        self._scenes.clear()

    def restore_states(self, states: Iterable[SceneState]) -> None:
        """Replace runtime state. States for unregistered scenes are kept as-is."""
        self._states = {state.scene_id: state.clone() for state in states}
