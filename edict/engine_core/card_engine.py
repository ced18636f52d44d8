"""
Card Engine - Owns every card instance the player holds.

Responsibilities:
- Instance creation with process-unique ids
- Hand capacity
- Locking (cards invested in a participating scene)
- Tag mutation
- Protagonist protection

Structural violations (full hand, protagonist or locked removal) raise.
Unknown ids and no-op lock/tag changes return False.
"""

from __future__ import annotations
from itertools import count
from typing import Iterable
import logging

from .cards import CardCatalog, CardInstance, CardTemplate, CardType
from .errors import CapacityExceeded, LockedCard, ProtectedCard
from .events import EventBus, EventType
from .rules import MAX_HAND_SIZE

logger = logging.getLogger(__name__)

# Shared by every engine in the process so ids are never reused
_instance_counter = count(1)


class CardEngine:
    """Arena of card instances keyed by instance id."""

    def __init__(
        self,
        events: EventBus | None = None,
        catalog: CardCatalog | None = None,
        max_hand_size: int = MAX_HAND_SIZE,
    ):
        self.events = events or EventBus()
        self.catalog = catalog or CardCatalog()
        self.max_hand_size = max_hand_size
        self._cards: dict[str, CardInstance] = {}
        # instance id -> scene id that locked it
        self._locked: dict[str, str] = {}

    def _next_instance_id(self) -> str:
        while True:
            instance_id = f"inst_{next(_instance_counter)}"
            if instance_id not in self._cards:
                return instance_id

    # Membership

    def add_card(self, template: CardTemplate) -> CardInstance:
        """Create a new instance of a template and put it in the hand."""
        if len(self._cards) >= self.max_hand_size:
            raise CapacityExceeded(self.max_hand_size)

        card = CardInstance.from_template(template, self._next_instance_id())
        self._cards[card.instance_id] = card
        logger.debug("Added %s as %s", template.card_id, card.instance_id)
        self.events.emit(EventType.CARD_ADD, card_id=card.instance_id, template_id=template.card_id)
        return card

    def add_card_by_template_id(self, card_id: str) -> CardInstance | None:
        """Add a card from the catalog. Returns None for unknown templates."""
        template = self.catalog.get(card_id)
        if template is None:
            return None
        return self.add_card(template)

    def remove_card(self, instance_id: str) -> bool:
        card = self._cards.get(instance_id)
        if card is None:
            return False
        if card.is_protagonist():
            raise ProtectedCard(instance_id)
        if instance_id in self._locked:
            raise LockedCard(instance_id, "remove")

        del self._cards[instance_id]
        for owner in self._cards.values():
            if owner.unequip_item(instance_id):
                self.events.emit(EventType.CARD_UNEQUIP, character_id=owner.instance_id, equipment_id=instance_id)
        logger.debug("Removed %s", instance_id)
        self.events.emit(EventType.CARD_REMOVE, card_id=instance_id)
        return True

    # Queries

    def get_card(self, instance_id: str) -> CardInstance | None:
        return self._cards.get(instance_id)

    def get_card_by_card_id(self, card_id: str) -> CardInstance | None:
        """First instance of the given template id."""
        for card in self._cards.values():
            if card.card_id == card_id:
                return card
        return None

    def get_all_cards(self) -> list[CardInstance]:
        return list(self._cards.values())

    def get_available_cards(self) -> list[CardInstance]:
        return [c for c in self._cards.values() if c.instance_id not in self._locked]

    def get_locked_cards(self) -> list[CardInstance]:
        return [c for c in self._cards.values() if c.instance_id in self._locked]

    def get_cards_by_type(self, card_type: CardType) -> list[CardInstance]:
        return [c for c in self._cards.values() if c.card_type == card_type]

    def get_character_cards(self) -> list[CardInstance]:
        return self.get_cards_by_type(CardType.CHARACTER)

    def get_equipment_cards(self) -> list[CardInstance]:
        return self.get_cards_by_type(CardType.EQUIPMENT)

    def get_sultan_cards(self) -> list[CardInstance]:
        return self.get_cards_by_type(CardType.SULTAN)

    def get_cards_by_tag(self, tag: str) -> list[CardInstance]:
        return [c for c in self._cards.values() if c.has_tag(tag)]

    def get_protagonist(self) -> CardInstance | None:
        for card in self._cards.values():
            if card.is_protagonist():
                return card
        return None

    @property
    def card_count(self) -> int:
        return len(self._cards)

    def has_space(self) -> bool:
        return len(self._cards) < self.max_hand_size

    def available_space(self) -> int:
        return self.max_hand_size - len(self._cards)

    # Locking

    def lock_card(self, instance_id: str, scene_id: str) -> bool:
        if instance_id not in self._cards or instance_id in self._locked:
            return False
        self._locked[instance_id] = scene_id
        self.events.emit(EventType.CARD_LOCK, card_id=instance_id, scene_id=scene_id)
        return True

    def unlock_card(self, instance_id: str) -> bool:
        if instance_id not in self._locked:
            return False
        del self._locked[instance_id]
        self.events.emit(EventType.CARD_UNLOCK, card_id=instance_id)
        return True

    def unlock_all_cards(self) -> None:
        for instance_id in list(self._locked):
            self.unlock_card(instance_id)

    def is_card_locked(self, instance_id: str) -> bool:
        return instance_id in self._locked

    def locked_scene_of(self, instance_id: str) -> str | None:
        return self._locked.get(instance_id)

    def locked_in_scenes(self) -> dict[str, list[str]]:
        """Scene id -> instance ids locked by that scene."""
        result: dict[str, list[str]] = {}
        for instance_id, scene_id in self._locked.items():
            result.setdefault(scene_id, []).append(instance_id)
        return result

    # Tags

    def add_tag_to_card(self, instance_id: str, tag: str) -> bool:
        card = self._cards.get(instance_id)
        if card is None or not card.add_tag(tag):
            return False
        self.events.emit(EventType.CARD_TAG_ADD, card_id=instance_id, tag=tag)
        return True

    def remove_tag_from_card(self, instance_id: str, tag: str) -> bool:
        card = self._cards.get(instance_id)
        if card is None or not card.remove_tag(tag):
            return False
        self.events.emit(EventType.CARD_TAG_REMOVE, card_id=instance_id, tag=tag)
        return True

    # State

    def clear(self) -> None:
        self._cards.clear()
        self._locked.clear()

    def get_state(self) -> tuple[list[CardInstance], dict[str, str]]:
        return [c.clone() for c in self._cards.values()], dict(self._locked)

    def restore_state(
        self,
        cards: Iterable[CardInstance],
        locked: dict[str, str] | Iterable[str],
    ) -> None:
        """Replace the hand. Locks naming unknown cards are dropped."""
        self.clear()
        for card in cards:
            self._cards[card.instance_id] = card
        if not isinstance(locked, dict):
            locked = {instance_id: "" for instance_id in locked}
        for instance_id, scene_id in locked.items():
            if instance_id in self._cards:
                self._locked[instance_id] = scene_id
