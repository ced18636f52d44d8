"""
Equipment Engine - Equip relationships and bonus aggregation.

Equip state lives on the character instance (a list of item ids);
this engine validates changes against the CardEngine and sums the
bonuses granted by equipped items.
"""

from __future__ import annotations

import logging

from .card_engine import CardEngine
from .cards import Attribute, CardInstance, EquipmentTemplate, EquipmentType, SpecialAttributes
from .errors import LockedCard, NoSlotsAvailable, NotCharacter, NotEquipment
from .events import EventType

logger = logging.getLogger(__name__)


class EquipmentEngine:
    """Cross-cutting view of equipment over a CardEngine."""

    def __init__(self, card_engine: CardEngine):
        self.card_engine = card_engine

    @property
    def events(self):
        return self.card_engine.events

    def equip(self, character_id: str, item_id: str) -> bool:
        """
        Equip an item on a character.

        Returns False for unknown ids or when the item is already on
        this or another character. Raises for type mismatches, locked
        cards and full slots.
        """
        character = self.card_engine.get_card(character_id)
        item = self.card_engine.get_card(item_id)
        if character is None or item is None:
            return False

        if not character.is_character():
            raise NotCharacter(character_id)
        if not item.is_equipment():
            raise NotEquipment(item_id)
        if self.card_engine.is_card_locked(character_id):
            raise LockedCard(character_id, "equip")
        if self.card_engine.is_card_locked(item_id):
            raise LockedCard(item_id, "equip")
        if character.is_item_equipped(item_id):
            return False
        owner = self.get_equipped_by(item_id)
        if owner is not None:
            logger.info("%s is already equipped by %s", item_id, owner.instance_id)
            return False
        if not character.can_equip_more():
            raise NoSlotsAvailable(character_id)

        character.equip_item(item_id)
        self.events.emit(EventType.CARD_EQUIP, character_id=character_id, equipment_id=item_id)
        return True

    def unequip(self, character_id: str, item_id: str) -> bool:
        character = self.card_engine.get_card(character_id)
        if character is None:
            return False
        if self.card_engine.is_card_locked(character_id):
            raise LockedCard(character_id, "unequip")
        if not character.unequip_item(item_id):
            return False

        self.events.emit(EventType.CARD_UNEQUIP, character_id=character_id, equipment_id=item_id)
        return True

    def unequip_all(self, character_id: str) -> list[str]:
        character = self.card_engine.get_card(character_id)
        if character is None:
            return []
        if self.card_engine.is_card_locked(character_id):
            raise LockedCard(character_id, "unequip")

        removed = character.clear_equipped_items()
        for item_id in removed:
            self.events.emit(EventType.CARD_UNEQUIP, character_id=character_id, equipment_id=item_id)
        return removed

    # Bonuses

    def get_equipped_cards(self, character_id: str) -> list[CardInstance]:
        """Live item instances equipped on a character (dangling ids skipped)."""
        character = self.card_engine.get_card(character_id)
        if character is None:
            return []
        items = (self.card_engine.get_card(item_id) for item_id in character.equipped_items)
        return [item for item in items if item is not None]

    def get_attribute_bonus(self, character_id: str, attribute: Attribute) -> int:
        return sum(item.get_attribute_bonus(attribute) for item in self.get_equipped_cards(character_id))

    def get_all_attribute_bonuses(self, character_id: str) -> dict[Attribute, int]:
        bonuses: dict[Attribute, int] = {}
        for item in self.get_equipped_cards(character_id):
            for attribute, value in item.get_all_attribute_bonuses().items():
                bonuses[attribute] = bonuses.get(attribute, 0) + value
        return bonuses

    def get_special_bonuses(self, character_id: str) -> SpecialAttributes:
        support = 0
        reroll = 0
        for item in self.get_equipped_cards(character_id):
            bonus = item.get_special_bonus()
            support += bonus.support
            reroll += bonus.reroll
        return SpecialAttributes(support=support, reroll=reroll)

    def get_total_attribute(self, character_id: str, attribute: Attribute) -> int:
        character = self.card_engine.get_card(character_id)
        if character is None:
            return 0
        return character.get_attribute(attribute) + self.get_attribute_bonus(character_id, attribute)

    def get_total_reroll(self, character_id: str) -> int:
        character = self.card_engine.get_card(character_id)
        if character is None:
            return 0
        return character.get_reroll() + self.get_special_bonuses(character_id).reroll

    # Roster queries

    def get_equipment_by_type(self, equipment_type: EquipmentType) -> list[CardInstance]:
        return [
            card for card in self.card_engine.get_equipment_cards()
            if isinstance(card.template, EquipmentTemplate)
            and card.template.equipment_type == equipment_type
        ]

    def get_unequipped_items(self) -> list[CardInstance]:
        equipped_ids: set[str] = set()
        for character in self.card_engine.get_character_cards():
            equipped_ids.update(character.equipped_items)
        return [
            item for item in self.card_engine.get_equipment_cards()
            if item.instance_id not in equipped_ids
        ]

    def is_equipped(self, item_id: str) -> bool:
        return self.get_equipped_by(item_id) is not None

    def get_equipped_by(self, item_id: str) -> CardInstance | None:
        for character in self.card_engine.get_character_cards():
            if character.is_item_equipped(item_id):
                return character
        return None
