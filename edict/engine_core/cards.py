"""
Cards - Card templates and runtime card instances.

Templates are immutable content, one variant per card category:
- CharacterTemplate: attributes, special attributes, equipment slots
- EquipmentTemplate: equipment subtype, attribute and special bonuses
- PlainTemplate: everything else (intel, consumables, books, gems, ...)

A CardInstance is the runtime copy owned by the CardEngine. It keeps a
reference to its template plus the mutable parts: equipped item ids and
current tags. Cross-references between instances are always ids, never
object links.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from .rules import PROTAGONIST_TAG


class CardType(Enum):
    CHARACTER = "character"
    EQUIPMENT = "equipment"
    INTEL = "intel"
    CONSUMABLE = "consumable"
    BOOK = "book"
    THOUGHT = "thought"
    GEM = "gem"
    SULTAN = "sultan"


class Rarity(Enum):
    GOLD = "gold"
    SILVER = "silver"
    COPPER = "copper"
    STONE = "stone"


class Attribute(Enum):
    PHYSIQUE = "physique"
    CHARM = "charm"
    WISDOM = "wisdom"
    COMBAT = "combat"
    SOCIAL = "social"
    SURVIVAL = "survival"
    STEALTH = "stealth"
    MAGIC = "magic"


class EquipmentType(Enum):
    WEAPON = "weapon"
    ARMOR = "armor"
    ACCESSORY = "accessory"
    MOUNT = "mount"


@dataclass(frozen=True)
class SpecialAttributes:
    """Support and reroll values (also used for equipment special bonuses)."""
    support: int = 0
    reroll: int = 0


@dataclass(frozen=True)
class CardTemplate:
    """
    Common content fields shared by every card category.

    Use one of the concrete variants; card_type must match the variant.
    """
    card_id: str
    name: str
    card_type: CardType
    rarity: Rarity = Rarity.STONE
    description: str = ""
    image: str = ""
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class CharacterTemplate(CardTemplate):
    card_type: CardType = CardType.CHARACTER
    attributes: dict[Attribute, int] = field(default_factory=dict)
    special_attributes: SpecialAttributes = field(default_factory=SpecialAttributes)
    equipment_slots: int = 0


@dataclass(frozen=True)
class EquipmentTemplate(CardTemplate):
    card_type: CardType = CardType.EQUIPMENT
    equipment_type: EquipmentType = EquipmentType.ACCESSORY
    attribute_bonus: dict[Attribute, int] = field(default_factory=dict)
    special_bonus: SpecialAttributes = field(default_factory=SpecialAttributes)


@dataclass(frozen=True)
class PlainTemplate(CardTemplate):
    gem_slots: int = 0


@dataclass
class CardInstance:
    """
    A card owned by the player.

    Note: equipped_items holds ids of other instances. Those instances
    stay owned by the CardEngine; removing one leaves a dangling id that
    lookups simply skip.
    """
    instance_id: str
    template: CardTemplate
    equipped_items: list[str] = field(default_factory=list)
    current_tags: list[str] = field(default_factory=list)

    @classmethod
    def from_template(cls, template: CardTemplate, instance_id: str) -> CardInstance:
        return cls(
            instance_id=instance_id,
            template=template,
            equipped_items=[],
            current_tags=list(template.tags),
        )

    # Template passthrough

    @property
    def card_id(self) -> str:
        return self.template.card_id

    @property
    def name(self) -> str:
        return self.template.name

    @property
    def card_type(self) -> CardType:
        return self.template.card_type

    # Category checks

    def is_character(self) -> bool:
        return self.card_type == CardType.CHARACTER

    def is_equipment(self) -> bool:
        return self.card_type == CardType.EQUIPMENT

    def is_sultan(self) -> bool:
        return self.card_type == CardType.SULTAN

    def is_protagonist(self) -> bool:
        return self.has_tag(PROTAGONIST_TAG)

    # Attributes

    def get_attribute(self, attribute: Attribute) -> int:
        if isinstance(self.template, CharacterTemplate):
            return self.template.attributes.get(attribute, 0)
        return 0

    def get_attribute_total(self) -> int:
        if isinstance(self.template, CharacterTemplate):
            return sum(self.template.attributes.values())
        return 0

    def get_support(self) -> int:
        if isinstance(self.template, CharacterTemplate):
            return self.template.special_attributes.support
        return 0

    def get_reroll(self) -> int:
        if isinstance(self.template, CharacterTemplate):
            return self.template.special_attributes.reroll
        return 0

    def get_attribute_bonus(self, attribute: Attribute) -> int:
        if isinstance(self.template, EquipmentTemplate):
            return self.template.attribute_bonus.get(attribute, 0)
        return 0

    def get_all_attribute_bonuses(self) -> dict[Attribute, int]:
        if isinstance(self.template, EquipmentTemplate):
            return dict(self.template.attribute_bonus)
        return {}

    def get_special_bonus(self) -> SpecialAttributes:
        if isinstance(self.template, EquipmentTemplate):
            return self.template.special_bonus
        return SpecialAttributes()

    # Tags

    def has_tag(self, tag: str) -> bool:
        return tag in self.current_tags

    def add_tag(self, tag: str) -> bool:
        if self.has_tag(tag):
            return False
        self.current_tags.append(tag)
        return True

    def remove_tag(self, tag: str) -> bool:
        if not self.has_tag(tag):
            return False
        self.current_tags.remove(tag)
        return True

    def set_tags(self, tags: Iterable[str]) -> None:
        self.current_tags = list(tags)

    # Equipment bookkeeping

    @property
    def equipment_slots(self) -> int:
        if isinstance(self.template, CharacterTemplate):
            return self.template.equipment_slots
        return 0

    def can_equip(self) -> bool:
        return self.is_character() and self.equipment_slots > 0

    def available_equipment_slots(self) -> int:
        if not self.can_equip():
            return 0
        return self.equipment_slots - len(self.equipped_items)

    def can_equip_more(self) -> bool:
        return self.available_equipment_slots() > 0

    def is_item_equipped(self, item_id: str) -> bool:
        return item_id in self.equipped_items

    def equip_item(self, item_id: str) -> bool:
        if not self.can_equip_more() or self.is_item_equipped(item_id):
            return False
        self.equipped_items.append(item_id)
        return True

    def unequip_item(self, item_id: str) -> bool:
        if not self.is_item_equipped(item_id):
            return False
        self.equipped_items.remove(item_id)
        return True

    def clear_equipped_items(self) -> list[str]:
        items = self.equipped_items
        self.equipped_items = []
        return items

    def clone(self) -> CardInstance:
        return CardInstance(
            instance_id=self.instance_id,
            template=self.template,
            equipped_items=list(self.equipped_items),
            current_tags=list(self.current_tags),
        )


class CardCatalog:
    """Registry of card templates keyed by template id."""

    def __init__(self, templates: Iterable[CardTemplate] = ()):
        self._templates: dict[str, CardTemplate] = {}
        for template in templates:
            self.register(template)

    def register(self, template: CardTemplate) -> None:
        self._templates[template.card_id] = template

    def get(self, card_id: str) -> CardTemplate | None:
        return self._templates.get(card_id)

    def __contains__(self, card_id: str) -> bool:
        return card_id in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def all(self) -> list[CardTemplate]:
        return list(self._templates.values())
