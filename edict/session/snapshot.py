"""
Save Snapshot - Serializable copy of a whole session.

These models are the persistence boundary: a GameSession produces a
SaveSnapshot and can be rebuilt from one. Writing snapshots to disk is
the caller's job (see cli.py); here they only need to round-trip
through JSON.

Layout:
- game_state: day, countdown and every resource value
- cards: hand ids, locks per scene, think usage, equip map and the
  full instance records (template fields included)
- scenes: active/completed/unlocked ids and every runtime state
- difficulty, random_seed, random_state
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from ..engine_core.cards import (
    Attribute,
    CardInstance,
    CardTemplate,
    CardType,
    CharacterTemplate,
    EquipmentTemplate,
    EquipmentType,
    PlainTemplate,
    Rarity,
    SpecialAttributes,
)
from ..engine_core.scenes import SceneState, SceneStatus, SlotState, SlotType


# =============================================================================
# Game state
# =============================================================================

class GameStateModel(BaseModel):
    """Day counter and resource values."""
    current_day: int = Field(ge=1)
    execution_countdown: int = Field(ge=0)
    gold: int = Field(ge=0)
    reputation: int = Field(ge=0, le=100)
    rewind_charges: int = Field(ge=0)
    golden_dice: int = Field(ge=0)
    think_charges: int = Field(ge=0)


# =============================================================================
# Cards
# =============================================================================

class SpecialModel(BaseModel):
    support: int = 0
    reroll: int = 0

    @classmethod
    def from_special(cls, special: SpecialAttributes) -> SpecialModel:
        return cls(support=special.support, reroll=special.reroll)

    def to_special(self) -> SpecialAttributes:
        return SpecialAttributes(support=self.support, reroll=self.reroll)


class CardRecord(BaseModel):
    """One card instance, carrying its template so it can be rebuilt alone."""
    instance_id: str
    kind: Literal["character", "equipment", "plain"]
    card_id: str
    name: str
    card_type: CardType
    rarity: Rarity = Rarity.STONE
    description: str = ""
    image: str = ""
    tags: list[str] = Field(default_factory=list)

    # Character fields
    attributes: dict[str, int] = Field(default_factory=dict)
    special_attributes: Optional[SpecialModel] = None
    equipment_slots: int = 0

    # Equipment fields
    equipment_type: Optional[EquipmentType] = None
    attribute_bonus: dict[str, int] = Field(default_factory=dict)
    special_bonus: Optional[SpecialModel] = None

    # Plain fields
    gem_slots: int = 0

    # Runtime
    equipped_items: list[str] = Field(default_factory=list)
    current_tags: list[str] = Field(default_factory=list)

    @classmethod
    def from_instance(cls, card: CardInstance) -> CardRecord:
        template = card.template
        data: dict[str, Any] = {
            "instance_id": card.instance_id,
            "card_id": template.card_id,
            "name": template.name,
            "card_type": template.card_type,
            "rarity": template.rarity,
            "description": template.description,
            "image": template.image,
            "tags": list(template.tags),
            "equipped_items": list(card.equipped_items),
            "current_tags": list(card.current_tags),
        }
        if isinstance(template, CharacterTemplate):
            data.update(
                kind="character",
                attributes={attr.value: value for attr, value in template.attributes.items()},
                special_attributes=SpecialModel.from_special(template.special_attributes),
                equipment_slots=template.equipment_slots,
            )
        elif isinstance(template, EquipmentTemplate):
            data.update(
                kind="equipment",
                equipment_type=template.equipment_type,
                attribute_bonus={attr.value: value for attr, value in template.attribute_bonus.items()},
                special_bonus=SpecialModel.from_special(template.special_bonus),
            )
        else:
            data.update(kind="plain", gem_slots=getattr(template, "gem_slots", 0))
        return cls(**data)

    def to_template(self) -> CardTemplate:
        common = dict(
            card_id=self.card_id,
            name=self.name,
            card_type=self.card_type,
            rarity=self.rarity,
            description=self.description,
            image=self.image,
            tags=tuple(self.tags),
        )
        if self.kind == "character":
            return CharacterTemplate(
                **common,
                attributes={Attribute(k): v for k, v in self.attributes.items()},
                special_attributes=(self.special_attributes or SpecialModel()).to_special(),
                equipment_slots=self.equipment_slots,
            )
        if self.kind == "equipment":
            return EquipmentTemplate(
                **common,
                equipment_type=self.equipment_type or EquipmentType.ACCESSORY,
                attribute_bonus={Attribute(k): v for k, v in self.attribute_bonus.items()},
                special_bonus=(self.special_bonus or SpecialModel()).to_special(),
            )
        return PlainTemplate(**common, gem_slots=self.gem_slots)

    def to_instance(self) -> CardInstance:
        return CardInstance(
            instance_id=self.instance_id,
            template=self.to_template(),
            equipped_items=list(self.equipped_items),
            current_tags=list(self.current_tags),
        )


class CardsModel(BaseModel):
    hand: list[str] = Field(default_factory=list)
    locked_in_scenes: dict[str, list[str]] = Field(default_factory=dict)
    think_used_today: list[str] = Field(default_factory=list)
    equipped: dict[str, list[str]] = Field(default_factory=dict)
    instances: list[CardRecord] = Field(default_factory=list)


# =============================================================================
# Scenes
# =============================================================================

class SlotStateModel(BaseModel):
    slot_type: SlotType
    required: bool = False
    slot_index: int
    locked: bool = False
    invested_card_id: Optional[str] = None

    model_config = {"from_attributes": True}

    def to_slot_state(self) -> SlotState:
        return SlotState(
            slot_type=self.slot_type,
            required=self.required,
            slot_index=self.slot_index,
            locked=self.locked,
            invested_card_id=self.invested_card_id,
        )


class SceneStateModel(BaseModel):
    scene_id: str
    status: SceneStatus
    remaining_turns: int = Field(ge=0)
    invested_cards: list[str] = Field(default_factory=list)
    slot_states: list[SlotStateModel] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    def to_scene_state(self) -> SceneState:
        return SceneState(
            scene_id=self.scene_id,
            status=self.status,
            remaining_turns=self.remaining_turns,
            invested_cards=list(self.invested_cards),
            slot_states=[slot.to_slot_state() for slot in self.slot_states],
        )


class ScenesModel(BaseModel):
    active: list[str] = Field(default_factory=list)
    completed: list[str] = Field(default_factory=list)
    unlocked: list[str] = Field(default_factory=list)
    scene_states: dict[str, SceneStateModel] = Field(default_factory=dict)


# =============================================================================
# Snapshot
# =============================================================================

class SaveSnapshot(BaseModel):
    """Everything needed to rebuild a session deterministically."""
    save_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    game_state: GameStateModel
    cards: CardsModel = Field(default_factory=CardsModel)
    scenes: ScenesModel = Field(default_factory=ScenesModel)
    difficulty: str
    random_seed: str
    random_state: Optional[dict[str, Any]] = None

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, raw: str | bytes) -> SaveSnapshot:
        return cls.model_validate_json(raw)
