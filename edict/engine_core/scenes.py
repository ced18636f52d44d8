"""
Scenes - Scene templates, settlement definitions and runtime state.

A SceneTemplate is immutable content: its slots, its duration, how it
settles, when it unlocks and what happens when the player never shows
up. SceneState is the mutable runtime record the SceneEngine keeps for
every unlocked scene.

Settlement definitions are a tagged variant keyed by `kind`:
- DiceCheckSettlement: roll against a target, one branch per outcome
- TradeSettlement: shop; not resolved by the engine
- ChoiceSettlement: the player picks one option
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Union

from .cards import Attribute, CardType
from .dice import CalcMode, CheckResult


class SlotType(Enum):
    CHARACTER = "character"
    ITEM = "item"
    SULTAN = "sultan"
    GOLD = "gold"


# Card types each slot type accepts
SLOT_ACCEPTS: dict[SlotType, frozenset[CardType]] = {
    SlotType.CHARACTER: frozenset({CardType.CHARACTER}),
    SlotType.ITEM: frozenset({CardType.EQUIPMENT, CardType.CONSUMABLE, CardType.INTEL}),
    SlotType.SULTAN: frozenset({CardType.SULTAN}),
    SlotType.GOLD: frozenset({CardType.GEM}),
}


def slot_accepts(slot_type: SlotType, card_type: CardType) -> bool:
    return card_type in SLOT_ACCEPTS.get(slot_type, frozenset())


class SceneType(Enum):
    EVENT = "event"
    SHOP = "shop"
    CHALLENGE = "challenge"


class SceneStatus(Enum):
    """
    Runtime status of an unlocked scene.

    A locked scene has no runtime state at all, so there is no LOCKED
    member here.
    """
    AVAILABLE = "available"
    PARTICIPATED = "participated"
    SETTLING = "settling"
    COMPLETED = "completed"


class SettlementKind(Enum):
    DICE_CHECK = "dice_check"
    TRADE = "trade"
    CHOICE = "choice"


# =============================================================================
# Effects
# =============================================================================

@dataclass
class Effects:
    """
    Declarative effect delta.

    Card references (cards_remove, tags_add/tags_remove keys) may be an
    instance id, a template id, or `card_invested_N` for the Nth invested
    card of the settlement being resolved.
    """
    gold: int | None = None
    reputation: int | None = None
    golden_dice: int | None = None
    rewind_charges: int | None = None
    cards_add: list[str] = field(default_factory=list)
    cards_remove: list[str] = field(default_factory=list)
    tags_add: dict[str, list[str]] = field(default_factory=dict)
    tags_remove: dict[str, list[str]] = field(default_factory=dict)
    unlock_scenes: list[str] = field(default_factory=list)
    consume_invested: bool = False

    def is_empty(self) -> bool:
        return self == Effects()

    def to_dict(self) -> dict[str, Any]:
        """Only the fields that are set, in content-file shape."""
        data: dict[str, Any] = {}
        for name in ("gold", "reputation", "golden_dice", "rewind_charges"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        for name in ("cards_add", "cards_remove", "unlock_scenes"):
            value = getattr(self, name)
            if value:
                data[name] = list(value)
        for name in ("tags_add", "tags_remove"):
            value = getattr(self, name)
            if value:
                data[name] = {ref: list(tags) for ref, tags in value.items()}
        if self.consume_invested:
            data["consume_invested"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Effects:
        if not data:
            return cls()
        return cls(
            gold=data.get("gold"),
            reputation=data.get("reputation"),
            golden_dice=data.get("golden_dice"),
            rewind_charges=data.get("rewind_charges"),
            cards_add=list(data.get("cards_add", [])),
            cards_remove=list(data.get("cards_remove", [])),
            tags_add={k: list(v) for k, v in data.get("tags_add", {}).items()},
            tags_remove={k: list(v) for k, v in data.get("tags_remove", {}).items()},
            unlock_scenes=list(data.get("unlock_scenes", [])),
            consume_invested=bool(data.get("consume_invested", False)),
        )


@dataclass
class ResultBranch:
    narrative: str
    effects: Effects = field(default_factory=Effects)


# =============================================================================
# Settlement definitions
# =============================================================================

@dataclass(frozen=True)
class CheckConfig:
    """What a dice check rolls and against which target."""
    attribute: Attribute
    calc_mode: CalcMode
    target: int
    slot_index: int | None = None


@dataclass
class DiceCheckSettlement:
    check: CheckConfig
    success: ResultBranch
    failure: ResultBranch
    critical_failure: ResultBranch
    partial_success: ResultBranch | None = None
    narrative: str = ""

    @property
    def kind(self) -> SettlementKind:
        return SettlementKind.DICE_CHECK

    def branch_for(self, result: CheckResult) -> ResultBranch:
        """Branch for an outcome; a missing partial branch falls back to failure."""
        if result == CheckResult.SUCCESS:
            return self.success
        if result == CheckResult.PARTIAL_SUCCESS:
            return self.partial_success or self.failure
        if result == CheckResult.CRITICAL_FAILURE:
            return self.critical_failure
        return self.failure


@dataclass
class TradeSettlement:
    shop_inventory: list[str] = field(default_factory=list)
    allow_sell: bool = False
    refresh_cycle: int | None = None

    @property
    def kind(self) -> SettlementKind:
        return SettlementKind.TRADE


@dataclass
class UnlockConditions:
    """Conditions that must all hold; unset categories always pass."""
    reputation_min: int | None = None
    reputation_max: int | None = None
    required_tags: list[str] = field(default_factory=list)
    required_cards: list[str] = field(default_factory=list)
    completed_scenes: list[str] = field(default_factory=list)


@dataclass
class ChoiceOption:
    label: str
    effects: Effects = field(default_factory=Effects)
    conditions: UnlockConditions | None = None


@dataclass
class ChoiceSettlement:
    options: list[ChoiceOption] = field(default_factory=list)

    @property
    def kind(self) -> SettlementKind:
        return SettlementKind.CHOICE


Settlement = Union[DiceCheckSettlement, TradeSettlement, ChoiceSettlement]


# =============================================================================
# Templates and runtime state
# =============================================================================

@dataclass(frozen=True)
class SlotDefinition:
    slot_type: SlotType
    required: bool = False


@dataclass
class AbsencePenalty:
    narrative: str
    effects: Effects = field(default_factory=Effects)


@dataclass
class SceneTemplate:
    scene_id: str
    name: str
    duration: int
    slots: list[SlotDefinition]
    settlement: Settlement
    scene_type: SceneType = SceneType.EVENT
    description: str = ""
    background_image: str = ""
    unlock_conditions: UnlockConditions | None = None
    absence_penalty: AbsencePenalty | None = None


@dataclass
class SlotState:
    """A template slot plus what is currently placed in it."""
    slot_type: SlotType
    required: bool
    slot_index: int
    locked: bool = False
    invested_card_id: str | None = None

    @property
    def is_filled(self) -> bool:
        return self.invested_card_id is not None


@dataclass
class SceneState:
    scene_id: str
    status: SceneStatus
    remaining_turns: int
    invested_cards: list[str] = field(default_factory=list)
    slot_states: list[SlotState] = field(default_factory=list)

    @classmethod
    def for_template(cls, template: SceneTemplate) -> SceneState:
        return cls(
            scene_id=template.scene_id,
            status=SceneStatus.AVAILABLE,
            remaining_turns=template.duration,
            invested_cards=[],
            slot_states=[
                SlotState(slot_type=slot.slot_type, required=slot.required, slot_index=index)
                for index, slot in enumerate(template.slots)
            ],
        )

    def clone(self) -> SceneState:
        return SceneState(
            scene_id=self.scene_id,
            status=self.status,
            remaining_turns=self.remaining_turns,
            invested_cards=list(self.invested_cards),
            slot_states=[replace(slot) for slot in self.slot_states],
        )
