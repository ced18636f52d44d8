"""
Engine Core - Deterministic card, scene and dice state management.

The engine is the runtime that:
1. Owns card instances, their tags, locks and equipment
2. Runs each scene's lifecycle and slot matching
3. Resolves staged dice checks from a seeded random source
4. Applies effect deltas to resources, cards and scenes
5. Settles scenes by tying the above together
"""

from .random_engine import RandomEngine, generate_seed
from .events import EventBus, EventType, GameEvent
from .errors import (
    EngineError,
    CapacityExceeded,
    ProtectedCard,
    LockedCard,
    NotCharacter,
    NotEquipment,
    NoSlotsAvailable,
    SlotTypeMismatch,
    InvalidOption,
    OptionUnavailable,
    InvalidPhase,
    InvalidAmount,
    GameNotInitialized,
)
from .cards import (
    Attribute,
    CardCatalog,
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
from .card_engine import CardEngine
from .equipment import EquipmentEngine
from .dice import (
    CalcMode,
    CheckResult,
    DiceCheckEngine,
    DiceCheckState,
    DicePhase,
    DiceRoll,
    calculate_dice_pool,
    calculate_total_reroll,
    determine_check_result,
)
from .scenes import (
    AbsencePenalty,
    CheckConfig,
    ChoiceOption,
    ChoiceSettlement,
    DiceCheckSettlement,
    Effects,
    ResultBranch,
    SceneState,
    SceneStatus,
    SceneTemplate,
    SceneType,
    SettlementKind,
    SlotDefinition,
    SlotState,
    SlotType,
    TradeSettlement,
    UnlockConditions,
)
from .scene_engine import SceneEngine
from .resources import ResourceData, ResourceLedger
from .effect_resolver import EffectEngine, EffectReport
from .settlement import SettlementEngine, SettlementResult

__all__ = [
    "RandomEngine",
    "generate_seed",
    "EventBus",
    "EventType",
    "GameEvent",
    "EngineError",
    "CapacityExceeded",
    "ProtectedCard",
    "LockedCard",
    "NotCharacter",
    "NotEquipment",
    "NoSlotsAvailable",
    "SlotTypeMismatch",
    "InvalidOption",
    "OptionUnavailable",
    "InvalidPhase",
    "InvalidAmount",
    "GameNotInitialized",
    "Attribute",
    "CardCatalog",
    "CardInstance",
    "CardTemplate",
    "CardType",
    "CharacterTemplate",
    "EquipmentTemplate",
    "EquipmentType",
    "PlainTemplate",
    "Rarity",
    "SpecialAttributes",
    "CardEngine",
    "EquipmentEngine",
    "CalcMode",
    "CheckResult",
    "DiceCheckEngine",
    "DiceCheckState",
    "DicePhase",
    "DiceRoll",
    "calculate_dice_pool",
    "calculate_total_reroll",
    "determine_check_result",
    "AbsencePenalty",
    "CheckConfig",
    "ChoiceOption",
    "ChoiceSettlement",
    "DiceCheckSettlement",
    "Effects",
    "ResultBranch",
    "SceneState",
    "SceneStatus",
    "SceneTemplate",
    "SceneType",
    "SettlementKind",
    "SlotDefinition",
    "SlotState",
    "SlotType",
    "TradeSettlement",
    "UnlockConditions",
    "SceneEngine",
    "ResourceData",
    "ResourceLedger",
    "EffectEngine",
    "EffectReport",
    "SettlementEngine",
    "SettlementResult",
]
