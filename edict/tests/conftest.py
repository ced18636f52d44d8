"""
Pytest fixtures for Edict tests.
"""

import pytest

from ..engine_core.card_engine import CardEngine
from ..engine_core.cards import (
    Attribute,
    CardCatalog,
    CardType,
    CharacterTemplate,
    EquipmentTemplate,
    EquipmentType,
    PlainTemplate,
    SpecialAttributes,
)
from ..engine_core.dice import CalcMode, DiceCheckEngine
from ..engine_core.effect_resolver import EffectEngine
from ..engine_core.equipment import EquipmentEngine
from ..engine_core.events import ALL_EVENTS, EventBus
from ..engine_core.random_engine import RandomEngine
from ..engine_core.resources import ResourceData, ResourceLedger
from ..engine_core.rules import DICE_SIDES, PROTAGONIST_TAG
from ..engine_core.scene_engine import SceneEngine
from ..engine_core.scenes import (
    AbsencePenalty,
    CheckConfig,
    DiceCheckSettlement,
    Effects,
    ResultBranch,
    SceneTemplate,
    SlotDefinition,
    SlotType,
)
from ..engine_core.settlement import SettlementEngine


class ScriptedRandom(RandomEngine):
    """RandomEngine whose die faces come from a queue, then fall back to the seed."""

    def __init__(self, faces=(), seed="scripted"):
        super().__init__(seed)
        self.faces = list(faces)

    def roll_die(self, sides=DICE_SIDES):
        if self.faces:
            return self.faces.pop(0)
        return super().roll_die(sides)


class EventRecorder:
    """Collects every event published on a bus."""

    def __init__(self, bus: EventBus):
        self.events = []
        bus.subscribe(ALL_EVENTS, self.events.append)

    def names(self):
        return [event.name for event in self.events]

    def of(self, name):
        return [event for event in self.events if event.name == name]


# =============================================================================
# Templates
# =============================================================================

@pytest.fixture
def protagonist_template():
    return CharacterTemplate(
        card_id="hero",
        name="Hero",
        tags=(PROTAGONIST_TAG,),
        attributes={Attribute.COMBAT: 5, Attribute.WISDOM: 4},
        special_attributes=SpecialAttributes(support=1, reroll=1),
        equipment_slots=2,
    )


@pytest.fixture
def warrior_template():
    return CharacterTemplate(
        card_id="warrior",
        name="Warrior",
        attributes={Attribute.COMBAT: 9, Attribute.PHYSIQUE: 6},
        equipment_slots=1,
    )


@pytest.fixture
def scholar_template():
    return CharacterTemplate(
        card_id="scholar",
        name="Scholar",
        attributes={Attribute.COMBAT: 2, Attribute.WISDOM: 8},
        special_attributes=SpecialAttributes(reroll=2),
    )


@pytest.fixture
def sword_template():
    return EquipmentTemplate(
        card_id="sword",
        name="Sword",
        equipment_type=EquipmentType.WEAPON,
        attribute_bonus={Attribute.COMBAT: 2},
        special_bonus=SpecialAttributes(reroll=1),
    )


@pytest.fixture
def amulet_template():
    return EquipmentTemplate(
        card_id="amulet",
        name="Amulet",
        attribute_bonus={Attribute.WISDOM: 1},
        special_bonus=SpecialAttributes(support=2),
    )


@pytest.fixture
def wine_template():
    return PlainTemplate(card_id="wine", name="Wine", card_type=CardType.CONSUMABLE)


@pytest.fixture
def sultan_template():
    return PlainTemplate(card_id="sultan_card", name="Sultan Card", card_type=CardType.SULTAN)


@pytest.fixture
def catalog(
    protagonist_template,
    warrior_template,
    scholar_template,
    sword_template,
    amulet_template,
    wine_template,
    sultan_template,
):
    return CardCatalog([
        protagonist_template,
        warrior_template,
        scholar_template,
        sword_template,
        amulet_template,
        wine_template,
        sultan_template,
    ])


# =============================================================================
# Engines
# =============================================================================

@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def recorder(events):
    return EventRecorder(events)


@pytest.fixture
def card_engine(events, catalog):
    return CardEngine(events, catalog)


@pytest.fixture
def equipment_engine(card_engine):
    return EquipmentEngine(card_engine)


@pytest.fixture
def scene_engine(events):
    return SceneEngine(events)


@pytest.fixture
def resources(events):
    return ResourceLedger(ResourceData(gold=30), events)


@pytest.fixture
def effect_engine(resources, card_engine, scene_engine):
    return EffectEngine(resources, card_engine, scene_engine)


@pytest.fixture
def dice_engine(events):
    return DiceCheckEngine(RandomEngine("dice-seed"), events)


@pytest.fixture
def settlement_engine(card_engine, scene_engine, effect_engine, dice_engine, equipment_engine):
    return SettlementEngine(card_engine, scene_engine, effect_engine, dice_engine, equipment_engine)


# =============================================================================
# Scenes
# =============================================================================

def make_duel_scene(scene_id="duel", duration=3, target=8, **branch_effects):
    """Three-turn combat check with one required character slot."""
    return SceneTemplate(
        scene_id=scene_id,
        name="Duel",
        duration=duration,
        slots=[
            SlotDefinition(SlotType.CHARACTER, required=True),
            SlotDefinition(SlotType.ITEM),
        ],
        settlement=DiceCheckSettlement(
            check=CheckConfig(attribute=Attribute.COMBAT, calc_mode=CalcMode.MAX, target=target),
            success=ResultBranch("Victory", branch_effects.get("success", Effects(gold=10))),
            failure=ResultBranch("Defeat", branch_effects.get("failure", Effects(reputation=-5))),
            critical_failure=ResultBranch(
                "Disaster",
                branch_effects.get("critical_failure", Effects(reputation=-10)),
            ),
            partial_success=branch_effects.get("partial_success"),
        ),
        absence_penalty=AbsencePenalty("You never showed up", Effects(reputation=-3)),
    )


@pytest.fixture
def duel_scene():
    return make_duel_scene()
