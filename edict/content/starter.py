"""
Starter Content - A small bundled deck and scene set.

Used by the CLI simulation and the integration tests. Covers every
settlement kind, an unlock chain, a reputation gate and an absence
penalty.

Deck:
- protagonist (tagged `protagonist`, cannot be removed)
- companions dealt according to the difficulty's initial_cards
- equipment, consumables, intel, a gem and the Sultan's seal
"""

from __future__ import annotations

from ..engine_core.cards import (
    Attribute,
    CardTemplate,
    CardType,
    CharacterTemplate,
    EquipmentTemplate,
    EquipmentType,
    PlainTemplate,
    Rarity,
    SpecialAttributes,
)
from ..engine_core.dice import CalcMode
from ..engine_core.rules import PROTAGONIST_TAG, get_difficulty
from ..engine_core.scenes import (
    AbsencePenalty,
    CheckConfig,
    ChoiceOption,
    ChoiceSettlement,
    DiceCheckSettlement,
    Effects,
    ResultBranch,
    SceneTemplate,
    SceneType,
    SlotDefinition,
    SlotType,
    TradeSettlement,
    UnlockConditions,
)

PROTAGONIST_ID = "char_protagonist"

# Dealt in this order, as many as the difficulty allows
COMPANION_IDS = [
    "char_guard_captain",
    "char_court_scholar",
    "char_street_thief",
    "char_dancer",
    "char_old_hunter",
]


def starter_cards() -> list[CardTemplate]:
    return [
        CharacterTemplate(
            card_id=PROTAGONIST_ID,
            name="The Condemned",
            rarity=Rarity.GOLD,
            description="Sentenced by the Sultan's card. Fourteen days remain.",
            tags=(PROTAGONIST_TAG,),
            attributes={
                Attribute.PHYSIQUE: 5,
                Attribute.CHARM: 5,
                Attribute.WISDOM: 5,
                Attribute.COMBAT: 4,
                Attribute.SOCIAL: 5,
                Attribute.SURVIVAL: 4,
                Attribute.STEALTH: 3,
                Attribute.MAGIC: 2,
            },
            special_attributes=SpecialAttributes(support=1, reroll=1),
            equipment_slots=2,
        ),
        CharacterTemplate(
            card_id="char_guard_captain",
            name="Guard Captain",
            rarity=Rarity.SILVER,
            tags=("soldier",),
            attributes={Attribute.PHYSIQUE: 7, Attribute.COMBAT: 9, Attribute.SURVIVAL: 5},
            equipment_slots=2,
        ),
        CharacterTemplate(
            card_id="char_court_scholar",
            name="Court Scholar",
            rarity=Rarity.SILVER,
            tags=("scholar",),
            attributes={Attribute.WISDOM: 8, Attribute.SOCIAL: 5, Attribute.MAGIC: 4},
            special_attributes=SpecialAttributes(reroll=1),
            equipment_slots=1,
        ),
        CharacterTemplate(
            card_id="char_street_thief",
            name="Street Thief",
            rarity=Rarity.COPPER,
            tags=("rogue",),
            attributes={Attribute.STEALTH: 8, Attribute.COMBAT: 3, Attribute.CHARM: 4},
            equipment_slots=1,
        ),
        CharacterTemplate(
            card_id="char_dancer",
            name="Palace Dancer",
            rarity=Rarity.COPPER,
            attributes={Attribute.CHARM: 8, Attribute.SOCIAL: 6},
        ),
        CharacterTemplate(
            card_id="char_old_hunter",
            name="Old Hunter",
            rarity=Rarity.STONE,
            attributes={Attribute.SURVIVAL: 7, Attribute.COMBAT: 5},
            equipment_slots=1,
        ),
        EquipmentTemplate(
            card_id="equip_scimitar",
            name="Scimitar",
            rarity=Rarity.COPPER,
            equipment_type=EquipmentType.WEAPON,
            attribute_bonus={Attribute.COMBAT: 2},
        ),
        EquipmentTemplate(
            card_id="equip_lucky_charm",
            name="Lucky Charm",
            rarity=Rarity.SILVER,
            equipment_type=EquipmentType.ACCESSORY,
            special_bonus=SpecialAttributes(reroll=1),
        ),
        PlainTemplate(card_id="item_wine", name="Jug of Wine", card_type=CardType.CONSUMABLE),
        PlainTemplate(card_id="intel_palace_map", name="Palace Map", card_type=CardType.INTEL),
        PlainTemplate(card_id="gem_ruby", name="Ruby", card_type=CardType.GEM, rarity=Rarity.SILVER),
        PlainTemplate(
            card_id="sultan_seal",
            name="Sultan's Seal",
            card_type=CardType.SULTAN,
            rarity=Rarity.GOLD,
            description="Proof of the Sultan's favour.",
        ),
        PlainTemplate(card_id="book_poems", name="Book of Poems", card_type=CardType.BOOK),
    ]


def starter_scenes() -> list[SceneTemplate]:
    return [
        SceneTemplate(
            scene_id="scene_arena",
            name="The Arena",
            scene_type=SceneType.CHALLENGE,
            duration=2,
            slots=[
                SlotDefinition(SlotType.CHARACTER, required=True),
                SlotDefinition(SlotType.CHARACTER),
                SlotDefinition(SlotType.ITEM),
            ],
            settlement=DiceCheckSettlement(
                check=CheckConfig(attribute=Attribute.COMBAT, calc_mode=CalcMode.MAX, target=4),
                success=ResultBranch(
                    "The crowd roars your name.",
                    Effects(gold=15, reputation=10, golden_dice=1),
                ),
                partial_success=ResultBranch("You survive, bloodied.", Effects(gold=5)),
                failure=ResultBranch("You are carried out of the sand.", Effects(reputation=-5)),
                critical_failure=ResultBranch(
                    "A humiliating defeat.",
                    Effects(reputation=-10, tags_add={"card_invested_0": ["wounded"]}),
                ),
            ),
            absence_penalty=AbsencePenalty("The crowd jeers at your absence.", Effects(reputation=-3)),
        ),
        SceneTemplate(
            scene_id="scene_library",
            name="The Royal Library",
            duration=1,
            slots=[SlotDefinition(SlotType.CHARACTER, required=True)],
            settlement=DiceCheckSettlement(
                check=CheckConfig(attribute=Attribute.WISDOM, calc_mode=CalcMode.SUM, target=3),
                success=ResultBranch(
                    "An old chronicle names the Sultan's weakness.",
                    Effects(cards_add=["intel_palace_map"], unlock_scenes=["scene_palace_gate"]),
                ),
                failure=ResultBranch("The shelves keep their secrets."),
                critical_failure=ResultBranch("The librarian throws you out.", Effects(reputation=-2)),
            ),
        ),
        SceneTemplate(
            scene_id="scene_bazaar",
            name="Grand Bazaar",
            scene_type=SceneType.SHOP,
            duration=3,
            slots=[SlotDefinition(SlotType.CHARACTER), SlotDefinition(SlotType.GOLD)],
            settlement=TradeSettlement(shop_inventory=["item_wine", "equip_scimitar"], allow_sell=True),
        ),
        SceneTemplate(
            scene_id="scene_tavern",
            name="Tavern Rumours",
            duration=1,
            slots=[SlotDefinition(SlotType.CHARACTER, required=True), SlotDefinition(SlotType.ITEM)],
            settlement=ChoiceSettlement(options=[
                ChoiceOption("Buy a round for everyone", Effects(gold=-5, reputation=5)),
                ChoiceOption("Listen quietly", Effects(cards_add=["book_poems"])),
            ]),
            absence_penalty=AbsencePenalty("The rumours spread without you."),
        ),
        SceneTemplate(
            scene_id="scene_night_raid",
            name="Night Raid",
            scene_type=SceneType.CHALLENGE,
            duration=2,
            slots=[SlotDefinition(SlotType.CHARACTER, required=True), SlotDefinition(SlotType.CHARACTER)],
            settlement=DiceCheckSettlement(
                check=CheckConfig(attribute=Attribute.STEALTH, calc_mode=CalcMode.SUM, target=5),
                success=ResultBranch("You slip in and out unseen.", Effects(gold=25)),
                failure=ResultBranch("Guards chase you off.", Effects(reputation=-5)),
                critical_failure=ResultBranch(
                    "Your companions are taken by the watch.",
                    Effects(reputation=-10, consume_invested=True),
                ),
            ),
            unlock_conditions=UnlockConditions(required_tags=["rogue"]),
            absence_penalty=AbsencePenalty("The opportunity passes.", Effects(gold=-2)),
        ),
        SceneTemplate(
            scene_id="scene_palace_gate",
            name="The Palace Gate",
            duration=2,
            slots=[
                SlotDefinition(SlotType.CHARACTER, required=True),
                SlotDefinition(SlotType.ITEM, required=True),
            ],
            settlement=DiceCheckSettlement(
                check=CheckConfig(attribute=Attribute.SOCIAL, calc_mode=CalcMode.FIRST, target=3),
                success=ResultBranch(
                    "The Sultan receives you and grants his seal.",
                    Effects(cards_add=["sultan_seal"], reputation=15),
                ),
                failure=ResultBranch("The gate stays shut.", Effects(reputation=-5)),
                critical_failure=ResultBranch("You are turned away in disgrace.", Effects(reputation=-15)),
            ),
            unlock_conditions=UnlockConditions(
                reputation_min=40,
                required_cards=["intel_palace_map"],
                completed_scenes=["scene_library"],
            ),
        ),
    ]


def deal_starting_hand(game) -> list[str]:
    """
    Give a started GameSession its opening cards.

    The protagonist plus as many companions as the difficulty grants,
    and one scimitar. Returns the new instance ids.
    """
    profile = get_difficulty(game.difficulty)
    card_ids = [PROTAGONIST_ID, *COMPANION_IDS[: profile.initial_cards], "equip_scimitar"]
    dealt = []
    for card_id in card_ids:
        card = game.cards.add_card_by_template_id(card_id)
        if card is not None:
            dealt.append(card.instance_id)
    return dealt
