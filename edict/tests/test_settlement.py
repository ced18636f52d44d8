"""
Tests for the SettlementEngine.

Dice outcomes are pinned with ScriptedRandom: a warrior (COMBAT 9)
rolls nine dice against the duel's target of 8.
"""

import pytest

from ..engine_core.dice import CheckResult, DiceCheckEngine
from ..engine_core.errors import InvalidOption, OptionUnavailable
from ..engine_core.scenes import (
    ChoiceOption,
    ChoiceSettlement,
    Effects,
    ResultBranch,
    SceneStatus,
    SceneTemplate,
    SettlementKind,
    SlotDefinition,
    SlotType,
    TradeSettlement,
    UnlockConditions,
)
from ..engine_core.settlement import TRADE_NARRATIVE, SettlementEngine
from .conftest import ScriptedRandom, make_duel_scene


@pytest.fixture
def settle_with(card_engine, scene_engine, effect_engine, equipment_engine, events):
    """Build a SettlementEngine whose dice show the given faces."""
    def build(faces):
        dice = DiceCheckEngine(ScriptedRandom(faces), events)
        return SettlementEngine(card_engine, scene_engine, effect_engine, dice, equipment_engine)
    return build


@pytest.fixture
def warrior(card_engine, warrior_template):
    return card_engine.add_card(warrior_template)


def enter_scene(scene_engine, card_engine, template, *instance_ids):
    """Register, unlock, fill slots in order and participate."""
    scene_engine.register_scene(template)
    scene_engine.unlock_scene(template.scene_id)
    for index, instance_id in enumerate(instance_ids):
        assert scene_engine.place_card(template.scene_id, index, instance_id, card_engine)
    assert scene_engine.participate_scene(template.scene_id, card_engine)


class TestDiceCheck:
    """Tests for dice check settlements."""

    def test_success_branch(self, settle_with, scene_engine, card_engine, resources, recorder, warrior, duel_scene):
        """Nine successes against 8 takes the success branch."""
        enter_scene(scene_engine, card_engine, duel_scene, warrior.instance_id)

        result = settle_with([7] * 9).settle_scene("duel")

        assert result.kind == SettlementKind.DICE_CHECK
        assert result.check_result == CheckResult.SUCCESS
        assert result.narrative == "Victory"
        assert result.check_state.dice_pool == 9
        assert result.report.gold == 10
        assert resources.gold == 40
        assert result.cards_returned == [warrior.instance_id]
        assert not card_engine.is_card_locked(warrior.instance_id)
        assert scene_engine.get_scene_state("duel").status == SceneStatus.COMPLETED
        assert recorder.of("scene:settle")[0].payload["check_result"] == "success"

    def test_failure_and_critical_failure(self, settle_with, scene_engine, card_engine, resources, warrior):
        """One success fails; zero is a critical failure."""
        enter_scene(scene_engine, card_engine, make_duel_scene("a"), warrior.instance_id)
        result = settle_with([7] + [1] * 8).settle_scene("a")
        assert result.check_result == CheckResult.FAILURE
        assert resources.reputation == 45

        enter_scene(scene_engine, card_engine, make_duel_scene("b"), warrior.instance_id)
        result = settle_with([1] * 9).settle_scene("b")
        assert result.check_result == CheckResult.CRITICAL_FAILURE
        assert result.narrative == "Disaster"
        assert resources.reputation == 35

    def test_partial_success_falls_back_to_failure(self, settle_with, scene_engine, card_engine, warrior):
        """Without a partial branch, a partial success uses the failure branch."""
        enter_scene(scene_engine, card_engine, make_duel_scene(), warrior.instance_id)
        result = settle_with([7] * 6 + [1] * 3).settle_scene("duel")
        assert result.check_result == CheckResult.PARTIAL_SUCCESS
        assert result.narrative == "Defeat"

    def test_partial_success_branch(self, settle_with, scene_engine, card_engine, resources, warrior):
        scene = make_duel_scene(partial_success=ResultBranch("Close call", Effects(gold=3)))
        enter_scene(scene_engine, card_engine, scene, warrior.instance_id)
        result = settle_with([7] * 6 + [1] * 3).settle_scene("duel")
        assert result.narrative == "Close call"
        assert resources.gold == 33

    def test_equipment_counts_toward_reroll_only(
        self, settle_with, scene_engine, card_engine, equipment_engine, warrior, sword_template
    ):
        """The pool uses raw attributes; equipment adds rerolls."""
        sword = card_engine.add_card(sword_template)
        equipment_engine.equip(warrior.instance_id, sword.instance_id)
        enter_scene(scene_engine, card_engine, make_duel_scene(), warrior.instance_id)

        result = settle_with([7] * 9).settle_scene("duel")

        assert result.check_state.dice_pool == 9
        assert result.check_state.reroll_available == 1

    def test_consumed_cards_not_returned(self, settle_with, scene_engine, card_engine, warrior, wine_template):
        """consume_invested removes invested cards; they are not returned."""
        wine = card_engine.add_card(wine_template)
        scene = make_duel_scene(critical_failure=Effects(consume_invested=True))
        enter_scene(scene_engine, card_engine, scene, warrior.instance_id, wine.instance_id)

        result = settle_with([1] * 9).settle_scene("duel")

        assert result.cards_consumed == [warrior.instance_id, wine.instance_id]
        assert result.cards_returned == []
        assert card_engine.card_count == 0

    def test_branch_removes_invested_card(self, settle_with, scene_engine, card_engine, recorder, warrior):
        """A branch may remove a card invested in the scene it settles."""
        scene = make_duel_scene(success=Effects(cards_remove=["card_invested_0"]))
        enter_scene(scene_engine, card_engine, scene, warrior.instance_id)

        result = settle_with([7] * 9).settle_scene("duel")

        assert result.report.cards_removed == [warrior.instance_id]
        assert result.report.skipped == []
        assert result.cards_returned == []
        assert card_engine.get_card(warrior.instance_id) is None
        assert not card_engine.is_card_locked(warrior.instance_id)
        assert "card:remove" in recorder.names()

    def test_empty_scene_settles(self, settle_with, scene_engine):
        """A scene with nothing invested still settles: 0 dice against 0 succeed."""
        scene = make_duel_scene(target=0)
        scene_engine.register_scene(scene)
        scene_engine.unlock_scene("duel")
        result = settle_with([]).settle_scene("duel")
        assert result.check_result == CheckResult.SUCCESS
        assert result.check_state.rolls == []


class TestOtherKinds:
    """Tests for trade and choice settlements."""

    @pytest.fixture
    def bazaar(self, scene_engine):
        scene = SceneTemplate(
            scene_id="bazaar",
            name="Bazaar",
            duration=1,
            slots=[SlotDefinition(SlotType.CHARACTER)],
            settlement=TradeSettlement(shop_inventory=["sword"], allow_sell=True),
        )
        scene_engine.register_scene(scene)
        scene_engine.unlock_scene("bazaar")
        return scene

    @pytest.fixture
    def tavern(self, scene_engine):
        scene = SceneTemplate(
            scene_id="tavern",
            name="Tavern",
            duration=1,
            slots=[],
            settlement=ChoiceSettlement(options=[
                ChoiceOption("Buy a round", Effects(gold=-5, reputation=5)),
                ChoiceOption("Leave quietly"),
            ]),
        )
        scene_engine.register_scene(scene)
        scene_engine.unlock_scene("tavern")
        return scene

    def test_trade(self, settlement_engine, resources, bazaar):
        """Trades complete with a fixed narrative and no effects."""
        result = settlement_engine.settle_scene("bazaar")
        assert result.kind == SettlementKind.TRADE
        assert result.narrative == TRADE_NARRATIVE
        assert result.effects.is_empty()
        assert resources.gold == 30

    def test_choice(self, settlement_engine, resources, tavern):
        """The chosen option's effects apply and its label is the narrative."""
        result = settlement_engine.settle_scene("tavern", option_index=0)
        assert result.kind == SettlementKind.CHOICE
        assert result.narrative == "Buy a round"
        assert (resources.gold, resources.reputation) == (25, 55)

    def test_bad_option_raises_before_settling(self, settlement_engine, scene_engine, tavern):
        """An invalid option leaves the scene untouched."""
        with pytest.raises(InvalidOption):
            settlement_engine.settle_scene("tavern", option_index=2)
        assert scene_engine.get_scene_state("tavern").status == SceneStatus.AVAILABLE

    @pytest.fixture
    def court(self, scene_engine):
        scene = SceneTemplate(
            scene_id="court",
            name="Court",
            duration=1,
            slots=[],
            settlement=ChoiceSettlement(options=[
                ChoiceOption("Bow"),
                ChoiceOption(
                    "Petition the sultan",
                    Effects(gold=20),
                    conditions=UnlockConditions(reputation_min=60),
                ),
            ]),
        )
        scene_engine.register_scene(scene)
        scene_engine.unlock_scene("court")
        return scene

    def test_gated_option_raises_before_settling(self, settlement_engine, scene_engine, resources, court):
        """An option whose conditions fail is refused and nothing changes."""
        with pytest.raises(OptionUnavailable):
            settlement_engine.settle_scene("court", option_index=1)
        assert scene_engine.get_scene_state("court").status == SceneStatus.AVAILABLE
        assert resources.gold == 30

    def test_gated_option_once_conditions_hold(self, settlement_engine, resources, court):
        resources.set_reputation(60)
        result = settlement_engine.settle_scene("court", option_index=1)
        assert result.narrative == "Petition the sultan"
        assert resources.gold == 50

    def test_unknown_or_completed_returns_none(self, settlement_engine, tavern):
        assert settlement_engine.settle_scene("nowhere") is None
        settlement_engine.settle_scene("tavern", option_index=1)
        assert settlement_engine.settle_scene("tavern") is None


class TestAbsence:
    """Tests for apply_absence_penalty."""

    def test_penalty_applied_and_scene_closed(self, settlement_engine, scene_engine, resources, recorder, duel_scene):
        """The penalty applies and the scene expires."""
        scene_engine.register_scene(duel_scene)
        scene_engine.unlock_scene("duel")

        report = settlement_engine.apply_absence_penalty("duel")

        assert report.reputation == -3
        assert resources.reputation == 47
        assert scene_engine.get_scene_state("duel").status == SceneStatus.COMPLETED
        assert "scene:expire" in recorder.names()

    def test_no_penalty_still_expires(self, settlement_engine, scene_engine):
        """Scenes without a penalty close with an empty report."""
        scene = make_duel_scene()
        scene.absence_penalty = None
        scene_engine.register_scene(scene)
        scene_engine.unlock_scene("duel")

        report = settlement_engine.apply_absence_penalty("duel")

        assert report is not None
        assert report.reputation == 0
        assert scene_engine.get_scene_state("duel").status == SceneStatus.COMPLETED

    def test_only_available_scenes(self, settlement_engine, scene_engine, card_engine, warrior, duel_scene):
        """Participated, completed and unknown scenes are left alone."""
        enter_scene(scene_engine, card_engine, duel_scene, warrior.instance_id)
        assert settlement_engine.apply_absence_penalty("duel") is None
        assert settlement_engine.apply_absence_penalty("nowhere") is None
        assert scene_engine.get_scene_state("duel").status == SceneStatus.PARTICIPATED
