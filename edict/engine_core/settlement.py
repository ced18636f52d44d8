"""
Settlement Engine - Resolves one scene end to end.

settle_scene():
1. mark the scene SETTLING
2. dispatch on the settlement kind (dice check, trade, choice)
3. apply the chosen branch's effects
4. complete the scene, releasing its cards

apply_absence_penalty() handles scenes that were never played: penalty
effects (if any) and straight to COMPLETED, no dice involved.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .card_engine import CardEngine
from .cards import CardInstance
from .dice import CheckResult, DiceCheckEngine, DiceCheckState, calculate_dice_pool, calculate_total_reroll
from .effect_resolver import EffectEngine, EffectReport
from .equipment import EquipmentEngine
from .errors import InvalidOption, OptionUnavailable
from .events import EventType
from .scene_engine import SceneEngine
from .scenes import (
    ChoiceSettlement,
    DiceCheckSettlement,
    Effects,
    SceneStatus,
    SceneTemplate,
    SettlementKind,
    TradeSettlement,
)

logger = logging.getLogger(__name__)

TRADE_NARRATIVE = "Trade completed."


@dataclass
class SettlementResult:
    scene_id: str
    kind: SettlementKind
    narrative: str
    effects: Effects = field(default_factory=Effects)
    check_result: CheckResult | None = None
    check_state: DiceCheckState | None = None
    report: EffectReport = field(default_factory=EffectReport)
    cards_returned: list[str] = field(default_factory=list)
    cards_consumed: list[str] = field(default_factory=list)


class SettlementEngine:
    """Orchestrates dice checks, effects and scene completion."""

    def __init__(
        self,
        card_engine: CardEngine,
        scene_engine: SceneEngine,
        effect_engine: EffectEngine,
        dice_engine: DiceCheckEngine,
        equipment_engine: EquipmentEngine | None = None,
    ):
        self.card_engine = card_engine
        self.scene_engine = scene_engine
        self.effect_engine = effect_engine
        self.dice_engine = dice_engine
        self.equipment_engine = equipment_engine

    @property
    def events(self):
        return self.card_engine.events

    def settle_scene(self, scene_id: str, option_index: int = 0) -> SettlementResult | None:
        """
        Settle a scene.

        Returns None for unknown or already completed scenes. Raises
        InvalidOption when a choice scene has no option at option_index,
        and OptionUnavailable when that option's conditions do not hold.
        """
        template = self.scene_engine.get_scene(scene_id)
        state = self.scene_engine.get_scene_state(scene_id)
        if template is None or state is None:
            return None
        if state.status == SceneStatus.COMPLETED:
            logger.warning("Scene %s is already completed", scene_id)
            return None

        settlement = template.settlement
        if isinstance(settlement, ChoiceSettlement):
            if not 0 <= option_index < len(settlement.options):
                raise InvalidOption(option_index, len(settlement.options))
            option = settlement.options[option_index]
            completed = self.scene_engine.get_completed_scene_ids()
            if not self.scene_engine.conditions_met(
                option.conditions, self.effect_engine.resources, self.card_engine, completed
            ):
                raise OptionUnavailable(option_index, option.label)

        self.scene_engine.mark_settling(scene_id)
        invested_ids = list(state.invested_cards)
        invested = [
            card for card in (self.card_engine.get_card(i) for i in invested_ids)
            if card is not None
        ]

        if isinstance(settlement, DiceCheckSettlement):
            result = self._settle_dice_check(template, settlement, invested, invested_ids)
        elif isinstance(settlement, TradeSettlement):
            result = self._settle_trade(template)
        else:
            result = self._settle_choice(template, settlement, option_index, invested_ids)

        returned = self.scene_engine.complete_scene(scene_id, self.card_engine)
        result.cards_consumed = list(result.report.consumed)
        gone = set(result.cards_consumed) | set(result.report.cards_removed)
        result.cards_returned = [i for i in returned if i not in gone]

        logger.info("Settled %s (%s): %s", scene_id, result.kind.value, result.narrative)
        self.events.emit(
            EventType.SCENE_SETTLE,
            scene_id=scene_id,
            kind=result.kind.value,
            check_result=result.check_result.value if result.check_result else None,
        )
        return result

    def _settle_dice_check(
        self,
        template: SceneTemplate,
        settlement: DiceCheckSettlement,
        invested: list[CardInstance],
        invested_ids: list[str],
    ) -> SettlementResult:
        check = settlement.check
        dice_pool = calculate_dice_pool(invested, check.attribute, check.calc_mode, check.slot_index)
        reroll = calculate_total_reroll(invested, self.equipment_engine)

        check_state = self.dice_engine.run_automatic(dice_pool, check.target, reroll)
        branch = settlement.branch_for(check_state.result)
        report = self.effect_engine.apply(branch.effects, invested_ids)

        return SettlementResult(
            scene_id=template.scene_id,
            kind=SettlementKind.DICE_CHECK,
            narrative=branch.narrative,
            effects=branch.effects,
            check_result=check_state.result,
            check_state=check_state,
            report=report,
        )

    def _settle_trade(self, template: SceneTemplate) -> SettlementResult:
        return SettlementResult(
            scene_id=template.scene_id,
            kind=SettlementKind.TRADE,
            narrative=TRADE_NARRATIVE,
        )

    def _settle_choice(
        self,
        template: SceneTemplate,
        settlement: ChoiceSettlement,
        option_index: int,
        invested_ids: list[str],
    ) -> SettlementResult:
        option = settlement.options[option_index]
        report = self.effect_engine.apply(option.effects, invested_ids)
        return SettlementResult(
            scene_id=template.scene_id,
            kind=SettlementKind.CHOICE,
            narrative=option.label,
            effects=option.effects,
            report=report,
        )

    def apply_absence_penalty(self, scene_id: str) -> EffectReport | None:
        """
        Close a never-played scene, applying its penalty if it has one.

        Returns the effect report (empty when there is no penalty), or
        None when the scene is not available.
        """
        template = self.scene_engine.get_scene(scene_id)
        state = self.scene_engine.get_scene_state(scene_id)
        if template is None or state is None or state.status != SceneStatus.AVAILABLE:
            return None

        report = EffectReport()
        if template.absence_penalty is not None:
            logger.info("Absence penalty for %s: %s", scene_id, template.absence_penalty.narrative)
            report = self.effect_engine.apply(template.absence_penalty.effects)
        self.scene_engine.expire_scene(scene_id)
        return report
