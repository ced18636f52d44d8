"""
Effect Resolver - Applies declarative effect deltas.

Effects touch three owners:
- ResourceLedger: gold, reputation, golden dice, rewind charges
- CardEngine: cards added/removed, tags, consumed invested cards
- SceneEngine: scenes unlocked directly (conditions are not checked)

A card reference is resolved in this order:
1. `card_invested_N` -> Nth id of the settlement's frozen invested list
2. an instance id held in the hand
3. the first instance of a template id

References that cannot be resolved, and card changes the CardEngine
rejects, are logged and skipped so one bad content entry never aborts
a settlement.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Sequence
import logging
import re

from .card_engine import CardEngine
from .errors import CapacityExceeded, EngineError
from .events import EventType
from .resources import ResourceLedger
from .scene_engine import SceneEngine
from .scenes import Effects

logger = logging.getLogger(__name__)

INVESTED_REFERENCE = re.compile(r"^card_invested_(\d+)$")


@dataclass
class EffectReport:
    """What an effect application actually changed."""
    gold: int = 0
    reputation: int = 0
    golden_dice: int = 0
    rewind_charges: int = 0
    cards_added: list[str] = field(default_factory=list)
    cards_removed: list[str] = field(default_factory=list)
    consumed: list[str] = field(default_factory=list)
    scenes_unlocked: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


class EffectEngine:
    """Interprets Effects against the session's ledger, cards and scenes."""

    def __init__(self, resources: ResourceLedger, card_engine: CardEngine, scene_engine: SceneEngine):
        self.resources = resources
        self.card_engine = card_engine
        self.scene_engine = scene_engine

    @property
    def events(self):
        return self.card_engine.events

    def resolve_card_reference(self, ref: str, invested: Sequence[str] = ()) -> str | None:
        """Instance id for a card reference, or None."""
        match = INVESTED_REFERENCE.match(ref)
        if match:
            index = int(match.group(1))
            return invested[index] if index < len(invested) else None

        if self.card_engine.get_card(ref) is not None:
            return ref
        card = self.card_engine.get_card_by_card_id(ref)
        return card.instance_id if card else None

    def apply(self, effects: Effects, invested: Sequence[str] = ()) -> EffectReport:
        report = EffectReport()
        self.events.emit(EventType.EFFECTS_APPLY, effects=effects.to_dict())

        self._apply_resources(effects, report)

        for card_id in effects.cards_add:
            self._add_card(card_id, report)

        for ref in effects.cards_remove:
            instance_id = self.resolve_card_reference(ref, invested)
            if instance_id is None:
                self._skip(report, ref, "cards_remove")
                continue
            if instance_id in invested:
                card = self.card_engine.get_card(instance_id)
                if card is not None and not card.is_protagonist():
                    self.card_engine.unlock_card(instance_id)
            try:
                self.card_engine.remove_card(instance_id)
            except EngineError as exc:
                logger.warning("Effect could not remove %s: %s", instance_id, exc)
                report.skipped.append(ref)
                continue
            report.cards_removed.append(instance_id)

        for ref, tags in effects.tags_add.items():
            instance_id = self.resolve_card_reference(ref, invested)
            if instance_id is None:
                self._skip(report, ref, "tags_add")
                continue
            for tag in tags:
                self.card_engine.add_tag_to_card(instance_id, tag)

        for ref, tags in effects.tags_remove.items():
            instance_id = self.resolve_card_reference(ref, invested)
            if instance_id is None:
                self._skip(report, ref, "tags_remove")
                continue
            for tag in tags:
                self.card_engine.remove_tag_from_card(instance_id, tag)

        for scene_id in effects.unlock_scenes:
            if self.scene_engine.unlock_scene(scene_id):
                report.scenes_unlocked.append(scene_id)

        if effects.consume_invested:
            self._consume(invested, report)

        return report

    def _apply_resources(self, effects: Effects, report: EffectReport) -> None:
        if effects.gold is not None:
            before = self.resources.gold
            report.gold = self.resources.add_gold(effects.gold) - before
        if effects.reputation is not None:
            before = self.resources.reputation
            report.reputation = self.resources.add_reputation(effects.reputation) - before
        if effects.golden_dice is not None:
            before = self.resources.golden_dice
            report.golden_dice = self.resources.add_golden_dice(effects.golden_dice) - before
        if effects.rewind_charges is not None:
            before = self.resources.rewind_charges
            report.rewind_charges = self.resources.add_rewind_charges(effects.rewind_charges) - before

    def _add_card(self, card_id: str, report: EffectReport) -> None:
        try:
            card = self.card_engine.add_card_by_template_id(card_id)
        except CapacityExceeded as exc:
            logger.warning("Effect could not add %s: %s", card_id, exc)
            report.skipped.append(card_id)
            return
        if card is None:
            self._skip(report, card_id, "cards_add")
            return
        report.cards_added.append(card.instance_id)

    def _consume(self, invested: Sequence[str], report: EffectReport) -> None:
        for instance_id in invested:
            card = self.card_engine.get_card(instance_id)
            if card is None:
                continue
            if card.is_protagonist():
                logger.info("Protagonist %s survives consumption", instance_id)
                continue
            self.card_engine.unlock_card(instance_id)
            self.card_engine.remove_card(instance_id)
            report.consumed.append(instance_id)

    @staticmethod
    def _skip(report: EffectReport, ref: str, field_name: str) -> None:
        logger.warning("Unresolved card reference %r in %s, skipped", ref, field_name)
        report.skipped.append(ref)
