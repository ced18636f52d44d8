"""
Game Session - Composition root for one play-through.

A GameSession owns exactly one EventBus and one RandomEngine and builds
every engine around them, so independent sessions never share state.

LIFECYCLE:
1. Register content (card templates, scene templates)
2. start_new_game(difficulty, seed) or load_game(snapshot)
3. refresh_available_scenes() to unlock scenes whose conditions pass
4. Each day: the player places cards and participates, then next_day()
   snapshots for rewind, settles, advances the clock and runs dawn
5. next_day() reports a GameEndState once the game is over

Content survives start_new_game/load_game; runtime state does not.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable
import logging
import time

from ..config import settings
from ..engine_core.card_engine import CardEngine
from ..engine_core.cards import CardCatalog, CardTemplate
from ..engine_core.dice import DiceCheckEngine
from ..engine_core.effect_resolver import EffectEngine
from ..engine_core.equipment import EquipmentEngine
from ..engine_core.errors import GameNotInitialized
from ..engine_core.events import EventBus, EventType
from ..engine_core.random_engine import RandomEngine
from ..engine_core.resources import ResourceData, ResourceLedger
from ..engine_core.rules import get_difficulty
from ..engine_core.scene_engine import SceneEngine
from ..engine_core.scenes import SceneTemplate
from ..engine_core.settlement import SettlementEngine
from .day import DayOrchestrator, DayPhase, DaySettlement, GameEndState
from .snapshot import (
    CardRecord,
    CardsModel,
    GameStateModel,
    SaveSnapshot,
    SceneStateModel,
    ScenesModel,
)
from .think import ThinkEngine
from .time_engine import TimeEngine, TimeState

logger = logging.getLogger(__name__)


@dataclass
class DayReport:
    """Outcome of one next_day() call."""
    settled_day: int
    settlement: DaySettlement
    current_day: int
    execution_countdown: int
    ending: GameEndState | None = None


class GameSession:
    """Owns every engine of one game and provides save/load/rewind."""

    def __init__(self, history_limit: int | None = None):
        self.events = EventBus()
        self.catalog = CardCatalog()
        self.history_limit = history_limit or settings.rewind_history_limit
        self._scene_templates: dict[str, SceneTemplate] = {}
        self._initialized = False

        self.difficulty = settings.default_difficulty
        self.random: RandomEngine | None = None
        self.resources: ResourceLedger | None = None
        self.cards: CardEngine | None = None
        self.equipment: EquipmentEngine | None = None
        self.scenes: SceneEngine | None = None
        self.dice: DiceCheckEngine | None = None
        self.effects: EffectEngine | None = None
        self.settlement: SettlementEngine | None = None
        self.time: TimeEngine | None = None
        self.think: ThinkEngine | None = None
        self.day: DayOrchestrator | None = None

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def seed(self) -> str | None:
        return self.random.seed if self.random else None

    def _require(self) -> None:
        if not self._initialized:
            raise GameNotInitialized()

    def _build(self, random: RandomEngine, resources: ResourceData, time_engine: TimeEngine) -> None:
        self.random = random
        self.resources = ResourceLedger(resources, self.events)
        self.cards = CardEngine(self.events, self.catalog)
        self.equipment = EquipmentEngine(self.cards)
        self.scenes = SceneEngine(self.events)
        self.scenes.register_scenes(self._scene_templates.values())
        self.dice = DiceCheckEngine(self.random, self.events)
        self.effects = EffectEngine(self.resources, self.cards, self.scenes)
        self.settlement = SettlementEngine(self.cards, self.scenes, self.effects, self.dice, self.equipment)
        self.time = time_engine
        self.think = ThinkEngine(self.resources, self.cards)
        self.day = DayOrchestrator(self.time, self.cards, self.scenes, self.think, self.settlement, self.events)
        self.day.phase = DayPhase.ACTION
        self._initialized = True

    # Content

    def register_card_template(self, template: CardTemplate) -> None:
        self.catalog.register(template)

    def register_card_templates(self, templates: Iterable[CardTemplate]) -> None:
        for template in templates:
            self.register_card_template(template)

    def register_scene(self, template: SceneTemplate) -> None:
        self._scene_templates[template.scene_id] = template
        if self.scenes is not None:
            self.scenes.register_scene(template)

    def register_scenes(self, templates: Iterable[SceneTemplate]) -> None:
        for template in templates:
            self.register_scene(template)

    # Lifecycle

    def start_new_game(self, difficulty: str | None = None, seed: str | None = None) -> None:
        """
        Start a fresh game.

        Raises KeyError for an unknown difficulty. Without a seed one is
        generated (or taken from EDICT_DEFAULT_SEED).
        """
        difficulty = difficulty or settings.default_difficulty
        profile = get_difficulty(difficulty)
        self.difficulty = difficulty

        self._build(
            RandomEngine(seed or settings.default_seed or None),
            ResourceData(gold=profile.initial_gold),
            TimeEngine(profile.execution_days, self.events, self.history_limit),
        )
        logger.info("New %s game, seed %s", difficulty, self.random.seed)
        self.events.emit(EventType.GAME_START, difficulty=difficulty, seed=self.random.seed)

    def refresh_available_scenes(self) -> list[str]:
        """Unlock every registered scene whose conditions now pass."""
        self._require()
        completed = self.scenes.get_completed_scene_ids()
        unlocked = []
        for template in self.scenes.get_all_registered_scenes():
            if self.scenes.get_scene_state(template.scene_id) is not None:
                continue
            if self.scenes.check_unlock_conditions(template, self.resources, self.cards, completed):
                if self.scenes.unlock_scene(template.scene_id):
                    unlocked.append(template.scene_id)
        return unlocked

    def next_day(self) -> DayReport:
        """Settle today, advance the clock and start the next dawn."""
        self._require()
        self.save_state_for_rewind()

        settled_day = self.time.current_day
        settlement = self.day.start_settlement()
        self.day.end_day()
        self.day.start_dawn()
        self.refresh_available_scenes()

        ending = self.day.check_game_end()
        if ending is not None:
            logger.info("Game over: %s", ending.ending_type.value)
            self.events.emit(EventType.GAME_END, ending=ending.ending_type.value, victory=ending.is_victory)

        return DayReport(
            settled_day=settled_day,
            settlement=settlement,
            current_day=self.time.current_day,
            execution_countdown=self.time.execution_countdown,
            ending=ending,
        )

    def check_game_end(self) -> GameEndState | None:
        self._require()
        return self.day.check_game_end()

    # Save / load

    def create_save_data(self, save_id: str | None = None) -> SaveSnapshot:
        self._require()

        resources = self.resources.to_data()
        game_state = GameStateModel(
            current_day=self.time.current_day,
            execution_countdown=self.time.execution_countdown,
            gold=resources.gold,
            reputation=resources.reputation,
            rewind_charges=resources.rewind_charges,
            golden_dice=resources.golden_dice,
            think_charges=resources.think_charges,
        )

        all_cards = self.cards.get_all_cards()
        cards = CardsModel(
            hand=[card.instance_id for card in all_cards],
            locked_in_scenes=self.cards.locked_in_scenes(),
            think_used_today=self.think.used_today_list(),
            equipped={
                card.instance_id: list(card.equipped_items)
                for card in self.cards.get_character_cards()
                if card.equipped_items
            },
            instances=[CardRecord.from_instance(card) for card in all_cards],
        )

        states = self.scenes.get_all_scene_states()
        scenes = ScenesModel(
            active=[state.scene_id for state in self.scenes.get_active_scenes()],
            completed=self.scenes.get_completed_scene_ids(),
            unlocked=list(states),
            scene_states={
                scene_id: SceneStateModel.model_validate(state, from_attributes=True)
                for scene_id, state in states.items()
            },
        )

        snapshot = SaveSnapshot(
            save_id=save_id or f"save_{int(time.time() * 1000)}",
            game_state=game_state,
            cards=cards,
            scenes=scenes,
            difficulty=self.difficulty,
            random_seed=self.random.seed,
            random_state=self.random.get_state(),
        )
        self.events.emit(EventType.GAME_SAVE, save_id=snapshot.save_id)
        return snapshot

    def load_game(self, snapshot: SaveSnapshot) -> None:
        """
        Rebuild every engine from a snapshot.

        Registered content and the rewind history are kept.
        """
        game_state = snapshot.game_state
        random = RandomEngine(snapshot.random_seed)
        if snapshot.random_state:
            random.restore_state(snapshot.random_state)

        time_engine = self.time or TimeEngine(game_state.execution_countdown, self.events, self.history_limit)
        time_engine.restore_state(
            TimeState(current_day=game_state.current_day, execution_countdown=game_state.execution_countdown)
        )

        self.difficulty = snapshot.difficulty
        self._build(
            random,
            ResourceData(
                gold=game_state.gold,
                reputation=game_state.reputation,
                golden_dice=game_state.golden_dice,
                rewind_charges=game_state.rewind_charges,
                think_charges=game_state.think_charges,
            ),
            time_engine,
        )

        hand = set(snapshot.cards.hand)
        instances = [
            record.to_instance() for record in snapshot.cards.instances
            if not hand or record.instance_id in hand
        ]
        by_id = {card.instance_id: card for card in instances}
        for character_id, item_ids in snapshot.cards.equipped.items():
            if character_id in by_id:
                by_id[character_id].equipped_items = list(item_ids)

        locked = {
            instance_id: scene_id
            for scene_id, instance_ids in snapshot.cards.locked_in_scenes.items()
            for instance_id in instance_ids
        }
        self.cards.restore_state(instances, locked)
        self.think.restore_used_today(snapshot.cards.think_used_today)
        self.scenes.restore_states(
            model.to_scene_state() for model in snapshot.scenes.scene_states.values()
        )

        logger.info("Loaded save %s (day %d)", snapshot.save_id, game_state.current_day)
        self.events.emit(EventType.GAME_LOAD, save_id=snapshot.save_id)

    # Rewind

    def save_state_for_rewind(self) -> None:
        self._require()
        self.time.push_snapshot(self.create_save_data())

    def rewind(self) -> bool:
        """
        Return to the most recent rewind snapshot, spending one charge.

        The charge stays spent after the reload. With no snapshot the
        charge is refunded and False is returned.
        """
        self._require()
        if not self.resources.use_rewind():
            return False

        snapshot = self.time.pop_snapshot()
        if snapshot is None:
            self.resources.add_rewind_charges(1)
            return False

        remaining = self.resources.rewind_charges
        self.load_game(snapshot)
        self.resources.add_rewind_charges(remaining - self.resources.rewind_charges)
        logger.info("Rewound to day %d", self.time.current_day)
        return True
