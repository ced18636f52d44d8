"""
Day Orchestrator - Drives one day of play.

    DAWN        reset think charges, tick every active scene
    ACTION      the player places cards, participates, thinks
    SETTLEMENT  settle expired scenes, penalize absent ones
    (end_day)   advance the clock

GAME_OVER is entered once check_game_end() reports an ending.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging

from ..engine_core.card_engine import CardEngine
from ..engine_core.effect_resolver import EffectReport
from ..engine_core.events import EventBus, EventType
from ..engine_core.scene_engine import SceneEngine
from ..engine_core.scenes import SceneStatus
from ..engine_core.settlement import SettlementEngine, SettlementResult
from .think import ThinkEngine
from .time_engine import TimeEngine

logger = logging.getLogger(__name__)


class DayPhase(Enum):
    DAWN = "dawn"
    ACTION = "action"
    SETTLEMENT = "settlement"
    GAME_OVER = "game_over"


class EndingType(Enum):
    SURVIVAL_VICTORY = "survival_victory"
    EXECUTION_FAILURE = "execution_failure"
    DEATH_FAILURE = "death_failure"


@dataclass
class GameEndState:
    is_victory: bool
    ending_type: EndingType
    message: str


@dataclass
class DaySettlement:
    """Everything resolved during one settlement phase."""
    day: int
    settlements: list[SettlementResult] = field(default_factory=list)
    absences: dict[str, EffectReport] = field(default_factory=dict)


class DayOrchestrator:
    def __init__(
        self,
        time_engine: TimeEngine,
        card_engine: CardEngine,
        scene_engine: SceneEngine,
        think_engine: ThinkEngine,
        settlement_engine: SettlementEngine,
        events: EventBus | None = None,
    ):
        self.time_engine = time_engine
        self.card_engine = card_engine
        self.scene_engine = scene_engine
        self.think_engine = think_engine
        self.settlement_engine = settlement_engine
        self.events = events or EventBus()
        self.phase = DayPhase.DAWN

    def start_dawn(self) -> None:
        self.phase = DayPhase.DAWN
        day = self.time_engine.current_day
        self.events.emit(EventType.DAY_DAWN, day=day, countdown=self.time_engine.execution_countdown)

        self.think_engine.reset_daily()
        self._tick_scenes()

        self.phase = DayPhase.ACTION
        self.events.emit(EventType.DAY_ACTION, day=day)

    def _tick_scenes(self) -> None:
        for state in self.scene_engine.get_active_scenes():
            if state.status == SceneStatus.PARTICIPATED:
                self.scene_engine.decrement_remaining_turns(state.scene_id)
            else:
                self.scene_engine.decrement_availability(state.scene_id)

    def start_settlement(self) -> DaySettlement:
        self.phase = DayPhase.SETTLEMENT
        day = self.time_engine.current_day
        self.events.emit(EventType.DAY_SETTLEMENT, day=day)

        outcome = DaySettlement(day=day)
        for scene_id in self.scene_engine.get_expired_scenes():
            result = self.settlement_engine.settle_scene(scene_id)
            if result is not None:
                outcome.settlements.append(result)

        for scene_id in self.scene_engine.get_absent_scenes():
            report = self.settlement_engine.apply_absence_penalty(scene_id)
            if report is not None:
                outcome.absences[scene_id] = report

        logger.info(
            "Day %d settlement: %d settled, %d absent",
            day,
            len(outcome.settlements),
            len(outcome.absences),
        )
        return outcome

    def end_day(self) -> None:
        self.events.emit(EventType.DAY_END, day=self.time_engine.current_day)
        self.time_engine.advance_day()

    def check_game_end(self) -> GameEndState | None:
        """
        Ending for the current state, or None while the game goes on.

        On execution day the game ends in victory if a Sultan card is
        held; otherwise losing the protagonist ends it early.
        """
        ending: GameEndState | None = None
        if self.time_engine.is_execution_day():
            if self.card_engine.get_sultan_cards():
                ending = GameEndState(
                    is_victory=True,
                    ending_type=EndingType.SURVIVAL_VICTORY,
                    message="You survived until the execution day with the Sultan card!",
                )
            else:
                ending = GameEndState(
                    is_victory=False,
                    ending_type=EndingType.EXECUTION_FAILURE,
                    message="The execution day has arrived. You failed to save the Sultan.",
                )
        elif self.card_engine.get_protagonist() is None:
            ending = GameEndState(
                is_victory=False,
                ending_type=EndingType.DEATH_FAILURE,
                message="Your protagonist has died.",
            )

        if ending is not None:
            self.phase = DayPhase.GAME_OVER
        return ending
