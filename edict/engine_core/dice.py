"""
Dice Check Engine - Staged d10 skill-check protocol.

A check moves through four phases, each advanced by an explicit call:

    ROLLING      start_check() then roll_initial()
    REROLL       reroll(indices) / skip_reroll()
    GOLDEN_DICE  use_golden_dice(count) / skip_golden_dice()
    RESULT       finalize()

Rules:
- A die showing SUCCESS_THRESHOLD (7) or more is a success
- A die showing EXPLOSION_VALUE (10) draws one extra die, chained;
  the whole check draws at most MAX_EXPLOSION_DICE explosion dice
- Each primary die can be rerolled once, and only if it failed
- Golden dice are guaranteed successes added without rolling

Automated settlement drives the same machine with the fixed sequence
start_check -> roll_initial -> finalize (see run_automatic).
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Sequence, TYPE_CHECKING
import logging

from .cards import Attribute, CardInstance
from .errors import InvalidAmount, InvalidPhase
from .events import EventBus, EventType
from .random_engine import RandomEngine
from .rules import EXPLOSION_VALUE, MAX_DICE_POOL, MAX_EXPLOSION_DICE, SUCCESS_THRESHOLD

if TYPE_CHECKING:
    from .equipment import EquipmentEngine

logger = logging.getLogger(__name__)


class DicePhase(Enum):
    ROLLING = "rolling"
    REROLL = "reroll"
    GOLDEN_DICE = "golden_dice"
    RESULT = "result"


class CheckResult(Enum):
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILURE = "failure"
    CRITICAL_FAILURE = "critical_failure"


class CalcMode(Enum):
    """How invested cards' attribute values become one dice pool."""
    MAX = "max"
    MIN = "min"
    SUM = "sum"
    AVG = "avg"
    FIRST = "first"
    SPECIFIC = "specific"


@dataclass
class DiceRoll:
    value: int
    is_success: bool
    is_explosion: bool
    rerolled: bool = False
    original_value: int | None = None

    @classmethod
    def from_value(cls, value: int) -> DiceRoll:
        return cls(
            value=value,
            is_success=value >= SUCCESS_THRESHOLD,
            is_explosion=value == EXPLOSION_VALUE,
        )


@dataclass
class DiceCheckState:
    """Ephemeral state of one check."""
    dice_pool: int
    target: int
    reroll_available: int = 0
    rolls: list[DiceRoll] = field(default_factory=list)
    explosion_rolls: list[DiceRoll] = field(default_factory=list)
    reroll_used: int = 0
    golden_dice_used: int = 0
    success_count: int = 0
    phase: DicePhase = DicePhase.ROLLING
    result: CheckResult | None = None

    def clone(self) -> DiceCheckState:
        return replace(
            self,
            rolls=[replace(roll) for roll in self.rolls],
            explosion_rolls=[replace(roll) for roll in self.explosion_rolls],
        )


# =============================================================================
# Pure helpers
# =============================================================================

def determine_check_result(success_count: int, target: int) -> CheckResult:
    """
    Outcome for a success count against a target.

    The partial-success band (within 2 of the target) only exists for
    targets above 2.
    """
    if success_count >= target:
        return CheckResult.SUCCESS
    if success_count == 0:
        return CheckResult.CRITICAL_FAILURE
    if target > 2 and success_count >= target - 2:
        return CheckResult.PARTIAL_SUCCESS
    return CheckResult.FAILURE


def calculate_dice_pool(
    cards: Sequence[CardInstance],
    attribute: Attribute,
    calc_mode: CalcMode,
    slot_index: int | None = None,
) -> int:
    """
    Aggregate the cards' raw attribute values into a pool size.

    Returns 0 for no cards; the result is clamped to [0, MAX_DICE_POOL].
    SPECIFIC with a missing or out-of-range index uses the first card.
    """
    if not cards:
        return 0

    values = [card.get_attribute(attribute) for card in cards]
    if calc_mode == CalcMode.MAX:
        base = max(values)
    elif calc_mode == CalcMode.MIN:
        base = min(values)
    elif calc_mode == CalcMode.SUM:
        base = sum(values)
    elif calc_mode == CalcMode.AVG:
        base = sum(values) // len(values)
    elif calc_mode == CalcMode.SPECIFIC and slot_index is not None and 0 <= slot_index < len(values):
        base = values[slot_index]
    else:
        base = values[0]

    return max(0, min(base, MAX_DICE_POOL))


def calculate_total_reroll(
    cards: Iterable[CardInstance],
    equipment_engine: EquipmentEngine | None = None,
) -> int:
    """Base reroll of every card plus reroll granted by equipment."""
    total = 0
    for card in cards:
        if equipment_engine is not None and card.is_character():
            total += equipment_engine.get_total_reroll(card.instance_id)
        else:
            total += card.get_reroll()
    return total


# =============================================================================
# Engine
# =============================================================================

class DiceCheckEngine:
    """
    State machine for one dice check at a time.

    Calling a phase operation in the wrong phase raises InvalidPhase.
    """

    def __init__(self, random: RandomEngine, events: EventBus | None = None):
        self.random = random
        self.events = events or EventBus()
        self._state: DiceCheckState | None = None

    @property
    def state(self) -> DiceCheckState | None:
        """Copy of the current check state."""
        return self._state.clone() if self._state else None

    def _require(self, operation: str, *phases: DicePhase) -> DiceCheckState:
        if self._state is None:
            raise InvalidPhase(operation, None)
        if self._state.phase not in phases:
            raise InvalidPhase(operation, self._state.phase.value)
        return self._state

    def _roll(self) -> DiceRoll:
        return DiceRoll.from_value(self.random.roll_die())

    def _explode(self, triggers: int) -> list[DiceRoll]:
        """Draw chained explosion dice, one generation at a time, within the cap."""
        state = self._state
        drawn: list[DiceRoll] = []
        pending = triggers
        while pending > 0:
            count = min(pending, MAX_EXPLOSION_DICE - len(state.explosion_rolls))
            if count <= 0:
                logger.debug("Explosion cap of %d dice reached", MAX_EXPLOSION_DICE)
                break
            generation = [self._roll() for _ in range(count)]
            state.explosion_rolls.extend(generation)
            drawn.extend(generation)
            pending = sum(1 for roll in generation if roll.is_explosion)

        if drawn:
            self.events.emit(
                EventType.DICE_EXPLOSION,
                count=len(drawn),
                values=[roll.value for roll in drawn],
            )
        return drawn

    def _recount(self) -> None:
        state = self._state
        state.success_count = (
            sum(1 for roll in state.rolls if roll.is_success)
            + sum(1 for roll in state.explosion_rolls if roll.is_success)
            + state.golden_dice_used
        )

    # Phase operations

    def start_check(self, dice_pool: int, target: int, reroll_available: int = 0) -> DiceCheckState:
        """Begin a new check, discarding any previous one."""
        self._state = DiceCheckState(
            dice_pool=max(0, min(dice_pool, MAX_DICE_POOL)),
            target=target,
            reroll_available=max(0, reroll_available),
        )
        self.events.emit(
            EventType.DICE_ROLL_START,
            dice_pool=self._state.dice_pool,
            target=target,
            reroll_available=self._state.reroll_available,
        )
        return self._state.clone()

    def roll_initial(self) -> list[DiceRoll]:
        state = self._require("roll", DicePhase.ROLLING)

        state.rolls = [self._roll() for _ in range(state.dice_pool)]
        self.events.emit(EventType.DICE_ROLL_RESULT, values=[roll.value for roll in state.rolls])

        self._explode(sum(1 for roll in state.rolls if roll.is_explosion))
        self._recount()

        state.phase = DicePhase.REROLL if state.reroll_available > 0 else DicePhase.GOLDEN_DICE
        logger.debug(
            "Rolled %d dice: %d successes, %d explosion dice",
            state.dice_pool,
            state.success_count,
            len(state.explosion_rolls),
        )
        return [replace(roll) for roll in state.rolls]

    def reroll(self, indices: Iterable[int]) -> list[DiceRoll]:
        """
        Reroll failed primary dice by index.

        Successes, dice already rerolled, duplicates and out-of-range
        indices are ignored. Returns the dice actually rerolled.
        """
        state = self._require("reroll", DicePhase.REROLL)

        eligible: list[int] = []
        for index in indices:
            if index in eligible or not 0 <= index < len(state.rolls):
                continue
            roll = state.rolls[index]
            if not roll.is_success and not roll.rerolled:
                eligible.append(index)
        eligible = eligible[: self.remaining_rerolls()]

        rerolled: list[DiceRoll] = []
        for index in eligible:
            new_roll = self._roll()
            new_roll.rerolled = True
            new_roll.original_value = state.rolls[index].value
            state.rolls[index] = new_roll
            rerolled.append(new_roll)
        state.reroll_used += len(rerolled)

        if rerolled:
            self.events.emit(
                EventType.DICE_REROLL,
                indices=eligible,
                values=[roll.value for roll in rerolled],
            )
            self._explode(sum(1 for roll in rerolled if roll.is_explosion))
        self._recount()

        if self.remaining_rerolls() == 0 or not self.get_failed_roll_indices():
            state.phase = DicePhase.GOLDEN_DICE
        return [replace(roll) for roll in rerolled]

    def skip_reroll(self) -> None:
        state = self._require("skip reroll", DicePhase.REROLL, DicePhase.GOLDEN_DICE)
        state.phase = DicePhase.GOLDEN_DICE

    def use_golden_dice(self, count: int) -> int:
        """Add guaranteed successes. Returns the new success count."""
        state = self._require("use golden dice", DicePhase.GOLDEN_DICE)
        if count < 0:
            raise InvalidAmount(count)

        state.golden_dice_used += count
        state.success_count += count
        if count:
            self.events.emit(EventType.DICE_GOLDEN_DICE, count=count, total=state.golden_dice_used)
        return state.success_count

    def skip_golden_dice(self) -> CheckResult:
        self._require("skip golden dice", DicePhase.REROLL, DicePhase.GOLDEN_DICE)
        return self.finalize()

    def finalize(self) -> CheckResult:
        state = self._require("finalize", DicePhase.REROLL, DicePhase.GOLDEN_DICE)
        state.phase = DicePhase.RESULT
        state.result = determine_check_result(state.success_count, state.target)
        self.events.emit(
            EventType.DICE_COMPLETE,
            result=state.result.value,
            success_count=state.success_count,
            target=state.target,
        )
        logger.debug("Check finished: %d/%d -> %s", state.success_count, state.target, state.result.value)
        return state.result

    def run_automatic(self, dice_pool: int, target: int, reroll_available: int = 0) -> DiceCheckState:
        """Run a whole check without player input and return its final state."""
        self.start_check(dice_pool, target, reroll_available)
        self.roll_initial()
        self.finalize()
        return self._state.clone()

    # Queries

    def get_all_rolls(self) -> list[DiceRoll]:
        """Primary rolls followed by explosion rolls."""
        if self._state is None:
            return []
        return [replace(roll) for roll in self._state.rolls + self._state.explosion_rolls]

    def get_failed_roll_indices(self) -> list[int]:
        """Indices of primary dice that may still be rerolled."""
        if self._state is None:
            return []
        return [
            index for index, roll in enumerate(self._state.rolls)
            if not roll.is_success and not roll.rerolled
        ]

    def remaining_rerolls(self) -> int:
        if self._state is None:
            return 0
        return self._state.reroll_available - self._state.reroll_used

    def can_reroll(self) -> bool:
        return (
            self._state is not None
            and self._state.phase == DicePhase.REROLL
            and self.remaining_rerolls() > 0
            and bool(self.get_failed_roll_indices())
        )

    def reset(self) -> None:
        """Discard the current check."""
        self._state = None
