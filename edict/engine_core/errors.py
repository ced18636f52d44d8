"""
Engine errors - Structural rule violations.

Only states a correct caller should never produce are raised.
Routine outcomes (unknown id, already locked, nothing to reroll)
are reported through return values instead.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for structural rule violations."""


class CapacityExceeded(EngineError):
    """The hand already holds the maximum number of cards."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Hand size limit ({limit}) reached")


class ProtectedCard(EngineError):
    """Attempted to remove a protagonist card."""

    def __init__(self, instance_id: str):
        self.instance_id = instance_id
        super().__init__(f"Cannot remove protagonist card {instance_id}")


class LockedCard(EngineError):
    """Attempted to mutate a card that is locked in a scene."""

    def __init__(self, instance_id: str, action: str = "modify"):
        self.instance_id = instance_id
        super().__init__(f"Cannot {action} locked card {instance_id}")


class NotCharacter(EngineError):
    """Equip target is not a character card."""

    def __init__(self, instance_id: str):
        self.instance_id = instance_id
        super().__init__(f"Card {instance_id} is not a character")


class NotEquipment(EngineError):
    """Equipped item is not an equipment card."""

    def __init__(self, instance_id: str):
        self.instance_id = instance_id
        super().__init__(f"Card {instance_id} is not equipment")


class NoSlotsAvailable(EngineError):
    """Character has no free equipment slot."""

    def __init__(self, instance_id: str):
        self.instance_id = instance_id
        super().__init__(f"Character {instance_id} has no available equipment slots")


class SlotTypeMismatch(EngineError):
    """Card type does not fit the scene slot type."""

    def __init__(self, slot_type: str, card_type: str):
        self.slot_type = slot_type
        self.card_type = card_type
        super().__init__(f"A {card_type} card cannot be placed in a {slot_type} slot")


class InvalidOption(EngineError):
    """Choice settlement option index out of range."""

    def __init__(self, index: int, option_count: int):
        self.index = index
        self.option_count = option_count
        super().__init__(f"Invalid option index {index} (scene has {option_count} options)")


class OptionUnavailable(EngineError):
    """Choice option whose conditions do not hold."""

    def __init__(self, index: int, label: str):
        self.index = index
        self.label = label
        super().__init__(f"Option {index} ({label!r}) is not available")


class InvalidPhase(EngineError):
    """Dice check operation called outside its valid phase."""

    def __init__(self, operation: str, phase: str | None):
        self.operation = operation
        self.phase = phase
        if phase is None:
            super().__init__(f"Cannot {operation}: no active dice check")
        else:
            super().__init__(f"Cannot {operation} during phase '{phase}'")


class InvalidAmount(EngineError, ValueError):
    """Negative amount passed where only non-negative amounts make sense."""

    def __init__(self, amount: int):
        self.amount = amount
        super().__init__(f"Amount must be non-negative, got {amount}")


class GameNotInitialized(EngineError):
    """Session used before start_new_game or load_game."""

    def __init__(self):
        super().__init__("Game not initialized")
