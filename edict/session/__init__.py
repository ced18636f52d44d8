"""
Session Module - Day cycle, persistence boundary and session management.

A session represents one play-through:
- Built by GameSession around one EventBus and one RandomEngine
- Driven day by day through the DayOrchestrator
- Saved to and restored from a SaveSnapshot
- Rewound from a bounded history of snapshots
"""

from .time_engine import TimeEngine, TimeState
from .think import ThinkEngine, ThinkResult
from .day import DayOrchestrator, DayPhase, DaySettlement, EndingType, GameEndState
from .snapshot import SaveSnapshot, GameStateModel, CardsModel, ScenesModel, CardRecord, SceneStateModel
from .game import GameSession, DayReport
from .manager import SessionManager, ManagedSession, SessionState

__all__ = [
    "TimeEngine",
    "TimeState",
    "ThinkEngine",
    "ThinkResult",
    "DayOrchestrator",
    "DayPhase",
    "DaySettlement",
    "EndingType",
    "GameEndState",
    "SaveSnapshot",
    "GameStateModel",
    "CardsModel",
    "ScenesModel",
    "CardRecord",
    "SceneStateModel",
    "GameSession",
    "DayReport",
    "SessionManager",
    "ManagedSession",
    "SessionState",
]
