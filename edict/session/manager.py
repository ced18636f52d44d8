"""
Session Manager - Keeps several independent game sessions.

Sessions are in-memory only. Each one has its own EventBus and
RandomEngine, so sessions never influence each other's rolls.
Persisting a session means writing its SaveSnapshot somewhere; that
is up to the host.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable
import time
import uuid

from ..engine_core.cards import CardTemplate
from ..engine_core.scenes import SceneTemplate
from .game import GameSession


class SessionState(Enum):
    """State of a managed session."""
    ACTIVE = "active"
    GAME_OVER = "game_over"
    ABANDONED = "abandoned"


@dataclass
class ManagedSession:
    session_id: str
    game: GameSession
    created_at: float
    state: SessionState = SessionState.ACTIVE
    metadata: dict[str, str] = field(default_factory=dict)

    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions with shared content
    - Track active sessions
    - Clean up finished sessions
    """

    def __init__(
        self,
        card_templates: Iterable[CardTemplate] = (),
        scene_templates: Iterable[SceneTemplate] = (),
        setup: Callable[[GameSession], None] | None = None,
    ):
        self._sessions: dict[str, ManagedSession] = {}
        self._card_templates = list(card_templates)
        self._scene_templates = list(scene_templates)
        self._setup = setup

    def create_session(self, difficulty: str | None = None, seed: str | None = None) -> ManagedSession:
        """
        Create and start a new game session.

        Content given to the manager is registered first; the optional
        setup hook then runs against the started game (e.g. dealing a
        starting hand).
        """
        game = GameSession()
        game.register_card_templates(self._card_templates)
        game.register_scenes(self._scene_templates)
        game.start_new_game(difficulty, seed)
        if self._setup is not None:
            self._setup(game)
        game.refresh_available_scenes()

        session = ManagedSession(
            session_id=str(uuid.uuid4()),
            game=game,
            created_at=time.time(),
            metadata={"difficulty": game.difficulty, "seed": game.seed or ""},
        )
        self._sessions[session.session_id] = session
        return session

    def get_session(self, session_id: str) -> ManagedSession | None:
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """Remove a session. Returns False if it does not exist."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.state = SessionState.GAME_OVER if reason == "completed" else SessionState.ABANDONED
        return True

    def list_active_sessions(self) -> list[str]:
        return [sid for sid, session in self._sessions.items() if session.is_active()]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> list[str]:
        """End sessions older than max_age_seconds. Returns their ids."""
        now = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if now - session.created_at > max_age_seconds
        ]
        for session_id in stale:
            self.end_session(session_id, reason="stale")
        return stale
