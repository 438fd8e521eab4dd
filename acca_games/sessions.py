from __future__ import annotations

import logging
from typing import Generic, TypeVar

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from acca_games.api.models import GameSessionState, SessionPhase
from acca_games.errors import GameNotStarted

logger = logging.getLogger(__name__)


class SessionFSM(StateMachine):
    """FSM wrapper around a game session's phase.

    not_started -> in_progress -> complete, with `abandon` for sessions that
    are replaced by a newer one (or ended before any trial was generated).
    """

    not_started = State(
        SessionPhase.not_started.value,
        value=SessionPhase.not_started.value,
        initial=True,
    )
    in_progress = State(SessionPhase.in_progress.value, value=SessionPhase.in_progress.value)
    complete = State(SessionPhase.complete.value, value=SessionPhase.complete.value, final=True)
    abandoned = State(SessionPhase.abandoned.value, value=SessionPhase.abandoned.value, final=True)

    begin = not_started.to(in_progress)
    finish = in_progress.to(complete)
    abandon = in_progress.to(abandoned) | not_started.to(abandoned)

    def __init__(self, game: GameSessionState):
        self.game = game
        super().__init__(start_value=game.phase.value)

    def sync_phase_to_model(self) -> None:
        self.game.phase = SessionPhase(str(self.current_state.value))


def transition(game: GameSessionState, event: str) -> None:
    if game.phase in (SessionPhase.complete, SessionPhase.abandoned):
        raise GameNotStarted()

    fsm = SessionFSM(game)
    try:
        fsm.send(event)
    except TransitionNotAllowed as e:
        raise GameNotStarted(f"cannot {event} a session in phase '{game.phase.value}'") from e
    fsm.sync_phase_to_model()


GameT = TypeVar("GameT", bound=GameSessionState)


class SessionRegistry(Generic[GameT]):
    """Session-keyed store of engine state with a single "current" session.

    Opening a session abandons the previously current one. Ended sessions other
    than the current one are dropped.
    """

    def __init__(self) -> None:
        self._sessions: dict[int, GameT] = {}
        self._current_id: int | None = None

    @property
    def current(self) -> GameT | None:
        if self._current_id is None:
            return None
        return self._sessions.get(self._current_id)

    def get(self, session_id: int) -> GameT | None:
        return self._sessions.get(session_id)

    def open(self, game: GameT) -> GameT | None:
        """Make `game` the current session; returns the session it abandoned, if any."""

        abandoned: GameT | None = None
        previous = self.current
        if previous is not None and previous.phase == SessionPhase.in_progress:
            transition(previous, "abandon")
            abandoned = previous

        transition(game, "begin")

        self._sessions = {sid: g for sid, g in self._sessions.items() if g.phase == SessionPhase.in_progress}
        self._sessions[game.session_id] = game
        self._current_id = game.session_id
        return abandoned

    def require_active(self, session_id: int) -> GameT:
        game = self._sessions.get(session_id)
        if game is None or session_id != self._current_id or game.phase != SessionPhase.in_progress:
            raise GameNotStarted()
        return game

    def record_answer(self, game: GameT, key: str) -> bool:
        """Mark `key` answered. Returns True if this completed the session."""

        game.answered.add(key)
        if game.phase == SessionPhase.in_progress and len(game.answered) >= game.expected_answers:
            transition(game, "finish")
            logger.info("%s session %s complete", game.game_code.value, game.session_id)
            return True
        return False

    def require_current(self, session_id: int) -> GameT:
        """The current session, in progress or already complete. Abandoned sessions raise."""

        game = self._sessions.get(session_id)
        if game is None or session_id != self._current_id or game.phase == SessionPhase.abandoned:
            raise GameNotStarted()
        return game

    def finish(self, session_id: int) -> GameT:
        game = self.require_current(session_id)
        # Answering every trial already completed it.
        if game.phase == SessionPhase.in_progress:
            transition(game, "finish")
        return game
