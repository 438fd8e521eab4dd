from __future__ import annotations

import logging
import random
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import ClassVar, Generic

from pydantic import BaseModel

from acca_games.api.models import GameCode, GameResult
from acca_games.errors import PersistenceFailure
from acca_games.sessions import GameT, SessionRegistry
from acca_games.store import ResultSink
from acca_games.validation import SubmissionContext, ValidatorPipeline

logger = logging.getLogger(__name__)


def new_engine_rng(seed: int | str | None = None) -> random.Random:
    if seed is None:
        seed = random.SystemRandom().randint(1, 2**31 - 1)
    return random.Random(seed)


def now() -> datetime:
    return datetime.now(tz=UTC)


class GameEngine(Generic[GameT]):
    """Shared orchestration for one game: session bookkeeping and persistence.

    Each engine owns a process-lifetime RNG. Every session draws its own seed
    from it so a session's problems can be regenerated from the stored seed.
    """

    game_code: ClassVar[GameCode]

    def __init__(self, *, store: ResultSink, rng: random.Random | None = None) -> None:
        self.store = store
        self._rng = rng if rng is not None else new_engine_rng()
        self.sessions: SessionRegistry[GameT] = SessionRegistry()

    def _session_seed(self) -> tuple[int, random.Random]:
        seed = self._rng.randint(1, 2**31 - 1)
        return seed, random.Random(seed)

    def _create_session(self, settings: BaseModel) -> int:
        try:
            return self.store.create_session(game_code=self.game_code, settings=settings)
        except PersistenceFailure:
            logger.exception("Failed to create %s session", self.game_code.value)
            raise

    def _open(self, game: GameT) -> GameT:
        abandoned = self.sessions.open(game)
        if abandoned is not None:
            logger.info("Abandoned %s session %s", self.game_code.value, abandoned.session_id)
        logger.info("Started %s session %s (seed=%s)", self.game_code.value, game.session_id, game.seed)
        return game

    def _validate(
        self,
        pipeline: ValidatorPipeline,
        *,
        game: GameT,
        action: str,
        trial_count: int,
        submission: Mapping[str, object],
    ) -> None:
        ctx = SubmissionContext(
            game_code=self.game_code.value,
            session_id=game.session_id,
            action=action,
            trial_count=trial_count,
        )
        pipeline.validate(ctx=ctx, submission=submission)

    def _persist(self, result: GameResult) -> None:
        try:
            self.store.save_result(game_code=self.game_code, result=result)
        except PersistenceFailure:
            logger.exception("Failed to save %s result for session %s", self.game_code.value, result.session_id)
            raise
        logger.debug("Saved %s result for session %s", self.game_code.value, result.session_id)

    def _commit(self, game: GameT, key: str, result: GameResult) -> None:
        """Persist, then mark the trial answered. A failed save leaves the trial open."""

        self._persist(result)
        self.sessions.record_answer(game, key)

    def require_session(self, session_id: int) -> GameT:
        return self.sessions.require_active(session_id)

    def get_session(self, session_id: int) -> GameT | None:
        return self.sessions.get(session_id)

    def end_game(self, session_id: int) -> GameT:
        game = self.sessions.finish(session_id)
        logger.info("Ended %s session %s", self.game_code.value, session_id)
        return game
