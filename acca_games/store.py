from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol, cast

import redis
from pydantic import BaseModel

from acca_games.api.models import RESULT_MODELS, GameCode, GameResult, GameSessionRecord
from acca_games.errors import PersistenceFailure


SESSION_SEQ_KEY = "acca:sessions:seq"
SESSION_KEY_PREFIX = "acca:session:"  # + {session_id}
SESSION_INDEX_KEY_PREFIX = "acca:sessions:"  # + {game_code}, sorted set scored by id


class ResultSink(Protocol):
    """What the game engines need from persistence."""

    def create_session(self, *, game_code: GameCode, settings: BaseModel) -> int: ...

    def save_result(self, *, game_code: GameCode, result: GameResult) -> None: ...


@dataclass(frozen=True, slots=True)
class ResultStream:
    session_id: int

    @property
    def key(self) -> str:
        return f"acca:results:{self.session_id}"


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _session_key(session_id: int) -> str:
    return f"{SESSION_KEY_PREFIX}{session_id}"


def _index_key(game_code: GameCode) -> str:
    return f"{SESSION_INDEX_KEY_PREFIX}{game_code.value}"


class RedisResultStore:
    """Sessions as JSON documents, results appended to one Redis Stream per session.

    Every redis error is re-raised as `PersistenceFailure`.
    """

    def __init__(self, r: redis.Redis):
        self.r = r

    def create_session(self, *, game_code: GameCode, settings: BaseModel) -> int:
        try:
            session_id = int(cast(int, self.r.incr(SESSION_SEQ_KEY)))
            record = GameSessionRecord(
                id=session_id,
                game_code=game_code,
                play_datetime=_now(),
                settings=settings.model_dump(mode="json"),
            )
            pipe = self.r.pipeline()
            pipe.set(_session_key(session_id), record.model_dump_json())
            pipe.zadd(_index_key(game_code), {str(session_id): session_id})
            pipe.execute()
        except redis.RedisError as e:
            raise PersistenceFailure(f"failed to create {game_code.value} session: {e}") from e
        return session_id

    def save_result(self, *, game_code: GameCode, result: GameResult) -> None:
        fields = {
            "game_code": game_code.value,
            "model": type(result).__name__,
            "json": result.model_dump_json(),
        }
        try:
            self.r.xadd(ResultStream(result.session_id).key, fields)
        except redis.RedisError as e:
            raise PersistenceFailure(
                f"failed to save {game_code.value} result for session {result.session_id}: {e}"
            ) from e

    def get_session(self, session_id: int) -> GameSessionRecord | None:
        try:
            raw = self.r.get(_session_key(session_id))
        except redis.RedisError as e:
            raise PersistenceFailure(f"failed to load session {session_id}: {e}") from e
        if not raw:
            return None
        return GameSessionRecord.model_validate_json(cast(str, raw))

    def list_sessions(self, *, game_code: GameCode, page: int = 1, limit: int = 10) -> tuple[list[GameSessionRecord], int]:
        """Newest first. `page` is 1-based."""

        if page < 1 or limit < 1:
            raise ValueError("page and limit must be >= 1")

        start = (page - 1) * limit
        try:
            total = int(cast(int, self.r.zcard(_index_key(game_code))))
            ids = cast(list[str], self.r.zrevrange(_index_key(game_code), start, start + limit - 1))
            raws = cast(list[str | None], self.r.mget([_session_key(int(sid)) for sid in ids])) if ids else []
        except redis.RedisError as e:
            raise PersistenceFailure(f"failed to list {game_code.value} sessions: {e}") from e

        sessions = [GameSessionRecord.model_validate_json(raw) for raw in raws if raw]
        return sessions, total

    def get_results(self, session_id: int) -> list[GameResult]:
        try:
            entries = self.r.xrange(ResultStream(session_id).key)
        except redis.RedisError as e:
            raise PersistenceFailure(f"failed to load results for session {session_id}: {e}") from e

        out: list[GameResult] = []
        for _, fields in cast(list[tuple[str, dict[str, str]]], entries):
            model = RESULT_MODELS.get(fields.get("model", ""))
            if model is None:
                continue
            out.append(model.model_validate_json(fields["json"]))
        return out

    def delete_session(self, session_id: int) -> bool:
        record = self.get_session(session_id)
        if record is None:
            return False
        try:
            pipe = self.r.pipeline()
            pipe.delete(_session_key(session_id), ResultStream(session_id).key)
            pipe.zrem(_index_key(record.game_code), str(session_id))
            pipe.execute()
        except redis.RedisError as e:
            raise PersistenceFailure(f"failed to delete session {session_id}: {e}") from e
        return True
