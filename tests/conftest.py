from __future__ import annotations

import os
import random
from collections.abc import Generator
from pathlib import Path

import pytest
from pydantic import BaseModel

from acca_games.api.models import GameCode, GameResult


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs (PyCharm/CLI).

    In CI, we *don't* auto-load `.env` by default so a developer's REDIS_URL or
    seed can't leak into the run. Opt-in with: ACCA_GAMES_LOAD_DOTENV_FOR_TESTS=1
    """

    if os.environ.get("CI") and os.environ.get("ACCA_GAMES_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


@pytest.fixture(scope="session", autouse=True)
def _init_assets_from_test_fixtures() -> None:
    """Initialize assets from `tests/assets` and forbid the built-in fallback.

    This keeps tests hermetic and prevents coupling to the repo's real game assets.
    """

    os.environ["ACCA_GAMES_STRICT_ASSETS"] = "1"

    from acca_games.assets.singleton import init_assets, use_assets

    use_assets(None)

    # Point the asset loader at a fake project root: tests/ contains an assets/ dir.
    test_root = Path(__file__).resolve().parent
    init_assets(project_root=test_root)


class RecordingSink:
    """In-memory `ResultSink` for engine tests that don't need Redis."""

    def __init__(self) -> None:
        self.sessions: list[tuple[GameCode, BaseModel]] = []
        self.results: list[GameResult] = []

    def create_session(self, *, game_code: GameCode, settings: BaseModel) -> int:
        self.sessions.append((game_code, settings))
        return len(self.sessions)

    def save_result(self, *, game_code: GameCode, result: GameResult) -> None:
        self.results.append(result)


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture()
def redis_client():
    import fakeredis

    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def client_and_redis(redis_client):
    """FastAPI TestClient wired to fresh engines over fakeredis."""

    from fastapi.testclient import TestClient

    from acca_games.api.deps import build_services, get_services
    from acca_games.assets.singleton import get_assets
    from acca_games.main import app
    from acca_games.store import RedisResultStore

    services = build_services(store=RedisResultStore(redis_client), assets=get_assets(), seed="tests")

    def _override():
        return services

    app.dependency_overrides[get_services] = _override
    with TestClient(app) as c:
        yield c, redis_client
    app.dependency_overrides.clear()


@pytest.fixture()
def client(client_and_redis) -> Generator:
    c, _ = client_and_redis
    yield c
