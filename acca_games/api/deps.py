from __future__ import annotations

import logging
import os
import random
from dataclasses import dataclass

from acca_games.api.models import GameCode
from acca_games.assets.registry import GameAssets
from acca_games.assets.singleton import get_assets
from acca_games.games.cat_chaser import CatChaserEngine
from acca_games.games.count_comparison import CountComparisonEngine
from acca_games.games.nback import NBackEngine
from acca_games.games.number_pressing import NumberPressingEngine
from acca_games.games.rps import RpsEngine
from acca_games.games.shape_rotation import ShapeRotationEngine
from acca_games.infra.redis_client import create_redis
from acca_games.store import RedisResultStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GameServices:
    """One engine per game, all writing through the same store."""

    store: RedisResultStore
    n_back: NBackEngine
    shape_rotation: ShapeRotationEngine
    count_comparison: CountComparisonEngine
    number_pressing: NumberPressingEngine
    cat_chaser: CatChaserEngine
    rps: RpsEngine


def _engine_rng(seed: str | None, game_code: GameCode) -> random.Random | None:
    # Same process seed, different stream per game.
    if seed is None:
        return None
    return random.Random(f"{seed}:{game_code.value}")


def build_services(*, store: RedisResultStore, assets: GameAssets, seed: str | None = None) -> GameServices:
    return GameServices(
        store=store,
        n_back=NBackEngine(store=store, rng=_engine_rng(seed, GameCode.N_BACK)),
        shape_rotation=ShapeRotationEngine(
            store=store, assets=assets, rng=_engine_rng(seed, GameCode.SHAPE_ROTATION)
        ),
        count_comparison=CountComparisonEngine(
            store=store, assets=assets, rng=_engine_rng(seed, GameCode.COUNT_COMPARISON)
        ),
        number_pressing=NumberPressingEngine(store=store, rng=_engine_rng(seed, GameCode.NUMBER_PRESSING)),
        cat_chaser=CatChaserEngine(store=store, rng=_engine_rng(seed, GameCode.CAT_CHASER)),
        rps=RpsEngine(store=store, rng=_engine_rng(seed, GameCode.RPS)),
    )


_SERVICES: GameServices | None = None


def get_services() -> GameServices:
    """Process-wide engines. Session state lives in memory, so every request shares them."""

    global _SERVICES
    if _SERVICES is None:
        seed = os.environ.get("ACCA_GAMES_SEED") or None
        if seed is not None:
            logger.info("Seeding game engines from ACCA_GAMES_SEED")
        _SERVICES = build_services(store=RedisResultStore(create_redis()), assets=get_assets(), seed=seed)
    return _SERVICES
