from __future__ import annotations

import logging
from pathlib import Path

from acca_games.assets.registry import GameAssets, load_game_assets

logger = logging.getLogger(__name__)

_ASSETS: GameAssets | None = None


def init_assets(*, project_root: Path) -> GameAssets:
    """Load the word/shape tables from `<project_root>/assets` once and cache them."""

    global _ASSETS
    if _ASSETS is None:
        _ASSETS = load_game_assets(root=project_root)
        logger.info(
            "Loaded assets: %d word pairs, %d letter shapes, %d grid shapes",
            len(_ASSETS.word_pairs),
            len(_ASSETS.letter_shapes),
            len(_ASSETS.grid_shapes),
        )
    return _ASSETS


def init_assets_for_app() -> GameAssets:
    # acca_games/assets/singleton.py -> repo root
    return init_assets(project_root=Path(__file__).resolve().parents[2])


def use_assets(assets: GameAssets | None) -> None:
    """Replace the cached tables (None clears them). Tests use this to inject fixtures."""

    global _ASSETS
    _ASSETS = assets


def get_assets() -> GameAssets:
    if _ASSETS is None:
        raise RuntimeError("Assets not initialized. Call init_assets() at startup.")
    return _ASSETS
