from __future__ import annotations

from pathlib import Path

import pytest

from acca_games.assets.registry import (
    AssetLoadError,
    _fallback_game_assets,
    load_game_assets,
    load_grid_shapes_csv,
    load_word_pairs_csv,
)


def test_assets_load_and_lookup() -> None:
    root = Path(__file__).resolve().parent
    assets = load_game_assets(root=root)

    assert len(assets.word_pairs) == 3
    assert assets.word_pairs[0].left == "apple"
    assert [p.right for p in assets.word_pairs] == ["grape", "stone", "flame"]
    letters = {s.key: s.path for s in assets.letter_shapes}
    assert set(letters) == {"F", "L"}
    assert letters["L"].startswith("M 40.2 71.4")
    assert {g.id: g.grid for g in assets.grid_shapes}[10] == "0110/0110/0110/1110"


def test_repo_assets_are_complete() -> None:
    root = Path(__file__).resolve().parents[1]
    assets = load_game_assets(root=root)

    assert {s.key for s in assets.letter_shapes} == {"F", "G", "J", "L", "P", "Q", "R"}
    assert sorted(g.id for g in assets.grid_shapes) == list(range(10, 18))
    assert len(assets.word_pairs) >= 20


def test_missing_assets_fall_back_unless_strict(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ACCA_GAMES_STRICT_ASSETS", "0")
    assert load_game_assets(root=tmp_path) == _fallback_game_assets()

    monkeypatch.setenv("ACCA_GAMES_STRICT_ASSETS", "1")
    with pytest.raises(AssetLoadError):
        load_game_assets(root=tmp_path)


def test_word_pair_ids_are_derived_and_unique(tmp_path: Path) -> None:
    p = tmp_path / "word_pairs.csv"
    p.write_text("id,left,right\n,Red Apple,grape\n", encoding="utf-8")
    assert load_word_pairs_csv(p)[0].id == "red-apple__grape"

    p.write_text("id,left,right\nx,a,b\nx,c,d\n", encoding="utf-8")
    with pytest.raises(AssetLoadError):
        load_word_pairs_csv(p)

    p.write_text("id,left,right\nx,same,SAME\n", encoding="utf-8")
    with pytest.raises(AssetLoadError):
        load_word_pairs_csv(p)


def test_malformed_grids_are_rejected(tmp_path: Path) -> None:
    p = tmp_path / "grid_shapes.csv"
    p.write_text("id,grid\n1,0110/0110/0110\n", encoding="utf-8")
    with pytest.raises(AssetLoadError):
        load_grid_shapes_csv(p)

    p.write_text("id,grid\n1,0000/0000/0000/0000\n", encoding="utf-8")
    with pytest.raises(AssetLoadError):
        load_grid_shapes_csv(p)

    p.write_text("wrong,header\n1,1000/0000/0000/0000\n", encoding="utf-8")
    with pytest.raises(AssetLoadError):
        load_grid_shapes_csv(p)


def test_partial_assets_fall_back_as_a_whole(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ACCA_GAMES_STRICT_ASSETS", "0")
    assets_dir = tmp_path / "assets"
    assets_dir.mkdir()
    (assets_dir / "word_pairs.csv").write_text("id,left,right\nx,left,right\n", encoding="utf-8")

    assert load_game_assets(root=tmp_path) == _fallback_game_assets()


def test_csv_with_bom_and_crlf(tmp_path: Path) -> None:
    p = tmp_path / "word_pairs.csv"
    p.write_bytes("\ufeffid,left,right\r\nx,apple,grape\r\n".encode("utf-8"))

    pairs = load_word_pairs_csv(p)
    assert [(w.id, w.left, w.right) for w in pairs] == [("x", "apple", "grape")]
