from __future__ import annotations

import csv
import os
import re
from dataclasses import dataclass
from pathlib import Path

_GRID_RE = re.compile(r"^[01]{4}(/[01]{4}){3}$")


def _slug_id(s: str) -> str:
    s = s.strip().casefold()
    s = re.sub(r"[^a-z0-9]+", "-", s)
    return s.strip("-")


@dataclass(frozen=True, slots=True)
class WordPair:
    id: str
    left: str
    right: str


@dataclass(frozen=True, slots=True)
class LetterShape:
    """A canonical letter outline as SVG path data."""

    key: str
    path: str


@dataclass(frozen=True, slots=True)
class GridShape:
    """A 4x4 grid problem, rows separated by '/'."""

    id: int
    grid: str


@dataclass(frozen=True, slots=True)
class GameAssets:
    word_pairs: tuple[WordPair, ...]
    letter_shapes: tuple[LetterShape, ...]
    grid_shapes: tuple[GridShape, ...]


class AssetLoadError(RuntimeError):
    pass


def _read_csv_rows(path: Path) -> list[list[str]]:
    try:
        with path.open(encoding="utf-8-sig", newline="") as f:
            raw = f.read()
    except FileNotFoundError as e:
        raise AssetLoadError(f"Asset file not found: {path}") from e

    reader = csv.reader(raw.splitlines())
    rows = [[c.strip() for c in row if c is not None] for row in reader]
    return [row for row in rows if any(cell.strip() for cell in row)]


def _body(path: Path, expected_header: list[str]) -> list[list[str]]:
    rows = _read_csv_rows(path)
    if not rows:
        raise AssetLoadError(f"Empty CSV: {path}")

    header = [c.casefold() for c in rows[0]]
    if header[: len(expected_header)] != expected_header:
        raise AssetLoadError(f"Unexpected header in {path}: {rows[0]}")
    return rows[1:]


def load_word_pairs_csv(path: Path) -> tuple[WordPair, ...]:
    out: list[WordPair] = []
    seen: set[str] = set()
    for row in _body(path, ["id", "left", "right"]):
        if len(row) < 3:
            continue
        rid, left, right = row[0], row[1], row[2]
        if not left or not right:
            continue
        if left.casefold() == right.casefold():
            raise AssetLoadError(f"Word pair has identical words: {left!r}")
        if not rid:
            rid = f"{_slug_id(left)}__{_slug_id(right)}"
        if rid in seen:
            raise AssetLoadError(f"Duplicate word pair id: {rid}")
        seen.add(rid)
        out.append(WordPair(id=rid, left=left, right=right))

    if not out:
        raise AssetLoadError(f"No word pairs in {path}")
    return tuple(out)


def load_letter_shapes_csv(path: Path) -> tuple[LetterShape, ...]:
    out: list[LetterShape] = []
    for row in _body(path, ["key", "path"]):
        if len(row) < 2 or not row[0] or not row[1]:
            continue
        if not row[1].startswith("M"):
            raise AssetLoadError(f"Letter shape {row[0]!r} must start with an M command")
        if any(s.key == row[0] for s in out):
            raise AssetLoadError(f"Duplicate letter shape: {row[0]}")
        out.append(LetterShape(key=row[0], path=row[1]))

    if not out:
        raise AssetLoadError(f"No letter shapes in {path}")
    return tuple(out)


def load_grid_shapes_csv(path: Path) -> tuple[GridShape, ...]:
    out: list[GridShape] = []
    for row in _body(path, ["id", "grid"]):
        if len(row) < 2:
            continue
        try:
            gid = int(row[0])
        except ValueError as e:
            raise AssetLoadError(f"Grid id must be an integer: {row[0]!r}") from e
        if not _GRID_RE.match(row[1]):
            raise AssetLoadError(f"Malformed grid for id {gid}: {row[1]!r}")
        if "1" not in row[1]:
            raise AssetLoadError(f"Grid {gid} has no active cells")
        out.append(GridShape(id=gid, grid=row[1]))

    if not out:
        raise AssetLoadError(f"No grid shapes in {path}")
    return tuple(out)


def _fallback_game_assets() -> GameAssets:
    """Small built-in dataset used when the asset CSVs are missing."""

    return GameAssets(
        word_pairs=(
            WordPair(id="apple__grape", left="apple", right="grape"),
            WordPair(id="river__stone", left="river", right="stone"),
            WordPair(id="cloud__flame", left="cloud", right="flame"),
        ),
        letter_shapes=(
            LetterShape(key="L", path="M 40.2 71.4 L 0 71.4 L 0 0 L 9 0 L 9 63.4 L 40.2 63.4 L 40.2 71.4 Z"),
            LetterShape(
                key="F",
                path="M 9 41.1 L 9 71.4 L 0 71.4 L 0 0 L 39.9 0 L 39.9 7.9 L 9 7.9 L 9 33.2 L 38 33.2 L 38 41.1 L 9 41.1 Z",
            ),
        ),
        grid_shapes=(
            GridShape(id=10, grid="0110/0110/0110/1110"),
            GridShape(id=13, grid="1110/1100/1000/1000"),
        ),
    )


def load_game_assets(*, root: Path) -> GameAssets:
    assets_dir = root / "assets"

    # Default behavior: fall back to a tiny built-in dataset when files are missing.
    # You can force strict behavior by setting ACCA_GAMES_STRICT_ASSETS=1.
    strict = os.getenv("ACCA_GAMES_STRICT_ASSETS", "").strip().lower() in {"1", "true", "yes"}

    try:
        return GameAssets(
            word_pairs=load_word_pairs_csv(assets_dir / "word_pairs.csv"),
            letter_shapes=load_letter_shapes_csv(assets_dir / "letter_shapes.csv"),
            grid_shapes=load_grid_shapes_csv(assets_dir / "grid_shapes.csv"),
        )
    except AssetLoadError:
        if strict:
            raise
        return _fallback_game_assets()
