"""Generate the small CSV fixtures under `tests/assets/`.

Contract
- Inputs: real CSVs under `<repo>/assets/`.
- Outputs: trimmed CSVs under `<repo>/tests/assets/`.
- Preserves:
  - headers
  - the sentinel rows referenced by tests (letters L and F, grids 10 and 13)
- Trims:
  - word pairs down to the first few rows

Usage:
    uv run python scripts/generate_test_assets.py

This script is deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pandas as pd


@dataclass(frozen=True)
class CsvSpec:
    name: str
    columns: tuple[str, ...]


SPECS: tuple[CsvSpec, ...] = (
    CsvSpec("word_pairs.csv", ("id", "left", "right")),
    CsvSpec("letter_shapes.csv", ("key", "path")),
    CsvSpec("grid_shapes.csv", ("id", "grid")),
)

WORD_PAIR_ROWS = 3
KEEP_LETTERS = ("F", "L")
KEEP_GRID_IDS = (10, 13)


def _trim(spec: CsvSpec, df: pd.DataFrame) -> pd.DataFrame:
    if spec.name == "word_pairs.csv":
        return df.head(WORD_PAIR_ROWS)
    if spec.name == "letter_shapes.csv":
        return df[df["key"].isin(KEEP_LETTERS)]
    return df[df["id"].isin(KEEP_GRID_IDS)]


def main() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "assets"
    dst_dir = repo_root / "tests" / "assets"
    dst_dir.mkdir(parents=True, exist_ok=True)

    for spec in SPECS:
        src = src_dir / spec.name
        if not src.exists():
            raise FileNotFoundError(f"Missing source asset: {src}")

        df = pd.read_csv(src, dtype={c: str for c in spec.columns if c != "id"})
        if tuple(df.columns) != spec.columns:
            raise ValueError(f"Unexpected columns in {spec.name}: {list(df.columns)}")

        out = _trim(spec, df)
        if out.empty:
            raise ValueError(f"No rows kept from {spec.name}")
        out.to_csv(dst_dir / spec.name, index=False)


if __name__ == "__main__":
    main()
