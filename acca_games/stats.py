"""Aggregate statistics over a session's stored results."""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from acca_games.api.models import (
    CatChaserResult,
    CountComparisonResult,
    GameCode,
    GameResult,
    NumberPressingResultR1,
    NumberPressingResultR2,
    RoundStat,
    SessionStatsResponse,
    SessionSummary,
    TrapStat,
)

NO_TRAP = "No Trap"

# Field holding the per-answer time, and its unit, for each game.
_TIME_FIELDS: dict[GameCode, tuple[str, str]] = {
    GameCode.N_BACK: ("response_time_ms", "ms"),
    GameCode.RPS: ("response_time_ms", "ms"),
    GameCode.COUNT_COMPARISON: ("response_time_ms", "ms"),
    GameCode.CAT_CHASER: ("response_time_ms", "ms"),
    GameCode.SHAPE_ROTATION: ("solve_time_ms", "ms"),
    GameCode.NUMBER_PRESSING: ("time_taken", "s"),
}


def _accuracy(correct: int, total: int) -> float:
    return correct / total * 100 if total else 0.0


def _frame(results: Sequence[GameResult]) -> pd.DataFrame:
    return pd.DataFrame([r.model_dump() for r in results])


def summarize(session_id: int, results: Sequence[GameResult], *, game_code: GameCode) -> SessionSummary:
    time_field, unit = _TIME_FIELDS[game_code]
    if not results:
        return SessionSummary(
            session_id=session_id,
            total_questions=0,
            total_correct=0,
            accuracy=0.0,
            average_time=0.0,
            time_unit=unit,  # type: ignore[arg-type]
        )

    df = _frame(results)
    total = len(df)
    correct = int(df["is_correct"].sum())
    return SessionSummary(
        session_id=session_id,
        total_questions=total,
        total_correct=correct,
        accuracy=_accuracy(correct, total),
        average_time=float(df[time_field].mean()),
        time_unit=unit,  # type: ignore[arg-type]
    )


def trap_stats(results: Sequence[CountComparisonResult]) -> list[TrapStat]:
    """One row per "{Type}_{side}" trap key; untrapped problems count as "No Trap".

    A problem with several traps counts towards each of them.
    """

    if not results:
        return []

    df = pd.DataFrame(
        {
            "trap_type": [[f"{t.type}_{t.applied_to}" for t in r.applied_traps] or [NO_TRAP] for r in results],
            "is_correct": [r.is_correct for r in results],
            "response_time_ms": [r.response_time_ms for r in results],
        }
    ).explode("trap_type")

    grouped = df.groupby("trap_type", sort=True).agg(
        total_questions=("is_correct", "size"),
        total_correct=("is_correct", "sum"),
        average_response_time_ms=("response_time_ms", "mean"),
    )
    return [
        TrapStat(
            trap_type=str(trap_type),
            total_questions=int(row.total_questions),
            total_correct=int(row.total_correct),
            accuracy=_accuracy(int(row.total_correct), int(row.total_questions)),
            average_response_time_ms=float(row.average_response_time_ms),
        )
        for trap_type, row in grouped.iterrows()
    ]


def _round_stats(df: pd.DataFrame, *, time_field: str, with_score: bool) -> list[RoundStat]:
    aggs: dict[str, tuple[str, str]] = {
        "total_questions": ("is_correct", "size"),
        "total_correct": ("is_correct", "sum"),
        "average_time": (time_field, "mean"),
    }
    if with_score:
        aggs["total_score"] = ("score", "sum")

    grouped = df.groupby("round", sort=True).agg(**aggs)
    out: list[RoundStat] = []
    for round_, row in grouped.iterrows():
        total = int(row["total_questions"])
        correct = int(row["total_correct"])
        out.append(
            RoundStat(
                round=int(round_),
                total_questions=total,
                total_correct=correct,
                accuracy=_accuracy(correct, total),
                average_time=float(row["average_time"]),
                total_score=float(row["total_score"]) if with_score else None,
            )
        )
    return out


def cat_chaser_round_stats(results: Sequence[CatChaserResult]) -> list[RoundStat]:
    if not results:
        return []
    return _round_stats(_frame(results), time_field="response_time_ms", with_score=True)


def number_pressing_round_stats(
    results: Sequence[NumberPressingResultR1 | NumberPressingResultR2],
) -> list[RoundStat]:
    if not results:
        return []
    df = pd.DataFrame(
        {
            "round": [1 if isinstance(r, NumberPressingResultR1) else 2 for r in results],
            "is_correct": [r.is_correct for r in results],
            "time_taken": [r.time_taken for r in results],
        }
    )
    return _round_stats(df, time_field="time_taken", with_score=False)


def session_stats(session_id: int, game_code: GameCode, results: Sequence[GameResult]) -> SessionStatsResponse:
    stats = SessionStatsResponse(summary=summarize(session_id, results, game_code=game_code))

    if game_code == GameCode.COUNT_COMPARISON:
        stats.trap_stats = trap_stats([r for r in results if isinstance(r, CountComparisonResult)])
    elif game_code == GameCode.CAT_CHASER:
        cat_results = [r for r in results if isinstance(r, CatChaserResult)]
        stats.round_stats = cat_chaser_round_stats(cat_results)
        stats.total_score = float(sum(r.score for r in cat_results))
    elif game_code == GameCode.NUMBER_PRESSING:
        stats.round_stats = number_pressing_round_stats(
            [r for r in results if isinstance(r, (NumberPressingResultR1, NumberPressingResultR2))]
        )
    return stats
