from __future__ import annotations

import pytest

from acca_games import stats
from acca_games.api.models import (
    AppliedTrap,
    CatChaserResult,
    CountComparisonResult,
    GameCode,
    NBackResult,
    NumberPressingProblemR1,
    NumberPressingProblemR2,
    NumberPressingResultR1,
    NumberPressingResultR2,
)


def _cc(is_correct: bool, time_ms: int, *traps: tuple[str, str]) -> CountComparisonResult:
    return CountComparisonResult(
        session_id=1,
        is_correct=is_correct,
        problem_number=1,
        response_time_ms=time_ms,
        player_choice="left",
        correct_choice="left" if is_correct else "right",
        left_word="a",
        right_word="b",
        left_word_count=10,
        right_word_count=12,
        applied_traps=tuple(AppliedTrap(type=t, applied_to=side) for t, side in traps),  # type: ignore[arg-type]
    )


def _cat(round_: int, is_correct: bool, score: float, time_ms: int = 1000) -> CatChaserResult:
    return CatChaserResult(
        session_id=1,
        is_correct=is_correct,
        round=round_,
        target_color="RED",
        player_choice="CAUGHT",
        confidence=3,
        correct_choice="CAUGHT" if is_correct else "MISSED",
        score=score,
        response_time_ms=time_ms,
    )


def test_summary_for_empty_session() -> None:
    summary = stats.summarize(3, [], game_code=GameCode.N_BACK)
    assert summary.total_questions == 0
    assert summary.accuracy == 0.0
    assert summary.time_unit == "ms"


def test_summary_accuracy_and_average_time() -> None:
    results = [
        NBackResult(
            session_id=1,
            is_correct=i < 3,
            round=1,
            question_num=i + 1,
            response_time_ms=100 * (i + 1),
            player_choice="SPACE",
            correct_choice="SPACE",
        )
        for i in range(4)
    ]
    summary = stats.summarize(1, results, game_code=GameCode.N_BACK)

    assert summary.total_questions == 4
    assert summary.total_correct == 3
    assert summary.accuracy == pytest.approx(75.0)
    assert summary.average_time == pytest.approx(250.0)


def test_trap_stats_count_each_trap_and_untrapped_problems() -> None:
    results = [
        _cc(True, 500),
        _cc(False, 700, ("FontSize", "left")),
        _cc(True, 900, ("FontSize", "left"), ("GapProbability", "right")),
        _cc(False, 300),
    ]
    by_type = {t.trap_type: t for t in stats.trap_stats(results)}

    assert set(by_type) == {"No Trap", "FontSize_left", "GapProbability_right"}
    assert by_type["No Trap"].total_questions == 2
    assert by_type["No Trap"].accuracy == pytest.approx(50.0)
    assert by_type["FontSize_left"].total_questions == 2
    assert by_type["FontSize_left"].total_correct == 1
    assert by_type["FontSize_left"].average_response_time_ms == pytest.approx(800.0)
    assert by_type["GapProbability_right"].accuracy == pytest.approx(100.0)


def test_cat_chaser_round_stats_and_total_score() -> None:
    results = [_cat(1, True, 2.0), _cat(1, False, -0.1), _cat(2, True, 1.0, time_ms=3000)]
    response = stats.session_stats(1, GameCode.CAT_CHASER, results)

    assert response.total_score == pytest.approx(2.9)
    rounds = {r.round: r for r in response.round_stats}
    assert rounds[1].total_questions == 2
    assert rounds[1].accuracy == pytest.approx(50.0)
    assert rounds[1].total_score == pytest.approx(1.9)
    assert rounds[2].average_time == pytest.approx(3000.0)
    assert response.trap_stats == []


def test_number_pressing_round_stats_use_seconds() -> None:
    results = [
        NumberPressingResultR1(
            session_id=1,
            is_correct=True,
            problem_index=0,
            problem=NumberPressingProblemR1(target_number=3),
            pressed_number=3,
            time_taken=1.0,
        ),
        NumberPressingResultR1(
            session_id=1,
            is_correct=False,
            problem_index=1,
            problem=NumberPressingProblemR1(target_number=4),
            pressed_number=5,
            time_taken=2.0,
        ),
        NumberPressingResultR2(
            session_id=1,
            is_correct=True,
            problem_index=0,
            problem=NumberPressingProblemR2(),
            player_clicks=tuple(range(1, 10)),
            correct_clicks=tuple(range(1, 10)),
            time_taken=6.0,
        ),
    ]
    response = stats.session_stats(1, GameCode.NUMBER_PRESSING, results)

    assert response.summary.time_unit == "s"
    assert response.summary.average_time == pytest.approx(3.0)
    rounds = {r.round: r for r in response.round_stats}
    assert rounds[1].average_time == pytest.approx(1.5)
    assert rounds[1].total_score is None
    assert rounds[2].accuracy == pytest.approx(100.0)


def test_other_games_only_get_a_summary() -> None:
    response = stats.session_stats(1, GameCode.RPS, [])
    assert response.round_stats == []
    assert response.trap_stats == []
    assert response.total_score is None
