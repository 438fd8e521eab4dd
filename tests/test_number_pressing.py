from __future__ import annotations

import random

import pytest

from acca_games.api.models import NumberPressingProblemR2, NumberPressingSettings, SessionPhase
from acca_games.errors import InvalidChoice, InvalidTrialIndex
from acca_games.games import number_pressing
from acca_games.games.number_pressing import NumberPressingEngine


def test_correct_clicks_with_doubles_and_skips() -> None:
    problem = NumberPressingProblemR2(double_click=(2, 8), skip=(4, 6))
    assert number_pressing.correct_clicks(problem) == [1, 2, 2, 3, 5, 7, 8, 8, 9]


def test_correct_clicks_plain() -> None:
    assert number_pressing.correct_clicks(NumberPressingProblemR2()) == list(range(1, 10))


def test_generated_r2_problems_are_well_formed() -> None:
    rng = random.Random(21)
    for _ in range(300):
        p = number_pressing.generate_problem_r2(rng=rng)
        assert len(p.double_click) <= 2
        assert len(p.skip) <= 2
        assert not set(p.double_click) & set(p.skip)
        assert set(p.double_click) | set(p.skip) <= set(range(1, 10))
        if len(p.skip) == 2:
            assert p.double_click == ()


def test_generated_r1_targets_are_digits() -> None:
    rng = random.Random(2)
    assert {number_pressing.generate_problem_r1(rng=rng).target_number for _ in range(200)} == set(range(1, 10))


def test_only_requested_rounds_are_generated() -> None:
    r1, r2 = number_pressing.generate_problems(
        NumberPressingSettings(rounds=[2], problems_per_round=3), rng=random.Random(0)
    )
    assert r1 == []
    assert len(r2) == 3


def test_session_completes_after_both_rounds(sink) -> None:
    engine = NumberPressingEngine(store=sink, rng=random.Random(4))
    game = engine.start_game(NumberPressingSettings(rounds=[1, 2], problems_per_round=1))
    assert game.expected_answers == 2

    target = game.problems_r1[0].target_number
    r1 = engine.submit_r1(game.session_id, problem_index=0, pressed_number=target, time_taken=1.5)
    assert r1.is_correct
    assert game.phase == SessionPhase.in_progress

    expected = number_pressing.correct_clicks(game.problems_r2[0])
    r2 = engine.submit_r2(game.session_id, problem_index=0, player_clicks=expected, time_taken=4.0)
    assert r2.is_correct
    assert list(r2.correct_clicks) == expected
    assert game.phase == SessionPhase.complete


def test_wrong_click_order_is_incorrect(sink) -> None:
    engine = NumberPressingEngine(store=sink)
    game = engine.start_game(NumberPressingSettings(rounds=[2], problems_per_round=1))

    clicks = list(reversed(number_pressing.correct_clicks(game.problems_r2[0])))
    result = engine.submit_r2(game.session_id, problem_index=0, player_clicks=clicks, time_taken=2.0)
    assert not result.is_correct


def test_rejects_bad_submissions(sink) -> None:
    engine = NumberPressingEngine(store=sink)
    game = engine.start_game(NumberPressingSettings(rounds=[1], problems_per_round=1))

    with pytest.raises(InvalidChoice):
        engine.submit_r1(game.session_id, problem_index=0, pressed_number=10, time_taken=1.0)
    # No round-2 problems in this session.
    with pytest.raises(InvalidTrialIndex):
        engine.submit_r2(game.session_id, problem_index=0, player_clicks=[1], time_taken=1.0)
