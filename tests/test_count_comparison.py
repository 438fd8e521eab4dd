from __future__ import annotations

import random

import pytest

from acca_games.api.models import CountComparisonSettings, SessionPhase
from acca_games.assets.registry import WordPair
from acca_games.assets.singleton import get_assets
from acca_games.errors import GameNotStarted, InvalidChoice, InvalidTrialIndex
from acca_games.games import count_comparison as cc
from acca_games.games.count_comparison import CountComparisonEngine

PAIRS = (WordPair(id="a__b", left="apple", right="grape"),)


def _settings(n: int = 40) -> CountComparisonSettings:
    return CountComparisonSettings(num_problems=n, presentation_time_ms=1200, input_time_ms=2500)


def test_counts_are_bounded_and_distinct() -> None:
    rng = random.Random(0)
    for total in (1, 10, 100):
        for index in range(total):
            a, b = cc.generate_counts(index, total, rng=rng)
            assert cc.MIN_COUNT <= a <= cc.MAX_COUNT
            assert cc.MIN_COUNT <= b <= cc.MAX_COUNT
            assert a != b


def test_word_details_match_counts_and_traps_point_at_the_smaller_side() -> None:
    problems = cc.generate_problems(_settings(200), PAIRS, rng=random.Random(42))

    for p in problems:
        assert sum(1 for w in p.left_words if not w.is_gap) == p.left_count
        assert sum(1 for w in p.right_words if not w.is_gap) == p.right_count
        assert p.correct_side == ("right" if p.right_count > p.left_count else "left")
        assert {p.left_word_text, p.right_word_text} == {"apple", "grape"}
        for trap in p.applied_traps:
            assert trap.applied_to != p.correct_side

    # Over 200 problems every trap kind shows up, and so do untrapped problems.
    kinds = {t.type for p in problems for t in p.applied_traps}
    assert kinds == {"GapProbability", "FontSize", "FontWeight"}
    assert any(not p.applied_traps for p in problems)


def test_gap_trap_raises_gap_probability_on_trap_side() -> None:
    problems = cc.generate_problems(_settings(100), PAIRS, rng=random.Random(9))
    for p in problems:
        gap_trapped = [t for t in p.applied_traps if t.type == "GapProbability"]
        density = {"left": p.density.left, "right": p.density.right}
        if gap_trapped:
            side = gap_trapped[0].applied_to
            assert density[side].gap_probability == cc.TRAP_GAP_PROBABILITY
        else:
            assert p.density.left.gap_probability == p.density.right.gap_probability == cc.BASE_GAP_PROBABILITY


def test_gaps_are_capped_per_boundary() -> None:
    rng = random.Random(5)
    words = cc.generate_word_details(
        20, "x", font_size_trap=False, font_weight_trap=False, gap_probability=0.99, rng=rng
    )
    run = 0
    for w in words:
        run = run + 1 if w.is_gap else 0
        # Gaps after one word and before the next can touch: two boundaries at most.
        assert run <= 2 * cc.MAX_GAPS_PER_BOUNDARY


def test_correctness_ignores_traps() -> None:
    problems = cc.generate_problems(_settings(50), PAIRS, rng=random.Random(1))
    for p in problems:
        assert cc.is_correct_choice(p, p.correct_side)
        wrong = "left" if p.correct_side == "right" else "right"
        assert not cc.is_correct_choice(p, wrong)
        assert not cc.is_correct_choice(p, "MISS")


def test_moving_traps_to_the_other_side_does_not_change_the_answer() -> None:
    problems = cc.generate_problems(_settings(50), PAIRS, rng=random.Random(1))
    trapped = [p for p in problems if p.applied_traps]
    assert trapped

    for p in trapped:
        swapped = p.model_copy(
            update={
                "applied_traps": tuple(
                    t.model_copy(update={"applied_to": "left" if t.applied_to == "right" else "right"})
                    for t in p.applied_traps
                )
            }
        )
        assert [t.applied_to for t in swapped.applied_traps] != [t.applied_to for t in p.applied_traps]
        assert swapped.correct_side == p.correct_side
        for choice in ("left", "right", "MISS"):
            assert cc.is_correct_choice(swapped, choice) == cc.is_correct_choice(p, choice)


def test_problems_carry_timing_settings() -> None:
    p = cc.generate_problems(_settings(1), PAIRS, rng=random.Random(0))[0]
    assert p.problem_number == 1
    assert p.presentation_time_ms == 1200
    assert p.input_time_ms == 2500


def test_word_pairs_are_required() -> None:
    with pytest.raises(ValueError):
        cc.generate_problems(_settings(1), (), rng=random.Random(0))


def test_engine_serves_problems_in_order_and_scores_answers(sink) -> None:
    engine = CountComparisonEngine(store=sink, assets=get_assets(), rng=random.Random(2))
    game = engine.start_game(_settings(2))

    first = engine.next_problem(game.session_id)
    second = engine.next_problem(game.session_id)
    assert first is not None and second is not None
    assert (first.problem_number, second.problem_number) == (1, 2)
    assert engine.next_problem(game.session_id) is None

    r1 = engine.submit_answer(
        game.session_id, problem_number=1, player_choice=first.correct_side, response_time_ms=700
    )
    assert r1.is_correct
    assert r1.applied_traps == first.applied_traps
    assert (r1.left_word_count, r1.right_word_count) == (first.left_count, first.right_count)

    r2 = engine.submit_answer(game.session_id, problem_number=2, player_choice="MISS", response_time_ms=2500)
    assert not r2.is_correct
    assert game.phase == SessionPhase.complete


def test_engine_rejects_bad_submissions(sink) -> None:
    engine = CountComparisonEngine(store=sink, assets=get_assets())
    game = engine.start_game(_settings(1))

    with pytest.raises(InvalidTrialIndex):
        engine.submit_answer(game.session_id, problem_number=0, player_choice="left", response_time_ms=1)
    with pytest.raises(InvalidChoice):
        engine.submit_answer(game.session_id, problem_number=1, player_choice="LEFT", response_time_ms=1)


def test_next_problem_after_the_last_answer_is_none(sink) -> None:
    engine = CountComparisonEngine(store=sink, assets=get_assets(), rng=random.Random(4))
    game = engine.start_game(_settings(1))

    problem = engine.next_problem(game.session_id)
    assert problem is not None
    engine.submit_answer(
        game.session_id, problem_number=problem.problem_number, player_choice=problem.correct_side, response_time_ms=650
    )
    assert game.phase == SessionPhase.complete

    assert engine.next_problem(game.session_id) is None


def test_next_problem_for_an_abandoned_session_is_refused(sink) -> None:
    engine = CountComparisonEngine(store=sink, assets=get_assets(), rng=random.Random(4))
    old = engine.start_game(_settings(2))
    engine.start_game(_settings(2))

    with pytest.raises(GameNotStarted):
        engine.next_problem(old.session_id)
