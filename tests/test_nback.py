from __future__ import annotations

import random

import pytest

from acca_games.api.models import NBackSettings, SessionPhase
from acca_games.errors import GameNotStarted, InvalidChoice, InvalidTrialIndex
from acca_games.games import nback
from acca_games.games.nback import NBackEngine


def test_generated_sequence_never_has_four_in_a_row() -> None:
    symbols = nback.SHAPE_GROUPS["group1"]
    for seed in range(50):
        seq = nback.generate_sequence(symbols, 60, rng=random.Random(seed))
        assert len(seq) == 60
        assert set(seq) <= set(symbols)
        for i in range(3, len(seq)):
            assert not (seq[i] == seq[i - 1] == seq[i - 2] == seq[i - 3])


def test_shape_groups_table() -> None:
    assert all(len(symbols) == 3 for symbols in nback.SHAPE_GROUPS.values())


def test_resolve_shape_group() -> None:
    rng = random.Random(7)
    assert nback.resolve_shape_group("group3", rng=rng) == "group3"
    assert nback.resolve_shape_group("nope", rng=rng) == nback.DEFAULT_SHAPE_GROUP
    assert nback.resolve_shape_group("random", rng=rng) in nback.SHAPE_GROUPS


@pytest.mark.parametrize(
    ("level", "index", "expected"),
    [
        (1, 0, "SPACE"),
        (1, 2, "LEFT"),
        (1, 3, "SPACE"),
        (2, 3, "SPACE"),
        (2, 4, "LEFT"),
    ],
)
def test_correct_choice(level: int, index: int, expected: str) -> None:
    assert nback.correct_choice(["A", "B", "A", "C", "A"], index, level=level) == expected


def test_three_back_only_counts_at_level_two() -> None:
    seq = ["A", "B", "C", "A"]
    assert nback.correct_choice(seq, 3, level=1) == "SPACE"
    assert nback.correct_choice(seq, 3, level=2) == "RIGHT"


def test_two_back_takes_precedence_over_three_back() -> None:
    seq = ["A", "B", "A", "B", "A"]
    assert nback.correct_choice(seq, 4, level=2) == "LEFT"
    assert nback.correct_choice(["A", "B", "B", "A"], 3, level=2) == "RIGHT"
    assert nback.correct_choice(["A", "A", "A", "A"], 3, level=2) == "LEFT"


def test_end_to_end_forced_sequence(sink) -> None:
    engine = NBackEngine(store=sink, rng=random.Random(1))
    game = engine.start_game(
        NBackSettings(num_trials=5, n_back_level=1, shape_group="group1"),
        sequence=["A", "B", "A", "C", "D"],
    )
    assert game.phase == SessionPhase.in_progress
    assert sink.sessions[0][1].shape_group == "group1"

    answers = ["SPACE", "SPACE", "LEFT", "LEFT", "SPACE"]
    results = [
        engine.submit_answer(game.session_id, trial_index=i, player_choice=choice, response_time_ms=300)
        for i, choice in enumerate(answers)
    ]

    assert [r.is_correct for r in results] == [True, True, True, False, True]
    assert results[3].correct_choice == "SPACE"
    assert [r.question_num for r in results] == [1, 2, 3, 4, 5]
    assert all(r.round == 1 for r in results)
    assert sink.results == results

    # Every trial answered -> the session completed itself.
    assert game.phase == SessionPhase.complete
    with pytest.raises(GameNotStarted):
        engine.submit_answer(game.session_id, trial_index=0, player_choice="SPACE", response_time_ms=1)


def test_random_group_is_resolved_in_stored_settings(sink) -> None:
    engine = NBackEngine(store=sink, rng=random.Random(3))
    game = engine.start_game(NBackSettings(num_trials=10, shape_group="random"))

    assert game.settings.shape_group in nback.SHAPE_GROUPS
    assert set(game.shape_sequence) <= set(nback.SHAPE_GROUPS[game.settings.shape_group])
    assert sink.sessions[0][1].shape_group == game.settings.shape_group


def test_same_engine_seed_same_sequences(sink) -> None:
    a = NBackEngine(store=sink, rng=random.Random(99)).start_game(NBackSettings(num_trials=20))
    b = NBackEngine(store=sink, rng=random.Random(99)).start_game(NBackSettings(num_trials=20))
    assert a.seed == b.seed
    assert a.shape_sequence == b.shape_sequence


def test_forced_sequence_length_must_match(sink) -> None:
    engine = NBackEngine(store=sink)
    with pytest.raises(ValueError):
        engine.start_game(NBackSettings(num_trials=3), sequence=["A", "B"])
    assert sink.sessions == []


def test_rejects_bad_submissions(sink) -> None:
    engine = NBackEngine(store=sink)
    game = engine.start_game(NBackSettings(num_trials=3), sequence=["A", "B", "C"])

    with pytest.raises(InvalidTrialIndex):
        engine.submit_answer(game.session_id, trial_index=3, player_choice="LEFT", response_time_ms=1)
    with pytest.raises(InvalidChoice):
        engine.submit_answer(game.session_id, trial_index=0, player_choice="UP", response_time_ms=1)
    assert sink.results == []

    miss = engine.submit_answer(game.session_id, trial_index=2, player_choice="MISS", response_time_ms=0)
    assert not miss.is_correct


def test_duplicate_answers_are_stored_again(sink) -> None:
    engine = NBackEngine(store=sink)
    game = engine.start_game(NBackSettings(num_trials=3), sequence=["A", "B", "C"])

    engine.submit_answer(game.session_id, trial_index=0, player_choice="SPACE", response_time_ms=1)
    engine.submit_answer(game.session_id, trial_index=0, player_choice="LEFT", response_time_ms=1)

    assert len(sink.results) == 2
    assert game.phase == SessionPhase.in_progress
