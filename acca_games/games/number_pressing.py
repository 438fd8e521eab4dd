from __future__ import annotations

import random
from collections.abc import Sequence

from acca_games.api.models import (
    GameCode,
    NumberPressingGame,
    NumberPressingProblemR1,
    NumberPressingProblemR2,
    NumberPressingResultR1,
    NumberPressingResultR2,
    NumberPressingSettings,
)
from acca_games.games.base import GameEngine, now
from acca_games.validation import ChoiceValidator, EachChoiceValidator, TrialIndexValidator, ValidatorPipeline

DIGITS: tuple[int, ...] = tuple(range(1, 10))

R1_PIPELINE = ValidatorPipeline(
    validators=(
        TrialIndexValidator(field="problem_index"),
        ChoiceValidator(field="pressed_number", allowed=frozenset(DIGITS)),
    )
)
R2_PIPELINE = ValidatorPipeline(
    validators=(
        TrialIndexValidator(field="problem_index"),
        EachChoiceValidator(field="player_clicks", allowed=frozenset(DIGITS)),
    )
)


def generate_problem_r1(*, rng: random.Random) -> NumberPressingProblemR1:
    return NumberPressingProblemR1(target_number=rng.randint(1, 9))


def generate_problem_r2(*, rng: random.Random) -> NumberPressingProblemR2:
    double_click_count = rng.randint(0, 2)
    skip_count = rng.randint(0, 2)
    # Two skips only when nothing is double-clicked.
    if skip_count == 2 and double_click_count > 0:
        skip_count = 1

    digits = list(DIGITS)
    rng.shuffle(digits)
    double_click = sorted(digits[:double_click_count])
    skip = sorted(digits[double_click_count : double_click_count + skip_count])
    return NumberPressingProblemR2(double_click=tuple(double_click), skip=tuple(skip))


def generate_problems(
    settings: NumberPressingSettings, *, rng: random.Random
) -> tuple[list[NumberPressingProblemR1], list[NumberPressingProblemR2]]:
    problems_r1: list[NumberPressingProblemR1] = []
    problems_r2: list[NumberPressingProblemR2] = []
    for round_ in settings.rounds:
        if round_ == 1:
            problems_r1.extend(generate_problem_r1(rng=rng) for _ in range(settings.problems_per_round))
        elif round_ == 2:
            problems_r2.extend(generate_problem_r2(rng=rng) for _ in range(settings.problems_per_round))
    return problems_r1, problems_r2


def correct_clicks(problem: NumberPressingProblemR2) -> list[int]:
    """Press 1..9 in order: skipped digits zero times, double-click digits twice."""

    skip = set(problem.skip)
    double = set(problem.double_click)
    clicks: list[int] = []
    for digit in DIGITS:
        if digit in skip:
            continue
        clicks.append(digit)
        if digit in double:
            clicks.append(digit)
    return clicks


class NumberPressingEngine(GameEngine[NumberPressingGame]):
    game_code = GameCode.NUMBER_PRESSING

    def start_game(self, settings: NumberPressingSettings) -> NumberPressingGame:
        seed, rng = self._session_seed()
        problems_r1, problems_r2 = generate_problems(settings, rng=rng)
        session_id = self._create_session(settings)
        game = NumberPressingGame(
            session_id=session_id,
            started_at=now(),
            seed=seed,
            expected_answers=len(problems_r1) + len(problems_r2),
            settings=settings,
            problems_r1=problems_r1,
            problems_r2=problems_r2,
        )
        return self._open(game)

    def submit_r1(
        self,
        session_id: int,
        *,
        problem_index: int,
        pressed_number: int,
        time_taken: float,
    ) -> NumberPressingResultR1:
        game = self.require_session(session_id)
        self._validate(
            R1_PIPELINE,
            game=game,
            action="number_pressing_r1",
            trial_count=len(game.problems_r1),
            submission={"problem_index": problem_index, "pressed_number": pressed_number},
        )

        problem = game.problems_r1[problem_index]
        result = NumberPressingResultR1(
            session_id=game.session_id,
            problem_index=problem_index,
            problem=problem,
            pressed_number=pressed_number,
            time_taken=time_taken,
            is_correct=pressed_number == problem.target_number,
        )
        self._commit(game, f"r1:{problem_index}", result)
        return result

    def submit_r2(
        self,
        session_id: int,
        *,
        problem_index: int,
        player_clicks: Sequence[int],
        time_taken: float,
    ) -> NumberPressingResultR2:
        game = self.require_session(session_id)
        self._validate(
            R2_PIPELINE,
            game=game,
            action="number_pressing_r2",
            trial_count=len(game.problems_r2),
            submission={"problem_index": problem_index, "player_clicks": list(player_clicks)},
        )

        problem = game.problems_r2[problem_index]
        expected = correct_clicks(problem)
        result = NumberPressingResultR2(
            session_id=game.session_id,
            problem_index=problem_index,
            problem=problem,
            player_clicks=tuple(player_clicks),
            correct_clicks=tuple(expected),
            time_taken=time_taken,
            is_correct=list(player_clicks) == expected,
        )
        self._commit(game, f"r2:{problem_index}", result)
        return result
