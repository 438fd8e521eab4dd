from __future__ import annotations

import random
from types import MappingProxyType

from acca_games.api.models import GameCode, RpsGame, RpsProblem, RpsResult, RpsSettings
from acca_games.games.base import GameEngine, now
from acca_games.validation import ChoiceValidator, TrialIndexValidator, ValidatorPipeline

ROCK = "ROCK"
PAPER = "PAPER"
SCISSORS = "SCISSORS"
MISS = "MISS"

CARDS: tuple[str, ...] = (ROCK, PAPER, SCISSORS)

# card -> the card that beats it
BEATS = MappingProxyType({ROCK: PAPER, PAPER: SCISSORS, SCISSORS: ROCK})
# card -> the card that loses to it
LOSES_TO = MappingProxyType({ROCK: SCISSORS, PAPER: ROCK, SCISSORS: PAPER})

ME = "me"
OPPONENT = "opponent"

ANSWER_PIPELINE = ValidatorPipeline(
    validators=(
        TrialIndexValidator(field="question_num"),
        ChoiceValidator(field="player_choice", allowed=frozenset({*CARDS, MISS})),
    )
)


def card_holder_for_round(round_: int, *, rng: random.Random) -> str:
    if round_ == 1:
        return ME
    if round_ == 2:
        return OPPONENT
    return ME if rng.randrange(2) == 0 else OPPONENT


def generate_problems(settings: RpsSettings, *, rng: random.Random) -> list[RpsProblem]:
    problems: list[RpsProblem] = []
    for round_ in settings.rounds:
        for _ in range(settings.questions_per_round):
            given = rng.choice(CARDS)
            holder = card_holder_for_round(round_, rng=rng)
            problems.append(RpsProblem(round=round_, problem_card_holder=holder, given_card=given))
    return problems


def correct_card(problem: RpsProblem) -> str:
    """'me' holds the card: beat it. 'opponent' holds it: play the card that would lose."""

    if problem.problem_card_holder == ME:
        return BEATS[problem.given_card]
    return LOSES_TO[problem.given_card]


class RpsEngine(GameEngine[RpsGame]):
    game_code = GameCode.RPS

    def start_game(self, settings: RpsSettings) -> RpsGame:
        seed, rng = self._session_seed()
        problems = generate_problems(settings, rng=rng)
        session_id = self._create_session(settings)
        game = RpsGame(
            session_id=session_id,
            started_at=now(),
            seed=seed,
            expected_answers=len(problems),
            settings=settings,
            problems=problems,
        )
        return self._open(game)

    def submit_answer(
        self,
        session_id: int,
        *,
        question_num: int,
        player_choice: str,
        response_time_ms: int,
    ) -> RpsResult:
        game = self.require_session(session_id)
        self._validate(
            ANSWER_PIPELINE,
            game=game,
            action="rps_answer",
            trial_count=len(game.problems),
            submission={"question_num": question_num, "player_choice": player_choice},
        )

        problem = game.problems[question_num]
        expected = correct_card(problem)
        result = RpsResult(
            session_id=game.session_id,
            round=problem.round,
            question_num=question_num,
            problem_card_holder=problem.problem_card_holder,
            given_card=problem.given_card,
            is_correct=player_choice == expected,
            response_time_ms=response_time_ms,
            player_choice=player_choice,
            correct_choice=expected,
        )
        self._commit(game, str(question_num), result)
        return result
