"""Count comparison: two word clouds, pick the side with more words.

Traps make the side with fewer words look denser (bigger, bolder, more spread
out) without changing which side is correct.
"""

from __future__ import annotations

import math
import random
from collections.abc import Sequence

from acca_games.api.models import (
    AppliedTrap,
    CountComparisonGame,
    CountComparisonProblem,
    CountComparisonResult,
    CountComparisonSettings,
    DensityInfo,
    DensityParams,
    GameCode,
    SessionPhase,
    WordDetail,
)
from acca_games.assets.registry import GameAssets, WordPair
from acca_games.games.base import GameEngine, now
from acca_games.store import ResultSink
from acca_games.validation import ChoiceValidator, TrialIndexValidator, ValidatorPipeline

MIN_COUNT = 5
MAX_COUNT = 30

BASE_GAP_PROBABILITY = 0.4
TRAP_GAP_PROBABILITY = 0.8
AREA_MULTIPLIER = 1.0

FONT_SIZE_TRAP_PROBABILITY = 0.5
FONT_WEIGHT_TRAP_PROBABILITY = 0.5
GAP_PROBABILITY_TRAP_PROBABILITY = 0.33

BASE_LARGE_FONT_PROBABILITY = 0.4
BASE_HEAVY_FONT_PROBABILITY = 0.4
TRAP_FONT_PROBABILITY_BOOST = 0.1

MAX_GAPS_PER_BOUNDARY = 3

LEFT = "left"
RIGHT = "right"
MISS = "MISS"

ANSWER_PIPELINE = ValidatorPipeline(
    validators=(
        TrialIndexValidator(field="problem_number", first=1),
        ChoiceValidator(field="player_choice", allowed=frozenset({LEFT, RIGHT, MISS})),
    )
)


def _round_half_away(x: float) -> int:
    return int(math.copysign(math.floor(abs(x) + 0.5), x))


def _clamp(value: int) -> int:
    return max(MIN_COUNT, min(MAX_COUNT, value))


def generate_counts(index: int, total: int, *, rng: random.Random) -> tuple[int, int]:
    """Two distinct counts in [MIN_COUNT, MAX_COUNT]; later problems have closer counts."""

    difficulty = index / total
    mean = rng.random() * (MAX_COUNT - MIN_COUNT) + MIN_COUNT
    std_dev = mean * (0.5 - 0.4 * difficulty)

    count1 = _clamp(_round_half_away(rng.normalvariate(mean, std_dev)))
    count2 = _clamp(_round_half_away(rng.normalvariate(mean, std_dev)))
    if count1 == count2:
        count1 = count1 + 1 if count1 < MAX_COUNT else count1 - 1
    return count1, count2


def _gaps(gap_probability: float, *, rng: random.Random) -> list[WordDetail]:
    gaps: list[WordDetail] = []
    for _ in range(MAX_GAPS_PER_BOUNDARY):
        if rng.random() >= gap_probability:
            break
        gaps.append(WordDetail(is_gap=True, gap_width=round(1.0 + rng.random(), 2)))
    return gaps


def generate_word_details(
    count: int,
    text: str,
    *,
    font_size_trap: bool,
    font_weight_trap: bool,
    gap_probability: float,
    rng: random.Random,
) -> list[WordDetail]:
    large_font_probability = BASE_LARGE_FONT_PROBABILITY + (TRAP_FONT_PROBABILITY_BOOST if font_size_trap else 0.0)
    heavy_font_probability = BASE_HEAVY_FONT_PROBABILITY + (TRAP_FONT_PROBABILITY_BOOST if font_weight_trap else 0.0)

    details: list[WordDetail] = []
    for _ in range(count):
        details.extend(_gaps(gap_probability, rng=rng))

        size = 0.8 + rng.random() * 0.4
        if rng.random() < large_font_probability:
            size = 1.2 + rng.random() * 0.3
        weight = 700 if rng.random() < heavy_font_probability else 400
        details.append(WordDetail(text=text, size=round(size, 2), weight=weight))

        details.extend(_gaps(gap_probability, rng=rng))
    return details


def generate_problem(
    index: int,
    settings: CountComparisonSettings,
    pair: WordPair,
    *,
    rng: random.Random,
) -> CountComparisonProblem:
    left_word, right_word = pair.left, pair.right
    if rng.random() > 0.5:
        left_word, right_word = right_word, left_word

    left_count, right_count = generate_counts(index, settings.num_problems, rng=rng)
    correct_side = RIGHT if right_count > left_count else LEFT
    trap_side = RIGHT if correct_side == LEFT else LEFT

    font_size_trap = rng.random() < FONT_SIZE_TRAP_PROBABILITY
    font_weight_trap = rng.random() < FONT_WEIGHT_TRAP_PROBABILITY
    gap_trap = rng.random() < GAP_PROBABILITY_TRAP_PROBABILITY

    gap_probability = {LEFT: BASE_GAP_PROBABILITY, RIGHT: BASE_GAP_PROBABILITY}
    traps: list[AppliedTrap] = []
    if gap_trap:
        gap_probability[trap_side] = TRAP_GAP_PROBABILITY
        traps.append(AppliedTrap(type="GapProbability", applied_to=trap_side))
    if font_size_trap:
        traps.append(AppliedTrap(type="FontSize", applied_to=trap_side))
    if font_weight_trap:
        traps.append(AppliedTrap(type="FontWeight", applied_to=trap_side))

    words = {
        side: generate_word_details(
            count,
            text,
            font_size_trap=font_size_trap and trap_side == side,
            font_weight_trap=font_weight_trap and trap_side == side,
            gap_probability=gap_probability[side],
            rng=rng,
        )
        for side, count, text in ((LEFT, left_count, left_word), (RIGHT, right_count, right_word))
    }

    return CountComparisonProblem(
        problem_number=index + 1,
        left_words=tuple(words[LEFT]),
        right_words=tuple(words[RIGHT]),
        left_word_text=left_word,
        right_word_text=right_word,
        left_count=left_count,
        right_count=right_count,
        density=DensityInfo(
            left=DensityParams(area_multiplier=AREA_MULTIPLIER, gap_probability=gap_probability[LEFT]),
            right=DensityParams(area_multiplier=AREA_MULTIPLIER, gap_probability=gap_probability[RIGHT]),
        ),
        presentation_time_ms=settings.presentation_time_ms,
        input_time_ms=settings.input_time_ms,
        correct_side=correct_side,
        applied_traps=tuple(traps),
    )


def generate_problems(
    settings: CountComparisonSettings,
    word_pairs: Sequence[WordPair],
    *,
    rng: random.Random,
) -> list[CountComparisonProblem]:
    if not word_pairs:
        raise ValueError("at least one word pair is required")

    pairs = list(word_pairs)
    rng.shuffle(pairs)
    return [generate_problem(i, settings, pairs[i % len(pairs)], rng=rng) for i in range(settings.num_problems)]


def is_correct_choice(problem: CountComparisonProblem, player_choice: str) -> bool:
    return player_choice == problem.correct_side


class CountComparisonEngine(GameEngine[CountComparisonGame]):
    game_code = GameCode.COUNT_COMPARISON

    def __init__(self, *, store: ResultSink, assets: GameAssets, rng: random.Random | None = None) -> None:
        super().__init__(store=store, rng=rng)
        self.assets = assets

    def start_game(self, settings: CountComparisonSettings) -> CountComparisonGame:
        seed, rng = self._session_seed()
        problems = generate_problems(settings, self.assets.word_pairs, rng=rng)
        session_id = self._create_session(settings)
        game = CountComparisonGame(
            session_id=session_id,
            started_at=now(),
            seed=seed,
            expected_answers=len(problems),
            settings=settings,
            problems=problems,
        )
        return self._open(game)

    def next_problem(self, session_id: int) -> CountComparisonProblem | None:
        """Hand out problems in order; None once every problem has been served."""

        game = self.sessions.require_current(session_id)
        if game.phase == SessionPhase.complete or game.next_problem_index >= len(game.problems):
            return None
        problem = game.problems[game.next_problem_index]
        game.next_problem_index += 1
        return problem

    def submit_answer(
        self,
        session_id: int,
        *,
        problem_number: int,
        player_choice: str,
        response_time_ms: int,
    ) -> CountComparisonResult:
        game = self.require_session(session_id)
        self._validate(
            ANSWER_PIPELINE,
            game=game,
            action="count_comparison_answer",
            trial_count=len(game.problems),
            submission={"problem_number": problem_number, "player_choice": player_choice},
        )

        problem = game.problems[problem_number - 1]
        result = CountComparisonResult(
            session_id=game.session_id,
            problem_number=problem_number,
            is_correct=is_correct_choice(problem, player_choice),
            response_time_ms=response_time_ms,
            player_choice=player_choice,
            correct_choice=problem.correct_side,
            left_word=problem.left_word_text,
            right_word=problem.right_word_text,
            left_word_count=problem.left_count,
            right_word_count=problem.right_count,
            applied_traps=problem.applied_traps,
        )
        self._commit(game, str(problem_number), result)
        return result
