from __future__ import annotations

import random
from types import MappingProxyType

from acca_games.api.models import CatChaserGame, CatChaserProblem, CatChaserResult, CatChaserSettings, GameCode
from acca_games.games.base import GameEngine, now
from acca_games.validation import ChoiceValidator, ConfidenceValidator, TrialIndexValidator, ValidatorPipeline

GRID_CELLS = 36  # 6x6

AUTO_DIFFICULTY = "auto"
AUTO_LEVELS: tuple[int, ...] = (4, 6, 8, 10, 12, 16)
MIN_MICE = 4

CAUGHT = "CAUGHT"
MISSED = "MISSED"
TIMEOUT = "TIMEOUT"

RED = "RED"
BLUE = "BLUE"

TIMEOUT_SCORE = -1.0
CONFIDENCE_MULTIPLIERS = MappingProxyType({1: 0.1, 2: 0.5, 3: 1.0, 4: 2.0})

ANSWER_PIPELINE = ValidatorPipeline(
    validators=(
        TrialIndexValidator(field="round", first=1),
        ChoiceValidator(field="target_color", allowed=frozenset({RED, BLUE})),
        ChoiceValidator(field="player_choice", allowed=frozenset({CAUGHT, MISSED, TIMEOUT})),
        ConfidenceValidator(low=1, high=4, exempt_choices=frozenset({TIMEOUT})),
    )
)


def mouse_counts(num_trials: int, difficulty: str) -> list[int]:
    """Mice per trial: "auto" ramps through AUTO_LEVELS, anything else is a fixed count."""

    if difficulty == AUTO_DIFFICULTY:
        counts = []
        for i in range(num_trials):
            idx = min(i * len(AUTO_LEVELS) // num_trials, len(AUTO_LEVELS) - 1)
            counts.append(AUTO_LEVELS[idx])
        return counts

    try:
        count = int(difficulty)
    except ValueError:
        count = MIN_MICE
    count = min(max(count, MIN_MICE), GRID_CELLS)
    return [count] * num_trials


def generate_problem(round_: int, num_mice: int, *, rng: random.Random) -> CatChaserProblem:
    mice = rng.sample(range(GRID_CELLS), num_mice)
    # Independent of the mice: overlapping cells are what gets detected.
    cats = rng.sample(range(GRID_CELLS), num_mice)
    red_idx, blue_idx = rng.sample(range(num_mice), 2)

    mouse_cells = set(mice)
    return CatChaserProblem(
        round=round_,
        mice_positions=tuple(mice),
        cat_positions=tuple(cats),
        red_cat_index=red_idx,
        blue_cat_index=blue_idx,
        red_cat=CAUGHT if cats[red_idx] in mouse_cells else MISSED,
        blue_cat=CAUGHT if cats[blue_idx] in mouse_cells else MISSED,
    )


def generate_problems(settings: CatChaserSettings, *, rng: random.Random) -> list[CatChaserProblem]:
    counts = mouse_counts(settings.num_trials, settings.difficulty)
    return [generate_problem(i + 1, n, rng=rng) for i, n in enumerate(counts)]


def true_status(problem: CatChaserProblem, target_color: str) -> str:
    return problem.red_cat if target_color == RED else problem.blue_cat


def score_answer(*, player_choice: str, correct_choice: str, confidence: int) -> tuple[bool, float]:
    """Signed, confidence-weighted score. A timeout is always wrong and costs a flat point."""

    if player_choice == TIMEOUT:
        return False, TIMEOUT_SCORE
    is_correct = player_choice == correct_choice
    multiplier = CONFIDENCE_MULTIPLIERS[confidence]
    return is_correct, multiplier if is_correct else -multiplier


class CatChaserEngine(GameEngine[CatChaserGame]):
    game_code = GameCode.CAT_CHASER

    def start_game(self, settings: CatChaserSettings) -> CatChaserGame:
        seed, rng = self._session_seed()
        problems = generate_problems(settings, rng=rng)
        session_id = self._create_session(settings)
        game = CatChaserGame(
            session_id=session_id,
            started_at=now(),
            seed=seed,
            # Each round asks about both tracked cats.
            expected_answers=2 * len(problems),
            settings=settings,
            problems=problems,
        )
        return self._open(game)

    def submit_answer(
        self,
        session_id: int,
        *,
        round: int,
        target_color: str,
        player_choice: str,
        confidence: int,
        response_time_ms: int,
    ) -> CatChaserResult:
        game = self.require_session(session_id)
        self._validate(
            ANSWER_PIPELINE,
            game=game,
            action="cat_chaser_answer",
            trial_count=len(game.problems),
            submission={
                "round": round,
                "target_color": target_color,
                "player_choice": player_choice,
                "confidence": confidence,
            },
        )

        problem = game.problems[round - 1]
        expected = true_status(problem, target_color)
        is_correct, score = score_answer(player_choice=player_choice, correct_choice=expected, confidence=confidence)
        result = CatChaserResult(
            session_id=game.session_id,
            round=round,
            target_color=target_color,
            player_choice=player_choice,
            confidence=confidence,
            correct_choice=expected,
            is_correct=is_correct,
            score=score,
            response_time_ms=response_time_ms,
        )
        self._commit(game, f"{round}:{target_color}", result)
        return result
