from __future__ import annotations

import random
from collections.abc import Mapping, Sequence
from types import MappingProxyType

from acca_games.api.models import GameCode, NBackGame, NBackResult, NBackSettings
from acca_games.games.base import GameEngine, now
from acca_games.validation import ChoiceValidator, TrialIndexValidator, ValidatorPipeline

SHAPE_GROUPS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "group1": ("circle", "square", "triangle"),
        "group2": ("trapezoid", "hourglass", "diamond"),
        "group3": ("rhombus", "butterfly", "star"),
        "group4": ("check", "horns", "pyramid"),
        "group5": ("double_triangle", "x_shape", "crown"),
    }
)
DEFAULT_SHAPE_GROUP = "group1"
RANDOM_SHAPE_GROUP = "random"

# Longest allowed run of one symbol.
MAX_RUN = 3

LEFT = "LEFT"
RIGHT = "RIGHT"
SPACE = "SPACE"
MISS = "MISS"

ANSWER_PIPELINE = ValidatorPipeline(
    validators=(
        TrialIndexValidator(field="trial_index"),
        ChoiceValidator(field="player_choice", allowed=frozenset({LEFT, RIGHT, SPACE, MISS})),
    )
)


def resolve_shape_group(key: str, *, rng: random.Random) -> str:
    """Resolve "random" to a concrete key; unknown keys fall back to group1."""

    if key == RANDOM_SHAPE_GROUP:
        return rng.choice(sorted(SHAPE_GROUPS))
    if key not in SHAPE_GROUPS:
        return DEFAULT_SHAPE_GROUP
    return key


def generate_sequence(symbols: Sequence[str], num_trials: int, *, rng: random.Random) -> list[str]:
    """Uniform draws from `symbols`, resampling any draw that would make four in a row."""

    sequence: list[str] = []
    for i in range(num_trials):
        while True:
            candidate = rng.choice(symbols)
            if i < MAX_RUN or any(sequence[i - k] != candidate for k in range(1, MAX_RUN + 1)):
                break
        sequence.append(candidate)
    return sequence


def correct_choice(sequence: Sequence[str], index: int, *, level: int) -> str:
    two_back = index >= 2 and sequence[index] == sequence[index - 2]
    if two_back:
        return LEFT
    if level == 2 and index >= 3 and sequence[index] == sequence[index - 3]:
        return RIGHT
    return SPACE


class NBackEngine(GameEngine[NBackGame]):
    game_code = GameCode.N_BACK

    def start_game(self, settings: NBackSettings, *, sequence: Sequence[str] | None = None) -> NBackGame:
        """Start a session. `sequence` replaces the generated one (scripted or replayed sessions)."""

        seed, rng = self._session_seed()
        group_key = resolve_shape_group(settings.shape_group, rng=rng)
        resolved = settings.model_copy(update={"shape_group": group_key})

        if sequence is None:
            shapes = generate_sequence(SHAPE_GROUPS[group_key], resolved.num_trials, rng=rng)
        else:
            shapes = list(sequence)
            if len(shapes) != resolved.num_trials:
                raise ValueError(f"sequence must have {resolved.num_trials} symbols, got {len(shapes)}")

        session_id = self._create_session(resolved)
        game = NBackGame(
            session_id=session_id,
            started_at=now(),
            seed=seed,
            expected_answers=len(shapes),
            settings=resolved,
            shape_sequence=shapes,
        )
        return self._open(game)

    def submit_answer(
        self,
        session_id: int,
        *,
        trial_index: int,
        player_choice: str,
        response_time_ms: int,
    ) -> NBackResult:
        game = self.require_session(session_id)
        self._validate(
            ANSWER_PIPELINE,
            game=game,
            action="n_back_answer",
            trial_count=len(game.shape_sequence),
            submission={"trial_index": trial_index, "player_choice": player_choice},
        )

        expected = correct_choice(game.shape_sequence, trial_index, level=game.settings.n_back_level)
        result = NBackResult(
            session_id=game.session_id,
            round=game.settings.n_back_level,
            question_num=trial_index + 1,
            is_correct=player_choice == expected,
            response_time_ms=response_time_ms,
            player_choice=player_choice,
            correct_choice=expected,
        )
        self._commit(game, str(trial_index), result)
        return result


def shape_groups() -> dict[str, list[str]]:
    return {k: list(v) for k, v in SHAPE_GROUPS.items()}
