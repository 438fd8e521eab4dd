from __future__ import annotations

import asyncio
import random
from collections.abc import Sequence
from dataclasses import dataclass

from acca_games import geometry
from acca_games.api.models import (
    GameCode,
    SessionPhase,
    ShapeRotationGame,
    ShapeRotationProblem,
    ShapeRotationResult,
    ShapeRotationSettings,
)
from acca_games.assets.registry import GameAssets, GridShape, LetterShape
from acca_games.games.base import GameEngine, now
from acca_games.geometry import Point
from acca_games.store import ResultSink
from acca_games.validation import EachChoiceValidator, TrialIndexValidator, ValidatorPipeline

LETTER_ROUND = 1
GRID_ROUND = 2

MIN_MOVES = 1
MAX_MOVES = 4

# Bound on whole-sequence resampling; only a fully symmetric shape can exhaust it.
MAX_SOLUTION_ATTEMPTS = 1000

ANSWER_PIPELINE = ValidatorPipeline(
    validators=(
        TrialIndexValidator(field="problem_index"),
        EachChoiceValidator(field="user_solution", allowed=frozenset(geometry.TRANSFORMS)),
    )
)


def random_move_sequence(num_moves: int, *, rng: random.Random) -> list[str]:
    """`num_moves` transforms where no move is immediately undone by the next one."""

    moves: list[str] = []
    for _ in range(num_moves):
        while True:
            candidate = rng.choice(geometry.TRANSFORMS)
            if moves and geometry.INVERSE_TRANSFORMS[moves[-1]] == candidate:
                continue
            moves.append(candidate)
            break
    return moves


def generate_solution(
    points: Sequence[Point],
    num_moves: int,
    *,
    center: Point | None,
    rng: random.Random,
) -> tuple[list[str], list[Point]]:
    """Random solution whose net effect actually changes the shape."""

    for _ in range(MAX_SOLUTION_ATTEMPTS):
        moves = random_move_sequence(num_moves, rng=rng)
        final = geometry.apply_transformations(points, moves, center)
        if not geometry.compare_point_sets(points, final):
            return moves, final
    raise ValueError("shape is unchanged by every generated solution")


def letter_problem(problem_id: int, shape: LetterShape, *, rng: random.Random) -> ShapeRotationProblem:
    min_moves = rng.randint(MIN_MOVES, MAX_MOVES)
    initial = geometry.parse_shape_to_points(shape.path)
    solution, final = generate_solution(initial, min_moves, center=None, rng=rng)

    initial_center = geometry.get_center(initial)
    final_center = geometry.get_center(final)
    return ShapeRotationProblem(
        id=problem_id,
        round=LETTER_ROUND,
        initial_shape=shape.path,
        final_shape=geometry.points_to_path_string(final),
        initial_center_x=initial_center.x,
        initial_center_y=initial_center.y,
        final_center_x=final_center.x,
        final_center_y=final_center.y,
        min_moves=min_moves,
        solution=tuple(solution),
    )


def grid_problem(shape: GridShape, *, rng: random.Random) -> ShapeRotationProblem:
    min_moves = rng.randint(MIN_MOVES, MAX_MOVES)
    center = Point(geometry.GRID_CENTER, geometry.GRID_CENTER)

    initial = geometry.parse_grid_to_corner_points(shape.grid)
    grid_lines = geometry.generate_grid_lines()
    solution, final = generate_solution(initial, min_moves, center=center, rng=rng)
    final_grid_lines = geometry.apply_transformations(grid_lines, solution, center)

    return ShapeRotationProblem(
        # Grid ids identify the base shape, so they repeat when a shape is drawn twice.
        id=shape.id,
        round=GRID_ROUND,
        initial_shape=geometry.points_to_path_string(initial),
        final_shape=geometry.points_to_path_string(final),
        initial_grid_path=geometry.points_to_path_string(grid_lines),
        final_grid_path=geometry.points_to_path_string(final_grid_lines),
        initial_center_x=center.x,
        initial_center_y=center.y,
        final_center_x=center.x,
        final_center_y=center.y,
        transform_center=(center.x, center.y),
        min_moves=min_moves,
        solution=tuple(solution),
    )


def generate_problems(
    settings: ShapeRotationSettings,
    assets: GameAssets,
    *,
    rng: random.Random,
) -> list[ShapeRotationProblem]:
    if settings.round == GRID_ROUND:
        return [grid_problem(rng.choice(assets.grid_shapes), rng=rng) for _ in range(settings.num_problems)]
    return [letter_problem(i + 1, rng.choice(assets.letter_shapes), rng=rng) for i in range(settings.num_problems)]


def verify_solution(problem: ShapeRotationProblem, user_solution: Sequence[str]) -> bool:
    """Accept any sequence no longer than `min_moves` that lands on the final shape."""

    if len(user_solution) > problem.min_moves:
        return False

    center = Point(*problem.transform_center) if problem.transform_center is not None else None
    initial = geometry.parse_shape_to_points(problem.initial_shape)
    transformed = geometry.apply_transformations(initial, user_solution, center)
    return geometry.compare_point_sets(transformed, geometry.parse_shape_to_points(problem.final_shape))


@dataclass(frozen=True, slots=True)
class PendingSave:
    """A verified result plus the task persisting it.

    `saved` resolves to None, or raises `PersistenceFailure` if the write failed.
    """

    result: ShapeRotationResult
    saved: asyncio.Task[None]


class ShapeRotationEngine(GameEngine[ShapeRotationGame]):
    game_code = GameCode.SHAPE_ROTATION

    def __init__(self, *, store: ResultSink, assets: GameAssets, rng: random.Random | None = None) -> None:
        super().__init__(store=store, rng=rng)
        self.assets = assets

    def start_game(self, settings: ShapeRotationSettings) -> ShapeRotationGame:
        seed, rng = self._session_seed()
        problems = generate_problems(settings, self.assets, rng=rng)
        session_id = self._create_session(settings)
        game = ShapeRotationGame(
            session_id=session_id,
            started_at=now(),
            seed=seed,
            expected_answers=len(problems),
            settings=settings,
            problems=problems,
        )
        return self._open(game)

    def check_answer(
        self,
        session_id: int,
        *,
        problem_index: int,
        user_solution: Sequence[str],
        solve_time_ms: int,
        click_count: int,
    ) -> ShapeRotationResult:
        """Validate and verify without persisting anything."""

        game = self.require_session(session_id)
        self._validate(
            ANSWER_PIPELINE,
            game=game,
            action="shape_rotation_answer",
            trial_count=len(game.problems),
            submission={"problem_index": problem_index, "user_solution": list(user_solution)},
        )

        problem = game.problems[problem_index]
        return ShapeRotationResult(
            session_id=game.session_id,
            problem_index=problem_index,
            problem_id=problem.id,
            user_solution=tuple(user_solution),
            is_correct=verify_solution(problem, user_solution),
            solve_time_ms=solve_time_ms,
            click_count=click_count,
        )

    async def submit_answer(
        self,
        session_id: int,
        *,
        problem_index: int,
        user_solution: Sequence[str],
        solve_time_ms: int,
        click_count: int,
    ) -> PendingSave:
        """Verify now, persist in the background. Await `PendingSave.saved` to observe the write."""

        result = self.check_answer(
            session_id,
            problem_index=problem_index,
            user_solution=user_solution,
            solve_time_ms=solve_time_ms,
            click_count=click_count,
        )
        game = self.require_session(session_id)
        task = asyncio.create_task(self._persist_in_background(game, result))
        return PendingSave(result=result, saved=task)

    async def _persist_in_background(self, game: ShapeRotationGame, result: ShapeRotationResult) -> None:
        await asyncio.to_thread(self._persist, result)
        if game.phase == SessionPhase.in_progress:
            self.sessions.record_answer(game, str(result.problem_index))
