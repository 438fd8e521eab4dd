from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class GameCode(StrEnum):
    N_BACK = "N_BACK"
    RPS = "RPS"
    COUNT_COMPARISON = "COUNT_COMPARISON"
    NUMBER_PRESSING = "NUMBER_PRESSING"
    SHAPE_ROTATION = "SHAPE_ROTATION"
    CAT_CHASER = "CAT_CHASER"


class SessionPhase(StrEnum):
    not_started = "not_started"
    in_progress = "in_progress"
    complete = "complete"
    abandoned = "abandoned"


# --- Settings --------------------------------------------------------------


class NBackSettings(BaseModel):
    num_trials: int = Field(..., ge=1, le=500)
    presentation_time_ms: int = Field(1000, ge=0)
    # 1 => 2-back only, 2 => mixed 2-back / 3-back
    n_back_level: Literal[1, 2] = 1
    shape_group: str = "random"
    is_real_mode: bool = False


class ShapeRotationSettings(BaseModel):
    num_problems: int = Field(..., ge=1, le=200)
    time_limit_sec: int = Field(180, ge=0)
    # 1 => letter shapes, 2 => grid shapes. Anything else plays round 1.
    round: int = 1
    is_real_mode: bool = False


class CountComparisonSettings(BaseModel):
    num_problems: int = Field(..., ge=1, le=500)
    presentation_time_ms: int = Field(1500, ge=0)
    input_time_ms: int = Field(3000, ge=0)
    is_real_mode: bool = False


class NumberPressingSettings(BaseModel):
    rounds: list[Literal[1, 2]] = Field(default_factory=lambda: [1, 2], min_length=1)
    problems_per_round: int = Field(..., ge=1, le=200)
    time_limit_r1: int = Field(10, ge=0)
    time_limit_r2: int = Field(20, ge=0)
    is_real_mode: bool = False


class CatChaserSettings(BaseModel):
    num_trials: int = Field(..., ge=1, le=500)
    # "auto" or a literal mouse count such as "8".
    difficulty: str = "auto"
    show_time_sec: float = Field(1.0, ge=0)
    response_time_limit_sec: float = Field(5.0, ge=0)
    is_real_mode: bool = False


class RpsSettings(BaseModel):
    rounds: list[Literal[1, 2, 3]] = Field(default_factory=lambda: [1, 2, 3], min_length=1)
    questions_per_round: int = Field(..., ge=1, le=200)
    time_limit_ms: int = Field(1500, ge=0)
    is_real_mode: bool = False


# --- Problems (immutable once generated) -----------------------------------


class Problem(BaseModel):
    model_config = ConfigDict(frozen=True)


class ShapeRotationProblem(Problem):
    id: int
    round: int
    initial_shape: str
    final_shape: str
    initial_grid_path: str | None = None
    final_grid_path: str | None = None
    initial_center_x: float
    initial_center_y: float
    final_center_x: float
    final_center_y: float
    # Explicit transform center; None means "centroid of the shape's points".
    transform_center: tuple[float, float] | None = None
    min_moves: int
    solution: tuple[str, ...]


class WordDetail(Problem):
    text: str = ""
    size: float = 0.0
    weight: int = 0
    is_gap: bool = False
    gap_width: float = 0.0


class AppliedTrap(Problem):
    type: Literal["GapProbability", "FontSize", "FontWeight"]
    applied_to: Literal["left", "right"]


class DensityParams(Problem):
    area_multiplier: float
    gap_probability: float


class DensityInfo(Problem):
    left: DensityParams
    right: DensityParams


class CountComparisonProblem(Problem):
    problem_number: int
    left_words: tuple[WordDetail, ...]
    right_words: tuple[WordDetail, ...]
    left_word_text: str
    right_word_text: str
    left_count: int
    right_count: int
    density: DensityInfo
    presentation_time_ms: int
    input_time_ms: int
    correct_side: Literal["left", "right"]
    applied_traps: tuple[AppliedTrap, ...] = ()


class NumberPressingProblemR1(Problem):
    target_number: int


class NumberPressingProblemR2(Problem):
    double_click: tuple[int, ...] = ()
    skip: tuple[int, ...] = ()


class CatChaserProblem(Problem):
    round: int
    mice_positions: tuple[int, ...]
    cat_positions: tuple[int, ...]
    red_cat_index: int
    blue_cat_index: int
    # Ground truth stays server-side.
    red_cat: Literal["CAUGHT", "MISSED"] = Field(exclude=True)
    blue_cat: Literal["CAUGHT", "MISSED"] = Field(exclude=True)


class RpsProblem(Problem):
    round: int
    problem_card_holder: Literal["me", "opponent"]
    given_card: Literal["ROCK", "PAPER", "SCISSORS"]


# --- Per-session engine state ----------------------------------------------


class GameSessionState(BaseModel):
    session_id: int
    game_code: GameCode
    started_at: datetime

    # For reproducibility/debugging.
    seed: int

    phase: SessionPhase = SessionPhase.not_started

    # Keys of trials that have at least one stored answer. When every expected
    # key has been answered the session completes.
    answered: set[str] = Field(default_factory=set)
    expected_answers: int


class NBackGame(GameSessionState):
    game_code: GameCode = GameCode.N_BACK
    settings: NBackSettings
    shape_sequence: list[str]


class ShapeRotationGame(GameSessionState):
    game_code: GameCode = GameCode.SHAPE_ROTATION
    settings: ShapeRotationSettings
    problems: list[ShapeRotationProblem]


class CountComparisonGame(GameSessionState):
    game_code: GameCode = GameCode.COUNT_COMPARISON
    settings: CountComparisonSettings
    problems: list[CountComparisonProblem]
    next_problem_index: int = 0


class NumberPressingGame(GameSessionState):
    game_code: GameCode = GameCode.NUMBER_PRESSING
    settings: NumberPressingSettings
    problems_r1: list[NumberPressingProblemR1]
    problems_r2: list[NumberPressingProblemR2]


class CatChaserGame(GameSessionState):
    game_code: GameCode = GameCode.CAT_CHASER
    settings: CatChaserSettings
    problems: list[CatChaserProblem]


class RpsGame(GameSessionState):
    game_code: GameCode = GameCode.RPS
    settings: RpsSettings
    problems: list[RpsProblem]


# --- Results (the only thing that gets persisted besides the session) -------


class GameResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: int
    is_correct: bool


class NBackResult(GameResult):
    round: int
    question_num: int
    response_time_ms: int
    player_choice: str
    correct_choice: str


class ShapeRotationResult(GameResult):
    problem_index: int
    problem_id: int
    user_solution: tuple[str, ...]
    solve_time_ms: int
    click_count: int


class CountComparisonResult(GameResult):
    problem_number: int
    response_time_ms: int
    player_choice: str
    correct_choice: str
    left_word: str
    right_word: str
    left_word_count: int
    right_word_count: int
    applied_traps: tuple[AppliedTrap, ...] = ()


class NumberPressingResultR1(GameResult):
    problem_index: int
    problem: NumberPressingProblemR1
    pressed_number: int
    time_taken: float


class NumberPressingResultR2(GameResult):
    problem_index: int
    problem: NumberPressingProblemR2
    player_clicks: tuple[int, ...]
    correct_clicks: tuple[int, ...]
    time_taken: float


class CatChaserResult(GameResult):
    round: int
    target_color: str
    player_choice: str
    confidence: int
    correct_choice: str
    score: float
    response_time_ms: int


class RpsResult(GameResult):
    round: int
    question_num: int
    problem_card_holder: str
    given_card: str
    response_time_ms: int
    player_choice: str
    correct_choice: str


RESULT_MODELS: dict[str, type[GameResult]] = {
    m.__name__: m
    for m in (
        NBackResult,
        ShapeRotationResult,
        CountComparisonResult,
        NumberPressingResultR1,
        NumberPressingResultR2,
        CatChaserResult,
        RpsResult,
    )
}


# --- Requests ----------------------------------------------------------------


class NBackAnswerRequest(BaseModel):
    trial_index: int
    player_choice: str
    response_time_ms: int = Field(0, ge=0)


class ShapeRotationAnswerRequest(BaseModel):
    problem_index: int
    user_solution: list[str] = Field(default_factory=list)
    solve_time_ms: int = Field(0, ge=0)
    click_count: int = Field(0, ge=0)


class CountComparisonAnswerRequest(BaseModel):
    problem_number: int
    player_choice: str
    response_time_ms: int = Field(0, ge=0)


class NumberPressingR1AnswerRequest(BaseModel):
    problem_index: int
    pressed_number: int
    time_taken: float = Field(0.0, ge=0)


class NumberPressingR2AnswerRequest(BaseModel):
    problem_index: int
    player_clicks: list[int] = Field(default_factory=list)
    time_taken: float = Field(0.0, ge=0)


class CatChaserAnswerRequest(BaseModel):
    round: int
    target_color: str
    player_choice: str
    # Ignored for TIMEOUT answers.
    confidence: int = 0
    response_time_ms: int = Field(0, ge=0)


class RpsAnswerRequest(BaseModel):
    question_num: int
    player_choice: str
    response_time_ms: int = Field(0, ge=0)


# --- Stored sessions + stats --------------------------------------------------


class GameSessionRecord(BaseModel):
    id: int
    game_code: GameCode
    play_datetime: datetime
    settings: dict[str, Any] = Field(default_factory=dict)


class SessionListResponse(BaseModel):
    sessions: list[GameSessionRecord]
    total_count: int


class SessionResultsResponse(BaseModel):
    session: GameSessionRecord
    results: list[dict[str, Any]]


class SessionSummary(BaseModel):
    session_id: int
    total_questions: int
    total_correct: int
    accuracy: float
    average_time: float
    time_unit: Literal["ms", "s"] = "ms"


class TrapStat(BaseModel):
    trap_type: str
    total_questions: int
    total_correct: int
    accuracy: float
    average_response_time_ms: float


class RoundStat(BaseModel):
    round: int
    total_questions: int
    total_correct: int
    accuracy: float
    average_time: float
    # Only meaningful for cat chaser.
    total_score: float | None = None


class SessionStatsResponse(BaseModel):
    summary: SessionSummary
    trap_stats: list[TrapStat] = Field(default_factory=list)
    round_stats: list[RoundStat] = Field(default_factory=list)
    total_score: float | None = None
