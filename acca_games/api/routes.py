from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from acca_games.api.deps import GameServices, get_services
from acca_games.api.models import (
    CatChaserAnswerRequest,
    CatChaserGame,
    CatChaserResult,
    CatChaserSettings,
    CountComparisonAnswerRequest,
    CountComparisonGame,
    CountComparisonProblem,
    CountComparisonResult,
    CountComparisonSettings,
    GameCode,
    GameSessionRecord,
    GameSessionState,
    NBackAnswerRequest,
    NBackGame,
    NBackResult,
    NBackSettings,
    NumberPressingGame,
    NumberPressingR1AnswerRequest,
    NumberPressingR2AnswerRequest,
    NumberPressingResultR1,
    NumberPressingResultR2,
    NumberPressingSettings,
    RpsAnswerRequest,
    RpsGame,
    RpsResult,
    RpsSettings,
    SessionListResponse,
    SessionResultsResponse,
    SessionStatsResponse,
    ShapeRotationAnswerRequest,
    ShapeRotationGame,
    ShapeRotationResult,
    ShapeRotationSettings,
)
from acca_games.errors import GameNotStarted, PersistenceFailure
from acca_games.games.nback import shape_groups
from acca_games.stats import session_stats

router = APIRouter()


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, GameNotStarted):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, PersistenceFailure):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


def _require_record(services: GameServices, session_id: int) -> GameSessionRecord:
    try:
        record = services.store.get_session(session_id)
    except PersistenceFailure as e:
        raise _http_error(e) from e
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return record


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


# --- N-Back -------------------------------------------------------------------


@router.get("/n-back/shape-groups")
async def n_back_shape_groups() -> dict[str, list[str]]:
    return shape_groups()


@router.post("/n-back/sessions", response_model=NBackGame, status_code=status.HTTP_201_CREATED)
async def start_n_back(payload: NBackSettings, services: GameServices = Depends(get_services)) -> NBackGame:
    try:
        return services.n_back.start_game(payload)
    except (ValueError, PersistenceFailure) as e:
        raise _http_error(e) from e


@router.post("/n-back/sessions/{session_id}/answers", response_model=NBackResult)
async def answer_n_back(
    session_id: int,
    payload: NBackAnswerRequest,
    services: GameServices = Depends(get_services),
) -> NBackResult:
    try:
        return services.n_back.submit_answer(
            session_id,
            trial_index=payload.trial_index,
            player_choice=payload.player_choice,
            response_time_ms=payload.response_time_ms,
        )
    except (ValueError, PersistenceFailure) as e:
        raise _http_error(e) from e


@router.post("/n-back/sessions/{session_id}/end", response_model=GameSessionState)
async def end_n_back(session_id: int, services: GameServices = Depends(get_services)) -> GameSessionState:
    try:
        return services.n_back.end_game(session_id)
    except ValueError as e:
        raise _http_error(e) from e


# --- Shape rotation -------------------------------------------------------------


@router.post("/shape-rotation/sessions", response_model=ShapeRotationGame, status_code=status.HTTP_201_CREATED)
async def start_shape_rotation(
    payload: ShapeRotationSettings,
    services: GameServices = Depends(get_services),
) -> ShapeRotationGame:
    try:
        return services.shape_rotation.start_game(payload)
    except (ValueError, PersistenceFailure) as e:
        raise _http_error(e) from e


@router.post("/shape-rotation/sessions/{session_id}/answers", response_model=ShapeRotationResult)
async def answer_shape_rotation(
    session_id: int,
    payload: ShapeRotationAnswerRequest,
    services: GameServices = Depends(get_services),
) -> ShapeRotationResult:
    try:
        pending = await services.shape_rotation.submit_answer(
            session_id,
            problem_index=payload.problem_index,
            user_solution=payload.user_solution,
            solve_time_ms=payload.solve_time_ms,
            click_count=payload.click_count,
        )
        await pending.saved
    except (ValueError, PersistenceFailure) as e:
        raise _http_error(e) from e
    return pending.result


@router.post("/shape-rotation/sessions/{session_id}/end", response_model=GameSessionState)
async def end_shape_rotation(session_id: int, services: GameServices = Depends(get_services)) -> GameSessionState:
    try:
        return services.shape_rotation.end_game(session_id)
    except ValueError as e:
        raise _http_error(e) from e


# --- Count comparison -----------------------------------------------------------


@router.post(
    "/count-comparison/sessions",
    response_model=CountComparisonGame,
    status_code=status.HTTP_201_CREATED,
)
async def start_count_comparison(
    payload: CountComparisonSettings,
    services: GameServices = Depends(get_services),
) -> CountComparisonGame:
    try:
        return services.count_comparison.start_game(payload)
    except (ValueError, PersistenceFailure) as e:
        raise _http_error(e) from e


@router.get("/count-comparison/sessions/{session_id}/next-problem", response_model=CountComparisonProblem | None)
async def next_count_comparison_problem(
    session_id: int,
    services: GameServices = Depends(get_services),
) -> CountComparisonProblem | None:
    try:
        return services.count_comparison.next_problem(session_id)
    except ValueError as e:
        raise _http_error(e) from e


@router.post("/count-comparison/sessions/{session_id}/answers", response_model=CountComparisonResult)
async def answer_count_comparison(
    session_id: int,
    payload: CountComparisonAnswerRequest,
    services: GameServices = Depends(get_services),
) -> CountComparisonResult:
    try:
        return services.count_comparison.submit_answer(
            session_id,
            problem_number=payload.problem_number,
            player_choice=payload.player_choice,
            response_time_ms=payload.response_time_ms,
        )
    except (ValueError, PersistenceFailure) as e:
        raise _http_error(e) from e


@router.post("/count-comparison/sessions/{session_id}/end", response_model=GameSessionState)
async def end_count_comparison(session_id: int, services: GameServices = Depends(get_services)) -> GameSessionState:
    try:
        return services.count_comparison.end_game(session_id)
    except ValueError as e:
        raise _http_error(e) from e


# --- Number pressing ------------------------------------------------------------


@router.post(
    "/number-pressing/sessions",
    response_model=NumberPressingGame,
    status_code=status.HTTP_201_CREATED,
)
async def start_number_pressing(
    payload: NumberPressingSettings,
    services: GameServices = Depends(get_services),
) -> NumberPressingGame:
    try:
        return services.number_pressing.start_game(payload)
    except (ValueError, PersistenceFailure) as e:
        raise _http_error(e) from e


@router.post("/number-pressing/sessions/{session_id}/answers/r1", response_model=NumberPressingResultR1)
async def answer_number_pressing_r1(
    session_id: int,
    payload: NumberPressingR1AnswerRequest,
    services: GameServices = Depends(get_services),
) -> NumberPressingResultR1:
    try:
        return services.number_pressing.submit_r1(
            session_id,
            problem_index=payload.problem_index,
            pressed_number=payload.pressed_number,
            time_taken=payload.time_taken,
        )
    except (ValueError, PersistenceFailure) as e:
        raise _http_error(e) from e


@router.post("/number-pressing/sessions/{session_id}/answers/r2", response_model=NumberPressingResultR2)
async def answer_number_pressing_r2(
    session_id: int,
    payload: NumberPressingR2AnswerRequest,
    services: GameServices = Depends(get_services),
) -> NumberPressingResultR2:
    try:
        return services.number_pressing.submit_r2(
            session_id,
            problem_index=payload.problem_index,
            player_clicks=payload.player_clicks,
            time_taken=payload.time_taken,
        )
    except (ValueError, PersistenceFailure) as e:
        raise _http_error(e) from e


@router.post("/number-pressing/sessions/{session_id}/end", response_model=GameSessionState)
async def end_number_pressing(session_id: int, services: GameServices = Depends(get_services)) -> GameSessionState:
    try:
        return services.number_pressing.end_game(session_id)
    except ValueError as e:
        raise _http_error(e) from e


# --- Cat chaser -----------------------------------------------------------------


# Serialized as-is: re-validating the dump would trip over the excluded ground-truth fields.
@router.post("/cat-chaser/sessions", response_model=None, status_code=status.HTTP_201_CREATED)
async def start_cat_chaser(payload: CatChaserSettings, services: GameServices = Depends(get_services)) -> CatChaserGame:
    try:
        return services.cat_chaser.start_game(payload)
    except (ValueError, PersistenceFailure) as e:
        raise _http_error(e) from e


@router.post("/cat-chaser/sessions/{session_id}/answers", response_model=CatChaserResult)
async def answer_cat_chaser(
    session_id: int,
    payload: CatChaserAnswerRequest,
    services: GameServices = Depends(get_services),
) -> CatChaserResult:
    try:
        return services.cat_chaser.submit_answer(
            session_id,
            round=payload.round,
            target_color=payload.target_color,
            player_choice=payload.player_choice,
            confidence=payload.confidence,
            response_time_ms=payload.response_time_ms,
        )
    except (ValueError, PersistenceFailure) as e:
        raise _http_error(e) from e


@router.post("/cat-chaser/sessions/{session_id}/end", response_model=GameSessionState)
async def end_cat_chaser(session_id: int, services: GameServices = Depends(get_services)) -> GameSessionState:
    try:
        return services.cat_chaser.end_game(session_id)
    except ValueError as e:
        raise _http_error(e) from e


# --- Rock-paper-scissors --------------------------------------------------------


@router.post("/rps/sessions", response_model=RpsGame, status_code=status.HTTP_201_CREATED)
async def start_rps(payload: RpsSettings, services: GameServices = Depends(get_services)) -> RpsGame:
    try:
        return services.rps.start_game(payload)
    except (ValueError, PersistenceFailure) as e:
        raise _http_error(e) from e


@router.post("/rps/sessions/{session_id}/answers", response_model=RpsResult)
async def answer_rps(
    session_id: int,
    payload: RpsAnswerRequest,
    services: GameServices = Depends(get_services),
) -> RpsResult:
    try:
        return services.rps.submit_answer(
            session_id,
            question_num=payload.question_num,
            player_choice=payload.player_choice,
            response_time_ms=payload.response_time_ms,
        )
    except (ValueError, PersistenceFailure) as e:
        raise _http_error(e) from e


@router.post("/rps/sessions/{session_id}/end", response_model=GameSessionState)
async def end_rps(session_id: int, services: GameServices = Depends(get_services)) -> GameSessionState:
    try:
        return services.rps.end_game(session_id)
    except ValueError as e:
        raise _http_error(e) from e


# --- Stored sessions --------------------------------------------------------------


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions_route(
    game_code: GameCode,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    services: GameServices = Depends(get_services),
) -> SessionListResponse:
    try:
        sessions, total = services.store.list_sessions(game_code=game_code, page=page, limit=limit)
    except (ValueError, PersistenceFailure) as e:
        raise _http_error(e) from e
    return SessionListResponse(sessions=sessions, total_count=total)


@router.get("/sessions/{session_id}", response_model=GameSessionRecord)
async def get_session_route(session_id: int, services: GameServices = Depends(get_services)) -> GameSessionRecord:
    return _require_record(services, session_id)


@router.get("/sessions/{session_id}/results", response_model=SessionResultsResponse)
async def get_session_results(
    session_id: int,
    services: GameServices = Depends(get_services),
) -> SessionResultsResponse:
    record = _require_record(services, session_id)
    try:
        results = services.store.get_results(session_id)
    except PersistenceFailure as e:
        raise _http_error(e) from e
    return SessionResultsResponse(session=record, results=[r.model_dump(mode="json") for r in results])


@router.get("/sessions/{session_id}/stats", response_model=SessionStatsResponse)
async def get_session_stats(
    session_id: int,
    services: GameServices = Depends(get_services),
) -> SessionStatsResponse:
    record = _require_record(services, session_id)
    try:
        results = services.store.get_results(session_id)
    except PersistenceFailure as e:
        raise _http_error(e) from e
    return session_stats(record.id, record.game_code, results)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session_route(session_id: int, services: GameServices = Depends(get_services)) -> Response:
    try:
        deleted = services.store.delete_session(session_id)
    except PersistenceFailure as e:
        raise _http_error(e) from e
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
