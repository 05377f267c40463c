"""Match API endpoints."""

from fastapi import APIRouter, Query, status

from smashqueue.api.deps import CurrentCaller, MatchManager, MatchSvc
from smashqueue.middleware.sentry import set_match_context
from smashqueue.schemas import (
    ApiResponse,
    CreateMatchRequest,
    ErrorResponse,
    MatchHistoryResponse,
    MatchResponse,
    RecordResultRequest,
)
from smashqueue.services.match import GameScoreInput

router = APIRouter(prefix="/matches", tags=["Matches"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[MatchResponse],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid teams"},
        403: {"model": ErrorResponse, "description": "Organizer or admin only"},
        409: {"model": ErrorResponse, "description": "Player already in an active match"},
    },
)
async def create_match(
    request_body: CreateMatchRequest,
    caller: MatchManager,
    matches: MatchSvc,
):
    """Put two teams on a court. Their queue entries are consumed."""
    match = await matches.create_match(
        court=request_body.court,
        team1=request_body.team1,
        team2=request_body.team2,
        created_by=caller.player_id,
    )
    return ApiResponse(data=MatchResponse.from_match(match))


@router.put(
    "/result",
    response_model=ApiResponse[MatchResponse],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid scores"},
        404: {"model": ErrorResponse, "description": "Match not found"},
        409: {"model": ErrorResponse, "description": "Match already completed"},
    },
)
async def record_result(
    request_body: RecordResultRequest,
    caller: MatchManager,
    matches: MatchSvc,
):
    """Record game scores and complete the match."""
    set_match_context(match_id=request_body.match_id)
    match = await matches.record_result(
        request_body.match_id,
        [GameScoreInput(s.team1_score, s.team2_score) for s in request_body.scores],
    )
    return ApiResponse(data=MatchResponse.from_match(match))


@router.get("/active", response_model=ApiResponse[list[MatchResponse]])
async def list_active_matches(matches: MatchSvc):
    """Matches currently on court. Public."""
    active = await matches.list_active()
    return ApiResponse(data=[MatchResponse.from_match(m) for m in active])


@router.get("", response_model=ApiResponse[list[MatchHistoryResponse]])
async def get_my_matches(
    caller: CurrentCaller,
    matches: MatchSvc,
    limit: int | None = Query(None, ge=1, le=100),
):
    """The caller's own match history, newest first."""
    history = await matches.player_history(caller.player_id, limit)
    return ApiResponse(data=[MatchHistoryResponse.from_history(h) for h in history])
