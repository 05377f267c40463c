"""Admin and organizer API endpoints."""

from fastapi import APIRouter, Query

from smashqueue.api.deps import (
    DirectorySvc,
    MatchSvc,
    MatchViewer,
    PlayerManager,
    StatsSvc,
)
from smashqueue.schemas import (
    AdminPlayerStatusRequest,
    AdminUpdatePlayerRequest,
    ApiResponse,
    CompletedMatchesResponse,
    ErrorResponse,
    MatchResponse,
    PaginatedData,
    PaginationMeta,
    PlayerProfileResponse,
)
from smashqueue.services.directory import PlayerSort

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get(
    "/matches/completed",
    response_model=ApiResponse[CompletedMatchesResponse],
    responses={
        403: {"model": ErrorResponse, "description": "Organizer or admin only"},
    },
)
async def list_completed_matches(
    caller: MatchViewer,
    matches: MatchSvc,
    limit: int | None = Query(None, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """Completed matches, most recently finished first."""
    items, total = await matches.list_completed(limit, offset)
    return ApiResponse(
        data=CompletedMatchesResponse(
            items=[MatchResponse.from_match(m) for m in items],
            total=total,
            limit=limit or matches.settings.completed_matches_limit_default,
            offset=offset,
        )
    )


@router.get(
    "/users",
    response_model=ApiResponse[PaginatedData[PlayerProfileResponse]],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid pagination"},
        403: {"model": ErrorResponse, "description": "Admin only"},
    },
)
async def list_players(
    caller: PlayerManager,
    directory: DirectorySvc,
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
    sort: PlayerSort = Query(PlayerSort.NAME),
):
    """List players with stats, filtered by name, username or phone."""
    players, total = await directory.list_players(
        search=search,
        page=page,
        page_size=page_size,
        sort=sort,
    )
    size = page_size or directory.settings.admin_page_size_default
    return ApiResponse(
        data=PaginatedData[PlayerProfileResponse](
            items=[PlayerProfileResponse.from_player(p) for p in players],
            pagination=PaginationMeta.build(page, size, total),
        )
    )


@router.put(
    "/users/{player_id}",
    response_model=ApiResponse[PlayerProfileResponse],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid skill tier or hand preference"},
        404: {"model": ErrorResponse, "description": "Player not found"},
    },
)
async def update_player(
    player_id: int,
    request_body: AdminUpdatePlayerRequest,
    caller: PlayerManager,
    directory: DirectorySvc,
):
    """Set a player's hand preference and skill tier."""
    player = await directory.update_player_admin(
        player_id,
        hand_preference=request_body.hand_preference,
        skill_tier=request_body.skill_tier,
    )
    return ApiResponse(data=PlayerProfileResponse.from_player(player))


@router.put(
    "/users/{player_id}/status",
    response_model=ApiResponse[PlayerProfileResponse],
    responses={
        404: {"model": ErrorResponse, "description": "Player not found"},
    },
)
async def set_player_status(
    player_id: int,
    request_body: AdminPlayerStatusRequest,
    caller: PlayerManager,
    directory: DirectorySvc,
):
    """Soft-disable or re-enable a player."""
    player = await directory.set_active(player_id, request_body.is_active)
    return ApiResponse(data=PlayerProfileResponse.from_player(player))


@router.post(
    "/users/{player_id}/stats/recompute",
    response_model=ApiResponse[PlayerProfileResponse],
    responses={
        404: {"model": ErrorResponse, "description": "Player not found"},
    },
)
async def recompute_player_stats(
    player_id: int,
    caller: PlayerManager,
    stats: StatsSvc,
):
    """Rebuild a player's stats from their completed matches."""
    player = await stats.recompute(player_id)
    return ApiResponse(data=PlayerProfileResponse.from_player(player))
