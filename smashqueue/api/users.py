"""Profile API endpoints."""

from fastapi import APIRouter, Query

from smashqueue.api.deps import CurrentCaller, DirectorySvc, MatchSvc, ensure_self_or
from smashqueue.schemas import (
    ApiResponse,
    ErrorResponse,
    MatchHistoryResponse,
    PlayerProfileResponse,
    UpdateProfileRequest,
)
from smashqueue.utils.permissions import Capability

router = APIRouter(tags=["Users"])


@router.get(
    "/profile",
    response_model=ApiResponse[PlayerProfileResponse],
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_my_profile(caller: CurrentCaller, directory: DirectorySvc):
    """Get the caller's profile and stats."""
    player = await directory.get_profile(caller.player_id)
    return ApiResponse(data=PlayerProfileResponse.from_player(player))


@router.put(
    "/profile",
    response_model=ApiResponse[PlayerProfileResponse],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid profile data"},
    },
)
async def update_my_profile(
    request_body: UpdateProfileRequest,
    caller: CurrentCaller,
    directory: DirectorySvc,
):
    """Update the caller's name, bio or phone."""
    player = await directory.update_profile(
        caller.player_id,
        name=request_body.name,
        bio=request_body.bio,
        phone=request_body.phone,
    )
    return ApiResponse(data=PlayerProfileResponse.from_player(player))


@router.get(
    "/users/profile",
    response_model=ApiResponse[PlayerProfileResponse],
    responses={
        403: {"model": ErrorResponse, "description": "Organizer or admin only"},
        404: {"model": ErrorResponse, "description": "Player not found"},
    },
)
async def get_player_profile(
    caller: CurrentCaller,
    directory: DirectorySvc,
    player_id: int = Query(..., alias="id"),
):
    """Get any player's profile (own profile, or organizer/admin)."""
    ensure_self_or(caller, player_id, Capability.VIEW_ANY_PROFILE)
    player = await directory.get_profile(player_id)
    return ApiResponse(data=PlayerProfileResponse.from_player(player))


@router.get(
    "/users/matches",
    response_model=ApiResponse[list[MatchHistoryResponse]],
    responses={
        403: {"model": ErrorResponse, "description": "Organizer or admin only"},
        404: {"model": ErrorResponse, "description": "Player not found"},
    },
)
async def get_player_matches(
    caller: CurrentCaller,
    directory: DirectorySvc,
    matches: MatchSvc,
    player_id: int = Query(..., alias="id"),
    limit: int | None = Query(None, ge=1, le=100),
):
    """Get any player's match history (own history, or organizer/admin)."""
    ensure_self_or(caller, player_id, Capability.VIEW_ANY_PROFILE)
    await directory.get_profile(player_id)
    history = await matches.player_history(player_id, limit)
    return ApiResponse(data=[MatchHistoryResponse.from_history(h) for h in history])
