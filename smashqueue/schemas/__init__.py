"""Pydantic schemas for API requests and responses."""

from smashqueue.schemas.common import (
    ApiResponse,
    BaseSchema,
    ErrorDetail,
    ErrorResponse,
    MessageData,
    PaginatedData,
    PaginationMeta,
)
from smashqueue.schemas.requests import (
    AdminPlayerStatusRequest,
    AdminUpdatePlayerRequest,
    CallNextRequest,
    CreateMatchRequest,
    GameScoreRequest,
    RecordResultRequest,
    UpdateProfileRequest,
)
from smashqueue.schemas.responses import (
    CallNextResponse,
    CompletedMatchesResponse,
    GameScoreResponse,
    MatchHistoryResponse,
    MatchResponse,
    PlayerProfileResponse,
    PlayerStatsResponse,
    PlayerSummaryResponse,
    QueueEntryResponse,
    QueueInfoResponse,
    QueueUpdateResponse,
)

__all__ = [
    # Common
    "ApiResponse",
    "BaseSchema",
    "ErrorDetail",
    "ErrorResponse",
    "MessageData",
    "PaginatedData",
    "PaginationMeta",
    # Requests
    "AdminPlayerStatusRequest",
    "AdminUpdatePlayerRequest",
    "CallNextRequest",
    "CreateMatchRequest",
    "GameScoreRequest",
    "RecordResultRequest",
    "UpdateProfileRequest",
    # Responses
    "CallNextResponse",
    "CompletedMatchesResponse",
    "GameScoreResponse",
    "MatchHistoryResponse",
    "MatchResponse",
    "PlayerProfileResponse",
    "PlayerStatsResponse",
    "PlayerSummaryResponse",
    "QueueEntryResponse",
    "QueueInfoResponse",
    "QueueUpdateResponse",
]
