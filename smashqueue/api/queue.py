"""Queue API endpoints."""

from fastapi import APIRouter

from smashqueue.api.deps import QueueCaller, QueueMember, QueueSvc, QueueViewer
from smashqueue.schemas import (
    ApiResponse,
    CallNextRequest,
    CallNextResponse,
    ErrorResponse,
    QueueEntryResponse,
    QueueInfoResponse,
    QueueUpdateResponse,
)

router = APIRouter(prefix="/queue", tags=["Queue"])


@router.get(
    "",
    response_model=ApiResponse[QueueInfoResponse],
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_queue_status(caller: QueueViewer, queue: QueueSvc):
    """Get queue size and, if waiting, the caller's position and estimated wait."""
    info = await queue.status(caller.player_id)
    return ApiResponse(data=QueueInfoResponse.from_info(info))


@router.get(
    "/waiting",
    response_model=ApiResponse[list[QueueEntryResponse]],
    responses={
        403: {"model": ErrorResponse, "description": "Organizer or admin only"},
    },
)
async def list_waiting(caller: QueueCaller, queue: QueueSvc):
    """List waiting players in call order with tier and hand preference."""
    waiting = await queue.list_waiting()
    return ApiResponse(data=[QueueEntryResponse.from_waiting(w) for w in waiting])


@router.post(
    "/join",
    response_model=ApiResponse[QueueUpdateResponse],
    responses={
        409: {"model": ErrorResponse, "description": "Already in queue"},
    },
)
async def join_queue(caller: QueueMember, queue: QueueSvc):
    """Join the end of the queue."""
    update = await queue.join(caller.player_id)
    return ApiResponse(
        data=QueueUpdateResponse(
            entry=QueueEntryResponse.from_entry(update.entry, update.info.your_position),
            info=QueueInfoResponse.from_info(update.info),
            message="Joined the queue",
        )
    )


@router.post(
    "/leave",
    response_model=ApiResponse[QueueUpdateResponse],
    responses={
        404: {"model": ErrorResponse, "description": "Not in queue"},
    },
)
async def leave_queue(caller: QueueMember, queue: QueueSvc):
    """Leave the queue. Players behind move up."""
    update = await queue.leave(caller.player_id)
    return ApiResponse(
        data=QueueUpdateResponse(
            entry=QueueEntryResponse.from_entry(update.entry),
            info=QueueInfoResponse.from_info(update.info),
            message="Left the queue",
        )
    )


@router.post(
    "/call",
    response_model=ApiResponse[CallNextResponse],
    responses={
        403: {"model": ErrorResponse, "description": "Organizer or admin only"},
        409: {"model": ErrorResponse, "description": "Not enough players waiting"},
    },
)
async def call_next(
    caller: QueueCaller,
    queue: QueueSvc,
    request_body: CallNextRequest | None = None,
):
    """Call the longest-waiting players (4 by default) to the courts."""
    count = request_body.count if request_body else None
    called = await queue.call_next(count)
    return ApiResponse(
        data=CallNextResponse(called=[QueueEntryResponse.from_entry(e) for e in called])
    )
