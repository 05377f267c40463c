"""API response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from smashqueue.models.match import Match
from smashqueue.models.player import Player
from smashqueue.models.queue import QueueEntry
from smashqueue.schemas.common import BaseSchema
from smashqueue.services.match import MatchHistoryItem
from smashqueue.services.queue import QueueInfo, WaitingPosition


# =============================================================================
# Player Responses
# =============================================================================


class PlayerSummaryResponse(BaseSchema):
    """Player fields shown next to queue entries and team lists."""

    id: int
    username: str
    name: str
    skill_tier: str
    hand_preference: str


class PlayerStatsResponse(BaseModel):
    """Aggregate match statistics."""

    total_matches: int
    wins: int
    losses: int
    win_rate: float = Field(..., description="Percentage, one decimal place")
    current_streak: int = Field(..., description="Positive for wins, negative for losses")
    best_streak: int
    skill_level: str
    skill_points: int

    @classmethod
    def from_player(cls, player: Player) -> "PlayerStatsResponse":
        return cls(
            total_matches=player.total_matches,
            wins=player.wins,
            losses=player.losses,
            win_rate=round(player.win_rate, 1),
            current_streak=player.current_streak,
            best_streak=player.best_streak,
            skill_level=player.skill_level,
            skill_points=player.skill_points,
        )


class PlayerProfileResponse(BaseModel):
    """Detailed player profile with stats."""

    id: int
    username: str
    name: str
    phone: str
    bio: str
    role: str
    hand_preference: str
    skill_tier: str
    is_active: bool
    created_at: datetime | None = None
    stats: PlayerStatsResponse

    @classmethod
    def from_player(cls, player: Player) -> "PlayerProfileResponse":
        return cls(
            id=player.id,
            username=player.username,
            name=player.name,
            phone=player.phone,
            bio=player.bio,
            role=player.role,
            hand_preference=player.hand_preference,
            skill_tier=player.skill_tier,
            is_active=player.is_active,
            created_at=player.created_at,
            stats=PlayerStatsResponse.from_player(player),
        )


# =============================================================================
# Queue Responses
# =============================================================================


class QueueEntryResponse(BaseModel):
    """A queue entry with its player."""

    id: int
    player_id: int
    status: str
    position: int | None = Field(None, description="1-based, waiting entries only")
    joined_at: datetime
    called_at: datetime | None = None
    player: PlayerSummaryResponse | None = None

    @classmethod
    def from_entry(cls, entry: QueueEntry, position: int | None = None) -> "QueueEntryResponse":
        return cls(
            id=entry.id,
            player_id=entry.player_id,
            status=entry.status,
            position=position,
            joined_at=entry.joined_at,
            called_at=entry.called_at,
            player=PlayerSummaryResponse.model_validate(entry.player) if entry.player else None,
        )

    @classmethod
    def from_waiting(cls, waiting: WaitingPosition) -> "QueueEntryResponse":
        return cls.from_entry(waiting.entry, waiting.position)


class QueueInfoResponse(BaseModel):
    """Queue status, from the caller's point of view."""

    total_in_queue: int
    your_position: int | None = None
    your_status: str | None = None
    estimated_wait: str | None = Field(None, description="'Next up!' or '~N min'")
    estimated_wait_minutes: int | None = None
    next_court: str | None = None
    currently_playing: list[QueueEntryResponse] = Field(default_factory=list)

    @classmethod
    def from_info(cls, info: QueueInfo) -> "QueueInfoResponse":
        return cls(
            total_in_queue=info.total_in_queue,
            your_position=info.your_position,
            your_status=info.your_status,
            estimated_wait=info.estimated_wait,
            estimated_wait_minutes=info.estimated_wait_minutes,
            next_court=info.next_court,
            currently_playing=[QueueEntryResponse.from_entry(e) for e in info.currently_playing],
        )


class QueueUpdateResponse(BaseModel):
    """Result of a join or leave."""

    entry: QueueEntryResponse
    info: QueueInfoResponse
    message: str


class CallNextResponse(BaseModel):
    """Players called to the courts, in call order."""

    called: list[QueueEntryResponse]


# =============================================================================
# Match Responses
# =============================================================================


class GameScoreResponse(BaseSchema):
    """Points for one game."""

    game: int
    team1_score: int
    team2_score: int


class MatchResponse(BaseModel):
    """Match with teams, scores and result."""

    id: int
    court: str
    status: str
    result: str
    team1: list[int]
    team2: list[int]
    team1_players: list[PlayerSummaryResponse]
    team2_players: list[PlayerSummaryResponse]
    scores: list[GameScoreResponse]
    started_at: datetime
    ended_at: datetime | None = None
    created_by: int | None = None

    @classmethod
    def from_match(cls, match: Match) -> "MatchResponse":
        players = {
            1: [PlayerSummaryResponse.model_validate(p.player) for p in match.participants if p.team == 1],
            2: [PlayerSummaryResponse.model_validate(p.player) for p in match.participants if p.team == 2],
        }
        return cls(
            id=match.id,
            court=match.court,
            status=match.status,
            result=match.result,
            team1=match.team1,
            team2=match.team2,
            team1_players=players[1],
            team2_players=players[2],
            scores=[GameScoreResponse.model_validate(s) for s in match.scores],
            started_at=match.started_at,
            ended_at=match.ended_at,
            created_by=match.created_by,
        )


class MatchHistoryResponse(MatchResponse):
    """A match from one player's point of view."""

    outcome: str | None = Field(None, description="win, loss or draw; null while active")
    won: bool

    @classmethod
    def from_history(cls, item: MatchHistoryItem) -> "MatchHistoryResponse":
        base = MatchResponse.from_match(item.match)
        return cls(
            **base.model_dump(),
            outcome=item.outcome.value if item.outcome else None,
            won=item.won,
        )


class CompletedMatchesResponse(BaseModel):
    """A page of completed matches."""

    items: list[MatchResponse]
    total: int
    limit: int
    offset: int
