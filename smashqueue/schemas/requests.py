"""API request schemas.

Team sizes, skill tiers and hand preferences are validated by the services
so clients get the domain error codes (INVALID_TEAMS, INVALID_SKILL_TIER,
...) rather than a generic validation error.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Queue Requests
# =============================================================================


class CallNextRequest(BaseModel):
    """Call the next players from the queue."""

    count: int | None = Field(
        default=None,
        ge=1,
        le=16,
        description="Players to call (defaults to 4, a doubles match)",
    )


# =============================================================================
# Match Requests
# =============================================================================


class CreateMatchRequest(BaseModel):
    """Match creation request."""

    court: str = Field(..., max_length=50, description="Court identifier, e.g. 'Court 1'")
    team1: list[int] = Field(..., description="Team 1 player ids (1-2)")
    team2: list[int] = Field(..., description="Team 2 player ids (1-2)")


class GameScoreRequest(BaseModel):
    """Points for one game."""

    team1_score: int
    team2_score: int


class RecordResultRequest(BaseModel):
    """Match result submission."""

    match_id: int
    scores: list[GameScoreRequest] = Field(..., description="1-3 game scores in play order")

    @field_validator("scores", mode="before")
    @classmethod
    def accept_score_pairs(cls, v: Any) -> Any:
        """Allow ``[[21, 15], [18, 21]]`` as shorthand for score objects."""
        if not isinstance(v, list):
            return v
        converted = []
        for item in v:
            if isinstance(item, (list, tuple)):
                if len(item) != 2:
                    raise ValueError("Each game score pair must have exactly two values")
                converted.append({"team1_score": item[0], "team2_score": item[1]})
            else:
                converted.append(item)
        return converted


# =============================================================================
# Player Requests
# =============================================================================


class UpdateProfileRequest(BaseModel):
    """Self-service profile update. Omitted fields are unchanged."""

    name: str | None = Field(default=None, max_length=100)
    bio: str | None = Field(default=None, max_length=500)
    phone: str | None = Field(default=None, max_length=20)


class AdminUpdatePlayerRequest(BaseModel):
    """Admin edit of a player's hand preference and skill tier."""

    hand_preference: str | None = Field(default=None, description="left or right")
    skill_tier: str | None = Field(default=None, description="One of BG, S-, S, N, P-, P, P+, C, B, A")


class AdminPlayerStatusRequest(BaseModel):
    """Enable or soft-disable a player."""

    is_active: bool
