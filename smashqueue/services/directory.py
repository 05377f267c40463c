"""Player directory: listing, profiles and admin edits."""

from enum import Enum

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from smashqueue.config import get_settings
from smashqueue.logging_config import get_logger
from smashqueue.models.base import utcnow
from smashqueue.models.player import (
    SKILL_TIER_ORDER,
    HandPreference,
    Player,
    Role,
    SkillTier,
)
from smashqueue.models.queue import ACTIVE_QUEUE_STATUSES, QueueEntry, QueueStatus
from smashqueue.services.locks import WriteLocks, critical_section
from smashqueue.services.notifier import StateEvent, StateNotifier
from smashqueue.utils.errors import (
    ConflictError,
    ErrorCode,
    InvalidHandPreferenceError,
    InvalidSkillTierError,
    PlayerNotFoundError,
    ValidationError,
    storage_errors,
)
from smashqueue.utils.retry import retry_read
from smashqueue.utils.sql import escape_like_pattern

logger = get_logger(__name__)


class PlayerSort(str, Enum):
    """Orderings for the admin player list."""

    NAME = "name"
    SKILL_TIER = "skill_tier"
    WIN_RATE = "win_rate"
    TOTAL_MATCHES = "total_matches"


_TIER_RANK = case(
    {tier.value: tier.rank for tier in SKILL_TIER_ORDER},
    value=Player.skill_tier,
    else_=-1,
)

_WIN_RATE = func.coalesce(
    Player.wins * 100.0 / func.nullif(Player.total_matches, 0),
    0,
)

_SORT_ORDER = {
    PlayerSort.NAME: (Player.name.asc(), Player.id.asc()),
    PlayerSort.SKILL_TIER: (_TIER_RANK.desc(), Player.name.asc(), Player.id.asc()),
    PlayerSort.WIN_RATE: (_WIN_RATE.desc(), Player.total_matches.desc(), Player.id.asc()),
    PlayerSort.TOTAL_MATCHES: (Player.total_matches.desc(), Player.name.asc(), Player.id.asc()),
}


def parse_skill_tier(value: str | SkillTier) -> SkillTier:
    try:
        return SkillTier(value)
    except ValueError as e:
        raise InvalidSkillTierError(str(value), SkillTier.values()) from e


def parse_hand_preference(value: str | HandPreference) -> HandPreference:
    try:
        return HandPreference(value)
    except ValueError as e:
        raise InvalidHandPreferenceError(str(value)) from e


class DirectoryService:
    """Service for reading and editing player records."""

    def __init__(
        self,
        db: AsyncSession,
        locks: WriteLocks | None = None,
        notifier: StateNotifier | None = None,
    ):
        self.db = db
        self.locks = locks
        self.notifier = notifier or StateNotifier()
        self.settings = get_settings()

    async def _get_player(self, player_id: int) -> Player:
        player = await self.db.get(Player, player_id)
        if player is None:
            raise PlayerNotFoundError(player_id)
        return player

    # =========================================================================
    # Read path
    # =========================================================================

    @retry_read
    async def get_profile(self, player_id: int) -> Player:
        """Get a player with their stats.

        Raises:
            PlayerNotFoundError: Unknown player
        """
        async with storage_errors(self.db):
            return await self._get_player(player_id)

    @retry_read
    async def list_players(
        self,
        search: str | None = None,
        page: int = 1,
        page_size: int | None = None,
        sort: PlayerSort | str = PlayerSort.NAME,
    ) -> tuple[list[Player], int]:
        """List players with optional free-text filter.

        Args:
            search: Case-insensitive substring of name, username or phone
            page: Page number (1-indexed)
            page_size: Items per page, capped by ``admin_page_size_max``
            sort: Ordering, name by default

        Returns:
            Tuple of (players list, total count)
        """
        if page_size is None:
            page_size = self.settings.admin_page_size_default
        if page < 1 or not 1 <= page_size <= self.settings.admin_page_size_max:
            raise ValidationError(
                "Invalid pagination",
                details={
                    "page": page,
                    "pageSize": page_size,
                    "maxPageSize": self.settings.admin_page_size_max,
                },
            )
        try:
            sort = PlayerSort(sort)
        except ValueError as e:
            raise ValidationError(
                f"Invalid sort: {sort}",
                details={"allowed": [s.value for s in PlayerSort]},
            ) from e

        query = select(Player)
        count_query = select(func.count(Player.id))

        search = (search or "").strip()
        if search:
            escaped_search = escape_like_pattern(search)
            search_filter = (
                Player.name.ilike(f"%{escaped_search}%", escape="\\")
                | Player.username.ilike(f"%{escaped_search}%", escape="\\")
                | Player.phone.ilike(f"%{escaped_search}%", escape="\\")
            )
            query = query.where(search_filter)
            count_query = count_query.where(search_filter)

        offset = (page - 1) * page_size
        query = query.order_by(*_SORT_ORDER[sort]).offset(offset).limit(page_size)

        async with storage_errors(self.db):
            total = await self.db.scalar(count_query) or 0
            result = await self.db.execute(query)
            players = list(result.scalars().all())

        return players, total

    # =========================================================================
    # Write path
    # =========================================================================

    async def create_player(
        self,
        username: str,
        name: str,
        role: Role | str = Role.PLAYER,
        phone: str = "",
        bio: str = "",
        hand_preference: HandPreference | str = HandPreference.RIGHT,
        skill_tier: SkillTier | str = SkillTier.N,
    ) -> Player:
        """Insert a directory record. Registration itself happens elsewhere.

        Raises:
            ConflictError: Username already taken
        """
        try:
            role = Role(role)
        except ValueError as e:
            raise ValidationError(f"Invalid role: {role}") from e

        player = Player(
            username=username,
            name=name,
            role=role.value,
            phone=phone,
            bio=bio,
            hand_preference=parse_hand_preference(hand_preference).value,
            skill_tier=parse_skill_tier(skill_tier).value,
            is_active=True,
        )
        self.db.add(player)
        try:
            async with storage_errors():
                await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(
                "Username already taken",
                code=ErrorCode.USERNAME_EXISTS,
                details={"username": username},
            ) from e

        logger.info("player_created", player_id=player.id, role=player.role)
        return player

    async def update_player_admin(
        self,
        player_id: int,
        hand_preference: str | None = None,
        skill_tier: str | None = None,
    ) -> Player:
        """Admin edit of hand preference and skill tier; nothing else.

        Raises:
            InvalidSkillTierError: Tier outside BG..A
            InvalidHandPreferenceError: Not left/right
            PlayerNotFoundError: Unknown player
        """
        hand = parse_hand_preference(hand_preference) if hand_preference is not None else None
        tier = parse_skill_tier(skill_tier) if skill_tier is not None else None

        async with storage_errors(self.db):
            player = await self._get_player(player_id)
            changes = {}
            if hand is not None and player.hand_preference != hand.value:
                changes["hand_preference"] = (player.hand_preference, hand.value)
                player.hand_preference = hand.value
            if tier is not None and player.skill_tier != tier.value:
                changes["skill_tier"] = (player.skill_tier, tier.value)
                player.skill_tier = tier.value
            await self.db.commit()

        logger.info("player_admin_updated", player_id=player_id, changes=changes)
        await self.notifier.publish(StateEvent.PLAYER_UPDATED, player_id=player_id)
        return player

    async def update_profile(
        self,
        player_id: int,
        name: str | None = None,
        bio: str | None = None,
        phone: str | None = None,
    ) -> Player:
        """Self-service edit of display fields. ``None`` or blank phone keeps the old value."""
        if name is not None and not name.strip():
            raise ValidationError("name cannot be empty", details={"field": "name"})

        async with storage_errors(self.db):
            player = await self._get_player(player_id)
            if name is not None:
                player.name = name.strip()
            if bio is not None:
                player.bio = bio
            if phone:
                player.phone = phone
            await self.db.commit()

        logger.info("player_profile_updated", player_id=player_id)
        return player

    async def set_active(self, player_id: int, is_active: bool) -> Player:
        """Soft-disable or re-enable a player.

        Disabling also closes the player's waiting or called queue entry so
        they cannot be called.
        """
        if is_active or self.locks is None:
            async with storage_errors(self.db):
                player = await self._get_player(player_id)
                player.is_active = is_active
                await self.db.commit()
            closed = 0
        else:
            async with critical_section(self.db, self.locks.queue):
                player = await self._get_player(player_id)
                player.is_active = False
                result = await self.db.execute(
                    select(QueueEntry).where(
                        QueueEntry.player_id == player_id,
                        QueueEntry.status.in_(ACTIVE_QUEUE_STATUSES),
                    )
                )
                entries = list(result.scalars().all())
                now = utcnow()
                for entry in entries:
                    entry.status = QueueStatus.LEFT.value
                    entry.closed_at = now
                await self.db.commit()
            closed = len(entries)

        logger.info(
            "player_status_changed",
            player_id=player_id,
            is_active=is_active,
            closed_queue_entries=closed,
        )
        await self.notifier.publish(
            StateEvent.PLAYER_UPDATED,
            player_id=player_id,
            is_active=is_active,
        )
        return player
