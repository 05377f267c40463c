"""initial schema: players, queue, matches, scores, stats ledger

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "players",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(20), nullable=False, server_default=""),
        sa.Column("bio", sa.Text, nullable=False, server_default=""),
        sa.Column("role", sa.String(20), nullable=False, server_default="player"),
        sa.Column("hand_preference", sa.String(10), nullable=False, server_default="right"),
        sa.Column("skill_tier", sa.String(5), nullable=False, server_default="N"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("total_matches", sa.Integer, nullable=False, server_default="0"),
        sa.Column("wins", sa.Integer, nullable=False, server_default="0"),
        sa.Column("losses", sa.Integer, nullable=False, server_default="0"),
        sa.Column("current_streak", sa.Integer, nullable=False, server_default="0"),
        sa.Column("best_streak", sa.Integer, nullable=False, server_default="0"),
        sa.Column("skill_level", sa.String(20), nullable=False, server_default="Beginner"),
        sa.Column("skill_points", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_players"),
    )
    op.create_index("ix_players_username", "players", ["username"], unique=True)

    op.create_table(
        "matches",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("court", sa.String(50), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("result", sa.String(10), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_by",
            sa.Integer,
            sa.ForeignKey("players.id", name="fk_matches_created_by_players"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_matches"),
    )
    op.create_index("ix_matches_court", "matches", ["court"])
    op.create_index("ix_matches_status", "matches", ["status"])
    op.create_index("ix_matches_ended_at", "matches", ["ended_at"])

    op.create_table(
        "queue_entries",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "player_id",
            sa.Integer,
            sa.ForeignKey("players.id", name="fk_queue_entries_player_id_players"),
            nullable=False,
        ),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("called_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "match_id",
            sa.Integer,
            sa.ForeignKey("matches.id", name="fk_queue_entries_match_id_matches"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_queue_entries"),
    )
    op.create_index("ix_queue_entries_player_id", "queue_entries", ["player_id"])
    op.create_index("ix_queue_entries_match_id", "queue_entries", ["match_id"])
    # Call order: (joined_at, id) among one status
    op.create_index(
        "ix_queue_entries_status_joined",
        "queue_entries",
        ["status", "joined_at", "id"],
    )

    op.create_table(
        "match_participants",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "match_id",
            sa.Integer,
            sa.ForeignKey(
                "matches.id",
                name="fk_match_participants_match_id_matches",
                ondelete="CASCADE",
            ),
            nullable=False,
        ),
        sa.Column(
            "player_id",
            sa.Integer,
            sa.ForeignKey("players.id", name="fk_match_participants_player_id_players"),
            nullable=False,
        ),
        sa.Column("team", sa.Integer, nullable=False),
        sa.Column("slot", sa.Integer, nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_match_participants"),
        sa.UniqueConstraint("match_id", "player_id", name="uq_match_participant"),
    )
    op.create_index("ix_match_participants_match_id", "match_participants", ["match_id"])
    op.create_index("ix_match_participants_player_id", "match_participants", ["player_id"])

    op.create_table(
        "game_scores",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "match_id",
            sa.Integer,
            sa.ForeignKey(
                "matches.id",
                name="fk_game_scores_match_id_matches",
                ondelete="CASCADE",
            ),
            nullable=False,
        ),
        sa.Column("game", sa.Integer, nullable=False),
        sa.Column("team1_score", sa.Integer, nullable=False),
        sa.Column("team2_score", sa.Integer, nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_game_scores"),
        sa.UniqueConstraint("match_id", "game", name="uq_game_score_match_game"),
    )
    op.create_index("ix_game_scores_match_id", "game_scores", ["match_id"])

    # One row per (match, player) whose stats were applied
    op.create_table(
        "stats_ledger",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "match_id",
            sa.Integer,
            sa.ForeignKey(
                "matches.id",
                name="fk_stats_ledger_match_id_matches",
                ondelete="CASCADE",
            ),
            nullable=False,
        ),
        sa.Column(
            "player_id",
            sa.Integer,
            sa.ForeignKey("players.id", name="fk_stats_ledger_player_id_players"),
            nullable=False,
        ),
        sa.Column("outcome", sa.String(10), nullable=False),
        sa.Column("applied_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_stats_ledger"),
        sa.UniqueConstraint("match_id", "player_id", name="uq_stats_ledger_match_player"),
    )
    op.create_index("ix_stats_ledger_player_id", "stats_ledger", ["player_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_stats_ledger_player_id", table_name="stats_ledger")
    op.drop_table("stats_ledger")
    op.drop_index("ix_game_scores_match_id", table_name="game_scores")
    op.drop_table("game_scores")
    op.drop_index("ix_match_participants_player_id", table_name="match_participants")
    op.drop_index("ix_match_participants_match_id", table_name="match_participants")
    op.drop_table("match_participants")
    op.drop_index("ix_queue_entries_status_joined", table_name="queue_entries")
    op.drop_index("ix_queue_entries_match_id", table_name="queue_entries")
    op.drop_index("ix_queue_entries_player_id", table_name="queue_entries")
    op.drop_table("queue_entries")
    op.drop_index("ix_matches_ended_at", table_name="matches")
    op.drop_index("ix_matches_status", table_name="matches")
    op.drop_index("ix_matches_court", table_name="matches")
    op.drop_table("matches")
    op.drop_index("ix_players_username", table_name="players")
    op.drop_table("players")
