from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "game",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("stat_schema", sa.JSON(), nullable=False),
        sa.Column("ranking_weights", sa.JSON(), nullable=False),
        sa.Column("platform_id_format", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "player_stats",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("player_id", sa.String(), nullable=False),
        sa.Column("game_id", sa.String(), sa.ForeignKey("game.id"), nullable=False),
        sa.Column("stats", sa.JSON(), nullable=False),
        sa.Column("matches_played", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("ranking_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("tier", sa.String(), nullable=False, server_default="beginner"),
        sa.Column("last_match_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.UniqueConstraint(
            "player_id", "game_id", name="uq_player_stats_player_id_game_id"
        ),
    )
    op.create_index(
        "ix_player_stats_game_score", "player_stats", ["game_id", "ranking_score"]
    )
    op.create_table(
        "match",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("tournament_id", sa.String(), nullable=False),
        sa.Column("team_id", sa.String(), nullable=False),
        sa.Column("game_id", sa.String(), sa.ForeignKey("game.id"), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("team_placement", sa.Integer(), nullable=False),
        sa.Column("team_kills", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("screenshot_url", sa.String(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("submitted_by", sa.String(), nullable=False),
        sa.Column("verified_by", sa.String(), nullable=True),
        sa.Column("verified_at", sa.DateTime(), nullable=True),
        sa.Column("stats_applied_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
    )
    op.create_index("ix_match_status_created", "match", ["status", "created_at"])
    op.create_index("ix_match_tournament", "match", ["tournament_id"])
    op.create_index("ix_match_team", "match", ["team_id"])
    op.create_table(
        "match_player_stat",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column(
            "match_id",
            sa.String(),
            sa.ForeignKey("match.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("player_id", sa.String(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("kills", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("damage", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("assists", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("deaths", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("downs", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("custom_stats", sa.JSON(), nullable=False),
        sa.UniqueConstraint(
            "match_id", "player_id", name="uq_match_player_stat_match_id_player_id"
        ),
    )
    op.create_index(
        "ix_match_player_stat_player_id", "match_player_stat", ["player_id"]
    )


def downgrade():
    op.drop_index("ix_match_player_stat_player_id", table_name="match_player_stat")
    op.drop_table("match_player_stat")
    op.drop_index("ix_match_team", table_name="match")
    op.drop_index("ix_match_tournament", table_name="match")
    op.drop_index("ix_match_status_created", table_name="match")
    op.drop_table("match")
    op.drop_index("ix_player_stats_game_score", table_name="player_stats")
    op.drop_table("player_stats")
    op.drop_table("game")
