"""Create guilds, users and members tables

Revision ID: 5c1e7a20b9d4
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "5c1e7a20b9d4"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "guilds",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("cakes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_guilds_cakes", "guilds", ["cakes"])
    op.create_index("ix_guilds_points", "guilds", ["points"])

    op.create_table(
        "users",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("cakes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_users_cakes", "users", ["cakes"])
    op.create_index("ix_users_points", "users", ["points"])

    op.create_table(
        "members",
        sa.Column(
            "user_id",
            sa.String(32),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "guild_id",
            sa.String(32),
            sa.ForeignKey("guilds.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("cakes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("cakes_today", sa.Integer(), nullable=True),
        sa.Column("cakes_today_reset", sa.Integer(), nullable=True),
    )
    op.create_index("ix_members_cakes", "members", ["cakes"])
    op.create_index("ix_members_points", "members", ["points"])
    op.create_index("ix_members_guild_id", "members", ["guild_id"])


def downgrade() -> None:
    op.drop_table("members")
    op.drop_table("users")
    op.drop_table("guilds")
