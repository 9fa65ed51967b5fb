"""Initial match engine schema

Revision ID: 4b7c2e91a0d3
Revises:
Create Date: 2026-10-17 09:12:44.518203

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4b7c2e91a0d3"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("username", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    # One row per ordered (actor, target) pair
    op.create_table(
        "interactions",
        sa.Column("actor_id", sa.String(50), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("target_id", sa.String(50), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column(
            "state",
            sa.Enum("none", "liked", "disliked", "matched", name="interactionstate", native_enum=False, length=20),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("matched_at", sa.DateTime(), nullable=True),
        sa.Column("unmatched_at", sa.DateTime(), nullable=True),
    )
    op.create_index("idx_interactions_target_state", "interactions", ["target_id", "state"])

    op.create_table(
        "blocks",
        sa.Column("blocker_id", sa.String(50), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("blocked_id", sa.String(50), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_blocks_blocked_id", "blocks", ["blocked_id"])

    op.create_table(
        "reports",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("reporter_id", sa.String(50), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("target_id", sa.String(50), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_reports_reporter_id", "reports", ["reporter_id"])
    op.create_index("ix_reports_target_id", "reports", ["target_id"])
    op.create_index("ix_reports_created_at", "reports", ["created_at"])

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("sender_id", sa.String(50), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("receiver_id", sa.String(50), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("read_at", sa.DateTime(), nullable=True),
    )
    op.create_index("idx_messages_pair", "messages", ["sender_id", "receiver_id"])
    op.create_index("idx_messages_unread", "messages", ["receiver_id", "is_read"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("idx_messages_unread", table_name="messages")
    op.drop_index("idx_messages_pair", table_name="messages")
    op.drop_table("messages")
    op.drop_index("ix_reports_created_at", table_name="reports")
    op.drop_index("ix_reports_target_id", table_name="reports")
    op.drop_index("ix_reports_reporter_id", table_name="reports")
    op.drop_table("reports")
    op.drop_index("ix_blocks_blocked_id", table_name="blocks")
    op.drop_table("blocks")
    op.drop_index("idx_interactions_target_state", table_name="interactions")
    op.drop_table("interactions")
    op.drop_table("users")
