"""Create groups and users tables

Revision ID: 001
Revises: None
Create Date: 2026-01-15 00:00:00.000000+00:00

What:  Creates `groups` (study groups, soft-deletable) and `users` (accounts
       with a role and an optional group).

Constraints the API relies on:
    uq_groups_name / uq_users_email  → 409 CONFLICT on duplicates
    fk_users_group_id_groups         → 400 BAD_REQUEST for unknown groups

Rollback: downgrade() drops both tables (destructive, all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "groups",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "name",
            sa.String(100),
            nullable=False,
            comment="Display name, e.g. 'CS-101'; unique across all groups",
        ),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("semester", sa.Integer(), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_groups"),
        sa.UniqueConstraint("name", name="uq_groups_name"),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("role", sa.String(50), nullable=False, server_default=sa.text("'student'")),
        sa.Column("group_id", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "must_change_password",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], name="fk_users_group_id_groups"),
    )

    # Login looks users up by lower(email)
    op.create_index("idx_users_email_lower", "users", [sa.text("lower(email)")])
    op.create_index("idx_users_group_id", "users", ["group_id"])


def downgrade() -> None:
    op.drop_index("idx_users_group_id", table_name="users")
    op.drop_index("idx_users_email_lower", table_name="users")
    op.drop_table("users")
    op.drop_table("groups")
