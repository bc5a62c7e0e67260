"""Create users, content tables and the unified interactions table."""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

revision: str = "20261001_0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

TIMESTAMP_DEFAULT = sa.text("CURRENT_TIMESTAMP")


def _counter_columns() -> list[sa.Column]:
    return [
        sa.Column("likes_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("follows_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("watches_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
    ]


def _created_at_column() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=TIMESTAMP_DEFAULT,
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("username", sa.String(length=30), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=80), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        _created_at_column(),
        *_counter_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "projects",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        _created_at_column(),
        *_counter_columns(),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_projects_owner_created_at",
        "projects",
        ["owner_id", "created_at"],
        unique=False,
    )

    for table_name, text_column in (("posts", "content"), ("articles", "body")):
        op.create_table(
            table_name,
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("author_id", sa.String(length=36), nullable=False),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column(text_column, sa.Text(), nullable=True),
            _created_at_column(),
            *_counter_columns(),
            sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            f"ix_{table_name}_author_created_at",
            table_name,
            ["author_id", "created_at"],
            unique=False,
        )

    op.create_table(
        "interactions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("entity_type", sa.String(length=16), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        _created_at_column(),
        sa.CheckConstraint(
            "kind IN ('like', 'follow', 'watch')",
            name="ck_interactions_kind",
        ),
        sa.CheckConstraint(
            "entity_type IN ('user', 'project', 'post', 'article')",
            name="ck_interactions_entity_type",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id",
            "entity_type",
            "entity_id",
            "kind",
            name="uq_interactions_user_entity_kind",
        ),
    )
    op.create_index(
        "ix_interactions_kind_entity",
        "interactions",
        ["kind", "entity_type", "entity_id"],
        unique=False,
    )
    op.create_index(
        "ix_interactions_kind_user_created_at",
        "interactions",
        ["kind", "user_id", "entity_type", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_interactions_kind_user_created_at", table_name="interactions")
    op.drop_index("ix_interactions_kind_entity", table_name="interactions")
    op.drop_table("interactions")
    for table_name in ("articles", "posts"):
        op.drop_index(f"ix_{table_name}_author_created_at", table_name=table_name)
        op.drop_table(table_name)
    op.drop_index("ix_projects_owner_created_at", table_name="projects")
    op.drop_table("projects")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
