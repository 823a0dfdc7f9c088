"""create_portal_tables

Revision ID: 3b1f6c2a9d40
Revises:
Create Date: 2026-10-19 10:12:41.518203

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3b1f6c2a9d40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk(comment: str | None = None) -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=False),
        nullable=False,
        server_default=sa.text("gen_random_uuid()"),
        comment=comment,
    )


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=255), nullable=False, comment="Auth provider user ID"),
        sa.Column("email", sa.String(length=255), nullable=False, comment="User email address"),
        sa.Column("first_name", sa.String(length=255), nullable=True),
        sa.Column("last_name", sa.String(length=255), nullable=True),
        sa.Column("company", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("app_name", sa.String(length=255), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("approved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("profile_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "discovery_status",
            sa.String(length=20),
            nullable=False,
            server_default="pending",
            comment="pending|scheduled|complete",
        ),
        sa.Column("discovery_scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "proposal_status",
            sa.String(length=20),
            nullable=False,
            server_default="pending",
            comment="pending|sent|reviewed",
        ),
        sa.Column("proposal_url", sa.Text(), nullable=True),
        sa.Column(
            "invoice_status",
            sa.String(length=20),
            nullable=False,
            server_default="pending",
            comment="pending|sent|paid",
        ),
        sa.Column("invoice_url", sa.Text(), nullable=True),
        sa.Column("invoice_amount_cents", sa.Integer(), nullable=True),
        sa.Column("last_email_status", sa.String(length=20), nullable=True),
        sa.Column("last_email_opened_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
            comment="Record creation timestamp",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
            comment="Record last update timestamp",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=False)

    op.create_table(
        "projects",
        _uuid_pk("Project UUID"),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("tagline", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "owner_id",
            sa.String(length=255),
            nullable=False,
            comment="Client the project belongs to",
        ),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_projects_owner_id"), "projects", ["owner_id"], unique=False)

    op.create_table(
        "screens",
        _uuid_pk("Screen UUID"),
        sa.Column("project_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_screens_project_id"), "screens", ["project_id"], unique=False)
    op.create_index(
        "idx_screens_project_created", "screens", ["project_id", "created_at"], unique=False
    )

    op.create_table(
        "tasks",
        _uuid_pk("Task UUID"),
        sa.Column("screen_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.String(length=20),
            nullable=False,
            server_default="not_started",
            comment="not_started|in_progress|waiting|review|done",
        ),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(["screen_id"], ["screens.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tasks_screen_id"), "tasks", ["screen_id"], unique=False)
    op.create_index("idx_tasks_screen_created", "tasks", ["screen_id", "created_at"], unique=False)

    op.create_table(
        "task_history",
        _uuid_pk(),
        sa.Column("task_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("edited_by", sa.String(length=255), nullable=True),
        sa.Column(
            "edited_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_task_history_task_id"), "task_history", ["task_id"], unique=False)
    op.create_index(
        "idx_task_history_task_edited", "task_history", ["task_id", "edited_at"], unique=False
    )

    op.create_table(
        "screen_history",
        _uuid_pk(),
        sa.Column("screen_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("edited_by", sa.String(length=255), nullable=True),
        sa.Column(
            "edited_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(["screen_id"], ["screens.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_screen_history_screen_id"), "screen_history", ["screen_id"], unique=False
    )
    op.create_index(
        "idx_screen_history_screen_edited",
        "screen_history",
        ["screen_id", "edited_at"],
        unique=False,
    )

    op.create_table(
        "email_history",
        _uuid_pk("Email record UUID"),
        sa.Column("user_id", sa.String(length=255), nullable=False, comment="Recipient user ID"),
        sa.Column("project_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("sent_by", sa.String(length=255), nullable=True),
        sa.Column("email_subject", sa.Text(), nullable=False),
        sa.Column("personal_message", sa.Text(), nullable=False),
        sa.Column(
            "changes_snapshot",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            comment="Task statuses at send time plus the reported change summary",
        ),
        sa.Column(
            "email_sent_successfully", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column(
            "sent_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_email_history_user_id"), "email_history", ["user_id"], unique=False)
    op.create_index(
        op.f("ix_email_history_project_id"), "email_history", ["project_id"], unique=False
    )
    op.create_index(
        "idx_email_history_project_sent", "email_history", ["project_id", "sent_at"], unique=False
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("idx_email_history_project_sent", table_name="email_history")
    op.drop_index(op.f("ix_email_history_project_id"), table_name="email_history")
    op.drop_index(op.f("ix_email_history_user_id"), table_name="email_history")
    op.drop_table("email_history")

    op.drop_index("idx_screen_history_screen_edited", table_name="screen_history")
    op.drop_index(op.f("ix_screen_history_screen_id"), table_name="screen_history")
    op.drop_table("screen_history")

    op.drop_index("idx_task_history_task_edited", table_name="task_history")
    op.drop_index(op.f("ix_task_history_task_id"), table_name="task_history")
    op.drop_table("task_history")

    op.drop_index("idx_tasks_screen_created", table_name="tasks")
    op.drop_index(op.f("ix_tasks_screen_id"), table_name="tasks")
    op.drop_table("tasks")

    op.drop_index("idx_screens_project_created", table_name="screens")
    op.drop_index(op.f("ix_screens_project_id"), table_name="screens")
    op.drop_table("screens")

    op.drop_index(op.f("ix_projects_owner_id"), table_name="projects")
    op.drop_table("projects")

    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
