from alembic import op
import sqlalchemy as sa


revision = "0002_admin_notes"
down_revision = "0001_init"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "admin_notes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False, server_default=""),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("color", sa.String(50), nullable=False, server_default="default"),
        sa.Column("is_pinned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_admin_notes_id", "admin_notes", ["id"])
    op.create_index("ix_admin_notes_user_id", "admin_notes", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_admin_notes_user_id", table_name="admin_notes")
    op.drop_index("ix_admin_notes_id", table_name="admin_notes")
    op.drop_table("admin_notes")
