from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        "calendar_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("entry_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("pets", sa.JSON(), nullable=False),
        sa.Column("reason", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("neighbor_distance_range", sa.Integer(), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("end_date > start_date", name="ck_calendar_entries_end_after_start"),
        sa.CheckConstraint(
            "neighbor_distance_range IS NULL OR neighbor_distance_range BETWEEN 1 AND 50",
            name="ck_calendar_entries_distance_range",
        ),
    )
    op.create_index("ix_calendar_entries_entry_id", "calendar_entries", ["entry_id"], unique=True)
    op.create_index("ix_calendar_entries_user_id", "calendar_entries", ["user_id"], unique=False)
    op.create_index("ix_calendar_entries_type", "calendar_entries", ["type"], unique=False)
    op.create_index("ix_calendar_entries_status", "calendar_entries", ["status"], unique=False)
    op.create_index(
        "ix_calendar_entries_overlap",
        "calendar_entries",
        ["user_id", "start_date", "end_date", "is_deleted"],
        unique=False,
    )

def downgrade():
    op.drop_index("ix_calendar_entries_overlap", table_name="calendar_entries")
    op.drop_index("ix_calendar_entries_status", table_name="calendar_entries")
    op.drop_index("ix_calendar_entries_type", table_name="calendar_entries")
    op.drop_index("ix_calendar_entries_user_id", table_name="calendar_entries")
    op.drop_index("ix_calendar_entries_entry_id", table_name="calendar_entries")
    op.drop_table("calendar_entries")
