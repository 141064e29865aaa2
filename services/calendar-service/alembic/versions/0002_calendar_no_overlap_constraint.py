"""
No two live entries of one user may overlap.

PostgreSQL only: an EXCLUDE USING gist constraint over half-open tstzrange
values, skipping soft-deleted rows. '[)' matches the application check,
so back-to-back entries (end_A == start_B) are allowed. The store maps a
violation of this constraint to OverlappingEntryError.
"""
from alembic import op

revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None

CONSTRAINT = "calendar_entries_no_overlap"

def upgrade():
    if op.get_bind().dialect.name != "postgresql":
        return
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    op.execute(
        f"""
        ALTER TABLE calendar_entries
        ADD CONSTRAINT {CONSTRAINT}
        EXCLUDE USING gist (
            user_id WITH =,
            tstzrange(start_date, end_date, '[)') WITH &&
        ) WHERE (NOT is_deleted)
        """
    )

def downgrade():
    if op.get_bind().dialect.name != "postgresql":
        return
    op.execute(f"ALTER TABLE calendar_entries DROP CONSTRAINT IF EXISTS {CONSTRAINT}")
