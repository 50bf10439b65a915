"""per-user avatar

Revision ID: 0002_avatars
Revises: 0001_init
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0002_avatars'
down_revision = '0001_init'
branch_labels = None
depends_on = None

CURRENT_USER = "current_setting('app.user_id', true)"


def upgrade() -> None:
    op.create_table('avatars',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('owner_id', sa.String(length=64), nullable=False, index=True),
        sa.Column('image_url', sa.Text(), nullable=False),
        sa.Column('height_cm', sa.Float(), nullable=False),
        sa.Column('weight_kg', sa.Float(), nullable=False),
        sa.Column('body_shape', sa.String(length=32), nullable=True),
        sa.Column('measurements', postgresql.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('owner_id', name='uq_avatars_owner'),
    )

    # avatars are private to their owner
    op.execute('ALTER TABLE avatars ENABLE ROW LEVEL SECURITY')
    op.execute('ALTER TABLE avatars FORCE ROW LEVEL SECURITY')
    op.execute(f"CREATE POLICY avatars_select ON avatars FOR SELECT USING (owner_id = {CURRENT_USER})")
    op.execute(f"CREATE POLICY avatars_insert ON avatars FOR INSERT WITH CHECK (owner_id = {CURRENT_USER})")
    op.execute(
        "CREATE POLICY avatars_update ON avatars FOR UPDATE "
        f"USING (owner_id = {CURRENT_USER}) WITH CHECK (owner_id = {CURRENT_USER})"
    )
    op.execute(f"CREATE POLICY avatars_delete ON avatars FOR DELETE USING (owner_id = {CURRENT_USER})")


def downgrade() -> None:
    op.drop_table('avatars')
