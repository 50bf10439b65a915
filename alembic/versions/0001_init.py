"""initial schema with row level security

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

CURRENT_USER = "current_setting('app.user_id', true)"


def _owned_columns():
    return [
        sa.Column('owner_id', sa.String(length=64), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _enable_rls(table: str) -> None:
    op.execute(f'ALTER TABLE {table} ENABLE ROW LEVEL SECURITY')
    op.execute(f'ALTER TABLE {table} FORCE ROW LEVEL SECURITY')


def _owner_write_policies(table: str) -> None:
    op.execute(f"CREATE POLICY {table}_insert ON {table} FOR INSERT WITH CHECK (owner_id = {CURRENT_USER})")
    op.execute(
        f"CREATE POLICY {table}_update ON {table} FOR UPDATE "
        f"USING (owner_id = {CURRENT_USER}) WITH CHECK (owner_id = {CURRENT_USER})"
    )
    op.execute(f"CREATE POLICY {table}_delete ON {table} FOR DELETE USING (owner_id = {CURRENT_USER})")


def upgrade() -> None:
    op.create_table('user',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.Text(), nullable=True, unique=True),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('password_hash', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )
    op.create_table('threads',
        sa.Column('thread_id', sa.String(length=64), primary_key=True),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('metadata', postgresql.JSON(), nullable=True),
        *_owned_columns(),
    )
    op.create_table('wardrobe_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=True),
        sa.Column('brand', sa.String(length=100), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('colors', postgresql.JSON(), nullable=True),
        sa.Column('fabrics', postgresql.JSON(), nullable=True),
        sa.Column('seasons', postgresql.JSON(), nullable=True),
        sa.Column('tags', postgresql.JSON(), nullable=True),
        sa.Column('price', sa.Float(), nullable=True),
        sa.Column('dress_codes', postgresql.JSON(), nullable=True),
        sa.Column('gender', sa.String(length=16), nullable=True),
        sa.Column('size', sa.String(length=20), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('source', sa.String(length=32), nullable=False, server_default='manual'),
        sa.Column('metadata', postgresql.JSON(), nullable=True),
        *_owned_columns(),
    )
    op.create_index('ix_wardrobe_items_owner_created', 'wardrobe_items', ['owner_id', sa.text('created_at DESC')])
    op.create_index(
        'ix_wardrobe_items_product_url',
        'wardrobe_items',
        ['owner_id', sa.text("(metadata->>'product_url')")],
    )
    op.create_table('lookbooks',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('cover_image_url', sa.Text(), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        *_owned_columns(),
    )
    op.create_table('lookbook_wardrobe_items',
        sa.Column('lookbook_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('lookbooks.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('wardrobe_item_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('wardrobe_items.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('category', sa.String(length=32), nullable=True),
        sa.Column('role', sa.String(length=32), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )
    op.create_index('ix_lookbook_items_item', 'lookbook_wardrobe_items', ['wardrobe_item_id'])

    # threads and lookbooks: readable when owned or public, writable when owned
    for table in ('threads', 'lookbooks'):
        _enable_rls(table)
        op.execute(
            f"CREATE POLICY {table}_select ON {table} FOR SELECT "
            f"USING (owner_id = {CURRENT_USER} OR is_public)"
        )
        _owner_write_policies(table)

    # wardrobe items are private, except when linked into a visible lookbook
    _enable_rls('wardrobe_items')
    op.execute(
        "CREATE POLICY wardrobe_items_select ON wardrobe_items FOR SELECT USING ("
        f"owner_id = {CURRENT_USER} OR EXISTS ("
        "SELECT 1 FROM lookbook_wardrobe_items l JOIN lookbooks b ON b.id = l.lookbook_id "
        "WHERE l.wardrobe_item_id = wardrobe_items.id))"
    )
    _owner_write_policies('wardrobe_items')

    # links follow their lookbook for reads; both ends must be owned for writes
    _enable_rls('lookbook_wardrobe_items')
    op.execute(
        "CREATE POLICY lookbook_items_select ON lookbook_wardrobe_items FOR SELECT USING ("
        "EXISTS (SELECT 1 FROM lookbooks b WHERE b.id = lookbook_id))"
    )
    owned_ends = (
        f"EXISTS (SELECT 1 FROM lookbooks b WHERE b.id = lookbook_id AND b.owner_id = {CURRENT_USER}) "
        f"AND EXISTS (SELECT 1 FROM wardrobe_items w WHERE w.id = wardrobe_item_id AND w.owner_id = {CURRENT_USER})"
    )
    op.execute(f"CREATE POLICY lookbook_items_insert ON lookbook_wardrobe_items FOR INSERT WITH CHECK ({owned_ends})")
    op.execute(
        "CREATE POLICY lookbook_items_update ON lookbook_wardrobe_items FOR UPDATE USING ("
        f"EXISTS (SELECT 1 FROM lookbooks b WHERE b.id = lookbook_id AND b.owner_id = {CURRENT_USER})"
        f") WITH CHECK ({owned_ends})"
    )
    op.execute(
        "CREATE POLICY lookbook_items_delete ON lookbook_wardrobe_items FOR DELETE USING ("
        f"EXISTS (SELECT 1 FROM lookbooks b WHERE b.id = lookbook_id AND b.owner_id = {CURRENT_USER}))"
    )


def downgrade() -> None:
    op.drop_table('lookbook_wardrobe_items')
    op.drop_table('lookbooks')
    op.drop_table('wardrobe_items')
    op.drop_table('threads')
    op.drop_table('user')
