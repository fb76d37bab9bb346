"""Create translations table.

Revision ID: create_translations_table
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'create_translations_table'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('translations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('locale', sa.String(length=16), nullable=False),
        sa.Column('namespace', sa.String(length=100), nullable=False, server_default='*'),
        sa.Column('group', sa.String(length=100), nullable=False),
        sa.Column('item', sa.String(length=255), nullable=False),
        sa.Column('text', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('locale', 'namespace', 'group', 'item', name='uq_translations_key')
    )

    # Bucket loads filter on these three columns
    op.create_index('ix_translations_bucket', 'translations', ['locale', 'namespace', 'group'], unique=False)


def downgrade():
    op.drop_index('ix_translations_bucket', table_name='translations')
    op.drop_table('translations')
