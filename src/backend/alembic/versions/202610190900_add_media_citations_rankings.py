"""add_media_citations_rankings

Revision ID: 202610190900
Revises: 202610120900
Create Date: 2026-10-19 09:00:00.000000

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '202610190900'
down_revision = '202610120900'
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def _location_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(['location_id'], ['gmb_locations.id'], ondelete='CASCADE')


def upgrade() -> None:
    op.create_table(
        'gmb_media',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('location_id', sa.String(length=36), nullable=False),
        sa.Column('media_type', sa.String(length=32), nullable=False, server_default='photo'),
        sa.Column('url', sa.String(length=1000), nullable=False),
        sa.Column('caption', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=64), nullable=True),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        *_timestamps(),
        _location_fk(),
        sa.PrimaryKeyConstraint('id', name='pk_gmb_media'),
    )
    op.create_index('ix_gmb_media_location_id', 'gmb_media', ['location_id'])

    op.create_table(
        'gmb_citations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('location_id', sa.String(length=36), nullable=False),
        sa.Column('directory_name', sa.String(length=200), nullable=False),
        sa.Column('directory_url', sa.String(length=1000), nullable=False),
        sa.Column('citation_url', sa.String(length=1000), nullable=True),
        sa.Column('business_name', sa.String(length=300), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('website', sa.String(length=500), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('last_checked', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _location_fk(),
        sa.PrimaryKeyConstraint('id', name='pk_gmb_citations'),
    )
    op.create_index('ix_gmb_citations_location_id', 'gmb_citations', ['location_id'])

    op.create_table(
        'gmb_rankings',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('location_id', sa.String(length=36), nullable=False),
        sa.Column('keyword', sa.String(length=300), nullable=False),
        sa.Column('current_position', sa.Integer(), nullable=True),
        sa.Column('previous_position', sa.Integer(), nullable=True),
        sa.Column('best_position', sa.Integer(), nullable=True),
        sa.Column('search_volume', sa.Integer(), nullable=True),
        sa.Column('difficulty', sa.String(length=32), nullable=True),
        sa.Column('last_checked', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _location_fk(),
        sa.PrimaryKeyConstraint('id', name='pk_gmb_rankings'),
        sa.UniqueConstraint('location_id', 'keyword', name='uq_gmb_rankings_location_keyword'),
    )


def downgrade() -> None:
    op.drop_table('gmb_rankings')
    op.drop_index('ix_gmb_citations_location_id', table_name='gmb_citations')
    op.drop_table('gmb_citations')
    op.drop_index('ix_gmb_media_location_id', table_name='gmb_media')
    op.drop_table('gmb_media')
