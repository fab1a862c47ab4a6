"""create_gmb_tables

Revision ID: 202610120900
Revises:
Create Date: 2026-10-12 09:00:00.000000

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '202610120900'
down_revision = None
branch_labels = None
depends_on = None

POST_TYPES = ('photo', 'event', 'offer', 'update')
POST_STATUSES = ('draft', 'scheduled', 'published', 'failed')
METRIC_TYPES = ('views', 'searches', 'calls', 'messages', 'directions', 'website_clicks')


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'gmb_accounts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('account_name', sa.String(length=300), nullable=False),
        sa.Column('account_email', sa.String(length=320), nullable=True),
        sa.Column('account_id', sa.String(length=128), nullable=True),
        sa.Column('access_token', sa.Text(), nullable=True),
        sa.Column('refresh_token', sa.Text(), nullable=True),
        sa.Column('token_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('last_sync', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_gmb_accounts'),
        sa.UniqueConstraint('user_id', 'account_id', name='uq_gmb_accounts_user_account'),
    )
    op.create_index('ix_gmb_accounts_user_id', 'gmb_accounts', ['user_id'])

    op.create_table(
        'gmb_locations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('gmb_account_id', sa.String(length=36), nullable=False),
        sa.Column('location_id', sa.String(length=255), nullable=False),
        sa.Column('location_name', sa.String(length=300), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('category', sa.String(length=200), nullable=True),
        sa.Column('website', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['gmb_account_id'], ['gmb_accounts.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_gmb_locations'),
    )
    op.create_index('ix_gmb_locations_location_id', 'gmb_locations', ['location_id'], unique=True)
    op.create_index('ix_gmb_locations_gmb_account_id', 'gmb_locations', ['gmb_account_id'])

    op.create_table(
        'gmb_reviews',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('location_id', sa.String(length=36), nullable=False),
        sa.Column('external_review_id', sa.String(length=255), nullable=True),
        sa.Column('review_name', sa.String(length=500), nullable=True),
        sa.Column('author_name', sa.String(length=300), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('review_text', sa.Text(), nullable=True),
        sa.Column('review_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('reply_text', sa.Text(), nullable=True),
        sa.Column('reply_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('has_reply', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        *_timestamps(),
        sa.CheckConstraint('rating >= 0 AND rating <= 5', name='ck_gmb_reviews_rating_range'),
        sa.ForeignKeyConstraint(['location_id'], ['gmb_locations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_gmb_reviews'),
    )
    op.create_index('ix_gmb_reviews_external_review_id', 'gmb_reviews', ['external_review_id'], unique=True)
    op.create_index('ix_gmb_reviews_location_id', 'gmb_reviews', ['location_id'])
    op.create_index('ix_gmb_reviews_review_date', 'gmb_reviews', ['review_date'])

    op.create_table(
        'gmb_posts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('location_id', sa.String(length=36), nullable=False),
        sa.Column('post_type', sa.Enum(*POST_TYPES, name='gmb_post_type'), nullable=False, server_default='update'),
        sa.Column('caption', sa.Text(), nullable=False),
        sa.Column('image_url', sa.String(length=1000), nullable=True),
        sa.Column('media_urls', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('external_post_id', sa.String(length=255), nullable=True),
        sa.Column('status', sa.Enum(*POST_STATUSES, name='gmb_post_status'), nullable=False, server_default='draft'),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('engagement', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['location_id'], ['gmb_locations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_gmb_posts'),
    )
    op.create_index('ix_gmb_posts_user_id', 'gmb_posts', ['user_id'])
    op.create_index('ix_gmb_posts_location_id', 'gmb_posts', ['location_id'])
    op.create_index('ix_gmb_posts_status', 'gmb_posts', ['status'])

    op.create_table(
        'gmb_insights',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('location_id', sa.String(length=36), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('metric_type', sa.Enum(*METRIC_TYPES, name='gmb_metric_type'), nullable=False),
        sa.Column('metric_value', sa.Float(), nullable=False, server_default='0'),
        sa.Column('source', sa.String(length=32), nullable=False, server_default=''),
        *_timestamps(),
        sa.ForeignKeyConstraint(['location_id'], ['gmb_locations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_gmb_insights'),
        sa.UniqueConstraint(
            'location_id', 'date', 'metric_type', 'source',
            name='uq_gmb_insights_location_date_metric_source',
        ),
    )

    op.create_table(
        'ai_settings',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('provider', sa.String(length=32), nullable=False),
        sa.Column('api_key', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='100'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_ai_settings'),
        sa.UniqueConstraint('user_id', 'provider', name='uq_ai_settings_user_provider'),
    )

    op.create_table(
        'ai_requests',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=True),
        sa.Column('provider', sa.String(length=32), nullable=False),
        sa.Column('model', sa.String(length=128), nullable=False),
        sa.Column('feature', sa.String(length=64), nullable=False),
        sa.Column('prompt_tokens', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('completion_tokens', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_tokens', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cost_usd', sa.Float(), nullable=False, server_default='0'),
        sa.Column('latency_ms', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('success', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_ai_requests'),
    )
    op.create_index('ix_ai_requests_user_id', 'ai_requests', ['user_id'])
    op.create_index('ix_ai_requests_created_at', 'ai_requests', ['created_at'])

    op.create_table(
        'oauth_states',
        sa.Column('state', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('state', name='pk_oauth_states'),
    )


def downgrade() -> None:
    op.drop_table('oauth_states')
    op.drop_index('ix_ai_requests_created_at', table_name='ai_requests')
    op.drop_index('ix_ai_requests_user_id', table_name='ai_requests')
    op.drop_table('ai_requests')
    op.drop_table('ai_settings')
    op.drop_table('gmb_insights')
    op.drop_index('ix_gmb_posts_status', table_name='gmb_posts')
    op.drop_index('ix_gmb_posts_location_id', table_name='gmb_posts')
    op.drop_index('ix_gmb_posts_user_id', table_name='gmb_posts')
    op.drop_table('gmb_posts')
    op.drop_index('ix_gmb_reviews_review_date', table_name='gmb_reviews')
    op.drop_index('ix_gmb_reviews_location_id', table_name='gmb_reviews')
    op.drop_index('ix_gmb_reviews_external_review_id', table_name='gmb_reviews')
    op.drop_table('gmb_reviews')
    op.drop_index('ix_gmb_locations_gmb_account_id', table_name='gmb_locations')
    op.drop_index('ix_gmb_locations_location_id', table_name='gmb_locations')
    op.drop_table('gmb_locations')
    op.drop_index('ix_gmb_accounts_user_id', table_name='gmb_accounts')
    op.drop_table('gmb_accounts')
    sa.Enum(name='gmb_metric_type').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='gmb_post_status').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='gmb_post_type').drop(op.get_bind(), checkfirst=True)
