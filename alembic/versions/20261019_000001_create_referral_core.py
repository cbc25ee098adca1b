"""Create referral core tables.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create restaurants, referral_codes, referrals, rewards and pipeline_events."""

    # Referred businesses (written by the registration flow)
    op.create_table(
        'restaurants',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=True),
        sa.Column('num_locations', sa.Integer(), nullable=True),
        sa.Column('current_pos', sa.String(length=100), nullable=True),
        sa.Column('delivery_pct', sa.Integer(), nullable=True, comment='Share of sales through delivery (0-100)'),
        sa.Column('owner_whatsapp', sa.String(length=20), nullable=True),
        sa.Column('owner_email', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id', name='pk_restaurants'),
    )
    op.create_index('idx_restaurants_owner', 'restaurants', ['owner_id'])

    # Referral codes
    op.create_table(
        'referral_codes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('referrer_user_id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('use_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_uses', sa.Integer(), nullable=True, comment='NULL means unlimited'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('max_uses IS NULL OR use_count <= max_uses', name='ck_referral_codes_use_count_within_max_uses'),
        sa.CheckConstraint('use_count >= 0', name='ck_referral_codes_use_count_non_negative'),
        sa.PrimaryKeyConstraint('id', name='pk_referral_codes'),
        sa.UniqueConstraint('code', name='uq_referral_codes_code'),
    )
    op.create_index('idx_referral_codes_referrer', 'referral_codes', ['referrer_user_id'])

    # Referrals
    op.create_table(
        'referrals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('referral_code_id', sa.Integer(), nullable=False),
        sa.Column('referred_restaurant_id', sa.Integer(), nullable=False),
        sa.Column('pipeline_status', sa.String(length=20), nullable=False, server_default='PENDING'),
        sa.Column('qualified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rewarded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expired_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('score_fit', sa.Integer(), nullable=True),
        sa.Column('score_intent', sa.Integer(), nullable=True),
        sa.Column('score_engage', sa.Integer(), nullable=True),
        sa.Column('score_total', sa.Integer(), nullable=True),
        sa.Column('scored_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('used_calculator', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('used_diagnostic', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('requested_demo', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('from_meta_ad', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('responded_wa', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('opened_messages', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('response_time_min', sa.Integer(), nullable=True),
        sa.Column('demo_scheduled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('meeting_held_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('meeting_outcome', sa.String(length=255), nullable=True),
        sa.Column('nurture_stage', sa.String(length=50), nullable=True),
        sa.Column('next_action_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['referral_code_id'], ['referral_codes.id'], name='fk_referrals_referral_code_id_referral_codes', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['referred_restaurant_id'], ['restaurants.id'], name='fk_referrals_referred_restaurant_id_restaurants', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_referrals'),
        sa.UniqueConstraint('referred_restaurant_id', name='uq_referrals_referred_restaurant_id'),
    )
    op.create_index('idx_referrals_code', 'referrals', ['referral_code_id'])
    op.create_index('idx_referrals_pipeline_status', 'referrals', ['pipeline_status'])

    # Rewards (one per referral and beneficiary side)
    op.create_table(
        'rewards',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('referral_id', sa.Integer(), nullable=False),
        sa.Column('beneficiary_id', sa.Integer(), nullable=False),
        sa.Column('beneficiary_type', sa.String(length=20), nullable=False, comment='REFERRER or REFERRED'),
        sa.Column('reward_type', sa.String(length=20), nullable=False),
        sa.Column('amount', sa.DECIMAL(18, 2), nullable=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('issued_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('redeemed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['referral_id'], ['referrals.id'], name='fk_rewards_referral_id_referrals', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_rewards'),
        sa.UniqueConstraint('referral_id', 'beneficiary_type', name='uq_rewards_referral_beneficiary_type'),
    )
    op.create_index('idx_rewards_beneficiary', 'rewards', ['beneficiary_id'])

    # Append-only audit trail
    op.create_table(
        'pipeline_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('referral_id', sa.Integer(), nullable=False),
        sa.Column('event_type', sa.String(length=30), nullable=False),
        sa.Column('from_status', sa.String(length=20), nullable=True),
        sa.Column('to_status', sa.String(length=20), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True, comment='Acting user, NULL for automatic events'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['referral_id'], ['referrals.id'], name='fk_pipeline_events_referral_id_referrals', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_pipeline_events'),
    )
    op.create_index('idx_pipeline_events_referral_created', 'pipeline_events', ['referral_id', 'created_at'])


def downgrade() -> None:
    """Drop referral core tables."""

    op.drop_index('idx_pipeline_events_referral_created', 'pipeline_events')
    op.drop_table('pipeline_events')

    op.drop_index('idx_rewards_beneficiary', 'rewards')
    op.drop_table('rewards')

    op.drop_index('idx_referrals_pipeline_status', 'referrals')
    op.drop_index('idx_referrals_code', 'referrals')
    op.drop_table('referrals')

    op.drop_index('idx_referral_codes_referrer', 'referral_codes')
    op.drop_table('referral_codes')

    op.drop_index('idx_restaurants_owner', 'restaurants')
    op.drop_table('restaurants')
