"""Create referral and rebate tables.

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
    """Create users, referral_relations, rebate_transactions and system_configs."""

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('username', sa.String(255), nullable=True),
        sa.Column('invite_code', sa.String(32), nullable=True),
        sa.Column('invited_by', sa.Integer(), nullable=True),
        sa.Column('invite_limit', sa.Integer(), nullable=False, server_default='0', comment='0 means unlimited'),
        sa.Column('invite_used', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('money', sa.DECIMAL(12, 2), nullable=False, server_default='0'),
        sa.Column('rebate_available', sa.DECIMAL(12, 2), nullable=False, server_default='0', comment='Withdrawable rebate balance'),
        sa.Column('rebate_total', sa.DECIMAL(12, 2), nullable=False, server_default='0', comment='Lifetime rebate earned'),
        sa.Column('status', sa.SmallInteger(), nullable=False, server_default='1'),
        sa.Column('class', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('class_expire_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('rebate_available >= 0', name='check_user_rebate_available_non_negative'),
        sa.CheckConstraint('rebate_total >= 0', name='check_user_rebate_total_non_negative'),
        sa.CheckConstraint('invite_used >= 0', name='check_user_invite_used_non_negative'),
        sa.ForeignKeyConstraint(['invited_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_users_invite_code', 'users', ['invite_code'], unique=True)
    op.create_index('ix_users_invited_by', 'users', ['invited_by'])
    op.create_index('ix_users_username', 'users', ['username'])

    op.create_table(
        'referral_relations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('inviter_id', sa.Integer(), nullable=False),
        sa.Column('invitee_id', sa.Integer(), nullable=False),
        sa.Column('invite_code', sa.String(32), nullable=True),
        sa.Column('invite_ip', sa.String(64), nullable=True, comment='First seen registration IP'),
        sa.Column('registered_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('status', sa.String(16), nullable=False, server_default='pending'),
        sa.Column('first_payment_type', sa.String(32), nullable=True),
        sa.Column('first_payment_id', sa.BigInteger(), nullable=True),
        sa.Column('first_paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('inviter_id <> invitee_id', name='check_referral_relation_not_self'),
        sa.ForeignKeyConstraint(['inviter_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['invitee_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invitee_id'),
    )
    op.create_index('ix_referral_relations_inviter_id', 'referral_relations', ['inviter_id'])
    op.create_index('idx_referral_relations_inviter_status', 'referral_relations', ['inviter_id', 'status'])

    op.create_table(
        'rebate_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('inviter_id', sa.Integer(), nullable=False),
        sa.Column('referral_id', sa.Integer(), nullable=True),
        sa.Column('invitee_id', sa.Integer(), nullable=True),
        sa.Column('source_type', sa.String(32), nullable=False),
        sa.Column('source_id', sa.BigInteger(), nullable=True),
        sa.Column('trade_no', sa.String(128), nullable=True),
        sa.Column('event_type', sa.String(32), nullable=False),
        sa.Column('amount', sa.DECIMAL(12, 2), nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='confirmed'),
        sa.Column('remark', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['inviter_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['referral_id'], ['referral_relations.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['invitee_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    # One positive credit per payment event
    op.create_index(
        'uq_rebate_transactions_source_positive',
        'rebate_transactions',
        ['source_type', 'source_id'],
        unique=True,
        postgresql_where=sa.text('amount > 0'),
        sqlite_where=sa.text('amount > 0'),
    )
    op.create_index('idx_rebate_transactions_inviter_created', 'rebate_transactions', ['inviter_id', 'created_at'])
    op.create_index('idx_rebate_transactions_created_at', 'rebate_transactions', ['created_at'])
    op.create_index('ix_rebate_transactions_invitee_id', 'rebate_transactions', ['invitee_id'])
    op.create_index('ix_rebate_transactions_event_type', 'rebate_transactions', ['event_type'])

    op.create_table(
        'system_configs',
        sa.Column('key', sa.String(128), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('key'),
    )

    # Rebates stay off until an admin sets a rate
    op.bulk_insert(
        sa.table(
            'system_configs',
            sa.column('key', sa.String),
            sa.column('value', sa.Text),
        ),
        [
            {'key': 'rebate_rate', 'value': '0'},
            {'key': 'rebate_mode', 'value': 'every_order'},
            {'key': 'invite_default_limit', 'value': '0'},
        ],
    )


def downgrade() -> None:
    """Drop referral and rebate tables."""

    op.drop_table('system_configs')

    op.drop_index('ix_rebate_transactions_event_type', 'rebate_transactions')
    op.drop_index('ix_rebate_transactions_invitee_id', 'rebate_transactions')
    op.drop_index('idx_rebate_transactions_created_at', 'rebate_transactions')
    op.drop_index('idx_rebate_transactions_inviter_created', 'rebate_transactions')
    op.drop_index('uq_rebate_transactions_source_positive', 'rebate_transactions')
    op.drop_table('rebate_transactions')

    op.drop_index('idx_referral_relations_inviter_status', 'referral_relations')
    op.drop_index('ix_referral_relations_inviter_id', 'referral_relations')
    op.drop_table('referral_relations')

    op.drop_index('ix_users_username', 'users')
    op.drop_index('ix_users_invited_by', 'users')
    op.drop_index('ix_users_invite_code', 'users')
    op.drop_table('users')
