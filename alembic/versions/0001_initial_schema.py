"""Initial schema: users, trading strategies, comments, ratings and favorites

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('USER', 'ADMIN', name='userrole')
risk_level = sa.Enum('LOW', 'MEDIUM', 'HIGH', 'VERY_HIGH', name='risklevel')
asset_class = sa.Enum('STOCKS', 'CRYPTO', 'FOREX', 'FUTURES', 'OPTIONS', name='assetclass')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('email_verified', sa.Boolean(), nullable=False),
        sa.Column('email_verification_token', sa.String(128), nullable=True),
        sa.Column('email_verification_expires', sa.DateTime(timezone=True), nullable=True),
        sa.Column('password_reset_token', sa.String(128), nullable=True),
        sa.Column('password_reset_expires', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_email_verification_token', 'users', ['email_verification_token'])
    op.create_index('ix_users_password_reset_token', 'users', ['password_reset_token'])

    op.create_table(
        'trading_strategies',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('parameters', sa.JSON(), nullable=False),
        sa.Column('risk_level', risk_level, nullable=False),
        sa.Column('asset_class', asset_class, nullable=True),
        sa.Column('backtest_performance', sa.Text(), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False),
        sa.Column('is_template', sa.Boolean(), nullable=False),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('copied_from', sa.String(), sa.ForeignKey('trading_strategies.id', ondelete='SET NULL'), nullable=True),
        sa.Column('copy_count', sa.Integer(), nullable=False),
        sa.Column('average_rating', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    for column in ('id', 'user_id', 'name', 'is_public', 'is_template', 'copied_from', 'created_at'):
        op.create_index(f'ix_trading_strategies_{column}', 'trading_strategies', [column])

    op.create_table(
        'strategy_comments',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('strategy_id', sa.String(), sa.ForeignKey('trading_strategies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('text', sa.String(500), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    for column in ('id', 'strategy_id', 'user_id'):
        op.create_index(f'ix_strategy_comments_{column}', 'strategy_comments', [column])

    op.create_table(
        'strategy_ratings',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('strategy_id', sa.String(), sa.ForeignKey('trading_strategies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('strategy_id', 'user_id', name='uq_strategy_rating_user'),
    )
    for column in ('id', 'strategy_id', 'user_id'):
        op.create_index(f'ix_strategy_ratings_{column}', 'strategy_ratings', [column])

    op.create_table(
        'user_favorite_strategies',
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('strategy_id', sa.String(), sa.ForeignKey('trading_strategies.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table('user_favorite_strategies')
    op.drop_table('strategy_ratings')
    op.drop_table('strategy_comments')
    op.drop_table('trading_strategies')
    op.drop_table('users')
    user_role.drop(op.get_bind(), checkfirst=True)
    risk_level.drop(op.get_bind(), checkfirst=True)
    asset_class.drop(op.get_bind(), checkfirst=True)
