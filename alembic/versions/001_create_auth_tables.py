"""create users, user_verifications and user_socials

Revision ID: 001
Revises: 
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACCOUNT_STATUS = sa.Enum('PENDING', 'ACTIVE', 'BANNED', 'PERM_BANNED', name='accountstatus')
SOCIAL_PROVIDER = sa.Enum('KAKAO', 'GOOGLE', 'APPLE', name='socialprovider')


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('uuid', sa.String(length=128), nullable=False),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False, server_default=''),
        sa.Column('country_code', sa.String(length=8), nullable=False, server_default=''),
        sa.Column('phone_number', sa.String(length=32), nullable=False, server_default=''),
        sa.Column('account_status', ACCOUNT_STATUS, nullable=False, server_default='PENDING'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_uuid'), 'users', ['uuid'], unique=True)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=False)

    op.create_table(
        'user_verifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('email_verified', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('email_verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('phone_verified', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('phone_verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('business_verified', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('business_info', sa.Text(), nullable=True),
        sa.Column('verification_code', sa.String(length=16), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE', onupdate='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_user_verifications_user_id'), 'user_verifications', ['user_id'], unique=True)

    op.create_table(
        'user_socials',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('provider', SOCIAL_PROVIDER, nullable=False),
        sa.Column('provider_id', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE', onupdate='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('provider', 'provider_id', name='uq_user_socials_provider_provider_id')
    )
    op.create_index(op.f('ix_user_socials_user_id'), 'user_socials', ['user_id'], unique=False)
    op.create_index(op.f('ix_user_socials_provider_id'), 'user_socials', ['provider_id'], unique=False)


def downgrade() -> None:
    # Children first; MySQL needs the FK gone before its backing index
    op.drop_index(op.f('ix_user_socials_provider_id'), table_name='user_socials')
    op.drop_table('user_socials')
    op.drop_table('user_verifications')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_uuid'), table_name='users')
    op.drop_table('users')
