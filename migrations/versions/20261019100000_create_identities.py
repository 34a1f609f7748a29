"""Create identities table

Revision ID: 20261019100000
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019100000'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'identities',
        sa.Column('identifier', sa.String(255), primary_key=True),
        sa.Column('password_hash', sa.Text(), nullable=True),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('current_otp', sa.String(6), nullable=True),
        sa.Column('otp_issued_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('otp_verified', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('otp_verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('password_set_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivery_token', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False),
    )
    op.create_index('idx_identities_delivery_token', 'identities', ['delivery_token'])


def downgrade() -> None:
    op.drop_index('idx_identities_delivery_token', table_name='identities')
    op.drop_table('identities')
