"""create waiting_list_emails

Revision ID: 001
Revises: 
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'waiting_list_emails',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('referral_code', sa.String(32), nullable=False),
        sa.Column('referral_count', sa.Integer(), nullable=False, server_default="0"),
        sa.Column('source', sa.String(100), nullable=False),
        sa.Column('utm_source', sa.String(255), nullable=True),
        sa.Column('referrer_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['referrer_id'], ['waiting_list_emails.id'], ondelete='SET NULL'),
    )
    op.create_index(op.f('ix_waiting_list_emails_id'), 'waiting_list_emails', ['id'], unique=False)
    op.create_index(op.f('ix_waiting_list_emails_email'), 'waiting_list_emails', ['email'], unique=True)
    op.create_index(op.f('ix_waiting_list_emails_referral_code'), 'waiting_list_emails', ['referral_code'], unique=True)
    op.create_index(op.f('ix_waiting_list_emails_referrer_id'), 'waiting_list_emails', ['referrer_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_waiting_list_emails_referrer_id'), table_name='waiting_list_emails')
    op.drop_index(op.f('ix_waiting_list_emails_referral_code'), table_name='waiting_list_emails')
    op.drop_index(op.f('ix_waiting_list_emails_email'), table_name='waiting_list_emails')
    op.drop_index(op.f('ix_waiting_list_emails_id'), table_name='waiting_list_emails')
    op.drop_table('waiting_list_emails')
