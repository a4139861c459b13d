"""create change_requests table

Revision ID: 3b7e2c91d4a0
Revises: 
Create Date: 2026-10-19 10:12:44.210118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b7e2c91d4a0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Enums are stored as VARCHAR + CHECK so the same migration runs on SQLite and PostgreSQL
    change_type = sa.Enum('standard', 'normal', 'emergency', name='change_type', native_enum=False, length=32)
    change_priority = sa.Enum('low', 'medium', 'high', 'critical', name='change_priority', native_enum=False, length=32)
    change_status = sa.Enum(
        'draft', 'submitted', 'approved', 'rejected', 'scheduled', 'in_progress', 'completed', 'cancelled',
        name='change_status', native_enum=False, length=32,
    )

    op.create_table(
        'change_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=256), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('change_type', change_type, nullable=False),
        sa.Column('priority', change_priority, nullable=False),
        sa.Column('status', change_status, nullable=False, server_default='draft'),
        sa.Column('requester_name', sa.String(length=256), nullable=False),
        sa.Column('requester_email', sa.String(length=254), nullable=False),
        sa.Column('business_justification', sa.Text(), nullable=False),
        sa.Column('implementation_plan', sa.Text(), nullable=False),
        sa.Column('rollback_plan', sa.Text(), nullable=False),
        sa.Column('risk_assessment', sa.Text(), nullable=True),
        sa.Column('impact_assessment', sa.Text(), nullable=True),
        sa.Column('scheduled_start', sa.DateTime(), nullable=True),
        sa.Column('scheduled_end', sa.DateTime(), nullable=True),
        sa.Column('actual_start', sa.DateTime(), nullable=True),
        sa.Column('actual_end', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_change_requests_id', 'change_requests', ['id'])
    op.create_index('ix_change_requests_status', 'change_requests', ['status'])
    op.create_index('ix_change_requests_created_at', 'change_requests', ['created_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_change_requests_created_at', table_name='change_requests')
    op.drop_index('ix_change_requests_status', table_name='change_requests')
    op.drop_index('ix_change_requests_id', table_name='change_requests')
    op.drop_table('change_requests')
