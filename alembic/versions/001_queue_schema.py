"""Queue schema - queue items and responses

Revision ID: 001_queue_schema
Revises:
Create Date: 2026-10-01 00:00:00.000000

Creates the counselor queue schema:
- queue_items: Support requests with status and claim lease
- responses: Committed responses with write-once analysis feedback
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = '001_queue_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create queue_items table
    op.create_table(
        'queue_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('requester_id', sa.String(128), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('response_mode', sa.String(10), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('priority', sa.String(10), nullable=False),
        sa.Column('cultural_context', sa.String(32), nullable=False),
        sa.Column('claimed_by', sa.String(128), nullable=True),
        sa.Column('claimed_at', sa.DateTime(), nullable=True),
        sa.Column('response_deadline', sa.DateTime(), nullable=True),
        sa.Column('answered_at', sa.DateTime(), nullable=True),
        sa.Column('response_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('tags', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('is_anonymous', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "status IN ('pending', 'claimed', 'answered', 'archived')",
            name='ck_queue_items_status',
        ),
    )
    op.create_index('ix_queue_items_requester_id', 'queue_items', ['requester_id'])
    op.create_index('ix_queue_items_claimed_by', 'queue_items', ['claimed_by'])
    op.create_index('ix_queue_items_status_created', 'queue_items', ['status', 'created_at', 'id'])
    op.create_index('ix_queue_items_status_deadline', 'queue_items', ['status', 'response_deadline'])

    # Create responses table
    op.create_table(
        'responses',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('queue_item_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('responder_id', sa.String(128), nullable=False),
        sa.Column('responder_type', sa.String(10), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('model_id', sa.String(64), nullable=True),
        sa.Column('feedback', postgresql.JSONB(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['queue_item_id'], ['queue_items.id'], ondelete='RESTRICT'),
    )
    op.create_index('ix_responses_queue_item_id', 'responses', ['queue_item_id'])
    op.create_index('ix_responses_responder_id', 'responses', ['responder_id'])


def downgrade() -> None:
    op.drop_table('responses')
    op.drop_table('queue_items')
