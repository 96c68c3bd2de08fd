"""Create automation_flows table

Revision ID: 3f9a1c2e7b40
Revises:
Create Date: 2026-10-19

Stores flow definitions built in the visual editor:
- nodes / edges as JSONB, overwritten wholesale on save
- status + version + published_at for the publish lifecycle
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f9a1c2e7b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'automation_flows',
        sa.Column('id', sa.BigInteger(), primary_key=True),

        # Ownership
        sa.Column('user_id', sa.Text(), nullable=False),

        # Definition
        sa.Column('name', sa.Text(), nullable=False, server_default=''),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('nodes', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('edges', postgresql.JSONB(), nullable=False, server_default='[]'),

        # Publish lifecycle
        sa.Column('status', sa.Text(), nullable=False, server_default='draft'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),

        # Timestamps
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_index('idx_automation_flows_user_status', 'automation_flows', ['user_id', 'status'])
    op.create_index('idx_automation_flows_user_name', 'automation_flows', ['user_id', 'name'])


def downgrade() -> None:
    op.drop_index('idx_automation_flows_user_name', table_name='automation_flows')
    op.drop_index('idx_automation_flows_user_status', table_name='automation_flows')
    op.drop_table('automation_flows')
