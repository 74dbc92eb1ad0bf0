"""Event log table

Revision ID: 001_event_log
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '001_event_log'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the append-only link_events table.

    Skipped when the table exists already (created by create_tables()
    in development).
    """
    bind = op.get_bind()
    if 'link_events' in inspect(bind).get_table_names():
        return

    op.create_table(
        'link_events',
        sa.Column('sequence', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('event_type', sa.String(length=32), nullable=False),
        sa.Column('slug', sa.Text(), nullable=False),
        sa.Column('url', sa.Text(), nullable=True),
        sa.Column('recorded_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('sequence')
    )
    op.create_index('ix_link_events_slug', 'link_events', ['slug'])


def downgrade() -> None:
    op.drop_index('ix_link_events_slug', table_name='link_events')
    op.drop_table('link_events')
