"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the url_mappings table with unique indexes on original_url and
    short_id.
    """
    bind = op.get_bind()
    existing_tables = inspect(bind).get_table_names()

    if 'url_mappings' in existing_tables:
        return

    op.create_table(
        'url_mappings',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('original_url', sa.Text(), nullable=False),
        sa.Column('short_id', sa.BigInteger(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_index(
        'ix_url_mappings_original_url',
        'url_mappings',
        ['original_url'],
        unique=True
    )

    op.create_index(
        'ix_url_mappings_short_id',
        'url_mappings',
        ['short_id'],
        unique=True
    )


def downgrade() -> None:
    op.drop_index('ix_url_mappings_short_id', table_name='url_mappings')
    op.drop_index('ix_url_mappings_original_url', table_name='url_mappings')
    op.drop_table('url_mappings')
