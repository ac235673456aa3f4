"""Add component locks table

Revision ID: 8c31d5e0a2f4
Revises: 4f2a9c1e7b30
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8c31d5e0a2f4'
down_revision: Union[str, None] = '4f2a9c1e7b30'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'component_locks',
        sa.Column('component_id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('locked_at', sa.BigInteger(), nullable=True),
        sa.Column('locked_by_root_id', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('component_id'),
    )


def downgrade() -> None:
    op.drop_table('component_locks')
