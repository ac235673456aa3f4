"""Create snapshots table

Revision ID: 4f2a9c1e7b30
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f2a9c1e7b30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'snapshots',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('component_id', sa.Integer(), nullable=False),
        sa.Column('component_uuid', sa.String(50), nullable=False),
        sa.Column('root_project_id', sa.Integer(), nullable=True),
        sa.Column('parent_id', sa.Integer(), nullable=True),
        sa.Column('root_id', sa.Integer(), nullable=True),
        sa.Column('path', sa.String(500), nullable=False, server_default=''),
        sa.Column('depth', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('scope', sa.Enum('PROJECT', 'DIRECTORY', 'FILE', name='snapshotscope'), nullable=False),
        sa.Column('qualifier', sa.String(10), nullable=True),
        sa.Column('status', sa.Enum('UNPROCESSED', 'PROCESSED', name='snapshotstatus'), nullable=False),
        sa.Column('is_last', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('version', sa.String(500), nullable=True),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.Column('build_date', sa.BigInteger(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_snapshots_component_id', 'snapshots', ['component_id'])
    op.create_index('ix_snapshots_component_uuid', 'snapshots', ['component_uuid'])
    op.create_index('snapshots_component_last', 'snapshots', ['component_id', 'is_last'])
    op.create_index('snapshots_root_path', 'snapshots', ['root_id', 'path'])


def downgrade() -> None:
    op.drop_index('snapshots_root_path', table_name='snapshots')
    op.drop_index('snapshots_component_last', table_name='snapshots')
    op.drop_index('ix_snapshots_component_uuid', table_name='snapshots')
    op.drop_index('ix_snapshots_component_id', table_name='snapshots')
    op.drop_table('snapshots')
    sa.Enum(name='snapshotstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='snapshotscope').drop(op.get_bind(), checkfirst=True)
