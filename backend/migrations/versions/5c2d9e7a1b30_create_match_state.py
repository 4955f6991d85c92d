"""create match_state table

Revision ID: 5c2d9e7a1b30
Revises:
Create Date: 2026-10-12 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d9e7a1b30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'match_state' in insp.get_table_names():
        return
    op.create_table(
        'match_state',
        sa.Column('key', sa.String(length=128), nullable=False),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('revision', sa.Integer(), nullable=False),
        sa.Column('expires_at', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('key'),
    )
    with op.batch_alter_table('match_state') as batch_op:
        batch_op.create_index('ix_match_state_expires_at', ['expires_at'], unique=False)


def downgrade():
    with op.batch_alter_table('match_state') as batch_op:
        batch_op.drop_index('ix_match_state_expires_at')
    op.drop_table('match_state')
