"""create player table for the match session server

Revision ID: 5c2e9a7b1d04
Revises:
Create Date: 2026-10-17 12:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e9a7b1d04'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    # Databases created with db-reset already have the table
    if 'player' in set(insp.get_table_names()):
        player_cols = {c['name'] for c in insp.get_columns('player')}
        if 'streak' not in player_cols:
            op.add_column('player', sa.Column('streak', sa.Integer(), nullable=False, server_default='0'))
        if 'status' not in player_cols:
            op.add_column('player', sa.Column('status', sa.String(length=16), nullable=False, server_default='offline'))
        return

    op.create_table(
        'player',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='offline'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_player_score', 'player', ['score'])


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'player' not in set(insp.get_table_names()):
        return
    op.drop_index('ix_player_score', table_name='player')
    op.drop_table('player')
