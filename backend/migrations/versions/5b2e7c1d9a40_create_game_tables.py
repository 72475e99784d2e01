"""create user, room and game_state tables

Revision ID: 5b2e7c1d9a40
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5b2e7c1d9a40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_username', 'user', ['username'], unique=True)

    op.create_table(
        'room',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('game_state_id', sa.String(length=32), nullable=True),
        sa.Column('game_settings', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'game_state',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('room_id', sa.String(length=32), nullable=False),
        sa.Column('phase', sa.String(length=16), nullable=False),
        sa.Column('current_day', sa.Integer(), nullable=False),
        sa.Column('current_night', sa.Integer(), nullable=False),
        sa.Column('player_roles', sa.Text(), nullable=True),
        sa.Column('player_alive', sa.Text(), nullable=True),
        sa.Column('player_usernames', sa.Text(), nullable=True),
        sa.Column('executioner_targets', sa.Text(), nullable=True),
        sa.Column('eliminated_players', sa.Text(), nullable=True),
        sa.Column('night_actions', sa.Text(), nullable=True),
        sa.Column('votes', sa.Text(), nullable=True),
        sa.Column('phase_start_time', sa.Float(), nullable=True),
        sa.Column('phase_time_remaining', sa.Integer(), nullable=False),
        sa.Column('winner', sa.String(length=16), nullable=True),
        sa.Column('game_log', sa.Text(), nullable=True),
        sa.Column('created_at', sa.Float(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_game_state_room_id', 'game_state', ['room_id'], unique=False)


def downgrade():
    op.drop_index('ix_game_state_room_id', table_name='game_state')
    op.drop_table('game_state')
    op.drop_table('room')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
