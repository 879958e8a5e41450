"""create users, auth codes, stats, saves, play sessions and test results

Revision ID: 5c2e9a17b3d0
Revises:
Create Date: 2026-01-12 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e9a17b3d0'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('user_id', sa.String(length=36), primary_key=True),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_user_phone', 'user', ['phone'], unique=True)

    op.create_table(
        'auth_code',
        sa.Column('phone', sa.String(length=32), primary_key=True),
        sa.Column('code_hash', sa.String(length=64), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'game_stats',
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('user.user_id'), primary_key=True),
        sa.Column('game_id', sa.String(length=64), primary_key=True),
        sa.Column('last_stars', sa.Integer(), nullable=False),
        sa.Column('best_stars', sa.Integer(), nullable=False),
        sa.Column('last_updated_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'save',
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('user.user_id'), primary_key=True),
        sa.Column('game_id', sa.String(length=64), primary_key=True),
        sa.Column('payload_json', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'play_session',
        sa.Column('session_id', sa.String(length=36), primary_key=True),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('user.user_id'), nullable=False),
        sa.Column('game_id', sa.String(length=64), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('finished_at', sa.DateTime(), nullable=True),
        sa.Column('reason', sa.String(length=64), nullable=False),
        sa.Column('summary_json', sa.Text(), nullable=False),
        sa.Column('stars_total', sa.Integer(), nullable=False),
        sa.Column('raw_key', sa.String(length=512), nullable=False),
    )
    op.create_index('ix_play_session_user_id', 'play_session', ['user_id'])

    op.create_table(
        'test_result',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('user.user_id'), nullable=False),
        sa.Column('game_id', sa.String(length=64), nullable=False),
        sa.Column('test_type', sa.String(length=8), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('max_score', sa.Integer(), nullable=False),
        sa.Column('answers_json', sa.Text(), nullable=False),
        sa.Column('details_json', sa.Text(), nullable=False),
        sa.Column('taken_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'game_id', 'test_type', name='uq_test_result_attempt'),
    )
    op.create_index('ix_test_result_user_id', 'test_result', ['user_id'])


def downgrade():
    op.drop_index('ix_test_result_user_id', table_name='test_result')
    op.drop_table('test_result')
    op.drop_index('ix_play_session_user_id', table_name='play_session')
    op.drop_table('play_session')
    op.drop_table('save')
    op.drop_table('game_stats')
    op.drop_table('auth_code')
    op.drop_index('ix_user_phone', table_name='user')
    op.drop_table('user')
