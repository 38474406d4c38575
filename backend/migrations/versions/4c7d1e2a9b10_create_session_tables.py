"""create user, game session, question and answer tables

Revision ID: 4c7d1e2a9b10
Revises:
Create Date: 2026-10-19 09:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c7d1e2a9b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa.inspect(bind).get_table_names())

    # Databases created by `flask db-reset` already have the user table.
    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_user_username', 'user', ['username'], unique=True)

    op.create_table(
        'game_session',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by_user_id', sa.Integer(), nullable=False),
        sa.Column('current_question_id', sa.String(length=36), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'session_player',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['session_id'], ['game_session.id']),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('session_id', 'user_id', name='uq_session_player'),
    )
    op.create_index('ix_session_player_session_id', 'session_player', ['session_id'])
    op.create_table(
        'question',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('session_id', sa.String(length=36), nullable=False),
        sa.Column('text', sa.String(length=100), nullable=False),
        sa.Column('is_multiple_answer', sa.Boolean(), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('sequence_number', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['session_id'], ['game_session.id']),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_question_session_id', 'question', ['session_id'])
    op.create_table(
        'question_variant',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('question_id', sa.String(length=36), nullable=False),
        sa.Column('label', sa.String(length=1), nullable=False),
        sa.Column('text', sa.String(length=100), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['question_id'], ['question.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_question_variant_question_id', 'question_variant', ['question_id'])
    op.create_table(
        'question_choice',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('question_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('selected_variant_ids', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['question_id'], ['question.id']),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('question_id', 'user_id', name='uq_question_choice'),
    )
    op.create_index('ix_question_choice_question_id', 'question_choice', ['question_id'])
    op.create_table(
        'question_guess',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('question_id', sa.String(length=36), nullable=False),
        sa.Column('guessing_user_id', sa.Integer(), nullable=False),
        sa.Column('choice_user_id', sa.Integer(), nullable=False),
        sa.Column('selected_variant_ids', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['question_id'], ['question.id']),
        sa.ForeignKeyConstraint(['guessing_user_id'], ['user.id']),
        sa.ForeignKeyConstraint(['choice_user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('question_id', 'guessing_user_id', 'choice_user_id', name='uq_question_guess'),
    )
    op.create_index('ix_question_guess_question_id', 'question_guess', ['question_id'])


def downgrade():
    # The user table is left in place: upgrade only creates it when missing,
    # so it may predate this revision and hold accounts.
    op.drop_index('ix_question_guess_question_id', table_name='question_guess')
    op.drop_table('question_guess')
    op.drop_index('ix_question_choice_question_id', table_name='question_choice')
    op.drop_table('question_choice')
    op.drop_index('ix_question_variant_question_id', table_name='question_variant')
    op.drop_table('question_variant')
    op.drop_index('ix_question_session_id', table_name='question')
    op.drop_table('question')
    op.drop_index('ix_session_player_session_id', table_name='session_player')
    op.drop_table('session_player')
    op.drop_table('game_session')
