"""initial_training_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'exercises',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('variation', sa.String(200), nullable=True),
        sa.Column('type', sa.String(6), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_exercises_name', 'exercises', ['name'])

    op.create_table(
        'plans',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('goal', sa.Text(), nullable=True),
        sa.Column('status', sa.String(8), nullable=False),
        sa.Column('source', sa.String(50), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_plans_id', 'plans', ['id'])
    op.create_index('ix_plans_user_id', 'plans', ['user_id'])
    op.create_index('ix_plans_status', 'plans', ['status'])

    op.create_table(
        'plan_weeks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('plan_id', sa.Integer(), sa.ForeignKey('plans.id', ondelete='CASCADE'), nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('focus', sa.Text(), nullable=True),
        sa.Column('instructions', sa.Text(), nullable=True),
        sa.UniqueConstraint('plan_id', 'week_number', name='uq_plan_week_number'),
        sa.CheckConstraint('week_number > 0', name='ck_plan_week_number_positive'),
    )
    op.create_index('ix_plan_weeks_id', 'plan_weeks', ['id'])
    op.create_index('ix_plan_weeks_plan_id', 'plan_weeks', ['plan_id'])

    op.create_table(
        'training_sessions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('plan_id', sa.Integer(), sa.ForeignKey('plans.id', ondelete='CASCADE'), nullable=True),
        sa.Column('plan_week_id', sa.Integer(), sa.ForeignKey('plan_weeks.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('type', sa.String(50), nullable=True),
        sa.Column('scheduled_date', sa.Date(), nullable=True),
        sa.Column('completed_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(11), nullable=False),
        sa.Column('readiness_score', sa.Integer(), nullable=True),
        sa.Column('session_order', sa.Integer(), nullable=True),
        sa.Column('instructions', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint(
            'readiness_score IS NULL OR (readiness_score >= 1 AND readiness_score <= 10)',
            name='ck_session_readiness_range',
        ),
    )
    op.create_index('ix_training_sessions_id', 'training_sessions', ['id'])
    op.create_index('ix_training_sessions_user_id', 'training_sessions', ['user_id'])
    op.create_index('ix_training_sessions_plan_id', 'training_sessions', ['plan_id'])
    op.create_index('ix_training_sessions_plan_week_id', 'training_sessions', ['plan_week_id'])

    op.create_table(
        'exercise_entries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('training_sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('exercise_id', sa.Integer(), sa.ForeignKey('exercises.id'), nullable=False),
        sa.Column('exercise_order', sa.Integer(), nullable=False),
        sa.Column('target_sets', sa.Integer(), nullable=True),
        sa.Column('target_reps', sa.String(50), nullable=True),
        sa.Column('target_rpe', sa.Float(), nullable=True),
        sa.Column('target_weight', sa.String(50), nullable=True),
        sa.Column('instructions', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('target_rpe IS NULL OR (target_rpe >= 0 AND target_rpe <= 10)', name='ck_entry_target_rpe_range'),
    )
    op.create_index('ix_exercise_entries_id', 'exercise_entries', ['id'])
    op.create_index('ix_exercise_entries_session_id', 'exercise_entries', ['session_id'])
    op.create_index('ix_exercise_entries_exercise_id', 'exercise_entries', ['exercise_id'])

    op.create_table(
        'exercise_sets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('exercise_entry_id', sa.Integer(), sa.ForeignKey('exercise_entries.id', ondelete='CASCADE'), nullable=False),
        sa.Column('set_number', sa.Integer(), nullable=False),
        sa.Column('weight', sa.Float(), nullable=True),
        sa.Column('reps', sa.Integer(), nullable=True),
        sa.Column('rpe', sa.Float(), nullable=True),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.CheckConstraint('set_number > 0', name='ck_set_number_positive'),
    )
    op.create_index('ix_exercise_sets_id', 'exercise_sets', ['id'])
    op.create_index('ix_exercise_sets_exercise_entry_id', 'exercise_sets', ['exercise_entry_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('exercise_sets')
    op.drop_table('exercise_entries')
    op.drop_table('training_sessions')
    op.drop_table('plan_weeks')
    op.drop_table('plans')
    op.drop_table('exercises')
