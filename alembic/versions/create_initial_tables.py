"""create initial tables

Revision ID: 3f1c9a7e2b40
Revises:
Create Date: 2026-10-19 09:12:41

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7e2b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('provider', sa.String(length=20), nullable=False),
        sa.Column('provider_id', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('provider_id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'studies',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.Column('max_members', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('leader_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['leader_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_studies_category', 'studies', ['category'])
    op.create_index('ix_studies_leader_id', 'studies', ['leader_id'])

    op.create_table(
        'study_members',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('study_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('member_role', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('joined_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['study_id'], ['studies.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('study_id', 'user_id', name='uq_study_members_study_user'),
    )
    op.create_index('ix_study_members_study_id', 'study_members', ['study_id'])
    op.create_index('ix_study_members_user_id', 'study_members', ['user_id'])

    op.create_table(
        'attendance_sessions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('study_id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['study_id'], ['studies.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_attendance_sessions_study_id', 'attendance_sessions', ['study_id'])
    op.create_index('ix_attendance_sessions_date', 'attendance_sessions', ['date'])

    # (session_id, user_id) 유일성은 서비스에서 유지 (DB 제약 없음)
    op.create_table(
        'attendance_records',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('session_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('recorded_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['session_id'], ['attendance_sessions.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_attendance_records_session_user', 'attendance_records', ['session_id', 'user_id'])
    op.create_index('ix_attendance_records_user_id', 'attendance_records', ['user_id'])

    op.create_table(
        'admin_action_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('actor_id', sa.Uuid(), nullable=False),
        sa.Column('target_user_id', sa.Uuid(), nullable=True),
        sa.Column('action', sa.String(length=30), nullable=False),
        sa.Column('before_value', sa.String(length=20), nullable=True),
        sa.Column('after_value', sa.String(length=20), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['actor_id'], ['users.id']),
        sa.ForeignKeyConstraint(['target_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    op.drop_table('admin_action_logs')
    op.drop_index('ix_attendance_records_user_id', table_name='attendance_records')
    op.drop_index('ix_attendance_records_session_user', table_name='attendance_records')
    op.drop_table('attendance_records')
    op.drop_index('ix_attendance_sessions_date', table_name='attendance_sessions')
    op.drop_index('ix_attendance_sessions_study_id', table_name='attendance_sessions')
    op.drop_table('attendance_sessions')
    op.drop_index('ix_study_members_user_id', table_name='study_members')
    op.drop_index('ix_study_members_study_id', table_name='study_members')
    op.drop_table('study_members')
    op.drop_index('ix_studies_leader_id', table_name='studies')
    op.drop_index('ix_studies_category', table_name='studies')
    op.drop_table('studies')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
