"""create portal tables

Revision ID: 5c2e8b1d4a7f
Revises:
Create Date: 2025-11-20 10:12:41.208311

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '5c2e8b1d4a7f'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'branches',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_branches_code'), 'branches', ['code'], unique=True)

    op.create_table(
        'years',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('batch_year', sa.Integer(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_years_batch_year'), 'years', ['batch_year'], unique=True)

    op.create_table(
        'semesters',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('semester_number', sa.Integer(), nullable=False),
        sa.Column('year_id', sa.String(), sa.ForeignKey('years.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'subjects',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('default_units', sa.Integer(), nullable=True),
        sa.Column('resource_type', sa.String(), nullable=False, server_default='resources'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_subjects_code'), 'subjects', ['code'], unique=False)

    op.create_table(
        'subject_offerings',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('regulation', sa.String(), nullable=True),
        sa.Column('branch', sa.String(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('semester', sa.Integer(), nullable=False),
        sa.Column('subject_id', sa.String(), sa.ForeignKey('subjects.id'), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_subject_offerings_regulation'), 'subject_offerings', ['regulation'], unique=False)
    op.create_index(op.f('ix_subject_offerings_branch'), 'subject_offerings', ['branch'], unique=False)

    op.create_table(
        'resources',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('drive_link', sa.String(), nullable=True),
        sa.Column('url', sa.String(), nullable=True),
        sa.Column('type', sa.String(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('subject', sa.String(), nullable=True),
        sa.Column('unit', sa.Integer(), nullable=True),
        sa.Column('date', sa.String(), nullable=True),
        sa.Column('is_pdf', sa.Boolean(), nullable=True),
        sa.Column('regulation', sa.String(), nullable=True),
        sa.Column('branch_id', sa.String(), sa.ForeignKey('branches.id'), nullable=True),
        sa.Column('year_id', sa.String(), sa.ForeignKey('years.id'), nullable=True),
        sa.Column('semester_id', sa.String(), sa.ForeignKey('semesters.id'), nullable=True),
        sa.Column('branch', sa.String(), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('semester', sa.Integer(), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_resources_category'), 'resources', ['category'], unique=False)
    op.create_index(op.f('ix_resources_subject'), 'resources', ['subject'], unique=False)
    op.create_index('idx_resources_context_not_deleted', 'resources', ['branch_id', 'year_id', 'semester_id'], unique=False, postgresql_where=sa.text("deleted_at IS NULL"))

    op.create_table(
        'recent_updates',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=True),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('date', sa.String(), nullable=True),
        sa.Column('branch', sa.String(), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_recent_updates_branch'), 'recent_updates', ['branch'], unique=False)

    op.create_table(
        'exams',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('subject', sa.String(), nullable=False),
        sa.Column('exam_date', sa.Date(), nullable=False),
        sa.Column('branch', sa.String(), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_exams_exam_date'), 'exams', ['exam_date'], unique=False)
    op.create_index(op.f('ix_exams_branch'), 'exams', ['branch'], unique=False)

    op.create_table(
        'reminders',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('icon_type', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=True),
        sa.Column('branch', sa.String(), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_reminders_due_date'), 'reminders', ['due_date'], unique=False)

    op.create_table(
        'profiles',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('roll_number', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_profiles_email'), 'profiles', ['email'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_profiles_email'), table_name='profiles')
    op.drop_table('profiles')
    op.drop_index(op.f('ix_reminders_due_date'), table_name='reminders')
    op.drop_table('reminders')
    op.drop_index(op.f('ix_exams_branch'), table_name='exams')
    op.drop_index(op.f('ix_exams_exam_date'), table_name='exams')
    op.drop_table('exams')
    op.drop_index(op.f('ix_recent_updates_branch'), table_name='recent_updates')
    op.drop_table('recent_updates')
    op.drop_index('idx_resources_context_not_deleted', table_name='resources')
    op.drop_index(op.f('ix_resources_subject'), table_name='resources')
    op.drop_index(op.f('ix_resources_category'), table_name='resources')
    op.drop_table('resources')
    op.drop_index(op.f('ix_subject_offerings_branch'), table_name='subject_offerings')
    op.drop_index(op.f('ix_subject_offerings_regulation'), table_name='subject_offerings')
    op.drop_table('subject_offerings')
    op.drop_index(op.f('ix_subjects_code'), table_name='subjects')
    op.drop_table('subjects')
    op.drop_table('semesters')
    op.drop_index(op.f('ix_years_batch_year'), table_name='years')
    op.drop_table('years')
    op.drop_index(op.f('ix_branches_code'), table_name='branches')
    op.drop_table('branches')
