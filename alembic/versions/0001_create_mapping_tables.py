"""Create student, faculty, mapping and audit tables.

Revision ID: create_mapping_tables
Revises:
Create Date: 2026-10-19

Creates:
- students: self-registered students
- student_data: bulk-imported department roster
- faculty: faculty reference data
- student_faculty_mappings: coordinator/counsellor assignments, soft-deleted
- audit_logs: append-only change history

The partial unique index on student_faculty_mappings enforces at most one
active mapping per (student_id, mapping_type).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'create_mapping_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ACADEMIC_YEARS = ('1st Year', '2nd Year', '3rd Year', '4th Year')


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Create mapping tables."""
    academic_year = sa.Enum(*ACADEMIC_YEARS, name='academicyear')

    op.create_table(
        'students',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('hall_ticket', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('year', academic_year, nullable=False),
        sa.Column('section', sa.String(length=10), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_students_hall_ticket', 'students', ['hall_ticket'], unique=True)

    op.create_table(
        'student_data',
        sa.Column('ht_no', sa.String(length=20), nullable=False),
        sa.Column('id', sa.String(length=64), nullable=True),
        sa.Column('student_name', sa.String(length=255), nullable=False),
        sa.Column('year', academic_year, nullable=False),
        sa.Column('branch', sa.String(length=100), nullable=True),
        sa.Column('section', sa.String(length=10), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('ht_no'),
        sa.UniqueConstraint('id'),
    )
    op.create_index('ix_student_data_year', 'student_data', ['year'])

    op.create_table(
        'faculty',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('faculty_id', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('designation', sa.String(length=100), nullable=False),
        sa.Column('role', sa.Enum('HOD', 'Faculty', 'Admin', name='facultyrole'), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('department', sa.String(length=255), nullable=True),
        sa.Column('specialization', sa.String(length=255), nullable=True),
        sa.Column('experience', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_faculty_faculty_id', 'faculty', ['faculty_id'], unique=True)

    op.create_table(
        'student_faculty_mappings',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('student_id', sa.String(length=64), nullable=False),
        sa.Column('faculty_id', sa.String(length=64), nullable=False),
        sa.Column('mapping_type', sa.Enum('coordinator', 'counsellor', name='mappingtype'), nullable=False),
        sa.Column('assigned_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_student_faculty_mappings_student_id', 'student_faculty_mappings', ['student_id'])
    op.create_index('ix_student_faculty_mappings_faculty_id', 'student_faculty_mappings', ['faculty_id'])
    op.create_index('ix_student_faculty_mappings_is_active', 'student_faculty_mappings', ['is_active'])
    op.create_index(
        'uq_active_student_mapping_type',
        'student_faculty_mappings',
        ['student_id', 'mapping_type'],
        unique=True,
        postgresql_where=sa.text('is_active'),
        sqlite_where=sa.text('is_active = 1'),
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('actor', sa.String(length=255), nullable=True),
        sa.Column(
            'action',
            sa.Enum(
                'MAPPING_CREATED', 'MAPPING_REASSIGNED', 'MAPPING_REMOVED',
                'STUDENT_REGISTERED', 'UPLOAD_COMPLETED', 'UPLOAD_FAILED',
                name='auditaction',
            ),
            nullable=False,
        ),
        sa.Column('resource_type', sa.String(length=100), nullable=False),
        sa.Column('resource_id', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('extra_data', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_resource_id', 'audit_logs', ['resource_id'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])


def downgrade() -> None:
    """Drop mapping tables."""
    op.drop_table('audit_logs')
    op.drop_index('uq_active_student_mapping_type', table_name='student_faculty_mappings')
    op.drop_table('student_faculty_mappings')
    op.drop_table('faculty')
    op.drop_table('student_data')
    op.drop_table('students')
    for enum_name in ('auditaction', 'mappingtype', 'facultyrole', 'academicyear'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
