"""classroom student roster

Revision ID: 0002_classroom_students
Revises: 0001_initial
Create Date: 2026-10-19 15:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002_classroom_students'
down_revision: Union[str, None] = '0001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'classroom_students',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('classroom_id', sa.Uuid(), sa.ForeignKey('classrooms.id'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint('classroom_id', 'student_id', name='uq_classroom_student'),
    )
    for column in ('id', 'created_at', 'is_deleted', 'classroom_id', 'student_id'):
        op.create_index(f'ix_classroom_students_{column}', 'classroom_students', [column])


def downgrade() -> None:
    op.drop_table('classroom_students')
