"""initial eduops schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns():
    return [
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
    ]


def _status(name: str = 'status', default: str = 'active'):
    return sa.Column(name, sa.String(20), nullable=False, server_default=default)


def _index(table: str, *columns: str, unique: bool = False):
    for column in columns:
        op.create_index(f'ix_{table}_{column}', table, [column], unique=unique)


def upgrade() -> None:
    op.create_table(
        'sites',
        *_base_columns(),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('city', sa.String(100), nullable=False),
        sa.Column('address', sa.String(500)),
        sa.Column('phone', sa.String(20)),
        sa.Column('email', sa.String(254)),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    _index('sites', 'id', 'created_at', 'is_deleted', 'name')

    op.create_table(
        'academic_cycles',
        *_base_columns(),
        sa.Column('name', sa.String(50), nullable=False, unique=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    _index('academic_cycles', 'id', 'created_at', 'is_deleted')

    for table in ('students', 'teachers'):
        extra = (
            [sa.Column('specialty', sa.String(100)), sa.Column('hire_date', sa.Date())]
            if table == 'teachers' else [sa.Column('date_of_birth', sa.Date())]
        )
        op.create_table(
            table,
            *_base_columns(),
            sa.Column('site_id', sa.Uuid(), sa.ForeignKey('sites.id'), nullable=False),
            sa.Column('national_id', sa.String(20), nullable=False),
            sa.Column('first_name', sa.String(100), nullable=False),
            sa.Column('last_name', sa.String(100), nullable=False),
            sa.Column('email', sa.String(100)),
            sa.Column('phone', sa.String(20)),
            sa.Column('address', sa.String(500)),
            *extra,
            _status(),
        )
        _index(table, 'id', 'created_at', 'is_deleted', 'site_id', 'email', 'status')
        _index(table, 'national_id', unique=True)

    op.create_table(
        'courses',
        *_base_columns(),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('credits', sa.Integer(), server_default='0'),
        sa.Column('level', sa.String(50)),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('teacher_id', sa.Uuid(), sa.ForeignKey('teachers.id'), nullable=True),
    )
    _index('courses', 'id', 'created_at', 'is_deleted', 'teacher_id')
    _index('courses', 'code', unique=True)

    op.create_table(
        'payment_plans',
        *_base_columns(),
        sa.Column('cycle_id', sa.Uuid(), sa.ForeignKey('academic_cycles.id'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('level', sa.String(50), nullable=False),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('paid_amount', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('remaining_amount', sa.Numeric(10, 2), nullable=False, server_default='0'),
    )
    _index('payment_plans', 'id', 'created_at', 'is_deleted', 'cycle_id', 'student_id')

    op.create_table(
        'installments',
        *_base_columns(),
        sa.Column('plan_id', sa.Uuid(), sa.ForeignKey('payment_plans.id'), nullable=False),
        sa.Column('sequence_number', sa.Integer(), nullable=False),
        sa.Column('concept', sa.String(100), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        _status(default='pending'),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('plan_id', 'sequence_number', name='uq_installment_sequence'),
        sa.CheckConstraint('amount > 0', name='ck_installment_amount_positive'),
    )
    _index('installments', 'id', 'created_at', 'is_deleted', 'plan_id', 'status')

    op.create_table(
        'payments',
        *_base_columns(),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('site_id', sa.Uuid(), sa.ForeignKey('sites.id'), nullable=False),
        sa.Column('installment_id', sa.Uuid(), sa.ForeignKey('installments.id'), nullable=True),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('concept', sa.String(100), nullable=False),
        _status('payment_method', default='cash'),
        _status(default='completed'),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('reversed_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('amount > 0', name='ck_payment_amount_positive'),
    )
    _index('payments', 'id', 'created_at', 'is_deleted', 'student_id', 'site_id', 'installment_id', 'status')

    op.create_table(
        'debt_ledgers',
        *_base_columns(),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('total_debt', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('pending_debt', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('last_updated', sa.DateTime(timezone=True)),
    )
    _index('debt_ledgers', 'id', 'created_at', 'is_deleted')
    _index('debt_ledgers', 'student_id', unique=True)

    op.create_table(
        'enrollments',
        *_base_columns(),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('course_id', sa.Uuid(), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('site_id', sa.Uuid(), sa.ForeignKey('sites.id'), nullable=False),
        sa.Column('payment_plan_id', sa.Uuid(), sa.ForeignKey('payment_plans.id'), nullable=True),
        sa.Column('academic_period', sa.String(20), nullable=False),
        sa.Column('enrollment_date', sa.DateTime(timezone=True), nullable=False),
        _status(),
    )
    _index(
        'enrollments', 'id', 'created_at', 'is_deleted', 'student_id', 'course_id',
        'site_id', 'payment_plan_id', 'academic_period', 'status'
    )
    op.create_index(
        'uq_active_enrollment',
        'enrollments',
        ['student_id', 'course_id', 'academic_period'],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )

    op.create_table(
        'evaluations',
        *_base_columns(),
        sa.Column('enrollment_id', sa.Uuid(), sa.ForeignKey('enrollments.id'), nullable=False),
        sa.Column('evaluation_type', sa.String(50), nullable=False),
        sa.Column('score', sa.Numeric(6, 2), nullable=False),
        sa.Column('weight', sa.Numeric(6, 2), nullable=False, server_default='1'),
        sa.Column('evaluation_date', sa.Date(), nullable=False),
        sa.Column('notes', sa.Text()),
        sa.CheckConstraint('weight > 0', name='ck_evaluation_weight_positive'),
    )
    _index('evaluations', 'id', 'created_at', 'is_deleted', 'enrollment_id')

    op.create_table(
        'academic_statuses',
        *_base_columns(),
        sa.Column('enrollment_id', sa.Uuid(), sa.ForeignKey('enrollments.id'), nullable=False),
        sa.Column('average', sa.Numeric(6, 2), nullable=True),
        _status('state', default='no_grades'),
        sa.Column('last_updated', sa.DateTime(timezone=True)),
    )
    _index('academic_statuses', 'id', 'created_at', 'is_deleted')
    _index('academic_statuses', 'enrollment_id', unique=True)

    op.create_table(
        'inventory_items',
        *_base_columns(),
        sa.Column('site_id', sa.Uuid(), sa.ForeignKey('sites.id'), nullable=False),
        sa.Column('material_code', sa.String(50), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('material_type', sa.String(50), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.CheckConstraint('stock >= 0', name='ck_inventory_stock_non_negative'),
    )
    _index('inventory_items', 'id', 'created_at', 'is_deleted', 'site_id')
    _index('inventory_items', 'material_code', unique=True)

    op.create_table(
        'inventory_sales',
        *_base_columns(),
        sa.Column('item_id', sa.Uuid(), sa.ForeignKey('inventory_items.id'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('students.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('sale_date', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_sale_quantity_positive'),
    )
    _index('inventory_sales', 'id', 'created_at', 'is_deleted', 'item_id', 'student_id')

    op.create_table(
        'classrooms',
        *_base_columns(),
        sa.Column('site_id', sa.Uuid(), sa.ForeignKey('sites.id'), nullable=False),
        sa.Column('cycle_id', sa.Uuid(), sa.ForeignKey('academic_cycles.id'), nullable=False),
        sa.Column('teacher_id', sa.Uuid(), sa.ForeignKey('teachers.id'), nullable=True),
        sa.Column('level', sa.String(50), nullable=False),
        sa.Column('grade', sa.String(20), nullable=False),
        sa.Column('section', sa.String(5), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False, server_default='30'),
        sa.UniqueConstraint('site_id', 'cycle_id', 'level', 'grade', 'section', name='uq_classroom_section'),
        sa.CheckConstraint('capacity > 0', name='ck_classroom_capacity_positive'),
    )
    _index('classrooms', 'id', 'created_at', 'is_deleted', 'site_id', 'cycle_id', 'teacher_id')

    op.create_table(
        'classroom_courses',
        *_base_columns(),
        sa.Column('classroom_id', sa.Uuid(), sa.ForeignKey('classrooms.id'), nullable=False),
        sa.Column('course_id', sa.Uuid(), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('teacher_id', sa.Uuid(), sa.ForeignKey('teachers.id'), nullable=True),
        sa.UniqueConstraint('classroom_id', 'course_id', name='uq_classroom_course'),
    )
    _index('classroom_courses', 'id', 'created_at', 'is_deleted', 'classroom_id', 'course_id', 'teacher_id')

    op.create_table(
        'competencies',
        *_base_columns(),
        sa.Column('classroom_course_id', sa.Uuid(), sa.ForeignKey('classroom_courses.id'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('percentage', sa.Numeric(5, 2), nullable=False),
        sa.CheckConstraint('percentage >= 0 AND percentage <= 100', name='ck_competency_percentage_range'),
    )
    _index('competencies', 'id', 'created_at', 'is_deleted', 'classroom_course_id')

    op.create_table(
        'user_roles',
        *_base_columns(),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.UniqueConstraint('user_id', 'role', name='uq_user_role'),
    )
    _index('user_roles', 'id', 'created_at', 'is_deleted', 'user_id')


def downgrade() -> None:
    for table in (
        'user_roles', 'competencies', 'classroom_courses', 'classrooms',
        'inventory_sales', 'inventory_items', 'academic_statuses', 'evaluations',
        'enrollments', 'debt_ledgers', 'payments', 'installments', 'payment_plans',
        'courses', 'teachers', 'students', 'academic_cycles', 'sites',
    ):
        op.drop_table(table)
