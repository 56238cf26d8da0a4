"""initial tables: users, hostels, students, laundry slots, audit log

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

STATUSES = "'available', 'booked', 'in_progress'"
WINDOWS = ("'morning-1', 'morning-2', 'morning-3', 'afternoon-1', 'afternoon-2', "
           "'evening-1', 'evening-2'")

def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('role', sa.String(16), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table('hostels',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('code', sa.String(32), nullable=False),
    )
    op.create_index('ix_hostels_code', 'hostels', ['code'], unique=True)

    op.create_table('students',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.String(64), nullable=False),
        sa.Column('hostel_id', sa.Integer(), sa.ForeignKey('hostels.id', ondelete='RESTRICT'), nullable=False),
        sa.UniqueConstraint('user_id', name='uq_students_user_id'),
    )
    op.create_index('ix_students_hostel_id', 'students', ['hostel_id'])

    op.create_table('laundry_slots',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('hostel_id', sa.Integer(), sa.ForeignKey('hostels.id', ondelete='CASCADE'), nullable=False),
        sa.Column('machine_number', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time_slot', sa.String(32), nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='available'),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('hostel_id', 'machine_number', 'date', 'time_slot', name='uq_laundry_slot_tuple'),
        sa.CheckConstraint('machine_number > 0', name='ck_laundry_machine_positive'),
        sa.CheckConstraint(f'status IN ({STATUSES})', name='ck_laundry_status'),
        sa.CheckConstraint(f'time_slot IN ({WINDOWS})', name='ck_laundry_time_slot'),
        sa.CheckConstraint(
            "(status = 'booked' AND student_id IS NOT NULL) OR (status <> 'booked' AND student_id IS NULL)",
            name='ck_laundry_occupant_iff_booked',
        ),
    )
    op.create_index('ix_laundry_slots_date', 'laundry_slots', ['date'])
    op.create_index('ix_laundry_hostel_date', 'laundry_slots', ['hostel_id', 'date'])
    # одна бронь на человека в день
    op.create_index('uq_laundry_student_day_booked', 'laundry_slots', ['student_id', 'date'], unique=True,
                    sqlite_where=sa.text("status = 'booked'"),
                    postgresql_where=sa.text("status = 'booked'"))

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(64), nullable=False),
        sa.Column('entity', sa.String(64), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

def downgrade():
    op.drop_table('audit_logs')
    op.drop_index('uq_laundry_student_day_booked', table_name='laundry_slots')
    op.drop_index('ix_laundry_hostel_date', table_name='laundry_slots')
    op.drop_index('ix_laundry_slots_date', table_name='laundry_slots')
    op.drop_table('laundry_slots')
    op.drop_index('ix_students_hostel_id', table_name='students')
    op.drop_table('students')
    op.drop_index('ix_hostels_code', table_name='hostels')
    op.drop_table('hostels')
    op.drop_index('ix_users_role', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
