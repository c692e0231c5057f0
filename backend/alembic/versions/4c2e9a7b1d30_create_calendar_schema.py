"""Create calendar schema

Revision ID: 4c2e9a7b1d30
Revises:
Create Date: 2025-02-20 10:12:41.208315

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4c2e9a7b1d30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'professionals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('professional_type', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('verification_status', sa.String(length=20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('user_is_verified', sa.Boolean(), nullable=False),
        sa.Column('user_is_active', sa.Boolean(), nullable=False),
        sa.Column('consultation_fee', sa.Numeric(10, 2), nullable=False),
        sa.Column('home_visit_fee', sa.Numeric(10, 2), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_professionals_id', 'professionals', ['id'])
    op.create_index('idx_professionals_type_active', 'professionals', ['professional_type', 'is_active'])

    op.create_table(
        'patients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_patients_id', 'patients', ['id'])

    op.create_table(
        'weekly_availability_slots',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('professional_id', sa.Integer(), sa.ForeignKey('professionals.id'), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        sa.Column('slot_type', sa.String(length=20), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False),
        sa.Column('max_patients', sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_weekly_availability_slots_id', 'weekly_availability_slots', ['id'])
    op.create_index(
        'idx_weekly_availability_professional_day',
        'weekly_availability_slots',
        ['professional_id', 'day_of_week'],
    )

    op.create_table(
        'lab_test_slots',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('professional_id', sa.Integer(), sa.ForeignKey('professionals.id'), nullable=False),
        sa.Column('slot_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        sa.Column('slot_type', sa.String(length=20), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_lab_test_slots_id', 'lab_test_slots', ['id'])
    op.create_index('idx_lab_test_slots_professional_date', 'lab_test_slots', ['professional_id', 'slot_date'])

    op.create_table(
        'appointments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id'), nullable=False),
        sa.Column('professional_id', sa.Integer(), sa.ForeignKey('professionals.id'), nullable=False),
        sa.Column('professional_type', sa.String(length=50), nullable=False),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('visit_type', sa.String(length=20), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_appointments_id', 'appointments', ['id'])
    op.create_index(
        'idx_appointments_professional_date',
        'appointments',
        ['professional_type', 'professional_id', 'appointment_date'],
    )
    op.create_index('idx_appointments_date_status', 'appointments', ['appointment_date', 'status'])

    op.create_table(
        'month_calendars',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('days', sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('year', 'month', name='uq_month_calendars_year_month'),
    )
    op.create_index('ix_month_calendars_id', 'month_calendars', ['id'])

    op.create_table(
        'schedule_locks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('professional_id', sa.Integer(), nullable=False),
        sa.Column('professional_type', sa.String(length=50), nullable=False),
        sa.Column('lock_date', sa.Date(), nullable=False),
        sa.UniqueConstraint('professional_id', 'professional_type', 'lock_date', name='uq_schedule_locks_key'),
    )


def downgrade() -> None:
    op.drop_table('schedule_locks')
    op.drop_index('ix_month_calendars_id', table_name='month_calendars')
    op.drop_table('month_calendars')
    op.drop_index('idx_appointments_date_status', table_name='appointments')
    op.drop_index('idx_appointments_professional_date', table_name='appointments')
    op.drop_index('ix_appointments_id', table_name='appointments')
    op.drop_table('appointments')
    op.drop_index('idx_lab_test_slots_professional_date', table_name='lab_test_slots')
    op.drop_index('ix_lab_test_slots_id', table_name='lab_test_slots')
    op.drop_table('lab_test_slots')
    op.drop_index('idx_weekly_availability_professional_day', table_name='weekly_availability_slots')
    op.drop_index('ix_weekly_availability_slots_id', table_name='weekly_availability_slots')
    op.drop_table('weekly_availability_slots')
    op.drop_index('ix_patients_id', table_name='patients')
    op.drop_table('patients')
    op.drop_index('ix_professionals_id', table_name='professionals')
    op.drop_table('professionals')
