"""availability engine tables

Revision ID: 5c1d7e9a2b34
Revises:
Create Date: 2026-10-19 10:12:40.518203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5c1d7e9a2b34'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_SLOT_PREDICATE = sa.text("status IN ('scheduled', 'confirmed')")


def upgrade() -> None:
    """Upgrade schema."""

    # 1. Weekly working hours, one row per weekday (0=Sunday)
    op.create_table(
        'working_hours',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('day_of_week', sa.Integer, nullable=False, unique=True),
        sa.Column('day_name', sa.String(10), nullable=False),
        sa.Column('enabled', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('start_time', sa.String(5), nullable=False),
        sa.Column('end_time', sa.String(5), nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
    )

    # 2. Recurring breaks
    op.create_table(
        'break_times',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('start_time', sa.String(5), nullable=False),
        sa.Column('end_time', sa.String(5), nullable=False),
        sa.Column('days_of_week', sa.JSON, nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )

    # 3. Blackout ranges
    op.create_table(
        'blackout_dates',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('start_date', sa.Date, nullable=False),
        sa.Column('end_date', sa.Date, nullable=False),
        sa.Column('reason', sa.Text, nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_blackout_dates_start_date', 'blackout_dates', ['start_date'])
    op.create_index('ix_blackout_dates_end_date', 'blackout_dates', ['end_date'])

    # 4. Recurring patterns
    op.create_table(
        'recurring_patterns',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('pattern_type', sa.String(10), nullable=False, server_default='weekly'),
        sa.Column('days_of_week', sa.JSON, nullable=True),
        sa.Column('days_of_month', sa.JSON, nullable=True),
        sa.Column('start_time', sa.String(5), nullable=True),
        sa.Column('end_time', sa.String(5), nullable=True),
        sa.Column('valid_from', sa.Date, nullable=True),
        sa.Column('valid_to', sa.Date, nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )

    # 5. Appointments
    op.create_table(
        'appointments',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('full_name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(254), nullable=False),
        sa.Column('phone', sa.String(30), nullable=False),
        sa.Column('appointment_at', sa.DateTime, nullable=False),
        sa.Column('service_type', sa.String(30), server_default='consultation'),
        sa.Column('location', sa.String(10), server_default='office'),
        sa.Column('source', sa.String(10), server_default='website'),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('status', sa.String(10), nullable=False, server_default='scheduled'),
        sa.Column('reminders_sent', sa.Integer, server_default='0'),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('cancelled_at', sa.DateTime, nullable=True),
        sa.CheckConstraint(
            "status IN ('scheduled', 'confirmed', 'completed', 'cancelled', 'no-show')",
            name='ck_appointments_status',
        ),
    )
    op.create_index('ix_appointments_appointment_at', 'appointments', ['appointment_at'])

    # At most one scheduled/confirmed appointment per slot instant
    op.create_index(
        'uq_appointments_active_slot',
        'appointments',
        ['appointment_at'],
        unique=True,
        postgresql_where=ACTIVE_SLOT_PREDICATE,
        sqlite_where=ACTIVE_SLOT_PREDICATE,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('uq_appointments_active_slot', table_name='appointments')
    op.drop_index('ix_appointments_appointment_at', table_name='appointments')
    op.drop_table('appointments')
    op.drop_table('recurring_patterns')
    op.drop_index('ix_blackout_dates_end_date', table_name='blackout_dates')
    op.drop_index('ix_blackout_dates_start_date', table_name='blackout_dates')
    op.drop_table('blackout_dates')
    op.drop_table('break_times')
    op.drop_table('working_hours')
