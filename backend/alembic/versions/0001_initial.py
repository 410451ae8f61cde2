"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa

revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

appointment_status = sa.Enum('pending', 'confirmed', 'cancelled', name='appointment_status')
appointment_frequency = sa.Enum('puntual', 'semanal', 'quincenal', name='appointment_frequency')


def upgrade():
    op.create_table(
        'therapists',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('specialty', sa.Text(), nullable=False),
        sa.Column('color', sa.Text(), nullable=False, server_default=sa.text("'#3b82f6'")),
        sa.Column('email', sa.Text()),
        sa.Column('phone', sa.Text()),
        sa.Column('is_active', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_table(
        'clients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('first_name', sa.Text(), nullable=False),
        sa.Column('last_name', sa.Text()),
        sa.Column('email', sa.Text()),
        sa.Column('phone', sa.Text()),
        sa.Column('notes', sa.Text()),
        sa.Column('is_active', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_table(
        'therapist_working_hours',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('therapist_id', sa.Integer(), sa.ForeignKey('therapists.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Text(), nullable=False),
        sa.Column('end_time', sa.Text(), nullable=False),
    )
    op.create_index('ix_therapist_working_hours_therapist_id', 'therapist_working_hours', ['therapist_id'])
    op.create_table(
        'client_availability',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Text(), nullable=False),
        sa.Column('end_time', sa.Text(), nullable=False),
    )
    op.create_index('ix_client_availability_client_id', 'client_availability', ['client_id'])
    op.create_table(
        'appointments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('therapist_id', sa.Integer(), sa.ForeignKey('therapists.id', ondelete='CASCADE'), nullable=False),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Text(), nullable=False),
        sa.Column('end_time', sa.Text(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default=sa.text('60')),
        sa.Column('status', appointment_status, nullable=False, server_default=sa.text("'pending'")),
        sa.Column('frequency', appointment_frequency, nullable=False, server_default=sa.text("'puntual'")),
        sa.Column('series_id', sa.Text()),
        sa.Column('notes', sa.Text()),
        sa.Column('pending_reason', sa.Text()),
        sa.Column('optimization_score', sa.Integer()),
        sa.Column('created_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.Text(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_appointments_client_id', 'appointments', ['client_id'])
    op.create_index('ix_appointments_therapist_date', 'appointments', ['therapist_id', 'date'])
    op.create_index('ix_appointments_series_date', 'appointments', ['series_id', 'date'])


def downgrade():
    op.drop_table('appointments')
    op.drop_table('client_availability')
    op.drop_table('therapist_working_hours')
    op.drop_table('clients')
    op.drop_table('therapists')
