"""create_trip_tables

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2025-12-04 09:12:31

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create the trip lifecycle tables.

    - trip_current_state: one row per device, locked per event
    - trips: ignition on -> ignition off, with odometer readings
    - trip_points / trip_alerts: unique (device_id, correlation_id, timestamp)
      so a redelivered event cannot be recorded twice
    - device_idle_activity: activity while no trip is open
    """
    op.create_table(
        'trip_current_state',
        sa.Column('device_id', sa.String(), nullable=False),
        sa.Column('current_trip_id', sa.Uuid(), nullable=True),
        sa.Column('ignition_on', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('last_point_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_lat', sa.Float(), nullable=True),
        sa.Column('last_lng', sa.Float(), nullable=True),
        sa.Column('last_speed', sa.Float(), nullable=True),
        sa.Column('last_odometer', sa.Float(), nullable=True),
        sa.Column('last_correlation_id', sa.Uuid(), nullable=True),
        sa.Column('last_updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('device_id', name=op.f('pk_trip_current_state')),
    )

    op.create_table(
        'trips',
        sa.Column('trip_id', sa.Uuid(), nullable=False),
        sa.Column('device_id', sa.String(), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('start_lat', sa.Float(), nullable=False),
        sa.Column('start_lng', sa.Float(), nullable=False),
        sa.Column('start_odometer', sa.Float(), nullable=True),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_lat', sa.Float(), nullable=True),
        sa.Column('end_lng', sa.Float(), nullable=True),
        sa.Column('end_odometer', sa.Float(), nullable=True),
        sa.Column('odometer_delta', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('trip_id', name=op.f('pk_trips')),
    )
    op.create_index('idx_trips_device_end_time', 'trips', ['device_id', 'end_time'])
    op.create_index('idx_trips_device_start_time', 'trips', ['device_id', 'start_time'])

    op.create_table(
        'trip_points',
        sa.Column('point_id', sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column('trip_id', sa.Uuid(), nullable=False),
        sa.Column('device_id', sa.String(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('lat', sa.Float(), nullable=False),
        sa.Column('lng', sa.Float(), nullable=False),
        sa.Column('speed', sa.Float(), nullable=False),
        sa.Column('heading', sa.Float(), nullable=False),
        sa.Column('odometer', sa.Float(), nullable=True),
        sa.Column('correlation_id', sa.Uuid(), nullable=False),
        sa.PrimaryKeyConstraint('point_id', name=op.f('pk_trip_points')),
        sa.UniqueConstraint('device_id', 'correlation_id', 'timestamp', name='uq_trip_points_event'),
    )
    op.create_index('idx_trip_points_trip_timestamp', 'trip_points', ['trip_id', 'timestamp'])

    op.create_table(
        'trip_alerts',
        sa.Column('alert_id', sa.Uuid(), nullable=False),
        sa.Column('trip_id', sa.Uuid(), nullable=False),
        sa.Column('device_id', sa.String(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('lat', sa.Float(), nullable=False),
        sa.Column('lon', sa.Float(), nullable=False),
        sa.Column('alert_type', sa.Text(), nullable=False),
        sa.Column('raw_code', sa.Integer(), nullable=True),
        sa.Column('severity', sa.Integer(), nullable=False),
        sa.Column('correlation_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('alert_id', name=op.f('pk_trip_alerts')),
        sa.UniqueConstraint('device_id', 'correlation_id', 'timestamp', name='uq_trip_alerts_event'),
    )
    op.create_index('idx_trip_alerts_trip_timestamp', 'trip_alerts', ['trip_id', 'timestamp'])

    op.create_table(
        'device_idle_activity',
        sa.Column('idle_id', sa.Uuid(), nullable=False),
        sa.Column('device_id', sa.String(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('lat', sa.Float(), nullable=False),
        sa.Column('lon', sa.Float(), nullable=False),
        sa.Column('activity_type', sa.Text(), nullable=False),
        sa.Column('raw_code', sa.Integer(), nullable=True),
        sa.Column('severity', sa.Integer(), nullable=True),
        sa.Column('metadata', sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'), nullable=True),
        sa.Column('correlation_id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('idle_id', name=op.f('pk_device_idle_activity')),
    )
    op.create_index(
        'idx_device_idle_activity_device_timestamp',
        'device_idle_activity',
        ['device_id', 'timestamp'],
    )


def downgrade() -> None:
    op.drop_index('idx_device_idle_activity_device_timestamp', table_name='device_idle_activity')
    op.drop_table('device_idle_activity')
    op.drop_index('idx_trip_alerts_trip_timestamp', table_name='trip_alerts')
    op.drop_table('trip_alerts')
    op.drop_index('idx_trip_points_trip_timestamp', table_name='trip_points')
    op.drop_table('trip_points')
    op.drop_index('idx_trips_device_start_time', table_name='trips')
    op.drop_index('idx_trips_device_end_time', table_name='trips')
    op.drop_table('trips')
    op.drop_table('trip_current_state')
