"""initial schema: restaurants, trips, trip_restaurants, availability_results

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # --- Restaurants ---
    op.create_table('restaurants',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('name_ja', sa.String(200), nullable=True),
        sa.Column('tabelog_url', sa.String(500), nullable=True),
        sa.Column('tabelog_score', sa.Float(), nullable=True),
        sa.Column('cuisine', sa.String(120), nullable=True),
        sa.Column('area', sa.String(120), nullable=True),
        sa.Column('city', sa.String(120), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('price_range', sa.String(120), nullable=True),
        sa.Column('hours', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('rank', sa.Integer(), nullable=True),
        sa.Column('omakase_url', sa.String(500), nullable=True),
        sa.Column('tablecheck_url', sa.String(500), nullable=True),
        sa.Column('tableall_url', sa.String(500), nullable=True),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('is_favorite', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tabelog_url', name='uq_restaurants_tabelog_url')
    )

    # --- Trips ---
    op.create_table('trips',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('city', sa.String(120), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # --- Trip Restaurants (slot assignments) ---
    op.create_table('trip_restaurants',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('trip_id', sa.String(36), nullable=False),
        sa.Column('restaurant_id', sa.String(36), nullable=False),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('day_assigned', sa.Date(), nullable=True),
        sa.Column('meal', sa.String(20), nullable=True), # lunch, dinner
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), server_default='potential', nullable=False),
        sa.Column('booked_via', sa.String(200), nullable=True),
        sa.Column('auto_dates', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.ForeignKeyConstraint(['trip_id'], ['trips.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('trip_id', 'restaurant_id', 'day_assigned', 'meal', name='uq_trip_restaurant_slot')
    )
    op.create_index('ix_trip_restaurants_trip_slot', 'trip_restaurants', ['trip_id', 'day_assigned', 'meal'])
    op.create_index('ix_trip_restaurants_trip_restaurant', 'trip_restaurants', ['trip_id', 'restaurant_id'])

    # --- Availability Results ---
    op.create_table('availability_results',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('restaurant_id', sa.String(36), nullable=False),
        sa.Column('trip_id', sa.String(36), nullable=False),
        sa.Column('platform', sa.String(50), nullable=False),
        sa.Column('check_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), server_default='unknown', nullable=False),
        sa.Column('time_slots', sa.JSON(), nullable=True),
        sa.Column('raw_data', sa.JSON(), nullable=True),
        sa.Column('checked_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['restaurant_id'], ['restaurants.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['trip_id'], ['trips.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_availability_restaurant_trip', 'availability_results', ['restaurant_id', 'trip_id', 'platform'])


def downgrade():
    op.drop_index('idx_availability_restaurant_trip', table_name='availability_results')
    op.drop_table('availability_results')
    op.drop_index('ix_trip_restaurants_trip_restaurant', table_name='trip_restaurants')
    op.drop_index('ix_trip_restaurants_trip_slot', table_name='trip_restaurants')
    op.drop_table('trip_restaurants')
    op.drop_table('trips')
    op.drop_table('restaurants')
