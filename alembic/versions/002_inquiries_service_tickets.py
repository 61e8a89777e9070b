"""inquiries and service tickets

Revision ID: 002
Revises: 001
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    is_sqlite = bind.dialect.name == 'sqlite'

    timestamp_default = sa.text("(datetime('now'))") if is_sqlite else sa.text('now()')
    false_default = '0' if is_sqlite else 'false'

    # Create inquiries table
    op.create_table(
        'inquiries',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('center_id', sa.String(length=36), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('contacted', sa.Boolean(), nullable=False, server_default=false_default),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('note_updated_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.ForeignKeyConstraint(['center_id'], ['centers.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_inquiries_center_id', 'inquiries', ['center_id'])
    op.create_index('ix_inquiries_created_at', 'inquiries', ['created_at'])

    # Create service_tickets table
    op.create_table(
        'service_tickets',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('center_id', sa.String(length=36), nullable=False),
        sa.Column('vehicle_name', sa.String(length=255), nullable=False),
        sa.Column('vehicle_number', sa.String(length=64), nullable=False),
        sa.Column('mileage_km', sa.Integer(), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('purchase_date', sa.Date(), nullable=True),
        sa.Column('symptom', sa.Text(), nullable=True),
        sa.Column('service_detail', sa.Text(), nullable=True),
        sa.Column('vin_image_url', sa.Text(), nullable=True),
        sa.Column('engine_image_url', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.ForeignKeyConstraint(['center_id'], ['centers.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_service_tickets_center_id', 'service_tickets', ['center_id'])
    op.create_index('ix_service_tickets_vehicle_number', 'service_tickets', ['vehicle_number'])
    op.create_index('ix_service_tickets_created_at', 'service_tickets', ['created_at'])


def downgrade() -> None:
    op.drop_table('service_tickets')
    op.drop_table('inquiries')
