"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Detect database type
    bind = op.get_bind()
    is_sqlite = bind.dialect.name == 'sqlite'

    # Choose appropriate timestamp default
    timestamp_default = sa.text("(datetime('now'))") if is_sqlite else sa.text('now()')
    true_default = '1' if is_sqlite else 'true'
    false_default = '0' if is_sqlite else 'false'

    # Create centers table
    op.create_table(
        'centers',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_centers_code', 'centers', ['code'], unique=True)

    # Create admin_users table
    op.create_table(
        'admin_users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('username', sa.String(length=255), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('center_id', sa.String(length=36), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=true_default),
        sa.Column('is_superadmin', sa.Boolean(), nullable=False, server_default=false_default),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.ForeignKeyConstraint(['center_id'], ['centers.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    # Unique username closes the concurrent-approval race at the database level
    op.create_index('ix_admin_users_email', 'admin_users', ['email'], unique=True)
    op.create_index('ix_admin_users_username', 'admin_users', ['username'], unique=True)
    op.create_index('ix_admin_users_center_id', 'admin_users', ['center_id'])

    # Create admin_requests table
    op.create_table(
        'admin_requests',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('center_name', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('requested_at', sa.DateTime(), nullable=False, server_default=timestamp_default),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('approved_by', sa.String(length=36), nullable=True),
        sa.Column('center_id', sa.String(length=36), nullable=True),
        sa.ForeignKeyConstraint(['center_id'], ['centers.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_admin_requests_username', 'admin_requests', ['username'])
    op.create_index('ix_admin_requests_status', 'admin_requests', ['status'])
    op.create_index('ix_admin_requests_requested_at', 'admin_requests', ['requested_at'])

    # Create receipts table
    op.create_table(
        'receipts',
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
    op.create_index('ix_receipts_center_id', 'receipts', ['center_id'])
    op.create_index('ix_receipts_vehicle_number', 'receipts', ['vehicle_number'])
    op.create_index('ix_receipts_created_at', 'receipts', ['created_at'])
    # Composite index for the scoped list query
    op.create_index('ix_receipts_center_created', 'receipts', ['center_id', 'created_at'])


def downgrade() -> None:
    op.drop_table('receipts')
    op.drop_table('admin_requests')
    op.drop_table('admin_users')
    op.drop_table('centers')
