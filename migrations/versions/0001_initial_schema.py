"""Initial schema: users, properties, units, tenants, invites

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


user_role = sa.Enum('admin', 'owner', 'tenant', 'manager', name='user_role')
property_status = sa.Enum('draft', 'active', 'coming_soon', 'archived', name='property_status')
property_type = sa.Enum(
    'apartment', 'single_family_home', 'condo', 'co-op', 'townhouse', 'duplex',
    'triplex', 'fourplex', 'studio', 'loft', 'penthouse', 'bungalow', 'cottage',
    'cabin', 'villa', 'mobile_home', 'manufactured_home', 'tiny_house',
    name='property_type',
)
property_unit_type = sa.Enum('single_unit', 'multi_unit', name='property_unit_type')
tenant_status = sa.Enum('draft', 'active', 'archived', 'inactive', name='tenant_status')
invite_role = sa.Enum('tenant', 'manager', name='invite_role')
invite_status = sa.Enum('pending', 'accepted', 'revoked', 'expired', name='invite_status')

ACTIVE_TENANT_PREDICATE = sa.text("lease_end_date IS NULL AND tenant_status = 'active'")


def timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Users (identity provider record)
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('role', user_role, nullable=False),
        *timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    # Properties
    op.create_table(
        'properties',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('property_status', property_status, nullable=False, server_default='draft'),
        sa.Column('property_type', property_type, nullable=False, server_default='single_family_home'),
        sa.Column('unit_type', property_unit_type, nullable=True),
        sa.Column('contact_email', sa.String(255), nullable=True),
        sa.Column('contact_phone', sa.String(20), nullable=True),
        sa.Column('address_line_1', sa.String(255), nullable=False),
        sa.Column('address_line_2', sa.String(255), nullable=True),
        sa.Column('city', sa.String(100), nullable=False),
        sa.Column('state', sa.String(100), nullable=False),
        sa.Column('zip_code', sa.String(20), nullable=False),
        sa.Column('country', sa.String(2), nullable=False),
        sa.Column('year_built', sa.Integer(), nullable=True),
        sa.Column('building_sq_ft', sa.Integer(), nullable=True),
        sa.Column('lot_sq_ft', sa.Integer(), nullable=True),
        *timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='RESTRICT'),
        sa.CheckConstraint('year_built IS NULL OR year_built >= 1700', name='property_year_built_range'),
    )
    op.create_index('ix_properties_owner_id', 'properties', ['owner_id'])
    op.create_index(
        'property_owner_address_uid', 'properties',
        ['owner_id', 'address_line_1', 'city', 'state', 'zip_code', 'country'],
        unique=True,
    )

    # Units
    op.create_table(
        'units',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('property_id', sa.Uuid(), nullable=False),
        sa.Column('unit_number', sa.String(50), nullable=False),
        sa.Column('bedrooms', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('bathrooms', sa.Numeric(3, 1), nullable=False, server_default='0'),
        sa.Column('rent_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('deposit_amount', sa.Numeric(12, 2), nullable=True),
        *timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.CheckConstraint('bedrooms >= 0', name='unit_bedrooms_non_negative'),
        sa.CheckConstraint('bathrooms >= 0', name='unit_bathrooms_non_negative'),
        sa.CheckConstraint('rent_amount >= 0', name='unit_rent_amount_non_negative'),
        sa.CheckConstraint(
            'deposit_amount IS NULL OR deposit_amount >= 0', name='unit_deposit_amount_non_negative'
        ),
    )
    op.create_index('ix_units_property_id', 'units', ['property_id'])
    op.create_index('unit_property_unit_number_uid', 'units', ['property_id', 'unit_number'], unique=True)

    # Tenants
    op.create_table(
        'tenants',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('unit_id', sa.Uuid(), nullable=True),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('lease_start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('lease_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('tenant_status', tenant_status, nullable=False, server_default='draft'),
        *timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['unit_id'], ['units.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.CheckConstraint('email IS NOT NULL OR phone IS NOT NULL', name='tenant_contact_method_required'),
        sa.CheckConstraint(
            'lease_end_date IS NULL OR lease_start_date IS NULL OR lease_end_date > lease_start_date',
            name='tenant_lease_dates_ordered',
        ),
    )
    op.create_index('ix_tenants_unit_id', 'tenants', ['unit_id'])
    op.create_index('ix_tenants_owner_id', 'tenants', ['owner_id'])
    op.create_index('ix_tenants_user_id', 'tenants', ['user_id'])
    op.create_index('ix_tenants_tenant_status', 'tenants', ['tenant_status'])
    op.create_index(
        'tenant_unit_active_uid', 'tenants', ['unit_id'],
        unique=True,
        postgresql_where=ACTIVE_TENANT_PREDICATE,
        sqlite_where=ACTIVE_TENANT_PREDICATE,
    )

    # Invites
    op.create_table(
        'invites',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('property_id', sa.Uuid(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('manager_id', sa.Uuid(), nullable=True),
        sa.Column('tenant_id', sa.Uuid(), nullable=True),
        sa.Column('invitee_email', sa.String(255), nullable=False),
        sa.Column('invitee_name', sa.String(255), nullable=True),
        sa.Column('role', invite_role, nullable=False, server_default='tenant'),
        sa.Column('status', invite_status, nullable=False, server_default='pending'),
        sa.Column('token', sa.String(128), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('accepted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        *timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token'),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['manager_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_invites_property_id', 'invites', ['property_id'])
    op.create_index('ix_invites_owner_id', 'invites', ['owner_id'])
    op.create_index('ix_invites_manager_id', 'invites', ['manager_id'])
    op.create_index('ix_invites_tenant_id', 'invites', ['tenant_id'])
    op.create_index('ix_invites_status', 'invites', ['status'])
    op.create_index('invite_property_email_uid', 'invites', ['property_id', 'invitee_email'], unique=True)


def downgrade() -> None:
    op.drop_table('invites')
    op.drop_table('tenants')
    op.drop_table('units')
    op.drop_table('properties')
    op.drop_table('users')

    bind = op.get_bind()
    for enum_type in (
        invite_status, invite_role, tenant_status, property_unit_type,
        property_type, property_status, user_role,
    ):
        enum_type.drop(bind, checkfirst=True)
