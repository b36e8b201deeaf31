"""Initial workshop schema

Revision ID: 3f2a9c1d7e10
Revises: 
Create Date: 2026-10-17 10:12:41.518203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Revision identifiers used by Alembic
revision: str = '3f2a9c1d7e10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

APP_ROLE = sa.Enum('monteur', 'admin', 'foh', name='approle')
FEATURE_PERMISSION = sa.Enum(
    'inventory', 'pricelist', 'tv_announcements', 'warranty', 'call_status', 'availability',
    name='featurepermission',
)
BIKE_MODEL = sa.Enum('S1', 'S2', 'S3', 'S5', 'S6', 'X1', 'X2', 'X3', 'X5', 'A5', name='bikemodel')
WORKFLOW_STATUS = sa.Enum(
    'diagnose_nodig', 'diagnose_bezig', 'wacht_op_akkoord', 'wacht_op_onderdelen',
    'klaar_voor_reparatie', 'in_reparatie', 'afgerond',
    name='bikeworkflowstatus',
)
AVAILABILITY_STATUS = sa.Enum('pending', 'approved', 'rejected', name='availabilitystatus')


def upgrade() -> None:
    """Upgrade schema."""
    # Accounts
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_approved', sa.Boolean(), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('job_function', sa.String(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('contract', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'user_roles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('role', APP_ROLE, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
    )
    op.create_index(op.f('ix_user_roles_id'), 'user_roles', ['id'], unique=False)

    op.create_table(
        'user_permissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('permission', FEATURE_PERMISSION, nullable=False),
        sa.Column('granted_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.UniqueConstraint('user_id', 'permission', name='uq_user_permission'),
    )
    op.create_index(op.f('ix_user_permissions_id'), 'user_permissions', ['id'], unique=False)
    op.create_index(op.f('ix_user_permissions_user_id'), 'user_permissions', ['user_id'], unique=False)

    # Audit and security
    op.create_table(
        'logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('ts', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('action', sa.String(length=50), nullable=True),
        sa.Column('resource', sa.String(length=50), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('ip', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
    )
    op.create_index(op.f('ix_logs_id'), 'logs', ['id'], unique=False)
    op.create_index(op.f('ix_logs_ts'), 'logs', ['ts'], unique=False)
    op.create_index(op.f('ix_logs_action'), 'logs', ['action'], unique=False)
    op.create_index(op.f('ix_logs_resource'), 'logs', ['resource'], unique=False)
    op.create_index(op.f('ix_logs_status'), 'logs', ['status'], unique=False)

    op.create_table(
        'admin_promotion_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('target_user_id', sa.Integer(), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
    )
    op.create_index(op.f('ix_admin_promotion_logs_id'), 'admin_promotion_logs', ['id'], unique=False)
    op.create_index(op.f('ix_admin_promotion_logs_created_at'), 'admin_promotion_logs', ['created_at'], unique=False)
    op.create_index(op.f('ix_admin_promotion_logs_user_id'), 'admin_promotion_logs', ['user_id'], unique=False)

    op.create_table(
        'admin_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('setting_key', sa.String(), nullable=False, unique=True),
        sa.Column('setting_value', sa.String(), nullable=False),
        sa.Column('updated_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
    )
    op.create_index(op.f('ix_admin_settings_id'), 'admin_settings', ['id'], unique=False)

    op.create_table(
        'rate_limit_attempts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('key', sa.String(), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False),
        sa.Column('window_start', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index(op.f('ix_rate_limit_attempts_id'), 'rate_limit_attempts', ['id'], unique=False)
    op.create_index(op.f('ix_rate_limit_attempts_key'), 'rate_limit_attempts', ['key'], unique=True)

    # Price list
    op.create_table(
        'repair_types',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('price', sa.Float(), sa.CheckConstraint('price >= 0'), nullable=False),
        sa.Column('points', sa.Integer(), sa.CheckConstraint('points >= 0'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
    )
    op.create_index(op.f('ix_repair_types_id'), 'repair_types', ['id'], unique=False)
    op.create_index(op.f('ix_repair_types_name'), 'repair_types', ['name'], unique=False)

    op.create_table(
        'repair_type_models',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('repair_type_id', sa.Integer(), sa.ForeignKey('repair_types.id', ondelete='CASCADE'), nullable=False),
        sa.Column('model', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.UniqueConstraint('repair_type_id', 'model', name='uq_repair_type_model'),
    )
    op.create_index(op.f('ix_repair_type_models_id'), 'repair_type_models', ['id'], unique=False)
    op.create_index(op.f('ix_repair_type_models_repair_type_id'), 'repair_type_models', ['repair_type_id'], unique=False)

    # Bikes and their history
    op.create_table(
        'table_call_statuses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('name_en', sa.String(), nullable=False),
        sa.Column('color', sa.String(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
    )
    op.create_index(op.f('ix_table_call_statuses_id'), 'table_call_statuses', ['id'], unique=False)

    op.create_table(
        'bikes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('frame_number', sa.String(), nullable=False),
        sa.Column('model', BIKE_MODEL, nullable=False),
        sa.Column('workflow_status', WORKFLOW_STATUS, nullable=False),
        sa.Column('table_number', sa.String(), nullable=True),
        sa.Column('is_sales_bike', sa.Boolean(), nullable=False),
        sa.Column('current_mechanic_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('diagnosed_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('diagnosed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('call_status_id', sa.Integer(), sa.ForeignKey('table_call_statuses.id', ondelete='SET NULL'), nullable=True),
        sa.Column('customer_phone', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
    )
    op.create_index(op.f('ix_bikes_id'), 'bikes', ['id'], unique=False)
    op.create_index(op.f('ix_bikes_frame_number'), 'bikes', ['frame_number'], unique=False)
    op.create_index(op.f('ix_bikes_workflow_status'), 'bikes', ['workflow_status'], unique=False)
    op.create_index(op.f('ix_bikes_table_number'), 'bikes', ['table_number'], unique=False)

    op.create_table(
        'bike_comments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('bike_id', sa.Integer(), sa.ForeignKey('bikes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('author_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
    )
    op.create_index(op.f('ix_bike_comments_id'), 'bike_comments', ['id'], unique=False)
    op.create_index(op.f('ix_bike_comments_bike_id'), 'bike_comments', ['bike_id'], unique=False)

    op.create_table(
        'bike_call_history',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('bike_id', sa.Integer(), sa.ForeignKey('bikes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('called_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('called_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('notes', sa.Text(), nullable=True),
    )
    op.create_index(op.f('ix_bike_call_history_id'), 'bike_call_history', ['id'], unique=False)
    op.create_index(op.f('ix_bike_call_history_bike_id'), 'bike_call_history', ['bike_id'], unique=False)

    op.create_table(
        'work_registrations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('bike_id', sa.Integer(), sa.ForeignKey('bikes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('repair_type_id', sa.Integer(), sa.ForeignKey('repair_types.id', ondelete='CASCADE'), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('mechanic_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('last_modified_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('last_modified_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(op.f('ix_work_registrations_id'), 'work_registrations', ['id'], unique=False)
    op.create_index(op.f('ix_work_registrations_bike_id'), 'work_registrations', ['bike_id'], unique=False)

    # Completion checklist
    op.create_table(
        'completion_checklist_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
    )
    op.create_index(op.f('ix_completion_checklist_items_id'), 'completion_checklist_items', ['id'], unique=False)

    op.create_table(
        'bike_checklist_completions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('bike_id', sa.Integer(), sa.ForeignKey('bikes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('checklist_item_id', sa.Integer(), sa.ForeignKey('completion_checklist_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('completed_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.UniqueConstraint('bike_id', 'checklist_item_id', name='uq_bike_checklist_item'),
    )
    op.create_index(op.f('ix_bike_checklist_completions_id'), 'bike_checklist_completions', ['id'], unique=False)
    op.create_index(op.f('ix_bike_checklist_completions_bike_id'), 'bike_checklist_completions', ['bike_id'], unique=False)

    # Planning and TV
    op.create_table(
        'mechanic_availability',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', AVAILABILITY_STATUS, nullable=False),
        sa.Column('approved_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
    )
    op.create_index(op.f('ix_mechanic_availability_id'), 'mechanic_availability', ['id'], unique=False)
    op.create_index(op.f('ix_mechanic_availability_user_id'), 'mechanic_availability', ['user_id'], unique=False)
    op.create_index(op.f('ix_mechanic_availability_date'), 'mechanic_availability', ['date'], unique=False)

    op.create_table(
        'tv_announcements',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('background_color', sa.String(), nullable=True),
        sa.Column('text_color', sa.String(), nullable=True),
        sa.Column('icon', sa.String(), nullable=True),
        sa.Column('is_fullscreen', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
    )
    op.create_index(op.f('ix_tv_announcements_id'), 'tv_announcements', ['id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    # Drop in reverse dependency order
    for table in (
        'tv_announcements', 'mechanic_availability', 'bike_checklist_completions', 'completion_checklist_items',
        'work_registrations', 'bike_call_history', 'bike_comments', 'bikes', 'table_call_statuses',
        'repair_type_models', 'repair_types', 'rate_limit_attempts', 'admin_settings', 'admin_promotion_logs',
        'logs', 'user_permissions', 'user_roles', 'users',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in (AVAILABILITY_STATUS, WORKFLOW_STATUS, BIKE_MODEL, FEATURE_PERMISSION, APP_ROLE):
        enum.drop(bind, checkfirst=True)
