"""Bike visits, inventory and front-of-house tasks

Revision ID: 8c41d2e5b9a3
Revises: 3f2a9c1d7e10
Create Date: 2026-10-17 15:40:07.204511

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Revision identifiers used by Alembic
revision: str = '8c41d2e5b9a3'
down_revision: Union[str, Sequence[str], None] = '3f2a9c1d7e10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

FOH_TASK_STATUS = sa.Enum('nog_niet_gestart', 'in_behandeling', 'afgerond', name='foh_task_status')


def upgrade() -> None:
    """Upgrade schema."""
    # Visit counter: a returning bike starts a new visit on the same row
    with op.batch_alter_table('bikes') as batch:
        batch.add_column(sa.Column('visit', sa.Integer(), nullable=False, server_default='1'))
        batch.add_column(sa.Column('opened_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')))
    op.execute('UPDATE bikes SET opened_at = created_at')

    with op.batch_alter_table('work_registrations') as batch:
        batch.add_column(sa.Column('visit', sa.Integer(), nullable=False, server_default='1'))

    # Stock
    op.create_table(
        'inventory_groups',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('min_stock_level', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.CheckConstraint('quantity >= 0'),
    )
    op.create_index(op.f('ix_inventory_groups_id'), 'inventory_groups', ['id'], unique=False)

    op.create_table(
        'inventory',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('repair_type_id', sa.Integer(), sa.ForeignKey('repair_types.id', ondelete='CASCADE'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('min_stock_level', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('purchase_price', sa.Float(), nullable=False, server_default='0'),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('inventory_groups.id', ondelete='SET NULL'), nullable=True),
        sa.Column('unlimited_stock', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.CheckConstraint('quantity >= 0'),
    )
    op.create_index(op.f('ix_inventory_id'), 'inventory', ['id'], unique=False)
    op.create_index(op.f('ix_inventory_repair_type_id'), 'inventory', ['repair_type_id'], unique=True)
    op.create_index(op.f('ix_inventory_group_id'), 'inventory', ['group_id'], unique=False)
    # Existing price list entries start with an empty count
    op.execute('INSERT INTO inventory (repair_type_id, quantity, min_stock_level, purchase_price, unlimited_stock) '
               'SELECT id, 0, 5, 0, false FROM repair_types')

    # Front-of-house tasks
    op.create_table(
        'foh_tasks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('task_number', sa.Integer(), nullable=False, unique=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', FOH_TASK_STATUS, nullable=False),
        sa.Column('assigned_to', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('bike_id', sa.Integer(), sa.ForeignKey('bikes.id', ondelete='SET NULL'), nullable=True),
        sa.Column('deadline', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(op.f('ix_foh_tasks_id'), 'foh_tasks', ['id'], unique=False)
    op.create_index(op.f('ix_foh_tasks_status'), 'foh_tasks', ['status'], unique=False)
    op.create_index(op.f('ix_foh_tasks_assigned_to'), 'foh_tasks', ['assigned_to'], unique=False)
    op.create_index(op.f('ix_foh_tasks_created_by'), 'foh_tasks', ['created_by'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    for table in ('foh_tasks', 'inventory', 'inventory_groups'):
        op.drop_table(table)
    FOH_TASK_STATUS.drop(op.get_bind(), checkfirst=True)

    with op.batch_alter_table('work_registrations') as batch:
        batch.drop_column('visit')
    with op.batch_alter_table('bikes') as batch:
        batch.drop_column('opened_at')
        batch.drop_column('visit')
