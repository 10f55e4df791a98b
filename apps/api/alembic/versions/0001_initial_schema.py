"""initial back-office schema: tenants, users, ops schedule, rendiciones

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'tenants',
        sa.Column('tenant_id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('tenant_id'),
    )
    op.create_index(op.f('ix_tenants_slug'), 'tenants', ['slug'], unique=True)

    op.create_table(
        'users',
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('tenant_id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=True),
        sa.Column('role', sa.String(), nullable=False, server_default='viewer'),
        sa.Column('permission_overrides', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.tenant_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('user_id'),
    )
    op.create_index(op.f('ix_users_tenant_id'), 'users', ['tenant_id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'sites',
        sa.Column('site_id', UUID(as_uuid=True), nullable=False),
        sa.Column('tenant_id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.tenant_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('site_id'),
    )
    op.create_index(op.f('ix_sites_tenant_id'), 'sites', ['tenant_id'], unique=False)

    op.create_table(
        'position_templates',
        sa.Column('position_template_id', UUID(as_uuid=True), nullable=False),
        sa.Column('tenant_id', UUID(as_uuid=True), nullable=False),
        sa.Column('site_id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('shift_start', sa.Text(), nullable=False),
        sa.Column('shift_end', sa.Text(), nullable=False),
        sa.Column('weekdays', sa.JSON(), nullable=False),
        sa.Column('required_headcount', sa.Integer(), nullable=False),
        sa.Column('active_from', sa.Date(), nullable=True),
        sa.Column('active_until', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_by', UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('required_headcount >= 1', name='ck_position_templates_headcount'),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.tenant_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['site_id'], ['sites.site_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('position_template_id'),
    )
    op.create_index(op.f('ix_position_templates_tenant_id'), 'position_templates', ['tenant_id'], unique=False)
    op.create_index(op.f('ix_position_templates_site_id'), 'position_templates', ['site_id'], unique=False)

    op.create_table(
        'schedule_slots',
        sa.Column('schedule_slot_id', UUID(as_uuid=True), nullable=False),
        sa.Column('tenant_id', UUID(as_uuid=True), nullable=False),
        sa.Column('site_id', UUID(as_uuid=True), nullable=False),
        sa.Column('position_template_id', UUID(as_uuid=True), nullable=False),
        sa.Column('slot_number', sa.Integer(), nullable=False),
        sa.Column('slot_date', sa.Date(), nullable=False),
        sa.Column('assigned_worker_id', UUID(as_uuid=True), nullable=True),
        sa.Column('shift_code', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False, server_default='planned'),
        sa.Column('created_by', UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.tenant_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['site_id'], ['sites.site_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(
            ['position_template_id'], ['position_templates.position_template_id'], ondelete='RESTRICT'
        ),
        sa.PrimaryKeyConstraint('schedule_slot_id'),
        sa.UniqueConstraint(
            'site_id', 'position_template_id', 'slot_number', 'slot_date',
            name='uq_schedule_slots_site_template_slot_date',
        ),
    )
    op.create_index(op.f('ix_schedule_slots_slot_date'), 'schedule_slots', ['slot_date'], unique=False)

    op.create_table(
        'audit_logs',
        sa.Column('audit_log_id', UUID(as_uuid=True), nullable=False),
        sa.Column('tenant_id', UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), nullable=True),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('entity', sa.Text(), nullable=False),
        sa.Column('entity_id', UUID(as_uuid=True), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.tenant_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('audit_log_id'),
    )
    op.create_index(op.f('ix_audit_logs_tenant_id'), 'audit_logs', ['tenant_id'], unique=False)

    op.create_table(
        'rendiciones',
        sa.Column('rendicion_id', UUID(as_uuid=True), nullable=False),
        sa.Column('tenant_id', UUID(as_uuid=True), nullable=False),
        sa.Column('code', sa.Text(), nullable=False),
        sa.Column('submitter_id', UUID(as_uuid=True), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('expense_date', sa.Date(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False, server_default='DRAFT'),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejected_by_id', UUID(as_uuid=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.tenant_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['submitter_id'], ['users.user_id']),
        sa.PrimaryKeyConstraint('rendicion_id'),
        sa.UniqueConstraint('tenant_id', 'code', name='uq_rendiciones_tenant_code'),
    )
    op.create_index(op.f('ix_rendiciones_tenant_id'), 'rendiciones', ['tenant_id'], unique=False)
    op.create_index(op.f('ix_rendiciones_submitter_id'), 'rendiciones', ['submitter_id'], unique=False)

    op.create_table(
        'rendicion_approvals',
        sa.Column('approval_id', UUID(as_uuid=True), nullable=False),
        sa.Column('rendicion_id', UUID(as_uuid=True), nullable=False),
        sa.Column('approver_id', UUID(as_uuid=True), nullable=False),
        sa.Column('approval_order', sa.Integer(), nullable=False),
        sa.Column('decision', sa.Text(), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('decided_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['rendicion_id'], ['rendiciones.rendicion_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approver_id'], ['users.user_id']),
        sa.PrimaryKeyConstraint('approval_id'),
    )
    op.create_index(op.f('ix_rendicion_approvals_rendicion_id'), 'rendicion_approvals', ['rendicion_id'], unique=False)

    op.create_table(
        'rendicion_history',
        sa.Column('history_id', UUID(as_uuid=True), nullable=False),
        sa.Column('rendicion_id', UUID(as_uuid=True), nullable=False),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('from_status', sa.Text(), nullable=True),
        sa.Column('to_status', sa.Text(), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), nullable=True),
        sa.Column('user_email', sa.Text(), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['rendicion_id'], ['rendiciones.rendicion_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('history_id'),
    )
    op.create_index(op.f('ix_rendicion_history_rendicion_id'), 'rendicion_history', ['rendicion_id'], unique=False)

    op.create_table(
        'rendicion_configs',
        sa.Column('tenant_id', UUID(as_uuid=True), nullable=False),
        sa.Column('default_approver_1_id', UUID(as_uuid=True), nullable=True),
        sa.Column('default_approver_2_id', UUID(as_uuid=True), nullable=True),
        sa.Column('max_amount', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.tenant_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['default_approver_1_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['default_approver_2_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('tenant_id'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('rendicion_configs')
    op.drop_index(op.f('ix_rendicion_history_rendicion_id'), table_name='rendicion_history')
    op.drop_table('rendicion_history')
    op.drop_index(op.f('ix_rendicion_approvals_rendicion_id'), table_name='rendicion_approvals')
    op.drop_table('rendicion_approvals')
    op.drop_index(op.f('ix_rendiciones_submitter_id'), table_name='rendiciones')
    op.drop_index(op.f('ix_rendiciones_tenant_id'), table_name='rendiciones')
    op.drop_table('rendiciones')
    op.drop_index(op.f('ix_audit_logs_tenant_id'), table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_index(op.f('ix_schedule_slots_slot_date'), table_name='schedule_slots')
    op.drop_table('schedule_slots')
    op.drop_index(op.f('ix_position_templates_site_id'), table_name='position_templates')
    op.drop_index(op.f('ix_position_templates_tenant_id'), table_name='position_templates')
    op.drop_table('position_templates')
    op.drop_index(op.f('ix_sites_tenant_id'), table_name='sites')
    op.drop_table('sites')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_tenant_id'), table_name='users')
    op.drop_table('users')
    op.drop_index(op.f('ix_tenants_slug'), table_name='tenants')
    op.drop_table('tenants')
