"""initial_erm_schema

Revision ID: 4f2c8a1d9e3b
Revises:
Create Date: 2026-10-19 09:12:44.318201

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f2c8a1d9e3b'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Regulators are referenced by organizations, so they come first
    op.create_table(
        'regulators',
        sa.Column('regulator_id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=20), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('jurisdiction', sa.String(length=100), nullable=True),
        sa.Column('sector', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('alert_thresholds', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('regulator_id'),
        sa.UniqueConstraint('code')
    )

    op.create_table(
        'organizations',
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('industry_type', sa.String(length=100), nullable=True),
        sa.Column('institution_type', sa.String(length=100), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('suspended_at', sa.DateTime(), nullable=True),
        sa.Column('suspended_by_id', sa.Integer(), nullable=True),
        sa.Column('primary_regulator_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['primary_regulator_id'], ['regulators.regulator_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('organization_id')
    )
    op.create_index(op.f('ix_organizations_code'), 'organizations', ['code'], unique=True)

    op.create_table(
        'users',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False, server_default='user'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('organization_id', sa.Integer(), nullable=True),
        sa.Column('approved_by_id', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('current_session_id', sa.String(length=64), nullable=True),
        sa.Column('last_active_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.organization_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approved_by_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('user_id'),
        sa.UniqueConstraint('email')
    )
    op.create_index(op.f('ix_users_status'), 'users', ['status'], unique=False)
    op.create_index(op.f('ix_users_organization_id'), 'users', ['organization_id'], unique=False)

    # organizations <-> users cycle
    op.create_foreign_key(
        'fk_organizations_suspended_by_id', 'organizations', 'users',
        ['suspended_by_id'], ['user_id'], ondelete='SET NULL'
    )

    op.create_table(
        'user_invitations',
        sa.Column('invitation_id', sa.Integer(), nullable=False),
        sa.Column('invite_code', sa.String(length=8), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('used_by_id', sa.Integer(), nullable=True),
        sa.Column('used_at', sa.DateTime(), nullable=True),
        sa.Column('revoked_by_id', sa.Integer(), nullable=True),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('revoke_reason', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.organization_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['used_by_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['revoked_by_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('invitation_id')
    )
    op.create_index(op.f('ix_user_invitations_invite_code'), 'user_invitations', ['invite_code'], unique=True)
    op.create_index(op.f('ix_user_invitations_email'), 'user_invitations', ['email'], unique=False)
    op.create_index(op.f('ix_user_invitations_organization_id'), 'user_invitations', ['organization_id'], unique=False)
    op.create_index(op.f('ix_user_invitations_status'), 'user_invitations', ['status'], unique=False)

    op.create_table(
        'organization_regulators',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('regulator_id', sa.Integer(), nullable=False),
        sa.Column('is_primary', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('assigned_by_id', sa.Integer(), nullable=True),
        sa.Column('assigned_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.organization_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['regulator_id'], ['regulators.regulator_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['assigned_by_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('organization_id', 'regulator_id', name='uq_org_regulator')
    )
    op.create_index(op.f('ix_organization_regulators_organization_id'), 'organization_regulators', ['organization_id'], unique=False)
    op.create_index(op.f('ix_organization_regulators_regulator_id'), 'organization_regulators', ['regulator_id'], unique=False)

    op.create_table(
        'regulator_access',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('regulator_id', sa.Integer(), nullable=False),
        sa.Column('granted_by_id', sa.Integer(), nullable=True),
        sa.Column('granted_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['regulator_id'], ['regulators.regulator_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['granted_by_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'regulator_id', name='uq_regulator_access')
    )
    op.create_index(op.f('ix_regulator_access_user_id'), 'regulator_access', ['user_id'], unique=False)
    op.create_index(op.f('ix_regulator_access_regulator_id'), 'regulator_access', ['regulator_id'], unique=False)

    # Organization structure
    op.create_table(
        'divisions',
        sa.Column('division_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.organization_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('division_id'),
        sa.UniqueConstraint('organization_id', 'name', name='uq_division_org_name')
    )
    op.create_index(op.f('ix_divisions_organization_id'), 'divisions', ['organization_id'], unique=False)

    op.create_table(
        'departments',
        sa.Column('department_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('division_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.organization_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['division_id'], ['divisions.division_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('department_id'),
        sa.UniqueConstraint('organization_id', 'name', name='uq_department_org_name')
    )
    op.create_index(op.f('ix_departments_organization_id'), 'departments', ['organization_id'], unique=False)
    op.create_index(op.f('ix_departments_division_id'), 'departments', ['division_id'], unique=False)

    # Risk taxonomy
    op.create_table(
        'risk_categories',
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.String(length=200), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.organization_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('category_id'),
        sa.UniqueConstraint('organization_id', 'name', name='uq_risk_category_org_name')
    )
    op.create_index(op.f('ix_risk_categories_organization_id'), 'risk_categories', ['organization_id'], unique=False)

    op.create_table(
        'risk_subcategories',
        sa.Column('subcategory_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.String(length=200), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['category_id'], ['risk_categories.category_id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('subcategory_id'),
        sa.UniqueConstraint('category_id', 'name', name='uq_risk_subcategory_category_name')
    )
    op.create_index(op.f('ix_risk_subcategories_category_id'), 'risk_subcategories', ['category_id'], unique=False)

    # KRI register
    op.create_table(
        'kri_definitions',
        sa.Column('kri_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('kri_code', sa.String(length=50), nullable=False),
        sa.Column('kri_name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('indicator_type', sa.String(length=10), nullable=False, server_default='KRI'),
        sa.Column('unit', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.organization_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('kri_id'),
        sa.UniqueConstraint('organization_id', 'kri_code', name='uq_kri_org_code')
    )
    op.create_index(op.f('ix_kri_definitions_organization_id'), 'kri_definitions', ['organization_id'], unique=False)

    op.create_table(
        'kri_values',
        sa.Column('value_id', sa.Integer(), nullable=False),
        sa.Column('kri_id', sa.Integer(), nullable=False),
        sa.Column('measurement_date', sa.Date(), nullable=False),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('recorded_by_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['kri_id'], ['kri_definitions.kri_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['recorded_by_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('value_id')
    )
    op.create_index(op.f('ix_kri_values_kri_id'), 'kri_values', ['kri_id'], unique=False)
    op.create_index(op.f('ix_kri_values_measurement_date'), 'kri_values', ['measurement_date'], unique=False)

    # Appetite governance
    op.create_table(
        'risk_appetite_statements',
        sa.Column('statement_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('version_number', sa.Integer(), nullable=False),
        sa.Column('statement_text', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='DRAFT'),
        sa.Column('effective_from', sa.Date(), nullable=False),
        sa.Column('effective_to', sa.Date(), nullable=True),
        sa.Column('next_review_date', sa.Date(), nullable=True),
        sa.Column('approved_by_id', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('supersedes_statement_id', sa.Integer(), nullable=True),
        sa.Column('superseded_at', sa.DateTime(), nullable=True),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.organization_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approved_by_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['supersedes_statement_id'], ['risk_appetite_statements.statement_id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('statement_id'),
        sa.UniqueConstraint('organization_id', 'version_number', name='uq_appetite_statement_version')
    )
    op.create_index(op.f('ix_risk_appetite_statements_organization_id'), 'risk_appetite_statements', ['organization_id'], unique=False)
    op.create_index(op.f('ix_risk_appetite_statements_status'), 'risk_appetite_statements', ['status'], unique=False)
    # At most one APPROVED statement per organization
    op.create_index(
        'uq_appetite_statement_one_approved', 'risk_appetite_statements', ['organization_id'],
        unique=True,
        postgresql_where=sa.text("status = 'APPROVED'"),
        sqlite_where=sa.text("status = 'APPROVED'")
    )

    op.create_table(
        'risk_appetite_categories',
        sa.Column('appetite_category_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('statement_id', sa.Integer(), nullable=False),
        sa.Column('risk_category', sa.String(length=255), nullable=False),
        sa.Column('appetite_level', sa.String(length=20), nullable=False),
        sa.Column('rationale', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.organization_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['statement_id'], ['risk_appetite_statements.statement_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('appetite_category_id'),
        sa.UniqueConstraint('statement_id', 'risk_category', name='uq_appetite_category_per_statement')
    )
    op.create_index(op.f('ix_risk_appetite_categories_organization_id'), 'risk_appetite_categories', ['organization_id'], unique=False)
    op.create_index(op.f('ix_risk_appetite_categories_statement_id'), 'risk_appetite_categories', ['statement_id'], unique=False)

    op.create_table(
        'tolerance_metrics',
        sa.Column('metric_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('appetite_category_id', sa.Integer(), nullable=False),
        sa.Column('metric_key', sa.String(length=32), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('metric_name', sa.String(length=255), nullable=False),
        sa.Column('metric_description', sa.Text(), nullable=True),
        sa.Column('metric_type', sa.String(length=20), nullable=False),
        sa.Column('unit', sa.String(length=50), nullable=True),
        sa.Column('materiality_type', sa.String(length=20), nullable=False, server_default='INTERNAL'),
        sa.Column('green_min', sa.Float(), nullable=True),
        sa.Column('green_max', sa.Float(), nullable=True),
        sa.Column('amber_min', sa.Float(), nullable=True),
        sa.Column('amber_max', sa.Float(), nullable=True),
        sa.Column('red_min', sa.Float(), nullable=True),
        sa.Column('red_max', sa.Float(), nullable=True),
        sa.Column('directional_config', sa.JSON(), nullable=True),
        sa.Column('kri_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('never_activated', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('effective_from', sa.Date(), nullable=True),
        sa.Column('effective_to', sa.Date(), nullable=True),
        sa.Column('activated_by_id', sa.Integer(), nullable=True),
        sa.Column('activated_at', sa.DateTime(), nullable=True),
        sa.Column('deactivated_at', sa.DateTime(), nullable=True),
        sa.Column('supersedes_metric_id', sa.Integer(), nullable=True),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.organization_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['appetite_category_id'], ['risk_appetite_categories.appetite_category_id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['kri_id'], ['kri_definitions.kri_id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['activated_by_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['supersedes_metric_id'], ['tolerance_metrics.metric_id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('metric_id')
    )
    op.create_index(op.f('ix_tolerance_metrics_organization_id'), 'tolerance_metrics', ['organization_id'], unique=False)
    op.create_index(op.f('ix_tolerance_metrics_appetite_category_id'), 'tolerance_metrics', ['appetite_category_id'], unique=False)
    op.create_index(op.f('ix_tolerance_metrics_metric_key'), 'tolerance_metrics', ['metric_key'], unique=False)
    # At most one active version per metric
    op.create_index(
        'uq_tolerance_metric_one_active_version', 'tolerance_metrics', ['organization_id', 'metric_key'],
        unique=True,
        postgresql_where=sa.text("is_active = true"),
        sqlite_where=sa.text("is_active = 1")
    )

    # Audit trail
    op.create_table(
        'audit_logs',
        sa.Column('log_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=True),
        sa.Column('entity_type', sa.String(length=100), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('entity_code', sa.String(length=255), nullable=True),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('changes', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.organization_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('log_id')
    )
    op.create_index(op.f('ix_audit_logs_organization_id'), 'audit_logs', ['organization_id'], unique=False)
    op.create_index(op.f('ix_audit_logs_entity_type'), 'audit_logs', ['entity_type'], unique=False)
    op.create_index(op.f('ix_audit_logs_entity_id'), 'audit_logs', ['entity_id'], unique=False)
    op.create_index(op.f('ix_audit_logs_timestamp'), 'audit_logs', ['timestamp'], unique=False)

    # Seed catalog and generated libraries
    op.create_table(
        'seed_library_items',
        sa.Column('seed_id', sa.Integer(), nullable=False),
        sa.Column('item_type', sa.String(length=20), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category_hints', sa.JSON(), nullable=False),
        sa.Column('industry_tags', sa.JSON(), nullable=False),
        sa.Column('attributes', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('seed_id'),
        sa.UniqueConstraint('code')
    )
    op.create_index(op.f('ix_seed_library_items_item_type'), 'seed_library_items', ['item_type'], unique=False)

    op.create_table(
        'root_cause_library',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=255), nullable=False, server_default='General'),
        sa.Column('subcategory', sa.String(length=255), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code')
    )

    op.create_table(
        'impact_library',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=255), nullable=False, server_default='General'),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code')
    )

    op.create_table(
        'control_library',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=255), nullable=False, server_default='General'),
        sa.Column('control_type', sa.String(length=50), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code')
    )

    op.create_table(
        'indicator_library',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('indicator_type', sa.String(length=10), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=255), nullable=False, server_default='General'),
        sa.Column('unit', sa.String(length=50), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code')
    )

    op.create_table(
        'library_generation_logs',
        sa.Column('log_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('generated_by_id', sa.Integer(), nullable=True),
        sa.Column('industry_type', sa.String(length=100), nullable=True),
        sa.Column('categories_used', sa.JSON(), nullable=False),
        sa.Column('root_causes_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('impacts_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('controls_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('kris_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('kcis_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.organization_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['generated_by_id'], ['users.user_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('log_id')
    )
    op.create_index(op.f('ix_library_generation_logs_organization_id'), 'library_generation_logs', ['organization_id'], unique=False)


def downgrade() -> None:
    op.drop_table('library_generation_logs')
    op.drop_table('indicator_library')
    op.drop_table('control_library')
    op.drop_table('impact_library')
    op.drop_table('root_cause_library')
    op.drop_table('seed_library_items')
    op.drop_table('audit_logs')
    op.drop_index('uq_tolerance_metric_one_active_version', table_name='tolerance_metrics')
    op.drop_table('tolerance_metrics')
    op.drop_table('risk_appetite_categories')
    op.drop_index('uq_appetite_statement_one_approved', table_name='risk_appetite_statements')
    op.drop_table('risk_appetite_statements')
    op.drop_table('kri_values')
    op.drop_table('kri_definitions')
    op.drop_table('risk_subcategories')
    op.drop_table('risk_categories')
    op.drop_table('departments')
    op.drop_table('divisions')
    op.drop_table('regulator_access')
    op.drop_table('organization_regulators')
    op.drop_table('user_invitations')
    op.drop_constraint('fk_organizations_suspended_by_id', 'organizations', type_='foreignkey')
    op.drop_table('users')
    op.drop_table('organizations')
    op.drop_table('regulators')
