"""Create audit planning tables

Creates the standards catalog, audits and their sessions:
1. `profiles` - acting user -> company
2. `audit_categories` / `audit_templates` - template belongs to one category
3. `audit_standards` / `audit_standard_items` - flat item rows, nested on read
4. `audits` with ordered `audit_standards_link`
5. `audit_sessions` with ordered `audit_session_items`

Revision ID: audit_tables_001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = 'audit_tables_001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'profiles',
        sa.Column('user_id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )

    # Catalog
    op.create_table(
        'audit_categories',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_table(
        'audit_templates',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('category_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('audit_categories.id'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_audit_templates_category_id', 'audit_templates', ['category_id'])

    op.create_table(
        'audit_standards',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('version', sa.String(50), nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('is_active', sa.Boolean, server_default='true', nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_table(
        'audit_standard_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('standard_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('audit_standards.id', ondelete='CASCADE'), nullable=False),
        sa.Column('parent_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('audit_standard_items.id', ondelete='CASCADE'), nullable=True),
        sa.Column('item_number', sa.String(50), nullable=True),
        sa.Column('title', sa.Text, nullable=False),
        sa.Column('field_type', sa.String(30), server_default='question', nullable=False),
        sa.Column('display_order', sa.Integer, server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_audit_standard_items_standard_id', 'audit_standard_items', ['standard_id'])

    # Audits
    op.create_table(
        'audits',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('audit_type', sa.String(50), server_default='internal', nullable=False),
        sa.Column('category_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('audit_categories.id'), nullable=True),
        sa.Column('template_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('audit_templates.id'), nullable=True),
        sa.Column('target_entity', sa.String(255), nullable=True),
        sa.Column('target_entity_type', sa.String(50), nullable=True),
        sa.Column('start_date', sa.Date, nullable=True),
        sa.Column('end_date', sa.Date, nullable=True),
        sa.Column('lead_auditor_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('status', sa.String(30), server_default='planning', nullable=False),
        sa.Column('total_items', sa.Integer, server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now(), onupdate=sa.func.now()),
    )
    op.create_index('ix_audits_company_id', 'audits', ['company_id'])

    op.create_table(
        'audit_standards_link',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('audit_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('audits.id', ondelete='CASCADE'), nullable=False),
        sa.Column('standard_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('audit_standards.id'), nullable=False),
        sa.Column('display_order', sa.Integer, nullable=False),
    )
    op.create_index('ix_audit_standards_link_audit_id', 'audit_standards_link', ['audit_id'])

    # Sessions
    op.create_table(
        'audit_sessions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('audit_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('audits.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('session_date', sa.Date, nullable=True),
        sa.Column('start_time', sa.Time, nullable=True),
        sa.Column('end_time', sa.Time, nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('status', sa.String(30), server_default='pending', nullable=False),
        sa.Column('display_order', sa.Integer, nullable=False),
        sa.Column('total_items', sa.Integer, server_default='0', nullable=False),
        sa.Column('responded_items', sa.Integer, server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index('ix_audit_sessions_audit_id', 'audit_sessions', ['audit_id'])

    op.create_table(
        'audit_session_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('session_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('audit_sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('standard_item_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('audit_standard_items.id'), nullable=False),
        sa.Column('display_order', sa.Integer, nullable=False),
    )
    op.create_index('ix_audit_session_items_session_id', 'audit_session_items', ['session_id'])


def downgrade() -> None:
    # Children first
    op.drop_table('audit_session_items')
    op.drop_table('audit_sessions')
    op.drop_table('audit_standards_link')
    op.drop_table('audits')
    op.drop_table('audit_standard_items')
    op.drop_table('audit_standards')
    op.drop_table('audit_templates')
    op.drop_table('audit_categories')
    op.drop_table('profiles')
