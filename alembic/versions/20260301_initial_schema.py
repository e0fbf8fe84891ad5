"""initial schema

Revision ID: 20260301_initial_schema
Revises:
Create Date: 2026-03-01 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from pgvector.sqlalchemy import Vector
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '20260301_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False)


def _updated_at() -> sa.Column:
    return sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False)


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS vector')

    op.create_table(
        'profiles',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=8), nullable=False, server_default='tm'),
        sa.Column('tour_scale', sa.String(length=16), nullable=False, server_default='theater'),
        _created_at(),
        _updated_at(),
    )

    op.create_table(
        'user_preferences',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('default_role', sa.String(length=8), nullable=True),
        sa.Column('default_tour_scale', sa.String(length=16), nullable=True),
        sa.Column('default_currency', sa.String(length=8), nullable=False, server_default='USD'),
        sa.Column('crisis_mode_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('ix_user_preferences_user_id', 'user_preferences', ['user_id'], unique=True)

    op.create_table(
        'subscriptions',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('stripe_customer_id', sa.String(length=255), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(length=255), nullable=True),
        sa.Column('plan', sa.String(length=32), nullable=False, server_default='free'),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='active'),
        sa.Column('current_period_start', sa.DateTime(timezone=True), nullable=True),
        sa.Column('current_period_end', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_subscriptions_user_id', 'subscriptions', ['user_id'], unique=True)
    op.create_index('ix_subscriptions_stripe_customer_id', 'subscriptions', ['stripe_customer_id'])

    op.create_table(
        'usage_metrics',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('total_queries', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('queries_this_month', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_query_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_usage_metrics_user_id', 'usage_metrics', ['user_id'], unique=True)

    op.create_table(
        'tours',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('artist_name', sa.String(length=255), nullable=False),
        sa.Column('tour_scale', sa.String(length=16), nullable=False, server_default='theater'),
        sa.Column('tour_type', sa.String(length=16), nullable=False, server_default='headline'),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('regions', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('currency', sa.String(length=8), nullable=False, server_default='USD'),
        sa.Column('num_shows', sa.Integer(), nullable=True),
        sa.Column('avg_capacity', sa.Integer(), nullable=True),
        sa.Column('avg_guarantee', sa.Float(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
        _updated_at(),
    )
    op.create_index('ix_tours_user_id', 'tours', ['user_id'])
    op.create_index('ix_tours_updated_at', 'tours', ['updated_at'])

    op.create_table(
        'conversation_logs',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('tour_id', sa.String(length=64), nullable=True),
        sa.Column('role', sa.String(length=8), nullable=False),
        sa.Column('tour_scale', sa.String(length=16), nullable=False),
        sa.Column('mode', sa.String(length=16), nullable=False),
        sa.Column('user_message', sa.Text(), nullable=False),
        sa.Column('assistant_message', sa.Text(), nullable=False),
        sa.Column('retrieved_chunk_ids', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('is_starred', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('user_feedback', sa.String(length=16), nullable=True),
        sa.Column('tags', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['tour_id'], ['tours.id'], name='fk_conversation_logs_tour', ondelete='SET NULL'),
    )
    op.create_index('ix_conversation_logs_user_id', 'conversation_logs', ['user_id'])
    op.create_index('ix_conversation_logs_tour_id', 'conversation_logs', ['tour_id'])
    op.create_index('ix_conversation_logs_created_at', 'conversation_logs', ['created_at'])

    op.create_table(
        'core_docs',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('file_name', sa.String(length=255), nullable=False),
        sa.Column('doc_type', sa.String(length=64), nullable=False, server_default='general'),
        sa.Column('raw_text', sa.Text(), nullable=False),
        sa.Column('word_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('char_count', sa.Integer(), nullable=False, server_default='0'),
        _created_at(),
        _updated_at(),
    )
    op.create_index('ix_core_docs_file_name', 'core_docs', ['file_name'], unique=True)
    op.create_index('ix_core_docs_doc_type', 'core_docs', ['doc_type'])

    op.create_table(
        'doc_chunks',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('doc_id', sa.String(length=64), nullable=False),
        sa.Column('chunk_index', sa.Integer(), nullable=False),
        sa.Column('chunk_text', sa.Text(), nullable=False),
        sa.Column('embedding', Vector(1536), nullable=False),
        sa.Column('token_count', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['doc_id'], ['core_docs.id'], name='fk_doc_chunks_doc', ondelete='CASCADE'),
    )
    op.create_index('ix_doc_chunks_doc_id', 'doc_chunks', ['doc_id'])
    op.execute(
        'CREATE INDEX ix_doc_chunks_embedding ON doc_chunks '
        'USING ivfflat (embedding vector_cosine_ops) WITH (lists = 100)'
    )

    op.create_table(
        'budget_templates',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('tour_id', sa.String(length=64), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('budget_data', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('ai_summary', sa.Text(), nullable=True),
        sa.Column('estimated_margin_low', sa.Float(), nullable=True),
        sa.Column('estimated_margin_high', sa.Float(), nullable=True),
        sa.Column('currency', sa.String(length=8), nullable=False, server_default='USD'),
        _created_at(),
        sa.ForeignKeyConstraint(['tour_id'], ['tours.id'], name='fk_budget_templates_tour', ondelete='SET NULL'),
    )
    op.create_index('ix_budget_templates_user_id', 'budget_templates', ['user_id'])
    op.create_index('ix_budget_templates_created_at', 'budget_templates', ['created_at'])

    op.create_table(
        'settlements',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('tour_id', sa.String(length=64), nullable=True),
        sa.Column('show_name', sa.String(length=255), nullable=False),
        sa.Column('show_date', sa.Date(), nullable=True),
        sa.Column('venue_name', sa.String(length=255), nullable=True),
        sa.Column('venue_city', sa.String(length=255), nullable=True),
        sa.Column('gross_tickets', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_taxes', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total_fees', sa.Float(), nullable=False, server_default='0'),
        sa.Column('venue_rent', sa.Float(), nullable=False, server_default='0'),
        sa.Column('marketing_costs', sa.Float(), nullable=False, server_default='0'),
        sa.Column('production_reimbursements', sa.Float(), nullable=False, server_default='0'),
        sa.Column('artist_guarantee', sa.Float(), nullable=False, server_default='0'),
        sa.Column('overage_percentage', sa.Float(), nullable=False, server_default='85'),
        sa.Column('settlement_data', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('ai_breakdown', sa.Text(), nullable=True),
        sa.Column('ai_watchouts', sa.Text(), nullable=True),
        sa.Column('currency', sa.String(length=8), nullable=False, server_default='USD'),
        _created_at(),
        sa.ForeignKeyConstraint(['tour_id'], ['tours.id'], name='fk_settlements_tour', ondelete='SET NULL'),
    )
    op.create_index('ix_settlements_user_id', 'settlements', ['user_id'])
    op.create_index('ix_settlements_created_at', 'settlements', ['created_at'])


def downgrade() -> None:
    for table in (
        'settlements',
        'budget_templates',
        'doc_chunks',
        'core_docs',
        'conversation_logs',
        'tours',
        'usage_metrics',
        'subscriptions',
        'user_preferences',
        'profiles',
    ):
        op.drop_table(table)
