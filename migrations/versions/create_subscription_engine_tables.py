"""Create plan catalog, professional, contact, review, quota, notification and webhook tables

Revision ID: create_engine_tables
Revises:
Create Date: 2026-10-19 10:00:00.000000

Initial schema for professional subscriptions, contact quotas, reviews and
the notification feed.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'create_engine_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """
    Create engine tables.
    """
    op.create_table(
        'subscription_plans',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('monthly_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('yearly_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('max_contacts', sa.Integer(), nullable=True),
        sa.Column('max_photos', sa.Integer(), nullable=True),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('gateway_plan_id', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('max_contacts IS NULL OR max_contacts >= 0', name='check_plan_max_contacts'),
        sa.CheckConstraint('max_photos IS NULL OR max_photos >= 0', name='check_plan_max_photos'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_subscription_plans_is_active', 'subscription_plans', ['is_active'])

    op.create_table(
        'categories',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('slug', sa.String(150), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_categories_slug', 'categories', ['slug'], unique=True)

    op.create_table(
        'professionals',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('full_name', sa.String(150), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(30), nullable=False, server_default=''),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category_id', sa.String(36), nullable=False),
        sa.Column('subscription_plan_id', sa.String(36), nullable=True),
        sa.Column('status', sa.Enum('PENDING', 'ACTIVE', 'INACTIVE', name='professionalstatus'), nullable=False),
        sa.Column(
            'deactivation_reason',
            sa.Enum('EXPIRED', 'PAYMENT_FAILED', 'CANCELED', 'ADMIN', name='deactivationreason'),
            nullable=True
        ),
        sa.Column('subscription_expires_at', sa.DateTime(), nullable=True),
        sa.Column('last_payment_at', sa.DateTime(), nullable=True),
        sa.Column('last_subscription_event_at', sa.DateTime(), nullable=True),
        sa.Column('gateway_customer_id', sa.String(255), nullable=True),
        sa.Column('rating', sa.Numeric(3, 2), nullable=False, server_default='0'),
        sa.Column('total_reviews', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('portfolio', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
        sa.ForeignKeyConstraint(['subscription_plan_id'], ['subscription_plans.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_professionals_email', 'professionals', ['email'], unique=True)
    op.create_index('ix_professionals_gateway_customer_id', 'professionals', ['gateway_customer_id'], unique=True)
    op.create_index('ix_professionals_city', 'professionals', ['city'])
    op.create_index('ix_professionals_category_id', 'professionals', ['category_id'])
    op.create_index('ix_professionals_subscription_plan_id', 'professionals', ['subscription_plan_id'])
    op.create_index('ix_professionals_status', 'professionals', ['status'])
    op.create_index('ix_professionals_subscription_expires_at', 'professionals', ['subscription_expires_at'])
    op.create_index('ix_professionals_category_status', 'professionals', ['category_id', 'status'])

    op.create_table(
        'contacts',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('professional_id', sa.String(36), nullable=False),
        sa.Column('customer_name', sa.String(150), nullable=True),
        sa.Column('customer_email', sa.String(255), nullable=True),
        sa.Column('customer_phone', sa.String(30), nullable=True),
        sa.Column('contact_method', sa.Enum('WHATSAPP', 'FORM', 'PHONE', name='contactmethod'), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['professional_id'], ['professionals.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_contacts_professional_id', 'contacts', ['professional_id'])
    op.create_index('ix_contacts_created_at', 'contacts', ['created_at'])
    op.create_index('ix_contacts_professional_created', 'contacts', ['professional_id', 'created_at'])

    op.create_table(
        'reviews',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('professional_id', sa.String(36), nullable=False),
        sa.Column('customer_name', sa.String(150), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='check_review_rating_range'),
        sa.ForeignKeyConstraint(['professional_id'], ['professionals.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_reviews_professional_id', 'reviews', ['professional_id'])
    op.create_index('ix_reviews_created_at', 'reviews', ['created_at'])
    op.create_index('ix_reviews_professional_created', 'reviews', ['professional_id', 'created_at'])

    op.create_table(
        'contact_quota_counters',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('professional_id', sa.String(36), nullable=False),
        sa.Column('period_start', sa.DateTime(), nullable=False),
        sa.Column('period_end', sa.DateTime(), nullable=False),
        sa.Column('count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('count >= 0', name='check_contact_quota_count_positive'),
        sa.ForeignKeyConstraint(['professional_id'], ['professionals.id']),
        sa.UniqueConstraint('professional_id', 'period_start', name='uq_contact_quota_professional_period'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_contact_quota_counters_professional_id', 'contact_quota_counters', ['professional_id'])
    op.create_index('ix_contact_quota_counters_period_start', 'contact_quota_counters', ['period_start'])

    op.create_table(
        'notification_reads',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('professional_id', sa.String(36), nullable=False),
        sa.Column('notification_type', sa.Enum('CONTACT', 'REVIEW', name='notificationtype'), nullable=False),
        sa.Column('notification_id', sa.String(36), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['professional_id'], ['professionals.id']),
        sa.UniqueConstraint(
            'professional_id', 'notification_type', 'notification_id',
            name='uq_notification_read_professional_item'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_notification_reads_professional_id', 'notification_reads', ['professional_id'])
    op.create_index('ix_notification_reads_created_at', 'notification_reads', ['created_at'])

    op.create_table(
        'webhook_events',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('provider_transaction_id', sa.String(255), nullable=False),
        sa.Column('event_type', sa.Enum('CONFIRMED', 'FAILED', 'CANCELED', name='webhookeventtype'), nullable=False),
        sa.Column('professional_id', sa.String(36), nullable=True),
        sa.Column('plan_id', sa.String(36), nullable=True),
        sa.Column('period_end', sa.DateTime(), nullable=True),
        sa.Column('occurred_at', sa.DateTime(), nullable=True),
        sa.Column(
            'outcome',
            sa.Enum('APPLIED', 'DUPLICATE', 'STALE', 'IGNORED', name='webhookoutcome'),
            nullable=False
        ),
        sa.Column('detail', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_webhook_events_provider_transaction_id', 'webhook_events', ['provider_transaction_id'], unique=True)
    op.create_index('ix_webhook_events_created_at', 'webhook_events', ['created_at'])
    op.create_index('ix_webhook_events_professional_created', 'webhook_events', ['professional_id', 'created_at'])


def downgrade():
    """
    Drop engine tables.
    """
    op.drop_table('webhook_events')
    op.drop_table('notification_reads')
    op.drop_table('contact_quota_counters')
    op.drop_table('reviews')
    op.drop_table('contacts')
    op.drop_table('professionals')
    op.drop_table('categories')
    op.drop_table('subscription_plans')

    op.execute('DROP TYPE IF EXISTS webhookoutcome')
    op.execute('DROP TYPE IF EXISTS webhookeventtype')
    op.execute('DROP TYPE IF EXISTS notificationtype')
    op.execute('DROP TYPE IF EXISTS contactmethod')
    op.execute('DROP TYPE IF EXISTS deactivationreason')
    op.execute('DROP TYPE IF EXISTS professionalstatus')
