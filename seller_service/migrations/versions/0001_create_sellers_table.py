"""create sellers table

Revision ID: 0001_create_sellers
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '0001_create_sellers'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

seller_status = sa.Enum('pending', 'active', 'suspended', 'rejected', name='seller_status')
verification_status = sa.Enum('unverified', 'pending', 'verified', 'rejected', name='verification_status')
business_type = sa.Enum(
    'individual', 'sole_proprietor', 'llc', 'corporation', 'partnership', name='business_type'
)


def upgrade() -> None:
    op.create_table(
        'sellers',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('business_name', sa.String(255), nullable=False),
        sa.Column('business_type', business_type, nullable=False, server_default='individual'),
        sa.Column('business_email', sa.String(255), nullable=True),
        sa.Column('business_phone', sa.String(50), nullable=True),
        sa.Column('tax_id', sa.String(100), nullable=True),
        sa.Column('business_address', sa.Text(), nullable=True),
        sa.Column('business_city', sa.String(100), nullable=True),
        sa.Column('business_state', sa.String(100), nullable=True),
        sa.Column('business_country', sa.String(100), nullable=True),
        sa.Column('business_postal_code', sa.String(20), nullable=True),
        sa.Column('logo_url', sa.String(500), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('website', sa.String(255), nullable=True),
        sa.Column('status', seller_status, nullable=False, server_default='pending'),
        sa.Column('verification_status', verification_status, nullable=False, server_default='unverified'),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('verified_by', sa.Integer(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('suspension_reason', sa.Text(), nullable=True),
        sa.Column('rating', sa.DECIMAL(3, 2), nullable=False, server_default='0'),
        sa.Column('total_reviews', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_products', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_sales', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_revenue', sa.DECIMAL(12, 2), nullable=False, server_default='0'),
        sa.Column('commission_rate', sa.DECIMAL(5, 2), nullable=True),
        sa.Column('bank_name', sa.String(255), nullable=True),
        sa.Column('bank_account_holder', sa.String(255), nullable=True),
        sa.Column('bank_account_number', sa.String(255), nullable=True),
        sa.Column('bank_routing_number', sa.String(50), nullable=True),
        sa.Column('payment_method', sa.String(50), nullable=True, server_default='bank_transfer'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.CheckConstraint('rating >= 0 AND rating <= 5', name='ck_sellers_rating_range'),
        sa.CheckConstraint('total_products >= 0', name='ck_sellers_total_products_non_negative'),
        sa.CheckConstraint(
            'commission_rate IS NULL OR (commission_rate >= 0 AND commission_rate <= 100)',
            name='ck_sellers_commission_rate_range',
        ),
    )
    op.create_index('ix_sellers_user_id', 'sellers', ['user_id'], unique=True)
    op.create_index('ix_sellers_status', 'sellers', ['status'])
    op.create_index('ix_sellers_verification_status', 'sellers', ['verification_status'])
    op.create_index('ix_sellers_rating', 'sellers', ['rating'])
    op.create_index('ix_sellers_created_at', 'sellers', ['created_at'])
    op.create_index('ix_sellers_business_name', 'sellers', ['business_name'])


def downgrade() -> None:
    op.drop_index('ix_sellers_business_name', table_name='sellers')
    op.drop_index('ix_sellers_created_at', table_name='sellers')
    op.drop_index('ix_sellers_rating', table_name='sellers')
    op.drop_index('ix_sellers_verification_status', table_name='sellers')
    op.drop_index('ix_sellers_status', table_name='sellers')
    op.drop_index('ix_sellers_user_id', table_name='sellers')
    op.drop_table('sellers')
    business_type.drop(op.get_bind(), checkfirst=True)
    verification_status.drop(op.get_bind(), checkfirst=True)
    seller_status.drop(op.get_bind(), checkfirst=True)
