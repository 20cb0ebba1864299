"""Initial schema: catalog, sell history, transactions, debits, expenses

Revision ID: 20261016_initial
Revises:
Create Date: 2026-10-16

Creates:
1. categories, products, services (catalog with running sales counters)
2. transactions and sell_history (every sale, bulk or single)
3. debits and debit_items (deferred payments over prior sales)
4. daily_expenses and supply_expenses
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261016_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. CATALOG
    # ==========================================================================
    op.create_table('categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )

    op.create_table('products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('initial_price_cents', sa.Integer(), nullable=False),
        sa.Column('selling_price_cents', sa.Integer(), nullable=False),
        sa.Column('total_sold', sa.Integer(), nullable=False),
        sa.Column('revenue_cents', sa.Integer(), nullable=False),
        sa.Column('profit_cents', sa.Integer(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.CheckConstraint('quantity >= 0', name='ck_products_quantity_nonneg'),
        sa.CheckConstraint('total_sold >= 0', name='ck_products_total_sold_nonneg'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_products_category_id'), ['category_id'], unique=False)
        batch_op.create_index('ix_products_category_name', ['category_id', 'name'], unique=False)

    op.create_table('services',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('default_price_cents', sa.Integer(), nullable=False),
        sa.Column('total_sold', sa.Integer(), nullable=False),
        sa.Column('revenue_cents', sa.Integer(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.CheckConstraint('total_sold >= 0', name='ck_services_total_sold_nonneg'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )

    # ==========================================================================
    # 2. SALES
    # ==========================================================================
    op.create_table('transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('total_revenue_cents', sa.Integer(), nullable=False),
        sa.Column('total_profit_cents', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('transactions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_transactions_created_at'), ['created_at'], unique=False)

    op.create_table('sell_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('service_id', sa.Integer(), nullable=True),
        sa.Column('transaction_id', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('sold_price_cents', sa.Integer(), nullable=False),
        sa.Column('total_price_cents', sa.Integer(), nullable=False),
        sa.Column('initial_price_cents', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('(product_id IS NULL) <> (service_id IS NULL)', name='ck_sell_history_single_owner'),
        sa.CheckConstraint('amount > 0', name='ck_sell_history_amount_positive'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['service_id'], ['services.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['transaction_id'], ['transactions.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('sell_history', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_sell_history_product_id'), ['product_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_sell_history_service_id'), ['service_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_sell_history_transaction_id'), ['transaction_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_sell_history_created_at'), ['created_at'], unique=False)

    # ==========================================================================
    # 3. DEBITS
    # ==========================================================================
    op.create_table('debits',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('total_amount_cents', sa.Integer(), nullable=False),
        sa.Column('paid_amount_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.CheckConstraint('total_amount_cents > 0', name='ck_debits_total_positive'),
        sa.CheckConstraint(
            'paid_amount_cents >= 0 AND paid_amount_cents <= total_amount_cents',
            name='ck_debits_paid_within_total',
        ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('debits', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_debits_status'), ['status'], unique=False)
        batch_op.create_index('ix_debits_status_created', ['status', 'created_at'], unique=False)

    op.create_table('debit_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('debit_id', sa.Integer(), nullable=False),
        sa.Column('sell_history_id', sa.Integer(), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.CheckConstraint('amount_cents > 0', name='ck_debit_items_amount_positive'),
        sa.ForeignKeyConstraint(['debit_id'], ['debits.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sell_history_id'], ['sell_history.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sell_history_id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('debit_items', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_debit_items_debit_id'), ['debit_id'], unique=False)

    # ==========================================================================
    # 4. EXPENSES
    # ==========================================================================
    op.create_table('daily_expenses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=64), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('expense_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.CheckConstraint('amount_cents > 0', name='ck_daily_expenses_amount_positive'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('daily_expenses', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_daily_expenses_category'), ['category'], unique=False)
        batch_op.create_index(batch_op.f('ix_daily_expenses_expense_date'), ['expense_date'], unique=False)

    op.create_table('supply_expenses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('amount_cents', sa.Integer(), nullable=False),
        sa.Column('supplier', sa.String(length=255), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=True),
        sa.Column('unit_price_cents', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.CheckConstraint('amount_cents > 0', name='ck_supply_expenses_amount_positive'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('supply_expenses', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_supply_expenses_created_at'), ['created_at'], unique=False)


def downgrade():
    with op.batch_alter_table('supply_expenses', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_supply_expenses_created_at'))
    op.drop_table('supply_expenses')

    with op.batch_alter_table('daily_expenses', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_daily_expenses_expense_date'))
        batch_op.drop_index(batch_op.f('ix_daily_expenses_category'))
    op.drop_table('daily_expenses')

    with op.batch_alter_table('debit_items', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_debit_items_debit_id'))
    op.drop_table('debit_items')

    with op.batch_alter_table('debits', schema=None) as batch_op:
        batch_op.drop_index('ix_debits_status_created')
        batch_op.drop_index(batch_op.f('ix_debits_status'))
    op.drop_table('debits')

    with op.batch_alter_table('sell_history', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_sell_history_created_at'))
        batch_op.drop_index(batch_op.f('ix_sell_history_transaction_id'))
        batch_op.drop_index(batch_op.f('ix_sell_history_service_id'))
        batch_op.drop_index(batch_op.f('ix_sell_history_product_id'))
    op.drop_table('sell_history')

    with op.batch_alter_table('transactions', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_transactions_created_at'))
    op.drop_table('transactions')

    op.drop_table('services')

    with op.batch_alter_table('products', schema=None) as batch_op:
        batch_op.drop_index('ix_products_category_name')
        batch_op.drop_index(batch_op.f('ix_products_category_id'))
    op.drop_table('products')

    op.drop_table('categories')
