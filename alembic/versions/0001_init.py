from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('age_verified', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('latitude', sa.Float, nullable=True),
        sa.Column('longitude', sa.Float, nullable=True)
    )
    op.create_table(
        'merchants',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('address', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('latitude', sa.Float, nullable=True),
        sa.Column('longitude', sa.Float, nullable=True)
    )
    op.create_table(
        'products',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('merchant_id', sa.Integer, sa.ForeignKey('merchants.id'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('is_alcohol', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('available', sa.Boolean, nullable=False, server_default=sa.true())
    )
    op.create_table(
        'drivers',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id'), nullable=True, unique=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('vehicle_type', sa.String(50), nullable=True),
        sa.Column('is_available', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('certification_status', sa.String(30), nullable=False, server_default='PENDING'),
        sa.Column('current_latitude', sa.Float, nullable=True),
        sa.Column('current_longitude', sa.Float, nullable=True),
        sa.Column('total_deliveries', sa.Integer, nullable=False, server_default='0')
    )
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('merchant_id', sa.Integer, sa.ForeignKey('merchants.id'), nullable=False, index=True),
        sa.Column('driver_id', sa.Integer, sa.ForeignKey('drivers.id'), nullable=True, index=True),
        sa.Column('status', sa.String(30), nullable=False, index=True),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('delivery_address', sa.String(255), nullable=False),
        sa.Column('special_instructions', sa.Text, nullable=True),
        sa.Column('promo_code', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('estimated_delivery_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer, nullable=False)
    )
    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id'), nullable=True),
        sa.Column('line_no', sa.Integer, nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('subtotal', sa.Numeric(10, 2), nullable=False)
    )
    op.create_table(
        'deliveries',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id'), nullable=False, unique=True),
        sa.Column('driver_id', sa.Integer, sa.ForeignKey('drivers.id'), nullable=True, index=True),
        sa.Column('status', sa.String(30), nullable=False, index=True),
        sa.Column('delivery_address', sa.String(255), nullable=True),
        sa.Column('delivery_latitude', sa.Float, nullable=True),
        sa.Column('delivery_longitude', sa.Float, nullable=True),
        sa.Column('pickup_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivered_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('estimated_delivery_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('age_verified', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('id_type', sa.String(50), nullable=True),
        sa.Column('id_number', sa.String(4), nullable=True),
        sa.Column('age_verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('current_latitude', sa.Float, nullable=True),
        sa.Column('current_longitude', sa.Float, nullable=True),
        sa.Column('last_location_update', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancellation_reason', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer, nullable=False)
    )
    op.create_table(
        'payments',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id'), nullable=False, index=True),
        sa.Column('user_id', sa.Integer, sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_method', sa.String(50), nullable=True),
        sa.Column('status', sa.String(30), nullable=False, index=True),
        sa.Column('transaction_id', sa.String(100), nullable=True, unique=True),
        sa.Column('refund_reason', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True, index=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True)
    )

def downgrade():
    op.drop_table('payments')
    op.drop_table('deliveries')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('drivers')
    op.drop_table('products')
    op.drop_table('merchants')
    op.drop_table('users')
