"""
Order Models

FLOW OVERVIEW
- Order: header with server-computed totals and a status from ORDER_STATUSES.
- OrderItem: snapshot of product, quantity and unit price at purchase time.
- Payment: one attempt to pay an order (Toss, KakaoPay, bank transfer ...).
- RefundRequest: a customer's refund claim; remembers the order status it replaced
  so a rejection can put the order back.
"""

from datetime import datetime
from .database import db
from .utils import isoformat

ORDER_STATUSES = (
    'pending', 'paid', 'preparing', 'shipped', 'delivered', 'completed',
    'cancelled', 'failed', 'refund_requested', 'refunded',
)

# Statuses whose orders count toward revenue
REVENUE_STATUSES = ('paid', 'preparing', 'shipped', 'delivered', 'completed')

# Statuses a customer may still cancel from; paid orders go through a refund request
CANCELLABLE_STATUSES = ('pending',)

# Statuses from which a refund can be requested
REFUNDABLE_STATUSES = ('paid', 'preparing', 'shipped', 'delivered', 'completed')

# Final statuses; their stock has been handed back and they cannot be reopened
CLOSED_STATUSES = ('cancelled', 'failed', 'refunded')

PAYMENT_STATUSES = ('pending', 'success', 'failed', 'cancelled', 'refunded')

REFUND_STATUSES = ('pending', 'approved', 'rejected')


class Order(db.Model):
    """Customer order"""
    __tablename__ = 'orders'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    status = db.Column(db.String(30), default='pending', nullable=False)
    subtotal = db.Column(db.Integer, default=0, nullable=False)
    shipping_fee = db.Column(db.Integer, default=0, nullable=False)
    discount = db.Column(db.Integer, default=0, nullable=False)
    total_amount = db.Column(db.Integer, nullable=False)
    shipping_address = db.Column(db.JSON)
    payment_method = db.Column(db.String(30))
    coupon_code = db.Column(db.String(50))
    tracking_number = db.Column(db.String(100))
    shipping_company_id = db.Column(db.Integer, db.ForeignKey('shipping_companies.id'))
    shipped_at = db.Column(db.DateTime)
    stock_released = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship('User', backref=db.backref('orders', lazy=True))
    items = db.relationship('OrderItem', backref='order', lazy=True, cascade='all, delete-orphan')
    payments = db.relationship('Payment', backref='order', lazy=True, cascade='all, delete-orphan',
                               order_by='Payment.id')
    shipping_company = db.relationship('ShippingCompany')

    def __repr__(self):
        return f'<Order {self.id} {self.status}>'

    @property
    def latest_payment(self):
        return self.payments[-1] if self.payments else None

    def summary(self):
        return {
            'id': self.id,
            'status': self.status,
            'totalAmount': self.total_amount,
            'createdAt': isoformat(self.created_at),
        }

    def to_dict(self, include_items=True):
        data = {
            'id': self.id,
            'userId': self.user_id,
            'status': self.status,
            'subtotal': self.subtotal,
            'shippingFee': self.shipping_fee,
            'discount': self.discount,
            'totalAmount': self.total_amount,
            'shippingAddress': self.shipping_address,
            'paymentMethod': self.payment_method,
            'couponCode': self.coupon_code,
            'trackingNumber': self.tracking_number,
            'shippingCompanyId': self.shipping_company_id,
            'shippedAt': isoformat(self.shipped_at),
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    """Order line"""
    __tablename__ = 'order_items'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Integer, nullable=False)
    design_id = db.Column(db.Integer, db.ForeignKey('goods_editor_designs.id'))
    options = db.Column(db.JSON)

    product = db.relationship('Product')

    def to_dict(self):
        return {
            'id': self.id,
            'orderId': self.order_id,
            'productId': self.product_id,
            'quantity': self.quantity,
            'price': self.price,
            'designId': self.design_id,
            'options': self.options,
            'product': self.product.summary() if self.product else None,
        }


class Payment(db.Model):
    """Payment attempt for an order"""
    __tablename__ = 'payments'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=False)
    payment_method = db.Column(db.String(30), nullable=False)
    amount = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), default='pending', nullable=False)
    transaction_id = db.Column(db.String(200))
    tid = db.Column(db.String(100))
    paid_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def mark(self, status, transaction_id=None):
        """Move to a new status; a success stamps paid_at."""
        self.status = status
        if transaction_id:
            self.transaction_id = transaction_id
        if status == 'success' and self.paid_at is None:
            self.paid_at = datetime.utcnow()

    def to_dict(self):
        return {
            'id': self.id,
            'orderId': self.order_id,
            'paymentMethod': self.payment_method,
            'amount': self.amount,
            'status': self.status,
            'transactionId': self.transaction_id,
            'tid': self.tid,
            'paidAt': isoformat(self.paid_at),
            'createdAt': isoformat(self.created_at),
        }


class RefundRequest(db.Model):
    """Customer refund request for an order"""
    __tablename__ = 'refund_requests'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), unique=True, nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    reason = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    amount = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), default='pending', nullable=False)
    previous_status = db.Column(db.String(30))
    admin_note = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    resolved_at = db.Column(db.DateTime)

    order = db.relationship('Order', backref=db.backref('refund_request', uselist=False))
    user = db.relationship('User')

    def to_dict(self, include_order=False):
        data = {
            'id': self.id,
            'orderId': self.order_id,
            'userId': self.user_id,
            'reason': self.reason,
            'description': self.description,
            'amount': self.amount,
            'status': self.status,
            'adminNote': self.admin_note,
            'createdAt': isoformat(self.created_at),
            'resolvedAt': isoformat(self.resolved_at),
        }
        if include_order:
            data['order'] = self.order.summary() if self.order else None
        return data
