"""
Coupon Model
"""

from datetime import datetime
from .database import db
from .utils import isoformat

DISCOUNT_TYPES = ('percent', 'fixed')


class Coupon(db.Model):
    """Discount coupon redeemable at checkout"""
    __tablename__ = 'coupons'

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), unique=True, nullable=False)
    discount_type = db.Column(db.String(10), nullable=False)
    discount_value = db.Column(db.Integer, nullable=False)
    min_order_amount = db.Column(db.Integer, default=0, nullable=False)
    expires_at = db.Column(db.DateTime)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def is_expired(self, now=None):
        now = now or datetime.utcnow()
        return self.expires_at is not None and self.expires_at < now

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'discountType': self.discount_type,
            'discountValue': self.discount_value,
            'minOrderAmount': self.min_order_amount,
            'expiresAt': isoformat(self.expires_at),
            'isActive': self.is_active,
            'createdAt': isoformat(self.created_at),
        }

    @classmethod
    def find_by_code(cls, code):
        if not code:
            return None
        return cls.query.filter_by(code=code.strip().upper()).first()
