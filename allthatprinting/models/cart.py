"""
Cart Model

FLOW OVERVIEW
- CartItem: one line per (user, product).
- add_or_merge(user_id, product_id, quantity, customization): re-adding a product
  increases the existing quantity instead of inserting a second line.
"""

from datetime import datetime
from .database import db
from .utils import isoformat


class CartItem(db.Model):
    """Shopping cart line"""
    __tablename__ = 'cart_items'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=False)
    quantity = db.Column(db.Integer, default=1, nullable=False)
    customization = db.Column(db.JSON)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    product = db.relationship('Product')

    __table_args__ = (db.UniqueConstraint('user_id', 'product_id', name='unique_user_cart_product'),)

    @property
    def line_total(self):
        return (self.product.base_price if self.product else 0) * self.quantity

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'productId': self.product_id,
            'quantity': self.quantity,
            'customization': self.customization,
            'lineTotal': self.line_total,
            'product': self.product.summary() if self.product else None,
            'createdAt': isoformat(self.created_at),
        }

    @classmethod
    def for_user(cls, user_id):
        return cls.query.filter_by(user_id=user_id).order_by(cls.created_at.desc(), cls.id.desc()).all()

    @classmethod
    def add_or_merge(cls, user_id, product_id, quantity, customization=None):
        """Insert a line or merge into the existing one. Returns (item, created)."""
        item = cls.query.filter_by(user_id=user_id, product_id=product_id).first()
        if item:
            item.quantity += quantity
            if customization is not None:
                item.customization = customization
            return item, False
        item = cls(user_id=user_id, product_id=product_id, quantity=quantity,
                   customization=customization)
        db.session.add(item)
        return item, True

    @classmethod
    def clear_for_user(cls, user_id):
        cls.query.filter_by(user_id=user_id).delete()
