"""
Seller Models

FLOW OVERVIEW
- Seller: a user's shop registration; starts `pending`, an admin approves or rejects it.
- ShippingCompany: couriers a seller can pick when marking an order shipped.
"""

from datetime import datetime
from .database import db
from .utils import isoformat

SELLER_STATUSES = ('pending', 'approved', 'rejected')


class Seller(db.Model):
    """Shop registered by a user"""
    __tablename__ = 'sellers'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False)
    shop_name = db.Column(db.String(100), nullable=False)
    business_number = db.Column(db.String(20))
    contact_email = db.Column(db.String(120))
    contact_phone = db.Column(db.String(20))
    address = db.Column(db.String(255))
    bank_account = db.Column(db.String(50))
    bank_name = db.Column(db.String(50))
    status = db.Column(db.String(20), default='pending', nullable=False)
    is_approved = db.Column(db.Boolean, default=False, nullable=False)
    approved_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship('User', backref=db.backref('seller', uselist=False))
    products = db.relationship('Product', backref='seller', lazy=True)

    PROFILE_FIELDS = {
        'shopName': 'shop_name',
        'businessNumber': 'business_number',
        'contactEmail': 'contact_email',
        'contactPhone': 'contact_phone',
        'address': 'address',
        'bankAccount': 'bank_account',
        'bankName': 'bank_name',
    }

    def __repr__(self):
        return f'<Seller {self.shop_name}>'

    def apply_profile(self, data):
        for key, attr in self.PROFILE_FIELDS.items():
            if key in data:
                setattr(self, attr, data[key])

    def set_approval(self, approved):
        """Approve or reject the shop."""
        self.is_approved = bool(approved)
        self.status = 'approved' if approved else 'rejected'
        self.approved_at = datetime.utcnow() if approved else None

    def to_dict(self, include_user=False):
        data = {
            'id': self.id,
            'userId': self.user_id,
            'shopName': self.shop_name,
            'businessNumber': self.business_number,
            'contactEmail': self.contact_email,
            'contactPhone': self.contact_phone,
            'address': self.address,
            'bankAccount': self.bank_account,
            'bankName': self.bank_name,
            'status': self.status,
            'isApproved': self.is_approved,
            'approvedAt': isoformat(self.approved_at),
            'createdAt': isoformat(self.created_at),
        }
        if include_user:
            data['user'] = self.user.to_dict() if self.user else None
        return data


class ShippingCompany(db.Model):
    """Courier company"""
    __tablename__ = 'shipping_companies'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    code = db.Column(db.String(30))
    tracking_url = db.Column(db.String(500))
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    def tracking_link(self, tracking_number):
        if not self.tracking_url or not tracking_number:
            return None
        return self.tracking_url.replace('{trackingNumber}', tracking_number)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'trackingUrl': self.tracking_url,
            'isActive': self.is_active,
        }
