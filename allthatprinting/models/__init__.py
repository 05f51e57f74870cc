"""
Database Models Package

FLOW OVERVIEW
- Centralizes SQLAlchemy DB instance and model imports for convenient usage.
- Exposes: db, User, catalog, seller, cart, order, community, notification,
  content, coupon and admin log models.
"""

from .database import db
from .user import User
from .seller import Seller, ShippingCompany
from .catalog import Category, Product, ProductReview, ProductLike, Favorite
from .cart import CartItem
from .content import BelugaTemplate, GoodsEditorDesign, Inquiry
from .order import Order, OrderItem, Payment, RefundRequest
from .community import CommunityPost, CommunityComment
from .notification import Notification
from .coupon import Coupon
from .admin_log import AdminLog

__all__ = [
    'db',
    'User',
    'Seller',
    'ShippingCompany',
    'Category',
    'Product',
    'ProductReview',
    'ProductLike',
    'Favorite',
    'CartItem',
    'BelugaTemplate',
    'GoodsEditorDesign',
    'Inquiry',
    'Order',
    'OrderItem',
    'Payment',
    'RefundRequest',
    'CommunityPost',
    'CommunityComment',
    'Notification',
    'Coupon',
    'AdminLog',
]
