"""
Routes Package

FLOW OVERVIEW
- Exposes Blueprints:
  • main_bp  → health, status and metrics
  • auth_bp  → /api/auth, /api/users
  • catalog_bp, cart_bp, orders_bp, payments_bp, refunds_bp → storefront and checkout
  • community_bp, notifications_bp → community boards and in-app notifications
  • seller_bp, admin_bp → seller and admin dashboards
  • content_bp → templates, designs, inquiries, coupons, placeholders
"""

from .auth import auth_bp
from .main import main_bp
from .catalog import catalog_bp
from .cart import cart_bp
from .orders import orders_bp
from .payments import payments_bp
from .refunds import refunds_bp
from .community import community_bp
from .notifications import notifications_bp
from .seller import seller_bp
from .admin import admin_bp
from .content import content_bp

__all__ = [
    'auth_bp', 'main_bp', 'catalog_bp', 'cart_bp', 'orders_bp', 'payments_bp', 'refunds_bp',
    'community_bp', 'notifications_bp', 'seller_bp', 'admin_bp', 'content_bp',
]
