"""
Admin Routes

FLOW OVERVIEW
All routes require an administrator; every mutation also appends an AdminLog entry
in the same commit.
- /api/admin/products [GET], /api/admin/products/<id>/approve [PUT],
  /api/admin/products/<id>/status [PUT], /api/admin/products/<id> [DELETE]
- /api/admin/sellers [GET], /api/admin/sellers/<id>/approve [PUT]
- /api/admin/orders [GET], /api/admin/users [GET], /api/admin/users/<id>/role [PUT]
- /api/admin/reviews [GET], /api/admin/reviews/<id> [DELETE]
- /api/admin/categories [POST], /api/admin/categories/<id> [PUT, DELETE]
- /api/admin/notifications/broadcast [POST]
- /api/admin/stats [GET]
  • Dashboard counters; revenue sums orders in the paid lifecycle.
- /api/admin/logs [GET, POST]
"""

from datetime import datetime

from flask import Blueprint, jsonify, request, current_app, g
from sqlalchemy import func

from ..models import db, AdminLog, Category, Order, Product, ProductReview, Seller, User
from ..models.order import REVENUE_STATUSES
from ..utils.api_utils import request_validator, pick, parse_bool, get_or_404
from ..utils.error_handlers import APIError
from ..utils.auth_utils import admin_required
from ..utils.notifications import broadcast
from ..utils.validators import InputValidator, sanitize_input
from .catalog import remove_product

admin_bp = Blueprint('admin', __name__)

CATEGORY_FIELDS = {
    'name': 'name',
    'nameKo': 'name_ko',
    'name_ko': 'name_ko',
    'description': 'description',
    'descriptionKo': 'description_ko',
    'description_ko': 'description_ko',
    'imageUrl': 'image_url',
    'image_url': 'image_url',
    'isActive': 'is_active',
    'is_active': 'is_active',
}


def _require_flag(data, *keys):
    value = pick(data, *keys)
    if value is None:
        raise APIError(f"필수 항목이 누락되었습니다: {keys[0]}", 400, 'MISSING_FIELDS')
    return parse_bool(value)


# Products

@admin_bp.route('/admin/products')
@admin_required
def list_products():
    query = Product.query
    if request.args.get('approved') is not None:
        query = query.filter(Product.is_approved.is_(parse_bool(request.args.get('approved'))))
    products = query.order_by(Product.created_at.desc(), Product.id.desc()).all()
    return jsonify([product.to_dict() for product in products])


@admin_bp.route('/admin/products/<int:product_id>/approve', methods=['PUT'])
@admin_required
def approve_product(product_id):
    product = get_or_404(Product, product_id, '상품을 찾을 수 없습니다.')
    approved = _require_flag(request_validator.parse_json_body(), 'approved', 'isApproved')
    product.is_approved = approved
    product.approval_date = datetime.utcnow() if approved else None
    AdminLog.record(g.current_user.id, 'approve_product' if approved else 'unapprove_product',
                    'products', product.id)
    db.session.commit()
    current_app.logger.info(f"Product {product.id} approval set to {approved} by admin {g.current_user.id}")
    return jsonify(product.to_dict())


@admin_bp.route('/admin/products/<int:product_id>/status', methods=['PUT'])
@admin_required
def update_product_status(product_id):
    product = get_or_404(Product, product_id, '상품을 찾을 수 없습니다.')
    product.is_active = _require_flag(request_validator.parse_json_body(), 'is_active', 'isActive')
    AdminLog.record(g.current_user.id, 'update_product_status', 'products', product.id,
                    {'isActive': product.is_active})
    db.session.commit()
    return jsonify(product.to_dict())


@admin_bp.route('/admin/products/<int:product_id>', methods=['DELETE'])
@admin_required
def delete_product(product_id):
    product = get_or_404(Product, product_id, '상품을 찾을 수 없습니다.')
    deleted = remove_product(product, g.current_user.id)
    return jsonify({'message': '상품이 삭제되었습니다.', 'deleted': deleted})


# Sellers

@admin_bp.route('/admin/sellers')
@admin_required
def list_sellers():
    query = Seller.query
    status = request.args.get('status')
    if status:
        query = query.filter_by(status=status)
    sellers = query.order_by(Seller.created_at.desc(), Seller.id.desc()).all()
    return jsonify([seller.to_dict(include_user=True) for seller in sellers])


@admin_bp.route('/admin/sellers/<int:seller_id>/approve', methods=['PUT'])
@admin_required
def approve_seller(seller_id):
    seller = get_or_404(Seller, seller_id, '판매자를 찾을 수 없습니다.')
    approved = _require_flag(request_validator.parse_json_body(), 'approved', 'isApproved')
    seller.set_approval(approved)
    AdminLog.record(g.current_user.id, 'approve_seller' if approved else 'reject_seller',
                    'sellers', seller.id)
    db.session.commit()
    current_app.logger.info(f"Seller {seller.id} {seller.status} by admin {g.current_user.id}")
    return jsonify(seller.to_dict(include_user=True))


# Orders and users

@admin_bp.route('/admin/orders')
@admin_required
def list_orders():
    query = Order.query
    status = request.args.get('status')
    if status:
        query = query.filter_by(status=status)
    orders = query.order_by(Order.created_at.desc(), Order.id.desc()).all()
    result = []
    for order in orders:
        data = order.to_dict()
        data['user'] = order.user.to_dict() if order.user else None
        result.append(data)
    return jsonify(result)


@admin_bp.route('/admin/users')
@admin_required
def list_users():
    users = User.query.order_by(User.created_at.desc(), User.id.desc()).all()
    return jsonify([user.to_dict() for user in users])


@admin_bp.route('/admin/users/<int:user_id>/role', methods=['PUT'])
@admin_required
def update_user_role(user_id):
    user = get_or_404(User, user_id, '사용자를 찾을 수 없습니다.')
    is_admin = _require_flag(request_validator.parse_json_body(), 'isAdmin', 'is_admin')
    if user.id == g.current_user.id and not is_admin:
        raise APIError('자기 자신의 관리자 권한은 해제할 수 없습니다.', 400, 'SELF_DEMOTION')
    user.is_admin = is_admin
    AdminLog.record(g.current_user.id, 'update_user_role', 'users', user.id, {'isAdmin': is_admin})
    db.session.commit()
    return jsonify(user.to_dict())


# Reviews

@admin_bp.route('/admin/reviews')
@admin_required
def list_reviews():
    reviews = ProductReview.query.order_by(ProductReview.created_at.desc(), ProductReview.id.desc()).all()
    result = []
    for review in reviews:
        data = review.to_dict()
        data['product'] = review.product.summary() if review.product else None
        result.append(data)
    return jsonify(result)


@admin_bp.route('/admin/reviews/<int:review_id>', methods=['DELETE'])
@admin_required
def delete_review(review_id):
    review = get_or_404(ProductReview, review_id, '리뷰를 찾을 수 없습니다.')
    AdminLog.record(g.current_user.id, 'delete_review', 'product_reviews', review.id,
                    {'productId': review.product_id})
    db.session.delete(review)
    db.session.commit()
    return jsonify({'message': '리뷰가 삭제되었습니다.'})


# Categories

def _apply_category(category, data, partial):
    if not partial:
        missing = [key for key in ('name', 'nameKo') if pick(data, key, CATEGORY_FIELDS[key]) in (None, '')]
        if missing:
            raise APIError(f"필수 항목이 누락되었습니다: {', '.join(missing)}", 400, 'MISSING_FIELDS')
    for key, attr in CATEGORY_FIELDS.items():
        if key in data:
            value = data[key]
            if attr in ('name', 'name_ko'):
                value = sanitize_input(value, 100)
                if not value:
                    raise APIError('카테고리 이름을 입력해주세요.', 400, 'MISSING_FIELDS')
            setattr(category, attr, value)


@admin_bp.route('/admin/categories', methods=['POST'])
@admin_required
def create_category():
    data = request_validator.parse_json_body()
    category = Category()
    _apply_category(category, data, partial=False)
    db.session.add(category)
    db.session.flush()
    AdminLog.record(g.current_user.id, 'create_category', 'categories', category.id, {'name': category.name})
    db.session.commit()
    return jsonify(category.to_dict()), 201


@admin_bp.route('/admin/categories/<int:category_id>', methods=['PUT'])
@admin_required
def update_category(category_id):
    category = get_or_404(Category, category_id, '카테고리를 찾을 수 없습니다.')
    data = request_validator.parse_json_body()
    _apply_category(category, data, partial=True)
    AdminLog.record(g.current_user.id, 'update_category', 'categories', category.id)
    db.session.commit()
    return jsonify(category.to_dict())


@admin_bp.route('/admin/categories/<int:category_id>', methods=['DELETE'])
@admin_required
def delete_category(category_id):
    category = get_or_404(Category, category_id, '카테고리를 찾을 수 없습니다.')
    if Product.query.filter_by(category_id=category.id).first() is not None:
        raise APIError('상품이 등록된 카테고리는 삭제할 수 없습니다.', 400, 'CATEGORY_IN_USE')
    AdminLog.record(g.current_user.id, 'delete_category', 'categories', category.id, {'name': category.name})
    db.session.delete(category)
    db.session.commit()
    return jsonify({'message': '카테고리가 삭제되었습니다.'})


# Notifications, stats and logs

@admin_bp.route('/admin/notifications/broadcast', methods=['POST'])
@admin_required
def broadcast_notification():
    data = request_validator.parse_json_body()
    request_validator.require_fields(data, 'title', 'message')
    count = broadcast(sanitize_input(data['title'], 200), sanitize_input(data['message'], 2000),
                      type=data.get('type') or 'announcement')
    AdminLog.record(g.current_user.id, 'broadcast_notification', 'notifications', None,
                    {'title': data['title'], 'recipients': count})
    db.session.commit()
    return jsonify({'message': '알림이 발송되었습니다.', 'count': count}), 201


@admin_bp.route('/admin/stats')
@admin_required
def stats():
    revenue = db.session.query(func.coalesce(func.sum(Order.total_amount), 0)) \
        .filter(Order.status.in_(REVENUE_STATUSES)).scalar()
    return jsonify({
        'totalProducts': Product.query.count(),
        'totalUsers': User.query.count(),
        'totalOrders': Order.query.count(),
        'totalSellers': Seller.query.count(),
        'pendingProducts': Product.query.filter(Product.is_approved.is_(False)).count(),
        'pendingSellers': Seller.query.filter_by(status='pending').count(),
        'totalRevenue': int(revenue or 0),
    })


@admin_bp.route('/admin/logs')
@admin_required
def list_logs():
    limit = InputValidator.validate_int(request.args.get('limit', '100'), 1, 1000, '조회 개수가 올바르지 않습니다.')
    if not limit.is_valid:
        raise APIError(limit.error_message, 400, 'VALIDATION_ERROR')
    return jsonify([entry.to_dict() for entry in AdminLog.recent(limit.sanitized_value)])


@admin_bp.route('/admin/logs', methods=['POST'])
@admin_required
def create_log():
    data = request_validator.parse_json_body()
    request_validator.require_fields(data, 'action')
    target_id = pick(data, 'target_id', 'targetId')
    if target_id is not None:
        result = InputValidator.validate_int(target_id, 1, None, '대상 ID가 올바르지 않습니다.')
        if not result.is_valid:
            raise APIError(result.error_message, 400, 'VALIDATION_ERROR')
        target_id = result.sanitized_value
    entry = AdminLog.record(
        g.current_user.id,
        sanitize_input(data['action'], 100),
        pick(data, 'target_table', 'targetTable'),
        target_id,
        data.get('details'),
    )
    db.session.commit()
    return jsonify(entry.to_dict()), 201
