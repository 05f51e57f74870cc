"""
Cart Routes

FLOW OVERVIEW
- /api/cart/<uid> [GET]
  • Cart lines with product summaries, newest first.
- /api/cart, /api/cart/add [POST]
  • Add a product; an existing line for the same product has its quantity merged.
- /api/cart/<item_id> [PUT]
  • Set quantity; zero or less removes the line.
- /api/cart/<item_id>, /api/cart/<uid>/<item_id> [DELETE]
- /api/cart/<uid>/summary [GET]
  • Subtotal, shipping fee, coupon discount and total.
"""

from flask import Blueprint, jsonify, request, g

from ..models import db, CartItem, Coupon, Product
from ..utils.api_utils import request_validator, pick, get_or_404, require_id
from ..utils.auth_utils import token_required, ensure_self_or_admin
from ..utils.error_handlers import APIError
from ..utils.pricing import summarize
from ..utils.validators import InputValidator, validate_quantity

cart_bp = Blueprint('cart', __name__)


def _owned_item(item_id):
    item = get_or_404(CartItem, item_id, '장바구니 항목을 찾을 수 없습니다.')
    ensure_self_or_admin(item.user_id)
    return item


@cart_bp.route('/cart/<int:user_id>')
@token_required
def get_cart(user_id):
    ensure_self_or_admin(user_id)
    return jsonify([item.to_dict() for item in CartItem.for_user(user_id)])


@cart_bp.route('/cart', methods=['POST'])
@cart_bp.route('/cart/add', methods=['POST'])
@token_required
def add_to_cart():
    """Add a product to the caller's cart"""
    data = request_validator.parse_json_body()
    product_id = require_id(data, 'product_id', 'productId', message='상품 ID가 필요합니다.')
    quantity = validate_quantity(pick(data, 'quantity', default=1))
    if not quantity.is_valid:
        raise APIError(quantity.error_message, 400, 'VALIDATION_ERROR')

    product = get_or_404(Product, product_id, '상품을 찾을 수 없습니다.')
    if not product.is_active or not product.is_approved:
        raise APIError(f'{product.name_ko}는 현재 판매 중단된 상품입니다.', 400, 'PRODUCT_INACTIVE')

    item, created = CartItem.add_or_merge(
        g.current_user.id, product.id, quantity.sanitized_value, pick(data, 'customization', 'options'))
    db.session.commit()
    return jsonify(item.to_dict()), 201 if created else 200


@cart_bp.route('/cart/<int:item_id>', methods=['PUT'])
@token_required
def update_cart_item(item_id):
    item = _owned_item(item_id)
    data = request_validator.parse_json_body()
    quantity = InputValidator.validate_int(data.get('quantity'), None, 9999, '수량은 정수여야 합니다.')
    if not quantity.is_valid:
        raise APIError(quantity.error_message, 400, 'VALIDATION_ERROR')

    if quantity.sanitized_value <= 0:
        db.session.delete(item)
        db.session.commit()
        return jsonify({'message': '장바구니에서 삭제되었습니다.', 'removed': True})

    item.quantity = quantity.sanitized_value
    if 'customization' in data:
        item.customization = data['customization']
    db.session.commit()
    return jsonify(item.to_dict())


@cart_bp.route('/cart/<int:item_id>', methods=['DELETE'])
@token_required
def delete_cart_item(item_id):
    item = _owned_item(item_id)
    db.session.delete(item)
    db.session.commit()
    return jsonify({'message': '장바구니에서 삭제되었습니다.'})


@cart_bp.route('/cart/<int:user_id>/<int:item_id>', methods=['DELETE'])
@token_required
def delete_user_cart_item(user_id, item_id):
    ensure_self_or_admin(user_id)
    item = CartItem.query.filter_by(id=item_id, user_id=user_id).first()
    if item is None:
        raise APIError('장바구니 항목을 찾을 수 없습니다.', 404)
    db.session.delete(item)
    db.session.commit()
    return jsonify({'message': '장바구니에서 삭제되었습니다.'})


@cart_bp.route('/cart/<int:user_id>/summary')
@token_required
def cart_summary(user_id):
    ensure_self_or_admin(user_id)
    items = CartItem.for_user(user_id)
    coupon_code = request.args.get('coupon')
    coupon = Coupon.find_by_code(coupon_code) if coupon_code else None
    summary = summarize([(item.product.base_price, item.quantity) for item in items],
                        coupon=coupon, coupon_code=coupon_code)
    return jsonify(summary.to_dict())
