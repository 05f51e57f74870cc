"""
Order Routes

FLOW OVERVIEW
- /api/orders [POST]
  • Place an order from the payload items or the caller's cart (see order_service.place_order).
- /api/orders/user/<uid> [GET]
  • Customer order history, newest first.
- /api/orders/<id> [GET, PATCH]
  • Detail with payment and refund; status change (admin any, owner cancel only).
- /api/orders/<id>/items, /api/orders/<id>/payments [GET]
- /api/delivery-tracking/<id>, /api/shipping/<id> [GET]
  • Courier, tracking number and shipping status.
"""

from flask import Blueprint, jsonify, current_app, g

from ..models import Order
from ..utils.api_utils import request_validator, get_or_404
from ..utils.auth_utils import token_required, ensure_self_or_admin
from ..utils.error_handlers import APIError
from ..utils.order_service import place_order, change_order_status

orders_bp = Blueprint('orders', __name__)


def _visible_order(order_id):
    order = get_or_404(Order, order_id, '주문을 찾을 수 없습니다.')
    ensure_self_or_admin(order.user_id)
    return order


@orders_bp.route('/orders', methods=['POST'])
@token_required
def create_order():
    data = request_validator.parse_json_body()
    try:
        order = place_order(g.current_user, data)
    except APIError:
        raise
    except Exception as e:
        current_app.logger.error(f"Order creation failed for user {g.current_user.id}: {str(e)}", exc_info=True)
        raise APIError('주문 처리 중 오류가 발생했습니다.', 500, 'ORDER_FAILED')
    return jsonify(order.to_dict()), 201


@orders_bp.route('/orders/user/<int:user_id>')
@token_required
def list_user_orders(user_id):
    ensure_self_or_admin(user_id)
    orders = Order.query.filter_by(user_id=user_id).order_by(Order.created_at.desc(), Order.id.desc()).all()
    return jsonify([order.to_dict() for order in orders])


@orders_bp.route('/orders/<int:order_id>')
@token_required
def get_order(order_id):
    order = _visible_order(order_id)
    data = order.to_dict()
    data['payment'] = order.latest_payment.to_dict() if order.latest_payment else None
    data['refundRequest'] = order.refund_request.to_dict() if order.refund_request else None
    return jsonify(data)


@orders_bp.route('/orders/<int:order_id>', methods=['PATCH'])
@token_required
def update_order_status(order_id):
    order = get_or_404(Order, order_id, '주문을 찾을 수 없습니다.')
    data = request_validator.parse_json_body()
    request_validator.require_fields(data, 'status', message='변경할 주문 상태가 필요합니다.')
    change_order_status(order, data['status'], g.current_user)
    return jsonify(order.to_dict())


@orders_bp.route('/orders/<int:order_id>/items')
@token_required
def list_order_items(order_id):
    order = _visible_order(order_id)
    return jsonify([item.to_dict() for item in order.items])


@orders_bp.route('/orders/<int:order_id>/payments')
@token_required
def list_order_payments(order_id):
    order = _visible_order(order_id)
    return jsonify([payment.to_dict() for payment in order.payments])


@orders_bp.route('/delivery-tracking/<int:order_id>')
@orders_bp.route('/shipping/<int:order_id>')
@token_required
def delivery_tracking(order_id):
    order = _visible_order(order_id)
    company = order.shipping_company
    return jsonify({
        'orderId': order.id,
        'status': order.status,
        'trackingNumber': order.tracking_number,
        'shippingCompany': company.to_dict() if company else None,
        'trackingUrl': company.tracking_link(order.tracking_number) if company else None,
        'shippedAt': order.to_dict(include_items=False)['shippedAt'],
        'shippingAddress': order.shipping_address,
    })
