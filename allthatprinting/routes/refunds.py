"""
Refund Routes

FLOW OVERVIEW
- /api/refund-requests [POST], /api/orders/<id>/refund [POST]
  • Customer refund request for one of their orders.
- /api/refund-requests/user/<uid> [GET]
- /api/refund-requests/check/<oid> [GET]
- /api/refund-requests/<id> [PATCH]
  • Admin approve / reject (see order_service.resolve_refund).
- /api/admin/refund-requests [GET]
  • Admin list, optionally filtered by status.
"""

from flask import Blueprint, jsonify, request, g

from ..models import db, Order, RefundRequest
from ..models.admin_log import AdminLog
from ..utils.api_utils import request_validator, pick, get_or_404, require_id
from ..utils.auth_utils import token_required, admin_required, ensure_self_or_admin
from ..utils.error_handlers import APIError
from ..utils.order_service import request_refund, resolve_refund
from ..utils.validators import sanitize_input

refunds_bp = Blueprint('refunds', __name__)


def _create_refund(order_id, data):
    order = get_or_404(Order, order_id, '주문을 찾을 수 없습니다.')
    amount = pick(data, 'amount')
    if isinstance(amount, str) and amount.strip().isdigit():
        amount = int(amount.strip())
    refund = request_refund(
        g.current_user,
        order,
        sanitize_input(data.get('reason', ''), 200),
        amount=amount,
        description=sanitize_input(data.get('description', ''), 2000) or None,
    )
    return jsonify(refund.to_dict(include_order=True)), 201


@refunds_bp.route('/refund-requests', methods=['POST'])
@token_required
def create_refund_request():
    data = request_validator.parse_json_body()
    order_id = require_id(data, 'order_id', 'orderId', message='주문 ID가 필요합니다.')
    return _create_refund(order_id, data)


@refunds_bp.route('/orders/<int:order_id>/refund', methods=['POST'])
@token_required
def create_order_refund(order_id):
    data = request_validator.parse_json_body()
    return _create_refund(order_id, data)


@refunds_bp.route('/refund-requests/user/<int:user_id>')
@token_required
def list_user_refunds(user_id):
    ensure_self_or_admin(user_id)
    refunds = RefundRequest.query.filter_by(user_id=user_id) \
        .order_by(RefundRequest.created_at.desc(), RefundRequest.id.desc()).all()
    return jsonify([refund.to_dict(include_order=True) for refund in refunds])


@refunds_bp.route('/refund-requests/check/<int:order_id>')
@token_required
def check_refund(order_id):
    order = get_or_404(Order, order_id, '주문을 찾을 수 없습니다.')
    ensure_self_or_admin(order.user_id)
    refund = order.refund_request
    return jsonify({'exists': refund is not None, 'request': refund.to_dict() if refund else None})


@refunds_bp.route('/refund-requests/<int:refund_id>', methods=['PATCH'])
@admin_required
def update_refund(refund_id):
    refund = get_or_404(RefundRequest, refund_id, '환불 요청을 찾을 수 없습니다.')
    data = request_validator.parse_json_body()
    request_validator.require_fields(data, 'status', message='처리 상태가 필요합니다.')
    AdminLog.record(g.current_user.id, f"refund_{data['status']}", 'refund_requests', refund.id)
    try:
        resolve_refund(refund, data['status'], pick(data, 'admin_note', 'adminNote'))
    except APIError:
        db.session.rollback()
        raise
    return jsonify(refund.to_dict(include_order=True))


@refunds_bp.route('/admin/refund-requests')
@admin_required
def admin_list_refunds():
    query = RefundRequest.query
    status = request.args.get('status')
    if status:
        query = query.filter_by(status=status)
    refunds = query.order_by(RefundRequest.created_at.desc(), RefundRequest.id.desc()).all()
    return jsonify([refund.to_dict(include_order=True) for refund in refunds])
