"""
Payment Routes

FLOW OVERVIEW
- /api/payments [POST]
  • Record a payment attempt for an order (owner/admin).
- /api/payments/<id> [PATCH]
  • Admin status correction; success stamps paid_at.
- /api/payments/order/<oid> [GET], /api/payment/<oid> [GET]
  • Latest payment for an order.
- /api/payment/complete [POST]
  • Checkout landing call: success marks the order paid, anything else fails a pending
    order and releases its stock. A paid order rejects failure reports.
  • KakaoPay returns with a pg_token; the payment is approved server-side before the
    order is marked paid. Other success reports need an admin.
- /api/payments/toss/confirm [POST]
  • Server-side Toss confirm; amount must equal the order total.
- /api/kakao/pay [POST]
  • KakaoPay ready call; returns the redirect URL and stores the tid.
"""

from flask import Blueprint, jsonify, current_app, g

from ..models import db, Order, Payment
from ..models.order import PAYMENT_STATUSES
from ..utils.api_utils import request_validator, pick, get_or_404, require_id
from ..utils.auth_utils import token_required, admin_required, ensure_self_or_admin
from ..utils.error_handlers import APIError
from ..utils.notifications import notify_order_status
from ..utils.order_service import restore_stock
from ..utils.payment_gateway import PaymentGatewayError, toss_client, kakao_client
from ..utils.prom_metrics import observe_payment
from ..utils.validators import validate_price

payments_bp = Blueprint('payments', __name__)


def _owned_order(order_id):
    order = get_or_404(Order, order_id, '주문을 찾을 수 없습니다.')
    ensure_self_or_admin(order.user_id)
    return order


def _current_payment(order, method=None):
    """Latest payment of the order, created when the order has none."""
    payment = order.latest_payment
    if payment is None or payment.status in ('failed', 'cancelled', 'refunded'):
        payment = Payment(payment_method=method or order.payment_method or 'toss',
                          amount=order.total_amount, status='pending')
        order.payments.append(payment)
    elif method:
        payment.payment_method = method
    return payment


def _settle(order, payment, succeeded, transaction_id=None):
    """Apply a payment outcome to the order and notify the customer."""
    if succeeded:
        payment.mark('success', transaction_id)
        order.status = 'paid'
    else:
        payment.mark('failed')
        if order.status == 'pending':
            restore_stock(order)
        order.status = 'failed'
    order.payment_method = payment.payment_method
    notify_order_status(order)
    observe_payment(payment.payment_method, payment.status)


@payments_bp.route('/payments', methods=['POST'])
@token_required
def create_payment():
    data = request_validator.parse_json_body()
    order = _owned_order(require_id(data, 'order_id', 'orderId', message='주문 ID가 필요합니다.'))
    amount = validate_price(pick(data, 'amount', default=order.total_amount))
    if not amount.is_valid:
        raise APIError(amount.error_message, 400, 'VALIDATION_ERROR')
    status = pick(data, 'status', default='pending')
    if status != 'pending' and not g.current_user.is_administrator:
        raise APIError('결제 상태를 지정할 수 없습니다.', 403)
    if status not in PAYMENT_STATUSES:
        raise APIError('올바르지 않은 결제 상태입니다.', 400, 'INVALID_STATUS')

    payment = Payment(
        order_id=order.id,
        payment_method=pick(data, 'method', 'payment_method', 'paymentMethod', default='toss'),
        amount=amount.sanitized_value,
        status='pending',
        transaction_id=pick(data, 'transaction_id', 'transactionId'),
    )
    payment.mark(status)
    db.session.add(payment)
    db.session.commit()
    return jsonify(payment.to_dict()), 201


@payments_bp.route('/payments/<int:payment_id>', methods=['PATCH'])
@admin_required
def update_payment(payment_id):
    payment = get_or_404(Payment, payment_id, '결제 정보를 찾을 수 없습니다.')
    data = request_validator.parse_json_body()
    status = data.get('status')
    if status not in PAYMENT_STATUSES:
        raise APIError('올바르지 않은 결제 상태입니다.', 400, 'INVALID_STATUS')
    payment.mark(status, pick(data, 'transaction_id', 'transactionId'))
    db.session.commit()
    return jsonify(payment.to_dict())


@payments_bp.route('/payments/order/<int:order_id>')
@token_required
def get_order_payment(order_id):
    order = _owned_order(order_id)
    payment = order.latest_payment
    return jsonify(payment.to_dict() if payment else None)


@payments_bp.route('/payment/<int:order_id>')
@token_required
def get_payment(order_id):
    order = _owned_order(order_id)
    payment = order.latest_payment
    if payment is None:
        raise APIError('결제 정보를 찾을 수 없습니다.', 404)
    data = payment.to_dict()
    data['order'] = order.summary()
    return jsonify(data)


@payments_bp.route('/payment/complete', methods=['POST'])
@token_required
def complete_payment():
    data = request_validator.parse_json_body()
    order = _owned_order(require_id(data, 'orderId', 'order_id', message='주문 ID가 필요합니다.'))
    status = pick(data, 'status', default='failed')
    method = pick(data, 'paymentMethod', 'payment_method')
    pg_token = pick(data, 'pg_token', 'pgToken')
    succeeded = status == 'success'

    if order.status not in ('pending', 'paid'):
        raise APIError('결제를 처리할 수 없는 주문 상태입니다.', 400, 'INVALID_ORDER_STATUS')

    if order.status == 'paid':
        # A paid order only accepts repeated success reports
        if not succeeded:
            raise APIError('이미 결제가 완료된 주문입니다.', 400, 'PAYMENT_ALREADY_COMPLETED')
        payment = order.latest_payment or _current_payment(order, method)
        db.session.commit()
        return _completion_response(order, payment)

    latest = order.latest_payment
    kakao_approval = (succeeded and pg_token and latest is not None and latest.tid
                      and latest.status == 'pending'
                      and (method or latest.payment_method) == 'kakao')
    if succeeded and not kakao_approval and not g.current_user.is_administrator:
        raise APIError('승인되지 않은 결제입니다.', 400, 'PAYMENT_NOT_CONFIRMED')

    payment = _current_payment(order, method)
    transaction_id = None
    if kakao_approval:
        try:
            result = kakao_client().approve(payment.tid, pg_token, order.id, order.user_id)
        except PaymentGatewayError as e:
            _settle(order, payment, False)
            db.session.commit()
            return jsonify({
                'success': False,
                'error_code': 'PAYMENT_GATEWAY_ERROR',
                'error': e.message,
            }), 502
        transaction_id = result.get('tid') or payment.tid

    _settle(order, payment, succeeded, transaction_id)
    db.session.commit()
    current_app.logger.info(f"Payment completion for order {order.id}: {status}")
    return _completion_response(order, payment)


def _completion_response(order, payment):
    return jsonify({
        'orderId': order.id,
        'paymentMethod': payment.payment_method,
        'status': payment.status,
        'amount': payment.amount,
        'order': order.to_dict(),
    })


@payments_bp.route('/payments/toss/confirm', methods=['POST'])
@token_required
def confirm_toss_payment():
    """Confirm a Toss widget payment on the server"""
    data = request_validator.parse_json_body()
    request_validator.require_fields(data, 'paymentKey', 'orderId', 'amount')
    order = _owned_order(require_id(data, 'orderId', message='주문 ID가 필요합니다.'))
    amount = validate_price(data['amount'])
    if not amount.is_valid or amount.sanitized_value != order.total_amount:
        current_app.logger.warning(f"Toss amount mismatch for order {order.id}: {data['amount']!r}")
        raise APIError('결제 금액이 주문 금액과 일치하지 않습니다.', 400, 'AMOUNT_MISMATCH')
    if order.status != 'pending':
        raise APIError('결제를 처리할 수 없는 주문 상태입니다.', 400, 'INVALID_ORDER_STATUS')

    payment = _current_payment(order, 'toss')
    try:
        result = toss_client().confirm(data['paymentKey'], order.id, order.total_amount)
    except PaymentGatewayError as e:
        _settle(order, payment, False)
        db.session.commit()
        return jsonify({
            'success': False,
            'error_code': e.code or 'PAYMENT_GATEWAY_ERROR',
            'error': e.message,
        }), 502

    _settle(order, payment, True, data['paymentKey'])
    db.session.commit()
    current_app.logger.info(f"Toss payment confirmed for order {order.id}")
    return jsonify({
        'success': True,
        'orderId': order.id,
        'status': result.get('status'),
        'method': result.get('method'),
        'payment': payment.to_dict(),
    })


@payments_bp.route('/kakao/pay', methods=['POST'])
@token_required
def kakao_pay_ready():
    """Start a KakaoPay checkout for an order"""
    data = request_validator.parse_json_body()
    request_validator.require_fields(data, 'orderId', 'itemName')
    order = _owned_order(require_id(data, 'orderId', message='주문 ID가 필요합니다.'))
    if order.status != 'pending':
        raise APIError('결제를 처리할 수 없는 주문 상태입니다.', 400, 'INVALID_ORDER_STATUS')

    quantity = pick(data, 'quantity', default=sum(item.quantity for item in order.items) or 1)
    try:
        result = kakao_client().ready(order.id, g.current_user.id, data['itemName'], quantity,
                                      order.total_amount)
    except PaymentGatewayError as e:
        current_app.logger.error(f"KakaoPay ready failed for order {order.id}: {e.message}")
        raise APIError('카카오페이 결제 준비 중 오류가 발생했습니다.', 500, 'PAYMENT_GATEWAY_ERROR')

    payment = _current_payment(order, 'kakao')
    payment.tid = result['tid']
    db.session.commit()
    return jsonify(result)
