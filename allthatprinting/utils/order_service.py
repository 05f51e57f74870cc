"""
Order Service

FLOW OVERVIEW
- place_order(user, items, shipping_address, payment_method, coupon_code)
  • Lines come from the payload or, when omitted, from the user's cart.
  • Every line is validated before any stock moves; stock is decremented, the order,
    its items and a pending payment are written, the cart is cleared and the
    customer notified, all in one commit. Any failure rolls the whole thing back.
- change_order_status(order, status, actor)
  • Admins may set any known status; customers may only cancel pending orders.
  • Cancelling restores stock (once per order); shipping stamps shipped_at.
  • Cancelled, failed and refunded orders are closed and cannot be reopened.
- request_refund / resolve_refund
  • Customer refund claims and the admin decision. Approval refunds the Toss payment
    when there is one, marks order and payment refunded and restores stock; rejection
    puts the order back in the status it had before the request.
"""

import logging
from collections import OrderedDict
from datetime import datetime

from ..models import db, CartItem, Coupon, Order, OrderItem, Payment, Product, RefundRequest
from ..models.order import ORDER_STATUSES, CANCELLABLE_STATUSES, CLOSED_STATUSES, REFUNDABLE_STATUSES
from .api_utils import pick
from .error_handlers import APIError
from .notifications import notify_order_status, notify_refund_resolved
from .payment_gateway import PaymentGatewayError, toss_client
from .pricing import summarize
from .prom_metrics import observe_order_created, observe_refund_request
from .validators import InputValidator, validate_quantity

validate_int = InputValidator.validate_int

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_METHOD = 'toss'


def _normalize_lines(user, items):
    """Turn the request payload (or the cart) into [{product_id, quantity, ...}]."""
    if items is None:
        cart = CartItem.for_user(user.id)
        return [
            {'product_id': item.product_id, 'quantity': item.quantity,
             'options': item.customization, 'design_id': None}
            for item in reversed(cart)
        ]

    if not isinstance(items, list):
        raise APIError('주문 상품 목록 형식이 올바르지 않습니다.', 400)

    lines = []
    for raw in items:
        if not isinstance(raw, dict):
            raise APIError('주문 상품 목록 형식이 올바르지 않습니다.', 400)
        product_id = validate_int(pick(raw, 'product_id', 'productId'), 1, None, '상품 ID가 필요합니다.')
        quantity = validate_quantity(pick(raw, 'quantity', default=1))
        if not product_id.is_valid:
            raise APIError(product_id.error_message, 400)
        if not quantity.is_valid:
            raise APIError(quantity.error_message, 400)
        lines.append({
            'product_id': product_id.sanitized_value,
            'quantity': quantity.sanitized_value,
            'options': pick(raw, 'options', 'customization'),
            'design_id': pick(raw, 'design_id', 'designId'),
        })
    return lines


def _normalize_shipping(data):
    """Shipping address from `shipping_address` or flat address fields."""
    address = pick(data, 'shipping_address', 'shippingAddress')
    if address is None and data.get('address'):
        address = {
            'name': data.get('name'),
            'phone': data.get('phone'),
            'address': data.get('address'),
            'specialRequests': pick(data, 'special_requests', 'specialRequests'),
        }
    if isinstance(address, str):
        address = {'address': address}
    if not isinstance(address, dict) or not address.get('address'):
        raise APIError('배송지 정보가 필요합니다.', 400)
    return address


def _load_products(lines):
    """Lock and validate every product before anything is written."""
    requested = OrderedDict()
    for line in lines:
        requested[line['product_id']] = requested.get(line['product_id'], 0) + line['quantity']

    products = {}
    for product_id, quantity in requested.items():
        product = Product.query.filter_by(id=product_id).with_for_update().first()
        if product is None:
            raise APIError('상품을 찾을 수 없습니다.', 404)
        if not product.is_active or not product.is_approved:
            raise APIError(f'{product.name_ko}는 현재 판매 중단된 상품입니다.', 400, 'PRODUCT_INACTIVE')
        if product.stock < quantity:
            raise APIError(
                f'{product.name_ko}의 재고가 부족합니다. (요청: {quantity}개, 재고: {product.stock}개)',
                400, 'INSUFFICIENT_STOCK')
        products[product_id] = product
    return products


def place_order(user, data):
    """
    Create an order from a checkout payload.

    Args:
        user: the authenticated customer
        data: request JSON (items, shipping address, payment method, coupon code)

    Returns:
        The committed Order
    """
    lines = _normalize_lines(user, pick(data, 'items'))
    if not lines:
        raise APIError('주문할 상품이 없습니다.', 400, 'EMPTY_ORDER')
    shipping_address = _normalize_shipping(data)

    try:
        products = _load_products(lines)

        coupon_code = pick(data, 'coupon_code', 'couponCode')
        coupon = Coupon.find_by_code(coupon_code) if coupon_code else None
        summary = summarize(
            [(products[line['product_id']].base_price, line['quantity']) for line in lines],
            coupon=coupon, coupon_code=coupon_code)
        if coupon_code and not summary.coupon_valid:
            raise APIError(summary.coupon_message, 400, 'INVALID_COUPON')

        payment_method = pick(data, 'payment_method', 'paymentMethod', default=DEFAULT_PAYMENT_METHOD)
        order = Order(
            user_id=user.id,
            status='pending',
            subtotal=summary.subtotal,
            shipping_fee=summary.shipping_fee,
            discount=summary.discount,
            total_amount=summary.total,
            shipping_address=shipping_address,
            payment_method=payment_method,
            coupon_code=coupon.code if coupon else None,
        )
        db.session.add(order)

        for line in lines:
            product = products[line['product_id']]
            product.stock -= line['quantity']
            order.items.append(OrderItem(
                product_id=product.id,
                quantity=line['quantity'],
                price=product.base_price,
                design_id=line['design_id'],
                options=line['options'],
            ))

        order.payments.append(Payment(payment_method=payment_method, amount=summary.total, status='pending'))
        CartItem.clear_for_user(user.id)
        db.session.flush()
        notify_order_status(order)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(f"Order {order.id} placed by user {user.id}: {order.total_amount} won")
    observe_order_created(order.total_amount)
    return order


def restore_stock(order):
    """Hand the order's quantities back to stock, once per order."""
    if order.stock_released:
        return
    for item in order.items:
        if item.product is not None:
            item.product.stock += item.quantity
    order.stock_released = True


def change_order_status(order, status, actor):
    """Apply a status change requested by the owner or an admin and commit it."""
    if status not in ORDER_STATUSES:
        raise APIError('올바르지 않은 주문 상태입니다.', 400, 'INVALID_STATUS')

    if not actor.is_administrator:
        if order.user_id != actor.id:
            raise APIError('접근 권한이 없습니다.', 403)
        if status != 'cancelled' or order.status not in CANCELLABLE_STATUSES:
            raise APIError('주문 상태를 변경할 수 없습니다.', 400, 'STATUS_CHANGE_NOT_ALLOWED')

    if status == order.status:
        return order
    if order.status in CLOSED_STATUSES:
        raise APIError('종료된 주문은 상태를 변경할 수 없습니다.', 400, 'STATUS_CHANGE_NOT_ALLOWED')

    if status in CLOSED_STATUSES:
        restore_stock(order)
        payment = order.latest_payment
        if payment is not None and payment.status == 'pending':
            payment.mark('cancelled')
    if status == 'shipped' and order.shipped_at is None:
        order.shipped_at = datetime.utcnow()

    previous = order.status
    order.status = status
    notify_order_status(order)
    db.session.commit()
    logger.info(f"Order {order.id} status {previous} -> {status} by user {actor.id}")
    return order


def request_refund(user, order, reason, amount=None, description=None):
    if order.user_id != user.id:
        raise APIError('접근 권한이 없습니다.', 403)
    if not reason:
        raise APIError('환불 사유를 입력해주세요.', 400, 'MISSING_FIELDS')
    if RefundRequest.query.filter_by(order_id=order.id).first():
        raise APIError('이미 환불 요청이 존재합니다.', 400, 'DUPLICATE_REFUND')
    if order.status not in REFUNDABLE_STATUSES:
        raise APIError('환불 요청이 불가능한 주문 상태입니다.', 400, 'NOT_REFUNDABLE')

    if amount is None:
        amount = order.total_amount
    if isinstance(amount, bool) or not isinstance(amount, int) or not 0 < amount <= order.total_amount:
        raise APIError('환불 금액이 올바르지 않습니다.', 400, 'INVALID_AMOUNT')

    refund = RefundRequest(
        order_id=order.id,
        user_id=user.id,
        reason=reason,
        description=description,
        amount=amount,
        status='pending',
        previous_status=order.status,
    )
    order.status = 'refund_requested'
    db.session.add(refund)
    db.session.commit()
    logger.info(f"Refund requested for order {order.id} by user {user.id}")
    observe_refund_request('pending')
    return refund


def resolve_refund(refund, status, admin_note=None):
    if status not in ('approved', 'rejected'):
        raise APIError('올바르지 않은 환불 상태입니다.', 400, 'INVALID_STATUS')
    if refund.status != 'pending':
        raise APIError('이미 처리된 환불 요청입니다.', 400, 'ALREADY_RESOLVED')

    order = refund.order
    if status == 'approved':
        payment = order.latest_payment
        if (payment is not None and payment.status == 'success'
                and payment.payment_method == 'toss' and payment.transaction_id):
            try:
                toss_client().cancel(payment.transaction_id, refund.reason, refund.amount)
            except PaymentGatewayError as e:
                raise APIError(e.message, 502, 'PAYMENT_GATEWAY_ERROR')
        if payment is not None:
            payment.mark('refunded')
        order.status = 'refunded'
        restore_stock(order)
    elif order.status == 'refund_requested':
        order.status = refund.previous_status or 'paid'

    refund.status = status
    refund.admin_note = admin_note
    refund.resolved_at = datetime.utcnow()
    notify_refund_resolved(refund)
    db.session.commit()
    logger.info(f"Refund {refund.id} for order {order.id} {status}")
    observe_refund_request(status)
    return refund
