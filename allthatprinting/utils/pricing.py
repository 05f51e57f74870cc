"""
Pricing Utilities

FLOW OVERVIEW
- shipping_fee(subtotal): free from FREE_SHIPPING_THRESHOLD, otherwise SHIPPING_FEE.
  An empty cart ships nothing and pays nothing.
- evaluate_coupon(coupon, amount): (valid, discount, message) for a subtotal.
- summarize(lines, coupon): subtotal, shipping, discount and total for
  (unit_price, quantity) lines.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Iterable, Optional, Tuple

from flask import current_app


@dataclass
class PriceSummary:
    subtotal: int
    shipping_fee: int
    discount: int
    total: int
    item_count: int
    coupon_valid: bool = False
    coupon_message: Optional[str] = None

    def to_dict(self):
        data = asdict(self)
        return {
            'subtotal': data['subtotal'],
            'shippingFee': data['shipping_fee'],
            'discount': data['discount'],
            'total': data['total'],
            'itemCount': data['item_count'],
            'couponValid': data['coupon_valid'],
            'couponMessage': data['coupon_message'],
        }


def shipping_fee(subtotal: int) -> int:
    if subtotal <= 0:
        return 0
    if subtotal >= current_app.config['FREE_SHIPPING_THRESHOLD']:
        return 0
    return current_app.config['SHIPPING_FEE']


def evaluate_coupon(coupon, amount: int, now: datetime = None) -> Tuple[bool, int, str]:
    """
    Work out the discount a coupon gives on an amount.

    Percent coupons take floor(amount * value / 100); fixed coupons never exceed
    the amount.
    """
    if coupon is None:
        return False, 0, '존재하지 않는 쿠폰입니다.'
    if not coupon.is_active:
        return False, 0, '사용할 수 없는 쿠폰입니다.'
    if coupon.is_expired(now):
        return False, 0, '만료된 쿠폰입니다.'
    if amount < (coupon.min_order_amount or 0):
        return False, 0, f'{coupon.min_order_amount:,}원 이상 주문 시 사용할 수 있는 쿠폰입니다.'

    if coupon.discount_type == 'percent':
        discount = amount * coupon.discount_value // 100
    else:
        discount = min(coupon.discount_value, amount)
    return True, discount, '쿠폰이 적용되었습니다.'


def summarize(lines: Iterable[Tuple[int, int]], coupon=None, coupon_code: str = None) -> PriceSummary:
    """Totals for (unit_price, quantity) lines, optionally with a coupon."""
    subtotal = 0
    item_count = 0
    for unit_price, quantity in lines:
        subtotal += unit_price * quantity
        item_count += quantity

    discount = 0
    valid = False
    message = None
    if coupon is not None or coupon_code:
        valid, discount, message = evaluate_coupon(coupon, subtotal)

    fee = shipping_fee(subtotal)
    return PriceSummary(
        subtotal=subtotal,
        shipping_fee=fee,
        discount=discount,
        total=max(subtotal - discount, 0) + fee,
        item_count=item_count,
        coupon_valid=valid,
        coupon_message=message,
    )
