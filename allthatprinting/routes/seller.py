"""
Seller Routes

FLOW OVERVIEW
- /api/sellers/register [POST]
  • Open a shop for the caller; it starts `pending` until an admin approves it.
- /api/seller/profile [GET, PUT]
- /api/seller/products [GET, POST], /api/seller/products/<id> [PUT, DELETE]
  • Approved sellers manage their own products. New and edited products wait for
    admin approval; delete only deactivates.
- /api/seller/orders [GET]
  • Orders containing the seller's products, restricted to those lines.
- /api/seller/orders/<id>/status [PUT]
  • Fulfilment updates (preparing / shipped / delivered) with tracking details.
- /api/shipping-companies [GET]
"""

from datetime import datetime
from functools import wraps

from flask import Blueprint, jsonify, current_app, g

from ..models import db, Seller, Product, Order, OrderItem, ShippingCompany
from ..utils.api_utils import request_validator, pick, get_or_404, require_id
from ..utils.auth_utils import token_required
from ..utils.error_handlers import APIError
from ..utils.notifications import notify_order_status
from ..utils.validators import sanitize_input, validate_email, validate_phone
from .catalog import apply_product_payload

seller_bp = Blueprint('seller', __name__)

SELLER_ORDER_STATUSES = ('preparing', 'shipped', 'delivered')


def _current_seller():
    seller = Seller.query.filter_by(user_id=g.current_user.id).first()
    if seller is None:
        raise APIError('판매자 권한이 없습니다.', 403)
    return seller


def approved_seller_required(f):
    """Run the view with g.current_seller set to the caller's approved shop."""
    @token_required
    @wraps(f)
    def decorated_function(*args, **kwargs):
        seller = _current_seller()
        if not seller.is_approved:
            raise APIError('판매자 승인이 필요합니다.', 403)
        g.current_seller = seller
        return f(*args, **kwargs)
    return decorated_function


def _validate_profile(data):
    if 'shopName' in data:
        data['shopName'] = sanitize_input(data['shopName'], 100)
        if not data['shopName']:
            raise APIError('상점 이름을 입력해주세요.', 400, 'MISSING_FIELDS')
    if data.get('contactEmail'):
        result = validate_email(data['contactEmail'])
        if not result.is_valid:
            raise APIError(result.error_message, 400, 'VALIDATION_ERROR')
        data['contactEmail'] = result.sanitized_value
    if data.get('contactPhone'):
        result = validate_phone(data['contactPhone'])
        if not result.is_valid:
            raise APIError(result.error_message, 400, 'VALIDATION_ERROR')
        data['contactPhone'] = result.sanitized_value


def _seller_product(product_id):
    product = get_or_404(Product, product_id, '상품을 찾을 수 없습니다.')
    if product.seller_id != g.current_seller.id:
        raise APIError('본인의 상품만 관리할 수 있습니다.', 403)
    return product


def _seller_order_dict(order, product_ids):
    data = order.to_dict(include_items=False)
    data['items'] = [item.to_dict() for item in order.items if item.product_id in product_ids]
    return data


@seller_bp.route('/sellers/register', methods=['POST'])
@token_required
def register_seller():
    data = request_validator.parse_json_body()
    request_validator.require_fields(data, 'shopName', message='상점 이름을 입력해주세요.')
    if Seller.query.filter_by(user_id=g.current_user.id).first():
        raise APIError('이미 판매자로 등록되어 있습니다.', 400, 'ALREADY_REGISTERED')
    _validate_profile(data)

    seller = Seller(user_id=g.current_user.id, status='pending', is_approved=False)
    seller.apply_profile(data)
    db.session.add(seller)
    db.session.commit()
    current_app.logger.info(f"Seller registration {seller.id} submitted by user {g.current_user.id}")
    return jsonify(seller.to_dict()), 201


@seller_bp.route('/seller/profile')
@token_required
def get_profile():
    return jsonify(_current_seller().to_dict(include_user=True))


@seller_bp.route('/seller/profile', methods=['PUT'])
@token_required
def update_profile():
    seller = _current_seller()
    data = request_validator.parse_json_body()
    _validate_profile(data)
    seller.apply_profile(data)
    db.session.commit()
    return jsonify(seller.to_dict(include_user=True))


@seller_bp.route('/seller/products')
@token_required
def list_products():
    seller = _current_seller()
    products = Product.query.filter_by(seller_id=seller.id) \
        .order_by(Product.created_at.desc(), Product.id.desc()).all()
    return jsonify([product.to_dict() for product in products])


@seller_bp.route('/seller/products', methods=['POST'])
@approved_seller_required
def create_product():
    data = request_validator.parse_json_body()
    product = apply_product_payload(Product(), data)
    product.seller_id = g.current_seller.id
    product.is_approved = False
    product.approval_date = None
    db.session.add(product)
    db.session.commit()
    current_app.logger.info(f"Seller {g.current_seller.id} submitted product {product.id} for approval")
    return jsonify(product.to_dict()), 201


@seller_bp.route('/seller/products/<int:product_id>', methods=['PUT'])
@approved_seller_required
def update_product(product_id):
    product = _seller_product(product_id)
    data = request_validator.parse_json_body()
    apply_product_payload(product, data, partial=True)
    # Edited products go back through review
    product.is_approved = False
    product.approval_date = None
    db.session.commit()
    return jsonify(product.to_dict())


@seller_bp.route('/seller/products/<int:product_id>', methods=['DELETE'])
@approved_seller_required
def delete_product(product_id):
    product = _seller_product(product_id)
    product.is_active = False
    db.session.commit()
    return jsonify({'message': '상품이 삭제되었습니다.'})


@seller_bp.route('/seller/orders')
@token_required
def list_orders():
    seller = _current_seller()
    product_ids = {row[0] for row in db.session.query(Product.id).filter_by(seller_id=seller.id).all()}
    if not product_ids:
        return jsonify([])
    orders = Order.query.join(OrderItem).filter(OrderItem.product_id.in_(product_ids)) \
        .distinct().order_by(Order.created_at.desc(), Order.id.desc()).all()
    return jsonify([_seller_order_dict(order, product_ids) for order in orders])


@seller_bp.route('/seller/orders/<int:order_id>/status', methods=['PUT'])
@token_required
def update_order_status(order_id):
    seller = _current_seller()
    order = get_or_404(Order, order_id, '주문을 찾을 수 없습니다.')
    if not any(item.product is not None and item.product.seller_id == seller.id for item in order.items):
        raise APIError('본인 상품이 포함된 주문만 처리할 수 있습니다.', 403)

    data = request_validator.parse_json_body()
    status = data.get('status')
    if status not in SELLER_ORDER_STATUSES:
        raise APIError('올바르지 않은 주문 상태입니다.', 400, 'INVALID_STATUS')
    if order.status in ('pending', 'cancelled', 'failed', 'refund_requested', 'refunded'):
        raise APIError('처리할 수 없는 주문 상태입니다.', 400, 'STATUS_CHANGE_NOT_ALLOWED')

    tracking_number = pick(data, 'trackingNumber', 'tracking_number')
    if tracking_number is not None:
        order.tracking_number = sanitize_input(str(tracking_number), 100)
    if pick(data, 'shippingCompanyId', 'shipping_company_id') is not None:
        company_id = require_id(data, 'shippingCompanyId', 'shipping_company_id',
                                message='택배사를 찾을 수 없습니다.')
        order.shipping_company = get_or_404(ShippingCompany, company_id, '택배사를 찾을 수 없습니다.')
    if status == 'shipped' and order.shipped_at is None:
        order.shipped_at = datetime.utcnow()

    if order.status != status:
        order.status = status
        notify_order_status(order)
    db.session.commit()
    current_app.logger.info(f"Seller {seller.id} set order {order.id} to {status}")
    return jsonify(order.to_dict())


@seller_bp.route('/shipping-companies')
def list_shipping_companies():
    companies = ShippingCompany.query.filter_by(is_active=True).order_by(ShippingCompany.name).all()
    return jsonify([company.to_dict() for company in companies])
