"""
Content Routes

FLOW OVERVIEW
- /api/templates [GET, POST], /api/templates/<id> [GET, PATCH, DELETE]
  • Beluga design templates; writes are admin only.
- /api/templates/reorder [POST]
  • Assign sort_order from the position in templateIds.
- /api/templates/<id>/download [POST]
  • Count a download.
- /api/goods-editor-designs [GET, POST], /api/goods-editor-designs/<id> [GET, PATCH, DELETE]
  • Saved goods-editor designs; changes by the owner only.
- /api/inquiries [GET, POST], /api/inquiries/<id> [GET, PUT]
  • 1:1 inquiries; PUT is the admin answer and notifies the customer.
- /api/coupons [GET, POST], /api/coupons/<id> [GET, PATCH, DELETE],
  /api/coupons/code/<code> [GET], /api/coupons/validate [POST]
- /api/placeholder/<w>/<h> [GET]
  • Grey SVG placeholder image.
"""

from datetime import datetime

from flask import Blueprint, Response, jsonify, request, current_app, g
from sqlalchemy.exc import IntegrityError

from ..models import db, BelugaTemplate, GoodsEditorDesign, Inquiry, Coupon
from ..models.coupon import DISCOUNT_TYPES
from ..models.utils import generate_coupon_code
from ..utils.api_utils import request_validator, pick, parse_bool, get_or_404
from ..utils.auth_utils import token_required, admin_required, get_optional_user
from ..utils.error_handlers import APIError
from ..utils.notifications import notify
from ..utils.pricing import evaluate_coupon
from ..utils.validators import InputValidator, validate_price, sanitize_input

content_bp = Blueprint('content', __name__)

PLACEHOLDER_DEFAULT = 300
PLACEHOLDER_MAX = 4000

PLACEHOLDER_SVG = (
    '<svg width="{width}" height="{height}" xmlns="http://www.w3.org/2000/svg">'
    '<rect width="100%" height="100%" fill="#f0f0f0"/>'
    '<text x="50%" y="50%" text-anchor="middle" dy="0.35em" '
    'font-family="Arial, sans-serif" font-size="16" fill="#666">{width}×{height}</text>'
    '</svg>'
)


def _user_filter():
    """?userId= as an int, or None."""
    raw = request.args.get('userId') or request.args.get('user_id')
    if raw is None:
        return None
    result = InputValidator.validate_int(raw, 1, None, '사용자 ID가 올바르지 않습니다.')
    if not result.is_valid:
        raise APIError(result.error_message, 400, 'VALIDATION_ERROR')
    return result.sanitized_value


# Beluga templates

@content_bp.route('/templates')
def list_templates():
    query = BelugaTemplate.query
    if not parse_bool(request.args.get('all')):
        query = query.filter(BelugaTemplate.is_active.is_(True))
    templates = query.order_by(BelugaTemplate.sort_order, BelugaTemplate.id).all()
    return jsonify([template.to_dict() for template in templates])


@content_bp.route('/templates/<int:template_id>')
def get_template(template_id):
    template = get_or_404(BelugaTemplate, template_id, '템플릿을 찾을 수 없습니다.')
    return jsonify(template.to_dict())


@content_bp.route('/templates', methods=['POST'])
@admin_required
def create_template():
    data = request_validator.parse_json_body()
    request_validator.require_fields(data, 'title', 'titleKo')
    template = BelugaTemplate()
    template.apply_fields(data)
    if 'sortOrder' not in data:
        last = db.session.query(db.func.max(BelugaTemplate.sort_order)).scalar()
        template.sort_order = (last or 0) + 1
    db.session.add(template)
    db.session.commit()
    return jsonify(template.to_dict()), 201


@content_bp.route('/templates/<int:template_id>', methods=['PATCH'])
@admin_required
def update_template(template_id):
    template = get_or_404(BelugaTemplate, template_id, '템플릿을 찾을 수 없습니다.')
    data = request_validator.parse_json_body()
    template.apply_fields(data)
    db.session.commit()
    return jsonify(template.to_dict())


@content_bp.route('/templates/<int:template_id>', methods=['DELETE'])
@admin_required
def delete_template(template_id):
    template = get_or_404(BelugaTemplate, template_id, '템플릿을 찾을 수 없습니다.')
    db.session.delete(template)
    db.session.commit()
    return jsonify({'message': '템플릿이 삭제되었습니다.'})


@content_bp.route('/templates/reorder', methods=['POST'])
@admin_required
def reorder_templates():
    data = request_validator.parse_json_body()
    template_ids = pick(data, 'templateIds', 'template_ids')
    if not isinstance(template_ids, list):
        raise APIError('templateIds는 배열이어야 합니다.', 400, 'VALIDATION_ERROR')

    templates = {t.id: t for t in BelugaTemplate.query.filter(BelugaTemplate.id.in_(template_ids)).all()} \
        if template_ids else {}
    for position, template_id in enumerate(template_ids, start=1):
        template = templates.get(template_id)
        if template is None:
            raise APIError(f'템플릿을 찾을 수 없습니다: {template_id}', 400, 'INVALID_TEMPLATE')
        template.sort_order = position
    db.session.commit()
    ordered = BelugaTemplate.query.order_by(BelugaTemplate.sort_order, BelugaTemplate.id).all()
    return jsonify([template.to_dict() for template in ordered])


@content_bp.route('/templates/<int:template_id>/download', methods=['POST'])
def download_template(template_id):
    template = get_or_404(BelugaTemplate, template_id, '템플릿을 찾을 수 없습니다.')
    template.downloads = BelugaTemplate.downloads + 1
    db.session.commit()
    return jsonify(template.to_dict())


# Goods editor designs

def _owned_design(design_id):
    design = get_or_404(GoodsEditorDesign, design_id, '디자인을 찾을 수 없습니다.')
    if design.user_id != g.current_user.id and not g.current_user.is_administrator:
        raise APIError('본인의 디자인만 수정할 수 있습니다.', 403)
    return design


@content_bp.route('/goods-editor-designs')
def list_designs():
    query = GoodsEditorDesign.query
    user_id = _user_filter()
    if user_id is not None:
        query = query.filter_by(user_id=user_id)
    designs = query.order_by(GoodsEditorDesign.updated_at.desc(), GoodsEditorDesign.id.desc()).all()
    return jsonify([design.to_dict() for design in designs])


@content_bp.route('/goods-editor-designs/<int:design_id>')
def get_design(design_id):
    design = get_or_404(GoodsEditorDesign, design_id, '디자인을 찾을 수 없습니다.')
    return jsonify(design.to_dict())


@content_bp.route('/goods-editor-designs', methods=['POST'])
@token_required
def create_design():
    data = request_validator.parse_json_body()
    request_validator.require_fields(data, 'title', message='디자인 제목을 입력해주세요.')
    design = GoodsEditorDesign(user_id=g.current_user.id)
    design.apply_fields(data)
    design.title = sanitize_input(design.title, 200)
    db.session.add(design)
    db.session.commit()
    return jsonify(design.to_dict()), 201


@content_bp.route('/goods-editor-designs/<int:design_id>', methods=['PATCH', 'PUT'])
@token_required
def update_design(design_id):
    design = _owned_design(design_id)
    data = request_validator.parse_json_body()
    design.apply_fields(data)
    db.session.commit()
    return jsonify(design.to_dict())


@content_bp.route('/goods-editor-designs/<int:design_id>', methods=['DELETE'])
@token_required
def delete_design(design_id):
    design = _owned_design(design_id)
    db.session.delete(design)
    db.session.commit()
    return jsonify({'message': '디자인이 삭제되었습니다.'})


# Inquiries

@content_bp.route('/inquiries')
@token_required
def list_inquiries():
    query = Inquiry.query
    user_id = _user_filter()
    if not g.current_user.is_administrator:
        if user_id is not None and user_id != g.current_user.id:
            raise APIError('접근 권한이 없습니다.', 403)
        user_id = g.current_user.id
    if user_id is not None:
        query = query.filter_by(user_id=user_id)
    inquiries = query.order_by(Inquiry.created_at.desc(), Inquiry.id.desc()).all()
    return jsonify([inquiry.to_dict() for inquiry in inquiries])


@content_bp.route('/inquiries', methods=['POST'])
@token_required
def create_inquiry():
    data = request_validator.parse_json_body()
    request_validator.require_fields(data, 'title', 'content')
    inquiry = Inquiry(
        user_id=g.current_user.id,
        category=data.get('category') or 'general',
        title=sanitize_input(data['title'], 200),
        content=sanitize_input(data['content'], 5000),
        status='pending',
    )
    db.session.add(inquiry)
    db.session.commit()
    current_app.logger.info(f"Inquiry {inquiry.id} created by user {g.current_user.id}")
    return jsonify(inquiry.to_dict()), 201


@content_bp.route('/inquiries/<int:inquiry_id>')
@token_required
def get_inquiry(inquiry_id):
    inquiry = get_or_404(Inquiry, inquiry_id, '문의를 찾을 수 없습니다.')
    if inquiry.user_id != g.current_user.id and not g.current_user.is_administrator:
        raise APIError('접근 권한이 없습니다.', 403)
    return jsonify(inquiry.to_dict())


@content_bp.route('/inquiries/<int:inquiry_id>', methods=['PUT'])
@admin_required
def answer_inquiry(inquiry_id):
    inquiry = get_or_404(Inquiry, inquiry_id, '문의를 찾을 수 없습니다.')
    data = request_validator.parse_json_body()
    request_validator.require_fields(data, 'answer', message='답변 내용을 입력해주세요.')
    inquiry.answer = sanitize_input(data['answer'], 5000)
    inquiry.status = 'answered'
    inquiry.answered_at = datetime.utcnow()
    notify(
        inquiry.user_id,
        '📮 문의 답변 알림',
        f'"{inquiry.title}" 문의에 답변이 등록되었습니다.',
        type='inquiry',
        related_id=inquiry.id,
        related_type='inquiry',
        related_url=f'/inquiries/{inquiry.id}',
    )
    db.session.commit()
    return jsonify(inquiry.to_dict())


# Coupons

def _apply_coupon(coupon, data, partial):
    if not partial or 'code' in data:
        code = sanitize_input(data.get('code') or '', 50).upper()
        coupon.code = code or generate_coupon_code()

    discount_type = pick(data, 'discountType', 'discount_type')
    if not partial or discount_type is not None:
        if discount_type not in DISCOUNT_TYPES:
            raise APIError('할인 유형은 percent 또는 fixed 여야 합니다.', 400, 'VALIDATION_ERROR')
        coupon.discount_type = discount_type

    value = pick(data, 'discountValue', 'discount_value')
    if value is not None or not partial:
        maximum = 100 if coupon.discount_type == 'percent' else None
        result = InputValidator.validate_int(value, 1, maximum, '할인 값이 올바르지 않습니다.')
        if not result.is_valid:
            raise APIError(result.error_message, 400, 'VALIDATION_ERROR')
        coupon.discount_value = result.sanitized_value

    minimum = pick(data, 'minOrderAmount', 'min_order_amount')
    if minimum is not None:
        result = validate_price(minimum)
        if not result.is_valid:
            raise APIError(result.error_message, 400, 'VALIDATION_ERROR')
        coupon.min_order_amount = result.sanitized_value

    if 'expiresAt' in data:
        expires_at = data['expiresAt']
        try:
            coupon.expires_at = datetime.fromisoformat(expires_at) if expires_at else None
        except (TypeError, ValueError):
            raise APIError('만료일 형식이 올바르지 않습니다.', 400, 'VALIDATION_ERROR')

    if pick(data, 'isActive', 'is_active') is not None:
        coupon.is_active = parse_bool(pick(data, 'isActive', 'is_active'))


def _commit_coupon(coupon):
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise APIError('이미 존재하는 쿠폰 코드입니다.', 400, 'DUPLICATE_CODE')


@content_bp.route('/coupons')
@admin_required
def list_coupons():
    coupons = Coupon.query.order_by(Coupon.created_at.desc(), Coupon.id.desc()).all()
    return jsonify([coupon.to_dict() for coupon in coupons])


@content_bp.route('/coupons/<int:coupon_id>')
@admin_required
def get_coupon(coupon_id):
    return jsonify(get_or_404(Coupon, coupon_id, '쿠폰을 찾을 수 없습니다.').to_dict())


@content_bp.route('/coupons/code/<code>')
def get_coupon_by_code(code):
    coupon = Coupon.find_by_code(code)
    if coupon is None:
        raise APIError('존재하지 않는 쿠폰입니다.', 404)
    return jsonify(coupon.to_dict())


@content_bp.route('/coupons', methods=['POST'])
@admin_required
def create_coupon():
    data = request_validator.parse_json_body()
    coupon = Coupon(min_order_amount=0, is_active=True)
    _apply_coupon(coupon, data, partial=False)
    db.session.add(coupon)
    _commit_coupon(coupon)
    current_app.logger.info(f"Coupon {coupon.code} created by admin {g.current_user.id}")
    return jsonify(coupon.to_dict()), 201


@content_bp.route('/coupons/<int:coupon_id>', methods=['PATCH'])
@admin_required
def update_coupon(coupon_id):
    coupon = get_or_404(Coupon, coupon_id, '쿠폰을 찾을 수 없습니다.')
    _apply_coupon(coupon, request_validator.parse_json_body(), partial=True)
    _commit_coupon(coupon)
    return jsonify(coupon.to_dict())


@content_bp.route('/coupons/<int:coupon_id>', methods=['DELETE'])
@admin_required
def delete_coupon(coupon_id):
    coupon = get_or_404(Coupon, coupon_id, '쿠폰을 찾을 수 없습니다.')
    db.session.delete(coupon)
    db.session.commit()
    return jsonify({'message': '쿠폰이 삭제되었습니다.'})


@content_bp.route('/coupons/validate', methods=['POST'])
def validate_coupon():
    """Check a coupon against an order amount without redeeming it"""
    data = request_validator.parse_json_body()
    request_validator.require_fields(data, 'code', message='쿠폰 코드를 입력해주세요.')
    amount = validate_price(pick(data, 'amount', default=0))
    if not amount.is_valid:
        raise APIError(amount.error_message, 400, 'VALIDATION_ERROR')

    valid, discount, message = evaluate_coupon(Coupon.find_by_code(str(data['code'])), amount.sanitized_value)
    user = get_optional_user()
    current_app.logger.info(
        f"Coupon check {data['code']!r} by {user.id if user else 'guest'}: {'valid' if valid else 'invalid'}")
    return jsonify({'valid': valid, 'discount': discount, 'message': message})


# Placeholder images

def _dimension(raw):
    result = InputValidator.validate_int(raw, 1, PLACEHOLDER_MAX)
    return result.sanitized_value if result.is_valid else PLACEHOLDER_DEFAULT


@content_bp.route('/placeholder/<width>/<height>')
def placeholder(width, height):
    svg = PLACEHOLDER_SVG.format(width=_dimension(width), height=_dimension(height))
    return Response(svg, mimetype='image/svg+xml')
