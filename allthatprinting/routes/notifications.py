"""
Notification Routes

FLOW OVERVIEW
- /api/notifications/user/<uid> [GET], /api/notifications/user/<uid>/unread-count [GET]
- /api/notifications [POST]
  • Admin sends a notification to one user.
- /api/notifications/<id>/read [PATCH]
- /api/notifications/user/<uid>/read-all [PATCH]
"""

from flask import Blueprint, jsonify, g

from ..models import db, Notification, User
from ..utils.api_utils import request_validator, pick, get_or_404, require_id
from ..utils.auth_utils import token_required, admin_required, ensure_self_or_admin
from ..utils.error_handlers import APIError
from ..utils.notifications import notify
from ..utils.validators import InputValidator, sanitize_input

notifications_bp = Blueprint('notifications', __name__)


@notifications_bp.route('/notifications/user/<int:user_id>')
@token_required
def list_notifications(user_id):
    ensure_self_or_admin(user_id)
    notifications = Notification.query.filter_by(user_id=user_id) \
        .order_by(Notification.created_at.desc(), Notification.id.desc()).all()
    return jsonify([notification.to_dict() for notification in notifications])


@notifications_bp.route('/notifications/user/<int:user_id>/unread-count')
@token_required
def unread_count(user_id):
    ensure_self_or_admin(user_id)
    return jsonify({'count': Notification.unread_count(user_id)})


@notifications_bp.route('/notifications', methods=['POST'])
@admin_required
def create_notification():
    data = request_validator.parse_json_body()
    request_validator.require_fields(data, 'title', 'message')
    user_id = require_id(data, 'user_id', 'userId', message='사용자 ID가 필요합니다.')
    get_or_404(User, user_id, '사용자를 찾을 수 없습니다.')

    related_id = pick(data, 'related_id', 'relatedId')
    if related_id is not None:
        result = InputValidator.validate_int(related_id, 1, None, '관련 ID가 올바르지 않습니다.')
        if not result.is_valid:
            raise APIError(result.error_message, 400, 'VALIDATION_ERROR')
        related_id = result.sanitized_value

    notification = notify(
        user_id,
        sanitize_input(data['title'], 200),
        sanitize_input(data['message'], 2000),
        type=pick(data, 'type', default='system'),
        related_id=related_id,
        related_type=pick(data, 'related_type', 'relatedType'),
        related_url=pick(data, 'related_url', 'relatedUrl'),
    )
    db.session.commit()
    return jsonify(notification.to_dict()), 201


@notifications_bp.route('/notifications/<int:notification_id>/read', methods=['PATCH'])
@token_required
def mark_read(notification_id):
    notification = get_or_404(Notification, notification_id, '알림을 찾을 수 없습니다.')
    if notification.user_id != g.current_user.id and not g.current_user.is_administrator:
        raise APIError('본인의 알림만 읽음 처리할 수 있습니다.', 403)
    notification.is_read = True
    db.session.commit()
    return jsonify(notification.to_dict())


@notifications_bp.route('/notifications/user/<int:user_id>/read-all', methods=['PATCH'])
@token_required
def mark_all_read(user_id):
    ensure_self_or_admin(user_id)
    unread = Notification.query.filter_by(user_id=user_id, is_read=False).all()
    for notification in unread:
        notification.is_read = True
    db.session.commit()
    return jsonify([notification.to_dict() for notification in unread])
