"""
Notification helpers

FLOW OVERVIEW
- notify(...) adds a Notification to the session; callers commit with their own change.
- notify_new_comment / notify_reply / notify_post_like: community activity, never
  sent to the actor themself.
- notify_order_status: Korean status message for an order transition.
- notify_refund_resolved: outcome of a refund request.
- broadcast(title, message, type): one notification per user.
"""

import logging

from ..models import db, Notification, User

logger = logging.getLogger(__name__)

ORDER_STATUS_MESSAGES = {
    'pending': '주문이 접수되었습니다',
    'paid': '결제가 완료되었습니다',
    'preparing': '주문하신 상품을 준비 중입니다',
    'processing': '주문이 처리 중입니다',
    'shipped': '주문이 배송되었습니다',
    'delivered': '주문이 배송 완료되었습니다',
    'completed': '주문이 완료되었습니다',
    'cancelled': '주문이 취소되었습니다',
    'failed': '결제에 실패했습니다',
    'refund_requested': '환불 요청이 접수되었습니다',
    'refunded': '환불이 완료되었습니다',
}


def notify(user_id, title, message, type='system', related_id=None, related_type=None, related_url=None):
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        related_id=related_id,
        related_type=related_type,
        related_url=related_url,
    )
    db.session.add(notification)
    return notification


def notify_new_comment(post, commenter):
    if post.user_id == commenter.id:
        return None
    return notify(
        post.user_id,
        '💬 새 댓글 알림',
        f'{commenter.username}님이 "{post.title}" 게시물에 댓글을 남겼습니다.',
        type='comment',
        related_id=post.id,
        related_type='post',
        related_url=f'/community/{post.id}',
    )


def notify_reply(parent_comment, replier, post):
    if parent_comment.user_id in (replier.id, post.user_id):
        # The post author already gets the new-comment notification
        return None
    return notify(
        parent_comment.user_id,
        '💬 새 답글 알림',
        f'{replier.username}님이 회원님의 댓글에 답글을 남겼습니다.',
        type='comment',
        related_id=post.id,
        related_type='post',
        related_url=f'/community/{post.id}',
    )


def notify_post_like(post, liker):
    if post.user_id == liker.id:
        return None
    return notify(
        post.user_id,
        '❤️ 좋아요 알림',
        f'{liker.username}님이 "{post.title}" 게시물을 좋아합니다.',
        type='like',
        related_id=post.id,
        related_type='post',
        related_url=f'/community/{post.id}',
    )


def notify_order_status(order):
    message = ORDER_STATUS_MESSAGES.get(order.status, f'주문 상태가 {order.status}(으)로 변경되었습니다')
    return notify(
        order.user_id,
        '📦 주문 상태 알림',
        f'주문번호 #{order.id}: {message}',
        type='order',
        related_id=order.id,
        related_type='order',
        related_url=f'/orders/{order.id}',
    )


def notify_refund_resolved(refund):
    if refund.status == 'approved':
        message = f'주문번호 #{refund.order_id}의 환불 요청이 승인되었습니다. ({refund.amount:,}원)'
    else:
        message = f'주문번호 #{refund.order_id}의 환불 요청이 거절되었습니다.'
    return notify(
        refund.user_id,
        '💸 환불 요청 처리 알림',
        message,
        type='refund',
        related_id=refund.id,
        related_type='refund',
        related_url=f'/orders/{refund.order_id}',
    )


def broadcast(title, message, type='announcement'):
    """Notify every user. Returns the number of notifications created."""
    user_ids = [row[0] for row in db.session.query(User.id).all()]
    for user_id in user_ids:
        notify(user_id, title, message, type=type)
    logger.info(f"Broadcast '{title}' queued for {len(user_ids)} users")
    return len(user_ids)
