"""
Tests for in-app notifications.
"""

from allthatprinting.models import db, Notification
from allthatprinting.utils.notifications import notify, notify_order_status, broadcast


def add_notifications(user, count):
    for index in range(count):
        notify(user.id, f'알림 {index}', '내용')
    db.session.commit()


class TestNotificationRoutes:
    """Test the notification endpoints"""

    def test_list_and_unread_count(self, client, test_user, user_headers):
        add_notifications(test_user, 3)
        listed = client.get(f'/api/notifications/user/{test_user.id}', headers=user_headers).get_json()
        assert [n['title'] for n in listed] == ['알림 2', '알림 1', '알림 0']

        count = client.get(f'/api/notifications/user/{test_user.id}/unread-count', headers=user_headers)
        assert count.get_json() == {'count': 3}

    def test_mark_read(self, client, test_user, user_headers, other_headers):
        add_notifications(test_user, 2)
        notification = Notification.query.first()

        assert client.patch(f'/api/notifications/{notification.id}/read', headers=other_headers).status_code == 403
        response = client.patch(f'/api/notifications/{notification.id}/read', headers=user_headers)
        assert response.get_json()['isRead'] is True
        assert Notification.unread_count(test_user.id) == 1

    def test_mark_all_read(self, client, test_user, other_user, user_headers):
        add_notifications(test_user, 2)
        add_notifications(other_user, 1)

        response = client.patch(f'/api/notifications/user/{test_user.id}/read-all', headers=user_headers)
        assert len(response.get_json()) == 2
        assert Notification.unread_count(test_user.id) == 0
        assert Notification.unread_count(other_user.id) == 1

    def test_other_users_list_is_forbidden(self, client, test_user, other_headers):
        assert client.get(f'/api/notifications/user/{test_user.id}', headers=other_headers).status_code == 403

    def test_admin_sends_notification(self, client, test_user, admin_headers):
        response = client.post('/api/notifications', headers=admin_headers, json={
            'userId': test_user.id, 'title': '공지', 'message': '점검 예정입니다', 'type': 'announcement',
        })
        assert response.status_code == 201
        assert response.get_json()['type'] == 'announcement'
        assert Notification.unread_count(test_user.id) == 1

    def test_related_id_must_be_numeric(self, client, test_user, admin_headers):
        payload = {'userId': test_user.id, 'title': '배송', 'message': '출고되었습니다'}
        response = client.post('/api/notifications', headers=admin_headers,
                               json=dict(payload, relatedId='order-12'))
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'VALIDATION_ERROR'

        response = client.post('/api/notifications', headers=admin_headers,
                               json=dict(payload, relatedId='12', relatedType='order'))
        assert response.status_code == 201
        assert response.get_json()['relatedId'] == 12

    def test_admin_send_validation(self, client, test_user, admin_headers, user_headers):
        assert client.post('/api/notifications', headers=admin_headers,
                           json={'userId': test_user.id, 'title': '공지'}).status_code == 400
        assert client.post('/api/notifications', headers=admin_headers,
                           json={'userId': 999, 'title': 'a', 'message': 'b'}).status_code == 404
        assert client.post('/api/notifications', headers=user_headers,
                           json={'userId': test_user.id, 'title': 'a', 'message': 'b'}).status_code == 403


class TestNotificationHelpers:
    """Test the notification helpers"""

    def test_order_status_message(self, db_session, test_user):
        class FakeOrder:
            id = 12
            user_id = test_user.id
            status = 'shipped'

        notification = notify_order_status(FakeOrder())
        assert notification.message == '주문번호 #12: 주문이 배송되었습니다'
        assert notification.related_url == '/orders/12'

        FakeOrder.status = 'on_hold'
        assert notify_order_status(FakeOrder()).message == '주문번호 #12: 주문 상태가 on_hold(으)로 변경되었습니다'

    def test_broadcast_reaches_every_user(self, db_session, test_user, other_user, admin_user):
        assert broadcast('이벤트', '할인 쿠폰 지급') == 3
        db.session.commit()
        assert Notification.query.filter_by(type='announcement').count() == 3
