"""
Tests for payment recording, checkout completion and the Toss / KakaoPay calls.
The gateways are reached through `requests.post`, which is patched here.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from allthatprinting.models import db, Order, Payment
from allthatprinting.utils.payment_gateway import PaymentGatewayError, TossPaymentsClient
from conftest import place_order

GATEWAY_POST = 'allthatprinting.utils.payment_gateway.requests.post'


def gateway_response(status_code, body):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    return response


@pytest.fixture
def pending_order(client, product, user_headers):
    """A pending order for two keyrings: 24,000 + 3,000 shipping."""
    data = place_order(client, user_headers, product.id, quantity=2).get_json()
    return db.session.get(Order, data['id'])


class TestTossClient:
    """Test the Toss client in isolation"""

    def test_confirm_sends_basic_auth(self, app):
        client = TossPaymentsClient('test_sk_dummy')
        with patch(GATEWAY_POST, return_value=gateway_response(200, {'status': 'DONE'})) as post:
            assert client.confirm('pk_1', 7, 27000) == {'status': 'DONE'}

        args, kwargs = post.call_args
        assert args[0] == 'https://api.tosspayments.com/v1/payments/confirm'
        assert kwargs['json'] == {'paymentKey': 'pk_1', 'orderId': '7', 'amount': 27000}
        assert kwargs['headers']['Authorization'] == 'Basic dGVzdF9za19kdW1teTo='

    def test_error_message_from_gateway(self, app):
        client = TossPaymentsClient('test_sk_dummy')
        body = {'code': 'REJECT_CARD_COMPANY', 'message': '카드사에서 거절했습니다.'}
        with patch(GATEWAY_POST, return_value=gateway_response(400, body)):
            with pytest.raises(PaymentGatewayError) as exc_info:
                client.cancel('pk_1', '단순 변심')
        assert exc_info.value.code == 'REJECT_CARD_COMPANY'
        assert exc_info.value.message == '카드사에서 거절했습니다.'

    def test_network_failure(self, app):
        client = TossPaymentsClient('test_sk_dummy')
        with patch(GATEWAY_POST, side_effect=requests.ConnectionError('down')):
            with pytest.raises(PaymentGatewayError):
                client.confirm('pk_1', 1, 100)

    def test_missing_secret_key(self):
        with pytest.raises(PaymentGatewayError):
            TossPaymentsClient('').confirm('pk_1', 1, 100)


class TestTossConfirm:
    """Test POST /api/payments/toss/confirm"""

    def test_confirm_marks_order_paid(self, client, pending_order, user_headers):
        body = {'status': 'DONE', 'method': '카드'}
        with patch(GATEWAY_POST, return_value=gateway_response(200, body)):
            response = client.post('/api/payments/toss/confirm', headers=user_headers, json={
                'paymentKey': 'pk_live', 'orderId': pending_order.id, 'amount': 27000,
            })

        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['status'] == 'DONE'
        assert data['payment']['status'] == 'success'
        assert data['payment']['transactionId'] == 'pk_live'
        assert data['payment']['paidAt'] is not None
        assert pending_order.status == 'paid'

    def test_amount_mismatch_never_calls_gateway(self, client, pending_order, user_headers):
        with patch(GATEWAY_POST) as post:
            response = client.post('/api/payments/toss/confirm', headers=user_headers, json={
                'paymentKey': 'pk_live', 'orderId': pending_order.id, 'amount': 100,
            })
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'AMOUNT_MISMATCH'
        post.assert_not_called()
        assert pending_order.status == 'pending'

    def test_gateway_rejection_fails_order(self, client, product, pending_order, user_headers):
        assert product.stock == 8
        body = {'code': 'INVALID_CARD', 'message': '유효하지 않은 카드입니다.'}
        with patch(GATEWAY_POST, return_value=gateway_response(400, body)):
            response = client.post('/api/payments/toss/confirm', headers=user_headers, json={
                'paymentKey': 'pk_live', 'orderId': pending_order.id, 'amount': 27000,
            })

        assert response.status_code == 502
        data = response.get_json()
        assert data['success'] is False
        assert data['error_code'] == 'INVALID_CARD'
        assert data['error'] == '유효하지 않은 카드입니다.'
        assert pending_order.status == 'failed'
        assert pending_order.latest_payment.status == 'failed'
        assert product.stock == 10

    def test_missing_fields(self, client, pending_order, user_headers):
        response = client.post('/api/payments/toss/confirm', headers=user_headers,
                               json={'orderId': pending_order.id})
        assert response.status_code == 400

    def test_other_users_order(self, client, pending_order, other_headers):
        response = client.post('/api/payments/toss/confirm', headers=other_headers, json={
            'paymentKey': 'pk', 'orderId': pending_order.id, 'amount': 27000,
        })
        assert response.status_code == 403


class TestKakaoPay:
    """Test POST /api/kakao/pay"""

    def test_ready_returns_redirect_and_stores_tid(self, client, pending_order, user_headers):
        body = {'tid': 'T1234', 'next_redirect_pc_url': 'https://kakao.example.com/pay'}
        with patch(GATEWAY_POST, return_value=gateway_response(200, body)) as post:
            response = client.post('/api/kakao/pay', headers=user_headers, json={
                'orderId': pending_order.id, 'itemName': '아크릴 키링', 'totalAmount': 1,
            })

        assert response.status_code == 200
        assert response.get_json() == {'redirectUrl': 'https://kakao.example.com/pay', 'tid': 'T1234'}
        form = post.call_args.kwargs['data']
        assert form['total_amount'] == 27000
        assert form['quantity'] == 2
        assert post.call_args.kwargs['headers']['Authorization'] == 'KakaoAK test-kakao-admin-key'
        assert pending_order.latest_payment.tid == 'T1234'
        assert pending_order.latest_payment.payment_method == 'kakao'

    def test_ready_failure(self, client, pending_order, user_headers):
        with patch(GATEWAY_POST, return_value=gateway_response(401, {'msg': 'invalid key'})):
            response = client.post('/api/kakao/pay', headers=user_headers, json={
                'orderId': pending_order.id, 'itemName': '아크릴 키링',
            })
        assert response.status_code == 500
        assert response.get_json()['error_code'] == 'PAYMENT_GATEWAY_ERROR'

    def _ready(self, client, order, headers):
        body = {'tid': 'T1234', 'next_redirect_pc_url': 'https://kakao.example.com/pay'}
        with patch(GATEWAY_POST, return_value=gateway_response(200, body)):
            client.post('/api/kakao/pay', headers=headers, json={'orderId': order.id, 'itemName': '아크릴 키링'})

    def test_approval_marks_order_paid(self, client, pending_order, user_headers):
        self._ready(client, pending_order, user_headers)

        approved = {'aid': 'A5678', 'tid': 'T1234', 'amount': {'total': 27000}}
        with patch(GATEWAY_POST, return_value=gateway_response(200, approved)) as post:
            response = client.post('/api/payment/complete', headers=user_headers, json={
                'orderId': pending_order.id, 'paymentMethod': 'kakao', 'status': 'success', 'pg_token': 'pg123',
            })

        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'success'
        assert data['paymentMethod'] == 'kakao'
        assert data['order']['status'] == 'paid'
        assert pending_order.latest_payment.transaction_id == 'T1234'

        assert post.call_args.args[0] == 'https://kapi.kakao.com/v1/payment/approve'
        form = post.call_args.kwargs['data']
        assert form['tid'] == 'T1234'
        assert form['pg_token'] == 'pg123'
        assert form['partner_order_id'] == str(pending_order.id)

    def test_approval_failure_fails_order(self, client, product, pending_order, user_headers):
        self._ready(client, pending_order, user_headers)

        with patch(GATEWAY_POST, return_value=gateway_response(400, {'msg': 'invalid pg_token'})):
            response = client.post('/api/payment/complete', headers=user_headers, json={
                'orderId': pending_order.id, 'paymentMethod': 'kakao', 'status': 'success', 'pg_token': 'bad',
            })

        assert response.status_code == 502
        assert response.get_json()['error'] == 'invalid pg_token'
        assert pending_order.status == 'failed'
        assert product.stock == 10

    def test_pg_token_without_ready_is_not_confirmed(self, client, pending_order, user_headers):
        with patch(GATEWAY_POST) as post:
            response = client.post('/api/payment/complete', headers=user_headers, json={
                'orderId': pending_order.id, 'paymentMethod': 'kakao', 'status': 'success', 'pg_token': 'pg123',
            })
        assert response.get_json()['error_code'] == 'PAYMENT_NOT_CONFIRMED'
        post.assert_not_called()


class TestPaymentComplete:
    """Test POST /api/payment/complete"""

    def test_customer_cannot_self_report_success(self, client, pending_order, user_headers):
        response = client.post('/api/payment/complete', headers=user_headers,
                               json={'orderId': pending_order.id, 'status': 'success'})
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'PAYMENT_NOT_CONFIRMED'
        assert pending_order.status == 'pending'

    def test_admin_success_marks_paid(self, client, pending_order, admin_headers):
        response = client.post('/api/payment/complete', headers=admin_headers,
                               json={'orderId': pending_order.id, 'status': 'success',
                                     'paymentMethod': 'bank_transfer'})
        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'success'
        assert data['order']['status'] == 'paid'
        assert data['paymentMethod'] == 'bank_transfer'

    def test_failure_releases_stock(self, client, product, pending_order, user_headers):
        response = client.post('/api/payment/complete', headers=user_headers,
                               json={'orderId': pending_order.id, 'status': 'fail'})
        assert response.status_code == 200
        assert response.get_json()['order']['status'] == 'failed'
        assert product.stock == 10

    def test_paid_order_ignores_failure_report(self, client, product, pending_order, user_headers):
        with patch(GATEWAY_POST, return_value=gateway_response(200, {'status': 'DONE'})):
            client.post('/api/payments/toss/confirm', headers=user_headers, json={
                'paymentKey': 'pk_live', 'orderId': pending_order.id, 'amount': 27000,
            })
        assert pending_order.status == 'paid'

        response = client.post('/api/payment/complete', headers=user_headers,
                               json={'orderId': pending_order.id, 'status': 'fail'})
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'PAYMENT_ALREADY_COMPLETED'
        assert pending_order.status == 'paid'
        assert pending_order.latest_payment.status == 'success'
        assert product.stock == 8

        response = client.post('/api/payment/complete', headers=user_headers,
                               json={'orderId': pending_order.id, 'status': 'success'})
        assert response.status_code == 200
        assert response.get_json()['status'] == 'success'

    def test_closed_order_rejected(self, client, pending_order, user_headers):
        pending_order.status = 'cancelled'
        db.session.commit()
        response = client.post('/api/payment/complete', headers=user_headers,
                               json={'orderId': pending_order.id, 'status': 'fail'})
        assert response.status_code == 400


class TestPaymentRecords:
    """Test the payment record endpoints"""

    def test_create_pending_payment(self, client, pending_order, user_headers):
        response = client.post('/api/payments', headers=user_headers,
                               json={'orderId': pending_order.id, 'method': 'bank_transfer'})
        assert response.status_code == 201
        assert response.get_json()['amount'] == 27000
        assert response.get_json()['status'] == 'pending'

    def test_customer_cannot_create_successful_payment(self, client, pending_order, user_headers):
        response = client.post('/api/payments', headers=user_headers,
                               json={'orderId': pending_order.id, 'status': 'success'})
        assert response.status_code == 403

    def test_admin_updates_payment(self, client, pending_order, admin_headers):
        payment_id = pending_order.latest_payment.id
        response = client.patch(f'/api/payments/{payment_id}', headers=admin_headers,
                                json={'status': 'success', 'transactionId': 'TX-1'})
        assert response.status_code == 200
        assert response.get_json()['paidAt'] is not None
        assert db.session.get(Payment, payment_id).transaction_id == 'TX-1'

    def test_latest_payment_lookup(self, client, pending_order, user_headers):
        data = client.get(f'/api/payment/{pending_order.id}', headers=user_headers).get_json()
        assert data['order']['totalAmount'] == 27000
        data = client.get(f'/api/payments/order/{pending_order.id}', headers=user_headers).get_json()
        assert data['status'] == 'pending'
