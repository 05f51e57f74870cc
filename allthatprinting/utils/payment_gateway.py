"""
Payment Gateway Clients

FLOW OVERVIEW
- TossPaymentsClient
  • confirm(payment_key, order_id, amount) → POST /payments/confirm (Basic auth, secret key + ':').
  • cancel(payment_key, reason, amount) → POST /payments/{paymentKey}/cancel.
- KakaoPayClient
  • ready(...) → POST /payment/ready (form encoded, `KakaoAK` auth); returns redirect URL and tid.
  • approve(tid, pg_token, ...) → POST /payment/approve once the customer returns with a pg_token.
- Both raise PaymentGatewayError carrying the gateway's message when the call fails.
- toss_client() / kakao_client() build clients from the current app config.
"""

import base64
import logging
from typing import Any, Dict, Optional

import requests
from flask import current_app


class PaymentGatewayError(Exception):
    """Gateway rejected the call or could not be reached"""

    def __init__(self, message, status_code=None, code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


def _error_from_response(response, default_message):
    try:
        body = response.json()
    except ValueError:
        body = {}
    message = body.get('message') or body.get('msg') or default_message
    code = body.get('code')
    return PaymentGatewayError(message, response.status_code, code)


class TossPaymentsClient:
    """Server-side calls to the Toss Payments API."""

    def __init__(self, secret_key: str, base_url: str = 'https://api.tosspayments.com/v1', timeout: float = 10):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    def _headers(self) -> Dict[str, str]:
        auth_key = base64.b64encode(f"{self.secret_key}:".encode()).decode()
        return {
            'Authorization': f'Basic {auth_key}',
            'Content-Type': 'application/json',
        }

    def _post(self, path: str, body: Dict[str, Any], failure_message: str) -> Dict[str, Any]:
        if not self.secret_key:
            raise PaymentGatewayError('토스페이먼츠 설정이 되어 있지 않습니다.')
        url = f'{self.base_url}{path}'
        try:
            response = requests.post(url, json=body, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            self.logger.error(f"Toss request to {path} failed: {e}")
            raise PaymentGatewayError(failure_message) from e

        if response.status_code not in (200, 201):
            error = _error_from_response(response, failure_message)
            self.logger.warning(f"Toss {path} rejected ({response.status_code}): {error.message}")
            raise error
        return response.json()

    def confirm(self, payment_key: str, order_id: str, amount: int) -> Dict[str, Any]:
        """Confirm a payment authorised in the browser widget."""
        self.logger.info(f"Confirming Toss payment for order {order_id} ({amount} won)")
        return self._post(
            '/payments/confirm',
            {'paymentKey': payment_key, 'orderId': str(order_id), 'amount': amount},
            '결제 승인에 실패했습니다.',
        )

    def cancel(self, payment_key: str, reason: str, amount: Optional[int] = None) -> Dict[str, Any]:
        """Cancel (refund) a confirmed payment, fully or partially."""
        body = {'cancelReason': reason}
        if amount is not None:
            body['cancelAmount'] = amount
        self.logger.info(f"Cancelling Toss payment {payment_key}")
        return self._post(f'/payments/{payment_key}/cancel', body, '결제 취소에 실패했습니다.')


class KakaoPayClient:
    """Server-side calls to the KakaoPay single-payment API."""

    def __init__(self, admin_key: str, cid: str = 'TC0ONETIME', app_url: str = 'http://localhost:5000',
                 base_url: str = 'https://kapi.kakao.com/v1', timeout: float = 10):
        self.admin_key = admin_key
        self.cid = cid
        self.app_url = app_url.rstrip('/')
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    def _post(self, path: str, form: Dict[str, Any], failure_message: str) -> Dict[str, Any]:
        if not self.admin_key:
            raise PaymentGatewayError('카카오페이 설정이 되어 있지 않습니다.')
        headers = {
            'Authorization': f'KakaoAK {self.admin_key}',
            'Content-Type': 'application/x-www-form-urlencoded;charset=utf-8',
        }
        try:
            response = requests.post(f'{self.base_url}{path}', data=form, headers=headers,
                                     timeout=self.timeout)
        except requests.RequestException as e:
            self.logger.error(f"KakaoPay request to {path} failed: {e}")
            raise PaymentGatewayError(failure_message) from e

        if response.status_code != 200:
            error = _error_from_response(response, failure_message)
            self.logger.warning(f"KakaoPay {path} rejected ({response.status_code}): {error.message}")
            raise error
        return response.json()

    def ready(self, order_id, user_id, item_name: str, quantity: int, total_amount: int) -> Dict[str, Any]:
        """
        Start a KakaoPay payment.

        Returns:
            dict with `redirectUrl` (PC checkout page) and `tid`
        """
        form = {
            'cid': self.cid,
            'partner_order_id': str(order_id),
            'partner_user_id': str(user_id),
            'item_name': item_name,
            'quantity': quantity,
            'total_amount': total_amount,
            'tax_free_amount': 0,
            'approval_url': f'{self.app_url}/payment/success?orderId={order_id}&method=kakao',
            'fail_url': f'{self.app_url}/payment/fail?orderId={order_id}',
            'cancel_url': f'{self.app_url}/payment/cancel?orderId={order_id}',
        }
        body = self._post('/payment/ready', form, '카카오페이 결제 준비 중 오류가 발생했습니다.')
        return {'redirectUrl': body.get('next_redirect_pc_url'), 'tid': body.get('tid')}

    def approve(self, tid: str, pg_token: str, order_id, user_id) -> Dict[str, Any]:
        """Approve a payment the customer authorised on the KakaoPay page."""
        self.logger.info(f"Approving KakaoPay payment {tid} for order {order_id}")
        return self._post('/payment/approve', {
            'cid': self.cid,
            'tid': tid,
            'partner_order_id': str(order_id),
            'partner_user_id': str(user_id),
            'pg_token': pg_token,
        }, '카카오페이 결제 승인에 실패했습니다.')


def toss_client() -> TossPaymentsClient:
    config = current_app.config
    return TossPaymentsClient(config['TOSS_SECRET_KEY'], config['TOSS_API_URL'], config['PAYMENT_TIMEOUT'])


def kakao_client() -> KakaoPayClient:
    config = current_app.config
    return KakaoPayClient(config['KAKAO_ADMIN_KEY'], config['KAKAO_CID'], config['APP_URL'],
                          config['KAKAO_API_URL'], config['PAYMENT_TIMEOUT'])
