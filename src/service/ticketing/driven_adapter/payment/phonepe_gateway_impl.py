"""
PhonePe-style payment gateway adapter

Requests carry a base64 JSON payload and an `X-VERIFY` checksum:
    sha256(<signed content> + salt_key) + '###' + salt_index
where the signed content is the base64 payload for POST endpoints and the
request path for status lookups. Callbacks are signed the same way over the
base64 `response` field. Amounts are sent in minor units.
"""

import base64
import hashlib
import hmac
from typing import Any, Optional

import httpx
import orjson
import uuid_utils
from uuid_utils import UUID

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import (
    DomainError,
    GatewayUnavailableError,
    PaymentRejectedError,
)
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.dto.directory_dto import BuyerContact
from src.service.ticketing.app.dto.payment_dto import PaymentHandle, PaymentResult, RefundResult
from src.service.ticketing.app.interface.i_payment_gateway import IPaymentGateway
from src.service.ticketing.domain.enum.gateway_result_status import GatewayResultStatus


PAY_PATH = '/pg/v1/pay'
STATUS_PATH = '/pg/v1/status'
REFUND_PATH = '/pg/v1/refund'

_STATUS_BY_CODE = {
    'PAYMENT_SUCCESS': GatewayResultStatus.SUCCESS,
    'PAYMENT_ERROR': GatewayResultStatus.FAILED,
    'PAYMENT_DECLINED': GatewayResultStatus.FAILED,
    'TIMED_OUT': GatewayResultStatus.FAILED,
    'AUTHORIZATION_FAILED': GatewayResultStatus.FAILED,
    'PAYMENT_PENDING': GatewayResultStatus.PENDING,
    'INTERNAL_SERVER_ERROR': GatewayResultStatus.PENDING,
}


def _new_reference(prefix: str) -> str:
    # Gateway limits merchant reference ids to 35 characters
    return f'{prefix}{uuid_utils.uuid7().hex[:28].upper()}'


class PhonePeGatewayImpl(IPaymentGateway):
    def __init__(self, *, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self.merchant_id = settings.PAYMENT_GATEWAY_MERCHANT_ID
        self.salt_key = settings.PAYMENT_GATEWAY_SALT_KEY.get_secret_value()
        self.salt_index = settings.PAYMENT_GATEWAY_SALT_INDEX
        self.callback_url = settings.PAYMENT_GATEWAY_CALLBACK_URL
        self.redirect_url = settings.PAYMENT_GATEWAY_REDIRECT_URL
        self.http_client = http_client or httpx.AsyncClient(
            base_url=settings.PAYMENT_GATEWAY_BASE_URL,
            timeout=settings.PAYMENT_GATEWAY_TIMEOUT,
        )

    def _checksum(self, content: str) -> str:
        digest = hashlib.sha256(f'{content}{self.salt_key}'.encode()).hexdigest()
        return f'{digest}###{self.salt_index}'

    @staticmethod
    def _encode(payload: dict[str, Any]) -> str:
        return base64.b64encode(orjson.dumps(payload)).decode()

    async def _send(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self.http_client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise GatewayUnavailableError(f'Payment gateway unreachable: {type(e).__name__}')

        if response.status_code >= 500:
            raise GatewayUnavailableError(
                f'Payment gateway error (HTTP {response.status_code})'
            )
        try:
            return orjson.loads(response.content)
        except orjson.JSONDecodeError:
            raise GatewayUnavailableError('Payment gateway returned an unreadable response')

    async def _post_signed(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        encoded = self._encode(payload)
        return await self._send(
            'POST',
            path,
            json={'request': encoded},
            headers={'X-VERIFY': self._checksum(encoded)},
        )

    @Logger.io
    async def initiate(
        self,
        *,
        amount: int,
        currency: str,
        booking_id: UUID,
        buyer: BuyerContact,
        return_url: Optional[str] = None,
    ) -> PaymentHandle:
        transaction_id = _new_reference('TXN')
        redirect_base = return_url or self.redirect_url
        payload: dict[str, Any] = {
            'merchantId': self.merchant_id,
            'merchantTransactionId': transaction_id,
            'merchantUserId': str(buyer.id),
            'merchantOrderId': str(booking_id),
            'amount': amount,
            'currency': currency,
            'redirectUrl': f'{redirect_base}?transactionId={transaction_id}',
            'redirectMode': 'REDIRECT',
            'callbackUrl': self.callback_url,
            'paymentInstrument': {'type': 'PAY_PAGE'},
        }
        if buyer.phone:
            payload['mobileNumber'] = buyer.phone
        if buyer.email:
            payload['deviceContext'] = {'userEmail': buyer.email}

        body = await self._post_signed(PAY_PATH, payload)
        if not body.get('success'):
            raise PaymentRejectedError(
                f'Payment initiation rejected: {body.get("message") or body.get("code")}'
            )

        redirect_url = (
            (body.get('data') or {})
            .get('instrumentResponse', {})
            .get('redirectInfo', {})
            .get('url')
        )
        Logger.base.info(f'💳 [GATEWAY] Initiated {transaction_id} for booking {booking_id}')
        return PaymentHandle(transaction_id=transaction_id, redirect_url=redirect_url)

    @Logger.io
    async def poll_status(self, *, transaction_id: str) -> PaymentResult:
        path = f'{STATUS_PATH}/{self.merchant_id}/{transaction_id}'
        body = await self._send(
            'GET',
            path,
            headers={'X-VERIFY': self._checksum(path), 'X-MERCHANT-ID': self.merchant_id},
        )
        return self._to_result(body, fallback_transaction_id=transaction_id)

    @Logger.io
    async def refund(self, *, transaction_id: str, amount: int, reason: str) -> RefundResult:
        refund_id = _new_reference('RFD')
        body = await self._post_signed(
            REFUND_PATH,
            {
                'merchantId': self.merchant_id,
                'merchantTransactionId': refund_id,
                'originalTransactionId': transaction_id,
                'amount': amount,
                'callbackUrl': self.callback_url,
                'refundMessage': reason,
            },
        )
        return RefundResult(
            success=bool(body.get('success')),
            refund_id=refund_id if body.get('success') else None,
            message=body.get('message') or body.get('code'),
        )

    @Logger.io
    def parse_callback(self, *, payload: str, signature: str) -> PaymentResult:
        if not hmac.compare_digest(self._checksum(payload), signature or ''):
            raise DomainError('Invalid payment callback signature')
        try:
            body = orjson.loads(base64.b64decode(payload, validate=True))
        except (ValueError, orjson.JSONDecodeError):
            raise DomainError('Undecodable payment callback payload')
        if not isinstance(body, dict):
            raise DomainError('Undecodable payment callback payload')

        data = body.get('data') or {}
        if data.get('originalTransactionId'):
            if body.get('code') != 'PAYMENT_SUCCESS':
                return PaymentResult(
                    transaction_id=data['originalTransactionId'],
                    status=GatewayResultStatus.PENDING,
                    gateway_code=body.get('code'),
                )
            return PaymentResult(
                transaction_id=data['originalTransactionId'],
                status=GatewayResultStatus.REFUNDED,
                amount=data.get('amount'),
                refund_id=data.get('merchantTransactionId'),
                gateway_code=body.get('code'),
            )
        return self._to_result(body)

    @staticmethod
    def _to_result(
        body: dict[str, Any], fallback_transaction_id: Optional[str] = None
    ) -> PaymentResult:
        data = body.get('data') or {}
        transaction_id = data.get('merchantTransactionId') or fallback_transaction_id
        if not transaction_id:
            raise DomainError('Payment result without a transaction id')

        code = body.get('code') or ''
        return PaymentResult(
            transaction_id=transaction_id,
            status=_STATUS_BY_CODE.get(code, GatewayResultStatus.PENDING),
            amount=data.get('amount'),
            gateway_code=code,
        )

    async def aclose(self) -> None:
        await self.http_client.aclose()
