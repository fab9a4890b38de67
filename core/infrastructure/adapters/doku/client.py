"""
Doku Payment Gateway Client.

Signed JSON calls to the Doku Checkout API over aiohttp. Every call carries a
fresh Request-Id and Request-Timestamp and is bounded by a total timeout.
Nothing is retried here: failures surface as UpstreamError and the caller
decides what a failure means.
"""
import asyncio
import json
import logging
import time
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

import aiohttp

from core.application.interfaces import (
    GatewayPaymentRequest,
    GatewayPaymentResult,
    GatewayRefundReceipt,
    IPaymentGateway,
)
from core.domain.clock import to_naive_utc
from core.domain.errors import UpstreamError
from core.domain.value_objects import build_instructions
from core.settings.modules.doku_settings import DokuSettings

from .signature import canonicalize, sign

logger = logging.getLogger(__name__)

PAYMENT_PATH = "/payments/v1"
REFUND_PATH = "/payments/v1/refund"


def _wire_amount(amount: Decimal) -> Any:
    """Doku wants JSON numbers; whole amounts go out as integers."""
    amount = Decimal(amount)
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def _parse_expiry(value: Any) -> Optional[datetime]:
    if not value:
        return None
    text = str(value)
    for parser in (
        lambda v: datetime.strptime(v, "%Y%m%d%H%M%S"),
        lambda v: datetime.fromisoformat(v.replace("Z", "+00:00")),
    ):
        try:
            return to_naive_utc(parser(text))
        except ValueError:
            continue
    logger.warning(f"Unrecognized expiry date from Doku: {text}")
    return None


class DokuGatewayClient(IPaymentGateway):
    """
    aiohttp implementation of the payment gateway port.

    A ClientSession is created lazily and reused; close() releases it.
    """

    def __init__(
        self,
        settings: DokuSettings,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize Doku client.

        Args:
            settings: Doku settings (client id, secret key, base URL, timeout)
            session: Optional externally owned ClientSession
        """
        self.settings = settings
        self.base_url = settings.api_base_url
        self._session = session
        self._owns_session = session is None
        logger.info(f"DokuGatewayClient initialized ({self.base_url})")

    async def create_payment(self, request: GatewayPaymentRequest) -> GatewayPaymentResult:
        """
        Open a payment with Doku.

        Args:
            request: Payment request

        Returns:
            GatewayPaymentResult with token, URL and instructions

        Raises:
            UpstreamError: On timeout, transport error, non-2xx answer or missing token
        """
        customer = request.customer_details or {}
        body = {
            "order": {
                "amount": _wire_amount(request.amount),
                "invoice_number": request.invoice_number,
                "currency": request.currency,
            },
            "payment": {
                "payment_due_date": request.expiry_minutes * 60,
            },
            "customer": {
                "name": customer.get("name") or "Customer",
                "email": customer.get("email") or "",
                "phone": customer.get("phone") or "",
            },
            "payment_method_types": request.payment_method.gateway_types,
        }
        if request.callback_url:
            body["order"]["callback_url"] = request.callback_url
        if request.return_url:
            body["order"]["return_url"] = request.return_url

        data = await self._post(PAYMENT_PATH, body)

        payment = data.get("payment")
        if not isinstance(payment, dict) or not payment.get("token_id"):
            raise UpstreamError("Doku response has no payment token")

        logger.info(
            f"Doku payment created for invoice {request.invoice_number}: "
            f"token={payment['token_id']}"
        )
        return GatewayPaymentResult(
            token=str(payment["token_id"]),
            payment_url=payment.get("payment_url") or payment.get("url"),
            expiry_date=_parse_expiry(payment.get("expired_date")),
            instructions=build_instructions(request.payment_method, payment),
            raw=data,
        )

    async def create_refund(self, gateway_payment_id: str, amount: Decimal) -> GatewayRefundReceipt:
        """
        Refund a settled Doku payment.

        Args:
            gateway_payment_id: Doku token of the payment
            amount: Amount to refund

        Raises:
            UpstreamError: On any failure; callers must not flip local state
        """
        body = {
            "payment_id": gateway_payment_id,
            "amount": _wire_amount(amount),
        }
        data = await self._post(REFUND_PATH, body)

        refund = data.get("refund") if isinstance(data.get("refund"), dict) else {}
        logger.info(f"Doku refund accepted for {gateway_payment_id}: amount={amount}")
        return GatewayRefundReceipt(
            gateway_payment_id=gateway_payment_id,
            amount=Decimal(amount),
            refund_id=refund.get("id") or data.get("refund_id"),
            raw=data,
        )

    async def close(self) -> None:
        """Close the owned ClientSession."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    def signed_headers(self, body: Dict[str, Any]) -> Dict[str, str]:
        """
        Build the Doku authentication headers for one request.

        The body is sent in its canonical form, so the digest inside the
        signature covers the exact bytes on the wire.
        """
        request_id = str(uuid.uuid4())
        timestamp = str(int(time.time() * 1000))
        signature = sign(
            body,
            self.settings.secret_key,
            client_id=self.settings.client_id,
            timestamp=timestamp,
            request_id=request_id,
        )
        return {
            "Content-Type": "application/json",
            "Client-Id": self.settings.client_id,
            "Request-Id": request_id,
            "Request-Timestamp": timestamp,
            "Signature": signature,
        }

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        payload = canonicalize(body)
        headers = self.signed_headers(body)
        url = f"{self.base_url}{path}"
        timeout = aiohttp.ClientTimeout(total=self.settings.timeout_seconds)

        try:
            session = self._get_session()
            async with session.post(url, data=payload, headers=headers, timeout=timeout) as response:
                text = await response.text()
                if response.status < 200 or response.status >= 300:
                    logger.error(f"Doku API error: {response.status} - {text[:500]}")
                    raise UpstreamError(
                        f"Doku returned HTTP {response.status}",
                        status=response.status,
                    )
        except asyncio.TimeoutError as e:
            logger.error(f"Doku request timed out after {self.settings.timeout_seconds}s: {url}")
            raise UpstreamError("Doku request timed out") from e
        except aiohttp.ClientError as e:
            logger.error(f"Doku request failed: {e}")
            raise UpstreamError(f"Doku request failed: {e}") from e

        try:
            data = json.loads(text)
        except ValueError as e:
            raise UpstreamError("Doku returned a non-JSON body") from e
        if not isinstance(data, dict):
            raise UpstreamError("Doku returned an unexpected body")
        return data

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session
