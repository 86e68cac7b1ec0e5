"""
Push-payment gateway backends.

A backend asks a mobile-money provider to show a PIN prompt on the payer's
phone. It reports only whether the request was accepted; it never tells us
whether money moved. The backend is chosen by ``settings.PUSH_GATEWAY_BACKEND``.
"""

from decimal import Decimal
from typing import Optional

import httpx
from django.conf import settings
from django.utils.module_loading import import_string

from apps.payments.services.exceptions import PushGatewayError
from config.logging import get_logger

logger = get_logger(__name__)


class PushPaymentGateway:
    """Interface for push-prompt backends."""

    def initiate(self, *, provider: str, payer_number: str, amount: Decimal) -> bool:
        """Return True if the provider accepted the prompt request."""
        raise NotImplementedError


class UnavailablePushGateway(PushPaymentGateway):
    """Used when no gateway is configured. Every push falls back to manual entry."""

    def initiate(self, *, provider: str, payer_number: str, amount: Decimal) -> bool:
        raise PushGatewayError("No push-payment gateway is configured")


class HttpPushGateway(PushPaymentGateway):
    """
    Posts prompt requests to an aggregator HTTP API.

    Request body::

        {"provider": "MPESA", "msisdn": "255754000111", "amount": "2360.00",
         "currency": "TZS"}

    The aggregator answers ``{"accepted": true}`` or ``{"accepted": false,
    "reason": "..."}``. Timeouts propagate as ``httpx.TimeoutException``.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None
    ):
        self.url = url or settings.PUSH_GATEWAY_URL
        self.api_key = api_key if api_key is not None else settings.PUSH_GATEWAY_API_KEY
        self.timeout = timeout if timeout is not None else settings.PUSH_GATEWAY_TIMEOUT_SECONDS
        self._client = client

        if not self.url:
            raise PushGatewayError("PUSH_GATEWAY_URL is not set")

    def _headers(self):
        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f'Bearer {self.api_key}'
        return headers

    def initiate(self, *, provider: str, payer_number: str, amount: Decimal) -> bool:
        payload = {
            'provider': provider,
            'msisdn': payer_number,
            'amount': str(amount),
            'currency': settings.SETTLEMENT_CURRENCY,
        }

        client = self._client or httpx.Client(timeout=self.timeout)
        try:
            response = client.post(self.url, json=payload, headers=self._headers())
            response.raise_for_status()
            body = response.json()
        except ValueError:
            raise PushGatewayError("Push gateway returned a non-JSON response")
        finally:
            if self._client is None:
                client.close()

        if not isinstance(body, dict):
            raise PushGatewayError("Push gateway response is not a JSON object")
        if not body.get('accepted', False):
            logger.info("Push gateway declined {} prompt: {}", provider, body.get('reason', 'no reason'))
            return False
        return True


def get_push_gateway() -> PushPaymentGateway:
    """Instantiate the configured backend."""
    return import_string(settings.PUSH_GATEWAY_BACKEND)()
