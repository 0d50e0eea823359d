"""Payment-provider client for KOMOJU hosted checkout sessions."""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx
from django.conf import settings

from seminars.domain import CheckoutSession, PaymentMethod
from seminars.domain.errors import PaymentProviderError

logger = logging.getLogger(__name__)

_KOMOJU_METHODS = {
    PaymentMethod.CREDIT_CARD: "credit_card",
    PaymentMethod.KONBINI: "konbini",
    PaymentMethod.PAYPAY: "paypay",
    PaymentMethod.BANK_TRANSFER: "bank_transfer",
}


class PaymentGateway(ABC):
    """Interface for creating payment sessions with an external provider."""

    @abstractmethod
    def create_session(
        self,
        amount: int,
        payment_method: PaymentMethod,
        external_order_num: str,
        metadata: dict[str, Any],
    ) -> CheckoutSession:
        """Create a hosted payment session and return its id and redirect URL.

        Raises:
            PaymentProviderError: If the provider rejects the request or is unreachable.
        """
        ...


class KomojuGateway(PaymentGateway):
    """KOMOJU sessions API over httpx, authenticated with the secret key."""

    def __init__(
        self,
        secret_key: str,
        api_url: str = "https://komoju.com/api/v1",
        return_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._api_url = api_url.rstrip("/")
        self._return_url = return_url
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "KomojuGateway":
        conf = settings.KOMOJU
        return cls(
            secret_key=conf["SECRET_KEY"],
            api_url=conf["API_URL"],
            return_url=conf["RETURN_URL"],
            timeout=conf["TIMEOUT"],
        )

    def create_session(
        self,
        amount: int,
        payment_method: PaymentMethod,
        external_order_num: str,
        metadata: dict[str, Any],
    ) -> CheckoutSession:
        if not self._secret_key:
            logger.error("KOMOJU secret key is not configured")
            raise PaymentProviderError()

        body = {
            "amount": amount,
            "currency": "JPY",
            "default_locale": "ja",
            "payment_methods": [_KOMOJU_METHODS[payment_method]],
            "external_order_num": external_order_num,
            "return_url": self._return_url,
            "metadata": metadata,
            "mode": "payment",
            "payment_data": {"capture": "auto"},
        }

        try:
            with httpx.Client(
                base_url=self._api_url,
                auth=(self._secret_key, ""),
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = client.post("/sessions", json=body)
        except httpx.HTTPError as exc:
            logger.error(
                "KOMOJU request failed",
                extra={"extra_data": {"external_order_num": external_order_num, "error": str(exc)}},
            )
            raise PaymentProviderError() from exc

        if response.is_error:
            logger.error(
                "KOMOJU session creation failed",
                extra={
                    "extra_data": {
                        "status": response.status_code,
                        "body": response.text[:500],
                        "external_order_num": external_order_num,
                    }
                },
            )
            raise PaymentProviderError(status=response.status_code)

        data = response.json()
        logger.info(
            "KOMOJU session created",
            extra={"extra_data": {"session_id": data["id"], "external_order_num": external_order_num}},
        )
        return CheckoutSession(session_id=data["id"], session_url=data["session_url"])
