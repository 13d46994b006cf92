"""
Paygate facade - composition root of the SDK.

Wires the HTTP client, the resource service and the cancel service together
and exposes the payment flow (authorize/charge), fetch helpers and every
cancel operation. Resources created here are bound to this object as their
root parent so they can reach the services later (e.g. ``payment.cancel_amount``).
"""
from __future__ import annotations

from typing import Any, Optional, Union

import httpx

from application.ports.resource_service import ResourceServicePort
from application.services.cancel_service import CancelService
from core.config import PaygateSettings, is_valid_private_key, settings as default_settings
from core.logging_config import get_logger
from domain.common.exceptions import IllegalKeyException
from domain.common.resource import to_decimal
from domain.payment.entity import Payment
from domain.payment.transactions import Authorization, CancelReasonCode, Cancellation, Charge
from infrastructure.adapters.resource_service import ResourceService
from infrastructure.external.api_clients import PaygateHttpClient


logger = get_logger(__name__)


class Paygate:
    def __init__(
        self,
        key: Optional[str] = None,
        locale: Optional[str] = None,
        mode: Optional[str] = None,
        *,
        settings: Optional[PaygateSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or default_settings
        key = key or self.settings.PRIVATE_KEY
        if not is_valid_private_key(key):
            raise IllegalKeyException()
        self._key = key
        self.locale = locale or self.settings.LOCALE
        self.mode = (mode or self.settings.MODE).lower()

        self.http = PaygateHttpClient(
            key,
            locale=self.locale,
            mode=self.mode,
            settings=self.settings,
            transport=transport,
        )
        self.resource_service: ResourceServicePort = ResourceService(self.http, self)
        self.cancel_service = CancelService(self)

    @property
    def key(self) -> str:
        return self._key

    def set_key(self, key: str) -> "Paygate":
        if not is_valid_private_key(key):
            raise IllegalKeyException()
        self._key = key
        self.http.set_key(key)
        return self

    def set_locale(self, locale: str) -> "Paygate":
        self.locale = locale
        self.http.set_locale(locale)
        return self

    @property
    def is_sandbox_mode(self) -> bool:
        return self.mode != "live"

    def set_resource_service(self, resource_service: ResourceServicePort) -> "Paygate":
        self.resource_service = resource_service
        return self

    def set_cancel_service(self, cancel_service: CancelService) -> "Paygate":
        self.cancel_service = cancel_service
        return self

    def get_uri(self) -> str:
        return ""

    async def aclose(self) -> None:
        await self.http.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    # Payment flow

    async def authorize(
        self,
        amount: Any,
        currency: str,
        type_id: str,
        return_url: str,
        customer_id: Optional[str] = None,
    ) -> Authorization:
        payment = Payment(currency=currency, parent=self)
        authorization = Authorization(
            to_decimal(amount), currency, return_url, type_id, customer_id, parent=payment
        )
        await self.resource_service.create(authorization)
        payment.set_authorization(authorization)
        logger.info("payment_authorized", payment_id=payment.id, authorization_id=authorization.id)
        return authorization

    async def charge(
        self,
        amount: Any,
        currency: str,
        type_id: str,
        return_url: str,
        customer_id: Optional[str] = None,
    ) -> Charge:
        payment = Payment(currency=currency, parent=self)
        charge = Charge(to_decimal(amount), currency, return_url, type_id, customer_id, parent=payment)
        await self.resource_service.create(charge)
        # added after creation so the charge carries its gateway id
        payment.add_charge(charge)
        logger.info("payment_charged", payment_id=payment.id, charge_id=charge.id)
        return charge

    async def charge_authorization(self, payment: Union[Payment, str], amount: Any = None) -> Charge:
        payment = await self.resource_service.fetch_payment(payment)
        charge = Charge(to_decimal(amount), payment.currency, parent=payment)
        await self.resource_service.create(charge)
        payment.add_charge(charge)
        logger.info("authorization_charged", payment_id=payment.id, charge_id=charge.id)
        return charge

    # Fetch

    async def fetch_payment(self, payment: Union[Payment, str]) -> Payment:
        return await self.resource_service.fetch_payment(payment)

    async def fetch_authorization(self, payment: Union[Payment, str]) -> Authorization:
        return await self.resource_service.fetch_authorization(payment)

    async def fetch_charge_by_id(self, payment: Union[Payment, str], charge_id: str) -> Charge:
        return await self.resource_service.fetch_charge_by_id(payment, charge_id)

    async def fetch_charge(self, charge: Charge) -> Charge:
        return await self.resource_service.fetch_charge(charge)

    async def fetch_reversal_by_authorization(self, authorization: Authorization, cancellation_id: str) -> Cancellation:
        return await self.resource_service.fetch_reversal_by_authorization(authorization, cancellation_id)

    async def fetch_reversal(self, payment: Union[Payment, str], cancellation_id: str) -> Cancellation:
        return await self.resource_service.fetch_reversal(payment, cancellation_id)

    async def fetch_refund_by_id(self, payment: Union[Payment, str], charge_id: str, cancellation_id: str) -> Cancellation:
        return await self.resource_service.fetch_refund_by_id(payment, charge_id, cancellation_id)

    async def fetch_refund(self, charge: Charge, cancellation_id: str) -> Cancellation:
        return await self.resource_service.fetch_refund(charge, cancellation_id)

    # Cancellation

    async def cancel_authorization(self, authorization: Authorization, amount: Any = None) -> Cancellation:
        return await self.cancel_service.cancel_authorization(authorization, amount)

    async def cancel_authorization_by_payment(self, payment: Union[Payment, str], amount: Any = None) -> Cancellation:
        return await self.cancel_service.cancel_authorization_by_payment(payment, amount)

    async def cancel_charge_by_id(
        self,
        payment: Union[Payment, str],
        charge_id: str,
        amount: Any = None,
        reason_code: Optional[str] = None,
        payment_reference: Optional[str] = None,
        amount_net: Any = None,
        amount_vat: Any = None,
    ) -> Cancellation:
        return await self.cancel_service.cancel_charge_by_id(
            payment, charge_id, amount, reason_code, payment_reference, amount_net, amount_vat
        )

    async def cancel_charge(
        self,
        charge: Charge,
        amount: Any = None,
        reason_code: Optional[str] = None,
        payment_reference: Optional[str] = None,
        amount_net: Any = None,
        amount_vat: Any = None,
    ) -> Cancellation:
        return await self.cancel_service.cancel_charge(
            charge, amount, reason_code, payment_reference, amount_net, amount_vat
        )

    async def cancel_payment(
        self,
        payment: Union[Payment, str],
        amount: Any = None,
        reason_code: Optional[str] = CancelReasonCode.CANCEL.value,
        payment_reference: Optional[str] = None,
        amount_net: Any = None,
        amount_vat: Any = None,
    ) -> list[Cancellation]:
        return await self.cancel_service.cancel_payment(
            payment, amount, reason_code, payment_reference, amount_net, amount_vat
        )

    async def cancel_payment_authorization(self, payment: Payment, amount: Any = None) -> Optional[Cancellation]:
        return await self.cancel_service.cancel_payment_authorization(payment, amount)
