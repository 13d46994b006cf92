"""Infrastructure adapter that implements the application ResourceServicePort
by sending resources through the gateway HTTP client.
"""
from __future__ import annotations

from typing import Any, Optional, TypeVar, Union

from application.ports.resource_service import ResourceServicePort
from core.logging_config import get_logger
from domain.common.exceptions import ResourceNotFoundException
from domain.common.resource import AbstractResource
from domain.payment.entity import Payment
from domain.payment.transactions import AbstractTransaction, Authorization, Cancellation, Charge
from infrastructure.external.api_clients.base import APIResponse, BaseAPIClient


logger = get_logger(__name__)

R = TypeVar("R", bound=AbstractResource)


class ResourceService(ResourceServicePort):
    def __init__(self, http: BaseAPIClient, root: Any):
        self.http = http
        # Root parent (the Paygate facade) newly fetched payments are bound to
        self.root = root

    @staticmethod
    def _body(response: APIResponse) -> dict[str, Any]:
        data = response.json()
        return data if isinstance(data, dict) else {}

    async def create(self, resource: R) -> R:
        uri = resource.get_uri(with_id=False)
        response = await self.http.post(uri, json_data=resource.expose())
        resource.handle_response(self._body(response))
        logger.debug("resource_created", resource=type(resource).__name__, uri=uri, id=resource.id)
        return resource

    async def fetch(self, resource: R) -> R:
        response = await self.http.get(resource.get_uri())
        resource.handle_response(self._body(response))
        return resource

    async def update(self, resource: R) -> R:
        response = await self.http.put(resource.get_uri(), json_data=resource.expose())
        resource.handle_response(self._body(response))
        return resource

    async def delete(self, resource: AbstractResource) -> None:
        await self.http.delete(resource.get_uri())

    async def fetch_payment(self, payment: Union[Payment, str]) -> Payment:
        if not isinstance(payment, Payment):
            payment = Payment(id=str(payment), parent=self.root)
        elif payment.parent is None:
            payment.parent = self.root
        return await self.fetch(payment)

    async def fetch_authorization(self, payment: Union[Payment, str]) -> Authorization:
        payment = await self.fetch_payment(payment)
        authorization = payment.authorization
        if authorization is None:
            raise ResourceNotFoundException("Authorization", payment.id)
        return await self.fetch(authorization)

    async def fetch_charge_by_id(self, payment: Union[Payment, str], charge_id: str) -> Charge:
        payment = await self.fetch_payment(payment)
        charge = payment.get_charge(charge_id)
        if charge is None:
            raise ResourceNotFoundException("Charge", charge_id)
        return await self.fetch(charge)

    async def fetch_charge(self, charge: Charge) -> Charge:
        return await self.fetch(charge)

    async def _fetch_cancellation(self, transaction: AbstractTransaction, cancellation_id: str) -> Cancellation:
        cancellation: Optional[Cancellation] = transaction.get_cancellation(cancellation_id)
        if cancellation is not None:
            return await self.fetch(cancellation)
        cancellation = Cancellation(id=cancellation_id, parent=transaction)
        await self.fetch(cancellation)
        return transaction.add_cancellation(cancellation)

    async def fetch_reversal_by_authorization(self, authorization: Authorization, cancellation_id: str) -> Cancellation:
        return await self._fetch_cancellation(authorization, cancellation_id)

    async def fetch_reversal(self, payment: Union[Payment, str], cancellation_id: str) -> Cancellation:
        authorization = await self.fetch_authorization(payment)
        return await self.fetch_reversal_by_authorization(authorization, cancellation_id)

    async def fetch_refund_by_id(self, payment: Union[Payment, str], charge_id: str, cancellation_id: str) -> Cancellation:
        charge = await self.fetch_charge_by_id(payment, charge_id)
        return await self.fetch_refund(charge, cancellation_id)

    async def fetch_refund(self, charge: Charge, cancellation_id: str) -> Cancellation:
        return await self._fetch_cancellation(charge, cancellation_id)
