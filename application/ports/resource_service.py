"""
Resource service port (application/ports) exposing a replaceable protocol.

CancelService depends on this Protocol; infrastructure implements the adapter
that talks to the gateway REST API.
"""
from __future__ import annotations

from typing import Protocol, TypeVar, Union, runtime_checkable

from domain.common.resource import AbstractResource
from domain.payment.entity import Payment
from domain.payment.transactions import Authorization, Cancellation, Charge


R = TypeVar("R", bound=AbstractResource)


@runtime_checkable
class ResourceServicePort(Protocol):
    """Remote CRUD for gateway resources.

    Implementations raise GatewayApiException on any non-2xx response.
    """

    async def create(self, resource: R) -> R: ...

    async def fetch(self, resource: R) -> R: ...

    async def update(self, resource: R) -> R: ...

    async def delete(self, resource: AbstractResource) -> None: ...

    async def fetch_payment(self, payment: Union[Payment, str]) -> Payment: ...

    async def fetch_authorization(self, payment: Union[Payment, str]) -> Authorization: ...

    async def fetch_charge_by_id(self, payment: Union[Payment, str], charge_id: str) -> Charge: ...

    async def fetch_charge(self, charge: Charge) -> Charge: ...

    async def fetch_reversal_by_authorization(self, authorization: Authorization, cancellation_id: str) -> Cancellation: ...

    async def fetch_reversal(self, payment: Union[Payment, str], cancellation_id: str) -> Cancellation: ...

    async def fetch_refund_by_id(self, payment: Union[Payment, str], charge_id: str, cancellation_id: str) -> Cancellation: ...

    async def fetch_refund(self, charge: Charge, cancellation_id: str) -> Cancellation: ...
