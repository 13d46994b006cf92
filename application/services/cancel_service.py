"""
Application service allocating cancellations across a payment's transactions.

The allocation order is fixed: the authorization is drained first, then the
charges are swept in insertion order with a shrinking budget. Remote errors
are classified by membership in the per-call-site ignorable sets; anything
else propagates unchanged (fail-fast, no rollback of earlier cancellations).
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional, Union

from application.ports.resource_service import ResourceServicePort
from core.logging_config import get_logger
from domain.common.exceptions import DomainValidationException, GatewayApiException, PaymentCancelException
from domain.common.resource import to_decimal
from domain.payment.amount import ZERO
from domain.payment.entity import Payment
from domain.payment.transactions import Authorization, CancelReasonCode, Cancellation, Charge
from shared.codes.api_response_codes import (
    CANCEL_AUTHORIZATION_IGNORABLE,
    CANCEL_CHARGE_IGNORABLE,
)


logger = get_logger(__name__)


def _reduce_budget(budget: Optional[Decimal], cancelled: Optional[Decimal]) -> Optional[Decimal]:
    if budget is None:
        return None
    return max(budget - (cancelled or ZERO), ZERO)


def _to_budget(amount: Any) -> Optional[Decimal]:
    budget = to_decimal(amount)
    if budget is not None and budget < 0:
        raise DomainValidationException(f"Cancel amount must not be negative: {budget}", field="amount")
    return budget


class CancelService:
    def __init__(self, client: Any) -> None:
        # Resolved through the client so a swapped resource service is picked up
        self.client = client

    @property
    def resource_service(self) -> ResourceServicePort:
        return self.client.resource_service

    async def _resolve_payment(self, payment: Union[Payment, str]) -> Payment:
        if isinstance(payment, Payment):
            return payment
        return await self.resource_service.fetch_payment(payment)

    async def cancel_authorization(self, authorization: Authorization, amount: Any = None) -> Cancellation:
        """Create a cancellation (reversal) on the authorization; ``amount=None`` cancels in full."""
        cancellation = Cancellation(_to_budget(amount), parent=authorization)
        await self.resource_service.create(cancellation)
        authorization.add_cancellation(cancellation)
        logger.info(
            "authorization_cancelled",
            authorization_id=authorization.id,
            cancellation_id=cancellation.id,
            amount=str(cancellation.amount),
        )
        return cancellation

    async def cancel_authorization_by_payment(self, payment: Union[Payment, str], amount: Any = None) -> Cancellation:
        authorization = await self.resource_service.fetch_authorization(payment)
        return await self.cancel_authorization(authorization, amount)

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
        charge = await self.resource_service.fetch_charge_by_id(payment, charge_id)
        return await self.cancel_charge(charge, amount, reason_code, payment_reference, amount_net, amount_vat)

    async def cancel_charge(
        self,
        charge: Charge,
        amount: Any = None,
        reason_code: Optional[str] = None,
        payment_reference: Optional[str] = None,
        amount_net: Any = None,
        amount_vat: Any = None,
    ) -> Cancellation:
        """Create a cancellation (refund) on the charge; ``amount=None`` refunds in full."""
        cancellation = Cancellation(
            _to_budget(amount),
            reason_code,
            payment_reference,
            to_decimal(amount_net),
            to_decimal(amount_vat),
            parent=charge,
        )
        await self.resource_service.create(cancellation)
        charge.add_cancellation(cancellation)
        logger.info(
            "charge_cancelled",
            charge_id=charge.id,
            cancellation_id=cancellation.id,
            amount=str(cancellation.amount),
            reason_code=cancellation.reason_code,
        )
        return cancellation

    async def cancel_payment(
        self,
        payment: Union[Payment, str],
        amount: Any = None,
        reason_code: Optional[str] = CancelReasonCode.CANCEL.value,
        payment_reference: Optional[str] = None,
        amount_net: Any = None,
        amount_vat: Any = None,
    ) -> list[Cancellation]:
        """
        Cancel ``amount`` on the payment, authorization first, then charges in order.

        ``amount=None`` cancels everything remaining. Returns every cancellation
        created by this call, possibly none.
        """
        budget = _to_budget(amount)
        payment = await self._resolve_payment(payment)
        if payment.authorization is None and not payment.charges:
            raise PaymentCancelException(payment.id)

        cancel_whole = budget is None
        cancellations: list[Cancellation] = []
        logger.info("cancel_payment_request", payment_id=payment.id, amount=str(budget))

        if cancel_whole or budget > 0:
            cancellation = await self.cancel_payment_authorization(payment, budget)
            if cancellation is not None:
                cancellations.append(cancellation)
                budget = _reduce_budget(budget, cancellation.amount)

        if not cancel_whole and budget <= 0:
            return cancellations

        for charge in payment.charges:
            remaining = charge.remaining
            if remaining is not None and remaining <= 0:
                continue

            charge_budget = None
            if not cancel_whole:
                charge_budget = budget if remaining is None else min(budget, remaining)

            try:
                cancellation = await charge.cancel(
                    charge_budget, reason_code, payment_reference, amount_net, amount_vat
                )
            except GatewayApiException as exc:
                if exc.code not in CANCEL_CHARGE_IGNORABLE:
                    raise
                logger.info("cancel_error_ignored", payment_id=payment.id, charge_id=charge.id, code=exc.code)
                continue

            cancellations.append(cancellation)
            budget = _reduce_budget(budget, cancellation.amount)
            if not cancel_whole and budget <= 0:
                break

        logger.info("cancel_payment_response", payment_id=payment.id, cancellations=len(cancellations))
        return cancellations

    async def cancel_payment_authorization(self, payment: Payment, amount: Any = None) -> Optional[Cancellation]:
        """
        Cancel up to ``amount`` of the payment's authorization, capped at the payment's remaining amount.

        Returns None without a remote call when nothing is left, and None when the
        gateway reports the authorization as already cancelled or charged.
        """
        effective = _to_budget(amount)
        remaining = payment.amount.remaining
        if remaining is not None and remaining <= 0:
            return None

        authorization = payment.authorization
        if authorization is None:
            return None

        if effective is not None and remaining is not None:
            effective = min(effective, remaining)
        if effective is not None and effective <= 0:
            return None

        try:
            return await authorization.cancel(effective)
        except GatewayApiException as exc:
            if exc.code not in CANCEL_AUTHORIZATION_IGNORABLE:
                raise
            logger.info("cancel_error_ignored", payment_id=payment.id, authorization_id=authorization.id, code=exc.code)
            return None
