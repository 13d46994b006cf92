"""
支付领域实体 - 支付聚合根
"""
from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional
from urllib.parse import urlparse

from core.logging_config import get_logger
from domain.common.exceptions import (
    DomainValidationException,
    GatewayApiException,
    PaymentCancelException,
)
from domain.common.resource import AbstractResource, to_decimal
from domain.payment.amount import Amount
from domain.payment.transactions import (
    AbstractTransaction,
    Authorization,
    CancelReasonCode,
    Cancellation,
    Charge,
)
from shared.codes.api_response_codes import LEGACY_CHARGE_SWEEP_IGNORABLE


logger = get_logger(__name__)


def _url_segments(url: str) -> list[str]:
    return [part for part in urlparse(url or "").path.split("/") if part]


@dataclass(eq=False)
class Payment(AbstractResource):
    """
    支付聚合根 - 持有至多一个授权与按创建顺序排列的扣款

    业务规则：
    1. 授权至多一个，且不能被替换为另一笔授权
    2. 扣款按插入顺序保存，只增不删
    3. 授权与扣款只属于一个 Payment，不能在 Payment 之间共享
    4. 取消以追加 Cancellation 的方式记录，而不是删除交易
    """

    amount: Amount = field(default_factory=Amount)
    currency: Optional[str] = None
    authorization: Optional[Authorization] = None
    charges: list[Charge] = field(default_factory=list)
    state: Optional[str] = None

    resource_path: ClassVar[str] = "payments"

    def __post_init__(self):
        if self.authorization is not None:
            authorization, self.authorization = self.authorization, None
            self.set_authorization(authorization)
        charges, self.charges = list(self.charges), []
        for charge in charges:
            self.add_charge(charge)

    def _adopt(self, transaction: AbstractTransaction) -> None:
        owner = transaction.parent
        if owner is not None and owner is not self and isinstance(owner, Payment):
            raise DomainValidationException(
                f"{type(transaction).__name__} {transaction.id} 已属于其他 Payment",
                field="parent",
            )
        transaction.parent = self

    def set_authorization(self, authorization: Authorization) -> "Payment":
        if self.authorization is not None and self.authorization is not authorization:
            raise DomainValidationException("Payment 至多只能有一个授权", field="authorization")
        self._adopt(authorization)
        self.authorization = authorization
        return self

    def add_charge(self, charge: Charge) -> "Payment":
        if any(existing is charge for existing in self.charges):
            return self
        self._adopt(charge)
        self.charges.append(charge)
        self.amount.record_charge(charge.amount)
        return self

    def get_charge(self, charge_id: str) -> Optional[Charge]:
        for charge in self.charges:
            if charge.id == charge_id:
                return charge
        return None

    @property
    def cancellations(self) -> list[Cancellation]:
        """授权与各扣款上的全部取消记录（授权在前，扣款按顺序）"""
        result: list[Cancellation] = []
        if self.authorization is not None:
            result.extend(self.authorization.cancellations)
        for charge in self.charges:
            result.extend(charge.cancellations)
        return result

    def handle_response(self, data: dict[str, Any]) -> None:
        super().handle_response(data)
        if data.get("currency"):
            self.currency = data["currency"]
        state = data.get("state")
        if isinstance(state, dict):
            self.state = state.get("name") or self.state
        elif state:
            self.state = str(state)
        for transaction in data.get("transactions") or []:
            self._handle_transaction(transaction)
        # 网关金额块为权威值，在交易之后应用
        if isinstance(data.get("amount"), dict):
            self.amount.handle_response(data["amount"])

    def _handle_transaction(self, transaction: dict[str, Any]) -> None:
        tx_type = transaction.get("type")
        segments = _url_segments(transaction.get("url", ""))
        if not segments:
            return
        tx_id = segments[-1]
        amount = to_decimal(transaction.get("amount"))

        if tx_type == "authorize":
            if self.authorization is None:
                self.set_authorization(Authorization(amount, id=tx_id))
            else:
                self.authorization.id = self.authorization.id or tx_id
                self.authorization.amount = amount if amount is not None else self.authorization.amount
        elif tx_type == "charge":
            charge = self.get_charge(tx_id)
            if charge is None:
                self.add_charge(Charge(amount, id=tx_id))
            elif amount is not None:
                charge.amount = amount
        elif tx_type == "cancel-authorize":
            if self.authorization is None:
                logger.warning("payment_orphan_reversal", payment_id=self.id, cancellation_id=tx_id)
                return
            if self.authorization.get_cancellation(tx_id) is None:
                self.authorization.add_cancellation(Cancellation(amount, id=tx_id))
        elif tx_type == "cancel-charge":
            charge_id = segments[-3] if len(segments) >= 3 else None
            charge = self.get_charge(charge_id) if charge_id else None
            if charge is None:
                logger.warning("payment_orphan_refund", payment_id=self.id, charge_id=charge_id, cancellation_id=tx_id)
                return
            if charge.get_cancellation(tx_id) is None:
                charge.add_cancellation(Cancellation(amount, id=tx_id))

    # 取消入口（委托给 CancelService）

    async def cancel_amount(
        self,
        amount: Any = None,
        reason_code: Optional[str] = CancelReasonCode.CANCEL.value,
        payment_reference: Optional[str] = None,
        amount_net: Any = None,
        amount_vat: Any = None,
    ) -> list[Cancellation]:
        return await self.get_client().cancel_service.cancel_payment(
            self, amount, reason_code, payment_reference, amount_net, amount_vat
        )

    async def cancel_authorization_amount(self, amount: Any = None) -> Optional[Cancellation]:
        return await self.get_client().cancel_service.cancel_payment_authorization(self, amount)

    async def cancel(self, amount: Any = None) -> Cancellation:
        """已废弃：请使用 cancel_amount；返回第一条取消记录"""
        warnings.warn(
            "Payment.cancel() is deprecated, use Payment.cancel_amount() instead",
            DeprecationWarning,
            stacklevel=2,
        )
        cancellations = await self.cancel_amount(amount)
        if not cancellations:
            raise PaymentCancelException(self.id)
        return cancellations[0]

    async def cancel_all_charges(self) -> tuple[list[Cancellation], list[GatewayApiException]]:
        """
        已废弃：对全部扣款逐一全额取消

        仅忽略"已拒付"错误码（收集后与成功结果一并返回），其他任何异常立即抛出。
        """
        warnings.warn(
            "Payment.cancel_all_charges() is deprecated, use Payment.cancel_amount() instead",
            DeprecationWarning,
            stacklevel=2,
        )
        cancellations: list[Cancellation] = []
        exceptions: list[GatewayApiException] = []
        for charge in self.charges:
            try:
                cancellations.append(await charge.cancel())
            except GatewayApiException as exc:
                if exc.code not in LEGACY_CHARGE_SWEEP_IGNORABLE:
                    raise
                logger.info("cancel_error_ignored", payment_id=self.id, charge_id=charge.id, code=exc.code, sweep="legacy")
                exceptions.append(exc)
        return cancellations, exceptions
