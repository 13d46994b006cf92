"""
交易资源 - 授权（Authorization）、扣款（Charge）与取消记录（Cancellation）

Authorization 与 Charge 通过 parent 指向所属 Payment（仅用于寻址），
取消操作委托给客户端的 CancelService，错误分类不在此处进行。
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Optional

from domain.common.exceptions import DomainValidationException
from domain.common.resource import AbstractResource, decimal_to_json, to_decimal
from domain.payment.amount import ZERO


class CancelReasonCode(str, Enum):
    """取消原因"""
    CANCEL = "CANCEL"
    RETURN = "RETURN"
    CREDIT = "CREDIT"


_BOUND_FIELDS = frozenset({"id", "amount", "reason_code", "payment_reference", "amount_net", "amount_vat"})


@dataclass(eq=False)
class Cancellation(AbstractResource):
    """
    取消记录 - 一次成功取消操作的结果

    业务规则：
    1. amount 为 None 表示全额取消，实际金额由网关决定
    2. 绑定 id 之后不可再绑定到其他 id
    3. 绑定 id 之后各字段不可修改，只允许补全网关给出的空值（None -> 值）
    """

    amount: Optional[Decimal] = None
    reason_code: Optional[str] = None
    payment_reference: Optional[str] = None
    amount_net: Optional[Decimal] = None
    amount_vat: Optional[Decimal] = None

    resource_path: ClassVar[str] = "cancels"

    def __post_init__(self):
        self.amount = to_decimal(self.amount)
        self.amount_net = to_decimal(self.amount_net)
        self.amount_vat = to_decimal(self.amount_vat)
        if isinstance(self.reason_code, CancelReasonCode):
            self.reason_code = self.reason_code.value
        self._bound = self.id is not None

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _BOUND_FIELDS and self.__dict__.get("_bound"):
            current = self.__dict__.get(name)
            if current is not None and current != value:
                raise DomainValidationException(
                    f"Cancellation {self.id} 已绑定，不能修改 {name}",
                    field=name,
                )
        super().__setattr__(name, value)

    def expose(self) -> dict[str, Any]:
        # 分项金额（分期类产品）时金额以 amountGross 发送
        split = self.amount_net is not None or self.amount_vat is not None
        body = {
            "amountGross" if split else "amount": decimal_to_json(self.amount),
            "amountNet": decimal_to_json(self.amount_net),
            "amountVat": decimal_to_json(self.amount_vat),
            "reasonCode": self.reason_code,
            "paymentReference": self.payment_reference,
        }
        return {k: v for k, v in body.items() if v is not None}

    def handle_response(self, data: dict[str, Any]) -> None:
        new_id = data.get("id")
        if self.id and new_id and str(new_id) != self.id:
            raise DomainValidationException(
                f"Cancellation {self.id} 已绑定，不能重新绑定为 {new_id}",
                field="id",
            )
        super().handle_response(data)
        if data.get("amount") is not None:
            self.amount = to_decimal(data["amount"])
        if data.get("amountGross") is not None:
            self.amount = to_decimal(data["amountGross"])
        self._bound = self.id is not None


@dataclass(eq=False)
class AbstractTransaction(AbstractResource):
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    return_url: Optional[str] = None
    type_id: Optional[str] = None
    customer_id: Optional[str] = None
    cancellations: list[Cancellation] = field(default_factory=list, repr=False)

    def __post_init__(self):
        self.amount = to_decimal(self.amount)

    @property
    def payment(self) -> Any:
        return self.parent

    @property
    def cancelled_amount(self) -> Decimal:
        return sum((c.amount for c in self.cancellations if c.amount is not None), ZERO)

    @property
    def remaining(self) -> Optional[Decimal]:
        """剩余可取消金额；amount 未知时为 None"""
        if self.amount is None:
            return None
        return max(self.amount - self.cancelled_amount, ZERO)

    def get_cancellation(self, cancellation_id: str) -> Optional[Cancellation]:
        for cancellation in self.cancellations:
            if cancellation.id == cancellation_id:
                return cancellation
        return None

    def _is_reversal(self) -> bool:
        raise NotImplementedError

    def add_cancellation(self, cancellation: Cancellation) -> Cancellation:
        """挂载取消记录并同步 Payment 金额簿记；取消记录只增不删"""
        cancellation.parent = self
        self.cancellations.append(cancellation)
        payment = self.payment
        if payment is not None and hasattr(payment, "amount"):
            payment.amount.record_cancellation(cancellation.amount, reversal=self._is_reversal())
        return cancellation

    def expose(self) -> dict[str, Any]:
        resources = {"typeId": self.type_id, "customerId": self.customer_id}
        body = {
            "amount": decimal_to_json(self.amount),
            "currency": self.currency,
            "returnUrl": self.return_url,
            "resources": {k: v for k, v in resources.items() if v is not None} or None,
        }
        return {k: v for k, v in body.items() if v is not None}

    def handle_response(self, data: dict[str, Any]) -> None:
        super().handle_response(data)
        if data.get("amount") is not None:
            self.amount = to_decimal(data["amount"])
        if data.get("currency"):
            self.currency = data["currency"]
        resources = data.get("resources") or {}
        self.type_id = resources.get("typeId") or self.type_id
        self.customer_id = resources.get("customerId") or self.customer_id
        payment = self.payment
        payment_id = resources.get("paymentId")
        if payment is not None and payment_id and not payment.id:
            payment.id = str(payment_id)


@dataclass(eq=False)
class Authorization(AbstractTransaction):
    """授权 - 每个 Payment 至多一个"""

    resource_path: ClassVar[str] = "authorize"

    def get_uri(self, with_id: bool = True) -> str:
        # 授权在 Payment 下唯一，路径不带 id
        return super().get_uri(with_id=False)

    def _is_reversal(self) -> bool:
        return True

    async def cancel(self, amount: Any = None) -> Cancellation:
        return await self.get_client().cancel_service.cancel_authorization(self, amount)

    async def charge(self, amount: Any = None) -> "Charge":
        return await self.get_client().charge_authorization(self.payment, amount)


@dataclass(eq=False)
class Charge(AbstractTransaction):
    """扣款 - amount 为 None 表示扣除全部剩余授权金额"""

    resource_path: ClassVar[str] = "charges"

    def _is_reversal(self) -> bool:
        return False

    async def cancel(
        self,
        amount: Any = None,
        reason_code: Optional[str] = None,
        payment_reference: Optional[str] = None,
        amount_net: Any = None,
        amount_vat: Any = None,
    ) -> Cancellation:
        return await self.get_client().cancel_service.cancel_charge(
            self, amount, reason_code, payment_reference, amount_net, amount_vat
        )
