"""
金额值对象 - 记录单个支付的总额、已扣款、已取消与剩余金额
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from domain.common.exceptions import DomainValidationException
from domain.common.resource import to_decimal


ZERO = Decimal("0")


@dataclass
class Amount:
    """
    金额簿记

    业务规则：
    1. 各金额均不能为负数
    2. total 已知时，charged + cancelled 不能超过 total；违反时抛出异常，不做截断
    3. 取消授权（reversal）计入 cancelled；对扣款的退款把金额从 charged 转入 cancelled
    4. remaining 由 total - charged - cancelled 推导并截断为 0；
       total 未知时 remaining 未定义（None），除非网关显式给出
    """

    total: Optional[Decimal] = None
    charged: Decimal = ZERO
    cancelled: Decimal = ZERO
    _remaining: Optional[Decimal] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        self.total = to_decimal(self.total)
        self.charged = to_decimal(self.charged) or ZERO
        self.cancelled = to_decimal(self.cancelled) or ZERO
        self._validate(self.total, self.charged, self.cancelled)

    @staticmethod
    def _validate(total: Optional[Decimal], charged: Decimal, cancelled: Decimal) -> None:
        for name, value in (("total", total), ("charged", charged), ("cancelled", cancelled)):
            if value is not None and value < 0:
                raise DomainValidationException(f"金额不能为负数: {name}={value}", field=name)
        if total is not None and charged + cancelled > total:
            raise DomainValidationException(
                f"已扣款 {charged} 与已取消 {cancelled} 之和超过总额 {total}",
                field="total",
            )

    @property
    def remaining(self) -> Optional[Decimal]:
        if self._remaining is not None:
            return self._remaining
        if self.total is None:
            return None
        return max(self.total - self.charged - self.cancelled, ZERO)

    def set_remaining(self, value: Any) -> "Amount":
        remaining = to_decimal(value)
        self._remaining = None if remaining is None else max(remaining, ZERO)
        return self

    def record_charge(self, value: Optional[Decimal]) -> None:
        """记录一次扣款，扣款消耗剩余可用金额"""
        if not value:
            return
        charged = self.charged + value
        self._validate(self.total, charged, self.cancelled)
        self.charged = charged
        if self._remaining is not None:
            self._remaining = max(self._remaining - value, ZERO)

    def record_cancellation(self, value: Optional[Decimal], *, reversal: bool) -> None:
        """
        记录一次取消

        reversal=True 表示取消授权：释放未扣款金额，计入 cancelled 并减少 remaining；
        reversal=False 表示对已扣款的退款：金额从 charged 转入 cancelled，
        两者之和不变，也不影响网关给出的 remaining。
        """
        if not value:
            return
        charged = self.charged if reversal else self.charged - value
        cancelled = self.cancelled + value
        self._validate(self.total, charged, cancelled)
        self.charged, self.cancelled = charged, cancelled
        if reversal and self._remaining is not None:
            self._remaining = max(self._remaining - value, ZERO)

    def handle_response(self, data: dict[str, Any]) -> None:
        """以网关返回的金额块为准覆盖本地簿记；金额块同样需满足业务规则"""
        total, charged, cancelled = self.total, self.charged, self.cancelled
        if "total" in data:
            total = to_decimal(data.get("total"))
        if "charged" in data:
            charged = to_decimal(data.get("charged")) or ZERO
        if "canceled" in data or "cancelled" in data:
            cancelled = to_decimal(data.get("canceled", data.get("cancelled"))) or ZERO
        self._validate(total, charged, cancelled)
        self.total, self.charged, self.cancelled = total, charged, cancelled
        if "remaining" in data:
            self.set_remaining(data.get("remaining"))
