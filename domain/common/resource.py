"""
资源基类 - 所有由网关承载的领域对象的公共部分

资源负责自身寻址（get_uri）、请求体序列化（expose）与吸收网关响应（handle_response）。
parent 仅用于寻址及回溯到根客户端，不决定任何对象的生命周期。
"""
from __future__ import annotations

from dataclasses import dataclass, field, KW_ONLY
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar, Optional

from domain.common.exceptions import DomainValidationException, ResourceNotBoundException


def to_decimal(value: Any) -> Optional[Decimal]:
    """金额归一化为 Decimal；None 保持为 None（表示全额 / 不限）"""
    if value is None or value == "":
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise DomainValidationException(f"金额格式无效: {value!r}", field="amount") from exc


def decimal_to_json(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)


@dataclass(eq=False)
class AbstractResource:
    _: KW_ONLY
    id: Optional[str] = None
    parent: Any = field(default=None, repr=False)

    resource_path: ClassVar[str] = ""

    def get_resource_path(self) -> str:
        return self.resource_path

    def get_uri(self, with_id: bool = True) -> str:
        parent_uri = self.parent.get_uri() if self.parent is not None else ""
        path = self.get_resource_path()
        if with_id and self.id:
            path = f"{path}/{self.id}"
        return f"{parent_uri.rstrip('/')}/{path}"

    def get_client(self) -> Any:
        """沿 parent 链回溯到根客户端（第一个非资源的 parent）"""
        node = self.parent
        while isinstance(node, AbstractResource):
            node = node.parent
        if node is None:
            raise ResourceNotBoundException(type(self).__name__)
        return node

    def expose(self) -> dict[str, Any]:
        return {}

    def handle_response(self, data: dict[str, Any]) -> None:
        if data.get("id"):
            self.id = str(data["id"])
