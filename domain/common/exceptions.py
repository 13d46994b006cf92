"""领域层异常定义，供领域、应用与基础设施使用。

本地异常（PaygateException 及其子类）表示 SDK 在内存状态下无法完成的操作；
远程异常（GatewayApiException）只承载网关返回的错误码，两者互不继承。
"""
from __future__ import annotations

from typing import Optional

from shared.codes import SdkCode


class PaygateException(Exception):
    """本地异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "PaygateError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class PaymentCancelException(PaygateException):
    def __init__(self, payment_id: Optional[str] = None):
        details = {"payment_id": payment_id} if payment_id else None
        super().__init__(
            code=SdkCode.PAYMENT_NOT_CANCELLABLE,
            message="This Payment could not be cancelled.",
            error_type="PaymentNotCancellable",
            details=details,
        )


class IllegalKeyException(PaygateException):
    def __init__(self):
        super().__init__(
            code=SdkCode.ILLEGAL_KEY,
            message="Illegal key: Use a valid private key with this SDK!",
            error_type="IllegalKey",
            field="key",
        )


class DomainValidationException(PaygateException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=SdkCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )


class ResourceNotBoundException(PaygateException):
    def __init__(self, resource: str):
        super().__init__(
            code=SdkCode.RESOURCE_NOT_BOUND,
            message=f"{resource} is not bound to a Paygate client",
            error_type="ResourceNotBound",
            details={"resource": resource},
        )


class ResourceNotFoundException(PaygateException):
    def __init__(self, resource: str, identifier: Optional[str] = None):
        details = {"resource": resource}
        if identifier is not None:
            details["id"] = identifier
        super().__init__(
            code=SdkCode.NOT_FOUND,
            message=f"{resource} not found" + (f": {identifier}" if identifier else ""),
            error_type="ResourceNotFound",
            details=details,
        )


class GatewayApiException(Exception):
    """网关返回的远程错误

    code 为网关响应码（如 API.340.100.014）；传输层失败（超时、网络错误）时为 None。
    """

    def __init__(
        self,
        merchant_message: str,
        client_message: Optional[str] = None,
        code: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        error_id: Optional[str] = None,
    ) -> None:
        self.merchant_message = merchant_message
        self.client_message = client_message or merchant_message
        self.code = code
        self.status_code = status_code
        self.error_id = error_id
        super().__init__(merchant_message)

    def __str__(self):
        parts = [self.merchant_message]
        if self.code:
            parts.append(f"Code: {self.code}")
        if self.status_code:
            parts.append(f"Status: {self.status_code}")
        if self.error_id:
            parts.append(f"Error ID: {self.error_id}")
        return " | ".join(parts)
