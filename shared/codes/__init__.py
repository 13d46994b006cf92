"""
Shared SDK codes used across layers (Domain/Core/Infrastructure).

This package exposes SdkCode at `shared.codes` and keeps
gateway response codes under `shared.codes.api_response_codes`.
"""
from enum import IntEnum


class SdkCode(IntEnum):
    """Local (non-remote) error codes raised by the SDK itself."""

    # Success
    SUCCESS = 0

    # Parameter errors (1xxxx)
    PARAM_ERROR = 10000
    PARAM_VALIDATION_ERROR = 10003
    ILLEGAL_KEY = 10004

    # Resource state errors (2xxxx)
    BUSINESS_ERROR = 20000
    NOT_FOUND = 20006
    RESOURCE_NOT_BOUND = 20007
    PAYMENT_NOT_CANCELLABLE = 20100


__all__ = ["SdkCode"]
