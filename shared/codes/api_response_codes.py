"""
Gateway response codes and the per-call-site ignorable sets.

A code listed in an ignorable set means the target state has already been
reached on the gateway side, so the failing call is treated as a no-op.
Anything not listed is fatal.
"""
from __future__ import annotations


class ApiResponseCode:
    # Transaction state
    ALREADY_CANCELLED = "API.340.100.014"
    ALREADY_CHARGED = "API.340.100.015"
    ALREADY_CHARGED_BACK = "API.340.100.018"
    CHARGED_AMOUNT_HIGHER_THAN_EXPECTED = "API.330.100.007"
    TRANSACTION_CHARGE_NOT_ALLOWED = "API.500.800.001"
    TRANSACTION_CANCEL_NOT_ALLOWED = "API.500.800.002"

    # Request / resources
    PAYMENT_NOT_FOUND = "API.310.100.003"
    INVALID_KEY = "API.320.000.002"
    BASKET_ITEM_IMAGE_INVALID_URL = "API.600.410.021"


CANCEL_AUTHORIZATION_IGNORABLE = frozenset({
    ApiResponseCode.ALREADY_CANCELLED,
    ApiResponseCode.ALREADY_CHARGED,
})

CANCEL_CHARGE_IGNORABLE = frozenset({
    ApiResponseCode.ALREADY_CANCELLED,
    ApiResponseCode.ALREADY_CHARGED,
    ApiResponseCode.ALREADY_CHARGED_BACK,
})

# Deprecated Payment.cancel_all_charges sweep
LEGACY_CHARGE_SWEEP_IGNORABLE = frozenset({
    ApiResponseCode.ALREADY_CHARGED_BACK,
})
