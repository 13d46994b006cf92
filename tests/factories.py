"""Test factories for resources whose remote calls are replaced by AsyncMock."""
from decimal import Decimal
from typing import Optional
from unittest.mock import AsyncMock

from domain.common.exceptions import GatewayApiException
from domain.payment.transactions import Authorization, Cancellation, Charge


PRIVATE_KEY = "s-priv-2a10an6aJK0Jg7sMdpu9gK7ih8pCcTUy"


def dec(value) -> Optional[Decimal]:
    return None if value is None else Decimal(str(value))


def api_error(code: Optional[str]) -> GatewayApiException:
    return GatewayApiException("merchant message", "customer message", code, status_code=400)


def cancellation(amount=None, id: str = "s-cnl-1") -> Cancellation:
    return Cancellation(dec(amount), id=id)


def mock_charge(amount, *, id: Optional[str] = None, returns=None, raises=None) -> Charge:
    """Charge whose remote cancel is replaced by an AsyncMock."""
    charge = Charge(dec(amount), "EUR", id=id)
    charge.cancel = AsyncMock(return_value=returns, side_effect=raises)
    return charge


def mock_authorization(amount, *, returns=None, raises=None) -> Authorization:
    authorization = Authorization(dec(amount), "EUR", id="s-aut-1")
    authorization.cancel = AsyncMock(return_value=returns, side_effect=raises)
    return authorization
