from unittest.mock import AsyncMock

import pytest

from domain.common.exceptions import GatewayApiException, PaymentCancelException
from domain.payment.entity import Payment
from shared.codes.api_response_codes import ApiResponseCode
from tests.factories import api_error, cancellation, mock_charge


pytestmark = pytest.mark.asyncio


async def test_cancel_all_charges_collects_charged_back_errors(paygate):
    c1, c2, c3 = cancellation(1, id="s-cnl-1"), cancellation(2, id="s-cnl-2"), cancellation(3, id="s-cnl-3")
    ex1 = api_error(ApiResponseCode.ALREADY_CHARGED_BACK)
    ex2 = api_error(ApiResponseCode.ALREADY_CHARGED_BACK)
    payment = Payment(parent=paygate)
    for outcome in (c1, ex1, c2, ex2, c3):
        if isinstance(outcome, GatewayApiException):
            payment.add_charge(mock_charge(10, raises=outcome))
        else:
            payment.add_charge(mock_charge(10, returns=outcome))

    with pytest.deprecated_call():
        cancellations, exceptions = await payment.cancel_all_charges()

    assert cancellations == [c1, c2, c3]
    assert exceptions == [ex1, ex2]
    for charge in payment.charges:
        charge.cancel.assert_awaited_once_with()


@pytest.mark.parametrize(
    "code",
    [
        ApiResponseCode.CHARGED_AMOUNT_HIGHER_THAN_EXPECTED,
        # the legacy sweep only tolerates charged-back
        ApiResponseCode.ALREADY_CANCELLED,
    ],
)
async def test_cancel_all_charges_raises_other_codes(paygate, code):
    fatal = api_error(code)
    charge3 = mock_charge(10, returns=cancellation(10))
    payment = Payment(parent=paygate)
    payment.add_charge(mock_charge(10, raises=api_error(ApiResponseCode.ALREADY_CHARGED_BACK)))
    payment.add_charge(mock_charge(10, raises=fatal))
    payment.add_charge(charge3)

    with pytest.deprecated_call(), pytest.raises(GatewayApiException) as exc_info:
        await payment.cancel_all_charges()

    assert exc_info.value is fatal
    charge3.cancel.assert_not_awaited()


async def test_deprecated_cancel_returns_first_cancellation(paygate):
    c1, c2 = cancellation(1, id="s-cnl-1"), cancellation(2, id="s-cnl-2")
    payment = Payment(parent=paygate)
    payment.cancel_amount = AsyncMock(return_value=[c1, c2])

    with pytest.deprecated_call():
        assert await payment.cancel(3) is c1

    payment.cancel_amount.assert_awaited_once_with(3)


async def test_deprecated_cancel_raises_when_nothing_cancelled(paygate):
    payment = Payment(id="s-pay-1", parent=paygate)
    payment.cancel_amount = AsyncMock(return_value=[])

    with pytest.deprecated_call(), pytest.raises(PaymentCancelException):
        await payment.cancel()


async def test_deprecated_cancel_without_transactions(paygate):
    payment = Payment(id="s-pay-1", parent=paygate)

    with pytest.deprecated_call(), pytest.raises(PaymentCancelException) as exc_info:
        await payment.cancel()

    assert exc_info.value.details == {"payment_id": "s-pay-1"}
