from decimal import Decimal

import pytest

from domain.common.exceptions import DomainValidationException
from domain.payment.amount import Amount


def test_remaining_is_derived_from_total():
    amount = Amount(total=100, charged=30, cancelled=20)
    assert amount.remaining == Decimal("50")


def test_remaining_undefined_without_total():
    amount = Amount(charged=10)
    assert amount.remaining is None


def test_gateway_remaining_overrides_derivation():
    amount = Amount(total=100).set_remaining(40)
    assert amount.remaining == Decimal("40")
    assert Amount().set_remaining(-5).remaining == Decimal("0")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"total": -1},
        {"charged": -1},
        {"total": 10, "charged": 6, "cancelled": 5},
    ],
)
def test_invalid_amounts_rejected(kwargs):
    with pytest.raises(DomainValidationException):
        Amount(**kwargs)


def test_refund_after_full_charge_moves_amount_to_cancelled():
    amount = Amount(total=100)
    amount.record_charge(Decimal("100"))
    amount.record_cancellation(Decimal("30"), reversal=False)

    assert amount.charged == Decimal("70")
    assert amount.cancelled == Decimal("30")
    assert amount.remaining == Decimal("0")


def test_charge_beyond_total_is_rejected_without_side_effects():
    amount = Amount(total=100, cancelled=30)

    with pytest.raises(DomainValidationException):
        amount.record_charge(Decimal("90"))
    assert amount.charged == Decimal("0")


@pytest.mark.parametrize(
    "value, reversal",
    [
        # reversal larger than the uncharged part
        (Decimal("70"), True),
        # refund larger than what was charged
        (Decimal("50"), False),
    ],
)
def test_cancellation_breaking_invariant_is_rejected(value, reversal):
    amount = Amount(total=100, charged=40)

    with pytest.raises(DomainValidationException):
        amount.record_cancellation(value, reversal=reversal)
    assert (amount.charged, amount.cancelled) == (Decimal("40"), Decimal("0"))


def test_reversal_reduces_gateway_remaining_but_refund_does_not():
    amount = Amount(total=100, charged=40).set_remaining(60)

    amount.record_cancellation(Decimal("10"), reversal=False)
    assert amount.remaining == Decimal("60")
    assert amount.charged == Decimal("30")

    amount.record_cancellation(Decimal("25"), reversal=True)
    assert amount.remaining == Decimal("35")
    assert amount.cancelled == Decimal("35")


def test_record_ignores_full_amount_placeholder():
    amount = Amount(total=100)
    amount.record_charge(None)
    amount.record_cancellation(None, reversal=True)
    assert amount.charged == 0
    assert amount.cancelled == 0


def test_handle_response_accepts_gateway_spelling():
    amount = Amount()
    amount.handle_response({"total": "100.0", "charged": "20", "canceled": "5.5", "remaining": "74.5"})

    assert amount.total == Decimal("100.0")
    assert amount.charged == Decimal("20")
    assert amount.cancelled == Decimal("5.5")
    assert amount.remaining == Decimal("74.5")


def test_handle_response_rejects_inconsistent_block():
    amount = Amount(total=100, charged=10)

    with pytest.raises(DomainValidationException):
        amount.handle_response({"total": "100", "charged": "80", "canceled": "30"})
    assert amount.charged == Decimal("10")
