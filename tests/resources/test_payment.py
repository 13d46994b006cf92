from decimal import Decimal

import pytest

from domain.common.exceptions import DomainValidationException, ResourceNotBoundException
from domain.payment.amount import Amount
from domain.payment.entity import Payment
from domain.payment.transactions import Authorization, CancelReasonCode, Cancellation, Charge


class _Root:
    def get_uri(self):
        return ""


def _payment_response():
    return {
        "id": "s-pay-1",
        "currency": "EUR",
        "state": {"id": 1, "name": "completed"},
        "amount": {"total": "100.0", "charged": "60.0", "canceled": "15.0", "remaining": "25.0"},
        "transactions": [
            {"type": "authorize", "url": "https://dev-api.heidelpay.com/v1/payments/s-pay-1/authorize/s-aut-1", "amount": "100.0"},
            {"type": "charge", "url": "https://dev-api.heidelpay.com/v1/payments/s-pay-1/charges/s-chg-1", "amount": "40.0"},
            {"type": "charge", "url": "https://dev-api.heidelpay.com/v1/payments/s-pay-1/charges/s-chg-2", "amount": "20.0"},
            {"type": "cancel-authorize", "url": "https://dev-api.heidelpay.com/v1/payments/s-pay-1/authorize/s-aut-1/cancels/s-cnl-1", "amount": "10.0"},
            {"type": "cancel-charge", "url": "https://dev-api.heidelpay.com/v1/payments/s-pay-1/charges/s-chg-2/cancels/s-cnl-1", "amount": "5.0"},
        ],
    }


def test_handle_response_builds_transactions_in_order():
    payment = Payment(id="s-pay-1")
    payment.handle_response(_payment_response())

    assert payment.state == "completed"
    assert payment.authorization.id == "s-aut-1"
    assert [c.id for c in payment.charges] == ["s-chg-1", "s-chg-2"]
    assert payment.authorization.remaining == Decimal("90.0")
    assert payment.get_charge("s-chg-2").remaining == Decimal("15.0")
    assert [c.amount for c in payment.cancellations] == [Decimal("10.0"), Decimal("5.0")]
    assert payment.amount.remaining == Decimal("25.0")


def test_handle_response_is_idempotent():
    payment = Payment(id="s-pay-1")
    payment.handle_response(_payment_response())
    payment.handle_response(_payment_response())

    assert len(payment.charges) == 2
    assert len(payment.cancellations) == 2


def test_only_one_authorization():
    payment = Payment(authorization=Authorization(Decimal("10")))

    with pytest.raises(DomainValidationException):
        payment.set_authorization(Authorization(Decimal("20")))


def test_transactions_are_not_shared_between_payments():
    charge = Charge(Decimal("10"))
    Payment().add_charge(charge)

    with pytest.raises(DomainValidationException):
        Payment().add_charge(charge)


def test_add_charge_keeps_insertion_order_and_ignores_duplicates():
    c1, c2 = Charge(Decimal("1")), Charge(Decimal("2"))
    payment = Payment().add_charge(c1).add_charge(c2).add_charge(c1)

    assert payment.charges == [c1, c2]
    assert all(c.payment is payment for c in payment.charges)


def test_repeated_partial_cancels_accumulate_on_same_charge():
    charge = Charge(Decimal("10"), id="s-chg-1")
    Payment().add_charge(charge)
    charge.add_cancellation(Cancellation(Decimal("3"), id="s-cnl-1"))
    charge.add_cancellation(Cancellation(Decimal("4"), id="s-cnl-2"))

    assert [c.id for c in charge.cancellations] == ["s-cnl-1", "s-cnl-2"]
    assert charge.remaining == Decimal("3")
    assert all(c.parent is charge for c in charge.cancellations)


def test_uris_follow_parent_chain():
    payment = Payment(id="s-pay-1", parent=_Root())
    authorization = Authorization(Decimal("10"), id="s-aut-1")
    charge = Charge(Decimal("10"), id="s-chg-1")
    payment.set_authorization(authorization).add_charge(charge)

    assert payment.get_uri() == "/payments/s-pay-1"
    assert authorization.get_uri() == "/payments/s-pay-1/authorize"
    assert charge.get_uri(with_id=False) == "/payments/s-pay-1/charges"
    assert Cancellation(id="s-cnl-1", parent=charge).get_uri() == "/payments/s-pay-1/charges/s-chg-1/cancels/s-cnl-1"


def test_unbound_resource_has_no_client():
    with pytest.raises(ResourceNotBoundException):
        Payment().get_client()


def test_cancellation_cannot_be_rebound():
    cancellation = Cancellation(Decimal("1"), id="s-cnl-1")
    cancellation.handle_response({"id": "s-cnl-1", "amount": "1.0"})

    with pytest.raises(DomainValidationException):
        cancellation.handle_response({"id": "s-cnl-2"})


def test_cancellation_expose():
    plain = Cancellation(Decimal("12.3"), CancelReasonCode.RETURN, "ref-1")
    split = Cancellation(Decimal("12.3"), amount_net=Decimal("10.0"), amount_vat=Decimal("2.3"))

    assert plain.expose() == {"amount": 12.3, "reasonCode": "RETURN", "paymentReference": "ref-1"}
    assert split.expose() == {"amountGross": 12.3, "amountNet": 10.0, "amountVat": 2.3}
    assert Cancellation().expose() == {}


def test_refund_on_charge_is_counted_in_payment_amount():
    payment = Payment(amount=Amount(total=Decimal("100")))
    charge = Charge(Decimal("100"), id="s-chg-1")
    payment.add_charge(charge)

    charge.add_cancellation(Cancellation(Decimal("30"), id="s-cnl-1"))

    assert payment.amount.charged == Decimal("70")
    assert payment.amount.cancelled == Decimal("30")
    assert charge.remaining == Decimal("70")


def test_bound_cancellation_fields_are_immutable():
    cancellation = Cancellation(Decimal("12.3"), CancelReasonCode.CANCEL, id="s-cnl-1")

    for name, value in (("amount", Decimal("1")), ("reason_code", "RETURN"), ("id", "s-cnl-2")):
        with pytest.raises(DomainValidationException):
            setattr(cancellation, name, value)
    assert cancellation.amount == Decimal("12.3")
    assert cancellation.reason_code == "CANCEL"


def test_bound_cancellation_accepts_gateway_values_for_unknown_fields():
    cancellation = Cancellation(id="s-cnl-1")
    cancellation.handle_response({"id": "s-cnl-1", "amount": "5.0"})

    assert cancellation.amount == Decimal("5.0")
    with pytest.raises(DomainValidationException):
        cancellation.handle_response({"id": "s-cnl-1", "amount": "6.0"})


def test_full_cancel_takes_amount_from_gateway_response():
    cancellation = Cancellation()
    cancellation.amount = Decimal("3")
    cancellation.handle_response({"id": "s-cnl-1", "amount": "12.3"})

    assert cancellation.id == "s-cnl-1"
    assert cancellation.amount == Decimal("12.3")
