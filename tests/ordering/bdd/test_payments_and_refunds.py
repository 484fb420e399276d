"""BDD tests for charging and refunding payments."""

from ordering.dispatch import process
from ordering.payment.payment import Payment
from ordering.payment.processing import ProcessPayment
from ordering.payment.refund import RefundPayment
from protean import current_domain
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/payment_ledger.feature")


def _payment(paid):
    return current_domain.repository_for(Payment).by_transaction_id(paid["transaction_id"])


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('"{user_id}" pays for the order'), target_fixture="paid")
def _(placed, user_id):
    return process(ProcessPayment(order_id=placed["order_id"], actor_id=user_id))


@when(parsers.cfparse("an administrator refunds {amount:f}"))
def _(attempt, paid, amount):
    attempt(
        lambda: process(
            RefundPayment(
                transaction_id=paid["transaction_id"],
                amount=round(amount * 100),
                reason="customer_request",
                actor_id="admin-001",
                actor_role="admin",
            )
        )
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the payment amount is {amount:f}"))
def _(paid, amount):
    assert _payment(paid).amount == round(amount * 100)


@then(parsers.cfparse('the payment status is "{status}"'))
def _(paid, status):
    assert _payment(paid).status == status


@then(parsers.cfparse("the payment has {amount:f} refunded"))
def _(paid, amount):
    assert _payment(paid).total_refunded == round(amount * 100)
