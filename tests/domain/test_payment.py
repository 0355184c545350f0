"""Tests for the Payment aggregate."""

import pytest

from storefront.domain.entities import Payment
from storefront.domain.events import (
    PaymentCreated,
    PaymentSettled,
    PaymentStatusChanged,
    PaymentWebhookReceived,
)
from storefront.domain.exceptions import (
    InvalidPaymentStatusTransitionError,
    InvalidProviderRefError,
    PaymentStateConflictError,
)
from storefront.domain.state_machines import PaymentStatus
from storefront.domain.value_objects import Money, OrderId


@pytest.fixture
def payment() -> Payment:
    """Fresh INITIATED payment with its creation event pulled."""
    payment = Payment.create(str(OrderId.generate()), "trx-1", Money.create(150000))
    payment.pull_domain_events()
    return payment


class TestPaymentCreation:
    """Tests for Payment.create."""

    def test_create_starts_initiated(self) -> None:
        """New payments are INITIATED and record PaymentCreated."""
        payment = Payment.create("order-1", "trx-1", Money.create(100, "USD"))
        assert payment.status == PaymentStatus.INITIATED
        assert payment.currency == "USD"
        [event] = payment.pull_domain_events()
        assert isinstance(event, PaymentCreated)
        assert event.amount == "100.00"

    def test_blank_provider_ref_rejected(self) -> None:
        """A gateway reference is required."""
        with pytest.raises(InvalidProviderRefError):
            Payment.create("order-1", " ", Money.create(100))


class TestPaymentTransitions:
    """Tests for status transitions."""

    def test_settled_then_pending_rejected(self, payment: Payment) -> None:
        """SETTLEMENT -> PENDING fails with both statuses in the error."""
        payment.mark_as_pending()
        payment.mark_as_settled()

        with pytest.raises(InvalidPaymentStatusTransitionError) as exc_info:
            payment.transition_to(PaymentStatus.PENDING)

        assert (exc_info.value.from_status, exc_info.value.to_status) == (
            "SETTLEMENT",
            "PENDING",
        )
        assert payment.status == PaymentStatus.SETTLEMENT

    def test_each_transition_records_its_event(self, payment: Payment) -> None:
        """PENDING records StatusChanged and SETTLEMENT records Settled."""
        payment.transition_to(PaymentStatus.PENDING)
        payment.transition_to(PaymentStatus.SETTLEMENT)

        events = payment.pull_domain_events()
        assert [type(e) for e in events] == [PaymentStatusChanged, PaymentSettled]
        assert events[1].previous_status == "PENDING"
        assert events[1].amount == "150000.00"
        assert payment.is_successful()

    def test_mark_methods_are_idempotent(self, payment: Payment) -> None:
        """Marking the current status again records nothing."""
        payment.mark_as_pending()
        payment.pull_domain_events()
        version = payment.version

        payment.mark_as_pending()

        assert payment.pull_domain_events() == []
        assert payment.version == version

    def test_initiated_cannot_settle_directly(self, payment: Payment) -> None:
        """Settlement requires going through PENDING."""
        with pytest.raises(InvalidPaymentStatusTransitionError):
            payment.mark_as_settled()

    def test_refund_after_settlement(self, payment: Payment) -> None:
        """Settled payments can be refunded and then become terminal."""
        payment.mark_as_pending()
        payment.mark_as_settled()
        payment.mark_as_refunded()
        assert payment.is_terminal()
        assert not payment.is_successful()


class TestPaymentWebhook:
    """Tests for gateway notifications."""

    def test_webhook_maps_provider_status(self, payment: Payment) -> None:
        """Gateway status strings map onto domain statuses."""
        payment.mark_as_pending()
        payment.pull_domain_events()

        status = payment.process_webhook("capture", {"transaction_status": "capture"})

        assert status == PaymentStatus.SETTLEMENT
        assert payment.raw_webhook_payload == {"transaction_status": "capture"}
        assert [type(e) for e in payment.pull_domain_events()] == [
            PaymentWebhookReceived,
            PaymentSettled,
        ]

    def test_redelivered_webhook_does_not_transition(self, payment: Payment) -> None:
        """A repeated notification is recorded but changes nothing."""
        payment.process_webhook("pending")
        payment.pull_domain_events()

        payment.process_webhook("pending")

        assert payment.status == PaymentStatus.PENDING
        assert [type(e) for e in payment.pull_domain_events()] == [PaymentWebhookReceived]

    def test_domain_status_names_accepted(self, payment: Payment) -> None:
        """Domain status names work as well as gateway names."""
        assert payment.process_webhook("FAILED") == PaymentStatus.FAILED

    def test_unknown_status_rejected(self, payment: Payment) -> None:
        """Unmapped statuses raise a state conflict."""
        with pytest.raises(PaymentStateConflictError):
            payment.process_webhook("authorize")
        assert payment.status == PaymentStatus.INITIATED

    def test_illegal_webhook_transition(self, payment: Payment) -> None:
        """A settlement webhook on an INITIATED payment is illegal."""
        with pytest.raises(InvalidPaymentStatusTransitionError):
            payment.process_webhook("settlement")
