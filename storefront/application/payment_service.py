"""Payment use cases: initiation and gateway notifications."""

from decimal import Decimal
from typing import Any

import structlog

from storefront.domain.entities import Payment
from storefront.domain.exceptions import DuplicateProviderRefError, PaymentNotFoundError
from storefront.domain.repositories import OrderRepository, PaymentRepository
from storefront.domain.state_machines import OrderStatus
from storefront.domain.value_objects import (
    DEFAULT_CURRENCY,
    Money,
    OrderId,
    PaymentProvider,
)
from storefront.infrastructure.repositories import (
    SqlAlchemyOrderRepository,
    SqlAlchemyPaymentRepository,
)
from storefront.infrastructure.unit_of_work import UnitOfWork

logger = structlog.get_logger()


class PaymentService:
    """Service for payment operations.

    A successful payment marks its order as paid in the same
    transaction, so the two never disagree after a commit.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payments: PaymentRepository | None = None,
        orders: OrderRepository | None = None,
    ) -> None:
        self.uow = uow
        self.payments = payments or SqlAlchemyPaymentRepository()
        self.orders = orders or SqlAlchemyOrderRepository()

    async def initiate_payment(
        self,
        order_id: str,
        provider_ref: str,
        amount: Decimal | int | str,
        currency: str = DEFAULT_CURRENCY,
        provider: PaymentProvider = PaymentProvider.MIDTRANS,
    ) -> Payment:
        """Create a payment in INITIATED status.

        Raises:
            InvalidOrderIdError: If order_id is not a UUID.
            DuplicateProviderRefError: If the gateway reference is taken.
        """
        order_ref = str(OrderId.from_string(order_id))
        money = Money.create(amount, currency)

        async def work() -> Payment:
            if await self.payments.exists_by_provider_ref(provider_ref):
                raise DuplicateProviderRefError(provider_ref)
            payment = Payment.create(order_ref, provider_ref, money, provider)
            await self.payments.save(payment)
            logger.info(
                "Payment initiated",
                payment_id=str(payment.id),
                order_id=order_ref,
                provider=provider.value,
                amount=str(money),
            )
            return payment

        return await self.uow.with_transaction(work)

    async def handle_webhook(
        self,
        provider_ref: str,
        provider_status: str,
        payload: dict[str, Any] | None = None,
    ) -> Payment:
        """Apply a gateway notification to the referenced payment.

        Raises:
            PaymentNotFoundError: If no payment has this reference.
            PaymentStateConflictError: If the gateway status is unknown.
            InvalidPaymentStatusTransitionError: If the transition is illegal.
        """

        async def work() -> Payment:
            payment = await self.payments.find_by_provider_ref(provider_ref)
            if payment is None:
                raise PaymentNotFoundError(
                    f"Payment {provider_ref} not found",
                    {"provider_ref": provider_ref},
                )

            previous = payment.status
            payment.process_webhook(provider_status, payload)
            await self.payments.save(payment)
            logger.info(
                "Payment webhook processed",
                payment_id=str(payment.id),
                provider_status=provider_status,
                previous_status=previous.value,
                status=payment.status.value,
            )

            if payment.is_successful() and previous != payment.status:
                await self._mark_order_paid(payment)
            return payment

        return await self.uow.with_transaction(work)

    async def _mark_order_paid(self, payment: Payment) -> None:
        order = await self.orders.find_by_id(OrderId.from_string(payment.order_id))
        if order is None:
            logger.warning(
                "Settled payment references unknown order",
                payment_id=str(payment.id),
                order_id=payment.order_id,
            )
            return
        if order.status != OrderStatus.PENDING_PAYMENT:
            logger.warning(
                "Settled payment for order not awaiting payment",
                order_id=str(order.id),
                order_status=order.status.value,
            )
            return
        order.mark_as_paid()
        await self.orders.save(order)
