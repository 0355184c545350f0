"""Discount use cases."""

from datetime import datetime
from decimal import Decimal
from typing import Any

import structlog

from storefront.domain.entities import Discount
from storefront.domain.exceptions import (
    DiscountCodeAlreadyExistsError,
    DiscountNotFoundError,
)
from storefront.domain.repositories import DiscountRepository
from storefront.domain.value_objects import (
    DEFAULT_CURRENCY,
    DiscountCode,
    DiscountPeriod,
    DiscountValue,
    Money,
)
from storefront.infrastructure.repositories import SqlAlchemyDiscountRepository
from storefront.infrastructure.unit_of_work import UnitOfWork

logger = structlog.get_logger()


class DiscountService:
    def __init__(self, uow: UnitOfWork, discounts: DiscountRepository | None = None) -> None:
        self.uow = uow
        self.discounts = discounts or SqlAlchemyDiscountRepository()

    async def create_discount(
        self,
        code: str,
        name: str,
        value: DiscountValue,
        period: DiscountPeriod,
        **options: Any,
    ) -> Discount:
        """Create an active discount.

        Args:
            code: Redemption code, normalized to upper case.
            name: Display name.
            value: Percentage or fixed amount.
            period: Validity window.
            **options: Remaining ``Discount.create`` arguments.

        Raises:
            DiscountCodeAlreadyExistsError: If the code is taken.
        """
        discount_code = DiscountCode(code)

        async def work() -> Discount:
            if await self.discounts.exists_by_code(discount_code):
                raise DiscountCodeAlreadyExistsError(str(discount_code))
            discount = Discount.create(discount_code, name, value, period, **options)
            await self.discounts.save(discount)
            logger.info(
                "Discount created",
                discount_id=str(discount.id),
                code=str(discount_code),
                discount_type=value.type.value,
            )
            return discount

        return await self.uow.with_transaction(work)

    async def apply_discount(
        self,
        code: str,
        order_id: str,
        amount: Decimal | int | str,
        currency: str = DEFAULT_CURRENCY,
        now: datetime | None = None,
    ) -> Money:
        """Redeem a discount for an order and return the discount amount.

        Raises:
            DiscountNotFoundError: If no discount has this code.
            DiscountStateConflictError: If the discount cannot be applied.
        """
        purchase = Money.create(amount, currency)

        async def work() -> Money:
            discount = await self._require(code)
            discount_amount = discount.apply_to_order(order_id, purchase, now)
            await self.discounts.save(discount)
            logger.info(
                "Discount applied",
                code=str(discount.code),
                order_id=order_id,
                discount_amount=str(discount_amount),
                usage_count=discount.usage_count,
            )
            return discount_amount

        return await self.uow.with_transaction(work)

    async def deactivate_discount(self, code: str, reason: str | None = None) -> Discount:
        async def work() -> Discount:
            discount = await self._require(code)
            discount.deactivate(reason)
            await self.discounts.save(discount)
            return discount

        return await self.uow.with_transaction(work)

    async def _require(self, code: str) -> Discount:
        discount = await self.discounts.find_by_code(code)
        if discount is None:
            raise DiscountNotFoundError(f"Discount {code} not found", {"code": code})
        return discount
