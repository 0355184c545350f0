"""Cart use cases.

Each operation is one Unit of Work: load the user's cart, run one
aggregate command, save. Events recorded by the cart are dispatched
only after the transaction commits.
"""

import structlog

from storefront.domain.entities import Cart
from storefront.domain.exceptions import CartNotFoundError
from storefront.domain.repositories import CartRepository
from storefront.domain.value_objects import CartItemId, Quantity
from storefront.infrastructure.repositories import SqlAlchemyCartRepository
from storefront.infrastructure.unit_of_work import UnitOfWork

logger = structlog.get_logger()


class CartService:
    """Service for cart operations.

    Args:
        uow: Transaction boundary.
        carts: Cart repository. Defaults to the SQLAlchemy one bound to
            the ambient transaction.
    """

    def __init__(self, uow: UnitOfWork, carts: CartRepository | None = None) -> None:
        self.uow = uow
        self.carts = carts or SqlAlchemyCartRepository()

    async def get_cart(self, user_id: str) -> Cart:
        """Raises CartNotFoundError when the user has no cart."""

        async def work() -> Cart:
            return await self._require_cart(user_id)

        return await self.uow.with_transaction(work)

    async def get_or_create_cart(self, user_id: str) -> Cart:
        async def work() -> Cart:
            return await self._load_or_create(user_id)

        return await self.uow.with_transaction(work)

    async def add_item(self, user_id: str, product_id: str, quantity: int) -> Cart:
        """Add a product, merging with an existing line for the same product.

        Raises:
            InvalidQuantityError: If quantity is out of range.
        """
        qty = Quantity.create(quantity)

        async def work() -> Cart:
            cart = await self._load_or_create(user_id)
            item = cart.add_item(product_id, qty)
            await self.carts.save(cart)
            logger.info(
                "Cart item added",
                cart_id=str(cart.id),
                product_id=product_id,
                quantity=int(item.quantity),
            )
            return cart

        return await self.uow.with_transaction(work)

    async def update_item_quantity(self, user_id: str, item_id: str, quantity: int) -> Cart:
        cart_item_id = CartItemId.from_string(item_id)
        qty = Quantity.create(quantity)

        async def work() -> Cart:
            cart = await self._require_cart(user_id)
            cart.update_item_quantity(cart_item_id, qty)
            await self.carts.save(cart)
            return cart

        return await self.uow.with_transaction(work)

    async def remove_item(self, user_id: str, item_id: str) -> Cart:
        """Remove one line.

        Raises:
            CartNotFoundError: If the user has no cart.
            CartItemNotFoundError: If the line does not exist.
        """
        cart_item_id = CartItemId.from_string(item_id)

        async def work() -> Cart:
            cart = await self._require_cart(user_id)
            cart.remove_item(cart_item_id)
            await self.carts.save(cart)
            logger.info("Cart item removed", cart_id=str(cart.id), item_id=item_id)
            return cart

        return await self.uow.with_transaction(work)

    async def clear_cart(self, user_id: str) -> Cart:
        async def work() -> Cart:
            cart = await self._require_cart(user_id)
            removed = cart.clear()
            await self.carts.save(cart)
            logger.info("Cart cleared", cart_id=str(cart.id), removed_items=removed)
            return cart

        return await self.uow.with_transaction(work)

    async def delete_cart(self, user_id: str) -> None:
        async def work() -> None:
            cart = await self._require_cart(user_id)
            await self.carts.delete(cart.id)
            logger.info("Cart deleted", cart_id=str(cart.id), user_id=user_id)

        await self.uow.with_transaction(work)

    async def _load_or_create(self, user_id: str) -> Cart:
        cart = await self.carts.find_by_user_id(user_id)
        if cart is not None:
            return cart

        cart = Cart.create(user_id)
        await self.carts.save(cart)
        logger.info("Cart created", cart_id=str(cart.id), user_id=user_id)
        return cart

    async def _require_cart(self, user_id: str) -> Cart:
        cart = await self.carts.find_by_user_id(user_id)
        if cart is None:
            raise CartNotFoundError(
                f"No cart for user {user_id}", {"user_id": user_id}
            )
        return cart
