"""Tests for the Product aggregate."""

import pytest

from storefront.domain.entities import Product
from storefront.domain.events import (
    ProductActivated,
    ProductCreated,
    ProductDiscontinued,
    ProductPriceChanged,
    ProductUpdated,
)
from storefront.domain.exceptions import (
    CurrencyMismatchError,
    InvalidProductStatusTransitionError,
    ProductDiscontinuedError,
)
from storefront.domain.state_machines import ProductStatus
from storefront.domain.value_objects import Money


@pytest.fixture
def product() -> Product:
    """Active product with its creation event pulled."""
    product = Product.create("tee-001", "Basic Tee", Money.create(99000))
    product.pull_domain_events()
    return product


class TestProduct:
    """Tests for Product commands."""

    def test_create(self) -> None:
        """New products are active and record ProductCreated."""
        product = Product.create("tee-001", "Basic Tee", Money.create(99000))
        assert product.is_available()
        assert str(product.sku) == "TEE-001"
        [event] = product.pull_domain_events()
        assert isinstance(event, ProductCreated)
        assert event.price == "99000.00"

    def test_update_info_reports_changes(self, product: Product) -> None:
        """Changed fields are reported and recorded."""
        changes = product.update_info(name="Basic Tee", brand="Acme")
        assert changes == {"brand": {"old": None, "new": "Acme"}}
        [event] = product.pull_domain_events()
        assert isinstance(event, ProductUpdated)

    def test_update_price(self, product: Product) -> None:
        """Price changes record old and new prices."""
        product.update_price(Money.create(89000))
        [event] = product.pull_domain_events()
        assert isinstance(event, ProductPriceChanged)
        assert (event.old_price, event.new_price) == ("99000.00", "89000.00")

    def test_same_price_is_noop(self, product: Product) -> None:
        """Setting the current price records nothing."""
        product.update_price(Money.create(99000))
        assert product.pull_domain_events() == []

    def test_price_currency_cannot_change(self, product: Product) -> None:
        """Prices keep their currency."""
        with pytest.raises(CurrencyMismatchError):
            product.update_price(Money.create(10, "USD"))

    def test_back_in_stock(self, product: Product) -> None:
        """Reactivating an out-of-stock product flags back_in_stock."""
        assert product.mark_out_of_stock() is True
        product.pull_domain_events()

        assert product.activate() is True

        [event] = product.pull_domain_events()
        assert isinstance(event, ProductActivated)
        assert event.back_in_stock is True

    def test_status_change_to_current_status_returns_false(self, product: Product) -> None:
        """Activating an active product does nothing."""
        assert product.activate() is False
        assert product.pull_domain_events() == []

    def test_inactive_cannot_go_out_of_stock(self, product: Product) -> None:
        """The status table still applies."""
        product.deactivate()
        with pytest.raises(InvalidProductStatusTransitionError):
            product.mark_out_of_stock()

    def test_discontinued_product_is_frozen(self, product: Product) -> None:
        """Discontinued products reject further changes."""
        assert product.discontinue("end of line") is True
        [event] = product.pull_domain_events()
        assert isinstance(event, ProductDiscontinued)
        assert event.reason == "end of line"
        assert product.status == ProductStatus.DISCONTINUED

        with pytest.raises(ProductDiscontinuedError):
            product.activate()
        with pytest.raises(ProductDiscontinuedError):
            product.update_price(Money.create(1))
        assert product.discontinue() is False
