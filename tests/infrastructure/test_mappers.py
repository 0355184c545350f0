"""Tests for enum mappers."""

from enum import Enum

import pytest

from storefront.domain.state_machines import OrderStatus, PaymentStatus
from storefront.infrastructure.mappers import (
    EnumMapper,
    MappingConfigurationError,
    order_status_mapper,
    payment_status_mapper,
)
from storefront.infrastructure.models import OrderStatusRecord, PaymentStatusRecord


class Color(str, Enum):
    RED = "RED"
    BLUE = "BLUE"


class ColorRecord(str, Enum):
    RED = "red"
    BLUE = "blue"


class ShadeRecord(str, Enum):
    RED = "red"
    BLUE = "blue"
    GREEN = "green"


class TestEnumMapper:
    """Tests for EnumMapper validation and lookups."""

    @pytest.mark.parametrize("status", list(PaymentStatus))
    def test_payment_status_round_trip(self, status: PaymentStatus) -> None:
        """Every domain status maps out and back to itself."""
        stored = payment_status_mapper.to_persistence(status)
        assert isinstance(stored, PaymentStatusRecord)
        assert payment_status_mapper.to_domain(stored) is status

    def test_to_domain_accepts_raw_strings(self) -> None:
        """Stored column values can be passed as plain strings."""
        assert order_status_mapper.to_domain("pending_payment") is OrderStatus.PENDING_PAYMENT
        assert order_status_mapper.to_persistence(OrderStatus.PAID) is OrderStatusRecord.PAID

    def test_optional_helpers(self) -> None:
        """None passes through the optional helpers."""
        assert payment_status_mapper.to_domain_or_none(None) is None
        assert payment_status_mapper.to_persistence_or_none(None) is None

    def test_missing_domain_member_rejected(self) -> None:
        """A table that skips a domain member fails at construction."""
        with pytest.raises(MappingConfigurationError, match="BLUE"):
            EnumMapper(Color, ColorRecord, {Color.RED: ColorRecord.RED})

    def test_non_injective_table_rejected(self) -> None:
        """Two domain members may not share a persistence member."""
        with pytest.raises(MappingConfigurationError, match="one-to-one"):
            EnumMapper(
                Color,
                ColorRecord,
                {Color.RED: ColorRecord.RED, Color.BLUE: ColorRecord.RED},
            )

    def test_unreachable_persistence_member_rejected(self) -> None:
        """Every persistence member needs a domain counterpart."""
        with pytest.raises(MappingConfigurationError, match="GREEN"):
            EnumMapper.by_name(Color, ShadeRecord)

    def test_by_name_requires_matching_names(self) -> None:
        """by_name fails when a member name is absent."""
        with pytest.raises(MappingConfigurationError):
            EnumMapper.by_name(PaymentStatus, ColorRecord)
