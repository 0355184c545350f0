"""Domain <-> persistence enum translation.

Each mapper is an explicit bidirectional table checked when it is
built: every domain member must map to exactly one persistence member
and every persistence member must be reachable. The module-level
mappers are built at import time, so an incomplete table stops the
application at startup instead of failing on the first lookup.
"""

from enum import Enum
from typing import Generic, Mapping, TypeVar

from storefront.domain.state_machines import (
    DiscountStatus,
    OrderStatus,
    PaymentStatus,
    ProductStatus,
)
from storefront.domain.value_objects import (
    DiscountApplicability,
    DiscountType,
    PaymentProvider,
)
from storefront.infrastructure.models import (
    DiscountApplicabilityRecord,
    DiscountStatusRecord,
    DiscountTypeRecord,
    OrderStatusRecord,
    PaymentProviderRecord,
    PaymentStatusRecord,
    ProductStatusRecord,
)

D = TypeVar("D", bound=Enum)
P = TypeVar("P", bound=Enum)


class MappingConfigurationError(Exception):
    """Enum mapping table is incomplete or not one-to-one."""


class EnumMapper(Generic[D, P]):
    """Validated bidirectional mapping between two enums.

    Args:
        domain_enum: Domain enum class.
        persistence_enum: Persistence enum class.
        table: Domain member to persistence member.

    Raises:
        MappingConfigurationError: If the table is not a bijection.
    """

    def __init__(
        self,
        domain_enum: type[D],
        persistence_enum: type[P],
        table: Mapping[D, P],
    ) -> None:
        self.domain_enum = domain_enum
        self.persistence_enum = persistence_enum

        missing = [m.name for m in domain_enum if m not in table]
        if missing:
            raise MappingConfigurationError(
                f"{domain_enum.__name__} members without a persistence value: {missing}"
            )
        targets = list(table.values())
        if len(set(targets)) != len(targets):
            raise MappingConfigurationError(
                f"{domain_enum.__name__} mapping to {persistence_enum.__name__} "
                "is not one-to-one"
            )
        unreachable = [m.name for m in persistence_enum if m not in set(targets)]
        if unreachable:
            raise MappingConfigurationError(
                f"{persistence_enum.__name__} members without a domain value: {unreachable}"
            )
        stray = [m for m in targets if not isinstance(m, persistence_enum)]
        if stray:
            raise MappingConfigurationError(
                f"{domain_enum.__name__} maps to foreign values: {stray}"
            )

        self._to_persistence: dict[D, P] = dict(table)
        self._to_domain: dict[P, D] = {p: d for d, p in table.items()}

    @classmethod
    def by_name(cls, domain_enum: type[D], persistence_enum: type[P]) -> "EnumMapper[D, P]":
        """Build a mapper pairing members with the same name.

        Raises:
            MappingConfigurationError: If the member names differ.
        """
        table: dict[D, P] = {}
        for member in domain_enum:
            try:
                table[member] = persistence_enum[member.name]
            except KeyError:
                raise MappingConfigurationError(
                    f"{persistence_enum.__name__} has no member {member.name}"
                ) from None
        return cls(domain_enum, persistence_enum, table)

    def to_persistence(self, value: D) -> P:
        return self._to_persistence[self.domain_enum(value)]

    def to_domain(self, value: P | str) -> D:
        """Translate a stored value (member or raw string) to the domain enum."""
        return self._to_domain[self.persistence_enum(value)]

    def to_persistence_or_none(self, value: D | None) -> P | None:
        return None if value is None else self.to_persistence(value)

    def to_domain_or_none(self, value: P | str | None) -> D | None:
        return None if value is None else self.to_domain(value)


payment_status_mapper = EnumMapper.by_name(PaymentStatus, PaymentStatusRecord)
payment_provider_mapper = EnumMapper.by_name(PaymentProvider, PaymentProviderRecord)
discount_status_mapper = EnumMapper.by_name(DiscountStatus, DiscountStatusRecord)
discount_type_mapper = EnumMapper.by_name(DiscountType, DiscountTypeRecord)
discount_applicability_mapper = EnumMapper.by_name(
    DiscountApplicability, DiscountApplicabilityRecord
)
product_status_mapper = EnumMapper.by_name(ProductStatus, ProductStatusRecord)
order_status_mapper = EnumMapper.by_name(OrderStatus, OrderStatusRecord)
