"""Base classes for domain layer.

Provides foundational abstractions for entities, value objects,
aggregates, identifiers and domain events.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Generic, Self, TypeVar
from uuid import UUID, uuid4

from storefront.domain.exceptions import InvalidIdentifierError


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


# ============================================================================
# Value Object Base
# ============================================================================


@dataclass(frozen=True)
class ValueObject(ABC):
    """Base class for value objects.

    Value objects are immutable and compared by their attributes,
    not by identity. Construction validates; an instance that exists
    is always valid.
    """

    pass


# ============================================================================
# Identifiers
# ============================================================================


UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-8][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class UniqueIdentifier(ValueObject):
    """UUID-backed identifier.

    Subclasses set ``error_class`` so a malformed id raises the error
    specific to the aggregate it identifies.

    Attributes:
        value: Canonical UUID string.
    """

    error_class: ClassVar[type[InvalidIdentifierError]] = InvalidIdentifierError

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not UUID_PATTERN.match(self.value):
            raise self.error_class(
                f"Invalid {type(self).__name__}: {self.value!r}",
                details={"value": str(self.value)},
            )

    @classmethod
    def generate(cls) -> Self:
        """Generate a new random identifier."""
        return cls(str(uuid4()))

    @classmethod
    def from_string(cls, value: str) -> Self:
        """Parse identifier from string.

        Raises:
            InvalidIdentifierError: (subclass) if value is not a UUID.
        """
        return cls(value)

    def __str__(self) -> str:
        return self.value


# ============================================================================
# Entity Base
# ============================================================================


T = TypeVar("T", bound=UniqueIdentifier)


@dataclass
class Entity(ABC, Generic[T]):
    """Base class for entities.

    Two entities are equal if they have the same identity,
    regardless of their other attributes.

    Attributes:
        id: Unique identifier for this entity.
    """

    id: T

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


# ============================================================================
# Aggregate Root Base
# ============================================================================


@dataclass(kw_only=True, eq=False)
class AggregateRoot(Entity[T], Generic[T]):
    """Base class for aggregate roots.

    Aggregate roots guard the invariants of their cluster and buffer
    the domain events their commands produce. The buffer is drained by
    the repository exactly once per successful save.

    Attributes:
        version: Optimistic locking version.
        created_at: Timestamp when the aggregate was created.
        updated_at: Timestamp of last modification.
    """

    version: int = field(default=1, compare=False)
    created_at: datetime = field(default_factory=utcnow, compare=False)
    updated_at: datetime = field(default_factory=utcnow, compare=False)
    _events: list["DomainEvent"] = field(
        default_factory=list,
        init=False,
        repr=False,
        compare=False,
    )

    def _record_event(self, event: "DomainEvent") -> None:
        """Append an event to the pending buffer.

        Args:
            event: Domain event to record.
        """
        self._events.append(event)

    def pull_domain_events(self) -> list["DomainEvent"]:
        """Return pending events in recording order and clear the buffer.

        Returns:
            Events recorded since the previous pull.
        """
        events, self._events = self._events, []
        return events

    def peek_domain_events(self) -> tuple["DomainEvent", ...]:
        """Read pending events without draining them."""
        return tuple(self._events)

    def _touch(self) -> None:
        """Update the updated_at timestamp and increment version."""
        self.updated_at = utcnow()
        self.version += 1


# ============================================================================
# Domain Event Base
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class DomainEvent(ABC):
    """Base class for domain events.

    Attributes:
        event_id: Unique identifier for this event instance.
        event_type: Event name (set by subclass).
        occurred_at: Timestamp when the event occurred.
        aggregate_id: ID of the aggregate that emitted this event.
        aggregate_type: Type name of the aggregate.
    """

    event_type: ClassVar[str]
    aggregate_type: ClassVar[str] = ""

    aggregate_id: str
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=utcnow)

    @property
    def payload(self) -> dict[str, Any]:
        return self._payload()

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary for serialization.

        Returns:
            Dictionary representation of the event.
        """
        return {
            "event_id": str(self.event_id),
            "event_type": self.event_type,
            "occurred_at": self.occurred_at.isoformat(),
            "aggregate_id": self.aggregate_id,
            "aggregate_type": self.aggregate_type,
            "payload": self._payload(),
        }

    @abstractmethod
    def _payload(self) -> dict[str, Any]:
        """Get event-specific payload data."""
        pass
