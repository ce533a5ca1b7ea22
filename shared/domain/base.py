"""
Domain base classes

- Aggregate: identity, timestamps and the domain events recorded while a
  command runs
- ValueObject: immutable, compared by value
- DomainEvent: something that happened, published after commit
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List
from uuid import UUID, uuid4

from django.utils import timezone  # type: ignore


@dataclass(frozen=True)
class ValueObject(ABC):
    """Base for immutable values; subclasses validate in ``__post_init__``"""


@dataclass(eq=False)
class Aggregate(ABC):
    """
    Aggregate root

    Two aggregates are equal when their ids are. Events recorded through
    ``add_event`` stay on the aggregate until the unit of work drains them.
    """
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=timezone.now)
    updated_at: datetime = field(default_factory=timezone.now)
    _events: List['DomainEvent'] = field(default_factory=list, repr=False, init=False)

    def __post_init__(self):
        pass

    def __eq__(self, other):
        return isinstance(other, self.__class__) and self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def touch(self):
        self.updated_at = timezone.now()

    def add_event(self, event: 'DomainEvent'):
        self._events.append(event)

    def clear_events(self):
        self._events.clear()

    @property
    def events(self) -> List['DomainEvent']:
        return list(self._events)


@dataclass
class DomainEvent:
    """
    Base domain event

    Subclasses add keyword-only payload fields; ``aggregate_id`` points at the
    aggregate that raised the event.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=timezone.now)
    aggregate_id: Any = None

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict:
        """JSON-friendly payload; dates and datetimes become ISO strings"""
        payload = {
            'event_id': str(self.event_id),
            'event_type': self.event_type,
            'occurred_at': self.occurred_at.isoformat(),
            'aggregate_id': str(self.aggregate_id) if self.aggregate_id else None,
        }
        for name, value in vars(self).items():
            if name in payload or name.startswith('_'):
                continue
            payload[name] = value.isoformat() if hasattr(value, 'isoformat') else value
        return payload
