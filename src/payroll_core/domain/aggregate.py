"""Aggregate root base: identity, version and the pending-event queue."""

from __future__ import annotations

from payroll_core.core.clock import WALL_CLOCK, IClock
from payroll_core.core.errors import PreconditionError

from .events import WRITE_OWNERSHIP, DomainEvent


class AggregateRoot:
    """Base class for every aggregate in the payroll core.

    Mutations queue events via ``_record``.  Nothing is dispatched from
    inside the aggregate: the persistence boundary calls ``drain_events``
    after saving, which hands the queue over exactly once.
    """

    #: ``source`` stamped on every event this aggregate writes.
    SOURCE = ""

    def __init__(self, id: str, *, version: int = 0, clock: IClock | None = None) -> None:
        self._id = id
        self._version = version
        self._clock: IClock = clock or WALL_CLOCK
        self._pending_events: list[DomainEvent] = []

    @property
    def id(self) -> str:
        return self._id

    @property
    def version(self) -> int:
        """Number of recorded changes; usable as an optimistic-lock token."""
        return self._version

    @property
    def pending_events(self) -> tuple[DomainEvent, ...]:
        return tuple(self._pending_events)

    def drain_events(self) -> list[DomainEvent]:
        """Return queued events and clear the queue."""
        events, self._pending_events = self._pending_events, []
        return events

    def _record(self, event: DomainEvent) -> None:
        owner = WRITE_OWNERSHIP.get(type(event))
        if owner != self.SOURCE:
            raise PreconditionError(
                f"{type(event).__name__} is owned by {owner!r}, not {self.SOURCE!r}"
            )
        self._pending_events.append(event)
        self._version += 1

    def _event_kwargs(self) -> dict[str, object]:
        return {
            "aggregate_id": self._id,
            "source": self.SOURCE,
            "timestamp": self._clock.now(),
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AggregateRoot):
            return NotImplemented
        return type(self) is type(other) and self._id == other._id

    def __hash__(self) -> int:
        return hash((type(self), self._id))

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self._id!r}, version={self._version})>"
