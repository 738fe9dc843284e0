"""Append-only store for drained domain events.

Design invariants
-----------------
1.  ``append()`` is **idempotent** on ``event.event_id``: appending
    the same event twice is a silent no-op.
2.  ``read()`` returns events in **append order**.
3.  ``replay()`` yields events lazily for rebuilding read models.
4.  The store is **append-only**: events can never be deleted or
    modified.  ``clear()`` exists only for testing.

This module provides:

*  ``IEventStore``: the protocol.
*  ``InMemoryEventStore``: list-backed implementation for tests and
   local development.
*  ``JsonFileEventStore``: append-to-JSONL-file implementation that
   doubles as an audit trail of every payroll change.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from collections.abc import AsyncIterator
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Protocol

from payroll_core.domain.events import ALL_DOMAIN_EVENTS, DomainEvent

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# JSON helpers (Decimal / date / datetime safe)
# ---------------------------------------------------------------------------

class _EventEncoder(json.JSONEncoder):
    """Handles Decimal, date and datetime serialization."""

    def default(self, o: Any) -> Any:
        if isinstance(o, Decimal):
            return str(o)
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        return super().default(o)


def _event_to_dict(event: DomainEvent) -> dict[str, Any]:
    """Serialize a frozen dataclass to a JSON-safe dict."""
    d = dataclasses.asdict(event)
    d["__event_type__"] = type(event).__qualname__
    return d


def _restore_value(field_type: str, value: Any) -> Any:
    # Annotations are strings here (postponed evaluation); "datetime" must
    # be tested before "date" since it contains it.
    if value is None:
        return None
    if "datetime" in field_type:
        return datetime.fromisoformat(value) if isinstance(value, str) else value
    if "date" in field_type:
        return date.fromisoformat(value) if isinstance(value, str) else value
    if "Decimal" in field_type:
        return Decimal(str(value))
    return value


def _event_from_dict(
    d: dict[str, Any],
    registry: dict[str, type[DomainEvent]],
) -> DomainEvent | None:
    """Deserialize a dict back into a DomainEvent subclass.

    Returns ``None`` if the event type is unrecognized (forward compat).
    """
    type_name = d.pop("__event_type__", None)
    if type_name is None or type_name not in registry:
        return None
    cls = registry[type_name]

    field_types = {f.name: str(f.type) for f in dataclasses.fields(cls)}
    restored = {
        k: _restore_value(field_types[k], v)
        for k, v in d.items()
        if k in field_types
    }
    return cls(**restored)


def _matches(
    event: DomainEvent,
    event_type: type[DomainEvent] | None,
    aggregate_id: str | None,
    correlation_id: str | None,
) -> bool:
    if event_type is not None and type(event) is not event_type:
        return False
    if aggregate_id is not None and event.aggregate_id != aggregate_id:
        return False
    if correlation_id is not None and event.correlation_id != correlation_id:
        return False
    return True


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

class IEventStore(Protocol):
    """Append-only event log for replay and audit."""

    async def append(self, event: DomainEvent) -> None:
        """Persist an event.  Idempotent on ``event.event_id``."""
        ...

    async def read(
        self,
        event_type: type[DomainEvent] | None = None,
        aggregate_id: str | None = None,
        correlation_id: str | None = None,
        offset: int = 0,
        limit: int = 10_000,
    ) -> list[DomainEvent]:
        """Read events in append order, with optional filters."""
        ...

    def replay(
        self,
        event_type: type[DomainEvent] | None = None,
        from_timestamp: datetime | None = None,
    ) -> AsyncIterator[DomainEvent]:
        """Yield events lazily."""
        ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------

class InMemoryEventStore:
    """List-backed event store.  No persistence across restarts.

    Good for: unit tests, local development.
    """

    def __init__(self) -> None:
        self._events: list[DomainEvent] = []
        self._seen_ids: set[str] = set()

    async def append(self, event: DomainEvent) -> None:
        """Append *event*.  No-op if ``event_id`` already stored."""
        if event.event_id in self._seen_ids:
            return
        self._seen_ids.add(event.event_id)
        self._events.append(event)

    async def read(
        self,
        event_type: type[DomainEvent] | None = None,
        aggregate_id: str | None = None,
        correlation_id: str | None = None,
        offset: int = 0,
        limit: int = 10_000,
    ) -> list[DomainEvent]:
        """Read events in append order with optional filters.

        *offset* skips that many stored events before filtering.
        """
        out: list[DomainEvent] = []
        for event in self._events[offset:]:
            if not _matches(event, event_type, aggregate_id, correlation_id):
                continue
            out.append(event)
            if len(out) >= limit:
                break
        return out

    async def replay(
        self,
        event_type: type[DomainEvent] | None = None,
        from_timestamp: datetime | None = None,
    ) -> AsyncIterator[DomainEvent]:
        """Yield stored events lazily."""
        for event in self._events:
            if event_type is not None and type(event) is not event_type:
                continue
            if from_timestamp is not None and event.timestamp < from_timestamp:
                continue
            yield event

    # -- Testing helpers ---------------------------------------------------

    def clear(self) -> None:
        """Remove all events.  Testing only."""
        self._events.clear()
        self._seen_ids.clear()

    def __len__(self) -> int:
        return len(self._events)


# ---------------------------------------------------------------------------
# JSON-Lines file implementation
# ---------------------------------------------------------------------------

class JsonFileEventStore:
    """Append-only JSONL file store.  Durable across restarts.

    Each line is a JSON object with an ``__event_type__`` discriminator.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._seen_ids: set[str] = set()
        self._registry: dict[str, type[DomainEvent]] = {
            cls.__qualname__: cls for cls in ALL_DOMAIN_EVENTS
        }

        # Load existing event IDs for idempotency
        if self._path.exists():
            self._load_seen_ids()

    def _load_seen_ids(self) -> None:
        """Scan existing file to populate the dedup set."""
        with self._path.open(encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    eid = json.loads(line).get("event_id")
                except json.JSONDecodeError:
                    logger.warning("Skipping corrupt line in %s", self._path)
                    continue
                if eid:
                    self._seen_ids.add(eid)

    def _iter_file(self) -> list[DomainEvent]:
        events: list[DomainEvent] = []
        if not self._path.exists():
            return events
        with self._path.open(encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    d = json.loads(line)
                except json.JSONDecodeError:
                    continue
                event = _event_from_dict(d, self._registry)
                if event is not None:
                    events.append(event)
        return events

    async def append(self, event: DomainEvent) -> None:
        if event.event_id in self._seen_ids:
            return
        self._seen_ids.add(event.event_id)
        line = json.dumps(_event_to_dict(event), cls=_EventEncoder)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    async def read(
        self,
        event_type: type[DomainEvent] | None = None,
        aggregate_id: str | None = None,
        correlation_id: str | None = None,
        offset: int = 0,
        limit: int = 10_000,
    ) -> list[DomainEvent]:
        out: list[DomainEvent] = []
        for event in self._iter_file()[offset:]:
            if not _matches(event, event_type, aggregate_id, correlation_id):
                continue
            out.append(event)
            if len(out) >= limit:
                break
        return out

    async def replay(
        self,
        event_type: type[DomainEvent] | None = None,
        from_timestamp: datetime | None = None,
    ) -> AsyncIterator[DomainEvent]:
        for event in self._iter_file():
            if event_type is not None and type(event) is not event_type:
                continue
            if from_timestamp is not None and event.timestamp < from_timestamp:
                continue
            yield event

    def __len__(self) -> int:
        return len(self._seen_ids)
