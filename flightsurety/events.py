"""Event types and the shared append-only event log."""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

LOGGER = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events published by the ledger."""

    AIRLINE_REGISTERED = "AirlineRegistered"
    AIRLINE_VOTED = "AirlineVoted"
    AIRLINE_FUNDED = "AirlineFunded"
    FLIGHT_REGISTERED = "FlightRegistered"
    ORACLE_REGISTERED = "OracleRegistered"
    ORACLE_REQUEST = "OracleRequest"
    ORACLE_REPORT = "OracleReport"
    FLIGHT_STATUS_INFO = "FlightStatusInfo"
    INSURANCE_PURCHASED = "InsurancePurchased"
    INSUREE_CREDITED = "InsureeCredited"
    WITHDRAWAL = "Withdrawal"
    OPERATING_STATUS_CHANGED = "OperatingStatusChanged"


@dataclass
class Event:
    """A single committed event.

    ``offset`` is assigned by :class:`EventLog` on append and is ``-1`` for
    events that are only staged inside an open transaction.
    """

    event_type: EventType
    args: Dict[str, Any]
    offset: int = -1
    timestamp: float = 0.0

    def __post_init__(self) -> None:
        """Initialize default values."""
        if self.timestamp == 0:
            self.timestamp = time.time()

    def to_json(self) -> str:
        """Serialize event to JSON."""
        data = asdict(self)
        data["event_type"] = data["event_type"].value
        return json.dumps(data)

    @classmethod
    def from_json(cls, json_str: str) -> "Event":
        """Deserialize event from JSON."""
        data = json.loads(json_str)
        data["event_type"] = EventType(data["event_type"])
        return cls(**data)


class EventLog:
    """Immutable, totally ordered log of committed events.

    Readers never block writers; they poll with an offset and receive every
    event at or after it.
    """

    def __init__(self) -> None:
        self._events: List[Event] = []
        self._lock = threading.Lock()
        self._appended = threading.Condition(self._lock)

    def __len__(self) -> int:
        return len(self._events)

    def append(self, events: List[Event]) -> None:
        """Append a batch of events atomically, assigning offsets."""
        if not events:
            return
        with self._appended:
            for event in events:
                event.offset = len(self._events)
                self._events.append(event)
                LOGGER.debug("Event %s at offset %s: %s", event.event_type.value, event.offset, event.args)
            self._appended.notify_all()

    def read(self, offset: int = 0, limit: Optional[int] = None) -> List[Event]:
        """Return committed events starting at ``offset``."""
        if offset < 0:
            raise ValueError("offset must be non-negative")
        end = None if limit is None else offset + limit
        return list(self._events[offset:end])

    def wait_for(self, offset: int, timeout: float) -> bool:
        """Block until an event exists at ``offset`` or ``timeout`` elapses."""
        with self._appended:
            return self._appended.wait_for(lambda: len(self._events) > offset, timeout=timeout)

    def filter(self, event_type: EventType, offset: int = 0) -> List[Event]:
        """Return committed events of one type."""
        return [event for event in self.read(offset) if event.event_type is event_type]


@dataclass
class EventCursor:
    """Per-consumer read position in the event log.

    When ``path`` is set the position survives restarts: it is loaded on
    construction and written on every :meth:`advance`.
    """

    path: Optional[Path] = None
    position: int = 0

    def __post_init__(self) -> None:
        if self.path is not None:
            self.path = Path(self.path)
            self.load()

    def load(self) -> int:
        """Load the stored position, keeping the current one if none is stored."""
        if self.path is None or not self.path.exists():
            return self.position
        with self.path.open("r", encoding="utf-8") as fp:
            data = json.load(fp)
        self.position = int(data.get("position", self.position))
        return self.position

    def advance(self, position: Union[int, Event]) -> None:
        """Move past ``position`` (an event or the next offset to read)."""
        next_position = position.offset + 1 if isinstance(position, Event) else int(position)
        if next_position < self.position:
            raise ValueError("cursor cannot move backwards")
        self.position = next_position
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as fp:
                json.dump({"position": self.position}, fp)


__all__ = ["EventType", "Event", "EventLog", "EventCursor"]
