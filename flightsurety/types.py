"""Base types and data structures for the FlightSurety insurance ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, NamedTuple, Optional, Set, Tuple


Identity = str
Amount = int  # wei
StatusCode = int


class FlightStatus(IntEnum):
    """Flight status codes reported by oracles."""

    UNKNOWN = 0
    ON_TIME = 10
    LATE_AIRLINE = 20
    LATE_WEATHER = 30
    LATE_TECHNICAL = 40
    LATE_OTHER = 50


class RequestState(Enum):
    """Lifecycle of an oracle request."""

    PENDING = "pending"
    FINALIZED = "finalized"
    EXPIRED = "expired"


class FlightKey(NamedTuple):
    """Unique identifier of a flight instance."""

    airline: Identity
    flight: str
    timestamp: int

    def __str__(self) -> str:
        return f"{self.airline}:{self.flight}@{self.timestamp}"


@dataclass
class Airline:
    """Airline record kept by the data layer."""

    identity: Identity
    registered: bool = False
    funding_contribution: Amount = 0
    votes: Set[Identity] = field(default_factory=set)


@dataclass
class Flight:
    """A registered flight; ``status`` is written at most once."""

    key: FlightKey
    status: FlightStatus = FlightStatus.UNKNOWN
    finalized: bool = False


@dataclass
class InsurancePolicy:
    """Per passenger, per flight insurance policy."""

    passenger: Identity
    flight_key: FlightKey
    amount_paid: Amount
    payout_credited: bool = False


@dataclass
class OracleNode:
    """A registered oracle and its privately assigned indexes."""

    identity: Identity
    indexes: Tuple[int, int, int]
    active: bool = True


@dataclass
class OracleRequest:
    """Status request for one flight, dispatched to one index bucket."""

    index: int
    flight_key: FlightKey
    requester: Optional[Identity]
    opened_at: float
    tally: Dict[StatusCode, Set[Identity]] = field(default_factory=dict)
    state: RequestState = RequestState.PENDING

    @property
    def responders(self) -> Set[Identity]:
        """Every oracle that has answered this request."""
        seen: Set[Identity] = set()
        for voters in self.tally.values():
            seen |= voters
        return seen


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome of an airline registration call."""

    candidate: Identity
    registered: bool
    votes: int
    required: int


@dataclass(frozen=True)
class ResponseOutcome:
    """Outcome of an accepted oracle response."""

    flight_key: FlightKey
    index: int
    status: FlightStatus
    count: int
    finalized: bool
