"""Canonical ledger state.

A single explicit state object. Operations never mutate the committed
instance; they receive a private copy from :meth:`LedgerStore.transaction`
and the copy replaces the committed state only when the operation succeeds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple

from flightsurety.types import (
    Airline,
    Amount,
    Flight,
    FlightKey,
    Identity,
    InsurancePolicy,
    OracleNode,
    OracleRequest,
    RequestState,
)

PolicyKey = Tuple[Identity, FlightKey]


@dataclass
class LedgerState:
    """Every record owned by the data and application layers."""

    # data layer
    airlines: Dict[Identity, Airline] = field(default_factory=dict)
    registered_airlines: int = 0
    flights: Dict[FlightKey, Flight] = field(default_factory=dict)
    policies: Dict[PolicyKey, InsurancePolicy] = field(default_factory=dict)
    # Passengers per flight, in purchase order.
    insurees: Dict[FlightKey, List[Identity]] = field(default_factory=dict)
    credits: Dict[Identity, Amount] = field(default_factory=dict)
    authorized_callers: Set[Identity] = field(default_factory=set)

    # application layer
    oracles: Dict[Identity, OracleNode] = field(default_factory=dict)
    requests: Dict[FlightKey, OracleRequest] = field(default_factory=dict)
    # Closed requests keep only their terminal state; tallies are dropped.
    closed_requests: Dict[Tuple[int, FlightKey], RequestState] = field(default_factory=dict)
    nonce: int = 0


__all__ = ["LedgerState", "PolicyKey"]
