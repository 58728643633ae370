"""Ledger store: atomic single-writer transactions over :class:`LedgerState`.

Every mutating operation runs as::

    with store.transaction(caller) as txn:
        ...  # read and write txn.state, stage events with txn.emit()

The body works on a deep copy of the committed state. When the block exits
normally the copy becomes the committed state and the staged events are
appended to the event log in one step; when it raises, both are dropped.
Writers are serialized by a re-entrant lock, readers use :attr:`snapshot`
and never wait.

Data-layer writes go through the ``Transaction`` helpers below, which check
the data layer switch, the caller's authorization and the record invariants.
"""

from __future__ import annotations

import copy
import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional

from flightsurety.control import Layer, OperationalControl
from flightsurety.errors import AuthorizationError, FundingError, ValidationError
from flightsurety.events import Event, EventLog, EventType
from flightsurety.ledger.state import LedgerState
from flightsurety.types import (
    Airline,
    Amount,
    Flight,
    FlightKey,
    FlightStatus,
    Identity,
    InsurancePolicy,
)

LOGGER = logging.getLogger(__name__)


class Transaction:
    """Working copy of the ledger for one operation."""

    def __init__(self, state: LedgerState, control: OperationalControl, caller: Optional[Identity]) -> None:
        self.state = state
        self.caller = caller
        self.events: List[Event] = []
        self._control = control

    def emit(self, event_type: EventType, **args: object) -> None:
        """Stage an event; it is published only if the transaction commits."""
        self.events.append(Event(event_type=event_type, args=dict(args)))

    def next_nonce(self) -> int:
        """Return a fresh, strictly increasing nonce."""
        self.state.nonce += 1
        return self.state.nonce

    def _require_data_write(self) -> None:
        self._control.require_operational(Layer.DATA)
        if self.caller is not None and self.caller not in self.state.authorized_callers:
            raise AuthorizationError(f"caller {self.caller} is not authorized to write ledger data")

    # ------------------------------------------------------------------
    # Airlines
    # ------------------------------------------------------------------

    def ensure_airline(self, identity: Identity) -> Airline:
        """Return the airline record, creating an unregistered one if needed."""
        airline = self.state.airlines.get(identity)
        if airline is None:
            self._require_data_write()
            airline = Airline(identity=identity)
            self.state.airlines[identity] = airline
        return airline

    def mark_registered(self, identity: Identity) -> Airline:
        self._require_data_write()
        airline = self.ensure_airline(identity)
        if airline.registered:
            raise ValidationError(f"airline {identity} is already registered")
        airline.registered = True
        airline.votes.clear()
        self.state.registered_airlines += 1
        return airline

    def add_vote(self, candidate: Identity, voter: Identity) -> int:
        """Record ``voter`` for ``candidate`` and return the vote count."""
        self._require_data_write()
        airline = self.ensure_airline(candidate)
        if voter in airline.votes:
            raise ValidationError(f"{voter} already voted for {candidate}")
        airline.votes.add(voter)
        return len(airline.votes)

    def add_funding(self, identity: Identity, amount: Amount) -> Amount:
        self._require_data_write()
        if amount <= 0:
            raise ValidationError("funding amount must be positive")
        airline = self.ensure_airline(identity)
        airline.funding_contribution += amount
        return airline.funding_contribution

    # ------------------------------------------------------------------
    # Flights
    # ------------------------------------------------------------------

    def add_flight(self, key: FlightKey) -> Flight:
        self._require_data_write()
        if key in self.state.flights:
            raise ValidationError(f"flight {key} is already registered")
        flight = Flight(key=key)
        self.state.flights[key] = flight
        return flight

    def set_flight_status(self, key: FlightKey, status: FlightStatus) -> Flight:
        """Write the terminal status of a flight. Write-once."""
        self._require_data_write()
        flight = self.state.flights.get(key)
        if flight is None:
            raise ValidationError(f"flight {key} is not registered")
        if flight.finalized:
            raise ValidationError(f"flight {key} status is already final")
        flight.status = status
        flight.finalized = True
        return flight

    # ------------------------------------------------------------------
    # Policies and credits
    # ------------------------------------------------------------------

    def add_policy(self, policy: InsurancePolicy) -> InsurancePolicy:
        self._require_data_write()
        pkey = (policy.passenger, policy.flight_key)
        if pkey in self.state.policies:
            raise ValidationError(f"{policy.passenger} already insured flight {policy.flight_key}")
        self.state.policies[pkey] = policy
        self.state.insurees.setdefault(policy.flight_key, []).append(policy.passenger)
        return policy

    def mark_credited(self, passenger: Identity, key: FlightKey) -> InsurancePolicy:
        self._require_data_write()
        policy = self.state.policies[(passenger, key)]
        if policy.payout_credited:
            raise ValidationError(f"policy of {passenger} on {key} already paid out")
        policy.payout_credited = True
        return policy

    def credit(self, passenger: Identity, amount: Amount) -> Amount:
        self._require_data_write()
        if amount <= 0:
            raise ValidationError("credit amount must be positive")
        balance = self.state.credits.get(passenger, 0) + amount
        self.state.credits[passenger] = balance
        return balance

    def debit(self, passenger: Identity, amount: Amount) -> Amount:
        self._require_data_write()
        if amount <= 0:
            raise ValidationError("withdrawal amount must be positive")
        balance = self.state.credits.get(passenger, 0)
        if amount > balance:
            raise FundingError(f"insufficient credit: balance {balance}, requested {amount}")
        self.state.credits[passenger] = balance - amount
        return balance - amount


class LedgerStore:
    """Owner of the committed :class:`LedgerState`."""

    def __init__(
        self,
        control: OperationalControl,
        events: Optional[EventLog] = None,
        state: Optional[LedgerState] = None,
    ) -> None:
        self.control = control
        self.events = events if events is not None else EventLog()
        self._state = state if state is not None else LedgerState()
        self._lock = threading.RLock()

    @property
    def snapshot(self) -> LedgerState:
        """Latest committed state. Treat as read-only."""
        return self._state

    @contextmanager
    def transaction(self, caller: Optional[Identity] = None) -> Iterator[Transaction]:
        """Run one operation atomically against a private copy of the state."""
        with self._lock:
            txn = Transaction(copy.deepcopy(self._state), self.control, caller)
            yield txn
            self._state = txn.state
            self.events.append(txn.events)

    # ------------------------------------------------------------------
    # Caller authorization (data owner only)
    # ------------------------------------------------------------------

    def is_authorized_caller(self, caller: Identity) -> bool:
        return caller in self._state.authorized_callers

    def authorize_caller(self, caller: Identity, by: Identity) -> None:
        self._require_data_owner(by)
        with self.transaction() as txn:
            txn.state.authorized_callers.add(caller)
        LOGGER.info("Authorized ledger caller %s", caller)

    def deauthorize_caller(self, caller: Identity, by: Identity) -> None:
        self._require_data_owner(by)
        with self.transaction() as txn:
            txn.state.authorized_callers.discard(caller)
        LOGGER.info("Deauthorized ledger caller %s", caller)

    def _require_data_owner(self, by: Identity) -> None:
        if by != self.control.owner(Layer.DATA):
            raise AuthorizationError(f"{by} does not own the data layer")
        self.control.require_operational(Layer.DATA)


__all__ = ["Transaction", "LedgerStore"]
