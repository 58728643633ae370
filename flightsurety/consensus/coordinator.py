"""Oracle consensus coordinator.

Oracles register once and receive three private indexes. A status request
for a flight is dispatched to one randomly drawn index; only oracles holding
that index may answer. Each accepted response is tallied per status code and
the request finalizes the moment one code collects ``min_responses``
distinct responders. Tally, threshold check and finalization run inside one
ledger transaction, so concurrent submissions never both finalize and no
response is counted twice.
"""

from __future__ import annotations

import copy
import logging
import time
from typing import Callable, Optional, Tuple

from flightsurety.consensus.indexes import IndexGenerator
from flightsurety.consensus.quorum import has_response_quorum
from flightsurety.control import Layer
from flightsurety.errors import (
    AuthorizationError,
    ConsensusError,
    FundingError,
    ValidationError,
)
from flightsurety.events import EventType
from flightsurety.ledger.store import LedgerStore, Transaction
from flightsurety.types import (
    Amount,
    FlightKey,
    FlightStatus,
    Identity,
    OracleNode,
    OracleRequest,
    RequestState,
    ResponseOutcome,
)

LOGGER = logging.getLogger(__name__)

FinalizeHook = Callable[[Transaction, FlightKey, FlightStatus], None]


def parse_status(status_code: int) -> FlightStatus:
    """Convert a reported code to :class:`FlightStatus`.

    ``UNKNOWN`` is not an observation and cannot be reported.
    """
    try:
        status = FlightStatus(int(status_code))
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"unknown status code {status_code!r}") from exc
    if status is FlightStatus.UNKNOWN:
        raise ValidationError("oracles cannot report an unknown status")
    return status


class OracleCoordinator:
    """Registers oracles, dispatches requests and tallies responses."""

    def __init__(
        self,
        store: LedgerStore,
        *,
        registration_fee: Amount,
        min_responses: int = 2,
        index_generator: Optional[IndexGenerator] = None,
        request_ttl: Optional[float] = None,
        on_finalize: Optional[FinalizeHook] = None,
        contract: Optional[Identity] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if min_responses <= 0:
            raise ValueError("min_responses must be positive")
        self._store = store
        self.registration_fee = registration_fee
        self.min_responses = min_responses
        self.indexes = index_generator or IndexGenerator()
        self.request_ttl = request_ttl
        self._on_finalize = on_finalize
        self._contract = contract
        self._clock = clock

    # ------------------------------------------------------------------
    # Oracle registry
    # ------------------------------------------------------------------

    def register_oracle(self, oracle: Identity, fee: Amount) -> Tuple[int, ...]:
        """Register ``oracle`` for ``fee`` and assign its indexes."""
        self._store.control.require_operational(Layer.APP)
        if fee < self.registration_fee:
            raise FundingError(f"registration fee is {self.registration_fee}, got {fee}")
        with self._store.transaction(self._contract) as txn:
            if oracle in txn.state.oracles:
                raise ValidationError(f"oracle {oracle} is already registered")
            indexes = self.indexes.draw_distinct(oracle, txn.next_nonce())
            txn.state.oracles[oracle] = OracleNode(identity=oracle, indexes=indexes)
            txn.emit(EventType.ORACLE_REGISTERED, oracle=oracle)
        LOGGER.info("Registered oracle %s", oracle)
        return indexes

    def is_oracle(self, oracle: Identity) -> bool:
        node = self._store.snapshot.oracles.get(oracle)
        return node is not None and node.active

    def get_my_indexes(self, oracle: Identity) -> Tuple[int, ...]:
        node = self._store.snapshot.oracles.get(oracle)
        if node is None or not node.active:
            raise AuthorizationError(f"{oracle} is not a registered oracle")
        return node.indexes

    def num_oracles(self) -> int:
        return sum(1 for node in self._store.snapshot.oracles.values() if node.active)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def _expired(self, request: OracleRequest) -> bool:
        if self.request_ttl is None:
            return False
        return self._clock() - request.opened_at >= self.request_ttl

    def fetch_flight_status(
        self,
        airline: Identity,
        flight: str,
        timestamp: int,
        requester: Optional[Identity] = None,
    ) -> int:
        """Open a status request and return its dispatch index."""
        self._store.control.require_operational(Layer.APP)
        key = FlightKey(airline, flight, int(timestamp))
        with self._store.transaction(self._contract) as txn:
            record = txn.state.flights.get(key)
            if record is None:
                raise ValidationError(f"flight {key} is not registered")
            if record.finalized:
                raise ValidationError(f"flight {key} already has a final status")

            live = txn.state.requests.get(key)
            if live is not None:
                if not self._expired(live):
                    raise ValidationError(f"flight {key} already has a pending request")
                live.state = RequestState.EXPIRED
                txn.state.closed_requests[(live.index, key)] = RequestState.EXPIRED
                del txn.state.requests[key]
                LOGGER.info("Request for %s on index %s expired", key, live.index)

            index = self.indexes.draw(requester or airline, txn.next_nonce())
            txn.state.requests[key] = OracleRequest(
                index=index,
                flight_key=key,
                requester=requester,
                opened_at=self._clock(),
            )
            txn.emit(
                EventType.ORACLE_REQUEST,
                index=index,
                airline=airline,
                flight=flight,
                timestamp=key.timestamp,
            )
        LOGGER.info("Dispatched status request for %s to index %s", key, index)
        return index

    def get_request(self, airline: Identity, flight: str, timestamp: int) -> Optional[OracleRequest]:
        """Return a copy of the live request for a flight, if any."""
        request = self._store.snapshot.requests.get(FlightKey(airline, flight, int(timestamp)))
        return copy.deepcopy(request) if request is not None else None

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def submit_oracle_response(
        self,
        index: int,
        airline: Identity,
        flight: str,
        timestamp: int,
        status_code: int,
        responder: Identity,
    ) -> ResponseOutcome:
        """Record one oracle's answer; finalize when the threshold is met."""
        self._store.control.require_operational(Layer.APP)
        key = FlightKey(airline, flight, int(timestamp))

        with self._store.transaction(self._contract) as txn:
            node = txn.state.oracles.get(responder)
            if node is None or not node.active or index not in node.indexes:
                raise ConsensusError(f"index {index} is not assigned to {responder}")

            request = txn.state.requests.get(key)
            if request is None or request.index != index:
                closed = txn.state.closed_requests.get((index, key))
                if closed is RequestState.FINALIZED:
                    final = txn.state.flights[key].status
                    raise ConsensusError(f"request for {key} is already finalized as {final.name}")
                if closed is RequestState.EXPIRED:
                    raise ConsensusError(f"request for {key} on index {index} has expired")
                raise ConsensusError(f"no pending request for {key} on index {index}")
            if self._expired(request):
                raise ConsensusError(f"request for {key} on index {index} has expired")
            if responder in request.responders:
                raise ConsensusError(f"{responder} already responded to the request for {key}")
            status = parse_status(status_code)

            voters = request.tally.setdefault(int(status), set())
            voters.add(responder)
            txn.emit(
                EventType.ORACLE_REPORT,
                airline=airline,
                flight=flight,
                timestamp=key.timestamp,
                status=int(status),
                oracle=responder,
            )

            finalized = has_response_quorum(voters, min_responses=self.min_responses)
            if finalized:
                self._finalize(txn, request, status)
            outcome = ResponseOutcome(
                flight_key=key,
                index=index,
                status=status,
                count=len(voters),
                finalized=finalized,
            )
        return outcome

    def _finalize(self, txn: Transaction, request: OracleRequest, status: FlightStatus) -> None:
        key = request.flight_key
        del txn.state.requests[key]
        txn.state.closed_requests[(request.index, key)] = RequestState.FINALIZED

        txn.set_flight_status(key, status)
        if self._on_finalize is not None:
            self._on_finalize(txn, key, status)
        txn.emit(
            EventType.FLIGHT_STATUS_INFO,
            airline=key.airline,
            flight=key.flight,
            timestamp=key.timestamp,
            status=int(status),
        )
        LOGGER.info("Flight %s finalized as %s", key, status.name)


__all__ = ["FinalizeHook", "OracleCoordinator", "parse_status"]
