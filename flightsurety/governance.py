"""Airline governance: registration quorum and funding.

The first airline is registered at genesis. While fewer than
``MULTIPARTY_MIN_AIRLINES`` airlines are registered, any registered and
funded airline can register another one directly. After that a candidate
needs votes from at least half of the registered airlines and is admitted
the moment the last required vote lands.
"""

from __future__ import annotations

import logging
from typing import Optional

from flightsurety.consensus.quorum import (
    MULTIPARTY_MIN_AIRLINES,
    has_vote_quorum,
    needs_multiparty_vote,
    required_vote_count,
)
from flightsurety.control import Layer
from flightsurety.errors import AuthorizationError, FundingError, ValidationError
from flightsurety.events import EventType
from flightsurety.ledger.store import LedgerStore, Transaction
from flightsurety.types import Amount, Identity, RegistrationResult

LOGGER = logging.getLogger(__name__)


class GovernanceEngine:
    """Applies the airline registration and funding rules."""

    def __init__(
        self,
        store: LedgerStore,
        *,
        funding_threshold: Amount,
        vote_ratio: float = 0.5,
        multiparty_min_airlines: int = MULTIPARTY_MIN_AIRLINES,
        contract: Optional[Identity] = None,
    ) -> None:
        self._store = store
        self.funding_threshold = funding_threshold
        self.vote_ratio = vote_ratio
        self.multiparty_min_airlines = multiparty_min_airlines
        self._contract = contract

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def is_registered_airline(self, airline: Identity) -> bool:
        record = self._store.snapshot.airlines.get(airline)
        return bool(record and record.registered)

    def get_airline_funding_contribution(self, airline: Identity) -> Amount:
        record = self._store.snapshot.airlines.get(airline)
        return record.funding_contribution if record else 0

    def is_funded_airline(self, airline: Identity) -> bool:
        return self.get_airline_funding_contribution(airline) >= self.funding_threshold

    def get_num_registered_airlines(self) -> int:
        return self._store.snapshot.registered_airlines

    def get_votes(self, candidate: Identity) -> int:
        record = self._store.snapshot.airlines.get(candidate)
        return len(record.votes) if record else 0

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def require_funded(self, txn: Transaction, airline: Identity) -> None:
        """Raise unless ``airline`` is registered and has met the threshold."""
        record = txn.state.airlines.get(airline)
        if record is None or not record.registered:
            raise AuthorizationError(f"{airline} is not a registered airline")
        if record.funding_contribution < self.funding_threshold:
            raise FundingError(
                f"{airline} contributed {record.funding_contribution}, needs {self.funding_threshold}"
            )

    def register_genesis(self, txn: Transaction, airline: Identity) -> None:
        """Register the first airline unconditionally."""
        if txn.state.registered_airlines:
            raise ValidationError("genesis airline already registered")
        txn.mark_registered(airline)
        txn.emit(EventType.AIRLINE_REGISTERED, airline=airline, votes=0)

    def register_airline(self, candidate: Identity, caller: Identity) -> RegistrationResult:
        """Register ``candidate`` or record ``caller``'s vote for it."""
        self._store.control.require_operational(Layer.APP)
        with self._store.transaction(self._contract) as txn:
            self.require_funded(txn, caller)
            existing = txn.state.airlines.get(candidate)
            if existing is not None and existing.registered:
                raise ValidationError(f"{candidate} is already registered")

            registered_count = txn.state.registered_airlines
            if not needs_multiparty_vote(registered_count, self.multiparty_min_airlines):
                txn.mark_registered(candidate)
                txn.emit(EventType.AIRLINE_REGISTERED, airline=candidate, votes=1)
                result = RegistrationResult(candidate, True, votes=1, required=1)
            else:
                required = required_vote_count(registered_count, self.vote_ratio)
                votes = txn.add_vote(candidate, caller)
                txn.emit(EventType.AIRLINE_VOTED, airline=candidate, voter=caller, votes=votes)
                admitted = has_vote_quorum(
                    txn.state.airlines[candidate].votes,
                    num_registered=registered_count,
                    ratio=self.vote_ratio,
                )
                if admitted:
                    txn.mark_registered(candidate)
                    txn.emit(EventType.AIRLINE_REGISTERED, airline=candidate, votes=votes)
                result = RegistrationResult(candidate, admitted, votes=votes, required=required)

        if result.registered:
            LOGGER.info("Airline %s registered (%s/%s votes)", candidate, result.votes, result.required)
        else:
            LOGGER.info("Airline %s has %s/%s votes", candidate, result.votes, result.required)
        return result

    def fund(self, airline: Identity, amount: Amount) -> Amount:
        """Add ``amount`` to ``airline``'s cumulative contribution."""
        self._store.control.require_operational(Layer.APP)
        if amount <= 0:
            raise ValidationError("funding amount must be positive")
        with self._store.transaction(self._contract) as txn:
            total = txn.add_funding(airline, amount)
            txn.emit(EventType.AIRLINE_FUNDED, airline=airline, amount=amount, total=total)
        LOGGER.info("Airline %s funded %s (total %s)", airline, amount, total)
        return total


__all__ = ["GovernanceEngine"]
