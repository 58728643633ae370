"""FlightSurety application facade.

Wires the ledger store, operational control, governance, oracle
coordinator and insurance engine together and exposes the entry points used
by wallets, the oracle server and the CLI. Every mutating call is gated on
the application layer switch; data-layer writes are further gated on the
data layer switch inside the store.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from flightsurety.consensus.coordinator import OracleCoordinator
from flightsurety.consensus.indexes import IndexGenerator
from flightsurety.control import Layer, OperationalControl
from flightsurety.errors import ValidationError
from flightsurety.events import EventLog, EventType
from flightsurety.governance import GovernanceEngine
from flightsurety.insurance import InsuranceEngine, PayoutTransfer
from flightsurety.ledger.store import LedgerStore
from flightsurety.services.core.config import Settings, get_settings
from flightsurety.types import (
    Amount,
    FlightKey,
    FlightStatus,
    Identity,
    InsurancePolicy,
    OracleRequest,
    RegistrationResult,
    ResponseOutcome,
)

LOGGER = logging.getLogger(__name__)

APP_CONTRACT = "flightsurety-app"


class FlightSuretyApp:
    """Single entry point over the consensus and ledger engine."""

    def __init__(
        self,
        first_airline: Identity,
        *,
        app_owner: Optional[Identity] = None,
        data_owner: Optional[Identity] = None,
        settings: Optional[Settings] = None,
        index_generator: Optional[IndexGenerator] = None,
        transfer: Optional[PayoutTransfer] = None,
        events: Optional[EventLog] = None,
        contract: Identity = APP_CONTRACT,
    ) -> None:
        cfg = settings or get_settings()
        self.settings = cfg
        self.contract = contract
        # The first airline steers the application switch unless told otherwise.
        self.control = OperationalControl(
            app_owner=app_owner or first_airline,
            data_owner=data_owner or first_airline,
        )
        self.store = LedgerStore(self.control, events=events)
        self.governance = GovernanceEngine(
            self.store,
            funding_threshold=cfg.funding_threshold,
            vote_ratio=cfg.vote_ratio,
            multiparty_min_airlines=cfg.multiparty_min_airlines,
            contract=contract,
        )
        self.insurance = InsuranceEngine(
            self.store,
            payout_multiplier=cfg.payout_multiplier,
            max_insurance=cfg.max_insurance,
            transfer=transfer,
            contract=contract,
        )
        self.coordinator = OracleCoordinator(
            self.store,
            registration_fee=cfg.registration_fee,
            min_responses=cfg.min_responses,
            index_generator=index_generator or IndexGenerator(space=cfg.index_space),
            request_ttl=cfg.request_ttl,
            on_finalize=self.insurance.credit_insurees,
            contract=contract,
        )

        with self.store.transaction() as txn:
            txn.state.authorized_callers.add(contract)
            self.governance.register_genesis(txn, first_airline)
        self.first_airline = first_airline
        LOGGER.info("FlightSurety initialised with first airline %s", first_airline)

    @property
    def events(self) -> EventLog:
        return self.store.events

    @property
    def REGISTRATION_FEE(self) -> Amount:  # noqa: N802
        return self.coordinator.registration_fee

    # ------------------------------------------------------------------
    # Operational control
    # ------------------------------------------------------------------

    def is_operational(self) -> bool:
        return self.control.is_operational(Layer.APP)

    def is_data_operational(self) -> bool:
        return self.control.is_operational(Layer.DATA)

    def set_operating_status(self, mode: bool, is_app: bool, caller: Identity) -> None:
        """Pause or resume one layer; only that layer's owner may do so."""
        layer = Layer.APP if is_app else Layer.DATA
        if self.control.set_operating_status(mode, layer, caller):
            with self.store.transaction() as txn:
                txn.emit(EventType.OPERATING_STATUS_CHANGED, layer=layer.value, mode=mode, caller=caller)

    def authorize_caller(self, contract: Identity, caller: Identity) -> None:
        self.store.authorize_caller(contract, by=caller)

    def deauthorize_caller(self, contract: Identity, caller: Identity) -> None:
        self.store.deauthorize_caller(contract, by=caller)

    def is_authorized_caller(self, contract: Identity) -> bool:
        return self.store.is_authorized_caller(contract)

    # ------------------------------------------------------------------
    # Airlines
    # ------------------------------------------------------------------

    def is_registered_airline(self, airline: Identity) -> bool:
        return self.governance.is_registered_airline(airline)

    def get_airline_funding_contribution(self, airline: Identity) -> Amount:
        return self.governance.get_airline_funding_contribution(airline)

    def get_num_registered_airlines(self) -> int:
        return self.governance.get_num_registered_airlines()

    def register_airline(self, candidate: Identity, caller: Identity) -> RegistrationResult:
        return self.governance.register_airline(candidate, caller)

    def fund(self, airline: Identity, amount: Amount) -> Amount:
        return self.governance.fund(airline, amount)

    # ------------------------------------------------------------------
    # Flights
    # ------------------------------------------------------------------

    def register_flight(self, airline: Identity, flight: str, timestamp: int) -> FlightKey:
        """Register a flight for a registered, funded airline."""
        self.control.require_operational(Layer.APP)
        if not flight:
            raise ValidationError("flight code must not be empty")
        key = FlightKey(airline, flight, int(timestamp))
        with self.store.transaction(self.contract) as txn:
            self.governance.require_funded(txn, airline)
            txn.add_flight(key)
            txn.emit(EventType.FLIGHT_REGISTERED, airline=airline, flight=flight, timestamp=key.timestamp)
        LOGGER.info("Registered flight %s", key)
        return key

    def is_registered_flight(self, airline: Identity, flight: str, timestamp: int) -> bool:
        return FlightKey(airline, flight, int(timestamp)) in self.store.snapshot.flights

    def get_flight_status(self, airline: Identity, flight: str, timestamp: int) -> FlightStatus:
        record = self.store.snapshot.flights.get(FlightKey(airline, flight, int(timestamp)))
        if record is None:
            raise ValidationError(f"flight {airline}:{flight}@{timestamp} is not registered")
        return record.status

    # ------------------------------------------------------------------
    # Oracles
    # ------------------------------------------------------------------

    def register_oracle(self, oracle: Identity, fee: Amount) -> Tuple[int, ...]:
        return self.coordinator.register_oracle(oracle, fee)

    def get_my_indexes(self, oracle: Identity) -> Tuple[int, ...]:
        return self.coordinator.get_my_indexes(oracle)

    def fetch_flight_status(
        self,
        airline: Identity,
        flight: str,
        timestamp: int,
        requester: Optional[Identity] = None,
    ) -> int:
        return self.coordinator.fetch_flight_status(airline, flight, timestamp, requester)

    def get_request(self, airline: Identity, flight: str, timestamp: int) -> Optional[OracleRequest]:
        return self.coordinator.get_request(airline, flight, timestamp)

    def submit_oracle_response(
        self,
        index: int,
        airline: Identity,
        flight: str,
        timestamp: int,
        status_code: int,
        responder: Identity,
    ) -> ResponseOutcome:
        return self.coordinator.submit_oracle_response(index, airline, flight, timestamp, status_code, responder)

    # ------------------------------------------------------------------
    # Insurance
    # ------------------------------------------------------------------

    def buy_insurance(
        self,
        airline: Identity,
        flight: str,
        timestamp: int,
        amount: Amount,
        passenger: Identity,
    ) -> InsurancePolicy:
        return self.insurance.buy_insurance(airline, flight, timestamp, amount, passenger)

    def get_policy(
        self, passenger: Identity, airline: Identity, flight: str, timestamp: int
    ) -> Optional[InsurancePolicy]:
        return self.insurance.get_policy(passenger, airline, flight, timestamp)

    def get_funds_balance(self, passenger: Identity) -> Amount:
        return self.insurance.get_funds_balance(passenger)

    def withdraw(self, amount: Amount, passenger: Identity) -> Amount:
        return self.insurance.withdraw(amount, passenger)


__all__ = ["APP_CONTRACT", "FlightSuretyApp"]
