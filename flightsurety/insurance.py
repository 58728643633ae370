"""Insurance underwriting and payout ledger."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Optional

from flightsurety.control import Layer
from flightsurety.errors import FundingError, TransferError, ValidationError
from flightsurety.events import EventType
from flightsurety.ledger.store import LedgerStore, Transaction
from flightsurety.types import Amount, FlightKey, FlightStatus, Identity, InsurancePolicy

LOGGER = logging.getLogger(__name__)

PayoutTransfer = Callable[[Identity, Amount], None]

PAYOUT_MULTIPLIER = Decimal("1.5")


def payout_amount(amount_paid: Amount, multiplier: Decimal = PAYOUT_MULTIPLIER) -> Amount:
    """Return the credit owed for a policy, rounded down to whole wei."""
    return int(Decimal(amount_paid) * multiplier)


class InsuranceEngine:
    """Sells policies, credits insurees and pays out withdrawals."""

    def __init__(
        self,
        store: LedgerStore,
        *,
        payout_multiplier: Decimal = PAYOUT_MULTIPLIER,
        max_insurance: Optional[Amount] = None,
        transfer: Optional[PayoutTransfer] = None,
        contract: Optional[Identity] = None,
    ) -> None:
        self._store = store
        self.payout_multiplier = Decimal(payout_multiplier)
        self.max_insurance = max_insurance
        self._transfer = transfer
        self._contract = contract

    def buy_insurance(
        self,
        airline: Identity,
        flight: str,
        timestamp: int,
        amount: Amount,
        passenger: Identity,
    ) -> InsurancePolicy:
        """Insure ``passenger`` on a registered, not yet final flight."""
        self._store.control.require_operational(Layer.APP)
        if amount <= 0:
            raise ValidationError("insurance amount must be positive")
        if self.max_insurance is not None and amount > self.max_insurance:
            raise ValidationError(f"insurance amount capped at {self.max_insurance}")

        key = FlightKey(airline, flight, int(timestamp))
        with self._store.transaction(self._contract) as txn:
            record = txn.state.flights.get(key)
            if record is None:
                raise ValidationError(f"flight {key} is not registered")
            if record.finalized:
                raise ValidationError(f"flight {key} already has a final status")
            policy = txn.add_policy(InsurancePolicy(passenger=passenger, flight_key=key, amount_paid=amount))
            txn.emit(
                EventType.INSURANCE_PURCHASED,
                passenger=passenger,
                airline=airline,
                flight=flight,
                timestamp=key.timestamp,
                amount=amount,
            )
        LOGGER.info("%s insured %s for %s", passenger, key, amount)
        return InsurancePolicy(passenger, key, policy.amount_paid, policy.payout_credited)

    def credit_insurees(self, txn: Transaction, key: FlightKey, status: FlightStatus) -> int:
        """Finalize hook: credit every uncredited policy on an airline delay.

        Runs inside the coordinator's finalize transaction. Returns the number
        of policies credited.
        """
        if status is not FlightStatus.LATE_AIRLINE:
            return 0
        credited = 0
        for passenger in txn.state.insurees.get(key, []):
            policy = txn.state.policies[(passenger, key)]
            if policy.payout_credited:
                continue
            amount = payout_amount(policy.amount_paid, self.payout_multiplier)
            txn.mark_credited(passenger, key)
            balance = txn.credit(passenger, amount)
            txn.emit(
                EventType.INSUREE_CREDITED,
                passenger=passenger,
                airline=key.airline,
                flight=key.flight,
                timestamp=key.timestamp,
                amount=amount,
                balance=balance,
            )
            credited += 1
        LOGGER.info("Credited %s insurees of %s", credited, key)
        return credited

    def get_funds_balance(self, passenger: Identity) -> Amount:
        return self._store.snapshot.credits.get(passenger, 0)

    def get_policy(self, passenger: Identity, airline: Identity, flight: str, timestamp: int) -> Optional[InsurancePolicy]:
        policy = self._store.snapshot.policies.get((passenger, FlightKey(airline, flight, int(timestamp))))
        if policy is None:
            return None
        return InsurancePolicy(policy.passenger, policy.flight_key, policy.amount_paid, policy.payout_credited)

    def withdraw(self, amount: Amount, passenger: Identity) -> Amount:
        """Debit ``passenger``'s credit, then run the external transfer.

        The debit is committed before the transfer starts. A failed transfer
        raises :class:`TransferError` and the balance is not restored.
        """
        self._store.control.require_operational(Layer.APP)
        if amount <= 0:
            raise ValidationError("withdrawal amount must be positive")
        with self._store.transaction(self._contract) as txn:
            if amount > txn.state.credits.get(passenger, 0):
                raise FundingError(f"{passenger} cannot withdraw {amount}")
            balance = txn.debit(passenger, amount)
            txn.emit(EventType.WITHDRAWAL, passenger=passenger, amount=amount, balance=balance)

        if self._transfer is not None:
            try:
                self._transfer(passenger, amount)
            except Exception as exc:
                LOGGER.error("Payout transfer of %s to %s failed: %s", amount, passenger, exc)
                raise TransferError(f"transfer of {amount} to {passenger} failed") from exc
        LOGGER.info("%s withdrew %s (remaining %s)", passenger, amount, balance)
        return balance


__all__ = ["PAYOUT_MULTIPLIER", "PayoutTransfer", "InsuranceEngine", "payout_amount"]
