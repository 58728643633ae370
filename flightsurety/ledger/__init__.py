"""Ledger state and the atomic transaction wrapper around it."""

from __future__ import annotations

from flightsurety.ledger.state import LedgerState, PolicyKey
from flightsurety.ledger.store import LedgerStore, Transaction

__all__ = ["LedgerState", "PolicyKey", "LedgerStore", "Transaction"]
