"""Consensus package for FlightSurety.

Provides the airline vote and oracle response quorum helpers, the
unpredictable index derivation and the oracle request coordinator.
"""

from __future__ import annotations

from .quorum import (
    MULTIPARTY_MIN_AIRLINES,
    has_response_quorum,
    has_vote_quorum,
    needs_multiparty_vote,
    required_vote_count,
)
from .indexes import DEFAULT_INDEX_SPACE, INDEXES_PER_ORACLE, IndexGenerator
from .coordinator import FinalizeHook, OracleCoordinator, parse_status

__all__ = [
    "MULTIPARTY_MIN_AIRLINES",
    "has_response_quorum",
    "has_vote_quorum",
    "needs_multiparty_vote",
    "required_vote_count",
    "DEFAULT_INDEX_SPACE",
    "INDEXES_PER_ORACLE",
    "IndexGenerator",
    "FinalizeHook",
    "OracleCoordinator",
    "parse_status",
]
