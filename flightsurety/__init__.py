"""FlightSurety package.

Flight delay insurance backed by three cooperating parts:

  - airline governance (registration quorum and funding)
  - oracle consensus (index dispatch and response tallying)
  - the insurance ledger (policies, credits and withdrawals)

``FlightSuretyApp`` wires them over a single atomic ledger store; oracle
agents and the oracle server live under ``flightsurety.nodes``.
"""

from __future__ import annotations

# Domain types
from .types import (  # noqa: F401
    Airline,
    Amount,
    Flight,
    FlightKey,
    FlightStatus,
    Identity,
    InsurancePolicy,
    OracleNode,
    OracleRequest,
    RegistrationResult,
    RequestState,
    ResponseOutcome,
)

# Errors
from .errors import (  # noqa: F401
    AuthorizationError,
    ConsensusError,
    FlightSuretyError,
    FundingError,
    OperationalError,
    TransferError,
    ValidationError,
)

# Events and control
from .events import Event, EventCursor, EventLog, EventType  # noqa: F401
from .control import Layer, OperationalControl  # noqa: F401

# Application
from .app import APP_CONTRACT, FlightSuretyApp  # noqa: F401

__all__ = [
    # core
    "Airline",
    "Amount",
    "Flight",
    "FlightKey",
    "FlightStatus",
    "Identity",
    "InsurancePolicy",
    "OracleNode",
    "OracleRequest",
    "RegistrationResult",
    "RequestState",
    "ResponseOutcome",
    # errors
    "AuthorizationError",
    "ConsensusError",
    "FlightSuretyError",
    "FundingError",
    "OperationalError",
    "TransferError",
    "ValidationError",
    # infra
    "Event",
    "EventCursor",
    "EventLog",
    "EventType",
    "Layer",
    "OperationalControl",
    # app
    "APP_CONTRACT",
    "FlightSuretyApp",
]
