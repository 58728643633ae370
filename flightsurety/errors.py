"""Error taxonomy shared by every FlightSurety operation.

Each mutating operation either commits completely or raises one of these
errors with no state change.
"""

from __future__ import annotations


class FlightSuretyError(Exception):
    """Base class for all ledger errors."""


class ValidationError(FlightSuretyError):
    """Malformed, duplicate or out-of-range input."""


class AuthorizationError(FlightSuretyError):
    """Caller lacks the required role or registration."""


class FundingError(FlightSuretyError):
    """Insufficient contribution, fee or balance."""


class TransferError(FundingError):
    """External payout transfer failed after the ledger was debited."""


class OperationalError(FlightSuretyError):
    """The targeted layer is paused."""


class ConsensusError(FlightSuretyError):
    """Oracle response from an unassigned index, for a missing or closed request."""


__all__ = [
    "FlightSuretyError",
    "ValidationError",
    "AuthorizationError",
    "FundingError",
    "TransferError",
    "OperationalError",
    "ConsensusError",
]
