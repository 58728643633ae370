"""FlightSurety nodes (oracle agents and the oracle server)."""

from __future__ import annotations

from .oracle import LocalBackend, OracleAgent, OracleBackend, OracleInfo, random_status  # noqa: F401
from .server import OracleServer  # noqa: F401

__all__ = [
    "LocalBackend",
    "OracleAgent",
    "OracleBackend",
    "OracleInfo",
    "OracleServer",
    "random_status",
]
