"""Shared fixtures for FlightSurety tests.

Index draws are random by construction, so most tests use an index
generator that hands every oracle indexes ``(1, 2, 3)`` and dispatches
every request to index ``1``.
"""

from __future__ import annotations

from typing import Tuple

import pytest

from flightsurety.app import FlightSuretyApp
from flightsurety.consensus.indexes import IndexGenerator
from flightsurety.services.core.config import ETHER, Settings
from flightsurety.types import FlightKey


class FixedIndexGenerator(IndexGenerator):
    """Deterministic stand-in for :class:`IndexGenerator`."""

    def __init__(self, oracle_indexes: Tuple[int, ...] = (1, 2, 3), request_index: int = 1) -> None:
        super().__init__()
        self.oracle_indexes = oracle_indexes
        self.request_index = request_index

    def draw(self, identity: str, nonce: int) -> int:
        return self.request_index

    def draw_distinct(self, identity: str, nonce: int, count: int = 3) -> Tuple[int, ...]:
        return self.oracle_indexes


@pytest.fixture
def settings() -> Settings:
    """Default settings, independent of the process environment."""
    return Settings(_env_file=None)


@pytest.fixture
def fixed_indexes() -> FixedIndexGenerator:
    return FixedIndexGenerator()


@pytest.fixture
def app(settings: Settings, fixed_indexes: FixedIndexGenerator) -> FlightSuretyApp:
    """Fresh app whose first airline is ``airline-1`` (not yet funded)."""
    return FlightSuretyApp("airline-1", settings=settings, index_generator=fixed_indexes)


@pytest.fixture
def funded_app(app: FlightSuretyApp) -> FlightSuretyApp:
    app.fund("airline-1", 10 * ETHER)
    return app


@pytest.fixture
def flight(funded_app: FlightSuretyApp) -> FlightKey:
    """Flight ``ND1309`` of ``airline-1`` registered on ``funded_app``."""
    return funded_app.register_flight("airline-1", "ND1309", 1_700_000_000)


@pytest.fixture
def oracles(funded_app: FlightSuretyApp) -> Tuple[str, ...]:
    """Three registered oracles, all holding indexes (1, 2, 3)."""
    names = ("oracle-1", "oracle-2", "oracle-3")
    for name in names:
        funded_app.register_oracle(name, ETHER)
    return names
