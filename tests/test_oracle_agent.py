"""Tests for oracle agents over the in-process backend."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from flightsurety.app import FlightSuretyApp
from flightsurety.events import Event, EventCursor, EventType
from flightsurety.nodes.oracle import REPORTABLE_STATUSES, LocalBackend, OracleAgent, random_status
from flightsurety.services.core.config import ETHER
from flightsurety.types import FlightKey, FlightStatus

if TYPE_CHECKING:  # pragma: no cover - typing-only imports
    from pytest_mock.plugin import MockerFixture


def _late(_event: Event) -> int:
    return int(FlightStatus.LATE_AIRLINE)


def _agent(app: FlightSuretyApp, name: str, **kwargs) -> OracleAgent:
    return OracleAgent(name, LocalBackend(app), ETHER, pick_status=_late, **kwargs)


def _wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_random_status_is_a_reportable_code() -> None:
    codes = {random_status(Event(EventType.ORACLE_REQUEST, {})) for _ in range(200)}
    assert codes <= {int(status) for status in REPORTABLE_STATUSES}


def test_register_fetches_indexes(funded_app: FlightSuretyApp) -> None:
    agent = _agent(funded_app, "oracle-1")
    assert agent.register() == (1, 2, 3)
    assert agent.is_listening is True
    assert agent.info().indexes == [1, 2, 3]


def test_register_reuses_existing_registration(funded_app: FlightSuretyApp) -> None:
    funded_app.register_oracle("oracle-1", ETHER)
    agent = _agent(funded_app, "oracle-1")
    assert agent.register() == (1, 2, 3)
    assert funded_app.coordinator.num_oracles() == 1


def test_poll_once_answers_matching_requests(funded_app: FlightSuretyApp, flight: FlightKey) -> None:
    agents = [_agent(funded_app, f"oracle-{i}") for i in range(3)]
    for agent in agents:
        agent.register()
    funded_app.fetch_flight_status(*flight)

    assert [agent.poll_once() for agent in agents] == [1, 1, 0]
    assert agents[2].rejected == 1
    assert funded_app.get_flight_status(*flight) is FlightStatus.LATE_AIRLINE
    request_offset = funded_app.events.filter(EventType.ORACLE_REQUEST)[0].offset
    for agent in agents:
        assert agent.cursor.position > request_offset


def test_poll_once_ignores_already_seen_requests(funded_app: FlightSuretyApp, flight: FlightKey) -> None:
    agent = _agent(funded_app, "oracle-1")
    agent.register()
    funded_app.fetch_flight_status(*flight)

    assert agent.poll_once() == 1
    assert agent.poll_once() == 0
    assert agent.submitted == 1


def test_requests_for_other_indexes_are_ignored(funded_app: FlightSuretyApp, mocker: "MockerFixture") -> None:
    backend = LocalBackend(funded_app)
    spy = mocker.spy(backend, "submit_oracle_response")
    agent = OracleAgent("oracle-1", backend, ETHER, pick_status=_late)
    agent.register()

    event = Event(
        EventType.ORACLE_REQUEST,
        {"index": 7, "airline": "airline-1", "flight": "ND1309", "timestamp": 1},
    )
    assert agent.handle_request(event) is False
    spy.assert_not_called()


def test_invalid_status_is_skipped_not_replayed(funded_app: FlightSuretyApp, flight: FlightKey) -> None:
    agent = OracleAgent("oracle-1", LocalBackend(funded_app), ETHER, pick_status=lambda _event: 0)
    agent.register()
    funded_app.fetch_flight_status(*flight)

    assert agent.poll_once() == 0
    assert agent.rejected == 1
    request_offset = funded_app.events.filter(EventType.ORACLE_REQUEST)[0].offset
    assert agent.cursor.position > request_offset

    assert agent.poll_once() == 0
    assert agent.rejected == 1
    assert funded_app.events.filter(EventType.ORACLE_REPORT) == []


def test_cursor_is_persisted(funded_app: FlightSuretyApp, flight: FlightKey, tmp_path: Path) -> None:
    path = tmp_path / "oracle-1.cursor.json"
    agent = _agent(funded_app, "oracle-1", cursor=EventCursor(path=path))
    agent.register()
    funded_app.fetch_flight_status(*flight)
    agent.poll_once()

    stored = json.loads(path.read_text())
    assert stored["position"] == agent.cursor.position

    # a restarted agent resumes after the request it already answered
    restarted = _agent(funded_app, "oracle-1", cursor=EventCursor(path=path))
    restarted.register()
    assert restarted.poll_once() == 0


def test_stop_token_halts_mid_batch(funded_app: FlightSuretyApp, flight: FlightKey) -> None:
    agent = _agent(funded_app, "oracle-1")
    agent.register()
    funded_app.fetch_flight_status(*flight)

    agent.stop()
    assert agent.stopped is True
    assert agent.poll_once() == 0
    # the unprocessed request is kept for the next run
    request_offset = funded_app.events.filter(EventType.ORACLE_REQUEST)[0].offset
    assert agent.cursor.position == request_offset


def test_background_agents_settle_a_flight(funded_app: FlightSuretyApp, flight: FlightKey) -> None:
    funded_app.buy_insurance(*flight, ETHER, "passenger-1")
    agents = [_agent(funded_app, f"oracle-{i}", poll_interval=0.01) for i in range(3)]
    for agent in agents:
        agent.start()
    try:
        assert _wait_until(lambda: all(agent.is_listening for agent in agents))
        funded_app.fetch_flight_status(*flight)
        assert _wait_until(lambda: bool(funded_app.events.filter(EventType.FLIGHT_STATUS_INFO)))
    finally:
        for agent in agents:
            agent.stop()

    assert funded_app.get_flight_status(*flight) is FlightStatus.LATE_AIRLINE
    assert funded_app.get_funds_balance("passenger-1") == 1_500_000_000_000_000_000
    assert sum(agent.submitted for agent in agents) == 2
    assert all(agent.is_listening is False for agent in agents)


def test_agent_gives_up_on_permanent_registration_errors(app: FlightSuretyApp) -> None:
    agent = OracleAgent("oracle-1", LocalBackend(app), ETHER - 1, poll_interval=0.01)
    agent.start()
    assert _wait_until(lambda: agent._thread is not None and not agent._thread.is_alive())
    assert agent.is_listening is False
    agent.stop()


def test_agent_retries_while_app_is_paused(funded_app: FlightSuretyApp) -> None:
    funded_app.set_operating_status(False, True, "airline-1")
    agent = _agent(funded_app, "oracle-1", poll_interval=0.01)
    agent.start()
    try:
        time.sleep(0.05)
        assert agent.is_listening is False
        funded_app.set_operating_status(True, True, "airline-1")
        assert _wait_until(lambda: agent.is_listening)
    finally:
        agent.stop()
    assert funded_app.coordinator.is_oracle("oracle-1") is True
