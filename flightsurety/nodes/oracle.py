"""Oracle client agent.

Each agent is an independent actor: it registers its account as an oracle,
fetches its private indexes, then follows the request feed from its own
cursor and answers every request dispatched to one of its indexes. It talks
to the coordinator only through an :class:`OracleBackend`, either the
in-process :class:`LocalBackend` or the web3
:class:`~flightsurety.services.blockchain_client.ContractBackend`.
"""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from flightsurety.app import FlightSuretyApp
from flightsurety.errors import ConsensusError, FlightSuretyError, OperationalError, ValidationError
from flightsurety.events import Event, EventCursor, EventType
from flightsurety.logger.oracleLogger import OracleLogger
from flightsurety.types import FlightStatus

StatusPicker = Callable[[Event], int]

REPORTABLE_STATUSES = (
    FlightStatus.ON_TIME,
    FlightStatus.LATE_AIRLINE,
    FlightStatus.LATE_WEATHER,
    FlightStatus.LATE_TECHNICAL,
)


def random_status(_event: Event) -> int:
    """Pick a plausible status the way a simulated oracle does."""
    return int(random.choice(REPORTABLE_STATUSES))


class OracleBackend(Protocol):
    """Operations an oracle agent needs from the coordinator."""

    def register_oracle(self, oracle: str, fee: int) -> None:  # pragma: no cover
        """Register ``oracle``, paying ``fee``."""

    def get_my_indexes(self, oracle: str) -> Tuple[int, ...]:  # pragma: no cover
        """Return the indexes assigned to ``oracle``."""

    def submit_oracle_response(
        self, index: int, airline: str, flight: str, timestamp: int, status_code: int, oracle: str
    ) -> None:  # pragma: no cover
        """Submit one response; raise :class:`ConsensusError` on rejection."""

    def read_requests(self, cursor: int) -> Tuple[List[Event], int]:  # pragma: no cover
        """Return ``OracleRequest`` events from ``cursor`` on and the next cursor."""

    def health_check(self) -> Dict[str, Any]:  # pragma: no cover
        """Report connectivity and the operating status of both layers."""


class LocalBackend:
    """Backend bound to an in-process :class:`FlightSuretyApp`."""

    def __init__(self, app: FlightSuretyApp) -> None:
        self.app = app

    def register_oracle(self, oracle: str, fee: int) -> None:
        self.app.register_oracle(oracle, fee)

    def get_my_indexes(self, oracle: str) -> Tuple[int, ...]:
        return self.app.get_my_indexes(oracle)

    def submit_oracle_response(
        self, index: int, airline: str, flight: str, timestamp: int, status_code: int, oracle: str
    ) -> None:
        self.app.submit_oracle_response(index, airline, flight, timestamp, status_code, oracle)

    def read_requests(self, cursor: int) -> Tuple[List[Event], int]:
        events = self.app.events.read(cursor)
        requests = [event for event in events if event.event_type is EventType.ORACLE_REQUEST]
        return requests, cursor + len(events)

    def health_check(self) -> Dict[str, Any]:
        return {
            "connected": True,
            "app_operational": self.app.is_operational(),
            "data_operational": self.app.is_data_operational(),
            "error": None,
        }


@dataclass
class OracleInfo:
    """Public view of an agent for the status endpoint."""

    account: str
    indexes: List[int]
    isListening: bool  # noqa: N815


class OracleAgent:
    """Background oracle bound to one account."""

    def __init__(
        self,
        account: str,
        backend: OracleBackend,
        fee: int,
        *,
        logger: Optional[OracleLogger] = None,
        cursor: Optional[EventCursor] = None,
        pick_status: StatusPicker = random_status,
        poll_interval: float = 1.0,
    ) -> None:
        self.account = account
        self.backend = backend
        self.fee = fee
        self.logger = logger or OracleLogger(account)
        self.cursor = cursor or EventCursor()
        self.pick_status = pick_status
        self.poll_interval = poll_interval

        self.indexes: Tuple[int, ...] = ()
        self.is_listening = False
        self.submitted = 0
        self.rejected = 0

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def register(self) -> Tuple[int, ...]:
        """Register the account and fetch its indexes."""
        try:
            self.backend.register_oracle(self.account, self.fee)
            self.logger.success("registered oracle")
        except ValidationError:
            self.logger.info("already registered, reusing assigned indexes")
        return self.update_indexes()

    def update_indexes(self) -> Tuple[int, ...]:
        self.indexes = tuple(int(i) for i in self.backend.get_my_indexes(self.account))
        self.is_listening = True
        self.logger.info(f"updated oracle indexes {list(self.indexes)}")
        return self.indexes

    def start(self) -> None:
        """Start the background subscription loop."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=f"oracle-{self.account}", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop; responses already submitted are kept."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
        self.is_listening = False

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def poll_once(self) -> int:
        """Process every new request once; return the number of submissions."""
        events, next_cursor = self.backend.read_requests(self.cursor.position)
        submitted = 0
        for event in events:
            if self._stop.is_set():
                # resume from this event next time
                self.cursor.advance(event.offset)
                return submitted
            if self.handle_request(event):
                submitted += 1
        self.cursor.advance(next_cursor)
        return submitted

    def handle_request(self, event: Event) -> bool:
        """Answer ``event`` if it targets one of our indexes."""
        args = event.args
        index = int(args["index"])
        if index not in self.indexes:
            return False

        self.logger.received(f"request {args['flight']}@{args['timestamp']} on index {index}")
        status_code = self.pick_status(event)
        try:
            self.backend.submit_oracle_response(
                index, args["airline"], args["flight"], int(args["timestamp"]), status_code, self.account
            )
        except (ConsensusError, ValidationError) as exc:
            # permanent for this event; skip it instead of replaying the batch
            self.rejected += 1
            self.logger.warning(f"response rejected: {exc}")
            return False
        self.submitted += 1
        self.logger.sent(f"submitted oracle response {status_code}")
        return True

    def _run(self) -> None:
        while not self._stop.is_set() and not self.is_listening:
            try:
                self.register()
            except OperationalError as exc:
                self.logger.warning(f"registration paused: {exc}")
                self._stop.wait(self.poll_interval)
            except FlightSuretyError as exc:
                self.logger.error(f"registration failed: {exc}")
                return
            except Exception as exc:
                self.logger.error(f"registration attempt failed, retrying: {exc}")
                self._stop.wait(self.poll_interval)

        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception as exc:
                self.logger.error(f"error reading request feed: {exc}")
            self._stop.wait(self.poll_interval)

    def info(self) -> OracleInfo:
        return OracleInfo(account=self.account, indexes=list(self.indexes), isListening=self.is_listening)


__all__ = [
    "REPORTABLE_STATUSES",
    "LocalBackend",
    "OracleAgent",
    "OracleBackend",
    "OracleInfo",
    "StatusPicker",
    "random_status",
]
