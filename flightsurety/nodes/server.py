"""Oracle server: a fleet of oracle agents plus a read-only HTTP status page."""

from __future__ import annotations

import http.server
import logging
import socketserver
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from flightsurety.events import EventCursor
from flightsurety.logger.oracleLogger import OracleLogger
from flightsurety.nodes.oracle import OracleAgent, OracleBackend, StatusPicker, random_status
from flightsurety.services.json import JSONable

LOGGER = logging.getLogger(__name__)


class _StatusHTTPServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True


class OracleServer:
    """Runs one :class:`OracleAgent` per account and reports their state."""

    def __init__(
        self,
        backend: OracleBackend,
        accounts: Iterable[str],
        fee: int,
        *,
        poll_interval: float = 1.0,
        cursor_dir: Optional[str] = None,
        pick_status: StatusPicker = random_status,
        log_dir: Optional[str] = None,
        console: bool = False,
    ) -> None:
        self.backend = backend
        self.fee = fee
        self.agents: List[OracleAgent] = []
        for account in accounts:
            cursor_path = Path(cursor_dir) / f"{account}.cursor.json" if cursor_dir else None
            log_file = str(Path(log_dir) / f"{account}_oracle.log") if log_dir else None
            self.agents.append(
                OracleAgent(
                    account,
                    backend,
                    fee,
                    logger=OracleLogger(account, log_file=log_file, console=console),
                    cursor=EventCursor(path=cursor_path),
                    pick_status=pick_status,
                    poll_interval=poll_interval,
                )
            )
        self.jsonable = JSONable()
        self.server: Optional[socketserver.TCPServer] = None
        self.server_thread: Optional[threading.Thread] = None
        self.running = False

    # ------------------------------------------------------------------
    # Agents
    # ------------------------------------------------------------------

    def start_agents(self) -> None:
        for agent in self.agents:
            agent.start()
        LOGGER.info("Started %s oracle agents", len(self.agents))

    def stop_agents(self) -> None:
        for agent in self.agents:
            agent.stop()
        LOGGER.info("Stopped %s oracle agents", len(self.agents))

    def status(self) -> Dict[str, Any]:
        """Summary served at ``GET /``."""
        active = [agent.info() for agent in self.agents if agent.is_listening]
        inactive = [agent.info() for agent in self.agents if not agent.is_listening]
        return {
            "totalOracles": len(self.agents),
            "activeCount": len(active),
            "inactiveCount": len(inactive),
            "activeOracles": self.jsonable._to_jsonable(active),
            "inactiveOracles": self.jsonable._to_jsonable(inactive),
        }

    def health(self) -> Dict[str, Any]:
        """Backend health served at ``GET /health``."""
        return self.backend.health_check()

    # ---------------------------------------------------------------------
    # Web server
    # ---------------------------------------------------------------------

    def start(self, host: str = "0.0.0.0", port: int = 3000) -> None:
        """Start the HTTP status server (if not already running)."""
        if self.running:
            return

        class _Handler(http.server.BaseHTTPRequestHandler):  # noqa: D401
            def __init__(self, *args, oracle_server: "OracleServer", **kwargs):
                self.oracle_server = oracle_server
                super().__init__(*args, **kwargs)

            def _json(self, obj: Any, code: int = 200) -> None:  # noqa: ANN401
                payload = self.oracle_server.jsonable.dumps(obj).encode()
                self.send_response(code)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(payload)))
                self.send_header("Access-Control-Allow-Origin", "*")
                self.end_headers()
                self.wfile.write(payload)

            def do_GET(self):  # noqa: N802
                if self.path in ("/", ""):
                    self._json(self.oracle_server.status())
                elif self.path == "/health":
                    self._json(self.oracle_server.health())
                else:
                    self._json({"error": "not found"}, 404)

            def log_message(self, format, *args):  # noqa: A002
                LOGGER.debug("status server: " + format, *args)

        def _factory(*args, **kwargs):  # type: ignore[ann-type]
            return _Handler(*args, oracle_server=self, **kwargs)

        self.server = _StatusHTTPServer((host, port), _factory)
        self.server_thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.server_thread.start()
        self.running = True
        LOGGER.info("Oracle status server listening on %s:%s", *self.server.server_address[:2])

    @property
    def port(self) -> Optional[int]:
        return self.server.server_address[1] if self.server else None

    def stop(self) -> None:
        if not self.running or self.server is None:
            return
        self.server.shutdown()
        self.server.server_close()
        if self.server_thread:
            self.server_thread.join(timeout=2)
        self.running = False
        self.server = None
        self.server_thread = None
        LOGGER.info("Oracle status server stopped")


__all__ = ["OracleServer"]
