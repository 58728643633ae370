from __future__ import annotations

"""CLI for running FlightSurety oracles and local simulations.

Usage examples:
    python -m flightsurety.cli serve --local --oracles 20 --port 3000
    python -m flightsurety.cli serve --network localhost --config ./config.json
    python -m flightsurety.cli simulate --oracles 20 --status 20

``serve`` starts the oracle agents and the status HTTP server, ``simulate``
runs one insured flight end to end in-process and prints a JSON summary.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional
import argparse
import json
import logging
import threading
import time

from .app import FlightSuretyApp
from .events import EventType
from .logger.oracleLogger import OracleLogger
from .nodes.oracle import LocalBackend, OracleAgent, random_status
from .nodes.server import OracleServer
from .services.core.config import ETHER, Settings, get_settings

LOGGER = logging.getLogger(__name__)

FIRST_AIRLINE = "airline-1"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments.

    Returns:
        Parsed arguments as a namespace.
    """
    parser = argparse.ArgumentParser(description="FlightSurety oracle server and simulator.")
    parser.add_argument("--log-level", dest="log_level", default=None,
                        help="Logging level (defaults to FLIGHTSURETY_LOG_LEVEL)")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run oracle agents and the status server")
    serve.add_argument("--local", action="store_true",
                       help="Serve against an in-process ledger instead of a web3 network")
    serve.add_argument("--network", dest="network", default=None,
                       help="Network entry to use from the network config file")
    serve.add_argument("--config", dest="config", type=Path, default=None,
                       help="Path to a config.json keyed by network name")
    serve.add_argument("--oracles", dest="oracles", type=int, default=None,
                       help="Number of oracle agents to start")
    serve.add_argument("--host", dest="host", default=None, help="Status server host")
    serve.add_argument("--port", dest="port", type=int, default=None, help="Status server port")
    serve.add_argument("--console", action="store_true", help="Echo oracle logs to the console")

    simulate = sub.add_parser("simulate", help="Run one insured flight end to end")
    simulate.add_argument("--oracles", dest="oracles", type=int, default=None,
                          help="Number of oracle agents")
    simulate.add_argument("--status", dest="status", type=int, default=None,
                          help="Status every oracle reports (random when omitted)")
    simulate.add_argument("--amount", dest="amount", type=int, default=ETHER,
                          help="Premium paid by the passenger, in wei")
    simulate.add_argument("--out", dest="output", type=Path, default=None,
                          help="Also write the JSON summary to this file")
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run_simulation(
    settings: Settings,
    *,
    oracles: Optional[int] = None,
    status: Optional[int] = None,
    amount: int = ETHER,
) -> Dict[str, Any]:
    """Insure one flight, let the oracles settle it and withdraw any payout."""
    app = FlightSuretyApp(FIRST_AIRLINE, settings=settings)
    app.fund(FIRST_AIRLINE, settings.funding_threshold)

    flight, timestamp = "ND1309", int(time.time())
    passenger = "passenger-1"
    app.register_flight(FIRST_AIRLINE, flight, timestamp)
    app.buy_insurance(FIRST_AIRLINE, flight, timestamp, amount, passenger)

    pick_status = random_status if status is None else (lambda _event: status)
    backend = LocalBackend(app)
    count = oracles if oracles is not None else settings.oracle_count
    offset = settings.oracle_account_offset
    agents = [
        OracleAgent(f"oracle-{i}", backend, app.REGISTRATION_FEE, pick_status=pick_status)
        for i in range(offset, offset + count)
    ]
    for agent in agents:
        agent.register()

    index = app.fetch_flight_status(FIRST_AIRLINE, flight, timestamp)
    for agent in agents:
        agent.poll_once()

    final_status = app.get_flight_status(FIRST_AIRLINE, flight, timestamp)
    credited = app.get_funds_balance(passenger)
    if credited:
        app.withdraw(credited, passenger)

    return {
        "flight": f"{FIRST_AIRLINE}:{flight}@{timestamp}",
        "index": index,
        "oracles": count,
        "responders": sum(agent.submitted for agent in agents),
        "rejected": sum(agent.rejected for agent in agents),
        "finalized": bool(app.events.filter(EventType.FLIGHT_STATUS_INFO)),
        "status": final_status.name,
        "premium": amount,
        "credited": credited,
        "balance": app.get_funds_balance(passenger),
    }


def _local_server(settings: Settings, count: int, console: bool) -> OracleServer:
    app = FlightSuretyApp(FIRST_AIRLINE, settings=settings)
    app.fund(FIRST_AIRLINE, settings.funding_threshold)
    offset = settings.oracle_account_offset
    return OracleServer(
        LocalBackend(app),
        [f"oracle-{i}" for i in range(offset, offset + count)],
        app.REGISTRATION_FEE,
        poll_interval=settings.oracle_poll_interval,
        cursor_dir=settings.oracle_cursor_dir,
        log_dir=settings.log_dir if settings.log_file_enabled else None,
        console=console,
    )


def _network_server(settings: Settings, count: int, console: bool) -> OracleServer:
    # Imported lazily so local runs do not need a reachable node.
    from .services.blockchain_client import ContractBackend

    backend = ContractBackend(
        settings.network_config(),
        OracleLogger("server", console=console),
        private_keys=settings.oracle_private_keys,
        gas=settings.gas,
    )
    offset = settings.oracle_account_offset
    accounts = backend.accounts()[offset:offset + count]
    if len(accounts) < count:
        LOGGER.warning("Only %s accounts available for %s oracles", len(accounts), count)
    return OracleServer(
        backend,
        accounts,
        backend.registration_fee(),
        poll_interval=settings.oracle_poll_interval,
        cursor_dir=settings.oracle_cursor_dir,
        log_dir=settings.log_dir if settings.log_file_enabled else None,
        console=console,
    )


def serve(settings: Settings, args: argparse.Namespace, stop: Optional[threading.Event] = None) -> None:
    """Start agents and the status server, then block until interrupted."""
    count = args.oracles if args.oracles is not None else settings.oracle_count
    if args.local:
        server = _local_server(settings, count, args.console)
    else:
        server = _network_server(settings, count, args.console)

    server.start_agents()
    server.start(args.host or settings.server_host, args.port if args.port is not None else settings.server_port)
    stop = stop or threading.Event()
    try:
        while not stop.wait(1.0):
            pass
    except KeyboardInterrupt:
        LOGGER.info("Interrupted, shutting down")
    finally:
        server.stop()
        server.stop_agents()


def main(argv: Optional[List[str]] = None) -> int:
    """Entrypoint for the CLI script."""
    args = parse_args(argv)
    overrides: Dict[str, Any] = {}
    if getattr(args, "network", None):
        overrides["network"] = args.network
    if getattr(args, "config", None):
        overrides["network_config_path"] = str(args.config)
    settings = get_settings().model_copy(update=overrides) if overrides else get_settings()
    configure_logging(args.log_level or settings.log_level)

    if args.command == "serve":
        serve(settings, args)
        return 0

    summary = run_simulation(settings, oracles=args.oracles, status=args.status, amount=args.amount)
    text = json.dumps(summary, indent=2)
    print(text)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with args.output.open("w", encoding="utf-8") as f:
            f.write(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
