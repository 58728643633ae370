import logging
import threading
import time
from typing import Optional

_COLORS = [
    '\033[94m',  # Blue
    '\033[92m',  # Green
    '\033[93m',  # Yellow
    '\033[95m',  # Magenta
    '\033[96m',  # Cyan
    '\033[91m',  # Red
]
_RESET = '\033[0m'


class OracleLogger:
    """Logger for oracle agents with colored terminal output.

    Every entry is forwarded to the ``flightsurety.oracle`` logging channel,
    optionally echoed to the console in the agent's color and appended to a
    per-agent log file.
    """

    def __init__(self, name: str, log_file: Optional[str] = None, console: bool = False) -> None:
        """Initialize the oracle logger.

        Args:
            name: Name of the agent (usually its account address)
            log_file: Optional log file path; nothing is written to disk without it
            console: Echo entries to stdout
        """
        self.name = name
        self.log_file = log_file
        self.console = console
        self.color = _COLORS[sum(name.encode()) % len(_COLORS)]
        self._logger = logging.getLogger("flightsurety.oracle")
        self._lock = threading.Lock()

        if self.log_file:
            try:
                with open(self.log_file, 'w') as f:
                    f.write(f"=== {self.name} Oracle Log ===\n")
                    f.write(f"Started at: {time.strftime('%Y-%m-%d %H:%M:%S')}\n")
                    f.write("=" * 50 + "\n\n")
            except IOError as e:
                self._logger.warning("Could not create log file %s: %s", self.log_file, e)
                self.log_file = None

    def log(self, message: str, level: int = logging.INFO) -> None:
        """Log a message with timestamp.

        Args:
            message: Message to log
            level: Standard logging level for the forwarded record
        """
        self._logger.log(level, "%s: %s", self.name, message)

        timestamp = time.strftime('%H:%M:%S')
        log_entry = f"[{timestamp}] {self.name}: {message}"

        if self.log_file:
            with self._lock:
                try:
                    with open(self.log_file, 'a') as f:
                        f.write(log_entry + "\n")
                except IOError:
                    # Console and logging output still carry the entry
                    pass

        if self.console:
            print(f"{self.color}{log_entry}{_RESET}")

    def error(self, message: str) -> None:
        """Log an error message."""
        self.log(f"❌ ERROR: {message}", logging.ERROR)

    def info(self, message: str) -> None:
        """Log an info message."""
        self.log(f"ℹ️  INFO: {message}")

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.log(f"⚠️  WARNING: {message}", logging.WARNING)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.log(f"🐛 DEBUG: {message}", logging.DEBUG)

    def success(self, message: str) -> None:
        """Log a success message."""
        self.log(f"✅ SUCCESS: {message}")

    def received(self, message: str) -> None:
        """Log a received request."""
        self.log(f"📨 RECEIVED: {message}")

    def sent(self, message: str) -> None:
        """Log a submitted response."""
        self.log(f"📤 SENT: {message}")
