import logging
import socket
import time
from typing import Callable, Optional

logger = logging.getLogger("krops.pipe")

PROBE_TTL = 30.0


def probe(host: str, port: int = 443, timeout: float = 3.0) -> bool:
    """True if a TCP connection to the AI endpoint can be opened."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError as e:
        logger.info("[Network] %s:%d unreachable: %s", host, port, e)
        return False


class ConnectivityMonitor:
    """Online/offline signal for the pipeline gate.

    A probe result is reused for ``ttl`` seconds so repeated scans do not
    each pay for a TCP handshake.
    """

    def __init__(self, host: str, ttl: float = PROBE_TTL, clock: Callable[[], float] = time.monotonic):
        self.host = host
        self.ttl = ttl
        self.clock = clock
        self._online: Optional[bool] = None
        self._checked_at = 0.0

    def __call__(self) -> bool:
        now = self.clock()
        if self._online is None or now - self._checked_at >= self.ttl:
            self._online = probe(self.host)
            self._checked_at = now
        return self._online
