"""Listening port selection."""
import logging
import socket
from typing import Iterable, List

from .errors import PortUnavailableError

logger = logging.getLogger(__name__)


def is_port_available(port: int, host: str = "0.0.0.0") -> bool:
    """Check whether a TCP port can be bound right now.

    The probe socket is always closed before returning.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
            sock.listen(1)
        except OSError as e:
            logger.debug(f"Port {port} unavailable: {e}")
            return False
    return True


class PortNegotiator:
    """Picks the first bindable port from an ordered list of candidates."""

    def __init__(self, candidates: Iterable[int], host: str = "0.0.0.0"):
        self.candidates: List[int] = []
        for port in candidates:
            if port not in self.candidates:
                self.candidates.append(port)
        self.host = host

    def acquire(self) -> int:
        """Return the first available candidate.

        Raises:
            PortUnavailableError: every candidate is busy (or none was given)
        """
        for port in self.candidates:
            if is_port_available(port, self.host):
                logger.info(f"Using port {port}")
                return port
            logger.warning(f"Port {port} busy")
        raise PortUnavailableError(self.candidates)
