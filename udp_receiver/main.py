"""
Standalone UDP receiver process
Reads settings from the environment and logs every datagram it receives
"""

import logging
import signal
import threading

from .config import DEFAULT_STOP_TIMEOUT, listener_config_from_env
from .logging_config import setup_logging
from .service import start_from_config

logger = logging.getLogger("udp_receiver")

def log_datagram(data: bytes):
    """Default receive callback: log the payload"""
    logger.debug("UDP datagram received", extra={
        "component": "receiver",
        "event": "datagram_received",
        "bytes": len(data),
        "payload": data.decode("utf-8", errors="replace"),
    })

def main() -> int:
    setup_logging()
    config = listener_config_from_env(log_datagram)
    handle = start_from_config(config)
    if handle.bind_error is not None:
        return 1

    shutdown = threading.Event()
    signal.signal(signal.SIGTERM, lambda signum, frame: shutdown.set())
    try:
        while not shutdown.is_set():
            shutdown.wait(5)
    except KeyboardInterrupt:
        pass
    finally:
        handle.stop(DEFAULT_STOP_TIMEOUT)
    return 0
