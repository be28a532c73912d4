"""
UDP receiver service
start() binds the socket, spawns the worker pool and returns a handle without blocking
"""

import logging
import socket
import threading
from typing import List, Optional, Tuple

from .config import DEFAULT_STOP_TIMEOUT, ListenerConfig
from .errors import BindError
from .socket_owner import open_socket
from .workers import RecvFunc, Worker, WorkerPool

logger = logging.getLogger("udp_receiver")

STATUS_READY = "ready"
STATUS_ERROR = "error"
STATUS_STOPPED = "stopped"


class ReceiverHandle:
    """Lifecycle handle for one running receiver"""

    def __init__(self, config: ListenerConfig, log: Optional[logging.Logger] = None):
        self.config = config
        self.log = log or logger
        self.bind_error: Optional[BindError] = None
        self._sock: Optional[socket.socket] = None
        self._address: Optional[Tuple[str, int]] = None
        self._pool: Optional[WorkerPool] = None
        self._stopped = False
        self._lock = threading.Lock()

    @property
    def ready(self) -> bool:
        return self._sock is not None and not self._stopped

    @property
    def address(self) -> Optional[Tuple[str, int]]:
        """Address the socket is actually bound to"""
        return self._address

    @property
    def workers(self) -> List[Worker]:
        if self._pool is None:
            return []
        return list(self._pool.workers)

    def status(self) -> str:
        """Get receiver status: 'ready', 'error' or 'stopped'"""
        with self._lock:
            if self.bind_error is not None:
                return STATUS_ERROR
            if self._stopped:
                return STATUS_STOPPED
            return STATUS_READY

    def alive_workers(self) -> int:
        return self._pool.alive_count() if self._pool else 0

    def _run(self):
        config = self.config
        try:
            self._sock = open_socket(config.bind_address, config.bind_port, self.log)
            self._address = self._sock.getsockname()[:2]
        except BindError as e:
            # Already logged by open_socket; the receiver simply never starts
            self.bind_error = e
            return

        self._pool = WorkerPool(
            self._sock,
            config.on_receive,
            config.worker_count,
            policy=config.read_error_policy,
            backoff=config.read_error_backoff,
            poll_interval=config.poll_interval,
            restart_failed_workers=config.restart_failed_workers,
            log=self.log,
        )
        self._pool.start()

    def stop(self, timeout: float = DEFAULT_STOP_TIMEOUT) -> bool:
        """Stop all workers and close the socket; True if every worker exited in time"""
        with self._lock:
            if self._stopped or self._sock is None:
                return True
            self._stopped = True

        self.log.info("Stopping the receiver service", extra={
            "component": "receiver",
            "event": "stopping",
        })

        clean = self._pool.stop(timeout) if self._pool else True
        self._sock.close()

        if not clean:
            self.log.error("Receiver stopped with workers still running", extra={
                "component": "receiver",
                "event": "error",
                "kind": "stop",
            })
        return clean

    def __enter__(self) -> "ReceiverHandle":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()


def start_from_config(config: ListenerConfig, logger: Optional[logging.Logger] = None) -> ReceiverHandle:
    """Start a receiver described by config; bind failures are logged, never raised"""
    handle = ReceiverHandle(config, logger)
    handle._run()
    return handle


def start(
    bind_address: str,
    bind_port: int,
    worker_count: int,
    on_receive: RecvFunc,
    *,
    logger: Optional[logging.Logger] = None,
    read_error_policy: Optional[str] = None,
    read_error_backoff: Optional[float] = None,
    poll_interval: Optional[float] = None,
    restart_failed_workers: Optional[bool] = None,
) -> ReceiverHandle:
    """
    Start listening for UDP on bind_address:bind_port with worker_count readers.

    Returns immediately. Each received datagram is passed to on_receive on one
    of the worker threads. If the socket cannot be bound the error is logged,
    no worker is started and the returned handle reports status 'error'.

    Keyword options left as None fall back to the environment defaults.
    """
    options = {
        "read_error_policy": read_error_policy,
        "read_error_backoff": read_error_backoff,
        "poll_interval": poll_interval,
        "restart_failed_workers": restart_failed_workers,
    }
    config = ListenerConfig(
        bind_address=bind_address,
        bind_port=bind_port,
        worker_count=worker_count,
        on_receive=on_receive,
        **{key: value for key, value in options.items() if value is not None},
    )
    return start_from_config(config, logger)
