"""
Worker pool for the UDP receiver
Each worker reads datagrams from the shared socket and hands them to the receive callback
"""

import logging
import socket
import threading
import time
from typing import Any, Callable, List, Optional

from .config import MAX_DATAGRAM_SIZE
from .errors import ReadError, ReadErrorPolicy

logger = logging.getLogger("udp_receiver")

RecvFunc = Callable[[bytes], Any]

# Reasons a read-dispatch loop returned
EXIT_STOPPED = "stopped"
EXIT_PERMANENT_ERROR = "permanent_error"
EXIT_CALLBACK_FAILED = "callback_failed"

def read_dispatch_loop(
    sock: socket.socket,
    on_receive: RecvFunc,
    stop_event: threading.Event,
    policy: ReadErrorPolicy = ReadErrorPolicy.RETRY,
    backoff: float = 0.0,
    log: Optional[logging.Logger] = None,
) -> str:
    """
    Read datagrams from sock until stop_event is set.

    Every datagram is received into a buffer private to this loop and passed
    to on_receive as bytes of exactly the received length. Read errors are
    logged and handled according to policy. Exceptions raised by on_receive
    are not caught here.
    """
    log = log or logger
    buf = bytearray(MAX_DATAGRAM_SIZE)
    view = memoryview(buf)

    while not stop_event.is_set():
        try:
            nbytes, _addr = sock.recvfrom_into(buf)
        except socket.timeout:
            continue
        except OSError as e:
            if stop_event.is_set():
                break
            error = ReadError(e)
            log.error(str(error), extra={
                "component": "worker",
                "event": "error",
                "kind": "recv",
                "errno": error.errno,
            })
            if policy is ReadErrorPolicy.CLASSIFY and error.permanent:
                return EXIT_PERMANENT_ERROR
            if backoff > 0:
                stop_event.wait(backoff)
            continue

        on_receive(bytes(view[:nbytes]))

    return EXIT_STOPPED


class Worker:
    """One reader thread of the pool"""

    def __init__(self, index: int, pool: "WorkerPool", restarts: int = 0):
        self.index = index
        self.restarts = restarts
        self.failure: Optional[BaseException] = None
        self.exit_reason: Optional[str] = None
        self._pool = pool
        self._thread = threading.Thread(
            target=self.run,
            daemon=True,
            name=f"udp-worker-{index}",
        )

    @property
    def name(self) -> str:
        return self._thread.name

    def start(self):
        self._thread.start()

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def join(self, timeout: Optional[float] = None):
        # A callback may stop the receiver from its own worker thread
        if self._thread is threading.current_thread():
            return
        self._thread.join(timeout)

    def run(self):
        pool = self._pool
        try:
            self.exit_reason = read_dispatch_loop(
                pool.sock,
                pool.on_receive,
                pool.stop_event,
                policy=pool.policy,
                backoff=pool.backoff,
                log=pool.log,
            )
        except Exception as e:
            self.failure = e
            self.exit_reason = EXIT_CALLBACK_FAILED
            pool.log.error(f"Receive callback failed, {self.name} stopped: {e}", exc_info=True, extra={
                "component": "worker",
                "event": "error",
                "kind": "callback",
            })
            pool.worker_failed(self)
            return

        if self.exit_reason == EXIT_PERMANENT_ERROR:
            pool.log.error(f"{self.name} stopped after a permanent read error", extra={
                "component": "worker",
                "event": "worker_exit",
                "kind": "recv",
            })


class WorkerPool:
    """Fixed-size set of reader threads sharing one UDP socket"""

    def __init__(
        self,
        sock: socket.socket,
        on_receive: RecvFunc,
        worker_count: int,
        policy: ReadErrorPolicy = ReadErrorPolicy.RETRY,
        backoff: float = 0.0,
        poll_interval: float = 1.0,
        restart_failed_workers: bool = False,
        log: Optional[logging.Logger] = None,
    ):
        self.sock = sock
        self.on_receive = on_receive
        self.worker_count = max(worker_count, 0)
        self.policy = ReadErrorPolicy(policy)
        self.backoff = backoff
        self.poll_interval = poll_interval
        self.restart_failed_workers = restart_failed_workers
        self.log = log or logger
        self.stop_event = threading.Event()
        self.workers: List[Worker] = []
        self._lock = threading.Lock()

    def start(self):
        """Spawn the workers without waiting for them"""
        # Reads wake up at this interval to notice stop requests
        self.sock.settimeout(self.poll_interval)

        with self._lock:
            for i in range(self.worker_count):
                worker = Worker(i, self)
                self.workers.append(worker)
                worker.start()

        self.log.info("Worker pool started", extra={
            "component": "worker_pool",
            "event": "started",
            "worker_count": self.worker_count,
        })

    def worker_failed(self, worker: Worker):
        """Replace a worker whose callback raised, when restarts are enabled"""
        if not self.restart_failed_workers or self.stop_event.is_set():
            return

        replacement = Worker(worker.index, self, restarts=worker.restarts + 1)
        with self._lock:
            if self.workers[worker.index] is not worker:
                return
            self.workers[worker.index] = replacement
        replacement.start()

        self.log.info(f"Restarted {replacement.name}", extra={
            "component": "worker_pool",
            "event": "worker_restarted",
            "restarts": replacement.restarts,
        })

    def alive_count(self) -> int:
        with self._lock:
            return sum(1 for w in self.workers if w.is_alive())

    def stop(self, timeout: float = 5.0) -> bool:
        """Ask every worker to stop and wait up to timeout; True if all exited"""
        self.stop_event.set()
        deadline = time.monotonic() + timeout

        with self._lock:
            workers = list(self.workers)
        for worker in workers:
            worker.join(max(deadline - time.monotonic(), 0))

        return not any(w.is_alive() for w in workers)
