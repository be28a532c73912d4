# tests/conftest.py
import logging
import socket
import threading
import time
import uuid

import pytest

from udp_receiver.logging_config import MemoryLogHandler

# Short poll so stop() returns quickly in tests
POLL_INTERVAL = 0.05

class Recorder:
    """Receive callback that records every datagram and tracks concurrency"""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.received = []
        self.threads = set()
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def __call__(self, data: bytes):
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            with self._lock:
                self.received.append(bytes(data))
                self.threads.add(threading.current_thread().name)
        finally:
            with self._lock:
                self.in_flight -= 1

    def wait_for(self, count: int, timeout: float = 5.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            with self._lock:
                if len(self.received) >= count:
                    return True
            time.sleep(0.01)
        return False

def wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()

def send_udp(address, *payloads: bytes):
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
        for payload in payloads:
            s.sendto(payload, address)

@pytest.fixture
def recorder():
    return Recorder()

@pytest.fixture
def memory_handler():
    return MemoryLogHandler()

@pytest.fixture
def test_logger(memory_handler):
    """Isolated logger whose records land in memory_handler"""
    log = logging.getLogger(f"udp_receiver.test.{uuid.uuid4().hex}")
    log.setLevel(logging.DEBUG)
    log.propagate = False
    log.addHandler(memory_handler)
    yield log
    log.removeHandler(memory_handler)

@pytest.fixture
def busy_port():
    """A loopback UDP port that is already bound"""
    holder = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    holder.bind(("127.0.0.1", 0))
    yield holder.getsockname()[1]
    holder.close()
