"""
Configuration module for the UDP receiver
"""

import os
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field

from .errors import ReadErrorPolicy

def env_bool(key: str, default: bool = False) -> bool:
    """Get boolean value from environment variable"""
    value = os.getenv(key, str(default)).lower()
    return value in ("true", "1", "yes", "on")

# Largest payload a single UDP datagram can carry; most probe messages are 100-200 bytes
MAX_DATAGRAM_SIZE = 65536

DEFAULT_STOP_TIMEOUT = 5.0

# Listener configuration
UDP_BIND = os.getenv("UDP_BIND", "0.0.0.0")
UDP_PORT = int(os.getenv("UDP_PORT", "9514"))
UDP_WORKERS = int(os.getenv("UDP_WORKERS", "4"))

# Read loop configuration
UDP_READ_ERROR_POLICY = os.getenv("UDP_READ_ERROR_POLICY", "retry").lower()
UDP_READ_ERROR_BACKOFF = float(os.getenv("UDP_READ_ERROR_BACKOFF", "0.0"))
UDP_POLL_INTERVAL = float(os.getenv("UDP_POLL_INTERVAL", "1.0"))
UDP_RESTART_FAILED_WORKERS: bool = env_bool("UDP_RESTART_FAILED_WORKERS", False)

# Logging configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")


class ListenerConfig(BaseModel):
    """Immutable listener settings handed to start_from_config()"""

    model_config = ConfigDict(frozen=True, extra="forbid")

    bind_address: str = Field(UDP_BIND, description="IP address to bind, '' for all IPv4 interfaces")
    bind_port: int = Field(UDP_PORT, description="UDP port (0 = ephemeral)")
    worker_count: int = Field(UDP_WORKERS, description="Number of reader threads (0 or less = bind only)")
    on_receive: Callable[[bytes], Any] = Field(..., description="Called once per received datagram")
    read_error_policy: ReadErrorPolicy = Field(UDP_READ_ERROR_POLICY, validate_default=True, description="retry or classify")
    read_error_backoff: float = Field(UDP_READ_ERROR_BACKOFF, ge=0, description="Sleep after a retried read error")
    poll_interval: float = Field(UDP_POLL_INTERVAL, gt=0, description="Internal recv poll in seconds")
    restart_failed_workers: bool = Field(UDP_RESTART_FAILED_WORKERS, description="Replace workers whose callback raised")


def listener_config_from_env(on_receive: Callable[[bytes], Any]) -> ListenerConfig:
    """Build a ListenerConfig from the current environment"""
    return ListenerConfig(
        bind_address=os.getenv("UDP_BIND", UDP_BIND),
        bind_port=int(os.getenv("UDP_PORT", str(UDP_PORT))),
        worker_count=int(os.getenv("UDP_WORKERS", str(UDP_WORKERS))),
        on_receive=on_receive,
        read_error_policy=os.getenv("UDP_READ_ERROR_POLICY", UDP_READ_ERROR_POLICY).lower(),
        read_error_backoff=float(os.getenv("UDP_READ_ERROR_BACKOFF", str(UDP_READ_ERROR_BACKOFF))),
        poll_interval=float(os.getenv("UDP_POLL_INTERVAL", str(UDP_POLL_INTERVAL))),
        restart_failed_workers=env_bool("UDP_RESTART_FAILED_WORKERS", UDP_RESTART_FAILED_WORKERS),
    )
