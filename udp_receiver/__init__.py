"""
Concurrent UDP receiver
One UDP socket shared by a fixed pool of reader threads, each passing datagrams to a callback
"""

from .config import MAX_DATAGRAM_SIZE, ListenerConfig
from .errors import BindError, ReadError, ReadErrorPolicy, ReceiverError
from .service import ReceiverHandle, start, start_from_config

__version__ = "0.1.0"

__all__ = [
    "MAX_DATAGRAM_SIZE",
    "BindError",
    "ListenerConfig",
    "ReadError",
    "ReadErrorPolicy",
    "ReceiverError",
    "ReceiverHandle",
    "start",
    "start_from_config",
]
