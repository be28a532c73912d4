"""
Error types for the UDP receiver
Bind failures stop startup; read failures are logged and handled by the read-error policy
"""

import errno
from enum import Enum
from typing import Optional

# errno values after which a socket will never deliver another datagram
PERMANENT_READ_ERRNOS = frozenset({
    errno.EBADF,
    errno.ENOTSOCK,
    errno.EINVAL,
    errno.ENOTCONN,
    errno.ESHUTDOWN,
})


class ReadErrorPolicy(str, Enum):
    """What a worker does after a failed read"""

    RETRY = "retry"        # log and keep reading, whatever the error
    CLASSIFY = "classify"  # stop the worker on permanent errors, retry the rest


class ReceiverError(Exception):
    """Base class for receiver errors"""


class BindError(ReceiverError):
    """The UDP socket could not be opened or bound"""

    def __init__(self, address: str, port: int, cause: BaseException):
        self.address = address
        self.port = port
        self.cause = cause
        super().__init__(f"cannot listen for UDP on {address}:{port}: {cause}")


class ReadError(ReceiverError):
    """A read from the shared socket failed"""

    def __init__(self, cause: OSError):
        self.cause = cause
        self.errno: Optional[int] = cause.errno
        super().__init__(str(cause))

    @property
    def permanent(self) -> bool:
        return self.errno in PERMANENT_READ_ERRNOS
