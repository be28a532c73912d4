"""
Socket owner for the UDP receiver
Opens the single UDP socket that every worker reads from
"""

import ipaddress
import logging
import socket
from typing import Optional

from .errors import BindError

logger = logging.getLogger("udp_receiver")

def _address_family(bind_address: str) -> int:
    # '' binds every IPv4 interface, same as an unparsed address did before
    if bind_address == "":
        return socket.AF_INET
    ip = ipaddress.ip_address(bind_address)
    return socket.AF_INET6 if ip.version == 6 else socket.AF_INET

def open_socket(bind_address: str, bind_port: int, log: Optional[logging.Logger] = None) -> socket.socket:
    """Open a UDP socket bound to bind_address:bind_port, raising BindError on failure"""
    log = log or logger

    log.info(f"Starting the receiver service listening for UDP on {bind_address}:{bind_port}", extra={
        "component": "socket_owner",
        "event": "starting",
        "port": bind_port,
    })

    sock = None
    try:
        sock = socket.socket(_address_family(bind_address), socket.SOCK_DGRAM)
        sock.bind((bind_address, bind_port))
    except (OSError, ValueError, OverflowError, TypeError) as e:
        if sock is not None:
            sock.close()
        error = BindError(bind_address, bind_port, e)
        log.error(str(error), extra={
            "component": "socket_owner",
            "event": "error",
            "kind": "bind",
        })
        raise error from e

    host, port = sock.getsockname()[:2]
    log.info("UDP socket bound", extra={
        "component": "socket_owner",
        "event": "bind_ready",
        "addr": f"{host}:{port}",
    })
    return sock
