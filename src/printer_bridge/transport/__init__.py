"""
Transport package - Blocking printer transports.

This package provides:
- TcpTransport: Raw TCP (port 9100 style) network printers
- SerialTransport: USB serial and Bluetooth SPP printers, chunked writes
"""

from .tcp_transport import TcpTransport, CONNECT_TIMEOUT, WRITE_TIMEOUT
from .serial_transport import (
    SerialTransport,
    SERIAL_TIMEOUT,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CHUNK_DELAY,
)

__all__ = [
    "TcpTransport",
    "SerialTransport",
    "CONNECT_TIMEOUT",
    "WRITE_TIMEOUT",
    "SERIAL_TIMEOUT",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_CHUNK_DELAY",
]
