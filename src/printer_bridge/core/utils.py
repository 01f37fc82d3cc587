"""
Utility functions and error types for the printer bridge.

This module provides the exception hierarchy shared by the transports, the
port enumerator and the dispatcher, plus small helpers for chunking payloads
and formatting targets.
"""

from collections.abc import Iterator


class BridgeError(Exception):
    """Base error for all printer bridge failures."""

    pass


class ResolutionError(BridgeError):
    """Raised when a printer host cannot be resolved to a socket address."""

    pass


class ConnectError(BridgeError):
    """Raised when a TCP connection to the printer cannot be established."""

    pass


class OpenError(BridgeError):
    """Raised when a serial port cannot be opened."""

    pass


class WriteError(BridgeError):
    """Raised when writing a payload to a printer fails."""

    pass


class EnumerationError(BridgeError):
    """Raised when the operating system serial port query fails."""

    pass


class TaskFailure(BridgeError):
    """Raised when a worker thread fails with an unexpected exception."""

    pass


def iter_chunks(data: bytes, size: int) -> Iterator[bytes]:
    """
    Split a payload into consecutive chunks.

    Args:
        data: The payload to split.
        size: Maximum chunk size in bytes.

    Yields:
        Slices of at most `size` bytes, in order. An empty payload yields nothing.

    Raises:
        ValueError: If size is not positive.

    Example:
        >>> [len(c) for c in iter_chunks(bytes(1025), 512)]
        [512, 512, 1]
    """
    if size <= 0:
        raise ValueError(f"Chunk size must be positive, got {size}")

    view = memoryview(data)
    for offset in range(0, len(view), size):
        yield bytes(view[offset:offset + size])


def format_address(host: str, port: int) -> str:
    """Format a host and port as 'host:port', bracketing IPv6 literals."""
    if ":" in host and not host.startswith("["):
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def validate_tcp_port(port: int) -> int:
    """
    Check that a TCP port number is within 0-65535.

    Raises:
        ValueError: If the port is out of range or not an integer.
    """
    if isinstance(port, bool) or not isinstance(port, int):
        raise ValueError(f"Port must be an integer, got {port!r}")
    if not 0 <= port <= 65535:
        raise ValueError(f"Port must be between 0 and 65535, got {port}")
    return port
