"""
TCP transport for network receipt printers.

Sends an already-encoded ESC/POS payload to a raw TCP printer port
(usually 9100). Each call opens exactly one connection, writes the whole
payload and closes the connection; nothing is reused between calls.
"""

import socket

from printer_bridge.core.logging import get_logger, log_payload_sent
from printer_bridge.core.utils import (
    ConnectError,
    ResolutionError,
    WriteError,
    format_address,
    validate_tcp_port,
)

logger = get_logger()

CONNECT_TIMEOUT = 3.0  # seconds
WRITE_TIMEOUT = 3.0  # seconds


class TcpTransport:
    """
    Blocking TCP printer transport.

    Resolve, connect, write and close all happen inside send(), so the
    caller is expected to run it on a worker thread.
    """

    def __init__(
        self,
        connect_timeout: float = CONNECT_TIMEOUT,
        write_timeout: float = WRITE_TIMEOUT,
    ):
        """
        Initialize the transport.

        Args:
            connect_timeout: Seconds to wait for the TCP handshake.
            write_timeout: Seconds a single blocking send may stall.
        """
        self.connect_timeout = connect_timeout
        self.write_timeout = write_timeout

    def resolve(self, host: str, port: int) -> tuple:
        """
        Resolve a host and port to the first stream socket address.

        Returns:
            A (family, type, proto, sockaddr) tuple.

        Raises:
            ResolutionError: If the host cannot be resolved to any address.
        """
        try:
            infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
        except (socket.gaierror, UnicodeError) as e:
            raise ResolutionError(f"Unable to resolve host {format_address(host, port)}: {e}") from e

        if not infos:
            raise ResolutionError(f"Unable to resolve host {format_address(host, port)}")

        family, socktype, proto, _, sockaddr = infos[0]
        return family, socktype, proto, sockaddr

    def send(self, host: str, port: int, data: bytes) -> None:
        """
        Send a payload to a TCP printer.

        Args:
            host: Printer hostname or IP address.
            port: Printer TCP port (0-65535).
            data: The payload. It is sent as-is.

        Raises:
            ValueError: If the port is out of range.
            ResolutionError: If the host cannot be resolved.
            ConnectError: If the connection is refused or times out.
            WriteError: If the payload cannot be written completely.
        """
        validate_tcp_port(port)
        target = format_address(host, port)
        family, socktype, proto, sockaddr = self.resolve(host, port)

        logger.debug(f"Connecting to {target} ({sockaddr[0]})")
        sock = socket.socket(family, socktype, proto)
        try:
            sock.settimeout(self.connect_timeout)
            try:
                sock.connect(sockaddr)
            except TimeoutError as e:
                raise ConnectError(
                    f"TCP connect failed ({target}): timed out after {self.connect_timeout}s"
                ) from e
            except OSError as e:
                raise ConnectError(f"TCP connect failed ({target}): {e}") from e

            # Socket options are best effort; some stacks reject them.
            try:
                sock.settimeout(self.write_timeout)
                sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            except OSError as e:
                logger.debug(f"Could not apply socket options for {target}: {e}")

            try:
                sock.sendall(data)
            except OSError as e:
                raise WriteError(f"TCP write failed ({target}): {e}") from e

            logger.verbose(f"Raw TCP data sent to {target}: {data!r}")
            log_payload_sent(target, data)

            self._flush(sock, target)
        finally:
            sock.close()

        logger.info(f"Sent {len(data)} bytes to {target}")

    def _flush(self, sock: socket.socket, target: str) -> None:
        """
        Signal end of stream to the printer.

        The payload has already been written at this point, so a failure here
        is logged and never raised.
        """
        try:
            sock.shutdown(socket.SHUT_WR)
        except OSError as e:
            logger.warning(f"TCP flush failed ({target}), data was already sent: {e}")
