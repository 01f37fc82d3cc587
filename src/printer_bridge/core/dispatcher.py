"""
Command dispatcher - the boundary between the GUI shell and the bridge.

Maps command names to async handlers, marshals their arguments, runs the
blocking work on a worker thread and converts every failure into a
human-readable message. dispatch() never raises for a bad command; the
caller always receives a CommandResult.
"""

import base64
import binascii
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from printer_bridge.core.logging import get_logger
from printer_bridge.core.ports import list_ports
from printer_bridge.core.task import run_blocking
from printer_bridge.core.utils import BridgeError, format_address, validate_tcp_port
from printer_bridge.transport.serial_transport import SerialTransport
from printer_bridge.transport.tcp_transport import TcpTransport

logger = get_logger()


class CommandName(str, Enum):
    """Commands the GUI shell may invoke."""

    TCP_PRINT = "tcp_print_escpos"
    LIST_PORTS = "serial_list_ports"
    SERIAL_PRINT = "serial_print_escpos"


@dataclass
class CommandResult:
    """
    Outcome of one dispatched command.

    Attributes:
        ok: True if the command succeeded.
        value: The command's return value (None for print commands).
        error: Human-readable error message when ok is False.
    """

    ok: bool
    value: Any = None
    error: str | None = None

    @classmethod
    def success(cls, value: Any = None) -> "CommandResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "CommandResult":
        return cls(ok=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        return {"ok": self.ok, "result": self.value, "error": self.error}


class InvalidArgumentsError(BridgeError):
    """Raised when a command's arguments are missing or malformed."""

    pass


def decode_payload(data: Any) -> bytes:
    """
    Convert a payload argument to bytes.

    Accepts bytes-like objects, a list of integers 0-255 (as sent by the
    GUI shell) or a base64 string.

    Raises:
        InvalidArgumentsError: If the payload cannot be converted.
    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)

    if isinstance(data, str):
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidArgumentsError(f"data is not valid base64: {e}") from e

    if isinstance(data, (list, tuple)):
        if any(isinstance(b, bool) or not isinstance(b, int) for b in data):
            raise InvalidArgumentsError("data must contain only integers")
        try:
            return bytes(data)
        except ValueError as e:
            raise InvalidArgumentsError(f"data values must be in range 0-255: {e}") from e

    raise InvalidArgumentsError(
        f"data must be bytes, a list of integers or base64 text, got {type(data).__name__}"
    )


def _require_str(args: dict[str, Any], key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentsError(f"'{key}' must be a non-empty string")
    return value


def _require_int(args: dict[str, Any], key: str) -> int:
    value = args.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentsError(f"'{key}' must be an integer")
    return value


def _require_payload(args: dict[str, Any]) -> bytes:
    if "data" not in args:
        raise InvalidArgumentsError("'data' is required")
    return decode_payload(args["data"])


Handler = Callable[[dict[str, Any]], Awaitable[Any]]


class Dispatcher:
    """
    Explicit mapping from CommandName to handler.

    Each handler owns its inputs and runs the transport on its own worker
    thread, so concurrent commands share no state.
    """

    def __init__(
        self,
        tcp_transport: TcpTransport | None = None,
        serial_transport: SerialTransport | None = None,
    ):
        self.tcp_transport = tcp_transport or TcpTransport()
        self.serial_transport = serial_transport or SerialTransport()

        self.handlers: dict[CommandName, Handler] = {
            CommandName.TCP_PRINT: self.tcp_print,
            CommandName.LIST_PORTS: self.serial_list_ports,
            CommandName.SERIAL_PRINT: self.serial_print,
        }

    async def dispatch(
        self, name: str | CommandName, args: dict[str, Any] | None = None
    ) -> CommandResult:
        """
        Run a command and return its result.

        Args:
            name: Command name (string or CommandName).
            args: Keyword arguments for the command.

        Returns:
            A CommandResult. Failures are reported in its error field.
        """
        try:
            command = CommandName(name)
        except ValueError:
            logger.warning(f"Unknown command: {name!r}")
            return CommandResult.failure(f"Unknown command: {name}")

        if args is None:
            args = {}
        if not isinstance(args, dict):
            return CommandResult.failure(f"Invalid arguments for {command.value}: expected an object")

        try:
            value = await self.handlers[command](args)
        except InvalidArgumentsError as e:
            logger.warning(f"Invalid arguments for {command.value}: {e}")
            return CommandResult.failure(f"Invalid arguments for {command.value}: {e}")
        except BridgeError as e:
            logger.error(f"{command.value} failed: {e}")
            return CommandResult.failure(str(e))
        except Exception as e:
            logger.exception(f"Unexpected error in {command.value}: {e}")
            return CommandResult.failure(f"{command.value} failed: {e}")

        logger.debug(f"{command.value} completed")
        return CommandResult.success(value)

    async def tcp_print(self, args: dict[str, Any]) -> None:
        host = _require_str(args, "host")
        port = _require_int(args, "port")
        try:
            validate_tcp_port(port)
        except ValueError as e:
            raise InvalidArgumentsError(str(e)) from e
        data = _require_payload(args)

        logger.info(f"Printing {len(data)} bytes to {format_address(host, port)}")
        await run_blocking("Print", self.tcp_transport.send, host, port, data)

    async def serial_list_ports(self, args: dict[str, Any]) -> list[dict[str, Any]]:
        ports = await run_blocking("List ports", list_ports)
        return [port.to_dict() for port in ports]

    async def serial_print(self, args: dict[str, Any]) -> None:
        port = _require_str(args, "port")
        baud_rate = _require_int(args, "baud_rate")
        if baud_rate <= 0:
            raise InvalidArgumentsError(f"'baud_rate' must be positive, got {baud_rate}")
        data = _require_payload(args)

        logger.info(f"Printing {len(data)} bytes to {port} at {baud_rate} baud")
        await run_blocking("Print", self.serial_transport.send, port, baud_rate, data)
