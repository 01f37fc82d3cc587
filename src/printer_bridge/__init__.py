"""Printer Bridge - Native print backend for a point-of-sale GUI."""

__version__ = "0.1.0"

from .core import (
    BridgeService,
    CommandName,
    CommandResult,
    CommandServer,
    Config,
    Dispatcher,
    BusType,
    PortInfo,
    list_ports,
    BridgeError,
    ConnectError,
    EnumerationError,
    OpenError,
    ResolutionError,
    TaskFailure,
    WriteError,
)
from .transport import SerialTransport, TcpTransport

__all__ = [
    "BridgeService",
    "CommandName",
    "CommandResult",
    "CommandServer",
    "Config",
    "Dispatcher",
    "BusType",
    "PortInfo",
    "list_ports",
    "SerialTransport",
    "TcpTransport",
    "BridgeError",
    "ConnectError",
    "EnumerationError",
    "OpenError",
    "ResolutionError",
    "TaskFailure",
    "WriteError",
    "__version__",
]
