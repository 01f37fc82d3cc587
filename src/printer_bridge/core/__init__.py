"""
Core package - Contains the bridge infrastructure.

This package provides:
- Utils: Error taxonomy and payload helpers
- Logging: Logging setup and the payload log
- Task: Worker thread offload for blocking I/O
- Ports: Serial port enumeration
- Dispatcher: Command name to handler mapping
- Server: JSON-lines command server
- Service: Service management
- Config: Configuration loading and management
"""

from .utils import (
    BridgeError,
    ConnectError,
    EnumerationError,
    OpenError,
    ResolutionError,
    TaskFailure,
    WriteError,
    iter_chunks,
)
from .logging import get_logger, setup_logging
from .task import run_blocking
from .ports import BusType, PortInfo, list_ports
from .dispatcher import CommandName, CommandResult, Dispatcher
from .server import CommandServer
from .service import BridgeService
from .config import Config

__all__ = [
    "BridgeError",
    "ConnectError",
    "EnumerationError",
    "OpenError",
    "ResolutionError",
    "TaskFailure",
    "WriteError",
    "iter_chunks",
    "get_logger",
    "setup_logging",
    "run_blocking",
    "BusType",
    "PortInfo",
    "list_ports",
    "CommandName",
    "CommandResult",
    "Dispatcher",
    "CommandServer",
    "BridgeService",
    "Config",
]
