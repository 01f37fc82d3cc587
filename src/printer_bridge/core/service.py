"""
Printer Bridge Service - High-level service management.

This module provides the BridgeService class that combines the command
dispatcher and the command server into one runnable service.
"""

from printer_bridge.core.config import Config
from printer_bridge.core.dispatcher import Dispatcher
from printer_bridge.core.logging import get_logger
from printer_bridge.core.server import CommandServer
from printer_bridge.transport.serial_transport import SerialTransport
from printer_bridge.transport.tcp_transport import TcpTransport

logger = get_logger()


class BridgeService:
    """
    High-level service combining the command server and the dispatcher.

    The service owns no printer connections; every command opens and closes
    its own connection on a worker thread.
    """

    def __init__(
        self,
        dispatcher: Dispatcher | None = None,
        address: str = "127.0.0.1",
        port: int = 8765,
    ):
        """
        Initialize the service.

        Args:
            dispatcher: Dispatcher to use. A default one is created if omitted.
            address: Address to bind the command server to.
            port: Port to listen on.
        """
        self.dispatcher = dispatcher or Dispatcher()
        self.server = CommandServer(
            dispatcher=self.dispatcher,
            address=address,
            port=port,
        )

    @classmethod
    def from_config(cls, config: Config) -> "BridgeService":
        """
        Create a service from a loaded configuration.

        Args:
            config: The merged configuration.

        Returns:
            A configured BridgeService instance.
        """
        dispatcher = Dispatcher(
            tcp_transport=TcpTransport(),
            serial_transport=SerialTransport(
                chunk_size=config.serial.chunk_size,
                chunk_delay=config.chunk_delay_seconds,
            ),
        )
        return cls(
            dispatcher=dispatcher,
            address=config.server.address,
            port=config.server.port,
        )

    async def run(self) -> None:
        """
        Run the service until interrupted.
        """
        try:
            await self.server.serve_forever()
        finally:
            await self.server.stop()

    async def start(self) -> None:
        """
        Start the service without blocking.

        Use this when you want to run the service in the background.
        """
        await self.server.start()

    async def stop(self) -> None:
        """Stop the service."""
        await self.server.stop()

    async def __aenter__(self) -> "BridgeService":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.stop()
