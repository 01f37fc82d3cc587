"""
Command server for the printer bridge.

This module provides the async TCP server the GUI shell connects to. Each
line received is a JSON request naming a command; the server dispatches it
and writes back one JSON response line carrying the same request id.

Request:  {"id": 1, "command": "tcp_print_escpos", "args": {"host": ..., "port": ..., "data": [...]}}
Response: {"id": 1, "ok": true, "result": null, "error": null}
"""

import asyncio
import json
import socket
from typing import Any

from printer_bridge.core.dispatcher import CommandResult, Dispatcher
from printer_bridge.core.logging import get_logger

logger = get_logger()

# Largest single request line accepted, large enough for a base64 logo raster
MAX_REQUEST_SIZE = 16 * 1024 * 1024


class CommandServer:
    """
    Async TCP server accepting JSON-lines command requests.

    Every request runs as its own asyncio task, so a slow print never holds
    up other requests on the same or another connection. Responses may
    therefore arrive out of order; clients match them by id.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        address: str = "127.0.0.1",
        port: int = 8765,
    ):
        """
        Initialize the command server.

        Args:
            dispatcher: The Dispatcher that executes commands.
            address: The address to bind the server to.
            port: The port to listen on. 0 picks a free port.
        """
        self.dispatcher = dispatcher
        self.address = address
        self.port = port

        self._server: asyncio.Server | None = None
        self._running = False
        self._active_connections: set[asyncio.Task] = set()
        self._request_tasks: set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running and self._server is not None

    @property
    def bound_port(self) -> int | None:
        """The port actually bound, useful when port 0 was requested."""
        if not self._server or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    async def start(self) -> None:
        """
        Start the TCP server.

        The server will begin accepting connections after this method returns.
        """
        if self._running:
            logger.warning("Server is already running")
            return

        self._server = await asyncio.start_server(
            self._handle_client,
            self.address,
            self.port,
            limit=MAX_REQUEST_SIZE,
        )

        self._running = True

        addrs = ", ".join(str(sock.getsockname()) for sock in self._server.sockets)
        logger.info(f"Printer bridge command server started on {addrs}")

        for sock in self._server.sockets:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

    async def serve_forever(self) -> None:
        """
        Run the server until it is stopped.

        This method blocks until stop() is called.
        """
        if not self._server:
            await self.start()

        if self._server:
            async with self._server:
                await self._server.serve_forever()

    async def stop(self) -> None:
        """
        Stop the server and close all connections.

        In-flight worker threads are not interrupted; they finish on their own.
        """
        self._running = False

        for task in self._active_connections | self._request_tasks:
            task.cancel()

        pending = self._active_connections | self._request_tasks
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        self._active_connections.clear()
        self._request_tasks.clear()

        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

        logger.info("Printer bridge command server stopped")

    async def _handle_client(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        """
        Handle an individual client connection.

        Args:
            reader: The stream reader for the client connection.
            writer: The stream writer for the client connection.
        """
        peername = writer.get_extra_info("peername")
        client_address = peername if peername else ("unknown", 0)

        logger.info(f"Client connected: {client_address}")

        task = asyncio.current_task()
        if task:
            self._active_connections.add(task)

        write_lock = asyncio.Lock()

        try:
            await self._process_client_requests(reader, writer, write_lock, client_address)
        except asyncio.CancelledError:
            logger.info(f"Client connection cancelled: {client_address}")
        except (ConnectionError, asyncio.IncompleteReadError) as e:
            logger.debug(f"Client {client_address} connection closed: {e}")
        finally:
            if task:
                self._active_connections.discard(task)

            try:
                writer.close()
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass

            logger.info(f"Client disconnected: {client_address}")

    async def _process_client_requests(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        write_lock: asyncio.Lock,
        client_address: tuple[str, int],
    ) -> None:
        """
        Read request lines until the client disconnects.

        Args:
            reader: The stream reader for the client connection.
            writer: The stream writer for the client connection.
            write_lock: Serializes response writes on this connection.
            client_address: The client's address tuple.
        """
        pending: set[asyncio.Task] = set()

        while self._running:
            try:
                line = await reader.readuntil(b"\n")
            except asyncio.IncompleteReadError as e:
                # Client closed; a final unterminated line is still a request
                line = e.partial
                if not line.strip():
                    break
            except asyncio.LimitOverrunError:
                logger.warning(f"Request from {client_address} exceeds {MAX_REQUEST_SIZE} bytes")
                await self._write_response(
                    writer, write_lock, None, CommandResult.failure("Request too large")
                )
                break

            if not line.strip():
                continue

            logger.verbose(f"Received request from {client_address}: {line[:200]!r}")

            request_task = asyncio.create_task(
                self._handle_request(line, writer, write_lock, client_address)
            )
            self._request_tasks.add(request_task)
            request_task.add_done_callback(self._request_tasks.discard)
            pending.add(request_task)
            request_task.add_done_callback(pending.discard)

            if reader.at_eof():
                break

        # Answer everything already received before the connection is closed
        if pending:
            await asyncio.wait(pending)

    async def _handle_request(
        self,
        line: bytes,
        writer: asyncio.StreamWriter,
        write_lock: asyncio.Lock,
        client_address: tuple[str, int],
    ) -> None:
        """Parse one request line, dispatch it and write the response."""
        request_id: Any = None
        try:
            request = json.loads(line)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Invalid JSON from {client_address}: {e}")
            result = CommandResult.failure(f"Invalid request: {e}")
        else:
            if not isinstance(request, dict):
                result = CommandResult.failure("Invalid request: expected a JSON object")
            else:
                request_id = request.get("id")
                command = request.get("command")
                logger.debug(f"Dispatching {command!r} (id={request_id!r}) from {client_address}")
                result = await self.dispatcher.dispatch(command, request.get("args"))

        await self._write_response(writer, write_lock, request_id, result)

    async def _write_response(
        self,
        writer: asyncio.StreamWriter,
        write_lock: asyncio.Lock,
        request_id: Any,
        result: CommandResult,
    ) -> None:
        response = {"id": request_id, **result.to_dict()}
        payload = json.dumps(response).encode("utf-8") + b"\n"

        async with write_lock:
            if writer.is_closing():
                logger.debug(f"Dropping response for id={request_id!r}, client gone")
                return
            try:
                writer.write(payload)
                await writer.drain()
            except (ConnectionError, OSError) as e:
                logger.debug(f"Failed to write response for id={request_id!r}: {e}")
