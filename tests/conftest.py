"""Shared fixtures for printer bridge tests."""

import socket
import threading
import time

import pytest


class LoopbackPrinter:
    """
    A one-shot TCP listener standing in for a network printer.

    Accepts a single connection, reads until the client half-closes and
    stores everything received, along with the size of each recv().
    """

    def __init__(self):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.listen(1)
        self.sock.settimeout(5.0)
        self.host, self.port = self.sock.getsockname()
        self.received = bytearray()
        self.connections = 0
        self.done = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        try:
            conn, _ = self.sock.accept()
        except OSError:
            self.done.set()
            return
        self.connections += 1
        with conn:
            conn.settimeout(5.0)
            while True:
                chunk = conn.recv(65536)
                if not chunk:
                    break
                self.received.extend(chunk)
        self.done.set()

    def wait(self, timeout: float = 5.0) -> bytes:
        self.done.wait(timeout)
        return bytes(self.received)

    def close(self) -> None:
        self.sock.close()
        self._thread.join(timeout=1.0)


@pytest.fixture
def loopback_printer():
    """A listening loopback TCP printer."""
    printer = LoopbackPrinter()
    yield printer
    printer.close()


@pytest.fixture
def closed_port():
    """A local TCP port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


class FakeSerial:
    """
    Stand-in for serial.Serial that records each write and when it happened.

    Class attributes control failure injection and collect instances so a
    test can inspect the port after the transport closed it.
    """

    instances: list["FakeSerial"] = []
    fail_write_at: int | None = None
    short_write_at: int | None = None
    fail_flush: bool = False

    def __init__(self, port=None, baudrate=9600, timeout=None, write_timeout=None, **kwargs):
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.write_timeout = write_timeout
        self.writes: list[tuple[float, bytes]] = []
        self.flushed = False
        self.is_open = True
        FakeSerial.instances.append(self)

    def write(self, data: bytes) -> int:
        import serial

        index = len(self.writes)
        if FakeSerial.fail_write_at == index:
            raise serial.SerialTimeoutException("Write timeout")
        self.writes.append((time.monotonic(), bytes(data)))
        if FakeSerial.short_write_at == index:
            return len(data) - 1
        return len(data)

    def flush(self) -> None:
        import serial

        if FakeSerial.fail_flush:
            raise serial.SerialException("flush failed")
        self.flushed = True

    def close(self) -> None:
        self.is_open = False

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


@pytest.fixture
def fake_serial(monkeypatch):
    """Patch pyserial's Serial class with FakeSerial."""
    import serial

    FakeSerial.instances = []
    FakeSerial.fail_write_at = None
    FakeSerial.short_write_at = None
    FakeSerial.fail_flush = False
    monkeypatch.setattr(serial, "Serial", FakeSerial)
    return FakeSerial
