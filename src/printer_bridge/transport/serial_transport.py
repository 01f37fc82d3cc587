"""
Serial transport for USB and Bluetooth SPP receipt printers.

Many Bluetooth SPP printers have small receive buffers, so the payload is
always written in fixed-size chunks with a short pause after each chunk.
"""

import time

import serial

from printer_bridge.core.logging import get_logger, log_payload_sent
from printer_bridge.core.utils import OpenError, WriteError, iter_chunks

logger = get_logger()

SERIAL_TIMEOUT = 3.0  # seconds
DEFAULT_CHUNK_SIZE = 512  # bytes
DEFAULT_CHUNK_DELAY = 0.020  # seconds


class SerialTransport:
    """
    Blocking serial printer transport using pyserial.

    The port is opened, written and closed inside send(); the caller is
    expected to run it on a worker thread.
    """

    def __init__(
        self,
        timeout: float = SERIAL_TIMEOUT,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_delay: float = DEFAULT_CHUNK_DELAY,
    ):
        """
        Initialize the transport.

        Args:
            timeout: Per-operation read/write timeout in seconds.
            chunk_size: Maximum bytes per write.
            chunk_delay: Seconds to pause after each chunk.

        Raises:
            ValueError: If chunk_size is not positive or chunk_delay is negative.
        """
        if chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {chunk_size}")
        if chunk_delay < 0:
            raise ValueError(f"Chunk delay must not be negative, got {chunk_delay}")

        self.timeout = timeout
        self.chunk_size = chunk_size
        self.chunk_delay = chunk_delay

    def open(self, port: str, baud_rate: int) -> serial.Serial:
        """
        Open a serial port.

        Raises:
            OpenError: If the port is missing, busy, not permitted or the
                baud rate is rejected.
        """
        try:
            return serial.Serial(
                port=port,
                baudrate=baud_rate,
                timeout=self.timeout,
                write_timeout=self.timeout,
            )
        except (serial.SerialException, OSError, ValueError) as e:
            raise OpenError(f"Unable to open serial port {port}: {e}") from e

    def send(self, port: str, baud_rate: int, data: bytes) -> None:
        """
        Send a payload to a serial printer in chunks.

        Either every chunk is written and flushed, or the call fails.

        Args:
            port: Port identifier (e.g. "/dev/ttyUSB0", "COM3").
            baud_rate: Serial baud rate.
            data: The payload. It is sent as-is.

        Raises:
            OpenError: If the port cannot be opened.
            WriteError: If a chunk write or the final flush fails.
        """
        ser = self.open(port, baud_rate)
        logger.debug(f"Opened {port} at {baud_rate} baud")

        with ser:
            for index, chunk in enumerate(iter_chunks(data, self.chunk_size)):
                try:
                    written = ser.write(chunk)
                except (serial.SerialException, OSError) as e:
                    raise WriteError(f"Serial write failed ({port}): {e}") from e

                if written is not None and written != len(chunk):
                    raise WriteError(
                        f"Serial write failed ({port}): "
                        f"short write of {written}/{len(chunk)} bytes in chunk {index}"
                    )

                logger.verbose(f"Raw serial chunk {index} sent to {port}: {chunk!r}")
                time.sleep(self.chunk_delay)

            try:
                ser.flush()
            except (serial.SerialException, OSError) as e:
                raise WriteError(f"Serial flush failed ({port}): {e}") from e

        log_payload_sent(port, data)
        logger.info(f"Sent {len(data)} bytes to {port}")
