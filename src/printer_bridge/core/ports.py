"""
Serial port enumeration.

Lists the serial ports visible to the operating system and classifies each
one by the bus it is attached to. A fresh snapshot is taken on every call.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

import serial.tools.list_ports

from printer_bridge.core.logging import get_logger
from printer_bridge.core.utils import EnumerationError

logger = get_logger()


class BusType(str, Enum):
    """How a serial port is physically attached."""

    USB = "usb"
    BLUETOOTH = "bluetooth"
    PCI = "pci"
    UNKNOWN = "unknown"


@dataclass
class PortInfo:
    """
    Descriptor of one serial port.

    The USB fields (manufacturer, product, serial_number, vid, pid) are only
    populated when port_type is BusType.USB.
    """

    port_name: str
    port_type: BusType = BusType.UNKNOWN
    manufacturer: str | None = None
    product: str | None = None
    serial_number: str | None = None
    vid: int | None = None
    pid: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["port_type"] = self.port_type.value
        return data


def classify_port(info: Any) -> BusType:
    """
    Classify a pyserial ListPortInfo by bus type.

    - usb: the driver reports a USB vendor and product id
    - bluetooth: Windows BTHENUM hwid, Linux rfcomm node, macOS Bluetooth node
    - pci: Windows PCI hwid or Linux pci subsystem
    - unknown: anything else
    """
    if info.vid is not None and info.pid is not None:
        return BusType.USB

    hwid = (info.hwid or "").upper()
    device = info.device or ""
    subsystem = getattr(info, "subsystem", None)

    if (
        hwid.startswith("BTHENUM")
        or "rfcomm" in device.lower()
        or "bluetooth" in device.lower()
        or subsystem == "bluetooth"
    ):
        return BusType.BLUETOOTH

    if hwid.startswith("PCI") or subsystem == "pci":
        return BusType.PCI

    return BusType.UNKNOWN


def to_port_info(info: Any) -> PortInfo:
    """Build a PortInfo from a pyserial ListPortInfo."""
    port_type = classify_port(info)
    port = PortInfo(port_name=info.device, port_type=port_type)

    if port_type is BusType.USB:
        port.manufacturer = info.manufacturer
        port.product = info.product
        port.serial_number = info.serial_number
        port.vid = info.vid
        port.pid = info.pid

    return port


def list_ports() -> list[PortInfo]:
    """
    List the serial ports currently visible to the operating system.

    Returns:
        Port descriptors sorted by port name (case-sensitive).

    Raises:
        EnumerationError: If the OS query fails. No partial list is returned.
    """
    try:
        raw_ports = list(serial.tools.list_ports.comports())
    except Exception as e:
        raise EnumerationError(f"Unable to list serial ports: {e}") from e

    ports = [to_port_info(info) for info in sorted(raw_ports, key=lambda p: p.device)]

    logger.debug(
        f"Found {len(ports)} serial ports: "
        f"{[f'{p.port_name} ({p.port_type.value})' for p in ports] or 'none'}"
    )
    return ports
