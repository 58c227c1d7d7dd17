"""USB connection to a SABR radio through its FT601 USB 3.0 bridge.

Uses ``pyusb`` + libusb. The bridge exposes two bulk pipe pairs: the
command pipe (0x03 OUT / 0x83 IN) carrying 16-byte command frames, and
the IQ sample pipe (0x02 OUT / 0x82 IN).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import TransportError
from ..models.radio import ProductInfo

logger = logging.getLogger(__name__)

VENDOR_ID = 0x0403
PRODUCT_ID = 0x601F
SABR_SERIAL_PREFIXES = ("SM3000", "SM1000")
INTERFACE = 0
CMD_EP_OUT = 0x03
CMD_EP_IN = 0x83
IQ_EP_OUT = 0x02
IQ_EP_IN = 0x82
CMD_PIPE_TIMEOUT_MS = 2500
IQ_PIPE_TIMEOUT_MS = 1000


@dataclass
class DeviceInfo:
    """Identification from USB descriptors of the opened device."""

    vendor_id: int = VENDOR_ID
    product_id: int = PRODUCT_ID
    manufacturer: str = ""
    product: str = ""
    serial_number: str = ""
    usb3: bool = False


class USBConnection:
    """Manages the USB connection to a SABR radio.

    Usage::

        conn = USBConnection()
        conn.open()
        conn.write(frame_bytes)
        response = conn.read(16)
        conn.close()
    """

    def __init__(
        self,
        vendor_id: int = VENDOR_ID,
        product_id: int = PRODUCT_ID,
        command_timeout_ms: int = CMD_PIPE_TIMEOUT_MS,
        sample_timeout_ms: int = IQ_PIPE_TIMEOUT_MS,
    ) -> None:
        self._vendor_id = vendor_id
        self._product_id = product_id
        self._command_timeout_ms = command_timeout_ms
        self._sample_timeout_ms = sample_timeout_ms
        self._device = None
        self._connected = False
        self._device_info = DeviceInfo(vendor_id=vendor_id, product_id=product_id)

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def device_info(self) -> DeviceInfo:
        return self._device_info

    def _find(self) -> list:
        import usb.core

        return list(
            usb.core.find(
                find_all=True, idVendor=self._vendor_id, idProduct=self._product_id
            )
        )

    @staticmethod
    def _serial_of(dev) -> str:
        import usb.core
        import usb.util

        try:
            return usb.util.get_string(dev, dev.iSerialNumber) or ""
        except (usb.core.USBError, ValueError) as e:
            logger.debug("Could not read serial number: %s", e)
            return ""

    def list_devices(self) -> list[ProductInfo]:
        """Enumerate attached bridges whose serial number marks a SABR radio."""
        import usb.core
        import usb.util

        found: list[ProductInfo] = []
        for dev in self._find():
            serial = self._serial_of(dev)
            if not serial.startswith(SABR_SERIAL_PREFIXES):
                continue
            try:
                description = usb.util.get_string(dev, dev.iProduct) or ""
            except (usb.core.USBError, ValueError):
                description = ""
            found.append(ProductInfo(serial_number=serial, description=description))

        if found:
            logger.info("Detected %d SABR device(s)", len(found))
        else:
            logger.info("Failed to find any connected SABR devices")
        return found

    def open(self, serial_number: str | None = None) -> ProductInfo:
        """Open a SABR radio, the first one found unless ``serial_number`` is given.

        Raises:
            ConnectionError: If no matching device can be found or opened.
        """
        import usb.core
        import usb.util

        dev = None
        serial = ""
        for candidate in self._find():
            candidate_serial = self._serial_of(candidate)
            if serial_number is None:
                if candidate_serial.startswith(SABR_SERIAL_PREFIXES):
                    dev, serial = candidate, candidate_serial
                    break
            elif candidate_serial == serial_number:
                dev, serial = candidate, candidate_serial
                break

        if dev is None:
            raise ConnectionError(
                f"Could not find SABR device "
                f"({self._vendor_id:#06x}:{self._product_id:#06x}"
                f"{', serial ' + serial_number if serial_number else ''})"
            )

        try:
            if dev.is_kernel_driver_active(INTERFACE):
                dev.detach_kernel_driver(INTERFACE)
            usb.util.claim_interface(dev, INTERFACE)
        except (usb.core.USBError, NotImplementedError) as e:
            raise ConnectionError(f"Could not open SABR device {serial}: {e}") from e

        try:
            info = DeviceInfo(
                vendor_id=self._vendor_id,
                product_id=self._product_id,
                manufacturer=usb.util.get_string(dev, dev.iManufacturer) or "",
                product=usb.util.get_string(dev, dev.iProduct) or "",
                serial_number=serial,
                usb3=dev.bcdUSB >= 0x0300,
            )
        except (usb.core.USBError, ValueError) as e:
            try:
                usb.util.release_interface(dev, INTERFACE)
                usb.util.dispose_resources(dev)
            except usb.core.USBError as release_error:
                logger.warning("Error releasing device: %s", release_error)
            raise ConnectionError(
                f"Could not read descriptors of SABR device {serial}: {e}"
            ) from e

        self._device = dev
        self._connected = True
        self._device_info = info

        if not self._device_info.usb3:
            logger.warning(
                "SABR %s is not running at USB 3.0 speeds; higher sample rates "
                "may not work. Check the port and cable, or flip the USB-C connector.",
                serial,
            )
        logger.info(
            "Connected via pyusb: %s %s (%s)",
            self._device_info.manufacturer,
            self._device_info.product,
            serial,
        )
        return ProductInfo(serial_number=serial, description=self._device_info.product)

    def close(self) -> None:
        """Close the USB connection."""
        if not self._connected:
            return

        import usb.core
        import usb.util

        try:
            usb.util.release_interface(self._device, INTERFACE)
            usb.util.dispose_resources(self._device)
        except usb.core.USBError as e:
            logger.warning("Error closing device: %s", e)
        finally:
            self._device = None
            self._connected = False
            logger.info("Disconnected")

    def _write(self, endpoint: int, data: bytes, timeout_ms: int) -> int:
        import usb.core

        if not self._connected:
            raise ConnectionError("Not connected to device")
        try:
            written = self._device.write(endpoint, data, timeout=timeout_ms)
        except usb.core.USBError as e:
            raise TransportError(f"Write to endpoint {endpoint:#04x} failed: {e}") from e
        if written != len(data):
            raise TransportError(
                f"Short write to endpoint {endpoint:#04x}: {written}/{len(data)} bytes"
            )
        return written

    def _read(self, endpoint: int, size: int, timeout_ms: int) -> bytes:
        import usb.core

        if not self._connected:
            raise ConnectionError("Not connected to device")
        try:
            data = self._device.read(endpoint, size, timeout=timeout_ms)
        except usb.core.USBError as e:
            raise TransportError(f"Read from endpoint {endpoint:#04x} failed: {e}") from e
        return bytes(data)

    def write(self, data: bytes) -> int:
        """Write one command frame to the command pipe.

        Raises:
            ConnectionError: If not connected.
            TransportError: If the write fails, times out, or is short.
        """
        return self._write(CMD_EP_OUT, data, self._command_timeout_ms)

    def read(self, size: int) -> bytes:
        """Read exactly ``size`` bytes from the command pipe.

        Raises:
            ConnectionError: If not connected.
            TransportError: If the read fails, times out, or is short.
        """
        data = self._read(CMD_EP_IN, size, self._command_timeout_ms)
        if len(data) != size:
            raise TransportError(f"Short command read: {len(data)}/{size} bytes")
        return data

    def write_samples(self, data: bytes) -> int:
        """Write raw IQ bytes to the sample pipe."""
        return self._write(IQ_EP_OUT, data, self._sample_timeout_ms)

    def read_samples(self, size: int) -> bytes:
        """Read up to ``size`` raw IQ bytes from the sample pipe."""
        return self._read(IQ_EP_IN, size, self._sample_timeout_ms)
