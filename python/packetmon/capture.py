"""Capture device enumeration and non-blocking raw frame capture.

Interfaces are listed through :mod:`psutil` (falling back to
``socket.if_nameindex``); frames are read from a Scapy layer-2 listen socket
polled with a bounded timeout, so the monitor's event loop never blocks
indefinitely on the network.
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence

import psutil

from .errors import CaptureError, CaptureOpenError, DeviceEnumerationError, DeviceSelectionError

logger = logging.getLogger(__name__)

DEFAULT_SNAPLEN = 65_535


@dataclass(frozen=True)
class InterfaceAddress:
    """Network layer address bound to a capture device."""

    address: str
    netmask: Optional[str] = None
    family: int = socket.AF_INET


@dataclass(frozen=True)
class Device:
    """A capture-capable network interface."""

    name: str
    addresses: Sequence[InterfaceAddress] = ()
    is_loopback: bool = False

    @property
    def label(self) -> str:
        label = self.name
        if self.addresses:
            label = f"{label} ({self.addresses[0].address})"
        if self.is_loopback:
            label = f"{label} [loopback]"
        return label


def list_devices() -> List[Device]:
    """Return the capture devices of this host, sorted by name.

    Raises :class:`DeviceEnumerationError` when nothing can be listed, since the
    monitor has no way to proceed without a device.
    """
    devices: List[Device] = []
    seen: set[str] = set()

    def _append_device(name: str, addresses: Iterable[InterfaceAddress]) -> None:
        address_tuple = tuple(addresses)
        is_loop = _is_loopback(name, address_tuple)
        devices.append(Device(name=name, addresses=address_tuple, is_loopback=is_loop))
        seen.add(name)

    try:
        for name, addr_list in psutil.net_if_addrs().items():
            ip_addrs = [
                InterfaceAddress(
                    address=entry.address,
                    netmask=getattr(entry, "netmask", None),
                    family=entry.family,
                )
                for entry in addr_list
                if getattr(entry, "address", "") and getattr(entry, "family", None) in _ip_families()
            ]
            _append_device(name, ip_addrs)
    except Exception:
        logger.debug("Failed to enumerate interfaces via psutil", exc_info=True)

    if not devices:
        try:
            for _, name in socket.if_nameindex():
                if name not in seen:
                    _append_device(name, ())
        except OSError as exc:
            raise DeviceEnumerationError(f"Error listing devices: {exc}") from exc

    if not devices:
        raise DeviceEnumerationError("Error listing devices: no capture devices found")

    devices.sort(key=lambda dev: dev.name)
    return devices


def find_device(devices: Sequence[Device], name: str) -> int:
    """Return the index of the device called *name*."""
    for index, device in enumerate(devices):
        if device.name == name:
            return index
    raise DeviceSelectionError(f"Invalid device selection: no interface named '{name}'")


# ----------------------------------------------------------------------
class CaptureHandle:
    """An open capture on one device, read with bounded waits.

    :meth:`next_frame` returns the raw bytes of one frame, or ``None`` when the
    wait expired without traffic. Any other failure is fatal for the handle and
    raised as :class:`CaptureError`.
    """

    def __init__(self, device: Device, listen_socket: Any, *, snaplen: int = DEFAULT_SNAPLEN) -> None:
        self.device = device
        self.snaplen = snaplen
        self._socket = listen_socket

    @property
    def is_open(self) -> bool:
        return self._socket is not None

    def next_frame(self, timeout: float) -> Optional[bytes]:
        sock = self._socket
        if sock is None:
            raise CaptureError(f"Capture on '{self.device.name}' is closed")

        try:
            ready = type(sock).select([sock], timeout)
            if not ready:
                return None
            _, data, _ = sock.recv_raw(self.snaplen)
        except BlockingIOError:
            return None
        except Exception as exc:
            raise CaptureError(f"Error capturing packet on '{self.device.name}': {exc}") from exc

        if data is None:
            return None
        return bytes(data)

    def close(self) -> None:
        sock = self._socket
        self._socket = None
        if sock is None:
            return
        try:
            sock.close()
        except Exception:  # pragma: no cover - close failures depend on system
            logger.exception("Failed to close capture on %s", self.device.name)
        logger.info("Capture closed on %s", self.device.name)


def open_capture(
    device: Device,
    promiscuous: bool = False,
    *,
    snaplen: int = DEFAULT_SNAPLEN,
) -> CaptureHandle:
    """Start capturing on *device* and switch the socket to non-blocking reads."""
    listen = _listen_socket_factory()
    try:
        sock = listen(iface=device.name, promisc=promiscuous)
    except Exception as exc:
        raise CaptureOpenError(f"Failed to open device '{device.name}': {exc}") from exc

    try:
        _set_nonblocking(sock)
    except Exception as exc:
        sock.close()
        raise CaptureOpenError(
            f"Failed to start capture on device '{device.name}': {exc}"
        ) from exc

    logger.info("Capture listening on %s (promiscuous=%s)", device.name, promiscuous)
    return CaptureHandle(device, sock, snaplen=snaplen)


def _listen_socket_factory():
    # Importing scapy is slow; only pay for it when a capture is opened.
    from scapy.all import conf  # type: ignore

    return conf.L2listen


def _set_nonblocking(sock: Any) -> None:
    inner = getattr(sock, "ins", None)
    if inner is None or not hasattr(inner, "setblocking"):
        raise OSError("capture socket does not support non-blocking mode")
    inner.setblocking(False)


def _ip_families() -> tuple[int, ...]:
    fams = [socket.AF_INET]
    if hasattr(socket, "AF_INET6"):
        fams.append(socket.AF_INET6)
    return tuple(fams)


def _is_loopback(name: str, addresses: Sequence[InterfaceAddress]) -> bool:
    if any(addr.address.startswith("127.") for addr in addresses if addr.family == socket.AF_INET):
        return True
    if any(addr.address == "::1" for addr in addresses if addr.family == getattr(socket, "AF_INET6", object())):
        return True
    return name.lower().startswith(("lo", "loopback"))


__all__ = [
    "InterfaceAddress",
    "Device",
    "CaptureHandle",
    "list_devices",
    "find_device",
    "open_capture",
    "DEFAULT_SNAPLEN",
]
