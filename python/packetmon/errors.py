"""Exception hierarchy shared by the capture, export and CLI layers."""

from __future__ import annotations


class PacketMonitorError(RuntimeError):
    """Base class for failures the monitor reports to the operator."""


class DeviceEnumerationError(PacketMonitorError):
    """Raised when no capture device can be listed."""


class DeviceSelectionError(PacketMonitorError):
    """Raised when the requested device does not exist."""


class CaptureOpenError(PacketMonitorError):
    """Raised when a capture session cannot be started on a device."""


class CaptureError(PacketMonitorError):
    """Raised when a running capture fails and cannot deliver more frames."""


class ExportError(PacketMonitorError):
    """Raised when the export file cannot be prepared for appending."""


class TerminalError(PacketMonitorError):
    """Raised when the terminal interface cannot be started."""


__all__ = [
    "PacketMonitorError",
    "DeviceEnumerationError",
    "DeviceSelectionError",
    "CaptureOpenError",
    "CaptureError",
    "ExportError",
    "TerminalError",
]
