"""Interactive single-host packet monitor: classification, filtering and a live terminal view."""

__version__ = "1.0.0"

from .capture import CaptureHandle, Device, InterfaceAddress, find_device, list_devices, open_capture
from .classifier import NetworkHeader, PacketSummary, TransportHeader, classify
from .controller import CaptureController, InputEvent
from .display_buffer import DisplayBuffer
from .errors import (
    CaptureError,
    CaptureOpenError,
    DeviceEnumerationError,
    DeviceSelectionError,
    ExportError,
    PacketMonitorError,
    TerminalError,
)
from .exporter import SummaryExporter, prepare_export_path
from .filters import FilterKind, FilterRule, parse_filter_spec, should_display
from .session import CaptureSession, SessionSnapshot, State
from .stats import StatsTracker

__all__ = [
    "__version__",
    "CaptureHandle",
    "Device",
    "InterfaceAddress",
    "find_device",
    "list_devices",
    "open_capture",
    "NetworkHeader",
    "PacketSummary",
    "TransportHeader",
    "classify",
    "CaptureController",
    "InputEvent",
    "DisplayBuffer",
    "CaptureError",
    "CaptureOpenError",
    "DeviceEnumerationError",
    "DeviceSelectionError",
    "ExportError",
    "PacketMonitorError",
    "TerminalError",
    "SummaryExporter",
    "prepare_export_path",
    "FilterKind",
    "FilterRule",
    "parse_filter_spec",
    "should_display",
    "CaptureSession",
    "SessionSnapshot",
    "State",
    "StatsTracker",
]
