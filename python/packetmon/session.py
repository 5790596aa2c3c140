"""Live session state shared between the controller and the renderers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

from .capture import Device
from .classifier import PacketSummary
from .display_buffer import DisplayBuffer
from .stats import StatsTracker


class State(enum.Enum):
    SELECTING_DEVICE = "selecting"
    PAUSED = "paused"
    CAPTURING = "capturing"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session handed to a renderer once per redraw."""

    state: State
    devices: Tuple[str, ...]
    selected: int
    confirmed: bool
    capturing: bool
    packets: Tuple[str, ...]
    total_packets: int
    rate: float
    elapsed: float
    error: Optional[str] = None


@dataclass
class CaptureSession:
    """Mutable state of one monitor run.

    Only :class:`~packetmon.controller.CaptureController` mutates a session.
    ``frames_seen`` counts every frame read from the capture (it numbers the
    summaries), while ``stats.total`` counts the frames kept by the filter.
    """

    devices: Sequence[Device]
    selected: int = 0
    state: State = State.SELECTING_DEVICE
    frames_seen: int = 0
    stats: StatsTracker = field(default_factory=StatsTracker)
    buffer: DisplayBuffer[PacketSummary] = field(default_factory=DisplayBuffer)
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.devices:
            raise ValueError("A session needs at least one capture device")
        self.devices = tuple(self.devices)
        self.selected %= len(self.devices)

    @property
    def confirmed(self) -> bool:
        return self.state in (State.PAUSED, State.CAPTURING)

    @property
    def capturing(self) -> bool:
        return self.state is State.CAPTURING

    @property
    def selected_device(self) -> Device:
        return self.devices[self.selected]

    def select_next(self) -> None:
        self.selected = (self.selected + 1) % len(self.devices)

    def select_previous(self) -> None:
        self.selected = (self.selected + len(self.devices) - 1) % len(self.devices)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self.state,
            devices=tuple(device.label for device in self.devices),
            selected=self.selected,
            confirmed=self.confirmed,
            capturing=self.capturing,
            packets=tuple(summary.text for summary in self.buffer),
            total_packets=self.stats.total,
            rate=self.stats.rate,
            elapsed=self.stats.elapsed(),
            error=self.error,
        )


__all__ = ["State", "SessionSnapshot", "CaptureSession"]
