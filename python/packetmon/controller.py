"""Capture/UI event loop driving a :class:`CaptureSession`.

The controller is a small state machine::

    SELECTING_DEVICE --confirm--> CAPTURING (or PAUSED) <--toggle--> PAUSED
           ^                              |
           +--- capture failure (reselect) +--- quit / failure ---> TERMINATED

Each loop iteration polls the input source first and the capture second, so a
quit request is never starved by a busy interface.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, Iterable, List, Optional, Protocol, Sequence

from .capture import CaptureHandle, Device, open_capture
from .classifier import PacketSummary, classify
from .errors import CaptureError, CaptureOpenError
from .filters import FilterRule, should_display
from .listeners import PacketListener
from .session import CaptureSession, SessionSnapshot, State

logger = logging.getLogger(__name__)

SELECTING_INPUT_TIMEOUT = 0.1
CAPTURING_INPUT_TIMEOUT = 0.001
HEADLESS_FRAME_TIMEOUT = 0.5


class InputEvent(enum.Enum):
    UP = "up"
    DOWN = "down"
    CONFIRM = "confirm"
    TOGGLE = "toggle"
    QUIT = "quit"


class InputSource(Protocol):
    def poll(self, timeout: float) -> Optional[InputEvent]:  # pragma: no cover - protocol definition
        ...


class Renderer(Protocol):
    def draw(self, snapshot: SessionSnapshot) -> None:  # pragma: no cover - protocol definition
        ...


CaptureOpener = Callable[[Device, bool], CaptureHandle]


class CaptureController:
    """Owns the capture handle and applies input and capture events to a session."""

    def __init__(
        self,
        session: CaptureSession,
        *,
        rules: Sequence[FilterRule] = (),
        promiscuous: bool = False,
        opener: CaptureOpener = open_capture,
        listeners: Iterable[PacketListener] = (),
        start_paused: bool = False,
        reselect_on_failure: bool = False,
        frame_timeout: float = 0.0,
    ) -> None:
        self.session = session
        self.rules = tuple(rules)
        self.promiscuous = promiscuous
        self.start_paused = start_paused
        self.reselect_on_failure = reselect_on_failure
        self.frame_timeout = frame_timeout
        self.failed = False

        self._opener = opener
        self._listeners: List[PacketListener] = list(listeners)
        self._handle: Optional[CaptureHandle] = None

    # ------------------------------------------------------------------
    @property
    def state(self) -> State:
        return self.session.state

    @property
    def handle(self) -> Optional[CaptureHandle]:
        return self._handle

    # ------------------------------------------------------------------
    def handle_event(self, event: InputEvent) -> State:
        """Apply one input event and return the resulting state."""
        state = self.session.state
        if state is State.TERMINATED:
            return state

        if event is InputEvent.QUIT:
            logger.info("Quit requested")
            self.terminate()
        elif state is State.SELECTING_DEVICE:
            if event is InputEvent.UP:
                self.session.select_previous()
            elif event is InputEvent.DOWN:
                self.session.select_next()
            elif event is InputEvent.CONFIRM:
                self._confirm_selection()
        elif event is InputEvent.TOGGLE:
            self.session.state = State.PAUSED if state is State.CAPTURING else State.CAPTURING
            logger.info("Capture %s", "resumed" if self.session.capturing else "paused")

        return self.session.state

    def poll_capture(self, timeout: Optional[float] = None) -> Optional[PacketSummary]:
        """Read at most one frame while capturing; return its summary if it was kept."""
        if self.session.state is not State.CAPTURING or self._handle is None:
            return None

        wait = self.frame_timeout if timeout is None else timeout
        try:
            frame = self._handle.next_frame(wait)
        except CaptureError as exc:
            self._fail(str(exc))
            return None

        if frame is None:
            return None
        return self.process_frame(frame)

    def process_frame(self, frame: bytes) -> Optional[PacketSummary]:
        """Classify and filter *frame*, updating the session when it is kept."""
        session = self.session
        summary = classify(frame, session.frames_seen)
        session.frames_seen += 1

        if not should_display(summary.text, self.rules):
            logger.debug("Filtered out: %s", summary.text)
            return None

        session.stats.record()
        session.buffer.push(summary)
        for listener in self._listeners:
            listener.on_packet_kept(summary)
        return summary

    # ------------------------------------------------------------------
    def step(self, input_source: InputSource, renderer: Optional[Renderer] = None) -> State:
        """Run one loop iteration: input, then capture, then redraw."""
        if self.session.state is State.TERMINATED:
            return State.TERMINATED

        timeout = (
            SELECTING_INPUT_TIMEOUT
            if self.session.state is State.SELECTING_DEVICE
            else CAPTURING_INPUT_TIMEOUT
        )
        event = input_source.poll(timeout)
        if event is not None:
            self.handle_event(event)

        self.poll_capture()

        if renderer is not None and self.session.state is not State.TERMINATED:
            renderer.draw(self.session.snapshot())
        return self.session.state

    def run(self, input_source: InputSource, renderer: Optional[Renderer] = None) -> State:
        """Loop until the session terminates; Ctrl+C counts as a quit request."""
        try:
            if renderer is not None:
                renderer.draw(self.session.snapshot())
            while self.step(input_source, renderer) is not State.TERMINATED:
                pass
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self.terminate()
        return self.session.state

    def run_headless(self, frame_timeout: float = HEADLESS_FRAME_TIMEOUT) -> State:
        """Capture on the selected device without any input source."""
        try:
            self.handle_event(InputEvent.CONFIRM)
            while self.session.state is State.CAPTURING:
                self.poll_capture(frame_timeout)
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self.terminate()
        return self.session.state

    def terminate(self) -> None:
        self._close_handle()
        self.session.state = State.TERMINATED

    # ------------------------------------------------------------------
    def _confirm_selection(self) -> None:
        device = self.session.selected_device
        try:
            self._handle = self._opener(device, self.promiscuous)
        except CaptureOpenError as exc:
            self._fail(str(exc))
            return

        self.session.error = None
        self.session.frames_seen = 0
        self.session.stats.reset()
        self.session.buffer.clear()
        self.session.state = State.PAUSED if self.start_paused else State.CAPTURING
        logger.info("Selected device %s", device.name)

    def _fail(self, message: str) -> None:
        logger.error(message)
        self.session.error = message
        self._close_handle()
        if self.reselect_on_failure:
            self.session.state = State.SELECTING_DEVICE
        else:
            self.failed = True
            self.session.state = State.TERMINATED

    def _close_handle(self) -> None:
        handle = self._handle
        self._handle = None
        if handle is not None:
            handle.close()


__all__ = [
    "InputEvent",
    "InputSource",
    "Renderer",
    "CaptureController",
    "SELECTING_INPUT_TIMEOUT",
    "CAPTURING_INPUT_TIMEOUT",
]
