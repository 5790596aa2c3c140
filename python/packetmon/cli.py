"""Command-line entry point for the interactive and headless packet monitor."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, TextIO, Tuple

from . import __version__
from .capture import Device, find_device, list_devices, open_capture
from .classifier import PacketSummary
from .controller import CaptureController, CaptureOpener
from .errors import CaptureError, DeviceSelectionError, PacketMonitorError
from .exporter import SummaryExporter, prepare_export_path
from .filters import FilterRule, parse_filter_spec
from .listeners import PacketListener
from .session import CaptureSession

logger = logging.getLogger(__name__)

DEFAULT_TUI_LOG_FILE = os.path.join(tempfile.gettempdir(), "packetmon.log")


@dataclass
class MonitorConfig:
    promiscuous: bool = False
    interactive: bool = False
    export_path: Optional[Path] = None
    clear: bool = False
    verbose: bool = False
    rules: Tuple[FilterRule, ...] = ()
    interface: Optional[str] = None
    reselect: bool = False
    start_paused: bool = False


class ConsolePrinter:
    """Prints every kept summary, used by ``--verbose``."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream

    def on_packet_kept(self, summary: PacketSummary) -> None:
        stream = self._stream or sys.stdout
        stream.write(summary.text + "\n")
        stream.flush()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="packetmon",
        description="Capture packets from a network device and summarise them.",
    )
    parser.add_argument(
        "-p",
        "--promisc",
        action="store_true",
        help="Capture all packets on the network (promiscuous mode).",
    )
    parser.add_argument(
        "-g",
        "--gui",
        action="store_true",
        help="Show an interactive interface in the terminal.",
    )
    parser.add_argument(
        "-e",
        "--export",
        type=Path,
        metavar="PATH",
        help="Append kept packet summaries to PATH.",
    )
    parser.add_argument(
        "-c",
        "--clear",
        action="store_true",
        help="Clear the export file before capturing (requires --export).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print every kept packet summary (not available with --gui).",
    )
    parser.add_argument(
        "-f",
        "--filter",
        default="",
        metavar="SPEC",
        help="Semicolon-separated patterns; prefix a pattern with '!' to exclude it.",
    )
    parser.add_argument(
        "-i",
        "--interface",
        metavar="NAME",
        help="Capture device to use instead of prompting for one.",
    )
    parser.add_argument(
        "--reselect",
        action="store_true",
        help="Return to device selection when a capture fails (with --gui).",
    )
    parser.add_argument(
        "--start-paused",
        action="store_true",
        help="Open the capture paused after selecting a device (with --gui).",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Log level for diagnostic output.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        metavar="PATH",
        help=f"Write logs to PATH (with --gui defaults to {DEFAULT_TUI_LOG_FILE}).",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def build_config(parser: argparse.ArgumentParser, args: argparse.Namespace) -> MonitorConfig:
    if args.verbose and args.gui:
        parser.error("--verbose cannot be combined with --gui.")
    if args.clear and args.export is None:
        parser.error("The --clear flag requires the --export flag to be set.")

    return MonitorConfig(
        promiscuous=args.promisc,
        interactive=args.gui,
        export_path=args.export,
        clear=args.clear,
        verbose=args.verbose,
        rules=parse_filter_spec(args.filter),
        interface=args.interface,
        reselect=args.reselect,
        start_paused=args.start_paused,
    )


def configure_logging(level: str, log_file: Optional[Path], *, interactive: bool) -> None:
    """Configure the root logger, sending records to a file when one is chosen."""
    if log_file is None and interactive:
        log_file = Path(DEFAULT_TUI_LOG_FILE)

    if log_file is not None:
        logging.basicConfig(
            level=getattr(logging, level),
            filename=str(log_file),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        return

    logging.basicConfig(level=getattr(logging, level))


def prompt_device(
    devices: Sequence[Device],
    *,
    read: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> int:
    """Ask the operator for a device number and return its index."""
    write("Available devices:")
    for index, device in enumerate(devices, 1):
        write(f"{index}. {device.label}")

    try:
        raw = read("Select a device to capture: ")
    except EOFError as exc:
        raise DeviceSelectionError("Invalid input! Please enter a valid number.") from exc

    try:
        number = int(raw.strip())
    except ValueError as exc:
        raise DeviceSelectionError("Invalid input! Please enter a valid number.") from exc

    if not 1 <= number <= len(devices):
        raise DeviceSelectionError("Invalid device selection!")
    return number - 1


def run_headless(
    config: MonitorConfig,
    devices: Sequence[Device],
    listeners: List[PacketListener],
    *,
    read: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
    opener: Optional[CaptureOpener] = None,
) -> int:
    if config.interface:
        index = find_device(devices, config.interface)
    else:
        index = prompt_device(devices, read=read, write=write)

    if config.verbose:
        listeners = listeners + [ConsolePrinter()]

    session = CaptureSession(devices, selected=index)
    controller = _build_controller(config, session, listeners, opener)

    write("Sniffing on device... Press Ctrl+C to stop.")
    controller.run_headless()
    logger.info(
        "Capture finished: %d frames seen, %d kept",
        session.frames_seen,
        session.stats.total,
    )
    if controller.failed:
        raise CaptureError(session.error or "Capture failed")
    return 0


def run_interactive(
    config: MonitorConfig,
    devices: Sequence[Device],
    listeners: List[PacketListener],
) -> int:
    from .tui import run_tui

    selected = find_device(devices, config.interface) if config.interface else 0
    session = CaptureSession(devices, selected=selected)
    controller = _build_controller(config, session, listeners, None)

    run_tui(controller)
    if controller.failed:
        raise CaptureError(session.error or "Capture failed")
    return 0


def _build_controller(
    config: MonitorConfig,
    session: CaptureSession,
    listeners: List[PacketListener],
    opener: Optional[CaptureOpener],
) -> CaptureController:
    return CaptureController(
        session,
        rules=config.rules,
        promiscuous=config.promiscuous,
        listeners=listeners,
        start_paused=config.interactive and config.start_paused,
        reselect_on_failure=config.interactive and config.reselect,
        opener=opener or open_capture,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = build_config(parser, args)

    configure_logging(args.log_level, args.log_file, interactive=config.interactive)

    def _fatal(exc: Exception, *, logged: bool = False) -> int:
        if not logged:
            logger.error("%s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    listeners: List[PacketListener] = []
    try:
        if config.export_path is not None:
            listeners.append(SummaryExporter(prepare_export_path(config.export_path, config.clear)))

        devices = list_devices()
        if config.interactive:
            return run_interactive(config, devices, listeners)
        return run_headless(config, devices, listeners)
    except CaptureError as exc:
        # The controller has already logged the failure.
        return _fatal(exc, logged=True)
    except (PacketMonitorError, OSError) as exc:
        return _fatal(exc)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
