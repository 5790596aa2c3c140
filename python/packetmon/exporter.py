"""Append-only export of kept packet summaries to a flat text file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Union

from .classifier import PacketSummary
from .errors import ExportError
from .utils import LINE_SEP

logger = logging.getLogger(__name__)


def prepare_export_path(export_path: Union[str, Path], clear: bool = False) -> Path:
    """Validate *export_path* before capture starts, creating or truncating it.

    The parent directory must already exist and the path must name a writable
    file. Any problem is raised as :class:`ExportError`.
    """
    path = Path(export_path)
    parent = path.parent
    if not parent.exists():
        raise ExportError(f"The parent directory does not exist: {parent}")
    if path.is_dir():
        raise ExportError(
            f"The export location is a directory, please specify a file path: {path}"
        )

    try:
        with path.open("a", encoding="utf-8"):
            pass
    except OSError as exc:
        raise ExportError(f"The specified file is not writable: {path}") from exc

    if clear:
        try:
            path.write_text("", encoding="utf-8")
        except OSError as exc:
            raise ExportError(f"Failed to clear export file: {path}") from exc
        logger.info("Cleared export file %s", path)

    return path


class SummaryExporter:
    """Appends one summary line per kept packet."""

    def __init__(self, file_path: Union[str, Path]) -> None:
        self.file_path = Path(file_path)
        self.lines_written = 0

    def append_lines(self, lines: Iterable[str]) -> int:
        line_list = [line for line in lines if line]
        if not line_list:
            return 0

        with self.file_path.open("a", encoding="utf-8") as handle:
            for line in line_list:
                handle.write(line + LINE_SEP)

        self.lines_written += len(line_list)
        return len(line_list)

    def on_packet_kept(self, summary: PacketSummary) -> None:
        self.append_lines([summary.text])


__all__ = ["SummaryExporter", "prepare_export_path"]
