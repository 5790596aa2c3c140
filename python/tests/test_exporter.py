import os
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from packetmon import ExportError, PacketSummary, SummaryExporter, prepare_export_path


class PrepareExportPathTest(unittest.TestCase):
    def test_creates_missing_file(self) -> None:
        with TemporaryDirectory() as tmpdir:
            target = Path(tmpdir) / "packets.txt"

            self.assertEqual(prepare_export_path(target), target)
            self.assertTrue(target.is_file())

    def test_keeps_existing_content_unless_cleared(self) -> None:
        with TemporaryDirectory() as tmpdir:
            target = Path(tmpdir) / "packets.txt"
            target.write_text("old line\n")

            prepare_export_path(target)
            self.assertEqual(target.read_text(), "old line\n")

            prepare_export_path(target, clear=True)
            self.assertEqual(target.read_text(), "")

    def test_missing_parent_directory_is_rejected(self) -> None:
        with TemporaryDirectory() as tmpdir:
            target = Path(tmpdir) / "missing" / "packets.txt"

            with self.assertRaises(ExportError):
                prepare_export_path(target)
            self.assertFalse(target.parent.exists())

    def test_directory_is_rejected(self) -> None:
        with TemporaryDirectory() as tmpdir:
            with self.assertRaises(ExportError):
                prepare_export_path(tmpdir)

    @unittest.skipIf(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        "file permissions are not enforced for root",
    )
    def test_read_only_file_is_rejected(self) -> None:
        with TemporaryDirectory() as tmpdir:
            target = Path(tmpdir) / "packets.txt"
            target.write_text("")
            target.chmod(0o444)
            try:
                with self.assertRaises(ExportError):
                    prepare_export_path(target)
            finally:
                target.chmod(0o644)


class SummaryExporterTest(unittest.TestCase):
    def test_appends_one_line_per_kept_packet(self) -> None:
        with TemporaryDirectory() as tmpdir:
            target = Path(tmpdir) / "packets.txt"
            target.write_text("earlier\n")
            exporter = SummaryExporter(target)

            exporter.on_packet_kept(PacketSummary(sequence=0, length=10))
            exporter.on_packet_kept(PacketSummary(sequence=1, length=12))

            self.assertEqual(
                target.read_text().splitlines(),
                ["earlier", "[0] Unknown Packet | LEN: 10", "[1] Unknown Packet | LEN: 12"],
            )
            self.assertEqual(exporter.lines_written, 2)

    def test_empty_lines_are_skipped(self) -> None:
        with TemporaryDirectory() as tmpdir:
            exporter = SummaryExporter(Path(tmpdir) / "packets.txt")

            self.assertEqual(exporter.append_lines(["", ""]), 0)
            self.assertFalse(exporter.file_path.exists())


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
