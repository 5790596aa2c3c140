"""Listener interfaces for kept-packet events."""

from __future__ import annotations

from typing import Protocol

from .classifier import PacketSummary


class PacketListener(Protocol):
    def on_packet_kept(self, summary: PacketSummary) -> None:  # pragma: no cover - protocol definition
        ...


__all__ = ["PacketListener"]
