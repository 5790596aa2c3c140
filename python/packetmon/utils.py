"""Utility helpers shared by the classifier and exporter."""

from __future__ import annotations

import ipaddress
import os
from typing import Union

LINE_SEP = os.linesep
DISPLAY_CAPACITY = 100


def format_ip(value: Union[bytes, bytearray, str]) -> str:
    """Convert a raw IP buffer into a printable string."""
    if isinstance(value, (bytes, bytearray)):
        if len(value) == 4:
            return ".".join(str(b & 0xFF) for b in value)
        if len(value) == 16:
            return str(ipaddress.IPv6Address(bytes(value)))
    return str(value)


def format_endpoint(address: Union[bytes, bytearray, str], port: int) -> str:
    return f"{format_ip(address)}:{port}"


__all__ = ["LINE_SEP", "DISPLAY_CAPACITY", "format_ip", "format_endpoint"]
