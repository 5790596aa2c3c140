"""Frame classification: raw Ethernet bytes to a one-line packet summary.

Decoding is a single recursive descent over the layer tree::

    Ethernet -> {IPv4, IPv6, unknown} -> {TCP, UDP, unknown}

Every decoder returns ``None`` when its layer cannot be interpreted, and the
caller degrades to the ``Unknown Packet`` summary. ``classify`` therefore never
raises, whatever the input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Optional, Tuple, Union

import dpkt

from .utils import format_endpoint, format_ip

logger = logging.getLogger(__name__)

_TCP_FLAG_NAMES: Tuple[Tuple[int, str], ...] = (
    (dpkt.tcp.TH_FIN, "FIN"),
    (dpkt.tcp.TH_SYN, "SYN"),
    (dpkt.tcp.TH_RST, "RST"),
    (dpkt.tcp.TH_PUSH, "PSH"),
    (dpkt.tcp.TH_ACK, "ACK"),
    (dpkt.tcp.TH_URG, "URG"),
    (dpkt.tcp.TH_ECE, "ECE"),
    (dpkt.tcp.TH_CWR, "CWR"),
)

_VLAN_ETHERTYPES = frozenset(
    (
        dpkt.ethernet.ETH_TYPE_8021Q,
        dpkt.ethernet.ETH_TYPE_8021AD,
        dpkt.ethernet.ETH_TYPE_QINQ1,
        dpkt.ethernet.ETH_TYPE_QINQ2,
    )
)


def format_tcp_flags(flags: int) -> str:
    names = [name for bit, name in _TCP_FLAG_NAMES if flags & bit]
    return ",".join(names) if names else "NONE"


@dataclass(frozen=True)
class TransportHeader:
    """Ports (and TCP flags) of a decoded transport segment."""

    protocol: str
    src_port: int
    dst_port: int
    flags: Optional[int] = None


@dataclass(frozen=True)
class NetworkHeader:
    """Addresses of a decoded IP packet together with its transport header."""

    family: str
    src: str
    dst: str
    transport: TransportHeader


@dataclass(frozen=True)
class PacketSummary:
    """Immutable description of one captured frame."""

    sequence: int
    length: int
    network: Optional[NetworkHeader] = None

    @property
    def is_unknown(self) -> bool:
        return self.network is None

    @property
    def layers(self) -> Tuple[str, ...]:
        if self.network is None:
            return ()
        return ("Ethernet", self.network.family, self.network.transport.protocol)

    @cached_property
    def text(self) -> str:
        network = self.network
        if network is None:
            return f"[{self.sequence}] Unknown Packet | LEN: {self.length}"

        transport = network.transport
        parts = [
            f"[{self.sequence}] {network.family} {transport.protocol}",
            f"SRC: {format_endpoint(network.src, transport.src_port)}",
            f"DST: {format_endpoint(network.dst, transport.dst_port)}",
        ]
        if transport.flags is not None:
            parts.append(f"FLAGS: {format_tcp_flags(transport.flags)}")
        parts.append(f"LEN: {self.length}")
        return " | ".join(parts)

    def __str__(self) -> str:
        return self.text


def classify(frame: Union[bytes, bytearray, memoryview], sequence: int) -> PacketSummary:
    """Describe *frame*; malformed or truncated input yields an unknown summary."""
    raw = bytes(frame)
    try:
        network = _decode_link(raw)
    except Exception:  # pragma: no cover - dpkt raising outside its documented errors
        logger.debug("Unexpected error decoding frame %d", sequence, exc_info=True)
        network = None
    return PacketSummary(sequence=sequence, length=len(raw), network=network)


# ----------------------------------------------------------------------
def _decode_link(frame: bytes) -> Optional[NetworkHeader]:
    try:
        ethernet = dpkt.ethernet.Ethernet(frame)
    except (dpkt.UnpackError, ValueError):
        return None

    # dpkt leaves raw bytes in ``data`` when the IP header is bad.
    payload = ethernet.data
    eth_type = _effective_ethertype(ethernet)
    if eth_type == dpkt.ethernet.ETH_TYPE_IP and isinstance(payload, dpkt.ip.IP):
        return _decode_network("IPv4", payload)
    if eth_type == dpkt.ethernet.ETH_TYPE_IP6 and isinstance(payload, dpkt.ip6.IP6):
        return _decode_network("IPv6", payload)
    return None


def _effective_ethertype(ethernet: dpkt.ethernet.Ethernet) -> int:
    """Return the ethertype behind any 802.1Q tags.

    MPLS label stacks are not stepped over: dpkt guesses the inner protocol
    from the first payload byte, so those frames stay unknown.
    """
    eth_type = int(ethernet.type)
    if eth_type in _VLAN_ETHERTYPES:
        tags = getattr(ethernet, "vlan_tags", None) or ()
        if tags:
            return int(tags[-1].type)
    return eth_type


def _decode_network(
    family: str,
    packet: Union[dpkt.ip.IP, dpkt.ip6.IP6],
) -> Optional[NetworkHeader]:
    transport = _decode_transport(packet.data)
    if transport is None:
        return None
    return NetworkHeader(
        family=family,
        src=format_ip(packet.src),
        dst=format_ip(packet.dst),
        transport=transport,
    )


def _decode_transport(segment) -> Optional[TransportHeader]:
    if isinstance(segment, dpkt.tcp.TCP):
        return TransportHeader("TCP", int(segment.sport), int(segment.dport), int(segment.flags))
    if isinstance(segment, dpkt.udp.UDP):
        return TransportHeader("UDP", int(segment.sport), int(segment.dport))
    return None


__all__ = [
    "PacketSummary",
    "NetworkHeader",
    "TransportHeader",
    "classify",
    "format_tcp_flags",
]
