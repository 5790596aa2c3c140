from __future__ import annotations

import random
import socket
import struct

import dpkt
import pytest

from packetmon.classifier import PacketSummary, classify, format_tcp_flags


def _tcp_frame(
    src: str = "192.0.2.1",
    dst: str = "192.0.2.2",
    sport: int = 12345,
    dport: int = 80,
    flags: int = dpkt.tcp.TH_SYN,
    payload: bytes = b"",
) -> bytes:
    tcp = dpkt.tcp.TCP(sport=sport, dport=dport, seq=1, flags=flags, win=512)
    tcp.data = payload

    ip = dpkt.ip.IP(
        src=socket.inet_aton(src),
        dst=socket.inet_aton(dst),
        p=dpkt.ip.IP_PROTO_TCP,
        ttl=64,
    )
    ip.data = tcp

    ethernet = dpkt.ethernet.Ethernet(
        src=b"\xaa\xaa\xaa\xaa\xaa\xaa",
        dst=b"\xbb\xbb\xbb\xbb\xbb\xbb",
        type=dpkt.ethernet.ETH_TYPE_IP,
        data=ip,
    )
    return bytes(ethernet)


def _udp6_frame(payload: bytes = b"payload") -> bytes:
    udp = dpkt.udp.UDP(sport=53, dport=4444)
    udp.data = payload
    udp.pack()

    ip6 = dpkt.ip6.IP6(
        src=socket.inet_pton(socket.AF_INET6, "2001:db8::1"),
        dst=socket.inet_pton(socket.AF_INET6, "2001:db8::2"),
        nxt=dpkt.ip.IP_PROTO_UDP,
        hlim=64,
    )
    ip6.data = udp

    ethernet6 = dpkt.ethernet.Ethernet(
        src=b"\xcc\xcc\xcc\xcc\xcc\xcc",
        dst=b"\xdd\xdd\xdd\xdd\xdd\xdd",
        type=dpkt.ethernet.ETH_TYPE_IP6,
        data=ip6,
    )
    return bytes(ethernet6)


def _icmp_frame() -> bytes:
    icmp = dpkt.icmp.ICMP(
        type=dpkt.icmp.ICMP_ECHO,
        data=dpkt.icmp.ICMP.Echo(id=1, seq=1, data=b"ping"),
    )
    ip = dpkt.ip.IP(
        src=socket.inet_aton("10.0.0.1"),
        dst=socket.inet_aton("10.0.0.2"),
        p=dpkt.ip.IP_PROTO_ICMP,
        ttl=64,
    )
    ip.data = icmp
    ethernet = dpkt.ethernet.Ethernet(
        src=b"\xaa\xaa\xaa\xaa\xaa\xaa",
        dst=b"\xbb\xbb\xbb\xbb\xbb\xbb",
        type=dpkt.ethernet.ETH_TYPE_IP,
        data=ip,
    )
    return bytes(ethernet)


def test_ipv4_tcp_frame_reports_endpoints_flags_and_length():
    frame = _tcp_frame(flags=dpkt.tcp.TH_SYN | dpkt.tcp.TH_ACK, payload=b"hello")

    summary = classify(frame, 7)

    assert summary.length == len(frame)
    assert summary.layers == ("Ethernet", "IPv4", "TCP")
    assert summary.text == (
        f"[7] IPv4 TCP | SRC: 192.0.2.1:12345 | DST: 192.0.2.2:80 "
        f"| FLAGS: SYN,ACK | LEN: {len(frame)}"
    )
    assert str(summary) == summary.text


def test_ipv6_udp_frame_has_no_flags_field():
    frame = _udp6_frame()

    summary = classify(frame, 0)

    assert summary.layers == ("Ethernet", "IPv6", "UDP")
    assert summary.text == f"[0] IPv6 UDP | SRC: 2001:db8::1:53 | DST: 2001:db8::2:4444 | LEN: {len(frame)}"
    assert "FLAGS" not in summary.text


def test_transport_other_than_tcp_or_udp_is_unknown():
    frame = _icmp_frame()

    summary = classify(frame, 3)

    assert summary.is_unknown
    assert summary.text == f"[3] Unknown Packet | LEN: {len(frame)}"


def test_non_ip_ethertype_is_unknown():
    arp = dpkt.ethernet.Ethernet(
        src=b"\xaa\xaa\xaa\xaa\xaa\xaa",
        dst=b"\xff\xff\xff\xff\xff\xff",
        type=dpkt.ethernet.ETH_TYPE_ARP,
        data=dpkt.arp.ARP(),
    )
    frame = bytes(arp)

    summary = classify(frame, 1)

    assert summary.is_unknown
    assert summary.layers == ()


_MACS = b"\xbb" * 6 + b"\xaa" * 6


def test_mpls_frame_carrying_ipv4_is_unknown():
    ip_packet = _tcp_frame(src="10.0.0.1", dst="10.0.0.2", sport=1111)[14:]
    label = struct.pack(">I", (100 << 12) | (1 << 8) | 64)
    frame = _MACS + struct.pack(">H", dpkt.ethernet.ETH_TYPE_MPLS) + label + ip_packet

    summary = classify(frame, 0)

    assert summary.is_unknown
    assert summary.text == f"[0] Unknown Packet | LEN: {len(frame)}"


def test_unregistered_ethertype_with_ip_looking_payload_is_unknown():
    ip_packet = _tcp_frame()[14:]
    frame = _MACS + b"\x88\xb5" + ip_packet

    assert classify(frame, 2).is_unknown


def test_vlan_tagged_ipv4_frame_is_classified():
    ip_packet = _tcp_frame()[14:]
    frame = _MACS + struct.pack(">HHH", 0x8100, 42, dpkt.ethernet.ETH_TYPE_IP) + ip_packet

    summary = classify(frame, 4)

    assert summary.layers == ("Ethernet", "IPv4", "TCP")
    assert summary.text.startswith("[4] IPv4 TCP | SRC: 192.0.2.1:12345 | DST: 192.0.2.2:80")


@pytest.mark.parametrize("frame", [b"", b"\x00", b"\xff" * 13])
def test_frames_shorter_than_ethernet_header_are_unknown(frame):
    summary = classify(frame, 0)

    assert summary == PacketSummary(sequence=0, length=len(frame))
    assert summary.text == f"[0] Unknown Packet | LEN: {len(frame)}"


def test_every_truncation_of_a_tcp_frame_is_classified():
    frame = _tcp_frame()
    headers_end = 14 + 20 + 20

    for cut in range(len(frame)):
        summary = classify(frame[:cut], cut)
        assert summary.length == cut
        if cut < headers_end:
            assert summary.is_unknown, cut


def test_random_garbage_never_raises():
    rng = random.Random(1234)
    for length in range(0, 200, 3):
        frame = bytes(rng.getrandbits(8) for _ in range(length))
        summary = classify(frame, length)
        assert summary.sequence == length
        assert summary.length == length
        assert summary.text.endswith(f"LEN: {length}")


def test_garbage_behind_an_ipv4_ethertype_is_unknown():
    frame = b"\xbb" * 6 + b"\xaa" * 6 + b"\x08\x00" + b"\x45" + b"\x00" * 10

    assert classify(frame, 0).is_unknown


def test_format_tcp_flags():
    assert format_tcp_flags(0) == "NONE"
    assert format_tcp_flags(dpkt.tcp.TH_FIN | dpkt.tcp.TH_ACK) == "FIN,ACK"
    assert format_tcp_flags(dpkt.tcp.TH_RST) == "RST"
