"""HTTP header evidence extraction.

Turns a raw HTTP request, or an Ethernet frame carrying one, into evidence
pairs for `Manager.detect`. Malformed or non-HTTP input yields no evidence.
"""
from __future__ import annotations

import logging
import typing as t

import dpkt

from ..identifiers import Custom, EvidenceName

log = logging.getLogger("hashdetect.extractors.http")

HEADER_JOIN = ", "


def _header_value(val) -> str:
    # dpkt collects repeated headers into a list
    if isinstance(val, (list, tuple)):
        return HEADER_JOIN.join(str(v) for v in val)
    return str(val)


def extract_http_evidence(
    raw_request: bytes, include_custom: bool = False
) -> t.List[t.Tuple[EvidenceName | Custom, str]]:
    """Return evidence pairs for the headers of a raw HTTP request.

    Headers in the catalog come back as `EvidenceName` members, in request
    order. Other headers are kept as `Custom` only if `include_custom`.
    """
    try:
        req = dpkt.http.Request(raw_request)
    except (dpkt.UnpackError, ValueError) as e:
        log.debug("not an HTTP request: %s", e)
        return []

    out: t.List[t.Tuple[EvidenceName | Custom, str]] = []
    for name, val in req.headers.items():
        key = EvidenceName.from_header(name)
        if isinstance(key, Custom):
            if not include_custom:
                continue
            key = Custom(name.lower())
        out.append((key, _header_value(val)))
    return out


def extract_from_frame(
    raw_frame: bytes, include_custom: bool = False
) -> t.List[t.Tuple[EvidenceName | Custom, str]]:
    """Ethernet -> IPv4/IPv6 -> TCP -> HTTP request headers."""
    try:
        eth = dpkt.ethernet.Ethernet(raw_frame)
    except (dpkt.UnpackError, ValueError):
        return []

    ip = eth.data
    if not isinstance(ip, (dpkt.ip.IP, dpkt.ip6.IP6)):
        return []
    tcp = ip.data
    if not isinstance(tcp, dpkt.tcp.TCP):
        return []
    payload = bytes(tcp.data)
    if not payload:
        return []
    return extract_http_evidence(payload, include_custom=include_custom)
