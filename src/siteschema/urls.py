# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Page URL validation and URL absolutization.

``validate_page_url`` guards navigation: http(s) only, a hostname is
required, cloud metadata endpoints are always refused and loopback /
private addresses are refused unless ``allow_local`` is set. No DNS
lookups are made; only literal hosts and IP spellings are checked.

``absolutize`` resolves a possibly-relative reference against the page
URL for JSON-LD output.
"""

from __future__ import annotations

import ipaddress
from urllib.parse import urljoin, urlparse

from .errors import InvalidInputError

ALLOWED_URL_SCHEMES = frozenset({"http", "https"})

# Never navigable, even with allow_local
_CLOUD_METADATA_HOSTS = frozenset({"metadata.google.internal", "169.254.169.254"})
_CLOUD_METADATA_NETWORKS = [ipaddress.ip_network("169.254.0.0/16")]

# Unlocked by allow_local
_LOCAL_HOSTS = frozenset({"localhost"})
_LOCAL_NETWORKS = [
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("fc00::/7"),
]

# Everything else reserved stays blocked
_PRIVATE_NETWORKS = [
    *_LOCAL_NETWORKS,
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("100.64.0.0/10"),  # CGNAT
    ipaddress.ip_network("fe80::/10"),
    ipaddress.ip_network("::ffff:0:0/96"),  # IPv4-mapped IPv6
]


def _normalize_ip(hostname: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    """Parse dotted, decimal (2130706433) and hex (0x7f000001) IP spellings.

    Returns None when *hostname* is a domain name.
    """
    try:
        return ipaddress.ip_address(hostname.strip("[]"))
    except ValueError:
        pass
    for base, prefix in ((10, ""), (16, "0x")):
        if prefix and not hostname.startswith(prefix):
            continue
        try:
            num = int(hostname, base)
        except ValueError:
            continue
        if 0 <= num <= 0xFFFFFFFF:
            return ipaddress.ip_address(num)
    return None


def validate_page_url(url: str, *, allow_local: bool = False) -> str:
    """Return *url* stripped of surrounding whitespace, or raise InvalidInputError."""
    url = (url or "").strip()
    if not url:
        raise InvalidInputError("URL is required.", value=url)
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise InvalidInputError(f"Invalid URL format: {e}", value=url) from e

    scheme = (parsed.scheme or "").lower()
    if scheme not in ALLOWED_URL_SCHEMES:
        raise InvalidInputError(f"URL scheme '{scheme}' is not allowed. Use http or https.", value=url)

    hostname = (parsed.hostname or "").lower()
    if not hostname:
        raise InvalidInputError("URL must include a hostname.", value=url)

    if hostname in _CLOUD_METADATA_HOSTS:
        raise InvalidInputError(f"Access to '{hostname}' is blocked.", value=url)
    if hostname in _LOCAL_HOSTS and not allow_local:
        raise InvalidInputError(f"Access to '{hostname}' is blocked.", value=url)

    addr = _normalize_ip(hostname)
    if addr is not None:
        if any(addr in net for net in _CLOUD_METADATA_NETWORKS):
            raise InvalidInputError(f"Access to cloud metadata IP '{hostname}' is blocked.", value=url)
        if any(addr in net for net in _PRIVATE_NETWORKS):
            if not (allow_local and any(addr in net for net in _LOCAL_NETWORKS)):
                raise InvalidInputError(f"Access to private/reserved IP '{hostname}' is blocked.", value=url)
    return url


def absolutize(value: str, base: str) -> str:
    """Resolve *value* against *base*.

    A value that already has a scheme, or that does not parse as a URL, is
    returned unchanged. Otherwise the base must be an absolute URL
    (scheme + host) or InvalidInputError is raised.
    """
    try:
        if urlparse(value).scheme:
            return value
    except ValueError:
        return value
    try:
        parsed_base = urlparse(base)
    except ValueError as e:
        raise InvalidInputError(f"Malformed base URL: {e}", value=base) from e
    if not parsed_base.scheme or not parsed_base.netloc:
        raise InvalidInputError(f"Cannot resolve '{value}' against non-absolute base URL.", value=base)
    return urljoin(base, value)
