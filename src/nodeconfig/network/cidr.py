# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodeconfig/network/cidr.py
from __future__ import annotations

import ipaddress

from nodeconfig.errors import ValidationError


def validate_cidr(value: str) -> str:
    """
    Require a well-formed CIDR with a prefix length and no host bits set,
    e.g. "172.30.0.0/16". Returns the value unchanged.
    """
    if not value or "/" not in value:
        raise ValidationError(f"invalid CIDR {value!r}: expected <address>/<prefix>")
    try:
        ipaddress.ip_network(value, strict=True)
    except ValueError as e:
        raise ValidationError(f"invalid CIDR {value!r}: {e}") from e
    return value
