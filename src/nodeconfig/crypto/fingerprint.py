# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/nodeconfig/crypto/fingerprint.py
from __future__ import annotations

import hashlib
from typing import Union

import paramiko

KeyLike = Union[paramiko.PKey, str, bytes]


def authorized_key(key: paramiko.PKey) -> str:
    """
    authorized_keys line for the public half of ``key``: "<type> <base64>\\n".
    """
    return f"{key.get_name()} {key.get_base64()}\n"


def public_key_hash(key: KeyLike) -> str:
    """
    Hex sha256 of the authorized-key form of a public key, used as the
    pub-key-hash node annotation so other components can detect key rotation.

    ``key`` is either a paramiko key or an authorized-key line; bytes are
    hashed as given, whatever their encoding.
    Exactly one trailing newline is dropped before hashing.
    """
    if isinstance(key, paramiko.PKey):
        data = authorized_key(key).encode("utf-8")
    elif isinstance(key, str):
        data = key.encode("utf-8")
    else:
        data = bytes(key)

    if data.endswith(b"\n"):
        data = data[:-1]
    return hashlib.sha256(data).hexdigest()
