import hashlib

import paramiko
import pytest

from nodeconfig.crypto.fingerprint import authorized_key, public_key_hash

KEY_A = "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIOMqqnkVzrm0SdG6UOoqKLsabgH5C9okWi0dh2l9GKJl"
KEY_B = "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIFakeFakeFakeFakeFakeFakeFakeFakeFakeFakeFake"


def test_hash_is_sha256_of_trimmed_line():
    assert public_key_hash(KEY_A + "\n") == hashlib.sha256(KEY_A.encode()).hexdigest()


def test_hash_is_deterministic():
    assert public_key_hash(KEY_A) == public_key_hash(KEY_A)
    assert len(public_key_hash(KEY_A)) == 64


def test_one_trailing_newline_is_ignored():
    assert public_key_hash(KEY_A) == public_key_hash(KEY_A + "\n")


def test_only_one_trailing_newline_is_trimmed():
    assert public_key_hash(KEY_A + "\n\n") != public_key_hash(KEY_A)
    assert public_key_hash(KEY_A + "\n\n") == hashlib.sha256((KEY_A + "\n").encode()).hexdigest()


def test_bytes_and_str_agree():
    assert public_key_hash(KEY_A.encode()) == public_key_hash(KEY_A)


def test_non_utf8_bytes_are_hashed_as_is():
    raw = b"\xff\xfe key"
    assert public_key_hash(raw + b"\n") == hashlib.sha256(raw).hexdigest()
    assert public_key_hash(raw) == public_key_hash(raw + b"\n")


def test_distinct_keys_distinct_hashes():
    assert public_key_hash(KEY_A) != public_key_hash(KEY_B)


@pytest.fixture(scope="module")
def rsa_key():
    return paramiko.RSAKey.generate(1024)


def test_paramiko_key_hashes_its_authorized_key_line(rsa_key):
    line = authorized_key(rsa_key)
    assert line.startswith("ssh-rsa ") and line.endswith("\n")
    assert public_key_hash(rsa_key) == public_key_hash(line)
    assert public_key_hash(rsa_key) == hashlib.sha256(line[:-1].encode()).hexdigest()


def test_public_half_matches_private_key(rsa_key):
    pub = paramiko.RSAKey(data=rsa_key.asbytes())
    assert public_key_hash(pub) == public_key_hash(rsa_key)
