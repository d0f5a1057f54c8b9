"""
daogov Crypto Hashing Module

Provides the hash functions used for address derivation:
- sha256: digest of the concatenated seed material
"""

import hashlib
from typing import Iterable, Union


def sha256(data: Union[bytes, str]) -> bytes:
    """
    Compute SHA-256 hash.

    Args:
        data: Input bytes, or a string hashed as UTF-8

    Returns:
        32-byte hash
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.sha256(data).digest()


def sha256_concat(parts: Iterable[bytes]) -> bytes:
    """
    Compute SHA-256 over the ordered concatenation of *parts*.

    Equivalent to ``sha256(b''.join(parts))`` without building the joined
    buffer.
    """
    h = hashlib.sha256()
    for part in parts:
        h.update(part)
    return h.digest()


def sha256_hex(data: Union[bytes, str]) -> str:
    """
    Compute SHA-256 hash and return as hex string (no prefix).
    """
    return sha256(data).hex()
