"""
daogov Crypto Module

Primitives for addressing governance program accounts:
- SHA-256 hashing
- PublicKey (32 bytes, base58 text form)
- Ed25519 curve membership and program-derived addresses
- Little-endian instruction encoding with tagged Option values
"""

from .hashing import sha256, sha256_concat, sha256_hex
from .address import (
    PublicKey,
    create_program_address,
    find_program_address,
    is_on_curve,
    to_public_key,
)
from .encoding import (
    NOTHING,
    InstructionReader,
    InstructionWriter,
    Option,
    Some,
    option_size,
    string_size,
)

__all__ = [
    # Hashing
    'sha256',
    'sha256_concat',
    'sha256_hex',
    # Addresses
    'PublicKey',
    'create_program_address',
    'find_program_address',
    'is_on_curve',
    'to_public_key',
    # Encoding
    'NOTHING',
    'InstructionReader',
    'InstructionWriter',
    'Option',
    'Some',
    'option_size',
    'string_size',
]
