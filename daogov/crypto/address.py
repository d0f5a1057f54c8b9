"""
daogov Crypto Address Module

Implements account addresses for the governance program:
- PublicKey: 32-byte account identifier with base58 text form
- Ed25519 curve membership test
- Program-derived addresses (PDA): seed-derived identifiers guaranteed to
  lie off the Ed25519 curve, so no private key can exist for them
"""

from typing import Iterable, Sequence, Tuple, Union

import base58

from ..constants import (
    MAX_SEED_LENGTH,
    MAX_SEEDS,
    PDA_MARKER,
    PUBLIC_KEY_LENGTH,
)
from ..exceptions import InvalidAddressError, InvalidSeedsError
from .hashing import sha256_concat


# Ed25519 field prime and twisted Edwards curve constant d = -121665/121666
_P = 2 ** 255 - 19
_D = (-121665 * pow(121666, _P - 2, _P)) % _P
_Y_MASK = (1 << 255) - 1


class PublicKey:
    """
    Immutable 32-byte account address.

    Accepts raw bytes, a base58 string, or another PublicKey. Compares and
    hashes by its bytes so it can key dictionaries and sets.
    """

    __slots__ = ("_bytes",)

    def __init__(self, value: Union[bytes, bytearray, str, "PublicKey"]):
        if isinstance(value, PublicKey):
            raw = value.to_bytes()
        elif isinstance(value, (bytes, bytearray)):
            raw = bytes(value)
        elif isinstance(value, str):
            try:
                raw = base58.b58decode(value)
            except ValueError as e:
                raise InvalidAddressError(f"Invalid base58 address: {value!r}") from e
            # Keys whose integer value is small decode short; left-pad like the chain does
            if len(raw) < PUBLIC_KEY_LENGTH:
                raw = raw.rjust(PUBLIC_KEY_LENGTH, b"\x00")
        else:
            raise InvalidAddressError(f"Cannot build a PublicKey from {type(value).__name__}")

        if len(raw) != PUBLIC_KEY_LENGTH:
            raise InvalidAddressError(
                f"Public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(raw)}"
            )
        self._bytes = raw

    @classmethod
    def default(cls) -> "PublicKey":
        """The all-zero key (also the system program id)."""
        return cls(bytes(PUBLIC_KEY_LENGTH))

    def to_bytes(self) -> bytes:
        return self._bytes

    def to_base58(self) -> str:
        return base58.b58encode(self._bytes).decode("ascii")

    def is_on_curve(self) -> bool:
        return is_on_curve(self._bytes)

    def __bytes__(self) -> bytes:
        return self._bytes

    def __eq__(self, other) -> bool:
        if isinstance(other, PublicKey):
            return self._bytes == other._bytes
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._bytes)

    def __str__(self) -> str:
        return self.to_base58()

    def __repr__(self) -> str:
        return f"PublicKey({self.to_base58()})"


def is_on_curve(data: bytes) -> bool:
    """
    Check whether 32 bytes decompress to a point on the Ed25519 curve.

    The y coordinate is read little-endian with the sign bit cleared. The
    point exists iff x^2 = (y^2 - 1) / (d*y^2 + 1) has a square root mod p.
    The denominator never vanishes because -1/d is not a square.
    """
    if len(data) != PUBLIC_KEY_LENGTH:
        raise InvalidAddressError(
            f"Curve points are {PUBLIC_KEY_LENGTH} bytes, got {len(data)}"
        )
    y = (int.from_bytes(data, "little") & _Y_MASK) % _P
    y2 = y * y % _P
    u = (y2 - 1) % _P
    v = (_D * y2 + 1) % _P
    x2 = u * pow(v, _P - 2, _P) % _P
    if x2 == 0:
        return True
    # Euler's criterion
    return pow(x2, (_P - 1) // 2, _P) == 1


def _check_seeds(seeds: Sequence[bytes]) -> None:
    if len(seeds) > MAX_SEEDS:
        raise InvalidSeedsError(f"At most {MAX_SEEDS} seeds allowed, got {len(seeds)}")
    for i, seed in enumerate(seeds):
        if len(seed) > MAX_SEED_LENGTH:
            raise InvalidSeedsError(
                f"Seed #{i} is {len(seed)} bytes, max is {MAX_SEED_LENGTH}"
            )


def create_program_address(seeds: Sequence[bytes], program_id: PublicKey) -> PublicKey:
    """
    Hash *seeds* under *program_id* into an address.

    address = sha256(seed_0 || ... || seed_n || program_id || "ProgramDerivedAddress")

    Raises:
        InvalidSeedsError: seed limits exceeded or the hash lands on the curve
    """
    seeds = [bytes(s) for s in seeds]
    _check_seeds(seeds)
    digest = sha256_concat([*seeds, program_id.to_bytes(), PDA_MARKER])
    if is_on_curve(digest):
        raise InvalidSeedsError("Derived address falls on the ed25519 curve")
    return PublicKey(digest)


def find_program_address(
    seeds: Iterable[bytes],
    program_id: PublicKey,
) -> Tuple[PublicKey, int]:
    """
    Find the canonical program-derived address for *seeds*.

    Appends a single bump byte to the seeds, starting at 255 and counting
    down, and returns the first candidate that is off the curve together
    with its bump.

    Raises:
        InvalidSeedsError: seed limits exceeded or no bump produced a valid address
    """
    seeds = [bytes(s) for s in seeds]
    _check_seeds(seeds + [b"\xff"])
    for bump in range(255, 0, -1):
        try:
            return create_program_address(seeds + [bytes([bump])], program_id), bump
        except InvalidSeedsError:
            continue
    raise InvalidSeedsError("Unable to find a viable program address bump seed")


def to_public_key(value: Union[bytes, str, PublicKey]) -> PublicKey:
    """Coerce bytes / base58 / PublicKey into a PublicKey."""
    if isinstance(value, PublicKey):
        return value
    return PublicKey(value)

