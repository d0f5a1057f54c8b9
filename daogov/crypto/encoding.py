"""
daogov Instruction Encoding Module

Little-endian, fixed-width binary encoding for governance instruction
payloads:

    u8 / u16 / u32 / u64   little-endian, fixed width
    bool                   1 byte (0 or 1)
    String                 u32 length prefix + raw UTF-8, no terminator
    PublicKey              32 raw bytes
    Option<T>              1 presence byte, then T only when present
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar, Union

from ..constants import ENDIAN, PUBLIC_KEY_LENGTH
from ..exceptions import EncodingError
from .address import PublicKey

T = TypeVar("T")

_UINT_BITS = {"u8": 8, "u16": 16, "u32": 32, "u64": 64}


# ══════════════════════════════════════════════════════════════════════
#  OPTION
# ══════════════════════════════════════════════════════════════════════

class Option(Generic[T]):
    """
    Tagged optional value: either ``Some(value)`` or ``NOTHING``.

    Kept separate from Python ``None`` so an absent field and a present
    field are two explicit, independently testable variants.
    """

    __slots__ = ()

    is_some: bool = False

    @staticmethod
    def of(value: Optional[T]) -> "Option[T]":
        """Lift a nullable Python value."""
        if isinstance(value, Option):
            return value
        return NOTHING if value is None else Some(value)

    def unwrap_or(self, default: T) -> T:
        raise NotImplementedError


@dataclass(frozen=True)
class Some(Option[T]):
    value: T

    is_some = True

    def unwrap_or(self, default: T) -> T:
        return self.value


class _Nothing(Option[Any]):
    _instance: Optional["_Nothing"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def unwrap_or(self, default):
        return default

    def __repr__(self) -> str:
        return "NOTHING"

    def __bool__(self) -> bool:
        return False


NOTHING = _Nothing()

OptionLike = Union[Option[T], T, None]


# ══════════════════════════════════════════════════════════════════════
#  WRITER
# ══════════════════════════════════════════════════════════════════════

class InstructionWriter:
    """
    Append-only byte buffer for instruction payloads.

    Every writer method returns ``self`` so layouts read top to bottom:

        data = (InstructionWriter()
                .raw(disc)
                .string(name)
                .u64(voting_period)
                .getvalue())
    """

    def __init__(self):
        self._buf = bytearray()

    def __len__(self) -> int:
        return len(self._buf)

    def getvalue(self) -> bytes:
        return bytes(self._buf)

    def _uint(self, kind: str, value: int) -> "InstructionWriter":
        bits = _UINT_BITS[kind]
        if isinstance(value, bool) or not isinstance(value, int):
            raise EncodingError(f"{kind} expects an int, got {type(value).__name__}")
        if value < 0 or value >= 1 << bits:
            raise EncodingError(f"{value} does not fit in {kind}")
        self._buf += value.to_bytes(bits // 8, ENDIAN)
        return self

    def u8(self, value: int) -> "InstructionWriter":
        return self._uint("u8", value)

    def u16(self, value: int) -> "InstructionWriter":
        return self._uint("u16", value)

    def u32(self, value: int) -> "InstructionWriter":
        return self._uint("u32", value)

    def u64(self, value: int) -> "InstructionWriter":
        return self._uint("u64", value)

    def bool(self, value: bool) -> "InstructionWriter":
        self._buf.append(1 if value else 0)
        return self

    def raw(self, data: bytes) -> "InstructionWriter":
        self._buf += data
        return self

    def string(self, value: str) -> "InstructionWriter":
        encoded = value.encode("utf-8")
        self.u32(len(encoded))
        self._buf += encoded
        return self

    def pubkey(self, key: PublicKey) -> "InstructionWriter":
        self._buf += key.to_bytes()
        return self

    def option(
        self,
        value: OptionLike,
        write: Callable[["InstructionWriter", Any], "InstructionWriter"],
    ) -> "InstructionWriter":
        """
        Write an ``Option<T>``: ``0x00`` when absent, ``0x01`` + payload when present.

        *write* is the unbound writer for ``T`` (e.g. ``InstructionWriter.u64``).
        """
        opt = Option.of(value)
        if isinstance(opt, Some):
            self._buf.append(1)
            write(self, opt.value)
        else:
            self._buf.append(0)
        return self


# ══════════════════════════════════════════════════════════════════════
#  READER
# ══════════════════════════════════════════════════════════════════════

class InstructionReader:
    """
    Cursor over an encoded payload; the inverse of InstructionWriter.

    Used to check layouts; decoding ledger data is not a goal.
    """

    def __init__(self, data: bytes, offset: int = 0):
        self._data = bytes(data)
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self.offset

    def _take(self, n: int) -> bytes:
        if self.remaining < n:
            raise EncodingError(
                f"Need {n} bytes at offset {self.offset}, only {self.remaining} left"
            )
        chunk = self._data[self.offset:self.offset + n]
        self.offset += n
        return chunk

    def _uint(self, kind: str) -> int:
        return int.from_bytes(self._take(_UINT_BITS[kind] // 8), ENDIAN)

    def u8(self) -> int:
        return self._uint("u8")

    def u16(self) -> int:
        return self._uint("u16")

    def u32(self) -> int:
        return self._uint("u32")

    def u64(self) -> int:
        return self._uint("u64")

    def bool(self) -> bool:
        flag = self.u8()
        if flag > 1:
            raise EncodingError(f"Invalid bool byte {flag}")
        return flag == 1

    def raw(self, n: int) -> bytes:
        return self._take(n)

    def string(self) -> str:
        return self._take(self.u32()).decode("utf-8")

    def pubkey(self) -> PublicKey:
        return PublicKey(self._take(PUBLIC_KEY_LENGTH))

    def option(self, read: Callable[["InstructionReader"], T]) -> Option[T]:
        flag = self.u8()
        if flag == 0:
            return NOTHING
        if flag == 1:
            return Some(read(self))
        raise EncodingError(f"Invalid option presence byte {flag}")


def option_size(value: OptionLike, payload_size: int) -> int:
    """Encoded size of an ``Option<T>`` whose payload is *payload_size* bytes."""
    return 1 + (payload_size if Option.of(value).is_some else 0)


def string_size(value: str) -> int:
    """Encoded size of a length-prefixed string."""
    return 4 + len(value.encode("utf-8"))
