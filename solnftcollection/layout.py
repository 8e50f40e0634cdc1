"""
Minimal Borsh codec used for Token Metadata instruction data and account layouts.
All integers are little-endian, strings are u32-length-prefixed UTF-8,
options are a one-byte tag followed by the value.
"""
import struct
from typing import Callable, List, Optional, TypeVar

from solders.pubkey import Pubkey

T = TypeVar("T")


class BorshWriter:
    def __init__(self):
        self._buffer = bytearray()

    def u8(self, value: int) -> "BorshWriter":
        self._buffer.extend(struct.pack("<B", value))
        return self

    def u16(self, value: int) -> "BorshWriter":
        self._buffer.extend(struct.pack("<H", value))
        return self

    def u32(self, value: int) -> "BorshWriter":
        self._buffer.extend(struct.pack("<I", value))
        return self

    def u64(self, value: int) -> "BorshWriter":
        self._buffer.extend(struct.pack("<Q", value))
        return self

    def bool(self, value: bool) -> "BorshWriter":
        return self.u8(1 if value else 0)

    def string(self, value: str) -> "BorshWriter":
        encoded = value.encode("utf-8")
        self.u32(len(encoded))
        self._buffer.extend(encoded)
        return self

    def pubkey(self, value: Pubkey) -> "BorshWriter":
        self._buffer.extend(bytes(value))
        return self

    def raw(self, value: bytes) -> "BorshWriter":
        self._buffer.extend(value)
        return self

    def option(
        self, value: Optional[T], write: Callable[["BorshWriter", T], object]
    ) -> "BorshWriter":
        if value is None:
            return self.u8(0)
        self.u8(1)
        write(self, value)
        return self

    def vec(
        self, values: List[T], write: Callable[["BorshWriter", T], object]
    ) -> "BorshWriter":
        self.u32(len(values))
        for value in values:
            write(self, value)
        return self

    def to_bytes(self) -> bytes:
        return bytes(self._buffer)


class BorshReader:
    def __init__(self, data: bytes, offset: int = 0):
        self.data = data
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def _take(self, size: int) -> bytes:
        if self.remaining < size:
            raise ValueError(
                f"Unexpected end of data: need {size} bytes at offset {self.offset}, "
                f"have {self.remaining}"
            )
        chunk = self.data[self.offset : self.offset + size]
        self.offset += size
        return chunk

    def u8(self) -> int:
        return struct.unpack("<B", self._take(1))[0]

    def u16(self) -> int:
        return struct.unpack("<H", self._take(2))[0]

    def u32(self) -> int:
        return struct.unpack("<I", self._take(4))[0]

    def u64(self) -> int:
        return struct.unpack("<Q", self._take(8))[0]

    def bool(self) -> bool:
        return self.u8() != 0

    def string(self) -> str:
        length = self.u32()
        return self._take(length).decode("utf-8")

    def pubkey(self) -> Pubkey:
        return Pubkey.from_bytes(self._take(32))

    def raw(self, size: int) -> bytes:
        return self._take(size)

    def option(self, read: Callable[["BorshReader"], T]) -> Optional[T]:
        # Older accounts end early; the zero padding reads as None
        if self.remaining == 0:
            return None
        if self.u8() == 0:
            return None
        return read(self)

    def vec(self, read: Callable[["BorshReader"], T]) -> List[T]:
        return [read(self) for _ in range(self.u32())]
