from __future__ import annotations

from typing import Any, Callable, List, Optional, TypeVar

T = TypeVar("T")

MAX_U8 = 2**8 - 1
MAX_U16 = 2**16 - 1
MAX_U32 = 2**32 - 1
MAX_U64 = 2**64 - 1
MAX_U128 = 2**128 - 1
MAX_U256 = 2**256 - 1


class DeserializationError(ValueError):
    """Raised when bytes do not decode as the expected BCS structure."""


class Deserializer:
    """
    Reader for Binary Canonical Serialization (BCS).

    Integers are little-endian, sequence lengths and enum tags are ULEB128,
    byte vectors and strings are length-prefixed.
    """

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def remaining(self) -> int:
        return len(self._data) - self._pos

    def assert_finished(self) -> None:
        if self.remaining() != 0:
            raise DeserializationError(f"{self.remaining()} trailing byte(s) after structure")

    def _read(self, length: int) -> bytes:
        if length < 0 or self.remaining() < length:
            raise DeserializationError(
                f"unexpected end of input: need {length} byte(s) at offset {self._pos}, have {self.remaining()}"
            )
        out = self._data[self._pos : self._pos + length]
        self._pos += length
        return out

    def _uint(self, width: int) -> int:
        return int.from_bytes(self._read(width), "little")

    def u8(self) -> int:
        return self._uint(1)

    def u16(self) -> int:
        return self._uint(2)

    def u32(self) -> int:
        return self._uint(4)

    def u64(self) -> int:
        return self._uint(8)

    def u128(self) -> int:
        return self._uint(16)

    def u256(self) -> int:
        return self._uint(32)

    def bool(self) -> bool:
        v = self.u8()
        if v == 0:
            return False
        if v == 1:
            return True
        raise DeserializationError(f"invalid bool byte {v:#04x}")

    def uleb128(self) -> int:
        value = 0
        shift = 0
        while True:
            byte = self.u8()
            value |= (byte & 0x7F) << shift
            if byte & 0x80 == 0:
                # A zero final byte after a continuation is a padded, non-canonical encoding.
                if byte == 0 and shift > 0:
                    raise DeserializationError("non-canonical ULEB128 encoding")
                break
            shift += 7
            if shift > 28:
                raise DeserializationError("ULEB128 value does not fit in u32")
        if value > MAX_U32:
            raise DeserializationError("ULEB128 value does not fit in u32")
        return value

    def to_bytes(self) -> bytes:
        return self._read(self.uleb128())

    def fixed_bytes(self, length: int) -> bytes:
        return self._read(length)

    def str(self) -> str:
        raw = self.to_bytes()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DeserializationError(f"invalid utf-8 string: {e}") from e

    def sequence(self, decoder: Callable[["Deserializer"], T]) -> List[T]:
        length = self.uleb128()
        return [decoder(self) for _ in range(length)]

    def option(self, decoder: Callable[["Deserializer"], T]) -> Optional[T]:
        if self.bool():
            return decoder(self)
        return None

    def struct(self, cls: Any) -> Any:
        return cls.deserialize(self)


class Serializer:
    """Writer counterpart of `Deserializer`."""

    def __init__(self) -> None:
        self._out = bytearray()

    def output(self) -> bytes:
        return bytes(self._out)

    def _uint(self, value: int, width: int, limit: int) -> None:
        if value < 0 or value > limit:
            raise ValueError(f"value {value} out of range for u{width * 8}")
        self._out += int(value).to_bytes(width, "little")

    def u8(self, value: int) -> None:
        self._uint(value, 1, MAX_U8)

    def u16(self, value: int) -> None:
        self._uint(value, 2, MAX_U16)

    def u32(self, value: int) -> None:
        self._uint(value, 4, MAX_U32)

    def u64(self, value: int) -> None:
        self._uint(value, 8, MAX_U64)

    def u128(self, value: int) -> None:
        self._uint(value, 16, MAX_U128)

    def u256(self, value: int) -> None:
        self._uint(value, 32, MAX_U256)

    def bool(self, value: bool) -> None:
        self.u8(1 if value else 0)

    def uleb128(self, value: int) -> None:
        if value < 0 or value > MAX_U32:
            raise ValueError(f"ULEB128 value {value} out of range")
        while value >= 0x80:
            self._out.append((value & 0x7F) | 0x80)
            value >>= 7
        self._out.append(value)

    def to_bytes(self, value: bytes) -> None:
        self.uleb128(len(value))
        self._out += value

    def fixed_bytes(self, value: bytes) -> None:
        self._out += value

    def str(self, value: str) -> None:
        self.to_bytes(value.encode("utf-8"))

    def sequence(self, values: List[T], encoder: Callable[["Serializer", T], None]) -> None:
        self.uleb128(len(values))
        for v in values:
            encoder(self, v)

    def option(self, value: Optional[T], encoder: Callable[["Serializer", T], None]) -> None:
        if value is None:
            self.bool(False)
            return
        self.bool(True)
        encoder(self, value)

    def struct(self, value: Any) -> None:
        value.serialize(self)


def encode(value: Any) -> bytes:
    ser = Serializer()
    ser.struct(value)
    return ser.output()


def decode(data: bytes, cls: Any) -> Any:
    """Decode exactly one `cls` from `data`; trailing bytes are an error."""
    des = Deserializer(data)
    out = des.struct(cls)
    des.assert_finished()
    return out
