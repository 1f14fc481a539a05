from __future__ import annotations

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def parse_hex(text: str) -> bytes:
    """
    Decode a hex string with or without a `0x` prefix.

    Raises ValueError on odd length or non-hex characters.
    """
    if not isinstance(text, str):
        raise ValueError("hex value must be a string")
    s = text.strip()
    if s[:2] in ("0x", "0X"):
        s = s[2:]
    if len(s) % 2 != 0:
        raise ValueError(f"hex value has odd length ({len(s)} digits)")
    bad = next((c for c in s if c not in _HEX_DIGITS), None)
    if bad is not None:
        raise ValueError(f"invalid hex character {bad!r}")
    return bytes.fromhex(s)


def to_hex(data: bytes) -> str:
    return "0x" + bytes(data).hex()


def hex_preview(data: bytes, limit: int = 60) -> str:
    h = to_hex(data)
    return h if len(h) <= limit else h[:limit] + "..."
