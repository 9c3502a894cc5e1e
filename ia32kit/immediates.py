"""Little-endian immediate values read from instruction bytes."""

from __future__ import annotations


def _width(size: int) -> int:
    # 6-byte values are read as a full qword; unknown sizes as a dword.
    if size in (1, 2):
        return size
    if size in (6, 8):
        return 8
    return 4


def _read(buf: bytes, size: int, signed: bool) -> int:
    if size < 0 or size > len(buf):
        raise ValueError(f"cannot read {size} bytes from a {len(buf)}-byte buffer")
    width = _width(size)
    data = bytes(buf[:width]).ljust(width, b"\x00")
    return int.from_bytes(data, "little", signed=signed)


def read_unsigned(buf: bytes, size: int) -> int:
    """Read an unsigned immediate of ``size`` bytes from the start of ``buf``."""
    return _read(buf, size, signed=False)


def read_signed(buf: bytes, size: int) -> int:
    """Read a two's-complement immediate of ``size`` bytes from ``buf``."""
    return _read(buf, size, signed=True)