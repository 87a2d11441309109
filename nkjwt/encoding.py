"""
Codec primitives shared by the seed and token layers.

All functions are pure; there is no process-wide encoder state.
"""

import base64
import binascii


def _build_crc16_table():
    table = []
    for i in range(256):
        crc = i << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) ^ 0x1021) & 0xFFFF
            else:
                crc = (crc << 1) & 0xFFFF
        table.append(crc)
    return tuple(table)


_CRC16_TABLE = _build_crc16_table()


def crc16(data: bytes) -> int:
    """CRC-16/XMODEM (poly 0x1021, init 0) of data."""
    crc = 0
    for b in data:
        crc = ((crc << 8) & 0xFFFF) ^ _CRC16_TABLE[((crc >> 8) ^ b) & 0xFF]
    return crc


def crc16_bytes(data: bytes) -> bytes:
    """Checksum of data as two little-endian bytes."""
    return crc16(data).to_bytes(2, "little")


def b32encode_nopad(data: bytes) -> str:
    return base64.b32encode(data).decode("ascii").rstrip("=")


def b32decode_nopad(text: str) -> bytes:
    """
    Decode standard-alphabet base32 without padding.

    Raises:
        ValueError: If text contains characters outside the alphabet.
    """
    padded = text + "=" * (-len(text) % 8)
    try:
        return base64.b32decode(padded)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"invalid base32: {e}") from e


def b64encode_nopad(data: bytes) -> str:
    """Standard-alphabet base64 without padding (raw key export format)."""
    return base64.b64encode(data).decode("ascii").rstrip("=")
