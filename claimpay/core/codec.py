"""
claimpay/core/codec.py

SCALE Encoding and the Claim Digest

THE ONLY place claim bytes are produced. Everything that hashes a claim id
or persists a claim record goes through this module.

Wire rules (must match the host chain bit-for-bit):
    Compact<u>  : 0b00 single byte   (n < 2**6)
                  0b01 two bytes LE  (n < 2**14)
                  0b10 four bytes LE (n < 2**30)
                  0b11 big-integer mode, upper six bits = byte count - 4
    String      : Compact(len(utf8)) || utf8
    Vec<u8>     : Compact(len) || bytes
    bool        : 0x00 | 0x01
    u128        : 16 bytes little-endian

Claim digest:
    digest = BLAKE2b-256(SCALE(claim_id))
"""

import hashlib
from typing import Tuple

from claimpay.core.exceptions import CodecError


DIGEST_SIZE = 32
U128_MAX    = 2 ** 128 - 1

_SINGLE_BYTE_LIMIT = 1 << 6
_TWO_BYTE_LIMIT    = 1 << 14
_FOUR_BYTE_LIMIT   = 1 << 30


# ── Compact integers ──────────────────────────────────────────

def encode_compact(n: int) -> bytes:
    """Encode a non-negative integer in SCALE compact form."""
    if not isinstance(n, int) or isinstance(n, bool) or n < 0:
        raise CodecError(f"compact value must be a non-negative int, got {n!r}")

    if n < _SINGLE_BYTE_LIMIT:
        return bytes([n << 2])
    if n < _TWO_BYTE_LIMIT:
        return ((n << 2) | 0b01).to_bytes(2, "little")
    if n < _FOUR_BYTE_LIMIT:
        return ((n << 2) | 0b10).to_bytes(4, "little")

    length = max(4, (n.bit_length() + 7) // 8)
    if length > 67:
        raise CodecError(f"compact value too large: {n.bit_length()} bits")
    return bytes([((length - 4) << 2) | 0b11]) + n.to_bytes(length, "little")


def decode_compact(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """
    Decode a SCALE compact integer starting at offset.

    Returns:
        (value, offset just past the encoded integer)
    """
    if offset >= len(data):
        raise CodecError("compact prefix missing: unexpected end of input")

    mode = data[offset] & 0b11
    if mode == 0b00:
        return data[offset] >> 2, offset + 1

    if mode == 0b11:
        width = (data[offset] >> 2) + 4
        start = offset + 1
    else:
        width = 2 if mode == 0b01 else 4
        start = offset

    end = start + width
    if end > len(data):
        raise CodecError(
            f"compact integer truncated: need {end - offset} bytes, "
            f"have {len(data) - offset}"
        )
    raw = int.from_bytes(data[start:end], "little")
    value = raw if mode == 0b11 else raw >> 2
    return value, end


# ── Scalar and sequence types ─────────────────────────────────

def encode_bytes(value: bytes) -> bytes:
    """Vec<u8>: compact length prefix followed by the raw bytes."""
    return encode_compact(len(value)) + bytes(value)


def decode_bytes(data: bytes, offset: int = 0) -> Tuple[bytes, int]:
    length, start = decode_compact(data, offset)
    end = start + length
    if end > len(data):
        raise CodecError(
            f"byte vector truncated: declared {length} bytes, "
            f"have {len(data) - start}"
        )
    return bytes(data[start:end]), end


def encode_str(value: str) -> bytes:
    """String: compact length of the UTF-8 form, then the UTF-8 bytes."""
    if not isinstance(value, str):
        raise CodecError(f"expected str, got {type(value).__name__}")
    try:
        raw = value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise CodecError(f"string is not encodable as UTF-8: {exc.reason}") from exc
    return encode_bytes(raw)


def encode_bool(value: bool) -> bytes:
    return b"\x01" if value else b"\x00"


def decode_bool(data: bytes, offset: int = 0) -> Tuple[bool, int]:
    if offset >= len(data):
        raise CodecError("bool missing: unexpected end of input")
    flag = data[offset]
    if flag not in (0, 1):
        raise CodecError(f"invalid bool byte 0x{flag:02x}")
    return flag == 1, offset + 1


def encode_u128(value: int) -> bytes:
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= U128_MAX:
        raise CodecError(f"u128 out of range: {value!r}")
    return value.to_bytes(16, "little")


def decode_u128(data: bytes, offset: int = 0) -> Tuple[int, int]:
    end = offset + 16
    if end > len(data):
        raise CodecError("u128 truncated: need 16 bytes")
    return int.from_bytes(data[offset:end], "little"), end


# ── Claim digest ──────────────────────────────────────────────

def claim_digest(claim_id: str) -> bytes:
    """
    The 32-byte message a claim holder signs.

    BLAKE2b with a 32-byte output over the SCALE encoding of the id string.
    A signer that hashes anything else (raw UTF-8, hex, JSON) produces a
    signature that will never redeem.
    """
    return hashlib.blake2b(encode_str(claim_id), digest_size=DIGEST_SIZE).digest()
