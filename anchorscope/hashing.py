"""XXH3 64-bit hashing (seed 0, default secret) and hex digests."""

from __future__ import annotations

import struct

_M64 = (1 << 64) - 1

_SECRET = bytes(
    [
        0xB8, 0xFE, 0x6C, 0x39, 0x23, 0xA4, 0x4B, 0xBE, 0x7C, 0x01, 0x81, 0x2C, 0xF7, 0x21, 0xAD, 0x1C,
        0xDE, 0xD4, 0x6D, 0xE9, 0x83, 0x90, 0x97, 0xDB, 0x72, 0x40, 0xA4, 0xA4, 0xB7, 0xB3, 0x67, 0x1F,
        0xCB, 0x79, 0xE6, 0x4E, 0xCC, 0xC0, 0xE5, 0x78, 0x82, 0x5A, 0xD0, 0x7D, 0xCC, 0xFF, 0x72, 0x21,
        0xB8, 0x08, 0x46, 0x74, 0xF7, 0x43, 0x24, 0x8E, 0xE0, 0x35, 0x90, 0xE6, 0x81, 0x3A, 0x26, 0x4C,
        0x3C, 0x28, 0x52, 0xBB, 0x91, 0xC3, 0x00, 0xCB, 0x88, 0xD0, 0x65, 0x8B, 0x1B, 0x53, 0x2E, 0xA3,
        0x71, 0x64, 0x48, 0x97, 0xA2, 0x0D, 0xF9, 0x4E, 0x38, 0x19, 0xEF, 0x46, 0xA9, 0xDE, 0xAC, 0xD8,
        0xA8, 0xFA, 0x76, 0x3F, 0xE3, 0x9C, 0x34, 0x3F, 0xF9, 0xDC, 0xBB, 0xC7, 0xC7, 0x0B, 0x4F, 0x1D,
        0x8A, 0x51, 0xE0, 0x4B, 0xCD, 0xB4, 0x59, 0x31, 0xC8, 0x9F, 0x7E, 0xC9, 0xD9, 0x78, 0x73, 0x64,
        0xEA, 0xC5, 0xAC, 0x83, 0x34, 0xD3, 0xEB, 0xC3, 0xC5, 0x81, 0xA0, 0xFF, 0xFA, 0x13, 0x63, 0xEB,
        0x17, 0x0D, 0xDD, 0x51, 0xB7, 0xF0, 0xDA, 0x49, 0xD3, 0x16, 0x55, 0x26, 0x29, 0xD4, 0x68, 0x9E,
        0x2B, 0x16, 0xBE, 0x58, 0x7D, 0x47, 0xA1, 0xFC, 0x8F, 0xF8, 0xB8, 0xD1, 0x7A, 0xD0, 0x31, 0xCE,
        0x45, 0xCB, 0x3A, 0x8F, 0x95, 0x16, 0x04, 0x28, 0xAF, 0xD7, 0xFB, 0xCA, 0xBB, 0x4B, 0x40, 0x7E,
    ]
)
_SECRET_SIZE = len(_SECRET)

_P32_1 = 0x9E3779B1
_P32_2 = 0x85EBCA77
_P32_3 = 0xC2B2AE3D
_P64_1 = 0x9E3779B185EBCA87
_P64_2 = 0xC2B2AE3D27D4EB4F
_P64_3 = 0x165667B19E3779F9
_P64_4 = 0x85EBCA77C2B2AE63
_P64_5 = 0x27D4EB2F165667C5
_PRIME_MX1 = 0x165667919E3779F9
_PRIME_MX2 = 0x9FB21C651E98DF25

_STRIPE_LEN = 64
_SECRET_CONSUME_RATE = 8
_STRIPES_PER_BLOCK = (_SECRET_SIZE - _STRIPE_LEN) // _SECRET_CONSUME_RATE
_BLOCK_LEN = _STRIPE_LEN * _STRIPES_PER_BLOCK
_SECRET_LASTACC_START = 7
_SECRET_MERGEACCS_START = 11
_MIDSIZE_STARTOFFSET = 3
_MIDSIZE_LASTOFFSET = 17
_SECRET_SIZE_MIN = 136


def _r64(buf: bytes, off: int) -> int:
    return struct.unpack_from("<Q", buf, off)[0]


def _r32(buf: bytes, off: int) -> int:
    return struct.unpack_from("<I", buf, off)[0]


def _rotl64(x: int, r: int) -> int:
    return ((x << r) | (x >> (64 - r))) & _M64


def _swap64(x: int) -> int:
    return int.from_bytes(x.to_bytes(8, "little"), "big")


def _mul128_fold64(a: int, b: int) -> int:
    product = a * b
    return (product ^ (product >> 64)) & _M64


def _xxh64_avalanche(h: int) -> int:
    h ^= h >> 33
    h = (h * _P64_2) & _M64
    h ^= h >> 29
    h = (h * _P64_3) & _M64
    return h ^ (h >> 32)


def _xxh3_avalanche(h: int) -> int:
    h ^= h >> 37
    h = (h * _PRIME_MX1) & _M64
    return h ^ (h >> 32)


def _rrmxmx(h: int, length: int) -> int:
    h ^= _rotl64(h, 49) ^ _rotl64(h, 24)
    h = (h * _PRIME_MX2) & _M64
    h ^= ((h >> 35) + length) & _M64
    h = (h * _PRIME_MX2) & _M64
    return h ^ (h >> 28)


def _mix16(data: bytes, doff: int, soff: int) -> int:
    lo = _r64(data, doff) ^ _r64(_SECRET, soff)
    hi = _r64(data, doff + 8) ^ _r64(_SECRET, soff + 8)
    return _mul128_fold64(lo, hi)


def _len_1to3(data: bytes) -> int:
    n = len(data)
    combined = (data[0] << 16) | (data[n >> 1] << 24) | data[n - 1] | (n << 8)
    bitflip = _r32(_SECRET, 0) ^ _r32(_SECRET, 4)
    return _xxh64_avalanche(combined ^ bitflip)


def _len_4to8(data: bytes) -> int:
    n = len(data)
    first = _r32(data, 0)
    last = _r32(data, n - 4)
    bitflip = _r64(_SECRET, 8) ^ _r64(_SECRET, 16)
    keyed = (last + (first << 32)) ^ bitflip
    return _rrmxmx(keyed, n)


def _len_9to16(data: bytes) -> int:
    n = len(data)
    bitflip1 = _r64(_SECRET, 24) ^ _r64(_SECRET, 32)
    bitflip2 = _r64(_SECRET, 40) ^ _r64(_SECRET, 48)
    lo = _r64(data, 0) ^ bitflip1
    hi = _r64(data, n - 8) ^ bitflip2
    acc = (n + _swap64(lo) + hi + _mul128_fold64(lo, hi)) & _M64
    return _xxh3_avalanche(acc)


def _len_17to128(data: bytes) -> int:
    n = len(data)
    acc = (n * _P64_1) & _M64
    if n > 32:
        if n > 64:
            if n > 96:
                acc += _mix16(data, 48, 96)
                acc += _mix16(data, n - 64, 112)
            acc += _mix16(data, 32, 64)
            acc += _mix16(data, n - 48, 80)
        acc += _mix16(data, 16, 32)
        acc += _mix16(data, n - 32, 48)
    acc += _mix16(data, 0, 0)
    acc += _mix16(data, n - 16, 16)
    return _xxh3_avalanche(acc & _M64)


def _len_129to240(data: bytes) -> int:
    n = len(data)
    acc = (n * _P64_1) & _M64
    rounds = n // 16
    for i in range(8):
        acc += _mix16(data, 16 * i, 16 * i)
    acc = _xxh3_avalanche(acc & _M64)
    acc_end = _mix16(data, n - 16, _SECRET_SIZE_MIN - _MIDSIZE_LASTOFFSET)
    for i in range(8, rounds):
        acc_end += _mix16(data, 16 * i, 16 * (i - 8) + _MIDSIZE_STARTOFFSET)
    return _xxh3_avalanche((acc + acc_end) & _M64)


def _accumulate_512(acc: list[int], data: bytes, doff: int, soff: int) -> None:
    values = struct.unpack_from("<8Q", data, doff)
    keys = struct.unpack_from("<8Q", _SECRET, soff)
    for i, (value, key) in enumerate(zip(values, keys)):
        keyed = value ^ key
        acc[i ^ 1] = (acc[i ^ 1] + value) & _M64
        acc[i] = (acc[i] + (keyed & 0xFFFFFFFF) * (keyed >> 32)) & _M64


def _scramble(acc: list[int]) -> None:
    keys = struct.unpack_from("<8Q", _SECRET, _SECRET_SIZE - _STRIPE_LEN)
    for i, key in enumerate(keys):
        value = acc[i]
        value ^= value >> 47
        value ^= key
        acc[i] = (value * _P32_1) & _M64


def _accumulate(acc: list[int], data: bytes, offset: int, stripes: int) -> None:
    for n in range(stripes):
        _accumulate_512(acc, data, offset + n * _STRIPE_LEN, n * _SECRET_CONSUME_RATE)


def _hash_long(data: bytes) -> int:
    n = len(data)
    acc = [_P32_3, _P64_1, _P64_2, _P64_3, _P64_4, _P32_2, _P64_5, _P32_1]
    blocks = (n - 1) // _BLOCK_LEN
    for block in range(blocks):
        _accumulate(acc, data, block * _BLOCK_LEN, _STRIPES_PER_BLOCK)
        _scramble(acc)
    stripes = ((n - 1) - _BLOCK_LEN * blocks) // _STRIPE_LEN
    _accumulate(acc, data, blocks * _BLOCK_LEN, stripes)
    _accumulate_512(
        acc, data, n - _STRIPE_LEN, _SECRET_SIZE - _STRIPE_LEN - _SECRET_LASTACC_START
    )
    result = (n * _P64_1) & _M64
    for i in range(4):
        soff = _SECRET_MERGEACCS_START + 16 * i
        result += _mul128_fold64(
            acc[2 * i] ^ _r64(_SECRET, soff), acc[2 * i + 1] ^ _r64(_SECRET, soff + 8)
        )
    return _xxh3_avalanche(result & _M64)


def xxh3_64(data: bytes) -> int:
    """Return the XXH3 64-bit hash of ``data`` with seed 0."""
    data = bytes(data)
    n = len(data)
    if n == 0:
        return _xxh64_avalanche(_r64(_SECRET, 56) ^ _r64(_SECRET, 64))
    if n <= 3:
        return _len_1to3(data)
    if n <= 8:
        return _len_4to8(data)
    if n <= 16:
        return _len_9to16(data)
    if n <= 128:
        return _len_17to128(data)
    if n <= 240:
        return _len_129to240(data)
    return _hash_long(data)


def compute(data: bytes) -> str:
    """Hash ``data`` and return it as 16 lowercase hex digits."""
    return f"{xxh3_64(data):016x}"