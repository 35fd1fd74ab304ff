"""
Hash primitives shared by the signature engine and the index store

Band hashes are persisted as bucket keys, so every function here must give
the same answer in every process: MurmurHash3 with a fixed seed for folding,
numpy's PCG64 bit generator for the per-element streams.
"""
from typing import Iterator, Sequence, Union

import mmh3
import numpy as np

FOLD_SEED = 1145141919810 & 0xFFFFFFFF
UINT64_MASK = 0xFFFFFFFFFFFFFFFF
STREAM_CHUNK = 64

Foldable = Union[bytes, str, int, Sequence[int]]


def _to_bytes(value: Foldable) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (int, np.integer)):
        value = [int(value)]
    return np.asarray(value, dtype="<i8").tobytes()


def fold_hash(value: Foldable) -> int:
    """
    Fold a value into a signed 32-bit hash

    Args:
        value: Bytes, a string (hashed as UTF-8), an integer or a sequence
               of integers (hashed as little-endian int64)

    Returns:
        Signed 32-bit hash, identical across runs
    """
    return mmh3.hash(_to_bytes(value), seed=FOLD_SEED, signed=True)


def hash_token(text: str) -> int:
    """Hash one string into one 32-bit token"""
    return fold_hash(text)


def _bit_generator(seed: int) -> np.random.PCG64:
    # Negative seeds map onto their two's-complement 64-bit value
    return np.random.PCG64(int(seed) & UINT64_MASK)


def stream_block(seed: int, size: int) -> np.ndarray:
    """First `size` values of `element_stream(seed)` as a uint32 array"""
    raw = _bit_generator(seed).random_raw(size)
    return (raw >> np.uint64(32)).astype(np.uint32)


def element_stream(seed: int) -> Iterator[int]:
    """
    Infinite deterministic stream of unsigned 32-bit values

    Two streams built from the same seed yield identical values.
    """
    bit_generator = _bit_generator(seed)
    while True:
        raw = bit_generator.random_raw(STREAM_CHUNK)
        for value in raw >> np.uint64(32):
            yield int(value)
