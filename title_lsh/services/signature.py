"""
MinHash signatures and LSH banding
"""
from typing import Iterable, List, Sequence

import numpy as np

from .hashing import fold_hash, stream_block

EMPTY_SLOT = 0xFFFFFFFF


def compute_signature(elements: Iterable[int], num_hashes: int) -> List[int]:
    """
    Compute the MinHash signature of a set of 32-bit integers

    Each distinct element seeds its own deterministic stream; round i takes
    the minimum of every stream's i-th value, so round i plays the part of
    the i-th hash function.

    Args:
        elements: Token set (duplicates are ignored)
        num_hashes: Signature length

    Returns:
        List of num_hashes unsigned 32-bit values
    """
    distinct = sorted(set(elements))
    if not distinct:
        return [EMPTY_SLOT] * num_hashes

    draws = np.stack([stream_block(element, num_hashes) for element in distinct])
    return [int(v) for v in draws.min(axis=0)]


def to_bands(signature: Sequence[int], num_bands: int) -> List[int]:
    """
    Fold a signature into one hash per band

    The signature is cut into num_bands contiguous chunks of equal length;
    the caller guarantees that num_bands divides the signature length.
    """
    rows = len(signature) // num_bands
    return [fold_hash(signature[i * rows:(i + 1) * rows]) for i in range(num_bands)]
