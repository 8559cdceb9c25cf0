"""Perceptual difference hash (dHash) and Hamming distance.

The buffer is reduced to (S+1) x S greyscale samples; each bit says
whether a sample is brighter than its right-hand neighbour. Uniform
brightness shifts leave the hash unchanged, content changes flip bits.
"""

import numpy as np

from .constants import HASH_SIZE
from .quality import luma
from .source import sample_frame


def dhash(image: np.ndarray, size: int = HASH_SIZE) -> str:
    """Compute the difference hash of a buffer.

    Args:
        image: RGBA buffer (any size)
        size: Grid size S, the hash has S*S bits

    Returns:
        Bit string of '0'/'1', row-major
    """
    if size < 1:
        raise ValueError(f"Hash size must be positive: {size}")

    grid = luma(sample_frame(image, size + 1, size))
    bits = grid[:, :-1] > grid[:, 1:]
    return "".join("1" if bit else "0" for bit in bits.ravel())


def hamming(a: str, b: str) -> int:
    """Count differing bit positions of two equal-length hashes.

    Raises:
        ValueError: If the hashes differ in length
    """
    if len(a) != len(b):
        raise ValueError(f"Hash lengths must match: {len(a)} vs {len(b)}")
    return sum(1 for x, y in zip(a, b) if x != y)


def is_distinct(candidate: str, known: list[str], threshold: int) -> bool:
    """Check that a hash is at least `threshold` bits from every known hash."""
    return all(hamming(candidate, h) >= threshold for h in known)
