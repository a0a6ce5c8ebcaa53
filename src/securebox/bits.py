from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


def packed_width(ncols: int) -> int:
    """Number of bytes needed to hold one packed row of `ncols` bits."""
    return (ncols + 7) // 8


def pack_rows(bits: np.ndarray) -> NDArray[np.uint8]:
    """Pack a 0/1 array along its last axis, 8 bits per byte (big-endian)."""
    return np.packbits(np.asarray(bits, dtype=bool), axis=-1)


def unpack_rows(packed: np.ndarray, ncols: int) -> NDArray[np.uint8]:
    """Inverse of `pack_rows`, dropping the padding bits."""
    return np.unpackbits(packed, axis=-1, count=ncols)


def column_bits(packed: np.ndarray, col: int) -> NDArray[np.uint8]:
    """Return the bit at column `col` of every packed row as a 0/1 vector."""
    return (packed[:, col >> 3] >> (7 - (col & 7))) & 1


def gf2_matvec(packed: np.ndarray, x: np.ndarray, ncols: int) -> NDArray[np.uint8]:
    """Compute A x over GF(2) for a packed A and an unpacked 0/1 vector x."""
    x = np.asarray(x, dtype=np.uint8).reshape(-1)
    if x.shape[0] != ncols:
        raise ValueError(f"vector has length {x.shape[0]}, expected {ncols}")
    # AND each row with packed x, then take the parity of the set bits
    masked = packed & pack_rows(x)
    counts = np.unpackbits(masked, axis=-1).sum(axis=1)
    return (counts % 2).astype(np.uint8)
