from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from .bits import column_bits, pack_rows, packed_width
from .board import Cell


class DimensionMismatchError(ValueError):
    """Raised when A, b and the grid disagree on the system size."""

    pass


class DegeneratePivotError(RuntimeError):
    """Raised when forward elimination finds no pivot for a column.

    This is not the same as "no solution": the elimination cannot continue
    because the effect matrix is singular for these grid dimensions.
    """

    def __init__(self, column: int):
        super().__init__(f"no pivot row for column {column}")
        self.column = column


def toggle_effect(cell: Cell, n: int, m: int) -> np.ndarray:
    """Return the flattened cells flipped when `cell` is toggled on an n x m grid.

    The effect is the cell's own row plus its own column, which includes the
    cell itself.
    """
    effect = np.zeros((n, m), dtype=bool)
    effect[cell.row, :] = True
    effect[:, cell.col] = True
    return effect.reshape(-1)


def build_A(n: int, m: int) -> np.ndarray:
    """Return the packed (n*m) x (n*m) effect matrix A over GF(2).

    Row i encodes the cells toggled when pressing the cell with flat index i.
    Rows are stored 8 bits per byte so the matrix costs (n*m)^2 bits.
    """
    if n < 1 or m < 1:
        raise ValueError(f"grid dimensions must be positive, got {n}x{m}")
    N = n * m
    A = np.zeros((N, packed_width(N)), dtype=np.uint8)
    for r in range(n):
        for c in range(m):
            cell = Cell(r, c)
            A[cell.index(m)] = pack_rows(toggle_effect(cell, n, m))
    return A


def _check_dimensions(A: np.ndarray, b: np.ndarray, ncols: int) -> None:
    if A.ndim != 2 or b.ndim != 1:
        raise DimensionMismatchError(
            f"expected 2-D A and 1-D b, got {A.ndim}-D and {b.ndim}-D"
        )
    if ncols < 1:
        raise DimensionMismatchError("system must have at least one unknown")
    if A.shape[1] != packed_width(ncols):
        raise DimensionMismatchError(
            f"A rows hold {A.shape[1]} bytes, {ncols} columns need "
            f"{packed_width(ncols)}"
        )
    if A.shape[0] != b.shape[0]:
        raise DimensionMismatchError(
            f"A has {A.shape[0]} rows but b has {b.shape[0]} entries"
        )


def gf2_gaussian_elimination(
    A: np.ndarray, b: np.ndarray
) -> Optional[np.ndarray]:
    """Solve the square system A x = b over GF(2) in place.

    A is a packed square matrix (see `build_A`) and b a 0/1 vector; both
    are consumed. A b that is not uint8 is first converted to a uint8 copy.
    Forward elimination picks the first row at or below the diagonal with a 1
    in the pivot column, then back-substitution clears every column above its
    pivot.

    Returns:
        x as a uint8 vector, or None if the system is inconsistent.

    Raises:
        DimensionMismatchError: A is not square or does not match b.
        DegeneratePivotError: some column before the last has no pivot.
    """
    b = np.asarray(b, dtype=np.uint8)
    N = b.shape[0] if b.ndim == 1 else -1
    # N rows of N packed bits each, matching b
    _check_dimensions(A, b, N)

    for pivot in range(N - 1):
        col = column_bits(A, pivot)
        candidates = np.flatnonzero(col[pivot:])
        if candidates.size == 0:
            raise DegeneratePivotError(pivot)
        pivot_row = pivot + int(candidates[0])

        if pivot_row != pivot:
            A[[pivot, pivot_row]] = A[[pivot_row, pivot]]
            b[[pivot, pivot_row]] = b[[pivot_row, pivot]]
            col[[pivot, pivot_row]] = col[[pivot_row, pivot]]

        # zero out every 1 below the pivot
        below = np.flatnonzero(col[pivot + 1 :]) + pivot + 1
        A[below] ^= A[pivot]
        b[below] ^= b[pivot]

    for pivot in range(N - 1, 0, -1):
        above = np.flatnonzero(column_bits(A, pivot)[:pivot])
        A[above] ^= A[pivot]
        b[above] ^= b[pivot]

    # 0...0 | 1 rows mean no solution
    zero_rows = ~A.any(axis=1)
    if np.any(zero_rows & (b == 1)):
        return None
    return b


def gf2_rref_augmented(
    A: np.ndarray, b: np.ndarray, ncols: int
) -> Tuple[np.ndarray, np.ndarray, list[int]]:
    """Return the RREF of the packed augmented system [A|b] and its pivot columns.

    Unlike `gf2_gaussian_elimination`, columns without a pivot are skipped, so
    singular systems reduce cleanly. Inputs are copied.
    """
    b = np.asarray(b, dtype=np.uint8).reshape(-1)
    _check_dimensions(A, b, ncols)
    M = A.copy()
    r = b.copy()
    m = M.shape[0]

    row = 0
    pivcols: list[int] = []
    for col in range(ncols):
        bits = column_bits(M, col)
        candidates = np.flatnonzero(bits[row:])
        if candidates.size == 0:
            continue
        pivot = row + int(candidates[0])
        if pivot != row:
            M[[row, pivot]] = M[[pivot, row]]
            r[[row, pivot]] = r[[pivot, row]]
            bits[[row, pivot]] = bits[[pivot, row]]
        # eliminate ALL other rows (Gauss-Jordan)
        others = np.flatnonzero(bits)
        others = others[others != row]
        M[others] ^= M[row]
        r[others] ^= r[row]
        pivcols.append(col)
        row += 1
        if row == m:
            break
    return M, r, pivcols


def gf2_solve_rref(
    A: np.ndarray, b: np.ndarray, ncols: int
) -> Optional[np.ndarray]:
    """Solve A x = b over GF(2) for any rank of A, free variables set to 0.

    Returns None if the system is inconsistent.
    """
    R, r, pivcols = gf2_rref_augmented(A, b, ncols)

    # Inconsistency check: 0...0 | 1 rows
    if np.any(~R.any(axis=1) & (r == 1)):
        return None

    # In RREF each pivot column is zero outside its own row, so with the free
    # variables at 0 every pivot variable equals its row's right-hand side.
    x = np.zeros((ncols,), dtype=np.uint8)
    for ri, pc in enumerate(pivcols):
        x[pc] = r[ri]
    return x
