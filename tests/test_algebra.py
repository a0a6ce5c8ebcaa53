"""
Tests for the effect matrix and the GF(2) solvers.
"""
import numpy as np
import pytest

from securebox.algebra import (
    DegeneratePivotError,
    DimensionMismatchError,
    build_A,
    gf2_gaussian_elimination,
    gf2_rref_augmented,
    gf2_solve_rref,
    toggle_effect,
)
from securebox.bits import gf2_matvec, pack_rows, unpack_rows
from securebox.board import Cell
from securebox.box import SecureBox

SIZES = [(1, 1), (1, 2), (1, 4), (3, 1), (2, 2), (2, 3), (3, 3), (4, 6), (5, 2)]
INVERTIBLE_SIZES = [(1, 1), (2, 2), (2, 4), (4, 4), (6, 2), (6, 8)]


def _toggled_from_zero(n, m, x):
    box = SecureBox.from_state(np.zeros((n, m), dtype=bool))
    for i in np.flatnonzero(x):
        cell = Cell.from_index(int(i), m)
        box.toggle(cell.row, cell.col)
    return box.get_state().reshape(-1).astype(np.uint8)


def test_build_A_2x2():
    A = unpack_rows(build_A(2, 2), 4)
    expected = [[1, 1, 1, 0], [1, 1, 0, 1], [1, 0, 1, 1], [0, 1, 1, 1]]
    np.testing.assert_array_equal(A, expected)


def test_build_A_is_packed():
    A = build_A(10, 10)
    assert A.dtype == np.uint8
    assert A.shape == (100, 13)


@pytest.mark.parametrize("n,m", SIZES)
def test_build_A_rows_match_toggle_effect(n, m):
    A = unpack_rows(build_A(n, m), n * m)
    for i in range(n * m):
        cell = Cell.from_index(i, m)
        np.testing.assert_array_equal(A[i], toggle_effect(cell, n, m))
        assert A[i, i] == 1
        assert A[i].sum() == n + m - 1


@pytest.mark.parametrize("n,m", SIZES)
def test_A_times_x_is_toggle_effect(n, m):
    rng = np.random.default_rng(n * 100 + m)
    A = build_A(n, m)
    for _ in range(5):
        x = rng.integers(0, 2, size=n * m, dtype=np.uint8)
        np.testing.assert_array_equal(
            gf2_matvec(A, x, n * m), _toggled_from_zero(n, m, x)
        )


def test_build_A_rejects_empty_grid():
    with pytest.raises(ValueError):
        build_A(0, 4)


def test_solve_2x2_scenario():
    b = np.array([1, 1, 1, 0], dtype=np.uint8)
    x = gf2_gaussian_elimination(build_A(2, 2), b.copy())
    assert x is not None
    np.testing.assert_array_equal(x, [1, 0, 0, 0])
    # replaying x on an all-false grid gives back the initial state
    np.testing.assert_array_equal(_toggled_from_zero(2, 2, x), b)
    # and replaying it on the initial grid clears it
    box = SecureBox.from_state(b.reshape(2, 2).astype(bool))
    for i in np.flatnonzero(x):
        cell = Cell.from_index(int(i), 2)
        box.toggle(cell.row, cell.col)
    assert not box.is_locked()


def test_solve_1x1():
    x = gf2_gaussian_elimination(build_A(1, 1), np.array([1], dtype=np.uint8))
    np.testing.assert_array_equal(x, [1])
    x = gf2_gaussian_elimination(build_A(1, 1), np.array([0], dtype=np.uint8))
    np.testing.assert_array_equal(x, [0])


@pytest.mark.parametrize("n,m", INVERTIBLE_SIZES + [(1, 2)])
def test_reachable_states_are_solved(n, m):
    rng = np.random.default_rng(n * 31 + m)
    N = n * m
    for _ in range(5):
        presses = rng.integers(0, 2, size=N, dtype=np.uint8)
        b = _toggled_from_zero(n, m, presses)
        x = gf2_gaussian_elimination(build_A(n, m), b.copy())
        assert x is not None
        np.testing.assert_array_equal(gf2_matvec(build_A(n, m), x, N), b)
        np.testing.assert_array_equal(_toggled_from_zero(n, m, x), b)


def test_elimination_is_deterministic():
    b = _toggled_from_zero(4, 6, np.arange(24) % 3 == 0)
    x1 = gf2_gaussian_elimination(build_A(4, 6), b.copy())
    x2 = gf2_gaussian_elimination(build_A(4, 6), b.copy())
    np.testing.assert_array_equal(x1, x2)


def test_zero_row_with_nonzero_rhs_has_no_solution():
    A = pack_rows(np.array([[1, 0], [0, 0]], dtype=np.uint8))
    assert gf2_gaussian_elimination(A, np.array([0, 1], dtype=np.uint8)) is None


def test_zero_row_with_zero_rhs_is_solved():
    A = pack_rows(np.array([[1, 0], [0, 0]], dtype=np.uint8))
    x = gf2_gaussian_elimination(A, np.array([1, 0], dtype=np.uint8))
    np.testing.assert_array_equal(x, [1, 0])


def test_all_false_solution_is_not_no_solution():
    A = pack_rows(np.eye(3, dtype=np.uint8))
    x = gf2_gaussian_elimination(A, np.zeros(3, dtype=np.uint8))
    assert x is not None
    np.testing.assert_array_equal(x, [0, 0, 0])


def test_unreachable_1x2_state_has_no_solution():
    assert gf2_gaussian_elimination(build_A(1, 2), np.array([1, 0], dtype=np.uint8)) is None


def test_missing_pivot_raises():
    with pytest.raises(DegeneratePivotError) as exc_info:
        gf2_gaussian_elimination(build_A(1, 3), np.ones(3, dtype=np.uint8))
    assert exc_info.value.column == 1


def test_singular_3x3_raises():
    with pytest.raises(DegeneratePivotError):
        gf2_gaussian_elimination(build_A(3, 3), np.zeros(9, dtype=np.uint8))


def test_dimension_mismatch():
    with pytest.raises(DimensionMismatchError):
        gf2_gaussian_elimination(build_A(2, 2), np.zeros(3, dtype=np.uint8))
    with pytest.raises(DimensionMismatchError):
        gf2_gaussian_elimination(build_A(3, 3), np.zeros(8, dtype=np.uint8))
    with pytest.raises(DimensionMismatchError):
        gf2_gaussian_elimination(
            np.zeros((0, 0), dtype=np.uint8), np.zeros(0, dtype=np.uint8)
        )


def test_dimension_mismatch_leaves_inputs_untouched():
    A = build_A(2, 2)
    before = A.copy()
    with pytest.raises(DimensionMismatchError):
        gf2_gaussian_elimination(A, np.zeros(5, dtype=np.uint8))
    np.testing.assert_array_equal(A, before)


@pytest.mark.parametrize("n,m", [(3, 3), (1, 3), (2, 3), (3, 5), (4, 4)])
def test_rref_solves_reachable_states(n, m):
    rng = np.random.default_rng(n * 17 + m)
    N = n * m
    A = build_A(n, m)
    for _ in range(5):
        b = _toggled_from_zero(n, m, rng.integers(0, 2, size=N, dtype=np.uint8))
        x = gf2_solve_rref(A, b, N)
        assert x is not None
        np.testing.assert_array_equal(gf2_matvec(A, x, N), b)


def test_rref_does_not_consume_inputs():
    A = build_A(3, 3)
    b = _toggled_from_zero(3, 3, np.array([1, 0, 0, 0, 1, 0, 0, 0, 0]))
    A_before, b_before = A.copy(), b.copy()
    gf2_solve_rref(A, b, 9)
    np.testing.assert_array_equal(A, A_before)
    np.testing.assert_array_equal(b, b_before)


def test_rref_reports_inconsistency():
    b = np.array([1, 0, 0], dtype=np.uint8)
    assert gf2_solve_rref(build_A(1, 3), b, 3) is None


def test_rref_pivot_columns_for_singular_matrix():
    _, _, pivcols = gf2_rref_augmented(build_A(1, 3), np.zeros(3, dtype=np.uint8), 3)
    assert pivcols == [0]


def test_bool_rhs_returns_uint8_solution():
    x = gf2_gaussian_elimination(build_A(2, 2), np.array([True, True, True, False]))
    assert x.dtype == np.uint8
    np.testing.assert_array_equal(x, [1, 0, 0, 0])
