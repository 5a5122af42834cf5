"""
Shape-Checked Matrix Kernels

Thin wrappers over NumPy that enforce the shape preconditions of the decoder
pipeline and report violations as DimensionMismatchError instead of letting
broadcasting silently produce a differently shaped result.

Functions:
    as_matrix: Coerce a nested sequence or array into a 2-D float matrix
    multiply: Matrix product C = A @ B
    transpose: Swap rows and columns
    add: Elementwise sum of two matrices of identical shape
"""

import numpy as np

from tinydecoder.errors import DimensionMismatchError


def as_matrix(values, operation: str = "as_matrix") -> np.ndarray:
    """
    Convert input to a 2-D float64 array.

    Args:
        values: Nested list of rows or an ndarray
        operation: Name reported in the error if the input is not 2-D

    Returns:
        2-D float array (the input itself when it already is one)

    Raises:
        DimensionMismatchError: If the input is not rectangular and 2-D
    """
    try:
        matrix = np.asarray(values, dtype=np.float64)
    except ValueError as error:
        # Ragged rows cannot form a rectangular array
        raise DimensionMismatchError(
            operation, f"rows differ in length ({error})"
        ) from error

    if matrix.ndim != 2:
        raise DimensionMismatchError(
            operation, f"expected a 2-D matrix, got shape {matrix.shape}", matrix.shape
        )
    return matrix


def multiply(matrix_a, matrix_b) -> np.ndarray:
    """
    Matrix product C[i][j] = sum_k A[i][k] * B[k][j].

    Args:
        matrix_a: Matrix of shape (n, m)
        matrix_b: Matrix of shape (m, p)

    Returns:
        Matrix of shape (n, p)

    Raises:
        DimensionMismatchError: If A's column count differs from B's row count

    Example:
        >>> multiply([[1, 2]], [[3], [4]])
        array([[11.]])
    """
    matrix_a = as_matrix(matrix_a, "multiply")
    matrix_b = as_matrix(matrix_b, "multiply")

    if matrix_a.shape[1] != matrix_b.shape[0]:
        raise DimensionMismatchError(
            "multiply",
            f"cannot multiply {matrix_a.shape} by {matrix_b.shape}",
            matrix_a.shape,
            matrix_b.shape,
        )

    return matrix_a @ matrix_b


def transpose(matrix) -> np.ndarray:
    """Return M' with M'[j][i] == M[i][j]."""
    return as_matrix(matrix, "transpose").T


def add(matrix_a, matrix_b) -> np.ndarray:
    """
    Elementwise sum of two matrices.

    No broadcasting: the shapes must be identical.

    Raises:
        DimensionMismatchError: If the shapes differ
    """
    matrix_a = as_matrix(matrix_a, "add")
    matrix_b = as_matrix(matrix_b, "add")

    if matrix_a.shape != matrix_b.shape:
        raise DimensionMismatchError(
            "add",
            f"cannot add {matrix_a.shape} and {matrix_b.shape}",
            matrix_a.shape,
            matrix_b.shape,
        )

    return matrix_a + matrix_b
