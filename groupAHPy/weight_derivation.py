from __future__ import annotations
from typing import Any, Dict
import numpy as np

from .config import configure_parameters
from .validation import Validation


def as_comparison_array(matrix: Any, expected_size: int | None = None) -> np.ndarray:
    """
    Converts the input to a float matrix and checks that it is square and
    strictly positive, which is all the priority and consistency formulas need.

    Raises:
        TypeError: If the input is not numerical.
        ValueError: If the matrix is not square or has non-positive entries.
    """
    try:
        arr = np.asarray(matrix, dtype=float)
    except (TypeError, ValueError) as e:
        raise TypeError("Comparison matrix must contain only numbers.") from e

    errors = Validation.validate_matrix_dimensions(arr, expected_size)
    if not errors:
        errors = Validation.validate_matrix_positivity(arr)
    if errors:
        raise ValueError("Invalid comparison matrix: " + "; ".join(errors))
    return arr


def row_geometric_means(matrix: np.ndarray) -> np.ndarray:
    """
    Returns the unnormalized geometric mean of each row, ``(prod_j a_ij)^(1/n)``.
    Computed through the log-mean for numerical stability.
    """
    arr = as_comparison_array(matrix)
    return np.exp(np.mean(np.log(arr), axis=1))


def derive_priorities(matrix: np.ndarray) -> np.ndarray:
    """
    Derives the priority vector of a comparison matrix with the row
    geometric mean method.

    This is the only estimator used for decisions: consistency checks,
    aggregation and synthesis all consume its output.

    Args:
        matrix: A positive (n x n) comparison matrix.

    Returns:
        A strictly positive vector of length n that sums to 1.
    """
    geo_means = row_geometric_means(matrix)
    return geo_means / np.sum(geo_means)


def column_normalization_breakdown(matrix: np.ndarray, tolerance: float | None = None) -> Dict[str, Any]:
    """
    Reproduces the textbook column-normalization computation step by step so
    it can be shown to users: column sums, the column-normalized matrix and
    its row averages.

    .. note::
        The row averages are an approximation of the priorities and coincide
        with the geometric-mean priorities only for consistent matrices. They
        are returned for display next to the canonical priorities and never
        feed a decision. ``max_deviation`` and ``agrees`` report how far apart
        the two are.

    Args:
        matrix: A positive (n x n) comparison matrix.
        tolerance: Largest deviation still reported as agreeing. Defaults to
                   ``configure_parameters.BREAKDOWN_TOLERANCE``.
    """
    tol = tolerance if tolerance is not None else configure_parameters.BREAKDOWN_TOLERANCE
    arr = as_comparison_array(matrix)

    column_sums = arr.sum(axis=0)
    normalized = arr / column_sums
    row_averages = normalized.mean(axis=1)
    priorities = derive_priorities(arr)
    deviation = float(np.max(np.abs(row_averages - priorities)))

    return {
        "column_sums": column_sums,
        "normalized_matrix": normalized,
        "row_averages": row_averages,
        "priorities": priorities,
        "max_deviation": deviation,
        "agrees": deviation <= tol,
    }
