from __future__ import annotations
from typing import Any, Dict, List, Mapping
import numpy as np

from .config import configure_parameters
from .types import parse_judgment_key


class Validation:
    """
    A class containing static methods to validate comparison matrices,
    priority vectors and judgment sets. Every method returns a list of error
    messages; an empty list means the input is valid.
    """

    @staticmethod
    def validate_matrix_dimensions(matrix: np.ndarray, expected_size: int | None = None) -> List[str]:
        """Validates that a matrix is a non-empty 2D square NumPy array of the expected size."""
        errors = []
        if not isinstance(matrix, np.ndarray) or matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            errors.append("Input must be a 2D square NumPy array.")
            return errors # Stop further checks
        if matrix.shape[0] == 0:
            errors.append("Matrix must compare at least one item.")
        if expected_size is not None and matrix.shape[0] != expected_size:
            errors.append(f"Matrix has size {matrix.shape[0]}, but expected size {expected_size}.")
        return errors

    @staticmethod
    def validate_matrix_positivity(matrix: np.ndarray) -> List[str]:
        """Validates that every entry is a finite, strictly positive number."""
        errors = []
        arr = np.asarray(matrix, dtype=float)
        bad_cells = np.argwhere(~np.isfinite(arr) | (arr <= 0))
        for i, j in bad_cells:
            errors.append(f"Element at ({i},{j}) must be a positive finite number. Found: {arr[i, j]}")
        return errors

    @staticmethod
    def validate_matrix_diagonal(matrix: np.ndarray, tolerance: float | None = None) -> List[str]:
        """Validates that diagonal elements are 1."""
        tol = tolerance if tolerance is not None else configure_parameters.FLOAT_TOLERANCE
        errors = []
        for i in range(matrix.shape[0]):
            if abs(float(matrix[i, i]) - 1.0) > tol:
                errors.append(f"Diagonal element at ({i},{i}) is not 1. Found: {matrix[i, i]}")
        return errors

    @staticmethod
    def validate_matrix_reciprocity(matrix: np.ndarray, tolerance: float | None = None) -> List[str]:
        """Validates the reciprocal property a_ji = 1/a_ij for the entire matrix."""
        tol = tolerance if tolerance is not None else configure_parameters.FLOAT_TOLERANCE
        errors = []
        n = matrix.shape[0]
        for i in range(n):
            for j in range(i + 1, n):
                val, counterpart = float(matrix[i, j]), float(matrix[j, i])
                if counterpart == 0 or abs(val - 1.0 / counterpart) > tol:
                    errors.append(f"Reciprocity failed between ({i},{j}) and ({j},{i}). "
                                  f"Value: {val}, counterpart: {counterpart}")
        return errors

    @staticmethod
    def run_all_matrix_validations(matrix: np.ndarray, expected_size: int | None = None, tolerance: float | None = None) -> Dict[str, List[str]]:
        """Runs a complete suite of validations on a single comparison matrix."""
        all_errors = {"dimensions": [], "positivity": [], "diagonal": [], "reciprocity": []}
        all_errors["dimensions"] = Validation.validate_matrix_dimensions(matrix, expected_size)

        # Only run further checks if dimensions are valid
        if not all_errors["dimensions"]:
            all_errors["positivity"] = Validation.validate_matrix_positivity(matrix)
            all_errors["diagonal"] = Validation.validate_matrix_diagonal(matrix, tolerance)
            if not all_errors["positivity"]:
                all_errors["reciprocity"] = Validation.validate_matrix_reciprocity(matrix, tolerance)
        return all_errors

    @staticmethod
    def validate_priority_vector(priorities: np.ndarray, expected_size: int | None = None, tolerance: float | None = None) -> List[str]:
        """Validates that a priority vector is 1D, non-negative and sums to 1."""
        tol = tolerance if tolerance is not None else configure_parameters.FLOAT_TOLERANCE
        errors = []
        vector = np.asarray(priorities, dtype=float)
        if vector.ndim != 1 or vector.size == 0:
            errors.append("Priority vector must be a non-empty 1D array.")
            return errors
        if expected_size is not None and vector.size != expected_size:
            errors.append(f"Priority vector has {vector.size} entries, but expected {expected_size}.")
        if not np.all(np.isfinite(vector)) or np.any(vector < 0):
            errors.append("Priority vector entries must be finite and non-negative.")
        elif abs(float(np.sum(vector)) - 1.0) > tol:
            errors.append(f"Priority vector must sum to 1. Found: {float(np.sum(vector))}")
        return errors

    @staticmethod
    def validate_judgment_keys(judgments: Mapping[Any, Any], n: int) -> List[str]:
        """
        Validates that every judgment key addresses a distinct upper-triangle
        cell of an (n x n) matrix. Values are not checked here; unusable values
        are resolved by the missing-judgment policy.
        """
        errors = []
        seen = set()
        for key in judgments:
            try:
                i, j = parse_judgment_key(key)
            except ValueError as e:
                errors.append(str(e))
                continue
            if not (0 <= i < n and 0 <= j < n):
                errors.append(f"Judgment '{i}-{j}' refers to an item outside a {n}x{n} matrix.")
            elif i >= j:
                errors.append(f"Judgment '{i}-{j}' is not in the upper triangle.")
            elif (i, j) in seen:
                errors.append(f"Judgment '{i}-{j}' was given more than once.")
            seen.add((i, j))
        return errors
