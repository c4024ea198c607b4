from __future__ import annotations
from typing import Tuple
import numpy as np

from .config import configure_parameters
from .types import ConsistencyReport
from .weight_derivation import as_comparison_array, derive_priorities


class Consistency:
    """
    A class with static methods to calculate and check Saaty's consistency
    measures of a comparison matrix.
    """
    @staticmethod
    def get_random_index(n: int) -> float:
        """
        Retrieves the Random Consistency Index (RI) for a matrix of size n
        from the global config. Sizes beyond the table use its 'default' entry.
        """
        if n < 1:
            raise ValueError(f"Matrix size must be at least 1, got {n}.")
        table = configure_parameters.SAATY_RI_VALUES
        return float(table.get(n, table['default']))

    @staticmethod
    def calculate_lambda_max(matrix: np.ndarray, priorities: np.ndarray) -> Tuple[float, np.ndarray]:
        """
        Estimates the principal eigenvalue of a matrix from its priority vector.

        Returns:
            A tuple ``(lambda_max, lambdas)`` where ``lambdas[i] = (A w)_i / w_i``
            and ``lambda_max`` is their mean.

        Raises:
            ValueError: If the vector length does not match the matrix or a
                        priority is not strictly positive.
        """
        arr = as_comparison_array(matrix)
        weights = np.asarray(priorities, dtype=float)
        if weights.shape != (arr.shape[0],):
            raise ValueError(
                f"Priority vector of shape {weights.shape} does not match a matrix of size {arr.shape[0]}."
            )
        if not np.all(np.isfinite(weights)) or np.any(weights <= 0):
            raise ValueError("Every priority must be strictly positive to estimate lambda_max.")

        weighted_sum = arr @ weights
        lambdas = weighted_sum / weights
        return float(np.mean(lambdas)), lambdas

    @staticmethod
    def calculate_consistency_index(lambda_max: float, n: int) -> float:
        """
        CI = (lambda_max - n) / (n - 1), and 0 for a single item.
        Negative values left by floating-point rounding are clamped to 0.
        """
        if n <= 1:
            return 0.0
        ci = (lambda_max - n) / (n - 1)
        if ci < 0: ci = 0.0
        return float(ci)

    @staticmethod
    def calculate_consistency_ratio(ci: float, ri: float) -> float:
        """CR = CI / RI; matrices with RI = 0 (n <= 2) are consistent by definition."""
        if ri <= 0:
            return 0.0
        return float(ci / ri)

    @staticmethod
    def check(
        matrix: np.ndarray,
        priorities: np.ndarray | None = None,
        threshold: float | None = None
    ) -> ConsistencyReport:
        """
        Computes lambda_max, CI, RI and CR of a comparison matrix and decides
        whether the judgments are accepted.

        Args:
            matrix: The (n x n) comparison matrix.
            priorities: Its priority vector. Derived with the geometric mean
                        method when omitted.
            threshold: Largest acceptable CR. Defaults to
                       ``configure_parameters.DEFAULT_SAATY_CR_THRESHOLD``.

        Returns:
            A ConsistencyReport with ``accepted = cr <= threshold``.
        """
        arr = as_comparison_array(matrix)
        n = arr.shape[0]
        final_threshold = threshold if threshold is not None else configure_parameters.DEFAULT_SAATY_CR_THRESHOLD
        if priorities is None:
            priorities = derive_priorities(arr)

        lambda_max, lambdas = Consistency.calculate_lambda_max(arr, priorities)
        ci = Consistency.calculate_consistency_index(lambda_max, n)
        ri = Consistency.get_random_index(n)
        cr = Consistency.calculate_consistency_ratio(ci, ri)

        return ConsistencyReport(
            lambda_max=lambda_max,
            ci=ci,
            ri=ri,
            cr=cr,
            accepted=bool(cr <= final_threshold),
            threshold=float(final_threshold),
            lambdas=tuple(float(x) for x in lambdas),
        )

    @staticmethod
    def calculate_saaty_cr(matrix: np.ndarray) -> float:
        """Shortcut returning only the Consistency Ratio of a matrix."""
        return Consistency.check(matrix).cr
