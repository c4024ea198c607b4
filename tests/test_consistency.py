"""
===================================================================
Tests for the Consistency Module
===================================================================

This script contains unit tests for lambda_max, CI, RI and CR and the
acceptance decision taken on them.

To run tests, navigate to the root directory and run:
$ pytest
"""

import pytest
import numpy as np

from groupAHPy.config import ConfigurationContextManager
from groupAHPy.consistency import Consistency
from groupAHPy.matrix_builder import build_comparison_matrix
from groupAHPy.weight_derivation import derive_priorities

# ==============================================================================
# Test Fixtures
# ==============================================================================

@pytest.fixture
def consistent_matrix() -> np.ndarray:
    return build_comparison_matrix({"0-1": 1, "0-2": 3, "1-2": 3}, 3)

@pytest.fixture
def cyclic_matrix() -> np.ndarray:
    """A 3x3 matrix just above the acceptance threshold."""
    return build_comparison_matrix({"0-1": 3, "0-2": 3, "1-2": 3}, 3)

# ==============================================================================
# Random Index
# ==============================================================================

@pytest.mark.parametrize("n, expected_ri", [
    (1, 0.0), (2, 0.0), (3, 0.58), (4, 0.90), (5, 1.12), (6, 1.24),
    (7, 1.32), (8, 1.41), (9, 1.45), (10, 1.49), (11, 1.59), (25, 1.59)
])
def test_random_index_table(n, expected_ri):
    assert Consistency.get_random_index(n) == expected_ri


def test_random_index_rejects_empty_matrix():
    with pytest.raises(ValueError):
        Consistency.get_random_index(0)

# ==============================================================================
# Consistency report
# ==============================================================================

def test_identity_matrix_is_perfectly_consistent():
    report = Consistency.check(np.ones((3, 3)))
    assert report.lambda_max == pytest.approx(3.0)
    assert report.ci == pytest.approx(0.0, abs=1e-12)
    assert report.cr == pytest.approx(0.0, abs=1e-12)
    assert report.accepted is True
    assert report.threshold == 0.10


def test_consistent_judgments_are_accepted(consistent_matrix):
    report = Consistency.check(consistent_matrix, derive_priorities(consistent_matrix))
    assert report.cr == pytest.approx(0.0, abs=1e-12)
    assert report.accepted is True


def test_cyclic_judgments_are_rejected(cyclic_matrix):
    report = Consistency.check(cyclic_matrix, derive_priorities(cyclic_matrix))

    expected_lambda = 1 + 3 ** (1 / 3) + 3 ** (-1 / 3)
    assert report.lambda_max == pytest.approx(expected_lambda)
    assert report.lambda_max == pytest.approx(3.135611, abs=1e-6)
    assert report.ci == pytest.approx(0.067805, abs=1e-6)
    assert report.ri == 0.58
    assert report.cr == pytest.approx(0.116906, abs=1e-6)
    assert report.accepted is False
    # Every row ratio is the same for this circulant matrix
    assert report.lambdas == pytest.approx((expected_lambda,) * 3)


def test_threshold_is_a_parameter(cyclic_matrix):
    assert Consistency.check(cyclic_matrix, threshold=0.12).accepted is True
    assert Consistency.check(cyclic_matrix, threshold=0.12).threshold == 0.12
    assert Consistency.check(cyclic_matrix, threshold=0.11).accepted is False


def test_threshold_default_comes_from_configuration(cyclic_matrix):
    with ConfigurationContextManager(DEFAULT_SAATY_CR_THRESHOLD=0.2):
        assert Consistency.check(cyclic_matrix).accepted is True
    assert Consistency.check(cyclic_matrix).accepted is False


def test_report_can_be_re_decided(cyclic_matrix):
    report = Consistency.check(cyclic_matrix)
    assert report.is_accepted() is False
    assert report.is_accepted(0.2) is True


@pytest.mark.parametrize("n", [1, 2])
def test_small_matrices_always_pass(n):
    matrix = build_comparison_matrix({"0-1": 9} if n == 2 else {}, n)
    report = Consistency.check(matrix)
    assert report.ri == 0.0
    assert report.cr == 0.0
    assert report.accepted is True


def test_consistency_index_is_clamped_at_zero():
    assert Consistency.calculate_consistency_index(2.9999999999, 3) == 0.0
    assert Consistency.calculate_consistency_index(3.2, 3) == pytest.approx(0.1)
    assert Consistency.calculate_consistency_index(5.0, 1) == 0.0


def test_consistency_ratio_with_zero_random_index():
    assert Consistency.calculate_consistency_ratio(0.3, 0.0) == 0.0
    assert Consistency.calculate_consistency_ratio(0.058, 0.58) == pytest.approx(0.1)


def test_non_positive_priority_raises(consistent_matrix):
    with pytest.raises(ValueError, match="strictly positive"):
        Consistency.calculate_lambda_max(consistent_matrix, np.array([0.5, 0.5, 0.0]))


def test_priority_length_mismatch_raises(consistent_matrix):
    with pytest.raises(ValueError, match="does not match"):
        Consistency.check(consistent_matrix, np.array([0.5, 0.5]))


def test_large_matrix_uses_default_random_index():
    report = Consistency.check(np.ones((12, 12)))
    assert report.ri == 1.59
    assert report.cr == pytest.approx(0.0, abs=1e-12)


def test_saaty_cr_shortcut(cyclic_matrix):
    assert Consistency.calculate_saaty_cr(cyclic_matrix) == pytest.approx(0.116906, abs=1e-6)


def test_report_to_dict(cyclic_matrix):
    data = Consistency.check(cyclic_matrix).to_dict()
    assert set(data) == {"lambda_max", "ci", "ri", "cr", "accepted", "threshold", "lambdas"}
    assert isinstance(data["lambdas"], list)
    assert data["accepted"] is False
