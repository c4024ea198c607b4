from __future__ import annotations
from fractions import Fraction
from typing import Any, Callable, Dict, List, Mapping, Sequence, Tuple
import math
import warnings
import numpy as np
from .config import configure_parameters
from .types import Judgments, MissingJudgmentWarning, parse_judgment_key

# ==============================================================================
# 1. SAATY SCALE
# ==============================================================================

class SaatyScale:
    """
    The nine-step verbal scale experts pick their judgments from: 9, 7, 5, 3
    and 1 with their reciprocals, each paired with a label such as
    "5 - Strongly More Important". The scale is read from the global config.
    """
    @staticmethod
    def values() -> List[float]:
        """Returns the numeric scale values, strongest preference first."""
        return [value for value, _ in configure_parameters.SAATY_SCALE]

    @staticmethod
    def labels() -> List[str]:
        return [label for _, label in configure_parameters.SAATY_SCALE]

    @staticmethod
    def is_on_scale(value: float, tolerance: float | None = None) -> bool:
        """Checks whether a judgment is one of the scale values (e.g. 1/3 within tolerance)."""
        tol = tolerance if tolerance is not None else configure_parameters.FLOAT_TOLERANCE
        try:
            value = float(value)
        except (TypeError, ValueError):
            return False
        return any(abs(value - v) <= tol for v in SaatyScale.values())

    @staticmethod
    def label_for(value: float, tolerance: float | None = None) -> str:
        """
        Returns the verbal label of a scale value.

        Raises:
            ValueError: If the value is not on the scale.
        """
        tol = tolerance if tolerance is not None else configure_parameters.FLOAT_TOLERANCE
        for scale_value, label in configure_parameters.SAATY_SCALE:
            if abs(float(value) - scale_value) <= tol:
                return label
        raise ValueError(f"Value {value} is not on the Saaty scale. Available values: {SaatyScale.labels()}")


# ==============================================================================
# 2. MISSING JUDGMENT POLICIES
# ==============================================================================

MISSING_JUDGMENT_POLICIES: Dict[str, Callable] = {}

def register_missing_judgment_policy(name: str):
    """
    Decorator to register a missing-judgment policy.

    A policy receives the list of absent upper-triangle pairs and a dict of
    pairs whose submitted value was unusable (mapped to that raw value). It
    returns the value to place in each of those cells, or raises.
    """
    def decorator(func: Callable) -> Callable:
        if name in MISSING_JUDGMENT_POLICIES:
            print(f"Warning: Overwriting existing missing-judgment policy '{name}'")
        MISSING_JUDGMENT_POLICIES[name] = func
        return func
    return decorator


@register_missing_judgment_policy("default_to_one")
def _default_to_one(missing: List[Tuple[int, int]], malformed: Dict[Tuple[int, int], Any]) -> Dict[Tuple[int, int], float]:
    """Treats every absent or unusable cell as 'equally important'."""
    default = configure_parameters.DEFAULT_JUDGMENT_VALUE
    if malformed:
        details = ", ".join(f"{i}-{j}={raw!r}" for (i, j), raw in malformed.items())
        warnings.warn(
            f"Malformed judgments replaced by {default}: {details}",
            MissingJudgmentWarning,
            stacklevel=3
        )
    filled = {pair: default for pair in missing}
    filled.update({pair: default for pair in malformed})
    return filled


@register_missing_judgment_policy("reject")
def _reject(missing: List[Tuple[int, int]], malformed: Dict[Tuple[int, int], Any]) -> Dict[Tuple[int, int], float]:
    """Refuses incomplete judgment sets."""
    problems = [f"{i}-{j} (missing)" for i, j in missing]
    problems += [f"{i}-{j}={raw!r} (malformed)" for (i, j), raw in malformed.items()]
    raise ValueError(f"Judgment set is incomplete: {', '.join(problems)}")


def _get_policy(name: str | None) -> Callable:
    policy_name = name if name is not None else configure_parameters.MISSING_JUDGMENT_POLICY
    if policy_name not in MISSING_JUDGMENT_POLICIES:
        raise ValueError(
            f"Unknown missing-judgment policy '{policy_name}'. "
            f"Available: {list(MISSING_JUDGMENT_POLICIES.keys())}"
        )
    return MISSING_JUDGMENT_POLICIES[policy_name]


def _coerce_judgment(raw: Any) -> float | None:
    """
    Converts a submitted judgment to a positive finite float.
    Strings such as "3" or "1/3" are accepted. Returns None for unusable values.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        try:
            value = float(Fraction(raw.strip()))
        except (ValueError, ZeroDivisionError):
            return None
    elif isinstance(raw, (int, float, np.number)):
        value = float(raw)
    else:
        return None

    if not math.isfinite(value) or value <= 0:
        return None
    return value


# ==============================================================================
# 3. MATRIX CREATION
# ==============================================================================

def _check_size(n: int) -> int:
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
        raise TypeError(f"Matrix size must be an integer, got {type(n).__name__}.")
    if n < 1:
        raise ValueError(f"Matrix size must be at least 1, got {n}.")
    return int(n)


def create_identity_matrix(n: int) -> np.ndarray:
    """Creates the n x n matrix in which every item is equally important."""
    n = _check_size(n)
    return np.ones((n, n), dtype=float)


def build_comparison_matrix(
    judgments: Judgments | None,
    n: int,
    missing_policy: str | None = None
) -> np.ndarray:
    """
    Expands a sparse set of upper-triangle judgments into a complete,
    reciprocal comparison matrix.

    Each judgment ``(i, j) -> v`` with ``i < j`` states how much more important
    item ``i`` is than item ``j``. The builder sets ``A[i, j] = v``,
    ``A[j, i] = 1 / v`` and ``A[i, i] = 1``. Cells that are absent or whose
    value is unusable (None, NaN, infinite, non-numeric, zero or negative)
    are handed to the missing-judgment policy.

    Args:
        judgments: Mapping of ``(i, j)`` tuples or ``"i-j"`` strings to ratios.
        n: The number of compared items.
        missing_policy: Name of a registered policy. Defaults to
                        ``configure_parameters.MISSING_JUDGMENT_POLICY``.

    Returns:
        An (n x n) float matrix with unit diagonal and exact reciprocity.

    Raises:
        ValueError: For keys outside the upper triangle or outside ``0..n-1``,
                    duplicate keys, or when the policy rejects the input.
    """
    n = _check_size(n)
    if judgments is None:
        judgments = {}
    if not isinstance(judgments, Mapping):
        raise TypeError(
            "Judgments must be a mapping of (i, j) pairs to ratios. "
            "Use judgments_from_list() for flattened upper-triangle lists."
        )

    provided: Dict[Tuple[int, int], Any] = {}
    for key, raw in judgments.items():
        i, j = parse_judgment_key(key)
        if not (0 <= i < n and 0 <= j < n):
            raise ValueError(f"Judgment '{i}-{j}' refers to an item outside a {n}x{n} matrix.")
        if i >= j:
            raise ValueError(f"Judgment '{i}-{j}' is not in the upper triangle.")
        if (i, j) in provided:
            raise ValueError(f"Judgment '{i}-{j}' was given more than once.")
        provided[(i, j)] = raw

    values: Dict[Tuple[int, int], float] = {}
    missing: List[Tuple[int, int]] = []
    malformed: Dict[Tuple[int, int], Any] = {}
    for i in range(n):
        for j in range(i + 1, n):
            if (i, j) not in provided:
                missing.append((i, j))
                continue
            value = _coerce_judgment(provided[(i, j)])
            if value is None:
                malformed[(i, j)] = provided[(i, j)]
            else:
                values[(i, j)] = value

    if missing or malformed:
        policy = _get_policy(missing_policy)
        values.update(policy(missing=missing, malformed=malformed))

    matrix = create_identity_matrix(n)
    for (i, j), value in values.items():
        matrix[i, j] = value
        matrix[j, i] = 1.0 / value
    return matrix


def upper_triangle_judgments(matrix: np.ndarray) -> Dict[Tuple[int, int], float]:
    """Extracts the sparse ``(i, j) -> a_ij`` map (``i < j``) from a square matrix."""
    arr = np.asarray(matrix, dtype=float)
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
        raise ValueError(f"Matrix must be square, got shape {arr.shape}.")
    n = arr.shape[0]
    return {(i, j): float(arr[i, j]) for i in range(n) for j in range(i + 1, n)}


# ==============================================================================
# 4. FLATTENED JUDGMENT LISTS
# ==============================================================================

def _get_matrix_size_from_list_len(num_judgments: int) -> int:
    """
    Solves n*(n-1)/2 = k for the size n of the matrix whose upper triangle
    holds k judgments.

    Raises:
        ValueError: If k is not a triangular number.
    """
    if num_judgments < 0:
        raise ValueError(f"Invalid number of judgments ({num_judgments}). Cannot form a square matrix.")

    # n^2 - n - 2k = 0, positive root of the quadratic formula
    n = (1 + math.sqrt(1 + 8 * num_judgments)) / 2
    if n != int(n):
        raise ValueError(
            f"Invalid number of judgments ({num_judgments}). "
            "Does not correspond to a full upper-triangle matrix."
        )
    return int(n)


def judgments_from_list(values: Sequence[Any]) -> Dict[Tuple[int, int], Any]:
    """
    Converts a flat list of upper-triangle judgments, read row by row, into
    a sparse judgment map.

    Example: for 3 items the list ``[a01, a02, a12]`` becomes
    ``{(0, 1): a01, (0, 2): a02, (1, 2): a12}``.
    """
    values = list(values)
    size = _get_matrix_size_from_list_len(len(values))
    pairs = [(i, j) for i in range(size) for j in range(i + 1, size)]
    return dict(zip(pairs, values))
