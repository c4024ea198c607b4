from __future__ import annotations
from typing import Dict, List, Sequence, Tuple
import numpy as np

from .config import configure_parameters
from .types import RankedAlternative


def synthesize(
    criteria_weights: Sequence[float],
    alternative_weights: Sequence[Sequence[float]],
    alternatives: Sequence[str] | None = None
) -> np.ndarray:
    """
    Combines criteria weights with the local priorities of the alternatives
    under each criterion:

        score[a] = sum_c criteria_weights[c] * alternative_weights[c][a]

    Args:
        criteria_weights: Priority vector of the k criteria.
        alternative_weights: A (k x m) array-like; row c holds the priorities
                             of the m alternatives under criterion c.
        alternatives: Optional alternative names, only used to check that m matches.

    Returns:
        The vector of m global scores.

    Raises:
        ValueError: If the shapes do not line up.
    """
    cw = np.asarray(criteria_weights, dtype=float)
    aw = np.asarray(alternative_weights, dtype=float)

    if cw.ndim != 1 or cw.size == 0:
        raise ValueError("Criteria weights must be a non-empty 1D vector.")
    if aw.ndim != 2 or aw.shape[0] != cw.size:
        raise ValueError(
            f"Alternative weights must have one row per criterion: expected ({cw.size}, m), got {aw.shape}."
        )
    if alternatives is not None and aw.shape[1] != len(alternatives):
        raise ValueError(
            f"Alternative weights cover {aw.shape[1]} alternatives, but {len(alternatives)} names were given."
        )

    # Accumulate criterion by criterion so the summation order is fixed
    scores = np.zeros(aw.shape[1])
    for c in range(cw.size):
        scores = scores + cw[c] * aw[c]
    return scores


def rank_alternatives(
    scores: Sequence[float],
    alternatives: Sequence[str],
    tolerance: float | None = None
) -> Tuple[RankedAlternative, ...]:
    """
    Orders alternatives by descending score. Scores within `tolerance`
    (default: FLOAT_TOLERANCE) of their neighbour count as tied, and tied
    alternatives keep their original order. Ranks are the positions 1..m.
    """
    values = [float(s) for s in np.asarray(scores, dtype=float).ravel()]
    if len(values) != len(alternatives):
        raise ValueError(f"Got {len(values)} scores for {len(alternatives)} alternatives.")
    tol = tolerance if tolerance is not None else configure_parameters.FLOAT_TOLERANCE

    by_score = sorted(range(len(values)), key=lambda idx: -values[idx])

    # Chain neighbours within the tolerance into tie groups
    order: List[int] = []
    group: List[int] = []
    for idx in by_score:
        if group and values[group[-1]] - values[idx] > tol:
            order.extend(sorted(group))
            group = []
        group.append(idx)
    order.extend(sorted(group))

    return tuple(
        RankedAlternative(name=alternatives[idx], score=values[idx], rank=position + 1)
        for position, idx in enumerate(order)
    )


def synthesize_ranking(
    criteria_weights: Sequence[float],
    alternative_weights: Sequence[Sequence[float]],
    alternatives: Sequence[str]
) -> Tuple[Dict[str, float], Tuple[RankedAlternative, ...]]:
    """Runs `synthesize` and `rank_alternatives`; returns the named scores and the ranking."""
    scores = synthesize(criteria_weights, alternative_weights, alternatives)
    named: Dict[str, float] = {name: float(score) for name, score in zip(alternatives, scores)}
    return named, rank_alternatives(scores, alternatives)
