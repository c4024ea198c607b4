from __future__ import annotations
from typing import Dict, List, Mapping, Sequence, Tuple, TYPE_CHECKING
import warnings
import numpy as np
from scipy.stats import gmean

from .matrix_builder import build_comparison_matrix, create_identity_matrix, upper_triangle_judgments
from .pipeline import evaluate_matrix, synthesize_results
from .types import (
    AggregateResult, ConsensusFallbackWarning, ExpertEvaluation, Judgments, TypeAggregate,
    parse_judgment_key
)
from .validation import Validation

if TYPE_CHECKING:
    from .model import DecisionProblem


# ==============================================================================
# 1. AGGREGATION OF JUDGMENTS
# ==============================================================================

def aggregate_judgments(judgment_maps: Sequence[Judgments], n: int) -> Dict[Tuple[int, int], float]:
    """
    Aggregates several experts' upper-triangle judgments cell by cell with
    the geometric mean.

    .. note::
        The geometric mean is the aggregation that keeps the consensus
        reciprocal: the mean of the reciprocals is the reciprocal of the mean.

    Args:
        judgment_maps: One sparse judgment map per expert. Cells an expert
                       left out count as 1 (equal importance).
        n: Number of compared items.

    Returns:
        The consensus judgment for every ``(i, j)`` with ``i < j``.

    Raises:
        ValueError: If no judgment maps are given.
    """
    if not judgment_maps:
        raise ValueError("The list of judgment sets to aggregate cannot be empty.")

    cells: Dict[Tuple[int, int], List[float]] = {
        (i, j): [] for i in range(n) for j in range(i + 1, n)
    }
    for judgments in judgment_maps:
        errors = Validation.validate_judgment_keys(judgments, n)
        if errors:
            raise ValueError("Invalid judgment set: " + "; ".join(errors))
        normalized = {parse_judgment_key(k): v for k, v in judgments.items()}
        for pair, values in cells.items():
            values.append(float(normalized.get(pair, 1.0)))

    return {pair: float(gmean(values)) for pair, values in cells.items()}


def aggregate_comparison(
    evaluations: Sequence[ExpertEvaluation],
    problem: 'DecisionProblem',
    comparison_type: str,
    threshold: float | None = None
) -> TypeAggregate:
    """
    Builds the consensus ("virtual expert") for one comparison type from the
    experts whose judgments for that type are accepted.

    Experts are filtered per type: an expert can be accepted for the criteria
    and rejected for one criterion's alternatives. The accepted upper
    triangles are aggregated with `aggregate_judgments`, rebuilt into a
    reciprocal matrix and evaluated like any single expert's matrix.

    When no expert is accepted the consensus is the identity matrix (uniform
    priorities) and a ConsensusFallbackWarning is emitted.

    Args:
        evaluations: The evaluated experts.
        problem: The decision problem the evaluations belong to.
        comparison_type: ``"criteria"`` or a criterion name.
        threshold: Re-decides acceptance from each stored CR. When None, the
                   acceptance decided at evaluation time is used.
    """
    items = problem.items_for(comparison_type)
    n = len(items)

    accepted_maps = []
    accepted_crs = []
    for evaluation in evaluations:
        result = evaluation.result_for(comparison_type)
        if result.size != n:
            raise ValueError(
                f"Expert '{evaluation.expert_name}' compared {result.size} items for "
                f"'{comparison_type}', but the problem has {n}."
            )
        if result.consistency.is_accepted(threshold):
            accepted_maps.append(upper_triangle_judgments(result.matrix))
            accepted_crs.append(result.consistency.cr)

    rejected_count = len(evaluations) - len(accepted_maps)

    if accepted_maps:
        matrix = build_comparison_matrix(aggregate_judgments(accepted_maps, n), n)
        average_cr = float(np.mean(accepted_crs))
        used_fallback = False
    else:
        warnings.warn(
            f"No accepted judgments for '{comparison_type}'. "
            "Falling back to equal importance of all items.",
            ConsensusFallbackWarning,
            stacklevel=2
        )
        matrix = create_identity_matrix(n)
        average_cr = None
        used_fallback = True

    return TypeAggregate(
        comparison_type=comparison_type,
        result=evaluate_matrix(matrix, items, comparison_type, threshold),
        accepted_count=len(accepted_maps),
        rejected_count=rejected_count,
        average_accepted_cr=average_cr,
        used_fallback=used_fallback,
    )


# ==============================================================================
# 2. GROUP DECISION
# ==============================================================================

def aggregate_experts(
    evaluations: Sequence[ExpertEvaluation],
    problem: 'DecisionProblem',
    threshold: float | None = None
) -> AggregateResult:
    """
    Aggregates every comparison type and synthesizes the group ranking.

    Returns:
        An AggregateResult with status ``"no_data"`` when there are no
        experts, ``"all_rejected"`` when every comparison type fell back to
        equal importance, and ``"ok"`` otherwise.
    """
    evaluations = list(evaluations)
    if not evaluations:
        return AggregateResult.no_data()

    types: Dict[str, TypeAggregate] = {
        comparison_type: aggregate_comparison(evaluations, problem, comparison_type, threshold)
        for comparison_type in problem.comparison_types
    }
    final_scores, ranking = synthesize_results(problem, {t: agg.result for t, agg in types.items()})

    all_fallback = all(agg.used_fallback for agg in types.values())
    return AggregateResult(
        status=AggregateResult.STATUS_ALL_REJECTED if all_fallback else AggregateResult.STATUS_OK,
        total_count=len(evaluations),
        types=types,
        final_scores=final_scores,
        ranking=ranking,
    )


def acceptance_counts(
    evaluations: Sequence[ExpertEvaluation],
    comparison_types: Sequence[str],
    threshold: float | None = None
) -> Mapping[str, Dict[str, int]]:
    """Counts accepted and needs-review experts per comparison type."""
    counts = {}
    for comparison_type in comparison_types:
        accepted = sum(
            1 for e in evaluations if e.result_for(comparison_type).consistency.is_accepted(threshold)
        )
        counts[comparison_type] = {"accepted": accepted, "needs_review": len(evaluations) - accepted}
    return counts
