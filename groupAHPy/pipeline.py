from __future__ import annotations
from typing import Dict, Mapping, Sequence, Tuple, TYPE_CHECKING
import numpy as np

from .consistency import Consistency
from .matrix_builder import build_comparison_matrix
from .synthesis import synthesize_ranking
from .types import (
    CRITERIA, ComparisonResult, ExpertEvaluation, ExpertJudgmentSet,
    Judgments, RankedAlternative
)
from .weight_derivation import derive_priorities

if TYPE_CHECKING:
    from .model import DecisionProblem


def evaluate_matrix(
    matrix: np.ndarray,
    items: Sequence[str],
    comparison_type: str,
    threshold: float | None = None
) -> ComparisonResult:
    """Derives priorities and checks consistency of an already built matrix."""
    priorities = derive_priorities(matrix)
    report = Consistency.check(matrix, priorities, threshold)
    return ComparisonResult(
        comparison_type=comparison_type,
        items=tuple(items),
        matrix=matrix,
        priorities=priorities,
        consistency=report,
    )


def evaluate_comparison(
    judgments: Judgments | None,
    items: Sequence[str],
    comparison_type: str,
    threshold: float | None = None,
    missing_policy: str | None = None
) -> ComparisonResult:
    """
    Evaluates one comparison type: builds the reciprocal matrix from the
    sparse judgments, derives the priorities and checks consistency.

    Args:
        judgments: Upper-triangle judgments keyed by ``(i, j)`` or ``"i-j"``.
        items: Names of the compared items, in matrix order.
        comparison_type: ``"criteria"`` or the name of a criterion.
        threshold: CR acceptance threshold (config default when None).
        missing_policy: Missing-judgment policy name (config default when None).
    """
    if not items:
        raise ValueError(f"Comparison '{comparison_type}' must compare at least one item.")
    matrix = build_comparison_matrix(judgments, len(items), missing_policy)
    return evaluate_matrix(matrix, items, comparison_type, threshold)


def synthesize_results(
    problem: 'DecisionProblem',
    results: Mapping[str, ComparisonResult]
) -> Tuple[Dict[str, float], Tuple[RankedAlternative, ...]]:
    """Synthesizes the final scores and ranking from one result per comparison type."""
    criteria_weights = results[CRITERIA].priorities
    alternative_weights = np.vstack([results[criterion].priorities for criterion in problem.criteria])
    return synthesize_ranking(criteria_weights, alternative_weights, problem.alternatives)


def evaluate_expert(
    problem: 'DecisionProblem',
    judgment_set: ExpertJudgmentSet,
    threshold: float | None = None,
    missing_policy: str | None = None
) -> ExpertEvaluation:
    """
    Evaluates every comparison type of one expert's submission and
    synthesizes their individual ranking.

    The submission must carry a judgment map for the criteria and for every
    criterion of the problem. An empty map is allowed and means that all
    items are equally important.

    Raises:
        ValueError: If a comparison type is missing or the submission
                    refers to a criterion the problem does not have.
    """
    unknown = [c for c in judgment_set.alternative_judgments if c not in problem.criteria]
    if unknown:
        raise ValueError(
            f"Expert '{judgment_set.expert_name}' submitted judgments for unknown criteria: {unknown}"
        )

    results: Dict[str, ComparisonResult] = {}
    for comparison_type in problem.comparison_types:
        results[comparison_type] = evaluate_comparison(
            judgment_set.judgments_for(comparison_type),
            problem.items_for(comparison_type),
            comparison_type,
            threshold=threshold,
            missing_policy=missing_policy,
        )

    final_scores, ranking = synthesize_results(problem, results)
    return ExpertEvaluation(
        judgment_set=judgment_set,
        results=results,
        final_scores=final_scores,
        ranking=ranking,
    )
