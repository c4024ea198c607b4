from __future__ import annotations
from typing import Iterable, List, Mapping, Sequence, Tuple, Union
import os

from .types import AggregateResult, ComparisonResult, ExpertEvaluation, RankedAlternative
from .weight_derivation import row_geometric_means

try:
    import pandas as pd
    _PANDAS_AVAILABLE = True
except ImportError:
    _PANDAS_AVAILABLE = False


def _check_pandas_availability():
    """Helper function to raise an error if pandas is not installed."""
    if not _PANDAS_AVAILABLE:
        raise ImportError("Report tables and CSV export require the 'pandas' library. "
                          "Please install it using: pip install pandas")


ACCEPTED_LABEL = "Accepted"
NEEDS_REVIEW_LABEL = "Needs Review"


def _status(accepted: bool) -> str:
    return ACCEPTED_LABEL if accepted else NEEDS_REVIEW_LABEL


def comparison_to_table(result: ComparisonResult, decimals: int | None = 4) -> 'pd.DataFrame':
    """
    Formats a comparison matrix as a classic n x n table with two extra
    columns: the row geometric means and the priority vector.

    Args:
        result: The evaluated comparison.
        decimals: Rounding applied to the table. None keeps full precision.
    """
    _check_pandas_availability()

    items = list(result.items)
    df = pd.DataFrame(result.matrix, index=items, columns=items)
    df["Geometric Mean"] = row_geometric_means(result.matrix)
    df["Priority"] = result.priorities
    df.index.name = result.comparison_type
    return df.round(decimals) if decimals is not None else df


def consistency_summary(evaluation: ExpertEvaluation) -> 'pd.DataFrame':
    """One row per comparison type with lambda_max, CI, RI, CR and the review status."""
    _check_pandas_availability()

    rows = []
    for comparison_type, result in evaluation.results.items():
        report = result.consistency
        rows.append({
            "Comparison": comparison_type,
            "Lambda Max": report.lambda_max,
            "CI": report.ci,
            "RI": report.ri,
            "CR": report.cr,
            "Status": _status(report.accepted),
        })
    return pd.DataFrame(rows).set_index("Comparison")


def ranking_table(ranking: Sequence[RankedAlternative]) -> 'pd.DataFrame':
    _check_pandas_availability()

    df = pd.DataFrame(
        [{"Rank": r.rank, "Alternative": r.name, "Score": r.score} for r in ranking],
        columns=["Rank", "Alternative", "Score"]
    )
    return df.set_index("Rank")


def panel_summary(evaluations: Iterable[ExpertEvaluation]) -> 'pd.DataFrame':
    """
    A long table of every expert and comparison type: the consistency
    metrics, the review status and the resulting priorities.
    """
    _check_pandas_availability()

    columns = ["Expert ID", "Expert", "Email", "Submitted At", "Comparison",
               "CR", "Status", "Priorities"]
    rows = []
    for evaluation in evaluations:
        judgment_set = evaluation.judgment_set
        for comparison_type, result in evaluation.results.items():
            rows.append({
                "Expert ID": evaluation.expert_id,
                "Expert": evaluation.expert_name,
                "Email": judgment_set.expert_email,
                "Submitted At": judgment_set.submitted_at.isoformat() if judgment_set.submitted_at else None,
                "Comparison": comparison_type,
                "CR": result.consistency.cr,
                "Status": _status(result.accepted),
                "Priorities": "; ".join(
                    f"{item}={weight:.4f}" for item, weight in zip(result.items, result.priorities)
                ),
            })
    return pd.DataFrame(rows, columns=columns)


def aggregate_summary(aggregate: AggregateResult) -> 'pd.DataFrame':
    """
    Per comparison type: how many experts were accepted and rejected, the
    average CR of the accepted experts, the CR of the consensus matrix and
    whether the consensus fell back to equal importance.
    """
    _check_pandas_availability()

    columns = ["Comparison", "Accepted", "Needs Review", "Average Accepted CR",
               "Consensus CR", "Fallback"]
    rows = [
        {
            "Comparison": comparison_type,
            "Accepted": agg.accepted_count,
            "Needs Review": agg.rejected_count,
            "Average Accepted CR": agg.average_accepted_cr,
            "Consensus CR": agg.result.consistency.cr,
            "Fallback": agg.used_fallback,
        }
        for comparison_type, agg in aggregate.types.items()
    ]
    return pd.DataFrame(rows, columns=columns).set_index("Comparison")


def expert_report_tables(evaluation: ExpertEvaluation) -> List[Tuple[str, 'pd.DataFrame']]:
    """The titled tables of a single expert's report, ready for `export_report`."""
    tables = [(f"Expert: {evaluation.expert_name}", consistency_summary(evaluation))]
    for comparison_type, result in evaluation.results.items():
        tables.append((f"Comparison: {comparison_type}", comparison_to_table(result)))
    tables.append(("Final Ranking", ranking_table(evaluation.ranking)))
    return tables


def group_report_tables(aggregate: AggregateResult) -> List[Tuple[str, 'pd.DataFrame']]:
    """The titled tables of the group report, ready for `export_report`."""
    if not aggregate.has_data:
        raise ValueError("No expert has submitted judgments yet; there is nothing to report.")
    tables = [(f"Group Decision ({aggregate.total_count} experts)", aggregate_summary(aggregate))]
    for comparison_type, agg in aggregate.types.items():
        tables.append((f"Consensus: {comparison_type}", comparison_to_table(agg.result)))
    tables.append(("Final Ranking", ranking_table(aggregate.ranking)))
    return tables


def export_report(
    tables: Union[Mapping[str, 'pd.DataFrame'], Sequence[Tuple[str, 'pd.DataFrame']]],
    path: Union[str, os.PathLike]
) -> None:
    """
    Writes several titled tables into one CSV file, each preceded by its
    title line and followed by an empty line.

    Args:
        tables: Titles mapped to DataFrames, or a sequence of (title, DataFrame) pairs.
        path: Destination file. Existing files are overwritten.
    """
    _check_pandas_availability()

    items = list(tables.items()) if isinstance(tables, Mapping) else list(tables)
    with open(path, "w", newline="", encoding="utf-8") as handle:
        for title, df in items:
            handle.write(f"{title}\n")
            df.to_csv(handle)
            handle.write("\n")
