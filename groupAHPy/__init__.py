__version__ = "0.1.0"

from .config import configure_parameters, ConfigurationContextManager
from .types import (
    CRITERIA, ConsistencyReport, ComparisonResult, RankedAlternative,
    ExpertJudgmentSet, ExpertEvaluation, TypeAggregate, AggregateResult,
    MissingJudgmentWarning, ConsensusFallbackWarning
)
from .model import DecisionProblem, ExpertPanel
from .consistency import Consistency
from .validation import Validation

from .matrix_builder import (
    SaatyScale, build_comparison_matrix, create_identity_matrix,
    judgments_from_list, upper_triangle_judgments, register_missing_judgment_policy
)
from .weight_derivation import derive_priorities, column_normalization_breakdown
from .aggregation import aggregate_judgments, aggregate_experts
from .synthesis import synthesize, rank_alternatives
from .pipeline import evaluate_comparison, evaluate_expert
