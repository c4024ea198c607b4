from __future__ import annotations
import dataclasses
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union
import numpy as np


# ==============================================================================
# 1. JUDGMENT KEYS AND ALIASES
# ==============================================================================

CRITERIA = "criteria"

JudgmentKey = Union[Tuple[int, int], str]
Judgments = Mapping[JudgmentKey, Any]


def parse_judgment_key(key: JudgmentKey) -> Tuple[int, int]:
    """
    Normalizes a judgment key into an ``(i, j)`` tuple of integers.

    Accepts ``(i, j)`` tuples (or 2-element lists) and the ``"i-j"`` string
    form in which web forms usually submit their upper-triangle cells.
    """
    if isinstance(key, str):
        parts = key.strip().split("-")
        if len(parts) != 2:
            raise ValueError(f"Judgment key '{key}' must have the form 'i-j'.")
        try:
            return int(parts[0]), int(parts[1])
        except ValueError as e:
            raise ValueError(f"Judgment key '{key}' must have the form 'i-j'.") from e

    if isinstance(key, (tuple, list)) and len(key) == 2:
        i, j = key
        if isinstance(i, (int, np.integer)) and isinstance(j, (int, np.integer)) \
                and not isinstance(i, bool) and not isinstance(j, bool):
            return int(i), int(j)

    raise ValueError(f"Judgment key {key!r} must be an (i, j) pair of integers or an 'i-j' string.")


def format_judgment_key(key: JudgmentKey) -> str:
    """Returns the canonical ``"i-j"`` string form of a judgment key."""
    i, j = parse_judgment_key(key)
    return f"{i}-{j}"


def _readonly(values: Any) -> np.ndarray:
    array = np.array(values, dtype=float)
    array.setflags(write=False)
    return array


# ==============================================================================
# 2. WARNINGS
# ==============================================================================

class MissingJudgmentWarning(UserWarning):
    """A judgment cell was malformed and has been replaced by the missing-judgment policy."""


class ConsensusFallbackWarning(UserWarning):
    """No expert was accepted for a comparison type; the consensus falls back to equal importance."""


# ==============================================================================
# 3. RESULT RECORDS
# ==============================================================================

@dataclass(frozen=True)
class ConsistencyReport:
    """
    Saaty consistency metrics for one comparison matrix.

    Attributes:
        lambda_max: Estimate of the principal eigenvalue (mean of ``lambdas``).
        ci: Consistency Index, ``(lambda_max - n) / (n - 1)``.
        ri: Random Index used for the matrix size.
        cr: Consistency Ratio, ``ci / ri`` (0 when ``ri`` is 0).
        accepted: ``cr <= threshold``.
        threshold: The CR threshold the decision was taken with.
        lambdas: Per-row ratios ``(A w)_i / w_i``.
    """
    lambda_max: float
    ci: float
    ri: float
    cr: float
    accepted: bool
    threshold: float
    lambdas: Tuple[float, ...] = ()

    def is_accepted(self, threshold: float | None = None) -> bool:
        """Re-decides acceptance against another threshold, or returns the stored decision."""
        if threshold is None:
            return self.accepted
        return self.cr <= threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lambda_max": self.lambda_max,
            "ci": self.ci,
            "ri": self.ri,
            "cr": self.cr,
            "accepted": self.accepted,
            "threshold": self.threshold,
            "lambdas": list(self.lambdas),
        }


@dataclass(frozen=True, eq=False)
class ComparisonResult:
    """
    The fixed-schema outcome of evaluating one comparison type: the full
    comparison matrix, its priority vector and its consistency report.
    Arrays are stored read-only.
    """
    comparison_type: str
    items: Tuple[str, ...]
    matrix: np.ndarray
    priorities: np.ndarray
    consistency: ConsistencyReport

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "matrix", _readonly(self.matrix))
        object.__setattr__(self, "priorities", _readonly(self.priorities))
        n = len(self.items)
        if self.matrix.shape != (n, n) or self.priorities.shape != (n,):
            raise ValueError(
                f"Result for '{self.comparison_type}' has {n} items but a matrix of shape "
                f"{self.matrix.shape} and priorities of shape {self.priorities.shape}."
            )

    @property
    def size(self) -> int:
        return len(self.items)

    @property
    def accepted(self) -> bool:
        return self.consistency.accepted

    def priority_of(self, item: str) -> float:
        try:
            return float(self.priorities[self.items.index(item)])
        except ValueError as e:
            raise ValueError(f"Item '{item}' is not part of comparison '{self.comparison_type}'.") from e

    def to_dict(self) -> Dict[str, Any]:
        return {
            "comparison_type": self.comparison_type,
            "items": list(self.items),
            "matrix": self.matrix.tolist(),
            "priorities": self.priorities.tolist(),
            "consistency": self.consistency.to_dict(),
        }


@dataclass(frozen=True)
class RankedAlternative:
    name: str
    score: float
    rank: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "score": self.score, "rank": self.rank}


# ==============================================================================
# 4. EXPERT SUBMISSIONS
# ==============================================================================

@dataclass(frozen=True, eq=False)
class ExpertJudgmentSet:
    """
    One expert's identity plus their raw, sparse pairwise judgments: one map
    for the criteria and one map per criterion over the alternatives.

    The set is immutable once created. A missing or blank ``expert_name`` is
    rejected here, before any calculation can run.
    """
    expert_name: str
    criteria_judgments: Judgments
    alternative_judgments: Mapping[str, Judgments]
    expert_email: Optional[str] = None
    expert_id: Optional[str] = None
    submitted_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.expert_name, str) or not self.expert_name.strip():
            raise ValueError("Expert name is required before any judgment can be evaluated.")
        if not isinstance(self.criteria_judgments, Mapping):
            raise TypeError("criteria_judgments must be a mapping of (i, j) pairs to ratios.")
        if not isinstance(self.alternative_judgments, Mapping):
            raise TypeError("alternative_judgments must map each criterion to its judgments.")

        frozen_alternatives = {}
        for criterion, judgments in self.alternative_judgments.items():
            if not isinstance(judgments, Mapping):
                raise TypeError(f"Judgments for criterion '{criterion}' must be a mapping.")
            frozen_alternatives[str(criterion)] = MappingProxyType(dict(judgments))

        object.__setattr__(self, "expert_name", self.expert_name.strip())
        object.__setattr__(self, "criteria_judgments", MappingProxyType(dict(self.criteria_judgments)))
        object.__setattr__(self, "alternative_judgments", MappingProxyType(frozen_alternatives))

    def judgments_for(self, comparison_type: str) -> Judgments:
        """Returns the judgments for the criteria or for one criterion's alternatives."""
        if comparison_type == CRITERIA:
            return self.criteria_judgments
        try:
            return self.alternative_judgments[comparison_type]
        except KeyError:
            raise ValueError(
                f"Expert '{self.expert_name}' has no judgments for comparison type '{comparison_type}'."
            ) from None

    def with_identity(self, expert_id: str, submitted_at: datetime | None = None) -> 'ExpertJudgmentSet':
        """Returns a copy carrying the given id and submission time."""
        return dataclasses.replace(
            self,
            expert_id=expert_id,
            submitted_at=submitted_at if submitted_at is not None else self.submitted_at
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serializes the set to a JSON-compatible dictionary with 'i-j' keys."""
        def _judgments(judgments: Judgments) -> Dict[str, Any]:
            return {format_judgment_key(k): v for k, v in judgments.items()}

        return {
            "expert_id": self.expert_id,
            "expert_name": self.expert_name,
            "expert_email": self.expert_email,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "criteria_judgments": _judgments(self.criteria_judgments),
            "alternative_judgments": {
                criterion: _judgments(judgments)
                for criterion, judgments in self.alternative_judgments.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExpertJudgmentSet':
        """Creates a judgment set from a dictionary produced by `to_dict`."""
        submitted_at = data.get("submitted_at")
        if isinstance(submitted_at, str):
            submitted_at = datetime.fromisoformat(submitted_at)
        return cls(
            expert_name=data.get("expert_name"),
            criteria_judgments=data.get("criteria_judgments", {}),
            alternative_judgments=data.get("alternative_judgments", {}),
            expert_email=data.get("expert_email"),
            expert_id=data.get("expert_id"),
            submitted_at=submitted_at,
        )


@dataclass(frozen=True, eq=False)
class ExpertEvaluation:
    """
    Everything derived from one ExpertJudgmentSet: a ComparisonResult per
    comparison type, the expert's own synthesized scores and their ranking.
    """
    judgment_set: ExpertJudgmentSet
    results: Mapping[str, ComparisonResult]
    final_scores: Mapping[str, float]
    ranking: Tuple[RankedAlternative, ...]

    def __post_init__(self):
        object.__setattr__(self, "results", MappingProxyType(dict(self.results)))
        object.__setattr__(self, "final_scores", MappingProxyType(dict(self.final_scores)))
        object.__setattr__(self, "ranking", tuple(self.ranking))

    @property
    def expert_id(self) -> Optional[str]:
        return self.judgment_set.expert_id

    @property
    def expert_name(self) -> str:
        return self.judgment_set.expert_name

    @property
    def is_fully_consistent(self) -> bool:
        return all(result.accepted for result in self.results.values())

    def result_for(self, comparison_type: str) -> ComparisonResult:
        try:
            return self.results[comparison_type]
        except KeyError:
            raise ValueError(
                f"Evaluation of expert '{self.expert_name}' has no result for '{comparison_type}'."
            ) from None

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.judgment_set.to_dict(),
            "results": {t: r.to_dict() for t, r in self.results.items()},
            "final_scores": dict(self.final_scores),
            "ranking": [r.to_dict() for r in self.ranking],
        }


# ==============================================================================
# 5. GROUP RESULTS
# ==============================================================================

@dataclass(frozen=True, eq=False)
class TypeAggregate:
    """The consensus for one comparison type and how many experts fed it."""
    comparison_type: str
    result: ComparisonResult
    accepted_count: int
    rejected_count: int
    average_accepted_cr: Optional[float]
    used_fallback: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "comparison_type": self.comparison_type,
            "result": self.result.to_dict(),
            "accepted_count": self.accepted_count,
            "rejected_count": self.rejected_count,
            "average_accepted_cr": self.average_accepted_cr,
            "used_fallback": self.used_fallback,
        }


@dataclass(frozen=True, eq=False)
class AggregateResult:
    """
    The group outcome, recomputed on every request and never stored.

    ``status`` is one of:
        - ``"ok"``: at least one comparison type had accepted experts.
        - ``"all_rejected"``: experts exist but every type fell back to equal importance.
        - ``"no_data"``: there were no experts at all; ``types`` and ``ranking`` are empty.
    """
    STATUS_OK = "ok"
    STATUS_ALL_REJECTED = "all_rejected"
    STATUS_NO_DATA = "no_data"

    status: str
    total_count: int
    types: Mapping[str, TypeAggregate]
    final_scores: Mapping[str, float]
    ranking: Tuple[RankedAlternative, ...]

    def __post_init__(self):
        if self.status not in (self.STATUS_OK, self.STATUS_ALL_REJECTED, self.STATUS_NO_DATA):
            raise ValueError(f"Unknown aggregate status '{self.status}'.")
        object.__setattr__(self, "types", MappingProxyType(dict(self.types)))
        object.__setattr__(self, "final_scores", MappingProxyType(dict(self.final_scores)))
        object.__setattr__(self, "ranking", tuple(self.ranking))

    @classmethod
    def no_data(cls) -> 'AggregateResult':
        return cls(status=cls.STATUS_NO_DATA, total_count=0, types={}, final_scores={}, ranking=())

    @property
    def has_data(self) -> bool:
        return self.status != self.STATUS_NO_DATA

    def for_type(self, comparison_type: str) -> TypeAggregate:
        try:
            return self.types[comparison_type]
        except KeyError:
            raise ValueError(f"No aggregate available for comparison type '{comparison_type}'.") from None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "total_count": self.total_count,
            "types": {t: agg.to_dict() for t, agg in self.types.items()},
            "final_scores": dict(self.final_scores),
            "ranking": [r.to_dict() for r in self.ranking],
        }
