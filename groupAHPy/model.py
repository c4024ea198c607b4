from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, TYPE_CHECKING
import json
import os
import threading
import uuid

from .aggregation import acceptance_counts, aggregate_experts
from .matrix_builder import _coerce_judgment
from .pipeline import evaluate_expert
from .types import CRITERIA, AggregateResult, ExpertEvaluation, ExpertJudgmentSet

if TYPE_CHECKING:
    import pandas as pd


class DecisionProblem:
    """
    The two-level structure of a group decision: a goal, an ordered list of
    criteria and an ordered list of alternatives.

    Every problem has ``1 + len(criteria)`` comparison types: ``"criteria"``
    (the criteria compared with each other) and one per criterion (the
    alternatives compared under that criterion).
    """
    def __init__(self, criteria: Sequence[str], alternatives: Sequence[str], goal: Optional[str] = None):
        self.criteria: Tuple[str, ...] = self._check_names("criteria", criteria)
        self.alternatives: Tuple[str, ...] = self._check_names("alternatives", alternatives)
        if CRITERIA in self.criteria:
            raise ValueError(f"'{CRITERIA}' is reserved for the criteria comparison and cannot name a criterion.")
        self.goal = goal

    @staticmethod
    def _check_names(kind: str, names: Sequence[str]) -> Tuple[str, ...]:
        if isinstance(names, str) or not names:
            raise ValueError(f"A decision problem needs a non-empty list of {kind}.")
        names = tuple(names)
        for name in names:
            if not isinstance(name, str) or not name.strip():
                raise ValueError(f"Names of {kind} must be non-empty strings, got {name!r}.")
        if len(set(names)) != len(names):
            raise ValueError(f"Names of {kind} must be unique, got {list(names)}.")
        return names

    def __repr__(self) -> str:
        return (f"DecisionProblem(goal={self.goal!r}, criteria={list(self.criteria)}, "
                f"alternatives={list(self.alternatives)})")

    @property
    def comparison_types(self) -> Tuple[str, ...]:
        return (CRITERIA, *self.criteria)

    def items_for(self, comparison_type: str) -> Tuple[str, ...]:
        """Returns the items compared in a comparison type."""
        if comparison_type == CRITERIA:
            return self.criteria
        if comparison_type in self.criteria:
            return self.alternatives
        raise ValueError(
            f"Unknown comparison type '{comparison_type}'. Available: {list(self.comparison_types)}"
        )

    def index_judgments(self, comparison_type: str, named_judgments: Mapping[Tuple[str, str], Any]) -> Dict[Tuple[int, int], Any]:
        """
        Translates judgments keyed by item names, e.g.
        ``{("Coding_Hours", "Attendance"): 5}``, into index-keyed judgments.

        A pair given in reverse order (lower triangle) is stored as the
        reciprocal of its upper-triangle counterpart.
        """
        items = self.items_for(comparison_type)
        item_map = {name: i for i, name in enumerate(items)}
        indexed: Dict[Tuple[int, int], Any] = {}
        for (item1, item2), value in named_judgments.items():
            try:
                i, j = item_map[item1], item_map[item2]
            except KeyError as e:
                raise ValueError(f"Item '{e.args[0]}' in judgments not found in the list of items.") from e
            if i == j:
                raise ValueError(f"Judgment '{item1}' vs '{item2}' compares an item with itself.")
            if i > j:
                number = _coerce_judgment(value)
                if number is None:
                    raise ValueError(f"Reversed judgment '{item1}' vs '{item2}' must be a positive number, got {value!r}.")
                i, j, value = j, i, 1.0 / number
            if (i, j) in indexed:
                raise ValueError(f"Judgment '{item1}' vs '{item2}' was given more than once.")
            indexed[(i, j)] = value
        return indexed

    def to_dict(self) -> Dict[str, Any]:
        """Serializes the problem to a JSON-compatible dictionary."""
        return {
            "goal": self.goal,
            "criteria": list(self.criteria),
            "alternatives": list(self.alternatives),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DecisionProblem':
        if "criteria" not in data or "alternatives" not in data:
            raise ValueError("Problem definition must contain 'criteria' and 'alternatives' keys.")
        return cls(data["criteria"], data["alternatives"], goal=data.get("goal"))

    @classmethod
    def from_json(cls, json_string: str) -> 'DecisionProblem':
        """Constructs a problem from a JSON string with 'criteria' and 'alternatives' lists."""
        return cls.from_dict(json.loads(json_string))


class ExpertPanel:
    """
    An in-memory collection of evaluated experts for one DecisionProblem.

    Each submission is evaluated once and stored as an immutable
    ExpertEvaluation. Group results are never stored: `aggregate` recomputes
    them from a snapshot of the current evaluations, so deleting an expert
    removes every trace of their judgments from later results.

    The panel may be shared between threads.
    """
    def __init__(self, problem: DecisionProblem, cr_threshold: float | None = None, missing_policy: str | None = None):
        self.problem = problem
        self.cr_threshold = cr_threshold
        self.missing_policy = missing_policy
        self._evaluations: Dict[str, ExpertEvaluation] = {}
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"ExpertPanel(problem={self.problem!r}, experts={len(self)})"

    def __len__(self) -> int:
        with self._lock:
            return len(self._evaluations)

    def __contains__(self, expert_id: object) -> bool:
        with self._lock:
            return expert_id in self._evaluations

    def __iter__(self) -> Iterator[ExpertEvaluation]:
        return iter(self.evaluations())

    def submit(self, judgment_set: ExpertJudgmentSet) -> ExpertEvaluation:
        """
        Evaluates and stores one expert's submission.

        A judgment set without ``expert_id`` is given a fresh one, and a
        submission time when it has none.

        Raises:
            ValueError: If the judgments are invalid for the problem or an
                        expert with the same id is already in the panel.
        """
        if judgment_set.expert_id is None:
            judgment_set = judgment_set.with_identity(
                expert_id=uuid.uuid4().hex,
                submitted_at=judgment_set.submitted_at or datetime.now(timezone.utc)
            )

        evaluation = evaluate_expert(
            self.problem, judgment_set,
            threshold=self.cr_threshold,
            missing_policy=self.missing_policy
        )

        with self._lock:
            if evaluation.expert_id in self._evaluations:
                raise ValueError(f"Expert '{evaluation.expert_id}' has already submitted judgments.")
            self._evaluations[evaluation.expert_id] = evaluation
        return evaluation

    def delete(self, expert_id: str) -> ExpertEvaluation:
        """Removes an expert and returns their evaluation. Raises KeyError for unknown ids."""
        with self._lock:
            try:
                return self._evaluations.pop(expert_id)
            except KeyError:
                raise KeyError(f"Expert '{expert_id}' not found in the panel.") from None

    def get(self, expert_id: str) -> ExpertEvaluation:
        with self._lock:
            try:
                return self._evaluations[expert_id]
            except KeyError:
                raise KeyError(f"Expert '{expert_id}' not found in the panel.") from None

    def evaluations(self) -> List[ExpertEvaluation]:
        """Returns a snapshot of the stored evaluations in submission order."""
        with self._lock:
            return list(self._evaluations.values())

    def acceptance_counts(self, threshold: float | None = None) -> Mapping[str, Dict[str, int]]:
        """Accepted and needs-review experts per comparison type."""
        final_threshold = threshold if threshold is not None else self.cr_threshold
        return acceptance_counts(self.evaluations(), self.problem.comparison_types, final_threshold)

    def aggregate(self, threshold: float | None = None) -> AggregateResult:
        """
        Computes the group decision from the experts currently in the panel.

        Args:
            threshold: CR threshold to re-decide acceptance with. Defaults to
                       the panel's own threshold; when both are None, the
                       acceptance stored with each evaluation is used.
        """
        final_threshold = threshold if threshold is not None else self.cr_threshold
        return aggregate_experts(self.evaluations(), self.problem, final_threshold)

    def summary_table(self) -> 'pd.DataFrame':
        """Every expert and comparison type with its CR and review status."""
        from .report import panel_summary
        return panel_summary(self.evaluations())

    def report_tables(self, expert_id: str | None = None, threshold: float | None = None) -> List[Tuple[str, 'pd.DataFrame']]:
        """
        Builds the titled report tables.

        Args:
            expert_id (optional): Report on this expert only. When None, the
                                  group report of the current panel is built.
            threshold (optional): CR threshold for the group report, as in `aggregate`.

        Raises:
            KeyError: For an unknown expert id.
            ValueError: For a group report of an empty panel.
        """
        from .report import expert_report_tables, group_report_tables
        if expert_id is not None:
            return expert_report_tables(self.get(expert_id))
        return group_report_tables(self.aggregate(threshold))

    def export_report(self, path: str | os.PathLike, expert_id: str | None = None, threshold: float | None = None) -> None:
        """Writes `report_tables` into one CSV file at `path`."""
        from .report import export_report
        export_report(self.report_tables(expert_id, threshold), path)
