"""
===================================================================
Tests for the Evaluation Pipeline
===================================================================

End-to-end evaluation of single comparisons and of one expert's full
submission: matrix, priorities, consistency and individual ranking.
"""

import pytest
import numpy as np

from groupAHPy.pipeline import evaluate_comparison, evaluate_expert
from groupAHPy.types import ExpertJudgmentSet, MissingJudgmentWarning


def test_evaluate_comparison(student_problem):
    result = evaluate_comparison({"0-1": 3, "0-2": 3, "1-2": 3}, student_problem.criteria, "criteria")

    assert result.comparison_type == "criteria"
    assert result.items == ("Coding_Hours", "Study_Hours", "Attendance")
    assert result.matrix[2, 0] == pytest.approx(1 / 3)
    assert result.priorities.sum() == pytest.approx(1.0)
    assert result.consistency.cr == pytest.approx(0.116906, abs=1e-6)
    assert result.accepted is False
    assert result.priority_of("Coding_Hours") == pytest.approx(0.5841564, abs=1e-6)


def test_evaluation_arrays_are_read_only(student_problem):
    result = evaluate_comparison({"0-1": 2}, student_problem.alternatives, "Attendance")
    with pytest.raises(ValueError):
        result.matrix[0, 1] = 9.0
    with pytest.raises(ValueError):
        result.priorities[0] = 1.0


def test_repeated_evaluation_is_bit_identical(student_problem):
    judgments = {"0-1": 5, "0-2": 1 / 3, "1-2": 7}
    first = evaluate_comparison(judgments, student_problem.criteria, "criteria")
    second = evaluate_comparison(judgments, student_problem.criteria, "criteria")

    assert np.array_equal(first.matrix, second.matrix)
    assert np.array_equal(first.priorities, second.priorities)
    assert first.consistency == second.consistency


def test_evaluate_expert(student_problem, consistent_expert):
    evaluation = evaluate_expert(student_problem, consistent_expert)

    assert set(evaluation.results) == set(student_problem.comparison_types)
    assert evaluation.is_fully_consistent
    assert evaluation.result_for("criteria").priorities == pytest.approx([3 / 7, 3 / 7, 1 / 7])
    assert evaluation.result_for("Coding_Hours").priorities == pytest.approx([4 / 7, 2 / 7, 1 / 7])
    assert evaluation.result_for("Study_Hours").priorities == pytest.approx([1 / 3, 1 / 3, 1 / 3])
    assert evaluation.result_for("Attendance").priorities == pytest.approx([0.25, 0.5, 0.25])

    assert evaluation.final_scores["AI"] == pytest.approx(0.423469, abs=1e-6)
    assert evaluation.final_scores["CS"] == pytest.approx(0.336735, abs=1e-6)
    assert evaluation.final_scores["SE"] == pytest.approx(0.239796, abs=1e-6)
    assert [r.name for r in evaluation.ranking] == ["AI", "CS", "SE"]


def test_partially_inconsistent_expert(student_problem, inconsistent_criteria_expert):
    evaluation = evaluate_expert(student_problem, inconsistent_criteria_expert)

    assert evaluation.result_for("criteria").accepted is False
    assert evaluation.result_for("Attendance").accepted is True
    assert evaluation.is_fully_consistent is False
    # The individual ranking is still produced for review
    assert len(evaluation.ranking) == 3


def test_missing_comparison_type_raises(student_problem):
    judgment_set = ExpertJudgmentSet(
        expert_name="Kim",
        criteria_judgments={},
        alternative_judgments={"Coding_Hours": {}, "Study_Hours": {}},
    )
    with pytest.raises(ValueError, match="Attendance"):
        evaluate_expert(student_problem, judgment_set)


def test_unknown_criterion_raises(student_problem):
    judgment_set = ExpertJudgmentSet(
        expert_name="Kim",
        criteria_judgments={},
        alternative_judgments={"Coding_Hours": {}, "Study_Hours": {}, "Attendance": {}, "Sleep": {}},
    )
    with pytest.raises(ValueError, match="Sleep"):
        evaluate_expert(student_problem, judgment_set)


def test_policy_and_threshold_are_passed_through(student_problem):
    judgment_set = ExpertJudgmentSet(
        expert_name="Kim",
        criteria_judgments={"0-1": 3, "0-2": 3, "1-2": 3},
        alternative_judgments={"Coding_Hours": {"0-1": None}, "Study_Hours": {}, "Attendance": {}},
    )
    with pytest.warns(MissingJudgmentWarning):
        lenient = evaluate_expert(student_problem, judgment_set, threshold=0.2)
    assert lenient.result_for("criteria").accepted is True

    with pytest.raises(ValueError, match="incomplete"):
        evaluate_expert(student_problem, judgment_set, missing_policy="reject")


def test_evaluation_to_dict(student_problem, consistent_expert):
    data = evaluate_expert(student_problem, consistent_expert).to_dict()

    assert data["expert_name"] == "Dana Expert"
    assert data["criteria_judgments"] == {"0-1": 1, "0-2": 3, "1-2": 3}
    assert isinstance(data["results"]["criteria"]["matrix"], list)
    assert data["ranking"][0]["name"] == "AI"
    assert data["ranking"][0]["rank"] == 1
