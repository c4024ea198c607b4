"""
===================================================================
Tests for the Record Types
===================================================================
"""

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest
import numpy as np

from groupAHPy.types import (
    AggregateResult, ComparisonResult, ConsistencyReport, ExpertJudgmentSet,
    RankedAlternative, format_judgment_key, parse_judgment_key
)


@pytest.mark.parametrize("key, expected", [
    ((0, 1), (0, 1)),
    ([1, 2], (1, 2)),
    ("0-2", (0, 2)),
    (" 3-4 ", (3, 4)),
    ((np.int64(1), np.int64(3)), (1, 3)),
])
def test_parse_judgment_key(key, expected):
    assert parse_judgment_key(key) == expected


@pytest.mark.parametrize("key", ["0", "0-1-2", "x-1", (0,), (True, 1), 5, None])
def test_parse_invalid_judgment_key(key):
    with pytest.raises(ValueError):
        parse_judgment_key(key)


def test_format_judgment_key():
    assert format_judgment_key((1, 2)) == "1-2"
    assert format_judgment_key("0-3") == "0-3"


@pytest.mark.parametrize("name", ["", "   ", None])
def test_expert_name_is_required(name):
    with pytest.raises(ValueError, match="Expert name is required"):
        ExpertJudgmentSet(expert_name=name, criteria_judgments={}, alternative_judgments={})


def test_judgment_set_is_immutable():
    source = {"0-1": 3}
    judgment_set = ExpertJudgmentSet(
        expert_name="  Lee  ",
        criteria_judgments=source,
        alternative_judgments={"C1": {"0-1": 2}},
    )
    source["0-1"] = 9

    assert judgment_set.expert_name == "Lee"
    assert judgment_set.criteria_judgments["0-1"] == 3
    with pytest.raises(TypeError):
        judgment_set.criteria_judgments["0-1"] = 5
    with pytest.raises(TypeError):
        judgment_set.alternative_judgments["C1"]["0-1"] = 5
    with pytest.raises(FrozenInstanceError):
        judgment_set.expert_name = "Other"


def test_judgment_set_rejects_non_mappings():
    with pytest.raises(TypeError):
        ExpertJudgmentSet(expert_name="Lee", criteria_judgments=[3, 3, 3], alternative_judgments={})
    with pytest.raises(TypeError):
        ExpertJudgmentSet(expert_name="Lee", criteria_judgments={}, alternative_judgments={"C1": [3]})


def test_judgment_set_dict_round_trip():
    original = ExpertJudgmentSet(
        expert_name="Lee",
        expert_email="lee@example.org",
        expert_id="abc",
        submitted_at=datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
        criteria_judgments={(0, 1): 3, (1, 2): 0.5},
        alternative_judgments={"C1": {"0-1": 2}},
    )
    data = original.to_dict()
    assert data["criteria_judgments"] == {"0-1": 3, "1-2": 0.5}
    assert data["submitted_at"] == "2024-05-01T12:30:00+00:00"

    restored = ExpertJudgmentSet.from_dict(data)
    assert restored.expert_id == "abc"
    assert restored.submitted_at == original.submitted_at
    assert dict(restored.alternative_judgments["C1"]) == {"0-1": 2}


def test_judgments_for_unknown_type():
    judgment_set = ExpertJudgmentSet(expert_name="Lee", criteria_judgments={}, alternative_judgments={})
    assert dict(judgment_set.judgments_for("criteria")) == {}
    with pytest.raises(ValueError, match="C1"):
        judgment_set.judgments_for("C1")


def test_comparison_result_checks_shapes():
    report = ConsistencyReport(lambda_max=2.0, ci=0.0, ri=0.0, cr=0.0, accepted=True, threshold=0.1)
    with pytest.raises(ValueError, match="2 items"):
        ComparisonResult("criteria", ("A", "B"), np.ones((3, 3)), np.full(3, 1 / 3), report)


def test_comparison_result_copies_input():
    report = ConsistencyReport(lambda_max=2.0, ci=0.0, ri=0.0, cr=0.0, accepted=True, threshold=0.1)
    matrix = np.ones((2, 2))
    result = ComparisonResult("criteria", ["A", "B"], matrix, [0.5, 0.5], report)
    matrix[0, 1] = 7.0

    assert result.matrix[0, 1] == 1.0
    assert result.items == ("A", "B")
    with pytest.raises(ValueError, match="not part of"):
        result.priority_of("C")


def test_unknown_aggregate_status_raises():
    with pytest.raises(ValueError, match="Unknown aggregate status"):
        AggregateResult(status="maybe", total_count=0, types={}, final_scores={}, ranking=())


def test_no_data_result_to_dict():
    assert AggregateResult.no_data().to_dict() == {
        "status": "no_data",
        "total_count": 0,
        "types": {},
        "final_scores": {},
        "ranking": [],
    }


def test_ranked_alternative_to_dict():
    assert RankedAlternative("AI", 0.5, 1).to_dict() == {"name": "AI", "score": 0.5, "rank": 1}
