import pytest

from groupAHPy.config import configure_parameters
from groupAHPy.model import DecisionProblem
from groupAHPy.types import ExpertJudgmentSet

CRITERIA_NAMES = ["Coding_Hours", "Study_Hours", "Attendance"]
ALTERNATIVE_NAMES = ["AI", "CS", "SE"]

# Perfectly consistent: 0 and 1 equally important, both 3x more than 2
CONSISTENT_JUDGMENTS = {"0-1": 1, "0-2": 3, "1-2": 3}

# Every item 3x more important than the next one: CR ~ 0.117
INCONSISTENT_JUDGMENTS = {"0-1": 3, "0-2": 3, "1-2": 3}


@pytest.fixture(autouse=True)
def reset_configuration():
    """Every test starts from and leaves the default configuration."""
    configure_parameters.reset_to_defaults()
    yield
    configure_parameters.reset_to_defaults()


@pytest.fixture
def student_problem() -> DecisionProblem:
    """Which study track fits a student best, judged on three habits."""
    return DecisionProblem(CRITERIA_NAMES, ALTERNATIVE_NAMES, goal="Choose a study track")


@pytest.fixture
def consistent_expert() -> ExpertJudgmentSet:
    """An expert whose every comparison is perfectly consistent."""
    return ExpertJudgmentSet(
        expert_name="Dana Expert",
        expert_email="dana@example.org",
        criteria_judgments=CONSISTENT_JUDGMENTS,
        alternative_judgments={
            "Coding_Hours": {"0-1": 2, "0-2": 4, "1-2": 2},
            "Study_Hours": {},
            "Attendance": {"0-1": 0.5, "0-2": 1, "1-2": 2},
        },
    )


@pytest.fixture
def inconsistent_criteria_expert() -> ExpertJudgmentSet:
    """An expert rejected for the criteria comparison only."""
    return ExpertJudgmentSet(
        expert_name="Robin Reviewer",
        criteria_judgments=INCONSISTENT_JUDGMENTS,
        alternative_judgments={name: {} for name in CRITERIA_NAMES},
    )


@pytest.fixture
def fully_inconsistent_expert() -> ExpertJudgmentSet:
    """An expert rejected for every comparison type."""
    return ExpertJudgmentSet(
        expert_name="Sam Sloppy",
        criteria_judgments=INCONSISTENT_JUDGMENTS,
        alternative_judgments={name: INCONSISTENT_JUDGMENTS for name in CRITERIA_NAMES},
    )
