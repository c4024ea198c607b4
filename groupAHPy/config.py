from __future__ import annotations
from types import MappingProxyType
from typing import Tuple, Mapping


# Saaty's Random Consistency Index (RI) values.
# Source: Saaty, T. L. (1980), as tabulated in most AHP textbooks.
RANDOM_INDEX: Mapping[int | str, float] = MappingProxyType({
    1: 0.00, 2: 0.00, 3: 0.58, 4: 0.90, 5: 1.12, 6: 1.24, 7: 1.32,
    8: 1.41, 9: 1.45, 10: 1.49,
    'default': 1.59  # n > 10
})

# The nine-step verbal judgment scale offered to experts.
SAATY_SCALE: Tuple[Tuple[float, str], ...] = (
    (9.0, "9 - Extremely More Important"),
    (7.0, "7 - Very Strongly More Important"),
    (5.0, "5 - Strongly More Important"),
    (3.0, "3 - Moderately More Important"),
    (1.0, "1 - Equally Important"),
    (1 / 3, "1/3 - Moderately Less Important"),
    (1 / 5, "1/5 - Strongly Less Important"),
    (1 / 7, "1/7 - Very Strongly Less Important"),
    (1 / 9, "1/9 - Extremely Less Important"),
)


class Configuration:
    """
    A singleton-like class to hold all configurable parameters for the groupAHPy library.

    Users can modify these attributes directly, or temporarily through
    `ConfigurationContextManager`, to customize consistency checks and the
    handling of incomplete judgments.

    Example:
    >>> from groupAHPy.config import configure_parameters
    >>> # A stricter acceptance threshold for a pilot study
    >>> configure_parameters.DEFAULT_SAATY_CR_THRESHOLD = 0.05
    >>> # Refuse incomplete judgment sets instead of filling them with 1
    >>> configure_parameters.MISSING_JUDGMENT_POLICY = "reject"
    """

    def __init__(self):
        self.reset_to_defaults()

    def reset_to_defaults(self):
        """Resets all configuration parameters to their original default values."""

        # --- Consistency Parameters (from consistency.py) ---

        self.SAATY_RI_VALUES: Mapping[int | str, float] = RANDOM_INDEX

        # Judgments with CR <= threshold are accepted
        self.DEFAULT_SAATY_CR_THRESHOLD: float = 0.10

        # --- Matrix Construction (from matrix_builder.py) ---

        # Name of a registered missing-judgment policy
        self.MISSING_JUDGMENT_POLICY: str = "default_to_one"

        # Value used for "equally important"
        self.DEFAULT_JUDGMENT_VALUE: float = 1.0

        self.SAATY_SCALE: Tuple[Tuple[float, str], ...] = SAATY_SCALE

        # --- General Numerical Parameters ---

        # Small tolerance value for float comparisons, reciprocity checks, etc.
        self.FLOAT_TOLERANCE: float = 1e-9

        # Allowed gap between the column-normalization breakdown and the
        # geometric-mean priorities before the breakdown is flagged
        self.BREAKDOWN_TOLERANCE: float = 1e-2


configure_parameters = Configuration()



class ConfigurationContextManager:
    """
    A context manager to temporarily change configuration parameters.

    Usage:
    >>> with ConfigurationContextManager(DEFAULT_SAATY_CR_THRESHOLD=0.05):
    >>>     # Code block runs with CR threshold set to 0.05
    >>>     ...
    >>> # CR threshold reverts to its original value outside the block
    """
    def __init__(self, **kwargs):
        self.changes = kwargs
        self.original_values = {}

    def __enter__(self):
        for key, value in self.changes.items():
            if not hasattr(configure_parameters, key):
                raise AttributeError(f"Configuration object has no attribute '{key}'")
            self.original_values[key] = getattr(configure_parameters, key)
            setattr(configure_parameters, key, value)
        return configure_parameters

    def __exit__(self, exc_type, exc_val, exc_tb):
        for key, value in self.original_values.items():
            setattr(configure_parameters, key, value)
