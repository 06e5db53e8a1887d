"""Parameter container and constants for the age-structured SEPAIHRD model."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

DEFAULT_NUM_AGE_CLASSES = 4
NUMERICAL_EPSILON = 1e-9
MIN_POPULATION_FOR_DIVISION = 1e-9

DEFAULT_NPI_LOWER_BOUND = 0.1
DEFAULT_NPI_UPPER_BOUND = 1.5
DEFAULT_BASELINE_PERIOD_END_TIME = 13.0
DEFAULT_BASELINE_KAPPA = 1.0

NUM_COMPARTMENTS_SEPAIHRD = 9


def _empty_vector() -> np.ndarray:
    return np.zeros(0)


def _empty_matrix() -> np.ndarray:
    return np.zeros((0, 0))


@dataclass(eq=False)
class SEPAIHRDParameters:
    """Parameters of the age-structured SEPAIHRD compartmental model."""

    N: np.ndarray = field(default_factory=_empty_vector)
    M_baseline: np.ndarray = field(default_factory=_empty_matrix)
    contact_matrix_scaling_factor: float = 1.0
    beta: float = 0.0
    theta: float = 0.0
    sigma: float = 0.0
    gamma_p: float = 0.0
    gamma_A: float = 0.0
    gamma_I: float = 0.0
    gamma_H: float = 0.0
    gamma_ICU: float = 0.0
    p: np.ndarray = field(default_factory=_empty_vector)
    h: np.ndarray = field(default_factory=_empty_vector)
    icu: np.ndarray = field(default_factory=_empty_vector)
    d_H: np.ndarray = field(default_factory=_empty_vector)
    d_ICU: np.ndarray = field(default_factory=_empty_vector)
    kappa_end_times: list[float] = field(default_factory=list)
    kappa_values: list[float] = field(default_factory=list)

    @classmethod
    def zeros(cls, num_age_classes: int) -> "SEPAIHRDParameters":
        """Return parameters with zero-filled vectors and matrix of the given size."""
        n = num_age_classes
        return cls(
            N=np.zeros(n),
            M_baseline=np.zeros((n, n)),
            p=np.zeros(n),
            h=np.zeros(n),
            icu=np.zeros(n),
            d_H=np.zeros(n),
            d_ICU=np.zeros(n),
        )

    def validate(self) -> bool:
        """Check that every vector and the contact matrix match the population size."""
        if np.ndim(self.N) != 1:
            return False
        n = np.size(self.N)
        if n <= 0:
            return False
        vectors_ok = all(
            np.shape(vector) == (n,)
            for vector in (self.p, self.h, self.icu, self.d_H, self.d_ICU)
        )
        matrix_ok = np.shape(self.M_baseline) == (n, n)
        return vectors_ok and matrix_ok