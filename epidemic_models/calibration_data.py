"""Observed incidence data used to calibrate the age-structured models."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from epidemic_models.parameters import NUM_COMPARTMENTS_SEPAIHRD

logger = logging.getLogger(__name__)

_AGE_GROUPS = ("0_30", "30_60", "60_80", "80_plus")
_DEFAULT_NUM_AGE_CLASSES = len(_AGE_GROUPS)
_TINY = 1e-9

_NUMBER_PREFIX = re.compile(
    r"-?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan(?:\([A-Za-z0-9_]*\))?)",
    re.IGNORECASE,
)

# Matrix attribute -> column prefix in the CSV file.
_CSV_COLUMNS = {
    "new_confirmed_cases": "new_confirmed",
    "new_deaths": "new_deceased",
    "new_hospitalizations": "new_hospitalized_patients",
    "new_icu": "new_intensive_care_patients",
    "cumulative_confirmed_cases": "cumulative_confirmed",
    "cumulative_deaths": "cumulative_deceased",
    "cumulative_hospitalizations": "cumulative_hospitalized_patients",
    "cumulative_icu": "cumulative_intensive_care_patients",
}
_POPULATION_PREFIX = "population"


def _empty_matrix() -> np.ndarray:
    return np.zeros((0, _DEFAULT_NUM_AGE_CLASSES))


def _parse_value(text: str) -> float:
    """Parse the leading number of ``text``; raise RuntimeError if there is none."""
    match = _NUMBER_PREFIX.match(text)
    if match is None:
        raise RuntimeError(f"Failed to parse value: {text}")
    token = match.group(0)
    lowered = token.lower().lstrip("-")
    if lowered.startswith("nan"):
        return -math.nan if token.startswith("-") else math.nan
    value = float(token)
    if not lowered.startswith("inf"):
        mantissa = re.split("[eE]", token)[0]
        underflow = value == 0.0 and any(c in "123456789" for c in mantissa)
        if math.isinf(value) or underflow:
            raise RuntimeError(f"Failed to parse value: {text}")
    return value


def _split_csv(line: str) -> list[str]:
    cells = line.split(",")
    if cells[-1] == "":
        cells.pop()
    return cells


def _cumulative(new_cases: np.ndarray, initial_row: np.ndarray, n_rows: int,
                num_age_classes: int) -> np.ndarray:
    """Build cumulative counts: row 0 is ``initial_row``, then add the previous day's incidence."""
    if n_rows == 0:
        return np.zeros((0, num_age_classes))
    steps = np.zeros((n_rows, num_age_classes))
    steps[0] = initial_row
    available = min(n_rows - 1, new_cases.shape[0])
    steps[1:available + 1] = new_cases[:available]
    return np.cumsum(steps, axis=0)


def _allocate_hidden(population, exposed, presymptomatic, asymptomatic, data_total):
    """Fit hidden compartments into one age group; return (S, E, P, A)."""
    sum_non_s = exposed + presymptomatic + asymptomatic + data_total
    if sum_non_s <= population:
        return max(0.0, population - sum_non_s), exposed, presymptomatic, asymptomatic
    if data_total >= population:
        return 0.0, 0.0, 0.0, 0.0
    available = population - data_total
    hidden = exposed + presymptomatic + asymptomatic
    if hidden <= available:
        return max(0.0, available - hidden), exposed, presymptomatic, asymptomatic
    if hidden > _TINY:
        scale = available / hidden
        return 0.0, exposed * scale, presymptomatic * scale, asymptomatic * scale
    return 0.0, 0.0, 0.0, 0.0


@dataclass(eq=False)
class CalibrationData:
    """Daily and cumulative age-stratified incidence with population sizes."""

    new_confirmed_cases: np.ndarray = field(default_factory=_empty_matrix)
    new_deaths: np.ndarray = field(default_factory=_empty_matrix)
    new_hospitalizations: np.ndarray = field(default_factory=_empty_matrix)
    new_icu: np.ndarray = field(default_factory=_empty_matrix)
    cumulative_confirmed_cases: np.ndarray = field(default_factory=_empty_matrix)
    cumulative_deaths: np.ndarray = field(default_factory=_empty_matrix)
    cumulative_hospitalizations: np.ndarray = field(default_factory=_empty_matrix)
    cumulative_icu: np.ndarray = field(default_factory=_empty_matrix)
    population_by_age: np.ndarray = field(
        default_factory=lambda: np.zeros(_DEFAULT_NUM_AGE_CLASSES)
    )
    dates: list[str] = field(default_factory=list)
    n_data_points: int = 0
    num_age_classes: int = _DEFAULT_NUM_AGE_CLASSES

    @classmethod
    def from_csv(cls, filename, start_date: str = "", end_date: str = "") -> "CalibrationData":
        """Load data from a CSV file, keeping rows whose date lies in the given range.

        Dates are compared as strings; an empty bound is open. The population is
        taken from the first row kept.
        """
        try:
            return cls._read_csv(filename, start_date, end_date)
        except _CSVFailure as failure:
            logger.error("%s", failure)
            raise RuntimeError(
                f"Failed to initialize CalibrationData from file: {filename}"
            ) from None

    @classmethod
    def _read_csv(cls, filename, start_date: str, end_date: str) -> "CalibrationData":
        try:
            text = Path(filename).read_text(encoding="utf-8")
        except OSError:
            raise _CSVFailure(f"Unable to open file {filename}") from None

        lines = text.split("\n")
        if lines[-1] == "":
            lines.pop()
        if not lines:
            raise _CSVFailure("Empty file or unable to read header.")

        column_indices = {name: idx for idx, name in enumerate(_split_csv(lines[0]))}

        def index_of(name: str) -> int:
            if name not in column_indices:
                raise RuntimeError(f"Missing required column: {name}")
            return column_indices[name]

        date_idx = index_of("date")
        matrix_columns = {
            attr: [index_of(f"{prefix}_{group}") for group in _AGE_GROUPS]
            for attr, prefix in _CSV_COLUMNS.items()
        }
        population_columns = [index_of(f"{_POPULATION_PREFIX}_{g}") for g in _AGE_GROUPS]
        required = 1 + max(
            [date_idx, *population_columns,
             *(idx for indices in matrix_columns.values() for idx in indices)]
        )

        def date_of(line: str) -> str:
            cells = line.split(",")
            return cells[date_idx] if date_idx < len(cells) else ""

        selected = [
            line for line in lines[1:]
            if line and cls.is_date_in_range(date_of(line), start_date, end_date)
        ]
        if not selected:
            raise _CSVFailure("No data points found in specified date range.")

        num_age_classes = _DEFAULT_NUM_AGE_CLASSES
        matrices = {attr: np.zeros((len(selected), num_age_classes)) for attr in matrix_columns}
        population = None
        dates = []
        for row_idx, line in enumerate(selected):
            row = _split_csv(line)
            if len(row) < required:
                raise _CSVFailure(f"Insufficient columns in data row {row_idx}")
            dates.append(row[date_idx])
            for attr, indices in matrix_columns.items():
                matrices[attr][row_idx] = [_parse_value(row[i]) for i in indices]
            if population is None:
                population = np.array([_parse_value(row[i]) for i in population_columns])

        return cls(
            population_by_age=population,
            dates=dates,
            n_data_points=len(selected),
            num_age_classes=num_age_classes,
            **matrices,
        )

    @classmethod
    def from_arrays(cls, new_confirmed_cases, new_hospitalizations, new_icu, new_deaths,
                    population_by_age, initial_cumulative_confirmed, initial_cumulative_deaths,
                    initial_cumulative_hospitalizations, initial_cumulative_icu,
                    num_age_classes) -> "CalibrationData":
        """Build data from incidence matrices and the cumulative counts on the first day.

        Cumulative counts on day ``t`` are those of day ``t - 1`` plus that
        day's incidence. Dates are named ``mock_date_<i>``.
        """
        if num_age_classes <= 0:
            raise ValueError("Number of age classes must be positive.")
        confirmed = np.atleast_2d(np.asarray(new_confirmed_cases, dtype=float))
        hospital = np.atleast_2d(np.asarray(new_hospitalizations, dtype=float))
        icu = np.atleast_2d(np.asarray(new_icu, dtype=float))
        deaths = np.atleast_2d(np.asarray(new_deaths, dtype=float))
        population = np.asarray(population_by_age, dtype=float)
        initial = [
            np.asarray(v, dtype=float)
            for v in (initial_cumulative_confirmed, initial_cumulative_deaths,
                      initial_cumulative_hospitalizations, initial_cumulative_icu)
        ]
        if population.shape != (num_age_classes,):
            raise ValueError("Population vector size mismatch with num_age_classes.")
        if any(m.shape[1] != num_age_classes for m in (confirmed, hospital, icu, deaths)):
            raise ValueError("Incidence data matrix column count mismatch with num_age_classes.")
        if any(v.shape != (num_age_classes,) for v in initial):
            raise ValueError(
                "Initial cumulative data vector size mismatch with num_age_classes."
            )

        n = confirmed.shape[0]
        return cls(
            new_confirmed_cases=confirmed,
            new_deaths=deaths,
            new_hospitalizations=hospital,
            new_icu=icu,
            cumulative_confirmed_cases=_cumulative(confirmed, initial[0], n, num_age_classes),
            cumulative_deaths=_cumulative(deaths, initial[1], n, num_age_classes),
            cumulative_hospitalizations=_cumulative(hospital, initial[2], n, num_age_classes),
            cumulative_icu=_cumulative(icu, initial[3], n, num_age_classes),
            population_by_age=population,
            dates=[f"mock_date_{i}" for i in range(n)],
            n_data_points=n,
            num_age_classes=num_age_classes,
        )

    @staticmethod
    def is_date_in_range(date: str, start_date: str, end_date: str) -> bool:
        """Return whether ``date`` lies in the inclusive range; empty bounds are open."""
        if start_date and date < start_date:
            return False
        if end_date and date > end_date:
            return False
        return True

    def get_initial_active_cases(self) -> np.ndarray:
        """Return the cumulative confirmed cases on the first day."""
        if self.cumulative_confirmed_cases.shape[0] == 0:
            raise RuntimeError(
                "Cannot get initial active cases: cumulative_confirmed_cases data is empty."
            )
        return self.cumulative_confirmed_cases[0].copy()

    def get_initial_sepaihrd_state(self, sigma_rate, gamma_p_rate, gamma_a_rate, gamma_i_rate,
                                   p_asymptomatic_fractions,
                                   h_hospitalization_rates) -> np.ndarray:
        """Estimate the initial SEPAIHRD state from the first day of data.

        The result is laid out compartment by compartment (S, E, P, A, I, H,
        ICU, R, D), each block holding one value per age class.
        """
        n = self.num_age_classes
        prefix = "Cannot get initial SEPAIHRD state: "
        if self.n_data_points == 0:
            raise RuntimeError(prefix + "No data points loaded.")
        population = np.asarray(self.population_by_age, dtype=float)
        if population.shape != (n,):
            raise RuntimeError(prefix + "Population data size mismatch with num_age_classes.")
        p = np.asarray(p_asymptomatic_fractions, dtype=float)
        h = np.asarray(h_hospitalization_rates, dtype=float)
        if p.shape != (n,) or h.shape != (n,):
            raise RuntimeError(
                prefix + "p_asymptomatic_fractions or h_hospitalization_rates size mismatch "
                "with num_age_classes."
            )
        if any(m.shape[0] == 0 for m in (self.cumulative_deaths, self.cumulative_icu,
                                         self.cumulative_hospitalizations,
                                         self.new_confirmed_cases)):
            raise RuntimeError(
                prefix + "Required data matrices (D0, ICU0, H0, I0 proxies) are empty."
            )

        deaths = np.maximum(self.cumulative_deaths[0], 0.0)
        icu = np.maximum(self.cumulative_icu[0], 0.0)
        hospital = np.maximum(self.cumulative_hospitalizations[0], 0.0)
        infected = np.maximum(self.cumulative_confirmed_cases[0] + hospital + icu, 0.0)
        recovered = np.zeros(n)

        p = np.clip(p, 0.0, 1.0)
        one_minus_p = np.maximum(_TINY, 1.0 - p)
        if min(sigma_rate, gamma_p_rate, gamma_a_rate, gamma_i_rate) > _TINY:
            presymptomatic = infected * (gamma_i_rate + h) / (one_minus_p * gamma_p_rate)
            exposed = presymptomatic * gamma_p_rate / sigma_rate
            asymptomatic = presymptomatic * p * gamma_p_rate / gamma_a_rate
        else:
            logger.warning(
                "Initializing E0, P0, A0 with fallback due to non-positive rates for all age groups"
            )
            presymptomatic = infected.copy()
            exposed = infected * 1.5
            asymptomatic = infected * (p / one_minus_p)
        exposed = np.maximum(0.0, exposed)
        presymptomatic = np.maximum(0.0, presymptomatic)
        asymptomatic = np.maximum(0.0, asymptomatic)

        deaths = np.minimum(deaths, population)
        icu = np.minimum(icu, np.maximum(0.0, population - deaths))
        hospital = np.minimum(hospital, np.maximum(0.0, population - deaths - icu))
        infected = np.minimum(infected, np.maximum(0.0, population - deaths - icu - hospital))
        data_total = infected + hospital + icu + recovered + deaths

        allocated = np.array([
            _allocate_hidden(*group)
            for group in zip(population, exposed, presymptomatic, asymptomatic, data_total)
        ]).reshape(n, 4)
        susceptible, exposed, presymptomatic, asymptomatic = allocated.T

        blocks = (susceptible, exposed, presymptomatic, asymptomatic, infected, hospital, icu,
                  recovered, deaths)
        state = np.concatenate(blocks)
        totals = state.reshape(NUM_COMPARTMENTS_SEPAIHRD, n).sum(axis=0)
        for age, (total, size) in enumerate(zip(totals, population)):
            if abs(total - size) > max(_TINY, 1e-6 * size):
                logger.warning(
                    "Initial state sum for age group %d (%.2f) does not precisely match "
                    "population N(%d) = %.2f. Discrepancy: %e",
                    age, total, age, size, total - size,
                )
        return state


class _CSVFailure(Exception):
    """A reason the CSV file could not be loaded."""