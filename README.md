# epidemic_models

Building blocks for age-structured SEPAIHRD epidemic models (Susceptible,
Exposed, Presymptomatic, Asymptomatic, Infectious, Hospitalized, ICU,
Recovered, Deceased):

- `epidemic_models.parameters`: the `SEPAIHRDParameters` container and the
  model's constants;
- `epidemic_models.calibration_data`: `CalibrationData`, age-stratified daily
  and cumulative incidence with population sizes, loaded from CSV or built from
  arrays, from which an initial model state can be estimated;
- `epidemic_models.exceptions`: the exception hierarchy, rooted at
  `ModelException`.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Model parameters

`SEPAIHRDParameters` is a dataclass holding numpy arrays for the population
per age class (`N`), the baseline contact matrix (`M_baseline`) and the
age-specific rates (`p`, `h`, `icu`, `d_H`, `d_ICU`); the scalar rates `beta`,
`theta`, `sigma`, `gamma_p`, `gamma_A`, `gamma_I`, `gamma_H`, `gamma_ICU`;
`contact_matrix_scaling_factor` (default 1.0); and the lists
`kappa_end_times` and `kappa_values`.

```python
import numpy as np
from epidemic_models.parameters import SEPAIHRDParameters

params = SEPAIHRDParameters.zeros(4)    # zeroed vectors and a 4 x 4 matrix
params.validate()                       # True: every shape matches N

params.p = np.array([0.9, 0.7])
params.validate()                       # False: p has the wrong length
```

`validate()` returns `False` when `N` is empty or not one-dimensional, or when
any age-specific vector or the contact matrix does not match its length.

The module also defines constants such as `DEFAULT_NUM_AGE_CLASSES` (4),
`NUM_COMPARTMENTS_SEPAIHRD` (9), `DEFAULT_NPI_LOWER_BOUND` (0.1),
`DEFAULT_NPI_UPPER_BOUND` (1.5), `DEFAULT_BASELINE_PERIOD_END_TIME` (13.0) and
`DEFAULT_BASELINE_KAPPA` (1.0).

## Calibration data

### From a CSV file

```python
from epidemic_models.calibration_data import CalibrationData

data = CalibrationData.from_csv("data.csv", "2020-03-01", "2020-05-31")
data.n_data_points, data.dates[0], data.population_by_age
```

The file must have a header with a `date` column and, for each of the age
bands `0_30`, `30_60`, `60_80` and `80_plus`, the columns
`new_confirmed_<band>`, `new_deceased_<band>`,
`new_hospitalized_patients_<band>`, `new_intensive_care_patients_<band>`,
`cumulative_confirmed_<band>`, `cumulative_deceased_<band>`,
`cumulative_hospitalized_patients_<band>`,
`cumulative_intensive_care_patients_<band>` and `population_<band>`.

Rows are kept when their date lies in the inclusive range; dates are compared
as strings and an empty bound is open. The population is taken from the first
row kept. A `RuntimeError` is raised when the file cannot be opened, is empty,
has no rows in the range, has a short row, lacks a required column, or holds a
value that is not a number.

### From arrays

```python
import numpy as np
from epidemic_models.calibration_data import CalibrationData

data = CalibrationData.from_arrays(
    new_confirmed_cases=np.array([[1.0, 2.0], [3.0, 4.0]]),
    new_hospitalizations=np.zeros((2, 2)),
    new_icu=np.zeros((2, 2)),
    new_deaths=np.zeros((2, 2)),
    population_by_age=np.array([1000.0, 2000.0]),
    initial_cumulative_confirmed=np.array([10.0, 20.0]),
    initial_cumulative_deaths=np.zeros(2),
    initial_cumulative_hospitalizations=np.zeros(2),
    initial_cumulative_icu=np.zeros(2),
    num_age_classes=2,
)
data.cumulative_confirmed_cases   # [[10, 20], [11, 22]]
data.dates                        # ["mock_date_0", "mock_date_1"]
```

Cumulative counts on day `t` are those of day `t - 1` plus that day's
incidence. Shapes that do not match `num_age_classes`, or a non-positive
`num_age_classes`, raise `ValueError`.

### Initial state

```python
data.get_initial_active_cases()   # cumulative confirmed cases on the first day

state = data.get_initial_sepaihrd_state(
    sigma_rate=0.2, gamma_p_rate=0.33, gamma_a_rate=0.14, gamma_i_rate=0.14,
    p_asymptomatic_fractions=np.array([0.9, 0.5]),
    h_hospitalization_rates=np.array([0.01, 0.1]),
)
state.reshape(9, data.num_age_classes)   # rows S, E, P, A, I, H, ICU, R, D
```

The state is estimated from the first day of data: deaths, ICU and hospital
counts come from the cumulative columns, the infectious count from confirmed
cases plus hospital and ICU, and the exposed, presymptomatic and asymptomatic
compartments from the progression rates. Hidden compartments are scaled down
where they would exceed an age group's population, and the susceptible count
takes the remainder. Missing data or mismatched vector sizes raise
`RuntimeError`. Fallback estimates and population mismatches are reported as
warnings through the `epidemic_models.calibration_data` logger.

## Exceptions

All model errors derive from `ModelException`, which carries
`function_name`, `detail`, `file` and `line`. Subclasses prefix their message
with a category: `SimulationException`, `ModelConstructionException`,
`InterventionException`, `FileIOException`, `DataFormatException`,
`InvalidResultException`, plus `InvalidParameterException` and
`OutOfRangeException`. `CSVReadException` is a `DataFormatException` whose
`error_type` is a `CSVErrorType` (`FILE_OPEN_ERROR`, `NOT_ENOUGH_COLUMNS`,
`NOT_ENOUGH_ROWS`, `INVALID_NUMBER_FORMAT`). `build_error_message` formats a
message with its source location.

## What this package does not do

It does not read contact matrices or parameter files from disk, read
calibration settings (bounds, proposal sigmas, optimizer settings), or write
calibration results: parameters are built in code through
`SEPAIHRDParameters`. It also holds no ODE solver, simulator or calibration
algorithm, and it installs no command.