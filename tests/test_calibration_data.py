import numpy as np
import pytest

from epidemic_models.calibration_data import CalibrationData

GROUPS = ("0_30", "30_60", "60_80", "80_plus")
PREFIXES = (
    "new_confirmed",
    "new_deceased",
    "new_hospitalized_patients",
    "new_intensive_care_patients",
    "population",
    "cumulative_confirmed",
    "cumulative_deceased",
    "cumulative_hospitalized_patients",
    "cumulative_intensive_care_patients",
)
VALUE_COLUMNS = [f"{p}_{g}" for p in PREFIXES for g in GROUPS]
COLUMNS = VALUE_COLUMNS + ["date"]


def make_row(date, base):
    return ",".join([str(base + i) for i in range(len(VALUE_COLUMNS))] + [date])


def expected(prefix, base):
    return np.array([base + VALUE_COLUMNS.index(f"{prefix}_{g}") for g in GROUPS], dtype=float)


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "data.csv"
    lines = [
        ",".join(COLUMNS),
        make_row("2020-03-01", 100),
        "",
        make_row("2020-03-02", 200),
        make_row("2020-03-03", 300),
    ]
    path.write_text("\n".join(lines) + "\n")
    return path


def test_from_csv_reads_all_rows(csv_file):
    data = CalibrationData.from_csv(csv_file)
    assert data.n_data_points == 3
    assert data.dates == ["2020-03-01", "2020-03-02", "2020-03-03"]
    np.testing.assert_array_equal(data.new_confirmed_cases[1], expected("new_confirmed", 200))
    np.testing.assert_array_equal(data.new_deaths[2], expected("new_deceased", 300))
    np.testing.assert_array_equal(
        data.cumulative_icu[0], expected("cumulative_intensive_care_patients", 100)
    )
    np.testing.assert_array_equal(data.population_by_age, expected("population", 100))


def test_from_csv_filters_dates_and_takes_population_from_first_kept_row(csv_file):
    data = CalibrationData.from_csv(csv_file, "2020-03-02", "2020-03-03")
    assert data.dates == ["2020-03-02", "2020-03-03"]
    assert data.new_hospitalizations.shape == (2, 4)
    np.testing.assert_array_equal(data.population_by_age, expected("population", 200))


def test_from_csv_empty_range_fails(csv_file):
    with pytest.raises(RuntimeError, match="Failed to initialize"):
        CalibrationData.from_csv(csv_file, "2021-01-01", "")


def test_from_csv_missing_file(tmp_path):
    with pytest.raises(RuntimeError, match="Failed to initialize"):
        CalibrationData.from_csv(tmp_path / "absent.csv")


def test_from_csv_missing_column(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("date,new_confirmed_0_30\n2020-03-01,1\n")
    with pytest.raises(RuntimeError, match="Missing required column: new_confirmed_30_60"):
        CalibrationData.from_csv(path)


def test_from_csv_unparsable_value(tmp_path):
    path = tmp_path / "bad.csv"
    cells = make_row("2020-03-01", 1).split(",")
    cells[0] = "abc"
    path.write_text(",".join(COLUMNS) + "\n" + ",".join(cells) + "\n")
    with pytest.raises(RuntimeError, match="Failed to parse value: abc"):
        CalibrationData.from_csv(path)


def test_from_csv_short_row_fails(tmp_path):
    path = tmp_path / "short.csv"
    path.write_text(",".join(COLUMNS) + "\n" + "1,2,3\n")
    with pytest.raises(RuntimeError, match="Failed to initialize"):
        CalibrationData.from_csv(path)


def test_is_date_in_range():
    assert CalibrationData.is_date_in_range("2020-03-02", "", "")
    assert CalibrationData.is_date_in_range("2020-03-02", "2020-03-02", "2020-03-02")
    assert not CalibrationData.is_date_in_range("2020-03-01", "2020-03-02", "")
    assert not CalibrationData.is_date_in_range("2020-03-05", "", "2020-03-04")


def arrays(n_rows=3, k=2, population=(1000.0, 2000.0)):
    rng = np.random.default_rng(1)
    new = [rng.integers(0, 10, size=(n_rows, k)).astype(float) for _ in range(4)]
    initial = [rng.integers(0, 5, size=k).astype(float) for _ in range(4)]
    return new, np.array(population), initial


def build(new, population, initial, k=2):
    return CalibrationData.from_arrays(*new, population, *initial, k)


def test_from_arrays_cumulative_invariant():
    new, population, initial = arrays()
    data = build(new, population, initial)
    assert data.n_data_points == 3
    np.testing.assert_array_equal(data.cumulative_confirmed_cases[0], initial[0])
    np.testing.assert_array_equal(np.diff(data.cumulative_confirmed_cases, axis=0), new[0][:2])
    np.testing.assert_array_equal(np.diff(data.cumulative_deaths, axis=0), new[3][:2])
    np.testing.assert_array_equal(data.cumulative_hospitalizations[0], initial[2])
    assert data.dates == ["mock_date_0", "mock_date_1", "mock_date_2"]


def test_from_arrays_validation():
    new, population, initial = arrays()
    with pytest.raises(ValueError):
        CalibrationData.from_arrays(*new, population, *initial, 0)
    with pytest.raises(ValueError, match="Population"):
        build(new, np.ones(3), initial)
    with pytest.raises(ValueError, match="column count"):
        build([new[0][:, :1], *new[1:]], population, initial)
    with pytest.raises(ValueError, match="Initial cumulative"):
        build(new, population, [np.ones(3), *initial[1:]])


def test_empty_data_errors():
    k = 2
    empty = np.zeros((0, k))
    data = CalibrationData.from_arrays(empty, empty, empty, empty, np.ones(k),
                                       np.zeros(k), np.zeros(k), np.zeros(k), np.zeros(k), k)
    assert data.cumulative_confirmed_cases.shape == (0, k)
    with pytest.raises(RuntimeError):
        data.get_initial_active_cases()
    with pytest.raises(RuntimeError, match="No data points"):
        data.get_initial_sepaihrd_state(0.2, 0.3, 0.1, 0.1, np.zeros(k), np.zeros(k))


def test_initial_active_cases():
    new, population, initial = arrays()
    data = build(new, population, initial)
    np.testing.assert_array_equal(data.get_initial_active_cases(), initial[0])


def test_initial_state_conserves_population():
    new, population, initial = arrays()
    data = build(new, population, initial)
    state = data.get_initial_sepaihrd_state(0.2, 0.3, 0.1, 0.1, np.array([0.3, 0.5]),
                                            np.array([0.01, 0.05]))
    blocks = state.reshape(9, 2)
    np.testing.assert_allclose(blocks.sum(axis=0), population)
    assert np.all(state >= 0)
    np.testing.assert_array_equal(blocks[8], initial[1])
    np.testing.assert_array_equal(blocks[7], np.zeros(2))
    np.testing.assert_array_equal(blocks[6], initial[3])


def test_initial_state_fallback_rates():
    new, population, initial = arrays()
    data = build(new, population, initial)
    state = data.get_initial_sepaihrd_state(0.0, 0.3, 0.1, 0.1, np.zeros(2), np.zeros(2))
    blocks = state.reshape(9, 2)
    np.testing.assert_array_equal(blocks[2], blocks[4])
    np.testing.assert_array_equal(blocks[3], np.zeros(2))
    np.testing.assert_allclose(blocks.sum(axis=0), population)


def test_initial_state_overfull_population():
    k = 2
    new = [np.zeros((2, k)) for _ in range(4)]
    population = np.array([10.0, 10.0])
    initial = [np.array([50.0, 4.0]), np.zeros(k), np.zeros(k), np.zeros(k)]
    data = build(new, population, initial)
    state = data.get_initial_sepaihrd_state(0.2, 0.3, 0.1, 0.1, np.full(k, 0.4), np.zeros(k))
    blocks = state.reshape(9, 2)
    # first group: infected alone exceed the population
    assert blocks[4, 0] == population[0]
    assert blocks[1, 0] == blocks[2, 0] == blocks[3, 0] == blocks[0, 0] == 0.0
    # second group: hidden compartments are scaled down to fit
    assert blocks[0, 1] == 0.0
    np.testing.assert_allclose(blocks.sum(axis=0), population)


def test_initial_state_size_mismatch():
    new, population, initial = arrays()
    data = build(new, population, initial)
    with pytest.raises(RuntimeError, match="size mismatch"):
        data.get_initial_sepaihrd_state(0.2, 0.3, 0.1, 0.1, np.zeros(3), np.zeros(2))