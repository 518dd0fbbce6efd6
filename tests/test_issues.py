from data_profiling.issues import (
    CONSTANT_VALUE,
    HIGH_CARDINALITY,
    HIGH_MISSINGNESS,
    IDENTIFIER_MISSING,
    MODERATE_MISSINGNESS,
    generate_issues,
)
from data_profiling.missingness import profile_missingness
from data_profiling.records import CRITICAL, INFO, WARNING


def _missing(pct_missing, total=100):
    """Missingness result with ``pct_missing`` percent NA values."""
    n_missing = int(round(total * pct_missing / 100))
    values = [None] * n_missing + [str(i) for i in range(total - n_missing)]
    return profile_missingness(values)


def _types(issues):
    return [i.issue_type for i in issues]


def test_identifier_missing_is_critical_and_exclusive(config):
    m = _missing(25)
    issues = generate_issues("MEDRECNO", "patients", m, "identifier", 75, 100, config)

    assert _types(issues) == [IDENTIFIER_MISSING]
    assert issues[0].severity == CRITICAL
    assert issues[0].value == 25.0
    assert issues[0].table_name == "patients"
    assert "MEDRECNO" in issues[0].description
    assert HIGH_MISSINGNESS not in _types(issues)


def test_complete_identifier_has_no_issue(config):
    m = _missing(0)
    assert generate_issues("MEDRECNO", "patients", m, "identifier", 100, 100, config) == []


def test_high_missingness_warning(config):
    m = _missing(30, total=10)
    issues = generate_issues("age", "patients", m, "numeric", 7, 10, config)
    assert _types(issues) == [HIGH_MISSINGNESS]
    assert issues[0].severity == WARNING
    assert "threshold: 20%" in issues[0].description


def test_moderate_missingness_info(config):
    m = _missing(15)
    issues = generate_issues("bmi", "vitals", m, "numeric", 40, 100, config)
    assert _types(issues) == [MODERATE_MISSINGNESS]
    assert issues[0].severity == INFO


def test_thresholds_are_exclusive_bounds(config):
    # Exactly 20% is moderate, exactly 10% is nothing.
    assert _types(generate_issues("x", "t", _missing(20), "numeric", 40, 100, config)) == [
        MODERATE_MISSINGNESS
    ]
    assert generate_issues("x", "t", _missing(10), "numeric", 40, 100, config) == []


def test_constant_value(config):
    m = profile_missingness(["A"] * 10)
    issues = generate_issues("site", "vitals", m, "categorical", 1, 10, config)
    assert _types(issues) == [CONSTANT_VALUE]
    assert issues[0].value == 1


def test_constant_needs_rows(config):
    m = profile_missingness([])
    assert generate_issues("site", "vitals", m, "categorical", 1, 0, config) == []


def test_high_cardinality_on_large_table(config):
    m = _missing(0)
    issues = generate_issues("comments", "notes", m, "categorical", 95, 100, config)
    assert _types(issues) == [HIGH_CARDINALITY]
    assert issues[0].value == 95.0
    assert issues[0].severity == INFO


def test_high_cardinality_not_on_small_table(config):
    m = _missing(0, total=10)
    assert generate_issues("comments", "notes", m, "categorical", 10, 10, config) == []


def test_identifiers_are_never_high_cardinality(config):
    m = _missing(0)
    assert generate_issues("visit_id", "notes", m, "identifier", 100, 100, config) == []


def test_several_rules_can_fire_together(config):
    m = _missing(50)
    issues = generate_issues("flag", "t", m, "categorical", 1, 100, config)
    assert _types(issues) == [HIGH_MISSINGNESS, CONSTANT_VALUE]
