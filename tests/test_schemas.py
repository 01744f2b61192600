from __future__ import annotations

import pytest

from stats_dashboard.api.errors import PayloadError
from stats_dashboard.api.schemas import (
    parse_bins,
    parse_categorical,
    parse_regression,
    parse_scatter_variable,
    parse_smooth_residual,
    parse_stats,
    parse_summary,
    parse_variables,
)


def test_summary_missing_variable_is_reported() -> None:
    with pytest.raises(PayloadError, match="missing 'variable' in row 0"):
        parse_summary([{"type": "continuous", "mean": 1.0}])


def test_summary_unknown_type_is_rejected() -> None:
    with pytest.raises(PayloadError, match="unknown type"):
        parse_summary([{"variable": "Age", "type": "ordinal"}])


def test_summary_categorical_requires_category() -> None:
    with pytest.raises(PayloadError, match="category"):
        parse_summary([{"variable": "Sex", "type": "categorical", "count": 3}])


def test_summary_rejects_non_numeric_stat() -> None:
    with pytest.raises(PayloadError, match="row 0.mean"):
        parse_summary([{"variable": "Age", "type": "continuous", "mean": "high"}])


def test_boolean_is_not_a_number() -> None:
    with pytest.raises(PayloadError):
        parse_scatter_variable({"Age": [{"Age": True, "pres": 0.1}]}, "Age")


@pytest.mark.parametrize(
    "payload",
    [
        {"points": [{"LVEF": 40, "pres": 0.3}]},
        {"LVEF": [{"LVEF": 40, "pres": 0.3}]},
        [{"LVEF": 40, "pres": 0.3}],
    ],
)
def test_scatter_accepts_every_response_shape(payload: object) -> None:
    parsed = parse_scatter_variable(payload, "LVEF")

    assert len(parsed) == 1
    assert parsed[0].x == 40.0
    assert parsed[0].residual == 0.3


def test_scatter_requested_variable_missing_from_payload() -> None:
    with pytest.raises(PayloadError, match="missing 'aus' in root"):
        parse_scatter_variable({"Age": []}, "aus")


def test_scatter_point_missing_residual() -> None:
    with pytest.raises(PayloadError, match="missing 'pres'"):
        parse_scatter_variable({"Age": [{"Age": 50}]}, "Age")


def test_bins_and_categorical_groups() -> None:
    bins = parse_bins({"Age": [{"bin": 1, "mean": 0.1, "se": 0.02, "points": [0.1, 0.2]}]}, ["Age"])
    cats = parse_categorical({"NYHA": [{"NYHA": "III", "mean": -0.2, "se": 0.05}]}, ["NYHA"])

    assert bins["Age"][0].bin == "1"
    assert bins["Age"][0].points == (0.1, 0.2)
    assert cats["NYHA"][0].category == "III"
    assert cats["NYHA"][0].points == ()


def test_regression_row_list_matches_column_form() -> None:
    columns = parse_regression(
        {
            "coef": {"Age": 0.02, "LVEF": -0.01},
            "CI_lower": {"Age": 0.01, "LVEF": -0.02},
            "CI_upper": {"Age": 0.03, "LVEF": 0.0},
            "p_value": {"Age": 0.0007, "LVEF": 0.06},
        }
    )
    rows = parse_regression(
        [
            {"variable": "Age", "coef": 0.02, "CI_lower": 0.01, "CI_upper": 0.03, "p_value": 0.0007},
            {"variable": "LVEF", "coef": -0.01, "CI_lower": -0.02, "CI_upper": 0.0, "p_value": 0.06},
        ]
    )

    assert columns == rows


def test_regression_column_missing_variable() -> None:
    with pytest.raises(PayloadError, match="missing 'Age' in p_value"):
        parse_regression({"coef": {"Age": 0.02}, "CI_lower": {"Age": 0.01}, "CI_upper": {"Age": 0.03}, "p_value": {}})


def test_logistic_regression_uses_odds_ratio_column() -> None:
    rows = parse_regression(
        {"OR": {"Age": 1.05}, "CI_lower": {"Age": 1.01}, "CI_upper": {"Age": 1.09}, "p_value": {"Age": 0.02}},
        endpoint="/logistic_regression",
        estimate_key="OR",
    )

    assert rows[0].estimate == 1.05

    with pytest.raises(PayloadError, match="/logistic_regression"):
        parse_regression({"coef": {}}, endpoint="/logistic_regression", estimate_key="OR")


def test_smooth_residual_length_mismatch() -> None:
    payload = {
        "binned": {"x": [1, 2], "mean": [0.1], "ci_upper": [0.2, 0.3], "ci_lower": [0.0, 0.1]},
        "smooth": {"x": [1], "y": [0.1]},
    }
    with pytest.raises(PayloadError, match="binned arrays differ"):
        parse_smooth_residual(payload)


def test_variables_and_stats() -> None:
    catalog = parse_variables({"continuous": ["Age"], "categorical": ["Sex", "CKD"]})
    stats = parse_stats({"Age": {"mean": 65.0, "std": None}})

    assert catalog.categorical == ("Sex", "CKD")
    assert stats[0].column == "Age"
    assert stats[0].std is None


def test_root_type_errors_are_payload_errors() -> None:
    with pytest.raises(PayloadError, match="expected an array at root"):
        parse_summary({"variable": "Age"})
    with pytest.raises(PayloadError, match="expected an object at root"):
        parse_variables([])
