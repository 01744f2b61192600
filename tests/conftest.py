from __future__ import annotations

from typing import Any

import pytest

from stats_dashboard.config.settings import DashboardConfig


class FakeClient:
    """Stands in for StatsApiClient; answers from a dict keyed by endpoint."""

    def __init__(self, responses: dict[str, Any]) -> None:
        self.responses = responses
        self.calls: list[tuple[str, dict[str, Any] | None]] = []

    def get_json(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        self.calls.append((endpoint, params))
        response = self.responses[endpoint]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def api_payloads() -> dict[str, Any]:
    return {
        "/summary": [
            {
                "variable": "Age",
                "type": "continuous",
                "mean": 65.2,
                "median": 66.0,
                "std": 10.1,
                "iqr": 14.0,
                "min": 21.0,
                "max": 90.0,
                "n": 120,
            },
            {"variable": "Sex", "type": "categorical", "category": "F", "count": 40, "percent": 33.3},
        ],
        "/scatter": {"Age": [{"Age": 55, "pres": 1.2}, {"Age": 60, "pres": -0.5}]},
        "/bins": {"Age": [{"bin": "(20, 40]", "mean": 0.1, "se": 0.05, "points": [0.1, 0.2]}]},
        "/categorical": {"Sex": [{"Sex": "F", "mean": 0.2, "se": 0.1, "points": [0.1, 0.3]}]},
        "/category_pred": {
            "categories": [
                {
                    "category": "F",
                    "pred_values": [0.1, 0.2],
                    "actual_mortality": 0.15,
                    "n": 40,
                    "ci_lower": 0.08,
                    "ci_upper": 0.25,
                }
            ]
        },
        "/smooth_residual": {
            "binned": {"x": [30, 50], "mean": [0.1, -0.1], "ci_upper": [0.3, 0.1], "ci_lower": [-0.1, -0.3]},
            "smooth": {"x": [30, 40, 50], "y": [0.1, 0.0, -0.1]},
        },
        "/lm": {
            "coef": {"Age": 0.02},
            "CI_lower": {"Age": 0.01},
            "CI_upper": {"Age": 0.03},
            "p_value": {"Age": 0.0007},
        },
        "/logistic_regression": {
            "OR": {"Age": 1.05},
            "CI_lower": {"Age": 1.01},
            "CI_upper": {"Age": 1.09},
            "p_value": {"Age": 0.02},
        },
        "/mortality_by_group": {"Sex": [{"group": "F", "rate": 0.12, "n": 40}]},
        "/calibration": [{"bin": "0-0.1", "predicted": 0.05, "observed": 0.04, "n": 50}],
        "/stats": {"Age": {"mean": 65.2, "std": 10.1}},
        "/variables": {"continuous": ["Age"], "categorical": ["Sex"]},
        "/data": [{"id": 1, "Age": 55, "Sex": "F"}, {"id": 2, "Age": 60, "Sex": "M"}],
    }


@pytest.fixture
def fake_client(api_payloads: dict[str, Any]) -> FakeClient:
    return FakeClient(api_payloads)


@pytest.fixture
def small_config() -> DashboardConfig:
    cfg = DashboardConfig()
    cfg.variables.continuous = ["Age"]
    cfg.variables.categorical = ["Sex"]
    cfg.api.max_workers = 4
    return cfg
