from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from stats_dashboard.api.schemas import (
    BinnedGroup,
    CalibrationPoint,
    CategoricalGroup,
    CategoryPrediction,
    ColumnStats,
    GroupRate,
    RegressionRow,
    Scalar,
    ScatterPoint,
    SmoothResidual,
    SummaryRow,
)


PLACEHOLDER = "-"
SIGNIFICANCE_LEVEL = 0.05

SUMMARY_HEADERS = [
    "Variable",
    "Type",
    "Category",
    "Mean",
    "Median",
    "SD",
    "IQR",
    "Min",
    "Max",
    "N",
    "Count",
    "%",
]


@dataclass(slots=True)
class TableData:
    headers: list[str]
    rows: list[list[str]]
    # Parallel to ``rows``; empty string means no class.
    cell_classes: list[list[str]] = field(default_factory=list)


def format_number(value: float | None) -> str:
    if value is None:
        return PLACEHOLDER
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.6g}"


def format_p_value(p_value: float) -> str:
    if p_value < 0.001:
        return "<0.001"
    return f"{p_value:.3f}"


def summary_cells(row: SummaryRow) -> list[str]:
    if row.type == "continuous":
        stats = [row.mean, row.median, row.std, row.iqr, row.min, row.max, row.n]
        return [
            row.variable,
            row.type,
            PLACEHOLDER,
            *[format_number(v) for v in stats],
            PLACEHOLDER,
            PLACEHOLDER,
        ]

    percent = PLACEHOLDER if row.percent is None else f"{format_number(row.percent)}%"
    return [
        row.variable,
        row.type,
        row.category or PLACEHOLDER,
        *[PLACEHOLDER] * 7,
        format_number(row.count),
        percent,
    ]


def summary_table_rows(rows: list[SummaryRow]) -> TableData:
    return TableData(headers=list(SUMMARY_HEADERS), rows=[summary_cells(r) for r in rows])


def scatter_xy(points: list[ScatterPoint]) -> list[dict[str, float]]:
    return [{"x": p.x, "y": p.residual} for p in points]


def _box_input(labels: list[str], groups: list[BinnedGroup] | list[CategoricalGroup]) -> dict[str, Any]:
    return {
        "x": labels,
        "mean": [g.mean for g in groups],
        "se": [g.se for g in groups],
        # Parallel to "x"; labels may repeat.
        "points": [list(g.points) for g in groups],
    }


def binned_box_input(groups: list[BinnedGroup]) -> dict[str, Any]:
    return _box_input([g.bin for g in groups], groups)


def categorical_box_input(groups: list[CategoricalGroup]) -> dict[str, Any]:
    return _box_input([g.category for g in groups], groups)


def category_pred_input(categories: list[CategoryPrediction]) -> dict[str, Any]:
    def err(c: CategoryPrediction, bound: float | None, upper: bool) -> float:
        if bound is None:
            return 0.0
        return bound - c.actual_mortality if upper else c.actual_mortality - bound

    return {
        "categories": [c.category for c in categories],
        "pred_values": [list(c.pred_values) for c in categories],
        "actual": [c.actual_mortality for c in categories],
        "error_plus": [err(c, c.ci_upper, True) for c in categories],
        "error_minus": [err(c, c.ci_lower, False) for c in categories],
        "n": [c.n for c in categories],
    }


def smooth_residual_input(payload: SmoothResidual) -> dict[str, list[float]]:
    return {
        "binned_x": list(payload.binned_x),
        "binned_mean": list(payload.binned_mean),
        "ci_upper": list(payload.ci_upper),
        "ci_lower": list(payload.ci_lower),
        "smooth_x": list(payload.smooth_x),
        "smooth_y": list(payload.smooth_y),
    }


def regression_table_rows(rows: list[RegressionRow], estimate_label: str = "Coefficient") -> TableData:
    body: list[list[str]] = []
    classes: list[list[str]] = []
    for row in rows:
        significant = row.p_value < SIGNIFICANCE_LEVEL
        body.append(
            [
                row.variable,
                f"{row.estimate:.3f}",
                f"{row.ci_lower:.3f} – {row.ci_upper:.3f}",
                format_p_value(row.p_value),
            ]
        )
        classes.append(["", "", "", "sig" if significant else ""])
    return TableData(
        headers=["Variable", estimate_label, "95% CI", "p-value"],
        rows=body,
        cell_classes=classes,
    )


def raw_cell(value: Scalar) -> str:
    if value is None:
        return ""
    # JSON spelling, not Python's.
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def raw_data_table(rows: list[dict[str, Scalar]]) -> TableData:
    headers: list[str] = []
    seen: set[str] = set()
    for row in rows:
        for key in row:
            if key not in seen:
                seen.add(key)
                headers.append(key)

    body = [[raw_cell(row.get(col)) for col in headers] for row in rows]
    return TableData(headers=headers, rows=body)


def group_rate_input(groups: dict[str, list[GroupRate]]) -> dict[str, dict[str, list[Any]]]:
    return {
        variable: {
            "groups": [g.group for g in rates],
            "rate": [g.rate for g in rates],
            "n": [g.n for g in rates],
        }
        for variable, rates in groups.items()
    }


def calibration_input(points: list[CalibrationPoint]) -> dict[str, list[Any]]:
    return {
        "bins": [p.bin for p in points],
        "predicted": [p.predicted for p in points],
        "observed": [p.observed for p in points],
    }


def column_stats_rows(stats: list[ColumnStats]) -> TableData:
    return TableData(
        headers=["Column", "Mean", "SD"],
        rows=[[s.column, format_number(s.mean), format_number(s.std)] for s in stats],
    )
