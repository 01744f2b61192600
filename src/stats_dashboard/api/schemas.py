"""Typed views of the statistics API payloads.

Each ``parse_*`` function takes the decoded JSON of one endpoint and returns
frozen dataclasses, raising :class:`PayloadError` when a field the dashboard
reads is missing or has the wrong type.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from stats_dashboard.api.errors import PayloadError


Scalar = str | int | float | bool | None


@dataclass(frozen=True, slots=True)
class SummaryRow:
    variable: str
    type: str
    category: str | None = None
    mean: float | None = None
    median: float | None = None
    std: float | None = None
    iqr: float | None = None
    min: float | None = None
    max: float | None = None
    n: float | None = None
    count: float | None = None
    percent: float | None = None


@dataclass(frozen=True, slots=True)
class ScatterPoint:
    x: float
    residual: float


@dataclass(frozen=True, slots=True)
class BinnedGroup:
    bin: str
    mean: float
    se: float
    points: tuple[float, ...]


@dataclass(frozen=True, slots=True)
class CategoricalGroup:
    category: str
    mean: float
    se: float
    points: tuple[float, ...]


@dataclass(frozen=True, slots=True)
class CategoryPrediction:
    category: str
    pred_values: tuple[float, ...]
    actual_mortality: float
    n: float | None
    ci_lower: float | None
    ci_upper: float | None


@dataclass(frozen=True, slots=True)
class SmoothResidual:
    binned_x: tuple[float, ...]
    binned_mean: tuple[float, ...]
    ci_upper: tuple[float, ...]
    ci_lower: tuple[float, ...]
    smooth_x: tuple[float, ...]
    smooth_y: tuple[float, ...]


@dataclass(frozen=True, slots=True)
class RegressionRow:
    variable: str
    estimate: float
    ci_lower: float
    ci_upper: float
    p_value: float


@dataclass(frozen=True, slots=True)
class VariableCatalog:
    continuous: tuple[str, ...]
    categorical: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class GroupRate:
    group: str
    rate: float
    n: float | None


@dataclass(frozen=True, slots=True)
class CalibrationPoint:
    bin: str
    predicted: float
    observed: float
    n: float | None


@dataclass(frozen=True, slots=True)
class ColumnStats:
    column: str
    mean: float | None
    std: float | None


def _mapping(value: Any, endpoint: str, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise PayloadError(endpoint, f"expected an object at {where}, got {type(value).__name__}")
    return value


def _sequence(value: Any, endpoint: str, where: str) -> list[Any]:
    if not isinstance(value, list):
        raise PayloadError(endpoint, f"expected an array at {where}, got {type(value).__name__}")
    return value


def _require(record: Mapping[str, Any], key: str, endpoint: str, where: str) -> Any:
    if key not in record:
        raise PayloadError(endpoint, f"missing '{key}' in {where}")
    return record[key]


def _number(value: Any, endpoint: str, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PayloadError(endpoint, f"expected a number at {where}, got {value!r}")
    return float(value)


def _optional_number(value: Any, endpoint: str, where: str) -> float | None:
    if value is None:
        return None
    return _number(value, endpoint, where)


def _numbers(value: Any, endpoint: str, where: str) -> tuple[float, ...]:
    items = _sequence(value, endpoint, where)
    return tuple(_number(v, endpoint, f"{where}[{i}]") for i, v in enumerate(items))


def _label(value: Any) -> str:
    # Bin and category labels arrive as strings, ints or interval text.
    return "" if value is None else str(value)


def parse_summary(payload: Any) -> list[SummaryRow]:
    endpoint = "/summary"
    rows: list[SummaryRow] = []
    for idx, raw in enumerate(_sequence(payload, endpoint, "root")):
        where = f"row {idx}"
        record = _mapping(raw, endpoint, where)
        row_type = str(_require(record, "type", endpoint, where))
        if row_type not in {"continuous", "categorical"}:
            raise PayloadError(endpoint, f"unknown type {row_type!r} in {where}")

        def num(key: str) -> float | None:
            return _optional_number(record.get(key), endpoint, f"{where}.{key}")

        category = record.get("category")
        if row_type == "categorical":
            category = _require(record, "category", endpoint, where)
        rows.append(
            SummaryRow(
                variable=str(_require(record, "variable", endpoint, where)),
                type=row_type,
                category=None if category is None else str(category),
                mean=num("mean"),
                median=num("median"),
                std=num("std"),
                iqr=num("iqr"),
                min=num("min"),
                max=num("max"),
                n=num("n"),
                count=num("count"),
                percent=num("percent"),
            )
        )
    return rows


def parse_scatter_points(records: Any, variable: str, endpoint: str = "/scatter") -> list[ScatterPoint]:
    points: list[ScatterPoint] = []
    for idx, raw in enumerate(_sequence(records, endpoint, variable)):
        where = f"{variable}[{idx}]"
        record = _mapping(raw, endpoint, where)
        points.append(
            ScatterPoint(
                x=_number(_require(record, variable, endpoint, where), endpoint, f"{where}.{variable}"),
                residual=_number(_require(record, "pres", endpoint, where), endpoint, f"{where}.pres"),
            )
        )
    return points


def parse_scatter_variable(payload: Any, variable: str) -> list[ScatterPoint]:
    """Parse ``/scatter?var=<variable>``.

    The API has answered with a bare array, ``{points: [...]}`` and an object
    keyed by variable; all three are accepted.
    """
    endpoint = "/scatter"
    if isinstance(payload, list):
        return parse_scatter_points(payload, variable, endpoint)
    body = _mapping(payload, endpoint, "root")
    if "points" in body:
        return parse_scatter_points(body["points"], variable, endpoint)
    return parse_scatter_points(_require(body, variable, endpoint, "root"), variable, endpoint)


def _parse_groups(records: Any, variable: str, endpoint: str, label_keys: tuple[str, ...]) -> list[tuple[str, float, float, tuple[float, ...]]]:
    out: list[tuple[str, float, float, tuple[float, ...]]] = []
    for idx, raw in enumerate(_sequence(records, endpoint, variable)):
        where = f"{variable}[{idx}]"
        record = _mapping(raw, endpoint, where)
        label_key = next((k for k in label_keys if k in record), None)
        if label_key is None:
            raise PayloadError(endpoint, f"missing '{label_keys[0]}' in {where}")
        out.append(
            (
                _label(record[label_key]),
                _number(_require(record, "mean", endpoint, where), endpoint, f"{where}.mean"),
                _number(_require(record, "se", endpoint, where), endpoint, f"{where}.se"),
                _numbers(record.get("points", []), endpoint, f"{where}.points"),
            )
        )
    return out


def parse_bins(payload: Any, variables: list[str]) -> dict[str, list[BinnedGroup]]:
    endpoint = "/bins"
    body = _mapping(payload, endpoint, "root")
    return {
        var: [BinnedGroup(*group) for group in _parse_groups(body[var], var, endpoint, ("bin",))]
        for var in variables
        if var in body
    }


def parse_categorical(payload: Any, variables: list[str]) -> dict[str, list[CategoricalGroup]]:
    endpoint = "/categorical"
    body = _mapping(payload, endpoint, "root")
    return {
        var: [
            CategoricalGroup(*group)
            for group in _parse_groups(body[var], var, endpoint, ("category", var))
        ]
        for var in variables
        if var in body
    }


def parse_category_pred(payload: Any) -> list[CategoryPrediction]:
    endpoint = "/category_pred"
    body = _mapping(payload, endpoint, "root")
    out: list[CategoryPrediction] = []
    for idx, raw in enumerate(_sequence(_require(body, "categories", endpoint, "root"), endpoint, "categories")):
        where = f"categories[{idx}]"
        record = _mapping(raw, endpoint, where)
        out.append(
            CategoryPrediction(
                category=_label(_require(record, "category", endpoint, where)),
                pred_values=_numbers(_require(record, "pred_values", endpoint, where), endpoint, f"{where}.pred_values"),
                actual_mortality=_number(
                    _require(record, "actual_mortality", endpoint, where), endpoint, f"{where}.actual_mortality"
                ),
                n=_optional_number(record.get("n"), endpoint, f"{where}.n"),
                ci_lower=_optional_number(record.get("ci_lower"), endpoint, f"{where}.ci_lower"),
                ci_upper=_optional_number(record.get("ci_upper"), endpoint, f"{where}.ci_upper"),
            )
        )
    return out


def parse_smooth_residual(payload: Any) -> SmoothResidual:
    endpoint = "/smooth_residual"
    body = _mapping(payload, endpoint, "root")
    binned = _mapping(_require(body, "binned", endpoint, "root"), endpoint, "binned")
    smooth = _mapping(_require(body, "smooth", endpoint, "root"), endpoint, "smooth")

    def column(section: Mapping[str, Any], name: str, key: str) -> tuple[float, ...]:
        return _numbers(_require(section, key, endpoint, name), endpoint, f"{name}.{key}")

    result = SmoothResidual(
        binned_x=column(binned, "binned", "x"),
        binned_mean=column(binned, "binned", "mean"),
        ci_upper=column(binned, "binned", "ci_upper"),
        ci_lower=column(binned, "binned", "ci_lower"),
        smooth_x=column(smooth, "smooth", "x"),
        smooth_y=column(smooth, "smooth", "y"),
    )
    lengths = {len(result.binned_x), len(result.binned_mean), len(result.ci_upper), len(result.ci_lower)}
    if len(lengths) != 1:
        raise PayloadError(endpoint, "binned arrays differ in length")
    if len(result.smooth_x) != len(result.smooth_y):
        raise PayloadError(endpoint, "smooth arrays differ in length")
    return result


def _regression_from_columns(
    body: Mapping[str, Any], endpoint: str, estimate_key: str
) -> list[RegressionRow]:
    columns = {
        key: _mapping(_require(body, key, endpoint, "root"), endpoint, key)
        for key in (estimate_key, "CI_lower", "CI_upper", "p_value")
    }
    rows: list[RegressionRow] = []
    for variable in columns[estimate_key]:
        values = []
        for key, column in columns.items():
            if variable not in column:
                raise PayloadError(endpoint, f"missing '{variable}' in {key}")
            values.append(_number(column[variable], endpoint, f"{key}.{variable}"))
        rows.append(RegressionRow(str(variable), *values))
    return rows


def _regression_from_rows(records: list[Any], endpoint: str, estimate_key: str) -> list[RegressionRow]:
    rows: list[RegressionRow] = []
    for idx, raw in enumerate(records):
        where = f"row {idx}"
        record = _mapping(raw, endpoint, where)

        def num(key: str) -> float:
            return _number(_require(record, key, endpoint, where), endpoint, f"{where}.{key}")

        rows.append(
            RegressionRow(
                variable=str(_require(record, "variable", endpoint, where)),
                estimate=num(estimate_key),
                ci_lower=num("CI_lower"),
                ci_upper=num("CI_upper"),
                p_value=num("p_value"),
            )
        )
    return rows


def parse_regression(payload: Any, endpoint: str = "/lm", estimate_key: str = "coef") -> list[RegressionRow]:
    """Parse a regression table, given column-wise or as a list of rows."""
    if isinstance(payload, list):
        return _regression_from_rows(payload, endpoint, estimate_key)
    return _regression_from_columns(_mapping(payload, endpoint, "root"), endpoint, estimate_key)


def parse_variables(payload: Any) -> VariableCatalog:
    endpoint = "/variables"
    body = _mapping(payload, endpoint, "root")
    return VariableCatalog(
        continuous=tuple(str(v) for v in _sequence(_require(body, "continuous", endpoint, "root"), endpoint, "continuous")),
        categorical=tuple(
            str(v) for v in _sequence(_require(body, "categorical", endpoint, "root"), endpoint, "categorical")
        ),
    )


def parse_raw_data(payload: Any) -> list[dict[str, Scalar]]:
    endpoint = "/data"
    rows: list[dict[str, Scalar]] = []
    for idx, raw in enumerate(_sequence(payload, endpoint, "root")):
        record = _mapping(raw, endpoint, f"row {idx}")
        rows.append({str(k): v for k, v in record.items()})
    return rows


def parse_mortality_by_group(payload: Any) -> dict[str, list[GroupRate]]:
    endpoint = "/mortality_by_group"
    body = _mapping(payload, endpoint, "root")
    out: dict[str, list[GroupRate]] = {}
    for variable, records in body.items():
        groups: list[GroupRate] = []
        for idx, raw in enumerate(_sequence(records, endpoint, variable)):
            where = f"{variable}[{idx}]"
            record = _mapping(raw, endpoint, where)
            groups.append(
                GroupRate(
                    group=_label(_require(record, "group", endpoint, where)),
                    rate=_number(_require(record, "rate", endpoint, where), endpoint, f"{where}.rate"),
                    n=_optional_number(record.get("n"), endpoint, f"{where}.n"),
                )
            )
        out[str(variable)] = groups
    return out


def parse_calibration(payload: Any) -> list[CalibrationPoint]:
    endpoint = "/calibration"
    points: list[CalibrationPoint] = []
    for idx, raw in enumerate(_sequence(payload, endpoint, "root")):
        where = f"row {idx}"
        record = _mapping(raw, endpoint, where)
        points.append(
            CalibrationPoint(
                bin=_label(_require(record, "bin", endpoint, where)),
                predicted=_number(_require(record, "predicted", endpoint, where), endpoint, f"{where}.predicted"),
                observed=_number(_require(record, "observed", endpoint, where), endpoint, f"{where}.observed"),
                n=_optional_number(record.get("n"), endpoint, f"{where}.n"),
            )
        )
    return points


def parse_stats(payload: Any) -> list[ColumnStats]:
    endpoint = "/stats"
    body = _mapping(payload, endpoint, "root")
    out: list[ColumnStats] = []
    for column, raw in body.items():
        record = _mapping(raw, endpoint, str(column))
        out.append(
            ColumnStats(
                column=str(column),
                mean=_optional_number(record.get("mean"), endpoint, f"{column}.mean"),
                std=_optional_number(record.get("std"), endpoint, f"{column}.std"),
            )
        )
    return out
