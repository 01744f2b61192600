"""Fetch, shape and render every dashboard section.

A :class:`Section` describes one endpoint and one page region as data: the
request to issue, how to validate the payload, how to map it to chart or
table input, and how to turn that input into HTML. :func:`run_sections`
executes them independently so one failing endpoint never blocks the rest.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from html import escape
from typing import Any, Callable

import plotly.graph_objects as go

from stats_dashboard import transforms
from stats_dashboard.api import schemas
from stats_dashboard.api.client import Params, StatsApiClient
from stats_dashboard.api.errors import StatsApiError
from stats_dashboard.config.settings import DashboardConfig, PlotConfig
from stats_dashboard.render import charts
from stats_dashboard.render.tables import render_message, render_table

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Section:
    container_id: str
    title: str
    endpoint: str
    params: Params | None
    parse: Callable[[Any], Any]
    mapper: Callable[[Any], Any]
    renderer: Callable[[Any], str]


@dataclass(slots=True)
class SectionResult:
    container_id: str
    title: str
    html: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "container_id": self.container_id,
            "title": self.title,
            "html": self.html,
            "error": self.error,
        }


def _slug(value: str) -> str:
    return "".join(ch if ch.isalnum() else "-" for ch in value).strip("-").lower()


def _plot_block(div_id: str, heading: str, fig: go.Figure) -> str:
    return f'<div class="plot"><h3>{escape(heading)}</h3>{charts.figure_html(fig, div_id)}</div>'


def _per_variable(
    prefix: str,
    build: Callable[[Any, str, PlotConfig], go.Figure],
    plots: PlotConfig,
    heading: str,
    mapped: dict[str, Any],
) -> str:
    blocks = [
        _plot_block(f"{prefix}-{_slug(var)}", heading.format(var=var), build(data, var, plots))
        for var, data in mapped.items()
    ]
    if not blocks:
        return render_message("No variables available for this section.", css="muted")
    return "".join(blocks)


def _map_values(fn: Callable[[Any], Any], by_variable: dict[str, Any]) -> dict[str, Any]:
    return {var: fn(value) for var, value in by_variable.items()}


def _single_figure(div_id: str, heading: str, build: Callable[[Any], go.Figure], data: Any) -> str:
    return _plot_block(div_id, heading, build(data))


def resolve_variables(client: StatsApiClient, cfg: DashboardConfig) -> schemas.VariableCatalog:
    configured = schemas.VariableCatalog(
        continuous=tuple(cfg.variables.continuous),
        categorical=tuple(cfg.variables.categorical),
    )
    if not cfg.variables.discover:
        return configured
    try:
        return client.fetch_variables()
    except StatsApiError as exc:
        logger.warning("Variable discovery failed, using configured lists: %s", exc)
        return configured


def build_sections(cfg: DashboardConfig, variables: schemas.VariableCatalog) -> list[Section]:
    plots = cfg.plots
    continuous = list(variables.continuous)
    categorical = list(variables.categorical)
    selected = continuous + categorical

    sections = [
        Section(
            container_id="summary",
            title="Descriptive statistics",
            endpoint="/summary",
            params={"vars": selected} if selected else None,
            parse=schemas.parse_summary,
            mapper=transforms.summary_table_rows,
            renderer=partial(render_table, table_id="summaryTable"),
        ),
    ]

    for var in continuous:
        sections.append(
            Section(
                container_id=f"scatter-{_slug(var)}",
                title=f"Pearson residuals vs {var}",
                endpoint="/scatter",
                params={"var": var},
                parse=partial(schemas.parse_scatter_variable, variable=var),
                mapper=transforms.scatter_xy,
                renderer=partial(
                    _single_figure,
                    f"scatter-plot-{_slug(var)}",
                    f"{var} Scatter",
                    partial(charts.scatter_figure, variable=var, plots=plots),
                ),
            )
        )

    sections += [
        Section(
            container_id="bins",
            title="Binned residuals",
            endpoint="/bins",
            params={"n_bins": plots.n_bins},
            parse=partial(schemas.parse_bins, variables=continuous),
            mapper=partial(_map_values, transforms.binned_box_input),
            renderer=partial(_per_variable, "bins", charts.binned_box_figure, plots, "{var} Bins"),
        ),
        Section(
            container_id="categorical",
            title="Residuals by category",
            endpoint="/categorical",
            params=None,
            parse=partial(schemas.parse_categorical, variables=categorical),
            mapper=partial(_map_values, transforms.categorical_box_input),
            renderer=partial(_per_variable, "cat", charts.categorical_box_figure, plots, "{var}"),
        ),
    ]

    for var in categorical:
        sections.append(
            Section(
                container_id=f"category-pred-{_slug(var)}",
                title=f"Predicted vs observed mortality: {var}",
                endpoint="/category_pred",
                params={"var": var},
                parse=schemas.parse_category_pred,
                mapper=transforms.category_pred_input,
                renderer=partial(
                    _single_figure,
                    f"category-pred-plot-{_slug(var)}",
                    var,
                    partial(charts.category_pred_figure, variable=var, plots=plots),
                ),
            )
        )

    for var in continuous:
        sections.append(
            Section(
                container_id=f"smooth-residual-{_slug(var)}",
                title=f"Smoothed residuals: {var}",
                endpoint="/smooth_residual",
                params={"var": var, "frac": plots.frac},
                parse=schemas.parse_smooth_residual,
                mapper=transforms.smooth_residual_input,
                renderer=partial(
                    _single_figure,
                    f"smooth-residual-plot-{_slug(var)}",
                    var,
                    partial(charts.smooth_residual_figure, variable=var, plots=plots),
                ),
            )
        )

    sections.extend(
        [
            Section(
                container_id="lm",
                title="Linear regression",
                endpoint="/lm",
                params=None,
                parse=partial(schemas.parse_regression, endpoint="/lm", estimate_key="coef"),
                mapper=partial(transforms.regression_table_rows, estimate_label="Coefficient"),
                renderer=partial(render_table, table_id="lmTable"),
            ),
            Section(
                container_id="logistic",
                title="Logistic regression",
                endpoint="/logistic_regression",
                params=None,
                parse=partial(schemas.parse_regression, endpoint="/logistic_regression", estimate_key="OR"),
                mapper=partial(transforms.regression_table_rows, estimate_label="Odds ratio"),
                renderer=partial(render_table, table_id="logisticTable"),
            ),
            Section(
                container_id="mortality",
                title="Mortality by group",
                endpoint="/mortality_by_group",
                params=None,
                parse=schemas.parse_mortality_by_group,
                mapper=transforms.group_rate_input,
                renderer=partial(_per_variable, "mortality", charts.group_rate_figure, plots, "{var}"),
            ),
            Section(
                container_id="calibration",
                title="Calibration",
                endpoint="/calibration",
                params=None,
                parse=schemas.parse_calibration,
                mapper=transforms.calibration_input,
                renderer=partial(
                    _single_figure,
                    "calibration-plot",
                    "Predicted vs observed",
                    partial(charts.calibration_figure, plots=plots),
                ),
            ),
            Section(
                container_id="stats",
                title="Column means",
                endpoint="/stats",
                params=None,
                parse=schemas.parse_stats,
                mapper=transforms.column_stats_rows,
                renderer=partial(render_table, table_id="statsTable"),
            ),
        ]
    )
    return sections


def run_section(client: StatsApiClient, section: Section) -> SectionResult:
    try:
        payload = client.get_json(section.endpoint, section.params)
        html = section.renderer(section.mapper(section.parse(payload)))
    except StatsApiError as exc:
        logger.warning("Section '%s' failed: %s", section.container_id, exc)
        return SectionResult(
            container_id=section.container_id,
            title=section.title,
            html=render_message(f"Unable to load {section.title.lower()}: {exc}"),
            error=str(exc),
        )
    return SectionResult(container_id=section.container_id, title=section.title, html=html)


def run_sections(client: StatsApiClient, sections: list[Section], max_workers: int = 8) -> list[SectionResult]:
    if not sections:
        return []

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(sections)))) as executor:
        futures = [executor.submit(run_section, client, section) for section in sections]
        results = [future.result() for future in futures]

    failed = sum(1 for r in results if not r.ok)
    logger.info("Rendered %d sections (%d failed)", len(results), failed)
    return results


def build_dashboard(client: StatsApiClient, cfg: DashboardConfig) -> list[SectionResult]:
    variables = resolve_variables(client, cfg)
    return run_sections(client, build_sections(cfg, variables), max_workers=cfg.api.max_workers)
