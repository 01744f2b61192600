from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


DEFAULT_CONFIG_PATH = "configs/default.yaml"


@dataclass(slots=True)
class ApiConfig:
    base_url: str = "https://stats-api-nh00.onrender.com"
    timeout_seconds: float = 30.0
    max_workers: int = 8


@dataclass(slots=True)
class VariablesConfig:
    continuous: list[str] = field(default_factory=lambda: ["Age", "LVEF", "aus"])
    categorical: list[str] = field(
        default_factory=lambda: ["Sex", "NYHA", "urgency", "surgery", "diabetes", "CKD"]
    )
    discover: bool = False


@dataclass(slots=True)
class PlotConfig:
    n_bins: int = 10
    frac: float = 0.3
    residual_range: list[float] = field(default_factory=lambda: [-4.0, 4.0])
    template: str = "plotly_white"


@dataclass(slots=True)
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8765


@dataclass(slots=True)
class DashboardConfig:
    project_name: str = "Cardiac Surgery Mortality Diagnostics"
    api: ApiConfig = field(default_factory=ApiConfig)
    variables: VariablesConfig = field(default_factory=VariablesConfig)
    plots: PlotConfig = field(default_factory=PlotConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


def _merge_dataclass(dc_cls: type, source: dict[str, Any] | None) -> Any:
    source = source or {}
    valid = {k: v for k, v in source.items() if k in dc_cls.__dataclass_fields__}
    return dc_cls(**valid)


def load_config(path: str | Path | None = DEFAULT_CONFIG_PATH) -> DashboardConfig:
    if path is None:
        return DashboardConfig()

    cfg_path = Path(path)
    if not cfg_path.exists():
        return DashboardConfig()

    data = yaml.safe_load(cfg_path.read_text()) or {}

    return DashboardConfig(
        project_name=data.get("project_name", "Cardiac Surgery Mortality Diagnostics"),
        api=_merge_dataclass(ApiConfig, data.get("api")),
        variables=_merge_dataclass(VariablesConfig, data.get("variables")),
        plots=_merge_dataclass(PlotConfig, data.get("plots")),
        server=_merge_dataclass(ServerConfig, data.get("server")),
    )
