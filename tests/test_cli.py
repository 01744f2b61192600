from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from stats_dashboard.api.client import StatsApiClient
from stats_dashboard.api.errors import ApiStatusError
from stats_dashboard.cli import app


runner = CliRunner()


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "dashboard.yaml"
    path.write_text(
        "api:\n"
        "  base_url: https://api.internal.test\n"
        "variables:\n"
        "  continuous: [Age]\n"
        "  categorical: [Sex]\n"
    )
    return path


@pytest.fixture
def patched_api(monkeypatch: pytest.MonkeyPatch, api_payloads: dict[str, Any]) -> dict[str, Any]:
    def get_json(self: StatsApiClient, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        response = api_payloads[endpoint]
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(StatsApiClient, "get_json", get_json)
    return api_payloads


def test_check_exits_nonzero_when_a_section_fails(config_path: Path, patched_api: dict[str, Any]) -> None:
    patched_api["/stats"] = ApiStatusError("/stats", 502, "bad gateway")

    result = runner.invoke(app, ["check", "--config", str(config_path)], env={"COLUMNS": "200"})

    assert result.exit_code == 1
    assert "stats" in result.output
    assert "error" in result.output
    assert "502" in result.output


def test_check_exits_zero_when_every_section_loads(config_path: Path, patched_api: dict[str, Any]) -> None:
    result = runner.invoke(app, ["check", "--config", str(config_path)], env={"COLUMNS": "200"})

    assert result.exit_code == 0
    assert "summary" in result.output
    assert "error" not in result.output


def test_export_writes_site(tmp_path: Path, config_path: Path, patched_api: dict[str, Any]) -> None:
    out_dir = tmp_path / "site"

    result = runner.invoke(app, ["export", "--config", str(config_path), "--out-dir", str(out_dir)])

    assert result.exit_code == 0
    assert (out_dir / "index.html").exists()
    assert (out_dir / "data" / "sections.json").exists()
