from __future__ import annotations

import typer
from rich import print
from rich.console import Console
from rich.table import Table

from stats_dashboard.api.client import StatsApiClient
from stats_dashboard.config.settings import DEFAULT_CONFIG_PATH, load_config
from stats_dashboard.dashboard.server import export_static_site, serve_dashboard
from stats_dashboard.dashboard.toggle import RawDataPanel
from stats_dashboard.pipeline import build_dashboard
from stats_dashboard.utils.log import configure_logging

app = typer.Typer(help="Stats Dashboard command line")


@app.callback()
def main(log_level: str = typer.Option("INFO", help="Logging level")) -> None:
    configure_logging(log_level)


@app.command()
def serve(
    config: str = typer.Option(DEFAULT_CONFIG_PATH, help="Path to YAML config"),
    host: str | None = typer.Option(None, help="Host to bind (overrides config)"),
    port: int | None = typer.Option(None, help="Port to bind (overrides config)"),
) -> None:
    cfg = load_config(config)
    client = StatsApiClient.from_config(cfg.api)
    results = build_dashboard(client, cfg)
    raw_panel = RawDataPanel(client.fetch_raw_data)

    serve_dashboard(
        results,
        raw_panel,
        title=cfg.project_name,
        host=host or cfg.server.host,
        port=port or cfg.server.port,
    )


@app.command()
def export(
    config: str = typer.Option(DEFAULT_CONFIG_PATH, help="Path to YAML config"),
    out_dir: str = typer.Option("site", help="Static site output directory"),
) -> None:
    cfg = load_config(config)
    client = StatsApiClient.from_config(cfg.api)
    results = build_dashboard(client, cfg)

    out = export_static_site(results, out_dir, title=cfg.project_name)
    failed = sum(1 for r in results if not r.ok)
    print("\n[bold]Static site export complete.[/bold]")
    print(f"Output dir: {out}")
    print(f"Sections: {len(results)} ({failed} failed)")


@app.command()
def check(config: str = typer.Option(DEFAULT_CONFIG_PATH, help="Path to YAML config")) -> None:
    cfg = load_config(config)
    client = StatsApiClient.from_config(cfg.api)
    results = build_dashboard(client, cfg)

    table = Table(title=f"{cfg.project_name} ({cfg.api.base_url})")
    table.add_column("Section")
    table.add_column("Status")
    table.add_column("Detail", overflow="fold")
    for result in results:
        status = "[green]ok[/green]" if result.ok else "[red]error[/red]"
        table.add_row(result.container_id, status, result.error or "")
    Console().print(table)

    if any(not r.ok for r in results):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
