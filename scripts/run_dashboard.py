from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from stats_dashboard.api.client import StatsApiClient
from stats_dashboard.config.settings import load_config
from stats_dashboard.dashboard.server import serve_dashboard
from stats_dashboard.dashboard.toggle import RawDataPanel
from stats_dashboard.pipeline import build_dashboard
from stats_dashboard.utils.log import configure_logging


def main() -> None:
    parser = argparse.ArgumentParser(description="Fetch every dashboard section and serve the page locally")
    parser.add_argument("--config", default=str(ROOT / "configs" / "default.yaml"), help="Path to YAML config")
    parser.add_argument("--base-url", default=None, help="Override the statistics API base URL")
    parser.add_argument("--host", default=None, help="Host to bind")
    parser.add_argument("--port", type=int, default=None, help="Port to bind")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    args = parser.parse_args()

    configure_logging(args.log_level)
    cfg = load_config(args.config)
    if args.base_url:
        cfg.api.base_url = args.base_url

    client = StatsApiClient.from_config(cfg.api)
    results = build_dashboard(client, cfg)

    failed = [r.container_id for r in results if not r.ok]
    print(f"API: {cfg.api.base_url}")
    print(f"Sections: {len(results)} ({len(failed)} failed{': ' + ', '.join(failed) if failed else ''})")

    serve_dashboard(
        results,
        RawDataPanel(client.fetch_raw_data),
        title=cfg.project_name,
        host=args.host or cfg.server.host,
        port=args.port or cfg.server.port,
    )


if __name__ == "__main__":
    main()
