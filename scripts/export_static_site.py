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
from stats_dashboard.dashboard.server import export_static_site
from stats_dashboard.pipeline import build_dashboard
from stats_dashboard.utils.log import configure_logging


def main() -> None:
    parser = argparse.ArgumentParser(description="Export a static snapshot of the dashboard")
    parser.add_argument("--config", default=str(ROOT / "configs" / "default.yaml"), help="Path to YAML config")
    parser.add_argument("--out-dir", default="site", help="Static site output directory")
    parser.add_argument(
        "--allow-failures",
        action="store_true",
        help="Write the page even when some sections failed to load",
    )
    args = parser.parse_args()

    configure_logging("INFO")
    cfg = load_config(args.config)
    results = build_dashboard(StatsApiClient.from_config(cfg.api), cfg)

    failed = [r.container_id for r in results if not r.ok]
    if failed and not args.allow_failures:
        print(f"[WARN] Sections failed: {', '.join(failed)}. Re-run with --allow-failures to export anyway.")
        raise SystemExit(1)

    out = export_static_site(results, args.out_dir, title=cfg.project_name)
    print("Static site export complete")
    print(f"Output dir: {out}")
    print(f"Sections: {len(results)} ({len(failed)} failed)")


if __name__ == "__main__":
    main()
