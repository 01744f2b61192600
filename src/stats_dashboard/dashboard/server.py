from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from html import escape
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, Sequence
from urllib.parse import urlparse

from stats_dashboard.dashboard.toggle import RawDataPanel
from stats_dashboard.pipeline import SectionResult
from stats_dashboard.utils.io import write_site

logger = logging.getLogger(__name__)

PLOTLY_CDN = "https://cdn.plot.ly/plotly-2.30.0.min.js"

PAGE_STYLE = """
    body { margin: 0; padding: 22px; font-family: "Helvetica Neue", Helvetica, Arial, sans-serif; color: #1d2433; }
    .site { max-width: 1240px; margin: 0 auto; display: grid; gap: 14px; }
    .sub, .muted { color: #6b778c; font-size: 13px; }
    section { border: 1px solid #dde3ee; border-radius: 14px; padding: 14px 16px; }
    section h2 { margin: 0 0 10px 0; font-size: 18px; }
    .plot { margin: 25px 0; }
    .data-table { border-collapse: collapse; width: 100%; font-size: 13px; }
    .data-table th, .data-table td { border-bottom: 1px solid #e6eaf2; padding: 6px 8px; text-align: left; }
    .data-table td.sig { font-weight: 700; color: #b3261e; }
    .error { color: #b3261e; }
    .btn { border: 1px solid #c5cfdf; border-radius: 12px; background: #f4f6fb; padding: 8px 11px; cursor: pointer; }
    #rawDataContainer { overflow-x: auto; margin-top: 10px; }
"""

RAW_DATA_SCRIPT = """
  <script>
    async function toggleRawData() {
      const container = document.getElementById('rawDataContainer');
      const status = document.getElementById('rawDataStatus');
      const button = document.getElementById('toggleRaw');
      button.disabled = true;
      try {
        const res = await fetch('/api/raw-data/toggle', { method: 'POST', cache: 'no-store' });
        if (!res.ok) throw new Error(`Request failed: ${res.status}`);
        const view = await res.json();
        container.innerHTML = view.html;
        container.style.display = (view.visible || view.error) ? 'block' : 'none';
        status.textContent = view.state.replace('_', ' ');
      } catch (err) {
        container.textContent = `Unable to load raw data: ${err}`;
        container.style.display = 'block';
      } finally {
        button.disabled = false;
      }
    }
    document.getElementById('toggleRaw').addEventListener('click', toggleRawData);
  </script>
"""


def _section_html(result: SectionResult) -> str:
    return (
        f'<section id="{escape(result.container_id)}">'
        f"<h2>{escape(result.title)}</h2>"
        f"{result.html}"
        "</section>"
    )


def _raw_data_html(raw_panel: RawDataPanel) -> str:
    view = raw_panel.view()
    display = "block" if view.visible or view.error else "none"
    return (
        '<section id="rawData">'
        "<h2>Raw data</h2>"
        '<button class="btn" id="toggleRaw" type="button">Show / hide raw data</button> '
        f'<span class="muted" id="rawDataStatus">{escape(view.state.value.replace("_", " "))}</span>'
        f'<div id="rawDataContainer" style="display: {display};">{view.html}</div>'
        "</section>"
    )


def render_page(
    results: Sequence[SectionResult],
    title: str = "Stats Dashboard",
    raw_panel: RawDataPanel | None = None,
    generated_at: datetime | None = None,
) -> str:
    stamp = (generated_at or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M UTC")
    failed = [r.container_id for r in results if not r.ok]
    status = f"{len(results) - len(failed)}/{len(results)} sections loaded"

    body = "".join(_section_html(r) for r in results)
    raw_block = _raw_data_html(raw_panel) if raw_panel is not None else ""
    script = RAW_DATA_SCRIPT if raw_panel is not None else ""

    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>{escape(title)}</title>
  <script src="{PLOTLY_CDN}"></script>
  <style>{PAGE_STYLE}</style>
</head>
<body>
  <div class="site">
    <header>
      <h1>{escape(title)}</h1>
      <p class="sub">Generated {stamp} &middot; {status}</p>
    </header>
    {body}
    {raw_block}
  </div>
{script}
</body>
</html>
"""


def sections_payload(results: Sequence[SectionResult]) -> dict[str, Any]:
    return {
        "sections": [r.to_dict() for r in results],
        "failed": [r.container_id for r in results if not r.ok],
    }


class _Handler(BaseHTTPRequestHandler):
    results: tuple[SectionResult, ...] = ()
    raw_panel: RawDataPanel | None = None
    title = "Stats Dashboard"

    def _send(self, status: int, body: bytes, content_type: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Cache-Control", "no-store")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_json(self, payload: dict[str, Any]) -> None:
        self._send(200, json.dumps(payload).encode("utf-8"), "application/json; charset=utf-8")

    def do_GET(self) -> None:  # noqa: N802
        path = urlparse(self.path).path
        if path in {"/", "/index.html"}:
            html = render_page(self.results, title=self.title, raw_panel=self.raw_panel)
            self._send(200, html.encode("utf-8"), "text/html; charset=utf-8")
            return

        if path == "/api/sections":
            self._send_json(sections_payload(self.results))
            return

        if path == "/health":
            self._send(200, b"ok", "text/plain; charset=utf-8")
            return

        self._send(404, b"not found", "text/plain; charset=utf-8")

    def do_POST(self) -> None:  # noqa: N802
        path = urlparse(self.path).path
        if path == "/api/raw-data/toggle" and self.raw_panel is not None:
            self._send_json(self.raw_panel.toggle().to_dict())
            return

        self._send(404, b"not found", "text/plain; charset=utf-8")

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


def make_server(
    results: list[SectionResult],
    raw_panel: RawDataPanel | None,
    title: str,
    host: str = "127.0.0.1",
    port: int = 8765,
) -> ThreadingHTTPServer:
    handler = type(
        "DashboardHandler",
        (_Handler,),
        {"results": tuple(results), "raw_panel": raw_panel, "title": title},
    )
    return ThreadingHTTPServer((host, port), handler)


def serve_dashboard(
    results: list[SectionResult],
    raw_panel: RawDataPanel | None,
    title: str,
    host: str = "127.0.0.1",
    port: int = 8765,
) -> None:
    server = make_server(results, raw_panel, title, host=host, port=port)
    logger.info("Dashboard available at http://%s:%s", host, port)
    logger.info("Press Ctrl+C to stop")
    try:
        server.serve_forever()
    finally:
        server.server_close()


def export_static_site(results: list[SectionResult], out_dir: str | Path, title: str) -> Path:
    """Write a static snapshot of the dashboard; the lazy raw-data panel needs the server."""
    return write_site(out_dir, render_page(results, title=title), sections_payload(results))
