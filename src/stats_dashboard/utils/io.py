from __future__ import annotations

import json
from pathlib import Path
from typing import Any


INDEX_FILE = "index.html"
SECTIONS_FILE = Path("data") / "sections.json"


def write_site(out_dir: str | Path, index_html: str, payload: dict[str, Any]) -> Path:
    """Lay out a static dashboard: ``index.html`` plus ``data/sections.json``.

    Existing files are overwritten. Returns the resolved output directory.
    """
    out = Path(out_dir).resolve()
    sections_path = out / SECTIONS_FILE
    sections_path.parent.mkdir(parents=True, exist_ok=True)
    (out / INDEX_FILE).write_text(index_html, encoding="utf-8")
    sections_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return out
