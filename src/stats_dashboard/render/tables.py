from __future__ import annotations

from html import escape

import pandas as pd

from stats_dashboard.transforms import TableData


def render_table(table: TableData, table_id: str | None = None) -> str:
    id_attr = f' id="{escape(table_id)}"' if table_id else ""
    head = "".join(f"<th>{escape(h)}</th>" for h in table.headers)

    body_rows: list[str] = []
    for idx, row in enumerate(table.rows):
        classes = table.cell_classes[idx] if idx < len(table.cell_classes) else []
        cells = []
        for col, value in enumerate(row):
            css = classes[col] if col < len(classes) else ""
            class_attr = f' class="{escape(css)}"' if css else ""
            cells.append(f"<td{class_attr}>{escape(value)}</td>")
        body_rows.append(f"<tr>{''.join(cells)}</tr>")

    return (
        f'<table class="data-table"{id_attr}>'
        f"<thead><tr>{head}</tr></thead>"
        f"<tbody>{''.join(body_rows)}</tbody>"
        "</table>"
    )


def render_raw_data(table: TableData) -> str:
    if not table.headers:
        return '<p class="muted">No rows returned.</p>'
    frame = pd.DataFrame(table.rows, columns=table.headers)
    return frame.to_html(index=False, escape=True, classes="data-table", table_id="rawDataTable", border=0)


def render_message(message: str, css: str = "error") -> str:
    return f'<p class="{escape(css)}">{escape(message)}</p>'
