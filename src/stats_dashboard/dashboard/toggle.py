from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from stats_dashboard.api.errors import StatsApiError
from stats_dashboard.api.schemas import Scalar
from stats_dashboard.render.tables import render_message, render_raw_data
from stats_dashboard.transforms import raw_data_table

logger = logging.getLogger(__name__)

RawDataLoader = Callable[[], list[dict[str, Scalar]]]


class PanelState(str, Enum):
    HIDDEN = "hidden"
    LOADING = "loading"
    LOADED_VISIBLE = "loaded_visible"
    HIDDEN_CACHED = "hidden_cached"


@dataclass(slots=True)
class PanelView:
    state: PanelState
    visible: bool
    html: str
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "state": self.state.value,
            "visible": self.visible,
            "html": self.html,
            "error": self.error,
        }


class RawDataPanel:
    """Lazily loaded raw-data table behind a show/hide toggle.

    The first show fetches through ``loader``; afterwards the rendered table is
    kept and shown again without another request. A failed fetch leaves the
    panel hidden and unloaded, so the next toggle tries again.
    """

    def __init__(self, loader: RawDataLoader) -> None:
        self._loader = loader
        self._lock = threading.Lock()
        self._state = PanelState.HIDDEN
        self._html = ""
        self._error: str | None = None

    @property
    def state(self) -> PanelState:
        return self._state

    @property
    def loaded(self) -> bool:
        return self._state in {PanelState.LOADED_VISIBLE, PanelState.HIDDEN_CACHED}

    def view(self) -> PanelView:
        with self._lock:
            return self._view()

    def _view(self) -> PanelView:
        visible = self._state == PanelState.LOADED_VISIBLE
        if self._error and self._state == PanelState.HIDDEN:
            html = render_message(f"Unable to load raw data: {self._error}")
        else:
            html = self._html if visible else ""
        return PanelView(state=self._state, visible=visible, html=html, error=self._error)

    def toggle(self) -> PanelView:
        with self._lock:
            if self._state == PanelState.LOADING:
                return self._view()
            if self._state == PanelState.LOADED_VISIBLE:
                self._state = PanelState.HIDDEN_CACHED
                return self._view()
            if self._state == PanelState.HIDDEN_CACHED:
                self._state = PanelState.LOADED_VISIBLE
                return self._view()
            self._state = PanelState.LOADING
            self._error = None

        # Fetch outside the lock so concurrent toggles see LOADING instead of blocking.
        try:
            html = render_raw_data(raw_data_table(self._loader()))
        except StatsApiError as exc:
            logger.warning("Raw data load failed: %s", exc)
            with self._lock:
                self._state = PanelState.HIDDEN
                self._error = str(exc)
                return self._view()
        except Exception:
            with self._lock:
                self._state = PanelState.HIDDEN
            raise

        with self._lock:
            self._html = html
            self._state = PanelState.LOADED_VISIBLE
            return self._view()
