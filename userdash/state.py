"""Explicit UI state for the dashboard page."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional, Tuple

from .models import EmailQueryResult

TABS = ("signins", "signups")
DEFAULT_TAB = "signins"


class Phase(str, Enum):
    """Page lifecycle.

    Only upload events reach ERROR. A failed analytics fetch still ends in
    READY, with the page showing a notice and empty figures.
    """

    IDLE = "idle"
    LOADING = "loading"
    PROCESSING = "processing"
    ERROR = "error"
    READY = "ready"


@dataclass(frozen=True)
class DashboardState:
    """Snapshot of everything the page needs besides the analytics figures."""

    phase: Phase = Phase.IDLE
    active_tab: str = DEFAULT_TAB
    file_name: Optional[str] = None
    error: Optional[str] = None
    results: Tuple[EmailQueryResult, ...] = ()

    @property
    def has_results(self) -> bool:
        return bool(self.results)


def normalise_tab(value: Optional[str]) -> str:
    """Map a raw ``tab`` query value onto a known tab, defaulting to sign-ins."""

    if value in TABS:
        return value
    return DEFAULT_TAB


def transition(state: DashboardState, event: str, **payload: Any) -> DashboardState:
    """Apply ``event`` to ``state`` and return the resulting snapshot."""

    if event == "select_tab":
        tab = payload.get("tab")
        if tab not in TABS:
            raise ValueError(f"Unknown tab: {tab!r}")
        return replace(state, active_tab=tab)

    if event == "fetch_started":
        return replace(state, phase=Phase.LOADING)

    if event in {"fetch_finished", "fetch_failed"}:
        # Analytics failures degrade to empty figures; they never block the page.
        return replace(state, phase=Phase.READY)

    if event == "upload_started":
        return replace(
            state,
            phase=Phase.PROCESSING,
            file_name=payload["file_name"],
            error=None,
            results=(),
        )

    if event == "upload_rejected":
        return replace(state, phase=Phase.ERROR, file_name=None, error=payload["error"], results=())

    if event == "upload_failed":
        return replace(state, phase=Phase.ERROR, error=payload["error"], results=())

    if event == "upload_completed":
        return replace(
            state,
            phase=Phase.READY,
            error=None,
            results=tuple(payload["results"]),
        )

    if event == "reset":
        return DashboardState(active_tab=state.active_tab)

    raise ValueError(f"Unknown dashboard event: {event!r}")


__all__ = ["DEFAULT_TAB", "TABS", "DashboardState", "Phase", "normalise_tab", "transition"]
