"""Web interface for the user analytics dashboard."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from fastapi import APIRouter, FastAPI, File, Form, Query, Request, UploadFile, status
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from .analytics import aggregate, parse_date_range
from .errors import DEFAULT_SPREADSHEET_ERROR, InvalidDateRange, SpreadsheetError, UpstreamFetchError
from .matcher import match_emails
from .models import ActivityKind, AnalyticsSnapshot, EmailQueryResult
from .spreadsheet import ensure_spreadsheet_filename, extract_emails
from .state import TABS, DashboardState, normalise_tab, transition

if TYPE_CHECKING:
    from .clerk import ClerkUserSource

logger = logging.getLogger("userdash.web")

ANALYTICS_UNAVAILABLE = "Analytics data is currently unavailable."


def _template_environment() -> Jinja2Templates:
    base_dir = Path(__file__).resolve().parent
    templates = Jinja2Templates(directory=str(base_dir / "templates"))
    templates.env.filters["date"] = format_date
    templates.env.filters["time"] = format_time
    templates.env.filters["datetime"] = format_datetime
    templates.env.filters["activity_label"] = activity_label
    return templates


def _utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc)


def _clock(value: datetime) -> str:
    hour = value.hour % 12 or 12
    return f"{hour}:{value:%M} {value:%p}"


def format_date(value: datetime) -> str:
    """Render ``value`` like ``Jan 5, 2024``."""

    moment = _utc(value)
    return f"{moment:%b} {moment.day}, {moment.year}"


def format_time(value: datetime) -> str:
    """Render ``value`` like ``3:07 PM``."""

    return _clock(_utc(value))


def format_datetime(value: datetime) -> str:
    return f"{format_date(value)} {format_time(value)}"


def activity_label(result: EmailQueryResult) -> str:
    if result.last_activity is None:
        return "-"
    if result.last_activity.kind is ActivityKind.SIGNIN:
        return "Sign In"
    return "Sign Up"


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def register_ui_routes(app: FastAPI, source: "ClerkUserSource") -> None:
    """Expose the HTML dashboard on the provided FastAPI app."""

    templates = _template_environment()
    static_dir = Path(__file__).resolve().parent / "static"
    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    router = APIRouter(include_in_schema=False)

    async def _load_snapshot(
        state: DashboardState, start: str, end: str
    ) -> Tuple[DashboardState, AnalyticsSnapshot, Optional[str]]:
        state = transition(state, "fetch_started")
        try:
            date_range = parse_date_range(start, end)
        except InvalidDateRange as exc:
            return transition(state, "fetch_failed"), AnalyticsSnapshot.empty(), str(exc)

        try:
            records = await source.fetch_users()
        except UpstreamFetchError:
            logger.exception("Error fetching analytics for the dashboard")
            return transition(state, "fetch_failed"), AnalyticsSnapshot.empty(), ANALYTICS_UNAVAILABLE

        return transition(state, "fetch_finished"), aggregate(records, date_range), None

    def _dashboard_url(request: Request, *, tab: str, start: str, end: str) -> str:
        params: Dict[str, str] = {"tab": tab}
        if start:
            params["start"] = start
        if end:
            params["end"] = end
        return str(request.url_for("ui_dashboard").include_query_params(**params))

    def _render(
        request: Request,
        state: DashboardState,
        snapshot: AnalyticsSnapshot,
        *,
        start: str,
        end: str,
        notice: Optional[str],
        status_code: int = status.HTTP_200_OK,
    ) -> HTMLResponse:
        if state.active_tab == "signups":
            activity = snapshot.recent_signups
        else:
            activity = snapshot.recent_sign_ins

        reset_url = request.url_for("ui_upload_reset").include_query_params(
            **{key: value for key, value in (("tab", state.active_tab), ("start", start), ("end", end)) if value}
        )
        context = {
            "state": state,
            "snapshot": snapshot,
            "activity": activity,
            "start": start,
            "end": end,
            "notice": notice,
            "tab_urls": {tab: _dashboard_url(request, tab=tab, start=start, end=end) for tab in TABS},
            "reset_url": str(reset_url),
            "year": datetime.now().year,
        }
        return templates.TemplateResponse(request, "dashboard.html", context, status_code=status_code)

    @router.get("/", response_class=HTMLResponse, name="ui_dashboard")
    async def dashboard(
        request: Request,
        tab: Optional[str] = Query(default=None),
        start: Optional[str] = Query(default=None),
        end: Optional[str] = Query(default=None),
    ):
        start_value, end_value = _clean(start), _clean(end)
        state = transition(DashboardState(), "select_tab", tab=normalise_tab(tab))
        state, snapshot, notice = await _load_snapshot(state, start_value, end_value)
        return _render(request, state, snapshot, start=start_value, end=end_value, notice=notice)

    @router.get("/upload/reset", response_class=HTMLResponse, name="ui_upload_reset")
    async def reset_upload(
        request: Request,
        tab: Optional[str] = Query(default=None),
        start: Optional[str] = Query(default=None),
        end: Optional[str] = Query(default=None),
    ):
        start_value, end_value = _clean(start), _clean(end)
        state = transition(DashboardState(), "select_tab", tab=normalise_tab(tab))
        state, snapshot, notice = await _load_snapshot(state, start_value, end_value)
        state = transition(state, "reset")
        return _render(request, state, snapshot, start=start_value, end=end_value, notice=notice)

    @router.post("/upload", response_class=HTMLResponse, name="ui_upload")
    async def upload(
        request: Request,
        file: Optional[UploadFile] = File(default=None),
        tab: Optional[str] = Form(default=None),
        start: Optional[str] = Form(default=None),
        end: Optional[str] = Form(default=None),
    ):
        start_value, end_value = _clean(start), _clean(end)
        state = transition(DashboardState(), "select_tab", tab=normalise_tab(tab))
        state, snapshot, notice = await _load_snapshot(state, start_value, end_value)

        def _respond(current: DashboardState, status_code: int = status.HTTP_200_OK) -> HTMLResponse:
            return _render(
                request,
                current,
                snapshot,
                start=start_value,
                end=end_value,
                notice=notice,
                status_code=status_code,
            )

        if file is None or not file.filename:
            return _respond(state)

        try:
            file_name = ensure_spreadsheet_filename(file.filename)
        except SpreadsheetError as exc:
            logger.warning("Rejected upload %s: %s", file.filename, exc)
            await file.close()
            return _respond(
                transition(state, "upload_rejected", error=str(exc)),
                status.HTTP_400_BAD_REQUEST,
            )

        state = transition(state, "upload_started", file_name=file_name)
        try:
            data = await file.read()
            emails = extract_emails(data)
            results = match_emails(emails, snapshot.recent_signups, snapshot.recent_sign_ins)
        except SpreadsheetError as exc:
            logger.warning("Could not process upload %s: %s", file_name, exc)
            return _respond(
                transition(state, "upload_failed", error=str(exc)),
                status.HTTP_400_BAD_REQUEST,
            )
        except Exception as exc:
            logger.exception("Error processing file %s", file_name)
            return _respond(
                transition(state, "upload_failed", error=str(exc) or DEFAULT_SPREADSHEET_ERROR),
                status.HTTP_400_BAD_REQUEST,
            )
        finally:
            await file.close()

        found = sum(1 for result in results if result.found)
        logger.info("Matched %d of %d uploaded email(s) from %s", found, len(results), file_name)
        return _respond(transition(state, "upload_completed", results=results))

    app.include_router(router)


__all__ = [
    "activity_label",
    "format_date",
    "format_datetime",
    "format_time",
    "register_ui_routes",
]
