"""HTTP API exposing user statistics and date-filtered analytics."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional, Union

from fastapi import FastAPI, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .analytics import aggregate, parse_date_range
from .clerk import ClerkUserSource
from .config import DashboardSettings, load_settings
from .errors import InvalidDateRange, UpstreamFetchError
from .models import ActivityEntry, AnalyticsSnapshot
from .web import register_ui_routes

logger = logging.getLogger("userdash.service")

USER_STATS_ERROR = "Failed to fetch user statistics"
ANALYTICS_ERROR = "Failed to fetch analytics data"


class ErrorResponse(BaseModel):
    error: str


class UserStatsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_users: int = Field(..., alias="totalUsers")


class ActivityEntryView(BaseModel):
    name: str
    email: str
    timestamp: datetime

    @classmethod
    def from_entry(cls, entry: ActivityEntry) -> "ActivityEntryView":
        return cls(name=entry.name, email=entry.email, timestamp=entry.timestamp)


class AnalyticsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_users: int = Field(..., alias="totalUsers")
    active_users: int = Field(..., alias="activeUsers")
    sign_ups: int = Field(..., alias="signUps")
    sign_ins: int = Field(..., alias="signIns")
    recent_signups: List[ActivityEntryView] = Field(default_factory=list, alias="recentSignups")
    recent_sign_ins: List[ActivityEntryView] = Field(default_factory=list, alias="recentSignIns")

    @classmethod
    def from_snapshot(cls, snapshot: AnalyticsSnapshot) -> "AnalyticsResponse":
        return cls(
            total_users=snapshot.total_users,
            active_users=snapshot.active_users,
            sign_ups=snapshot.sign_ups,
            sign_ins=snapshot.sign_ins,
            recent_signups=[ActivityEntryView.from_entry(entry) for entry in snapshot.recent_signups],
            recent_sign_ins=[ActivityEntryView.from_entry(entry) for entry in snapshot.recent_sign_ins],
        )


def _error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def register_api_routes(app: FastAPI, source: ClerkUserSource) -> None:
    """Expose the JSON API endpoints on the provided FastAPI application."""

    @app.get("/healthz")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get(
        "/api/user-stats",
        response_model=UserStatsResponse,
        responses={500: {"model": ErrorResponse}},
    )
    async def user_stats() -> Union[UserStatsResponse, JSONResponse]:
        try:
            records = await source.fetch_users()
        except UpstreamFetchError:
            logger.exception("Error fetching user statistics")
            return _error_response(USER_STATS_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)
        return UserStatsResponse(total_users=len(records))

    @app.get(
        "/api/analytics",
        response_model=AnalyticsResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def analytics(
        start: Optional[str] = Query(default=None, description="Inclusive ISO start date"),
        end: Optional[str] = Query(default=None, description="Inclusive ISO end date"),
    ) -> Union[AnalyticsResponse, JSONResponse]:
        try:
            date_range = parse_date_range(start, end)
        except InvalidDateRange as exc:
            return _error_response(str(exc), status.HTTP_400_BAD_REQUEST)

        try:
            records = await source.fetch_users()
        except UpstreamFetchError:
            logger.exception("Error fetching analytics")
            return _error_response(ANALYTICS_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)

        snapshot = aggregate(records, date_range)
        return AnalyticsResponse.from_snapshot(snapshot)


def create_app(
    *,
    settings: DashboardSettings | None = None,
    source: ClerkUserSource | None = None,
    include_api: bool = True,
    include_web: bool = True,
) -> FastAPI:
    """Instantiate the FastAPI application for the analytics dashboard."""

    app_settings = settings or (source.settings if source is not None else load_settings())
    user_source = source or ClerkUserSource(app_settings)

    app = FastAPI(
        title="User Analytics Dashboard",
        version="0.1.0",
        description="Sign-up and sign-in analytics for identity-provider accounts.",
    )

    app.state.settings = app_settings
    app.state.source = user_source

    if include_api:
        register_api_routes(app, user_source)

    if include_web:
        register_ui_routes(app, user_source)

    return app


def create_api_app(
    *,
    settings: DashboardSettings | None = None,
    source: ClerkUserSource | None = None,
) -> FastAPI:
    """Return an application exposing only the JSON API."""

    return create_app(settings=settings, source=source, include_api=True, include_web=False)


__all__ = [
    "AnalyticsResponse",
    "UserStatsResponse",
    "create_api_app",
    "create_app",
    "register_api_routes",
]
