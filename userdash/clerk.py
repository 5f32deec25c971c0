"""HTTP client for listing user accounts from the Clerk backend API."""

from __future__ import annotations

import logging
from typing import Any, List

import httpx

from .config import DashboardSettings
from .errors import UpstreamFetchError
from .models import UserRecord

logger = logging.getLogger("userdash.clerk")


def _extract_error_message(payload: object, default: str) -> str:
    if isinstance(payload, dict):
        errors = payload.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            payload = errors[0]
        for key in ("long_message", "message", "detail", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    if isinstance(payload, str) and payload.strip():
        return payload.strip()
    return default


def _user_items(payload: Any) -> List[Any]:
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return payload["data"]
    if isinstance(payload, list):
        return payload
    raise UpstreamFetchError("Identity provider returned an unexpected response payload")


class ClerkUserSource:
    """Fetch one page of user records per call.

    A fresh client is opened for every request and closed on all exit paths;
    failures are raised as :class:`UpstreamFetchError` without retrying.
    """

    def __init__(
        self,
        settings: DashboardSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def settings(self) -> DashboardSettings:
        return self._settings

    async def fetch_users(self) -> List[UserRecord]:
        secret = self._settings.clerk_secret_key
        if not secret:
            raise UpstreamFetchError("Clerk secret key is not configured")

        headers = {
            "Authorization": f"Bearer {secret}",
            "Content-Type": "application/json",
        }
        params = {"limit": self._settings.page_size}

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(self._settings.users_url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(f"Failed to contact identity provider: {exc}") from exc

        if not response.is_success:
            message = f"Identity provider request failed with status {response.status_code}"
            try:
                parsed = response.json()
            except ValueError:
                parsed = None
            raise UpstreamFetchError(
                _extract_error_message(parsed, message),
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamFetchError("Identity provider returned an invalid response") from exc

        records: List[UserRecord] = []
        for item in _user_items(payload):
            if not isinstance(item, dict):
                raise UpstreamFetchError("Identity provider returned a malformed user entry")
            try:
                records.append(UserRecord.from_payload(item))
            except (ValueError, OverflowError, OSError) as exc:
                raise UpstreamFetchError(f"Identity provider returned an invalid user: {exc}") from exc

        logger.debug("Fetched %d user record(s) from %s", len(records), self._settings.users_url)
        return records


__all__ = ["ClerkUserSource"]
