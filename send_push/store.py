"""
Record store access for device tokens and delivery status.

NotificationStore is the interface the dispatcher depends on. PostgrestStore
implements it over the Supabase REST API (PostgREST) with plain httpx.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

import httpx

from send_push.errors import StoreUnavailable

logger = logging.getLogger(__name__)

TOKENS_TABLE = "fcm_tokens"
NOTIFICATIONS_TABLE = "notifications"


class DeliveryStatus(str, Enum):
    SENT = "sent"
    FAILED_NO_TOKEN = "failed_no_token"
    FAILED_FCM = "failed_fcm"


class NotificationStore(Protocol):
    """Protocol defining the record store interface."""

    async def get_device_token(self, profile_id: str | int) -> str | None:
        """Return the device token registered for a profile, or None."""
        ...

    async def set_delivery_status(self, notification_id: str | int, status: DeliveryStatus) -> None:
        """Write delivery_status on a notification row."""
        ...


class PostgrestStore:
    """Lightweight PostgREST client for the fcm_tokens and notifications tables."""

    def __init__(self, base_url: str, service_key: str, client: httpx.AsyncClient):
        if not base_url:
            raise StoreUnavailable("Record store URL is not configured")
        self.base_url = base_url.rstrip('/')
        self.service_key = service_key
        self.client = client

    def _headers(self) -> dict:
        return {
            'apikey': self.service_key,
            'Authorization': f'Bearer {self.service_key}',
        }

    def _table_url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    async def _request(self, method: str, table: str, **kwargs) -> httpx.Response:
        """Make an authenticated request against a table endpoint."""
        headers = self._headers()
        headers.update(kwargs.pop('headers', {}))

        try:
            response = await self.client.request(
                method,
                self._table_url(table),
                headers=headers,
                **kwargs,
            )
        except httpx.RequestError as e:
            raise StoreUnavailable(f"Record store unreachable: {type(e).__name__}: {e}")

        if not response.is_success:
            try:
                error = response.json()
                message = error.get('message', response.text) if isinstance(error, dict) else response.text
            except ValueError:
                message = response.text
            raise StoreUnavailable(f"Record store error on {table}: HTTP {response.status_code}: {message}")

        return response

    async def get_device_token(self, profile_id: str | int) -> str | None:
        response = await self._request(
            'GET',
            TOKENS_TABLE,
            params={
                'select': 'token',
                'profile_id': f'eq.{profile_id}',
                'limit': '1',
            },
        )

        try:
            rows = response.json()
        except ValueError:
            raise StoreUnavailable(f"Record store returned non-JSON for {TOKENS_TABLE}")

        if not isinstance(rows, list):
            raise StoreUnavailable(f"Record store returned unexpected body for {TOKENS_TABLE}")
        if not rows:
            return None

        row = rows[0]
        if not isinstance(row, dict):
            raise StoreUnavailable(f"Record store returned unexpected row for {TOKENS_TABLE}")
        token = row.get('token')
        if token is not None and not isinstance(token, str):
            raise StoreUnavailable(f"Record store returned non-string token for {TOKENS_TABLE}")
        return token or None

    async def set_delivery_status(self, notification_id: str | int, status: DeliveryStatus) -> None:
        await self._request(
            'PATCH',
            NOTIFICATIONS_TABLE,
            params={'id': f'eq.{notification_id}'},
            json={'delivery_status': DeliveryStatus(status).value},
            headers={'Prefer': 'return=minimal'},
        )
        logger.info("STORE: Notification %s marked %s", notification_id, DeliveryStatus(status).value)
