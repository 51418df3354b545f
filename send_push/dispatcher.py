"""
Delivery of one notification record to FCM.

Received -> TokenLookup -> (NoToken | CredentialResolved) -> Minting
    -> Authorized -> Sending -> (Sent | ProviderRejected) -> StatusPersisted

A missing device token is a normal outcome and is recorded, not raised.
A malformed event, a bad credential or a failed mint aborts before any
status is written.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from send_push.config import Settings
from send_push.credentials import ServiceAccountCredential
from send_push.errors import MalformedEvent, ProviderUnreachable
from send_push.minter import TokenMinter
from send_push.store import DeliveryStatus, NotificationStore

logger = logging.getLogger(__name__)

FCM_SEND_URL = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"
CLICK_ACTION = "FLUTTER_NOTIFICATION_CLICK"
DEFAULT_NOTIFICATION_TYPE = "nudge"


class NotificationRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | int
    recipient_profile_id: str | int
    title: str | None = None
    body: str | None = None
    type: str | None = None
    payload: Any = None


class DispatchOutcome(str, Enum):
    SENT = "sent"
    NO_TOKEN = "no_token"
    PROVIDER_REJECTED = "provider_rejected"


@dataclass(frozen=True)
class DispatchResult:
    outcome: DispatchOutcome
    provider_response: str | None = None


def parse_event(body: bytes | str | dict) -> NotificationRecord:
    """Extract the notification record from an inbound event body."""
    if isinstance(body, (bytes, str)):
        try:
            body = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedEvent(f"Event body is not valid JSON: {e}")

    if not isinstance(body, dict):
        raise MalformedEvent("Event body must be a JSON object")

    record = body.get('record')
    if not isinstance(record, dict):
        raise MalformedEvent("Event body has no record")

    try:
        return NotificationRecord.model_validate(record)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        raise MalformedEvent(f"Record is missing or has invalid fields: {fields}")


def build_message(record: NotificationRecord, device_token: str) -> dict:
    """Build the FCM v1 message body for a record."""
    notification = {}
    if record.title is not None:
        notification['title'] = record.title
    if record.body is not None:
        notification['body'] = record.body

    # Falsy scalars (null, 0, "", false) become {}; empty lists and objects are kept
    payload = record.payload
    if not payload and not isinstance(payload, (list, dict)):
        payload = {}

    return {
        'message': {
            'token': device_token,
            'notification': notification,
            'data': {
                'click_action': CLICK_ACTION,
                'type': record.type or DEFAULT_NOTIFICATION_TYPE,
                'payload': json.dumps(payload, separators=(',', ':'), ensure_ascii=False),
            },
        }
    }


class Dispatcher:
    """Runs one delivery: token lookup, mint, send, status write."""

    def __init__(
        self,
        settings: Settings,
        store: NotificationStore,
        minter: TokenMinter,
        client: httpx.AsyncClient,
        send_url_template: str = FCM_SEND_URL,
    ):
        self.settings = settings
        self.store = store
        self.minter = minter
        self.client = client
        self.send_url_template = send_url_template

    async def dispatch(self, body: bytes | str | dict) -> DispatchResult:
        record = parse_event(body)

        device_token = await self.store.get_device_token(record.recipient_profile_id)
        if not device_token:
            logger.info("PUSH: No token for: %s", record.recipient_profile_id)
            await self.store.set_delivery_status(record.id, DeliveryStatus.FAILED_NO_TOKEN)
            return DispatchResult(DispatchOutcome.NO_TOKEN)

        credential = ServiceAccountCredential.from_json(self.settings.service_account_json)
        bearer = await self.minter.mint(credential)

        logger.info("PUSH: Sending to: %s...", device_token[:10])
        response = await self._send(credential.project_id, bearer.authorization, build_message(record, device_token))

        if response.is_success:
            await self.store.set_delivery_status(record.id, DeliveryStatus.SENT)
            return DispatchResult(DispatchOutcome.SENT, response.text)

        logger.error("PUSH: FCM Error: HTTP %s %s", response.status_code, response.text)
        await self.store.set_delivery_status(record.id, DeliveryStatus.FAILED_FCM)
        return DispatchResult(DispatchOutcome.PROVIDER_REJECTED, response.text)

    async def _send(self, project_id: str, authorization: str, message: dict) -> httpx.Response:
        url = self.send_url_template.format(project_id=project_id)
        try:
            return await self.client.post(
                url,
                json=message,
                headers={
                    'Content-Type': 'application/json',
                    'Authorization': authorization,
                },
            )
        except httpx.RequestError as e:
            raise ProviderUnreachable(f"FCM unreachable: {type(e).__name__}: {e}")
