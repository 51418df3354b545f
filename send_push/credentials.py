"""
Service account credential parsing.

The raw SERVICE_ACCOUNT_JSON blob is turned into a ServiceAccountCredential
once per invocation; everything downstream works with the typed object.
"""
from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from send_push.errors import MissingCredential


class ServiceAccountCredential(BaseModel):
    """Issuer email, PEM private key and project id of a Google service account."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    issuer_email: str = Field(alias="client_email", min_length=1)
    private_key_pem: str = Field(alias="private_key", min_length=1)
    project_id: str = Field(min_length=1)

    @classmethod
    def from_json(cls, raw: str | None) -> "ServiceAccountCredential":
        """
        Parse a service account JSON document.

        Raises:
            MissingCredential: If the blob is empty, not a JSON object, or
                lacks client_email, private_key or project_id.
        """
        if not raw or not raw.strip():
            raise MissingCredential("Missing SERVICE_ACCOUNT_JSON")

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MissingCredential(f"SERVICE_ACCOUNT_JSON is not valid JSON: {e}")

        if not isinstance(data, dict):
            raise MissingCredential("SERVICE_ACCOUNT_JSON must be a JSON object")

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
            raise MissingCredential(f"SERVICE_ACCOUNT_JSON is incomplete: {fields}")

    def __repr__(self) -> str:
        return f"ServiceAccountCredential(issuer_email={self.issuer_email!r}, project_id={self.project_id!r})"
