"""
OAuth2 access tokens for FCM from a service account.

The flow:
1. Sign a JWT assertion with the service account's RSA key
2. POST it to the Google token endpoint (jwt-bearer grant)
3. Use the returned access_token as the Bearer for the FCM send

Tokens are minted fresh per invocation and never cached.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

import httpx

from send_push.assertion import OAUTH_TOKEN_URL, build_assertion, load_private_key
from send_push.credentials import ServiceAccountCredential
from send_push.errors import ExchangeRejected, ExchangeUnreachable

logger = logging.getLogger(__name__)

JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"


@dataclass(frozen=True)
class BearerToken:
    value: str = field(repr=False)
    obtained_at: float

    @property
    def authorization(self) -> str:
        return f"Bearer {self.value}"


class TokenMinter:
    """Exchanges signed service account assertions for access tokens."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        token_url: str = OAUTH_TOKEN_URL,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.token_url = token_url
        self.clock = clock

    async def mint(self, credential: ServiceAccountCredential) -> BearerToken:
        """
        Mint a bearer token for the credential.

        Raises:
            MalformedKey: Private key unusable (raised before any network call)
            SigningFailure: RSA signing failed
            ExchangeUnreachable: Token endpoint transport failure
            ExchangeRejected: Non-2xx response or no access_token in the body
        """
        private_key = load_private_key(credential.private_key_pem)

        now = int(self.clock())
        assertion = build_assertion(credential, now=now, private_key=private_key)

        access_token = await self._exchange(assertion.encode())
        logger.info("MINT: Access token issued for %s", credential.issuer_email)
        return BearerToken(value=access_token, obtained_at=now)

    async def _exchange(self, jwt_token: str) -> str:
        try:
            response = await self.client.post(
                self.token_url,
                data={
                    'grant_type': JWT_BEARER_GRANT,
                    'assertion': jwt_token,
                },
                headers={'Content-Type': 'application/x-www-form-urlencoded'},
            )
        except httpx.RequestError as e:
            raise ExchangeUnreachable(f"Token endpoint unreachable: {type(e).__name__}: {e}")

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.is_success:
            detail = ""
            if isinstance(data, dict):
                error = data.get('error', 'unknown_error')
                description = data.get('error_description', '')
                detail = f": {error} {description}".rstrip()
            raise ExchangeRejected(
                f"Token exchange failed with HTTP {response.status_code}{detail}",
                status=response.status_code,
                body=response.text,
            )

        access_token = data.get('access_token') if isinstance(data, dict) else None
        if not access_token or not isinstance(access_token, str):
            raise ExchangeRejected(
                "Token exchange response has no access_token",
                status=response.status_code,
                body=response.text,
            )

        return access_token
