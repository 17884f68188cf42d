"""External Identity — verifies Google ID tokens via the tokeninfo endpoint.

Invariants:
    - A verified identity always has a non-empty external id (sub) and email
    - The token audience must equal the configured client id
    - Network and provider failures surface as ExternalIdentityError, never raw httpx errors
"""

import logging
from dataclasses import dataclass

import httpx

from marketplace.config import Settings, get_settings
from marketplace.core.errors import ConfigurationError, ExternalIdentityError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExternalIdentity:
    external_id: str
    email: str
    display_name: str | None = None


class GoogleIdentityVerifier:
    """Resolves a Google ID token into an ExternalIdentity."""

    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None):
        self._settings = settings or get_settings()
        self._client = client

    async def verify(self, id_token: str) -> ExternalIdentity:
        client_id = self._settings.google_client_id
        if not client_id:
            raise ConfigurationError("Server configuration error: Missing Google Client ID")

        payload = await self._fetch_token_info(id_token)
        if payload.get("aud") != client_id:
            raise ExternalIdentityError("Invalid Google token")

        email = payload.get("email")
        sub = payload.get("sub")
        if not email or not sub:
            raise ExternalIdentityError("Invalid Google token payload")
        return ExternalIdentity(external_id=sub, email=email, display_name=payload.get("name"))

    async def _fetch_token_info(self, id_token: str) -> dict:
        params = {"id_token": id_token}
        try:
            if self._client is not None:
                response = await self._client.get(self._settings.google_tokeninfo_url, params=params)
            else:
                async with httpx.AsyncClient(timeout=self._settings.google_timeout_seconds) as client:
                    response = await client.get(self._settings.google_tokeninfo_url, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"Google tokeninfo request failed: {e}")
            raise ExternalIdentityError("Google login failed")

        if response.status_code != 200:
            raise ExternalIdentityError("Invalid Google token")
        return response.json()


def get_identity_verifier() -> GoogleIdentityVerifier:
    """FastAPI dependency; overridden in tests."""
    return GoogleIdentityVerifier()
