import json
import logging
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlencode

import aiohttp

logger = logging.getLogger(__name__)

TOKEN_PATH = "/platform/app/oauth/token/"
CURRENT_USER_PATH = "/platform/User/GetCurrentBungieNetUser/"
AUTHORIZE_PATH = "/en/OAuth/Authorize"

GENERIC_ERROR_MESSAGE = "An unexpected error occurred during verification."
AUTH_FAILED_MESSAGE = "Authentication failed. Please try again."


class BungieAPIError(Exception):
    """Raised when Bungie.net answers with a non-2xx status or an unusable body."""

    def __init__(self, message: str, status: Optional[int] = None, payload=None):
        super().__init__(message)
        self.status = status
        self.payload = payload

    @property
    def user_message(self) -> str:
        if self.status == 401:
            return AUTH_FAILED_MESSAGE
        if isinstance(self.payload, dict) and self.payload.get("error_description"):
            return self.payload["error_description"]
        return GENERIC_ERROR_MESSAGE


@dataclass(frozen=True)
class BungieIdentity:
    display_name: Optional[str]
    code: Optional[Union[int, str]] = None

    @property
    def composite(self) -> Optional[str]:
        """`name#code` when both parts are present, else the bare name (or None)."""
        if not self.display_name:
            return None
        if self.code is None or self.code == "":
            return self.display_name
        return f"{self.display_name}#{self.code}"


async def _read_payload(response: aiohttp.ClientResponse):
    text = await response.text()
    try:
        return json.loads(text)
    except ValueError:
        return text or None


class BungieClient:
    def __init__(
        self,
        client_id: str,
        api_key: str,
        redirect_uri: str,
        client_secret: Optional[str] = None,
        base_url: str = "https://www.bungie.net",
        timeout: float = 10.0,
        legacy_display_name: bool = False,
    ):
        self.client_id = client_id
        self.api_key = api_key
        self.redirect_uri = redirect_uri
        self.client_secret = client_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.legacy_display_name = legacy_display_name

    @classmethod
    def from_settings(cls, settings) -> "BungieClient":
        return cls(
            client_id=settings.bungie_client_id,
            api_key=settings.bungie_api_key,
            redirect_uri=settings.redirect_uri,
            client_secret=settings.bungie_client_secret,
            base_url=settings.bungie_base_url,
            timeout=settings.http_timeout,
            legacy_display_name=settings.legacy_display_name,
        )

    def authorize_url(self, nickname: str) -> str:
        query = urlencode(
            {"client_id": self.client_id, "response_type": "code", "state": nickname}
        )
        return f"{self.base_url}{AUTHORIZE_PATH}?{query}"

    async def exchange_code(self, code: str) -> str:
        form = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.client_id,
        }
        if self.client_secret:
            form["client_secret"] = self.client_secret
        form["redirect_uri"] = self.redirect_uri

        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "X-API-Key": self.api_key,
        }

        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.post(
                f"{self.base_url}{TOKEN_PATH}", data=form, headers=headers
            ) as response:
                payload = await _read_payload(response)
                if response.status // 100 != 2:
                    logger.error(f"Token exchange failed with status {response.status}: {payload}")
                    raise BungieAPIError(
                        "Token exchange failed", status=response.status, payload=payload
                    )

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            raise BungieAPIError("Failed to get access token", status=response.status)
        return access_token

    async def fetch_identity(self, access_token: str) -> BungieIdentity:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "X-API-Key": self.api_key,
        }

        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.get(
                f"{self.base_url}{CURRENT_USER_PATH}", headers=headers
            ) as response:
                payload = await _read_payload(response)
                if response.status // 100 != 2:
                    logger.error(f"Current user lookup failed with status {response.status}: {payload}")
                    raise BungieAPIError(
                        "Current user lookup failed", status=response.status, payload=payload
                    )

        user = payload.get("Response") if isinstance(payload, dict) else None
        if not isinstance(user, dict):
            user = {}

        if self.legacy_display_name:
            return BungieIdentity(display_name=user.get("displayName"))

        return BungieIdentity(
            display_name=user.get("bungieGlobalDisplayName"),
            code=user.get("bungieGlobalDisplayNameCode"),
        )
