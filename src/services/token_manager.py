import time
from typing import Callable
import httpx
from loguru import logger
from pydantic import ValidationError
from .provider_gateway import rejection_from_body
from .storage import ConfigKeys, ConfigStoreBase
from ..core.config import Settings, settings as default_settings
from ..core.errors import NetworkError, ParseFailureError
from ..models.ocr_response import TokenResponse


class TokenManager:
    """
    Obtains and caches the OCR provider's bearer token.

    The cache lives in the injected config store under two keys (token and
    expiry epoch seconds); nothing is kept on the instance between calls.
    Concurrent callers may both refresh; each refresh yields a valid token
    and the last write wins.
    """

    def __init__(
        self,
        config_store: ConfigStoreBase,
        cfg: Settings | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config_store = config_store
        self.settings = cfg or default_settings
        self.clock = clock

    def _now(self) -> int:
        return int(self.clock())

    def get_cached_token(self) -> str | None:
        """Cached token if it is still outside the refresh margin, else None"""
        token = self.config_store.get(ConfigKeys.BAIDU_OCR_ACCESS_TOKEN)
        expires = self.config_store.get(ConfigKeys.BAIDU_OCR_TOKEN_EXPIRES)
        if token is None or expires is None:
            return None

        try:
            expires_at = int(expires)
        except ValueError:
            logger.warning("Ignoring unparsable token expiry", expires=expires)
            return None

        if self._now() < expires_at - self.settings.token_refresh_margin_seconds:
            return token
        return None

    async def get_access_token(self, api_key: str, secret_key: str) -> str:
        cached = self.get_cached_token()
        if cached is not None:
            logger.debug("Using cached OCR access token")
            return cached
        return await self.refresh_token(api_key, secret_key)

    async def refresh_token(self, api_key: str, secret_key: str) -> str:
        """Fetch a new token and write it, with its absolute expiry, to the config store"""
        params = {
            "grant_type": "client_credentials",
            "client_id": api_key,
            "client_secret": secret_key,
        }

        logger.info("Refreshing OCR access token", url=self.settings.baidu_token_url)
        try:
            async with httpx.AsyncClient(timeout=self.settings.request_timeout_seconds) as client:
                r = await client.post(self.settings.baidu_token_url, params=params)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Token request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Token request failed: {e}") from e

        body = r.text
        if not r.is_success:
            logger.warning("Token endpoint returned error status", http_status=r.status_code)
            raise rejection_from_body(body)

        try:
            token_resp = TokenResponse.model_validate_json(body)
        except ValidationError as e:
            raise ParseFailureError(f"Cannot parse token response: {e}") from e

        if token_resp.expires_in <= 0:
            raise ParseFailureError(f"Token response has non-positive expires_in: {token_resp.expires_in}")

        expires_at = self._now() + token_resp.expires_in
        self.config_store.set(
            ConfigKeys.BAIDU_OCR_ACCESS_TOKEN,
            token_resp.access_token,
            "Baidu OCR access token",
        )
        self.config_store.set(
            ConfigKeys.BAIDU_OCR_TOKEN_EXPIRES,
            str(expires_at),
            "Token expiry (epoch seconds)",
        )

        logger.info("OCR access token refreshed", expires_at=expires_at)
        return token_resp.access_token
