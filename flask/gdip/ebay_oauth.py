# gdip/ebay_oauth.py
import base64
import logging
import threading
import time
from typing import Callable, Optional

import requests

from .errors import UpstreamError

logger = logging.getLogger(__name__)

SANDBOX_TOKEN_URL = "https://api.sandbox.ebay.com/identity/v1/oauth2/token"
PRODUCTION_TOKEN_URL = "https://api.ebay.com/identity/v1/oauth2/token"
API_SCOPE = "https://api.ebay.com/oauth/api_scope"


class EbayTokenCache:
    """
    Client-credentials ("application") token for the eBay Browse API.

    - Token is reused until `expires_in` minus a safety margin has elapsed
    - Refresh is single-flight: the lock is taken and the expiry re-checked
    - One instance lives per app (see get_search_provider) rather than per module
    """

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        env: str = "SANDBOX",
        safety_margin: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.env = (env or "SANDBOX").upper()
        self.safety_margin = safety_margin
        self._clock = clock
        self._lock = threading.Lock()
        self.token: Optional[str] = None
        self.token_expires_at: Optional[float] = None

        if self.env == "SANDBOX":
            self.token_url = SANDBOX_TOKEN_URL
        else:
            self.token_url = PRODUCTION_TOKEN_URL

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def get_token(self) -> str:
        """Get the current OAuth token, refreshing if necessary."""
        if not self._is_token_expired():
            return self.token
        with self._lock:
            # Double-check after acquiring lock
            if self._is_token_expired():
                self._refresh_token()
        return self.token

    def invalidate(self) -> None:
        with self._lock:
            self.token = None
            self.token_expires_at = None

    def _is_token_expired(self) -> bool:
        if not self.token or not self.token_expires_at:
            return True
        return self._clock() >= (self.token_expires_at - self.safety_margin)

    def _refresh_token(self) -> None:
        if not self.configured:
            logger.error("EBAY_CLIENT_ID or EBAY_CLIENT_SECRET not configured")
            raise UpstreamError("eBay credentials not configured")

        encoded_auth = base64.b64encode(f"{self.client_id}:{self.client_secret}".encode()).decode()
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Authorization": f"Basic {encoded_auth}",
        }
        data = {
            "grant_type": "client_credentials",
            "scope": API_SCOPE,
        }

        logger.info("[EBAY OAUTH] Refreshing token from %s", self.token_url)
        try:
            response = requests.post(self.token_url, headers=headers, data=data, timeout=30)
        except requests.RequestException as e:
            logger.error("[EBAY OAUTH] Token request failed: %s", e)
            raise UpstreamError("eBay token request failed")

        if response.status_code != 200:
            logger.error(
                "[EBAY OAUTH] Token refresh failed. Status: %s, Response: %s",
                response.status_code, response.text[:200],
            )
            raise UpstreamError("eBay token request failed")

        token_data = response.json()
        access_token = token_data.get("access_token")
        if not access_token:
            raise UpstreamError("eBay token response missing access_token")

        expires_in = int(token_data.get("expires_in", 7200))
        self.token = access_token
        self.token_expires_at = self._clock() + expires_in
        logger.info("[EBAY OAUTH] Token refreshed, expires in %s seconds", expires_in)
