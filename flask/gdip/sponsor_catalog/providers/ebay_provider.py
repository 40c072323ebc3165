# gdip/sponsor_catalog/providers/ebay_provider.py
from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from gdip.ebay_oauth import EbayTokenCache
from gdip.errors import UpstreamError

from .provider_interface import CatalogSearchItem, ProviderInterface, to_search_item

logger = logging.getLogger(__name__)

FIXED_PRICE_FILTER = "buyingOptions:{FIXED_PRICE}"


class EbayBrowseProvider(ProviderInterface):
    """
    eBay Browse item_summary/search, fixed-price listings only.

    Environment/config:
    - Env selection: SANDBOX (default) or PRODUCTION via EBAY_ENV
    - Marketplace: EBAY_MARKETPLACE_ID (defaults to EBAY_US)
    - Bearer token from the injected EbayTokenCache
    """

    name = "ebay"

    def __init__(
        self,
        token_cache: EbayTokenCache,
        env: str = "SANDBOX",
        marketplace_id: Optional[str] = None,
    ):
        self.token_cache = token_cache
        base = "https://api.sandbox.ebay.com" if (env or "SANDBOX").upper() == "SANDBOX" else "https://api.ebay.com"
        self.search_url = f"{base}/buy/browse/v1/item_summary/search"
        self.marketplace_id = marketplace_id or "EBAY_US"

        # Network timeout (seconds): 3s connect, 6s read
        self.timeout = (3, 6)

        self._session = None
        self._session_lock = Lock()

    def _get_session(self) -> requests.Session:
        """
        Lazily built requests Session with:
        - HTTP keep-alive (connection pooling)
        - Exponential backoff retry on 429/5xx (up to 2 retries)
        """
        if self._session is None:
            with self._session_lock:
                if self._session is None:
                    session = requests.Session()
                    retry_strategy = Retry(
                        total=2,
                        backoff_factor=0.5,
                        status_forcelist=[429, 500, 502, 503, 504],
                        allowed_methods=["GET"],
                    )
                    adapter = HTTPAdapter(max_retries=retry_strategy, pool_connections=10, pool_maxsize=20)
                    session.mount("http://", adapter)
                    session.mount("https://", adapter)
                    self._session = session
        return self._session

    def _headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "X-EBAY-C-MARKETPLACE-ID": self.marketplace_id,
            "Authorization": f"Bearer {self.token_cache.get_token()}",
        }

    def _get(self, params: Dict[str, Any]) -> requests.Response:
        return self._get_session().get(
            self.search_url,
            headers=self._headers(),
            params=params,
            timeout=self.timeout,
        )

    def search(self, query: str, limit: int) -> List[CatalogSearchItem]:
        params = {
            "q": query,
            "limit": max(1, min(200, int(limit))),
            "filter": FIXED_PRICE_FILTER,
        }
        try:
            r = self._get(params)
            if r.status_code == 401:
                # Token revoked or expired early; one retry with a fresh token
                logger.warning("[EBAY PROVIDER] 401 from Browse, refreshing token")
                self.token_cache.invalidate()
                r = self._get(params)
            r.raise_for_status()
            data = r.json()
        except requests.HTTPError as e:
            status = getattr(e.response, "status_code", None)
            text = (getattr(e.response, "text", "") or "")[:200]
            logger.error("[EBAY PROVIDER] HTTP error from eBay API: status=%s response_text=%s params=%s", status, text, params)
            raise UpstreamError("Failed to search eBay")
        except (requests.RequestException, ValueError) as e:
            logger.error("[EBAY PROVIDER] eBay search error: %s", e)
            raise UpstreamError("Failed to search eBay")

        raw_items = data.get("itemSummaries") or []
        logger.info("[EBAY PROVIDER] q=%r returned %s items", query, len(raw_items))
        return [to_search_item(it) for it in raw_items]
