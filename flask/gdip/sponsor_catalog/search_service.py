# gdip/sponsor_catalog/search_service.py
from __future__ import annotations

import logging
from typing import List

from flask import current_app

from gdip.ebay_oauth import EbayTokenCache
from gdip.errors import ValidationError

from .providers.ebay_provider import EbayBrowseProvider
from .providers.mock_provider import MockCatalogProvider
from .providers.provider_interface import CatalogSearchItem, ProviderInterface

logger = logging.getLogger(__name__)

EXTENSION_KEY = "gdip_search_provider"
QUERY_MAX_LENGTH = 200


def build_search_provider(config) -> ProviderInterface:
    """Provider named by EBAY_PROVIDER; the token cache is built here and injected."""
    name = (config.get("EBAY_PROVIDER") or "mock").lower()
    if name == "mock":
        return MockCatalogProvider()
    if name == "ebay":
        token_cache = EbayTokenCache(
            config.get("EBAY_CLIENT_ID"),
            config.get("EBAY_CLIENT_SECRET"),
            env=config.get("EBAY_ENV", "SANDBOX"),
        )
        if not token_cache.configured:
            logger.warning("[CATALOG SEARCH] EBAY_PROVIDER=ebay but client credentials are missing")
        return EbayBrowseProvider(
            token_cache,
            env=config.get("EBAY_ENV", "SANDBOX"),
            marketplace_id=config.get("EBAY_MARKETPLACE_ID"),
        )
    raise ValueError(f"Unknown EBAY_PROVIDER: {name!r}")


def init_search_provider(app) -> ProviderInterface:
    provider = build_search_provider(app.config)
    app.extensions[EXTENSION_KEY] = provider
    app.logger.info("[CATALOG SEARCH] using %s provider", provider.name)
    return provider


def get_search_provider() -> ProviderInterface:
    provider = current_app.extensions.get(EXTENSION_KEY)
    if provider is None:
        provider = init_search_provider(current_app)
    return provider


def search_marketplace(query) -> List[CatalogSearchItem]:
    if not isinstance(query, str) or not query.strip():
        raise ValidationError("Search keyword is required")
    query = query.strip()[:QUERY_MAX_LENGTH]
    limit = current_app.config.get("EBAY_SEARCH_LIMIT", 12)
    return get_search_provider().search(query, limit)
