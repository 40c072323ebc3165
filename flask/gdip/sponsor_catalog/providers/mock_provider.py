# gdip/sponsor_catalog/providers/mock_provider.py
from __future__ import annotations

import logging
from typing import Any, Dict, List

from .provider_interface import CatalogSearchItem, ProviderInterface, to_search_item

logger = logging.getLogger(__name__)

# Browse item_summary shape, so both providers share one mapper
MOCK_ITEMS: List[Dict[str, Any]] = [
    {
        "itemId": "v1|111111111111|0",
        "title": "iPhone 13 Pro 128GB Graphite Unlocked",
        "image": {"imageUrl": "https://i.ebayimg.com/images/g/test1/s-l500.jpg"},
        "price": {"value": "599.00", "currency": "USD"},
        "itemWebUrl": "https://www.ebay.com/itm/111111111111",
    },
    {
        "itemId": "v1|222222222222|0",
        "title": "Sony WH-1000XM5 Wireless Noise Cancelling Headphones",
        "image": {"imageUrl": "https://i.ebayimg.com/images/g/test2/s-l500.jpg"},
        "price": {"value": "348.00", "currency": "USD"},
        "itemWebUrl": "https://www.ebay.com/itm/222222222222",
    },
    {
        "itemId": "v1|333333333333|0",
        "title": 'MacBook Air M2 13.6" 8GB 256GB Midnight',
        "image": {"imageUrl": "https://i.ebayimg.com/images/g/test3/s-l500.jpg"},
        "price": {"value": "1099.00", "currency": "USD"},
        "itemWebUrl": "https://www.ebay.com/itm/333333333333",
    },
]


class MockCatalogProvider(ProviderInterface):
    """In-memory stand-in used when no eBay credentials are configured."""

    name = "mock"

    def __init__(self, items: List[Dict[str, Any]] = None):
        self.items = list(MOCK_ITEMS if items is None else items)

    def search(self, query: str, limit: int) -> List[CatalogSearchItem]:
        needle = (query or "").strip().lower()
        logger.info("[MOCK PROVIDER] search q=%r limit=%s", needle, limit)
        matches = [it for it in self.items if needle in (it.get("title") or "").lower()]
        return [to_search_item(it) for it in matches[: max(1, int(limit))]]
