from typing import Any, Dict, List, Optional, TypedDict


class CatalogSearchItem(TypedDict):
    ebay_item_id: str
    title: str
    price: str
    image_url: Optional[str]
    item_web_url: Optional[str]


def to_search_item(raw: Dict[str, Any]) -> CatalogSearchItem:
    """Reduce a Browse item summary to the fields a sponsor needs to curate it."""
    return {
        "ebay_item_id": raw.get("itemId"),
        "title": raw.get("title"),
        "price": (raw.get("price") or {}).get("value") or "0.00",
        "image_url": (raw.get("image") or {}).get("imageUrl"),
        "item_web_url": raw.get("itemWebUrl"),
    }


class ProviderInterface:
    name = "base"

    def search(self, query: str, limit: int) -> List[CatalogSearchItem]:
        raise NotImplementedError
