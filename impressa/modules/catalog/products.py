from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from impressa.modules.cart.pricing import safe_number

PLACEHOLDER_IMAGE = "/static/placeholder.svg"

CATEGORIES = [
    {"id": "all", "label": "All Products"},
    {"id": "clothing", "label": "Clothing"},
    {"id": "bags", "label": "Bags"},
    {"id": "hoodie", "label": "Hoodies"},
]

COLORS = ["black", "navy", "white", "brown", "burgundy", "rose gold"]

SORT_OPTIONS = [
    ("featured", "Featured"),
    ("price-low", "Price: Low to High"),
    ("price-high", "Price: High to Low"),
    ("name", "Name"),
]

QUANTITY_CHOICES = range(1, 11)


@dataclass
class Product:
    id: str
    title: str = ""
    category: Optional[str] = None
    price: float = 0.0
    description: str = ""
    image_url: Optional[str] = None
    image_urls: List[str] = field(default_factory=list)
    colors: List[str] = field(default_factory=list)
    sizes: List[str] = field(default_factory=list)
    customizable: bool = False
    in_stock: bool = True

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "Product":
        def str_list(value) -> List[str]:
            return [str(v) for v in value if v is not None] if isinstance(value, list) else []

        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            title=str(data.get("title") or ""),
            category=data.get("category") or None,
            price=safe_number(data.get("price")),
            description=str(data.get("description") or ""),
            image_url=data.get("imageUrl") or None,
            image_urls=str_list(data.get("imageUrls")),
            colors=str_list(data.get("colors")),
            sizes=str_list(data.get("sizes")),
            customizable=data.get("customizable") is True,
            in_stock=data.get("inStock") is not False,
        )

    @property
    def images(self) -> List[str]:
        if self.image_urls:
            return self.image_urls
        if self.image_url:
            return [self.image_url]
        return [PLACEHOLDER_IMAGE]

    @property
    def item_type(self) -> str:
        return self.category or "product"

    @property
    def default_color(self) -> str:
        return self.colors[0] if self.colors else ""

    @property
    def default_size(self) -> str:
        return self.sizes[0] if self.sizes else ""


def filter_products(
    products: Iterable[Product],
    category: str = "all",
    colors: Sequence[str] = (),
    customizable_only: bool = False,
) -> List[Product]:
    category = (category or "all").lower()
    wanted = {c.lower() for c in colors}

    def matches(p: Product) -> bool:
        if category != "all" and (p.category or "").lower() != category:
            return False
        if wanted and not any(c.lower() in wanted for c in p.colors):
            return False
        if customizable_only and not p.customizable:
            return False
        return True

    return [p for p in products if matches(p)]


def sort_products(products: Iterable[Product], sort_by: str = "featured") -> List[Product]:
    products = list(products)
    if sort_by == "price-low":
        return sorted(products, key=lambda p: p.price)
    if sort_by == "price-high":
        return sorted(products, key=lambda p: p.price, reverse=True)
    if sort_by == "name":
        return sorted(products, key=lambda p: p.title.casefold())
    return products
