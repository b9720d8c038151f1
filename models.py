"""Records exchanged between the source, the comparison engine and the report."""

from dataclasses import dataclass, field, asdict
from typing import Optional

import pandas as pd


def _is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and pd.isna(value):
        return True
    return isinstance(value, str) and not value.strip()


@dataclass(frozen=True)
class Product:
    """One catalog item offered by a brand."""

    id: str
    name: str
    category: str
    brand: str
    price: Optional[float] = None  # None = unknown, not free
    availability: Optional[bool] = None
    url: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        """Build from a plain record; missing optional fields become None."""
        price = data.get("price")
        availability = data.get("availability")
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "") or ""),
            category=str(data.get("category", "") or ""),
            brand=str(data.get("brand", "") or ""),
            price=None if _is_missing(price) else float(price),
            availability=None if _is_missing(availability) else bool(availability),
            url=None if _is_missing(data.get("url")) else data["url"],
            description=None if _is_missing(data.get("description")) else data["description"],
            image_url=None if _is_missing(data.get("image_url")) else data["image_url"],
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Brand:
    """A manufacturer found on the store website."""

    id: str
    name: str
    website: str
    description: Optional[str] = None
    categories: tuple = ()


@dataclass(frozen=True)
class MatchedPair:
    product_a: Product
    product_b: Product
    price_difference: Optional[float] = None

    @classmethod
    def create(cls, product_a: Product, product_b: Product) -> "MatchedPair":
        """Pair two products; price difference is A minus B when both are known."""
        diff = None
        if product_a.price is not None and product_b.price is not None:
            diff = round(product_a.price - product_b.price, 2)
        return cls(product_a, product_b, diff)


@dataclass(frozen=True)
class GapSummary:
    total_a: int = 0
    total_b: int = 0
    unique_a_count: int = 0
    unique_b_count: int = 0
    common_count: int = 0


@dataclass(frozen=True)
class GapAnalysisResult:
    """Terminal output of one analysis run."""

    products_a: tuple = ()
    products_b: tuple = ()
    unique_to_a: tuple = ()
    unique_to_b: tuple = ()
    common: tuple = ()
    categories: tuple = ()
    summary: GapSummary = field(default_factory=GapSummary)
    brand_a: str = ""
    brand_b: str = ""
