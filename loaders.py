"""
Brand and product sources.
Live data comes from the Tavily search API; offline data from a static catalog
(CSV export or the configured fallback brand list).
"""

import hashlib
import re
from urllib.parse import urlparse

import pandas as pd
import requests
from thefuzz import fuzz

import config
from models import Brand, Product


class SourceError(Exception):
    """The data provider could not deliver brands or products."""


def _clean_price(value):
    """Clean price: remove currency symbols, spaces, thousands separators."""
    if value is None or pd.isna(value):
        return None
    s = str(value).strip()
    # "1,234" / "$1,234.50" use the comma for thousands; "45,99" for decimals
    if re.search(r",\d{3}(?!\d)", s):
        s = s.replace(",", "")
    else:
        s = s.replace(",", ".")
    s = re.sub(r"[^\d.]", "", s)
    # "1.234.56" -> keep the last dot as decimal separator
    if s.count(".") > 1:
        head, _, tail = s.rpartition(".")
        s = head.replace(".", "") + "." + tail
    try:
        return round(float(s), 2)
    except ValueError:
        return None


def _clean_text(value):
    """Clean text: remove extra spaces."""
    if value is None or pd.isna(value):
        return ""
    return " ".join(str(value).split())


def _clean_availability(value):
    """'Available' / 'Out of Stock' / yes / no -> True, False or None."""
    text = _clean_text(value).lower()
    if not text:
        return None
    if text in ("available", "in stock", "yes", "true", "1"):
        return True
    if text in ("out of stock", "unavailable", "no", "false", "0"):
        return False
    return None


def _slug(name):
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def _domain(store_url):
    return urlparse(store_url).hostname or store_url


# ============================================================
# STATIC CATALOG
# ============================================================

class StaticCatalogSource:
    """Brands and products known up front; no network access."""

    def __init__(self, brands, products_by_brand=None):
        self.brands = list(brands)
        self.products_by_brand = {
            name.lower(): list(products) for name, products in (products_by_brand or {}).items()
        }

    @classmethod
    def from_config(cls, store_url=None):
        """Fallback brand list from config, without products."""
        store_url = store_url or config.DEFAULT_STORE_URL
        brands = [
            Brand(
                id=f"brand_{idx}",
                name=name,
                website=store_url,
                description=f"Automotive parts and components from {name}",
            )
            for idx, name in enumerate(config.FALLBACK_BRANDS, start=1)
        ]
        return cls(brands)

    def discover_brands(self, query=None):
        return list(self.brands)

    def fetch_products(self, brand_name, store_url=None):
        return list(self.products_by_brand.get(brand_name.lower(), []))


def _normalize(df, column_map, source_name):
    """Rename catalog columns to the Product fields and clean values."""
    available = {k: v for k, v in column_map.items() if k in df.columns}
    required = {"name", "category", "brand"}
    missing = required - set(available.values())
    if missing:
        raise ValueError(
            f"Required columns missing in {source_name}: {sorted(missing)}. "
            f"Expected: {list(column_map.keys())}. "
            f"Found: {list(df.columns)}"
        )

    df = df.rename(columns=available)
    for col in column_map.values():
        if col not in df.columns:
            df[col] = None

    df["name"] = df["name"].apply(_clean_text)
    df["category"] = df["category"].apply(_clean_text)
    df["brand"] = df["brand"].apply(_clean_text)
    df["price"] = df["price"].apply(_clean_price)
    df["availability"] = df["availability"].apply(_clean_availability)

    df = df[(df["name"].str.len() > 0) & (df["brand"].str.len() > 0)]
    return df[list(column_map.values())].reset_index(drop=True)


def load_catalog_csv(path=None, store_url=None):
    """
    Load a catalog CSV export (one row per product, any number of brands).
    Returns a StaticCatalogSource.
    """
    path = path or config.CATALOG_CSV
    store_url = store_url or config.DEFAULT_STORE_URL
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df = _normalize(df, config.CATALOG_COLUMNS, path)

    brands = []
    products_by_brand = {}
    for brand_name, group in df.groupby("brand", sort=False):
        categories = tuple(sorted(set(group["category"])))
        brands.append(Brand(
            id=f"brand_{len(brands) + 1}",
            name=brand_name,
            website=store_url,
            description=f"Automotive parts and components from {brand_name}",
            categories=categories,
        ))
        products = []
        for idx, record in enumerate(group.to_dict("records"), start=1):
            if not record.get("id"):
                record["id"] = f"{_slug(brand_name)}-{idx}"
            products.append(Product.from_dict(record))
        products_by_brand[brand_name] = products

    return StaticCatalogSource(brands, products_by_brand)


# ============================================================
# TAVILY SEARCH
# ============================================================

BRAND_PATTERNS = [
    re.compile(r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)\s+(?:parts|components|automotive|auto)\b", re.I),
    re.compile(r"\b([A-Z]{2,}(?:-[A-Z]+)*)\s+(?:parts|components|automotive|auto)\b"),
]

PRICE_PATTERN = re.compile(r"(?:€|\$|£|EUR)\s*(\d+(?:[.,]\d{1,2})?)|(\d+(?:[.,]\d{1,2})?)\s*(?:€|EUR)")


def _product_code(url, keyword):
    """Stable six-character code for a search hit."""
    digest = hashlib.sha1(f"{url}|{keyword}".encode("utf-8")).hexdigest()
    return digest[:6].upper()


def _find_price(text):
    m = PRICE_PATTERN.search(text)
    if not m:
        return None
    return _clean_price(m.group(1) or m.group(2))


def _dedupe_brands(names):
    """Drop names that are near-duplicates of one already kept."""
    kept = []
    for name in names:
        if any(fuzz.ratio(name.lower(), other.lower()) >= config.FUZZY_MATCH_THRESHOLD for other in kept):
            continue
        kept.append(name)
    return kept


def extract_brand_names(results):
    """Brand names mentioned in Tavily search results, known brands first."""
    content = " ".join(f"{r.get('title', '')} {r.get('content', '')}" for r in results).lower()
    found = [brand for brand in config.KNOWN_BRANDS if brand.lower() in content]

    for result in results:
        text = f"{result.get('title', '')} {result.get('content', '')}"
        for pattern in BRAND_PATTERNS:
            for m in pattern.finditer(text):
                name = m.group(1).strip()
                if 2 < len(name) < 30:
                    found.append(name)

    return _dedupe_brands(found)[:config.MAX_BRANDS]


def extract_products(results, brand_name):
    """Products for brand_name found in Tavily search results."""
    products = []
    brand_slug = _slug(brand_name)
    for r_idx, result in enumerate(results):
        text = f"{result.get('title', '')} {result.get('content', '')}"
        lowered = text.lower()
        url = result.get("url", "")
        price = _find_price(text)
        for t_idx, keyword in enumerate(k for k in config.PRODUCT_TYPES if k in lowered):
            if len(products) >= config.MAX_PRODUCTS_PER_BRAND:
                return products
            products.append(Product(
                id=f"{brand_slug}_{keyword.replace(' ', '')}_{r_idx}_{t_idx}",
                name=f"{brand_name} {keyword.title()} {_product_code(url, keyword)}",
                category=config.PRODUCT_TYPES[keyword],
                brand=brand_name,
                price=price,
                url=url or None,
                description=f"{keyword.capitalize()} from {brand_name}",
            ))
    return products


class TavilySource:
    """Brand and product discovery through the Tavily search API."""

    def __init__(self, api_key=None, fallback=None, session=None):
        self.api_key = api_key or config.TAVILY_API_KEY
        self.fallback = fallback or StaticCatalogSource.from_config()
        self.session = session or requests

    def search(self, query, domain=None):
        """Run one search; returns the list of result dicts."""
        if not self.api_key:
            raise SourceError("No Tavily API key. Set TAVILY_API_KEY in the environment")

        payload = {
            "api_key": self.api_key,
            "query": f"site:{domain} {query}" if domain else query,
            "search_depth": config.TAVILY_SEARCH_DEPTH,
            "include_answer": False,
            "include_images": False,
            "include_raw_content": False,
            "max_results": config.TAVILY_MAX_RESULTS,
        }
        try:
            resp = self.session.post(config.TAVILY_API_URL, json=payload, timeout=config.TAVILY_TIMEOUT)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise SourceError(f"Tavily API error: {e}") from e

        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise SourceError(f"Unexpected Tavily response: {data!r}"[:200])
        if not all(isinstance(r, dict) for r in results):
            raise SourceError(f"Unexpected Tavily result items: {results!r}"[:200])
        return results

    def discover_brands(self, store_url):
        """Brands sold on store_url; falls back to the static catalog."""
        domain = _domain(store_url)
        try:
            results = self.search(f"automotive parts brands {domain}", domain)
        except SourceError as e:
            print(f"  [WARN] brand discovery: {e}")
            print("  [OK] using fallback brand list")
            return self.fallback.discover_brands(store_url)

        names = extract_brand_names(results)
        if not names:
            print("  [WARN] no brands found in search results, using fallback brand list")
            return self.fallback.discover_brands(store_url)

        print(f"  [OK] discovered {len(names)} brands on {domain}")
        return [
            Brand(
                id=f"brand_{idx}",
                name=name,
                website=store_url,
                description=f"Automotive parts and components from {name}",
            )
            for idx, name in enumerate(names, start=1)
        ]

    def fetch_products(self, brand_name, store_url):
        """Products of one brand on store_url. Raises SourceError on API failure."""
        domain = _domain(store_url)
        results = self.search(f"{brand_name} automotive parts products prices", domain)
        products = extract_products(results, brand_name)
        print(f"  [OK] {brand_name}: {len(products)} products from {len(results)} results")
        return products
