"""
Gap analysis engine for two brand catalogs.
Partition both product lists into unique and common products, then build
pandas frames for the report.
"""

from dataclasses import fields

import pandas as pd

import config
from matcher import is_match, shared_tokens
from models import GapAnalysisResult, GapSummary, MatchedPair, Product

STRATEGIES = ("first", "exclusive")

PRODUCT_COLUMNS = [f.name for f in fields(Product)]


def _first_match(product, candidates, taken=None):
    """First candidate matching product, in candidate order."""
    for idx, candidate in enumerate(candidates):
        if taken is not None and idx in taken:
            continue
        if is_match(product, candidate):
            return idx, candidate
    return None, None


def _match_first(products_a, products_b):
    """
    Two independent passes: A looks for its first match in B, then B looks
    for its first match in A. Only the first pass produces pairs.
    """
    unique_a, common = [], []
    for a in products_a:
        _, b = _first_match(a, products_b)
        if b is None:
            unique_a.append(a)
        else:
            common.append(MatchedPair.create(a, b))

    unique_b = []
    for b in products_b:
        _, a = _first_match(b, products_a)
        if a is None:
            unique_b.append(b)

    return unique_a, unique_b, common


def _match_exclusive(products_a, products_b):
    """Greedy one-to-one assignment in A order; each B product pairs once."""
    unique_a, common = [], []
    taken = set()
    for a in products_a:
        idx, b = _first_match(a, products_b, taken)
        if b is None:
            unique_a.append(a)
        else:
            taken.add(idx)
            common.append(MatchedPair.create(a, b))

    unique_b = [b for idx, b in enumerate(products_b) if idx not in taken]
    return unique_a, unique_b, common


def analyze_gap(products_a, products_b, strategy=None, brand_a="", brand_b=""):
    """
    Compare two brand catalogs.
    Returns a GapAnalysisResult; never fails for empty lists.
    brand_a/brand_b are display names carried through for the report.
    """
    strategy = strategy or config.MATCH_STRATEGY
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown match strategy: {strategy!r}. Expected one of {STRATEGIES}")

    products_a = tuple(products_a)
    products_b = tuple(products_b)

    if strategy == "exclusive":
        unique_a, unique_b, common = _match_exclusive(products_a, products_b)
    else:
        unique_a, unique_b, common = _match_first(products_a, products_b)

    categories = sorted({p.category for p in products_a} | {p.category for p in products_b})

    return GapAnalysisResult(
        products_a=products_a,
        products_b=products_b,
        unique_to_a=tuple(unique_a),
        unique_to_b=tuple(unique_b),
        common=tuple(common),
        categories=tuple(categories),
        summary=GapSummary(
            total_a=len(products_a),
            total_b=len(products_b),
            unique_a_count=len(unique_a),
            unique_b_count=len(unique_b),
            common_count=len(common),
        ),
        brand_a=brand_a,
        brand_b=brand_b,
    )


# ============================================================
# FRAMES FOR REPORTING
# ============================================================

def products_frame(products):
    """DataFrame with one row per product."""
    return pd.DataFrame([p.to_dict() for p in products], columns=PRODUCT_COLUMNS)


def common_frame(result):
    """
    One row per matched pair: names, prices, price_diff (A minus B) and the
    tokens the match was decided on.
    """
    rows = []
    for pair in result.common:
        a, b = pair.product_a, pair.product_b
        rows.append({
            "category": a.category,
            "name_a": a.name,
            "name_b": b.name,
            "price_a": a.price,
            "price_b": b.price,
            "price_diff": pair.price_difference,
            "shared_tokens": " ".join(shared_tokens(a, b)),
        })
    columns = ["category", "name_a", "name_b", "price_a", "price_b", "price_diff", "shared_tokens"]
    return pd.DataFrame(rows, columns=columns)


def category_breakdown(result):
    """
    Per-category counts. A matched pair is counted under the category of its
    A product (both products share it by construction).
    """
    columns = ["total_a", "total_b", "unique_a", "unique_b", "common"]
    frame = pd.DataFrame(0, index=pd.Index(list(result.categories), name="category"), columns=columns)
    if frame.empty:
        return frame

    counts = {
        "total_a": [p.category for p in result.products_a],
        "total_b": [p.category for p in result.products_b],
        "unique_a": [p.category for p in result.unique_to_a],
        "unique_b": [p.category for p in result.unique_to_b],
        "common": [pair.product_a.category for pair in result.common],
    }
    for col, cats in counts.items():
        if cats:
            tally = pd.Series(cats).value_counts()
            frame[col] = tally.reindex(frame.index, fill_value=0).astype(int)
    return frame


def price_leaders(result, limit=None):
    """Matched pairs with the largest absolute price difference, largest first."""
    limit = config.PRICE_LEADERS_LIMIT if limit is None else limit
    priced = [pair for pair in result.common if pair.price_difference is not None]
    priced.sort(key=lambda pair: abs(pair.price_difference), reverse=True)
    return priced[:limit]
