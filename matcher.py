"""
Cross-brand product matching.
Two products are the same part when they share a category and at least two
discriminative name tokens that are not part of either brand name.
"""

import config


def tokenize(name):
    """Split a product name on whitespace into lower-case tokens."""
    if not name:
        return set()
    return {token.lower() for token in name.split()}


def _is_brand_token(token, brand):
    return bool(brand) and token in brand.lower()


def shared_tokens(p1, p2):
    """Discriminative tokens common to both names, sorted."""
    common = tokenize(p1.name) & tokenize(p2.name)
    return sorted(
        token for token in common
        if len(token) >= config.MIN_TOKEN_LENGTH
        and not _is_brand_token(token, p1.brand)
        and not _is_brand_token(token, p2.brand)
    )


def is_match(p1, p2):
    """True when p1 and p2 denote the same underlying part."""
    if p1.category != p2.category:
        return False
    return len(shared_tokens(p1, p2)) >= config.MIN_SHARED_TOKENS
