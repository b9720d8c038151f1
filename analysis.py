"""
One brand-vs-brand analysis run: discover brands, fetch both catalogs,
compare. Progress is narrated through a ProgressReporter.
"""

import comparator
from loaders import SourceError
from progress import ProgressReporter


class AnalysisError(Exception):
    """The run cannot proceed with the given inputs."""


def _resolve_brand(name, brands):
    """Display spelling of name among the discovered brands, else name as given."""
    for brand in brands:
        if brand.name.lower() == name.lower():
            return brand.name
    return name


def run_analysis(source, store_url, brand1, brand2, reporter=None, strategy=None):
    """
    Run the full pipeline against source.
    Returns a GapAnalysisResult, or None when the run ended in error (the
    reporter's last snapshot then carries the message).
    """
    reporter = reporter or ProgressReporter()

    try:
        reporter.start_discovery(store_url)
        brands = source.discover_brands(store_url)
        reporter.finish_discovery(len(brands))

        if brand1.strip().lower() == brand2.strip().lower():
            raise AnalysisError("Please select two different brands to compare.")

        names = [_resolve_brand(brand1, brands), _resolve_brand(brand2, brands)]
        catalogs = []
        for slot, name in enumerate(names, start=1):
            reporter.start_brand(slot, name)
            products = source.fetch_products(name, store_url)
            reporter.finish_brand(slot, len(products))
            catalogs.append(products)
    except (SourceError, AnalysisError) as e:
        reporter.fail(str(e))
        return None
    except Exception as e:
        # leave an error snapshot behind before propagating
        if not reporter.snapshot.is_terminal:
            reporter.fail(f"Unexpected source error: {type(e).__name__}: {e}")
        raise

    reporter.finalize()
    result = comparator.analyze_gap(
        catalogs[0], catalogs[1], strategy=strategy, brand_a=names[0], brand_b=names[1])
    reporter.complete(result)
    return result
