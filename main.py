"""
Entry point: Discover -> Fetch -> Compare -> Report
Run: python main.py https://www.autodoc.de Bosch "febi bilstein"
"""

import argparse
import os
import sys

import analysis
import config
import loaders
import report
from progress import ProgressReporter, Stage, console_listener


def build_source(catalog=None, offline=False):
    """Static catalog when offline or without an API key, else Tavily with fallback."""
    if catalog:
        source = loaders.load_catalog_csv(catalog)
        print(f"  [OK] catalog: {len(source.brands)} brands ({catalog})")
        return source

    fallback = loaders.StaticCatalogSource.from_config()
    if os.path.exists(config.CATALOG_CSV):
        fallback = loaders.load_catalog_csv(config.CATALOG_CSV)

    if offline or not config.TAVILY_API_KEY:
        print("  [SKIP] live search: offline mode or no TAVILY_API_KEY")
        return fallback
    return loaders.TavilySource(fallback=fallback)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Compare the catalogs of two brands on a parts store.")
    parser.add_argument("store_url", nargs="?", default=config.DEFAULT_STORE_URL)
    parser.add_argument("brand1", nargs="?")
    parser.add_argument("brand2", nargs="?")
    parser.add_argument("--catalog", help="CSV export to use instead of live search")
    parser.add_argument("--offline", action="store_true", help="never call the search API")
    parser.add_argument("--strategy", choices=["first", "exclusive"], default=config.MATCH_STRATEGY)
    parser.add_argument("--report", default=config.REPORT_FILE, help="Excel report path")
    parser.add_argument("--list-brands", action="store_true", help="only list discovered brands")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    print("=" * 60)
    print("BRAND GAP ANALYSIS")
    print("=" * 60)

    print("\n1. Preparing data source...")
    source = build_source(args.catalog, args.offline)

    if args.list_brands or not (args.brand1 and args.brand2):
        print(f"\nBrands on {args.store_url}:")
        for brand in source.discover_brands(args.store_url):
            print(f"  - {brand.name}")
        if not args.list_brands:
            print("\nPass two brand names to run the comparison.")
        return 0

    print(f"\n2. Comparing {args.brand1} vs {args.brand2}...")
    reporter = ProgressReporter([console_listener])
    result = analysis.run_analysis(
        source, args.store_url, args.brand1, args.brand2,
        reporter=reporter, strategy=args.strategy,
    )

    if reporter.snapshot.stage == Stage.ERROR:
        print(f"\n  [ERROR] {reporter.snapshot.error}")
        return 1

    report.generate_report(
        result, result.brand_a or args.brand1, result.brand_b or args.brand2, args.report)
    print("\nDone!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
