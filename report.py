"""
Report generation: console output + Excel with tabs.
"""

import os
import re

import pandas as pd

import comparator
import config


# characters Excel refuses in sheet names
INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")
MAX_SHEET_NAME = 31


def _sheet_name(title, taken):
    """Excel-safe sheet name for title, unique (case-insensitive) among taken."""
    base = INVALID_SHEET_CHARS.sub("-", title)[:MAX_SHEET_NAME]
    name = base
    suffix = 2
    while name.lower() in {t.lower() for t in taken}:
        tail = f" ({suffix})"
        name = base[:MAX_SHEET_NAME - len(tail)] + tail
        suffix += 1
    taken.append(name)
    return name


def _money(value):
    return "N/A" if value is None or pd.isna(value) else f"€{value:.2f}"


def print_summary(result, brand1, brand2):
    """Print summary to console."""
    s = result.summary

    print("\n" + "=" * 60)
    print("GAP ANALYSIS SUMMARY")
    print("=" * 60)

    print(f"\nBrands:")
    print(f"  - {brand1}: {s.total_a} products")
    print(f"  - {brand2}: {s.total_b} products")

    print(f"\nCategories: {', '.join(result.categories) or '—'}")

    print(f"\nGaps:")
    print(f"  - Unique to {brand1}: {s.unique_a_count}")
    print(f"  - Unique to {brand2}: {s.unique_b_count}")
    print(f"  - Common products: {s.common_count}")

    leaders = comparator.price_leaders(result)
    if leaders:
        print(f"\nTop {len(leaders)} largest price differences:")
        for pair in leaders:
            a, b = pair.product_a, pair.product_b
            print(f"  {a.name[:40]} <-> {b.name[:40]}")
            print(f"    {brand1}: {_money(a.price)} | {brand2}: {_money(b.price)}"
                  f"  (difference: {pair.price_difference:+.2f})")

    print("=" * 60)


def export_excel(result, brand1, brand2, output_path=None):
    """Export detailed report to Excel."""
    output_path = output_path or config.REPORT_FILE
    os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)

    s = result.summary

    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        # "Summary" tab
        summary_data = {
            "Metric": [
                f"Products in {brand1}",
                f"Products in {brand2}",
                f"Unique to {brand1}",
                f"Unique to {brand2}",
                "Common products",
                "Categories",
            ],
            "Value": [
                s.total_a,
                s.total_b,
                s.unique_a_count,
                s.unique_b_count,
                s.common_count,
                len(result.categories),
            ],
        }
        pd.DataFrame(summary_data).to_excel(writer, sheet_name="Summary", index=False)

        common = comparator.common_frame(result)
        common = common.rename(columns={
            "name_a": f"name_{brand1}",
            "name_b": f"name_{brand2}",
            "price_a": f"price_{brand1}",
            "price_b": f"price_{brand2}",
        })
        common.to_excel(writer, sheet_name="Common Products", index=False)

        taken = ["Summary", "Common Products", "Categories"]
        comparator.products_frame(result.unique_to_a).to_excel(
            writer, sheet_name=_sheet_name(f"Unique to {brand1}", taken), index=False)
        comparator.products_frame(result.unique_to_b).to_excel(
            writer, sheet_name=_sheet_name(f"Unique to {brand2}", taken), index=False)

        breakdown = comparator.category_breakdown(result).rename(columns={
            "total_a": f"total_{brand1}",
            "total_b": f"total_{brand2}",
            "unique_a": f"unique_{brand1}",
            "unique_b": f"unique_{brand2}",
        })
        breakdown.to_excel(writer, sheet_name="Categories")

    print(f"\nReport saved: {output_path}")
    return output_path


def generate_report(result, brand1, brand2, output_path=None):
    """Generate full report (console + Excel)."""
    print("\n3. Generating report...")
    print_summary(result, brand1, brand2)
    return export_excel(result, brand1, brand2, output_path)
