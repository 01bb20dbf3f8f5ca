"""
Output formatters for datatoken holdings and asset pages.

This module handles CSV generation for holdings, standalone HTML pages for
rendered views, and timestamp-based filenames.
"""

import csv
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO

from markupsafe import Markup

from .models import CSV_COLUMNS, TokenHolding
from .token_fetcher import format_quantity


def generate_timestamp() -> str:
    """
    Generate a timestamp string for filenames.

    Returns:
        Timestamp in YYYYMMDD_HHMMSS format
    """
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def generate_filename(base_path: str, timestamp: Optional[str] = None, default_suffix: str = ".csv") -> str:
    """
    Generate a timestamped filename.

    Examples:
        generate_filename("holdings.csv", "20241214_153022")
        -> "holdings_20241214_153022.csv"
    """
    if timestamp is None:
        timestamp = generate_timestamp()

    path = Path(base_path)
    suffix = path.suffix or default_suffix
    return str(path.parent / f"{path.stem}_{timestamp}{suffix}")


def write_csv_to_stream(holdings: List[TokenHolding], stream: TextIO) -> None:
    """
    Write holdings to a CSV stream.

    Args:
        holdings: List of TokenHolding objects to write
        stream: File-like object to write to
    """
    writer = csv.writer(stream)
    writer.writerow(CSV_COLUMNS)

    for holding in holdings:
        quantity = format_quantity(int(holding.balance), holding.decimals)
        writer.writerow(holding.to_csv_row(quantity))


def write_csv(holdings: List[TokenHolding], output_path: Optional[str] = None) -> Optional[str]:
    """
    Write holdings to a timestamped CSV file, or stdout when no path is given.

    Returns:
        The file path written, or None for stdout
    """
    if output_path is None:
        write_csv_to_stream(holdings, sys.stdout)
        return None

    output_file = generate_filename(output_path)
    with open(output_file, "w", newline="", encoding="utf-8") as f:
        write_csv_to_stream(holdings, f)
    return output_file


def render_page(title: str, body: Markup) -> Markup:
    """Wrap rendered markup in a minimal HTML document."""
    return Markup(
        '<!DOCTYPE html><html lang="en"><head><meta charset="utf-8">'
        "<title>{}</title></head><body>{}</body></html>"
    ).format(title, body)


def write_html(page: Markup, output_path: Optional[str] = None) -> Optional[str]:
    """
    Write an HTML page to a timestamped file, or stdout when no path is given.

    Returns:
        The file path written, or None for stdout
    """
    if output_path is None:
        sys.stdout.write(str(page) + "\n")
        return None

    output_file = generate_filename(output_path, default_suffix=".html")
    with open(output_file, "w", encoding="utf-8") as f:
        f.write(str(page))
    return output_file
