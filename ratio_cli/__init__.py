"""
Ratio CLI Package.

Command surface and text rendering for market-cap comparisons.
"""

from ratio_cli.cli import create_parser, main
from ratio_cli.render import format_market_cap, ratio_gauge, render_gauge, render_json, render_plain


__all__ = [
    "create_parser",
    "main",
    "format_market_cap",
    "ratio_gauge",
    "render_gauge",
    "render_json",
    "render_plain",
]
