"""
Ratio CLI - Rendering.

Turns a ComparisonReport into text. Three modes:
- gauge (default): a bar per comparison plus both market caps
- plain: "SMALLER LARGER PERCENT" per comparison
- json: one object per comparison, smaller asset as numerator
"""

import json
from datetime import timedelta
from decimal import Decimal
from typing import List

from valuation_engine.comparison import ComparisonReport
from valuation_engine.models import UNDEFINED, RatioResult, Valuation
from valuation_engine.ratio import RatioEngine


BAR_LENGTH = 40
FILLED = "█"

SHORT_SCALE = [
    (Decimal(10) ** 12, "T"),
    (Decimal(10) ** 9, "B"),
    (Decimal(10) ** 6, "M"),
    (Decimal(10) ** 3, "K"),
]

DURATION_UNITS = [
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
]


def format_market_cap(value: Decimal, precision: int = 1) -> str:
    """Short-scale number, e.g. 3387025599490 -> '3.4T'."""
    for threshold, suffix in SHORT_SCALE:
        if abs(value) >= threshold:
            return f"{value / threshold:.{precision}f}{suffix}"
    return f"{value:.{precision}f}"


def describe_duration(duration: timedelta) -> str:
    """Largest whole unit, e.g. 24 hours, 90 minutes."""
    seconds = int(duration.total_seconds())
    for unit, size in DURATION_UNITS:
        if seconds >= size and seconds % size == 0:
            count = seconds // size
            return f"{count} {unit}{'' if count == 1 else 's'}"
    return f"{seconds} seconds"


def ratio_gauge(fraction: Decimal, total_length: int = BAR_LENGTH) -> str:
    """
    Bar of ``total_length`` cells filled to ``fraction``.

    Raises:
        ValueError: If fraction is outside [0, 1]
    """
    if fraction < 0 or fraction > 1:
        raise ValueError("Ratio must be between 0 and 1")
    filled_length = int(round(fraction * total_length))
    empty_length = total_length - filled_length
    percentage = int(round(fraction * 100))
    return f"[{FILLED * filled_length}{' ' * empty_length}] {percentage}%"


def _annotations(valuation: Valuation) -> str:
    notes = []
    if valuation.no_data:
        notes.append("no data")
    if valuation.stale:
        notes.append("stale")
    return f" ({', '.join(notes)})" if notes else ""


def render_gauge(report: ComparisonReport) -> str:
    blocks: List[str] = []
    for result in report.results:
        larger, smaller = result.larger, result.smaller
        lines = []
        if result.is_undefined:
            lines.append("no comparison possible")
        else:
            fraction = smaller.usd_market_cap / larger.usd_market_cap
            lines.append(f"{ratio_gauge(fraction)}  ({result.ratio}x)")
        for valuation in (smaller, larger):
            lines.append(
                f"{valuation.label}: {format_market_cap(valuation.usd_market_cap)}"
                f"{_annotations(valuation)}"
            )
        blocks.append("\n".join(lines))

    if report.has_stale:
        blocks.append(
            f"stale: some quotes are older than {describe_duration(report.freshness_threshold)}"
        )

    if report.gold_estimate is not None:
        blocks.append(
            f"gold above ground: {report.gold_estimate.tonnes} t "
            f"({report.gold_estimate.source.value})"
        )
    return "\n\n".join(blocks)


def render_plain(report: ComparisonReport) -> str:
    lines = []
    for result in report.results:
        percentage = result.percentage
        lines.append(
            f"{result.smaller.label} {result.larger.label} "
            f"{percentage if percentage is not None else 'undefined'}"
        )
    return "\n".join(lines)


def _json_asset(valuation: Valuation) -> dict:
    return {
        "asset": valuation.label,
        "market_cap": int(valuation.usd_market_cap),
        "stale": valuation.stale,
        "no_data": valuation.no_data,
    }


def _json_result(result: RatioResult) -> dict:
    """Smaller asset as numerator; percentage is numerator / denominator."""
    smaller, larger = result.smaller, result.larger
    multiple = RatioEngine().ratio(larger.usd_market_cap, smaller.usd_market_cap)
    return {
        "percentage": result.percentage,
        "multiple": None if multiple is UNDEFINED else str(multiple),
        "numerator": _json_asset(smaller),
        "denominator": _json_asset(larger),
    }


def render_json(report: ComparisonReport) -> str:
    return json.dumps([_json_result(result) for result in report.results])
