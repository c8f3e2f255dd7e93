"""
Ratio CLI - Command Line Interface.

============================================================
RESPONSIBILITY
============================================================
Thin command surface over the valuation engine.

- Parses asset tokens and the gold tonnage override
- Loads credentials from the environment once
- Configures logging
- Renders the report; maps errors to exit codes

============================================================
USAGE
============================================================
ratio-gang                          # ethereum vs bitcoin
ratio-gang AAPL gold
ratio-gang AAPL bitcoin gold --above-ground 200000
ratio-gang NVDA MSFT --plain
ratio-gang solana ethereum --json

Requires POLYGON_KEY (equities, gold) and COINGECKO_KEY (crypto).

============================================================
"""

import argparse
import asyncio
import logging
import os
import sys
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from core.config import ApiKeys, GatewayConfig
from core.constants import DEFAULT_GOLD_TONNES
from core.exceptions import RatioGangError, ResolutionError
from ratio_cli.render import render_gauge, render_json, render_plain
from valuation_engine.comparison import ComparisonReport, ComparisonService
from valuation_engine.gold import GoldEstimateStore
from valuation_sources.exceptions import GatewayError
from valuation_sources.gateway import ValuationGateway


logger = logging.getLogger(__name__)

DEFAULT_ASSETS = ["ethereum", "bitcoin"]
LOG_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)s | %(message)s"


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def tonnage(value: str) -> Decimal:
    """argparse type for the above-ground override."""
    try:
        tonnes = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if not tonnes.is_finite() or tonnes < 0:
        raise argparse.ArgumentTypeError(f"must be a non-negative number: {value!r}")
    return tonnes


def asset_tokens(assets: List[str]) -> List[str]:
    """Fill in the default assets; a lone asset is compared with the last default."""
    if not assets:
        return list(DEFAULT_ASSETS)
    if len(assets) == 1:
        return [assets[0], DEFAULT_ASSETS[-1]]
    return list(assets)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ratio-gang",
        description="Compare market caps between crypto, stocks and gold by calculating their ratio",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Asset tokens:
  gold       - Above-ground gold (any case)
  AAPL       - Uppercase letters/digits: a stock symbol (Polygon.io)
  bitcoin    - Anything else: a CoinGecko id

Environment:
  POLYGON_KEY, COINGECKO_KEY  - Provider API keys (a .env file is read too)
        """,
    )

    parser.add_argument(
        "assets",
        nargs="*",
        metavar="ASSET",
        help=(
            f"Assets to compare (default: {' '.join(DEFAULT_ASSETS)}; "
            f"a single asset is compared with {DEFAULT_ASSETS[-1]})"
        ),
    )

    parser.add_argument(
        "--above-ground",
        type=tonnage,
        default=None,
        metavar="TONNES",
        help=f"Estimated above-ground stock of gold in tonnes (default: {DEFAULT_GOLD_TONNES})",
    )

    output_group = parser.add_mutually_exclusive_group()
    output_group.add_argument(
        "--plain", "-p",
        action="store_true",
        help="Print 'smaller-asset larger-asset percentage', e.g. 'AAPL gold 17'",
    )
    output_group.add_argument(
        "--json", "-j",
        action="store_true",
        help=(
            "Print JSON: numerator is the smaller asset, percentage is "
            "numerator / denominator, multiple is denominator / numerator"
        ),
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=os.getenv("LOG_LEVEL", "WARNING").upper(),
        help="Logging level (default: WARNING)",
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version="%(prog)s 1.0.0",
    )

    return parser


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


# ============================================================
# ERROR REPORTING
# ============================================================

def describe_error(error: RatioGangError) -> str:
    """One line naming the offending token/asset and the error kind."""
    if isinstance(error, ResolutionError):
        subject = f" for token {error.token!r}"
    elif isinstance(error, GatewayError) and error.asset:
        subject = f" for asset '{error.asset}'"
    else:
        subject = ""
    return f"Error ({error.kind}){subject}: {error.message}"


# ============================================================
# MAIN ENTRY POINT
# ============================================================

async def run_comparison(
    tokens: List[str],
    above_ground: Optional[Decimal],
    config: GatewayConfig,
) -> ComparisonReport:
    gold_store = GoldEstimateStore()
    async with ValuationGateway(config, gold_store=gold_store) as gateway:
        service = ComparisonService(gateway, gold_store)
        return await service.compare(tokens, gold_override=above_ground)


def render(report: ComparisonReport, args: argparse.Namespace) -> str:
    if args.plain:
        return render_plain(report)
    if args.json:
        return render_json(report)
    return render_gauge(report)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    config = GatewayConfig.from_env(ApiKeys.from_env())
    errors = config.validate()
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    tokens = asset_tokens(args.assets)
    try:
        report = asyncio.run(run_comparison(tokens, args.above_ground, config))
    except RatioGangError as e:
        logger.debug(f"Comparison failed: {e.to_dict()}")
        print(describe_error(e), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130

    print(render(report, args))
    return 0


if __name__ == "__main__":
    sys.exit(main())
