#!/usr/bin/env python3
"""
ratio-gang - Main Application Entry Point.

============================================================
USAGE
============================================================
Direct execution:
    python app.py AAPL bitcoin gold

Installed:
    ratio-gang AAPL bitcoin gold --above-ground 200000

Environment-based configuration:
    POLYGON_KEY=... COINGECKO_KEY=... python app.py NVDA ethereum

============================================================
"""

import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.absolute()
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ratio_cli.cli import main


if __name__ == "__main__":
    sys.exit(main())
