#!/usr/bin/env python3
"""
Create the quarterly control checklists for every vehicle.

Meant to run from cron at the start of each quarter; vehicles that already
have a control for the period are skipped.
"""

import argparse
import sys
from pathlib import Path

# Add backend directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from fleet_api.core.database import SessionLocal, init_db
from fleet_api.services.quarterly_controls import generate


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--year", type=int, help="defaults to the current year")
    parser.add_argument("--quarter", type=int, choices=[1, 2, 3, 4], help="defaults to the current quarter")
    return parser.parse_args(argv)


def main(argv=None):
    """Main generation function."""
    args = parse_args(argv)
    init_db()

    session = SessionLocal()
    try:
        result = generate(session, args.year, args.quarter)
    finally:
        session.close()

    print(f"Quarterly controls for {result['year']} Q{result['quarter']} "
          f"(due {result['intended_delivery_date'].isoformat()})")
    print(f"  Created: {result['created']}")
    print(f"  Skipped: {result['skipped']}")


if __name__ == "__main__":
    main()
