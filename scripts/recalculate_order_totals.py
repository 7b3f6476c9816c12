#!/usr/bin/env python3
"""Audit & repair order subtotals/totals against their line items.

Run read-only (default):
    python scripts/recalculate_order_totals.py

Run with fixes (recomputes item totals, order subtotal/total and YTD spend):
    python scripts/recalculate_order_totals.py --fix
"""

import argparse
import json
import sys
from datetime import datetime, timezone

from swagsuite.database import SessionLocal
from swagsuite.services.order_service import reconcile_order_totals


def run(fix: bool = False, session_factory=SessionLocal) -> dict:
    db = session_factory()
    try:
        report = reconcile_order_totals(db, fix=fix)
    finally:
        db.close()
    report["timestamp"] = datetime.now(timezone.utc).isoformat()
    report["mode"] = "fix" if fix else "audit"
    return report


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Reconcile order totals with their line items")
    parser.add_argument("--fix", action="store_true", help="Repair mismatched orders")
    args = parser.parse_args(argv)

    report = run(fix=args.fix)
    print(json.dumps(report, indent=2))
    if report["mismatched"] and not args.fix:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
