#!/usr/bin/env python
from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from productivity.db import SessionLocal
from productivity.errors import InvalidWindowError
from productivity.logging_utils import setup_json_logging
from productivity.services.leave_client import build_leave_lookup
from productivity.services.report_calendar import ReportMode
from productivity.services.reports import GroupBy, ReportEngine, ReportRequest
from productivity.services.repository import SqlDailyMetricsReader, SqlWorkforceDirectory
from productivity.settings import get_settings


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a productivity report and print it as JSON.")
    parser.add_argument("--start", required=True, type=date.fromisoformat, help="Window start (Monday, YYYY-MM-DD)")
    parser.add_argument("--end", required=True, type=date.fromisoformat, help="Window end (Sunday, YYYY-MM-DD)")
    parser.add_argument("--mode", choices=[item.value for item in ReportMode], default=ReportMode.WEEKLY.value)
    parser.add_argument("--group-by", choices=[item.value for item in GroupBy], default=GroupBy.OVERALL.value)
    parser.add_argument("--region", type=int, default=None, help="Only workers predominantly in this region")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    setup_json_logging(settings.log_level, service=settings.app_name)

    request = ReportRequest(
        start_date=args.start,
        end_date=args.end,
        mode=ReportMode(args.mode),
        group_by=GroupBy(args.group_by),
        region_filter=args.region,
    )
    with SessionLocal() as db:
        engine = ReportEngine(
            SqlWorkforceDirectory(db),
            SqlDailyMetricsReader(SessionLocal),
            build_leave_lookup(),
        )
        try:
            result = engine.generate(request)
        except InvalidWindowError as exc:
            print(json.dumps({"ok": False, "error": "INVALID_WINDOW", "message": str(exc)}, indent=2))
            return 2

    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 0 if not result.failed_worker_ids else 1


if __name__ == "__main__":
    raise SystemExit(main())
