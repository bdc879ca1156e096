from __future__ import annotations

import unittest
from datetime import date, timedelta

from productivity.services.daily_metrics import CategoryHours, DailySummary, SummaryRowsReader
from productivity.services.nad_allocation import LeaveTotals
from productivity.services.performance import PerformanceTier
from productivity.services.report_rows import build_report_rows, build_worker_report
from productivity.services.target_rates import TargetRateResolver
from productivity.services.workforce import AttributeChangeRecord, WorkerProfile

DEFAULTS = {"full-time": 35.0, "part-time": 20.0}
WINDOW_START = date(2024, 1, 1)
WINDOW_END = date(2024, 1, 28)


def _weekday_rows(worker_id: int, start: date, end: date, hours: float, category_id: int = 10) -> list[DailySummary]:
    rows: list[DailySummary] = []
    day = start
    while day <= end:
        if day.weekday() < 5:
            rows.append(
                DailySummary(
                    worker_id=worker_id,
                    day=day,
                    billable_hours=hours,
                    non_billable_hours=0.5,
                    entry_count=1,
                    categories=(
                        CategoryHours(category_id, "Client work", hours),
                        CategoryHours(20, "Meetings", 0.5),
                    ),
                )
            )
        day += timedelta(days=1)
    return rows


def _worker() -> WorkerProfile:
    return WorkerProfile(
        id=1,
        full_name="Ada Demir",
        email="ada@example.com",
        work_status="full-time",
        region_id=2,
    )


def _switch_to_full_time() -> list[AttributeChangeRecord]:
    return [
        AttributeChangeRecord(
            id=1,
            worker_id=1,
            field_name="work_status",
            old_value="part-time",
            new_value="full-time",
            effective_date=date(2024, 1, 15),
        )
    ]


class ReportRowBuilderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.metrics = SummaryRowsReader(
            _weekday_rows(1, date(2024, 1, 1), date(2024, 1, 14), 4.0)
            + _weekday_rows(1, date(2024, 1, 15), date(2024, 1, 28), 7.0)
        )
        self.rates = TargetRateResolver(DEFAULTS)

    def test_worker_without_changes_yields_one_row(self) -> None:
        rows = build_report_rows(
            _worker(),
            date(2024, 1, 1),
            date(2024, 1, 7),
            changes=[],
            metrics=self.metrics,
            rates=self.rates,
        )

        self.assertEqual(len(rows), 1)
        row = rows[0]
        self.assertEqual(row.work_status, "full-time")
        self.assertAlmostEqual(row.target.target_total_hours, 35.0)
        self.assertAlmostEqual(row.target.target_hours_per_week, 35.0)
        self.assertAlmostEqual(row.target.period_weeks, 1.0)
        self.assertAlmostEqual(row.billable_hours, 20.0)
        self.assertEqual(row.nad.nad_count, 0)

    def test_status_switch_at_midpoint_splits_targets(self) -> None:
        rows = build_report_rows(
            _worker(),
            WINDOW_START,
            WINDOW_END,
            changes=_switch_to_full_time(),
            metrics=self.metrics,
            rates=self.rates,
            leave=LeaveTotals(nad_count=10, nad_hour_rate=8.0),
        )

        self.assertEqual(len(rows), 2)
        part, full = rows
        self.assertEqual((part.work_status, full.work_status), ("part-time", "full-time"))
        self.assertEqual(part.end_date + timedelta(days=1), full.start_date)
        self.assertEqual(part.start_date, WINDOW_START)
        self.assertEqual(full.end_date, WINDOW_END)
        self.assertAlmostEqual(part.target.period_weeks, 2.0)
        self.assertAlmostEqual(full.target.period_weeks, 2.0)
        self.assertAlmostEqual(part.target.target_total_hours, 40.0)
        self.assertAlmostEqual(full.target.target_total_hours, 70.0)
        self.assertAlmostEqual(part.billable_hours, 40.0)
        self.assertAlmostEqual(full.billable_hours, 70.0)
        self.assertEqual(part.performance.tier, PerformanceTier.MEET)
        self.assertEqual((part.nad.nad_count, part.nad.nad_hours), (5, 40.0))
        self.assertEqual((full.nad.nad_count, full.nad.nad_hours), (5, 40.0))

    def test_weekly_breakdown_follows_each_sub_period(self) -> None:
        rows = build_report_rows(
            _worker(),
            WINDOW_START,
            WINDOW_END,
            changes=_switch_to_full_time(),
            metrics=self.metrics,
            rates=self.rates,
            leave=LeaveTotals(nad_count=4, nad_hour_rate=8.0),
            include_weekly_breakdown=True,
        )

        part_weeks = rows[0].weekly_breakdown
        self.assertEqual(len(part_weeks), 2)
        self.assertAlmostEqual(part_weeks[0].target_hours, 20.0)
        self.assertAlmostEqual(rows[1].weekly_breakdown[0].target_hours, 35.0)
        self.assertEqual([week.nad.nad_count for week in part_weeks], [1, 1])
        self.assertEqual(part_weeks[0].to_dict()["start_date"], "2024-01-01")

    def test_worker_report_merges_categories_and_picks_predominant_values(self) -> None:
        report = build_worker_report(
            _worker(),
            WINDOW_START,
            WINDOW_END,
            changes=_switch_to_full_time(),
            metrics=self.metrics,
            rates=self.rates,
        )

        self.assertEqual(report.region_id, 2)
        self.assertEqual(report.work_status, "part-time")
        self.assertEqual(report.categories[0].category_id, 10)
        self.assertAlmostEqual(report.categories[0].hours, 110.0)
        self.assertAlmostEqual(report.categories[1].hours, 10.0)
        self.assertAlmostEqual(report.target_total_hours, 110.0)
        self.assertEqual(report.performance().tier, PerformanceTier.MEET)

    def test_row_serialization_rounds_for_presentation(self) -> None:
        rows = build_report_rows(
            _worker(),
            date(2024, 1, 1),
            date(2024, 1, 3),
            changes=[],
            metrics=self.metrics,
            rates=self.rates,
        )

        payload = rows[0].to_dict()

        self.assertEqual(payload["target_total_hours"], 15.0)
        self.assertEqual(payload["period_weeks"], 0.43)
        self.assertEqual(payload["work_status_label"], "Full Time")
        self.assertEqual(payload["performance"], {"percentage": 80.0, "tier": "BELOW"})


if __name__ == "__main__":
    unittest.main()
