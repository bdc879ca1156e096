from __future__ import annotations

import unittest
from datetime import date

from productivity.services.daily_metrics import CategoryHours
from productivity.services.group_summary import (
    split_by_work_status,
    summarize_categories,
    summarize_cohorts,
    summarize_group,
)
from productivity.services.nad_allocation import NadAllocation
from productivity.services.performance import classify_performance
from productivity.services.report_rows import ReportRow
from productivity.services.target_hours import TargetHours


def _row(
    worker_id: int,
    work_status: str,
    billable: float,
    target: float,
    *,
    nad_count: int = 0,
    categories: tuple[CategoryHours, ...] = (),
) -> ReportRow:
    return ReportRow(
        worker_id=worker_id,
        full_name=f"Worker {worker_id}",
        email=f"w{worker_id}@example.com",
        region_id=1,
        work_status=work_status,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 7),
        billable_hours=billable,
        non_billable_hours=1.0,
        total_hours=billable + 1.0,
        entry_count=1,
        target=TargetHours(
            target_total_hours=target,
            target_hours_per_week=target,
            period_weeks=1.0,
            period_days=7,
        ),
        nad=NadAllocation(nad_count=nad_count, nad_hours=nad_count * 8.0),
        performance=classify_performance(billable, target),
        categories=categories,
    )


class GroupSummaryTests(unittest.TestCase):
    def test_totals_and_average_performance(self) -> None:
        summary = summarize_group(
            [
                _row(1, "full-time", 40.0, 35.0, nad_count=1),
                _row(2, "full-time", 30.0, 35.0),
                _row(3, "part-time", 20.0, 20.0, nad_count=2),
            ]
        )

        self.assertEqual(summary.total_users, 3)
        self.assertAlmostEqual(summary.total_billable_hours, 90.0)
        self.assertAlmostEqual(summary.total_target_hours, 90.0)
        self.assertAlmostEqual(summary.avg_performance, 100.0)
        self.assertEqual(summary.total_nad_count, 3)
        self.assertAlmostEqual(summary.total_nad_hours, 24.0)
        self.assertEqual(summary.performance_breakdown.to_dict(), {"exceeded": 1, "meet": 1, "below": 1})

    def test_zero_target_gives_zero_average(self) -> None:
        summary = summarize_group([_row(1, "full-time", 10.0, 0.0)])

        self.assertEqual(summary.avg_performance, 0.0)
        self.assertEqual(summarize_group([]).avg_performance, 0.0)

    def test_worker_with_two_rows_counts_once(self) -> None:
        summary = summarize_group(
            [
                _row(1, "part-time", 20.0, 20.0),
                _row(1, "full-time", 35.0, 35.0),
            ]
        )

        self.assertEqual(summary.total_users, 1)
        self.assertEqual(summary.performance_breakdown.meet, 1)

    def test_cohorts_split_on_each_rows_work_status(self) -> None:
        rows = [
            _row(1, "part-time", 20.0, 20.0),
            _row(1, "full-time", 35.0, 35.0),
            _row(2, "full-time", 10.0, 35.0),
        ]

        full, part = split_by_work_status(rows)
        cohorts = summarize_cohorts(rows)

        self.assertEqual((len(full), len(part)), (2, 1))
        self.assertEqual(cohorts.full_time.total_users, 2)
        self.assertEqual(cohorts.part_time.total_users, 1)
        self.assertEqual(cohorts.overall.total_users, 2)
        self.assertAlmostEqual(cohorts.overall.total_target_hours, 90.0)

    def test_category_summary_sorted_with_per_user_average(self) -> None:
        rows = [
            _row(1, "full-time", 10.0, 35.0, categories=(CategoryHours(1, "Client", 10.0), CategoryHours(2, "Admin", 0.0))),
            _row(2, "full-time", 20.0, 35.0, categories=(CategoryHours(1, "Client", 20.0), CategoryHours(2, "Admin", 4.0))),
            _row(2, "part-time", 5.0, 20.0, categories=(CategoryHours(3, "Research", 12.0),)),
        ]

        categories = summarize_categories(rows)

        self.assertEqual([item.category_id for item in categories], [1, 3, 2])
        self.assertEqual(categories[0].user_count, 2)
        self.assertAlmostEqual(categories[0].avg_hours_per_user, 15.0)
        self.assertEqual(categories[2].user_count, 1)
        self.assertAlmostEqual(categories[2].avg_hours_per_user, 4.0)

    def test_serialized_summary_is_rounded(self) -> None:
        summary = summarize_group([_row(1, "full-time", 34.0, 35.0)])

        payload = summary.to_dict()

        self.assertEqual(payload["avg_performance"], 97.1)
        self.assertEqual(payload["total_hours"], 35.0)


if __name__ == "__main__":
    unittest.main()
