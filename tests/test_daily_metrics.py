from __future__ import annotations

import unittest
from datetime import date

from productivity.services.daily_metrics import (
    BILLABLE,
    NON_BILLABLE,
    UNCATEGORIZED,
    CategoryHours,
    DailySummary,
    SummaryRowsReader,
    classify_category_type,
    merge_category_hours,
)


def _rows() -> list[DailySummary]:
    return [
        DailySummary(
            worker_id=1,
            day=date(2024, 1, 1),
            billable_hours=6.0,
            non_billable_hours=1.0,
            entry_count=4,
            categories=(CategoryHours(10, "Client work", 6.0), CategoryHours(11, "Training", 1.0)),
        ),
        DailySummary(
            worker_id=1,
            day=date(2024, 1, 3),
            billable_hours=5.0,
            uncategorized_hours=0.5,
            entry_count=2,
            categories=(CategoryHours(10, "Client work", 5.0), CategoryHours(None, "Uncategorized", 0.5)),
        ),
        DailySummary(worker_id=2, day=date(2024, 1, 1), billable_hours=8.0, entry_count=1),
        DailySummary(worker_id=1, day=date(2024, 1, 9), billable_hours=3.0, entry_count=1),
    ]


class DailyMetricsTests(unittest.TestCase):
    def test_category_type_classification(self) -> None:
        self.assertEqual(classify_category_type("billable"), BILLABLE)
        self.assertEqual(classify_category_type("billable-client"), BILLABLE)
        self.assertEqual(classify_category_type("internal-non-billable"), NON_BILLABLE)
        self.assertEqual(classify_category_type("non-billable"), NON_BILLABLE)
        self.assertEqual(classify_category_type("uncategorized"), UNCATEGORIZED)
        self.assertEqual(classify_category_type(None), UNCATEGORIZED)

    def test_metrics_are_summed_inside_the_window_only(self) -> None:
        reader = SummaryRowsReader(_rows())

        metrics = reader.get_daily_metrics(1, date(2024, 1, 1), date(2024, 1, 7))

        self.assertAlmostEqual(metrics.billable_hours, 11.0)
        self.assertAlmostEqual(metrics.non_billable_hours, 1.0)
        self.assertAlmostEqual(metrics.total_hours, 12.5)
        self.assertEqual(metrics.entry_count, 6)

    def test_worker_without_rows_gets_zeros(self) -> None:
        metrics = SummaryRowsReader(_rows()).get_daily_metrics(99, date(2024, 1, 1), date(2024, 1, 7))

        self.assertEqual(metrics.total_hours, 0.0)
        self.assertEqual(metrics.entry_count, 0)

    def test_category_breakdown_merges_by_id_sorted_by_hours(self) -> None:
        breakdown = SummaryRowsReader(_rows()).get_category_breakdown(1, date(2024, 1, 1), date(2024, 1, 7))

        self.assertEqual([item.category_id for item in breakdown], [10, 11, None])
        self.assertAlmostEqual(breakdown[0].hours, 11.0)

    def test_merge_category_hours_across_breakdowns(self) -> None:
        merged = merge_category_hours(
            [
                [CategoryHours(1, "A", 2.0), CategoryHours(2, "B", 1.0)],
                [CategoryHours(2, "B", 4.0)],
            ]
        )

        self.assertEqual([(item.category_id, item.hours) for item in merged], [(2, 5.0), (1, 2.0)])

    def test_daily_breakdown_fills_missing_days(self) -> None:
        days = SummaryRowsReader(_rows()).get_daily_breakdown(1, date(2024, 1, 1), date(2024, 1, 7))

        self.assertEqual(len(days), 7)
        self.assertEqual(days[1].total_hours, 0.0)
        self.assertEqual(days[0].day_name, "Monday")
        self.assertFalse(days[4].is_weekend)
        self.assertTrue(days[5].is_weekend)
        self.assertAlmostEqual(days[2].billable_hours, 5.0)


if __name__ == "__main__":
    unittest.main()
