"""Tests for the per-payment interest/principal split used by the chart."""
import os
import sys
import unittest
from datetime import date
from types import GeneratorType

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from loan_tracker.data_structures import AmortizationDataPoint, Loan, Payment
from loan_tracker.services.ledger_engine import (
    CHART_COLUMNS,
    calculate_loan_metrics,
    chart_data_frame,
    generate_chart_data,
)

DAILY_10 = 0.10 / 365.25


def make_loan(payments=(), principal=1000.0, rate=10.0, start=date(2024, 1, 1)):
    return Loan(
        id="loan-1",
        hash="abc",
        name="Chart Loan",
        principal=principal,
        interest_rate=rate,
        start_date=start,
        payments=tuple(Payment(id=f"p{i}", date=d, amount=a) for i, (d, a) in enumerate(payments)),
    )


class TestGenerateChartData(unittest.TestCase):

    def test_no_payments_single_zero_point(self):
        points = list(generate_chart_data(make_loan()))
        self.assertEqual(points, [AmortizationDataPoint(date(2024, 1, 1), 0.0, 0.0, 0.0)])

    def test_is_lazy_and_restartable(self):
        loan = make_loan([(date(2024, 2, 1), 50.0)])
        series = generate_chart_data(loan)
        self.assertIsInstance(iter(series), GeneratorType)

        first = list(series)
        second = list(series)
        self.assertEqual(len(first), 2)
        self.assertEqual(first, second)
        self.assertEqual(max(p.total_paid for p in series), first[-1].total_paid)

    def test_worked_example_split(self):
        points = list(generate_chart_data(make_loan([(date(2024, 2, 1), 50.0)])))
        interest = 1000 * DAILY_10 * 31

        self.assertEqual(len(points), 2)
        self.assertEqual(points[1].date, date(2024, 2, 1))
        self.assertAlmostEqual(points[1].interest_paid, interest, places=9)
        self.assertAlmostEqual(points[1].interest_paid, 8.487, places=3)
        self.assertAlmostEqual(points[1].principal_paid, 50 - interest, places=9)
        self.assertAlmostEqual(points[1].principal_paid, 41.513, places=3)
        self.assertAlmostEqual(points[1].total_paid, 50, places=9)

    def test_payment_smaller_than_interest(self):
        points = list(generate_chart_data(make_loan([(date(2024, 2, 1), 5.0)])))
        self.assertEqual(points[1].interest_paid, 5.0)
        self.assertEqual(points[1].principal_paid, 0.0)

    def test_redraw_is_negative_principal(self):
        points = list(generate_chart_data(make_loan([
            (date(2024, 2, 1), 50.0),
            (date(2024, 3, 1), -200.0),
        ])))
        self.assertAlmostEqual(points[2].principal_paid, points[1].principal_paid - 200, places=9)
        self.assertEqual(points[2].interest_paid, points[1].interest_paid)

    def test_unpaid_interest_capitalised(self):
        """Interest not covered by a payment stays in the balance."""
        points = list(generate_chart_data(make_loan([
            (date(2024, 2, 1), 5.0),
            (date(2024, 3, 2), 100.0),
        ])))
        first_interest = 1000 * DAILY_10 * 31
        balance = 1000 + first_interest - 5.0
        second_interest = balance * DAILY_10 * 30

        self.assertAlmostEqual(points[2].interest_paid, 5.0 + second_interest, places=9)

    def test_length_and_ordering(self):
        entries = [
            (date(2024, 4, 1), 100.0),
            (date(2024, 2, 1), 100.0),
            (date(2024, 3, 1), 100.0),
            (date(2024, 3, 1), 25.0),
        ]
        points = list(generate_chart_data(make_loan(entries)))

        self.assertEqual(len(points), len(entries) + 1)
        dates = [p.date for p in points]
        self.assertEqual(dates, sorted(dates))
        totals = [p.total_paid for p in points]
        for earlier, later in zip(totals, totals[1:]):
            self.assertLessEqual(earlier, later)

    def test_payment_before_start_date_skipped(self):
        points = list(generate_chart_data(make_loan([
            (date(2023, 12, 1), 100.0),
            (date(2024, 2, 1), 50.0),
        ])))
        self.assertEqual([p.date for p in points], [date(2024, 1, 1), date(2024, 2, 1)])

    def test_not_reconciled_with_metrics(self):
        """The chart only counts interest actually paid."""
        loan = make_loan([(date(2024, 2, 1), 5.0)])
        points = list(generate_chart_data(loan))
        metrics = calculate_loan_metrics(loan, date(2024, 2, 1))
        self.assertLess(points[-1].interest_paid, metrics.total_interest_accrued)


class TestChartDataFrame(unittest.TestCase):

    def test_columns_and_rows(self):
        df = chart_data_frame(make_loan([(date(2024, 2, 1), 50.0), (date(2024, 3, 1), 50.0)]))
        self.assertEqual(list(df.columns), CHART_COLUMNS)
        self.assertEqual(len(df), 3)
        self.assertEqual(df['total_paid'].iloc[0], 0.0)
        self.assertAlmostEqual(df['total_paid'].iloc[-1], 100.0, places=9)

    def test_empty_loan(self):
        df = chart_data_frame(make_loan())
        self.assertEqual(len(df), 1)


if __name__ == '__main__':
    unittest.main()
