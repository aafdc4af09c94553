"""Tests for loan export and import."""
import os
import sys
import unittest
from datetime import date

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from loan_tracker.data_structures import Loan, Payment
from loan_tracker.exceptions import ImportFormatError
from loan_tracker.services.csv_codec import export_filename, generate_loan_csv, parse_loan_csv


def sample_loan():
    return Loan(
        id="loan-1",
        hash="f00d",
        name="Car Loan",
        principal=1000.0,
        interest_rate=10.0,
        start_date=date(2024, 1, 1),
        payments=(
            Payment("p1", date(2024, 2, 1), 50.0),
            Payment("p2", date(2024, 3, 1), -200.0),
        ),
        lender_name="Bank",
        borrower_name=None,
    )


class TestGenerateLoanCSV(unittest.TestCase):

    def test_layout(self):
        lines = generate_loan_csv(sample_loan(), date(2024, 2, 1)).split("\n")

        self.assertEqual(lines, [
            "Loan Name: Car Loan",
            "Loan Hash: f00d",
            "Lender: Bank",
            "Borrower: ",
            "Annual Interest Rate (%): 10",
            "",
            "Date,Description,Amount",
            "2024-01-01,Initial Loan,1000.00",
            "2024-02-01,Payment,50.00",
            "2024-03-01,Redraw,-200.00",
            "",
            "Summary (as of today)",
            "Principal: 1000.00",
            "Total Interest Accrued: 8.49",
            "Total Paid / Redrawn (Net): -150.00",
            "Remaining Balance: 958.49",
        ])

    def test_fractional_rate(self):
        loan = Loan("id", "h", "L", 100.0, 5.5, date(2024, 1, 1))
        self.assertIn("Annual Interest Rate (%): 5.5", generate_loan_csv(loan, date(2024, 1, 1)))

    def test_export_filename(self):
        self.assertEqual(export_filename(sample_loan()), "car_loan_export.csv")
        loan = Loan("id", "h", "My  Big\tLoan", 100.0, 5.0, date(2024, 1, 1))
        self.assertEqual(export_filename(loan), "my_big_loan_export.csv")


class TestParseLoanCSV(unittest.TestCase):

    def test_round_trip(self):
        original = sample_loan()
        parsed = parse_loan_csv(generate_loan_csv(original, date(2024, 6, 1)))

        self.assertEqual(parsed.name, "Car Loan")
        self.assertEqual(parsed.hash, "f00d")
        self.assertEqual(parsed.lender_name, "Bank")
        self.assertIsNone(parsed.borrower_name)
        self.assertEqual(parsed.interest_rate, 10.0)
        self.assertEqual(parsed.principal, 1000.0)
        self.assertEqual(parsed.start_date, date(2024, 1, 1))
        self.assertEqual(
            [(p.date, p.amount) for p in parsed.payments],
            [(date(2024, 2, 1), 50.0), (date(2024, 3, 1), -200.0)],
        )

    def test_payments_sorted_and_given_new_ids(self):
        text = "\n".join([
            "Loan Name: Sorted",
            "Annual Interest Rate (%): 4",
            "Date,Description,Amount",
            "2024-01-01,Initial Loan,500.00",
            "2024-05-01,Payment,10.00",
            "2024-02-01,Payment,20.00",
        ])
        parsed = parse_loan_csv(text)

        self.assertEqual([p.amount for p in parsed.payments], [20.0, 10.0])
        self.assertEqual(len({p.id for p in parsed.payments}), 2)
        self.assertIsNone(parsed.hash)

    def test_tolerates_noise(self):
        text = "\r\n".join([
            "  Loan Name: Noisy  ",
            "Loan Hash: ",
            "Annual Interest Rate (%): 2.5",
            "",
            "DATE,DESCRIPTION,AMOUNT",
            "2024-01-01,Initial Loan,800.00",
            "2024-02-01,Payment",
            "2024-02-02,Payment,abc",
            "not-a-date,Payment,5.00",
            "2024-02-05,Payment,nan",
            "2024-02-06,Payment,inf",
            "2024-02-07,Payment,-Infinity",
            "2024-03-01,Payment,30.00,extra",
            "2024-04-01,Payment,40.00",
            "",
            "Summary (as of today)",
            "Principal: 800.00",
        ])
        parsed = parse_loan_csv(text)

        self.assertEqual(parsed.name, "Noisy")
        self.assertIsNone(parsed.hash)
        self.assertEqual(parsed.interest_rate, 2.5)
        self.assertEqual(parsed.principal, 800.0)
        self.assertEqual([p.amount for p in parsed.payments], [40.0])

    def test_rows_outside_table_ignored(self):
        text = "\n".join([
            "Loan Name: Outside",
            "2024-01-01,Initial Loan,999.00",
            "Annual Interest Rate (%): 1",
            "Date,Description,Amount",
            "2024-01-02,Initial Loan,100.00",
        ])
        parsed = parse_loan_csv(text)
        self.assertEqual(parsed.principal, 100.0)
        self.assertEqual(parsed.start_date, date(2024, 1, 2))

    def test_missing_fields_rejected(self):
        with self.assertRaises(ImportFormatError) as context:
            parse_loan_csv("Loan Name: Only a name\nDate,Description,Amount\n")

        self.assertEqual(context.exception.missing_fields, ["Principal", "Interest Rate", "Start Date"])
        self.assertIn("Could not find required loan details", str(context.exception))

    def test_each_required_field(self):
        full = [
            "Loan Name: X",
            "Annual Interest Rate (%): 3",
            "Date,Description,Amount",
            "2024-01-01,Initial Loan,100.00",
        ]
        drops = {0: "Name", 1: "Interest Rate", 3: "Principal"}
        for index, field in drops.items():
            with self.subTest(field=field):
                lines = [line for i, line in enumerate(full) if i != index]
                with self.assertRaises(ImportFormatError) as context:
                    parse_loan_csv("\n".join(lines))
                self.assertIn(field, context.exception.missing_fields)

    def test_unreadable_rate_is_missing(self):
        for rate in ("lots", "nan", "inf"):
            with self.subTest(rate=rate):
                text = f"Loan Name: X\nAnnual Interest Rate (%): {rate}\nDate,Description,Amount\n2024-01-01,Initial Loan,1.00"
                with self.assertRaises(ImportFormatError) as context:
                    parse_loan_csv(text)
                self.assertEqual(context.exception.missing_fields, ["Interest Rate"])


if __name__ == '__main__':
    unittest.main()
