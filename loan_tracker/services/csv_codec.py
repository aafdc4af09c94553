"""Import/export of a single loan as a CSV-style text file.

The file has a header block, a ``Date,Description,Amount`` table starting
with the ``Initial Loan`` row, and a summary block computed at export time.
The summary is informational and ignored on import.
"""
import csv
import io
import logging
import math
import re
import uuid

import pandas as pd

from loan_tracker.config import (
    CSV_BORROWER,
    CSV_INITIAL_LOAN,
    CSV_INTEREST_RATE,
    CSV_LENDER,
    CSV_LOAN_HASH,
    CSV_LOAN_NAME,
    CSV_PAYMENT,
    CSV_REDRAW,
    CSV_SUMMARY_TITLE,
    CSV_TABLE_HEADER,
    DATE_FORMAT_STORAGE,
    EXPORT_FILENAME_SUFFIX,
)
from loan_tracker.data_structures import Loan, ParsedLoan, Payment
from loan_tracker.exceptions import ImportFormatError
from loan_tracker.services.ledger_engine import calculate_loan_metrics
from loan_tracker.services.loan_service import format_plain_number, parse_date

logger = logging.getLogger(__name__)

TABLE_COLUMNS = CSV_TABLE_HEADER.split(',')


def transactions_frame(loan: Loan) -> pd.DataFrame:
    """The transaction table as a DataFrame, initial loan row first."""
    rows = [(loan.start_date.strftime(DATE_FORMAT_STORAGE), CSV_INITIAL_LOAN, loan.principal)]
    for p in loan.payments:
        description = CSV_REDRAW if p.amount < 0 else CSV_PAYMENT
        rows.append((p.date.strftime(DATE_FORMAT_STORAGE), description, p.amount))
    return pd.DataFrame(rows, columns=TABLE_COLUMNS)


def generate_loan_csv(loan: Loan, as_of_date=None) -> str:
    """Serialize a loan, its transactions and a summary block.

    Transactions are written in stored order. The summary figures are those
    of ``calculate_loan_metrics`` as of ``as_of_date`` (today by default).
    """
    lines = [
        f"{CSV_LOAN_NAME} {loan.name}",
        f"{CSV_LOAN_HASH} {loan.hash}",
        f"{CSV_LENDER} {loan.lender_name or ''}",
        f"{CSV_BORROWER} {loan.borrower_name or ''}",
        f"{CSV_INTEREST_RATE} {format_plain_number(loan.interest_rate)}",
        "",
    ]

    table = transactions_frame(loan).to_csv(index=False, float_format="%.2f", lineterminator="\n")
    lines.extend(table.rstrip("\n").split("\n"))

    metrics = calculate_loan_metrics(loan, as_of_date)
    net_payments = sum(p.amount for p in loan.payments)

    lines.extend([
        "",
        CSV_SUMMARY_TITLE,
        f"Principal: {loan.principal:.2f}",
        f"Total Interest Accrued: {metrics.total_interest_accrued:.2f}",
        f"Total Paid / Redrawn (Net): {net_payments:.2f}",
        f"Remaining Balance: {metrics.remaining_balance:.2f}",
    ])
    return "\n".join(lines)


def _header_value(line, prefix):
    return line[len(prefix):].strip()


def _parse_float(text):
    try:
        value = float(text)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def _parse_row_date(text):
    try:
        return parse_date(text)
    except (ValueError, OverflowError):
        return None


def _read_table(rows) -> pd.DataFrame:
    """Load the collected table lines; only rows with exactly three fields."""
    rows = [row for row in rows if len(row.split(',')) == len(TABLE_COLUMNS)]
    if not rows:
        return pd.DataFrame(columns=TABLE_COLUMNS)
    return pd.read_csv(
        io.StringIO("\n".join(rows)),
        header=None,
        names=TABLE_COLUMNS,
        dtype=str,
        keep_default_na=False,
        quoting=csv.QUOTE_NONE,
        on_bad_lines="skip",
    )


def parse_loan_csv(text: str) -> ParsedLoan:
    """Parse a file produced by ``generate_loan_csv``.

    Table rows that do not have exactly three fields, a numeric amount and
    a valid date are skipped. Payments are returned sorted by date.

    Raises:
        ImportFormatError: If the loan name, principal, interest rate or
            start date cannot be found.
    """
    name = None
    loan_hash = None
    lender_name = None
    borrower_name = None
    interest_rate = None
    principal = None
    start_date = None
    payments = []
    table_rows = []

    in_transactions = False

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        if line.startswith(CSV_LOAN_NAME):
            name = _header_value(line, CSV_LOAN_NAME)
        elif line.startswith(CSV_LOAN_HASH):
            loan_hash = _header_value(line, CSV_LOAN_HASH) or None
        elif line.startswith(CSV_LENDER):
            lender_name = _header_value(line, CSV_LENDER) or None
        elif line.startswith(CSV_BORROWER):
            borrower_name = _header_value(line, CSV_BORROWER) or None
        elif line.startswith(CSV_INTEREST_RATE):
            interest_rate = _parse_float(_header_value(line, CSV_INTEREST_RATE))
        elif line.lower() == CSV_TABLE_HEADER.lower():
            in_transactions = True
        elif line.lower().startswith("summary"):
            in_transactions = False
        elif in_transactions:
            table_rows.append(line)

    for date_str, description, amount_str in _read_table(table_rows).itertuples(index=False):
        amount = _parse_float(amount_str.strip())
        row_date = _parse_row_date(date_str.strip())
        if amount is None or row_date is None:
            logger.debug("Skipping unreadable transaction row: %s,%s,%s",
                         date_str, description, amount_str)
            continue

        if description.strip().lower() == CSV_INITIAL_LOAN.lower():
            principal = amount
            start_date = row_date
        else:
            payments.append(Payment(id=str(uuid.uuid4()), date=row_date, amount=amount))

    missing = []
    if not name:
        missing.append("Name")
    if principal is None:
        missing.append("Principal")
    if interest_rate is None:
        missing.append("Interest Rate")
    if start_date is None:
        missing.append("Start Date")
    if missing:
        raise ImportFormatError(missing)

    payments.sort(key=lambda p: p.date)

    return ParsedLoan(
        name=name,
        principal=principal,
        interest_rate=interest_rate,
        start_date=start_date,
        payments=tuple(payments),
        hash=loan_hash,
        lender_name=lender_name,
        borrower_name=borrower_name,
    )


def export_filename(loan: Loan) -> str:
    """File name used when exporting ``loan``, e.g. ``car_loan_export.csv``."""
    return re.sub(r"\s+", "_", loan.name).lower() + EXPORT_FILENAME_SUFFIX
