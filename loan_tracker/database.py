"""Database management module for Loan Tracker."""
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime

import pandas as pd

from loan_tracker.config import DATE_FORMAT_STORAGE, DEFAULT_DB_NAME
from loan_tracker.data_structures import Loan, Payment
from loan_tracker.exceptions import TransactionError

logger = logging.getLogger(__name__)


def _parse_stored_date(value):
    return datetime.strptime(value, DATE_FORMAT_STORAGE).date()


class DatabaseManager:
    """Handles all SQLite database operations.

    Loans are stored in ``loans`` and their transactions in ``payments``.
    The ``seq`` column of ``payments`` preserves the order in which
    transactions were appended, which the ledger replay relies on for
    same-day transactions.
    """

    def __init__(self, db_name=DEFAULT_DB_NAME):
        self.db_name = db_name
        self.conn = sqlite3.connect(db_name)
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._closed = False
        self.create_tables()

    def close(self):
        """Close the database connection."""
        if self.conn and not self._closed:
            self.conn.close()
            self._closed = True

    def __del__(self):
        self.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @contextmanager
    def transaction(self):
        """Context manager for database transactions with automatic rollback on failure.

        Usage:
            with db.transaction():
                cursor = db.conn.cursor()
                cursor.execute(...)

        If any exception occurs, the transaction is rolled back.
        """
        try:
            yield
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise TransactionError(f"Transaction failed: {str(e)}")
        except Exception:
            self.conn.rollback()
            raise

    def create_tables(self):
        cursor = self.conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS loans (
                id TEXT PRIMARY KEY,
                hash TEXT NOT NULL,
                name TEXT NOT NULL,
                principal REAL NOT NULL,
                interest_rate REAL NOT NULL,
                start_date TEXT NOT NULL,
                lender_name TEXT,
                borrower_name TEXT,
                created_at TEXT
            )
        """)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS payments (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                loan_id TEXT NOT NULL,
                date TEXT NOT NULL,
                amount REAL NOT NULL,
                FOREIGN KEY(loan_id) REFERENCES loans(id) ON DELETE CASCADE
            )
        """)
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_payments_loan ON payments(loan_id)")
        self.conn.commit()

    # Loan operations
    def save_loan(self, loan: Loan):
        """Insert a loan, or replace the stored copy and all of its payments."""
        with self.transaction():
            cursor = self.conn.cursor()
            cursor.execute("SELECT created_at FROM loans WHERE id=?", (loan.id,))
            row = cursor.fetchone()
            created_at = row[0] if row else datetime.now().strftime("%Y-%m-%d %H:%M:%S")

            cursor.execute("DELETE FROM payments WHERE loan_id=?", (loan.id,))
            cursor.execute("""
                INSERT OR REPLACE INTO loans
                    (id, hash, name, principal, interest_rate, start_date,
                     lender_name, borrower_name, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                loan.id, loan.hash, loan.name, loan.principal, loan.interest_rate,
                loan.start_date.strftime(DATE_FORMAT_STORAGE),
                loan.lender_name, loan.borrower_name, created_at,
            ))
            cursor.executemany(
                "INSERT INTO payments (id, loan_id, date, amount) VALUES (?, ?, ?, ?)",
                [(p.id, loan.id, p.date.strftime(DATE_FORMAT_STORAGE), p.amount) for p in loan.payments]
            )
        logger.debug("Saved loan %s with %d payments", loan.id, len(loan.payments))

    def add_payment(self, loan_id, payment: Payment):
        """Append one payment to a stored loan."""
        with self.transaction():
            cursor = self.conn.cursor()
            cursor.execute(
                "INSERT INTO payments (id, loan_id, date, amount) VALUES (?, ?, ?, ?)",
                (payment.id, loan_id, payment.date.strftime(DATE_FORMAT_STORAGE), payment.amount)
            )

    def _get_payments(self, loan_id):
        cursor = self.conn.cursor()
        cursor.execute("SELECT id, date, amount FROM payments WHERE loan_id=? ORDER BY seq", (loan_id,))
        return tuple(
            Payment(id=row[0], date=_parse_stored_date(row[1]), amount=row[2])
            for row in cursor.fetchall()
        )

    def _row_to_loan(self, row):
        return Loan(
            id=row['id'],
            hash=row['hash'],
            name=row['name'],
            principal=row['principal'],
            interest_rate=row['interest_rate'],
            start_date=_parse_stored_date(row['start_date']),
            payments=self._get_payments(row['id']),
            lender_name=row['lender_name'],
            borrower_name=row['borrower_name'],
        )

    def get_loan(self, loan_id):
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM loans WHERE id=?", (loan_id,))
        row = cursor.fetchone()
        if row:
            cols = [description[0] for description in cursor.description]
            return self._row_to_loan(dict(zip(cols, row)))
        return None

    def get_loans(self):
        """All loans, in the order they were first saved."""
        cursor = self.conn.cursor()
        cursor.execute("SELECT * FROM loans ORDER BY created_at, rowid")
        cols = [description[0] for description in cursor.description]
        return [self._row_to_loan(dict(zip(cols, row))) for row in cursor.fetchall()]

    def delete_loan(self, loan_id):
        """Delete a loan and its payments. Returns True if a loan was removed."""
        with self.transaction():
            cursor = self.conn.cursor()
            cursor.execute("DELETE FROM payments WHERE loan_id=?", (loan_id,))
            cursor.execute("DELETE FROM loans WHERE id=?", (loan_id,))
            deleted = cursor.rowcount > 0
        return deleted

    def get_payments_df(self, loan_id):
        """Payments of a loan as a DataFrame, in append order."""
        query = "SELECT id, date, amount FROM payments WHERE loan_id = ? ORDER BY seq"
        return pd.read_sql_query(query, self.conn, params=(loan_id,))
