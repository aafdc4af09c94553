"""Loan construction service for Loan Tracker.

This service is the entry point for new data:
- Manual loan creation (validated)
- Manual payments and redraws (validated)
- Loans recovered from an import file
- The identity hash shown alongside each loan
"""
import hashlib
import logging
import math
import uuid
from datetime import date, datetime
from decimal import Decimal

from dateutil import parser as date_parser

from loan_tracker.data_structures import Loan, ParsedLoan, Payment
from loan_tracker.exceptions import ValidationError

logger = logging.getLogger(__name__)


def parse_date(value):
    """Coerce a date, datetime or ISO 8601 string into a calendar date.

    Returns None for empty values. Raises ValueError for strings that are
    not ISO dates.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date_parser.isoparse(str(value).strip()).date()


def format_plain_number(amount) -> str:
    """Render a number the way the hash input and file headers spell it.

    Whole numbers have no decimal part ("1000"), other values use the
    shortest round-tripping digits ("1000.5"). Magnitudes of 1e21 and above
    or below 1e-6 use exponent notation with an explicit sign ("1e+21",
    "1e-7"); everything in between is written positionally ("0.00001").
    """
    amount = float(amount)
    if amount.is_integer() and abs(amount) < 1e21:
        return str(int(amount))

    text = repr(amount)
    if 'e' not in text:
        return text

    mantissa, exponent = text.split('e')
    exponent = int(exponent)
    if -7 < exponent < 21:
        return format(Decimal(text), 'f')
    return f"{mantissa}e{exponent:+d}"


def compute_loan_hash(lender_name, borrower_name, principal) -> str:
    """SHA-256 fingerprint of lender, borrower and principal."""
    salt = f"{lender_name or ''}-{borrower_name or ''}-{format_plain_number(principal)}"
    return hashlib.sha256(salt.encode('utf-8')).hexdigest()


def _to_number(value, field):
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"'{value}' is not a valid number", field)
    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"'{value}' is not a valid number", field)
    return number


def _to_date(value, field):
    try:
        parsed = parse_date(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"'{value}' is not a valid date", field)
    if parsed is None:
        raise ValidationError(f"{field} is required", field)
    return parsed


def validate_loan_terms(name, principal, interest_rate, start_date):
    """Validate manually entered loan terms.

    Returns:
        Tuple of (principal, interest_rate, start_date) coerced to float,
        float and date.

    Raises:
        ValidationError: If a required field is missing, the principal is
            not positive or the interest rate is negative.
    """
    if not name or not str(name).strip():
        raise ValidationError("Loan name is required", "name")
    if principal is None or principal == "":
        raise ValidationError("Principal is required", "principal")
    if interest_rate is None or interest_rate == "":
        raise ValidationError("Interest rate is required", "interest_rate")

    principal = _to_number(principal, "principal")
    interest_rate = _to_number(interest_rate, "interest_rate")
    start_date = _to_date(start_date, "start_date")

    if principal <= 0:
        raise ValidationError("Principal must be a positive amount", "principal")
    if interest_rate < 0:
        raise ValidationError("Interest rate cannot be negative", "interest_rate")

    return principal, interest_rate, start_date


def validate_payment(amount, payment_date):
    """Validate a manually entered payment or redraw.

    Returns:
        Tuple of (amount, date).

    Raises:
        ValidationError: If the date is missing or the amount is zero.
    """
    if amount is None or amount == "":
        raise ValidationError("Amount is required", "amount")
    amount = _to_number(amount, "amount")
    payment_date = _to_date(payment_date, "date")

    if amount == 0:
        raise ValidationError("Please enter a valid, non-zero amount", "amount")

    return amount, payment_date


def new_payment(amount, payment_date) -> Payment:
    return Payment(id=str(uuid.uuid4()), date=payment_date, amount=amount)


class LoanService:
    """Builds Loan values from user input and imports.

    Loans are immutable; every operation returns a new Loan and leaves the
    argument untouched. Persistence is handled by the caller.
    """

    def create_loan(self, name, principal, interest_rate, start_date,
                    lender_name="", borrower_name="") -> Loan:
        """Create a new loan with no transactions.

        Args:
            name: Display name of the loan.
            principal: Amount disbursed on the start date.
            interest_rate: Annual interest rate in percent.
            start_date: Disbursement date (date or YYYY-MM-DD).
            lender_name: Optional lender name.
            borrower_name: Optional borrower name.

        Raises:
            ValidationError: If the loan terms are invalid.
        """
        principal, interest_rate, start_date = validate_loan_terms(
            name, principal, interest_rate, start_date
        )
        lender_name = (lender_name or "").strip()
        borrower_name = (borrower_name or "").strip()

        loan = Loan(
            id=str(uuid.uuid4()),
            hash=compute_loan_hash(lender_name, borrower_name, principal),
            name=str(name).strip(),
            principal=principal,
            interest_rate=interest_rate,
            start_date=start_date,
            payments=(),
            lender_name=lender_name or None,
            borrower_name=borrower_name or None,
        )
        logger.debug("Created loan %s (%s)", loan.id, loan.name)
        return loan

    def add_payment(self, loan: Loan, amount, payment_date) -> Loan:
        """Append a payment (positive) or redraw (negative) to a loan.

        Raises:
            ValidationError: If the amount is zero or the date is missing.
        """
        amount, payment_date = validate_payment(amount, payment_date)
        payment = new_payment(amount, payment_date)
        logger.debug("Adding %s of %.2f on %s to loan %s",
                     "redraw" if payment.is_redraw else "payment",
                     amount, payment_date, loan.id)
        return loan.with_payment(payment)

    def from_import(self, parsed: ParsedLoan) -> Loan:
        """Turn parsed import data into a Loan with a fresh id.

        The hash recorded in the file is kept; a missing hash is computed
        from lender, borrower and principal.
        """
        loan_hash = parsed.hash or compute_loan_hash(
            parsed.lender_name, parsed.borrower_name, parsed.principal
        )
        return Loan(
            id=str(uuid.uuid4()),
            hash=loan_hash,
            name=parsed.name,
            principal=parsed.principal,
            interest_rate=parsed.interest_rate,
            start_date=parsed.start_date,
            payments=tuple(parsed.payments),
            lender_name=parsed.lender_name,
            borrower_name=parsed.borrower_name,
        )
