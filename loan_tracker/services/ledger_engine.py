"""Ledger engine for Loan Tracker.

Pure functions over an immutable ``Loan``:

- ``calculate_loan_metrics`` replays the principal disbursement and every
  transaction in date order, accruing simple daily interest on the running
  balance, and reports the state of the loan as of a given date.
- ``generate_chart_data`` walks the transactions and attributes each
  payment to interest first and principal second, producing cumulative
  points for the repayment chart.

The two methods attribute interest differently and their interest totals
are not expected to match.
"""
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Iterator, List, Optional

import pandas as pd

from loan_tracker.config import DAYS_PER_YEAR
from loan_tracker.data_structures import AmortizationDataPoint, Loan, LoanMetrics

CHART_COLUMNS = ['date', 'principal_paid', 'interest_paid', 'total_paid']


@dataclass(frozen=True)
class LedgerEvent:
    date: date
    amount: float
    is_principal: bool = False


@dataclass(frozen=True)
class LedgerState:
    """Running state carried through the replay."""
    balance: float
    total_interest_accrued: float
    last_date: date


def daily_rate(interest_rate: float) -> float:
    """Convert an annual percentage rate into a per-day rate."""
    return interest_rate / 100 / DAYS_PER_YEAR


def accrued_interest(balance: float, rate_per_day: float, days: int) -> float:
    """Simple interest over ``days`` whole days.

    Nothing accrues on a zero or negative balance, and nothing accrues over
    a zero or negative day count.
    """
    if days > 0 and balance > 0:
        return balance * rate_per_day * days
    return 0.0


def _date_only(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def ledger_events(loan: Loan) -> List[LedgerEvent]:
    """Return the disbursement and all transactions in replay order.

    Events are ordered by date. On the same day the principal disbursement
    comes first and the remaining events keep their input order.
    """
    events = [LedgerEvent(loan.start_date, loan.principal, is_principal=True)]
    events.extend(LedgerEvent(p.date, p.amount) for p in loan.payments)
    # sorted() is stable, so same-day transactions keep their input order
    return sorted(events, key=lambda e: (e.date, not e.is_principal))


def apply_event(state: LedgerState, event: LedgerEvent, rate_per_day: float) -> LedgerState:
    """Accrue interest up to ``event.date`` and then apply the event."""
    days = (event.date - state.last_date).days
    interest = accrued_interest(state.balance, rate_per_day, days)
    balance = state.balance + interest

    if event.is_principal:
        balance += event.amount
    else:
        # payments reduce the balance, redraws (negative) increase it
        balance -= event.amount

    return LedgerState(
        balance=balance,
        total_interest_accrued=state.total_interest_accrued + interest,
        last_date=event.date,
    )


def replay_ledger(loan: Loan, as_of_date: date) -> LedgerState:
    """Replay every event dated on or before ``as_of_date``.

    Interest is accrued for the gap between the last applied event and
    ``as_of_date`` as well, so the returned state describes that date.
    """
    rate_per_day = daily_rate(loan.interest_rate)
    state = LedgerState(balance=0.0, total_interest_accrued=0.0, last_date=loan.start_date)

    for event in ledger_events(loan):
        if event.date > as_of_date:
            continue
        state = apply_event(state, event, rate_per_day)

    interest = accrued_interest(state.balance, rate_per_day, (as_of_date - state.last_date).days)
    return LedgerState(
        balance=state.balance + interest,
        total_interest_accrued=state.total_interest_accrued + interest,
        last_date=state.last_date,
    )


def calculate_loan_metrics(loan: Loan, as_of_date: Optional[date] = None) -> LoanMetrics:
    """Calculate the state of a loan as of a date (today by default).

    ``total_paid`` covers every positive transaction in the loan's history,
    including those dated after ``as_of_date``. Only the balance and accrued
    interest are point-in-time figures.

    Args:
        loan: The loan to evaluate.
        as_of_date: A date or datetime; any time of day is ignored.

    Returns:
        LoanMetrics with the balance and accrued interest floored at zero.
    """
    if as_of_date is None:
        as_of_date = date.today()
    as_of_date = _date_only(as_of_date)

    state = replay_ledger(loan, as_of_date)

    total_paid = sum(p.amount for p in loan.payments if p.amount > 0)
    total_redrawn = sum(-p.amount for p in loan.payments if p.amount < 0)
    total_principal_amount = loan.principal + total_redrawn
    total_to_be_repaid = max(loan.principal, total_principal_amount + state.total_interest_accrued)

    if total_to_be_repaid > 0:
        progress = total_paid / total_to_be_repaid * 100
    else:
        progress = 100.0 if state.balance <= 0 else 0.0

    return LoanMetrics(
        remaining_balance=max(0.0, state.balance),
        total_interest_accrued=max(0.0, state.total_interest_accrued),
        total_to_be_repaid=total_to_be_repaid,
        total_paid=total_paid,
        progress=progress,
    )


class ChartSeries:
    """Lazy chart points for a loan; every iteration replays from the start."""

    def __init__(self, loan: Loan):
        self.loan = loan

    def __iter__(self) -> Iterator[AmortizationDataPoint]:
        return _chart_points(self.loan)


def generate_chart_data(loan: Loan) -> ChartSeries:
    """Cumulative principal and interest repaid over time.

    The first point is always a zero point at the loan's start date,
    followed by one point per transaction in date order. Each payment pays
    the interest accrued since the previous transaction first and principal
    with the rest. A redraw counts as negative principal.

    Points are computed on iteration, and the returned series can be
    iterated any number of times.
    """
    return ChartSeries(loan)


def _chart_points(loan: Loan) -> Iterator[AmortizationDataPoint]:
    yield AmortizationDataPoint(loan.start_date, 0.0, 0.0, 0.0)

    rate_per_day = daily_rate(loan.interest_rate)
    balance = loan.principal
    last_date = loan.start_date
    principal_paid = 0.0
    interest_paid = 0.0

    for payment in sorted(loan.payments, key=lambda p: p.date):
        if payment.date < last_date:
            continue

        interest = accrued_interest(balance, rate_per_day, (payment.date - last_date).days)

        if payment.amount >= 0:
            interest_portion = min(payment.amount, interest)
            principal_portion = payment.amount - interest_portion
        else:
            interest_portion = 0.0
            principal_portion = payment.amount

        balance += interest
        balance -= payment.amount
        principal_paid += principal_portion
        interest_paid += interest_portion
        last_date = payment.date

        yield AmortizationDataPoint(
            date=payment.date,
            principal_paid=principal_paid,
            interest_paid=interest_paid,
            total_paid=principal_paid + interest_paid,
        )


def chart_data_frame(loan: Loan) -> pd.DataFrame:
    """Return ``generate_chart_data`` as a DataFrame for plotting."""
    rows = [asdict(point) for point in generate_chart_data(loan)]
    return pd.DataFrame(rows, columns=CHART_COLUMNS)
