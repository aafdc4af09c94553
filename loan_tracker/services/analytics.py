"""Portfolio-level views over a collection of loans.

Every figure here is derived from ``calculate_loan_metrics``; nothing is
stored.
"""
from collections import Counter
from typing import Iterable, List, Optional

from loan_tracker.data_structures import (
    BorrowerProfile,
    BorrowerSummary,
    Loan,
    PortfolioStats,
)
from loan_tracker.services.ledger_engine import calculate_loan_metrics


def portfolio_stats(loans: Iterable[Loan], as_of_date=None) -> PortfolioStats:
    """Totals across all loans: principal lent, paid, still owed."""
    stats = PortfolioStats()
    for loan in loans:
        metrics = calculate_loan_metrics(loan, as_of_date)

        stats.total_principal += loan.principal
        stats.total_paid += metrics.total_paid
        stats.total_owed += metrics.remaining_balance
        stats.total_loans += 1

        if metrics.remaining_balance <= 0 and loan.principal > 0:
            stats.paid_off_count += 1
    return stats


def borrower_leaderboard(loans: Iterable[Loan]) -> List[BorrowerSummary]:
    """Borrowers ranked by number of loans, most first.

    Loans without a borrower name are ignored. Borrowers with the same count
    keep the order in which they first appear.
    """
    counts = Counter(loan.borrower_name for loan in loans if loan.borrower_name)
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [BorrowerSummary(name=name, loan_count=count) for name, count in ranked]


def borrower_profile(borrower_name: str, loans: Iterable[Loan], as_of_date=None) -> Optional[BorrowerProfile]:
    """Summarize one borrower's loans, or None if they have none."""
    borrower_loans = [loan for loan in loans if loan.borrower_name == borrower_name]
    if not borrower_loans:
        return None

    total_owed = sum(
        calculate_loan_metrics(loan, as_of_date).remaining_balance for loan in borrower_loans
    )
    return BorrowerProfile(
        borrower_name=borrower_name,
        loans=borrower_loans,
        total_owed=total_owed,
        loan_count=len(borrower_loans),
        most_recent_loan_date=max(loan.start_date for loan in borrower_loans),
    )


def search_loans(loans: Iterable[Loan], query: str) -> List[Loan]:
    """Case-insensitive match on loan name, borrower or lender."""
    query = (query or "").lower().strip()
    loans = list(loans)
    if not query:
        return loans

    def matches(loan):
        fields = (loan.name, loan.borrower_name, loan.lender_name)
        return any(f and query in f.lower() for f in fields)

    return [loan for loan in loans if matches(loan)]
