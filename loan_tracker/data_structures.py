from dataclasses import dataclass, field, replace
from datetime import date
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Payment:
    """A dated cash transaction against a loan.

    A positive amount is a payment and reduces the balance. A negative
    amount is a redraw and increases it.
    """
    id: str
    date: date
    amount: float

    @property
    def is_redraw(self) -> bool:
        return self.amount < 0


@dataclass(frozen=True)
class Loan:
    """A loan and its append-only transaction log."""
    id: str
    hash: str
    name: str
    principal: float
    interest_rate: float  # annual nominal rate in percent
    start_date: date
    payments: Tuple[Payment, ...] = ()
    lender_name: Optional[str] = None
    borrower_name: Optional[str] = None

    def with_payment(self, payment: Payment) -> 'Loan':
        """Return a copy of this loan with ``payment`` appended."""
        return replace(self, payments=self.payments + (payment,))


@dataclass(frozen=True)
class ParsedLoan:
    """Loan fields recovered from an import file, before an id is assigned."""
    name: str
    principal: float
    interest_rate: float
    start_date: date
    payments: Tuple[Payment, ...] = ()
    hash: Optional[str] = None
    lender_name: Optional[str] = None
    borrower_name: Optional[str] = None


@dataclass(frozen=True)
class LoanMetrics:
    remaining_balance: float
    total_interest_accrued: float
    total_to_be_repaid: float
    total_paid: float
    progress: float


@dataclass(frozen=True)
class AmortizationDataPoint:
    """Cumulative principal/interest split at one date, for charting."""
    date: date
    principal_paid: float
    interest_paid: float
    total_paid: float


@dataclass
class PortfolioStats:
    total_principal: float = 0.0
    total_paid: float = 0.0
    total_owed: float = 0.0
    total_loans: int = 0
    paid_off_count: int = 0


@dataclass
class BorrowerSummary:
    name: str
    loan_count: int


@dataclass
class BorrowerProfile:
    borrower_name: str
    loans: List[Loan] = field(default_factory=list)
    total_owed: float = 0.0
    loan_count: int = 0
    most_recent_loan_date: Optional[date] = None
