"""Financial document entities and their normalized metrics."""

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple
from uuid import uuid4

from helix.utils.dates import parse_date, utcnow


class DocumentKind(str, Enum):
    """Kinds of financial document the core can normalize."""

    BANK_STATEMENT = "bank_statement"
    PAY_STUB = "pay_stub"
    TAX_RETURN = "tax_return"
    CREDIT_CARD_STATEMENT = "credit_card_statement"
    LOAN_STATEMENT = "loan_statement"
    DEBT_STATEMENT = "debt_statement"
    BILL = "bill"


class DocumentStatus(str, Enum):
    """Normalization status of a stored document."""

    PENDING = "pending"
    OK = "ok"
    FAILED = "failed"


@dataclass(frozen=True)
class Transaction:
    """
    Immutable representation of a statement transaction.

    Attributes:
        date: Date the transaction posted
        description: Statement description text
        amount: Signed amount in currency units (negative = money out)
    """

    date: date
    description: str
    amount: float

    @property
    def is_deposit(self) -> bool:
        return self.amount > 0

    @property
    def is_withdrawal(self) -> bool:
        return self.amount < 0

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "description": self.description,
            "amount": self.amount,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        return cls(
            date=parse_date(data["date"]),
            description=data.get("description", ""),
            amount=float(data["amount"]),
        )


_DATE_FIELDS = {"pay_period_start", "pay_period_end", "hire_date", "bill_due_date"}


@dataclass(frozen=True)
class DocumentMetrics:
    """
    Typed per-document metrics produced by normalization.

    Every field is optional; None means the document did not provide it.
    Only the fields relevant to the document's kind are ever populated.
    """

    # Income
    monthly_income: Optional[float] = None
    employer: Optional[str] = None
    pay_period_start: Optional[date] = None
    pay_period_end: Optional[date] = None
    hire_date: Optional[date] = None
    tax_year: Optional[str] = None

    # Cash flow (bank statements)
    average_monthly_balance: Optional[float] = None
    overdraft_frequency: Optional[int] = None
    payment_timeliness: Optional[float] = None
    savings_rate: Optional[float] = None
    transactions: Tuple[Transaction, ...] = ()

    # Credit card
    credit_card_balance: Optional[float] = None
    credit_limit: Optional[float] = None
    credit_utilization: Optional[float] = None
    minimum_payment: Optional[float] = None

    # Loan
    loan_balance: Optional[float] = None
    loan_monthly_payment: Optional[float] = None
    loan_type: Optional[str] = None
    loan_interest_rate: Optional[float] = None

    # Debt
    total_debt: Optional[float] = None
    debt_monthly_payment: Optional[float] = None
    debt_type: Optional[str] = None

    # Bill
    bill_amount: Optional[float] = None
    bill_type: Optional[str] = None
    bill_due_date: Optional[date] = None
    bill_payment_status: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to a JSON-compatible dict, omitting absent fields."""
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "transactions":
                if value:
                    result["transactions"] = [t.to_dict() for t in value]
            elif value is None:
                continue
            elif isinstance(value, date):
                result[f.name] = value.isoformat()
            else:
                result[f.name] = value
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentMetrics":
        """Rebuild metrics from their stored dict form."""
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                continue
            if key == "transactions":
                kwargs[key] = tuple(Transaction.from_dict(t) for t in value or [])
            elif key in _DATE_FIELDS:
                kwargs[key] = parse_date(value)
            else:
                kwargs[key] = value
        return cls(**kwargs)


@dataclass
class FinancialDocument:
    """
    A subject's uploaded financial document and its normalization state.

    Metrics are written once per normalization run; re-running normalization
    replaces them for the same document id.
    """

    subject_id: str
    kind: DocumentKind
    id: str = field(default_factory=lambda: str(uuid4()))
    source_uri: Optional[str] = None
    status: DocumentStatus = DocumentStatus.PENDING
    metrics: Optional[DocumentMetrics] = None
    failure_reason: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    normalized_at: Optional[datetime] = None

    @property
    def is_normalized(self) -> bool:
        """True when normalization succeeded and metrics are available."""
        return self.status == DocumentStatus.OK and self.metrics is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "document_id": self.id,
            "subject_id": self.subject_id,
            "kind": self.kind.value,
            "source_uri": self.source_uri,
            "status": self.status.value,
            "metrics": self.metrics.to_dict() if self.metrics else None,
            "failure_reason": self.failure_reason,
            "created_at": self.created_at.isoformat() + "Z",
            "normalized_at": (
                self.normalized_at.isoformat() + "Z" if self.normalized_at else None
            ),
        }
