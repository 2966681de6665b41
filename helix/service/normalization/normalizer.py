"""
Document Metric Normalizer.

Converts one document's extracted field dictionary into typed
DocumentMetrics. Missing optional fields are simply left absent; only a
structurally absent field map or an unparseable present value fails.
"""

from typing import Any, Callable, Dict, Mapping, Optional, Union

import structlog

from helix.domain.entities import DocumentKind, DocumentMetrics
from helix.domain.exceptions import (
    ExtractionFailureException,
    UnsupportedDocumentKindException,
)

from .bank_statement import (
    calculate_average_monthly_balance,
    calculate_payment_timeliness,
    calculate_savings_rate,
    count_overdrafts,
)
from .parsing import optional_date, optional_float, optional_str, parse_transactions
from .settings import NormalizationSettings, get_normalization_settings

logger = structlog.get_logger(__name__)

Fields = Mapping[str, Any]


def _non_negative(value: Optional[float]) -> Optional[float]:
    # Negative income is an extraction artefact, not a measurement
    if value is None or value < 0:
        return None
    return value


class DocumentNormalizer:
    """
    Normalizes extracted document fields into per-document metrics.

    Each document kind has its own handler; unknown kinds are rejected.
    """

    def __init__(self, settings: Optional[NormalizationSettings] = None):
        self.settings = settings or get_normalization_settings()
        self._handlers: Dict[DocumentKind, Callable[[Fields, Optional[str]], DocumentMetrics]] = {
            DocumentKind.BANK_STATEMENT: self._bank_statement,
            DocumentKind.PAY_STUB: self._pay_stub,
            DocumentKind.TAX_RETURN: self._tax_return,
            DocumentKind.CREDIT_CARD_STATEMENT: self._credit_card_statement,
            DocumentKind.LOAN_STATEMENT: self._loan_statement,
            DocumentKind.DEBT_STATEMENT: self._debt_statement,
            DocumentKind.BILL: self._bill,
        }

    def normalize(
        self,
        kind: Union[DocumentKind, str],
        fields: Optional[Fields],
        document_id: Optional[str] = None,
    ) -> DocumentMetrics:
        """
        Normalize one document.

        Args:
            kind: The document kind (enum or its string value)
            fields: Extracted field dictionary
            document_id: Used only to label errors and logs

        Returns:
            The document's metrics

        Raises:
            UnsupportedDocumentKindException: If the kind is unknown
            ExtractionFailureException: If fields is missing or a present
                value cannot be parsed
        """
        try:
            kind = DocumentKind(kind)
        except ValueError:
            raise UnsupportedDocumentKindException(str(kind))

        if fields is None or not isinstance(fields, Mapping):
            raise ExtractionFailureException(document_id, "no extracted fields")

        metrics = self._handlers[kind](fields, document_id)

        logger.debug(
            "document_normalized",
            document_id=document_id,
            kind=kind.value,
            fields=sorted(metrics.to_dict()),
        )
        return metrics

    # =========================================================================
    # Income documents
    # =========================================================================

    def _pay_stub(self, fields: Fields, document_id: Optional[str]) -> DocumentMetrics:
        gross_pay = _non_negative(optional_float(fields, "gross_pay", document_id))
        period_start = optional_date(fields, "pay_period_start", document_id)
        period_end = optional_date(fields, "pay_period_end", document_id)

        monthly_income = None
        if gross_pay is not None:
            if period_start and period_end:
                monthly_income = gross_pay
            else:
                # No explicit period: assume bi-weekly pay
                monthly_income = gross_pay * self.settings.biweekly_monthly_multiplier

        return DocumentMetrics(
            monthly_income=monthly_income,
            employer=optional_str(fields, "employer"),
            pay_period_start=period_start,
            pay_period_end=period_end,
            hire_date=optional_date(fields, "hire_date", document_id),
        )

    def _tax_return(self, fields: Fields, document_id: Optional[str]) -> DocumentMetrics:
        annual = optional_float(fields, "adjusted_gross_income", document_id)
        if not annual:
            annual = optional_float(fields, "total_income", document_id)
        annual = _non_negative(annual)

        return DocumentMetrics(
            monthly_income=(
                annual / self.settings.tax_return_months if annual is not None else None
            ),
            tax_year=optional_str(fields, "tax_year"),
        )

    # =========================================================================
    # Cash flow
    # =========================================================================

    def _bank_statement(self, fields: Fields, document_id: Optional[str]) -> DocumentMetrics:
        transactions = parse_transactions(fields, document_id)
        current_balance = optional_float(fields, "current_balance", document_id)

        if not transactions:
            return DocumentMetrics(average_monthly_balance=current_balance)

        return DocumentMetrics(
            average_monthly_balance=calculate_average_monthly_balance(transactions),
            overdraft_frequency=count_overdrafts(transactions),
            payment_timeliness=calculate_payment_timeliness(transactions, self.settings),
            savings_rate=calculate_savings_rate(transactions),
            transactions=tuple(transactions),
        )

    # =========================================================================
    # Credit, debt and bills (pass-through)
    # =========================================================================

    def _credit_card_statement(
        self,
        fields: Fields,
        document_id: Optional[str],
    ) -> DocumentMetrics:
        return DocumentMetrics(
            credit_card_balance=optional_float(fields, "current_balance", document_id),
            credit_limit=optional_float(fields, "credit_limit", document_id),
            credit_utilization=optional_float(fields, "credit_utilization", document_id),
            minimum_payment=optional_float(fields, "minimum_payment", document_id),
            transactions=tuple(parse_transactions(fields, document_id)),
        )

    def _loan_statement(self, fields: Fields, document_id: Optional[str]) -> DocumentMetrics:
        return DocumentMetrics(
            loan_balance=optional_float(fields, "loan_balance", document_id),
            loan_monthly_payment=optional_float(fields, "monthly_payment", document_id),
            loan_type=optional_str(fields, "loan_type"),
            loan_interest_rate=optional_float(fields, "interest_rate", document_id),
        )

    def _debt_statement(self, fields: Fields, document_id: Optional[str]) -> DocumentMetrics:
        return DocumentMetrics(
            total_debt=optional_float(fields, "total_debt", document_id),
            debt_monthly_payment=optional_float(fields, "monthly_payment", document_id),
            debt_type=optional_str(fields, "debt_type"),
        )

    def _bill(self, fields: Fields, document_id: Optional[str]) -> DocumentMetrics:
        return DocumentMetrics(
            bill_amount=optional_float(fields, "bill_amount", document_id),
            bill_type=optional_str(fields, "bill_type"),
            bill_due_date=optional_date(fields, "due_date", document_id),
            bill_payment_status=optional_str(fields, "payment_status"),
        )
