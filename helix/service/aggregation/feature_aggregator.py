"""
Feature Aggregator for the Helix risk core.

Reconciles every normalized document a subject has submitted into a single
canonical FeatureVector:
- Income (pay stubs, reconciled against tax returns)
- Employment duration
- Cash flow (bank statements)
- Payment behavior
- Debt obligations (recurring debt payments and declared obligations)
- Credit utilization
- Identity defaults and profile completeness

The aggregation is a pure function of the *set* of documents: every sum
goes through math.fsum and every sequence whose order could leak into the
result is sorted first, so shuffling the input never changes the output.
"""

import math
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from helix.domain.entities import (
    DocumentKind,
    DocumentMetrics,
    FeatureVector,
    FinancialDocument,
    Transaction,
)
from helix.utils.dates import months_between

from .settings import AggregationSettings, get_aggregation_settings


_DEBT_BEARING_KINDS = {
    DocumentKind.LOAN_STATEMENT,
    DocumentKind.DEBT_STATEMENT,
    DocumentKind.CREDIT_CARD_STATEMENT,
}

_COMPLETENESS_FIELDS = (
    "monthly_income",
    "average_monthly_balance",
    "payment_timeliness",
    "debt_to_income_ratio",
)


def _mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return math.fsum(values) / len(values)


def _coefficient_of_variation(values: Sequence[float]) -> Optional[float]:
    """Population standard deviation divided by the mean."""
    mean = _mean(values)
    if mean is None or len(values) < 2 or mean <= 0:
        return None
    variance = math.fsum((v - mean) ** 2 for v in values) / len(values)
    return math.sqrt(variance) / mean


class FeatureAggregator:
    """
    Builds a FeatureVector from a subject's normalized documents.

    Documents that are not normalized (pending or failed) are ignored.
    """

    def __init__(self, settings: Optional[AggregationSettings] = None):
        self.settings = settings or get_aggregation_settings()

    def aggregate(self, documents: Iterable[FinancialDocument]) -> FeatureVector:
        """
        Aggregate documents into a fresh feature vector.

        Args:
            documents: Any iterable of the subject's documents, in any order

        Returns:
            The canonical feature vector
        """
        usable = sorted(
            (doc for doc in documents if doc.is_normalized),
            key=lambda doc: (doc.kind.value, doc.id),
        )

        monthly_income, income_variance = self._income(usable)
        average_balance = self._mean_of(usable, DocumentKind.BANK_STATEMENT, "average_monthly_balance")
        timeliness = _mean(
            [d.metrics.payment_timeliness for d in usable if d.metrics.payment_timeliness is not None]
        )
        monthly_debt = self._monthly_debt_payments(usable)

        debt_to_income = None
        if monthly_debt is not None and monthly_income is not None and monthly_income > 0:
            debt_to_income = monthly_debt / monthly_income

        emergency_coverage = None
        if average_balance is not None and monthly_income is not None and monthly_income > 0:
            emergency_coverage = max(
                0.0,
                average_balance / (monthly_income * self.settings.essential_expense_ratio),
            )

        features = FeatureVector(
            monthly_income=monthly_income,
            monthly_income_variance=income_variance,
            employment_duration=self._employment_duration(usable),
            multiple_income_streams=self._income_streams(usable),
            average_monthly_balance=average_balance,
            overdraft_frequency=self._mean_of(usable, DocumentKind.BANK_STATEMENT, "overdraft_frequency"),
            savings_rate=self._mean_of(usable, DocumentKind.BANK_STATEMENT, "savings_rate"),
            emergency_fund_coverage=emergency_coverage,
            monthly_debt_payments=monthly_debt,
            debt_to_income_ratio=debt_to_income,
            payment_timeliness=timeliness,
            bill_payment_consistency=timeliness,
            rent_payment_history=timeliness,
            utility_payment_patterns=timeliness,
            credit_utilization=self._credit_utilization(usable),
            debt_diversification=self._debt_diversification(usable),
            document_authenticity=self.settings.default_document_authenticity,
            address_verification=self.settings.default_address_verification,
            phone_number_stability=self.settings.default_phone_number_stability,
        )

        present = sum(1 for name in _COMPLETENESS_FIELDS if features.is_present(name))
        return features.with_overrides(
            profile_completeness=present / len(_COMPLETENESS_FIELDS) * 100.0,
        )

    # =========================================================================
    # Income
    # =========================================================================

    def _income(
        self,
        documents: Sequence[FinancialDocument],
    ) -> Tuple[Optional[float], Optional[float]]:
        """
        Reconcile pay-stub and tax-return income.

        Returns:
            (monthly_income, monthly_income_variance)
        """
        stub_incomes = sorted(
            d.metrics.monthly_income
            for d in documents
            if d.kind == DocumentKind.PAY_STUB and d.metrics.monthly_income is not None
        )
        stub_mean = _mean(stub_incomes)
        variance = _coefficient_of_variation(stub_incomes)

        tax_candidates = [
            (d.metrics.tax_year or "", d.metrics.monthly_income)
            for d in documents
            if d.kind == DocumentKind.TAX_RETURN and d.metrics.monthly_income is not None
        ]
        if not tax_candidates:
            return stub_mean, variance

        # Latest tax year wins; equal years fall back to the larger figure
        _, tax_income = max(tax_candidates)

        if stub_mean is None:
            return tax_income, variance
        if tax_income > 0 and abs(stub_mean - tax_income) / tax_income > self.settings.tax_override_threshold:
            return tax_income, variance
        return stub_mean, variance

    def _income_streams(self, documents: Sequence[FinancialDocument]) -> int:
        employers = {
            d.metrics.employer.strip().lower()
            for d in documents
            if d.metrics.employer and d.metrics.employer.strip()
        }
        return len(employers)

    def _employment_duration(self, documents: Sequence[FinancialDocument]) -> Optional[float]:
        """
        Months of employment evidenced by pay stubs.

        Uses the earliest hire date up to the latest pay-period date when a
        hire date is known, otherwise the span covered by dated pay stubs.
        """
        stubs = [d.metrics for d in documents if d.kind == DocumentKind.PAY_STUB]
        period_dates: List[date] = sorted(
            day
            for m in stubs
            for day in (m.pay_period_start, m.pay_period_end)
            if day is not None
        )
        hire_dates = sorted(m.hire_date for m in stubs if m.hire_date is not None)

        if hire_dates and period_dates:
            return months_between(hire_dates[0], period_dates[-1])

        dated_stubs = [m for m in stubs if m.pay_period_start or m.pay_period_end]
        if len(dated_stubs) >= 2:
            return months_between(period_dates[0], period_dates[-1])
        return None

    # =========================================================================
    # Cash flow and credit
    # =========================================================================

    def _mean_of(
        self,
        documents: Sequence[FinancialDocument],
        kind: DocumentKind,
        field_name: str,
    ) -> Optional[float]:
        values = sorted(
            getattr(d.metrics, field_name)
            for d in documents
            if d.kind == kind and getattr(d.metrics, field_name) is not None
        )
        return _mean(values)

    def _credit_utilization(self, documents: Sequence[FinancialDocument]) -> Optional[float]:
        utilizations = []
        for doc in documents:
            if doc.kind != DocumentKind.CREDIT_CARD_STATEMENT:
                continue
            metrics = doc.metrics
            if metrics.credit_utilization is not None:
                utilizations.append(metrics.credit_utilization)
            elif metrics.credit_card_balance is not None and metrics.credit_limit:
                utilizations.append(metrics.credit_card_balance / metrics.credit_limit * 100.0)
        return _mean(sorted(utilizations))

    def _debt_diversification(self, documents: Sequence[FinancialDocument]) -> Optional[int]:
        count = sum(
            1
            for d in documents
            if d.kind in (DocumentKind.LOAN_STATEMENT, DocumentKind.DEBT_STATEMENT)
        )
        return count or None

    # =========================================================================
    # Debt
    # =========================================================================

    def _monthly_debt_payments(self, documents: Sequence[FinancialDocument]) -> Optional[float]:
        """
        Total recurring monthly debt obligations.

        Returns None when no document could have evidenced debt (no
        transactions and no debt-bearing statements).
        """
        transactions = [t for d in documents for t in d.metrics.transactions]
        has_evidence = bool(transactions) or any(d.kind in _DEBT_BEARING_KINDS for d in documents)
        if not has_evidence:
            return None

        obligations = self._recurring_debt_amounts(transactions)
        obligations.extend(_declared_obligations([d.metrics for d in documents]))
        return math.fsum(sorted(obligations))

    def _recurring_debt_amounts(self, transactions: Sequence[Transaction]) -> List[float]:
        """
        Find debt payments that recur at (almost) the same amount.

        Algorithm:
            1. Keep outgoing transactions whose description contains a
               debt keyword
            2. Sort their absolute amounts
            3. Group greedily: an amount joins the open group when it is
               within the tolerance of that group's first member
            4. Each group with enough members is one monthly obligation,
               valued at the group's mean amount
        """
        keywords = self.settings.debt_keywords
        amounts = sorted(
            abs(t.amount)
            for t in transactions
            if t.is_withdrawal and any(k in t.description.lower() for k in keywords)
        )

        groups: List[List[float]] = []
        for amount in amounts:
            if groups and amount - groups[-1][0] <= self.settings.recurring_amount_tolerance:
                groups[-1].append(amount)
            else:
                groups.append([amount])

        return [
            math.fsum(group) / len(group)
            for group in groups
            if len(group) >= self.settings.min_recurring_occurrences
        ]


def _declared_obligations(metrics: Iterable[DocumentMetrics]) -> List[float]:
    """Monthly payments stated outright on loan, debt and card statements."""
    declared = []
    for m in metrics:
        for value in (m.loan_monthly_payment, m.debt_monthly_payment, m.minimum_payment):
            if value is not None and value > 0:
                declared.append(value)
    return declared
