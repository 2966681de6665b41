"""
Bank Statement Metrics for the Helix document normalizer.

This module derives cash-flow metrics from a statement's transactions:
- Average Monthly Balance
- Overdraft Frequency
- Payment Timeliness
- Savings Rate

All functions expect transactions already sorted chronologically (see
parsing.parse_transactions) and treat the statement as starting from a
zero balance.
"""

import math
from bisect import bisect_right
from calendar import monthrange
from datetime import date
from typing import Dict, List, Sequence, Tuple

from helix.domain.entities import Transaction

from .settings import NormalizationSettings, normalization_settings


def calculate_average_monthly_balance(transactions: Sequence[Transaction]) -> float:
    """
    Calculate the average monthly balance of a statement.

    Algorithm:
        1. Build a map of date -> end-of-day running balance
        2. Carry each balance forward over the days without activity
           between the first and the last transaction date
        3. Average the daily balances of each calendar month that contains
           at least one transaction
        4. Return the mean of those monthly averages

    Args:
        transactions: Chronologically sorted transactions (must be non-empty)

    Returns:
        Average monthly balance in currency units (can be negative)

    Raises:
        ValueError: If transactions is empty
    """
    if not transactions:
        raise ValueError("Cannot calculate average balance with no transactions")

    end_of_day: Dict[date, float] = {}
    running = 0.0
    for txn in transactions:
        running += txn.amount
        end_of_day[txn.date] = running

    days = sorted(end_of_day)
    ordinals = [d.toordinal() for d in days]
    balances = [end_of_day[d] for d in days]
    first_day, last_day = ordinals[0], ordinals[-1]

    monthly_averages = []
    for year, month in sorted({(d.year, d.month) for d in days}):
        start = max(date(year, month, 1).toordinal(), first_day)
        end = min(date(year, month, monthrange(year, month)[1]).toordinal(), last_day)

        # Each balance holds from its own day until the next transaction day
        index = bisect_right(ordinals, start) - 1
        weighted: List[float] = []
        day = start
        while day <= end:
            next_change = ordinals[index + 1] if index + 1 < len(ordinals) else end + 1
            span_end = min(next_change, end + 1)
            weighted.append(balances[index] * (span_end - day))
            day = span_end
            index += 1
        monthly_averages.append(math.fsum(weighted) / (end - start + 1))

    return math.fsum(monthly_averages) / len(monthly_averages)


def count_overdrafts(transactions: Sequence[Transaction]) -> int:
    """
    Count transactions that leave the running balance negative.

    Every such transaction counts, so a balance that stays negative across
    several debits is counted once per debit.
    """
    balance = 0.0
    overdrafts = 0
    for txn in transactions:
        balance += txn.amount
        if balance < 0:
            overdrafts += 1
    return overdrafts


def calculate_payment_timeliness(
    transactions: Sequence[Transaction],
    settings: NormalizationSettings = normalization_settings,
) -> float:
    """
    Score how regularly bills are paid, from 0 to 100.

    Algorithm:
        1. Select outgoing transactions whose description contains a
           timeliness keyword (payment, bill, utility)
        2. Take the day intervals between consecutive payments
        3. Coefficient of variation = population std dev / mean interval
        4. Score = 100 - cv * 100, clamped to [0, 100]

    Edge Cases:
        - Fewer than two payments: no interval exists, return neutral
        - Mean interval of zero (all on one day): return neutral

    Args:
        transactions: Chronologically sorted transactions
        settings: Normalization settings (uses defaults if not provided)

    Returns:
        Timeliness score from 0-100 (higher = more regular)
    """
    payment_dates = [
        txn.date
        for txn in transactions
        if txn.is_withdrawal and _matches_keyword(txn.description, settings.timeliness_keywords)
    ]

    if len(payment_dates) < settings.min_timeliness_payments:
        return settings.neutral_timeliness

    intervals = [
        (later - earlier).days
        for earlier, later in zip(payment_dates, payment_dates[1:])
    ]
    mean = math.fsum(intervals) / len(intervals)
    if mean <= 0:
        return settings.neutral_timeliness

    variance = math.fsum((i - mean) ** 2 for i in intervals) / len(intervals)
    cv = math.sqrt(variance) / mean
    return max(0.0, min(100.0, 100.0 - cv * 100.0))


def calculate_savings_rate(transactions: Sequence[Transaction]) -> float:
    """
    Percentage of deposits that were not spent.

    Returns:
        (deposits - withdrawals) / deposits * 100; 0 when there are no
        deposits. Negative when spending exceeds deposits.
    """
    deposits = math.fsum(t.amount for t in transactions if t.is_deposit)
    withdrawals = abs(math.fsum(t.amount for t in transactions if t.is_withdrawal))

    if deposits == 0:
        return 0.0

    return (deposits - withdrawals) / deposits * 100.0


def _matches_keyword(description: str, keywords: Tuple[str, ...]) -> bool:
    text = description.lower()
    return any(keyword in text for keyword in keywords)
