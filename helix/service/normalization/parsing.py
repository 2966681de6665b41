"""
Field parsing helpers for extracted document dictionaries.

Extracted fields arrive as loosely typed JSON values. These helpers turn
them into typed values, treating missing or empty fields as absent and
raising ExtractionFailureException for values that are present but
unusable.
"""

import math
from datetime import date
from typing import Any, List, Mapping, Optional

from helix.domain.entities import Transaction
from helix.domain.exceptions import ExtractionFailureException
from helix.utils.dates import parse_date


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def optional_float(
    fields: Mapping[str, Any],
    key: str,
    document_id: Optional[str] = None,
) -> Optional[float]:
    """
    Read a numeric field.

    Strings such as "1,234.50" or "$1234.50" are accepted.

    Raises:
        ExtractionFailureException: If the value is present but not numeric
    """
    value = fields.get(key)
    if _is_blank(value):
        return None
    if isinstance(value, bool):
        raise ExtractionFailureException(document_id, f"field '{key}' is not numeric")

    if isinstance(value, str):
        value = value.strip().replace(",", "").replace("$", "")
    try:
        number = float(value)
    except OverflowError:
        raise ExtractionFailureException(document_id, f"field '{key}' is out of range")
    except (TypeError, ValueError):
        raise ExtractionFailureException(
            document_id, f"field '{key}' is not numeric: {fields.get(key)!r}"
        )

    if not math.isfinite(number):
        raise ExtractionFailureException(document_id, f"field '{key}' is not finite")
    return number


def optional_str(fields: Mapping[str, Any], key: str) -> Optional[str]:
    """Read a text field; blank strings are treated as absent."""
    value = fields.get(key)
    if _is_blank(value):
        return None
    return str(value).strip()


def optional_date(
    fields: Mapping[str, Any],
    key: str,
    document_id: Optional[str] = None,
) -> Optional[date]:
    """
    Read an ISO date field.

    Raises:
        ExtractionFailureException: If the value is present but not a date
    """
    value = fields.get(key)
    if _is_blank(value):
        return None
    try:
        return parse_date(value)
    except ValueError:
        raise ExtractionFailureException(
            document_id, f"field '{key}' is not a date: {value!r}"
        )


def parse_transactions(
    fields: Mapping[str, Any],
    document_id: Optional[str] = None,
) -> List[Transaction]:
    """
    Parse the ``transactions`` list of a statement.

    Returns the transactions sorted chronologically; transactions on the
    same day keep their statement order.

    Raises:
        ExtractionFailureException: If the list or any entry is malformed
    """
    raw = fields.get("transactions")
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raise ExtractionFailureException(document_id, "transactions is not a list")

    transactions = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, Mapping):
            raise ExtractionFailureException(
                document_id, f"transaction {index} is not an object"
            )
        posted = optional_date(entry, "date", document_id)
        amount = optional_float(entry, "amount", document_id)
        if posted is None or amount is None:
            raise ExtractionFailureException(
                document_id, f"transaction {index} is missing a date or amount"
            )
        transactions.append(
            Transaction(
                date=posted,
                description=optional_str(entry, "description") or "",
                amount=amount,
            )
        )

    # sorted() is stable, so same-day entries keep statement order
    return sorted(transactions, key=lambda t: t.date)
