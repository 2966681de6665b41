"""Repository implementations."""

from .alert_repository import SqlAlertRepository
from .document_repository import SqlDocumentRepository
from .profile_repository import SqlProfileRepository

__all__ = [
    "SqlAlertRepository",
    "SqlDocumentRepository",
    "SqlProfileRepository",
]
