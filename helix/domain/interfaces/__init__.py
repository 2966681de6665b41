"""
Domain Interfaces (Ports)
"""

from .repositories import AlertRepository, DocumentRepository, ProfileRepository
from .clients import ExtractionClient

__all__ = [
    "AlertRepository",
    "DocumentRepository",
    "ProfileRepository",
    "ExtractionClient",
]
