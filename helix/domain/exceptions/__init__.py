"""Domain Exceptions - Business rule violations and domain errors."""

from .base import DomainException, NotFoundException
from .document import (
    DocumentNotFoundException,
    ExtractionFailureException,
    UnsupportedDocumentKindException,
)
from .profile import InvalidFeatureVectorException, ProfileNotFoundException
from .pipeline import (
    PersistenceException,
    PipelineException,
    ProfilePersistenceException,
)

__all__ = [
    "DomainException",
    "NotFoundException",
    "DocumentNotFoundException",
    "ExtractionFailureException",
    "UnsupportedDocumentKindException",
    "InvalidFeatureVectorException",
    "ProfileNotFoundException",
    "PersistenceException",
    "PipelineException",
    "ProfilePersistenceException",
]
