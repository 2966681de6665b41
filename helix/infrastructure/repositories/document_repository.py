"""SQLAlchemy implementation of DocumentRepository."""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from helix.domain.entities import (
    DocumentKind,
    DocumentMetrics,
    DocumentStatus,
    FinancialDocument,
)
from helix.domain.exceptions import DocumentNotFoundException, PersistenceException
from helix.domain.interfaces import DocumentRepository
from helix.infrastructure.database import DatabaseSessionManager, FinancialDocumentModel
from helix.utils.dates import utcnow


class SqlDocumentRepository(DocumentRepository):
    """
    SQLAlchemy implementation of the document repository.

    Every method runs in its own session and commits independently.
    """

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def add(self, document: FinancialDocument) -> FinancialDocument:
        """Persist a new document (upsert by id)."""
        try:
            async with self._db.session() as session:
                await session.merge(self._to_model(document))
        except SQLAlchemyError as exc:
            raise PersistenceException("add_document", str(exc)) from exc
        return document

    async def get_by_id(self, document_id: str) -> Optional[FinancialDocument]:
        """Retrieve a document by ID."""
        try:
            async with self._db.session() as session:
                model = await session.get(FinancialDocumentModel, document_id)
                return self._to_entity(model) if model else None
        except SQLAlchemyError as exc:
            raise PersistenceException("get_document", str(exc)) from exc

    async def set_normalized_metrics(
        self,
        document_id: str,
        metrics: Optional[DocumentMetrics],
        failure_reason: Optional[str] = None,
    ) -> FinancialDocument:
        """Replace a document's metrics, or mark it failed."""
        try:
            async with self._db.session() as session:
                model = await session.get(FinancialDocumentModel, document_id)
                if model is None:
                    raise DocumentNotFoundException(document_id)

                if metrics is not None:
                    model.status = DocumentStatus.OK.value
                    model.metrics = metrics.to_dict()
                    model.failure_reason = None
                else:
                    model.status = DocumentStatus.FAILED.value
                    model.metrics = None
                    model.failure_reason = failure_reason or "normalization failed"
                model.normalized_at = utcnow()

                await session.flush()
                return self._to_entity(model)
        except SQLAlchemyError as exc:
            raise PersistenceException("set_normalized_metrics", str(exc)) from exc

    async def list_by_subject(self, subject_id: str) -> List[FinancialDocument]:
        """Retrieve a subject's documents, newest first."""
        stmt = (
            select(FinancialDocumentModel)
            .where(FinancialDocumentModel.subject_id == subject_id)
            .order_by(
                FinancialDocumentModel.created_at.desc(),
                FinancialDocumentModel.id,
            )
        )
        return await self._list(stmt, "list_documents")

    async def list_unnormalized(self, subject_id: str) -> List[FinancialDocument]:
        """Retrieve a subject's pending documents."""
        stmt = (
            select(FinancialDocumentModel)
            .where(
                FinancialDocumentModel.subject_id == subject_id,
                FinancialDocumentModel.status == DocumentStatus.PENDING.value,
            )
            .order_by(FinancialDocumentModel.created_at, FinancialDocumentModel.id)
        )
        return await self._list(stmt, "list_unnormalized_documents")

    async def _list(self, stmt, operation: str) -> List[FinancialDocument]:
        try:
            async with self._db.session() as session:
                result = await session.execute(stmt)
                return [self._to_entity(model) for model in result.scalars().all()]
        except SQLAlchemyError as exc:
            raise PersistenceException(operation, str(exc)) from exc

    def _to_model(self, document: FinancialDocument) -> FinancialDocumentModel:
        return FinancialDocumentModel(
            id=document.id,
            subject_id=document.subject_id,
            kind=document.kind.value,
            source_uri=document.source_uri,
            status=document.status.value,
            metrics=document.metrics.to_dict() if document.metrics else None,
            failure_reason=document.failure_reason,
            created_at=document.created_at,
            normalized_at=document.normalized_at,
        )

    def _to_entity(self, model: FinancialDocumentModel) -> FinancialDocument:
        """Convert database model to domain entity."""
        return FinancialDocument(
            id=model.id,
            subject_id=model.subject_id,
            kind=DocumentKind(model.kind),
            source_uri=model.source_uri,
            status=DocumentStatus(model.status),
            metrics=DocumentMetrics.from_dict(model.metrics) if model.metrics is not None else None,
            failure_reason=model.failure_reason,
            created_at=model.created_at,
            normalized_at=model.normalized_at,
        )
